"""Interactive OAuth 2.0 / OpenID Connect login.

This package provides:
- Provider metadata from explicit endpoints or OpenID Connect discovery
- A local redirect listener for the authorization response
- An Authlib-backed authorization code flow with PKCE
"""

from .callback_server import AuthorizationResponse, RedirectListener
from .discovery import ProviderMetadata, discover_provider_metadata
from .service import AuthenticationService, OIDCClientService, normalize_claims

__all__ = [
    # Service
    "AuthenticationService",
    "OIDCClientService",
    "normalize_claims",
    # Discovery
    "ProviderMetadata",
    "discover_provider_metadata",
    # Redirect capture
    "AuthorizationResponse",
    "RedirectListener",
]
