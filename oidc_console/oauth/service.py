"""Interactive authentication service.

``AuthenticationService`` is the seam the login loop depends on.
``OIDCClientService`` implements it with Authlib's OAuth 2.0 client: Authlib
builds the PKCE authorization request and performs the code exchange, while
this module opens the browser, captures the redirect and turns the userinfo
response into a principal.
"""

import asyncio
import logging
import webbrowser
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

import httpx
from authlib.common.security import generate_token
from authlib.integrations.base_client import OAuthError
from authlib.integrations.httpx_client import AsyncOAuth2Client

from ..cancellation import wait_cancellable
from ..config import PROVIDER_GITHUB, ProviderSettings, Settings
from ..errors import (
    AuthenticationError,
    AuthenticationTimeoutError,
    ConfigurationError,
    DiscoveryError,
    ProtocolError,
    UnknownProviderError,
)
from ..principal import AuthenticationResult, Claims, ClaimsPrincipal
from .callback_server import AuthorizationResponse, RedirectListener
from .discovery import ProviderMetadata, discover_provider_metadata

logger = logging.getLogger(__name__)

T = TypeVar("T")


class AuthenticationService(ABC):
    """Performs a complete interactive login against an identity provider."""

    @abstractmethod
    async def authenticate_interactively(
        self, provider: str, cancellation: asyncio.Event | None = None
    ) -> AuthenticationResult:
        """Run the interactive flow and wait for the user to complete it.

        Args:
            provider: Provider name (e.g. "Local", "GitHub")
            cancellation: Signal that aborts the wait when set

        Returns:
            AuthenticationResult with the authenticated principal

        Raises:
            OperationCanceledError: If cancellation was signaled
            ProtocolError: If the provider returned an OAuth error
            AuthenticationError: For any other authentication failure
        """
        pass


def normalize_claims(provider: str, claims: dict[str, Any]) -> dict[str, Any]:
    """Map provider-specific userinfo fields onto standard claim types.

    GitHub's user API is not an OpenID Connect userinfo endpoint: the subject
    is the numeric ``id`` and the username is ``login``.
    """
    normalized = dict(claims)
    if provider == PROVIDER_GITHUB:
        if "id" in claims:
            normalized.setdefault(Claims.SUBJECT, str(claims["id"]))
        if "login" in claims:
            normalized.setdefault(Claims.PREFERRED_USERNAME, claims["login"])
    return normalized


class OIDCClientService(AuthenticationService):
    """Authorization code flow with PKCE using the system browser."""

    def __init__(
        self,
        settings: Settings,
        open_browser: Callable[[str], bool] = webbrowser.open,
    ):
        """Initialize the client service.

        Args:
            settings: Application settings (listener and provider registrations)
            open_browser: Function that opens a URL in the system browser
        """
        self.settings = settings
        self.open_browser = open_browser
        self._metadata: dict[str, ProviderMetadata] = {}

    def get_registration(self, provider: str) -> ProviderSettings:
        """Get the client registration for a provider.

        Raises:
            UnknownProviderError: If the provider is not registered
            ConfigurationError: If the registration has no client_id
        """
        registration = self.settings.providers().get(provider)
        if registration is None:
            raise UnknownProviderError(provider)
        if not registration.client_id:
            raise ConfigurationError(
                f"Missing client_id for provider {provider}. "
                f"Set OIDC_CONSOLE_{provider.upper()}__CLIENT_ID in your .env file."
            )
        return registration

    async def get_provider_metadata(self, provider: str) -> ProviderMetadata:
        """Resolve provider endpoints, discovering them on first use."""
        if provider in self._metadata:
            return self._metadata[provider]

        registration = self.get_registration(provider)
        if registration.has_static_endpoints():
            metadata = ProviderMetadata.from_registration(registration)
        elif registration.issuer:
            metadata = await discover_provider_metadata(registration.issuer)
        else:
            raise DiscoveryError(
                f"Provider {provider} has neither an issuer nor explicit endpoints"
            )

        if not metadata.userinfo_endpoint:
            raise DiscoveryError(f"Provider {provider} does not expose a userinfo endpoint")
        if not metadata.supports_pkce():
            raise DiscoveryError(f"Provider {provider} does not support S256 PKCE")

        unsupported = metadata.unsupported_scopes(registration.scopes)
        if unsupported:
            logger.warning(
                f"Provider {provider} does not advertise requested scopes: "
                f"{', '.join(unsupported)}"
            )

        self._metadata[provider] = metadata
        return metadata

    async def authenticate_interactively(
        self, provider: str, cancellation: asyncio.Event | None = None
    ) -> AuthenticationResult:
        """Run the authorization code flow in the system browser.

        This will:
        1. Resolve the provider's endpoints
        2. Start the local redirect listener
        3. Open the browser on the authorization URL
        4. Exchange the authorization code for tokens
        5. Fetch the user's claims from the userinfo endpoint
        """
        registration = self.get_registration(provider)
        metadata = await self.get_provider_metadata(provider)
        redirect_uri = self.settings.redirect_uri(registration)
        code_verifier = generate_token(48)

        async with AsyncOAuth2Client(
            client_id=registration.client_id,
            client_secret=registration.client_secret,
            scope=registration.scopes,
            redirect_uri=redirect_uri,
            code_challenge_method="S256",
        ) as client:
            authorization_url, state = client.create_authorization_url(
                metadata.authorization_endpoint, code_verifier=code_verifier
            )

            async with RedirectListener(
                self.settings.callback_host,
                self.settings.callback_port,
                registration.redirect_path,
                expected_state=state,
            ) as listener:
                logger.info(f"Starting {provider} authorization flow...")
                logger.debug(f"Opening browser to: {authorization_url}")
                self.open_browser(authorization_url)

                response = await self._wait_for_redirect(listener, cancellation)

            logger.info("Received authorization code, exchanging for tokens...")
            token = await self._cancellable(
                self._exchange_code(client, metadata, response, code_verifier), cancellation
            )
            claims = await self._cancellable(self._fetch_userinfo(client, metadata), cancellation)

        principal = ClaimsPrincipal(provider=provider, claims=normalize_claims(provider, claims))
        logger.info(
            f"Authenticated with {provider} (subject: {principal.find_first(Claims.SUBJECT)})"
        )
        return AuthenticationResult(provider=provider, principal=principal, token_response=token)

    @staticmethod
    async def _cancellable(awaitable: Awaitable[T], cancellation: asyncio.Event | None) -> T:
        if cancellation is None:
            return await awaitable
        return await wait_cancellable(awaitable, cancellation)

    async def _wait_for_redirect(
        self, listener: RedirectListener, cancellation: asyncio.Event | None
    ) -> AuthorizationResponse:
        """Wait for the redirect, bounded by the timeout and the cancellation signal."""
        logger.info("Waiting for authorization...")
        timeout = self.settings.authentication_timeout
        try:
            return await asyncio.wait_for(
                self._cancellable(listener.wait(), cancellation), timeout=timeout
            )
        except TimeoutError as e:
            logger.error("Authorization timeout")
            raise AuthenticationTimeoutError(timeout) from e

    async def _exchange_code(
        self,
        client: AsyncOAuth2Client,
        metadata: ProviderMetadata,
        response: AuthorizationResponse,
        code_verifier: str,
    ) -> dict[str, Any]:
        """Exchange the authorization code for tokens.

        Raises:
            ProtocolError: If the token endpoint returned an OAuth error
            AuthenticationError: If the request failed
        """
        try:
            token = await client.fetch_token(
                metadata.token_endpoint,
                code=response.code,
                code_verifier=code_verifier,
            )
        except OAuthError as e:
            raise ProtocolError(e.error or ProtocolError.SERVER_ERROR, e.description) from e
        except httpx.HTTPError as e:
            raise AuthenticationError(f"Failed to exchange code for token: {e}") from e

        return dict(token)

    async def _fetch_userinfo(
        self, client: AsyncOAuth2Client, metadata: ProviderMetadata
    ) -> dict[str, Any]:
        """Fetch the authenticated user's claims.

        Raises:
            AuthenticationError: If the request failed or returned no claims
        """
        try:
            response = await client.get(metadata.userinfo_endpoint)
            response.raise_for_status()
            claims = response.json()
        except httpx.HTTPError as e:
            raise AuthenticationError(f"Failed to fetch user information: {e}") from e
        except ValueError as e:
            raise AuthenticationError("Userinfo response is not valid JSON") from e

        if not isinstance(claims, dict):
            raise AuthenticationError("Userinfo response is not a JSON object")
        return claims
