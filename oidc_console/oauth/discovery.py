"""Provider metadata for the interactive login.

Endpoints come either from the provider registration (GitHub publishes no
discovery document) or from OpenID Connect Discovery 1.0
(``/.well-known/openid-configuration``), falling back to RFC 8414
(``/.well-known/oauth-authorization-server``).
"""

import logging
from dataclasses import dataclass

import httpx

from ..config import ProviderSettings
from ..errors import DiscoveryError

logger = logging.getLogger(__name__)


@dataclass
class ProviderMetadata:
    """Endpoints and capabilities of an identity provider."""

    authorization_endpoint: str
    token_endpoint: str
    issuer: str | None = None
    userinfo_endpoint: str | None = None

    # Supported features
    scopes_supported: list[str] | None = None
    code_challenge_methods_supported: list[str] | None = None

    def supports_pkce(self) -> bool:
        """Check if S256 PKCE is advertised.

        Providers that publish no metadata (GitHub) are assumed to accept it.
        """
        return (
            self.code_challenge_methods_supported is None
            or "S256" in self.code_challenge_methods_supported
        )

    def unsupported_scopes(self, scopes: str) -> list[str]:
        """Requested scopes the provider does not advertise (none if it advertises nothing)."""
        if self.scopes_supported is None:
            return []
        return [scope for scope in scopes.split() if scope not in self.scopes_supported]

    @classmethod
    def from_registration(cls, registration: ProviderSettings) -> "ProviderMetadata":
        """Build metadata from explicitly configured endpoints."""
        if not registration.authorization_endpoint or not registration.token_endpoint:
            raise DiscoveryError(
                "Provider registration missing required endpoints "
                "(authorization_endpoint, token_endpoint)"
            )
        return cls(
            issuer=registration.issuer,
            authorization_endpoint=registration.authorization_endpoint,
            token_endpoint=registration.token_endpoint,
            userinfo_endpoint=registration.userinfo_endpoint,
        )


async def _fetch_metadata_document(client: httpx.AsyncClient, issuer: str) -> dict:
    """Fetch the discovery document, trying OpenID Connect first."""
    urls = [
        f"{issuer}/.well-known/openid-configuration",
        f"{issuer}/.well-known/oauth-authorization-server",
    ]
    last_error: httpx.HTTPError | None = None

    for url in urls:
        logger.debug(f"Fetching provider metadata from: {url}")
        try:
            response = await client.get(url)
            response.raise_for_status()
            document = response.json()
        except httpx.HTTPError as e:
            logger.debug(f"Metadata request to {url} failed: {e}")
            last_error = e
            continue
        except ValueError as e:
            raise DiscoveryError(f"Provider metadata at {url} is not valid JSON") from e

        if not isinstance(document, dict):
            raise DiscoveryError(f"Provider metadata at {url} is not a JSON object")
        return document

    raise DiscoveryError(f"Failed to fetch provider metadata for {issuer}: {last_error}")


async def discover_provider_metadata(issuer: str) -> ProviderMetadata:
    """Discover provider metadata from an issuer URL.

    Args:
        issuer: Issuer URL (e.g., "https://localhost:44395/")

    Returns:
        ProviderMetadata with discovered endpoints and capabilities

    Raises:
        DiscoveryError: If discovery fails or required endpoints are missing
    """
    issuer = issuer.rstrip("/")
    logger.debug(f"Discovering provider metadata for issuer: {issuer}")

    async with httpx.AsyncClient() as client:
        document = await _fetch_metadata_document(client, issuer)

    authorization_endpoint = document.get("authorization_endpoint")
    token_endpoint = document.get("token_endpoint")

    if not authorization_endpoint or not token_endpoint:
        raise DiscoveryError(
            "Provider metadata missing required endpoints "
            "(authorization_endpoint, token_endpoint)"
        )

    advertised_issuer = document.get("issuer")
    if advertised_issuer and advertised_issuer.rstrip("/") != issuer:
        raise DiscoveryError(
            f"Provider metadata issuer '{advertised_issuer}' does not match '{issuer}'"
        )

    metadata = ProviderMetadata(
        issuer=advertised_issuer or issuer,
        authorization_endpoint=authorization_endpoint,
        token_endpoint=token_endpoint,
        userinfo_endpoint=document.get("userinfo_endpoint"),
        scopes_supported=document.get("scopes_supported"),
        code_challenge_methods_supported=document.get("code_challenge_methods_supported"),
    )

    logger.info(f"Discovered provider metadata for {metadata.issuer}")
    logger.debug(f"Authorization endpoint: {metadata.authorization_endpoint}")
    logger.debug(f"Token endpoint: {metadata.token_endpoint}")
    logger.debug(f"Userinfo endpoint: {metadata.userinfo_endpoint}")
    logger.debug(f"Supports PKCE: {metadata.supports_pkce()}")

    return metadata
