"""Error types for the console client."""


class ConsoleClientError(Exception):
    """Base exception for console client errors."""

    pass


# Configuration errors
class ConfigurationError(ConsoleClientError):
    """Raised when configuration is missing or invalid."""

    pass


class UnknownProviderError(ConfigurationError):
    """Raised when no registration exists for the requested provider."""

    def __init__(self, provider: str):
        super().__init__(f"No registration found for provider '{provider}'")
        self.provider = provider


class DiscoveryError(ConfigurationError):
    """Raised when provider metadata cannot be discovered."""

    pass


# Authentication errors
class AuthenticationError(ConsoleClientError):
    """Raised when an interactive authentication attempt fails."""

    pass


class ProtocolError(AuthenticationError):
    """OAuth 2.0 error returned by the identity provider (RFC 6749 Section 4.1.2.1)."""

    ACCESS_DENIED = "access_denied"
    INVALID_REQUEST = "invalid_request"
    SERVER_ERROR = "server_error"

    def __init__(self, error: str, description: str | None = None):
        self.error = error
        self.description = description
        message = f"{error}: {description}" if description else error
        super().__init__(message)

    @property
    def is_access_denied(self) -> bool:
        """Check if the end user declined the authorization request."""
        return self.error == self.ACCESS_DENIED


class AuthenticationTimeoutError(AuthenticationError):
    """Raised when the provider never redirected back to the client."""

    def __init__(self, timeout: float):
        super().__init__(f"No authorization response received within {timeout:g} seconds")
        self.timeout = timeout


class MissingClaimError(AuthenticationError):
    """Raised when a successful login lacks a claim the client needs."""

    def __init__(self, claim_type: str, provider: str | None = None):
        source = f" returned by {provider}" if provider else ""
        super().__init__(f"Principal{source} has no '{claim_type}' claim")
        self.claim_type = claim_type
        self.provider = provider


# Cancellation
class OperationCanceledError(ConsoleClientError):
    """Raised when a wait is abandoned because cancellation was requested."""

    def __init__(self, message: str = "The operation was canceled."):
        super().__init__(message)
