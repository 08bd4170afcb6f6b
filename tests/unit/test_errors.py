"""Tests for error types."""

from oidc_console.errors import (
    AuthenticationError,
    AuthenticationTimeoutError,
    ConfigurationError,
    ConsoleClientError,
    DiscoveryError,
    MissingClaimError,
    OperationCanceledError,
    ProtocolError,
    UnknownProviderError,
)


class TestErrorHierarchy:
    """Tests for the exception hierarchy."""

    def test_configuration_errors(self) -> None:
        """Configuration errors share a base class."""
        assert issubclass(UnknownProviderError, ConfigurationError)
        assert issubclass(DiscoveryError, ConfigurationError)
        assert issubclass(ConfigurationError, ConsoleClientError)

    def test_authentication_errors(self) -> None:
        """Authentication errors share a base class."""
        for error_class in (ProtocolError, AuthenticationTimeoutError, MissingClaimError):
            assert issubclass(error_class, AuthenticationError)

    def test_cancellation_is_not_an_authentication_error(self) -> None:
        """Cancellation is distinguished from authentication failures."""
        assert issubclass(OperationCanceledError, ConsoleClientError)
        assert not issubclass(OperationCanceledError, AuthenticationError)


class TestProtocolError:
    """Tests for ProtocolError."""

    def test_message_with_description(self) -> None:
        """The message combines the error code and description."""
        error = ProtocolError("access_denied", "The user declined")

        assert str(error) == "access_denied: The user declined"
        assert error.error == "access_denied"
        assert error.description == "The user declined"

    def test_message_without_description(self) -> None:
        """The message is the error code alone without a description."""
        assert str(ProtocolError("server_error")) == "server_error"

    def test_is_access_denied(self) -> None:
        """Only the access_denied code counts as a denial."""
        assert ProtocolError(ProtocolError.ACCESS_DENIED).is_access_denied
        assert not ProtocolError("invalid_grant").is_access_denied


class TestErrorMessages:
    """Tests for error messages and attributes."""

    def test_unknown_provider(self) -> None:
        """UnknownProviderError names the provider."""
        error = UnknownProviderError("Okta")
        assert error.provider == "Okta"
        assert "Okta" in str(error)

    def test_missing_claim(self) -> None:
        """MissingClaimError names the claim and the provider."""
        error = MissingClaimError("name", "GitHub")
        assert error.claim_type == "name"
        assert str(error) == "Principal returned by GitHub has no 'name' claim"

    def test_timeout(self) -> None:
        """AuthenticationTimeoutError reports the timeout."""
        error = AuthenticationTimeoutError(300.0)
        assert error.timeout == 300.0
        assert "300 seconds" in str(error)
