"""Configuration management for the console client."""

from pathlib import Path

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Provider names passed to the authentication service
PROVIDER_LOCAL = "Local"
PROVIDER_GITHUB = "GitHub"

GITHUB_AUTHORIZATION_ENDPOINT = "https://github.com/login/oauth/authorize"
GITHUB_TOKEN_ENDPOINT = "https://github.com/login/oauth/access_token"
GITHUB_USERINFO_ENDPOINT = "https://api.github.com/user"


class ProviderSettings(BaseModel):
    """Client registration for a single identity provider.

    Either ``issuer`` (for OpenID Connect discovery) or the three explicit
    endpoints must be set.
    """

    client_id: str | None = Field(default=None, description="OAuth client identifier")
    client_secret: str | None = Field(
        default=None, description="OAuth client secret (None for public clients)"
    )
    scopes: str = Field(default="openid profile", description="Space-separated scopes")
    redirect_path: str = Field(
        default="/callback/login", description="Path of the local redirect listener"
    )

    issuer: str | None = Field(default=None, description="Issuer URL used for discovery")
    authorization_endpoint: str | None = None
    token_endpoint: str | None = None
    userinfo_endpoint: str | None = None

    @field_validator("redirect_path")
    @classmethod
    def validate_redirect_path(cls, v: str) -> str:
        """Ensure the redirect path is absolute."""
        return v if v.startswith("/") else f"/{v}"

    def has_static_endpoints(self) -> bool:
        """Check if endpoints are configured explicitly (no discovery needed)."""
        return bool(
            self.authorization_endpoint and self.token_endpoint and self.userinfo_endpoint
        )


class LocalProviderSettings(ProviderSettings):
    """Registration for the local OpenID Connect server (endpoints discovered)."""

    client_id: str | None = "console"
    issuer: str | None = "https://localhost:44395/"
    scopes: str = "openid profile email"
    redirect_path: str = "/callback/login/local"


class GitHubProviderSettings(ProviderSettings):
    """Registration for GitHub (plain OAuth 2.0, static endpoints)."""

    scopes: str = "read:user"
    redirect_path: str = "/callback/login/github"
    authorization_endpoint: str | None = GITHUB_AUTHORIZATION_ENDPOINT
    token_endpoint: str | None = GITHUB_TOKEN_ENDPOINT
    userinfo_endpoint: str | None = GITHUB_USERINFO_ENDPOINT


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Nested provider fields use a double underscore, e.g.
    ``OIDC_CONSOLE_GITHUB__CLIENT_ID``.
    """

    model_config = SettingsConfigDict(
        env_prefix="OIDC_CONSOLE_",
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    # Logging
    log_level: str = Field(default="INFO", description="Logging level")
    log_file: Path | None = Field(default=None, description="Optional log file")

    # Local redirect listener
    callback_host: str = Field(default="localhost", description="Redirect listener host")
    callback_port: int = Field(default=8739, description="Redirect listener port")
    authentication_timeout: float = Field(
        default=300.0, description="Seconds to wait for the provider to redirect back"
    )

    # Identity providers
    local: LocalProviderSettings = Field(default_factory=LocalProviderSettings)
    github: GitHubProviderSettings = Field(default_factory=GitHubProviderSettings)

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is a valid Python logging level."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(f"Invalid log level '{v}'. Must be one of: {', '.join(valid_levels)}")
        return v_upper

    @field_validator("callback_port")
    @classmethod
    def validate_callback_port(cls, v: int) -> int:
        """Validate the redirect listener port."""
        if not 0 < v < 65536:
            raise ValueError(f"callback_port must be between 1 and 65535, got {v}")
        return v

    @field_validator("authentication_timeout")
    @classmethod
    def validate_authentication_timeout(cls, v: float) -> float:
        """Validate the authentication timeout is positive."""
        if v <= 0:
            raise ValueError("authentication_timeout must be positive")
        return v

    def providers(self) -> dict[str, ProviderSettings]:
        """Get provider registrations keyed by provider name."""
        return {PROVIDER_LOCAL: self.local, PROVIDER_GITHUB: self.github}

    def redirect_uri(self, provider: ProviderSettings) -> str:
        """Build the redirect URI registered for a provider."""
        return f"http://{self.callback_host}:{self.callback_port}{provider.redirect_path}"


def get_settings(env_file: Path | None = None) -> Settings:
    """Load settings, optionally from a specific .env file."""
    if env_file is not None:
        return Settings(_env_file=env_file)
    return Settings()
