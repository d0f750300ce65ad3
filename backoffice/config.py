"""Application configuration."""

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, computed_field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_SESSION_SECRET = "CHANGE_ME_IN_PRODUCTION_complex_password_32_chars_min"


class IdentityProviderSettings(BaseModel):
    """OpenID Connect identity provider configuration.

    Endpoints default to the Keycloak layout under the issuer URL
    (``{issuer}/protocol/openid-connect/...``) and can be overridden
    individually for other providers.
    """

    issuer: str = "http://localhost:8180/realms/backoffice"
    client_id: str = "backoffice-client"
    client_secret: str = "CHANGE_ME_IN_PRODUCTION"

    authorization_endpoint: str | None = None
    token_endpoint: str | None = None
    userinfo_endpoint: str | None = None
    end_session_endpoint: str | None = None

    # Optional back-office API endpoint returning the richer account profile
    # (accountId, company, country, authorities). Falls back to OIDC userinfo.
    backend_userinfo_endpoint: str | None = None

    scope: str = "openid profile email roles"

    # Per-call bound on every provider request
    timeout_seconds: float = 5.0

    @model_validator(mode="after")
    def fill_default_endpoints(self) -> "IdentityProviderSettings":
        """Derive unset endpoints from the issuer URL."""
        base = f"{self.issuer.rstrip('/')}/protocol/openid-connect"
        if self.authorization_endpoint is None:
            self.authorization_endpoint = f"{base}/auth"
        if self.token_endpoint is None:
            self.token_endpoint = f"{base}/token"
        if self.userinfo_endpoint is None:
            self.userinfo_endpoint = f"{base}/userinfo"
        if self.end_session_endpoint is None:
            self.end_session_endpoint = f"{base}/logout"
        return self


class SessionSettings(BaseModel):
    """Session cookie configuration."""

    # Server-held secret used to seal the session cookie (min 32 characters)
    secret: str = DEFAULT_SESSION_SECRET

    cookie_name: str = "backoffice_session"
    state_cookie_name: str = "oauth_state"
    state_max_age_seconds: int = 60 * 10

    # Used when the provider does not report a refresh token lifetime
    default_lifetime_seconds: int = 60 * 60 * 24 * 7

    # e.g. ".example.com" to share the cookie across subdomains
    cookie_domain: str | None = None

    # Keep the ID token inside the sealed session for single logout
    retain_id_token: bool = True


class APISettings(BaseModel):
    """API configuration."""

    host: str
    port: int
    protocol: Literal["http", "https"]
    app_host: str

    @computed_field
    @property
    def base_url(self) -> str:
        """Base URL of this API server.

        In development: http://localhost:8000
        In production: https://api.backoffice.example.com
        """
        if self.host == "localhost":
            return f"{self.protocol}://{self.host}:{self.port}"
        return f"{self.protocol}://{self.host}"

    @computed_field
    @property
    def app_url(self) -> str:
        """Back-office frontend URL used for post-login and post-logout redirects."""
        if self.app_host == "localhost":
            return "http://localhost:3000"
        return f"{self.protocol}://{self.app_host}"

    @computed_field
    @property
    def callback_url(self) -> str:
        """OAuth redirect URI registered with the identity provider."""
        return f"{self.base_url}/auth/callback"


class ObservabilitySettings(BaseModel):
    """Observability configuration for Logfire."""

    # Logfire API token (optional - if not set, logs only go to console)
    logfire_token: str | None = None

    # If None: sends when a token is present, otherwise console-only
    send_to_logfire: bool | None = None


class Settings(BaseSettings):
    """Application settings.

    Set environment variables to override, using ``__`` for nested values:

    Development (default):
        HOST=localhost
        ENVIRONMENT=development
        -> API: http://localhost:8000
        -> OAuth callback: http://localhost:8000/auth/callback
        -> App: http://localhost:3000

    Production:
        HOST=api.backoffice.example.com
        APP_HOST=backoffice.example.com
        ENVIRONMENT=production
        SESSION__SECRET=...
        IDENTITY_PROVIDER__ISSUER=https://id.example.com/realms/backoffice
        IDENTITY_PROVIDER__CLIENT_SECRET=...
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        extra="ignore",
    )

    environment: Literal["test", "development", "staging", "production"] = "development"
    debug: bool = False

    # Git commit SHA (loaded from version.txt file or defaults to "unknown")
    git_sha: str = "unknown"

    host: str = "localhost"
    port: int = 8000
    app_host: str = "localhost"

    api: APISettings = APISettings(
        host="localhost", port=8000, protocol="http", app_host="localhost"
    )  # Overwritten in validator
    identity_provider: IdentityProviderSettings = IdentityProviderSettings()
    session: SessionSettings = SessionSettings()
    observability: ObservabilitySettings = ObservabilitySettings()

    @model_validator(mode="after")
    def initialize_api_settings(self) -> "Settings":
        """Initialize API settings from host and environment."""
        protocol: Literal["http", "https"] = (
            "http" if self.environment in ("test", "development") else "https"
        )

        self.api = APISettings(
            host=self.host,
            port=self.port,
            protocol=protocol,
            app_host=self.app_host,
        )

        self.git_sha = self._load_git_sha()

        return self

    @property
    def cookie_secure(self) -> bool:
        """Whether cookies carry the Secure flag (everywhere but local runs)."""
        return self.environment not in ("test", "development")

    @staticmethod
    def _load_git_sha() -> str:
        """Load git SHA from version file.

        Returns:
            Git SHA if version file exists, otherwise "unknown"
        """
        version_file = Path("/app/version.txt")
        if version_file.exists():
            try:
                return version_file.read_text().strip()
            except OSError:
                return "unknown"
        return "unknown"
