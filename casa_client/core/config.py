"""Client configuration with environment variables."""

from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_API_BASE_URL = "http://localhost:8000"


class Settings(BaseSettings):
    """Client settings loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Environment (dev | development | staging | production)
    ENV: str = "dev"

    # WordPress backend root, e.g. https://casa.example.org
    WORDPRESS_URL: str = ""

    # Blanket transport timeout; callers never set their own
    REQUEST_TIMEOUT_SECONDS: float = 30.0
    PUBLIC_REQUEST_TIMEOUT_SECONDS: float = 10.0

    # Formidable Forms REST key (sent as Basic auth with password "x")
    FORMS_API_KEY: str = "1L5B-SY7E-7J6S-DOAN"

    # Session cookies
    SESSION_COOKIE_DAYS: int = 7
    LOGIN_ROUTE: str = "/auth/login"

    DEFAULT_ORGANIZATION_SLUG: str = "default"

    # Form field metadata cache; unset keeps entries for the process lifetime
    FORM_FIELDS_CACHE_TTL_SECONDS: float | None = None

    @property
    def api_base_url(self) -> str:
        """Backend origin without a trailing slash."""
        url = self.WORDPRESS_URL.strip().rstrip("/")
        return url or DEFAULT_API_BASE_URL

    @property
    def cookie_secure(self) -> bool:
        """Secure cookies only in production builds."""
        return self.ENV == "production"

    @property
    def is_development(self) -> bool:
        return self.ENV in ("dev", "development")


settings = Settings()
