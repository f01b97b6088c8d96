from functools import lru_cache

from pydantic import AnyHttpUrl
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment with defaults.

    Environment variable mapping follows pydantic's rules (e.g., APP_NAME, DEBUG, ENVIRONMENT,
    RATES_CACHE_TTL_SECONDS, RATE_LIMIT_MAX_REQUESTS).
    """

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False)

    # Basic app metadata
    app_name: str = "Estate Directory API"
    debug: bool = False
    version: str = "0.1.0"
    environment: str = "development"  # 'production' turns on Secure cookies

    # Exchange rates / caching
    rates_upstream_url: AnyHttpUrl = "https://rate.am/"
    rates_cache_ttl_seconds: int = 24 * 60 * 60
    http_timeout_seconds: float = 10.0

    # Used only when neither a fresh nor a stale snapshot exists
    fallback_usd_to_amd: float = 380.0
    fallback_usd_to_eur: float = 0.92

    # API rate limiting
    rate_limit_enabled: bool = True
    rate_limit_max_requests: int = 100
    rate_limit_window_seconds: int = 60

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    def init_post_load(self) -> None:
        """Validate cross-field constraints after loading."""
        allowed = {"development", "production", "test"}
        if self.environment not in allowed:
            raise ValueError(
                f"Unsupported environment '{self.environment}'. Allowed: {allowed}"
            )
        if self.rates_cache_ttl_seconds <= 0:
            raise ValueError("rates_cache_ttl_seconds must be positive")
        if self.fallback_usd_to_amd <= 0 or self.fallback_usd_to_eur <= 0:
            raise ValueError("fallback rates must be positive")
        if self.rate_limit_max_requests <= 0 or self.rate_limit_window_seconds <= 0:
            raise ValueError("rate limit settings must be positive")


@lru_cache
def get_settings() -> Settings:
    settings = Settings()
    settings.init_post_load()
    return settings
