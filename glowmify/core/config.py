from urllib.parse import urlparse

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Shop API
    api_base_url: str = "https://todaymall.co.kr/api/v1"
    api_timeout: float = 15.0
    api_max_retries: int = 3
    default_country: str = "en"

    # Cart / feed
    feed_page_size: int = 20
    promo_discount_rate: float = 0.10

    # Mock auth server
    mock_server_port: int = 5000
    cors_allowed_origins: str = "http://localhost:8081,http://localhost:19006"
    jwt_secret_key: str = "CHANGE_ME"
    jwt_access_token_expire_minutes: int = 60
    jwt_refresh_token_expire_days: int = 7

    # App
    debug: bool = False
    log_level: str = "INFO"

    @property
    def cors_origins_list(self) -> list[str]:
        return [o.strip() for o in self.cors_allowed_origins.split(",") if o.strip()]

    model_config = {"env_file": ".env", "env_prefix": "GLOWMIFY_", "extra": "ignore"}

    def validate_api(self) -> None:
        """Raise if the shop API settings cannot produce a usable client."""
        parsed = urlparse(self.api_base_url)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ValueError("api_base_url must be a valid http(s) URL")
        if self.api_timeout <= 0:
            raise ValueError("api_timeout must be positive")
        if self.api_max_retries < 1:
            raise ValueError("api_max_retries must be at least 1")
        if self.feed_page_size < 1:
            raise ValueError("feed_page_size must be at least 1")
        if not 0 <= self.promo_discount_rate <= 1:
            raise ValueError("promo_discount_rate must be between 0 and 1")


settings = Settings()
