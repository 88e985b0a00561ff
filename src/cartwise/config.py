from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    app_host: str = "0.0.0.0"
    app_port: int = 8000
    store_file: str = "data/store.json"

    log_level: str = "INFO"
    log_json: bool = False

    # session timers, seconds
    poll_interval_s: float = 3.0
    url_poll_interval_s: float = 1.0
    url_change_delay_s: float = 1.0
    initial_check_delay_s: float = 1.0
    overlay_cooldown_s: float = 30.0
    display_timeout_s: float = 30.0
    cards_changed_delay_s: float = 0.5

    # amount estimation
    default_amount: float = 100.0
    min_amount: float = 1.0
    max_amount: float = 10_000.0
    cart_cache_ttl_s: float = 600.0

    max_transactions: int = 1000

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


settings = Settings()
