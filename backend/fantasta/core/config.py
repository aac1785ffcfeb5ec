from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # --- DB ---
    DATABASE_URL: str = "sqlite:///./fantasta.sqlite"

    # --- JWT ---
    JWT_SECRET: str = "change-me-fantasta-dev-secret"
    JWT_ALG: str = "HS256"
    JWT_EXPIRE_MIN: int = 10080  # 7 days

    # --- Logging ---
    LOG_LEVEL: str = "INFO"

    # --- Auctions ---
    AUCTION_SWEEPER_ENABLED: bool = True
    AUCTION_SWEEP_INTERVAL_SECONDS: float = 30.0
    DEFAULT_AUCTION_DURATION_MIN: int = 2
    INITIAL_CREDITS: int = 500

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


settings = Settings()
