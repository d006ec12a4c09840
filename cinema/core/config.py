from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    PROJECT_NAME: str = "Cinema Booking API"
    API_PREFIX: str = "/api"
    SECRET_KEY: str = "changeme"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24

    ADMIN_SECRET_KEY: str = "change-this-admin-secret"

    # Database
    POSTGRES_SERVER: str = "localhost"
    POSTGRES_USER: str = "postgres"
    POSTGRES_PASSWORD: str = "postgres"
    POSTGRES_DB: str = "cinema_db"
    POSTGRES_PORT: int = 5432
    DATABASE_URL: str = ""

    LOG_LEVEL: str = "INFO"

    # Booking engine
    # "showtime": availability flag is kept per (showtime, seat)
    # "hall": the seat row's own flag is flipped, shared by every showtime of the hall
    SEAT_FLAG_SCOPE: Literal["showtime", "hall"] = "showtime"
    BOOKING_MAX_RETRIES: int = 3
    BOOKING_RETRY_BACKOFF_SECONDS: float = 0.05
    SEAT_LOCK_TIMEOUT_SECONDS: float = 10.0
    AVAILABILITY_RECONCILE_SECONDS: int = 300

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore"
    )

    def assemble_db_url(self) -> str:
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return f"postgresql+psycopg2://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}@{self.POSTGRES_SERVER}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"


settings = Settings()
settings.DATABASE_URL = settings.assemble_db_url()
