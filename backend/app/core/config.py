from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List
import os


class Settings(BaseSettings):
    APP_NAME: str = "FieldGlow Dispatch"
    DEBUG: bool = False

    DATABASE_PATH: str = os.getenv("DATABASE_PATH", "data/fieldglow.db")

    @property
    def DATABASE_URL(self) -> str:
        # Resolve relative paths against the backend directory, not the cwd
        db_path = self.DATABASE_PATH
        if not os.path.isabs(db_path):
            backend_dir = os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
            db_path = os.path.join(backend_dir, db_path)
        return f"sqlite:///{os.path.abspath(db_path)}"

    SECRET_KEY: str = os.getenv("SECRET_KEY", "fieldglow-dev-secret-change-me")
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24 * 7  # 7 days

    CORS_ORIGINS: List[str] = ["http://localhost:5173", "http://127.0.0.1:5173"]

    HOST: str = "127.0.0.1"
    PORT: int = 8765

    # Live tracking
    TRAVELING_SPEED_THRESHOLD_MPS: float = 0.556  # 2 km/h
    TRAVELING_INTERVAL_SECONDS: int = 15
    STATIONARY_INTERVAL_SECONDS: int = 60
    TRACKING_RETENTION_DAYS: int = 7
    GPS_TIMEOUT_SECONDS: int = 10
    GPS_MAX_AGE_SECONDS: int = 5
    REPORT_QUEUE_MAX: int = 50

    # Inventory
    INTERNAL_TRANSFER_VENDOR: str = "Internal Transfer"
    PRODUCT_REQUEST_INVOICE_PREFIX: str = "REQ"

    # Orders left pending/confirmed this long after their appointment are expired
    ORDER_INACTIVITY_HOURS: int = 24

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore"
    )


settings = Settings()
