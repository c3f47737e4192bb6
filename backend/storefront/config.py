from pydantic_settings import BaseSettings
from typing import List, Optional

class Settings(BaseSettings):
    DATABASE_URL: str = "sqlite:///./dev.db"
    APP_HOST: str = "127.0.0.1"
    APP_PORT: int = 8000
    LOG_LEVEL: str = "INFO"
    FRONTEND_ORIGINS: List[str] = ["http://localhost:3000"]
    SITE_URL: str = "http://localhost:3000"

    # durable client storage
    STORE_BACKEND: str = "sql"  # sql, file, memory
    STORE_DIR: str = "./.storefront"
    STORE_POLL_INTERVAL_SECONDS: int = 2
    CART_STORAGE_KEY: str = "jb_cart_v1"
    RESERVATION_STORAGE_KEY: str = "jb_reservations_v1"
    RESERVATION_TTL_SECONDS: int = 900

    # payment collaborator
    PAYMENT_PROVIDER: str = "mock"  # mock, stripe, http
    PAYMENT_MOCK_DELAY_MS: int = 200
    PAYMENT_TIMEOUT_SECONDS: float = 15.0
    PAYMENT_HTTP_URL: Optional[str] = None
    STRIPE_SECRET_KEY: str = ""

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"

settings = Settings()
