# storefront/config.py
from pydantic_settings import BaseSettings
from pydantic import ConfigDict
from pathlib import Path
from typing import List


class Settings(BaseSettings):
    ENV: str = "development"
    DATA_DIR: Path = Path("data")  # where CSV / XLSX tables live
    USERS_FILE: str = "users.csv"
    PRODUCTS_FILE: str = "products.csv"
    CARTS_FILE: str = "carts.csv"  # set to carts.xlsx to keep carts in Excel

    # seconds to wait for a cart or table lock before giving up
    LOCK_TIMEOUT: float = 10.0
    GUEST_ID_PREFIX: str = "guest_"

    CORS_ORIGINS: str = "http://localhost:3000"
    LOG_LEVEL: str = "INFO"

    # Example .env:
    # DATA_DIR=./data
    # CARTS_FILE=carts.xlsx
    # LOCK_TIMEOUT=2.5

    model_config = ConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    def cors_origins(self) -> List[str]:
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]


settings = Settings()
