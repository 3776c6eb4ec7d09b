# storefront/config.py
from pydantic_settings import BaseSettings
from pydantic import ConfigDict
from pathlib import Path
from functools import lru_cache
from typing import List

class Settings(BaseSettings):
    ENV: str = "development"
    DATA_DIR: Path = Path("data")  # where CSV / XLSX files will live
    USERS_FILE: str = "users.csv"  # can be users.xlsx if you prefer Excel
    ORDERS_FILE: str = "orders.csv"

    JWT_SECRET: str = "dev-secret-change-me"
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24

    CORS_ORIGINS: str = "http://localhost:3000"

    # reject status moves outside RECOMMENDED_TRANSITIONS (off: any status may follow any other)
    STRICT_TRANSITIONS: bool = False

    DEFAULT_PAGE_SIZE: int = 20
    MAX_PAGE_SIZE: int = 100

    # Example .env:
    # DATA_DIR=./data
    # ORDERS_FILE=orders.xlsx
    # JWT_SECRET=something-long-and-random

    model_config = ConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @property
    def cors_origins(self) -> List[str]:
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]

@lru_cache()
def get_settings() -> Settings:
    """Return cached Settings instance."""
    return Settings()

settings = get_settings()
