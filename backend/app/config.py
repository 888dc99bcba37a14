"""
Application configuration
"""
from typing import List

from pydantic_settings import BaseSettings
from pydantic import model_validator
from functools import lru_cache
from dotenv import dotenv_values


class Settings(BaseSettings):
    # Database (hosted table store holding the backtest result tables)
    DATABASE_URL: str = "postgresql+psycopg2://postgres@localhost/strategy_results"

    # Redis
    REDIS_URL: str = ""  # e.g. redis://default:pw@host:6379; overrides host/port/db when set
    REDIS_HOST: str = "localhost"
    REDIS_PORT: int = 6379
    REDIS_DB: int = 0

    # Cache
    CACHE_BACKEND: str = "memory"  # memory | redis
    CACHE_TTL_RESULTS: int = 3600  # 1 hour
    CACHE_TTL_TABLES: int = 300  # 5 minutes

    # Result tables
    RESULTS_PAGE_SIZE: int = 1000  # hosted store caps a single request at 1000 rows
    STRATEGY_TABLES: List[str] = []  # explicit table list; empty = discover by pattern
    TABLE_TICKERS: List[str] = ["btc_usdt", "eth_usdt", "sol_usdt", "bnb_usdt"]
    TABLE_TIMEFRAMES: List[str] = ["2h", "3h", "4h", "5h", "6h"]
    TABLE_SUFFIXES: List[str] = ["results", "settings"]
    TABLE_SPECIAL_SUFFIXES: List[str] = ["fixed_settings", "alex_settings"]

    # Timeframe columns shown in the coin x timeframe matrix
    SUPPORTED_TIMEFRAMES: List[str] = ["2h", "3h", "4h", "5h", "6h"]

    # Application
    API_V1_PREFIX: str = "/api/v1"
    PROJECT_NAME: str = "Strategy Results Dashboard"
    LOG_LEVEL: str = "INFO"

    # Auth - API token for the cache revalidation endpoints
    # Set via ADMIN_API_TOKEN env var or .env file. If empty, they are unrestricted.
    ADMIN_API_TOKEN: str = ""

    # Deployment
    FRONTEND_URL: str = ""  # Production frontend URL, added to CORS automatically

    # CORS
    BACKEND_CORS_ORIGINS: list = [
        "http://localhost:3000",
        "http://localhost:5173",
    ]

    @model_validator(mode='after')
    def _fill_empty_from_dotenv(self):
        """
        If an env var exists but is empty (e.g. DATABASE_URL=''), fall back
        to the value from .env.  pydantic-settings treats a set-but-empty
        env var as authoritative, but for connection strings an empty value
        is never intentional.
        """
        env_file_values = dotenv_values(".env")
        for field in ("DATABASE_URL", "REDIS_URL", "ADMIN_API_TOKEN"):
            current = getattr(self, field, "")
            dotenv_val = env_file_values.get(field, "")
            if not current and dotenv_val:
                object.__setattr__(self, field, dotenv_val)
        # Deployed dashboard origin
        if self.FRONTEND_URL and self.FRONTEND_URL not in self.BACKEND_CORS_ORIGINS:
            self.BACKEND_CORS_ORIGINS.append(self.FRONTEND_URL)
        return self

    class Config:
        env_file = ".env"
        case_sensitive = True


@lru_cache()
def get_settings() -> Settings:
    return Settings()
