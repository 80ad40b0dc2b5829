from typing import Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    DB_URL: str = "sqlite+aiosqlite:///./inventory_edge.db"

    REMOTE_URL: str = "http://localhost:54321"
    REMOTE_API_KEY: str = ""
    REMOTE_TIMEOUT_SECONDS: float = 10.0

    DEVICE_API_KEY: Optional[str] = None
    OFFLINE_MODE: bool = False
    LOG_LEVEL: str = "INFO"

    ALLOW_NEGATIVE_STOCK: bool = False
    REQUIRE_REASON_STOCK_OUT: bool = False
    REQUIRE_REASON_ADJUSTMENT: bool = False

    BACKUP_DIR: str = "backups"

    # seconds between reachability checks against REMOTE_URL; 0 disables them
    CONNECTIVITY_CHECK_SECONDS: float = 30.0

    class Config:
        env_file = ".env"

settings = Settings()
