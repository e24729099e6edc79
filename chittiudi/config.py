"""
Configuration - Settings read from the environment (prefix ``CHITTI_``).

    CHITTI_ENV                 development | production
    CHITTI_SHARE_BASE_URL      base for share links ({base}/bowl/{id})
    CHITTI_ALLOWED_ORIGINS     comma-separated CORS origins
    CHITTI_DATA_DIR            where the CLI keeps bowls.json and device.json
    CHITTI_MAX_COMMIT_RETRIES  optimistic transaction attempts
    CHITTI_LOG_LEVEL           logging level name
"""

from functools import lru_cache
from pathlib import Path
import logging

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    env: str = "development"
    share_base_url: str = "https://yourapp.com"
    allowed_origins: str = "*"
    data_dir: Path = Path.home() / ".chittiudi"
    max_commit_retries: int = 3
    log_level: str = "INFO"

    model_config = SettingsConfigDict(env_prefix="CHITTI_", env_file=".env", extra="ignore")

    @property
    def origins(self) -> list[str]:
        return [o.strip() for o in self.allowed_origins.split(",") if o.strip()]

    @property
    def bowls_path(self) -> Path:
        return self.data_dir.expanduser() / "bowls.json"

    @property
    def device_path(self) -> Path:
        return self.data_dir.expanduser() / "device.json"


@lru_cache()
def get_settings() -> Settings:
    return Settings()


def configure_logging(level: str = "INFO"):
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
