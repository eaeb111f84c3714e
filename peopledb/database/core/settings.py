from typing import Optional

from pydantic import SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class DatabaseSettings(BaseSettings):
    """MongoDB connection settings, read from the environment or a local ``.env`` file."""

    MONGO_URI: Optional[SecretStr] = None
    MONGO_DB_NAME: str = "peopledb"

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")
