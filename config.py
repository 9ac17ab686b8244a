"""
Application Settings

Values come from environment variables. A local .env file is loaded first so
DB_USER / DB_PASSWORD can live outside the shell.
"""

import os
from dataclasses import dataclass, field
from typing import List, Optional
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

DEFAULT_ORIGINS = "http://localhost:5173,https://foodify-25c2d.web.app"


def _split_origins(value: str) -> List[str]:
    return [origin.strip() for origin in value.split(",") if origin.strip()]


@dataclass
class Settings:
    port: int = 3000
    db_user: Optional[str] = None
    db_password: Optional[str] = None
    db_host: str = "cluster0.v5wedkm.mongodb.net"
    database_url: Optional[str] = None
    database_name: str = "Foodify"
    allowed_origins: List[str] = field(default_factory=lambda: _split_origins(DEFAULT_ORIGINS))
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            port=int(os.getenv("PORT", "3000")),
            db_user=os.getenv("DB_USER"),
            db_password=os.getenv("DB_PASSWORD"),
            db_host=os.getenv("DB_HOST", "cluster0.v5wedkm.mongodb.net"),
            database_url=os.getenv("DATABASE_URL"),
            database_name=os.getenv("DATABASE_NAME", "Foodify"),
            allowed_origins=_split_origins(os.getenv("ALLOWED_ORIGINS", DEFAULT_ORIGINS)),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
        )


settings = Settings.from_env()
