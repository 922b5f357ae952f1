import os
from dataclasses import dataclass

from dotenv import load_dotenv

load_dotenv(override=True)


def _env_bool(name: str, default: bool = False) -> bool:
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    return raw_value.strip().lower() in {"1", "true", "yes", "y", "on"}


@dataclass(frozen=True)
class Settings:
    database_url: str = os.getenv("DATABASE_URL", "sqlite:///./user_sessions.db")
    sql_echo: bool = _env_bool("SQL_ECHO", False)
    log_level: str = os.getenv("LOG_LEVEL", "INFO").strip().upper()
    sessions_page_size: int = int(os.getenv("SESSIONS_PAGE_SIZE", "100"))
    create_tables_on_startup: bool = _env_bool("CREATE_TABLES_ON_STARTUP", True)


settings = Settings()
