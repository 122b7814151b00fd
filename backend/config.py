import logging
import os
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List

from dotenv import load_dotenv


PROJECT_ROOT = Path(__file__).resolve().parent.parent
ENV_CANDIDATES = [
    PROJECT_ROOT / ".env",
    PROJECT_ROOT / "backend" / ".env",
]

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def load_project_env() -> List[str]:
    loaded: List[str] = []
    for env_path in ENV_CANDIDATES:
        if env_path.exists():
            load_dotenv(dotenv_path=env_path, override=False)
            loaded.append(str(env_path))
    return loaded


def first_env_file() -> str | None:
    for env_path in ENV_CANDIDATES:
        if env_path.exists():
            return str(env_path)
    return None


def setup_logging(log_level: str = "INFO", log_file: str | None = None) -> None:
    handlers: list[logging.Handler] = []

    if log_file:
        handlers.append(logging.FileHandler(log_file))
    else:
        handlers.append(logging.StreamHandler(sys.stdout))

    logging.basicConfig(
        level=getattr(logging, log_level.upper(), logging.INFO),
        format=LOG_FORMAT,
        handlers=handlers,
    )


@dataclass
class TableConfig:
    name: str
    order_by: str
    limit: int


def _default_tables() -> Dict[str, TableConfig]:
    return {
        "restocks": TableConfig("restock_events", "detected_at", 200),
        "links": TableConfig("supplier_links", "created_at", 500),
        "alerts": TableConfig("alerts", "created_at", 200),
        "monitors": TableConfig("restock_monitors", "created_at", 200),
    }


@dataclass
class Settings:
    supabase_url: str | None = None
    supabase_key: str | None = None
    cors_origins: List[str] = field(default_factory=lambda: ["http://localhost:3000"])
    log_level: str = "INFO"
    log_file: str | None = None
    tables: Dict[str, TableConfig] = field(default_factory=_default_tables)

    @property
    def supabase_configured(self) -> bool:
        return bool(self.supabase_url and self.supabase_key)

    def table(self, key: str) -> TableConfig:
        return self.tables[key]


def get_settings() -> Settings:
    """
    Reads settings from the environment after loading the project .env files.
    Table names and fetch limits can be overridden per table, e.g.
    RESTOCKS_TABLE=restock_events_v2 or LINKS_LIMIT=1000.
    """
    load_project_env()

    tables = _default_tables()
    for key, table in tables.items():
        prefix = key.upper()
        table.name = os.getenv(f"{prefix}_TABLE", table.name)
        limit = os.getenv(f"{prefix}_LIMIT")
        if limit:
            try:
                table.limit = int(limit)
            except ValueError:
                raise RuntimeError(f"{prefix}_LIMIT must be an integer, got {limit!r}")

    origins = os.getenv("CORS_ORIGINS", "http://localhost:3000")

    return Settings(
        supabase_url=os.getenv("SUPABASE_URL") or os.getenv("NEXT_PUBLIC_SUPABASE_URL"),
        supabase_key=os.getenv("SUPABASE_SERVICE_ROLE_KEY") or os.getenv("SUPABASE_ANON_KEY"),
        cors_origins=[o.strip() for o in origins.split(",") if o.strip()],
        log_level=os.getenv("LOG_LEVEL", "INFO"),
        log_file=os.getenv("LOG_FILE") or None,
        tables=tables,
    )
