# config.py
import os
from dataclasses import dataclass, field
from urllib.parse import quote_plus

from dotenv import load_dotenv


DEFAULT_BASE_URL = "https://dashscope.aliyuncs.com/compatible-mode/v1"
DEFAULT_MODEL = "qwen-plus"
DEFAULT_SQLITE_URL = "sqlite:///./catalog.db"


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"invalid number in env var {name}: {raw!r}")


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"invalid integer in env var {name}: {raw!r}")


@dataclass(frozen=True)
class Settings:
    api_key: str | None = None
    base_url: str = DEFAULT_BASE_URL
    model: str = DEFAULT_MODEL
    llm_timeout: float = 30.0

    database_url: str = DEFAULT_SQLITE_URL
    mysql_ssl: bool = True
    mysql_ssl_ca: str | None = None
    db_pool_size: int = 10
    db_timeout: float = 10.0

    cors_origins: list[str] = field(default_factory=lambda: ["*"])
    seed_on_startup: bool = False
    log_level: str = "INFO"


def mysql_url_from_env() -> str | None:
    """
    build a mysql url from the MYSQL_* vars, or None if MYSQL_HOST is unset.

    port defaults to 4000 (tidb cloud), same as the hosted catalog.
    """
    host = os.getenv("MYSQL_HOST")
    if not host:
        return None

    port = _env_int("MYSQL_PORT", 4000)
    user = quote_plus(os.getenv("MYSQL_USER", ""))
    password = quote_plus(os.getenv("MYSQL_PASSWORD", ""))
    database = os.getenv("MYSQL_DATABASE", "")

    auth = f"{user}:{password}@" if password else f"{user}@"
    return f"mysql+pymysql://{auth}{host}:{port}/{database}"


def load_settings() -> Settings:
    """
    read settings from the environment.

    .env.local wins over .env, and both lose to variables already exported
    in the process environment.
    """
    load_dotenv(".env.local")
    load_dotenv(".env")

    database_url = os.getenv("DATABASE_URL") or mysql_url_from_env() or DEFAULT_SQLITE_URL

    origins = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]

    return Settings(
        api_key=os.getenv("DASHSCOPE_API_KEY") or None,
        base_url=os.getenv("DASHSCOPE_BASE_URL") or DEFAULT_BASE_URL,
        model=os.getenv("QWEN_MODEL") or DEFAULT_MODEL,
        llm_timeout=_env_float("LLM_TIMEOUT_SECONDS", 30.0),
        database_url=database_url,
        mysql_ssl=_env_bool("MYSQL_SSL", True),
        mysql_ssl_ca=os.getenv("MYSQL_SSL_CA") or None,
        db_pool_size=_env_int("DB_POOL_SIZE", 10),
        db_timeout=_env_float("DB_TIMEOUT_SECONDS", 10.0),
        cors_origins=origins or ["*"],
        seed_on_startup=_env_bool("SEED_ON_STARTUP", False),
        log_level=(os.getenv("LOG_LEVEL") or "INFO").upper(),
    )
