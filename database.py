# database.py
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker

from config import Settings


Base = declarative_base()


def mysql_connect_args(settings: Settings) -> dict:
    """
    pymysql connect args: connect/read/write timeouts and verified tls.

    without MYSQL_SSL_CA the server certificate is checked against the
    system ca store (verify_mode=True), never silently skipped.
    """
    timeout = int(settings.db_timeout)
    connect_args = {
        "connect_timeout": timeout,
        # a query hanging after connect must not pin the worker thread
        "read_timeout": timeout,
        "write_timeout": timeout,
    }
    if settings.mysql_ssl:
        ssl = {"check_hostname": True, "verify_mode": True}
        if settings.mysql_ssl_ca:
            ssl["ca"] = settings.mysql_ssl_ca
        connect_args["ssl"] = ssl
    return connect_args


def build_engine(settings: Settings) -> Engine:
    """
    create the engine for the product catalog.

    sqlite is used for local runs and tests; anything else gets a bounded
    pool (pool_size / pool_timeout) so a dead database fails fast instead of
    hanging the request.
    """
    url = settings.database_url

    if url.startswith("sqlite"):
        # fastapi runs sync endpoints in a threadpool
        return create_engine(url, connect_args={"check_same_thread": False})

    connect_args = mysql_connect_args(settings) if url.startswith("mysql") else {}

    return create_engine(
        url,
        pool_size=settings.db_pool_size,
        pool_timeout=settings.db_timeout,
        pool_pre_ping=True,
        connect_args=connect_args,
    )


def build_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(bind=engine, autoflush=False, autocommit=False)
