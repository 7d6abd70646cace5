# showreel/db/session.py
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
import os

_engine = None
_SessionLocal = None

_IN_MEMORY_URLS = ("sqlite://", "sqlite:///:memory:")


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    # SQLite 默认不校验外键，VideoUpload -> Project 的引用完整性依赖它
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def configure_engine(db_url: str) -> Engine:
    """
    (Re)bind the process-wide engine and session factory to ``db_url``.
    Called by the app factory; tests call it once per app.
    """
    global _engine, _SessionLocal
    if _engine is not None:
        _engine.dispose()

    kwargs = {}
    if db_url.startswith("sqlite"):
        kwargs["connect_args"] = {"check_same_thread": False}
        if db_url in _IN_MEMORY_URLS:
            # 内存库：所有连接必须共享同一个底层连接
            kwargs["poolclass"] = StaticPool

    _engine = create_engine(db_url, **kwargs)
    if db_url.startswith("sqlite"):
        event.listen(_engine, "connect", _enable_sqlite_foreign_keys)

    _SessionLocal = sessionmaker(
        autoflush=False,
        expire_on_commit=False,
        bind=_engine,
    )
    return _engine


def get_engine() -> Engine:
    if _engine is None:
        db_url = os.environ.get("DATABASE_URL")
        if not db_url:
            raise RuntimeError("DATABASE_URL not set")
        configure_engine(db_url)
    return _engine


def get_session():
    if _SessionLocal is None:
        get_engine()
    return _SessionLocal()
