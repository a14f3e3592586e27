"""
core/db.py -- Engine construction shared by auth/store.py and catalog/store.py.

Both stores point at the same Settings.database_url but own their tables and
engines separately, the same way each repository owns its own schema.
"""

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine


def _set_wal_mode(dbapi_conn, connection_record) -> None:
    """Enable WAL journal mode for concurrent read safety.

    WAL lets readers proceed without blocking during writes. Set per-connection
    because SQLite PRAGMAs are not inherited by new connections from the pool.
    """
    dbapi_conn.execute("PRAGMA journal_mode=WAL")


def _unicode_lower(value):
    return value.lower() if isinstance(value, str) else value


def _register_unicode_lower(dbapi_conn, connection_record) -> None:
    """Replace SQLite's ASCII-only lower() with Python's Unicode-aware str.lower.

    Case-insensitive search lower-cases the needle in Python, so the column side
    must fold "É" to "é" the same way.
    """
    dbapi_conn.create_function("lower", 1, _unicode_lower, deterministic=True)


def _is_sqlite_memory(db_url: str) -> bool:
    return ":memory:" in db_url or "mode=memory" in db_url


def make_engine(db_url: str) -> Engine:
    """Create an engine with the options the stores rely on.

    check_same_thread=False because FastAPI runs sync handlers in a thread
    pool. On SQLite every connection gets a Unicode-aware lower(); WAL only
    applies to file databases.
    """
    connect_args: dict = {}
    if db_url.startswith("sqlite"):
        connect_args["check_same_thread"] = False
    engine = create_engine(db_url, connect_args=connect_args)
    if db_url.startswith("sqlite"):
        event.listen(engine, "connect", _register_unicode_lower)
    if db_url.startswith("sqlite") and not _is_sqlite_memory(db_url):
        event.listen(engine, "connect", _set_wal_mode)
    return engine
