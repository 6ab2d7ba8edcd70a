"""
core/db.py -- SQLAlchemy engine construction shared by the stores.

SQLite engines get check_same_thread=False (FastAPI runs sync handlers in a
thread pool) and WAL journal mode on every new connection. Other backends are
passed through to create_engine() untouched.
"""

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine


def _set_wal_mode(dbapi_conn, connection_record) -> None:
    """Enable WAL journal mode so readers are not blocked during writes.

    Set per-connection because SQLite PRAGMAs are not inherited by new
    connections from the pool. In-memory databases keep journal_mode=memory.
    """
    dbapi_conn.execute("PRAGMA journal_mode=WAL")


def make_engine(db_url: str) -> Engine:
    if not db_url.startswith("sqlite"):
        return create_engine(db_url)
    engine = create_engine(db_url, connect_args={"check_same_thread": False})
    event.listen(engine, "connect", _set_wal_mode)
    return engine
