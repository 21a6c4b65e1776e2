"""
core/database.py -- The single SQLAlchemy Engine shared by every store.

The engine is the collaborator-database handle. It is built once by the
application lifespan (api/main.py) and passed by reference into UserStore and
BlogStore. Nothing here is a module-level global: stores never create their
own engine, so there is exactly one connection pool per process.

Table definitions live next to the store that owns them (auth/store.py,
blogs/store.py) and register on the shared `metadata` below. Each store
creates its own tables on construction.

Layer rule: core/ is the kernel. No imports from api/, web/, auth/, or blogs/.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone

from sqlalchemy import MetaData, create_engine, event
from sqlalchemy.engine import Engine

metadata = MetaData()


def _set_wal_mode(dbapi_conn, connection_record) -> None:
    """Enable WAL journal mode for concurrent read safety.

    Set per-connection because SQLite PRAGMAs are not inherited by new
    connections from the pool.
    """
    dbapi_conn.execute("PRAGMA journal_mode=WAL")


def create_db_engine(db_url: str) -> Engine:
    """Build the process-wide Engine for db_url.

    SQLite needs check_same_thread=False because FastAPI runs sync route
    handlers in a thread pool.
    """
    connect_args: dict = {}
    if db_url.startswith("sqlite"):
        connect_args["check_same_thread"] = False
    engine = create_engine(db_url, connect_args=connect_args)
    if db_url.startswith("sqlite"):
        event.listen(engine, "connect", _set_wal_mode)
    return engine


def new_id() -> str:
    """Return a fresh opaque record id (32 lowercase hex chars)."""
    return uuid.uuid4().hex


def now_iso() -> str:
    """Current UTC time as an ISO 8601 string. Sorts chronologically as text."""
    return datetime.now(timezone.utc).isoformat()
