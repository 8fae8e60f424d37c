"""
Content Flow Database Layer

Usage:
    from contentflow.database import init_db, get_db_context, StateEntry

    init_db()
    with get_db_context() as db:
        db.query(StateEntry).filter(StateEntry.collection == "content").all()
"""

from .models import Base, StateEntry
from .session import (
    get_database_url,
    create_db_engine,
    get_engine,
    make_session_factory,
    get_session_factory,
    get_db_context,
    init_db,
    check_db_connection,
    get_db_info,
)

__all__ = [
    "Base",
    "StateEntry",
    "get_database_url",
    "create_db_engine",
    "get_engine",
    "make_session_factory",
    "get_session_factory",
    "get_db_context",
    "init_db",
    "check_db_connection",
    "get_db_info",
]
