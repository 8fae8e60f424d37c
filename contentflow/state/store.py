"""
Key-Value State Store

Durable state shared by every workflow stage, keyed by (collection, key).
There are no cross-call transactions and no optimistic locking: each call
is its own short session, and concurrent writers of the same key are
last-writer-wins on the whole value.
"""

import copy
import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import sessionmaker
from sqlalchemy.orm.attributes import flag_modified

from contentflow.database.models import StateEntry
from contentflow.database.session import get_db_context, get_session_factory

logger = logging.getLogger(__name__)


class StateStore:
    """
    SQL-backed key-value store.

    Values are JSON documents. Callers always receive a copy, so mutating
    a returned dict never changes stored state until it is set() again.
    """

    def __init__(self, session_factory: Optional[sessionmaker] = None):
        self._session_factory = session_factory or get_session_factory()

    def _session(self):
        return get_db_context(self._session_factory)

    def _query(self, db, collection: str, key: str):
        return db.query(StateEntry).filter(
            StateEntry.collection == collection,
            StateEntry.key == key,
        )

    def get(self, collection: str, key: str) -> Optional[Dict[str, Any]]:
        """Get a value, or None if the key is absent."""
        with self._session() as db:
            entry = self._query(db, collection, key).first()
            if entry is None:
                return None
            return copy.deepcopy(entry.value)

    def set(self, collection: str, key: str, value: Any) -> None:
        """Insert or overwrite a value."""
        with self._session() as db:
            entry = self._query(db, collection, key).first()
            if entry is None:
                db.add(StateEntry(
                    collection=collection,
                    key=key,
                    value=copy.deepcopy(value),
                ))
            else:
                entry.value = copy.deepcopy(value)
                flag_modified(entry, "value")

        logger.debug(f"State set {collection}/{key}")

    def delete(self, collection: str, key: str) -> bool:
        """Delete a value. Returns False if nothing was stored under the key."""
        with self._session() as db:
            deleted = self._query(db, collection, key).delete(synchronize_session=False)

        return deleted > 0

    def delete_group(self, collection: str) -> int:
        """Delete every value in a collection. Returns the number removed."""
        with self._session() as db:
            deleted = db.query(StateEntry).filter(
                StateEntry.collection == collection,
            ).delete(synchronize_session=False)

        return deleted

    def delete_matching(self, collection: str, key_prefix: str) -> int:
        """Delete every value in a collection whose key starts with key_prefix."""
        with self._session() as db:
            deleted = db.query(StateEntry).filter(
                StateEntry.collection == collection,
                StateEntry.key.startswith(key_prefix, autoescape=True),
            ).delete(synchronize_session=False)

        return deleted

    def get_group(self, collection: str) -> List[Dict[str, Any]]:
        """Get every value in a collection, in insertion order."""
        with self._session() as db:
            entries = db.query(StateEntry).filter(
                StateEntry.collection == collection,
            ).order_by(StateEntry.id).all()
            return [copy.deepcopy(entry.value) for entry in entries]
