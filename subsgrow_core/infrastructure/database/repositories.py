"""Data access layer for durable key-value state"""

from typing import Optional

from sqlalchemy.orm import Session, sessionmaker

from subsgrow_core.infrastructure.database.models import KeyValueEntry
from subsgrow_core.infrastructure.database.session import default_session_factory


class KeyValueRepository:
    """Key-value reads and upserts within a caller-owned session"""

    def __init__(self, db: Session):
        self.db = db

    def get_value(self, key: str) -> Optional[str]:
        entry = self.db.get(KeyValueEntry, key)
        return entry.value if entry is not None else None

    def put_value(self, key: str, value: str) -> KeyValueEntry:
        entry = self.db.get(KeyValueEntry, key)
        if entry is None:
            entry = KeyValueEntry(key=key, value=value)
            self.db.add(entry)
        else:
            entry.value = value
        self.db.flush()
        return entry


class SqlKeyValueStore:
    """KeyValueStore backed by the kv_entry table, one transaction per call"""

    def __init__(self, session_factory: sessionmaker | None = None):
        self.session_factory = session_factory or default_session_factory()

    def get(self, key: str) -> Optional[str]:
        with self.session_factory() as db:
            return KeyValueRepository(db).get_value(key)

    def set(self, key: str, value: str) -> None:
        with self.session_factory() as db:
            try:
                KeyValueRepository(db).put_value(key, value)
                db.commit()
            except Exception:
                db.rollback()
                raise
