"""In-process document and key-value stores with live query fan-out"""

import asyncio
import copy
import logging
import uuid
from typing import Any, Dict, Iterable, List, Optional, Sequence

from subsgrow_core.infrastructure.store.base import (
    Document,
    ErrorCallback,
    Filter,
    SnapshotCallback,
    matches,
)

logger = logging.getLogger(__name__)


def _split_document_path(path: str) -> tuple[str, str]:
    collection, _, doc_id = path.rpartition("/")
    if not collection or not doc_id:
        raise ValueError(f"Not a document path: {path!r}")
    return collection, doc_id


class _Listener:
    """Live query registration"""

    def __init__(
        self,
        store: "InMemoryDocumentStore",
        path: str,
        filters: Optional[Sequence[Filter]],
        on_snapshot: SnapshotCallback,
        on_error: ErrorCallback,
    ):
        self.store = store
        self.path = path
        self.filters = list(filters or ())
        self.on_snapshot = on_snapshot
        self.on_error = on_error
        self.active = True

    def close(self) -> None:
        if not self.active:
            return
        self.active = False
        self.store._listeners.remove(self)
        self.store.events.append(f"close:{self.path}")


class InMemoryDocumentStore:
    """
    Dict-backed document store implementing the DocumentStore interface.

    Every write re-delivers full result sets to the live queries on the
    written collection. Failure injection hooks:
    - fail_queries / fail_inserts: exception raised by the next calls
    - query_gate: asyncio.Event that query() waits on before reading
    - emit_error(): push a transport error to live queries on a path
    """

    def __init__(self):
        self._collections: Dict[str, Dict[str, Dict[str, Any]]] = {}
        self._listeners: List[_Listener] = []
        self.events: List[str] = []
        self.fail_queries: Optional[Exception] = None
        self.fail_inserts: Optional[Exception] = None
        self.query_gate: Optional[asyncio.Event] = None
        self.query_count = 0
        self.insert_count = 0

    # Live queries

    def subscribe(
        self,
        path: str,
        on_snapshot: SnapshotCallback,
        on_error: ErrorCallback,
        filters: Optional[Sequence[Filter]] = None,
    ) -> _Listener:
        listener = _Listener(self, path, filters, on_snapshot, on_error)
        self._listeners.append(listener)
        self.events.append(f"subscribe:{path}")
        self._deliver(listener)
        return listener

    def active_subscriptions(self, path: Optional[str] = None) -> int:
        return sum(1 for l in self._listeners if path is None or l.path == path)

    def emit_error(self, path: str, error: Exception) -> None:
        for listener in list(self._listeners):
            if listener.path == path:
                listener.on_error(error)

    def _read(self, path: str, filters: Optional[Sequence[Filter]]) -> List[Document]:
        collection = self._collections.get(path, {})
        return [
            Document(id=doc_id, data=copy.deepcopy(data))
            for doc_id, data in collection.items()
            if matches(data, filters)
        ]

    def _deliver(self, listener: _Listener) -> None:
        if listener.active:
            listener.on_snapshot(self._read(listener.path, listener.filters))

    def _changed(self, path: str) -> None:
        for listener in list(self._listeners):
            if listener.path == path:
                self._deliver(listener)

    # Point operations

    async def query(self, path: str, filters: Optional[Sequence[Filter]] = None) -> List[Document]:
        if self.query_gate is not None:
            await self.query_gate.wait()
        await asyncio.sleep(0)
        self.query_count += 1
        if self.fail_queries is not None:
            raise self.fail_queries
        return self._read(path, filters)

    async def insert(self, path: str, data: Dict[str, Any]) -> str:
        await asyncio.sleep(0)
        if self.fail_inserts is not None:
            raise self.fail_inserts
        doc_id = uuid.uuid4().hex
        self._collections.setdefault(path, {})[doc_id] = copy.deepcopy(data)
        self.insert_count += 1
        self._changed(path)
        return doc_id

    async def update(self, path: str, doc_id: str, data: Dict[str, Any]) -> None:
        """Create or replace a document with a known id"""
        await asyncio.sleep(0)
        self._collections.setdefault(path, {})[doc_id] = copy.deepcopy(data)
        self._changed(path)

    async def get(self, path: str) -> Optional[Dict[str, Any]]:
        await asyncio.sleep(0)
        collection, doc_id = _split_document_path(path)
        data = self._collections.get(collection, {}).get(doc_id)
        return copy.deepcopy(data) if data is not None else None

    async def set(self, path: str, data: Dict[str, Any], merge: bool = True) -> None:
        await asyncio.sleep(0)
        collection, doc_id = _split_document_path(path)
        docs = self._collections.setdefault(collection, {})
        body = dict(docs.get(doc_id, {})) if merge else {}
        body.update(copy.deepcopy(data))
        docs[doc_id] = body
        self._changed(collection)

    async def delete_many(self, path: str, ids: Iterable[str]) -> int:
        await asyncio.sleep(0)
        docs = self._collections.get(path, {})
        removed = 0
        for doc_id in ids:
            if docs.pop(doc_id, None) is not None:
                removed += 1
        if removed:
            self._changed(path)
        return removed


class InMemoryKeyValueStore:
    """Process-local key-value store"""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self.values: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self.values.get(key)

    def set(self, key: str, value: str) -> None:
        self.values[key] = value
