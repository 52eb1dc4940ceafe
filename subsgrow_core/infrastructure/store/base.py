"""Capability interfaces consumed by the engine"""

from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, List, Optional, Protocol, Sequence, Tuple

# (field, operator, value); only equality is supported
Filter = Tuple[str, str, Any]


@dataclass(frozen=True)
class Document:
    """Stored document with its id"""

    id: str
    data: Dict[str, Any]


SnapshotCallback = Callable[[List[Document]], None]
ErrorCallback = Callable[[Exception], None]


class Subscription(Protocol):
    def close(self) -> None:
        """Stop delivering snapshots; safe to call more than once"""
        ...


class DocumentStore(Protocol):
    """Managed document store with live queries"""

    def subscribe(
        self,
        path: str,
        on_snapshot: SnapshotCallback,
        on_error: ErrorCallback,
        filters: Optional[Sequence[Filter]] = None,
    ) -> Subscription:
        """Deliver the full result set on attach and after every change"""
        ...

    async def query(self, path: str, filters: Optional[Sequence[Filter]] = None) -> List[Document]: ...

    async def insert(self, path: str, data: Dict[str, Any]) -> str: ...

    async def get(self, path: str) -> Optional[Dict[str, Any]]: ...

    async def set(self, path: str, data: Dict[str, Any], merge: bool = True) -> None: ...

    async def delete_many(self, path: str, ids: Iterable[str]) -> int:
        """Delete documents in one batch; returns the number removed"""
        ...


class KeyValueStore(Protocol):
    """Durable string key-value store"""

    def get(self, key: str) -> Optional[str]: ...

    def set(self, key: str, value: str) -> None: ...


class AlertSink(Protocol):
    """Ephemeral operator-visible messages; never correctness-critical"""

    async def notify(self, message: str, level: str = "info") -> None: ...


def matches(data: Dict[str, Any], filters: Optional[Sequence[Filter]]) -> bool:
    """Evaluate equality filters against a document body"""
    for field, op, value in filters or ():
        if op != "==":
            raise ValueError(f"Unsupported filter operator: {op}")
        if data.get(field) != value:
            return False
    return True
