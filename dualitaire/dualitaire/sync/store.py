"""Shared document store interface and in-memory implementation."""

import copy
import logging
import threading
from abc import ABC, abstractmethod
from typing import Any, Callable

from dualitaire.utils.clock import Clock, SystemClock

logger = logging.getLogger(__name__)

Document = dict[str, Any]
Listener = Callable[[Document], None]


class StoreError(Exception):
    """Read or write against the shared store failed."""


class DocumentNotFoundError(StoreError):
    """The addressed document does not exist."""


class ArrayUnion:
    """Field transform: append values not already present in the list."""

    def __init__(self, *values: Any):
        self.values = values

    def apply(self, current: Any) -> list:
        result = list(current or [])
        for value in self.values:
            if value not in result:
                result.append(value)
        return result


class Increment:
    """Field transform: add n to a numeric field."""

    def __init__(self, n: int = 1):
        self.n = n

    def apply(self, current: Any) -> int:
        return (current or 0) + self.n


class _ServerTimestamp:
    """Field transform: replaced by the store's clock on write."""

    def __repr__(self) -> str:
        return "SERVER_TIMESTAMP"


SERVER_TIMESTAMP = _ServerTimestamp()


class Subscription:
    """Handle returned by DocumentStore.subscribe."""

    def __init__(self, cancel: Callable[[], None]):
        self._cancel = cancel
        self.active = True

    def unsubscribe(self) -> None:
        """Stop receiving snapshots."""
        if self.active:
            self._cancel()
            self.active = False


class DocumentStore(ABC):
    """Synchronized document store collaborator.

    Implementations deliver the full current document to subscribers on
    every change, at least once and in order per subscriber.
    """

    @abstractmethod
    def create(self, doc_id: str, data: Document) -> None:
        """Create (or overwrite) a document."""

    @abstractmethod
    def get(self, doc_id: str) -> Document | None:
        """Read a document, None if it does not exist."""

    @abstractmethod
    def update(self, doc_id: str, fields: Document) -> None:
        """Point-update a subset of fields (transforms allowed).

        Raises:
            DocumentNotFoundError: If the document does not exist
        """

    @abstractmethod
    def transaction(
        self,
        doc_id: str,
        fn: Callable[[Document | None], Document | None],
    ) -> Any:
        """Atomic read-modify-write.

        fn receives the current document (None if missing) and returns the
        fields to update (or None for no write). Exceptions raised by fn
        abort the transaction and propagate.
        """

    @abstractmethod
    def subscribe(self, doc_id: str, listener: Listener) -> Subscription:
        """Deliver the current document now and after every change."""


class InMemoryDocumentStore(DocumentStore):
    """Process-local store used by tests and the headless runner."""

    def __init__(self, clock: Clock | None = None):
        self.clock = clock or SystemClock()
        self._docs: dict[str, Document] = {}
        self._listeners: dict[str, list[Listener]] = {}
        self._lock = threading.RLock()

    def create(self, doc_id: str, data: Document) -> None:
        with self._lock:
            self._docs[doc_id] = self._resolve({}, data)
            snapshot = self._snapshot(doc_id)
        logger.debug(f"Created document {doc_id}")
        self._notify(doc_id, snapshot)

    def get(self, doc_id: str) -> Document | None:
        with self._lock:
            return self._snapshot(doc_id)

    def update(self, doc_id: str, fields: Document) -> None:
        with self._lock:
            if doc_id not in self._docs:
                raise DocumentNotFoundError(f"No document {doc_id}")
            self._docs[doc_id] = self._resolve(self._docs[doc_id], fields)
            snapshot = self._snapshot(doc_id)
        self._notify(doc_id, snapshot)

    def transaction(
        self,
        doc_id: str,
        fn: Callable[[Document | None], Document | None],
    ) -> Any:
        with self._lock:
            fields = fn(self._snapshot(doc_id))
            if not fields:
                return None
            if doc_id not in self._docs:
                raise DocumentNotFoundError(f"No document {doc_id}")
            self._docs[doc_id] = self._resolve(self._docs[doc_id], fields)
            snapshot = self._snapshot(doc_id)
        self._notify(doc_id, snapshot)
        return fields

    def subscribe(self, doc_id: str, listener: Listener) -> Subscription:
        with self._lock:
            self._listeners.setdefault(doc_id, []).append(listener)
            snapshot = self._snapshot(doc_id)

        def cancel() -> None:
            with self._lock:
                listeners = self._listeners.get(doc_id, [])
                if listener in listeners:
                    listeners.remove(listener)

        if snapshot is not None:
            listener(snapshot)
        return Subscription(cancel)

    def _resolve(self, current: Document, fields: Document) -> Document:
        """Apply fields (and their transforms) to a copy of current."""
        result = copy.deepcopy(current)
        for key, value in fields.items():
            if value is SERVER_TIMESTAMP:
                result[key] = self.clock.now()
            elif isinstance(value, (ArrayUnion, Increment)):
                result[key] = value.apply(result.get(key))
            else:
                result[key] = copy.deepcopy(value)
        return result

    def _snapshot(self, doc_id: str) -> Document | None:
        doc = self._docs.get(doc_id)
        return copy.deepcopy(doc) if doc is not None else None

    def _notify(self, doc_id: str, snapshot: Document | None) -> None:
        if snapshot is None:
            return
        with self._lock:
            listeners = list(self._listeners.get(doc_id, []))
        for listener in listeners:
            listener(copy.deepcopy(snapshot))
