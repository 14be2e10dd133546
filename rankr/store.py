"""Document store ports and an in-memory implementation.

The ranking core talks to storage only through ``DocumentStore``: a
restartable snapshot subscription, an all-or-nothing multi-document update,
and a bulk insert used once for seeding. ``InMemoryStore`` implements the
same contract inside the process; it backs the console session and the
tests and can simulate write latency and failures.
"""

from __future__ import annotations

import asyncio
import copy
import uuid
from collections.abc import AsyncIterator
from typing import Any, Protocol

from rankr.logging import get_logger
from rankr.models import FIELD_ID, DocumentMutation, Snapshot, StoreDocument

log = get_logger(__name__)


class StoreError(Exception):
    """A transient failure reported by the document store."""


class Subscription(Protocol):
    """Stream of collection snapshots; the first one is the current state."""

    def __aiter__(self) -> AsyncIterator[Snapshot]:
        ...

    def unsubscribe(self) -> None:
        """Stop delivery. Calling it more than once is a no-op."""
        ...


class DocumentStore(Protocol):
    """Protocol for the external document store."""

    def subscribe(self, collection_key: str) -> Subscription:
        ...

    async def atomic_update(self, collection_key: str, mutations: list[DocumentMutation]) -> None:
        """Apply every mutation or none of them.

        Raises:
            StoreError: if the update was not applied
        """
        ...

    async def atomic_insert_many(self, collection_key: str, documents: list[dict[str, Any]]) -> list[str]:
        """Insert new documents and return their generated ids.

        Raises:
            StoreError: if nothing was inserted
        """
        ...


class MemorySubscription:
    """Subscription handed out by ``InMemoryStore``."""

    _CLOSED = object()

    def __init__(self, store: InMemoryStore, collection_key: str):
        self._store = store
        self.collection_key = collection_key
        self._queue: asyncio.Queue[Any] = asyncio.Queue()
        self.closed = False

    def push(self, item: Snapshot | StoreError) -> None:
        if not self.closed:
            self._queue.put_nowait(item)

    def unsubscribe(self) -> None:
        if self.closed:
            return
        self.closed = True
        self._store._detach(self)
        self._queue.put_nowait(self._CLOSED)

    def __aiter__(self) -> MemorySubscription:
        return self

    async def __anext__(self) -> Snapshot:
        item = await self._queue.get()
        if item is self._CLOSED:
            raise StopAsyncIteration
        if isinstance(item, StoreError):
            raise item
        return item


class InMemoryStore:
    """In-process document store with change broadcast.

    Args:
        write_latency: Seconds every write waits before it is applied
    """

    def __init__(self, write_latency: float = 0.0):
        self.write_latency = write_latency
        self._collections: dict[str, dict[str, dict[str, Any]]] = {}
        self._subscribers: list[MemorySubscription] = []
        self._pending_failures: list[StoreError] = []
        self.update_calls = 0

    # Inspection helpers

    def documents(self, collection_key: str) -> dict[str, dict[str, Any]]:
        """Return a deep copy of every document in the collection."""
        return copy.deepcopy(self._collections.get(collection_key, {}))

    def snapshot(self, collection_key: str) -> Snapshot:
        docs = self._collections.get(collection_key, {})
        return Snapshot(
            documents=[
                StoreDocument(id=doc_id, fields=copy.deepcopy(fields))
                for doc_id, fields in docs.items()
            ]
        )

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    # Fault injection

    def fail_next_write(self, error: StoreError | None = None) -> None:
        """Make the next write raise ``error`` without applying anything."""
        self._pending_failures.append(error or StoreError("injected write failure"))

    def drop_subscriptions(self, error: StoreError | None = None) -> None:
        """Terminate every live subscription with ``error``."""
        error = error or StoreError("subscription dropped")
        for subscription in list(self._subscribers):
            subscription.push(error)
            self._detach(subscription)
            subscription.closed = True

    # DocumentStore

    def subscribe(self, collection_key: str) -> MemorySubscription:
        subscription = MemorySubscription(self, collection_key)
        self._subscribers.append(subscription)
        subscription.push(self.snapshot(collection_key))
        log.debug("store_subscribed", collection=collection_key, subscribers=len(self._subscribers))
        return subscription

    async def atomic_update(self, collection_key: str, mutations: list[DocumentMutation]) -> None:
        self.update_calls += 1
        await self._simulate_write()

        docs = self._collections.get(collection_key, {})
        missing = [m.doc_id for m in mutations if m.doc_id not in docs]
        if missing:
            raise StoreError(f"documents not found in {collection_key!r}: {', '.join(missing)}")

        staged: dict[str, dict[str, Any]] = {}
        for mutation in mutations:
            fields = staged.get(mutation.doc_id) or copy.deepcopy(docs[mutation.doc_id])
            fields.update(mutation.field_sets)
            for name, amount in mutation.field_increments.items():
                current = fields.get(name) or 0
                if not isinstance(current, (int, float)) or isinstance(current, bool):
                    raise StoreError(f"cannot increment non-numeric field {name!r} of {mutation.doc_id!r}")
                fields[name] = current + amount
            staged[mutation.doc_id] = fields

        docs.update(staged)
        self._broadcast(collection_key)

    async def atomic_insert_many(self, collection_key: str, documents: list[dict[str, Any]]) -> list[str]:
        await self._simulate_write()

        docs = self._collections.setdefault(collection_key, {})
        ids = []
        for fields in documents:
            doc_id = uuid.uuid4().hex[:20]
            docs[doc_id] = {**copy.deepcopy(fields), FIELD_ID: doc_id}
            ids.append(doc_id)

        self._broadcast(collection_key)
        return ids

    # Internals

    async def _simulate_write(self) -> None:
        if self.write_latency:
            await asyncio.sleep(self.write_latency)
        if self._pending_failures:
            raise self._pending_failures.pop(0)

    def _broadcast(self, collection_key: str) -> None:
        snapshot = self.snapshot(collection_key)
        for subscription in self._subscribers:
            if subscription.collection_key == collection_key:
                subscription.push(snapshot)

    def _detach(self, subscription: MemorySubscription) -> None:
        if subscription in self._subscribers:
            self._subscribers.remove(subscription)
