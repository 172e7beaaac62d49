"""
nodedns.tier2_reliability.inventory
────────────────────────────────────
Node inventory cache: the local, eventually-consistent mirror of cluster
nodes that the endpoint derivation reads from.

A watcher feeds the cache: one bulk ``replace()`` for the initial list
(marks the cache synced), then ``apply_event()`` per watch notification.
Readers call ``list(selector)`` for a point-in-time snapshot.

Feed the cache from the event loop thread; readers may be anywhere.
"""
from __future__ import annotations

import asyncio
import threading
from collections.abc import Iterable
from typing import Any, Protocol, runtime_checkable

from nodedns.tier0_core.errors import ValidationError
from nodedns.tier0_core.logging import get_logger
from nodedns.tier1_runtime.schemas import Node
from nodedns.tier1_runtime.selector import EVERYTHING, Selector

log = get_logger(__name__)


# ── Protocol ──────────────────────────────────────────────────────────────────

@runtime_checkable
class NodeCache(Protocol):
    """Implement this protocol to back the node source with a real watch."""

    def list(self, selector: Selector = EVERYTHING) -> list[Node]:
        """Nodes whose labels match the selector, from the local snapshot."""
        ...

    def has_synced(self) -> bool:
        ...

    async def wait_for_sync(self) -> None:
        """Block until the initial bulk sync has completed."""
        ...


# ── In-memory implementation ──────────────────────────────────────────────────

class MemoryNodeCache:
    """Push-fed node cache. Safe for concurrent readers."""

    def __init__(self, nodes: Iterable[Node] | None = None) -> None:
        self._store: dict[str, Node] = {}
        self._lock = threading.RLock()
        self._synced = asyncio.Event()
        if nodes is not None:
            self.replace(nodes)

    # ── Feed side ─────────────────────────────────────────────────────────────

    def replace(self, nodes: Iterable[Node]) -> None:
        """Swap in a full listing. The first call marks the cache synced."""
        fresh = {node.name: node for node in nodes}
        with self._lock:
            self._store = fresh
        if not self._synced.is_set():
            log.info("inventory.synced", nodes=len(fresh))
            self._synced.set()

    def upsert(self, node: Node) -> None:
        with self._lock:
            self._store[node.name] = node

    def delete(self, name: str) -> None:
        with self._lock:
            self._store.pop(name, None)

    def apply_event(self, event_type: str, obj: Node | dict[str, Any]) -> None:
        """
        Apply one watch notification (ADDED | MODIFIED | DELETED).
        ``obj`` may be a Node or a raw Kubernetes node manifest.
        """
        node = obj if isinstance(obj, Node) else Node.from_manifest(obj)
        kind = event_type.upper()
        if kind in ("ADDED", "MODIFIED"):
            self.upsert(node)
        elif kind == "DELETED":
            self.delete(node.name)
        else:
            raise ValidationError(
                user_message=f"Unknown watch event type: {event_type!r}",
                fields={"type": "must be ADDED, MODIFIED or DELETED"},
            )
        log.debug("inventory.event", type=kind, node=node.name)

    # ── Read side ─────────────────────────────────────────────────────────────

    def list(self, selector: Selector = EVERYTHING) -> list[Node]:
        with self._lock:
            snapshot = list(self._store.values())
        if selector.empty():
            return snapshot
        return [n for n in snapshot if selector.matches(n.labels)]

    def get(self, name: str) -> Node | None:
        with self._lock:
            return self._store.get(name)

    def __len__(self) -> int:
        with self._lock:
            return len(self._store)

    def has_synced(self) -> bool:
        return self._synced.is_set()

    async def wait_for_sync(self) -> None:
        await self._synced.wait()


__all__ = ["NodeCache", "MemoryNodeCache"]
