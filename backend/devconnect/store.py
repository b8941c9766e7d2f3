"""Keyed entity store shared by the lifecycle manager, the optimistic
controller and the cursors.

Entries are addressed by ``(kind, entity_id)``. Every ``set`` replaces the
whole value and notifies subscribers once, so a subscriber never observes a
half-applied change. Views subscribe read-only and unsubscribe when they go
away; writes keep landing here regardless of who is still listening.
"""

import logging
from typing import Any, Callable, Hashable, Optional

logger = logging.getLogger(__name__)

Listener = Callable[[str, Hashable, Any], None]


class Subscription:
    """Handle returned by ``EntityStore.subscribe``."""

    def __init__(self, store: "EntityStore", key: tuple, listener: Listener):
        self._store = store
        self._key = key
        self._listener = listener
        self.active = True

    def close(self) -> None:
        if self.active:
            self._store._remove(self._key, self._listener)
            self.active = False

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()


class EntityStore:
    def __init__(self):
        self._entities: dict[tuple[str, Hashable], Any] = {}
        # (kind, id), (kind, None) or (None, None) -> listeners
        self._listeners: dict[tuple, list[Listener]] = {}

    def get(self, kind: str, entity_id: Hashable, default: Any = None) -> Any:
        return self._entities.get((kind, entity_id), default)

    def __contains__(self, key: tuple) -> bool:
        return key in self._entities

    def values(self, kind: str) -> list:
        """All values of one kind, in insertion order."""
        return [v for (k, _), v in self._entities.items() if k == kind]

    def set(self, kind: str, entity_id: Hashable, value: Any) -> None:
        self._entities[(kind, entity_id)] = value
        self._notify(kind, entity_id, value)

    def subscribe(
        self,
        listener: Listener,
        kind: Optional[str] = None,
        entity_id: Optional[Hashable] = None,
    ) -> Subscription:
        """Call ``listener(kind, entity_id, value)`` on matching writes.

        Omit ``entity_id`` to watch a whole kind, omit both to watch everything.
        """
        key = (kind, entity_id)
        self._listeners.setdefault(key, []).append(listener)
        return Subscription(self, key, listener)

    def _remove(self, key: tuple, listener: Listener) -> None:
        listeners = self._listeners.get(key, [])
        if listener in listeners:
            listeners.remove(listener)
        if not listeners:
            self._listeners.pop(key, None)

    def _notify(self, kind: str, entity_id: Hashable, value: Any) -> None:
        for key in ((kind, entity_id), (kind, None), (None, None)):
            for listener in list(self._listeners.get(key, [])):
                try:
                    listener(kind, entity_id, value)
                except Exception:
                    # A broken view must not block the write for everyone else
                    logger.exception(f"Listener for {kind}:{entity_id} raised")
