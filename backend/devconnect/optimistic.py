"""Optimistic Mutation Controller.

Two-phase toggle for binary relations (follow, pin) whose remote operation is
idempotent and reversible:

1. flip the flag and move the derived counter, as one store write
2. issue the remote call
3. success: keep it, letting any authoritative server values win
4. failure: restore the exact pre-toggle state and raise

Toggles are serialized per relation key, so a second toggle always starts
from the first one's settled state and deltas never stack. Different keys
are independent.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Hashable, Optional

from devconnect.errors import GATEWAY_ERRORS, classify
from devconnect.locks import KeyedLocks
from devconnect.models import RelationConfirmation, RelationState
from devconnect.store import EntityStore

logger = logging.getLogger(__name__)

RELATION = "relation"

RemoteToggle = Callable[[bool], Awaitable[RelationConfirmation]]


class OptimisticMutationController:
    def __init__(self, store: Optional[EntityStore] = None, kind: str = RELATION):
        self.store = store if store is not None else EntityStore()
        self.kind = kind
        self._locks = KeyedLocks()
        self._pending: set[asyncio.Task] = set()

    def state(self, key: Hashable) -> Optional[RelationState]:
        return self.store.get(self.kind, key)

    def seed(self, key: Hashable, active: bool, count: Optional[int] = None) -> RelationState:
        """Record server truth for a relation, e.g. from a freshly loaded profile."""
        state = RelationState(active=active, count=count)
        self.store.set(self.kind, key, state)
        return state

    def in_flight(self, key: Hashable) -> bool:
        return self._locks.locked(key)

    async def toggle_relation(
        self,
        key: Hashable,
        current_state: bool,
        apply: RemoteToggle,
        count: Optional[int] = None,
    ) -> RelationState:
        """Toggle the relation at ``key`` optimistically.

        Args:
            key: Relation key (e.g. "follow:<user_id>")
            current_state: Flag as the caller last saw it; only used when the
                store holds nothing for ``key`` yet
            apply: Remote call, given the new flag value
            count: Derived counter to seed alongside ``current_state``

        Returns:
            The settled RelationState

        Raises:
            DevConnectError subclass after rolling back, if the remote call failed
        """
        task = asyncio.ensure_future(self._toggle(key, current_state, apply, count))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        # Shielded: a caller that goes away does not lose the reconciliation
        return await asyncio.shield(task)

    async def drain(self) -> None:
        """Wait for toggles whose callers went away to settle."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    async def _toggle(
        self,
        key: Hashable,
        current_state: bool,
        apply: RemoteToggle,
        count: Optional[int],
    ) -> RelationState:
        async with self._locks.hold(key):
            before = self.state(key)
            if before is None:
                before = RelationState(active=current_state, count=count)
            optimistic = before.toggled()
            self.store.set(self.kind, key, optimistic)

            try:
                confirmation = await apply(optimistic.active)
            except Exception as e:
                if self.state(key) is optimistic:
                    self.store.set(self.kind, key, before)
                    logger.warning(f"Rolled back {key} to active={before.active}: {e}")
                else:
                    # Seeded with server data mid-flight; that wins over the rollback
                    logger.warning(f"Toggle of {key} failed after a newer write; keeping it: {e}")
                if isinstance(e, GATEWAY_ERRORS):
                    raise classify(e) from e
                raise

            settled = optimistic.reconcile(before, confirmation)
            if settled != optimistic:
                self.store.set(self.kind, key, settled)
            logger.debug(f"Confirmed {key}: active={settled.active} count={settled.count}")
            return settled
