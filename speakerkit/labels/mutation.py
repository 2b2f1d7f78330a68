"""
Optimistic mutation: apply a local change, attempt the durable write, revert the local
change if the write fails.

Each run is a small state machine: PENDING -> COMMITTED | ROLLED_BACK. Failures are
logged and returned, never raised, so callers can keep rendering.
"""
from __future__ import annotations

import logging
from enum import Enum
from typing import Awaitable, Callable, Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class MutationStatus(str, Enum):
    IDLE = "idle"
    PENDING = "pending"
    COMMITTED = "committed"
    ROLLED_BACK = "rolled_back"


class OptimisticMutation(Generic[T]):
    """
    One optimistic write.

    apply(): local change; returns an undo token (e.g. the previous value).
    write(): durable write; any exception means failure.
    revert(token): restore local state from the undo token.
    """

    def __init__(
        self,
        apply: Callable[[], T],
        write: Callable[[], Awaitable[object]],
        revert: Callable[[T], None],
        description: str = "mutation",
    ) -> None:
        self._apply = apply
        self._write = write
        self._revert = revert
        self.description = description
        self.status = MutationStatus.IDLE
        self.error: Exception | None = None

    async def run(self) -> bool:
        """Return True when committed, False when rolled back."""
        if self.status is not MutationStatus.IDLE:
            raise RuntimeError(f"{self.description} already ran ({self.status.value})")
        token = self._apply()
        self.status = MutationStatus.PENDING
        try:
            await self._write()
        except Exception as e:
            self.error = e
            self._revert(token)
            self.status = MutationStatus.ROLLED_BACK
            logger.warning("%s failed, local change rolled back: %s", self.description, e)
            return False
        self.status = MutationStatus.COMMITTED
        return True
