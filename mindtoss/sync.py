"""Remote state sync: fire-and-forget push, pull once at sign-in."""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from typing import Protocol

import structlog

from .models import RemoteState

logger = structlog.get_logger()


class StateBackend(Protocol):
    async def load_state(self) -> RemoteState | None: ...

    async def save_state(self, state: RemoteState) -> None: ...


class RemoteStateSync:
    """Mirrors the local snapshot to the backend.

    Pushes are best-effort: scheduled as background tasks, failures are
    logged and never retried.  The remote copy is replaced wholesale, so
    the last push to land wins.
    """

    def __init__(self, backend: StateBackend, snapshot: Callable[[], RemoteState]) -> None:
        self._backend = backend
        self._snapshot = snapshot
        self._pending: set[asyncio.Task[None]] = set()

    @property
    def pending(self) -> int:
        return len(self._pending)

    async def push(self) -> None:
        """Push the current snapshot now. Never raises."""
        try:
            await self._backend.save_state(self._snapshot())
        except Exception as exc:
            logger.warning("remote_state_push_failed", error=str(exc))
            return
        logger.debug("remote_state_pushed")

    def schedule_push(self) -> asyncio.Task[None] | None:
        """Start a push in the background and return without waiting.

        Outside a running event loop nothing is pushed; the next push
        carries the change.
        """
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("remote_state_push_skipped", reason="no_event_loop")
            return None
        task = loop.create_task(self.push())
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    async def pull(self) -> RemoteState | None:
        """Fetch the remote snapshot, or ``None`` when absent or unreachable."""
        try:
            state = await self._backend.load_state()
        except Exception as exc:
            logger.warning("remote_state_pull_failed", error=str(exc))
            return None
        logger.info("remote_state_pulled", found=state is not None)
        return state

    async def drain(self) -> None:
        """Wait for every scheduled push (used at shutdown)."""
        if self._pending:
            await asyncio.gather(*self._pending)
