"""Coalesces bursts of webhook events into a single delayed resync per entity."""

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

import structlog

logger = structlog.get_logger()

DebounceKey = tuple[str, int, int]


@dataclass
class _Pending:
    task: asyncio.Task | None = None
    running: bool = False


class WebhookDebouncer:
    """Per-key delayed execution with last-write-wins semantics.

    Keys are ``(kind, shop_id, entity_id)``. All bookkeeping happens on the
    event loop thread without awaiting between lookup, cancel and install.
    """

    def __init__(self, delay_seconds: float = 2.0):
        self.delay_seconds = delay_seconds
        self._pending: dict[DebounceKey, _Pending] = {}

    def schedule(
        self,
        kind: str,
        shop_id: int,
        entity_id: int,
        fn: Callable[[], Awaitable[None]],
    ) -> None:
        """(Re)start the timer for a key; ``fn`` runs once after the quiet period."""
        key = (kind, shop_id, entity_id)
        existing = self._pending.get(key)
        if existing is not None and existing.task is not None and not existing.running:
            existing.task.cancel()

        entry = _Pending()
        entry.task = asyncio.get_running_loop().create_task(
            self._run_later(key, entry, fn), name=f"debounce:{kind}:{shop_id}:{entity_id}"
        )
        self._pending[key] = entry
        logger.debug("Webhook sync scheduled", kind=kind, shop_id=shop_id, entity_id=entity_id)

    async def _run_later(
        self, key: DebounceKey, entry: _Pending, fn: Callable[[], Awaitable[None]]
    ) -> None:
        try:
            await asyncio.sleep(self.delay_seconds)
            entry.running = True
            await fn()
        except asyncio.CancelledError:
            raise
        except Exception as e:
            kind, shop_id, entity_id = key
            logger.error(
                "Debounced webhook sync failed",
                kind=kind,
                shop_id=shop_id,
                entity_id=entity_id,
                error=str(e),
            )
        finally:
            if self._pending.get(key) is entry:
                del self._pending[key]

    def pending_count(self) -> int:
        return len(self._pending)

    def clear(self) -> None:
        """Cancel every timer that has not started running yet."""
        for entry in self._pending.values():
            if entry.task is not None and not entry.running:
                entry.task.cancel()
        self._pending.clear()

    async def shutdown(self) -> None:
        """Cancel pending timers and wait for in-flight syncs to finish."""
        tasks = [entry.task for entry in self._pending.values() if entry.task is not None]
        self.clear()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
