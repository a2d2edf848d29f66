"""Auto-save service for the live circuit.

Writes the workspace's circuit document to the store's autosave slot on a
fixed interval, so an edit session survives a server restart.
"""

import asyncio
import logging
from typing import Optional

from backend.circuit_runner import CircuitRunner
from backend.circuit_store import CircuitStore
from circuplay.config.server import AUTO_SAVE_INTERVAL_SECONDS
from circuplay.exceptions import PersistenceError

logger = logging.getLogger(__name__)


class AutoSaveService:
    """Background asyncio task that periodically autosaves the circuit."""

    def __init__(
        self,
        runner: CircuitRunner,
        store: CircuitStore,
        interval: float = AUTO_SAVE_INTERVAL_SECONDS,
    ):
        self._runner = runner
        self._store = store
        self._interval = interval
        self._task: Optional[asyncio.Task] = None
        self._running = False
        self._last_saved_version: Optional[int] = None

    @property
    def running(self) -> bool:
        return self._running

    async def start(self) -> None:
        if self._running:
            logger.warning("Auto-save service already running")
            return
        self._running = True
        self._task = asyncio.create_task(self._autosave_loop(), name="circuit_autosave")
        logger.info(f"Auto-save service started (interval: {self._interval}s)")

    async def stop(self) -> None:
        """Stop the loop and write one final autosave."""
        if not self._running:
            return
        self._running = False
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        await self.save_now()
        logger.info("Auto-save service stopped")

    async def save_now(self) -> bool:
        """Autosave if the circuit changed since the last autosave."""
        version, data = self._runner.versioned_export()
        if version == self._last_saved_version:
            return False

        loop = asyncio.get_running_loop()
        try:
            path = await loop.run_in_executor(None, self._store.autosave, data)
        except PersistenceError as e:
            logger.error(f"Auto-save failed: {e}")
            return False
        self._last_saved_version = version
        logger.debug(f"Auto-saved circuit to {path}")
        return True

    async def _autosave_loop(self) -> None:
        while self._running:
            await asyncio.sleep(self._interval)
            await self.save_now()
