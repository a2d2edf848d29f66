"""Background tick loop for a circuit workspace.

The runner owns one ``Workspace`` and a daemon thread that calls
``Workspace.tick()`` every ``tick_interval_ms``. Every other mutation
(API requests, WebSocket commands) goes through the same lock, so a tick
never observes a half-applied edit and an edit never lands mid-tick.
"""

import asyncio
import logging
import threading
import time
from typing import Any, Callable, Dict, Optional, Tuple

import orjson

from circuplay.config.grid import MAX_CANVAS_SIZE
from circuplay.config.simulation import MAX_STEP_COUNT, SimulationConfig
from circuplay.result import Result
from circuplay.workspace import Workspace

logger = logging.getLogger(__name__)

STATUS_LOG_INTERVAL_SECONDS = 30.0


def _bounded(raw: Any, name: str, low: int, high: int) -> int:
    value = int(raw)
    if not low <= value <= high:
        raise ValueError(f"{name} must be within {low}..{high}, got {value}")
    return value


class CircuitRunner:
    """Drives a workspace from a background thread."""

    def __init__(
        self,
        workspace: Optional[Workspace] = None,
        config: Optional[SimulationConfig] = None,
    ):
        self.workspace = workspace or Workspace(config or SimulationConfig())
        self.tick_time = self.workspace.config.tick_interval_ms / 1000.0
        self.lock = threading.Lock()
        self.running = False
        self.thread: Optional[threading.Thread] = None
        self.version = 0  # bumped on every change a client should redraw for

    # ------------------------------------------------------------------
    # Thread lifecycle
    # ------------------------------------------------------------------

    def start(self, run_simulation: bool = False) -> None:
        """Start the tick thread.

        Args:
            run_simulation: Also put the simulator into the running state.
        """
        if self.running:
            return
        if run_simulation:
            with self.lock:
                self.workspace.start()
        self.running = True
        self.thread = threading.Thread(target=self._run_loop, name="circuit-runner", daemon=True)
        self.thread.start()

    def stop(self) -> None:
        self.running = False
        if self.thread:
            self.thread.join(timeout=2.0)
            self.thread = None

    def _run_loop(self) -> None:
        logger.info("Circuit loop: Starting")
        loop_iteration_count = 0
        next_tick_start_time = time.time()
        last_status_time = time.time()

        try:
            while self.running:
                try:
                    next_tick_start_time += self.tick_time
                    loop_iteration_count += 1

                    with self.lock:
                        try:
                            if self.workspace.tick():
                                self.version += 1
                        except Exception as e:
                            logger.error(
                                f"Circuit loop: Error at iteration {loop_iteration_count}: {e}",
                                exc_info=True,
                            )

                    now = time.time()
                    if now - last_status_time >= STATUS_LOG_INTERVAL_SECONDS:
                        last_status_time = now
                        stats = self.workspace.get_stats()
                        logger.info(
                            f"Circuit status: tick={stats['ticks']}, "
                            f"components={stats['total_components']}, "
                            f"powered={stats['powered_components']}"
                        )

                    sleep_time = next_tick_start_time - time.time()
                    if sleep_time > 0:
                        time.sleep(sleep_time)
                    elif sleep_time < -0.1:
                        # Too far behind; resync instead of bursting to catch up
                        next_tick_start_time = time.time()

                except Exception as e:
                    logger.error(
                        f"Circuit loop: Unexpected error at iteration {loop_iteration_count}: {e}",
                        exc_info=True,
                    )
                    time.sleep(self.tick_time)
                    next_tick_start_time = time.time()

        finally:
            logger.info(f"Circuit loop: Ended after {loop_iteration_count} iterations")

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    def get_state(self) -> Dict[str, Any]:
        with self.lock:
            state = self.workspace.get_state()
            state["version"] = self.version
        return state

    def serialize_state(self) -> bytes:
        return orjson.dumps(self.get_state())

    def locked_export(self) -> Dict[str, Any]:
        with self.lock:
            return self.workspace.export_circuit()

    def versioned_export(self) -> Tuple[int, Dict[str, Any]]:
        """Circuit document and the version it belongs to, read under one lock."""
        with self.lock:
            return self.version, self.workspace.export_circuit()

    def locked(self, fn: Callable[[Workspace], Any]) -> Any:
        """Run ``fn(workspace)`` under the runner lock and mark the state changed."""
        with self.lock:
            result = fn(self.workspace)
            self.version += 1
        return result

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def handle_command(self, command: str, data: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """Apply a client command and return a JSON-ready response.

        Commands: place, remove, move, toggle, press, release, clear, resize,
        load_scenario, import, tick, start, stop, get_state.
        """
        handlers: Dict[str, Callable[[Dict[str, Any]], Dict[str, Any]]] = {
            "place": self._cmd_place,
            "remove": self._cmd_remove,
            "move": self._cmd_move,
            "toggle": self._cmd_toggle,
            "press": self._cmd_press,
            "release": self._cmd_release,
            "clear": self._cmd_clear,
            "resize": self._cmd_resize,
            "load_scenario": self._cmd_load_scenario,
            "import": self._cmd_import,
            "tick": self._cmd_tick,
            "start": self._cmd_start,
            "stop": self._cmd_stop,
            "get_state": self._cmd_get_state,
        }

        handler = handlers.get(command)
        if handler is None:
            logger.warning(f"Unknown command received: {command}")
            return self._create_error_response(f"Unknown command: {command}")

        data = data or {}
        try:
            with self.lock:
                response = handler(data)
                if response.get("success"):
                    self.version += 1
            return response
        except (KeyError, TypeError, ValueError) as e:
            logger.warning(f"Bad arguments for command {command!r}: {e}")
            return self._create_error_response(f"Invalid data for {command}: {e}")

    async def handle_command_async(
        self, command: str, data: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        """Route a command off the event loop thread."""
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self.handle_command, command, data)

    @staticmethod
    def _create_error_response(message: str) -> Dict[str, Any]:
        return {"success": False, "error": message}

    def _from_result(self, result: Result, **extra: Any) -> Dict[str, Any]:
        if result.is_err():
            return self._create_error_response(result.error)
        return {"success": True, **extra}

    def _cmd_place(self, data: Dict[str, Any]) -> Dict[str, Any]:
        result = self.workspace.place(data["kind"], int(data["gridX"]), int(data["gridY"]))
        component = result.value.to_state() if result.is_ok() else None
        return self._from_result(result, component=component)

    def _cmd_remove(self, data: Dict[str, Any]) -> Dict[str, Any]:
        removed = self.workspace.remove_at(int(data["gridX"]), int(data["gridY"]))
        if removed is None:
            return self._create_error_response("No component at that cell")
        return {"success": True, "removed": removed.id.value}

    def _cmd_move(self, data: Dict[str, Any]) -> Dict[str, Any]:
        result = self.workspace.move(
            int(data["fromX"]), int(data["fromY"]), int(data["toX"]), int(data["toY"])
        )
        return self._from_result(result)

    def _cmd_toggle(self, data: Dict[str, Any]) -> Dict[str, Any]:
        result = self.workspace.toggle_at(int(data["gridX"]), int(data["gridY"]))
        return self._from_result(result, closed=result.value)

    def _cmd_press(self, data: Dict[str, Any]) -> Dict[str, Any]:
        return self._from_result(self.workspace.press_at(int(data["gridX"]), int(data["gridY"])))

    def _cmd_release(self, data: Dict[str, Any]) -> Dict[str, Any]:
        return self._from_result(self.workspace.release_at(int(data["gridX"]), int(data["gridY"])))

    def _cmd_clear(self, data: Dict[str, Any]) -> Dict[str, Any]:
        self.workspace.clear()
        return {"success": True}

    def _cmd_resize(self, data: Dict[str, Any]) -> Dict[str, Any]:
        width = _bounded(data["width"], "width", 0, MAX_CANVAS_SIZE)
        height = _bounded(data["height"], "height", 0, MAX_CANVAS_SIZE)
        dropped = self.workspace.resize(width, height)
        return {"success": True, "dropped": [c.id.value for c in dropped]}

    def _cmd_load_scenario(self, data: Dict[str, Any]) -> Dict[str, Any]:
        result = self.workspace.load_scenario(data["name"])
        return self._from_result(result, scenario=data["name"])

    def _cmd_import(self, data: Dict[str, Any]) -> Dict[str, Any]:
        result = self.workspace.import_circuit(data.get("circuit"))
        return self._from_result(result, imported=result.value)

    def _cmd_tick(self, data: Dict[str, Any]) -> Dict[str, Any]:
        count = _bounded(data.get("count", 1), "count", 1, MAX_STEP_COUNT)
        return {"success": True, "tick": self.workspace.step(count)}

    def _cmd_start(self, data: Dict[str, Any]) -> Dict[str, Any]:
        return {"success": True, "changed": self.workspace.start()}

    def _cmd_stop(self, data: Dict[str, Any]) -> Dict[str, Any]:
        return {"success": True, "changed": self.workspace.stop()}

    def _cmd_get_state(self, data: Dict[str, Any]) -> Dict[str, Any]:
        return {"success": True, "state": self.workspace.get_state()}
