"""Tests for the background runner, its command protocol and autosave."""

import time

import orjson
import pytest

from backend.auto_save_service import AutoSaveService
from backend.circuit_runner import CircuitRunner
from circuplay.config.simulation import SimulationConfig


@pytest.fixture
def runner():
    runner = CircuitRunner(config=SimulationConfig(tick_interval_ms=10))
    yield runner
    runner.stop()


class TestCommands:
    def test_place_and_state(self, runner):
        response = runner.handle_command("place", {"kind": "led", "gridX": 1, "gridY": 2})
        assert response["success"]
        assert response["component"]["kind"] == "led"

        state = runner.handle_command("get_state")["state"]
        assert [c["gridX"] for c in state["components"]] == [1]

    def test_unknown_command(self, runner):
        response = runner.handle_command("explode", {})
        assert response == {"success": False, "error": "Unknown command: explode"}

    def test_missing_arguments(self, runner):
        response = runner.handle_command("place", {"kind": "led"})
        assert not response["success"]
        assert "Invalid data for place" in response["error"]

    def test_failed_command_does_not_bump_version(self, runner):
        version = runner.version
        runner.handle_command("toggle", {"gridX": 0, "gridY": 0})
        assert runner.version == version

    def test_successful_command_bumps_version(self, runner):
        version = runner.version
        runner.handle_command("place", {"kind": "switch", "gridX": 0, "gridY": 0})
        runner.handle_command("toggle", {"gridX": 0, "gridY": 0})
        assert runner.version == version + 2

    def test_move_remove_and_resize(self, runner):
        runner.handle_command("place", {"kind": "wire", "gridX": 0, "gridY": 0})
        assert runner.handle_command("move", {"fromX": 0, "fromY": 0, "toX": 3, "toY": 3})[
            "success"
        ]
        removed = runner.handle_command("remove", {"gridX": 3, "gridY": 3})
        assert removed["success"]
        assert not runner.handle_command("remove", {"gridX": 3, "gridY": 3})["success"]

        runner.handle_command("place", {"kind": "wire", "gridX": 30, "gridY": 0})
        resized = runner.handle_command("resize", {"width": 200, "height": 200})
        assert len(resized["dropped"]) == 1

    @pytest.mark.parametrize(
        "command, data",
        [
            ("resize", {"width": 10**9, "height": 10**9}),
            ("resize", {"width": -20, "height": 200}),
            ("tick", {"count": 10**6}),
            ("tick", {"count": 0}),
        ],
    )
    def test_out_of_range_sizes_are_rejected(self, runner, command, data):
        version = runner.version
        response = runner.handle_command(command, data)
        assert not response["success"]
        assert "must be within" in response["error"]
        assert runner.version == version
        assert runner.workspace.grid.cols == 40
        assert runner.workspace.simulator.tick_count == 0

    def test_scenario_and_tick(self, runner):
        assert runner.handle_command("load_scenario", {"name": "simple_led"})["success"]
        assert runner.handle_command("tick", {"count": 2}) == {"success": True, "tick": 2}
        stats = runner.workspace.get_stats()
        assert stats["powered_components"] == 3

    def test_bad_scenario(self, runner):
        response = runner.handle_command("load_scenario", {"name": "nope"})
        assert not response["success"]

    def test_import(self, runner):
        circuit = {"components": [{"kind": "battery", "gridX": 0, "gridY": 0}]}
        assert runner.handle_command("import", {"circuit": circuit}) == {
            "success": True,
            "imported": 1,
        }
        assert not runner.handle_command("import", {})["success"]

    def test_press_release_and_clear(self, runner):
        runner.handle_command("place", {"kind": "push-button", "gridX": 0, "gridY": 0})
        assert runner.handle_command("press", {"gridX": 0, "gridY": 0})["success"]
        assert runner.handle_command("release", {"gridX": 0, "gridY": 0})["success"]
        assert runner.handle_command("clear")["success"]
        assert runner.workspace.simulator.components == []

    def test_start_stop_commands(self, runner):
        assert runner.handle_command("start")["changed"] is True
        assert runner.handle_command("start")["changed"] is False
        assert runner.handle_command("stop")["changed"] is True


class TestState:
    def test_serialize_state(self, runner):
        runner.locked(lambda ws: ws.place("battery", 0, 0))
        state = orjson.loads(runner.serialize_state())
        assert state["version"] == runner.version
        assert state["components"][0]["kind"] == "battery"

    def test_locked_export(self, runner):
        runner.locked(lambda ws: ws.place("led", 2, 2))
        export = runner.locked_export()
        assert export["components"][0]["kind"] == "led"


class TestThread:
    def test_thread_ticks_running_simulation(self, runner):
        runner.locked(lambda ws: ws.load_scenario("simple_led"))
        runner.start(run_simulation=True)

        deadline = time.time() + 2.0
        while runner.workspace.simulator.tick_count < 3 and time.time() < deadline:
            time.sleep(0.01)

        runner.stop()
        assert runner.workspace.simulator.tick_count >= 3
        assert runner.thread is None

    def test_thread_idles_when_stopped(self, runner):
        runner.start(run_simulation=False)
        time.sleep(0.05)
        runner.stop()
        assert runner.workspace.simulator.tick_count == 0


class TestAutoSave:
    @pytest.mark.asyncio
    async def test_save_now_writes_once_per_change(self, runner, store):
        service = AutoSaveService(runner, store, interval=60)
        runner.locked(lambda ws: ws.place("battery", 0, 0))

        assert await service.save_now()
        assert not await service.save_now()
        assert store.load_autosave()["components"][0]["kind"] == "battery"

        runner.locked(lambda ws: ws.place("led", 1, 0))
        assert await service.save_now()
        assert len(store.load_autosave()["components"]) == 2

    @pytest.mark.asyncio
    async def test_stop_writes_final_save(self, runner, store):
        service = AutoSaveService(runner, store, interval=60)
        await service.start()
        assert service.running
        runner.locked(lambda ws: ws.place("wire", 0, 0))
        await service.stop()
        assert not service.running
        assert store.load_autosave()["components"][0]["kind"] == "wire"

    @pytest.mark.asyncio
    async def test_saved_version_is_read_with_the_data(self, store):
        class LockCheckingRunner(CircuitRunner):
            """Fails if the version is read without holding the lock."""

            @property
            def version(self):
                assert self.lock.locked(), "version read outside the runner lock"
                return self._version

            @version.setter
            def version(self, value):
                self._version = value

        runner = LockCheckingRunner()
        service = AutoSaveService(runner, store, interval=60)
        runner.locked(lambda ws: ws.place("battery", 0, 0))

        assert await service.save_now()
        assert service._last_saved_version == 1
        assert not await service.save_now()
