"""Behavioral tests for the example circuits."""

import itertools

import pytest

from circuplay.config.simulation import SimulationConfig
from circuplay.scenarios import SCENARIOS, list_scenarios
from circuplay.workspace import Workspace


def _set(switch, closed):
    switch.closed = closed


@pytest.fixture
def load(workspace):
    def _load(name):
        result = workspace.load_scenario(name)
        assert result.is_ok(), result.error
        return result.unwrap()

    return _load


class TestRegistry:
    def test_list_scenarios(self):
        names = [entry["name"] for entry in list_scenarios()]
        assert names == list(SCENARIOS)
        assert "half_adder" in names

    @pytest.mark.parametrize("name", list(SCENARIOS))
    def test_every_scenario_builds_on_default_canvas(self, workspace, name):
        result = workspace.load_scenario(name)
        assert result.is_ok(), result.error
        assert workspace.simulator.components
        assert workspace.scenario.name == name

    def test_loading_replaces_previous_circuit(self, workspace, load):
        load("half_adder")
        load("simple_led")
        assert len(workspace.simulator.components) == 4

    def test_unknown_scenario(self, workspace):
        workspace.place("wire", 0, 0)
        result = workspace.load_scenario("flip_flop")
        assert result.is_err()
        assert len(workspace.simulator.components) == 1

    def test_too_small_grid_leaves_circuit_alone(self):
        workspace = Workspace(SimulationConfig(canvas_width=100, canvas_height=100))
        workspace.place("wire", 0, 0)
        result = workspace.load_scenario("half_adder")
        assert result.is_err()
        assert "10x11" in result.error
        assert len(workspace.simulator.components) == 1


class TestSimpleCircuits:
    def test_simple_led(self, workspace, load):
        scenario = load("simple_led")
        workspace.step()
        assert scenario["led"].powered

    @pytest.mark.parametrize(
        "name, a, b, expected",
        [
            ("and_gate", True, True, True),
            ("and_gate", True, False, False),
            ("or_gate", False, True, True),
            ("or_gate", False, False, False),
            ("xor_gate", True, True, False),
            ("xor_gate", True, False, True),
            ("nand_gate", True, True, False),
            ("nand_gate", False, True, True),
            ("nor_gate", False, False, True),
            ("nor_gate", True, False, False),
        ],
    )
    def test_two_input_gate(self, workspace, load, name, a, b, expected):
        scenario = load(name)
        _set(scenario["a"], a)
        _set(scenario["b"], b)
        workspace.step(3)
        assert scenario["gate"].output is expected
        assert scenario["output"].powered is expected

    def test_not_gate(self, workspace, load):
        scenario = load("not_gate")
        workspace.step(3)
        assert scenario["output"].powered

        scenario["a"].toggle()
        workspace.step(3)
        assert not scenario["output"].powered


class TestHalfAdder:
    @pytest.mark.parametrize(
        "a, b, total, carry",
        [
            (False, False, False, False),
            (True, False, True, False),
            (False, True, True, False),
            (True, True, False, True),
        ],
    )
    def test_truth_table(self, workspace, load, a, b, total, carry):
        scenario = load("half_adder")
        _set(scenario["a"], a)
        _set(scenario["b"], b)
        workspace.step(3)
        assert scenario["sum"].powered is total
        assert scenario["carry"].powered is carry

    def test_input_indicators(self, workspace, load):
        scenario = load("half_adder")
        _set(scenario["a"], True)
        workspace.step(1)
        assert scenario["xor_a"].powered
        assert scenario["and_a"].powered
        assert not scenario["xor_b"].powered
        assert not scenario["and_b"].powered

    def test_walks_the_table_in_one_session(self, workspace, load):
        scenario = load("half_adder")
        for a, b in [(True, False), (True, True), (False, True), (False, False)]:
            _set(scenario["a"], a)
            _set(scenario["b"], b)
            workspace.step(3)
            assert scenario["sum"].powered is (a != b)
            assert scenario["carry"].powered is (a and b)


class TestFullAdder:
    """Two gate levels deep, so outputs need a few ticks to settle."""

    @pytest.mark.parametrize("a, b, cin", list(itertools.product([False, True], repeat=3)))
    def test_truth_table(self, workspace, load, a, b, cin):
        scenario = load("full_adder")
        _set(scenario["a"], a)
        _set(scenario["b"], b)
        _set(scenario["cin"], cin)
        workspace.step(6)
        total = a + b + cin
        assert scenario["sum"].powered is bool(total & 1)
        assert scenario["carry"].powered is (total >= 2)

    def test_inputs_reach_only_their_own_terminals(self, workspace, load):
        scenario = load("full_adder")
        first_stage = ["and1_a", "and1_b", "xor1_a", "xor1_b"]
        carry_in = ["and2_b", "xor2_a"]

        _set(scenario["a"], True)
        workspace.step(1)
        assert [scenario[r].powered for r in first_stage] == [True, False, True, False]
        assert not any(scenario[r].powered for r in carry_in)

        _set(scenario["a"], False)
        _set(scenario["cin"], True)
        workspace.step(1)
        assert not any(scenario[r].powered for r in first_stage)
        assert all(scenario[r].powered for r in carry_in)

    def test_walks_the_table_in_one_session(self, workspace, load):
        scenario = load("full_adder")
        for a, b, cin in [(1, 1, 0), (1, 1, 1), (0, 1, 1), (0, 0, 1), (1, 0, 0), (0, 0, 0)]:
            _set(scenario["a"], bool(a))
            _set(scenario["b"], bool(b))
            _set(scenario["cin"], bool(cin))
            workspace.step(6)
            assert scenario["sum"].powered is bool((a + b + cin) & 1)
            assert scenario["carry"].powered is (a + b + cin >= 2)


class TestSrLatch:
    def _settle(self, workspace):
        workspace.step(5)

    def test_set_then_hold(self, workspace, load):
        scenario = load("sr_latch")
        _set(scenario["s"], True)
        self._settle(workspace)
        assert scenario["q"].powered
        assert not scenario["q_bar"].powered

        _set(scenario["s"], False)
        self._settle(workspace)
        assert scenario["q"].powered
        assert not scenario["q_bar"].powered

    def test_reset_then_hold(self, workspace, load):
        scenario = load("sr_latch")
        _set(scenario["s"], True)
        self._settle(workspace)
        _set(scenario["s"], False)
        self._settle(workspace)

        _set(scenario["r"], True)
        self._settle(workspace)
        assert not scenario["q"].powered
        assert scenario["q_bar"].powered

        _set(scenario["r"], False)
        self._settle(workspace)
        assert not scenario["q"].powered
        assert scenario["q_bar"].powered

    def test_input_indicators(self, workspace, load):
        scenario = load("sr_latch")
        _set(scenario["r"], True)
        workspace.step(1)
        assert scenario["r_in"].powered
        assert not scenario["s_in"].powered


class TestDrivenScenarios:
    def test_blinking_led(self, workspace, load):
        scenario = load("blinking_led")
        workspace.step(9)
        assert not scenario["led"].powered

        workspace.step(1)
        assert scenario["led"].powered

        workspace.step(9)
        assert scenario["led"].powered

        workspace.step(1)
        assert not scenario["led"].powered

    def test_blinking_led_driven_by_running_ticks(self, workspace, load):
        scenario = load("blinking_led")
        workspace.start()
        for _ in range(10):
            workspace.tick()
        assert scenario["led"].powered

    def test_binary_counter(self, workspace, load):
        scenario = load("binary_counter")
        leds = [scenario[f"led{bit}"] for bit in range(4)]

        workspace.step(19)
        assert [led.powered for led in leds] == [False] * 4

        for value in (1, 2, 3, 4, 5):
            workspace.step(20)
            expected = [bool((value >> bit) & 1) for bit in range(4)]
            assert [led.powered for led in leds] == expected

    def test_clear_removes_driver(self, workspace, load):
        scenario = load("blinking_led")
        switch = scenario["switch"]
        workspace.clear()
        workspace.step(10)
        assert not switch.closed
