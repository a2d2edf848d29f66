"""Tests for the generic state machine and the simulator run state."""

from enum import Enum, auto

import pytest

from circuplay.result import Err, Ok
from circuplay.state_machine import (
    SimulatorState,
    StateMachine,
    create_simulator_state_machine,
)


class Light(Enum):
    OFF = auto()
    ON = auto()
    BROKEN = auto()


TRANSITIONS = {
    Light.OFF: [Light.ON, Light.BROKEN],
    Light.ON: [Light.OFF, Light.BROKEN],
    Light.BROKEN: [],
}


class TestStateMachine:
    def test_initial_state_must_be_known(self):
        with pytest.raises(ValueError):
            StateMachine(Light.ON, {Light.OFF: []})

    def test_valid_transition(self):
        machine = StateMachine(Light.OFF, TRANSITIONS)
        assert machine.transition(Light.ON) is Light.ON
        assert machine.state is Light.ON

    def test_invalid_transition_raises(self):
        machine = StateMachine(Light.BROKEN, TRANSITIONS)
        with pytest.raises(ValueError, match="Invalid transition"):
            machine.transition(Light.ON)

    def test_try_transition_returns_result(self):
        machine = StateMachine(Light.OFF, TRANSITIONS)
        assert machine.try_transition(Light.OFF).is_err()
        assert machine.try_transition(Light.ON) == Ok(Light.ON)


class TestSimulatorStates:
    def test_starts_stopped(self):
        machine = create_simulator_state_machine()
        assert machine.state is SimulatorState.STOPPED
        assert machine.can_transition(SimulatorState.RUNNING)
        assert not machine.can_transition(SimulatorState.STOPPED)

    def test_redundant_start_is_not_allowed(self):
        machine = create_simulator_state_machine()
        machine.transition(SimulatorState.RUNNING)
        assert not machine.can_transition(SimulatorState.RUNNING)


class TestResult:
    def test_and_then_short_circuits(self):
        calls = []
        Err("nope").and_then(calls.append)
        assert calls == []
        assert Ok(2).and_then(lambda v: Ok(v * 3)) == Ok(6)

    def test_unwrap_err_raises(self):
        with pytest.raises(ValueError):
            Err("occupied").unwrap()
