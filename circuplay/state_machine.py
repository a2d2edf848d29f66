"""State machine for the simulator run state.

The simulator is either stopped or running. Hosts call start/stop from
buttons, API requests and WebSocket commands, sometimes redundantly, so
the machine distinguishes a transition that is merely redundant (checked
with ``can_transition``) from one that is invalid (``transition`` raises).

Usage:
------
    machine = create_simulator_state_machine()
    machine.transition(SimulatorState.RUNNING)   # OK
    machine.try_transition(SimulatorState.RUNNING)  # Err: already running
"""

from enum import Enum, auto
from typing import Dict, Generic, List, TypeVar

from circuplay.result import Err, Ok, Result

S = TypeVar("S", bound=Enum)


class StateMachine(Generic[S]):
    """A small state machine over an Enum with a fixed transition table."""

    def __init__(self, initial_state: S, valid_transitions: Dict[S, List[S]]) -> None:
        """
        Args:
            initial_state: The starting state
            valid_transitions: Map of state -> states reachable from it
        """
        if initial_state not in valid_transitions:
            raise ValueError(
                f"Initial state {initial_state} not in valid_transitions. "
                f"Valid states: {list(valid_transitions.keys())}"
            )
        self._state = initial_state
        self._transitions = valid_transitions

    @property
    def state(self) -> S:
        return self._state

    def can_transition(self, target: S) -> bool:
        return target in self._transitions.get(self._state, [])

    def try_transition(self, target: S) -> Result[S, str]:
        """Move to ``target`` if the table allows it.

        Returns:
            Ok(new_state) on success, Err(message) if the transition is invalid
        """
        if not self.can_transition(target):
            allowed = [t.name for t in self._transitions.get(self._state, [])]
            return Err(
                f"Invalid transition: {self._state.name} -> {target.name}. "
                f"Allowed from {self._state.name}: {allowed}"
            )
        self._state = target
        return Ok(target)

    def transition(self, target: S) -> S:
        """Like ``try_transition`` but raises ValueError when not allowed."""
        result = self.try_transition(target)
        if result.is_err():
            raise ValueError(result.error)
        return result.unwrap()

    def __repr__(self) -> str:
        return f"StateMachine(state={self._state.name})"


class SimulatorState(Enum):
    """Run state of a circuit simulator."""

    STOPPED = auto()
    RUNNING = auto()


SIMULATOR_STATE_TRANSITIONS: Dict[SimulatorState, List[SimulatorState]] = {
    SimulatorState.STOPPED: [SimulatorState.RUNNING],
    SimulatorState.RUNNING: [SimulatorState.STOPPED],
}


def create_simulator_state_machine() -> StateMachine[SimulatorState]:
    """Create a state machine starting in STOPPED."""
    return StateMachine(SimulatorState.STOPPED, SIMULATOR_STATE_TRANSITIONS)
