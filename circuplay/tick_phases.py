"""Phase definitions for one simulator tick.

Every tick runs the same five phases in the same order. The order is
what makes the result deterministic: all non-source power is cleared
before anything is propagated, every gate reads its inputs before any
gate changes its output, and component end-of-tick updates come last.
"""

from enum import Enum, auto
from typing import Dict

__all__ = ["TickPhase", "PHASE_DESCRIPTIONS"]


class TickPhase(Enum):
    """Phases of a simulator tick, in execution order."""

    RESET = auto()  # Clear non-source power and gate inputs
    SOURCE_PROPAGATION = auto()  # Flood power from batteries
    GATE_EVALUATION = auto()  # Read input terminals (held outputs visible), compute gate outputs
    GATE_OUTPUT_PROPAGATION = auto()  # Flood power from gates whose output is high
    FINALIZE = auto()  # Per-component end-of-tick update


PHASE_DESCRIPTIONS: Dict[TickPhase, str] = {
    TickPhase.RESET: "Clearing power and gate inputs",
    TickPhase.SOURCE_PROPAGATION: "Propagating power from sources",
    TickPhase.GATE_EVALUATION: "Evaluating logic gates",
    TickPhase.GATE_OUTPUT_PROPAGATION: "Propagating gate outputs",
    TickPhase.FINALIZE: "Finalizing component state",
}
