"""Tick pipeline for the circuit simulator.

A ``TickPipeline`` is the ordered list of steps that make up one
``CircuitSimulator.update_circuit()`` call. Each step receives the
simulator and a ``TickContext`` that carries per-tick data between steps
(which gates exist this tick, what inputs they read).

The default pipeline is the canonical five-phase order. Tests and tools
may build a pipeline with extra steps (for tracing, say) but must keep
the canonical steps in order.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Dict, List
from collections.abc import Callable

from circuplay.tick_phases import TickPhase

if TYPE_CHECKING:
    from circuplay.simulator import CircuitSimulator


@dataclass
class TickContext:
    """Per-tick state passed through pipeline steps.

    Attributes:
        tick: Number of the tick being computed (1 for the first update)
        gates: Gates in component-list order, captured at reset
        gate_inputs: Input values read for each gate during evaluation
        propagation_roots: Floods started from batteries and from fresh gate outputs
    """

    tick: int = 0
    gates: List[Any] = field(default_factory=list)
    gate_inputs: Dict[Any, List[bool]] = field(default_factory=dict)
    propagation_roots: int = 0


@dataclass
class PipelineStep:
    """A single step in the tick pipeline.

    Attributes:
        name: Identifier for the step (e.g., "reset")
        phase: The tick phase this step implements
        fn: Function that executes this step, receiving simulator and context
    """

    name: str
    phase: TickPhase
    fn: Callable[[CircuitSimulator, TickContext], None]


class TickPipeline:
    """Ordered sequence of steps executed once per simulator update."""

    def __init__(self, steps: list[PipelineStep]) -> None:
        self._steps = steps

    @property
    def steps(self) -> list[PipelineStep]:
        return self._steps

    @property
    def step_names(self) -> list[str]:
        return [step.name for step in self._steps]

    def run(self, simulator: CircuitSimulator, tick: int = 0) -> TickContext:
        """Execute all steps in order and return the context they shared."""
        ctx = TickContext(tick=tick)
        for step in self._steps:
            simulator.current_phase = step.phase
            step.fn(simulator, ctx)
        simulator.current_phase = None
        return ctx


# =============================================================================
# Default pipeline
# =============================================================================


def _step_reset(simulator: CircuitSimulator, ctx: TickContext) -> None:
    """RESET: Unpower non-sources, clear gate inputs."""
    ctx.gates = simulator._phase_reset()


def _step_source_propagation(simulator: CircuitSimulator, ctx: TickContext) -> None:
    """SOURCE_PROPAGATION: Depth-first flood from each powered battery."""
    ctx.propagation_roots += simulator._phase_source_propagation()


def _step_gate_evaluation(simulator: CircuitSimulator, ctx: TickContext) -> None:
    """GATE_EVALUATION: Read every gate's inputs, then re-evaluate every gate."""
    ctx.gate_inputs = simulator._phase_gate_evaluation(ctx.gates)


def _step_gate_output_propagation(simulator: CircuitSimulator, ctx: TickContext) -> None:
    """GATE_OUTPUT_PROPAGATION: Flood from gates whose output is high."""
    ctx.propagation_roots += simulator._phase_gate_output_propagation(ctx.gates)


def _step_finalize(simulator: CircuitSimulator, ctx: TickContext) -> None:
    """FINALIZE: Per-component end-of-tick update."""
    simulator._phase_finalize()


def default_pipeline() -> TickPipeline:
    """Build the canonical tick pipeline.

    Phase Order:
        1. reset
        2. source_propagation
        3. gate_evaluation
        4. gate_output_propagation
        5. finalize
    """
    return TickPipeline(
        [
            PipelineStep("reset", TickPhase.RESET, _step_reset),
            PipelineStep(
                "source_propagation", TickPhase.SOURCE_PROPAGATION, _step_source_propagation
            ),
            PipelineStep("gate_evaluation", TickPhase.GATE_EVALUATION, _step_gate_evaluation),
            PipelineStep(
                "gate_output_propagation",
                TickPhase.GATE_OUTPUT_PROPAGATION,
                _step_gate_output_propagation,
            ),
            PipelineStep("finalize", TickPhase.FINALIZE, _step_finalize),
        ]
    )
