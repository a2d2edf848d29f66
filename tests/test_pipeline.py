"""Tests for the tick pipeline and its phase ordering."""

from circuplay.grid import Grid
from circuplay.pipeline import PipelineStep, TickContext, TickPipeline, default_pipeline
from circuplay.simulator import CircuitSimulator
from circuplay.tick_phases import PHASE_DESCRIPTIONS, TickPhase


def test_default_pipeline_order():
    """The canonical steps run in phase order."""
    pipeline = default_pipeline()
    assert pipeline.step_names == [
        "reset",
        "source_propagation",
        "gate_evaluation",
        "gate_output_propagation",
        "finalize",
    ]
    assert [step.phase for step in pipeline.steps] == list(TickPhase)


def test_every_phase_has_a_description():
    assert set(PHASE_DESCRIPTIONS) == set(TickPhase)


def test_run_sets_current_phase_per_step():
    """Each step sees its own phase on the simulator; the phase clears afterwards."""
    seen = []

    def record(simulator, ctx):
        seen.append((simulator.current_phase, ctx.tick))

    pipeline = TickPipeline(
        [
            PipelineStep("first", TickPhase.RESET, record),
            PipelineStep("second", TickPhase.FINALIZE, record),
        ]
    )
    sim = CircuitSimulator(Grid(100, 100, 20), pipeline=pipeline)
    ctx = sim.update_circuit()

    assert seen == [(TickPhase.RESET, 1), (TickPhase.FINALIZE, 1)]
    assert sim.current_phase is None
    assert isinstance(ctx, TickContext)
    assert sim.tick_count == 1


def test_context_records_gates_and_inputs(simulator, place):
    """The default pipeline fills the tick context as it goes."""
    place("battery", 0, 1)
    place("switch", 1, 1, closed=True)
    gate = place("or-gate", 2, 1)
    place("led", 3, 1)

    ctx = simulator.update_circuit()

    assert ctx.tick == 1
    assert ctx.gates == [gate]
    assert ctx.gate_inputs == {gate.id: [True]}
    # one battery during source propagation, one gate during output propagation
    assert ctx.propagation_roots == 2


def test_extra_step_can_trace_a_tick(simulator, place):
    """A pipeline may carry extra steps alongside the canonical ones."""
    place("battery", 0, 0)
    led = place("led", 1, 0)
    snapshots = []

    def trace(sim, ctx):
        snapshots.append(led.powered)

    steps = default_pipeline().steps
    steps.insert(1, PipelineStep("trace_after_reset", TickPhase.RESET, trace))
    steps.append(PipelineStep("trace_after_finalize", TickPhase.FINALIZE, trace))
    simulator.pipeline = TickPipeline(steps)

    simulator.update_circuit()
    simulator.update_circuit()

    assert snapshots == [False, True, False, True]
