"""Circuit simulator - power propagation and gate evaluation.

The simulator decides, once per tick, which components carry current.
It owns the list of components taking part in the simulation and a
cached list of power sources; the grid is injected and only read, except
through the component objects it references.

Tick model:
-----------
Each update runs the phases of ``TickPhase`` once, in order. There is no
iteration to a fixed point. A gate output that feeds back into another
gate's input is only seen by that gate on the following tick, which is
what lets a cross-coupled NOR pair hold its state. Some feedback
topologies oscillate; that is reproducible and left as is.

Gates are one-way: power reaching a gate stops there. A gate drives its
output terminal (the cell right of its top cell) only as the root of its
own flood, and only while its output is high.
"""

import logging
from typing import Callable, Dict, List, Optional, Set

from circuplay.component_ids import ComponentId
from circuplay.components import Component, ComponentKind
from circuplay.config.simulation import SimulationConfig
from circuplay.grid import Direction, Grid, Neighbor
from circuplay.pipeline import TickContext, TickPipeline, default_pipeline
from circuplay.state_machine import SimulatorState, create_simulator_state_machine
from circuplay.tick_phases import PHASE_DESCRIPTIONS, TickPhase

logger = logging.getLogger(__name__)

Driver = Callable[[int], None]


class CircuitSimulator:
    """Runs the tick pipeline over the components placed on a grid.

    Attributes:
        grid: Spatial index used for every adjacency lookup
        config: Simulation configuration
        components: Simulated components in insertion order
        power_sources: Cached subset of ``components`` that are batteries
        tick_count: Number of completed updates
        current_phase: Phase being executed, or None outside an update
    """

    def __init__(
        self,
        grid: Grid,
        config: Optional[SimulationConfig] = None,
        pipeline: Optional[TickPipeline] = None,
    ) -> None:
        self.grid = grid
        self.config = config or SimulationConfig()
        self.pipeline = pipeline or default_pipeline()
        self.components: List[Component] = []
        self.power_sources: List[Component] = []
        self.tick_count = 0
        self.current_phase: Optional[TickPhase] = None
        self._state = create_simulator_state_machine()
        self._drivers: List[Driver] = []

    # ------------------------------------------------------------------
    # Run state
    # ------------------------------------------------------------------

    @property
    def state(self) -> SimulatorState:
        return self._state.state

    @property
    def running(self) -> bool:
        return self._state.state is SimulatorState.RUNNING

    def start(self) -> bool:
        """Start ticking. Returns False if already running."""
        if not self._state.can_transition(SimulatorState.RUNNING):
            return False
        self._state.transition(SimulatorState.RUNNING)
        logger.info(f"Simulation started at tick {self.tick_count}")
        return True

    def stop(self) -> bool:
        """Stop ticking. Returns False if already stopped."""
        if not self._state.can_transition(SimulatorState.STOPPED):
            return False
        self._state.transition(SimulatorState.STOPPED)
        logger.info(f"Simulation stopped at tick {self.tick_count}")
        return True

    # ------------------------------------------------------------------
    # Component registry
    # ------------------------------------------------------------------

    def add_component(self, component: Component) -> None:
        """Add a component to the simulation (no-op if already present)."""
        if any(c is component for c in self.components):
            return
        self.components.append(component)
        if component.is_source:
            self.power_sources.append(component)

    def remove_component(self, component: Component) -> bool:
        """Drop a component from the component list and the source cache.

        Returns:
            True if the component was being simulated
        """
        before = len(self.components)
        self.components = [c for c in self.components if c is not component]
        self.power_sources = [c for c in self.power_sources if c is not component]
        return len(self.components) != before

    def clear(self) -> None:
        self.components = []
        self.power_sources = []
        self._drivers = []
        self.tick_count = 0

    def reconcile_with_grid(self) -> List[Component]:
        """Drop any simulated component that is no longer on the grid.

        Returns:
            The components that were dropped
        """
        on_grid = {c.id for c in self.grid.components()}
        orphans = [c for c in self.components if c.id not in on_grid]
        for orphan in orphans:
            self.remove_component(orphan)
        if orphans:
            logger.info(f"Dropped {len(orphans)} components no longer on the grid")
        return orphans

    def get_component(self, component_id: ComponentId) -> Optional[Component]:
        for component in self.components:
            if component.id == component_id:
                return component
        return None

    def add_driver(self, driver: Driver) -> None:
        """Register a callback run with the upcoming tick number before each update."""
        self._drivers.append(driver)

    def clear_drivers(self) -> None:
        self._drivers = []

    # ------------------------------------------------------------------
    # Ticking
    # ------------------------------------------------------------------

    def tick(self) -> Optional[TickContext]:
        """Run one update if running; otherwise do nothing."""
        if not self.running:
            return None
        return self.update_circuit()

    def update_circuit(self) -> TickContext:
        """Run one full update regardless of run state."""
        upcoming = self.tick_count + 1
        for driver in self._drivers:
            driver(upcoming)
        ctx = self.pipeline.run(self, tick=upcoming)
        self.tick_count = upcoming
        return ctx

    def describe_phase(self) -> str:
        if self.current_phase is None:
            return "Idle"
        return PHASE_DESCRIPTIONS[self.current_phase]

    # ------------------------------------------------------------------
    # Phases (called by the pipeline steps)
    # ------------------------------------------------------------------

    def _phase_reset(self) -> List[Component]:
        self._unpower_non_sources()
        gates = [c for c in self.components if c.is_gate]
        for gate in gates:
            gate.inputs = []
        return gates

    def _phase_source_propagation(self) -> int:
        return self._flood_from_batteries()

    def _flood_from_batteries(self) -> int:
        roots = 0
        for source in self.power_sources:
            if source.powered:
                self.propagate_power(source, set())
                roots += 1
        return roots

    def _phase_gate_evaluation(self, gates: List[Component]) -> Dict[ComponentId, List[bool]]:
        held = []
        if self.config.hold_gate_outputs:
            held = [gate for gate in gates if gate.output]
            for gate in held:
                self.propagate_power(gate, set())

        collected = {gate.id: self.read_gate_inputs(gate) for gate in gates}

        if held:
            # Held outputs only feed the reads above; back to battery power alone.
            self._unpower_non_sources()
            self._flood_from_batteries()

        for gate in gates:
            gate.inputs = collected[gate.id]
            gate.tick()
        return collected

    def _unpower_non_sources(self) -> None:
        for component in self.components:
            if not component.is_source:
                component.powered = False

    def _phase_gate_output_propagation(self, gates: List[Component]) -> int:
        roots = 0
        for gate in gates:
            if gate.output:
                self.propagate_power(gate, set())
                roots += 1
        return roots

    def _phase_finalize(self) -> None:
        for component in self.components:
            component.tick()

    # ------------------------------------------------------------------
    # Algorithms
    # ------------------------------------------------------------------

    def read_gate_inputs(self, gate: Component) -> List[bool]:
        """Values present on a gate's input terminals.

        Top terminal first, then bottom. Empty cells and the gate itself
        are skipped; at most two values are returned. An occupant that is
        itself a gate contributes its ``output`` (as of the previous tick,
        since no gate has been re-evaluated yet); any other occupant
        contributes its ``powered`` flag.
        """
        values: List[bool] = []
        for cell_x, cell_y in gate.input_cells():
            occupant = self.grid.get_component(cell_x, cell_y)
            if occupant is None or occupant is gate:
                continue
            values.append(occupant.output if occupant.is_gate else occupant.powered)
            if len(values) == 2:
                break
        return values

    def propagate_power(
        self, source: Component, visited: Optional[Set[ComponentId]] = None
    ) -> None:
        """Depth-first flood of power outward from ``source``.

        Every reachable component that conducts is powered; the flood
        continues through those that propagate further. A gate reached by
        the flood is powered but never carries it on: gates drive their
        output only as roots of their own flood. ``visited`` holds
        component ids and makes the walk terminate on cyclic wiring. An
        explicit stack keeps long wire runs clear of the recursion limit.
        """
        if visited is None:
            visited = set()
        stack = [source]
        while stack:
            current = stack.pop()
            if current.id in visited:
                continue
            visited.add(current.id)
            for neighbor in self._exits(current):
                target = neighbor.component
                if target.id in visited or not target.conducts():
                    continue
                target.powered = True
                if target.propagates_further() and not target.is_gate:
                    stack.append(target)

    def _exits(self, component: Component) -> List[Neighbor]:
        """Cells power can leave ``component`` through."""
        if component.is_gate:
            cell_x, cell_y = component.output_cell()
            occupant = self.grid.get_component(cell_x, cell_y)
            if occupant is None or occupant is component:
                return []
            return [Neighbor(occupant, Direction.RIGHT, cell_x, cell_y)]
        return self.grid.neighbors(component.grid_x, component.grid_y)

    # ------------------------------------------------------------------
    # Reporting
    # ------------------------------------------------------------------

    def get_stats(self) -> Dict[str, int]:
        return {
            "total_components": len(self.components),
            "powered_components": sum(1 for c in self.components if c.powered),
            "power_sources": len(self.power_sources),
            "switches": sum(1 for c in self.components if c.kind == ComponentKind.SWITCH),
            "leds": sum(1 for c in self.components if c.kind == ComponentKind.LED),
            "gates": sum(1 for c in self.components if c.is_gate),
            "ticks": self.tick_count,
        }

    def validate_circuit(self) -> List[str]:
        """Human-readable warnings about the wiring of the current circuit."""
        issues = []

        isolated = [
            c for c in self.components if not c.is_source and not self.grid.component_neighbors(c)
        ]
        if isolated:
            issues.append(f"{len(isolated)} isolated component(s) found")

        if not self.power_sources:
            issues.append("No power sources found")

        for battery in self.power_sources:
            if any(n.is_source for n in self.grid.component_neighbors(battery)):
                issues.append("Potential short circuit: batteries directly connected")

        return issues
