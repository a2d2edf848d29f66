"""Workspace - the editing and simulation facade.

A ``Workspace`` wires together the pieces a circuit editor needs: a
``Grid`` for placement and adjacency, a ``ComponentFactory`` for ids, and
a ``CircuitSimulator`` that is handed the grid at construction. Every
user-level operation (place, move, toggle, resize, import, load an
example) goes through here so the grid and the simulator's component
list never drift apart.

Hosts (the web backend, the headless CLI, tests) each construct their own
workspace; there is no module-level instance.
"""

import logging
from typing import Any, Dict, List, Optional

from circuplay import persistence, scenarios
from circuplay.component_factory import ComponentFactory
from circuplay.components import Component
from circuplay.config.simulation import SimulationConfig
from circuplay.exceptions import SimulationError
from circuplay.grid import Grid
from circuplay.result import Err, Ok, Result
from circuplay.scenarios import Scenario
from circuplay.simulator import CircuitSimulator

logger = logging.getLogger(__name__)


class Workspace:
    """A grid, a factory and a simulator kept consistent with each other.

    Attributes:
        config: Configuration the workspace was built from
        grid: Spatial index of placed components
        factory: Component factory (ids are unique per workspace)
        simulator: Tick engine over the placed components
        scenario: The example circuit last loaded, if any
    """

    def __init__(self, config: Optional[SimulationConfig] = None) -> None:
        self.config = config or SimulationConfig()
        self.config.validate()
        self.factory = ComponentFactory(cell_size=self.config.cell_size)
        self.grid = Grid(self.config.canvas_width, self.config.canvas_height, self.config.cell_size)
        self.simulator = CircuitSimulator(self.grid, self.config)
        self.scenario: Optional[Scenario] = None

    # ------------------------------------------------------------------
    # Editing
    # ------------------------------------------------------------------

    def place(self, kind: Any, cell_x: int, cell_y: int) -> Result[Component, str]:
        """Create a component and place it with its origin at (cell_x, cell_y)."""
        component = self.factory.create(kind)
        if component is None:
            return Err(f"Unknown component type: {kind!r}")
        if not self.grid.place(component, cell_x, cell_y):
            return Err(
                f"Cannot place {component.kind.value} at ({cell_x}, {cell_y}): "
                "cell occupied or out of bounds"
            )
        self.simulator.add_component(component)
        return Ok(component)

    def place_at_pixel(self, kind: Any, x: float, y: float) -> Result[Component, str]:
        return self.place(kind, *self.grid.pixel_to_grid(x, y))

    def remove_at(self, cell_x: int, cell_y: int) -> Optional[Component]:
        """Remove the component covering a cell from the grid and the simulation."""
        component = self.grid.remove(cell_x, cell_y)
        if component is not None:
            self.simulator.remove_component(component)
        return component

    def move(self, from_x: int, from_y: int, to_x: int, to_y: int) -> Result[Component, str]:
        """Move the component covering (from_x, from_y) so its origin is (to_x, to_y)."""
        component = self.grid.remove(from_x, from_y)
        if component is None:
            return Err(f"No component at ({from_x}, {from_y})")
        origin = (component.grid_x, component.grid_y)
        if self.grid.place(component, to_x, to_y):
            return Ok(component)
        self.grid.place(component, *origin)
        return Err(f"Cannot move {component.kind.value} to ({to_x}, {to_y})")

    def component_at(self, cell_x: int, cell_y: int) -> Optional[Component]:
        return self.grid.get_component(cell_x, cell_y)

    def toggle_at(self, cell_x: int, cell_y: int) -> Result[bool, str]:
        """Toggle the switch or push-button covering a cell."""
        component = self.grid.get_component(cell_x, cell_y)
        if component is None:
            return Err(f"No component at ({cell_x}, {cell_y})")
        closed = component.toggle()
        if closed is None:
            return Err(f"{component.kind.value} cannot be toggled")
        return Ok(closed)

    def press_at(self, cell_x: int, cell_y: int) -> Result[bool, str]:
        component = self.grid.get_component(cell_x, cell_y)
        if component is None or not component.press():
            return Err(f"No switch or push-button at ({cell_x}, {cell_y})")
        return Ok(True)

    def release_at(self, cell_x: int, cell_y: int) -> Result[bool, str]:
        component = self.grid.get_component(cell_x, cell_y)
        if component is None or not component.release():
            return Err(f"No push-button at ({cell_x}, {cell_y})")
        return Ok(False)

    def clear(self) -> None:
        """Remove every component. The run state is kept."""
        self.grid.clear()
        self.simulator.clear()
        self.scenario = None

    def resize(self, width: int, height: int) -> List[Component]:
        """Resize the canvas, dropping components that no longer fit.

        Returns:
            Components dropped by the resize
        """
        dropped = self.grid.resize(width, height)
        self.simulator.reconcile_with_grid()
        self.config.canvas_width = width
        self.config.canvas_height = height
        return dropped

    # ------------------------------------------------------------------
    # Simulation
    # ------------------------------------------------------------------

    @property
    def running(self) -> bool:
        return self.simulator.running

    def start(self) -> bool:
        return self.simulator.start()

    def stop(self) -> bool:
        return self.simulator.stop()

    def tick(self) -> bool:
        """Advance one tick if running. Returns whether a tick ran."""
        return self.simulator.tick() is not None

    def step(self, count: int = 1) -> int:
        """Run ``count`` updates regardless of run state."""
        for _ in range(count):
            self.simulator.update_circuit()
        return self.simulator.tick_count

    def validate(self) -> List[str]:
        return self.simulator.validate_circuit()

    def get_stats(self) -> Dict[str, int]:
        return self.simulator.get_stats()

    # ------------------------------------------------------------------
    # Rendering boundary
    # ------------------------------------------------------------------

    def component_states(self) -> List[Dict[str, Any]]:
        return [c.to_state() for c in self.simulator.components]

    def get_state(self) -> Dict[str, Any]:
        """Snapshot of everything a client needs to draw the circuit."""
        return {
            "running": self.running,
            "tick": self.simulator.tick_count,
            "cellSize": self.grid.cell_size,
            "cols": self.grid.cols,
            "rows": self.grid.rows,
            "scenario": self.scenario.name if self.scenario else None,
            "components": self.component_states(),
        }

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def export_circuit(self) -> Dict[str, Any]:
        return persistence.export_components(self.simulator.components, self.grid.cell_size)

    def import_circuit(self, data: Any) -> Result[int, str]:
        """Replace the current circuit with a circuit document.

        The document is validated and laid out on a scratch grid first;
        the live circuit is only replaced when every component placed.

        Returns:
            Ok(number of components imported) or Err(reason)
        """
        parsed = persistence.parse_circuit_data(data)
        if parsed.is_err():
            logger.warning(f"Rejected circuit import: {parsed.error}")
            return Err(parsed.error)

        scratch = Grid(self.grid.width, self.grid.height, self.grid.cell_size)
        built = persistence.build_circuit(parsed.unwrap(), scratch, self.factory)
        if built.is_err():
            logger.warning(f"Rejected circuit import: {built.error}")
            return Err(built.error)

        self.simulator.clear()
        self.grid = scratch
        self.simulator.grid = scratch
        for component in built.unwrap():
            self.simulator.add_component(component)
        self.scenario = None
        logger.info(f"Imported circuit with {len(self.simulator.components)} components")
        return Ok(len(self.simulator.components))

    def share_code(self) -> str:
        return persistence.encode_share_code(self.export_circuit())

    def import_share_code(self, code: str) -> Result[int, str]:
        return persistence.decode_share_code(code).and_then(self.import_circuit)

    # ------------------------------------------------------------------
    # Examples
    # ------------------------------------------------------------------

    def load_scenario(self, name: str) -> Result[Scenario, str]:
        """Replace the current circuit with a named example circuit."""
        definition = scenarios.SCENARIOS.get(name)
        if definition is None:
            return Err(f"Unknown scenario: {name!r}")
        if self.grid.cols < definition.min_cols or self.grid.rows < definition.min_rows:
            return Err(
                f"Scenario {name!r} needs a {definition.min_cols}x{definition.min_rows} grid; "
                f"current grid is {self.grid.cols}x{self.grid.rows}"
            )

        self.clear()
        try:
            scenario = scenarios.build_scenario(name, self)
        except SimulationError as e:
            self.clear()
            return Err(str(e))

        if scenario.driver is not None:
            self.simulator.add_driver(scenario.driver)
        self.scenario = scenario
        return Ok(scenario)
