"""Component data model for the circuit grid.

Every placeable part is a ``Component`` tagged with a ``ComponentKind``.
Per-kind behavior is not spread across subclasses; it lives in two tables:

``KIND_SPECS``
    Footprint, whether the kind is a power source, a gate, or a
    user-operated switch, and the rules for conducting and for carrying
    power onward.

``LOGIC_TABLE``
    The pure boolean function each gate kind applies to its inputs,
    including what happens when fewer inputs are wired than the gate needs.

Conduction rules:
    conducts            battery, wire, resistor, LED, buzzer, every gate;
                        switch and push-button only while closed
    propagates further  wire, resistor always; switch and push-button while
                        closed; gates while their output is high;
                        battery, LED, buzzer never
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from circuplay.component_ids import ComponentId
from circuplay.config.grid import CELL_SIZE, GATE_FOOTPRINT

Cell = Tuple[int, int]


class ComponentKind(str, Enum):
    """Closed set of component kinds, valued by their wire names."""

    BATTERY = "battery"
    LED = "led"
    RESISTOR = "resistor"
    SWITCH = "switch"
    WIRE = "wire"
    PUSH_BUTTON = "push-button"
    BUZZER = "buzzer"
    AND_GATE = "and-gate"
    OR_GATE = "or-gate"
    NOT_GATE = "not-gate"
    XOR_GATE = "xor-gate"
    NAND_GATE = "nand-gate"
    NOR_GATE = "nor-gate"

    @classmethod
    def parse(cls, name: Any) -> Optional["ComponentKind"]:
        """Look up a kind by wire name, returning None when unknown."""
        if isinstance(name, cls):
            return name
        try:
            return cls(name)
        except ValueError:
            return None

    @property
    def spec(self) -> "KindSpec":
        return KIND_SPECS[self]

    @property
    def is_gate(self) -> bool:
        return KIND_SPECS[self].is_gate


class Conduction(Enum):
    ALWAYS = auto()
    WHEN_CLOSED = auto()


class Propagation(Enum):
    ALWAYS = auto()
    WHEN_CLOSED = auto()
    WHEN_OUTPUT_HIGH = auto()
    NEVER = auto()


@dataclass(frozen=True)
class KindSpec:
    """Static behavior of one component kind.

    Attributes:
        cells_wide: Footprint width in cells
        cells_high: Footprint height in cells
        conduction: When the component accepts power from a neighbor
        propagation: When the component passes power on to its neighbors
        is_source: Component is re-powered every tick
        is_gate: Component evaluates a logic function over its inputs
        is_switch: Component has a user-operated ``closed`` contact
        momentary: Contact opens again when released (push-button)
    """

    cells_wide: int = 1
    cells_high: int = 1
    conduction: Conduction = Conduction.ALWAYS
    propagation: Propagation = Propagation.NEVER
    is_source: bool = False
    is_gate: bool = False
    is_switch: bool = False
    momentary: bool = False


_GATE = KindSpec(
    cells_wide=GATE_FOOTPRINT[0],
    cells_high=GATE_FOOTPRINT[1],
    propagation=Propagation.WHEN_OUTPUT_HIGH,
    is_gate=True,
)

KIND_SPECS: Dict[ComponentKind, KindSpec] = {
    ComponentKind.BATTERY: KindSpec(is_source=True),
    ComponentKind.LED: KindSpec(),
    ComponentKind.RESISTOR: KindSpec(propagation=Propagation.ALWAYS),
    ComponentKind.SWITCH: KindSpec(
        conduction=Conduction.WHEN_CLOSED,
        propagation=Propagation.WHEN_CLOSED,
        is_switch=True,
    ),
    ComponentKind.WIRE: KindSpec(propagation=Propagation.ALWAYS),
    ComponentKind.PUSH_BUTTON: KindSpec(
        conduction=Conduction.WHEN_CLOSED,
        propagation=Propagation.WHEN_CLOSED,
        is_switch=True,
        momentary=True,
    ),
    ComponentKind.BUZZER: KindSpec(),
    ComponentKind.AND_GATE: _GATE,
    ComponentKind.OR_GATE: _GATE,
    ComponentKind.NOT_GATE: _GATE,
    ComponentKind.XOR_GATE: _GATE,
    ComponentKind.NAND_GATE: _GATE,
    ComponentKind.NOR_GATE: _GATE,
}

GATE_KINDS: Tuple[ComponentKind, ...] = tuple(k for k, s in KIND_SPECS.items() if s.is_gate)


@dataclass(frozen=True)
class GateLogic:
    """Boolean function of a gate kind.

    Attributes:
        required_inputs: Inputs that must be present before ``fn`` is applied
        under_supplied: Output when fewer inputs than required are present
        fn: Function over the input values
    """

    required_inputs: int
    under_supplied: bool
    fn: Callable[[Sequence[bool]], bool]


LOGIC_TABLE: Dict[ComponentKind, GateLogic] = {
    ComponentKind.AND_GATE: GateLogic(2, False, lambda i: i[0] and i[1]),
    ComponentKind.OR_GATE: GateLogic(1, False, any),
    ComponentKind.NOT_GATE: GateLogic(1, False, lambda i: not i[0]),
    ComponentKind.XOR_GATE: GateLogic(2, False, lambda i: i[0] != i[1]),
    ComponentKind.NAND_GATE: GateLogic(2, True, lambda i: not (i[0] and i[1])),
    ComponentKind.NOR_GATE: GateLogic(2, True, lambda i: not (i[0] or i[1])),
}


def evaluate_gate(kind: ComponentKind, inputs: Sequence[bool]) -> bool:
    """Apply a gate kind's logic function to its collected inputs.

    NAND and NOR report True when under-supplied; the other gates report
    False.
    """
    logic = LOGIC_TABLE[kind]
    if len(inputs) < logic.required_inputs:
        return logic.under_supplied
    return bool(logic.fn(list(inputs)))


@dataclass(eq=False)
class Component:
    """A placed (or placeable) circuit component.

    Components never hold references to their neighbors; adjacency is
    always looked up through the grid. Identity is the ``id`` assigned by
    the factory.
    """

    kind: ComponentKind
    id: ComponentId
    x: int = 0
    y: int = 0
    grid_x: int = 0
    grid_y: int = 0
    powered: bool = False
    closed: bool = False
    inputs: List[bool] = field(default_factory=list)
    output: bool = False
    cell_size: int = CELL_SIZE

    def __post_init__(self) -> None:
        if self.spec.is_source:
            self.powered = True

    def __repr__(self) -> str:
        return (
            f"Component({self.kind.value}, {self.id}, at=({self.grid_x}, {self.grid_y}), "
            f"powered={self.powered})"
        )

    # ------------------------------------------------------------------
    # Static kind info
    # ------------------------------------------------------------------

    @property
    def spec(self) -> KindSpec:
        return KIND_SPECS[self.kind]

    @property
    def cells_wide(self) -> int:
        return self.spec.cells_wide

    @property
    def cells_high(self) -> int:
        return self.spec.cells_high

    @property
    def width(self) -> int:
        """Footprint width in pixels."""
        return self.cells_wide * self.cell_size

    @property
    def height(self) -> int:
        """Footprint height in pixels."""
        return self.cells_high * self.cell_size

    @property
    def is_source(self) -> bool:
        return self.spec.is_source

    @property
    def is_gate(self) -> bool:
        return self.spec.is_gate

    @property
    def is_switch(self) -> bool:
        return self.spec.is_switch

    # ------------------------------------------------------------------
    # Behavior contract
    # ------------------------------------------------------------------

    def conducts(self) -> bool:
        """Whether power arriving from a neighbor energizes this component."""
        if self.spec.conduction is Conduction.WHEN_CLOSED:
            return self.closed
        return True

    def propagates_further(self) -> bool:
        """Whether an energized component passes power on to its neighbors."""
        rule = self.spec.propagation
        if rule is Propagation.ALWAYS:
            return True
        if rule is Propagation.WHEN_CLOSED:
            return self.closed
        if rule is Propagation.WHEN_OUTPUT_HIGH:
            return self.output
        return False

    def tick(self) -> None:
        """End-of-tick state update."""
        if self.is_source:
            self.powered = True
        elif self.is_switch:
            if not self.closed:
                self.powered = False
        elif self.is_gate:
            self.output = evaluate_gate(self.kind, self.inputs)
            self.powered = self.output

    # ------------------------------------------------------------------
    # User actions
    # ------------------------------------------------------------------

    def toggle(self) -> Optional[bool]:
        """Flip a switch or push-button contact.

        Returns:
            The new ``closed`` state, or None for kinds without a contact
        """
        if not self.is_switch:
            return None
        self.closed = not self.closed
        return self.closed

    def press(self) -> bool:
        """Close the contact (push-buttons and switches)."""
        if not self.is_switch:
            return False
        self.closed = True
        return True

    def release(self) -> bool:
        """Open the contact of a momentary push-button."""
        if not self.spec.momentary:
            return False
        self.closed = False
        return True

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    def get_properties(self) -> Dict[str, Any]:
        props: Dict[str, Any] = {"powered": self.powered}
        if self.is_switch:
            props["closed"] = self.closed
        return props

    def set_properties(self, props: Dict[str, Any]) -> None:
        """Apply saved properties; unknown keys are ignored."""
        powered = props.get("powered")
        if isinstance(powered, bool) and not self.is_source:
            self.powered = powered
        closed = props.get("closed")
        if isinstance(closed, bool) and self.is_switch:
            self.closed = closed

    def to_state(self) -> Dict[str, Any]:
        """Read-only view for the rendering boundary."""
        state: Dict[str, Any] = {
            "id": self.id.value,
            "kind": self.kind.value,
            "gridX": self.grid_x,
            "gridY": self.grid_y,
            "x": self.x,
            "y": self.y,
            "cellsWide": self.cells_wide,
            "cellsHigh": self.cells_high,
            "powered": self.powered,
        }
        if self.is_switch:
            state["closed"] = self.closed
        if self.is_gate:
            state["inputs"] = list(self.inputs)
            state["output"] = self.output
        return state

    # ------------------------------------------------------------------
    # Geometry
    # ------------------------------------------------------------------

    def footprint(self) -> List[Cell]:
        """Cells covered by this component, row-major from its origin."""
        return [
            (self.grid_x + dx, self.grid_y + dy)
            for dy in range(self.cells_high)
            for dx in range(self.cells_wide)
        ]

    def covers(self, cell_x: int, cell_y: int) -> bool:
        return (
            self.grid_x <= cell_x < self.grid_x + self.cells_wide
            and self.grid_y <= cell_y < self.grid_y + self.cells_high
        )

    def contains(self, px: float, py: float) -> bool:
        """Pixel hit test against the component's bounding box."""
        return self.x <= px < self.x + self.width and self.y <= py < self.y + self.height

    def input_cells(self) -> List[Cell]:
        """Gate input terminals: left of the top cell, then left of the bottom cell."""
        if not self.is_gate:
            return []
        return [(self.grid_x - 1, self.grid_y + dy) for dy in range(self.cells_high)]

    def output_cell(self) -> Optional[Cell]:
        """Gate output terminal: right of the top cell."""
        if not self.is_gate:
            return None
        return (self.grid_x + self.cells_wide, self.grid_y)
