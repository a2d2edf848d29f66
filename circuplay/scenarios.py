"""Example circuits.

Each scenario is a builder that lays a complete circuit onto a workspace
and returns the components worth inspecting under readable role names
("a", "b", "output", "q", ...). Some scenarios also install a driver that
operates switches on a tick schedule (the blinking LED, the counter).

Layouts use grid coordinates (x, y) with y growing downwards. Gates are
one cell wide and two high; their inputs are the cells to the left of
the gate and their output is the cell right of its top half. Terminal
LEDs sit on gate inputs so each input shows its level.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Callable, Dict, List, Optional, Tuple

from circuplay.components import Component, ComponentKind
from circuplay.exceptions import SimulationError

if TYPE_CHECKING:
    from circuplay.workspace import Workspace

logger = logging.getLogger(__name__)

BLINK_PERIOD_TICKS = 10
COUNTER_PERIOD_TICKS = 20
COUNTER_BITS = 4


@dataclass
class Scenario:
    """A built example circuit.

    Attributes:
        name: Registry name
        roles: Named components of interest
        driver: Optional per-tick callback operating the circuit's switches
    """

    name: str
    roles: Dict[str, Component] = field(default_factory=dict)
    driver: Optional[Callable[[int], None]] = None

    def __getitem__(self, role: str) -> Component:
        return self.roles[role]


@dataclass(frozen=True)
class ScenarioDef:
    """Registry entry: how to build a scenario and how much grid it needs."""

    name: str
    description: str
    builder: Callable[["_Layout"], Optional[Callable[[int], None]]]
    min_cols: int
    min_rows: int


class _Layout:
    """Places components for a builder and records their roles."""

    def __init__(self, workspace: "Workspace") -> None:
        self.workspace = workspace
        self.roles: Dict[str, Component] = {}

    def put(
        self,
        kind: ComponentKind,
        x: int,
        y: int,
        role: Optional[str] = None,
        closed: Optional[bool] = None,
    ) -> Component:
        result = self.workspace.place(kind, x, y)
        if result.is_err():
            raise SimulationError(result.error)
        component = result.unwrap()
        if closed is not None:
            component.closed = closed
        if role:
            self.roles[role] = component
        return component

    def wires(self, cells: List[Tuple[int, int]]) -> None:
        for x, y in cells:
            self.put(ComponentKind.WIRE, x, y)


# =============================================================================
# Builders
# =============================================================================


def _simple_led(layout: _Layout) -> None:
    layout.put(ComponentKind.BATTERY, 0, 0, "battery")
    layout.put(ComponentKind.WIRE, 1, 0, "wire")
    layout.put(ComponentKind.LED, 2, 0, "led")
    layout.put(ComponentKind.WIRE, 3, 0)


def _blinking_led(layout: _Layout) -> Callable[[int], None]:
    layout.put(ComponentKind.BATTERY, 0, 0, "battery")
    switch = layout.put(ComponentKind.SWITCH, 1, 0, "switch", closed=False)
    layout.put(ComponentKind.LED, 2, 0, "led")
    layout.put(ComponentKind.WIRE, 3, 0)

    def blink(tick: int) -> None:
        if tick % BLINK_PERIOD_TICKS == 0:
            switch.toggle()

    return blink


def _two_input_gate(kind: ComponentKind) -> Callable[[_Layout], None]:
    def build(layout: _Layout) -> None:
        layout.put(ComponentKind.BATTERY, 3, 0)
        layout.put(ComponentKind.SWITCH, 3, 1, "a", closed=False)
        layout.put(ComponentKind.SWITCH, 3, 2, "b", closed=False)
        layout.put(ComponentKind.BATTERY, 3, 3)
        layout.put(kind, 4, 1, "gate")
        layout.put(ComponentKind.LED, 5, 1, "output")

    return build


def _not_gate(layout: _Layout) -> None:
    layout.put(ComponentKind.BATTERY, 3, 0)
    layout.put(ComponentKind.SWITCH, 3, 1, "a", closed=False)
    layout.put(ComponentKind.NOT_GATE, 4, 1, "gate")
    layout.put(ComponentKind.LED, 5, 1, "output")


def _half_adder(layout: _Layout) -> None:
    # Input A: battery and switch on the top row, then down column 3 to the AND gate.
    layout.put(ComponentKind.BATTERY, 1, 0)
    layout.put(ComponentKind.SWITCH, 2, 0, "a", closed=False)
    layout.wires([(3, 0), (4, 0), (5, 0)])
    layout.wires([(3, y) for y in range(1, 8)])
    layout.put(ComponentKind.WIRE, 4, 7)

    # Input B: fed from the bottom, around the right-hand side to both gates.
    layout.put(ComponentKind.BATTERY, 3, 10)
    layout.put(ComponentKind.SWITCH, 4, 10, "b", closed=False)
    layout.wires([(x, 10) for x in range(5, 9)])
    layout.wires([(9, y) for y in range(4, 11)])
    layout.wires([(x, 3) for x in range(5, 10)])
    layout.put(ComponentKind.WIRE, 5, 9)

    layout.put(ComponentKind.LED, 5, 1, "xor_a")
    layout.put(ComponentKind.LED, 5, 2, "xor_b")
    layout.put(ComponentKind.XOR_GATE, 6, 1, "xor")
    layout.put(ComponentKind.LED, 7, 1, "sum")

    layout.put(ComponentKind.LED, 5, 7, "and_a")
    layout.put(ComponentKind.LED, 5, 8, "and_b")
    layout.put(ComponentKind.AND_GATE, 6, 7, "and")
    layout.put(ComponentKind.LED, 7, 7, "carry")


def _full_adder(layout: _Layout) -> None:
    # Input A: switch on the top row, one branch down to the AND, one around
    # the left edge and along row 7 to the first XOR.
    layout.put(ComponentKind.BATTERY, 7, 0)
    layout.put(ComponentKind.SWITCH, 6, 0, "a", closed=False)
    layout.wires([(5, 0), (5, 1)])
    layout.wires([(x, 0) for x in range(4, -1, -1)])
    layout.wires([(0, y) for y in range(1, 8)])
    layout.wires([(x, 7) for x in range(1, 6)])

    # Input B sits between the two first-stage gates and feeds both.
    layout.put(ComponentKind.BATTERY, 2, 4)
    layout.put(ComponentKind.SWITCH, 3, 4, "b", closed=False)
    layout.wires([(4, 4), (5, 4)])

    layout.put(ComponentKind.LED, 5, 2, "and1_a")
    layout.put(ComponentKind.LED, 5, 3, "and1_b")
    layout.put(ComponentKind.AND_GATE, 6, 2, "and1")
    layout.put(ComponentKind.LED, 5, 5, "xor1_b")
    layout.put(ComponentKind.LED, 5, 6, "xor1_a")
    layout.put(ComponentKind.XOR_GATE, 6, 5, "xor1")

    # A XOR B wraps around the carry-in source to both second-stage gates.
    layout.wires([(7, 5), (8, 5), (8, 4), (9, 4), (10, 4)])
    layout.wires([(7, y) for y in range(6, 10)])
    layout.wires([(8, 9), (9, 9), (10, 9), (10, 8)])

    layout.put(ComponentKind.BATTERY, 9, 6)
    layout.put(ComponentKind.SWITCH, 10, 6, "cin", closed=False)
    layout.put(ComponentKind.WIRE, 11, 6)

    layout.put(ComponentKind.LED, 11, 4, "and2_a")
    layout.put(ComponentKind.LED, 11, 5, "and2_b")
    layout.put(ComponentKind.AND_GATE, 12, 4, "and2")
    layout.put(ComponentKind.LED, 11, 7, "xor2_a")
    layout.put(ComponentKind.LED, 11, 8, "xor2_b")
    layout.put(ComponentKind.XOR_GATE, 12, 7, "xor2")
    layout.put(ComponentKind.LED, 13, 7, "sum")

    # Both carries into the OR: A AND B over the top, the second carry straight across.
    layout.wires([(x, 2) for x in range(7, 16)])
    layout.wires([(13, 4), (14, 4)])
    layout.put(ComponentKind.LED, 15, 3, "or_a")
    layout.put(ComponentKind.LED, 15, 4, "or_b")
    layout.put(ComponentKind.OR_GATE, 16, 3, "or")
    layout.put(ComponentKind.LED, 17, 3, "carry")


def _sr_latch(layout: _Layout) -> None:
    # Reset input into the top NOR, set input into the bottom NOR.
    layout.put(ComponentKind.BATTERY, 3, 2)
    layout.put(ComponentKind.SWITCH, 4, 2, "r", closed=False)
    layout.put(ComponentKind.LED, 5, 2, "r_in")
    layout.put(ComponentKind.BATTERY, 3, 8)
    layout.put(ComponentKind.SWITCH, 4, 8, "s", closed=False)
    layout.put(ComponentKind.LED, 5, 8, "s_in")

    layout.put(ComponentKind.NOR_GATE, 6, 2, "top")
    layout.put(ComponentKind.NOR_GATE, 6, 7, "bottom")
    layout.put(ComponentKind.LED, 5, 3, "q_bar_fb")
    layout.put(ComponentKind.LED, 5, 7, "q_fb")

    # Q: top output down to the bottom gate's feedback input.
    layout.wires([(7, 2), (7, 3), (7, 4), (7, 5), (6, 5), (6, 6), (5, 6)])
    layout.put(ComponentKind.LED, 8, 2, "q")

    # Q bar: bottom output around the left-hand side to the top gate's feedback input.
    layout.wires([(7, 7), (7, 8), (7, 9)])
    layout.wires([(x, 10) for x in range(7, 0, -1)])
    layout.wires([(1, y) for y in range(9, 3, -1)])
    layout.wires([(2, 4), (3, 4), (4, 4), (5, 4)])
    layout.put(ComponentKind.LED, 8, 7, "q_bar")


def _binary_counter(layout: _Layout) -> Callable[[int], None]:
    switches = []
    for bit in range(COUNTER_BITS):
        y = bit * 2
        layout.put(ComponentKind.BATTERY, 0, y)
        switches.append(layout.put(ComponentKind.SWITCH, 1, y, f"bit{bit}", closed=False))
        layout.put(ComponentKind.LED, 2, y, f"led{bit}")

    def count(tick: int) -> None:
        if tick % COUNTER_PERIOD_TICKS != 0:
            return
        value = (tick // COUNTER_PERIOD_TICKS) % (1 << COUNTER_BITS)
        for bit, switch in enumerate(switches):
            switch.closed = bool((value >> bit) & 1)

    return count


def _gate_def(name: str, kind: ComponentKind, label: str) -> ScenarioDef:
    return ScenarioDef(name, f"{label} gate with two switch inputs", _two_input_gate(kind), 7, 4)


SCENARIOS: Dict[str, ScenarioDef] = {
    d.name: d
    for d in [
        ScenarioDef("simple_led", "Battery, wire and LED in a row", _simple_led, 4, 1),
        ScenarioDef(
            "blinking_led", "LED behind a switch that toggles once a second", _blinking_led, 4, 1
        ),
        _gate_def("and_gate", ComponentKind.AND_GATE, "AND"),
        _gate_def("or_gate", ComponentKind.OR_GATE, "OR"),
        _gate_def("xor_gate", ComponentKind.XOR_GATE, "XOR"),
        _gate_def("nand_gate", ComponentKind.NAND_GATE, "NAND"),
        _gate_def("nor_gate", ComponentKind.NOR_GATE, "NOR"),
        ScenarioDef("not_gate", "NOT gate with one switch input", _not_gate, 7, 3),
        ScenarioDef("half_adder", "XOR sum and AND carry of two inputs", _half_adder, 10, 11),
        ScenarioDef(
            "full_adder", "Sum and carry of two inputs plus a carry in", _full_adder, 18, 10
        ),
        ScenarioDef("sr_latch", "Cross-coupled NOR set/reset latch", _sr_latch, 9, 11),
        ScenarioDef(
            "binary_counter", "Four switch-driven LEDs counting in binary", _binary_counter, 3, 7
        ),
    ]
}


def list_scenarios() -> List[Dict[str, str]]:
    return [{"name": d.name, "description": d.description} for d in SCENARIOS.values()]


def build_scenario(name: str, workspace: "Workspace") -> Scenario:
    """Lay a scenario onto ``workspace``, which should be empty.

    Raises:
        KeyError: Unknown scenario name
        SimulationError: The layout could not be placed
    """
    definition = SCENARIOS[name]
    layout = _Layout(workspace)
    driver = definition.builder(layout)
    logger.info(f"Built scenario {name!r} with {len(workspace.simulator.components)} components")
    return Scenario(name=name, roles=layout.roles, driver=driver)
