"""Spatial index of components on the circuit canvas."""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Iterator, List, Optional, Tuple

from circuplay.components import Component, ComponentKind
from circuplay.config.grid import CELL_SIZE, DEFAULT_CANVAS_HEIGHT, DEFAULT_CANVAS_WIDTH

logger = logging.getLogger(__name__)


class Direction(Enum):
    """Orthogonal neighbor directions, in lookup order."""

    LEFT = (-1, 0)
    RIGHT = (1, 0)
    UP = (0, -1)
    DOWN = (0, 1)

    @property
    def dx(self) -> int:
        return self.value[0]

    @property
    def dy(self) -> int:
        return self.value[1]


@dataclass(frozen=True)
class Neighbor:
    """An occupied cell adjacent to a queried cell."""

    component: Component
    direction: Direction
    x: int
    y: int


class Grid:
    """
    Cell-indexed registry of placed components.

    The canvas is divided into ``cols`` x ``rows`` square cells. Each cell
    holds at most one component reference; a component larger than one
    cell (a gate) is referenced from every cell it covers. The grid is the
    single authority on adjacency: components never store their neighbors.
    """

    def __init__(
        self,
        width: int = DEFAULT_CANVAS_WIDTH,
        height: int = DEFAULT_CANVAS_HEIGHT,
        cell_size: int = CELL_SIZE,
    ):
        """
        Initialize an empty grid.

        Args:
            width: Canvas width in pixels
            height: Canvas height in pixels
            cell_size: Size of each grid cell in pixels
        """
        self.width = width
        self.height = height
        self.cell_size = cell_size
        self.cols = width // cell_size
        self.rows = height // cell_size
        self.cells: List[List[Optional[Component]]] = self._empty_cells(self.cols, self.rows)

    @staticmethod
    def _empty_cells(cols: int, rows: int) -> List[List[Optional[Component]]]:
        return [[None] * cols for _ in range(rows)]

    # ------------------------------------------------------------------
    # Coordinates
    # ------------------------------------------------------------------

    def pixel_to_grid(self, x: float, y: float) -> Tuple[int, int]:
        """Cell containing pixel (x, y). May be out of bounds."""
        return (int(x // self.cell_size), int(y // self.cell_size))

    def grid_to_pixel(self, cell_x: int, cell_y: int) -> Tuple[int, int]:
        """Top-left pixel of a cell."""
        return (cell_x * self.cell_size, cell_y * self.cell_size)

    def snap_to_grid(self, x: float, y: float) -> Tuple[int, int]:
        """Snap a pixel position to the top-left of its cell."""
        return self.grid_to_pixel(*self.pixel_to_grid(x, y))

    def is_valid_position(self, cell_x: int, cell_y: int) -> bool:
        return 0 <= cell_x < self.cols and 0 <= cell_y < self.rows

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_component(self, cell_x: int, cell_y: int) -> Optional[Component]:
        """Occupant of a cell, or None for empty or out-of-bounds cells."""
        if not self.is_valid_position(cell_x, cell_y):
            return None
        return self.cells[cell_y][cell_x]

    def get_component_at_pixel(self, x: float, y: float) -> Optional[Component]:
        return self.get_component(*self.pixel_to_grid(x, y))

    def is_empty(self, cell_x: int, cell_y: int) -> bool:
        """True for an in-bounds cell with no occupant."""
        return self.is_valid_position(cell_x, cell_y) and self.cells[cell_y][cell_x] is None

    def is_area_empty(self, cell_x: int, cell_y: int, cells_wide: int, cells_high: int) -> bool:
        """True when every cell of the rectangle is in bounds and unoccupied."""
        return all(
            self.is_empty(cell_x + dx, cell_y + dy)
            for dy in range(cells_high)
            for dx in range(cells_wide)
        )

    def neighbors(self, cell_x: int, cell_y: int) -> List[Neighbor]:
        """Occupants of the four adjacent cells, in order left, right, up, down."""
        found = []
        for direction in Direction:
            nx, ny = cell_x + direction.dx, cell_y + direction.dy
            occupant = self.get_component(nx, ny)
            if occupant is not None:
                found.append(Neighbor(occupant, direction, nx, ny))
        return found

    def component_neighbors(self, component: Component) -> List[Component]:
        """Distinct components adjacent to any cell of a component's footprint."""
        seen = {component.id}
        found = []
        for cell_x, cell_y in component.footprint():
            for neighbor in self.neighbors(cell_x, cell_y):
                if neighbor.component.id not in seen:
                    seen.add(neighbor.component.id)
                    found.append(neighbor.component)
        return found

    def components(self) -> List[Component]:
        """Distinct placed components in row-major order of their first covered cell."""
        return list(self._iter_distinct())

    def find_components(self, kind: ComponentKind) -> List[Component]:
        return [c for c in self._iter_distinct() if c.kind == kind]

    def _iter_distinct(self) -> Iterator[Component]:
        seen = set()
        for row in self.cells:
            for occupant in row:
                if occupant is not None and occupant.id not in seen:
                    seen.add(occupant.id)
                    yield occupant

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def place(self, component: Component, cell_x: int, cell_y: int) -> bool:
        """
        Place a component with its footprint origin at (cell_x, cell_y).

        Fails without touching the grid if any footprint cell is out of
        bounds or occupied. On success every covered cell references the
        component and its grid and pixel coordinates are updated.
        """
        if not self.is_area_empty(cell_x, cell_y, component.cells_wide, component.cells_high):
            logger.debug(
                f"Cannot place {component.kind.value} at ({cell_x}, {cell_y}): "
                "cell occupied or out of bounds"
            )
            return False

        component.grid_x = cell_x
        component.grid_y = cell_y
        component.cell_size = self.cell_size
        component.x, component.y = self.grid_to_pixel(cell_x, cell_y)
        for fx, fy in component.footprint():
            self.cells[fy][fx] = component
        return True

    def remove(self, cell_x: int, cell_y: int) -> Optional[Component]:
        """
        Remove whatever component covers (cell_x, cell_y).

        The occupant's whole footprint is cleared, even when the queried
        cell is not its origin.
        """
        component = self.get_component(cell_x, cell_y)
        if component is None:
            return None
        self._clear_footprint(component)
        return component

    def _clear_footprint(self, component: Component) -> None:
        for fx, fy in component.footprint():
            if self.is_valid_position(fx, fy) and self.cells[fy][fx] is component:
                self.cells[fy][fx] = None

    def clear(self) -> None:
        """Empty every cell. Component objects are left untouched."""
        self.cells = self._empty_cells(self.cols, self.rows)

    def resize(self, width: int, height: int) -> List[Component]:
        """
        Resize the canvas and carry placed components forward.

        Components whose footprint still fits entirely in the new bounds
        keep their cells; the rest are dropped from the grid whole.

        Returns:
            Components that no longer fit and were dropped
        """
        kept = []
        dropped = []
        old = self.components()

        self.width = width
        self.height = height
        self.cols = width // self.cell_size
        self.rows = height // self.cell_size
        self.cells = self._empty_cells(self.cols, self.rows)

        for component in old:
            if all(self.is_valid_position(fx, fy) for fx, fy in component.footprint()):
                for fx, fy in component.footprint():
                    self.cells[fy][fx] = component
                kept.append(component)
            else:
                dropped.append(component)

        logger.info(
            f"Grid resized to {self.cols}x{self.rows} cells; "
            f"kept {len(kept)}, dropped {len(dropped)} components"
        )
        return dropped

    def __repr__(self) -> str:
        return f"Grid({self.cols}x{self.rows}, cell_size={self.cell_size})"
