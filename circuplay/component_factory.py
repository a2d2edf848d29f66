"""Factory for creating circuit components by kind name.

Kind names arrive from palette selections, imported files and API
requests, so an unknown name is an ordinary event: it is logged and
``None`` is returned rather than raising.
"""

import logging
from typing import Any, Optional

from circuplay.component_ids import IdGenerator
from circuplay.components import Component, ComponentKind
from circuplay.config.grid import CELL_SIZE

logger = logging.getLogger(__name__)


class ComponentFactory:
    """Creates components with ids that are unique for the factory's lifetime."""

    def __init__(self, id_generator: Optional[IdGenerator] = None, cell_size: int = CELL_SIZE):
        self._ids = id_generator or IdGenerator()
        self.cell_size = cell_size

    def create(self, kind: Any, x: int = 0, y: int = 0) -> Optional[Component]:
        """Create a component of the given kind at pixel position (x, y).

        Args:
            kind: A ComponentKind or its wire name (e.g. "and-gate")
            x: Initial pixel x (overwritten when placed on a grid)
            y: Initial pixel y

        Returns:
            The new component, or None if the kind is unknown
        """
        parsed = ComponentKind.parse(kind)
        if parsed is None:
            logger.warning(f"Unknown component type: {kind!r}")
            return None
        return Component(kind=parsed, id=self._ids.next_id(), x=x, y=y, cell_size=self.cell_size)

    @staticmethod
    def available_kinds() -> list:
        """Wire names of every creatable kind, in palette order."""
        return [kind.value for kind in ComponentKind]
