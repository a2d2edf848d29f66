"""Typed component identifiers.

Every component gets a ``ComponentId`` when the factory creates it. The
simulator uses ids for its visited sets during power propagation, and the
rendering boundary reports them so a client can track a component across
ticks even after it has been moved.

    gen = IdGenerator()
    first = gen.next_id()   # ComponentId(1)
    print(first)            # "Component#1"
    first == 1              # True, ids compare to raw ints

Ids are never reused within one generator, including after removals.
"""

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class ComponentId:
    """Immutable, hashable identifier for a placed component."""

    value: int
    _prefix: str = "Component"

    def __post_init__(self) -> None:
        if not isinstance(self.value, int):
            raise TypeError(f"ID value must be int, got {type(self.value).__name__}")
        if self.value < 0:
            raise ValueError(f"ID value must be non-negative, got {self.value}")

    def __str__(self) -> str:
        return f"{self._prefix}#{self.value}"

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.value})"

    def __eq__(self, other: Any) -> bool:
        """Compare to another id or a raw int."""
        if isinstance(other, ComponentId):
            return self.value == other.value
        if isinstance(other, int):
            return self.value == other
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self.value)

    def __lt__(self, other: Any) -> bool:
        if isinstance(other, ComponentId):
            return self.value < other.value
        if isinstance(other, int):
            return self.value < other
        return NotImplemented

    def __int__(self) -> int:
        return self.value


class IdGenerator:
    """Hands out increasing component ids.

    Example:
        gen = IdGenerator()
        gen.next_id()  # ComponentId(1)
        gen.next_id()  # ComponentId(2)
    """

    def __init__(self, start_offset: int = 0) -> None:
        """Initialize the generator.

        Args:
            start_offset: Starting value for the counter (for testing)
        """
        self._counter = start_offset

    def next_id(self) -> ComponentId:
        """Generate the next component id."""
        self._counter += 1
        return ComponentId(self._counter)

    @property
    def issued(self) -> int:
        """Number of the most recently issued id (0 if none yet)."""
        return self._counter
