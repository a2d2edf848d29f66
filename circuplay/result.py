"""Result type for explicit success/failure handling.

Circuit editing is full of operations that fail for ordinary reasons: a
cell is already occupied, a kind name is misspelled in an imported file,
a share code was truncated in transit. Those outcomes are returned as a
Result rather than raised, so the caller has to look at them.

Usage:
------
    result = workspace.place("led", 3, 4)
    if result.is_err():
        logger.debug(result.error)
        return
    led = result.unwrap()

    # Chaining: decode a share code, then import the decoded document
    decode_share_code(code).and_then(workspace.import_circuit)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Generic, TypeVar, Union

T = TypeVar("T")  # Success value type
E = TypeVar("E")  # Error type
U = TypeVar("U")


@dataclass(frozen=True)
class Ok(Generic[T]):
    """A successful operation result."""

    value: T

    def is_ok(self) -> bool:
        return True

    def is_err(self) -> bool:
        return False

    def unwrap(self) -> T:
        return self.value

    @property
    def error(self) -> None:
        return None

    def and_then(self, f: Callable[[T], "Result[U, E]"]) -> "Result[U, E]":
        """Feed the value to the next Result-returning step."""
        return f(self.value)

    def __repr__(self) -> str:
        return f"Ok({self.value!r})"


@dataclass(frozen=True)
class Err(Generic[E]):
    """A failed operation result carrying an error (usually a message)."""

    error: E

    def is_ok(self) -> bool:
        return False

    def is_err(self) -> bool:
        return True

    def unwrap(self) -> T:
        """Raises ValueError; check is_ok() first."""
        raise ValueError(f"Called unwrap on Err: {self.error}")

    @property
    def value(self) -> None:
        return None

    def and_then(self, f: Callable[[T], "Result[U, E]"]) -> "Err[E]":
        return self

    def __repr__(self) -> str:
        return f"Err({self.error!r})"


Result = Union[Ok[T], Err[E]]
