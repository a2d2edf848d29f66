"""Core circuit simulation engine.

This package contains the pure simulation logic for CircuPlay, with no UI
or web dependencies. Key modules include:

- components: Component kinds, behavior table and gate logic
- grid: Cell-indexed spatial registry of placed components
- simulator: Tick pipeline (power propagation and gate evaluation)
- persistence: Circuit documents and share codes
- scenarios: Example circuits
- workspace: Editing facade tying grid, factory and simulator together

Design note: this module exposes a small, explicit public API via ``__all__``.
Import helpers from their modules directly.
"""

from circuplay.components import Component, ComponentKind
from circuplay.grid import Grid
from circuplay.simulator import CircuitSimulator
from circuplay.workspace import Workspace

__version__ = "1.0.0"

# Public API of the core package. Keep this list intentionally small.
__all__ = [
    "CircuitSimulator",
    "Component",
    "ComponentKind",
    "Grid",
    "Workspace",
]
