"""CircuPlay exception hierarchy.

Expected circuit conditions (placement conflicts, unknown kinds, bad
imports) are reported through ``circuplay.result`` values. The classes
here cover failures that callers are not expected to recover from inline.
"""


class CircuitError(Exception):
    """Root of all CircuPlay domain exceptions."""


class SimulationError(CircuitError):
    """Errors during simulation execution (tick pipeline, propagation)."""


class PersistenceError(CircuitError):
    """Errors during save / load / share-code operations."""


class FormatVersionError(PersistenceError):
    """A saved circuit uses a format version this build cannot read."""


class ConfigurationError(CircuitError):
    """Invalid or missing configuration."""
