"""Circuit document export, validation and share codes.

Document format (version 1.0):

    {
        "version": "1.0",
        "cellSize": 20,
        "components": [
            {"kind": "battery", "gridX": 0, "gridY": 0, "properties": {"powered": true}},
            {"kind": "switch", "gridX": 1, "gridY": 0,
             "properties": {"powered": false, "closed": true}}
        ]
    }

There is exactly one entry per component; a gate appears once, at its
footprint origin. Importing is two-step: ``parse_circuit_data`` checks
the whole document and produces a ``CircuitSnapshot``; ``build_circuit``
places the snapshot onto a fresh grid. Neither step touches a live
circuit, so a bad document can be rejected with nothing to undo.

Share codes carry the same circuit in a compact form
(``{"v", "g", "c": [{"t", "x", "y", "p"}]}``) as URL-safe base64 JSON.
"""

import base64
import binascii
import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List

from circuplay.component_factory import ComponentFactory
from circuplay.components import Component, ComponentKind
from circuplay.contracts import (
    CIRCUIT_FORMAT_VERSION,
    SHARE_CODE_VERSION,
    validate_format_version,
)
from circuplay.exceptions import FormatVersionError
from circuplay.grid import Grid
from circuplay.result import Err, Ok, Result

logger = logging.getLogger(__name__)

KNOWN_PROPERTIES = ("powered", "closed")


@dataclass(frozen=True)
class ComponentEntry:
    """One validated component record from a circuit document."""

    kind: ComponentKind
    grid_x: int
    grid_y: int
    properties: Dict[str, bool] = field(default_factory=dict)


@dataclass(frozen=True)
class CircuitSnapshot:
    """A validated circuit document, not yet placed on any grid."""

    version: str
    cell_size: int
    entries: List[ComponentEntry]


def export_components(components: Iterable[Component], cell_size: int) -> Dict[str, Any]:
    """Serialize components into a circuit document."""
    return {
        "version": CIRCUIT_FORMAT_VERSION,
        "cellSize": cell_size,
        "components": [
            {
                "kind": c.kind.value,
                "gridX": c.grid_x,
                "gridY": c.grid_y,
                "properties": c.get_properties(),
            }
            for c in components
        ],
    }


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _parse_entry(index: int, raw: Any) -> Result[ComponentEntry, str]:
    if not isinstance(raw, dict):
        return Err(f"Component {index} is not an object")

    kind = ComponentKind.parse(raw.get("kind"))
    if kind is None:
        return Err(f"Component {index} has unknown kind {raw.get('kind')!r}")

    grid_x, grid_y = raw.get("gridX"), raw.get("gridY")
    if not _is_int(grid_x) or not _is_int(grid_y):
        return Err(f"Component {index} ({kind.value}) has non-integer grid position")

    props = raw.get("properties", {})
    if props is None:
        props = {}
    if not isinstance(props, dict):
        return Err(f"Component {index} ({kind.value}) properties must be an object")

    kept = {}
    for key in KNOWN_PROPERTIES:
        if key not in props:
            continue
        if not isinstance(props[key], bool):
            return Err(f"Component {index} ({kind.value}) property {key!r} must be a boolean")
        kept[key] = props[key]

    return Ok(ComponentEntry(kind, grid_x, grid_y, kept))


def parse_circuit_data(data: Any) -> Result[CircuitSnapshot, str]:
    """Validate a circuit document.

    Unknown component kinds, non-integer positions and non-boolean values
    for known properties reject the whole document. Unknown property keys
    are dropped.
    """
    if not isinstance(data, dict):
        return Err("Circuit data must be an object")

    try:
        validate_format_version(data.get("version"))
    except FormatVersionError as e:
        return Err(str(e))

    cell_size = data.get("cellSize")
    if cell_size is not None and (not _is_int(cell_size) or cell_size <= 0):
        return Err("cellSize must be a positive integer")

    raw_components = data.get("components")
    if not isinstance(raw_components, list):
        return Err("Circuit data must contain a 'components' list")

    entries = []
    for index, raw in enumerate(raw_components):
        parsed = _parse_entry(index, raw)
        if parsed.is_err():
            return parsed
        entries.append(parsed.unwrap())

    return Ok(
        CircuitSnapshot(
            version=data.get("version") or CIRCUIT_FORMAT_VERSION,
            cell_size=cell_size or 0,
            entries=entries,
        )
    )


def build_circuit(
    snapshot: CircuitSnapshot, grid: Grid, factory: ComponentFactory
) -> Result[List[Component], str]:
    """Create and place every component of a snapshot onto ``grid``.

    ``grid`` should be a scratch grid: on failure it is left partially
    filled and must be discarded by the caller.
    """
    if snapshot.cell_size and snapshot.cell_size != grid.cell_size:
        logger.warning(
            f"Circuit was saved with cellSize {snapshot.cell_size}; "
            f"keeping current cell size {grid.cell_size}"
        )

    placed = []
    for entry in snapshot.entries:
        component = factory.create(entry.kind)
        if component is None:
            return Err(f"Unknown component type: {entry.kind}")
        component.set_properties(entry.properties)
        if not grid.place(component, entry.grid_x, entry.grid_y):
            return Err(
                f"Cannot place {entry.kind.value} at ({entry.grid_x}, {entry.grid_y}): "
                "cell occupied or out of bounds"
            )
        placed.append(component)
    return Ok(placed)


# =============================================================================
# Share codes
# =============================================================================


def compress_circuit(data: Dict[str, Any]) -> Dict[str, Any]:
    """Shorten a circuit document's keys for sharing."""
    return {
        "v": SHARE_CODE_VERSION,
        "g": data.get("cellSize"),
        "c": [
            {"t": c["kind"], "x": c["gridX"], "y": c["gridY"], "p": c.get("properties", {})}
            for c in data.get("components", [])
        ],
    }


def decompress_circuit(compact: Dict[str, Any]) -> Dict[str, Any]:
    """Expand a compact share payload back into a circuit document."""
    components = compact.get("c")
    if not isinstance(components, list):
        components = []
    return {
        "version": CIRCUIT_FORMAT_VERSION,
        "cellSize": compact.get("g"),
        "components": [
            {"kind": c.get("t"), "gridX": c.get("x"), "gridY": c.get("y"), "properties": c.get("p")}
            if isinstance(c, dict)
            else c
            for c in components
        ],
    }


def encode_share_code(data: Dict[str, Any]) -> str:
    """Encode a circuit document as a URL-safe share code."""
    payload = json.dumps(compress_circuit(data), separators=(",", ":"))
    return base64.urlsafe_b64encode(payload.encode("utf-8")).decode("ascii").rstrip("=")


def decode_share_code(code: str) -> Result[Dict[str, Any], str]:
    """Decode a share code into a circuit document.

    The returned document still has to go through ``parse_circuit_data``.
    """
    if not isinstance(code, str) or not code.strip():
        return Err("Share code is empty")
    code = code.strip()
    padded = code + "=" * (-len(code) % 4)
    try:
        raw = base64.urlsafe_b64decode(padded.encode("ascii"))
        compact = json.loads(raw.decode("utf-8"))
    except (binascii.Error, UnicodeError, ValueError) as e:
        return Err(f"Invalid share code: {e}")
    if not isinstance(compact, dict):
        return Err("Invalid share code: payload is not an object")
    try:
        validate_format_version(compact.get("v"), SHARE_CODE_VERSION)
    except FormatVersionError as e:
        return Err(str(e))
    return Ok(decompress_circuit(compact))
