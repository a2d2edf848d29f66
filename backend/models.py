"""Request and response models for the circuit API."""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from circuplay.config.grid import MAX_CANVAS_SIZE
from circuplay.config.simulation import MAX_STEP_COUNT


class PlaceRequest(BaseModel):
    """Place a new component with its footprint origin at (gridX, gridY)."""

    kind: str
    gridX: int
    gridY: int


class CellRequest(BaseModel):
    """Address a cell (toggle, press, release)."""

    gridX: int
    gridY: int


class MoveRequest(BaseModel):
    fromX: int
    fromY: int
    toX: int
    toY: int


class ResizeRequest(BaseModel):
    """New canvas size in pixels."""

    width: int = Field(ge=0, le=MAX_CANVAS_SIZE)
    height: int = Field(ge=0, le=MAX_CANVAS_SIZE)


class StepRequest(BaseModel):
    count: int = Field(default=1, ge=1, le=MAX_STEP_COUNT)


class ComponentPayload(BaseModel):
    kind: str
    gridX: int
    gridY: int
    properties: Dict[str, Any] = Field(default_factory=dict)


class CircuitPayload(BaseModel):
    """Circuit document as exported by the workspace."""

    version: Optional[str] = None
    cellSize: Optional[int] = None
    components: List[ComponentPayload] = Field(default_factory=list)


class SaveRequest(BaseModel):
    """Save under a name; without ``data`` the live circuit is saved."""

    name: str = Field(min_length=1, max_length=100)
    description: str = ""
    data: Optional[CircuitPayload] = None


class ShareCodeRequest(BaseModel):
    code: str


class CircuitSummary(BaseModel):
    """A saved circuit as listed by the store."""

    name: str
    description: str = ""
    timestamp: str
    component_count: int
