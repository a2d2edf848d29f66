"""Circuit editing and simulation endpoints.

Endpoints:
    GET    /api/circuit                       - Full render state
    POST   /api/circuit/components            - Place a component
    DELETE /api/circuit/components/{x}/{y}    - Remove the component covering a cell
    POST   /api/circuit/move                  - Move a component
    POST   /api/circuit/toggle                - Toggle a switch or push-button
    POST   /api/circuit/press                 - Close a contact
    POST   /api/circuit/release               - Release a push-button
    POST   /api/circuit/clear                 - Remove everything
    POST   /api/circuit/resize                - Resize the canvas
    POST   /api/circuit/tick                  - Run updates regardless of run state
    POST   /api/circuit/start                 - Start the simulation
    POST   /api/circuit/stop                  - Stop the simulation
    GET    /api/circuit/validate              - Wiring warnings
    GET    /api/circuit/stats                 - Component counts
    GET    /api/circuit/export                - Circuit document
    POST   /api/circuit/import                - Replace circuit from a document
    GET    /api/circuit/share                 - Share code for the current circuit
    POST   /api/circuit/share                 - Replace circuit from a share code
    GET    /api/scenarios                     - List example circuits
    POST   /api/scenarios/{name}              - Load an example circuit
"""

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Body
from fastapi.responses import JSONResponse

from backend.circuit_runner import CircuitRunner
from backend.models import (
    CellRequest,
    MoveRequest,
    PlaceRequest,
    ResizeRequest,
    ShareCodeRequest,
    StepRequest,
)
from circuplay.components import ComponentKind
from circuplay.result import Result
from circuplay.scenarios import SCENARIOS, list_scenarios

logger = logging.getLogger(__name__)


def _error(message: str, status_code: int = 400) -> JSONResponse:
    return JSONResponse({"error": message}, status_code=status_code)


def _respond(result: Result, status_code: int = 400, **body: Any) -> JSONResponse:
    if result.is_err():
        return _error(result.error, status_code)
    return JSONResponse({"success": True, **body})


def setup_router(runner: CircuitRunner) -> APIRouter:
    """Create the circuit router bound to a runner."""
    router = APIRouter(prefix="/api", tags=["circuit"])

    @router.get("/circuit")
    async def get_circuit():
        return JSONResponse(runner.get_state())

    @router.post("/circuit/components")
    async def place_component(request: PlaceRequest):
        if ComponentKind.parse(request.kind) is None:
            return _error(f"Unknown component type: {request.kind!r}")
        result = runner.locked(lambda ws: ws.place(request.kind, request.gridX, request.gridY))
        if result.is_err():
            return _error(result.error, 409)
        return JSONResponse(
            {"success": True, "component": result.value.to_state()}, status_code=201
        )

    @router.delete("/circuit/components/{grid_x}/{grid_y}")
    async def remove_component(grid_x: int, grid_y: int):
        removed = runner.locked(lambda ws: ws.remove_at(grid_x, grid_y))
        if removed is None:
            return _error(f"No component at ({grid_x}, {grid_y})", 404)
        return JSONResponse({"success": True, "removed": removed.to_state()})

    @router.post("/circuit/move")
    async def move_component(request: MoveRequest):
        result = runner.locked(
            lambda ws: ws.move(request.fromX, request.fromY, request.toX, request.toY)
        )
        component = result.value.to_state() if result.is_ok() else None
        return _respond(result, 409, component=component)

    @router.post("/circuit/toggle")
    async def toggle_component(request: CellRequest):
        result = runner.locked(lambda ws: ws.toggle_at(request.gridX, request.gridY))
        return _respond(result, closed=result.value)

    @router.post("/circuit/press")
    async def press_component(request: CellRequest):
        result = runner.locked(lambda ws: ws.press_at(request.gridX, request.gridY))
        return _respond(result, closed=True)

    @router.post("/circuit/release")
    async def release_component(request: CellRequest):
        result = runner.locked(lambda ws: ws.release_at(request.gridX, request.gridY))
        return _respond(result, closed=False)

    @router.post("/circuit/clear")
    async def clear_circuit():
        runner.locked(lambda ws: ws.clear())
        return JSONResponse({"success": True})

    @router.post("/circuit/resize")
    async def resize_circuit(request: ResizeRequest):
        dropped = runner.locked(lambda ws: ws.resize(request.width, request.height))
        return JSONResponse({"success": True, "dropped": [c.to_state() for c in dropped]})

    @router.post("/circuit/tick")
    async def step_circuit(request: Optional[StepRequest] = None):
        count = request.count if request is not None else 1
        tick = runner.locked(lambda ws: ws.step(count))
        return JSONResponse({"success": True, "tick": tick})

    @router.post("/circuit/start")
    async def start_simulation():
        changed = runner.locked(lambda ws: ws.start())
        return JSONResponse({"success": True, "running": True, "changed": changed})

    @router.post("/circuit/stop")
    async def stop_simulation():
        changed = runner.locked(lambda ws: ws.stop())
        return JSONResponse({"success": True, "running": False, "changed": changed})

    @router.get("/circuit/validate")
    async def validate_circuit():
        with runner.lock:
            issues = runner.workspace.validate()
        return JSONResponse({"valid": not issues, "issues": issues})

    @router.get("/circuit/stats")
    async def circuit_stats():
        with runner.lock:
            stats = runner.workspace.get_stats()
        return JSONResponse(stats)

    @router.get("/circuit/export")
    async def export_circuit():
        return JSONResponse(runner.locked_export())

    @router.post("/circuit/import")
    async def import_circuit(data: Dict[str, Any] = Body(...)):
        result = runner.locked(lambda ws: ws.import_circuit(data))
        return _respond(result, imported=result.value)

    @router.get("/circuit/share")
    async def share_circuit():
        with runner.lock:
            code = runner.workspace.share_code()
        return JSONResponse({"code": code})

    @router.post("/circuit/share")
    async def import_share_code(request: ShareCodeRequest):
        result = runner.locked(lambda ws: ws.import_share_code(request.code))
        return _respond(result, imported=result.value)

    @router.get("/scenarios")
    async def get_scenarios():
        return JSONResponse({"scenarios": list_scenarios()})

    @router.post("/scenarios/{name}")
    async def load_scenario(name: str):
        if name not in SCENARIOS:
            return _error(f"Unknown scenario: {name!r}", 404)
        result = runner.locked(lambda ws: ws.load_scenario(name))
        if result.is_err():
            return _error(result.error)
        roles = {role: c.id.value for role, c in result.value.roles.items()}
        return JSONResponse({"success": True, "scenario": name, "roles": roles})

    return router
