"""Saved circuit endpoints.

Endpoints:
    GET    /api/circuits          - List saved circuits
    POST   /api/circuits          - Save the current (or a supplied) circuit
    GET    /api/circuits/{name}   - Get a saved record without loading it
    POST   /api/circuits/{name}/load - Replace the live circuit with a saved one
    DELETE /api/circuits/{name}   - Delete a saved circuit
"""

import logging

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from backend.circuit_runner import CircuitRunner
from backend.circuit_store import CircuitStore
from backend.models import CircuitSummary, SaveRequest
from circuplay.exceptions import PersistenceError

logger = logging.getLogger(__name__)


def setup_router(runner: CircuitRunner, store: CircuitStore) -> APIRouter:
    """Create the storage router bound to a runner and a store."""
    router = APIRouter(prefix="/api/circuits", tags=["storage"])

    @router.get("")
    async def list_circuits():
        circuits = [CircuitSummary(**c).model_dump() for c in store.list_circuits()]
        return JSONResponse({"circuits": circuits, "count": len(circuits)})

    @router.post("")
    async def save_circuit(request: SaveRequest):
        data = request.data.model_dump() if request.data is not None else runner.locked_export()
        try:
            store.save(request.name, data, request.description)
        except PersistenceError as e:
            logger.error(f"Save failed: {e}")
            return JSONResponse({"error": str(e)}, status_code=400)
        return JSONResponse({"success": True, "name": request.name}, status_code=201)

    @router.get("/{name}")
    async def get_circuit(name: str):
        try:
            record = store.load(name)
        except PersistenceError as e:
            return JSONResponse({"error": str(e)}, status_code=400)
        if record is None:
            return JSONResponse({"error": f"Circuit {name!r} not found"}, status_code=404)
        return JSONResponse(record)

    @router.post("/{name}/load")
    async def load_circuit(name: str):
        try:
            record = store.load(name)
        except PersistenceError as e:
            return JSONResponse({"error": str(e)}, status_code=400)
        if record is None:
            return JSONResponse({"error": f"Circuit {name!r} not found"}, status_code=404)

        result = runner.locked(lambda ws: ws.import_circuit(record["data"]))
        if result.is_err():
            return JSONResponse({"error": result.error}, status_code=400)
        return JSONResponse({"success": True, "name": name, "imported": result.value})

    @router.delete("/{name}")
    async def delete_circuit(name: str):
        try:
            deleted = store.delete(name)
        except PersistenceError as e:
            return JSONResponse({"error": str(e)}, status_code=400)
        if not deleted:
            return JSONResponse({"error": f"Circuit {name!r} not found"}, status_code=404)
        return JSONResponse({"success": True})

    return router
