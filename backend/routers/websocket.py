"""WebSocket endpoint for live circuit updates and commands."""

from __future__ import annotations

import json
import logging

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from backend.circuit_runner import CircuitRunner

logger = logging.getLogger(__name__)


async def _handle_websocket(websocket: WebSocket, runner: CircuitRunner) -> None:
    client = websocket.client.host if websocket.client else "unknown"
    await websocket.accept()

    try:
        # Send the full state first so new clients render immediately.
        await websocket.send_bytes(runner.serialize_state())

        while True:
            try:
                message = await websocket.receive()
            except WebSocketDisconnect:
                break

            if message["type"] == "websocket.disconnect":
                break
            if message["type"] != "websocket.receive":
                continue

            raw_text = message.get("text")
            if raw_text is None and message.get("bytes"):
                try:
                    raw_text = message["bytes"].decode("utf-8")
                except UnicodeDecodeError:
                    await websocket.send_json(
                        {"success": False, "error": "Invalid message encoding."}
                    )
                    continue

            if not raw_text:
                continue

            try:
                payload = json.loads(raw_text)
            except json.JSONDecodeError:
                await websocket.send_json({"success": False, "error": "Invalid JSON payload."})
                continue

            command = payload.get("command") if isinstance(payload, dict) else None
            if not command:
                await websocket.send_json({"success": False, "error": "Missing command."})
                continue

            response = await runner.handle_command_async(command, payload.get("data"))
            await websocket.send_text(json.dumps(response))
    except WebSocketDisconnect:
        pass
    except Exception:
        logger.exception("WebSocket error for client %s", client)


def setup_router(runner: CircuitRunner) -> APIRouter:
    """Create the websocket router bound to a runner."""
    router = APIRouter()

    @router.websocket("/ws")
    async def websocket_circuit(websocket: WebSocket) -> None:
        await _handle_websocket(websocket, runner)

    return router
