"""Tests for the HTTP and WebSocket API."""

import json


def _place(client, kind, x, y):
    return client.post("/api/circuit/components", json={"kind": kind, "gridX": x, "gridY": y})


class TestHealth:
    def test_health(self, test_client):
        response = test_client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "ok", "tick": 0}


class TestEditing:
    """Placement, removal, movement and switch operations."""

    def test_place(self, test_client):
        response = _place(test_client, "battery", 0, 0)
        assert response.status_code == 201
        assert response.json()["component"]["kind"] == "battery"

    def test_place_unknown_kind(self, test_client):
        response = _place(test_client, "tesla-coil", 0, 0)
        assert response.status_code == 400
        assert "Unknown component type" in response.json()["error"]

    def test_place_conflict(self, test_client):
        _place(test_client, "wire", 0, 0)
        assert _place(test_client, "led", 0, 0).status_code == 409

    def test_place_out_of_bounds(self, test_client):
        assert _place(test_client, "and-gate", 0, 29).status_code == 409

    def test_place_validation_error(self, test_client):
        response = test_client.post("/api/circuit/components", json={"kind": "led"})
        assert response.status_code == 422

    def test_remove(self, test_client):
        _place(test_client, "led", 1, 1)
        response = test_client.delete("/api/circuit/components/1/1")
        assert response.status_code == 200
        assert response.json()["removed"]["kind"] == "led"
        assert test_client.delete("/api/circuit/components/1/1").status_code == 404

    def test_move(self, test_client):
        _place(test_client, "wire", 0, 0)
        response = test_client.post(
            "/api/circuit/move", json={"fromX": 0, "fromY": 0, "toX": 4, "toY": 4}
        )
        assert response.status_code == 200
        assert response.json()["component"]["gridX"] == 4

    def test_move_blocked(self, test_client):
        _place(test_client, "wire", 0, 0)
        _place(test_client, "wire", 4, 4)
        response = test_client.post(
            "/api/circuit/move", json={"fromX": 0, "fromY": 0, "toX": 4, "toY": 4}
        )
        assert response.status_code == 409

    def test_toggle_press_release(self, test_client):
        _place(test_client, "push-button", 2, 2)
        assert test_client.post("/api/circuit/toggle", json={"gridX": 2, "gridY": 2}).json()[
            "closed"
        ]
        assert test_client.post("/api/circuit/release", json={"gridX": 2, "gridY": 2}).json() == {
            "success": True,
            "closed": False,
        }
        assert test_client.post("/api/circuit/press", json={"gridX": 2, "gridY": 2}).json()[
            "closed"
        ]

    def test_toggle_empty_cell(self, test_client):
        response = test_client.post("/api/circuit/toggle", json={"gridX": 9, "gridY": 9})
        assert response.status_code == 400

    def test_clear(self, test_client):
        _place(test_client, "wire", 0, 0)
        test_client.post("/api/circuit/clear")
        assert test_client.get("/api/circuit").json()["components"] == []

    def test_resize(self, test_client):
        _place(test_client, "wire", 30, 20)
        response = test_client.post("/api/circuit/resize", json={"width": 200, "height": 200})
        assert [c["gridX"] for c in response.json()["dropped"]] == [30]
        state = test_client.get("/api/circuit").json()
        assert (state["cols"], state["rows"]) == (10, 10)

    def test_resize_rejects_oversized_canvas(self, test_client):
        response = test_client.post(
            "/api/circuit/resize", json={"width": 10**9, "height": 10**9}
        )
        assert response.status_code == 422
        state = test_client.get("/api/circuit").json()
        assert (state["cols"], state["rows"]) == (40, 30)


class TestSimulation:
    def test_tick_lights_led(self, test_client):
        _place(test_client, "battery", 0, 0)
        _place(test_client, "led", 1, 0)

        response = test_client.post("/api/circuit/tick", json={"count": 2})
        assert response.json() == {"success": True, "tick": 2}

        state = test_client.get("/api/circuit").json()
        assert state["tick"] == 2
        assert all(c["powered"] for c in state["components"])

    def test_tick_without_body_runs_once(self, test_client):
        assert test_client.post("/api/circuit/tick").json()["tick"] == 1

    def test_tick_count_bounds(self, test_client):
        assert test_client.post("/api/circuit/tick", json={"count": 0}).status_code == 422
        assert test_client.post("/api/circuit/tick", json={"count": 10**6}).status_code == 422

    def test_start_stop(self, test_client):
        assert test_client.post("/api/circuit/start").json()["changed"] is True
        assert test_client.get("/api/circuit").json()["running"] is True
        assert test_client.post("/api/circuit/stop").json()["changed"] is True
        assert test_client.post("/api/circuit/stop").json()["changed"] is False

    def test_validate_and_stats(self, test_client):
        _place(test_client, "led", 5, 5)
        body = test_client.get("/api/circuit/validate").json()
        assert body["valid"] is False
        assert "No power sources found" in body["issues"]

        stats = test_client.get("/api/circuit/stats").json()
        assert stats["leds"] == 1
        assert stats["total_components"] == 1


class TestImportExport:
    def test_export_import(self, test_client):
        _place(test_client, "battery", 0, 0)
        _place(test_client, "xor-gate", 1, 0)
        exported = test_client.get("/api/circuit/export").json()
        assert len(exported["components"]) == 2

        test_client.post("/api/circuit/clear")
        response = test_client.post("/api/circuit/import", json=exported)
        assert response.json() == {"success": True, "imported": 2}

    def test_bad_import(self, test_client):
        _place(test_client, "wire", 0, 0)
        response = test_client.post(
            "/api/circuit/import",
            json={"components": [{"kind": "antimatter", "gridX": 0, "gridY": 0}]},
        )
        assert response.status_code == 400
        assert len(test_client.get("/api/circuit").json()["components"]) == 1

    def test_share_code(self, test_client):
        _place(test_client, "switch", 3, 3)
        code = test_client.get("/api/circuit/share").json()["code"]
        test_client.post("/api/circuit/clear")

        response = test_client.post("/api/circuit/share", json={"code": code})
        assert response.json()["imported"] == 1
        assert test_client.post("/api/circuit/share", json={"code": "???"}).status_code == 400


class TestScenarios:
    def test_list(self, test_client):
        names = [s["name"] for s in test_client.get("/api/scenarios").json()["scenarios"]]
        assert "sr_latch" in names

    def test_load(self, test_client):
        response = test_client.post("/api/scenarios/and_gate")
        body = response.json()
        assert body["scenario"] == "and_gate"
        assert set(body["roles"]) == {"a", "b", "gate", "output"}
        assert test_client.get("/api/circuit").json()["scenario"] == "and_gate"

    def test_unknown(self, test_client):
        assert test_client.post("/api/scenarios/warp_drive").status_code == 404


class TestStorage:
    def test_save_list_load_delete(self, test_client):
        _place(test_client, "battery", 0, 0)
        response = test_client.post("/api/circuits", json={"name": "Demo", "description": "x"})
        assert response.status_code == 201

        listing = test_client.get("/api/circuits").json()
        assert listing["count"] == 1
        assert listing["circuits"][0]["component_count"] == 1

        record = test_client.get("/api/circuits/Demo").json()
        assert record["data"]["components"][0]["kind"] == "battery"

        test_client.post("/api/circuit/clear")
        loaded = test_client.post("/api/circuits/Demo/load").json()
        assert loaded["imported"] == 1

        assert test_client.delete("/api/circuits/Demo").json() == {"success": True}
        assert test_client.get("/api/circuits/Demo").status_code == 404
        assert test_client.delete("/api/circuits/Demo").status_code == 404

    def test_save_supplied_document(self, test_client):
        document = {"version": "1.0", "cellSize": 20, "components": [
            {"kind": "led", "gridX": 1, "gridY": 1, "properties": {"powered": False}},
        ]}
        response = test_client.post("/api/circuits", json={"name": "given", "data": document})
        assert response.status_code == 201
        record = test_client.get("/api/circuits/given").json()
        assert record["data"]["components"][0]["kind"] == "led"

    def test_save_bad_name(self, test_client):
        response = test_client.post("/api/circuits", json={"name": "///"})
        assert response.status_code == 400

    def test_load_missing(self, test_client):
        assert test_client.post("/api/circuits/missing/load").status_code == 404


class TestWebSocket:
    def test_initial_state_then_commands(self, test_client):
        with test_client.websocket_connect("/ws") as websocket:
            initial = json.loads(websocket.receive_bytes())
            assert initial["components"] == []
            assert initial["running"] is False

            websocket.send_text(
                json.dumps({"command": "place", "data": {"kind": "led", "gridX": 0, "gridY": 0}})
            )
            response = json.loads(websocket.receive_text())
            assert response["success"]
            assert response["component"]["kind"] == "led"

            websocket.send_text(json.dumps({"command": "self_destruct"}))
            assert json.loads(websocket.receive_text())["success"] is False

    def test_invalid_payloads(self, test_client):
        with test_client.websocket_connect("/ws") as websocket:
            websocket.receive_bytes()

            websocket.send_text("{not json")
            assert websocket.receive_json()["error"] == "Invalid JSON payload."

            websocket.send_text(json.dumps({"data": {}}))
            assert websocket.receive_json()["error"] == "Missing command."
