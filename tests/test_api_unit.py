from fastapi.testclient import TestClient

import backend.app.main as api
import main as entry


client = TestClient(api.app)


def test_calculate_returns_result_only() -> None:
    response = client.post("/api/calculate", json={"expression": "1/3+1/4", "operation": "evaluate"})
    assert response.status_code == 200
    assert response.json() == {"result": "7/12"}


def test_calculate_with_steps() -> None:
    response = client.post(
        "/api/calculate",
        json={"expression": "4x+2=2(x+6)", "operation": "solve", "variable": "x", "steps": True},
    )
    body = response.json()
    assert body["result"] == "5"
    assert body["steps"][-1] == "Simplify: x = 5"


def test_calculate_accepts_want_steps_spelling() -> None:
    response = client.post(
        "/api/calculate", json={"expression": "2x+3x", "operation": "simplify", "wantSteps": True},
    )
    assert response.status_code == 200
    assert response.json()["steps"][0] == "Start with the expression: 2x + 3x"


def test_user_error_maps_to_400() -> None:
    response = client.post("/api/calculate", json={"expression": "2x+", "operation": "simplify"})
    assert response.status_code == 400
    assert "error" in response.json()


def test_missing_expression_is_rejected() -> None:
    response = client.post("/api/calculate", json={"operation": "simplify"})
    assert response.status_code == 422


def test_unexpected_error_maps_to_500(monkeypatch) -> None:
    def broken(*args, **kwargs):
        raise RuntimeError("boom")

    monkeypatch.setattr(api, "calculate", broken)
    response = TestClient(api.app, raise_server_exceptions=False).post(
        "/api/calculate", json={"expression": "1"})
    assert response.status_code == 500
    assert response.json() == {"error": "Internal error"}


def test_main_entry_runs_server(monkeypatch) -> None:
    called = {}

    def fake_run(app, host, port):
        called.update(app=app, host=host, port=port)

    monkeypatch.setenv("PORT", "8123")
    monkeypatch.setattr(entry.uvicorn, "run", fake_run)
    entry.main()
    assert called == {"app": api.app, "host": "0.0.0.0", "port": 8123}
