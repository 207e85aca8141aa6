from fastapi.testclient import TestClient


def test_health_and_db_health(app, monkeypatch):
    from backend.hiresphere import main

    # The production app's startup hook would initialise logging and tables.
    monkeypatch.setattr(main, "configure_logging", lambda: None)
    with TestClient(main.app) as c:
        assert c.get("/health").json()["service"] == "HireSphere API"
        r = c.get("/db/health")
        assert r.status_code == 200, r.text
        assert r.json() == {"status": "ok"}


def test_unknown_route_uses_error_envelope(client):
    r = client.get("/api/nothing-here")
    assert r.status_code == 404
    assert r.json() == {"success": False, "error": "Not Found", "status_code": 404}


def test_cors_allows_local_frontend(app):
    from backend.hiresphere import main

    c = TestClient(main.app)
    r = c.options(
        "/health",
        headers={"Origin": "http://localhost:5173", "Access-Control-Request-Method": "GET"},
    )
    assert r.headers.get("access-control-allow-origin") == "http://localhost:5173"
