def test_health_endpoints(client):
    assert client.get("/api/health").json() == {"status": "ok"}
    assert client.get("/api/health/live").json()["status"] == "ok"


def test_ready_reports_schema_and_smtp(client):
    response = client.get("/api/health/ready")

    assert response.status_code == 200, response.text
    body = response.json()
    assert body["database"] == {"ok": True, "schema_ok": True, "missing": [], "error": None}
    assert body["smtp"]["configured"] is False
