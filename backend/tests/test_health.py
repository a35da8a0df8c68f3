def test_health_endpoints(client):
    live = client.get("/api/health/live")
    assert live.status_code == 200
    assert live.json()["status"] == "ok"
    assert live.headers["X-Request-ID"]

    ready = client.get("/api/health/ready")
    assert ready.status_code in {200, 503}
    payload = ready.json()
    assert "database" in payload


def test_request_id_is_echoed(client):
    response = client.get("/api/health", headers={"X-Request-ID": "abc123"})

    assert response.status_code == 200
    assert response.headers["X-Request-ID"] == "abc123"
