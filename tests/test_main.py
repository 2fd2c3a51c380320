def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200

    data = response.json()
    assert data["status"] == "healthy"
    assert data["checks"] == {"database": "ok", "notificationQueue": "ok"}


def test_unknown_route(client):
    response = client.get("/api/v1/nowhere")
    assert response.status_code == 404
    assert response.json()["detail"] == "No route for GET /api/v1/nowhere"


def test_api_info(client):
    data = client.get("/api/v1/info").json()
    assert data["slotIntervalMinutes"] == 30
    assert data["endpoints"]["book"] == "/api/v1/appointments/book"
