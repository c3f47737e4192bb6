def test_health_ok(client):
    res = client.get("/api/health")
    assert res.status_code == 200
    body = res.json()
    assert body["status"] == "ok"
    assert body["store"] is True
    assert body["payment_adapter"] is True
    assert body["payment_provider"] == "mock"
    assert body["cart_ready"] is True
