def test_reserve_and_release(client):
    for _ in range(2):
        res = client.post("/api/inventory/reserve", json={"catalog_id": "candle-1"})
        assert res.status_code == 200
        assert res.json()["ok"] is True
    assert client.get("/api/inventory/reserved/candle-1").json()["reserved"] == 2

    res = client.post("/api/inventory/release", json={"catalog_id": "candle-1", "count": 2})
    assert res.json() == {"catalog_id": "candle-1", "released": 2, "reserved": 0}

    res = client.post("/api/inventory/release", json={"catalog_id": "candle-1", "count": 2})
    assert res.json()["released"] == 0
    assert res.json()["reserved"] == 0


def test_reserved_lists_expiries(client):
    client.post("/api/inventory/reserve", json={"catalog_id": "wax"})
    body = client.get("/api/inventory/reserved/wax").json()
    assert len(body["expires_at"]) == 1


def test_sweep(client):
    assert client.post("/api/inventory/sweep").json() == {"purged": 0}
