def add(client, **overrides):
    payload = {"id": "forest-ember", "name": "Forest Ember", "unit_price": 2500, "image": "/images/jen/forest-ember.jpg"}
    payload.update(overrides)
    return client.post("/api/cart/items", json=payload)


def reserved(client, catalog_id):
    return client.get(f"/api/inventory/reserved/{catalog_id}").json()["reserved"]


def test_get_cart_ready_and_empty(client):
    res = client.get("/api/cart")
    assert res.status_code == 200
    body = res.json()
    assert body["ready"] is True
    assert body["items"] == []
    assert body["subtotal"] == 0


def test_add_item_to_cart(client):
    res = add(client, quantity=2)
    assert res.status_code == 200
    body = res.json()
    assert body["item_id"] == "forest-ember"
    assert body["cart"]["open"] is True
    assert body["cart"]["items"][0]["quantity"] == 2
    assert body["cart"]["subtotal"] == 5000
    assert reserved(client, "forest-ember") == 2


def test_add_derives_id_from_name(client):
    res = client.post("/api/cart/items", json={"name": "Autumn Whispers", "unit_price": 2500})
    assert res.status_code == 200
    assert res.json()["item_id"].startswith("autumn-whispers-")


def test_add_rejects_bad_price(client):
    assert add(client, unit_price=0).status_code == 422


def test_decreasing_quantity_releases_holds(client):
    add(client, quantity=3)
    res = client.patch("/api/cart/items/forest-ember", json={"quantity": 1})
    assert res.status_code == 200
    assert res.json()["cart"]["items"][0]["quantity"] == 1
    assert reserved(client, "forest-ember") == 1


def test_zero_quantity_keeps_line(client):
    add(client)
    res = client.patch("/api/cart/items/forest-ember", json={"quantity": 0})
    assert res.json()["cart"]["items"][0]["quantity"] == 1


def test_set_quantity_unknown_item(client):
    assert client.patch("/api/cart/items/nope", json={"quantity": 2}).status_code == 404


def test_remove_item_releases_holds(client):
    add(client, quantity=2)
    res = client.delete("/api/cart/items/forest-ember")
    assert res.status_code == 200
    assert res.json()["cart"]["items"] == []
    assert reserved(client, "forest-ember") == 0
    # removing again is a no-op
    assert client.delete("/api/cart/items/forest-ember").status_code == 200


def test_clear_cart(client):
    add(client)
    res = client.delete("/api/cart")
    assert res.json()["cart"]["items"] == []


def test_external_write_shows_up(client, backend):
    from storefront.services.cart_store import CartStore

    other_tab = CartStore(backend.context("other-tab")).hydrate()
    other_tab.add({"id": "wax-melt", "name": "Wax Melt", "unit_price": 800})
    items = client.get("/api/cart").json()["items"]
    assert [i["id"] for i in items] == ["wax-melt"]


def test_close_drawer(client):
    add(client)
    res = client.patch("/api/cart", json={"open": False})
    assert res.status_code == 200
    assert res.json()["open"] is False
    assert client.get("/api/cart").json()["open"] is False
    assert len(client.get("/api/cart").json()["items"]) == 1
