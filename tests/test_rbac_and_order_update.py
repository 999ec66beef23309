from conftest import API, login, make_user


def place_order(client, dish_id, quantity=1):
    r = client.post(f"{API}/orders", json={"items": [{"dishId": dish_id, "quantity": quantity}]})
    assert r.status_code == 201, r.text
    return r.json()["orderId"]


def test_role_change_requires_admin(client, user, admin):
    # regular user cannot change roles, not even their own
    login(client, user.email)
    r = client.put(f"{API}/users/{user.id}", json={"role": "admin"})
    assert r.status_code == 403
    assert r.json() == {"error": "Access denied: Only admins can change roles"}

    login(client, admin.email)
    r = client.put(f"{API}/users/{user.id}", json={"role": "admin"})
    assert r.status_code == 200
    assert r.json()["role"] == "admin"

    r = client.put(f"{API}/users/{admin.id}", json={"role": "user"})
    assert r.status_code == 403
    assert r.json() == {"error": "Access denied: You cannot change your own role"}


def test_user_listing_is_admin_only(client, user, admin):
    login(client, user.email)
    r = client.get(f"{API}/users")
    assert r.status_code == 403
    assert r.json() == {"error": "Access denied. Insufficient permissions."}

    login(client, admin.email)
    r = client.get(f"{API}/users")
    assert r.status_code == 200
    assert {u["email"] for u in r.json()} == {user.email, admin.email}


def test_users_can_only_see_themselves(client, db_session, user, admin):
    other = make_user(db_session, "bob@example.com")
    login(client, user.email)
    assert client.get(f"{API}/users/{user.id}").status_code == 200
    assert client.get(f"{API}/users/{other.id}").status_code == 403
    assert client.put(f"{API}/users/{other.id}", json={"address": "x"}).status_code == 403
    assert client.delete(f"{API}/users/{other.id}").status_code == 403

    login(client, admin.email)
    assert client.get(f"{API}/users/{other.id}").status_code == 200
    assert client.get(f"{API}/users/999").status_code == 404


def test_dish_management_is_admin_only(client, user, dish):
    login(client, user.email)
    r = client.post(f"{API}/dishes", data={"name": "Udon", "price": "7", "ingredients": "udon"})
    assert r.status_code == 403
    assert client.delete(f"{API}/dishes/{dish.id}").status_code == 403


def test_order_visibility(client, db_session, user, admin, dish):
    other = make_user(db_session, "bob@example.com")
    login(client, user.email)
    mine = place_order(client, dish.id)
    login(client, other.email)
    theirs = place_order(client, dish.id)

    assert [o["id"] for o in client.get(f"{API}/orders").json()] == [theirs]
    r = client.get(f"{API}/orders/{mine}")
    assert r.status_code == 403

    login(client, admin.email)
    assert [o["id"] for o in client.get(f"{API}/orders").json()] == [mine, theirs]
    assert client.get(f"{API}/orders/{mine}").status_code == 200
    assert client.get(f"{API}/orders/999").status_code == 404


def test_order_update_authorization(client, db_session, user, admin, dish):
    other = make_user(db_session, "bob@example.com")
    login(client, user.email)
    order_id = place_order(client, dish.id)

    r = client.put(f"{API}/orders/{order_id}", json={"paid": True})
    assert r.status_code == 200
    assert r.json() == {"message": "Order updated successfully"}

    login(client, other.email)
    r = client.put(f"{API}/orders/{order_id}", json={"status": "processing"})
    assert r.status_code == 403
    assert client.delete(f"{API}/orders/{order_id}").status_code == 403

    login(client, admin.email)
    r = client.put(f"{API}/orders/{order_id}", json={"status": "delivering"})
    assert r.status_code == 200
    order = client.get(f"{API}/orders/{order_id}").json()
    assert order["status"] == "delivering"
    assert order["paid"] is True
    assert order["deliveringAt"] is not None
    assert order["processingAt"] is None


def test_order_status_rules_over_http(client, user, dish):
    login(client, user.email)
    order_id = place_order(client, dish.id)

    r = client.put(f"{API}/orders/{order_id}", json={})
    assert r.status_code == 400
    assert r.json() == {"error": "No fields provided for update"}

    r = client.put(f"{API}/orders/{order_id}", json={"status": "eaten"})
    assert r.status_code == 400

    assert client.put(f"{API}/orders/{order_id}", json={"status": "completed"}).status_code == 200
    r = client.put(f"{API}/orders/{order_id}", json={"status": "processing"})
    assert r.status_code == 409
    assert r.json() == {"error": "Invalid status transition from completed to processing"}


def test_owner_deletes_order(client, user, dish):
    login(client, user.email)
    order_id = place_order(client, dish.id, quantity=3)
    r = client.delete(f"{API}/orders/{order_id}")
    assert r.status_code == 200
    assert r.json() == {"message": "Order deleted successfully"}
    assert client.get(f"{API}/orders/{order_id}").status_code == 404


def test_user_with_active_order_cannot_be_deleted(client, user, dish):
    login(client, user.email)
    place_order(client, dish.id)
    r = client.delete(f"{API}/users/{user.id}")
    assert r.status_code == 409
    assert "active orders" in r.json()["error"]
