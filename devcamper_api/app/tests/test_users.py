from fastapi.testclient import TestClient

from devcamper_api.app.tests.utils import API, create_admin, register


def test_user_routes_are_admin_only(client: TestClient, user_headers, publisher_headers) -> None:
    assert client.get(f"{API}/users").status_code == 401
    assert client.get(f"{API}/users", headers=user_headers).status_code == 403
    assert client.get(f"{API}/users", headers=publisher_headers).status_code == 403


def test_list_users_hides_secrets(client: TestClient, admin_headers, user_headers, publisher_headers) -> None:
    r = client.get(f"{API}/users", params={"role": "publisher"}, headers=admin_headers)
    assert r.status_code == 200
    body = r.json()
    assert body["count"] == 1
    assert body["data"][0]["email"] == "publisher@devcamper.io"
    assert "password" not in body["data"][0]

    r = client.get(f"{API}/users", params={"select": "email,password", "sort": "email"}, headers=admin_headers)
    assert all(set(user) <= {"id", "email"} for user in r.json()["data"])


def test_admin_crud(client: TestClient, admin_headers) -> None:
    r = client.post(
        f"{API}/users",
        json={"name": "Mod", "email": "mod@devcamper.io", "password": "123456", "role": "admin"},
        headers=admin_headers,
    )
    assert r.status_code == 201
    user_id = r.json()["data"]["id"]

    r = client.get(f"{API}/users/{user_id}", headers=admin_headers)
    assert r.json()["data"]["role"] == "admin"

    r = client.put(f"{API}/users/{user_id}", json={"role": "publisher"}, headers=admin_headers)
    assert r.status_code == 200
    assert r.json()["data"]["role"] == "publisher"

    assert client.get(f"{API}/users/missing", headers=admin_headers).status_code == 404


def test_deleting_a_user_deactivates_it(client: TestClient, admin_headers) -> None:
    headers = register(client, "leaving@devcamper.io")
    user_id = client.get(f"{API}/auth/me", headers=headers).json()["data"]["id"]

    r = client.delete(f"{API}/users/{user_id}", headers=admin_headers)
    assert r.status_code == 200

    assert client.get(f"{API}/auth/me", headers=headers).status_code == 401
    r = client.post(f"{API}/auth/login", json={"email": "leaving@devcamper.io", "password": "123456"})
    assert r.status_code == 401
    assert client.get(f"{API}/users/{user_id}", headers=admin_headers).json()["data"]["disabled"] is True


def test_admin_cannot_deactivate_self(client: TestClient, store) -> None:
    admin_id, headers = create_admin(store, "self@devcamper.io")
    r = client.delete(f"{API}/users/{admin_id}", headers=headers)
    assert r.status_code == 400
    assert client.get(f"{API}/auth/me", headers=headers).status_code == 200
