import re

from fastapi.testclient import TestClient

from devcamper_api.app.core.store import USERS
from devcamper_api.app.tests.utils import API, RecordingMailer, auth_headers, register


def test_register_returns_token_and_cookie(client: TestClient) -> None:
    r = client.post(
        f"{API}/auth/register",
        json={"name": "John Doe", "email": "John@Gmail.com", "password": "123456", "role": "publisher"},
    )
    assert r.status_code == 200
    body = r.json()
    assert body["success"] is True
    assert r.cookies.get("token") == body["token"]

    me = client.get(f"{API}/auth/me", headers=auth_headers(body["token"]))
    assert me.status_code == 200
    user = me.json()["data"]
    assert user["email"] == "john@gmail.com"
    assert user["role"] == "publisher"
    assert "password" not in user


def test_cookie_authenticates_without_header(client: TestClient) -> None:
    client.post(f"{API}/auth/register", json={"name": "Jane", "email": "jane@gmail.com", "password": "123456"})
    r = client.get(f"{API}/auth/me")
    assert r.status_code == 200
    assert r.json()["data"]["email"] == "jane@gmail.com"


def test_register_rejects_admin_role_and_short_password(client: TestClient) -> None:
    r = client.post(
        f"{API}/auth/register",
        json={"name": "Eve", "email": "eve@gmail.com", "password": "123456", "role": "admin"},
    )
    assert r.status_code == 400
    assert r.json()["success"] is False

    r = client.post(f"{API}/auth/register", json={"name": "Eve", "email": "eve@gmail.com", "password": "123"})
    assert r.status_code == 400


def test_duplicate_email_is_rejected(client: TestClient) -> None:
    register(client, "dup@gmail.com")
    r = client.post(f"{API}/auth/register", json={"name": "Dup", "email": "dup@gmail.com", "password": "123456"})
    assert r.status_code == 400
    assert r.json() == {"success": False, "error": "Duplicate field value entered"}


def test_login(client: TestClient) -> None:
    register(client, "login@gmail.com", password="secret1")
    r = client.post(f"{API}/auth/login", json={"email": "login@gmail.com", "password": "secret1"})
    assert r.status_code == 200
    assert r.json()["token"]

    r = client.post(f"{API}/auth/login", json={"email": "login@gmail.com", "password": "wrong!!"})
    assert r.status_code == 401
    assert r.json() == {"success": False, "error": "Invalid credentials"}

    r = client.post(f"{API}/auth/login", json={"email": "nobody@gmail.com", "password": "secret1"})
    assert r.status_code == 401


def test_me_requires_authentication(client: TestClient) -> None:
    r = client.get(f"{API}/auth/me")
    assert r.status_code == 401
    r = client.get(f"{API}/auth/me", headers=auth_headers("not.a.token"))
    assert r.status_code == 401


def test_logout_clears_cookie(client: TestClient) -> None:
    r = client.get(f"{API}/auth/logout")
    assert r.status_code == 200
    assert r.json() == {"success": True, "data": {}}
    assert "token=" in r.headers["set-cookie"]


def test_update_details(client: TestClient, user_headers) -> None:
    r = client.put(f"{API}/auth/updatedetails", json={"name": "Renamed"}, headers=user_headers)
    assert r.status_code == 200
    assert r.json()["data"]["name"] == "Renamed"
    assert r.json()["data"]["email"] == "user@devcamper.io"


def test_update_password(client: TestClient, user_headers) -> None:
    r = client.put(
        f"{API}/auth/updatepassword",
        json={"currentPassword": "wrong1", "newPassword": "newpass1"},
        headers=user_headers,
    )
    assert r.status_code == 401

    r = client.put(
        f"{API}/auth/updatepassword",
        json={"currentPassword": "123456", "newPassword": "newpass1"},
        headers=user_headers,
    )
    assert r.status_code == 200
    client.cookies.clear()
    r = client.post(f"{API}/auth/login", json={"email": "user@devcamper.io", "password": "newpass1"})
    assert r.status_code == 200


def test_forgot_and_reset_password(client: TestClient, mailer: RecordingMailer, user_headers) -> None:
    r = client.post(f"{API}/auth/forgotpassword", json={"email": "user@devcamper.io"})
    assert r.status_code == 200
    assert len(mailer.sent) == 1
    to, _, message = mailer.sent[0]
    assert to == "user@devcamper.io"
    token = re.search(r"/auth/resetpassword/([0-9a-f]+)", message).group(1)

    r = client.put(f"{API}/auth/resetpassword/{token}", json={"password": "resetpw1"})
    assert r.status_code == 200
    assert r.json()["token"]
    client.cookies.clear()

    r = client.post(f"{API}/auth/login", json={"email": "user@devcamper.io", "password": "resetpw1"})
    assert r.status_code == 200

    r = client.put(f"{API}/auth/resetpassword/{token}", json={"password": "another1"})
    assert r.status_code == 400
    assert r.json()["error"] == "Invalid token"


def test_forgot_password_unknown_email(client: TestClient) -> None:
    r = client.post(f"{API}/auth/forgotpassword", json={"email": "ghost@devcamper.io"})
    assert r.status_code == 404


def test_failed_reset_mail_clears_token(client: TestClient, store, mailer: RecordingMailer, user_headers) -> None:
    mailer.fail = True
    r = client.post(f"{API}/auth/forgotpassword", json={"email": "user@devcamper.io"})
    assert r.status_code == 500
    assert r.json() == {"success": False, "error": "Email could not be sent"}
    user = store.find_all(USERS)[0]
    assert "resetPasswordToken" not in user
    assert "resetPasswordExpire" not in user
