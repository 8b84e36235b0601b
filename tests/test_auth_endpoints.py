"""HTTP tests for account registration and session authentication."""

import threading

import pytest
from fastapi.testclient import TestClient

from calorie_tracker.api.app import create_app
from calorie_tracker.containers import AppContainer
from calorie_tracker.domain.users import UserRecord

ALICE = {"username": "Alice_01", "password": "s3cret-pass", "nickname": "Alice"}


def _register(client: TestClient, **overrides: str) -> dict:
    response = client.post("/api/auth/register", json={**ALICE, **overrides})
    assert response.status_code == 201
    return response.json()


def _login(client: TestClient, password: str = ALICE["password"]) -> None:
    response = client.post(
        "/api/auth/login", json={"username": "alice_01", "password": password}
    )
    assert response.status_code == 200


def test_register_returns_public_user(client: TestClient) -> None:
    body = _register(client)

    assert body["success"] is True
    assert body["user"]["username"] == "alice_01"
    assert body["user"]["nickname"] == "Alice"
    assert "passwordHash" not in body["user"]
    assert "password_hash" not in body["user"]


def test_register_duplicate_username(client: TestClient) -> None:
    _register(client)

    response = client.post(
        "/api/auth/register", json={**ALICE, "username": "ALICE_01"}
    )

    assert response.status_code == 400
    assert response.json()["error"] == "Username already exists"


@pytest.mark.parametrize(
    "overrides",
    [
        {"username": "al"},
        {"username": "bad name!"},
        {"password": "short"},
        {"password": "x" * 73},
        {"nickname": "  "},
    ],
)
def test_register_rejects_invalid_fields(client: TestClient, overrides: dict) -> None:
    response = client.post("/api/auth/register", json={**ALICE, **overrides})

    assert response.status_code == 400
    assert response.json()["success"] is False


def test_register_requires_all_fields(client: TestClient) -> None:
    response = client.post("/api/auth/register", json={"username": "bob"})

    assert response.status_code == 400
    assert response.json()["error"] == "Validation failed"


def test_login_and_me(client: TestClient) -> None:
    _register(client)

    login = client.post(
        "/api/auth/login", json={"username": "ALICE_01", "password": "s3cret-pass"}
    )
    me = client.get("/api/auth/me")

    assert login.status_code == 200
    assert login.json()["user"]["username"] == "alice_01"
    assert me.status_code == 200
    assert me.json()["user"]["nickname"] == "Alice"


def test_status_reflects_authentication(client: TestClient) -> None:
    anonymous = client.get("/api/auth/status").json()
    _register(client)
    _login(client)
    signed_in = client.get("/api/auth/status").json()

    assert anonymous["isAuthenticated"] is False
    assert anonymous["user"] is None
    assert signed_in["isAuthenticated"] is True
    assert signed_in["user"]["username"] == "alice_01"


def test_login_failures_are_indistinguishable(client: TestClient) -> None:
    _register(client)

    wrong_password = client.post(
        "/api/auth/login", json={"username": "alice_01", "password": "nope-nope"}
    )
    unknown_user = client.post(
        "/api/auth/login", json={"username": "mallory", "password": "nope-nope"}
    )

    assert wrong_password.status_code == 401
    assert unknown_user.status_code == 401
    assert wrong_password.json()["error"] == unknown_user.json()["error"]
    assert wrong_password.json()["error"] == "Invalid username or password"


def test_me_requires_authentication(client: TestClient) -> None:
    response = client.get("/api/auth/me")

    assert response.status_code == 401
    assert response.json()["error"] == "Authentication required"


def test_logout_clears_session_and_history(client: TestClient) -> None:
    _register(client)
    _login(client)
    client.post("/api/analyze", json={"description": "apple"})

    response = client.post("/api/auth/logout")

    assert response.status_code == 200
    assert client.get("/api/auth/me").status_code == 401
    assert client.get("/api/breadcrumbs").json()["data"] == []


def test_change_password(client: TestClient) -> None:
    _register(client)
    _login(client)

    response = client.post(
        "/api/auth/password",
        json={"currentPassword": "s3cret-pass", "newPassword": "n3w-secret"},
    )
    client.post("/api/auth/logout")

    assert response.status_code == 200
    old = client.post(
        "/api/auth/login", json={"username": "alice_01", "password": "s3cret-pass"}
    )
    assert old.status_code == 401
    _login(client, password="n3w-secret")


def test_change_password_rejects_wrong_current(client: TestClient) -> None:
    _register(client)
    _login(client)

    response = client.post(
        "/api/auth/password",
        json={"currentPassword": "wrong-pass", "newPassword": "n3w-secret"},
    )

    assert response.status_code == 401


def test_change_password_requires_authentication(client: TestClient) -> None:
    response = client.post(
        "/api/auth/password",
        json={"currentPassword": "s3cret-pass", "newPassword": "n3w-secret"},
    )

    assert response.status_code == 401


def test_delete_account(client: TestClient) -> None:
    _register(client)
    _login(client)

    response = client.delete("/api/auth/account")

    assert response.status_code == 200
    assert client.get("/api/auth/status").json()["isAuthenticated"] is False
    relogin = client.post(
        "/api/auth/login", json={"username": "alice_01", "password": "s3cret-pass"}
    )
    assert relogin.status_code == 401


def test_password_hashing_does_not_block_other_requests(
    container: AppContainer, monkeypatch: pytest.MonkeyPatch
) -> None:
    entered = threading.Event()
    released = threading.Event()
    outcome: dict[str, object] = {}
    verify = container.user_service.verify_credentials

    def slow_verify(username: str, password: str) -> UserRecord:
        entered.set()
        outcome["released"] = released.wait(timeout=2)
        return verify(username, password)

    with TestClient(create_app(container)) as client:
        _register(client)
        monkeypatch.setattr(container.user_service, "verify_credentials", slow_verify)
        login = threading.Thread(target=_login, args=(client,))
        login.start()
        assert entered.wait(timeout=2)

        health = client.get("/health")
        released.set()
        login.join(timeout=5)

    assert health.status_code == 200
    assert outcome["released"] is True


def test_delete_route_alias(client: TestClient) -> None:
    _register(client)
    _login(client)

    response = client.delete("/api/auth/delete")

    assert response.status_code == 200
    assert client.get("/api/auth/me").status_code == 401
