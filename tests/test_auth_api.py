"""End-to-end tests for signup, login and token use."""

from __future__ import annotations

from fastapi.testclient import TestClient

from app.core.security import decode_access_token


def _signup(client: TestClient, username: str = "carol", password: str = "s3cret!") -> None:
    resp = client.post("/auth/signup", json={"username": username, "password": password})
    assert resp.status_code == 201


def test_signup_then_login_issues_usable_token(client: TestClient, make_product) -> None:
    _signup(client)

    resp = client.post("/auth/login", json={"username": "carol", "password": "s3cret!"})

    assert resp.status_code == 200
    token = resp.json()["token"]
    claims = decode_access_token(token)
    assert claims["username"] == "carol"
    assert claims["roles"] == ["user"]

    product = make_product(stock=1)
    order = client.post(
        "/api/orders",
        json={"product_id": product.id},
        headers={"Authorization": f"Bearer {token}"},
    )
    assert order.status_code == 201


def test_duplicate_signup_is_rejected(client: TestClient) -> None:
    _signup(client)

    resp = client.post("/auth/signup", json={"username": "carol", "password": "another1"})

    assert resp.status_code == 400
    assert resp.json()["error"]["message"] == "User already exists"


def test_signup_validation(client: TestClient) -> None:
    assert client.post("/auth/signup", json={"username": "ab", "password": "longenough"}).status_code == 422
    assert client.post("/auth/signup", json={"username": "dave", "password": "short"}).status_code == 422


def test_login_with_wrong_password(client: TestClient) -> None:
    _signup(client)

    resp = client.post("/auth/login", json={"username": "carol", "password": "nope-nope"})

    assert resp.status_code == 401
    assert resp.json()["error"]["message"] == "Invalid credentials"
    assert resp.headers["WWW-Authenticate"] == "Bearer"


def test_login_unknown_user(client: TestClient) -> None:
    resp = client.post("/auth/login", json={"username": "ghost", "password": "whatever"})

    assert resp.status_code == 401


def test_garbage_token_is_rejected(client: TestClient) -> None:
    resp = client.get("/api/products", headers={"Authorization": "Bearer not-a-jwt"})

    assert resp.status_code == 401
    assert resp.json()["error"]["message"] == "Invalid or expired token"
