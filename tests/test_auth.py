import pytest
from jose import jwt

from taskflow.core.config import settings
from taskflow.core.security import create_access_token, decode_access_token


def test_register_success(client):
    """Test : créer un utilisateur avec succès"""
    response = client.post("/auth/register", json={"email": "alice@example.com", "password": "password123"})
    assert response.status_code == 201
    data = response.json()
    assert data["email"] == "alice@example.com"
    assert data["role"] == "user"
    assert "id" in data
    assert "password_hash" not in data


def test_register_duplicate_email(client):
    client.post("/auth/register", json={"email": "dup@example.com", "password": "password123"})
    response = client.post("/auth/register", json={"email": "dup@example.com", "password": "password123"})
    assert response.status_code == 400
    assert response.json() == {"error": "Email already in use"}


def test_register_short_password(client):
    response = client.post("/auth/register", json={"email": "short@example.com", "password": "abc"})
    assert response.status_code == 400
    assert "password" in response.json()["error"]


def test_register_admin_requires_admin(client, make_user, auth_headers):
    body = {"email": "boss@example.com", "password": "password123", "role": "admin"}

    response = client.post("/auth/register", json=body)
    assert response.status_code == 403

    regular = make_user("regular@example.com")
    response = client.post("/auth/register", json=body, headers=auth_headers(regular))
    assert response.status_code == 403


def test_register_ignores_stale_token(client):
    stale = create_access_token(999, "admin")
    for i, token in enumerate(["garbage", stale]):
        body = {"email": f"user{i}@example.com", "password": "password123"}
        response = client.post("/auth/register", json=body, headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 201
        assert response.json()["role"] == "user"

    # un token inutilisable ne donne jamais le droit de créer un admin
    body = {"email": "boss@example.com", "password": "password123", "role": "admin"}
    response = client.post("/auth/register", json=body, headers={"Authorization": f"Bearer {stale}"})
    assert response.status_code == 403


def test_admin_creates_admin(client, admin_user, auth_headers):
    response = client.post(
        "/auth/register",
        json={"email": "second-admin@example.com", "password": "password123", "role": "admin"},
        headers=auth_headers(admin_user),
    )
    assert response.status_code == 201
    assert response.json()["role"] == "admin"


def test_login_success(client, make_user):
    """Test : se connecter avec succès"""
    user = make_user("login@example.com", password="password123")
    response = client.post("/auth/login", json={"email": "login@example.com", "password": "password123"})
    assert response.status_code == 200
    data = response.json()
    assert data["token_type"] == "bearer"
    assert data["user"] == {
        "id": user.id,
        "email": "login@example.com",
        "role": "user",
        "created_at": data["user"]["created_at"],
    }

    payload = decode_access_token(data["token"])
    assert payload["user_id"] == user.id
    assert payload["role"] == "user"


def test_login_wrong_password(client, make_user):
    make_user("wrongpass@example.com", password="correctpassword")
    response = client.post("/auth/login", json={"email": "wrongpass@example.com", "password": "nope"})
    assert response.status_code == 401
    assert response.json() == {"error": "Invalid email or password"}


def test_login_unknown_email(client):
    response = client.post("/auth/login", json={"email": "ghost@example.com", "password": "whatever"})
    assert response.status_code == 401


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


@pytest.mark.parametrize("method,path", [
    ("get", "/tasks"),
    ("get", "/tasks/1"),
    ("post", "/tasks"),
    ("put", "/tasks/1"),
    ("delete", "/tasks/1"),
    ("post", "/tasks/1/attachments"),
    ("delete", "/tasks/1/attachments/report.pdf"),
    ("get", "/users"),
    ("get", "/users/1"),
    ("put", "/users/1"),
    ("delete", "/users/1"),
])
def test_routes_require_token(client, method, path):
    response = getattr(client, method)(path)
    assert response.status_code == 401
    assert response.json() == {"error": "Missing token"}


def test_invalid_token(client):
    response = client.get("/tasks", headers={"Authorization": "Bearer not-a-jwt"})
    assert response.status_code == 401
    assert response.json() == {"error": "Invalid token"}


def test_wrong_scheme(client, make_user):
    user = make_user("scheme@example.com")
    token = create_access_token(user.id, user.role)
    response = client.get("/tasks", headers={"Authorization": f"Token {token}"})
    assert response.status_code == 401


def test_token_of_deleted_user(client):
    token = create_access_token(999, "admin")
    response = client.get("/tasks", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 401


def test_token_with_wrong_type_rejected():
    token = jwt.encode({"user_id": 1, "role": "user", "type": "refresh"}, settings.JWT_SECRET, algorithm="HS256")
    assert decode_access_token(token) is None


def test_unknown_route_uses_error_body(client):
    response = client.get("/nope")
    assert response.status_code == 404
    assert "error" in response.json()
