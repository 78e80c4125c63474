from fastapi.testclient import TestClient

from factory_kpi.api.main import app
from factory_kpi.core.security import create_session_token


def test_health_reports_storage_and_echoes_correlation_id(client):
    response = client.get("/api/health", headers={"X-Correlation-ID": "abc-123"})
    assert response.status_code == 200
    assert response.json()["message"] == "Healthy"
    assert response.json()["details"] == {"storage": "memory"}
    assert response.headers["X-Correlation-ID"] == "abc-123"


def test_login_sets_session_cookie_and_hides_password(client):
    response = client.post("/api/auth/login", json={"username": "admin", "password": "admin123"})
    assert response.status_code == 200
    user = response.json()["user"]
    assert user["username"] == "admin"
    assert user["role"] == "admin"
    assert user["isActive"] is True
    assert "password" not in user
    assert "kpi_session" in response.cookies


def test_login_with_wrong_password(client):
    response = client.post("/api/auth/login", json={"username": "admin", "password": "nope"})
    assert response.status_code == 401
    body = response.json()
    assert body["message"] == "Invalid credentials"
    assert body["error"]["type"] == "http_error"
    assert body["path"] == "/api/auth/login"


def test_login_payload_validation_is_a_bad_request(client):
    response = client.post("/api/auth/login", json={"username": "admin"})
    assert response.status_code == 400
    assert response.json()["message"] == "Invalid data"
    assert response.json()["error"]["details"]


def test_me_requires_a_session(client):
    response = client.get("/api/auth/me")
    assert response.status_code == 401
    assert response.json()["message"] == "Authentication required"


def test_me_returns_the_signed_in_user(admin):
    response = admin.get("/api/auth/me")
    assert response.status_code == 200
    assert response.json()["user"]["email"] == "admin@factory.com"


def test_bearer_token_is_accepted(client, admin_id):
    token = create_session_token(subject=admin_id, role="admin")
    response = TestClient(app).get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 200
    assert response.json()["user"]["id"] == admin_id


def test_logout_ends_the_session(admin):
    assert admin.post("/api/auth/logout").json()["success"] is True
    assert admin.get("/api/auth/me").status_code == 401


def test_profile_update(admin):
    response = admin.put("/api/profile", json={"name": "Plant Admin", "email": "plant@factory.com"})
    assert response.status_code == 200
    assert response.json()["user"]["name"] == "Plant Admin"
    assert admin.get("/api/auth/me").json()["user"]["email"] == "plant@factory.com"


def test_profile_rejects_invalid_email(admin):
    response = admin.put("/api/profile", json={"email": "not-an-email"})
    assert response.status_code == 400


def test_change_password(client, admin):
    wrong = admin.put("/api/profile/password", json={"currentPassword": "bad", "newPassword": "secret99"})
    assert wrong.status_code == 400
    assert wrong.json()["message"] == "Current password is incorrect"

    ok = admin.put("/api/profile/password", json={"currentPassword": "admin123", "newPassword": "secret99"})
    assert ok.status_code == 200
    assert ok.json()["message"] == "Password changed"

    assert client.post("/api/auth/login", json={"username": "admin", "password": "admin123"}).status_code == 401
    assert client.post("/api/auth/login", json={"username": "admin", "password": "secret99"}).status_code == 200


def test_profile_image_set_and_clear(admin):
    image = "data:image/png;base64,iVBORw0KGgo="
    assert admin.put("/api/profile/image", json={"imageData": image}).json()["user"]["profileImage"] == image
    assert admin.put("/api/profile/image", json={"imageData": None}).json()["user"]["profileImage"] is None


def test_unknown_route_uses_error_envelope(client):
    response = client.get("/api/does-not-exist")
    assert response.status_code == 404
    assert response.json()["status"] == 404
    assert response.json()["message"] == "Not Found"
