import asyncio

from factory_kpi.core.security import is_password_hash
from factory_kpi.repositories.storage import storage_manager


def _create_user(admin, **overrides):
    payload = {
        "username": "operator1",
        "password": "operator123",
        "name": "Line Operator",
        "email": "operator1@factory.com",
        "department": "Production",
        "role": "user",
    }
    payload.update(overrides)
    return admin.post("/api/admin/users", json=payload)


def test_seeded_users_are_listed(admin):
    response = admin.get("/api/users")
    assert response.status_code == 200
    usernames = {u["username"] for u in response.json()}
    assert usernames == {"admin", "safety1", "quality1", "production1", "logistics1"}


def test_admin_routes_reject_non_admins(manager):
    response = manager.get("/api/admin/users")
    assert response.status_code == 403
    assert response.json()["message"] == "Admin access required"
    assert manager.get("/api/admin/departments").status_code == 403


def test_create_user_requires_fields(admin):
    response = _create_user(admin, email="  ")
    assert response.status_code == 400
    assert response.json()["message"] == "Email is required"


def test_create_user_defaults_department_and_rejects_duplicates(admin, client):
    response = _create_user(admin, department="")
    assert response.status_code == 200
    assert response.json()["department"] == "Üretim"

    duplicate = _create_user(admin, email="other@factory.com")
    assert duplicate.status_code == 400
    assert duplicate.json()["message"] == "Username already exists"

    login = client.post("/api/auth/login", json={"username": "operator1", "password": "operator123"})
    assert login.status_code == 200


def test_update_user_refuses_password_changes(admin):
    user_id = _create_user(admin).json()["id"]
    response = admin.put(f"/api/admin/users/{user_id}", json={"password": "x"})
    assert response.status_code == 400

    response = admin.put(f"/api/admin/users/{user_id}", json={"name": "Shift Lead", "role": "manager"})
    assert response.status_code == 200
    assert response.json()["name"] == "Shift Lead"
    assert response.json()["role"] == "manager"


def test_update_unknown_user(admin):
    response = admin.put("/api/admin/users/missing", json={"name": "Ghost"})
    assert response.status_code == 404
    assert response.json()["message"] == "User not found"


def test_reset_password(admin, client):
    user_id = _create_user(admin).json()["id"]
    assert admin.put(f"/api/admin/users/{user_id}/password", json={"password": ""}).status_code == 400
    assert admin.put(f"/api/admin/users/{user_id}/password", json={"password": "fresh123"}).status_code == 200
    login = client.post("/api/auth/login", json={"username": "operator1", "password": "fresh123"})
    assert login.status_code == 200


def test_status_requires_a_boolean_and_blocks_login(admin, client):
    user_id = _create_user(admin).json()["id"]
    response = admin.put(f"/api/admin/users/{user_id}/status", json={"isActive": "false"})
    assert response.status_code == 400
    assert response.json()["message"] == "isActive must be a boolean"

    response = admin.put(f"/api/admin/users/{user_id}/status", json={"isActive": False})
    assert response.status_code == 200
    assert response.json()["isActive"] is False

    login = client.post("/api/auth/login", json={"username": "operator1", "password": "operator123"})
    assert login.status_code == 401
    assert login.json()["message"] == "Account is disabled"


def test_deactivated_user_loses_session(admin, login):
    user_id = _create_user(admin).json()["id"]
    operator = login("operator1", "operator123")
    assert operator.get("/api/auth/me").status_code == 200
    admin.put(f"/api/admin/users/{user_id}/status", json={"isActive": False})
    assert operator.get("/api/auth/me").status_code == 401


def test_delete_user(admin, admin_id):
    own = admin.delete(f"/api/admin/users/{admin_id}")
    assert own.status_code == 400
    assert own.json()["message"] == "You cannot delete your own account"

    user_id = _create_user(admin).json()["id"]
    assert admin.delete(f"/api/admin/users/{user_id}").json()["success"] is True
    assert admin.delete(f"/api/admin/users/{user_id}").status_code == 404


def test_departments_crud(admin, admin_id):
    names = [d["name"] for d in admin.get("/api/admin/departments").json()]
    assert set(names) == {"Güvenlik", "Kalite", "Üretim", "Lojistik"}

    created = admin.post(
        "/api/admin/departments",
        json={"name": "Bakım", "description": "Maintenance", "managerId": admin_id},
    )
    assert created.status_code == 200
    department = created.json()
    assert department["managerName"] == "Admin User"

    assert admin.post("/api/admin/departments", json={"name": "Bakım"}).status_code == 400

    updated = admin.put(f"/api/admin/departments/{department['id']}", json={"name": None, "isActive": False})
    assert updated.status_code == 200
    assert updated.json()["name"] == "Bakım"
    assert updated.json()["isActive"] is False

    assert admin.delete(f"/api/admin/departments/{department['id']}").status_code == 200
    assert admin.delete(f"/api/admin/departments/{department['id']}").status_code == 404


def test_import_users_requires_rows(admin):
    assert admin.post("/api/users/import", json={}).json()["message"] == "Users array is required"
    assert admin.post("/api/users/import", json={"users": []}).json()["message"] == "No users to import"


def test_import_users_skips_bad_rows(admin, client):
    response = admin.post(
        "/api/users/import",
        json={
            "users": [
                {"username": "welder1", "email": "welder1@factory.com", "name": "Welder", "role": "Müdür"},
                {"username": "nomail"},
                {"username": "admin", "email": "dup@factory.com"},
                {"username": "packer1", "email": "packer1@factory.com", "department": "null", "isActive": "pasif"},
            ]
        },
    )
    assert response.status_code == 200
    result = response.json()
    assert result["success"] is True
    assert result["importedCount"] == 2
    assert len(result["errors"]) == 2

    users = {u["username"]: u for u in admin.get("/api/users").json()}
    assert users["welder1"]["role"] == "manager"
    assert users["packer1"]["department"] == "General"
    assert users["packer1"]["isActive"] is False

    login = client.post("/api/auth/login", json={"username": "welder1", "password": "TempPass123!"})
    assert login.status_code == 200


def test_import_hashes_passwords_even_when_told_not_to(admin, client):
    response = admin.post(
        "/api/users/import",
        json={
            "hashPasswords": False,
            "users": [{"username": "fitter1", "email": "fitter1@factory.com", "password": "secret1"}],
        },
    )
    assert response.json()["importedCount"] == 1

    async def stored_password():
        async with storage_manager.open() as storage:
            return (await storage.users.get_user_by_username("fitter1")).password

    stored = asyncio.run(stored_password())
    assert stored != "secret1"
    assert is_password_hash(stored)
    assert client.post("/api/auth/login", json={"username": "fitter1", "password": "secret1"}).status_code == 200


def test_import_preview_maps_turkish_headers(admin):
    sheet = "Kullanıcı Adı;Ad Soyad;E-posta;Bölüm;Rol\nali;Ali Veli;ali@factory.com;Kalite;Yönetici\n"
    response = admin.post(
        "/api/users/import/preview",
        files={"file": ("users.csv", sheet.encode("utf-8"), "text/csv")},
        data={"generatePasswords": "true"},
    )
    assert response.status_code == 200
    preview = response.json()
    assert preview["totalRows"] == 1
    assert preview["mapping"]["Kullanıcı Adı"] == "username"
    assert preview["mapping"]["E-posta"] == "email"
    user = preview["users"][0]
    assert user["username"] == "ali"
    assert user["department"] == "Kalite"
    assert user["role"] == "admin"
    assert len(user["password"]) == 8


def test_import_preview_survives_a_mismatched_byte_order_mark(admin):
    upload = b"\xef\xbb\xbfusername;B\xf6l\xfcm\nali;Kalite\n"
    response = admin.post("/api/users/import/preview", files={"file": ("users.csv", upload, "text/csv")})
    assert response.status_code == 200, response.text
    assert response.json()["headers"] == ["username", "Bölüm"]

    truncated = b"\xff\xfeA\x00;\x00B\x00\n"
    response = admin.post("/api/users/import/preview", files={"file": ("users.csv", truncated, "text/csv")})
    assert response.status_code == 200, response.text
    assert response.json()["headers"] == ["A", "B"]
    assert response.json()["totalRows"] == 0


def test_import_preview_rejects_empty_upload(admin):
    response = admin.post("/api/users/import/preview", files={"file": ("users.csv", b"", "text/csv")})
    assert response.status_code == 400
    assert response.json()["message"] == "No file uploaded"
