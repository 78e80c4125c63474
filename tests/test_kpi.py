def test_latest_without_data_reports_no_data(admin):
    response = admin.get("/api/kpi/latest")
    assert response.status_code == 200
    latest = response.json()
    assert [k["department"] for k in latest] == ["Safety", "Quality", "Production", "Logistics"]
    assert all(k["hasData"] is False and k["value"] is None for k in latest)


def test_kpi_requires_authentication(client):
    assert client.get("/api/kpi").status_code == 401


def test_create_kpi_computes_percentage_and_keeps_metadata(admin):
    response = admin.post(
        "/api/kpi",
        json={
            "department": "Safety",
            "value": 45,
            "target": 60,
            "month": 3,
            "year": 2024,
            "metadata": {"source": "manual"},
        },
    )
    assert response.status_code == 200
    kpi = response.json()
    assert kpi["percentage"] == 75.0
    assert kpi["metadata"] == {"source": "manual"}
    assert kpi["updatedBy"]

    latest = {k["department"]: k for k in admin.get("/api/kpi/latest").json()}
    assert latest["Safety"]["hasData"] is True
    assert latest["Safety"]["value"] == 45
    assert latest["Quality"]["hasData"] is False


def test_percentage_is_null_without_positive_target(admin):
    kpi = admin.post("/api/kpi", json={"department": "Quality", "value": 5, "target": 0}).json()
    assert kpi["percentage"] is None


def test_update_kpi_recomputes_percentage(admin):
    kpi_id = admin.post("/api/kpi", json={"department": "Production", "value": 80, "target": 100}).json()["id"]
    response = admin.put(f"/api/kpi/{kpi_id}", json={"value": 92.5, "department": None})
    assert response.status_code == 200
    assert response.json()["percentage"] == 92.5
    assert response.json()["department"] == "Production"


def test_update_unknown_kpi(admin):
    response = admin.put("/api/kpi/missing", json={"value": 1})
    assert response.status_code == 404
    assert response.json()["message"] == "KPI not found"


def test_list_filters_by_department_and_dates(admin):
    admin.post("/api/kpi", json={"department": "Safety", "value": 1, "target": 2})
    admin.post("/api/kpi", json={"department": "Logistics", "value": 3, "target": 4})

    safety = admin.get("/api/kpi", params={"department": "Safety"}).json()
    assert [k["department"] for k in safety] == ["Safety"]

    assert len(admin.get("/api/kpi", params={"startDate": "2000-01-01T00:00:00Z"}).json()) == 2
    assert admin.get("/api/kpi", params={"endDate": "2000-01-01T00:00:00+03:00"}).json() == []


def test_activity_log_records_changes(admin, admin_id):
    admin.post("/api/kpi", json={"department": "Safety", "value": 1, "target": 2})
    entries = admin.get("/api/activity", params={"userId": admin_id, "limit": 10}).json()
    actions = [e["action"] for e in entries]
    assert actions[0] == "update_kpi"
    assert "login" in actions
    assert entries[0]["userName"] == "Admin User"


def test_activity_limit_is_validated(admin):
    assert admin.get("/api/activity", params={"limit": 0}).status_code == 400


def test_actions_lifecycle(admin, admin_id):
    created = admin.post(
        "/api/actions",
        json={
            "title": "Replace guard rail",
            "department": "Safety",
            "priority": "high",
            "assigneeId": admin_id,
            "dueDate": "2024-05-01T12:00:00+02:00",
        },
    )
    assert created.status_code == 200
    action = created.json()
    assert action["status"] == "open"
    assert action["assigneeName"] == "Admin User"
    assert action["createdByName"] == "Admin User"
    assert action["dueDate"].startswith("2024-05-01T10:00:00")

    updated = admin.put(f"/api/actions/{action['id']}", json={"status": "closed", "title": None})
    assert updated.json()["status"] == "closed"
    assert updated.json()["title"] == "Replace guard rail"

    assert admin.get("/api/actions", params={"status": "open"}).json() == []
    assert len(admin.get("/api/actions", params={"department": "Safety"}).json()) == 1

    assert admin.delete(f"/api/actions/{action['id']}").json()["success"] is True
    assert admin.delete(f"/api/actions/{action['id']}").status_code == 404


def test_action_rejects_unknown_status(admin):
    response = admin.post("/api/actions", json={"title": "x", "department": "Safety", "status": "done"})
    assert response.status_code == 400


def test_action_with_unknown_assignee(admin):
    action = admin.post(
        "/api/actions", json={"title": "Audit", "department": "Quality", "assigneeId": "gone"}
    ).json()
    assert action["assigneeName"] == "Unknown"
