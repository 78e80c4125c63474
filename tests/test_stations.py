import pytest


@pytest.fixture
def station(admin):
    response = admin.post(
        "/api/admin/production-stations",
        json={"name": "Montaj Hattı 1", "code": " M500 ", "location": "Hall A"},
    )
    assert response.status_code == 200
    return response.json()


def _entry(client, station_id, **overrides):
    payload = {
        "stationId": station_id,
        "date": "2024-03-05",
        "dataType": "safety",
        "eventType": "near_miss",
        "description": "Slippery floor",
        "severity": "high",
    }
    payload.update(overrides)
    return client.post("/api/station-data", json=payload)


def test_station_admin_only(manager):
    assert manager.get("/api/admin/production-stations").status_code == 403


def test_station_codes_are_unique(admin, station):
    assert station["code"] == "M500"
    assert station["isActive"] is True
    duplicate = admin.post("/api/admin/production-stations", json={"name": "Other", "code": "M500"})
    assert duplicate.status_code == 400
    assert duplicate.json()["message"] == "Station code already exists"


def test_update_station(admin, station):
    other = admin.post("/api/admin/production-stations", json={"name": "Paketleme", "code": "M600"}).json()
    clash = admin.put(f"/api/admin/production-stations/{other['id']}", json={"code": "M500"})
    assert clash.status_code == 400

    response = admin.put(f"/api/admin/production-stations/{station['id']}", json={"name": "Montaj", "isActive": None})
    assert response.status_code == 200
    assert response.json()["name"] == "Montaj"
    assert response.json()["isActive"] is True


def test_entry_gets_day_and_station_names(manager, station):
    response = _entry(manager, station["id"])
    assert response.status_code == 200
    entry = response.json()
    assert entry["day"] == 5
    assert entry["stationCode"] == "M500"
    assert entry["stationName"] == "Montaj Hattı 1"
    assert entry["reportedByName"] == "Safety Manager"
    assert entry["status"] == "active"
    assert entry["resolvedAt"] is None


def test_entry_for_unknown_station(admin):
    response = _entry(admin, "missing")
    assert response.status_code == 404
    assert response.json()["message"] == "Station not found"


def test_entry_status_changes_stamp_resolution(admin, station):
    entry = _entry(admin, station["id"]).json()
    resolved = admin.put(f"/api/station-data/{entry['id']}", json={"status": "resolved"}).json()
    assert resolved["resolvedAt"] is not None

    moved = admin.put(f"/api/station-data/{entry['id']}", json={"date": "2024-03-09"}).json()
    assert moved["day"] == 9
    assert moved["resolvedAt"] == resolved["resolvedAt"]

    reopened = admin.put(f"/api/station-data/{entry['id']}", json={"status": "active"}).json()
    assert reopened["resolvedAt"] is None


def test_entry_list_filters(admin, station):
    _entry(admin, station["id"])
    _entry(admin, station["id"], date="2024-04-02", dataType="quality")

    assert len(admin.get("/api/station-data", params={"stationId": station["id"]}).json()) == 2
    march = admin.get("/api/station-data", params={"month": 3, "year": 2024}).json()
    assert [e["day"] for e in march] == [5]
    assert len(admin.get("/api/station-data", params={"dataType": "quality"}).json()) == 1
    assert len(admin.get("/api/station-data", params={"date": "2024-04-02"}).json()) == 1


def test_delete_entry(admin, station):
    entry = _entry(admin, station["id"]).json()
    assert admin.delete(f"/api/station-data/{entry['id']}").status_code == 200
    assert admin.delete(f"/api/station-data/{entry['id']}").status_code == 404


def test_station_kpi_is_unique_per_category(admin, station):
    payload = {"stationId": station["id"], "category": "quality", "title": "First pass yield", "value": 97}
    first = admin.post("/api/station-kpis", json=payload).json()
    second = admin.post("/api/station-kpis", json={**payload, "title": "Other"}).json()
    assert first["id"] == second["id"]
    assert second["title"] == "First pass yield"
    assert first["unit"] == "%"

    updated = admin.put(f"/api/station-kpis/{first['id']}", json={"value": 98.5, "unit": None})
    assert updated.json()["value"] == 98.5
    assert updated.json()["unit"] == "%"

    assert len(admin.get("/api/station-kpis", params={"stationId": station["id"]}).json()) == 1
    assert admin.delete(f"/api/station-kpis/{first['id']}").status_code == 200
    assert admin.put(f"/api/station-kpis/{first['id']}", json={"value": 1}).status_code == 404


def test_deleting_station_removes_its_data(admin, station):
    _entry(admin, station["id"])
    admin.post("/api/station-kpis", json={"stationId": station["id"], "category": "safety", "title": "LTI"})

    assert admin.delete(f"/api/admin/production-stations/{station['id']}").status_code == 200
    assert admin.get("/api/station-data").json() == []
    assert admin.get("/api/station-kpis").json() == []
    assert admin.delete(f"/api/admin/production-stations/{station['id']}").status_code == 404


def test_station_summary_groups_by_station_and_type(admin, station):
    _entry(admin, station["id"])
    _entry(admin, station["id"], date="2024-03-12", description="Missing label", severity="low")
    _entry(admin, station["id"], date="2024-03-15", dataType="quality")
    _entry(admin, station["id"], date="2024-04-01")

    summary = admin.get("/api/dashboard/station-summary", params={"month": 3, "year": 2024}).json()
    groups = {(g["stationCode"], g["dataType"]): g for g in summary}
    assert set(groups) == {("M500", "safety"), ("M500", "quality")}
    assert sorted(e["day"] for e in groups[("M500", "safety")]["events"]) == [5, 12]
