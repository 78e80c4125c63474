import os

import pytest

from factory_kpi.repositories.memory import MemoryClaimRepository


@pytest.fixture
def claim(admin):
    response = admin.post(
        "/api/claims",
        json={
            "customerName": "ACME Otomotiv",
            "defectType": "Scratch",
            "customerClaimNo": " CC-2024-001 ",
            "claimDate": "2024-01-10T00:00:00Z",
            "priority": "CRITICAL",
            "costAmount": 1250.5,
            "nokQuantity": 40,
        },
    )
    assert response.status_code == 200, response.text
    return response.json()


def test_create_claim_defaults_and_workflow(admin, claim, admin_id):
    assert claim["customerClaimNo"] == "CC-2024-001"
    assert claim["status"] == "OPEN"
    assert claim["claimType"] == "QUALITY"
    assert claim["currency"] == "EUR"
    assert claim["claimCreator"] == admin_id
    assert claim["resolutionDate"] is None

    workflow = admin.get(f"/api/claims/{claim['id']}/workflow").json()
    assert len(workflow) == 1
    assert workflow[0]["fromStatus"] is None
    assert workflow[0]["toStatus"] == "OPEN"
    assert workflow[0]["changeReason"] == "Claim created"
    assert workflow[0]["changedByName"] == "Admin User"


def test_claim_numbers_are_unique(admin, claim):
    response = admin.post(
        "/api/claims",
        json={
            "customerName": "Other",
            "defectType": "Dent",
            "customerClaimNo": "CC-2024-001",
            "claimDate": "2024-02-01T00:00:00Z",
        },
    )
    assert response.status_code == 400
    assert response.json()["message"] == "Claim number already exists"


def test_get_and_update_claim(admin, claim):
    assert admin.get(f"/api/claims/{claim['id']}").json()["customerName"] == "ACME Otomotiv"
    assert admin.get("/api/claims/missing").json()["message"] == "Claim not found"

    updated = admin.put(
        f"/api/claims/{claim['id']}",
        json={"supplierName": "Steel Co", "customerName": None, "resolutionNotes": "8D opened"},
    )
    assert updated.status_code == 200
    assert updated.json()["supplierName"] == "Steel Co"
    assert updated.json()["customerName"] == "ACME Otomotiv"


def test_status_change_records_transition(admin, claim):
    review = admin.put(f"/api/claims/{claim['id']}/status", json={"toStatus": "UNDER_REVIEW"})
    assert review.json()["status"] == "UNDER_REVIEW"
    assert review.json()["resolutionDate"] is None

    resolved = admin.put(
        f"/api/claims/{claim['id']}/status", json={"toStatus": "RESOLVED", "changeReason": "Supplier fixed"}
    ).json()
    assert resolved["resolutionDate"] is not None

    closed = admin.put(f"/api/claims/{claim['id']}/status", json={"toStatus": "CLOSED"}).json()
    assert closed["resolutionDate"] == resolved["resolutionDate"]

    steps = admin.get(f"/api/claims/{claim['id']}/workflow").json()
    assert [(s["fromStatus"], s["toStatus"]) for s in steps] == [
        (None, "OPEN"),
        ("OPEN", "UNDER_REVIEW"),
        ("UNDER_REVIEW", "RESOLVED"),
        ("RESOLVED", "CLOSED"),
    ]


def test_list_claims_by_status(admin, claim):
    assert len(admin.get("/api/claims").json()) == 1
    assert admin.get("/api/claims", params={"status": "CLOSED"}).json() == []
    assert admin.get("/api/claims", params={"status": "bogus"}).status_code == 400


def test_stats(admin, claim):
    stats = admin.get("/api/claims/stats").json()
    assert stats["totalClaims"] == 1
    assert stats["openClaims"] == 1
    assert stats["totalCost"] == 1250.5
    assert stats["avgResolutionTime"] is None

    admin.put(f"/api/claims/{claim['id']}/status", json={"toStatus": "RESOLVED"})
    stats = admin.get("/api/claims/stats").json()
    assert stats["resolvedClaims"] == 1
    assert stats["openClaims"] == 0
    assert stats["avgResolutionTime"] > 0


def test_comments(admin, manager, claim):
    response = manager.post(f"/api/claims/{claim['id']}/comments", json={"comment": "Photos attached", "isInternal": True})
    assert response.status_code == 200
    assert response.json()["commentByName"] == "Safety Manager"

    comments = admin.get(f"/api/claims/{claim['id']}/comments").json()
    assert [c["comment"] for c in comments] == ["Photos attached"]
    assert comments[0]["isInternal"] is True
    assert admin.post("/api/claims/missing/comments", json={"comment": "x"}).status_code == 404


def test_attachments_are_stored_on_disk(admin, claim, tmp_path):
    response = admin.post(
        f"/api/claims/{claim['id']}/attachments",
        files={"file": ("../8D report.pdf", b"%PDF-1.4 test", "application/pdf")},
    )
    assert response.status_code == 200, response.text
    attachment = response.json()
    assert attachment["fileSize"] == len(b"%PDF-1.4 test")
    assert attachment["fileType"] == "application/pdf"

    folder = tmp_path / "attachments" / claim["id"]
    stored = os.listdir(folder)
    assert len(stored) == 1
    assert stored[0].endswith("_8D_report.pdf")

    listed = admin.get(f"/api/claims/{claim['id']}/attachments").json()
    assert [a["id"] for a in listed] == [attachment["id"]]


def test_attachment_file_is_removed_when_the_row_is_not_saved(admin, claim, tmp_path, monkeypatch):
    async def broken_insert(self, attachment):
        raise RuntimeError("database unavailable")

    monkeypatch.setattr(MemoryClaimRepository, "add_attachment", broken_insert)
    with pytest.raises(RuntimeError):
        admin.post(
            f"/api/claims/{claim['id']}/attachments",
            files={"file": ("report.pdf", b"%PDF-1.4 test", "application/pdf")},
        )

    assert os.listdir(tmp_path / "attachments" / claim["id"]) == []
    assert admin.get(f"/api/claims/{claim['id']}/attachments").json() == []


def test_empty_attachment_is_rejected(admin, claim):
    response = admin.post(
        f"/api/claims/{claim['id']}/attachments", files={"file": ("empty.txt", b"", "text/plain")}
    )
    assert response.status_code == 400
    assert response.json()["message"] == "File is empty"


def test_non_conformities_merge_claims_and_station_events(admin, claim):
    station = admin.post("/api/admin/production-stations", json={"name": "Line", "code": "L1"}).json()
    admin.post(
        "/api/station-data",
        json={
            "stationId": station["id"],
            "date": "2024-03-01",
            "dataType": "logistics",
            "eventType": "late_delivery",
            "status": "closed",
            "severity": "low",
        },
    )

    feed = admin.get("/api/non-conformities").json()
    assert len(feed) == 2
    by_source = {item["source"]: item for item in feed}
    assert by_source["customer_complaint"]["severity"] == "high"
    assert by_source["customer_complaint"]["status"] == "open"
    assert by_source["supplier_issue"]["status"] == "closed"
    assert by_source["supplier_issue"]["description"] == "late_delivery"

    open_items = admin.get("/api/non-conformities", params={"status": "open"}).json()
    assert [i["source"] for i in open_items] == ["customer_complaint"]

    admin.put(f"/api/claims/{claim['id']}/status", json={"toStatus": "UNDER_REVIEW"})
    open_items = admin.get("/api/non-conformities", params={"status": "open"}).json()
    assert open_items[0]["status"] == "in_progress"
    assert len(admin.get("/api/non-conformities", params={"status": "closed"}).json()) == 1


def test_non_conformities_require_authentication(client):
    assert client.get("/api/non-conformities").status_code == 401
