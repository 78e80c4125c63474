import io
from datetime import date

import pandas as pd

from factory_kpi.services.calendar import days_in_month


def _widget(layout, widget_id):
    return next(w for w in layout["widgets"] if w["id"] == widget_id)


def test_default_layout(admin):
    layout = admin.get("/api/dashboard/layout").json()
    assert len(layout["widgets"]) == 13
    assert layout["customized"] is False
    assert layout["canUndo"] is False
    assert layout["containerWidth"] == 1920
    assert _widget(layout, "safety-kpi")["title"] == "Çalışan KPI"


def test_container_size_from_query(admin):
    layout = admin.get("/api/dashboard/layout", params={"containerWidth": 1280, "containerHeight": 800}).json()
    assert layout["containerWidth"] == 1280
    assert layout["containerHeight"] == 800


def test_move_is_clamped_and_resize_floored(admin):
    layout = admin.patch("/api/dashboard/layout/widgets/safety-kpi", json={"x": 5000, "y": -40}).json()
    widget = _widget(layout, "safety-kpi")
    assert (widget["x"], widget["y"]) == (1920 - 280, 0)
    assert layout["customized"] is True

    layout = admin.patch("/api/dashboard/layout/widgets/safety-kpi", json={"width": 50, "height": 400}).json()
    widget = _widget(layout, "safety-kpi")
    assert (widget["width"], widget["height"]) == (200, 400)


def test_layout_is_per_user(admin, manager):
    admin.patch("/api/dashboard/layout/widgets/quality-kpi", json={"visible": False})
    assert _widget(admin.get("/api/dashboard/layout").json(), "quality-kpi")["visible"] is False
    assert _widget(manager.get("/api/dashboard/layout").json(), "quality-kpi")["visible"] is True


def test_maximize_and_restore(admin):
    layout = admin.patch("/api/dashboard/layout/widgets/open-issues", json={"maximized": True}).json()
    widget = _widget(layout, "open-issues")
    assert (widget["x"], widget["y"], widget["width"], widget["height"]) == (10, 10, 1900, 1180)
    assert widget["restore"] == {"x": 860, "y": 540, "width": 400, "height": 350}

    layout = admin.patch("/api/dashboard/layout/widgets/open-issues", json={"maximized": False}).json()
    widget = _widget(layout, "open-issues")
    assert (widget["x"], widget["y"], widget["width"], widget["height"]) == (860, 540, 400, 350)
    assert widget["restore"] is None


def test_undo_restores_previous_save(admin):
    assert admin.post("/api/dashboard/layout/undo").json()["message"] == "Nothing to undo"

    admin.patch("/api/dashboard/layout/widgets/safety-kpi", json={"x": 100, "y": 100})
    layout = admin.patch("/api/dashboard/layout/widgets/safety-kpi", json={"x": 300, "y": 300}).json()
    assert layout["canUndo"] is True

    layout = admin.post("/api/dashboard/layout/undo").json()
    assert (_widget(layout, "safety-kpi")["x"], _widget(layout, "safety-kpi")["y"]) == (100, 100)
    assert layout["canUndo"] is False
    assert admin.post("/api/dashboard/layout/undo").status_code == 400


def test_add_and_remove_widgets(admin):
    assert admin.post("/api/dashboard/layout/widgets", json={"type": "pie-chart"}).status_code == 400

    layout = admin.post("/api/dashboard/layout/widgets", json={"type": "quality-checklist"}).json()
    added = [w for w in layout["widgets"] if w["id"].startswith("widget-")]
    assert len(added) == 1
    assert added[0]["title"] == "Kalite Kontrol Listesi"
    assert (added[0]["width"], added[0]["height"], added[0]["x"], added[0]["y"]) == (300, 200, 50, 50)

    layout = admin.delete(f"/api/dashboard/layout/widgets/{added[0]['id']}").json()
    assert all(w["id"] != added[0]["id"] for w in layout["widgets"])

    layout = admin.delete("/api/dashboard/layout/widgets/closed-issues").json()
    assert _widget(layout, "closed-issues")["visible"] is False

    assert admin.delete("/api/dashboard/layout/widgets/nope").status_code == 404


def test_save_and_reset_layout(admin):
    widgets = admin.get("/api/dashboard/layout").json()["widgets"][:2]
    widgets[0]["title"] = "Renamed"
    saved = admin.put("/api/dashboard/layout", json={"widgets": widgets}).json()
    assert _widget(saved, widgets[0]["id"])["title"] == "Renamed"
    # Widgets missing from the saved list come back from the defaults.
    assert len(saved["widgets"]) == 13

    reset = admin.delete("/api/dashboard/layout").json()
    assert reset["customized"] is False
    assert _widget(reset, widgets[0]["id"])["title"] == "Çalışan KPI"


def test_save_layout_fits_geometry_into_the_container(admin):
    widget = _widget(admin.get("/api/dashboard/layout").json(), "safety-kpi")
    widget.update(x=-500, y=99999, width=5, height=5)
    saved = _widget(admin.put("/api/dashboard/layout", json={"widgets": [widget]}).json(), "safety-kpi")
    assert (saved["width"], saved["height"]) == (200, 150)
    assert (saved["x"], saved["y"]) == (0, 1200 - 150)

    widget.update(x=10, y=10, width=300, height=200)
    body = {"widgets": [widget], "containerWidth": 800, "containerHeight": 600}
    saved = _widget(admin.put("/api/dashboard/layout", json=body).json(), "safety-kpi")
    assert (saved["x"], saved["y"], saved["width"], saved["height"]) == (10, 10, 300, 200)
    assert _widget(admin.get("/api/dashboard/layout").json(), "safety-kpi")["width"] == 300


def test_preferences(admin):
    assert admin.get("/api/preferences/theme").json() == {"key": "theme", "value": None, "updatedAt": None}
    stored = admin.put("/api/preferences/theme", json={"value": {"mode": "dark"}}).json()
    assert stored["value"] == {"mode": "dark"}
    assert admin.get("/api/preferences/theme").json()["value"] == {"mode": "dark"}


def test_safety_calendar_toggle(admin):
    month = admin.get("/api/calendars/safety/2024/2").json()
    assert month["daysInMonth"] == 29
    assert month["days"] == {}

    month = admin.post("/api/calendars/safety/2024/2/days/5/toggle").json()
    assert month["days"] == {"5": "safe"}
    month = admin.post("/api/calendars/safety/2024/2/days/5/toggle").json()
    assert month["days"] == {"5": "incident"}
    assert month["summary"] == {"safeDays": 0, "incidents": 1}

    assert admin.post("/api/calendars/safety/2024/2/days/30/toggle").status_code == 400
    assert admin.get("/api/calendars/safety/2024/2").json()["days"] == {"5": "incident"}


def test_future_days_cannot_be_toggled(admin):
    today = date.today()
    if today.day == days_in_month(today.year, today.month):
        return
    response = admin.post(f"/api/calendars/quality/{today.year}/{today.month}/days/{today.day + 1}/toggle")
    assert response.status_code == 400
    assert response.json()["message"] == "Future days cannot be changed"


def test_production_calendar_values_per_line(admin):
    assert admin.post("/api/calendars/production/2024/3/days/1/toggle").status_code == 400

    line = "M500/5.1 Montaj Hattı"
    month = admin.put("/api/calendars/production/2024/3/days/1", params={"scope": line}, json={"value": 97}).json()
    month = admin.put("/api/calendars/production/2024/3/days/2", params={"scope": line}, json={"value": 91}).json()
    assert month["scope"] == line
    assert month["summary"] == {"recordedDays": 2, "average": 94.0, "band": "yellow"}

    assert admin.get("/api/calendars/production/2024/3").json()["days"] == {}
    assert admin.put("/api/calendars/production/2024/3/days/3", json={"value": 150}).status_code == 400
    assert admin.put("/api/calendars/premium-freight/2024/3/days/3", json={"value": 50}).status_code == 400


def test_production_calendar_accepts_any_line_name(admin):
    line = "M900/2.4 Yeni Hat"
    month = admin.put("/api/calendars/production/2024/4/days/5", params={"scope": line}, json={"value": 88}).json()
    assert month["scope"] == line
    assert month["days"] == {"5": 88}
    assert admin.get("/api/calendars/production/2024/4", params={"scope": line}).json()["days"] == {"5": 88}


def test_premium_freight_toggle(admin):
    month = admin.post("/api/calendars/premium-freight/2024/3/days/31/toggle").json()
    assert month["days"] == {"31": "freight"}
    assert month["summary"] == {"freightDays": 1}


def test_unknown_calendar(admin):
    assert admin.get("/api/calendars/holidays/2024/3").status_code == 400


def test_chart_import(admin):
    csv = "Ay;Değer\nOcak;12,5\nŞubat;%95\nMart;abc\n".encode("windows-1254")
    response = admin.post("/api/imports/chart", files={"file": ("trend.csv", csv, "text/csv")})
    assert response.status_code == 200, response.text
    result = response.json()
    assert result["columns"] == ["Ay", "Değer"]
    assert result["delimiter"] == ";"
    assert result["encoding"] == "windows-1254"
    assert [p["y"] for p in result["series"]] == [12.5, 95.0, 0.0]
    assert result["statistics"]["count"] == 3
    assert result["statistics"]["max"] == 95.0


def test_chart_import_with_mismatched_byte_order_mark(admin):
    upload = b"\xef\xbb\xbfAy;De\xf0er\nOcak;2\n"
    response = admin.post("/api/imports/chart", files={"file": ("trend.csv", upload, "text/csv")})
    assert response.status_code == 200, response.text
    result = response.json()
    assert result["columns"] == ["Ay", "Değer"]
    assert result["series"] == [{"x": "Ocak", "y": 2.0}]

    truncated = b"\xff\xfeA\x00;\x00B\x00\n"
    response = admin.post("/api/imports/chart", files={"file": ("trend.csv", truncated, "text/csv")})
    assert response.status_code == 200, response.text
    assert response.json()["encoding"] == "utf-16"


def test_chart_import_with_unknown_column(admin):
    response = admin.post(
        "/api/imports/chart",
        files={"file": ("trend.csv", b"a,b\n1,2\n", "text/csv")},
        data={"yColumn": "c"},
    )
    assert response.status_code == 400
    assert response.json()["message"] == "Unknown column: c"


def test_reports_export_formats(admin):
    admin.post("/api/kpi", json={"department": "Safety", "value": 9, "target": 10})

    csv = admin.get("/api/reports/kpi")
    assert csv.status_code == 200
    assert csv.headers["content-type"].startswith("text/csv")
    assert 'filename="kpi_values.csv"' in csv.headers["content-disposition"]
    assert csv.content.decode("utf-8-sig").splitlines()[0].startswith("Department,Year,Month")

    xlsx = admin.get("/api/reports/kpi", params={"format": "xlsx"})
    frame = pd.read_excel(io.BytesIO(xlsx.content), engine="openpyxl")
    assert list(frame["Department"]) == ["Safety"]

    pdf = admin.get("/api/reports/actions", params={"format": "pdf"})
    assert pdf.headers["content-type"] == "application/pdf"
    assert pdf.content.startswith(b"%PDF")

    assert admin.get("/api/reports/claims", params={"format": "docx"}).status_code == 400
