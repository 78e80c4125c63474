import asyncio
from datetime import date, datetime

import pytest
from fastapi.testclient import TestClient

from factory_kpi.api.main import app
from factory_kpi.core.settings import AppSettings
from factory_kpi.db.config import Settings
from factory_kpi.db.models import (
    ClaimWorkflow,
    CustomerClaim,
    KpiData,
    ProductionStation,
    StationDataEntry,
    StationKpi,
)
from factory_kpi.db.seed import seed_all
from factory_kpi.repositories.storage import StorageManager


def _sql_settings(**overrides) -> AppSettings:
    values = dict(STORAGE_BACKEND="sql", CREATE_SCHEMA_ON_STARTUP=True, RUN_MIGRATIONS_ON_STARTUP=False)
    values.update(overrides)
    return AppSettings(**values)


@pytest.fixture
def db_settings(tmp_path) -> Settings:
    return Settings(DATABASE_URL=f"sqlite:///{tmp_path / 'kpi.db'}")


def test_sqlite_urls_use_async_driver(db_settings):
    assert db_settings.async_database_url.startswith("sqlite+aiosqlite:///")
    assert db_settings.sync_database_url.startswith("sqlite:///")


def test_mssql_url_from_parts():
    settings = Settings(DATABASE_URL=None, DB_SERVER="db", DB_USER="sa", DB_PASSWORD="p@ss", DB_DATABASE="kpi")
    assert settings.async_database_url.startswith("mssql+aioodbc://sa:p%40ss@db:1433/kpi?")
    assert "TrustServerCertificate=yes" in settings.async_database_url


def test_sql_backend_round_trip(db_settings):
    async def scenario():
        manager = StorageManager()
        assert await manager.initialize(_sql_settings(), db_settings) == "sql"
        try:
            async with manager.open() as storage:
                await seed_all(storage)
                await seed_all(storage)
                assert await storage.users.count_users() == 5
                assert len(await storage.departments.list_departments()) == 4

                admin = await storage.users.get_user_by_username("admin")
                updated = await storage.users.update_user(admin.id, {"name": "Root"})
                assert updated.name == "Root"
                assert updated.permissions == []
                assert await storage.users.update_user("missing", {"name": "x"}) is None

                kpi = await storage.kpi.create_kpi(
                    KpiData(department="Safety", value=9, target=10, percentage=90.0, details={"a": 1})
                )
                assert kpi.id and kpi.created_at
                latest = await storage.kpi.latest_kpi("Safety")
                assert latest.id == kpi.id
                assert latest.details == {"a": 1}
                assert await storage.kpi.latest_kpi("Quality") is None
                updated_kpi = await storage.kpi.update_kpi(kpi.id, {"details": {"a": 2}})
                assert updated_kpi.details == {"a": 2}

                claim = await storage.claims.create_claim(
                    CustomerClaim(
                        customer_name="ACME",
                        defect_type="Scratch",
                        customer_claim_no="C-1",
                        claim_date=datetime(2024, 1, 1),
                    )
                )
                assert claim.status == "OPEN"
                await storage.claims.add_workflow(ClaimWorkflow(claim_id=claim.id, to_status="OPEN"))
                assert len(await storage.claims.list_workflow(claim.id)) == 1
                assert (await storage.claims.get_claim_by_number("C-1")).id == claim.id

                await storage.dashboard.set_preference(admin.id, "layout", [{"id": "w", "x": 1}])
                await storage.dashboard.set_preference(admin.id, "layout", [{"id": "w", "x": 2}])
                pref = await storage.dashboard.get_preference(admin.id, "layout")
                assert pref.value == [{"id": "w", "x": 2}]
                assert await storage.dashboard.delete_preference(admin.id, "layout")
                assert not await storage.dashboard.delete_preference(admin.id, "layout")

                month = await storage.dashboard.save_calendar_month("safety", "", 2024, 3, {"1": "safe"})
                month = await storage.dashboard.save_calendar_month("safety", "", 2024, 3, {"1": "incident"})
                stored = await storage.dashboard.get_calendar_month("safety", "", 2024, 3)
                assert stored.id == month.id
                assert stored.days == {"1": "incident"}

                station = await storage.stations.create_station(ProductionStation(name="Line", code="L1"))
                await storage.stations.create_entry(
                    StationDataEntry(
                        station_id=station.id, date=date(2024, 3, 5), day=5, data_type="safety", event_type="x"
                    )
                )
                await storage.stations.create_station_kpi(StationKpi(station_id=station.id, category="safety", title="t"))
                assert len(await storage.stations.list_entries(month=3, year=2024)) == 1
                assert await storage.stations.list_entries(month=4, year=2024) == []
                assert await storage.stations.delete_station(station.id)
                assert await storage.stations.list_entries() == []
                assert await storage.stations.list_station_kpis() == []

            # A new session sees committed rows.
            async with manager.open() as storage:
                assert (await storage.users.get_user_by_username("admin")).name == "Root"
        finally:
            await manager.reset()

    asyncio.run(scenario())


def test_unreachable_sql_falls_back_to_memory():
    async def scenario():
        manager = StorageManager()
        unconfigured = Settings(DATABASE_URL=None, DB_PASSWORD=None)
        assert await manager.initialize(_sql_settings(), unconfigured) == "memory"
        async with manager.open() as storage:
            assert await storage.users.count_users() == 0
        await manager.reset()

    asyncio.run(scenario())


def test_fallback_can_be_disabled():
    async def scenario():
        manager = StorageManager()
        unconfigured = Settings(DATABASE_URL=None, DB_PASSWORD=None)
        with pytest.raises(ValueError):
            await manager.initialize(_sql_settings(STORAGE_FALLBACK_TO_MEMORY=False), unconfigured)
        await manager.reset()

    asyncio.run(scenario())


def test_api_on_sqlite(tmp_path, monkeypatch):
    monkeypatch.setenv("STORAGE_BACKEND", "sql")
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path / 'api.db'}")

    with TestClient(app) as client:
        assert client.get("/api/health").json()["details"] == {"storage": "sql"}
        assert client.post("/api/auth/login", json={"username": "admin", "password": "admin123"}).status_code == 200

        kpi = client.post("/api/kpi", json={"department": "Logistics", "value": 98, "target": 100}).json()
        assert kpi["percentage"] == 98.0
        latest = {k["department"]: k for k in client.get("/api/kpi/latest").json()}
        assert latest["Logistics"]["id"] == kpi["id"]

        layout = client.patch("/api/dashboard/layout/widgets/safety-kpi", json={"x": 60, "y": 70}).json()
        assert layout["customized"] is True
        reloaded = client.get("/api/dashboard/layout").json()
        assert next(w for w in reloaded["widgets"] if w["id"] == "safety-kpi")["x"] == 60
