"""
CircuitMap Backend — Panel Service Tests
==========================================

What we test:
    ✅ Batch tandem migration: per-breaker savepoints, skips reported
    ✅ Export carries positions verbatim and maps devices by position
    ✅ Import validates positions, re-links devices, auto-migrates tandems
    ✅ Panel delete removes breakers and devices
"""

from unittest.mock import patch

import pytest
from sqlalchemy import func, select

from app.exceptions import (
    ExactDuplicatePositionError,
    InvalidPositionFormatError,
    NotFoundError,
    ValidationError,
)
from app.models.breaker import Breaker
from app.models.device import Device
from app.schemas.panel import PanelCreate, PanelExport
from app.services.panel_service import MigrationResult, PanelService


async def positions_on(db, panel_id):
    result = await db.execute(select(Breaker.position).where(Breaker.panel_id == panel_id))
    return sorted(result.scalars().all())


def export_document(breakers, devices=(), **panel_fields):
    panel = {"name": "Garage Subpanel", "mainAmperage": 100, "totalSlots": 20}
    panel.update(panel_fields)
    panel["breakers"] = breakers
    panel["devices"] = list(devices)
    return PanelExport.model_validate(
        {"version": "1.0", "exportedAt": "2024-01-15T12:00:00+00:00", "panel": panel}
    )


class TestMigrateTandems:

    def setup_method(self):
        self.service = PanelService()

    @pytest.mark.asyncio
    async def test_migrates_every_combined_breaker(self, db_session, panel, add_breakers):
        _, seven, _ = await add_breakers("14A/14B", "7", "2A/2B")

        result = await self.service.migrate_tandems(db_session, panel.id)

        assert result.migrated == 2
        assert result.skipped == []
        assert result.message == "Migrated 2 combined tandem breaker(s)"
        assert await positions_on(db_session, panel.id) == ["14A", "14B", "2A", "2B", "7"]
        assert seven.position == "7"
        assert seven.label == "Circuit 7"

    @pytest.mark.asyncio
    async def test_nothing_to_migrate(self, db_session, panel, add_breakers):
        await add_breakers("7", "1-3")
        result = await self.service.migrate_tandems(db_session, panel.id)
        assert result.migrated == 0
        assert result.message == "No combined tandems to migrate"

    @pytest.mark.asyncio
    async def test_occupied_target_skipped_not_fatal(self, db_session, panel, add_breakers):
        await add_breakers("14A/14B", "14B", "2A/2B")

        result = await self.service.migrate_tandems(db_session, panel.id)

        assert result.migrated == 1
        assert result.skipped == ["14A/14B"]
        assert "skipped 14A/14B" in result.message
        assert await positions_on(db_session, panel.id) == ["14A/14B", "14B", "2A", "2B"]

    @pytest.mark.asyncio
    async def test_same_suffix_combined_skipped(self, db_session, panel, add_breakers):
        await add_breakers("14A/14A")
        result = await self.service.migrate_tandems(db_session, panel.id)
        assert result.migrated == 0
        assert result.skipped == ["14A/14A"]

    @pytest.mark.asyncio
    async def test_unknown_panel(self, db_session):
        from uuid import uuid4
        with pytest.raises(NotFoundError):
            await self.service.migrate_tandems(db_session, uuid4())

    def test_result_message_with_skips(self):
        result = MigrationResult(migrated=1, skipped=["3A/3B"])
        assert result.message == "Migrated 1 combined tandem breaker(s); skipped 3A/3B (position conflict)"


class TestExport:

    def setup_method(self):
        self.service = PanelService()

    @pytest.mark.asyncio
    async def test_positions_and_devices(self, db_session, panel, add_breakers):
        range_breaker, half = await add_breakers("1-3", "14A")
        db_session.add(Device(panel_id=panel.id, breaker_id=half.id, type="outlet", description="Island"))
        db_session.add(Device(panel_id=panel.id, breaker_id=None, type="light", description="Attic"))
        await db_session.flush()

        document = await self.service.export_panel(db_session, panel.id)
        body = document.model_dump(mode="json", by_alias=True)

        assert body["version"] == "1.0"
        assert body["panel"]["name"] == "Main Panel"
        assert body["panel"]["mainAmperage"] == 200
        assert sorted(b["position"] for b in body["panel"]["breakers"]) == ["1-3", "14A"]
        devices = {d["description"]: d for d in body["panel"]["devices"]}
        assert devices["Island"]["breakerPosition"] == "14A"
        assert devices["Attic"]["breakerPosition"] is None
        assert "floors" not in body["panel"]


class TestImport:

    def setup_method(self):
        self.service = PanelService()

    @pytest.mark.asyncio
    async def test_import_with_tandem_migration(self, db_session):
        document = export_document(
            breakers=[
                {"position": "1-3", "amperage": 30, "poles": 2, "label": "Dryer", "circuitType": "dryer"},
                {"position": "14a/14b", "amperage": 20, "label": "Kitchen Outlets"},
                {"position": "7", "amperage": 15, "label": "Lights", "isOn": False},
            ],
            devices=[{"breakerPosition": "14A/14B", "type": "outlet", "description": "Counter"}],
        )

        panel, created, migration = await self.service.import_panel(db_session, document)

        assert panel.name == "Garage Subpanel (Imported)"
        assert panel.main_amperage == 100
        assert created == 3
        assert migration.migrated == 1
        assert await positions_on(db_session, panel.id) == ["1-3", "14A", "14B", "7"]

        result = await db_session.execute(select(Device).where(Device.panel_id == panel.id))
        device = result.scalar_one()
        half_a = await db_session.get(Breaker, device.breaker_id)
        assert half_a.position == "14A"
        assert half_a.label == "Kitchen Outlets (A)"

    @pytest.mark.asyncio
    async def test_import_without_auto_migration(self, db_session):
        document = export_document(breakers=[{"position": "2A/2B", "amperage": 20, "label": "Bath"}])
        with patch("app.services.panel_service.settings") as mock_settings:
            mock_settings.max_import_breakers = 200
            mock_settings.auto_migrate_tandems_on_import = False
            panel, _, migration = await self.service.import_panel(db_session, document)
        assert migration.migrated == 0
        assert await positions_on(db_session, panel.id) == ["2A/2B"]

    @pytest.mark.asyncio
    async def test_devices_nested_under_rooms(self, db_session):
        document = export_document(
            breakers=[{"position": "9", "amperage": 20, "label": "Bedroom"}],
            floors=[{"rooms": [{"name": "Bedroom", "devices": [
                {"breakerPosition": "9", "type": "outlet", "description": "Bedside"},
            ]}]}],
        )
        panel, _, _ = await self.service.import_panel(db_session, document)
        count = await db_session.execute(
            select(func.count(Device.id)).where(Device.panel_id == panel.id, Device.breaker_id.is_not(None))
        )
        assert count.scalar() == 1

    @pytest.mark.asyncio
    async def test_invalid_position_rejected(self, db_session):
        document = export_document(breakers=[{"position": "1-7", "amperage": 40, "label": "Bad"}])
        with pytest.raises(InvalidPositionFormatError):
            await self.service.import_panel(db_session, document)

    @pytest.mark.asyncio
    async def test_colliding_positions_rejected(self, db_session):
        document = export_document(breakers=[
            {"position": "7", "amperage": 20, "label": "One"},
            {"position": " 7", "amperage": 20, "label": "Two"},
        ])
        with pytest.raises(ExactDuplicatePositionError):
            await self.service.import_panel(db_session, document)

    @pytest.mark.asyncio
    async def test_too_many_breakers(self, db_session):
        document = export_document(breakers=[
            {"position": str(slot), "amperage": 20, "label": f"C{slot}"} for slot in range(1, 4)
        ])
        with patch("app.services.panel_service.settings") as mock_settings:
            mock_settings.max_import_breakers = 2
            with pytest.raises(ValidationError):
                await self.service.import_panel(db_session, document)


class TestPanelCrud:

    def setup_method(self):
        self.service = PanelService()

    @pytest.mark.asyncio
    async def test_create_and_list(self, db_session):
        await self.service.create_panel(db_session, PanelCreate(name="A"))
        await self.service.create_panel(db_session, PanelCreate(name="B", total_slots=20))
        panels, total = await self.service.list_panels(db_session)
        assert total == 2
        assert {p.name for p in panels} == {"A", "B"}

    @pytest.mark.asyncio
    async def test_delete_cascades(self, db_session, panel, add_breakers):
        (breaker,) = await add_breakers("7")
        db_session.add(Device(panel_id=panel.id, breaker_id=breaker.id, type="outlet", description="x"))
        await db_session.flush()

        await self.service.delete_panel(db_session, panel.id)

        assert (await db_session.execute(select(func.count(Breaker.id)))).scalar() == 0
        assert (await db_session.execute(select(func.count(Device.id)))).scalar() == 0
        with pytest.raises(NotFoundError):
            await self.service.get_panel(db_session, panel.id)
