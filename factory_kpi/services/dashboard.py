from __future__ import annotations

import logging
from typing import Optional

from fastapi import HTTPException, status

from factory_kpi.db.models import User
from factory_kpi.schemas.dashboard import (
    CalendarMonthRead,
    ContainerSize,
    LayoutRead,
    LayoutSave,
    PreferenceRead,
    WidgetPatch,
    WidgetState,
)
from factory_kpi.services import calendar as calendar_rules
from factory_kpi.services.base import BaseService
from factory_kpi.services.layout import Container, DashboardLayout, merge_with_defaults

logger = logging.getLogger(__name__)

LAYOUT_KEY = "dashboard.layout"
LAYOUT_PREVIOUS_KEY = "dashboard.layout.previous"


def _widget_not_found(widget_id: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Widget not found: {widget_id}")


def _container(size: Optional[ContainerSize]) -> Container:
    container = Container()
    if size is not None:
        container.width = size.container_width or container.width
        container.height = size.container_height or container.height
    return container


class DashboardService(BaseService):
    """Per-user dashboard layout and preferences."""

    async def _load_layout(self, user: User, container: Optional[Container] = None) -> DashboardLayout:
        saved = await self.storage.dashboard.get_preference(user.id, LAYOUT_KEY)
        previous = await self.storage.dashboard.get_preference(user.id, LAYOUT_PREVIOUS_KEY)
        return DashboardLayout.load(
            saved.value if saved else None,
            previous.value if previous else None,
            container,
        )

    async def _store_layout(self, user: User, layout: DashboardLayout) -> None:
        dashboard = self.storage.dashboard
        if layout.saved is None:
            await dashboard.delete_preference(user.id, LAYOUT_KEY)
        else:
            await dashboard.set_preference(user.id, LAYOUT_KEY, layout.saved)
        if layout.previous is None:
            await dashboard.delete_preference(user.id, LAYOUT_PREVIOUS_KEY)
        else:
            await dashboard.set_preference(user.id, LAYOUT_PREVIOUS_KEY, layout.previous)

    @staticmethod
    def _read(layout: DashboardLayout) -> LayoutRead:
        return LayoutRead(
            widgets=[WidgetState.model_validate(w.to_dict()) for w in layout.widgets],
            container_width=layout.container.width,
            container_height=layout.container.height,
            can_undo=layout.can_undo,
            customized=layout.saved is not None,
        )

    # PUBLIC_INTERFACE
    async def get_layout(self, user: User, size: Optional[ContainerSize] = None) -> LayoutRead:
        """Saved layout merged over the default widgets."""
        return self._read(await self._load_layout(user, _container(size)))

    # PUBLIC_INTERFACE
    async def save_layout(self, user: User, payload: LayoutSave) -> LayoutRead:
        """
        Replace the saved layout; the former layout becomes the undo slot.

        Omitted default widgets keep their defaults. Posted geometry goes through the
        same minimum size and container clamp as a PATCH.
        """
        layout = await self._load_layout(user, _container(payload))
        layout.widgets = merge_with_defaults([w.model_dump() for w in payload.widgets])
        layout.fit()
        layout.save()
        await self._store_layout(user, layout)
        return self._read(layout)

    # PUBLIC_INTERFACE
    async def undo_layout(self, user: User) -> LayoutRead:
        layout = await self._load_layout(user)
        if not layout.undo():
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Nothing to undo")
        await self._store_layout(user, layout)
        return self._read(layout)

    # PUBLIC_INTERFACE
    async def reset_layout(self, user: User) -> LayoutRead:
        layout = await self._load_layout(user)
        layout.reset()
        await self._store_layout(user, layout)
        await self._log_activity(user.id, "reset_dashboard_layout", "Dashboard layout reset to defaults")
        return self._read(layout)

    # PUBLIC_INTERFACE
    async def patch_widget(self, user: User, widget_id: str, patch: WidgetPatch) -> LayoutRead:
        """
        Apply a partial widget change and save the layout.

        Restoring from maximize happens before move/resize so the new geometry is not
        overwritten; maximizing happens last.
        """
        layout = await self._load_layout(user, _container(patch))
        widget = layout.get(widget_id)
        if widget is None:
            raise _widget_not_found(widget_id)

        if patch.maximized is False:
            layout.set_maximized(widget_id, False)
        if patch.x is not None or patch.y is not None:
            layout.move(widget_id, widget.x if patch.x is None else patch.x, widget.y if patch.y is None else patch.y)
        if patch.width is not None or patch.height is not None:
            layout.resize(
                widget_id,
                widget.width if patch.width is None else patch.width,
                widget.height if patch.height is None else patch.height,
            )
        if patch.visible is not None:
            widget.visible = patch.visible
        if patch.title is not None:
            widget.title = patch.title
        if patch.maximized:
            layout.set_maximized(widget_id, True)

        layout.save()
        await self._store_layout(user, layout)
        return self._read(layout)

    # PUBLIC_INTERFACE
    async def add_widget(self, user: User, widget_type: str) -> LayoutRead:
        layout = await self._load_layout(user)
        try:
            layout.add_widget(widget_type)
        except ValueError as exc:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
        layout.save()
        await self._store_layout(user, layout)
        return self._read(layout)

    # PUBLIC_INTERFACE
    async def remove_widget(self, user: User, widget_id: str) -> LayoutRead:
        layout = await self._load_layout(user)
        if layout.get(widget_id) is None:
            raise _widget_not_found(widget_id)
        layout.remove_widget(widget_id)
        layout.save()
        await self._store_layout(user, layout)
        return self._read(layout)

    # Preferences

    async def get_preference(self, user: User, key: str) -> PreferenceRead:
        pref = await self.storage.dashboard.get_preference(user.id, key)
        if pref is None:
            return PreferenceRead(key=key)
        return PreferenceRead(key=key, value=pref.value, updated_at=pref.updated_at)

    async def set_preference(self, user: User, key: str, value) -> PreferenceRead:
        pref = await self.storage.dashboard.set_preference(user.id, key, value)
        return PreferenceRead(key=key, value=pref.value, updated_at=pref.updated_at)


class CalendarService(BaseService):
    """Shared monthly calendars (safety, quality, production efficiency, premium freight)."""

    async def _days(self, calendar: str, scope: str, year: int, month: int):
        record = await self.storage.dashboard.get_calendar_month(calendar, scope, year, month)
        return record, dict(record.days or {}) if record else {}

    @staticmethod
    def _read(calendar: str, scope: str, year: int, month: int, days, updated_at=None) -> CalendarMonthRead:
        return CalendarMonthRead(
            calendar=calendar,
            scope=scope,
            year=year,
            month=month,
            days_in_month=calendar_rules.days_in_month(year, month),
            days={int(day): value for day, value in days.items()},
            summary=calendar_rules.summarize(calendar, days),
            updated_at=updated_at,
        )

    # PUBLIC_INTERFACE
    async def get_month(self, calendar: str, year: int, month: int, scope: str = "") -> CalendarMonthRead:
        record, days = await self._days(calendar, scope, year, month)
        return self._read(calendar, scope, year, month, days, record.updated_at if record else None)

    # PUBLIC_INTERFACE
    async def toggle_day(
        self, calendar: str, year: int, month: int, day: int, actor: User, scope: str = ""
    ) -> CalendarMonthRead:
        """Advance a status calendar day (safe/incident, satisfied/dissatisfied, freight/none)."""
        _, days = await self._days(calendar, scope, year, month)
        try:
            days = calendar_rules.toggle_day(calendar, days, year, month, day)
        except calendar_rules.CalendarRuleError as exc:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
        record = await self.storage.dashboard.save_calendar_month(calendar, scope, year, month, days, actor.id)
        await self._log_activity(
            actor.id, "update_calendar", f"{calendar} {year}-{month:02d}-{day:02d}: {days[str(day)]}"
        )
        return self._read(calendar, scope, year, month, days, record.updated_at)

    # PUBLIC_INTERFACE
    async def set_day_value(
        self, calendar: str, year: int, month: int, day: int, value: float, actor: User, scope: str = ""
    ) -> CalendarMonthRead:
        _, days = await self._days(calendar, scope, year, month)
        try:
            days = calendar_rules.set_day_value(calendar, days, year, month, day, value)
        except calendar_rules.CalendarRuleError as exc:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
        record = await self.storage.dashboard.save_calendar_month(calendar, scope, year, month, days, actor.id)
        await self._log_activity(actor.id, "update_calendar", f"{calendar} {year}-{month:02d}-{day:02d}: {value}")
        return self._read(calendar, scope, year, month, days, record.updated_at)
