"""
Dashboard widget layout engine.

Pure geometry and layout bookkeeping, independent of storage and HTTP:

  - drag: the grab offset is kept while moving, positions are clamped into the container
  - resize: width/height follow the pointer delta, floored at the widget minimum
  - maximize: fill the container minus a 10px margin; restore puts the old geometry back
  - save/undo: one saved snapshot plus a one-level history of the snapshot before it

Snapshots are plain lists of dicts so they can be stored as JSON unchanged.
"""

from __future__ import annotations

import copy
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

MIN_WIDTH = 200
MIN_HEIGHT = 150
MAXIMIZE_MARGIN = 10
NEW_WIDGET_SIZE = (300, 200)
NEW_WIDGET_POSITION = (50, 50)
DEFAULT_CONTAINER = (1920, 1200)

WIDGET_TITLES: Dict[str, str] = {
    "kpi-overview": "Genel Bakış KPI",
    "safety-checklist": "Çalışan Kontrol Listesi",
    "quality-checklist": "Kalite Kontrol Listesi",
    "productivity-table": "Üretim Tablosu",
    "fire-scrap-table": "Fire & Hurda Tablosu",
    "delivery-plan-table": "Teslimat Planı",
    "premium-freights-table": "Ekstra Navlun Tablosu",
    "safety-calendar": "Çalışan Takvimi",
    "quality-calendar": "Kalite Takvimi",
    "production-calendar": "Üretim Takvimi",
    "premium-freight-calendar": "Ekstra Navlun Takvimi",
    "delivery-plan-table-weekly": "Haftalık Teslimat Planı",
    "excel-import-chart": "Excel Veri İçe Aktarma",
    "monthly-chart": "Aylık Trend Analizi",
    "open-issues": "Açık Konular",
    "closed-issues": "Kapalı Konular",
}

# (id, type, title, width, height, x, y)
_DEFAULT_WIDGETS: Tuple[Tuple[str, str, str, int, int, int, int], ...] = (
    ("safety-kpi", "kpi-overview", "Çalışan KPI", 280, 180, 20, 20),
    ("quality-kpi", "kpi-overview", "Kalite KPI", 280, 180, 320, 20),
    ("production-kpi", "kpi-overview", "Maliyet KPI", 280, 180, 620, 20),
    ("logistics-kpi", "kpi-overview", "Teslimat KPI", 280, 180, 920, 20),
    ("safety-calendar", "safety-calendar", "Çalışan Takvimi", 350, 300, 20, 220),
    ("quality-calendar", "quality-calendar", "Kalite Takvimi", 350, 300, 390, 220),
    ("production-calendar", "production-calendar", "Üretim Takvimi", 350, 300, 760, 220),
    ("fire-scrap-table", "fire-scrap-table", "Fire & Scrap Tablosu", 400, 280, 20, 540),
    ("delivery-plan-weekly", "delivery-plan-table-weekly", "Haftalık Teslimat Planı", 400, 280, 440, 540),
    ("premium-freight-calendar", "premium-freight-calendar", "Ekstra Navlun Takvimi", 350, 400, 1130, 220),
    ("open-issues", "open-issues", "Açık Konular", 400, 350, 860, 540),
    ("closed-issues", "closed-issues", "Kapalı Konular", 400, 350, 1280, 540),
    ("monthly-trend-analysis", "monthly-chart", "Aylık Trend Analizi", 450, 400, 1130, 640),
)


def clamp(value: float, low: float, high: float) -> float:
    """Clamp into [low, high]; the lower bound wins when high < low."""
    return max(low, min(value, high))


@dataclass
class Container:
    width: float = DEFAULT_CONTAINER[0]
    height: float = DEFAULT_CONTAINER[1]


@dataclass
class Widget:
    id: str
    type: str
    title: str
    width: float
    height: float
    x: float = 0
    y: float = 0
    visible: bool = True
    # geometry before maximize (x, y, width, height)
    restore: Optional[Tuple[float, float, float, float]] = None

    @property
    def maximized(self) -> bool:
        return self.restore is not None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "id": self.id,
            "type": self.type,
            "title": self.title,
            "width": self.width,
            "height": self.height,
            "x": self.x,
            "y": self.y,
            "visible": self.visible,
        }
        if self.restore is not None:
            x, y, w, h = self.restore
            data["restore"] = {"x": x, "y": y, "width": w, "height": h}
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Widget":
        restore = data.get("restore")
        return cls(
            id=str(data["id"]),
            type=str(data.get("type", "")),
            title=str(data.get("title") or ""),
            width=data["width"],
            height=data["height"],
            x=data.get("x", 0),
            y=data.get("y", 0),
            visible=bool(data.get("visible", True)),
            restore=(restore["x"], restore["y"], restore["width"], restore["height"]) if restore else None,
        )


def default_widgets() -> List[Widget]:
    return [
        Widget(id=wid, type=wtype, title=title, width=w, height=h, x=x, y=y)
        for wid, wtype, title, w, h, x, y in _DEFAULT_WIDGETS
    ]


def default_snapshot() -> List[Dict[str, Any]]:
    return [w.to_dict() for w in default_widgets()]


def merge_with_defaults(saved: Optional[List[Dict[str, Any]]]) -> List[Widget]:
    """
    Overlay a saved snapshot on the default widgets by id.

    Saved widgets whose id is not a default (widgets added by the user) are appended
    in their saved order.
    """
    if not saved:
        return default_widgets()
    saved_by_id = {str(item["id"]): item for item in saved if isinstance(item, dict) and "id" in item}
    merged: List[Widget] = []
    for widget in default_widgets():
        item = saved_by_id.pop(widget.id, None)
        merged.append(Widget.from_dict({**widget.to_dict(), **item}) if item else widget)
    for item in saved:
        if isinstance(item, dict) and str(item.get("id")) in saved_by_id:
            merged.append(Widget.from_dict(item))
    return merged


def move_widget(widget: Widget, x: float, y: float, container: Container) -> None:
    widget.x = clamp(x, 0, container.width - widget.width)
    widget.y = clamp(y, 0, container.height - widget.height)


def resize_widget(
    widget: Widget,
    width: float,
    height: float,
    min_width: float = MIN_WIDTH,
    min_height: float = MIN_HEIGHT,
) -> None:
    widget.width = max(min_width, width)
    widget.height = max(min_height, height)


def toggle_maximize(widget: Widget, container: Container) -> None:
    if widget.restore is not None:
        widget.x, widget.y, widget.width, widget.height = widget.restore
        widget.restore = None
        return
    widget.restore = (widget.x, widget.y, widget.width, widget.height)
    widget.x = MAXIMIZE_MARGIN
    widget.y = MAXIMIZE_MARGIN
    widget.width = container.width - 2 * MAXIMIZE_MARGIN
    widget.height = container.height - 2 * MAXIMIZE_MARGIN


class DragSession:
    """Tracks one drag gesture; moves after end() are ignored."""

    def __init__(self, widget: Widget, container: Container, pointer: Tuple[float, float]) -> None:
        self.widget = widget
        self.container = container
        self.offset = (pointer[0] - widget.x, pointer[1] - widget.y)
        self.active = True

    def move(self, pointer: Tuple[float, float]) -> None:
        if not self.active:
            return
        move_widget(self.widget, pointer[0] - self.offset[0], pointer[1] - self.offset[1], self.container)

    def end(self) -> None:
        self.active = False


class ResizeSession:
    """Tracks one resize gesture from the bottom-right handle."""

    def __init__(
        self,
        widget: Widget,
        pointer: Tuple[float, float],
        min_width: float = MIN_WIDTH,
        min_height: float = MIN_HEIGHT,
    ) -> None:
        self.widget = widget
        self.start = pointer
        self.start_size = (widget.width, widget.height)
        self.min_width = min_width
        self.min_height = min_height
        self.active = True

    def move(self, pointer: Tuple[float, float]) -> None:
        if not self.active:
            return
        dx = pointer[0] - self.start[0]
        dy = pointer[1] - self.start[1]
        resize_widget(
            self.widget,
            self.start_size[0] + dx,
            self.start_size[1] + dy,
            self.min_width,
            self.min_height,
        )

    def end(self) -> None:
        self.active = False


@dataclass
class DashboardLayout:
    """
    Widgets over a container plus the saved snapshot and its one-level history.

    `saved` is None while the defaults are in use.
    """

    widgets: List[Widget] = field(default_factory=default_widgets)
    container: Container = field(default_factory=Container)
    saved: Optional[List[Dict[str, Any]]] = None
    previous: Optional[List[Dict[str, Any]]] = None

    @classmethod
    def load(
        cls,
        saved: Optional[List[Dict[str, Any]]],
        previous: Optional[List[Dict[str, Any]]] = None,
        container: Optional[Container] = None,
    ) -> "DashboardLayout":
        return cls(
            widgets=merge_with_defaults(saved),
            container=container or Container(),
            saved=copy.deepcopy(saved) if saved else None,
            previous=copy.deepcopy(previous) if previous else None,
        )

    def get(self, widget_id: str) -> Optional[Widget]:
        for widget in self.widgets:
            if widget.id == widget_id:
                return widget
        return None

    def _require(self, widget_id: str) -> Widget:
        widget = self.get(widget_id)
        if widget is None:
            raise KeyError(widget_id)
        return widget

    def begin_drag(self, widget_id: str, pointer: Tuple[float, float]) -> DragSession:
        return DragSession(self._require(widget_id), self.container, pointer)

    def begin_resize(self, widget_id: str, pointer: Tuple[float, float]) -> ResizeSession:
        return ResizeSession(self._require(widget_id), pointer)

    def move(self, widget_id: str, x: float, y: float) -> Widget:
        widget = self._require(widget_id)
        move_widget(widget, x, y, self.container)
        return widget

    def resize(self, widget_id: str, width: float, height: float) -> Widget:
        widget = self._require(widget_id)
        resize_widget(widget, width, height)
        return widget

    def set_maximized(self, widget_id: str, maximized: bool) -> Widget:
        widget = self._require(widget_id)
        if widget.maximized != maximized:
            toggle_maximize(widget, self.container)
        return widget

    def toggle_visibility(self, widget_id: str) -> Widget:
        widget = self._require(widget_id)
        widget.visible = not widget.visible
        return widget

    def fit(self) -> None:
        """Floor sizes and clamp positions into the container; maximized widgets are left as they are."""
        for widget in self.widgets:
            if widget.maximized:
                continue
            resize_widget(widget, widget.width, widget.height)
            move_widget(widget, widget.x, widget.y, self.container)

    def add_widget(self, widget_type: str) -> Widget:
        """Add a widget of a known type at the default spot; raises ValueError otherwise."""
        if widget_type not in WIDGET_TITLES:
            raise ValueError(f"Unknown widget type: {widget_type}")
        widget_id = f"widget-{int(time.time() * 1000)}"
        while self.get(widget_id) is not None:
            widget_id = f"{widget_id}-1"
        width, height = NEW_WIDGET_SIZE
        x, y = NEW_WIDGET_POSITION
        widget = Widget(
            id=widget_id,
            type=widget_type,
            title=WIDGET_TITLES[widget_type],
            width=width,
            height=height,
            x=x,
            y=y,
        )
        self.widgets.append(widget)
        return widget

    def remove_widget(self, widget_id: str) -> None:
        """Drop an added widget; default widgets come back on merge, so they are hidden instead."""
        widget = self._require(widget_id)
        if any(widget_id == default[0] for default in _DEFAULT_WIDGETS):
            widget.visible = False
        else:
            self.widgets.remove(widget)

    def snapshot(self) -> List[Dict[str, Any]]:
        return [w.to_dict() for w in self.widgets]

    def save(self) -> List[Dict[str, Any]]:
        """Store the current widgets; the former saved snapshot becomes the undo slot."""
        self.previous = self.saved
        self.saved = self.snapshot()
        return self.saved

    @property
    def can_undo(self) -> bool:
        return self.previous is not None

    def undo(self) -> bool:
        """Return to the previously saved snapshot. False when there is none."""
        if self.previous is None:
            return False
        self.saved = self.previous
        self.previous = None
        self.widgets = merge_with_defaults(self.saved)
        return True

    def reset(self) -> None:
        """Back to the built-in default layout, forgetting saved state and history."""
        self.widgets = default_widgets()
        self.saved = None
        self.previous = None
