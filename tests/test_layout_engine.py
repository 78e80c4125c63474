import pytest

from factory_kpi.services.layout import (
    Container,
    DashboardLayout,
    Widget,
    clamp,
    default_snapshot,
    merge_with_defaults,
    toggle_maximize,
)


def _widget(**overrides) -> Widget:
    values = dict(id="w", type="open-issues", title="W", width=300, height=200, x=100, y=100)
    values.update(overrides)
    return Widget(**values)


def test_clamp_prefers_lower_bound():
    assert clamp(5, 0, 10) == 5
    assert clamp(-5, 0, 10) == 0
    assert clamp(50, 0, 10) == 10
    # Widget wider than the container
    assert clamp(30, 0, -20) == 0


def test_drag_keeps_grab_offset_and_stays_inside():
    layout = DashboardLayout(widgets=[_widget()], container=Container(1000, 800))
    drag = layout.begin_drag("w", (150, 120))
    drag.move((250, 220))
    assert (layout.get("w").x, layout.get("w").y) == (200, 200)

    drag.move((5000, 5000))
    assert (layout.get("w").x, layout.get("w").y) == (700, 600)

    drag.move((-100, -100))
    assert (layout.get("w").x, layout.get("w").y) == (0, 0)

    drag.end()
    drag.move((400, 400))
    assert (layout.get("w").x, layout.get("w").y) == (0, 0)


def test_resize_follows_pointer_with_minimum():
    layout = DashboardLayout(widgets=[_widget()])
    resize = layout.begin_resize("w", (400, 300))
    resize.move((450, 330))
    assert (layout.get("w").width, layout.get("w").height) == (350, 230)

    resize.move((0, 0))
    assert (layout.get("w").width, layout.get("w").height) == (200, 150)


def test_maximize_round_trip():
    widget = _widget()
    container = Container(1200, 900)
    toggle_maximize(widget, container)
    assert widget.maximized
    assert (widget.x, widget.y, widget.width, widget.height) == (10, 10, 1180, 880)

    toggle_maximize(widget, container)
    assert not widget.maximized
    assert (widget.x, widget.y, widget.width, widget.height) == (100, 100, 300, 200)


def test_set_maximized_is_idempotent():
    layout = DashboardLayout(widgets=[_widget()])
    layout.set_maximized("w", True)
    layout.set_maximized("w", True)
    assert layout.get("w").restore == (100, 100, 300, 200)
    layout.set_maximized("w", False)
    layout.set_maximized("w", False)
    assert layout.get("w").width == 300


def test_unknown_widget_raises_key_error():
    with pytest.raises(KeyError):
        DashboardLayout().move("nope", 0, 0)


def test_merge_overlays_saved_widgets_by_id():
    saved = [
        {"id": "safety-kpi", "x": 500, "visible": False},
        {"id": "widget-1", "type": "monthly-chart", "title": "Trend", "width": 300, "height": 200, "x": 1, "y": 2},
    ]
    widgets = merge_with_defaults(saved)
    by_id = {w.id: w for w in widgets}
    assert len(widgets) == len(default_snapshot()) + 1
    assert by_id["safety-kpi"].x == 500
    assert by_id["safety-kpi"].visible is False
    assert by_id["safety-kpi"].width == 280
    assert widgets[-1].id == "widget-1"


def test_merge_without_saved_state_gives_defaults():
    assert [w.to_dict() for w in merge_with_defaults(None)] == default_snapshot()


def test_save_keeps_one_level_of_history():
    layout = DashboardLayout.load(None)
    assert not layout.can_undo

    layout.move("safety-kpi", 40, 40)
    layout.save()
    assert not layout.can_undo

    layout.move("safety-kpi", 80, 80)
    layout.save()
    layout.move("safety-kpi", 120, 120)
    layout.save()
    assert layout.can_undo

    assert layout.undo()
    assert layout.get("safety-kpi").x == 80
    assert not layout.undo()


def test_reset_forgets_everything():
    layout = DashboardLayout.load(None)
    layout.move("safety-kpi", 40, 40)
    layout.save()
    layout.save()
    layout.reset()
    assert layout.saved is None
    assert not layout.can_undo
    assert layout.get("safety-kpi").x == 20


def test_add_widget_validates_type():
    layout = DashboardLayout.load(None)
    with pytest.raises(ValueError):
        layout.add_widget("unknown")
    first = layout.add_widget("monthly-chart")
    second = layout.add_widget("monthly-chart")
    assert first.id != second.id
    assert first.title == "Aylık Trend Analizi"


def test_remove_hides_defaults_and_drops_added_widgets():
    layout = DashboardLayout.load(None)
    added = layout.add_widget("open-issues")
    layout.remove_widget(added.id)
    assert layout.get(added.id) is None

    layout.remove_widget("safety-kpi")
    assert layout.get("safety-kpi").visible is False


def test_snapshot_round_trip_keeps_restore_geometry():
    layout = DashboardLayout.load(None)
    layout.set_maximized("open-issues", True)
    reloaded = DashboardLayout.load(layout.save())
    assert reloaded.get("open-issues").restore == (860, 540, 400, 350)


def test_toggle_visibility_flips_the_flag():
    layout = DashboardLayout.load(None)
    assert layout.toggle_visibility("quality-kpi").visible is False
    assert layout.toggle_visibility("quality-kpi").visible is True
