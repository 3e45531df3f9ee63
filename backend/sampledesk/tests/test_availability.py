import uuid
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

from sampledesk.services import availability


BASE = datetime(2026, 1, 5, 9, 0, tzinfo=timezone.utc)


def _variant(color=None, size=None):
    return SimpleNamespace(id=uuid.uuid4(), color=color, size=size)


def _unit(variant, *, status="AVAILABLE", location=None, minutes=0):
    return SimpleNamespace(
        id=uuid.uuid4(),
        sample_item_id=variant.id,
        sample_item=variant,
        status=status,
        location=location,
        notes=None,
        created_at=BASE + timedelta(minutes=minutes),
        updated_at=BASE + timedelta(minutes=minutes),
    )


def test_available_count_tracks_status_changes():
    variant = _variant("BLACK", "M")
    units = [_unit(variant, minutes=i) for i in range(3)]
    assert availability.available_count(units) == 3

    units[0].status = "IN_USE"
    assert availability.available_count(units) == 2
    units[0].status = "AVAILABLE"
    assert availability.available_count(units) == 3


def test_status_breakdown_reports_every_status():
    variant = _variant()
    units = [
        _unit(variant, status="AVAILABLE"),
        _unit(variant, status="DAMAGED"),
        _unit(variant, status="DAMAGED"),
    ]
    assert availability.status_breakdown(units) == {
        "AVAILABLE": 1,
        "IN_USE": 0,
        "RESERVED": 0,
        "DAMAGED": 2,
        "ARCHIVED": 0,
    }


def test_empty_input_summarizes_to_zero():
    summary = availability.summarize([])
    assert summary.total == 0
    assert summary.available_count == 0
    assert summary.locations == []
    assert set(summary.by_status.values()) == {0}


def test_groups_follow_lookup_order_with_missing_values_last():
    black_m = _variant("BLACK", "M")
    white_m = _variant("WHITE", "M")
    no_color_s = _variant(None, "S")
    units = [
        _unit(white_m, location="WAREHOUSE_A", minutes=1),
        _unit(black_m, location=None, minutes=2),
        _unit(no_color_s, location="STUDIO_A", minutes=3),
        _unit(black_m, location="STUDIO_A", minutes=4, status="RESERVED"),
        _unit(black_m, location="STUDIO_A", minutes=0),
    ]

    groups = availability.group_units(units)
    assert [g.location for g in groups] == ["STUDIO_A", "WAREHOUSE_A", None]

    studio = groups[0]
    assert studio.total == 3
    assert studio.available == 2
    assert [s.size for s in studio.sizes] == ["S", "M"]
    medium = studio.sizes[1]
    assert [c.color for c in medium.colors] == ["BLACK"]
    variant_group = medium.colors[0].variants[0]
    assert variant_group.sample_item_id == black_m.id
    assert variant_group.total == 2
    assert variant_group.available == 1
    created = [u.created_at for u in variant_group.units]
    assert created == sorted(created)

    assert studio.sizes[0].colors[0].color is None


def test_null_color_sorts_after_named_colors():
    named = _variant("RED", "L")
    unnamed = _variant(None, "L")
    units = [_unit(unnamed, location="OFFICE"), _unit(named, location="OFFICE")]
    groups = availability.group_units(units)
    colors = [c.color for c in groups[0].sizes[0].colors]
    assert colors == ["RED", None]
