"""Inventory availability derived from unit rows at read time."""

from __future__ import annotations

from collections import Counter
from typing import Any, Callable, Iterable, Sequence

from .. import schemas
from ..vocabulary import INVENTORY_LOCATIONS, INVENTORY_STATUSES, SAMPLE_COLORS, SAMPLE_SIZES, sort_position

# purpose: count and group physical sample units without any stored counter
# status: active
# inputs: SampleInventory rows with their sample_item loaded
# outputs: AvailabilityOut summaries

AVAILABLE = "AVAILABLE"


def available_count(units: Iterable[Any]) -> int:
    return sum(1 for unit in units if unit.status == AVAILABLE)


def status_breakdown(units: Iterable[Any]) -> dict[str, int]:
    counts = Counter(unit.status for unit in units)
    return {status: counts.get(status, 0) for status in INVENTORY_STATUSES}


def _unit_order(unit: Any) -> tuple:
    return (unit.created_at is None, unit.created_at, str(unit.id))


def _bucket(
    units: Sequence[Any],
    key: Callable[[Any], Any],
    order: Callable[[Any], Any],
) -> list[tuple[Any, list[Any]]]:
    buckets: dict[Any, list[Any]] = {}
    for unit in units:
        buckets.setdefault(key(unit), []).append(unit)
    return [(k, buckets[k]) for k in sorted(buckets, key=order)]


def group_units(units: Iterable[Any]) -> list[schemas.LocationGroupOut]:
    """Group units by location, then size, then color, then sample item.

    ``None`` is a group of its own at every level and sorts after named values.
    """

    ordered = sorted(units, key=_unit_order)
    locations = []
    for location, at_location in _bucket(
        ordered,
        lambda u: u.location,
        lambda v: sort_position(INVENTORY_LOCATIONS, v),
    ):
        sizes = []
        for size, of_size in _bucket(
            at_location,
            lambda u: u.sample_item.size,
            lambda v: sort_position(SAMPLE_SIZES, v),
        ):
            colors = []
            for color, of_color in _bucket(
                of_size,
                lambda u: u.sample_item.color,
                lambda v: sort_position(SAMPLE_COLORS, v),
            ):
                variants = [
                    schemas.VariantGroupOut(
                        sample_item_id=sample_item_id,
                        total=len(variant_units),
                        available=available_count(variant_units),
                        units=[schemas.InventoryUnitOut.model_validate(u) for u in variant_units],
                    )
                    for sample_item_id, variant_units in _bucket(
                        of_color,
                        lambda u: u.sample_item_id,
                        str,
                    )
                ]
                colors.append(
                    schemas.ColorGroupOut(
                        color=color,
                        total=len(of_color),
                        available=available_count(of_color),
                        variants=variants,
                    )
                )
            sizes.append(
                schemas.SizeGroupOut(
                    size=size,
                    total=len(of_size),
                    available=available_count(of_size),
                    colors=colors,
                )
            )
        locations.append(
            schemas.LocationGroupOut(
                location=location,
                total=len(at_location),
                available=available_count(at_location),
                sizes=sizes,
            )
        )
    return locations


def summarize(units: Iterable[Any]) -> schemas.AvailabilityOut:
    materialized = list(units)
    return schemas.AvailabilityOut(
        total=len(materialized),
        available_count=available_count(materialized),
        by_status=status_breakdown(materialized),
        locations=group_units(materialized),
    )
