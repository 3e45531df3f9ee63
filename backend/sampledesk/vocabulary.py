"""Closed value sets shared by models, schemas and services."""

from __future__ import annotations

from typing import Literal, get_args

# purpose: single lookup table for every enumerated field; adding a value is a one-place change
# status: active

SampleStage = Literal["PROTOTYPE", "DEVELOPMENT", "PRODUCTION", "ARCHIVED"]

SampleColor = Literal[
    "BLACK",
    "WHITE",
    "NAVY",
    "GRAY",
    "CHARCOAL",
    "BEIGE",
    "CAMEL",
    "IVORY",
    "ROSE",
    "SAGE",
    "LIGHT_BLUE",
    "RED",
    "BLUE",
    "GREEN",
    "YELLOW",
    "ORANGE",
    "PURPLE",
    "PINK",
    "BROWN",
    "TAN",
    "CREAM",
    "OLIVE",
    "BURGUNDY",
    "MAROON",
    "TEAL",
    "CORAL",
    "LAVENDER",
    "MINT",
    "KHAKI",
    "DENIM",
]

SampleSize = Literal[
    "XS",
    "S",
    "M",
    "L",
    "XL",
    "XXL",
    "XXXL",
    "ONE_SIZE",
    "SMALL",
    "MEDIUM",
    "LARGE",
    "EXTRA_LARGE",
    "PETITE",
    "TALL",
    "REGULAR",
]

InventoryStatus = Literal["AVAILABLE", "IN_USE", "RESERVED", "DAMAGED", "ARCHIVED"]

InventoryLocation = Literal[
    "STUDIO_A",
    "STUDIO_B",
    "WAREHOUSE_A",
    "WAREHOUSE_B",
    "WAREHOUSE_C",
    "SHOWROOM",
    "PHOTO_STUDIO",
    "OFFICE",
]

RequestStatus = Literal[
    "REQUESTED",
    "APPROVED",
    "SHIPPED",
    "HANDED_OFF",
    "IN_USE",
    "RETURNED",
    "CLOSED",
]

AuditAction = Literal["CREATED", "UPDATED", "DELETED", "STATUS_CHANGED"]

SAMPLE_STAGES: tuple[str, ...] = get_args(SampleStage)
SAMPLE_COLORS: tuple[str, ...] = get_args(SampleColor)
SAMPLE_SIZES: tuple[str, ...] = get_args(SampleSize)
INVENTORY_STATUSES: tuple[str, ...] = get_args(InventoryStatus)
INVENTORY_LOCATIONS: tuple[str, ...] = get_args(InventoryLocation)
REQUEST_STATUSES: tuple[str, ...] = get_args(RequestStatus)
AUDIT_ACTIONS: tuple[str, ...] = get_args(AuditAction)

REQUEST_STATUS_FLOW: dict[str, tuple[str, ...]] = {
    "REQUESTED": ("APPROVED", "CLOSED"),
    "APPROVED": ("SHIPPED", "HANDED_OFF", "CLOSED"),
    "SHIPPED": ("HANDED_OFF", "IN_USE", "RETURNED", "CLOSED"),
    "HANDED_OFF": ("IN_USE", "RETURNED", "CLOSED"),
    "IN_USE": ("RETURNED", "CLOSED"),
    "RETURNED": ("CLOSED",),
    "CLOSED": (),
}

# status -> request column stamped on first entry
REQUEST_STATUS_TIMESTAMPS: dict[str, str] = {
    "APPROVED": "approved_at",
    "SHIPPED": "shipped_at",
    "HANDED_OFF": "handed_off_at",
    "RETURNED": "returned_at",
    "CLOSED": "closed_at",
}


def sort_position(values: tuple[str, ...], value: str | None) -> int:
    """Order named values by table position, with ``None`` after all of them."""

    if value is None:
        return len(values) + 1
    try:
        return values.index(value)
    except ValueError:
        return len(values)


def check_clause(column: str, values: tuple[str, ...], *, nullable: bool = False) -> str:
    quoted = ", ".join(f"'{value}'" for value in values)
    clause = f"{column} IN ({quoted})"
    if nullable:
        return f"{column} IS NULL OR {clause}"
    return clause
