"""Pydantic request and response contracts for the sample coordination API."""

from datetime import datetime
from typing import Annotated, Any, Dict, List, Literal, Optional, Union
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator, model_validator

from .vocabulary import (
    InventoryLocation,
    InventoryStatus,
    RequestStatus,
    SampleColor,
    SampleSize,
    SampleStage,
)


class ProductionItemCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    description: Optional[str] = Field(default=None, max_length=1000)
    image_urls: List[str] = []


class ProductionItemUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = Field(default=None, max_length=1000)
    image_urls: Optional[List[str]] = None


class ProductionItemOut(BaseModel):
    id: UUID
    name: str
    description: Optional[str] = None
    image_urls: List[str] = []
    created_at: datetime
    updated_at: datetime
    model_config = ConfigDict(from_attributes=True)

    @field_validator("image_urls", mode="before")
    @classmethod
    def _none_as_empty(cls, value):
        return value or []


class SampleItemCreate(BaseModel):
    production_item_id: UUID
    stage: SampleStage = "PROTOTYPE"
    color: Optional[SampleColor] = None
    size: Optional[SampleSize] = None
    revision: str = Field(default="A", min_length=1, max_length=10)
    notes: Optional[str] = Field(default=None, max_length=1000)
    image_urls: List[str] = []


class SampleItemUpdate(BaseModel):
    stage: Optional[SampleStage] = None
    color: Optional[SampleColor] = None
    size: Optional[SampleSize] = None
    revision: Optional[str] = Field(default=None, min_length=1, max_length=10)
    notes: Optional[str] = Field(default=None, max_length=1000)
    image_urls: Optional[List[str]] = None


class SampleItemOut(BaseModel):
    id: UUID
    production_item_id: UUID
    stage: str
    color: Optional[str] = None
    size: Optional[str] = None
    revision: str
    notes: Optional[str] = None
    image_urls: List[str] = []
    created_at: datetime
    updated_at: datetime
    model_config = ConfigDict(from_attributes=True)

    @field_validator("image_urls", mode="before")
    @classmethod
    def _none_as_empty(cls, value):
        return value or []


class SampleItemSummary(SampleItemOut):
    unit_count: int = 0
    available_count: int = 0
    request_count: int = 0
    comment_count: int = 0


class ProductionItemDetail(ProductionItemOut):
    sample_items: List[SampleItemSummary] = []


class ProductionItemListing(ProductionItemOut):
    latest_sample: Optional[SampleItemSummary] = None


class VariantFilterValues(BaseModel):
    stages: List[str]
    colors: List[str]
    sizes: List[str]
    locations: List[str]


class InventoryUnitCreate(BaseModel):
    sample_item_id: UUID
    location: Optional[InventoryLocation] = None
    status: InventoryStatus = "AVAILABLE"
    notes: Optional[str] = Field(default=None, max_length=1000)
    count: int = Field(default=1, ge=1, le=500)


class InventoryUnitUpdate(BaseModel):
    status: Optional[InventoryStatus] = None
    location: Optional[InventoryLocation] = None
    notes: Optional[str] = Field(default=None, max_length=1000)


class InventoryUnitOut(BaseModel):
    id: UUID
    sample_item_id: UUID
    location: Optional[str] = None
    status: str
    notes: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    model_config = ConfigDict(from_attributes=True)


class SampleVariation(BaseModel):
    stage: SampleStage = "PROTOTYPE"
    color: Optional[SampleColor] = None
    size: Optional[SampleSize] = None
    revision: str = Field(default="A", min_length=1, max_length=10)
    notes: Optional[str] = Field(default=None, max_length=1000)
    initial_quantity: int = Field(default=0, ge=0, le=500)
    location: Optional[InventoryLocation] = None


class SampleBatchCreate(BaseModel):
    production_item_id: UUID
    variations: List[SampleVariation] = Field(min_length=1)


class SampleItemWithUnits(SampleItemOut):
    units: List[InventoryUnitOut] = []


class VariantGroupOut(BaseModel):
    sample_item_id: UUID
    total: int
    available: int
    units: List[InventoryUnitOut]


class ColorGroupOut(BaseModel):
    color: Optional[str] = None
    total: int
    available: int
    variants: List[VariantGroupOut]


class SizeGroupOut(BaseModel):
    size: Optional[str] = None
    total: int
    available: int
    colors: List[ColorGroupOut]


class LocationGroupOut(BaseModel):
    location: Optional[str] = None
    total: int
    available: int
    sizes: List[SizeGroupOut]


class AvailabilityOut(BaseModel):
    total: int
    available_count: int
    by_status: Dict[str, int]
    locations: List[LocationGroupOut]


class TeamCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    shipping_address: Optional[str] = Field(default=None, max_length=500)
    contact_email: Optional[EmailStr] = None
    contact_phone: Optional[str] = Field(default=None, max_length=50)
    is_internal: bool = True

    @field_validator("contact_email", mode="before")
    @classmethod
    def _blank_email(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value


class TeamUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    shipping_address: Optional[str] = Field(default=None, max_length=500)
    contact_email: Optional[EmailStr] = None
    contact_phone: Optional[str] = Field(default=None, max_length=50)
    is_internal: Optional[bool] = None

    @field_validator("contact_email", mode="before")
    @classmethod
    def _blank_email(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value


class TeamOut(BaseModel):
    id: UUID
    name: str
    shipping_address: Optional[str] = None
    contact_email: Optional[str] = None
    contact_phone: Optional[str] = None
    is_internal: bool
    created_at: datetime
    updated_at: datetime
    model_config = ConfigDict(from_attributes=True)


class TeamSummary(TeamOut):
    request_count: int = 0


class SampleRequestCreate(BaseModel):
    sample_item_id: UUID
    team_id: UUID
    quantity: int = Field(default=1, ge=1)
    shipping_method: Optional[str] = Field(default=None, max_length=255)
    shipping_address: Optional[str] = Field(default=None, max_length=500)
    notes: Optional[str] = Field(default=None, max_length=1000)


class SampleRequestUpdate(BaseModel):
    status: Optional[RequestStatus] = None
    expected_status: Optional[RequestStatus] = None
    quantity: Optional[int] = Field(default=None, ge=1)
    shipping_method: Optional[str] = Field(default=None, max_length=255)
    shipping_address: Optional[str] = Field(default=None, max_length=500)
    notes: Optional[str] = Field(default=None, max_length=1000)


class RequestStatusChange(BaseModel):
    status: RequestStatus
    expected_status: Optional[RequestStatus] = None


class SampleRequestOut(BaseModel):
    id: UUID
    sample_item_id: UUID
    team_id: UUID
    quantity: int
    status: str
    shipping_method: Optional[str] = None
    shipping_address: Optional[str] = None
    notes: Optional[str] = None
    requested_at: datetime
    approved_at: Optional[datetime] = None
    shipped_at: Optional[datetime] = None
    handed_off_at: Optional[datetime] = None
    returned_at: Optional[datetime] = None
    closed_at: Optional[datetime] = None
    updated_at: datetime
    model_config = ConfigDict(from_attributes=True)


class SampleRequestDetail(SampleRequestOut):
    sample_item: SampleItemOut
    team: TeamOut
    allowed_transitions: List[str] = []


class TeamDetail(TeamSummary):
    requests: List[SampleRequestOut] = []


class SampleItemDetail(SampleItemOut):
    production_item: ProductionItemOut
    availability: AvailabilityOut
    requests: List[SampleRequestOut] = []


class RequestStatsOut(BaseModel):
    total: int
    by_status: Dict[str, int]


class RequestTransitionsOut(BaseModel):
    status: str
    allowed: List[str]


class ProductionItemTarget(BaseModel):
    kind: Literal["production_item"] = "production_item"
    id: UUID


class SampleItemTarget(BaseModel):
    kind: Literal["sample_item"] = "sample_item"
    id: UUID


class RequestTarget(BaseModel):
    kind: Literal["request"] = "request"
    id: UUID


class ReplyTarget(BaseModel):
    kind: Literal["reply"] = "reply"
    parent_id: UUID


CommentTarget = Annotated[
    Union[ProductionItemTarget, SampleItemTarget, RequestTarget, ReplyTarget],
    Field(discriminator="kind"),
]

_LEGACY_TARGET_FIELDS = {
    "production_item_id": ("production_item", "id"),
    "sample_item_id": ("sample_item", "id"),
    "request_id": ("request", "id"),
    "parent_comment_id": ("reply", "parent_id"),
}


class CommentCreate(BaseModel):
    content: str = Field(min_length=1, max_length=2000)
    target: CommentTarget

    @model_validator(mode="before")
    @classmethod
    def _lift_legacy_attachment(cls, data: Any) -> Any:
        # accept {production_item_id|sample_item_id|request_id|parent_comment_id} as well as target
        if not isinstance(data, dict) or "target" in data:
            return data
        supplied = [key for key in _LEGACY_TARGET_FIELDS if data.get(key)]
        # a reply always lives where its parent lives
        if "parent_comment_id" in supplied:
            supplied = ["parent_comment_id"]
        if len(supplied) != 1:
            raise ValueError(
                "Exactly one of production_item_id, sample_item_id, request_id, "
                "or parent_comment_id must be provided"
            )
        key = supplied[0]
        kind, id_field = _LEGACY_TARGET_FIELDS[key]
        remaining = {k: v for k, v in data.items() if k not in _LEGACY_TARGET_FIELDS}
        remaining["target"] = {"kind": kind, id_field: data[key]}
        return remaining

    @field_validator("content")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("Content is required")
        return value


class CommentUpdate(BaseModel):
    content: str = Field(min_length=1, max_length=2000)


class CommentOut(BaseModel):
    id: UUID
    content: str
    author_id: str
    parent_comment_id: Optional[UUID] = None
    production_item_id: Optional[UUID] = None
    sample_item_id: Optional[UUID] = None
    request_id: Optional[UUID] = None
    created_at: datetime
    updated_at: datetime
    model_config = ConfigDict(from_attributes=True)


class CommentNode(CommentOut):
    reply_count: int = 0
    replies: List["CommentNode"] = []


CommentNode.model_rebuild()


class AuditEventOut(BaseModel):
    id: int
    entity_type: str
    entity_id: UUID
    action: str
    user_id: str
    meta: Optional[Dict[str, Any]] = Field(default=None, serialization_alias="metadata")
    created_at: datetime
    model_config = ConfigDict(from_attributes=True)


class AuditReportItem(BaseModel):
    action: str
    count: int
