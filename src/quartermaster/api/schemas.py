"""Request and response models for the HTTP API.

Ids and quantities are validated as integers here, so a fractional or
non-numeric value is rejected before any row is looked up. Enum fields
accept any letter case.
"""

from __future__ import annotations

from typing import Annotated, Any

from pydantic import AliasChoices, BaseModel, BeforeValidator, ConfigDict, Field

from quartermaster.domain.enums import (
    ApplicationStatus,
    ContainerState,
    OrderKind,
    OrderStatus,
    Role,
    ShipmentMode,
    ShipmentStatus,
)
from quartermaster.domain.orders import LineRequest, canonical_status


def _lower(value: Any) -> Any:
    return value.strip().lower() if isinstance(value, str) else value


Lowered = BeforeValidator(_lower)


class RequestModel(BaseModel):
    model_config = ConfigDict(extra="ignore")


class LineIn(RequestModel):
    item_id: int = Field(validation_alias=AliasChoices("item_id", "itemId", "item"))
    qty_required: int = Field(
        default=0,
        validation_alias=AliasChoices("qty_required", "qty", "quantity"),
        description="Units requested; non-positive lines are dropped",
    )

    def to_line(self) -> LineRequest:
        return LineRequest(item_id=self.item_id, qty_required=self.qty_required)


class ProductionOrderRequest(RequestModel):
    kind: Annotated[OrderKind, Lowered] = OrderKind.INDIVIDUAL
    war_id: int
    title: str | None = None
    label: str | None = None
    yard_id: int | None = None
    lines: list[LineIn] = Field(default_factory=list)

    def line_requests(self) -> list[LineRequest]:
        return [line.to_line() for line in self.lines]


class OrderItemProgressRequest(RequestModel):
    order_item_id: int
    qty_done: int


class ContainerItemProgressRequest(RequestModel):
    container_item_id: int
    qty_done: int


class OrderStatusRequest(RequestModel):
    status: Annotated[OrderStatus, BeforeValidator(canonical_status)]


class ShipmentStatusRequest(RequestModel):
    status: Annotated[ShipmentStatus, Lowered]


class ContainerStateRequest(RequestModel):
    state: Annotated[ContainerState, Lowered]


class YardRequest(RequestModel):
    yard_id: int


class ShipmentCreateRequest(RequestModel):
    war_id: int
    container_id: int
    to_location_id: int
    mode: Annotated[ShipmentMode, Lowered]
    route_notes: str | None = None


class ApplicationRequest(RequestModel):
    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True)

    discord_user_id: str | None = None
    discord_name: str | None = None
    timezone: str | None = None
    typical_play_times: str | None = None
    experience_level: str | None = None
    notes: str | None = None


class ReviewRequest(RequestModel):
    status: Annotated[ApplicationStatus, Lowered]
    notes: str | None = None


class RoleRequest(RequestModel):
    role: Annotated[Role, Lowered]


class OrderItemRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    item_id: int
    qty_required: int
    qty_done: int


class OrderRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    war_id: int
    type: str
    title: str
    status: str
    order_no: int | None
    created_by: str
    items: list[OrderItemRead]


class ContainerItemRead(OrderItemRead):
    slot_count: int


class ContainerRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    war_id: int
    yard_id: int | None
    label: str
    state: str
    max_slots: int
    current_slots: int
    required_slots: int
    assigned_shipment_id: int | None
    created_by: str
    items: list[ContainerItemRead]
