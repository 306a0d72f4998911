"""HTTP routes for the Quartermaster API."""

from __future__ import annotations

from collections.abc import Generator
from typing import Annotated, Any

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session

from quartermaster.api import schemas
from quartermaster.api.runtime import ApiState
from quartermaster.domain.enums import OrderKind, OrderStatus
from quartermaster.domain.errors import AuthenticationRequired, PreconditionFailed
from quartermaster.domain.identity import Identity
from quartermaster.factory import (
    create_catalog_service,
    create_container_service,
    create_membership_service,
    create_order_service,
    create_recruitment_service,
    create_reporting_service,
    create_shipment_service,
)
from quartermaster.services.membership_service import Member
from quartermaster.services.recruitment_service import ApplicationForm

router = APIRouter()


def get_state(request: Request) -> ApiState:
    state = getattr(request.app.state, "api_state", None)
    if state is None:  # pragma: no cover - FastAPI should always initialise state
        raise RuntimeError("API state not initialised")
    return state


ApiStateDep = Annotated[ApiState, Depends(get_state)]


def get_session(state: ApiStateDep) -> Generator[Session]:
    session = state.session_factory()
    try:
        yield session
    finally:
        session.close()


SessionDep = Annotated[Session, Depends(get_session)]


def get_identity(request: Request, state: ApiStateDep) -> Identity | None:
    return state.identity.identify(request.headers)


IdentityDep = Annotated[Identity | None, Depends(get_identity)]


def get_member(session: SessionDep, identity: IdentityDep) -> Member:
    return create_membership_service(session).require(identity)


MemberDep = Annotated[Member, Depends(get_member)]


def _with_warning(payload: dict[str, Any], warning: str | None) -> dict[str, Any]:
    if warning:
        payload["warning"] = warning
    return payload


@router.get("/health")
def health(state: ApiStateDep) -> dict[str, object]:
    database = state.database_ok()
    return {
        "status": "ok" if database else "degraded",
        "database": database,
        "regiment": state.settings.regiment_slug,
    }


@router.get("/me")
def me(session: SessionDep, member: MemberDep) -> dict[str, object]:
    try:
        war_id = create_membership_service(session).active_war_id(member)
    except PreconditionFailed:
        war_id = None
    return {
        "ok": True,
        "profile_id": member.profile_id,
        "regiment_id": member.regiment_id,
        "role": member.role.value,
        "active_war_id": war_id,
    }


@router.post("/join")
def join(
    body: schemas.ApplicationRequest,
    session: SessionDep,
    identity: IdentityDep,
    state: ApiStateDep,
) -> dict[str, object]:
    form = ApplicationForm(
        discord_user_id=body.discord_user_id or "",
        discord_name=body.discord_name or "",
        timezone=body.timezone,
        typical_play_times=body.typical_play_times,
        experience_level=body.experience_level,
        notes=body.notes,
    )
    result = create_recruitment_service(session, state.settings).submit(form, identity)
    return {"ok": True, "status": result.status.value, "updated": result.updated}


@router.post("/bootstrap")
def bootstrap(session: SessionDep, identity: IdentityDep, state: ApiStateDep) -> dict[str, object]:
    if identity is None:
        raise AuthenticationRequired()
    result = create_recruitment_service(session, state.settings).bootstrap(identity)
    return {
        "ok": True,
        "status": result.status,
        "bootstrapped": result.bootstrapped,
        "role": result.role.value if result.role else None,
    }


@router.put("/recruit-apps/{app_id}")
def review_application(
    app_id: int,
    body: schemas.ReviewRequest,
    session: SessionDep,
    member: MemberDep,
    state: ApiStateDep,
) -> dict[str, object]:
    application = create_recruitment_service(session, state.settings).review(
        member, app_id, body.status, body.notes
    )
    return {"ok": True, "id": application.id, "status": application.status}


@router.put("/members/{profile_id}/role")
def set_member_role(
    profile_id: str,
    body: schemas.RoleRequest,
    session: SessionDep,
    member: MemberDep,
) -> dict[str, object]:
    membership = create_membership_service(session).set_role(member, profile_id, body.role)
    return {"ok": True, "profile_id": membership.profile_id, "role": membership.role}


@router.post("/items/sync")
def sync_items(session: SessionDep, member: MemberDep, state: ApiStateDep) -> dict[str, object]:
    result = create_catalog_service(session, state.catalog_source).sync(member)
    return {"ok": True, "upserted": result.upserted, "source": result.source}


@router.get("/items/cost")
def item_cost(
    session: SessionDep,
    member: MemberDep,
    item_id: int,
    crates: Annotated[int, Query(ge=1, le=9999)] = 1,
) -> dict[str, object]:
    estimate = create_catalog_service(session).estimate_cost(member, item_id, crates)
    return {
        "ok": True,
        "item_id": estimate.item_id,
        "name": estimate.name,
        "crates": estimate.crates,
        "produced": estimate.produced,
        "cost": estimate.cost,
    }


@router.post("/orders/production")
def create_production_order(
    body: schemas.ProductionOrderRequest,
    session: SessionDep,
    member: MemberDep,
    state: ApiStateDep,
) -> dict[str, object]:
    if body.kind == OrderKind.INDIVIDUAL:
        order = create_order_service(session, state.rules).create_individual(
            member, body.war_id, body.title, body.line_requests()
        )
        return {
            "ok": True,
            "kind": body.kind.value,
            "order": schemas.OrderRead.model_validate(order).model_dump(),
        }
    container = create_container_service(session, state.rules).create(
        member,
        body.war_id,
        body.yard_id,
        body.label or body.title,
        body.line_requests(),
    )
    return {
        "ok": True,
        "kind": body.kind.value,
        "container": schemas.ContainerRead.model_validate(container).model_dump(),
    }


@router.get("/orders/board")
def order_board(
    session: SessionDep,
    member: MemberDep,
    state: ApiStateDep,
    war_id: int | None = None,
) -> dict[str, object]:
    if war_id is None:
        war_id = create_membership_service(session).active_war_id(member)
    board = create_order_service(session, state.rules).board(member, war_id)
    return {"ok": True, "war_id": board.war_id, "lanes": board.to_dict()}


@router.put("/orders/{order_id}/items")
def update_order_item(
    order_id: int,
    body: schemas.OrderItemProgressRequest,
    session: SessionDep,
    member: MemberDep,
    state: ApiStateDep,
) -> dict[str, object]:
    line = create_order_service(session, state.rules).update_item_progress(
        member, order_id, body.order_item_id, body.qty_done
    )
    return {"ok": True, "qty_done": line.qty_done}


@router.put("/orders/{order_id}/status")
def set_order_status(
    order_id: int,
    body: schemas.OrderStatusRequest,
    session: SessionDep,
    member: MemberDep,
    state: ApiStateDep,
) -> dict[str, object]:
    result = create_order_service(session, state.rules).set_status(member, order_id, body.status)
    payload: dict[str, Any] = {"ok": True, "status": result.status.value}
    if result.status == OrderStatus.COMPLETE:
        payload["archived"] = result.archived
    return _with_warning(payload, result.warning)


@router.put("/containers/{container_id}/items")
def update_container_item(
    container_id: int,
    body: schemas.ContainerItemProgressRequest,
    session: SessionDep,
    member: MemberDep,
    state: ApiStateDep,
) -> dict[str, object]:
    result = create_container_service(session, state.rules).update_item_progress(
        member, container_id, body.container_item_id, body.qty_done
    )
    payload: dict[str, Any] = {"ok": True, "qty_done": result.qty_done}
    if result.slots is not None:
        payload["slots"] = result.slots
    return _with_warning(payload, result.warning)


@router.put("/containers/{container_id}/state")
def set_container_state(
    container_id: int,
    body: schemas.ContainerStateRequest,
    session: SessionDep,
    member: MemberDep,
    state: ApiStateDep,
) -> dict[str, object]:
    container = create_container_service(session, state.rules).set_state(
        member, container_id, body.state
    )
    return {"ok": True, "state": container.state}


@router.put("/containers/{container_id}/yard")
def assign_container_yard(
    container_id: int,
    body: schemas.YardRequest,
    session: SessionDep,
    member: MemberDep,
    state: ApiStateDep,
) -> dict[str, object]:
    container = create_container_service(session, state.rules).assign_yard(
        member, container_id, body.yard_id
    )
    return {"ok": True, "yard_id": container.yard_id}


@router.post("/shipments")
def create_shipment(
    body: schemas.ShipmentCreateRequest,
    session: SessionDep,
    member: MemberDep,
) -> dict[str, object]:
    shipment = create_shipment_service(session).create(
        member,
        body.war_id,
        body.container_id,
        body.to_location_id,
        body.mode,
        body.route_notes,
    )
    return {"ok": True, "shipment_id": shipment.id}


@router.put("/shipments/{shipment_id}/status")
def set_shipment_status(
    shipment_id: int,
    body: schemas.ShipmentStatusRequest,
    session: SessionDep,
    member: MemberDep,
) -> dict[str, object]:
    result = create_shipment_service(session).set_status(member, shipment_id, body.status)
    return _with_warning({"ok": True, "status": result.status.value}, result.warning)


@router.get("/war/overview")
def war_overview(session: SessionDep, member: MemberDep) -> dict[str, object]:
    war_id = create_membership_service(session).active_war_id(member)
    overview = create_reporting_service(session).war_overview(war_id)
    return {"ok": True, **overview.to_dict()}
