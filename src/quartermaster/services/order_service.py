"""Individual production orders: creation, line progress, status and the board."""

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from quartermaster.domain.enums import Lane, OrderStatus, OrderType, Role
from quartermaster.domain.errors import NotFound, ValidationError
from quartermaster.domain.orders import (
    LineRequest,
    clamp_progress,
    lane_for_status,
    normalize_lines,
    parse_order_status,
    require_int,
    progress_percent,
    summarize_lines,
)
from quartermaster.domain.roles import require_role
from quartermaster.domain.rules_config import DEFAULT_RULES, RulesConfig
from quartermaster.models import Order, OrderItem, War
from quartermaster.services.archive_service import ArchiveService
from quartermaster.services.catalog_service import CatalogService
from quartermaster.services.membership_service import Member, load_war

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class StatusResult:
    status: OrderStatus
    archived: bool = False
    warning: str | None = None


@dataclass(frozen=True, slots=True)
class BoardCard:
    """An order as shown in a board lane."""

    id: int
    order_no: int | None
    title: str
    status: str
    done: int
    required: int
    progress: int
    created_at: datetime | None = None


@dataclass(slots=True)
class Board:
    war_id: int
    lanes: dict[Lane, list[BoardCard]] = field(
        default_factory=lambda: {lane: [] for lane in Lane}
    )

    def to_dict(self) -> dict[str, list[dict[str, Any]]]:
        return {
            lane.value: [
                {
                    "id": card.id,
                    "order_no": card.order_no,
                    "title": card.title,
                    "status": card.status,
                    "done": card.done,
                    "required": card.required,
                    "progress": card.progress,
                }
                for card in cards
            ]
            for lane, cards in self.lanes.items()
        }


class OrderService:
    """Service owning the lifecycle of individual production orders."""

    def __init__(
        self,
        session: Session,
        catalog: CatalogService,
        archive: ArchiveService,
        rules: RulesConfig = DEFAULT_RULES,
    ):
        self.session = session
        self.catalog = catalog
        self.archive = archive
        self.rules = rules

    def create_individual(
        self,
        actor: Member,
        war_id: int | None,
        title: str | None,
        lines: Iterable[LineRequest],
    ) -> Order:
        """Create an open production order.

        Duplicate items are merged and non-positive lines dropped. An empty
        title is replaced by a summary of the first lines.

        Raises:
            AuthorizationError: If the actor is below member
            ValidationError: If war_id is missing, no usable lines remain or an item is unknown
            NotFound: If the war does not belong to the actor's regiment
        """
        require_role(actor.role, Role.MEMBER)
        war = load_war(self.session, actor, war_id)
        normalized = normalize_lines(lines)
        if not normalized:
            raise ValidationError("Add at least 1 item line")
        items = self.catalog.require_items(line.item_id for line in normalized)

        title = (title or "").strip() or summarize_lines(
            normalized,
            {item_id: item.name for item_id, item in items.items()},
            limit=self.rules.orders.title_summary_lines,
        )

        try:
            order = Order(
                war_id=war.id,
                type=OrderType.PRODUCTION.value,
                title=title,
                status=OrderStatus.OPEN.value,
                order_no=self._next_order_no(war),
                created_by=actor.profile_id,
                items=[
                    OrderItem(item_id=line.item_id, qty_required=line.qty_required, qty_done=0)
                    for line in normalized
                ],
            )
            self.session.add(order)
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise

        logger.info(
            "order %s #%s created in war %s with %d lines",
            order.id,
            order.order_no,
            war.id,
            len(normalized),
        )
        return order

    def _next_order_no(self, war: War) -> int:
        number = war.next_order_no or 1
        war.next_order_no = number + 1
        return number

    def get_order(self, actor: Member, order_id: int) -> Order:
        order = self.session.get(Order, order_id)
        if order is None:
            raise NotFound("Order not found")
        load_war(self.session, actor, order.war_id)
        return order

    def update_item_progress(
        self, actor: Member, order_id: int, order_item_id: int | None, qty_done: int | None
    ) -> OrderItem:
        """Record progress on one line, clamped to ``[0, qty_required]``.

        Raises:
            NotFound: If the line does not belong to ``order_id``
        """
        require_role(actor.role, Role.MEMBER)
        line_id = require_int(order_item_id, field="order_item_id")
        requested = require_int(qty_done, field="qty_done")
        order = self.get_order(actor, order_id)

        line = self.session.scalar(
            select(OrderItem).where(OrderItem.id == line_id, OrderItem.order_id == order.id)
        )
        if line is None:
            raise NotFound("Order item not found for this order")

        try:
            line.qty_done = clamp_progress(requested, line.qty_required)
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise
        return line

    def set_status(self, actor: Member, order_id: int, status: OrderStatus | str) -> StatusResult:
        """Move an order to any lane; ``complete`` hands it to the archive."""
        require_role(actor.role, Role.MEMBER)
        new_status = parse_order_status(status)
        order = self.get_order(actor, order_id)

        if new_status == OrderStatus.COMPLETE:
            result = self.archive.archive_production_order(order.id, actor.profile_id)
            return StatusResult(
                status=new_status, archived=result.archived, warning=result.warning
            )

        try:
            order.status = new_status.value
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise
        return StatusResult(status=new_status)

    def board(self, actor: Member, war_id: object) -> Board:
        """Group the live orders of a war into lanes, newest first."""
        war = load_war(self.session, actor, war_id)
        orders = self.session.scalars(
            select(Order)
            .where(Order.war_id == war.id)
            .options(selectinload(Order.items))
            .order_by(Order.created_at.desc(), Order.id.desc())
            .limit(self.rules.orders.board_limit)
        )

        board = Board(war_id=war.id)
        for order in orders:
            lane = lane_for_status(order.status)
            if lane is None:
                continue
            done = sum(line.qty_done for line in order.items)
            required = sum(line.qty_required for line in order.items)
            board.lanes[lane].append(
                BoardCard(
                    id=order.id,
                    order_no=order.order_no,
                    title=order.title,
                    status=order.status,
                    done=done,
                    required=required,
                    progress=progress_percent(done, required),
                    created_at=order.created_at,
                )
            )
        return board
