"""Archival of completed production orders.

Completing a production order copies it and its lines into the archive
tables and deletes the live rows, all in one transaction. Deployments that
never created the archive tables still get their order completed, in place,
with a warning instead of an error.
"""

import logging
from dataclasses import dataclass

from sqlalchemy.exc import OperationalError, ProgrammingError
from sqlalchemy.orm import Session

from quartermaster.domain.enums import OrderStatus, OrderType
from quartermaster.domain.errors import NotFound, PreconditionFailed
from quartermaster.domain.orders import is_fully_done
from quartermaster.domain.rules_config import DEFAULT_RULES, CompletionPolicy
from quartermaster.models import ArchivedOrder, ArchivedOrderItem, Order, utc_now

logger = logging.getLogger(__name__)

ARCHIVE_MISSING_WARNING = "Archive table missing; order marked complete in place"

_MISSING_TABLE_MARKERS = ("no such table", "does not exist", "undefined table")


def is_missing_table(exc: Exception) -> bool:
    """True for "table does not exist"-class driver errors."""
    original = getattr(exc, "orig", None)
    if getattr(original, "pgcode", None) == "42P01":
        return True
    text = str(original if original is not None else exc).lower()
    return any(marker in text for marker in _MISSING_TABLE_MARKERS)


@dataclass(frozen=True, slots=True)
class ArchiveResult:
    archived: bool
    warning: str | None = None


class ArchiveService:
    """Service moving completed production orders into the archive."""

    def __init__(self, session: Session, policy: CompletionPolicy = DEFAULT_RULES.completion):
        self.session = session
        self.policy = policy

    def archive_production_order(self, order_id: int, actor_id: str) -> ArchiveResult:
        """Complete an order, archiving it when it is a production order.

        Args:
            order_id: Live order to complete
            actor_id: Profile id recorded as ``archived_by``

        Returns:
            ArchiveResult telling whether archive rows were written

        Raises:
            NotFound: If the order does not exist
            PreconditionFailed: If the completion policy requires a full fill
        """
        order = self.session.get(Order, order_id)
        if order is None:
            raise NotFound("Order not found")
        if self.policy.order_requires_full_fill and not is_fully_done(
            (line.qty_done, line.qty_required) for line in order.items
        ):
            raise PreconditionFailed("Cannot complete an order that is not fully done")

        if order.type != OrderType.PRODUCTION:
            self._complete_in_place(order_id)
            return ArchiveResult(archived=False)

        try:
            archived = ArchivedOrder(
                original_order_id=order.id,
                war_id=order.war_id,
                type=order.type,
                title=order.title,
                status=OrderStatus.COMPLETE.value,
                order_no=order.order_no,
                created_by=order.created_by,
                ordered_at=order.created_at,
                archived_at=utc_now(),
                archived_by=actor_id,
                items=[
                    ArchivedOrderItem(
                        item_id=line.item_id,
                        qty_required=line.qty_required,
                        qty_done=line.qty_done,
                    )
                    for line in order.items
                ],
            )
            self.session.add(archived)
            self.session.flush()
            self.session.delete(order)
            self.session.commit()
        except (OperationalError, ProgrammingError) as exc:
            self.session.rollback()
            if not is_missing_table(exc):
                raise
            logger.warning("archive tables missing, completing order %s in place", order_id)
            self._complete_in_place(order_id)
            return ArchiveResult(archived=False, warning=ARCHIVE_MISSING_WARNING)
        except Exception:
            self.session.rollback()
            raise

        logger.info("archived order %s as %s by %s", order_id, archived.id, actor_id)
        return ArchiveResult(archived=True)

    def _complete_in_place(self, order_id: int) -> None:
        try:
            order = self.session.get(Order, order_id)
            if order is None:
                raise NotFound("Order not found")
            order.status = OrderStatus.COMPLETE.value
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise
