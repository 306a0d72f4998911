"""Container packing, slot accounting and yard operations.

``Container.current_slots`` is a denormalized sum of ``qty_done * slot_count``
over the container's lines. It is recomputed from the lines after every
progress write, never adjusted incrementally, so concurrent writers converge
on a fresh aggregate.
"""

import logging
from collections.abc import Iterable
from dataclasses import dataclass

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from quartermaster.domain.containers import (
    check_capacity,
    check_ready,
    check_reopen,
    filled_slots,
    parse_container_state,
    plan_lines,
)
from quartermaster.domain.enums import ContainerState, Role
from quartermaster.domain.errors import NotFound, PreconditionFailed
from quartermaster.domain.orders import (
    LineRequest,
    clamp_progress,
    normalize_lines,
    require_int,
    summarize_lines,
)
from quartermaster.domain.roles import require_role
from quartermaster.domain.rules_config import DEFAULT_RULES, RulesConfig
from quartermaster.models import Container, ContainerItem, Yard
from quartermaster.services.catalog_service import CatalogService
from quartermaster.services.membership_service import Member, load_war

logger = logging.getLogger(__name__)

SLOTS_WARNING = "Progress saved but container slots could not be recalculated"

_SHIPPED = (ContainerState.IN_TRANSIT, ContainerState.DELIVERED)


@dataclass(frozen=True, slots=True)
class ProgressResult:
    """Outcome of a container line update.

    ``slots`` is None when the recompute failed; ``warning`` then says why.
    """

    qty_done: int
    slots: int | None = None
    warning: str | None = None


class ContainerService:
    """Service owning container fill state and the filling/ready gate."""

    def __init__(
        self,
        session: Session,
        catalog: CatalogService,
        rules: RulesConfig = DEFAULT_RULES,
    ):
        self.session = session
        self.catalog = catalog
        self.rules = rules

    def create(
        self,
        actor: Member,
        war_id: int | None,
        yard_id: int | None,
        label: str | None,
        lines: Iterable[LineRequest],
    ) -> Container:
        """Create a filling container in a yard.

        Slot costs come from the catalog. Nothing is written when the lines
        use no slots or more than the container holds.

        Raises:
            ValidationError: If war_id or yard_id is missing, or an item is unknown
            NotFound: If the war or yard is not the actor's
            CapacityExceeded: If the lines need 0 or more than ``max_slots`` slots
        """
        require_role(actor.role, Role.MEMBER)
        war = load_war(self.session, actor, war_id)
        yard = self._load_yard(war.id, yard_id)

        normalized = normalize_lines(lines)
        items = self.catalog.require_items(line.item_id for line in normalized)
        planned = plan_lines(
            normalized,
            {item_id: item.slot_count for item_id, item in items.items()},
            self.rules.container,
        )
        total = check_capacity(planned, self.rules.container)

        label = (label or "").strip() or summarize_lines(
            normalized,
            {item_id: item.name for item_id, item in items.items()},
            limit=self.rules.container.label_summary_lines,
            fallback="Container",
        )

        try:
            container = Container(
                war_id=war.id,
                yard_id=yard.id,
                label=label,
                state=ContainerState.FILLING.value,
                max_slots=self.rules.container.max_slots,
                current_slots=0,
                created_by=actor.profile_id,
                items=[
                    ContainerItem(
                        item_id=line.item_id,
                        qty_required=line.qty_required,
                        qty_done=0,
                        slot_count=line.slot_count,
                    )
                    for line in planned
                ],
            )
            self.session.add(container)
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise

        logger.info(
            "container %s created in yard %s using %d/%d slots",
            container.id,
            yard.id,
            total,
            self.rules.container.max_slots,
        )
        return container

    def _load_yard(self, war_id: int, yard_id: int | None) -> Yard:
        yard = self.session.get(Yard, require_int(yard_id, field="yard_id"))
        if yard is None or yard.war_id != war_id:
            raise NotFound("Yard not found")
        return yard

    def get_container(self, actor: Member, container_id: int) -> Container:
        container = self.session.get(Container, container_id)
        if container is None:
            raise NotFound("Container not found")
        load_war(self.session, actor, container.war_id)
        return container

    def update_item_progress(
        self,
        actor: Member,
        container_id: int,
        container_item_id: int | None,
        qty_done: int | None,
    ) -> ProgressResult:
        """Record progress on one line and recompute the container's used slots.

        The line write is committed first. A failing recompute is reported
        through ``ProgressResult.warning`` and does not undo the line write.
        """
        require_role(actor.role, Role.MEMBER)
        line_id = require_int(container_item_id, field="container_item_id")
        requested = require_int(qty_done, field="qty_done")
        container = self.get_container(actor, container_id)

        line = self.session.scalar(
            select(ContainerItem).where(
                ContainerItem.id == line_id, ContainerItem.container_id == container.id
            )
        )
        if line is None:
            raise NotFound("Container item not found for this container")

        try:
            line.qty_done = clamp_progress(requested, line.qty_required)
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise

        try:
            slots = self.recompute_slots(container.id)
        except SQLAlchemyError:
            self.session.rollback()
            logger.warning("slot recompute failed for container %s", container.id, exc_info=True)
            return ProgressResult(qty_done=line.qty_done, warning=SLOTS_WARNING)
        return ProgressResult(qty_done=line.qty_done, slots=slots)

    def recompute_slots(self, container_id: int) -> int:
        """Persist ``current_slots`` as the sum over all lines of the container."""
        rows = self.session.execute(
            select(ContainerItem.qty_done, ContainerItem.slot_count).where(
                ContainerItem.container_id == container_id
            )
        ).all()
        slots = filled_slots((row.qty_done, row.slot_count) for row in rows)

        container = self.session.get(Container, container_id)
        if container is None:
            raise NotFound("Container not found")
        container.current_slots = slots
        self.session.commit()
        return slots

    def set_state(self, actor: Member, container_id: int, state: ContainerState | str) -> Container:
        """Change a container's state.

        Members may mark a container ready once it is packed; every other
        state change needs an officer.

        Raises:
            AuthorizationError: If the actor's role is too low for the target state
            PreconditionFailed: If the container is not packed, or was already shipped
        """
        new_state = parse_container_state(state)
        minimum = Role.MEMBER if new_state == ContainerState.READY else Role.OFFICER
        require_role(actor.role, minimum)
        container = self.get_container(actor, container_id)
        current = ContainerState(container.state)

        if new_state == ContainerState.READY:
            if current in _SHIPPED:
                raise PreconditionFailed("Container has already been shipped")
            check_ready(
                ((line.qty_done, line.qty_required) for line in container.items),
                requires_full_fill=self.rules.completion.container_requires_full_fill,
            )
        elif new_state == ContainerState.FILLING:
            check_reopen(current, container.assigned_shipment_id)

        try:
            container.state = new_state.value
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise

        logger.info(
            "container %s %s -> %s by %s", container.id, current, new_state, actor.profile_id
        )
        return container

    def assign_yard(self, actor: Member, container_id: int, yard_id: int | None) -> Container:
        """Place an unshipped container in a yard of its war (officer and above).

        This is how a container stranded without a yard after an aborted
        shipment becomes shippable again.
        """
        require_role(actor.role, Role.OFFICER)
        container = self.get_container(actor, container_id)
        if ContainerState(container.state) in _SHIPPED or container.assigned_shipment_id:
            raise PreconditionFailed("Container has already been shipped")
        yard = self._load_yard(container.war_id, yard_id)

        try:
            container.yard_id = yard.id
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise

        logger.info("container %s moved to yard %s", container.id, yard.id)
        return container
