"""Shipment dispatch and the shipment status machine.

A shipment claims exactly one ready container sitting in a yard. Status
changes are committed first; their effect on the bound container is applied
afterwards and a failure there is reported as a warning instead of undoing
the status change.
"""

import logging
from dataclasses import dataclass

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from quartermaster.domain.enums import (
    ContainerState,
    Role,
    ShipmentEventType,
    ShipmentMode,
    ShipmentStatus,
)
from quartermaster.domain.errors import NotFound, PreconditionFailed, ValidationError
from quartermaster.domain.orders import require_int
from quartermaster.domain.roles import require_role
from quartermaster.domain.shipping import (
    check_transition,
    container_effect,
    parse_mode,
    parse_status,
    stamps_arrival,
    stamps_departure,
)
from quartermaster.models import Container, Location, Shipment, ShipmentEvent, utc_now
from quartermaster.services.membership_service import Member, load_war

logger = logging.getLogger(__name__)

CONTAINER_UPDATE_WARNING = "Shipment updated but the container could not be updated"
NO_YARD_WARNING = "Container returned to ready without a yard; assign it to a yard before shipping"


@dataclass(frozen=True, slots=True)
class StatusChange:
    status: ShipmentStatus
    warning: str | None = None


class ShipmentService:
    """Service for creating shipments and advancing their status."""

    def __init__(self, session: Session):
        self.session = session

    def create(
        self,
        actor: Member,
        war_id: int | None,
        container_id: int | None,
        to_location_id: int | None,
        mode: ShipmentMode | str,
        route_notes: str | None = None,
    ) -> Shipment:
        """Create an open shipment and claim the container for it.

        The claim is a conditional update that only succeeds while the
        container is still ready, in a yard and unassigned, so two concurrent
        dispatches of the same container cannot both win.

        Raises:
            AuthorizationError: If the actor is below officer
            ValidationError: On a bad mode, missing ids, or a container from another war
            NotFound: If the container or destination does not exist
            PreconditionFailed: If the container is not ready, not in a yard or already claimed
        """
        require_role(actor.role, Role.OFFICER)
        shipment_mode = parse_mode(mode)
        war = load_war(self.session, actor, war_id)

        container = self._load_container(container_id)
        if container.war_id != war.id:
            raise ValidationError("Container not in this war")
        if container.assigned_shipment_id is not None:
            raise PreconditionFailed("Container already assigned to a shipment")
        if container.state != ContainerState.READY:
            raise PreconditionFailed("Only READY containers can be shipped")
        if container.yard_id is None or container.yard is None:
            raise PreconditionFailed("Container must be in a yard to ship")

        destination = self.session.get(
            Location, require_int(to_location_id, field="to_location_id")
        )
        if destination is None or destination.war_id != war.id:
            raise NotFound("Destination not found")

        try:
            shipment = Shipment(
                war_id=war.id,
                mode=shipment_mode.value,
                status=ShipmentStatus.OPEN.value,
                from_location_id=container.yard.location_id,
                to_location_id=destination.id,
                route_notes=(route_notes or "").strip() or None,
                created_by=actor.profile_id,
            )
            self.session.add(shipment)
            self.session.flush()

            claimed = self.session.execute(
                update(Container)
                .where(
                    Container.id == container.id,
                    Container.assigned_shipment_id.is_(None),
                    Container.state == ContainerState.READY.value,
                    Container.yard_id.is_not(None),
                )
                .values(assigned_shipment_id=shipment.id)
                .execution_options(synchronize_session=False)
            )
            if claimed.rowcount != 1:
                raise PreconditionFailed("Container already assigned to a shipment")

            self.session.add(
                ShipmentEvent(
                    shipment_id=shipment.id,
                    actor_id=actor.profile_id,
                    event_type=ShipmentEventType.CREATED.value,
                    message=f"Shipment created for container {container.id}",
                )
            )
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise

        self.session.expire(container)
        logger.info(
            "shipment %s (%s) claimed container %s for location %s",
            shipment.id,
            shipment_mode,
            container.id,
            destination.id,
        )
        return shipment

    def _load_container(self, container_id: int | None) -> Container:
        container = self.session.get(Container, require_int(container_id, field="container_id"))
        if container is None:
            raise NotFound("Container not found")
        return container

    def get_shipment(self, actor: Member, shipment_id: int) -> Shipment:
        shipment = self.session.get(Shipment, shipment_id)
        if shipment is None:
            raise NotFound("Shipment not found")
        load_war(self.session, actor, shipment.war_id)
        return shipment

    def set_status(
        self, actor: Member, shipment_id: int, status: ShipmentStatus | str
    ) -> StatusChange:
        """Advance a shipment and mirror the change onto its container.

        Re-setting the current status changes nothing and records no event.

        Raises:
            AuthorizationError: If the actor is below officer
            ValidationError: If the status is unknown
            PreconditionFailed: If the transition goes backwards or leaves a terminal status
        """
        require_role(actor.role, Role.OFFICER)
        new_status = parse_status(status)
        shipment = self.get_shipment(actor, shipment_id)
        current = ShipmentStatus(shipment.status)
        check_transition(current, new_status)
        if new_status == current:
            return StatusChange(status=current)

        try:
            now = utc_now()
            shipment.status = new_status.value
            if stamps_departure(new_status):
                shipment.departed_at = now
            if stamps_arrival(new_status):
                shipment.arrived_at = now
            self.session.add(
                ShipmentEvent(
                    shipment_id=shipment.id,
                    actor_id=actor.profile_id,
                    event_type=ShipmentEventType.STATUS.value,
                    message=f"Shipment status -> {new_status}",
                )
            )
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise

        logger.info(
            "shipment %s %s -> %s by %s", shipment.id, current, new_status, actor.profile_id
        )
        try:
            warning = self.apply_container_effect(shipment.id, new_status)
        except SQLAlchemyError:
            self.session.rollback()
            logger.warning(
                "container update failed for shipment %s", shipment.id, exc_info=True
            )
            warning = CONTAINER_UPDATE_WARNING
        return StatusChange(status=new_status, warning=warning)

    def apply_container_effect(self, shipment_id: int, status: ShipmentStatus) -> str | None:
        """Apply the container side of a status change; returns a warning, if any."""
        effect = container_effect(status)
        if effect is None:
            return None
        container = self.session.scalar(
            select(Container).where(Container.assigned_shipment_id == shipment_id)
        )
        if container is None:
            logger.warning("shipment %s has no bound container", shipment_id)
            return None

        container.state = effect.state.value
        if effect.clear_yard:
            container.yard_id = None
        if effect.stamp_archived:
            container.archived_at = utc_now()
        if effect.release_shipment:
            container.assigned_shipment_id = None
        self.session.commit()

        if container.yard_id is None and effect.state == ContainerState.READY:
            return NO_YARD_WARNING
        return None
