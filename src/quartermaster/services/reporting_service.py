"""Read-only war statistics over delivered containers."""

from dataclasses import asdict, dataclass, field
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.orm import Session, selectinload

from quartermaster.domain.enums import ContainerState, ItemUnit, ShipmentStatus
from quartermaster.domain.reporting import (
    BREAKDOWN_LIMIT,
    UNKNOWN_DESTINATION,
    DeliveredLine,
    DestinationRow,
    UnitTotals,
    breakdown_by_destination,
    destination_label,
    total_delivered,
)
from quartermaster.models import Container, ContainerItem, Shipment


@dataclass(slots=True)
class WarOverview:
    war_id: int
    delivered_containers: int = 0
    shipments_total: int = 0
    shipments_complete: int = 0
    totals: UnitTotals = field(default_factory=UnitTotals)
    destinations: list[DestinationRow] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "war_id": self.war_id,
            "delivered_containers": self.delivered_containers,
            "shipments": {"total": self.shipments_total, "complete": self.shipments_complete},
            "totals": asdict(self.totals),
            "destinations": [row.to_dict() for row in self.destinations],
        }


class ReportingService:
    """Service aggregating what a war has delivered, and where."""

    def __init__(self, session: Session, breakdown_limit: int = BREAKDOWN_LIMIT):
        self.session = session
        self.breakdown_limit = breakdown_limit

    def war_overview(self, war_id: int) -> WarOverview:
        """Sum delivered container lines by unit kind and by destination.

        Only containers in state ``delivered`` count toward the totals, and
        only shipments with status ``complete`` produce destination rows.
        """
        containers = self.session.scalars(
            select(Container)
            .where(Container.war_id == war_id, Container.state == ContainerState.DELIVERED.value)
            .options(selectinload(Container.items).selectinload(ContainerItem.item))
        ).all()

        lines = [
            DeliveredLine(
                qty_done=line.qty_done,
                unit=ItemUnit(line.item.unit) if line.item else ItemUnit.CRATE,
                crate_size=line.item.crate_size if line.item else None,
                shipment_id=container.assigned_shipment_id,
            )
            for container in containers
            for line in container.items
        ]

        complete = self.session.scalars(
            select(Shipment)
            .where(Shipment.war_id == war_id, Shipment.status == ShipmentStatus.COMPLETE.value)
            .options(selectinload(Shipment.to_location))
        ).all()
        labels = {
            shipment.id: (
                destination_label(shipment.to_location.name, shipment.to_location.region)
                if shipment.to_location
                else UNKNOWN_DESTINATION
            )
            for shipment in complete
        }

        shipments_total = self.session.scalar(
            select(func.count(Shipment.id)).where(Shipment.war_id == war_id)
        )
        return WarOverview(
            war_id=war_id,
            delivered_containers=len(containers),
            shipments_total=shipments_total or 0,
            shipments_complete=len(complete),
            totals=total_delivered(lines),
            destinations=breakdown_by_destination(lines, labels, limit=self.breakdown_limit),
        )
