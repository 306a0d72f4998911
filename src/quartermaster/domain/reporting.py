"""Aggregation of delivered container contents for war reporting."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import asdict, dataclass, field

from quartermaster.domain.enums import ItemUnit

UNKNOWN_DESTINATION = "Unknown"
BREAKDOWN_LIMIT = 8


@dataclass(frozen=True, slots=True)
class DeliveredLine:
    """Done quantity of one line of a delivered container."""

    qty_done: int
    unit: ItemUnit
    crate_size: int | None = None
    shipment_id: int | None = None


@dataclass(slots=True)
class UnitTotals:
    crates: int = 0
    vehicles: int = 0
    items: int = 0
    estimated_items: int = 0

    def add(self, line: DeliveredLine) -> None:
        done = max(0, line.qty_done)
        if line.unit == ItemUnit.VEHICLE:
            self.vehicles += done
        elif line.unit == ItemUnit.ITEM:
            self.items += done
        else:
            self.crates += done

        if line.unit == ItemUnit.CRATE and line.crate_size:
            self.estimated_items += done * line.crate_size
        else:
            self.estimated_items += done


@dataclass(slots=True)
class DestinationRow:
    label: str
    totals: UnitTotals = field(default_factory=UnitTotals)

    def to_dict(self) -> dict[str, object]:
        return {"label": self.label, **asdict(self.totals)}


def destination_label(name: str | None, region: str | None) -> str:
    """Format a destination as ``"Region • Name"``, falling back to the name alone."""

    if not name:
        return UNKNOWN_DESTINATION
    if region:
        return f"{region} • {name}"
    return name


def total_delivered(lines: Iterable[DeliveredLine]) -> UnitTotals:
    totals = UnitTotals()
    for line in lines:
        totals.add(line)
    return totals


def breakdown_by_destination(
    lines: Iterable[DeliveredLine],
    labels: Mapping[int, str],
    *,
    limit: int = BREAKDOWN_LIMIT,
) -> list[DestinationRow]:
    """Bucket delivered lines by the destination of their completed shipment.

    ``labels`` maps completed shipment ids to destination labels; lines whose
    shipment is not in it are not counted. Rows are ordered by crates,
    largest first.
    """

    rows: dict[str, DestinationRow] = {}
    for line in lines:
        if line.shipment_id is None or line.shipment_id not in labels:
            continue
        label = labels[line.shipment_id]
        row = rows.setdefault(label, DestinationRow(label=label))
        row.totals.add(line)

    ordered = sorted(rows.values(), key=lambda row: (-row.totals.crates, row.label))
    return ordered[:limit]
