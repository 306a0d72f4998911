"""Line normalization, progress clamping and board lanes for orders."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any

from quartermaster.domain.enums import Lane, OrderStatus
from quartermaster.domain.errors import ValidationError

_LANE_ALIASES: dict[str, Lane] = {
    "": Lane.QUEUED,
    "open": Lane.QUEUED,
    "queued": Lane.QUEUED,
    "queue": Lane.QUEUED,
    "in_progress": Lane.PRODUCING,
    "progress": Lane.PRODUCING,
    "working": Lane.PRODUCING,
    "producing": Lane.PRODUCING,
    "ready": Lane.READY,
    "packed": Lane.READY,
    "staged": Lane.READY,
    "complete": Lane.COMPLETE,
    "completed": Lane.COMPLETE,
    "done": Lane.COMPLETE,
}

_STATUS_ALIASES = {"producing": OrderStatus.IN_PROGRESS.value}


@dataclass(frozen=True, slots=True)
class LineRequest:
    """A normalized request for ``qty_required`` units of one catalog item."""

    item_id: int
    qty_required: int


def normalize_lines(lines: Iterable[LineRequest]) -> list[LineRequest]:
    """Drop non-positive lines and merge duplicates by summing their quantities.

    The first occurrence of an item fixes its position.

    Raises:
        ValidationError: If an item id or quantity is not an integer
    """

    summed: dict[int, int] = {}
    for line in lines:
        item_id = require_int(line.item_id, field="item_id")
        qty = require_int(line.qty_required, field="qty_required")
        if qty <= 0:
            continue
        summed[item_id] = summed.get(item_id, 0) + qty

    return [LineRequest(item_id=item_id, qty_required=qty) for item_id, qty in summed.items()]


def summarize_lines(
    lines: Iterable[LineRequest],
    names: Mapping[int, str],
    *,
    limit: int = 3,
    fallback: str = "Production order",
) -> str:
    """Build a ``"10x Name • 5x Other"`` summary from the first lines by name."""

    known = [line for line in lines if line.item_id in names]
    known.sort(key=lambda line: names[line.item_id].lower())
    parts = [f"{line.qty_required}x {names[line.item_id]}" for line in known[:limit]]
    return " • ".join(parts) if parts else fallback


def require_int(value: object, *, field: str) -> int:
    """Return an id or quantity unchanged, rejecting anything that is not an int.

    Request models coerce JSON input before it reaches the services; this
    guards the services against being handed strings or floats directly.

    Raises:
        ValidationError: If ``value`` is missing, a bool or not an int
    """

    if value is None:
        raise ValidationError(f"{field} is required")
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(f"{field} must be an integer")
    return value


def clamp_progress(requested: int, qty_required: int) -> int:
    """Clamp a requested done-quantity into ``[0, qty_required]``."""

    return max(0, min(requested, qty_required))


def canonical_status(raw: Any) -> str:
    """Lower-case a status value and resolve the ``producing`` board alias."""

    value = str(raw or "").strip().lower()
    return _STATUS_ALIASES.get(value, value)


def parse_order_status(raw: Any) -> OrderStatus:
    """Parse a status value, accepting the ``producing`` board alias."""

    try:
        return OrderStatus(canonical_status(raw))
    except ValueError as exc:
        raise ValidationError("Invalid status") from exc


def lane_for_status(raw: str | None) -> Lane | None:
    """Map a free-form status to its board lane; cancelled orders have none."""

    value = str(raw or "").strip().lower()
    if value == OrderStatus.CANCELLED:
        return None
    return _LANE_ALIASES.get(value, Lane.QUEUED)


def progress_percent(done: int, required: int) -> int:
    if required <= 0:
        return 0
    return max(0, min(100, round(done * 100 / required)))


def is_fully_done(lines: Iterable[tuple[int, int]]) -> bool:
    """True when there is at least one line and every ``(done, required)`` is met."""

    pairs = list(lines)
    return bool(pairs) and all(done >= required for done, required in pairs)
