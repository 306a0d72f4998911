"""Slot accounting and state rules for containers."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass

from quartermaster.domain.enums import ContainerState
from quartermaster.domain.errors import CapacityExceeded, PreconditionFailed, ValidationError
from quartermaster.domain.orders import LineRequest, is_fully_done
from quartermaster.domain.rules_config import DEFAULT_RULES, ContainerRules


@dataclass(frozen=True, slots=True)
class SlotLine:
    """A container line with its per-unit slot cost."""

    item_id: int
    qty_required: int
    slot_count: int
    qty_done: int = 0


def effective_slot_count(
    value: int | None, rules: ContainerRules = DEFAULT_RULES.container
) -> int:
    """Return the slot cost of one unit, defaulting to 1 and clamped to the container size."""

    if value is None or value < rules.min_slot_count:
        value = rules.default_slot_count
    return max(rules.min_slot_count, min(rules.max_slot_count, value))


def plan_lines(
    lines: Iterable[LineRequest],
    slot_counts: Mapping[int, int | None],
    rules: ContainerRules = DEFAULT_RULES.container,
) -> list[SlotLine]:
    """Attach catalog slot costs to normalized lines."""

    return [
        SlotLine(
            item_id=line.item_id,
            qty_required=line.qty_required,
            slot_count=effective_slot_count(slot_counts.get(line.item_id), rules),
        )
        for line in lines
    ]


def required_slots(lines: Iterable[SlotLine]) -> int:
    return sum(max(0, line.qty_required) * line.slot_count for line in lines)


def filled_slots(lines: Iterable[tuple[int, int]]) -> int:
    """Recompute used slots from ``(qty_done, slot_count)`` pairs of every line."""

    return sum(max(0, done) * max(1, slot_count) for done, slot_count in lines)


def check_capacity(
    lines: Iterable[SlotLine], rules: ContainerRules = DEFAULT_RULES.container
) -> int:
    """Return the total required slots or raise when the plan cannot fit.

    Raises:
        CapacityExceeded: If the plan uses no slots or more than ``max_slots``
    """

    total = required_slots(lines)
    if total <= 0:
        raise CapacityExceeded("Add at least 1 item line")
    if total > rules.max_slots:
        raise CapacityExceeded(f"Container limit is {rules.max_slots} crates/slots")
    return total


def parse_container_state(raw: object) -> ContainerState:
    try:
        return ContainerState(str(raw or "").strip().lower())
    except ValueError as exc:
        raise ValidationError("Invalid state") from exc


def check_ready(lines: Iterable[tuple[int, int]], *, requires_full_fill: bool = True) -> None:
    """Ensure a container may be marked ready given ``(qty_done, qty_required)`` pairs."""

    pairs = list(lines)
    if not pairs:
        raise PreconditionFailed("Cannot set READY on an empty container")
    if requires_full_fill and not is_fully_done(pairs):
        raise PreconditionFailed("Cannot set READY unless the container is fully filled")


def check_reopen(state: ContainerState, assigned_shipment_id: int | None) -> None:
    """Containers can only go back to filling while still sitting in a yard."""

    if state in (ContainerState.IN_TRANSIT, ContainerState.DELIVERED) or assigned_shipment_id:
        raise PreconditionFailed("Container has already been shipped")
