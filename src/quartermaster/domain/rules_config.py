"""Declarative rule configuration for the logistics domain."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class ContainerRules:
    """Container capacity and slot accounting constants."""

    max_slots: int = 60
    default_slot_count: int = 1
    min_slot_count: int = 1
    max_slot_count: int = 60
    label_summary_lines: int = 3


@dataclass(frozen=True, slots=True)
class OrderRules:
    """Individual production order constants."""

    title_summary_lines: int = 3
    board_limit: int = 200


@dataclass(frozen=True, slots=True)
class CompletionPolicy:
    """Which order kinds must be fully filled before they may finish.

    Individual orders may be completed at any fill level while containers
    must be fully packed before they are marked ready.
    """

    order_requires_full_fill: bool = False
    container_requires_full_fill: bool = True


@dataclass(frozen=True, slots=True)
class RulesConfig:
    """Top-level configuration container for all subsystems."""

    container: ContainerRules = ContainerRules()
    orders: OrderRules = OrderRules()
    completion: CompletionPolicy = CompletionPolicy()


DEFAULT_RULES = RulesConfig()
