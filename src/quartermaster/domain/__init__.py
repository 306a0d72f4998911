"""Storage-free rules of the logistics domain.

* Enumerations for roles, order/container/shipment states (:mod:`enums`).
* The error taxonomy surfaced by every operation (:mod:`errors`).
* Rule configuration objects (:mod:`rules_config`).
* Pure rule functions for orders, containers, shipping, the catalog feed,
  identity claims and war reporting.
"""

from . import (
    catalog,
    containers,
    enums,
    errors,
    identity,
    orders,
    reporting,
    roles,
    rules_config,
    shipping,
)

__all__ = [
    "catalog",
    "containers",
    "enums",
    "errors",
    "identity",
    "orders",
    "reporting",
    "roles",
    "rules_config",
    "shipping",
]
