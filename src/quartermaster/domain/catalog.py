"""Normalization of the external item catalog feed.

The feed is a JSON list of item definitions (or an object wrapping one
under ``items``). Each record is reduced to the columns the logistics
engine needs: a stable slug, display name, category, counting unit,
crate size and the resource cost of producing one crate.
"""

from __future__ import annotations

import math
import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from quartermaster.domain.enums import ItemUnit
from quartermaster.domain.errors import ValidationError

RESOURCES: tuple[str, ...] = ("bmat", "rmat", "emat", "hemat")

_NON_ALNUM = re.compile(r"[^a-z0-9]+")
_PNG_SUFFIX = re.compile(r"\.png$", re.IGNORECASE)


@dataclass(slots=True)
class CatalogEntry:
    """One normalized catalog row ready to be upserted by slug."""

    slug: str
    name: str
    category: str
    unit: ItemUnit
    crate_size: int | None
    cost: dict[str, int]
    slot_count: int = 1
    is_active: bool = True
    meta: dict[str, Any] = field(default_factory=dict)


def slugify(text: str) -> str:
    """Lower-case, drop a ``.png`` suffix and collapse everything else to dashes."""

    value = _PNG_SUFFIX.sub("", text.strip().lower())
    return _NON_ALNUM.sub("-", value).strip("-")


def normalize_unit(category: str | None, item_class: str | None) -> ItemUnit:
    c = (category or "").lower()
    cls = (item_class or "").lower()
    if "vehicle" in c or "vehicle" in cls or "tank" in cls:
        return ItemUnit.VEHICLE
    return ItemUnit.CRATE


def coerce_int(value: Any) -> int | None:
    """Read a loosely typed feed number, flooring fractions; None when unusable."""
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(str(value).strip())
    except ValueError:
        return None
    if not math.isfinite(number):
        return None
    return math.floor(number)


def _text(record: Mapping[str, Any], *keys: str) -> str:
    for key in keys:
        value = record.get(key)
        if value is not None and str(value).strip():
            return str(value).strip()
    return ""


def parse_cost(raw: Any) -> dict[str, int]:
    """Extract the four resource costs, treating anything unusable as zero."""

    source = raw if isinstance(raw, Mapping) else {}
    cost: dict[str, int] = {}
    for resource in RESOURCES:
        number = coerce_int(source.get(resource))
        cost[resource] = number if number is not None and number > 0 else 0
    return cost


def parse_record(record: Any) -> CatalogEntry | None:
    """Normalize a single feed record; returns None for unusable records."""

    if not isinstance(record, Mapping):
        return None
    name = _text(record, "itemName", "name")
    if not name:
        return None

    category = _text(record, "itemCategory", "category", "categoryName") or "Unknown"
    image = _text(record, "imgName", "imageName", "image_name")
    slug = slugify(image or name)
    if not slug:
        return None

    unit = normalize_unit(category, _text(record, "itemClass", "className", "class"))
    size = coerce_int(
        next(
            (
                record[key]
                for key in ("numberProduced", "amountProduced", "crateSize", "crate_size")
                if record.get(key) is not None
            ),
            None,
        )
    )
    return CatalogEntry(
        slug=slug,
        name=name,
        category=category,
        unit=unit,
        crate_size=size if size is not None and size > 1 else None,
        cost=parse_cost(record.get("cost")),
        meta=dict(record),
    )


def parse_feed(raw: Any) -> list[CatalogEntry]:
    """Normalize a whole feed, keeping the last record seen for each slug.

    Raises:
        ValidationError: If the feed holds no usable records
    """

    if isinstance(raw, list):
        records = raw
    elif isinstance(raw, Mapping) and isinstance(raw.get("items"), list):
        records = raw["items"]
    else:
        records = []

    by_slug: dict[str, CatalogEntry] = {}
    for record in records:
        entry = parse_record(record)
        if entry is not None:
            by_slug[entry.slug] = entry

    if not by_slug:
        raise ValidationError("No items returned by source")
    return list(by_slug.values())


def resource_cost(cost: Mapping[str, int], crates: int) -> dict[str, int]:
    """Total resources needed to produce ``crates`` crates."""

    return {resource: int(cost.get(resource, 0)) * crates for resource in RESOURCES}
