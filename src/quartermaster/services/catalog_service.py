"""Catalog synchronization and item lookups.

The catalog is reference data: it is refreshed in bulk from an external
JSON feed and only read by the order and container engines.
"""

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any

import httpx
from sqlalchemy import select
from sqlalchemy.orm import Session

from quartermaster.domain.catalog import CatalogEntry, parse_feed, resource_cost
from quartermaster.domain.enums import Role
from quartermaster.domain.errors import ExternalUnavailable, ValidationError
from quartermaster.domain.orders import require_int
from quartermaster.domain.roles import require_role
from quartermaster.interfaces import ICatalogSource
from quartermaster.models import Item
from quartermaster.services.membership_service import Member

logger = logging.getLogger(__name__)

# Keeps IN (...) lists below SQLite's bound parameter limit.
SLUG_CHUNK = 500


class HttpCatalogSource:
    """Fetch the catalog feed over HTTP."""

    def __init__(self, url: str, timeout: float = 15.0, client: httpx.Client | None = None):
        self.url = url
        self.timeout = timeout
        self._client = client

    def fetch(self) -> Any:
        try:
            if self._client is not None:
                response = self._client.get(self.url, timeout=self.timeout)
            else:
                response = httpx.get(self.url, timeout=self.timeout, follow_redirects=True)
            response.raise_for_status()
            return response.json()
        except httpx.TimeoutException as exc:
            raise ExternalUnavailable("Catalog source timed out") from exc
        except httpx.HTTPStatusError as exc:
            raise ExternalUnavailable(
                f"Catalog source returned HTTP {exc.response.status_code}"
            ) from exc
        except httpx.HTTPError as exc:
            raise ExternalUnavailable("Catalog source unreachable") from exc
        except ValueError as exc:
            raise ExternalUnavailable("Catalog source returned invalid JSON") from exc


@dataclass(frozen=True, slots=True)
class SyncResult:
    upserted: int
    source: str


@dataclass(frozen=True, slots=True)
class CostEstimate:
    """Resources and output for a number of crates of one item."""

    item_id: int
    name: str
    crates: int
    produced: int
    cost: dict[str, int]


class CatalogService:
    """Service for catalog reference data."""

    def __init__(self, session: Session, source: ICatalogSource | None = None):
        self.session = session
        self.source = source

    def sync(self, actor: Member) -> SyncResult:
        """Fetch the feed and upsert every entry by slug (officer and above)."""
        require_role(actor.role, Role.OFFICER)
        if self.source is None:
            raise ExternalUnavailable("No catalog source configured")

        entries = parse_feed(self.source.fetch())
        upserted = self.upsert(entries)
        logger.info("catalog sync from %s upserted %d items", self.source.url, upserted)
        return SyncResult(upserted=upserted, source=self.source.url)

    def upsert(self, entries: list[CatalogEntry]) -> int:
        """Insert or update items keyed by slug; slot counts set by hand are kept."""
        try:
            for start in range(0, len(entries), SLUG_CHUNK):
                chunk = entries[start : start + SLUG_CHUNK]
                existing = {
                    item.slug: item
                    for item in self.session.scalars(
                        select(Item).where(Item.slug.in_([entry.slug for entry in chunk]))
                    )
                }
                for entry in chunk:
                    item = existing.get(entry.slug)
                    if item is None:
                        item = Item(slug=entry.slug, slot_count=entry.slot_count)
                        self.session.add(item)
                    item.name = entry.name
                    item.category = entry.category
                    item.unit = entry.unit.value
                    item.crate_size = entry.crate_size
                    item.is_active = entry.is_active
                    item.meta = entry.meta
                    for resource, amount in entry.cost.items():
                        setattr(item, f"cost_{resource}", amount)
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise
        return len(entries)

    def require_items(self, item_ids: Iterable[int]) -> dict[int, Item]:
        """Return active items by id, failing on any unknown or retired id."""
        wanted = set(item_ids)
        if not wanted:
            return {}
        items = {
            item.id: item
            for item in self.session.scalars(
                select(Item).where(Item.id.in_(wanted), Item.is_active.is_(True))
            )
        }
        missing = wanted - items.keys()
        if missing:
            raise ValidationError(f"Unknown item id: {min(missing)}")
        return items

    def estimate_cost(
        self, actor: Member, item_id: int | None, crates: int | None
    ) -> CostEstimate:
        """Total the resource cost of producing ``crates`` crates of an item.

        Raises:
            ValidationError: If the item is unknown or ``crates`` is below 1
        """
        require_role(actor.role, Role.MEMBER)
        wanted = require_int(item_id, field="item_id")
        count = require_int(crates, field="crates")
        if count < 1:
            raise ValidationError("crates must be at least 1")

        item = self.require_items([wanted])[wanted]
        return CostEstimate(
            item_id=item.id,
            name=item.name,
            crates=count,
            produced=(item.crate_size or 1) * count,
            cost=resource_cost(item.cost, count),
        )
