"""Catalog feed protocol."""

from typing import Any, Protocol


class ICatalogSource(Protocol):
    """A source of raw item catalog records."""

    url: str

    def fetch(self) -> Any:
        """Return the decoded feed payload.

        Raises:
            ExternalUnavailable: If the feed cannot be fetched or decoded
        """
        ...
