"""Identity provider protocol.

The identity provider authenticates requests (OAuth handshake, session
cookies) outside this service and hands over the account id and profile
claims.
"""

from collections.abc import Mapping
from typing import Protocol

from quartermaster.domain.identity import Identity


class IIdentityProvider(Protocol):
    """Resolve the caller of a request to an :class:`Identity`."""

    def identify(self, headers: Mapping[str, str]) -> Identity | None:
        """Return the authenticated identity, or None for anonymous callers."""
        ...
