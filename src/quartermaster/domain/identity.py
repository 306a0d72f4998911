"""Extraction of Discord account details from identity provider claims."""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

DISCORD_ID_PATTERN = re.compile(r"^[0-9]{10,30}$")

_ID_KEYS = ("provider_id", "sub", "id", "user_id", "discord_id")
_IDENTITY_KEYS = ("id", "user_id", "sub")
_NAME_KEYS = ("full_name", "name", "user_name", "preferred_username")


def _as_mapping(value: Any) -> Mapping[str, Any]:
    return value if isinstance(value, Mapping) else {}


def _identity_candidates(claims: Mapping[str, Any]) -> list[Any]:
    candidates: list[Any] = []
    identities = claims.get("identities")
    if not isinstance(identities, list):
        return candidates
    for ident in identities:
        ident = _as_mapping(ident)
        provider = ident.get("provider")
        if provider and provider != "discord":
            continue
        data = _as_mapping(ident.get("identity_data"))
        candidate = ident.get("provider_id")
        if candidate is None:
            candidate = next((data[k] for k in _IDENTITY_KEYS if data.get(k) is not None), None)
        candidates.append(candidate)
    return candidates


def discord_id_from_claims(claims: Mapping[str, Any]) -> str | None:
    """Return the Discord account id carried by the claims, if any."""

    meta = _as_mapping(claims.get("user_metadata"))
    candidates: list[Any] = [meta.get(key) for key in _ID_KEYS]
    candidates.extend(_identity_candidates(claims))

    for candidate in candidates:
        if isinstance(candidate, bool):
            continue
        if isinstance(candidate, str) and candidate.strip():
            return candidate.strip()
        if isinstance(candidate, int):
            return str(candidate)
    return None


def discord_name_from_claims(claims: Mapping[str, Any]) -> str | None:
    meta = _as_mapping(claims.get("user_metadata"))
    for key in _NAME_KEYS:
        value = meta.get(key)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return None


def is_valid_discord_id(value: str | None) -> bool:
    return bool(value) and DISCORD_ID_PATTERN.match(value) is not None


@dataclass(frozen=True, slots=True)
class Identity:
    """An authenticated account as reported by the identity provider."""

    profile_id: str
    claims: Mapping[str, Any] = field(default_factory=dict)

    @property
    def discord_id(self) -> str | None:
        return discord_id_from_claims(self.claims)

    @property
    def discord_name(self) -> str | None:
        return discord_name_from_claims(self.claims)
