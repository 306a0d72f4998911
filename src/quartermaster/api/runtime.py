"""Runtime primitives backing the Quartermaster HTTP API."""

from __future__ import annotations

import logging
from collections.abc import Mapping

from sqlalchemy.engine import Engine

from quartermaster.config import Settings, get_settings
from quartermaster.database import (
    check_database_health,
    create_db_engine,
    init_db,
    make_session_factory,
)
from quartermaster.domain.identity import Identity
from quartermaster.domain.rules_config import RulesConfig
from quartermaster.interfaces import ICatalogSource, IIdentityProvider
from quartermaster.services.catalog_service import HttpCatalogSource

logger = logging.getLogger(__name__)

PROFILE_HEADER = "x-profile-id"
DISCORD_ID_HEADER = "x-discord-id"
DISCORD_NAME_HEADER = "x-discord-name"


class HeaderIdentityProvider:
    """Identity asserted by a trusted authenticating proxy in request headers.

    The proxy performs the OAuth handshake and forwards the account id and
    the Discord claims it obtained.
    """

    def identify(self, headers: Mapping[str, str]) -> Identity | None:
        profile_id = (headers.get(PROFILE_HEADER) or "").strip()
        if not profile_id:
            return None

        metadata: dict[str, str] = {}
        discord_id = (headers.get(DISCORD_ID_HEADER) or "").strip()
        if discord_id:
            metadata["provider_id"] = discord_id
        discord_name = (headers.get(DISCORD_NAME_HEADER) or "").strip()
        if discord_name:
            metadata["full_name"] = discord_name
        return Identity(profile_id=profile_id, claims={"user_metadata": metadata})


class ApiState:
    """Engine, session factory and collaborators shared by the FastAPI layer."""

    def __init__(
        self,
        *,
        settings: Settings | None = None,
        engine: Engine | None = None,
        identity: IIdentityProvider | None = None,
        catalog_source: ICatalogSource | None = None,
        create_tables: bool = True,
    ) -> None:
        self.settings = settings or get_settings()
        self.rules: RulesConfig = self.settings.rules()
        self.engine = engine or create_db_engine(self.settings)
        self.session_factory = make_session_factory(self.engine)
        self.identity = identity or HeaderIdentityProvider()
        self.catalog_source = catalog_source or HttpCatalogSource(
            self.settings.catalog_source_url, timeout=self.settings.catalog_timeout_seconds
        )
        if create_tables:
            init_db(self.engine)

    def database_ok(self) -> bool:
        return check_database_health(self.engine)

    async def shutdown(self) -> None:
        logger.info("disposing database engine")
        self.engine.dispose()


def build_state() -> ApiState:
    """Factory used by the API to initialize state."""

    return ApiState()
