"""Runtime configuration for the Quartermaster service."""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from quartermaster.domain.enums import Role
from quartermaster.domain.rules_config import DEFAULT_RULES, CompletionPolicy, RulesConfig

DEFAULT_CATALOG_URL = "https://foxholelogi.com/assets/foxhole.json"


class Settings(BaseSettings):
    """Application settings loaded from the environment or a ``.env`` file."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    DATABASE_URL: str = Field(
        default="sqlite:///quartermaster.db", description="SQLAlchemy URL of the relational store"
    )
    DATABASE_ECHO: bool = Field(default=False, description="Echo emitted SQL")
    DATABASE_POOL_SIZE: int = Field(default=5, ge=1)
    DATABASE_MAX_OVERFLOW: int = Field(default=10, ge=0)
    DATABASE_POOL_RECYCLE: int = Field(default=1800, description="Seconds before recycling")
    DATABASE_POOL_TIMEOUT: float = Field(
        default=10.0, gt=0.0, description="Seconds to wait for a pooled connection"
    )

    regiment_slug: str = Field(default="rsi", description="Slug of the deployed regiment")
    bootstrap_discord_id: str | None = Field(
        default=None,
        description="Discord account provisioned with bootstrap_role instead of member",
    )
    bootstrap_role: Role = Field(default=Role.COMMANDER)

    catalog_source_url: str = Field(default=DEFAULT_CATALOG_URL)
    catalog_timeout_seconds: float = Field(default=15.0, gt=0.0)

    order_requires_full_fill: bool = Field(
        default=False,
        description="Require every order line to be done before an order can complete",
    )
    container_requires_full_fill: bool = Field(
        default=True,
        description="Require every container line to be done before the container is ready",
    )

    cors_origins: list[str] = Field(
        default_factory=lambda: ["http://localhost:3000", "http://127.0.0.1:3000"],
        description="Origins allowed to call the HTTP API",
    )

    def rules(self) -> RulesConfig:
        """Return the rule set with completion policy overrides applied."""

        return RulesConfig(
            container=DEFAULT_RULES.container,
            orders=DEFAULT_RULES.orders,
            completion=CompletionPolicy(
                order_requires_full_fill=self.order_requires_full_fill,
                container_requires_full_fill=self.container_requires_full_fill,
            ),
        )


@lru_cache
def get_settings() -> Settings:
    """Return a cached Settings instance."""

    return Settings()
