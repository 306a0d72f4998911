"""Service factory for Quartermaster.

This module provides factory functions for creating service instances with
proper dependency wiring. Use these functions in production code to ensure
all service dependencies are correctly initialized.

For testing, inject protocol-based fakes instead of using these factories.

Example:
    # Production usage
    from quartermaster.factory import create_order_service
    orders = create_order_service(session)

    # Testing usage
    from quartermaster.services.catalog_service import CatalogService

    class FakeSource:
        url = "memory://catalog"

        def fetch(self):
            return [{"itemName": "Rifle", "itemCategory": "Small Arms"}]

    catalog = CatalogService(session, FakeSource())
"""

from sqlalchemy.orm import Session

from quartermaster.config import Settings, get_settings
from quartermaster.domain.rules_config import DEFAULT_RULES, RulesConfig
from quartermaster.interfaces import ICatalogSource
from quartermaster.services.archive_service import ArchiveService
from quartermaster.services.catalog_service import CatalogService
from quartermaster.services.container_service import ContainerService
from quartermaster.services.membership_service import MembershipService
from quartermaster.services.order_service import OrderService
from quartermaster.services.recruitment_service import RecruitmentService
from quartermaster.services.reporting_service import ReportingService
from quartermaster.services.shipment_service import ShipmentService


def create_membership_service(session: Session) -> MembershipService:
    return MembershipService(session)


def create_recruitment_service(
    session: Session, settings: Settings | None = None
) -> RecruitmentService:
    """Create a RecruitmentService bound to the configured regiment.

    Args:
        session: Database session
        settings: Settings carrying the regiment slug and bootstrap account

    Returns:
        Fully initialized RecruitmentService
    """
    return RecruitmentService(session, settings or get_settings())


def create_catalog_service(
    session: Session, source: ICatalogSource | None = None
) -> CatalogService:
    """Create a CatalogService.

    Args:
        session: Database session
        source: Feed used by ``sync``; lookups work without one

    Returns:
        Fully initialized CatalogService
    """
    return CatalogService(session, source)


def create_archive_service(session: Session, rules: RulesConfig = DEFAULT_RULES) -> ArchiveService:
    return ArchiveService(session, rules.completion)


def create_order_service(session: Session, rules: RulesConfig = DEFAULT_RULES) -> OrderService:
    """Create an OrderService with all dependencies.

    Args:
        session: Database session
        rules: Rule set with the order completion policy

    Returns:
        Fully initialized OrderService with CatalogService and ArchiveService dependencies
    """
    catalog = create_catalog_service(session)
    archive = create_archive_service(session, rules)
    return OrderService(session, catalog, archive, rules)


def create_container_service(
    session: Session, rules: RulesConfig = DEFAULT_RULES
) -> ContainerService:
    """Create a ContainerService with all dependencies.

    Args:
        session: Database session
        rules: Rule set with container capacity and the ready policy

    Returns:
        Fully initialized ContainerService with CatalogService dependency
    """
    catalog = create_catalog_service(session)
    return ContainerService(session, catalog, rules)


def create_shipment_service(session: Session) -> ShipmentService:
    return ShipmentService(session)


def create_reporting_service(session: Session) -> ReportingService:
    return ReportingService(session)


def create_all_services(
    session: Session,
    *,
    settings: Settings | None = None,
    catalog_source: ICatalogSource | None = None,
) -> dict:
    """Create all services with proper dependency wiring.

    Args:
        session: Database session
        settings: Settings supplying the rule set and regiment; defaults to the environment
        catalog_source: Feed for catalog sync

    Returns:
        Dictionary containing all initialized services:
        - membership: MembershipService
        - recruitment: RecruitmentService
        - catalog: CatalogService
        - archive: ArchiveService
        - orders: OrderService
        - containers: ContainerService
        - shipments: ShipmentService
        - reporting: ReportingService
    """
    settings = settings or get_settings()
    rules = settings.rules()
    return {
        "membership": create_membership_service(session),
        "recruitment": create_recruitment_service(session, settings),
        "catalog": create_catalog_service(session, catalog_source),
        "archive": create_archive_service(session, rules),
        "orders": create_order_service(session, rules),
        "containers": create_container_service(session, rules),
        "shipments": create_shipment_service(session),
        "reporting": create_reporting_service(session),
    }
