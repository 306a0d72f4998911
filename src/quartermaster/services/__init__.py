"""Business logic services for Quartermaster.

Each service wraps a SQLAlchemy session and enforces the role checks and
invariants of one part of the logistics workflow.
"""

from quartermaster.services.archive_service import ArchiveResult, ArchiveService
from quartermaster.services.catalog_service import (
    CatalogService,
    CostEstimate,
    HttpCatalogSource,
    SyncResult,
)
from quartermaster.services.container_service import ContainerService, ProgressResult
from quartermaster.services.membership_service import Member, MembershipService, load_war
from quartermaster.services.order_service import Board, BoardCard, OrderService, StatusResult
from quartermaster.services.recruitment_service import (
    ApplicationForm,
    BootstrapResult,
    RecruitmentService,
    SubmissionResult,
)
from quartermaster.services.reporting_service import ReportingService, WarOverview
from quartermaster.services.shipment_service import ShipmentService, StatusChange

__all__ = [
    "ApplicationForm",
    "ArchiveResult",
    "ArchiveService",
    "Board",
    "BoardCard",
    "BootstrapResult",
    "CatalogService",
    "ContainerService",
    "CostEstimate",
    "HttpCatalogSource",
    "Member",
    "MembershipService",
    "OrderService",
    "ProgressResult",
    "RecruitmentService",
    "ReportingService",
    "ShipmentService",
    "StatusChange",
    "StatusResult",
    "SubmissionResult",
    "SyncResult",
    "WarOverview",
    "load_war",
]
