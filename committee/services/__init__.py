"""Services: directory client, contribution matrix engine, member management."""

from committee.services.contribution_service import (
    ContributionMatrixEngine,
    ReconciliationSession,
    compute_row_total,
    count_receivers,
    derive_rows,
    plan_reconciliation,
)
from committee.services.directory_client import DirectoryServiceError, MemberDirectoryClient
from committee.services.member_service import MemberService

__all__ = [
    "ContributionMatrixEngine",
    "ReconciliationSession",
    "compute_row_total",
    "count_receivers",
    "derive_rows",
    "plan_reconciliation",
    "DirectoryServiceError",
    "MemberDirectoryClient",
    "MemberService",
]
