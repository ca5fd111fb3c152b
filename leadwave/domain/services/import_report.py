"""
Import Report Builder
Aggregates pipeline counts and row errors into the import response.
"""
from typing import List, Optional

from leadwave.domain.models.campaign import Campaign
from leadwave.domain.models.lead_import import (
    ImportCampaignRef,
    ImportRowError,
    ImportSummary,
    LeadImportResponse,
    ReconciliationPlan,
    RowError,
    WriteOutcome,
)

DEFAULT_ERROR_LIMIT = 50


class ImportReport:
    """Accumulates the results of one import run"""

    def __init__(self, total: int = 0, error_limit: int = DEFAULT_ERROR_LIMIT):
        self.total = total
        self.error_limit = error_limit
        self.inserted = 0
        self.updated = 0
        self.merged = 0
        self.errors: List[RowError] = []

    def add_rejections(self, rejections: List[RowError]) -> None:
        self.errors.extend(rejections)

    def add_plan(self, plan: ReconciliationPlan) -> None:
        self.merged += plan.merged

    def add_outcome(self, outcome: WriteOutcome) -> None:
        self.inserted += outcome.inserted
        self.updated += outcome.updated
        self.errors.extend(outcome.errors)
        # Rows folded into a group whose write failed are skipped, not merged
        folded = sum(error.occurrences - 1 for error in outcome.errors)
        self.merged = max(self.merged - folded, 0)

    @property
    def skipped(self) -> int:
        """Rows rejected by validation plus every file row whose write failed"""
        return sum(error.occurrences for error in self.errors)

    @property
    def success_rate(self) -> float:
        """Percentage of rows that were not skipped"""
        if not self.total:
            return 0.0
        return round((self.total - self.skipped) / self.total * 100, 2)

    def sorted_errors(self) -> List[RowError]:
        return sorted(self.errors, key=lambda error: (error.row is None, error.row or 0))

    def build(self, campaign: Optional[Campaign] = None) -> LeadImportResponse:
        """
        Build the API response.

        Only the first error_limit errors are returned to bound response size.
        """
        errors = self.sorted_errors()
        return LeadImportResponse(
            success=True,
            message="Bulk import completed",
            summary=ImportSummary(
                total=self.total,
                inserted=self.inserted,
                updated=self.updated,
                skipped=self.skipped,
                merged=self.merged,
                success_rate=self.success_rate,
            ),
            errors=[ImportRowError(row=e.row, reason=e.reason) for e in errors[:self.error_limit]],
            errors_truncated=len(errors) > self.error_limit,
            campaign=ImportCampaignRef(id=campaign.id, name=campaign.name) if campaign else None,
        )
