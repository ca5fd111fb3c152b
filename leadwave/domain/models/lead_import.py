"""
Lead Import Models
Value types passed between the import pipeline stages, plus the API response.
"""
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from leadwave.domain.models.lead import LeadStatus


# Fields overwritten on an existing lead when the same phone is imported again.
# lead_source and status are never overwritten.
MUTABLE_FIELDS = (
    "first_name",
    "last_name",
    "email",
    "alt_phone",
    "tag",
    "platform",
    "activity",
    "campaign_id",
)


@dataclass
class RowError:
    """
    A row-scoped, non-fatal import problem.

    row is the 1-based data row (None if unknown). occurrences is the number
    of file rows the error stands for: a failed write of a merged duplicate
    group skips every row folded into it.
    """
    row: Optional[int]
    reason: str
    occurrences: int = 1


@dataclass
class LeadCandidate:
    """A validated, normalized lead waiting to be reconciled and written"""
    row: int
    company_id: str
    first_name: str
    last_name: str
    phone: str
    email: Optional[str] = None
    alt_phone: Optional[str] = None
    lead_source: str = "file"
    tag: Optional[str] = None
    platform: Optional[str] = None
    activity: Optional[str] = None
    campaign_id: Optional[str] = None
    star: int = 1
    lead_id: str = field(default_factory=lambda: str(uuid.uuid4()))

    def mutable_fields(self) -> Dict[str, Any]:
        """Overwritable fields that carry a value"""
        values = {}
        for name in MUTABLE_FIELDS:
            value = getattr(self, name)
            if value not in (None, ""):
                values[name] = value
        return values

    def absorb(self, later: "LeadCandidate") -> None:
        """Fold a later occurrence of the same phone into this one (last write wins)"""
        for name, value in later.mutable_fields().items():
            setattr(self, name, value)
        self.star += later.star

    def to_document(self, now: Optional[datetime] = None) -> Dict[str, Any]:
        """Build the store document for a fresh insert"""
        now = now or datetime.utcnow()
        return {
            "_id": self.lead_id,
            "company_id": self.company_id,
            "first_name": self.first_name,
            "last_name": self.last_name,
            "email": self.email,
            "phone": self.phone,
            "alt_phone": self.alt_phone,
            "lead_source": self.lead_source,
            "tag": self.tag,
            "platform": self.platform,
            "activity": self.activity,
            "status": LeadStatus.NEW.value,
            "campaign_id": self.campaign_id,
            "assigned_to": None,
            "assigned_by": None,
            "expected_value": None,
            "last_contacted_date": None,
            "next_followup_date": None,
            "notes": [],
            "star": self.star,
            "is_deleted": False,
            "created_at": now,
            "updated_at": now,
        }


@dataclass
class LeadUpdate:
    """A star increment (plus field refresh) for an existing lead"""
    row: int
    company_id: str
    phone: str
    increment: int = 1
    fields: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_candidate(cls, candidate: LeadCandidate) -> "LeadUpdate":
        return cls(
            row=candidate.row,
            company_id=candidate.company_id,
            phone=candidate.phone,
            increment=candidate.star,
            fields=candidate.mutable_fields(),
        )


@dataclass
class ReconciliationPlan:
    """Output of the duplicate reconciler"""
    inserts: List[LeadCandidate] = field(default_factory=list)
    updates: List[LeadUpdate] = field(default_factory=list)
    merged: int = 0  # rows folded into an earlier row with the same phone


@dataclass
class WriteOutcome:
    """Output of the batch writer"""
    inserted: int = 0
    updated: int = 0
    errors: List[RowError] = field(default_factory=list)


# =============================================================================
# API response
# =============================================================================

class ImportRowError(BaseModel):
    """Single import error"""
    row: Optional[int] = None
    reason: str


class ImportSummary(BaseModel):
    """Import counts"""
    model_config = ConfigDict(populate_by_name=True)

    total: int
    inserted: int
    updated: int
    skipped: int
    merged: int = 0
    success_rate: float = Field(0.0, alias="successRate")


class ImportCampaignRef(BaseModel):
    """Campaign that received the imported leads"""
    id: str
    name: str


class LeadImportResponse(BaseModel):
    """Bulk lead import response"""
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    message: str
    summary: ImportSummary
    errors: List[ImportRowError] = []
    errors_truncated: bool = Field(False, alias="errorsTruncated")
    campaign: Optional[ImportCampaignRef] = None
