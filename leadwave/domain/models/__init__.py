"""Domain models"""

from .lead import (
    LeadSource,
    LeadStatus,
    LeadNote,
    Lead,
)

from .campaign import (
    CampaignStatus,
    CampaignStats,
    Campaign,
    IMPORTABLE_CAMPAIGN_STATUSES,
)

from .tenant import (
    Role,
    Company,
    User,
    CallLog,
    RefreshToken,
)

from .lead_import import (
    MUTABLE_FIELDS,
    RowError,
    LeadCandidate,
    LeadUpdate,
    ReconciliationPlan,
    WriteOutcome,
    ImportRowError,
    ImportSummary,
    ImportCampaignRef,
    LeadImportResponse,
)

__all__ = [
    # Leads
    "LeadSource",
    "LeadStatus",
    "LeadNote",
    "Lead",
    # Campaigns
    "CampaignStatus",
    "CampaignStats",
    "Campaign",
    "IMPORTABLE_CAMPAIGN_STATUSES",
    # Tenancy
    "Role",
    "Company",
    "User",
    "CallLog",
    "RefreshToken",
    # Import pipeline
    "MUTABLE_FIELDS",
    "RowError",
    "LeadCandidate",
    "LeadUpdate",
    "ReconciliationPlan",
    "WriteOutcome",
    "ImportRowError",
    "ImportSummary",
    "ImportCampaignRef",
    "LeadImportResponse",
]
