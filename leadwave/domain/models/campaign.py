"""
Campaign Domain Models
"""
from pydantic import BaseModel
from typing import Optional, List, Dict, Any
from datetime import datetime
from enum import Enum


class CampaignStatus(str, Enum):
    """Campaign lifecycle status"""
    DRAFT = "draft"
    ACTIVE = "active"
    PAUSED = "paused"
    COMPLETED = "completed"


# Leads may only be imported into campaigns in these states
IMPORTABLE_CAMPAIGN_STATUSES = (CampaignStatus.DRAFT, CampaignStatus.ACTIVE)


class PipelineType(str, Enum):
    COURSE = "course"
    SERVICE = "service"
    PRODUCT = "product"
    CUSTOM = "custom"


class LeadDistribution(str, Enum):
    ONDEMAND = "ondemand"
    EQUAL = "equal"
    CONDITIONAL = "conditional"


class CampaignPriority(str, Enum):
    HIGHEST = "highest"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
    LOWEST = "lowest"


class CampaignStats(BaseModel):
    """Opportunistically recomputed counters, not transactionally maintained"""
    total_leads: int = 0
    assigned_leads: int = 0
    converted_leads: int = 0
    revenue: float = 0


class Campaign(BaseModel):
    """Sales campaign owned by a manager within one company"""
    id: str
    company_id: str  # Tenant identifier for multi-tenant isolation
    name: str
    description: Optional[str] = None
    manager_id: Optional[str] = None
    pipeline: PipelineType = PipelineType.COURSE
    agents: List[str] = []
    lead_distribution: LeadDistribution = LeadDistribution.ONDEMAND
    priority: CampaignPriority = CampaignPriority.MEDIUM
    status: CampaignStatus = CampaignStatus.DRAFT
    stats: CampaignStats = CampaignStats()
    distribution_rules: Dict[str, Any] = {}
    created_by: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def accepts_imports(self) -> bool:
        return self.status in IMPORTABLE_CAMPAIGN_STATUSES
