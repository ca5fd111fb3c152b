"""
Lead Domain Models
"""
from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import datetime
from enum import Enum


class LeadSource(str, Enum):
    """Known lead sources (imports may carry any other string)"""
    WEBSITE = "website"
    FILE = "file"
    CALL = "call"
    WHATSAPP = "whatsapp"
    REFERRAL = "referral"
    INSTAGRAM = "instagram"
    LINKEDIN = "linkedin"
    FACEBOOK = "facebook"


class LeadStatus(str, Enum):
    """Known pipeline statuses"""
    NEW = "new"
    ASSIGNED = "assigned"
    TRANSFERRED = "transferred"
    DISPOSED = "disposed"
    FOLLOW_UP = "follow_up"
    APPROVED = "approved"
    LOST = "lost"
    CLOSED = "closed"


class LeadNote(BaseModel):
    """Free-form note appended to a lead, usually after a call"""
    text: str
    author_id: str
    call_id: Optional[str] = None
    created_at: datetime = Field(default_factory=datetime.utcnow)


class Lead(BaseModel):
    """Prospective customer tracked through the sales pipeline"""
    id: str
    company_id: str  # Tenant identifier for multi-tenant isolation

    # Identity
    first_name: str
    last_name: str
    email: Optional[str] = None
    phone: str
    alt_phone: Optional[str] = None

    # Classification
    lead_source: str = LeadSource.FILE.value
    tag: Optional[str] = None
    platform: Optional[str] = None
    activity: Optional[str] = None
    status: str = LeadStatus.NEW.value  # open enum, see LeadStatus

    # Ownership
    campaign_id: Optional[str] = None
    assigned_to: Optional[str] = None
    assigned_by: Optional[str] = None

    # Sales data
    expected_value: Optional[float] = None
    last_contacted_date: Optional[datetime] = None
    next_followup_date: Optional[datetime] = None

    notes: List[LeadNote] = []
    star: int = 1  # incremented each time a duplicate submission is seen
    is_deleted: bool = False

    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"
