"""
Tenant Domain Models
Company, user, call log and refresh token records that the import
pipeline shares a data model with.
"""
from pydantic import BaseModel
from typing import Optional
from datetime import datetime
from enum import Enum


class Role(str, Enum):
    """Fixed set of user roles"""
    SUPERADMIN = "superadmin"
    ADMIN = "admin"
    MANAGER = "manager"
    SALESPERSON = "salesperson"
    MARKETING = "marketing"


class Company(BaseModel):
    """Tenant root; name, registration number and email are unique"""
    id: str
    name: str
    registration_number: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    is_active: bool = True
    created_at: Optional[datetime] = None


class User(BaseModel):
    """Belongs to one company, except superadmins"""
    id: str
    company_id: Optional[str] = None
    name: str
    email: str
    password_hash: str  # salted hash, never the plain credential
    role: Role
    is_active: bool = True
    created_at: Optional[datetime] = None


class CallLog(BaseModel):
    """Call event tied to a lead, user and company"""
    id: str
    company_id: str
    lead_id: str
    user_id: str
    started_at: datetime
    duration_seconds: int = 0
    outcome: Optional[str] = None
    recording_url: Optional[str] = None
    notes: Optional[str] = None


class RefreshToken(BaseModel):
    """Opaque one-time-use token, rotated on refresh"""
    token: str
    user_id: str
    expires_at: datetime
    revoked: bool = False

    def is_usable(self, now: Optional[datetime] = None) -> bool:
        now = now or datetime.utcnow()
        return not self.revoked and self.expires_at > now
