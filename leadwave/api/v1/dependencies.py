"""
API Dependencies
Shared dependencies for authentication, store access, and authorization
"""
from typing import Optional
from fastapi import Depends, HTTPException, status, Header
from pydantic import BaseModel
import jwt

from leadwave.core.config import Settings, get_settings
from leadwave.domain.interfaces.lead_store import CampaignStore, LeadStore
from leadwave.domain.models.tenant import Role
from leadwave.infrastructure.storage.database import get_database
from leadwave.infrastructure.storage.mongo_store import MongoCampaignStore, MongoLeadStore
from leadwave.services.lead_import_service import LeadImportService


class CurrentUser(BaseModel):
    """Current authenticated user model"""
    id: str
    email: Optional[str] = None
    name: Optional[str] = None
    company_id: Optional[str] = None
    role: str = Role.SALESPERSON.value


def get_lead_store() -> LeadStore:
    """Lead store backed by MongoDB"""
    return MongoLeadStore(get_database())


def get_campaign_store() -> CampaignStore:
    """Campaign store backed by MongoDB"""
    return MongoCampaignStore(get_database())


def get_lead_import_service(
    lead_store: LeadStore = Depends(get_lead_store),
    campaign_store: CampaignStore = Depends(get_campaign_store),
    settings: Settings = Depends(get_settings),
) -> LeadImportService:
    return LeadImportService(lead_store, campaign_store, settings)


async def get_current_user(
    authorization: Optional[str] = Header(None, alias="Authorization"),
    settings: Settings = Depends(get_settings),
) -> CurrentUser:
    """
    Dependency to get the current authenticated user from JWT token.

    Args:
        authorization: Bearer token from Authorization header
        settings: JWT secret and algorithm

    Returns:
        CurrentUser built from the token claims

    Raises:
        HTTPException: If token is missing, invalid or expired
    """
    if not authorization:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authorization header missing",
            headers={"WWW-Authenticate": "Bearer"},
        )

    # Extract token from "Bearer <token>"
    parts = authorization.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authorization header format. Use: Bearer <token>",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        payload = jwt.decode(
            parts[1],
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
        )
    except jwt.ExpiredSignatureError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token has expired",
            headers={"WWW-Authenticate": "Bearer"},
        )
    except jwt.InvalidTokenError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Token validation failed: {str(e)}",
            headers={"WWW-Authenticate": "Bearer"},
        )

    user_id = payload.get("sub") or payload.get("id")
    if not user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return CurrentUser(
        id=str(user_id),
        email=payload.get("email"),
        name=payload.get("name"),
        company_id=payload.get("company_id") or payload.get("companyId"),
        role=payload.get("role", Role.SALESPERSON.value),
    )


async def require_admin(
    current_user: CurrentUser = Depends(get_current_user)
) -> CurrentUser:
    """
    Dependency to require the company admin role.

    Raises:
        HTTPException: If user is not an admin of a company
    """
    if current_user.role != Role.ADMIN.value:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required"
        )
    if not current_user.company_id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User is not assigned to a company"
        )
    return current_user
