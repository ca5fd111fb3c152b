"""
Tenant Filter Utility
Shared helpers for applying consistent company scoping to MongoDB filters
"""
from typing import Any, Dict, Optional


def apply_tenant_filter(
    query: Dict[str, Any],
    company_id: Optional[str],
    column: str = "company_id",
) -> Dict[str, Any]:
    """
    Scope a MongoDB filter document to one company.

    Centralizes tenant filtering so every lead/campaign query issued by the
    import pipeline carries the caller's company.

    Args:
        query: MongoDB filter document
        company_id: Caller's company
        column: Name of the company field (default: "company_id")

    Returns:
        A new filter document with the company condition added

    Raises:
        ValueError: If company_id is empty; unscoped queries are never issued
    """
    if not company_id:
        raise ValueError("company_id is required for tenant-scoped queries")
    return {**query, column: company_id}


def live_leads_filter(company_id: Optional[str], **conditions: Any) -> Dict[str, Any]:
    """
    Filter for a company's non-deleted leads.

    Usage:
        collection.find(live_leads_filter(company_id, phone={"$in": phones}))
    """
    return apply_tenant_filter({**conditions, "is_deleted": False}, company_id)
