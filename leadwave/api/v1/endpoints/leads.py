"""
Leads Endpoints
Handles bulk lead import via CSV / XLSX upload

- POST /leads/import - admin-only spreadsheet import with column mapping
  and optional campaign attachment
"""
import logging
from typing import Optional

from fastapi import APIRouter, HTTPException, Depends, UploadFile, File, Form
from fastapi.concurrency import run_in_threadpool

from leadwave.api.v1.dependencies import (
    CurrentUser,
    get_lead_import_service,
    require_admin,
)
from leadwave.core.config import Settings, get_settings
from leadwave.core.errors import LeadImportError
from leadwave.core.uploads import stage_upload
from leadwave.domain.models.lead_import import LeadImportResponse
from leadwave.services.lead_import_service import LeadImportService, parse_mapping

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/leads", tags=["leads"])


@router.post("/import", response_model=LeadImportResponse)
async def import_leads(
    file: Optional[UploadFile] = File(None, description="CSV, XLSX or XLS file with leads"),
    mapping: Optional[str] = Form(None, description="JSON object: lead field -> column name"),
    campaign: Optional[str] = Form(None, description="Campaign to attach new leads to"),
    current_user: CurrentUser = Depends(require_admin),
    service: LeadImportService = Depends(get_lead_import_service),
    settings: Settings = Depends(get_settings),
):
    """
    Bulk import leads from a spreadsheet.

    Features:
    - Column mapping with header-name fallbacks
    - Phone/email normalization and per-row validation
    - Duplicate phones bump the existing lead's star counter
    - Chunked bulk writes with per-row fallback
    - Detailed error reporting with row numbers (first errors only)

    CSV Format Example:
        First Name,Last Name,Phone,Email
        Jane,Doe,555-010-0100,jane@example.com

    Returns:
        LeadImportResponse with counts, errors and campaign
    """
    try:
        column_mapping = parse_mapping(mapping)

        async with stage_upload(file, settings) as staged:
            return await run_in_threadpool(
                service.import_file,
                staged,
                current_user.company_id,
                column_mapping,
                campaign,
            )

    except LeadImportError as e:
        logger.warning(f"Lead import rejected for company {current_user.company_id}: {e.message}")
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Lead import failed for company {current_user.company_id}: {e}")
        raise HTTPException(
            status_code=500,
            detail="Import failed. Please try with smaller file or check file format."
        )
