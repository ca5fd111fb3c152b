"""
Lead Import Service
Runs the bulk lead import pipeline for one uploaded spreadsheet.

Pipeline: campaign check -> parse -> resolve fields -> normalize rows ->
reconcile duplicates -> batch write -> campaign stats -> report.
Request-fatal problems raise LeadImportError before anything is written;
everything else is row-scoped and ends up in the report.
"""
import json
import logging
import time
from typing import Any, Dict, List, Optional

from leadwave.core.config import ConfigManager, Settings
from leadwave.core.errors import (
    EmptyFileError,
    InvalidCampaignError,
    InvalidMappingError,
    UnsupportedFileError,
)
from leadwave.core.uploads import StagedUpload
from leadwave.domain.interfaces.lead_store import CampaignStore, LeadStore, StoreWriteError
from leadwave.domain.models.campaign import Campaign
from leadwave.domain.models.lead_import import LeadCandidate, LeadImportResponse, RowError
from leadwave.domain.services.batch_writer import BatchWriter
from leadwave.domain.services.duplicate_reconciler import DuplicateReconciler
from leadwave.domain.services.field_resolver import FieldResolver
from leadwave.domain.services.import_report import ImportReport
from leadwave.domain.services.lead_normalizer import LeadNormalizer
from leadwave.infrastructure.importers.spreadsheet_reader import SpreadsheetReadError, read_rows

logger = logging.getLogger(__name__)


def parse_mapping(raw: Optional[str]) -> Dict[str, Any]:
    """
    Parse the JSON column mapping sent with the upload.

    Raises:
        InvalidMappingError: If it is not a JSON object
    """
    if raw is None or not raw.strip():
        return {}
    try:
        mapping = json.loads(raw)
    except json.JSONDecodeError as e:
        raise InvalidMappingError(f"Column mapping is not valid JSON: {e.msg}") from e
    if not isinstance(mapping, dict):
        raise InvalidMappingError("Column mapping must be a JSON object")
    return mapping


class LeadImportService:
    """
    Bulk lead import for one company.

    Responsibilities:
    - Validate the target campaign
    - Parse the staged spreadsheet
    - Resolve, validate and normalize each row
    - Reconcile against existing leads and write in bulk
    - Bump campaign stats and build the import report
    """

    def __init__(
        self,
        lead_store: LeadStore,
        campaign_store: CampaignStore,
        settings: Settings,
        resolver: Optional[FieldResolver] = None,
    ):
        """
        Initialize LeadImportService.

        Args:
            lead_store: Lead persistence
            campaign_store: Campaign lookups and stats
            settings: Chunk sizes, error cap and defaults
            resolver: Optional field resolver (alias table from config/ if not provided)
        """
        self.lead_store = lead_store
        self.campaign_store = campaign_store
        self.settings = settings
        self.resolver = resolver or FieldResolver(
            ConfigManager(settings.environment).get_field_aliases()
        )
        self.normalizer = LeadNormalizer(
            default_lead_source=settings.import_default_lead_source,
            min_phone_digits=settings.import_min_phone_digits,
        )
        self.reconciler = DuplicateReconciler(
            lead_store,
            lookup_chunk_size=settings.import_lookup_chunk_size,
        )
        self.writer = BatchWriter(
            lead_store,
            insert_chunk_size=settings.import_insert_chunk_size,
            update_chunk_size=settings.import_update_chunk_size,
        )

    def resolve_campaign(self, company_id: str, campaign_id: Optional[str]) -> Optional[Campaign]:
        """
        Look up the import's target campaign.

        Raises:
            InvalidCampaignError: Not found in this company, or not draft/active
        """
        if not campaign_id:
            return None

        campaign = self.campaign_store.get_campaign(company_id, str(campaign_id))
        if campaign is None:
            logger.warning(f"Import rejected: campaign {campaign_id} not found for company {company_id}")
            raise InvalidCampaignError()
        if not campaign.accepts_imports:
            logger.warning(f"Import rejected: campaign {campaign_id} is {campaign.status.value}")
            raise InvalidCampaignError(
                f"Invalid campaign selected: campaign is {campaign.status.value}"
            )
        return campaign

    def import_file(
        self,
        upload: StagedUpload,
        company_id: str,
        mapping: Optional[Dict[str, Any]] = None,
        campaign_id: Optional[str] = None,
    ) -> LeadImportResponse:
        """
        Import every row of a staged upload.

        Args:
            upload: Staged file (removal is the caller's job)
            company_id: Caller's company; every read and write is scoped to it
            mapping: Canonical field -> column name or literal value
            campaign_id: Campaign to attach new leads to (falls back to mapping["campaign"])

        Returns:
            LeadImportResponse with counts, capped errors and campaign reference

        Raises:
            InvalidCampaignError, UnsupportedFileError, EmptyFileError
        """
        mapping = mapping or {}
        campaign = self.resolve_campaign(company_id, campaign_id or mapping.get("campaign"))

        started = time.perf_counter()
        try:
            rows = read_rows(upload.path, upload.filename)
        except SpreadsheetReadError as e:
            raise UnsupportedFileError(str(e)) from e
        logger.info(f"Parsed {upload.filename} in {time.perf_counter() - started:.2f}s")

        if not rows:
            raise EmptyFileError()

        return self.import_rows(rows, company_id, mapping, campaign)

    def import_rows(
        self,
        rows: List[Dict[str, Any]],
        company_id: str,
        mapping: Optional[Dict[str, Any]] = None,
        campaign: Optional[Campaign] = None,
    ) -> LeadImportResponse:
        """Run resolve -> normalize -> reconcile -> write over parsed rows"""
        started = time.perf_counter()
        campaign_id = campaign.id if campaign else None
        report = ImportReport(total=len(rows), error_limit=self.settings.import_error_limit)

        candidates: List[LeadCandidate] = []
        rejections: List[RowError] = []
        for row_number, row in enumerate(rows, start=1):
            try:
                values = self.resolver.resolve(row, mapping)
                result = self.normalizer.normalize(row_number, values, company_id, campaign_id)
            except Exception as e:
                logger.error(f"Unexpected error on row {row_number}: {e}")
                result = RowError(row=row_number, reason=str(e))

            if isinstance(result, RowError):
                rejections.append(result)
            else:
                candidates.append(result)

        report.add_rejections(rejections)

        plan = self.reconciler.reconcile(company_id, candidates)
        report.add_plan(plan)

        outcome = self.writer.write(plan)
        report.add_outcome(outcome)

        if campaign and outcome.inserted:
            self._add_campaign_leads(company_id, campaign, outcome.inserted)

        logger.info(
            f"Lead import for company {company_id} finished in {time.perf_counter() - started:.2f}s: "
            f"{report.total} rows, {report.inserted} inserted, {report.updated} updated, "
            f"{report.skipped} skipped"
        )
        return report.build(campaign)

    def _add_campaign_leads(self, company_id: str, campaign: Campaign, inserted: int) -> None:
        """Best-effort bump of the campaign's total lead counter"""
        try:
            self.campaign_store.increment_total_leads(company_id, campaign.id, inserted)
        except StoreWriteError as e:
            logger.warning(f"Could not update stats for campaign {campaign.id}: {e}")
