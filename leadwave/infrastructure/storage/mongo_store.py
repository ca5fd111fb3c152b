"""
MongoDB Stores
pymongo implementations of the LeadStore and CampaignStore interfaces.

pymongo exceptions are translated to the store errors declared in
leadwave.domain.interfaces.lead_store and never escape this module.
"""
import logging
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Set

from pydantic import ValidationError
from pymongo import UpdateOne
from pymongo.database import Database
from pymongo.errors import BulkWriteError, DuplicateKeyError, PyMongoError

from leadwave.domain.interfaces.lead_store import (
    BulkWriteReport,
    CampaignStore,
    DuplicateLeadError,
    LeadStore,
    StoreError,
    StoreWriteError,
    WriteFailure,
)
from leadwave.domain.models.campaign import Campaign
from leadwave.domain.models.lead_import import LeadUpdate
from leadwave.infrastructure.storage.database import CAMPAIGNS_COLLECTION, LEADS_COLLECTION
from leadwave.utils.tenant_filter import apply_tenant_filter, live_leads_filter

logger = logging.getLogger(__name__)

DUPLICATE_KEY_CODE = 11000


def is_id_conflict(error: Dict[str, Any]) -> bool:
    """
    True if a duplicate-key error is on _id, i.e. the very same document
    was already stored by an earlier attempt.
    """
    key_pattern = error.get("keyPattern") or {}
    if key_pattern:
        return "_id" in key_pattern
    return "index: _id_" in (error.get("errmsg") or "")


class MongoLeadStore(LeadStore):
    """Leads collection access"""

    def __init__(self, db: Database):
        self.collection = db[LEADS_COLLECTION]

    def find_existing_phones(self, company_id: str, phones: Iterable[str]) -> Set[str]:
        phones = list(phones)
        if not phones:
            return set()
        try:
            cursor = self.collection.find(
                live_leads_filter(company_id, phone={"$in": phones}),
                {"phone": 1, "_id": 0},
            )
            return {doc["phone"] for doc in cursor}
        except PyMongoError as e:
            raise StoreError(f"Existing phone lookup failed: {e}") from e

    def insert_many(self, documents: List[Dict[str, Any]]) -> BulkWriteReport:
        if not documents:
            return BulkWriteReport()
        try:
            result = self.collection.insert_many(documents, ordered=False)
            return BulkWriteReport(succeeded=len(result.inserted_ids))
        except BulkWriteError as e:
            details = e.details or {}
            report = BulkWriteReport(succeeded=details.get("nInserted", 0))
            for error in details.get("writeErrors", []):
                if error.get("code") == DUPLICATE_KEY_CODE and is_id_conflict(error):
                    report.succeeded += 1
                    continue
                report.failures.append(WriteFailure(
                    index=error["index"],
                    message=error.get("errmsg", "write error"),
                    duplicate=error.get("code") == DUPLICATE_KEY_CODE,
                ))
            logger.warning(
                f"Bulk insert partial failure: {report.succeeded} inserted, "
                f"{len(report.failures)} failed"
            )
            return report
        except PyMongoError as e:
            raise StoreWriteError(str(e)) from e

    def insert_one(self, document: Dict[str, Any]) -> None:
        try:
            self.collection.insert_one(document)
        except DuplicateKeyError as e:
            if is_id_conflict(e.details or {}):
                return
            raise DuplicateLeadError(f"Phone {document.get('phone')} already exists") from e
        except PyMongoError as e:
            raise StoreWriteError(str(e)) from e

    @staticmethod
    def _update_filter(update: LeadUpdate) -> Dict[str, Any]:
        return live_leads_filter(update.company_id, phone=update.phone)

    @staticmethod
    def _update_document(update: LeadUpdate, now: datetime) -> Dict[str, Any]:
        return {
            "$inc": {"star": update.increment},
            "$set": {**update.fields, "updated_at": now},
        }

    def bulk_increment(self, updates: List[LeadUpdate]) -> BulkWriteReport:
        if not updates:
            return BulkWriteReport()
        now = datetime.utcnow()
        operations = [
            UpdateOne(self._update_filter(update), self._update_document(update, now))
            for update in updates
        ]
        try:
            result = self.collection.bulk_write(operations, ordered=False)
            report = BulkWriteReport(succeeded=result.matched_count)
        except BulkWriteError as e:
            details = e.details or {}
            report = BulkWriteReport(succeeded=details.get("nMatched", 0))
            for error in details.get("writeErrors", []):
                report.failures.append(WriteFailure(
                    index=error["index"],
                    message=error.get("errmsg", "write error"),
                    duplicate=error.get("code") == DUPLICATE_KEY_CODE,
                ))
        except PyMongoError as e:
            raise StoreWriteError(str(e)) from e

        if report.succeeded + len(report.failures) < len(updates):
            report.unmatched = self._find_unmatched(updates, report)
        return report

    def _find_unmatched(self, updates: List[LeadUpdate], report: BulkWriteReport) -> List[int]:
        """Work out which updates matched nothing (bulk results only carry totals)"""
        failed = {failure.index for failure in report.failures}
        remaining = [i for i in range(len(updates)) if i not in failed]

        phones_by_company: Dict[str, List[str]] = {}
        for i in remaining:
            phones_by_company.setdefault(updates[i].company_id, []).append(updates[i].phone)

        live = set()
        for company_id, phones in phones_by_company.items():
            live |= {(company_id, phone) for phone in self.find_existing_phones(company_id, phones)}

        return [i for i in remaining if (updates[i].company_id, updates[i].phone) not in live]

    def increment_one(self, update: LeadUpdate) -> bool:
        try:
            result = self.collection.update_one(
                self._update_filter(update),
                self._update_document(update, datetime.utcnow()),
            )
            return result.matched_count > 0
        except PyMongoError as e:
            raise StoreWriteError(str(e)) from e


class MongoCampaignStore(CampaignStore):
    """Campaigns collection access"""

    def __init__(self, db: Database):
        self.collection = db[CAMPAIGNS_COLLECTION]

    def get_campaign(self, company_id: str, campaign_id: str) -> Optional[Campaign]:
        try:
            doc = self.collection.find_one(apply_tenant_filter({"_id": campaign_id}, company_id))
        except PyMongoError as e:
            raise StoreError(f"Campaign lookup failed: {e}") from e

        if not doc:
            return None

        doc = dict(doc)
        doc["id"] = str(doc.pop("_id"))
        try:
            return Campaign(**doc)
        except ValidationError as e:
            logger.warning(f"Campaign {campaign_id} has an invalid document: {e}")
            return None

    def increment_total_leads(self, company_id: str, campaign_id: str, amount: int) -> None:
        try:
            self.collection.update_one(
                apply_tenant_filter({"_id": campaign_id}, company_id),
                {"$inc": {"stats.total_leads": amount}, "$set": {"updated_at": datetime.utcnow()}},
            )
        except PyMongoError as e:
            raise StoreWriteError(str(e)) from e
