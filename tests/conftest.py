"""
Shared fixtures: in-memory stores with the same per-document semantics
as the MongoDB stores (unordered bulk writes, live-phone uniqueness).
"""
from typing import Any, Dict, Iterable, List, Optional, Set

import pytest

from leadwave.core.config import Settings
from leadwave.domain.interfaces.lead_store import (
    BulkWriteReport,
    CampaignStore,
    DuplicateLeadError,
    LeadStore,
    StoreWriteError,
    WriteFailure,
)
from leadwave.domain.models.campaign import Campaign, CampaignStatus
from leadwave.domain.models.lead_import import LeadUpdate


class InMemoryLeadStore(LeadStore):
    """Dict-backed LeadStore"""

    def __init__(self):
        self.documents: Dict[str, Dict[str, Any]] = {}
        self.fail_bulk_insert = False
        self.fail_bulk_update = False
        self.invalid_phones: Set[str] = set()
        self.lookup_sizes: List[int] = []
        self.insert_many_sizes: List[int] = []
        self.bulk_update_sizes: List[int] = []
        # phone -> document planted just before the next insert (simulates a concurrent import)
        self.race_documents: Dict[str, Dict[str, Any]] = {}

    # helpers ----------------------------------------------------------------

    def add_lead(self, company_id: str, phone: str, **fields) -> Dict[str, Any]:
        lead_id = fields.pop("_id", f"seed-{company_id}-{phone}")
        doc = {
            "_id": lead_id,
            "company_id": company_id,
            "phone": phone,
            "first_name": "Seed",
            "last_name": "Lead",
            "email": None,
            "lead_source": "website",
            "status": "contacted",
            "star": 1,
            "is_deleted": False,
        }
        doc.update(fields)
        self.documents[lead_id] = doc
        return doc

    def live_lead(self, company_id: str, phone: str) -> Optional[Dict[str, Any]]:
        for doc in self.documents.values():
            if doc["company_id"] == company_id and doc["phone"] == phone and not doc["is_deleted"]:
                return doc
        return None

    def live_leads(self, company_id: str) -> List[Dict[str, Any]]:
        return [
            doc for doc in self.documents.values()
            if doc["company_id"] == company_id and not doc["is_deleted"]
        ]

    def _plant_races(self) -> None:
        for doc in self.race_documents.values():
            self.documents[doc["_id"]] = doc
        self.race_documents = {}

    def _insert(self, document: Dict[str, Any]) -> Optional[WriteFailure]:
        if document["_id"] in self.documents:
            return None
        if document["phone"] in self.invalid_phones:
            return WriteFailure(index=-1, message="Document failed validation")
        if self.live_lead(document["company_id"], document["phone"]):
            return WriteFailure(index=-1, message="E11000 duplicate key error", duplicate=True)
        self.documents[document["_id"]] = dict(document)
        return None

    def _apply(self, update: LeadUpdate) -> bool:
        doc = self.live_lead(update.company_id, update.phone)
        if doc is None:
            return False
        doc["star"] = doc.get("star", 0) + update.increment
        doc.update(update.fields)
        return True

    # LeadStore ----------------------------------------------------------------

    def find_existing_phones(self, company_id: str, phones: Iterable[str]) -> Set[str]:
        phones = list(phones)
        self.lookup_sizes.append(len(phones))
        return {phone for phone in phones if self.live_lead(company_id, phone)}

    def insert_many(self, documents: List[Dict[str, Any]]) -> BulkWriteReport:
        self.insert_many_sizes.append(len(documents))
        if self.fail_bulk_insert:
            raise StoreWriteError("bulk insert rejected")
        self._plant_races()

        report = BulkWriteReport()
        for index, document in enumerate(documents):
            failure = self._insert(document)
            if failure is None:
                report.succeeded += 1
            else:
                failure.index = index
                report.failures.append(failure)
        return report

    def insert_one(self, document: Dict[str, Any]) -> None:
        self._plant_races()
        failure = self._insert(document)
        if failure is None:
            return
        if failure.duplicate:
            raise DuplicateLeadError(f"Phone {document['phone']} already exists")
        raise StoreWriteError(failure.message)

    def bulk_increment(self, updates: List[LeadUpdate]) -> BulkWriteReport:
        self.bulk_update_sizes.append(len(updates))
        if self.fail_bulk_update:
            raise StoreWriteError("bulk update rejected")

        report = BulkWriteReport()
        for index, update in enumerate(updates):
            if update.phone in self.invalid_phones:
                report.failures.append(WriteFailure(index=index, message="Update failed validation"))
            elif self._apply(update):
                report.succeeded += 1
            else:
                report.unmatched.append(index)
        return report

    def increment_one(self, update: LeadUpdate) -> bool:
        if update.phone in self.invalid_phones:
            raise StoreWriteError("Update failed validation")
        return self._apply(update)


class InMemoryCampaignStore(CampaignStore):
    """Dict-backed CampaignStore"""

    def __init__(self):
        self.campaigns: Dict[str, Campaign] = {}
        self.fail_increment = False

    def add_campaign(self, company_id: str, campaign_id: str, **fields) -> Campaign:
        campaign = Campaign(id=campaign_id, company_id=company_id, name=fields.pop("name", "Spring Intake"), **fields)
        self.campaigns[campaign_id] = campaign
        return campaign

    def get_campaign(self, company_id: str, campaign_id: str) -> Optional[Campaign]:
        campaign = self.campaigns.get(campaign_id)
        if campaign is None or campaign.company_id != company_id:
            return None
        return campaign

    def increment_total_leads(self, company_id: str, campaign_id: str, amount: int) -> None:
        if self.fail_increment:
            raise StoreWriteError("campaign update rejected")
        self.campaigns[campaign_id].stats.total_leads += amount


@pytest.fixture
def lead_store():
    return InMemoryLeadStore()


@pytest.fixture
def campaign_store():
    store = InMemoryCampaignStore()
    store.add_campaign("company-1", "camp-active", name="Spring Intake", status=CampaignStatus.ACTIVE)
    store.add_campaign("company-1", "camp-done", name="Winter Drive", status=CampaignStatus.COMPLETED)
    store.add_campaign("company-2", "camp-other", name="Other Co", status=CampaignStatus.ACTIVE)
    return store


@pytest.fixture
def settings(tmp_path):
    return Settings(
        environment="test",
        upload_dir=str(tmp_path / "uploads"),
        jwt_secret="leadwave-unit-test-secret-0123456789abcdef",
        import_min_phone_digits=10,
    )
