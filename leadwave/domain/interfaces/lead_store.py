"""
Lead Store Interface
Abstract base classes for the document store the import pipeline writes to
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Set

from leadwave.domain.models.campaign import Campaign
from leadwave.domain.models.lead_import import LeadUpdate


class StoreError(Exception):
    """Raised when the store cannot serve a request"""
    pass


class StoreWriteError(StoreError):
    """Raised when a store write fails as a whole"""
    pass


class DuplicateLeadError(StoreWriteError):
    """Raised when a write violates the (company_id, phone) uniqueness constraint"""
    pass


@dataclass
class WriteFailure:
    """Failure of one document/operation inside a bulk call"""
    index: int
    message: str
    duplicate: bool = False


@dataclass
class BulkWriteReport:
    """Per-document outcome of a bulk call that did not fail as a whole"""
    succeeded: int = 0
    failures: List[WriteFailure] = field(default_factory=list)
    unmatched: List[int] = field(default_factory=list)  # update ops that matched no lead


class LeadStore(ABC):
    """Company-scoped lead persistence"""

    @abstractmethod
    def find_existing_phones(self, company_id: str, phones: Iterable[str]) -> Set[str]:
        """
        Return which of the given phones belong to non-deleted leads of the company.

        Raises:
            StoreError: If the lookup failed
        """
        pass

    @abstractmethod
    def insert_many(self, documents: List[Dict[str, Any]]) -> BulkWriteReport:
        """
        Unordered bulk insert.

        One bad document never blocks the rest; its failure is reported
        in the returned report.

        Raises:
            StoreWriteError: If the call failed as a whole
        """
        pass

    @abstractmethod
    def insert_one(self, document: Dict[str, Any]) -> None:
        """
        Insert a single document.

        A document whose id is already stored counts as inserted.

        Raises:
            DuplicateLeadError: If the phone already exists for the company
            StoreWriteError: On any other failure
        """
        pass

    @abstractmethod
    def bulk_increment(self, updates: List[LeadUpdate]) -> BulkWriteReport:
        """
        Unordered bulk conditional update: match company_id + phone + not
        deleted, increment star, set the update's fields.

        Raises:
            StoreWriteError: If the call failed as a whole
        """
        pass

    @abstractmethod
    def increment_one(self, update: LeadUpdate) -> bool:
        """
        Single conditional update.

        Returns:
            True if a lead matched

        Raises:
            StoreWriteError: On failure
        """
        pass


class CampaignStore(ABC):
    """Company-scoped campaign access"""

    @abstractmethod
    def get_campaign(self, company_id: str, campaign_id: str) -> Optional[Campaign]:
        """Fetch a campaign owned by the company, or None"""
        pass

    @abstractmethod
    def increment_total_leads(self, company_id: str, campaign_id: str, amount: int) -> None:
        """Add to the campaign's stats.total_leads counter"""
        pass
