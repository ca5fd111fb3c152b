"""
Duplicate Reconciler
Partitions normalized candidates into inserts and updates of existing leads.

Repeated phones within one file are merged before the split: the first
occurrence keeps its row number, later occurrences overwrite its mutable
fields (last write wins) and add to its star count. The merged group is then
routed to insert (star = occurrences) or update (star += occurrences) based
on the company's existing non-deleted leads at the start of the batch.
"""
import logging
from typing import Dict, Iterator, List, Sequence, Set, Tuple

from leadwave.domain.interfaces.lead_store import LeadStore
from leadwave.domain.models.lead_import import LeadCandidate, LeadUpdate, ReconciliationPlan

logger = logging.getLogger(__name__)


def chunked(items: Sequence, size: int) -> Iterator[Sequence]:
    """Yield consecutive slices of at most size items"""
    if size < 1:
        raise ValueError("Chunk size must be at least 1")
    for start in range(0, len(items), size):
        yield items[start:start + size]


def merge_intra_file_duplicates(candidates: List[LeadCandidate]) -> Tuple[List[LeadCandidate], int]:
    """
    Collapse candidates sharing a phone into one, preserving file order.

    Returns:
        Tuple of (merged candidates, number of rows folded into an earlier row)
    """
    by_phone: Dict[str, LeadCandidate] = {}
    merged = 0
    for candidate in candidates:
        first = by_phone.get(candidate.phone)
        if first is None:
            by_phone[candidate.phone] = candidate
        else:
            first.absorb(candidate)
            merged += 1
    return list(by_phone.values()), merged


class DuplicateReconciler:
    """Decides, per incoming phone, whether it is a new lead or an existing one"""

    def __init__(self, store: LeadStore, lookup_chunk_size: int = 1000):
        self.store = store
        self.lookup_chunk_size = lookup_chunk_size

    def fetch_existing_phones(self, company_id: str, phones: List[str]) -> Set[str]:
        """Look up existing phones in chunks bounded by lookup_chunk_size"""
        existing: Set[str] = set()
        for chunk in chunked(phones, self.lookup_chunk_size):
            existing |= self.store.find_existing_phones(company_id, chunk)
        return existing

    def reconcile(self, company_id: str, candidates: List[LeadCandidate]) -> ReconciliationPlan:
        """
        Build the insert/update plan for one import batch.

        Args:
            company_id: Company the whole batch belongs to
            candidates: Normalized candidates in file order

        Returns:
            ReconciliationPlan with inserts, updates and the merged row count
        """
        unique, merged = merge_intra_file_duplicates(candidates)
        phones = [candidate.phone for candidate in unique]
        existing = self.fetch_existing_phones(company_id, phones) if phones else set()

        plan = ReconciliationPlan(merged=merged)
        for candidate in unique:
            if candidate.phone in existing:
                plan.updates.append(LeadUpdate.from_candidate(candidate))
            else:
                plan.inserts.append(candidate)

        logger.info(
            f"Reconciled {len(candidates)} rows for company {company_id}: "
            f"{len(plan.inserts)} new, {len(plan.updates)} existing, {merged} merged in-file"
        )
        return plan
