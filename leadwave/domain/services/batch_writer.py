"""
Batch Writer
Persists a reconciliation plan with chunked bulk writes.

Two-tier strategy behind one call: each chunk is written with a single
unordered bulk operation; if the store rejects the chunk as a whole, the
chunk is retried one record at a time. Callers only see per-record outcomes
folded into a WriteOutcome.

An insert that hits the (company_id, phone) unique key lost a race with
another import of the same phone. It is re-queued as a star increment on
the lead that won.
"""
import logging
from datetime import datetime
from typing import Any, Dict, List, Sequence

from leadwave.domain.interfaces.lead_store import (
    DuplicateLeadError,
    LeadStore,
    StoreWriteError,
)
from leadwave.domain.models.lead_import import (
    LeadCandidate,
    LeadUpdate,
    ReconciliationPlan,
    RowError,
    WriteOutcome,
)
from leadwave.domain.services.duplicate_reconciler import chunked

logger = logging.getLogger(__name__)

UNMATCHED_UPDATE_REASON = "Existing lead no longer available (deleted during import)"


class BatchWriter:
    """Writes inserts and star-increment updates for one import batch"""

    def __init__(
        self,
        store: LeadStore,
        insert_chunk_size: int = 10000,
        update_chunk_size: int = 1000,
    ):
        self.store = store
        self.insert_chunk_size = insert_chunk_size
        self.update_chunk_size = update_chunk_size

    def write(self, plan: ReconciliationPlan) -> WriteOutcome:
        """
        Persist a reconciled batch.

        Args:
            plan: Inserts and updates from the DuplicateReconciler

        Returns:
            WriteOutcome with inserted/updated counts and per-row errors
        """
        outcome = WriteOutcome()
        requeued = self.insert_leads(plan.inserts, outcome)
        if requeued:
            logger.info(f"{len(requeued)} inserts hit an existing phone, retrying as updates")
        self.update_leads(plan.updates + requeued, outcome)
        outcome.errors.sort(key=lambda error: (error.row is None, error.row or 0))
        return outcome

    # =========================================================================
    # Inserts
    # =========================================================================

    def insert_leads(self, candidates: List[LeadCandidate], outcome: WriteOutcome) -> List[LeadUpdate]:
        """
        Insert new leads chunk by chunk.

        Returns:
            Updates for candidates whose phone turned out to exist already
        """
        requeued: List[LeadUpdate] = []
        now = datetime.utcnow()

        for chunk in chunked(candidates, self.insert_chunk_size):
            documents = [candidate.to_document(now) for candidate in chunk]
            try:
                report = self.store.insert_many(documents)
            except StoreWriteError as e:
                logger.warning(
                    f"Bulk insert of {len(chunk)} leads failed ({e}), falling back to single inserts"
                )
                self._insert_one_by_one(chunk, documents, outcome, requeued)
                continue

            outcome.inserted += report.succeeded
            for failure in report.failures:
                candidate = chunk[failure.index]
                if failure.duplicate:
                    requeued.append(LeadUpdate.from_candidate(candidate))
                else:
                    outcome.errors.append(
                        RowError(
                            row=candidate.row,
                            reason=f"Insert failed: {failure.message}",
                            occurrences=candidate.star,
                        )
                    )

        return requeued

    def _insert_one_by_one(
        self,
        chunk: Sequence[LeadCandidate],
        documents: List[Dict[str, Any]],
        outcome: WriteOutcome,
        requeued: List[LeadUpdate],
    ) -> None:
        for candidate, document in zip(chunk, documents):
            try:
                self.store.insert_one(document)
                outcome.inserted += 1
            except DuplicateLeadError:
                requeued.append(LeadUpdate.from_candidate(candidate))
            except StoreWriteError as e:
                outcome.errors.append(
                    RowError(row=candidate.row, reason=f"Insert failed: {e}", occurrences=candidate.star)
                )

    # =========================================================================
    # Updates
    # =========================================================================

    def update_leads(self, updates: List[LeadUpdate], outcome: WriteOutcome) -> None:
        """Apply star increments (and field refreshes) chunk by chunk"""
        for chunk in chunked(updates, self.update_chunk_size):
            try:
                report = self.store.bulk_increment(list(chunk))
            except StoreWriteError as e:
                logger.warning(
                    f"Bulk update of {len(chunk)} leads failed ({e}), falling back to single updates"
                )
                self._update_one_by_one(chunk, outcome)
                continue

            outcome.updated += report.succeeded
            for failure in report.failures:
                failed = chunk[failure.index]
                outcome.errors.append(RowError(
                    row=failed.row,
                    reason=f"Update failed: {failure.message}",
                    occurrences=failed.increment,
                ))
            if report.unmatched:
                logger.warning(f"{len(report.unmatched)} updates matched no lead")
            for index in report.unmatched:
                outcome.errors.append(self._unmatched(chunk[index]))

    def _update_one_by_one(self, chunk: Sequence[LeadUpdate], outcome: WriteOutcome) -> None:
        for update in chunk:
            try:
                matched = self.store.increment_one(update)
            except StoreWriteError as e:
                outcome.errors.append(
                    RowError(row=update.row, reason=f"Update failed: {e}", occurrences=update.increment)
                )
                continue

            if matched:
                outcome.updated += 1
            else:
                outcome.errors.append(self._unmatched(update))

    @staticmethod
    def _unmatched(update: LeadUpdate) -> RowError:
        return RowError(row=update.row, reason=UNMATCHED_UPDATE_REASON, occurrences=update.increment)
