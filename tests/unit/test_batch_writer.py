"""
Unit tests for the batch writer

Tests:
- Chunked bulk inserts and updates
- Per-record fallback when a bulk call fails as a whole
- Insert races on the unique phone key become star increments
- Retried inserts of an already stored id are not double counted
"""
from leadwave.domain.models.lead_import import LeadCandidate, LeadUpdate, ReconciliationPlan
from leadwave.domain.services.batch_writer import UNMATCHED_UPDATE_REASON, BatchWriter


def candidate(row, phone, **fields):
    return LeadCandidate(
        row=row,
        company_id="company-1",
        first_name="Jane",
        last_name="Doe",
        phone=phone,
        **fields,
    )


def update(row, phone, increment=1, **fields):
    return LeadUpdate(row=row, company_id="company-1", phone=phone, increment=increment, fields=fields)


class TestInserts:

    def test_inserts_in_chunks(self, lead_store):
        plan = ReconciliationPlan(inserts=[candidate(i, f"55501{i:05d}") for i in range(1, 6)])

        outcome = BatchWriter(lead_store, insert_chunk_size=2).write(plan)

        assert outcome.inserted == 5
        assert outcome.errors == []
        assert lead_store.insert_many_sizes == [2, 2, 1]
        doc = lead_store.live_lead("company-1", "5550100001")
        assert doc["status"] == "new"
        assert doc["star"] == 1
        assert doc["is_deleted"] is False

    def test_star_of_merged_candidate(self, lead_store):
        plan = ReconciliationPlan(inserts=[candidate(1, "5550100100", star=3)])

        BatchWriter(lead_store).write(plan)

        assert lead_store.live_lead("company-1", "5550100100")["star"] == 3

    def test_document_failure_reported_per_row(self, lead_store):
        lead_store.invalid_phones.add("5550100002")
        plan = ReconciliationPlan(inserts=[
            candidate(1, "5550100001"),
            candidate(2, "5550100002"),
            candidate(3, "5550100003"),
        ])

        outcome = BatchWriter(lead_store).write(plan)

        assert outcome.inserted == 2
        assert len(outcome.errors) == 1
        assert outcome.errors[0].row == 2
        assert outcome.errors[0].reason.startswith("Insert failed:")

    def test_bulk_failure_falls_back_to_single_inserts(self, lead_store):
        lead_store.fail_bulk_insert = True
        lead_store.invalid_phones.add("5550100002")
        plan = ReconciliationPlan(inserts=[
            candidate(1, "5550100001"),
            candidate(2, "5550100002"),
            candidate(3, "5550100003"),
        ])

        outcome = BatchWriter(lead_store).write(plan)

        assert outcome.inserted == 2
        assert [e.row for e in outcome.errors] == [2]
        assert lead_store.live_lead("company-1", "5550100003") is not None

    def test_race_on_phone_becomes_update(self, lead_store):
        """Another import inserted the phone after reconciliation"""
        lead_store.race_documents["5550100001"] = {
            "_id": "other-import", "company_id": "company-1", "phone": "5550100001",
            "first_name": "Old", "last_name": "Name", "star": 1, "is_deleted": False,
        }
        plan = ReconciliationPlan(inserts=[candidate(1, "5550100001", email="jane@x.com")])

        outcome = BatchWriter(lead_store).write(plan)

        assert outcome.inserted == 0
        assert outcome.updated == 1
        assert outcome.errors == []
        doc = lead_store.live_lead("company-1", "5550100001")
        assert doc["_id"] == "other-import"
        assert doc["star"] == 2
        assert doc["email"] == "jane@x.com"

    def test_race_in_single_insert_fallback(self, lead_store):
        lead_store.fail_bulk_insert = True
        lead_store.add_lead("company-1", "5550100001")
        plan = ReconciliationPlan(inserts=[candidate(1, "5550100001")])

        outcome = BatchWriter(lead_store).write(plan)

        assert outcome.updated == 1
        assert lead_store.live_lead("company-1", "5550100001")["star"] == 2

    def test_already_stored_id_counts_once(self, lead_store):
        """Re-running the same write does not duplicate or fail"""
        lead = candidate(1, "5550100001")
        writer = BatchWriter(lead_store)

        writer.write(ReconciliationPlan(inserts=[lead]))
        outcome = writer.write(ReconciliationPlan(inserts=[lead]))

        assert outcome.inserted == 1
        assert outcome.errors == []
        assert len(lead_store.live_leads("company-1")) == 1


class TestUpdates:

    def test_increments_and_sets_fields(self, lead_store):
        lead_store.add_lead("company-1", "5550100001", star=4, lead_source="website", status="contacted")
        plan = ReconciliationPlan(updates=[update(7, "5550100001", increment=2, email="new@x.com")])

        outcome = BatchWriter(lead_store).write(plan)

        assert outcome.updated == 1
        doc = lead_store.live_lead("company-1", "5550100001")
        assert doc["star"] == 6
        assert doc["email"] == "new@x.com"
        assert doc["lead_source"] == "website"
        assert doc["status"] == "contacted"

    def test_updates_in_chunks(self, lead_store):
        for i in range(5):
            lead_store.add_lead("company-1", f"555010000{i}")
        plan = ReconciliationPlan(updates=[update(i, f"555010000{i}") for i in range(5)])

        outcome = BatchWriter(lead_store, update_chunk_size=2).write(plan)

        assert outcome.updated == 5
        assert lead_store.bulk_update_sizes == [2, 2, 1]

    def test_unmatched_update_reported(self, lead_store):
        """Lead deleted between reconciliation and write"""
        lead_store.add_lead("company-1", "5550100001")
        plan = ReconciliationPlan(updates=[update(1, "5550100001"), update(2, "5550100002")])

        outcome = BatchWriter(lead_store).write(plan)

        assert outcome.updated == 1
        assert len(outcome.errors) == 1
        assert outcome.errors[0].row == 2
        assert outcome.errors[0].reason == UNMATCHED_UPDATE_REASON

    def test_bulk_failure_falls_back_to_single_updates(self, lead_store):
        lead_store.fail_bulk_update = True
        lead_store.add_lead("company-1", "5550100001")
        lead_store.add_lead("company-1", "5550100002")
        lead_store.invalid_phones.add("5550100002")
        plan = ReconciliationPlan(updates=[
            update(1, "5550100001"),
            update(2, "5550100002"),
            update(3, "5550100003"),
        ])

        outcome = BatchWriter(lead_store).write(plan)

        assert outcome.updated == 1
        assert [(e.row, e.reason) for e in outcome.errors] == [
            (2, "Update failed: Update failed validation"),
            (3, UNMATCHED_UPDATE_REASON),
        ]

    def test_errors_sorted_by_row(self, lead_store):
        lead_store.invalid_phones.update({"5550100009", "5550100001"})
        lead_store.add_lead("company-1", "5550100001")
        plan = ReconciliationPlan(
            inserts=[candidate(9, "5550100009")],
            updates=[update(1, "5550100001")],
        )

        outcome = BatchWriter(lead_store).write(plan)

        assert [e.row for e in outcome.errors] == [1, 9]


class TestMergedGroupFailures:
    """A failed write of a merged group stands for every row folded into it"""

    def test_failed_insert_carries_occurrences(self, lead_store):
        lead_store.invalid_phones.add("5550100100")
        plan = ReconciliationPlan(inserts=[candidate(1, "5550100100", star=3)])

        outcome = BatchWriter(lead_store).write(plan)

        assert outcome.inserted == 0
        assert [(e.row, e.occurrences) for e in outcome.errors] == [(1, 3)]

    def test_failed_single_insert_carries_occurrences(self, lead_store):
        lead_store.fail_bulk_insert = True
        lead_store.invalid_phones.add("5550100100")
        plan = ReconciliationPlan(inserts=[candidate(1, "5550100100", star=2)])

        outcome = BatchWriter(lead_store).write(plan)

        assert outcome.errors[0].occurrences == 2

    def test_unmatched_update_carries_occurrences(self, lead_store):
        plan = ReconciliationPlan(updates=[update(4, "5550100100", increment=2)])

        outcome = BatchWriter(lead_store).write(plan)

        assert outcome.errors[0].reason == UNMATCHED_UPDATE_REASON
        assert outcome.errors[0].occurrences == 2

    def test_failed_single_update_carries_occurrences(self, lead_store):
        lead_store.fail_bulk_update = True
        lead_store.add_lead("company-1", "5550100100")
        lead_store.invalid_phones.add("5550100100")
        plan = ReconciliationPlan(updates=[update(4, "5550100100", increment=3)])

        outcome = BatchWriter(lead_store).write(plan)

        assert outcome.errors[0].occurrences == 3
