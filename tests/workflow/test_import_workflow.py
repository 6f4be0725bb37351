from datetime import date

import pytest

from budget_importer.domain.exceptions import InvalidTransitionError, NoDataRowsError
from budget_importer.usecases.import_usecase import ImportPipeline, persist_records
from budget_importer.usecases.import_workflow import ImportState, ImportWorkflow
from budget_importer.usecases.ports import BudgetStoreProtocol, PersistRowResult

from tests.support import make_cells, make_csv

TODAY = date(2024, 1, 10)


class FakeStore:
    def __init__(self, fail_rows: tuple[int, ...] = ()) -> None:
        self.fail_rows = fail_rows
        self.payloads: list[dict] = []
        self.calls = 0

    def insert_many(self, payloads):
        self.calls += 1
        results = []
        for payload in payloads:
            self.payloads.append(payload)
            row_no = payload["source_row"]
            if row_no in self.fail_rows:
                results.append(PersistRowResult(ok=False, row_no=row_no, error_code="CONFLICT", error_message="exists"))
            else:
                results.append(PersistRowResult(ok=True, row_no=row_no, budget_id=f"id-{row_no}"))
        return results

    def list_budgets(self, owner_id=None):
        return [payload for payload in self.payloads if owner_id is None or payload["owner_id"] == owner_id]


def make_workflow(store: FakeStore) -> ImportWorkflow:
    pipeline = ImportPipeline()
    return ImportWorkflow(
        analyze=pipeline.parse_and_validate,
        persist=lambda records, owner_id: persist_records(store, records, owner_id, today=TODAY),
    )


def test_fake_store_matches_protocol():
    assert isinstance(FakeStore(), BudgetStoreProtocol)


def test_preview_then_confirm():
    store = FakeStore()
    workflow = make_workflow(store)
    assert workflow.state == ImportState.IDLE

    summary = workflow.parse_and_validate(make_csv(make_cells()), "owner-1")

    assert workflow.state == ImportState.PREVIEWING
    assert summary.valid == 1
    assert store.calls == 0

    accepted = workflow.confirm_import()

    assert accepted == 1
    assert workflow.state == ImportState.CONFIRMED
    assert workflow.is_idle
    [payload] = store.payloads
    assert payload["owner_id"] == "owner-1"
    assert payload["cash_price"] == 75000
    assert payload["installment_price"] == 80000
    assert payload["total_price"] == 75000
    assert payload["payment_condition"] == "Cartão de Crédito"
    assert payload["valid_until"] == "2024-01-25"
    assert payload["status"] == "pending"


def test_only_valid_rows_reach_store():
    store = FakeStore()
    workflow = make_workflow(store)
    text = make_csv(make_cells(), make_cells(description="Bateria", installments="99"), make_cells(description="Tampa"))

    workflow.parse_and_validate(text, "owner-1")
    workflow.confirm_import()

    assert [payload["source_row"] for payload in store.payloads] == [1, 3]


def test_cents_survive_to_store():
    store = FakeStore()
    workflow = make_workflow(store)

    workflow.parse_and_validate(make_csv(make_cells(cash="25,89", installment="30,10")), "owner-1")
    workflow.confirm_import()

    assert store.payloads[0]["cash_price"] == 2589
    assert store.payloads[0]["installment_price"] == 3010


def test_defaulted_row_is_stored_as_draft():
    store = FakeStore()
    workflow = make_workflow(store)

    workflow.parse_and_validate(make_csv(make_cells(warranty="")), "owner-1")
    workflow.confirm_import()

    assert store.payloads[0]["status"] == "draft"
    assert store.payloads[0]["warranty_months"] == 3


def test_confirm_with_zero_valid_rows_is_rejected():
    store = FakeStore()
    workflow = make_workflow(store)

    summary = workflow.parse_and_validate(make_csv(make_cells(cash="0")), "owner-1")

    assert workflow.state == ImportState.PREVIEWING
    assert summary.valid == 0
    with pytest.raises(InvalidTransitionError):
        workflow.confirm_import()
    assert store.calls == 0
    assert workflow.state == ImportState.PREVIEWING


def test_confirm_requires_owner():
    store = FakeStore()
    workflow = make_workflow(store)
    workflow.parse_and_validate(make_csv(make_cells()), None)

    with pytest.raises(InvalidTransitionError, match="owner id"):
        workflow.confirm_import()
    assert store.calls == 0


def test_confirm_outside_preview_is_rejected():
    workflow = make_workflow(FakeStore())

    with pytest.raises(InvalidTransitionError):
        workflow.confirm_import()


def test_cancel_discards_summary():
    store = FakeStore()
    workflow = make_workflow(store)
    workflow.parse_and_validate(make_csv(make_cells()), "owner-1")

    workflow.cancel_import()

    assert workflow.state == ImportState.CANCELLED
    assert workflow.summary is None
    assert store.calls == 0
    with pytest.raises(InvalidTransitionError):
        workflow.confirm_import()


def test_cancel_from_idle_is_rejected():
    with pytest.raises(InvalidTransitionError):
        make_workflow(FakeStore()).cancel_import()


def test_structural_error_returns_to_idle():
    workflow = make_workflow(FakeStore())

    with pytest.raises(NoDataRowsError):
        workflow.parse_and_validate(make_csv(), "owner-1")

    assert workflow.state == ImportState.IDLE
    assert workflow.summary is None


def test_unexpected_analysis_failure_returns_to_idle():
    calls: list[str] = []

    def analyze(text, owner_id):
        calls.append(text)
        if len(calls) == 1:
            raise RuntimeError("analyzer crashed")
        return ImportPipeline().parse_and_validate(text, owner_id)

    workflow = ImportWorkflow(analyze=analyze, persist=lambda records, owner_id: [])

    with pytest.raises(RuntimeError):
        workflow.parse_and_validate(make_csv(make_cells()), "owner-1")

    assert workflow.state == ImportState.IDLE
    summary = workflow.parse_and_validate(make_csv(make_cells()), "owner-1")
    assert summary.valid == 1
    assert workflow.state == ImportState.PREVIEWING


def test_new_file_is_ignored_while_analyzing():
    nested: list = []

    def analyze(text, owner_id):
        nested.append(workflow.parse_and_validate("other", owner_id))
        return ImportPipeline().parse_and_validate(text, owner_id)

    workflow = ImportWorkflow(analyze=analyze, persist=lambda records, owner_id: [])

    summary = workflow.parse_and_validate(make_csv(make_cells()), "owner-1")

    assert nested == [None]
    assert summary.valid == 1
    assert workflow.state == ImportState.PREVIEWING


def test_cancel_during_analysis_discards_result():
    def analyze(text, owner_id):
        assert workflow.state == ImportState.ANALYZING
        workflow.cancel_import()
        return ImportPipeline().parse_and_validate(text, owner_id)

    workflow = ImportWorkflow(analyze=analyze, persist=lambda records, owner_id: [])

    result = workflow.parse_and_validate(make_csv(make_cells()), "owner-1")

    assert result is None
    assert workflow.state == ImportState.CANCELLED
    assert workflow.summary is None


def test_row_failures_do_not_stop_other_rows():
    store = FakeStore(fail_rows=(2,))
    workflow = make_workflow(store)
    text = make_csv(make_cells(), make_cells(description="Bateria"), make_cells(description="Tampa"))
    workflow.parse_and_validate(text, "owner-1")

    accepted = workflow.confirm_import()

    assert accepted == 2
    assert len(store.payloads) == 3
    failed = [result for result in workflow.last_persist_results if not result.ok]
    assert [(result.row_no, result.error_code) for result in failed] == [(2, "CONFLICT")]


def test_workflow_can_run_again_after_confirm():
    store = FakeStore()
    workflow = make_workflow(store)
    workflow.parse_and_validate(make_csv(make_cells()), "owner-1")
    workflow.confirm_import()

    workflow.parse_and_validate(make_csv(make_cells(description="Bateria")), "owner-1")

    assert workflow.state == ImportState.PREVIEWING
    assert workflow.last_persist_results == []
