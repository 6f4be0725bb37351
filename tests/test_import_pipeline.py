import logging

import pytest

from budget_importer.domain.exceptions import EmptyFileError, NoDataRowsError
from budget_importer.usecases.import_usecase import ImportPipeline

from tests.support import make_cells, make_csv


def test_single_valid_row():
    summary = ImportPipeline().parse_and_validate(make_csv(make_cells()), owner_id="owner-1")

    assert (summary.total, summary.valid, summary.invalid, summary.warnings) == (1, 1, 0, 0)
    assert summary.errors == []
    assert summary.owner_id == "owner-1"
    [record] = summary.records
    assert record.row_no == 1
    assert record.description == "Tela iPhone 11"
    assert record.cash_price == 750.0
    assert record.draft is False
    assert summary.integer_mode is True
    assert summary.confidence == 1.0


def test_short_row_is_counted_and_excluded():
    text = make_csv(["celular", "Tela", "Gold", "", "750", "800", "10", "PIX"], make_cells())

    summary = ImportPipeline().parse_and_validate(text)

    assert (summary.total, summary.valid, summary.invalid) == (2, 1, 1)
    assert summary.errors == ["Row 1: insufficient columns (8/12)"]
    assert summary.diagnostics[0].code == "INSUFFICIENT_COLUMNS"
    assert summary.diagnostics[0].value == "8/12"
    assert [record.row_no for record in summary.records] == [2]


def test_duplicate_row_is_invalid_and_first_kept():
    summary = ImportPipeline().parse_and_validate(make_csv(make_cells(), make_cells()))

    assert (summary.total, summary.valid, summary.invalid) == (2, 1, 1)
    assert summary.errors == ["Row 2: duplicate of row 1"]
    assert summary.rows[0].valid is True
    assert summary.rows[1].valid is False


def test_duplicate_of_invalid_row_is_still_flagged():
    summary = ImportPipeline().parse_and_validate(make_csv(make_cells(installments="30"), make_cells()))

    assert (summary.total, summary.valid, summary.invalid) == (2, 0, 2)
    assert summary.errors == [
        "Row 1: installments must be between 1 and 24",
        "Row 2: duplicate of row 1",
    ]
    assert summary.records == []


def test_oversized_price_becomes_row_error():
    huge = "1" + "0" * 30
    text = make_csv(
        make_cells(cash=huge, installment=huge),
        make_cells(description="Bateria", cash="75000", installment="80000"),
    )

    summary = ImportPipeline().parse_and_validate(text)

    assert (summary.total, summary.valid, summary.invalid) == (2, 1, 1)
    row_errors = [item.code for item in summary.diagnostics if item.row_no == 1 and item.severity == "error"]
    assert row_errors == ["INVALID_PRICE", "INVALID_PRICE"]
    assert summary.records[0].row_no == 2
    assert summary.records[0].cash_price == 750.0


def test_header_only_raises_before_rows():
    with pytest.raises(NoDataRowsError):
        ImportPipeline().parse_and_validate(make_csv())


def test_empty_text_raises():
    with pytest.raises(EmptyFileError):
        ImportPipeline().parse_and_validate("")


def test_errors_are_reported_in_row_order():
    text = make_csv(
        make_cells(),
        make_cells(description="Bateria", payment="À Vista", installments="3"),
        ["celular", "curta"],
        make_cells(description="Conector", cash="abc"),
    )

    summary = ImportPipeline().parse_and_validate(text)

    assert summary.total == 4
    assert summary.valid == 1
    rows = [error.split(":")[0] for error in summary.errors]
    assert rows == sorted(rows, key=lambda label: int(label.split()[1]))
    assert rows[0] == "Row 2"
    assert "Row 3: insufficient columns (2/12)" in summary.errors


def test_defaults_make_draft_with_warnings():
    text = make_csv(make_cells(payment="", warranty="", validity=""))

    summary = ImportPipeline().parse_and_validate(text)

    assert summary.valid == 1
    assert summary.warnings == 3
    assert summary.draft_count == 1
    record = summary.records[0]
    assert record.warranty_months == 3
    assert record.validity_days == 15
    assert record.payment_method == "Cartão de Crédito"


def test_invalid_row_carries_suggestions():
    text = make_csv(make_cells(cash="-750"))

    summary = ImportPipeline().parse_and_validate(text)

    assert summary.invalid == 1
    assert summary.rows[0].suggestions == {"cash_price": 750.0}
    assert summary.rows[0].label == "celular - Tela iPhone 11"


def test_custom_delimiter():
    text = make_csv(make_cells(cash="750.00", installment="800.00"), delimiter=",")

    summary = ImportPipeline(delimiter=",").parse_and_validate(text)

    assert summary.valid == 1
    assert summary.records[0].cash_price == 750.0


def test_invalid_row_is_logged(caplog):
    caplog.set_level(logging.INFO, logger="budget_importer.import")
    pipeline = ImportPipeline(run_id="run-1")

    pipeline.parse_and_validate(make_csv(make_cells(), make_cells(description="Bateria", installments="40")))

    records = [record for record in caplog.records if record.name == "budget_importer.import"]
    messages = [record.getMessage() for record in records]
    assert "invalid row line=2 errors=INVALID_NUMBER" in messages
    assert "total=2 valid=1 invalid=1 warnings=0" in messages
    assert all(record.runId == "run-1" for record in records)


def test_pipeline_state_is_not_shared_between_calls():
    pipeline = ImportPipeline()
    text = make_csv(make_cells())

    first = pipeline.parse_and_validate(text)
    second = pipeline.parse_and_validate(text)

    assert first.valid == 1
    assert second.valid == 1
    assert second.errors == []
