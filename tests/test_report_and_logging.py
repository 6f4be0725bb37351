import json
import logging

import pytest

from budget_importer.domain.models import DiagnosticStage, RowRef, ValidationErrorItem
from budget_importer.domain.reporting.collector import ReportCollector
from budget_importer.infra.artifacts.report_writer import createEmptyReport, finalizeReport, writeReportJson
from budget_importer.infra.logging.setup import closeCommandLogger, createCommandLogger, logEvent, mapLogLevel


def error(code: str, stage: DiagnosticStage = DiagnosticStage.VALIDATE) -> ValidationErrorItem:
    return ValidationErrorItem(stage=stage, code=code, field="cash_price", message="bad", value="-1")


def test_collector_counts_and_status():
    report = ReportCollector(run_id="r1", command="validate")
    report.add_item(status="VALID", row_ref=RowRef(line_no=1, row_id="row:1"))
    report.add_item(
        status="INVALID",
        row_ref=RowRef(line_no=2, row_id="row:2"),
        errors=[error("INVALID_PRICE")],
        warnings=[error("PRICE_ROUNDED", DiagnosticStage.SCALE)],
        suggestions=["cash_price -> 1"],
    )
    report.finish(duration_ms=5)

    envelope = report.build()

    assert envelope.status == "PARTIAL"
    assert envelope.summary.rows_total == 2
    assert envelope.summary.rows_invalid == 1
    assert envelope.summary.rows_with_warnings == 1
    assert envelope.summary.by_stage == {
        "VALIDATE": {"errors_total": 1, "warnings_total": 0},
        "SCALE": {"errors_total": 0, "warnings_total": 1},
    }
    assert envelope.items[1].suggestions == ["cash_price -> 1"]


def test_collector_status_without_valid_rows():
    report = ReportCollector(run_id="r1", command="validate")
    report.add_item(status="INVALID", errors=[error("INVALID_PRICE")])

    assert report.build().status == "FAILED"


def test_failed_ops_make_run_partial():
    report = ReportCollector(run_id="r1", command="import")
    report.add_item(status="VALID")
    report.add_op("persist", ok=1, failed=1, count=2)

    assert report.build().status == "PARTIAL"


def test_items_limit_truncates_items_only():
    report = ReportCollector(run_id="r1", command="validate")
    report.set_meta(items_limit=1)
    report.add_item(status="VALID")
    report.add_item(status="VALID")

    envelope = report.build()

    assert len(envelope.items) == 1
    assert envelope.summary.rows_total == 2
    assert envelope.meta.items_truncated is True


def test_report_json_is_written(tmp_path):
    report = createEmptyReport(runId="r1", command="validate", configSources=["env"])
    report.add_item(status="INVALID", row_ref=RowRef(line_no=3, row_id="row:3"), errors=[error("INVALID_PRICE")])
    finalizeReport(report, durationMs=12, logFile="x.log", storeDir="data", reportDir=str(tmp_path))

    path = writeReportJson(report, str(tmp_path), "report_validate_r1")

    data = json.loads(open(path, encoding="utf-8").read())
    assert data["status"] == "FAILED"
    assert data["meta"]["duration_ms"] == 12
    assert data["context"]["config"] == {"sources": ["env"]}
    assert data["context"]["runtime"]["log_file"] == "x.log"
    diagnostic = data["items"][0]["diagnostics"][0]
    assert diagnostic["stage"] == "VALIDATE"
    assert diagnostic["severity"] == "error"
    assert data["items"][0]["row_ref"] == {"line_no": 3, "row_id": "row:3"}


@pytest.mark.parametrize("name, level", [("warn", logging.WARNING), ("DEBUG", logging.DEBUG), (" info ", logging.INFO)])
def test_map_log_level(name, level):
    assert mapLogLevel(name) == level


def test_map_log_level_rejects_unknown():
    with pytest.raises(ValueError):
        mapLogLevel("LOUD")


def test_command_logger_writes_file(tmp_path):
    logger, logFile = createCommandLogger("validate", str(tmp_path), "r1", "INFO")
    logEvent(logger, logging.INFO, "r1", "parse", "parsed rows=3")
    logger.info("no extra fields")
    logger.debug("hidden")
    closeCommandLogger(logger)

    content = open(logFile, encoding="utf-8").read()
    assert "INFO runId=r1 comp=parse msg=parsed rows=3" in content
    assert "runId=r1 comp=core msg=no extra fields" in content
    assert "hidden" not in content
