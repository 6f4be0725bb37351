from __future__ import annotations

import logging
import sqlite3
import sys
import time
from pathlib import Path

import typer

from budget_importer import __version__
from budget_importer.common.run_id import generate_run_id
from budget_importer.common.sanitize import maskSecret
from budget_importer.common.time import getDurationMs
from budget_importer.config import Settings, load_settings
from budget_importer.datasets.budgets.exporter import ExportFilters
from budget_importer.datasets.budgets.suggestions import format_suggestions
from budget_importer.datasets.budgets.template import generate_template_csv
from budget_importer.domain.exceptions import CsvImportError, InvalidTransitionError
from budget_importer.domain.importing.summary import ImportSummary
from budget_importer.domain.models import RowRef
from budget_importer.infra.artifacts.report_writer import createEmptyReport, finalizeReport, writeReportJson
from budget_importer.infra.http.budget_api_client import ApiError, BudgetApiClient
from budget_importer.infra.logging.setup import (
    StdStreamToLogger,
    TeeStream,
    closeCommandLogger,
    createCommandLogger,
    logEvent,
)
from budget_importer.infra.sources.csv_text_source import read_text_file
from budget_importer.infra.store.api_budget_store import ApiBudgetStore
from budget_importer.infra.store.db import DB_FILE_NAME, ensureSchema, openStoreDb
from budget_importer.infra.store.sqlite_budget_store import SqliteBudgetStore
from budget_importer.infra.store.sqlite_engine import SqliteEngine
from budget_importer.usecases.export_usecase import ExportUseCase
from budget_importer.usecases.import_usecase import ImportPipeline, persist_records
from budget_importer.usecases.import_workflow import ImportWorkflow
from budget_importer.usecases.ports import BudgetStoreProtocol

app = typer.Typer(no_args_is_help=True, add_completion=False)


def ensureDir(path: str) -> None:
    Path(path).mkdir(parents=True, exist_ok=True)


def requireCsv(csvPath: str | None) -> None:
    """
    Назначение:
        Проверка наличия входного CSV для validate/import.

    Поведение:
        - Если csvPath не задан или файл не существует, exit code 2.
    """
    if not csvPath:
        typer.echo("ERROR: --csv is required", err=True)
        raise typer.Exit(code=2)

    p = Path(csvPath)
    if not p.exists() or not p.is_file():
        typer.echo(f"ERROR: CSV file not found: {csvPath}", err=True)
        raise typer.Exit(code=2)


def requireApi(settings: Settings) -> None:
    """
    Назначение:
        Для store_backend=api нужен адрес бэкенда.
    """
    if settings.store_backend == "api" and not settings.api_url:
        typer.echo("ERROR: missing API settings: api_url", err=True)
        raise typer.Exit(code=2)


def printRunHeader(runId: str, command: str, settings: Settings, sources: list[str]) -> None:
    """
    Назначение:
        Печатает безопасную сводку параметров запуска (без секретов).
    """
    typer.echo(
        f"run_id={runId} command={command} store_backend={settings.store_backend} "
        f"api_url={settings.api_url} api_key={maskSecret(settings.api_key)} sources={sources} "
        f"log_level={settings.log_level}"
    )


def buildStore(settings: Settings) -> tuple[BudgetStoreProtocol, object]:
    """
    Выходные данные:
        (store, closable) - closable.close() освобождает соединение/клиент.
    """
    if settings.store_backend == "api":
        client = BudgetApiClient(
            baseUrl=settings.api_url or "",
            apiKey=settings.api_key,
            timeoutSeconds=settings.timeout_seconds,
            retries=settings.retries,
            retryBackoffSeconds=settings.retry_backoff_seconds,
        )
        return ApiBudgetStore(client), client
    conn = openStoreDb(str(Path(settings.store_dir) / DB_FILE_NAME))
    ensureSchema(conn)
    engine = SqliteEngine(conn)
    return SqliteBudgetStore(engine), engine


def runWithReport(
    ctx: typer.Context,
    commandName: str,
    csvPath: str | None,
    requiresCsv: bool,
    requiresStore: bool,
    runner,
) -> None:
    """
    Назначение:
        Унифицированная обвязка выполнения команд:
        - создаёт логгер + файл лога
        - создаёт каркас отчёта
        - проверяет обязательные входы (CSV/API)
        - дублирует stdout/stderr в лог
        - гарантирует запись отчёта в finally
    """
    runId = ctx.obj["runId"]
    settings: Settings = ctx.obj["settings"]
    sources = ctx.obj["sources"]

    startMonotonic = time.monotonic()

    logger, logFilePath = createCommandLogger(
        commandName=commandName,
        logDir=settings.log_dir,
        runId=runId,
        logLevel=settings.log_level,
    )

    report = createEmptyReport(runId=runId, command=commandName, configSources=sources)
    report.set_meta(
        source_file=csvPath,
        items_limit=settings.report_items_limit,
        app_version=__version__,
    )

    originalStdout = sys.stdout
    originalStderr = sys.stderr

    stdoutLoggerStream = StdStreamToLogger(logger, logging.INFO, runId, "stdout")
    stderrLoggerStream = StdStreamToLogger(logger, logging.ERROR, runId, "stderr")

    sys.stdout = TeeStream(originalStdout, stdoutLoggerStream)
    sys.stderr = TeeStream(originalStderr, stderrLoggerStream)

    exitCode: int | None = None

    try:
        logEvent(logger, logging.INFO, runId, "core", "Command started")
        printRunHeader(runId, commandName, settings, sources)

        if requiresStore:
            try:
                requireApi(settings)
            except typer.Exit:
                logEvent(logger, logging.ERROR, runId, "config", "Missing API settings")
                report.status = "FAILED"
                exitCode = 2
                return

        if requiresCsv:
            try:
                requireCsv(csvPath)
            except typer.Exit:
                logEvent(logger, logging.ERROR, runId, "csv", "CSV is missing or not accessible")
                report.status = "FAILED"
                exitCode = 2
                return

        exitCode = runner(logger, report)

    finally:
        durationMs = getDurationMs(startMonotonic, time.monotonic())
        finalizeReport(
            report=report,
            durationMs=durationMs,
            logFile=logFilePath,
            storeDir=settings.store_dir,
            reportDir=settings.report_dir,
        )
        reportPath = writeReportJson(report, settings.report_dir, f"report_{commandName}_{runId}")
        logEvent(logger, logging.INFO, runId, "report", f"Report written: {reportPath}")

        sys.stdout = originalStdout
        sys.stderr = originalStderr
        closeCommandLogger(logger)

        if exitCode is not None:
            raise typer.Exit(code=exitCode)


def readInput(csvPath: str, logger: logging.Logger, runId: str) -> str | None:
    try:
        return read_text_file(csvPath)
    except (OSError, UnicodeDecodeError) as exc:
        logEvent(logger, logging.ERROR, runId, "csv", f"Failed to read CSV: {exc}")
        typer.echo(f"ERROR: failed to read CSV: {exc}", err=True)
        return None


def fillSummaryReport(report, summary: ImportSummary) -> None:
    """
    Назначение:
        Переносит сводку импорта в отчёт: строки, находки, подсказки.
    """
    for outcome in summary.rows:
        report.add_item(
            status="VALID" if outcome.valid else "INVALID",
            row_ref=RowRef(line_no=outcome.row_no, row_id=f"row:{outcome.row_no}"),
            payload={"label": outcome.label} if outcome.label else None,
            errors=outcome.errors,
            warnings=outcome.warnings,
            suggestions=format_suggestions(outcome.suggestions),
        )
    report.set_context(
        "import",
        {
            "total": summary.total,
            "valid": summary.valid,
            "invalid": summary.invalid,
            "warnings": summary.warnings,
            "drafts": summary.draft_count,
            "integer_mode": summary.integer_mode,
            "confidence": round(summary.confidence, 4),
            "recommendations": list(summary.recommendations),
        },
    )


def printSummary(summary: ImportSummary) -> None:
    typer.echo(
        f"rows total={summary.total} valid={summary.valid} invalid={summary.invalid} "
        f"warnings={summary.warnings} drafts={summary.draft_count}"
    )
    for message in summary.errors:
        typer.echo(f"ERROR {message}")
    for message in summary.warning_messages:
        typer.echo(f"WARN {message}")
    for recommendation in summary.recommendations:
        typer.echo(f"NOTE {recommendation}")


def failStructural(report, logger: logging.Logger, runId: str, exc: CsvImportError) -> int:
    logEvent(logger, logging.ERROR, runId, "parse", f"{exc.code.value}: {exc}")
    report.set_context("error", {"code": exc.code.value, "message": str(exc)})
    report.status = "FAILED"
    typer.echo(f"ERROR: {exc}", err=True)
    return 2


def runValidateCommand(ctx: typer.Context, csvPath: str | None) -> None:
    settings: Settings = ctx.obj["settings"]
    runId = ctx.obj["runId"]

    def execute(logger, report) -> int:
        text = readInput(csvPath or "", logger, runId)
        if text is None:
            report.status = "FAILED"
            return 2
        pipeline = ImportPipeline(delimiter=settings.delimiter, logger=logger, run_id=runId)
        try:
            summary = pipeline.parse_and_validate(text, settings.owner_id)
        except CsvImportError as exc:
            return failStructural(report, logger, runId, exc)
        fillSummaryReport(report, summary)
        printSummary(summary)
        return 1 if summary.invalid > 0 else 0

    runWithReport(ctx, "validate", csvPath, requiresCsv=True, requiresStore=False, runner=execute)


def runImportCommand(ctx: typer.Context, csvPath: str | None, ownerId: str | None, assumeYes: bool) -> None:
    settings: Settings = ctx.obj["settings"]
    runId = ctx.obj["runId"]
    effectiveOwner = ownerId or settings.owner_id

    def execute(logger, report) -> int:
        if not effectiveOwner:
            logEvent(logger, logging.ERROR, runId, "config", "Owner id is missing")
            typer.echo("ERROR: --owner-id is required", err=True)
            report.status = "FAILED"
            return 2
        report.set_meta(owner_id=effectiveOwner)

        text = readInput(csvPath or "", logger, runId)
        if text is None:
            report.status = "FAILED"
            return 2

        try:
            store, closable = buildStore(settings)
        except sqlite3.Error as exc:
            logEvent(logger, logging.ERROR, runId, "store", f"Failed to open store DB: {exc}")
            typer.echo("ERROR: failed to open store (see logs/report)", err=True)
            report.status = "FAILED"
            return 2

        try:
            pipeline = ImportPipeline(delimiter=settings.delimiter, logger=logger, run_id=runId)
            workflow = ImportWorkflow(
                analyze=pipeline.parse_and_validate,
                persist=lambda records, owner: persist_records(store, records, owner),
                logger=logger,
                run_id=runId,
            )
            try:
                summary = workflow.parse_and_validate(text, effectiveOwner)
            except CsvImportError as exc:
                return failStructural(report, logger, runId, exc)

            fillSummaryReport(report, summary)
            printSummary(summary)

            if summary.valid == 0:
                workflow.cancel_import()
                typer.echo("Nothing to import: no valid rows")
                report.add_op("persist", count=0)
                return 1

            if not assumeYes and not typer.confirm(f"Import {summary.valid} valid rows?", default=False):
                workflow.cancel_import()
                logEvent(logger, logging.INFO, runId, "workflow", "Import cancelled by user")
                typer.echo("Import cancelled")
                report.set_context("workflow", {"state": workflow.state.value})
                return 0

            try:
                accepted = workflow.confirm_import()
            except InvalidTransitionError as exc:
                typer.echo(f"ERROR: {exc}", err=True)
                return 2

            failures = [result for result in workflow.last_persist_results if not result.ok]
            report.add_op("persist", ok=accepted, failed=len(failures), count=len(workflow.last_persist_results))
            report.set_context(
                "persist",
                {
                    "accepted": accepted,
                    "failed": [
                        {"row_no": result.row_no, "code": result.error_code, "message": result.error_message}
                        for result in failures
                    ],
                },
            )
            report.set_context("workflow", {"state": workflow.state.value})
            typer.echo(f"Imported {accepted} of {summary.valid} valid rows")
            for result in failures:
                typer.echo(f"ERROR Row {result.row_no}: not saved ({result.error_code}) {result.error_message}")

            if accepted == 0 or failures or summary.invalid > 0:
                return 1
            return 0
        finally:
            closable.close()

    runWithReport(ctx, "import", csvPath, requiresCsv=True, requiresStore=True, runner=execute)


def runExportCommand(
    ctx: typer.Context,
    outPath: str,
    ownerId: str | None,
    filters: ExportFilters | None,
) -> None:
    settings: Settings = ctx.obj["settings"]
    runId = ctx.obj["runId"]
    effectiveOwner = ownerId or settings.owner_id

    def execute(logger, report) -> int:
        if effectiveOwner:
            report.set_meta(owner_id=effectiveOwner)
        try:
            store, closable = buildStore(settings)
        except sqlite3.Error as exc:
            logEvent(logger, logging.ERROR, runId, "store", f"Failed to open store DB: {exc}")
            typer.echo("ERROR: failed to open store (see logs/report)", err=True)
            report.status = "FAILED"
            return 2
        try:
            text, total, exported = ExportUseCase(store, delimiter=settings.delimiter).run(
                owner_id=effectiveOwner,
                filters=filters,
                logger=logger,
                run_id=runId,
            )
        except ApiError as exc:
            logEvent(logger, logging.ERROR, runId, "store", f"Export failed: {exc.code} {exc.message}")
            typer.echo(f"ERROR: export failed ({exc.code})", err=True)
            report.set_context("error", exc.to_dict())
            report.status = "FAILED"
            return 2
        finally:
            closable.close()

        Path(outPath).parent.mkdir(parents=True, exist_ok=True)
        with open(outPath, "w", encoding="utf-8", newline="") as f:
            f.write(text)
        report.add_op("export", ok=exported, count=total)
        report.set_context("export", {"out": outPath, "rows_total": total, "rows_exported": exported})
        typer.echo(f"Exported {exported} of {total} budgets to {outPath}")
        return 0

    runWithReport(ctx, "export", None, requiresCsv=False, requiresStore=True, runner=execute)


def runTemplateCommand(ctx: typer.Context, outPath: str) -> None:
    settings: Settings = ctx.obj["settings"]

    def execute(logger, report) -> int:
        Path(outPath).parent.mkdir(parents=True, exist_ok=True)
        with open(outPath, "w", encoding="utf-8", newline="") as f:
            f.write(generate_template_csv(settings.delimiter))
        report.set_context("template", {"out": outPath})
        typer.echo(f"Template written to {outPath}")
        return 0

    runWithReport(ctx, "template", None, requiresCsv=False, requiresStore=False, runner=execute)


@app.callback()
def main(
    ctx: typer.Context,
    config: str | None = typer.Option(None, "--config", help="Path to config.yml"),
    runId: str | None = typer.Option(None, "--run-id", help="Run identifier. If omitted, generated."),
    logLevel: str | None = typer.Option(None, "--log-level", help="Log level: ERROR|WARN|INFO|DEBUG"),
    logDir: str | None = typer.Option(None, "--log-dir", help="Directory for logs."),
    reportDir: str | None = typer.Option(None, "--report-dir", help="Directory for reports."),
    storeDir: str | None = typer.Option(None, "--store-dir", help="Directory for the local SQLite store."),
    storeBackend: str | None = typer.Option(None, "--store-backend", help="Store backend: sqlite|api"),
    apiUrl: str | None = typer.Option(None, "--api-url", help="REST backend base URL"),
    apiKey: str | None = typer.Option(None, "--api-key", help="REST backend API key (avoid; use env)"),
    timeoutSeconds: float | None = typer.Option(None, "--timeout-seconds", help="API timeout in seconds"),
    retries: int | None = typer.Option(None, "--retries", help="Retry attempts for API calls"),
    retryBackoffSeconds: float | None = typer.Option(None, "--retry-backoff-seconds", help="Base backoff for retries"),
    delimiter: str | None = typer.Option(None, "--delimiter", help="CSV delimiter (default ';')"),
    reportItemsLimit: int | None = typer.Option(None, "--report-items-limit", help="Limit report items stored"),
):
    """
    Назначение:
        Глобальная инициализация CLI:
        - генерирует/принимает run_id
        - загружает настройки (CLI > ENV > config > defaults)
        - создаёт каталоги log/report
        - сохраняет всё в ctx.obj для подкоманд
    """
    if not runId:
        runId = generate_run_id()

    cliOverrides = {
        "log_level": logLevel,
        "log_dir": logDir,
        "report_dir": reportDir,
        "store_dir": storeDir,
        "store_backend": storeBackend,
        "api_url": apiUrl,
        "api_key": apiKey,
        "timeout_seconds": timeoutSeconds,
        "retries": retries,
        "retry_backoff_seconds": retryBackoffSeconds,
        "delimiter": delimiter,
        "report_items_limit": reportItemsLimit,
    }
    try:
        loaded = load_settings(config_path=config, cli_overrides=cliOverrides)
    except ValueError as exc:
        typer.echo(f"ERROR: {exc}", err=True)
        raise typer.Exit(code=2)

    ensureDir(loaded.settings.log_dir)
    ensureDir(loaded.settings.report_dir)

    ctx.obj = {
        "runId": runId,
        "settings": loaded.settings,
        "sources": loaded.sources_used,
        "configPath": config,
    }


@app.command()
def validate(
    ctx: typer.Context,
    csv: str | None = typer.Option(None, "--csv", help="Path to input CSV"),
):
    runValidateCommand(ctx, csv)


@app.command("import")
def importCommand(
    ctx: typer.Context,
    csv: str | None = typer.Option(None, "--csv", help="Path to input CSV"),
    ownerId: str | None = typer.Option(None, "--owner-id", help="Owner (user) identifier for imported budgets"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Confirm the import without prompting"),
):
    runImportCommand(ctx, csv, ownerId, yes)


@app.command("export")
def exportCommand(
    ctx: typer.Context,
    out: str = typer.Option(..., "--out", help="Path to output CSV"),
    ownerId: str | None = typer.Option(None, "--owner-id", help="Export only budgets of this owner"),
    deviceType: list[str] | None = typer.Option(None, "--device-type", help="Filter by device type (repeatable)"),
    paymentMethod: list[str] | None = typer.Option(None, "--payment-method", help="Filter by payment method (repeatable)"),
    priceMin: float | None = typer.Option(None, "--price-min", help="Minimum cash price (reais)"),
    priceMax: float | None = typer.Option(None, "--price-max", help="Maximum cash price (reais)"),
    warrantyMin: int | None = typer.Option(None, "--warranty-min", help="Minimum warranty months"),
    warrantyMax: int | None = typer.Option(None, "--warranty-max", help="Maximum warranty months"),
    validityMin: int | None = typer.Option(None, "--validity-min", help="Minimum validity days"),
    validityMax: int | None = typer.Option(None, "--validity-max", help="Maximum validity days"),
    delivery: bool | None = typer.Option(None, "--delivery/--no-delivery", help="Filter by delivery flag"),
    screenProtector: bool | None = typer.Option(
        None,
        "--screen-protector/--no-screen-protector",
        help="Filter by screen protector flag",
    ),
):
    filters = ExportFilters(
        device_types=tuple(deviceType or ()),
        payment_methods=tuple(paymentMethod or ()),
        price_min=priceMin,
        price_max=priceMax,
        warranty_min=warrantyMin,
        warranty_max=warrantyMax,
        validity_min=validityMin,
        validity_max=validityMax,
        includes_delivery=delivery,
        includes_screen_protector=screenProtector,
    )
    if filters == ExportFilters():
        filters = None
    runExportCommand(ctx, out, ownerId, filters)


@app.command("template")
def templateCommand(
    ctx: typer.Context,
    out: str = typer.Option(..., "--out", help="Path to output template CSV"),
):
    runTemplateCommand(ctx, out)


if __name__ == "__main__":
    app()
