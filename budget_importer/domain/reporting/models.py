from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping

from budget_importer.domain.models import DiagnosticStage, RowRef


@dataclass
class ReportMeta:
    """
    Назначение:
        Метаданные запуска команды.
    """

    run_id: str
    command: str
    started_at: str
    source_file: str | None = None
    owner_id: str | None = None
    finished_at: str | None = None
    duration_ms: int | None = None
    items_limit: int | None = None
    items_truncated: bool = False
    app_version: str | None = None


@dataclass
class ReportSummary:
    """
    Назначение:
        Счётчики выполнения команды.

    Инварианты:
        - rows_total == rows_valid + rows_invalid
    """

    rows_total: int = 0
    rows_valid: int = 0
    rows_invalid: int = 0
    rows_with_warnings: int = 0
    errors_total: int = 0
    warnings_total: int = 0
    by_stage: dict[str, dict[str, int]] = field(default_factory=dict)
    ops: dict[str, dict[str, int]] = field(default_factory=dict)


@dataclass(frozen=True)
class ReportDiagnostic:
    severity: str
    stage: DiagnosticStage
    code: str
    field: str | None
    message: str
    value: str | None = None


@dataclass
class ReportItem:
    """
    Назначение:
        Единица отчёта, привязанная к строке входного файла.
    """

    status: str
    row_ref: RowRef | None = None
    payload: Mapping[str, Any] | None = None
    diagnostics: list[ReportDiagnostic] = field(default_factory=list)
    suggestions: list[str] = field(default_factory=list)
    meta: dict[str, Any] = field(default_factory=dict)


@dataclass
class ReportEnvelope:
    status: str
    meta: ReportMeta
    summary: ReportSummary
    items: list[ReportItem]
    context: dict[str, Any] = field(default_factory=dict)
