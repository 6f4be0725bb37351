from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from budget_importer.domain.exceptions import InsufficientColumnsError
from budget_importer.domain.models import BudgetRecord, DiagnosticStage, ValidationErrorItem

SEVERITY_ERROR = "error"
SEVERITY_WARNING = "warning"


@dataclass(frozen=True)
class FieldError:
    """
    Назначение:
        Находка по строке файла для показа пользователю.

    Инварианты:
        - row_no с 1, заголовок не учитывается.
    """

    row_no: int
    field: str | None
    message: str
    value: str | None = None
    code: str | None = None
    stage: DiagnosticStage = DiagnosticStage.VALIDATE
    severity: str = SEVERITY_ERROR

    def format(self) -> str:
        return f"Row {self.row_no}: {self.message}"


@dataclass
class RowOutcome:
    """Итог по одной строке: статус, находки и подсказки исправлений."""

    row_no: int
    valid: bool
    errors: list[ValidationErrorItem] = field(default_factory=list)
    warnings: list[ValidationErrorItem] = field(default_factory=list)
    suggestions: dict[str, Any] = field(default_factory=dict)
    label: str | None = None


@dataclass
class ImportSummary:
    """
    Назначение:
        Сводка предпросмотра импорта.

    Инварианты:
        - total == valid + invalid
        - records содержит только валидные записи в порядке файла.
        - errors/warning_messages: строки вида 'Row N: ...'.
    """

    total: int
    valid: int
    invalid: int
    warnings: int
    errors: list[str]
    warning_messages: list[str] = field(default_factory=list)
    diagnostics: list[FieldError] = field(default_factory=list)
    records: list[BudgetRecord] = field(default_factory=list)
    rows: list[RowOutcome] = field(default_factory=list)
    owner_id: str | None = None
    integer_mode: bool = True
    confidence: float = 1.0
    recommendations: tuple[str, ...] = ()

    @property
    def draft_count(self) -> int:
        return sum(1 for record in self.records if record.draft)


class ImportDiagnostics:
    """
    Назначение/ответственность:
        Накопитель находок одного вызова импорта.

    Ограничения:
        - Создаётся на каждый вызов, не разделяется между импортами.
    """

    def __init__(self) -> None:
        self.findings: list[FieldError] = []
        self.rows: list[RowOutcome] = []
        self.records: list[BudgetRecord] = []

    def add_rejected(self, exc: InsufficientColumnsError) -> None:
        item = ValidationErrorItem(
            stage=DiagnosticStage.PARSE,
            code=exc.code.value,
            field=None,
            message=f"insufficient columns ({exc.actual}/{exc.expected})",
            value=f"{exc.actual}/{exc.expected}",
        )
        self.add_row(exc.line_no, errors=[item], warnings=[])

    def add_row(
        self,
        row_no: int,
        errors: list[ValidationErrorItem],
        warnings: list[ValidationErrorItem],
        record: BudgetRecord | None = None,
        suggestions: dict[str, Any] | None = None,
        label: str | None = None,
    ) -> RowOutcome:
        for item in errors:
            self.findings.append(self._to_field_error(row_no, item, SEVERITY_ERROR))
        for item in warnings:
            self.findings.append(self._to_field_error(row_no, item, SEVERITY_WARNING))
        valid = not errors and record is not None
        if valid:
            self.records.append(record)
        outcome = RowOutcome(
            row_no=row_no,
            valid=valid,
            errors=list(errors),
            warnings=list(warnings),
            suggestions=suggestions or {},
            label=label,
        )
        self.rows.append(outcome)
        return outcome

    @staticmethod
    def _to_field_error(row_no: int, item: ValidationErrorItem, severity: str) -> FieldError:
        return FieldError(
            row_no=row_no,
            field=item.field,
            message=item.message,
            value=item.value,
            code=item.code,
            stage=item.stage,
            severity=severity,
        )


def build_summary(
    diagnostics: ImportDiagnostics,
    owner_id: str | None = None,
    integer_mode: bool = True,
    confidence: float = 1.0,
    recommendations: tuple[str, ...] = (),
) -> ImportSummary:
    """
    Назначение:
        Свести находки накопителя в ImportSummary.

    Контракт:
        - total = число строк данных, которые пытались обработать.
        - valid = число строк без ошибок; invalid = total - valid.
        - warnings = число предупреждений по всем строкам.
    """
    rows = sorted(diagnostics.rows, key=lambda outcome: outcome.row_no)
    findings = sorted(diagnostics.findings, key=lambda item: item.row_no)
    total = len(rows)
    valid = sum(1 for outcome in rows if outcome.valid)
    errors = [item for item in findings if item.severity == SEVERITY_ERROR]
    warnings = [item for item in findings if item.severity == SEVERITY_WARNING]
    return ImportSummary(
        total=total,
        valid=valid,
        invalid=total - valid,
        warnings=len(warnings),
        errors=[item.format() for item in errors],
        warning_messages=[item.format() for item in warnings],
        diagnostics=findings,
        records=sorted(diagnostics.records, key=lambda record: record.row_no),
        rows=rows,
        owner_id=owner_id,
        integer_mode=integer_mode,
        confidence=confidence,
        recommendations=recommendations,
    )
