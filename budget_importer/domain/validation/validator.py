from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Generic, Protocol, TypeVar

from budget_importer.domain.error_codes import ErrorCode
from budget_importer.domain.models import DiagnosticStage, RowRef, ValidationErrorItem, ValidationRowResult
from budget_importer.domain.transform.match_key import MatchKey
from budget_importer.domain.transform.result import TransformResult
from budget_importer.domain.transform.source_record import RawRow
from budget_importer.domain.validation.validated_row import ValidationRow

T = TypeVar("T")


class ValidationRule(Protocol[T]):
    """
    Назначение:
        Контракт правила валидации для строки конкретного датасета.
    """

    name: str

    def apply(self, row: T, result: ValidationRowResult, record: RawRow) -> None: ...


class ValidationSpec(Protocol[T]):
    """
    Назначение:
        Контракт набора правил валидации для датасета.
    """

    rules: tuple[ValidationRule[T], ...]

    def build_match_key(self, row: T) -> MatchKey | None: ...


# (value, row, result, raw_value)
FieldValidator = Callable[[Any, Any, ValidationRowResult, str | None], None]


@dataclass(frozen=True)
class FieldRule(Generic[T]):
    """
    Назначение:
        Правило валидации для конкретного поля датасета.

    Контракт:
        - required и пустое значение -> ошибка missing_code, валидаторы поля пропускаются.
        - column задаёт позицию исходной ячейки: её сырое значение попадает в диагностику.
    """

    name: str
    attr: str
    field: str
    column: int | None = None
    required: bool = False
    missing_code: ErrorCode = ErrorCode.REQUIRED_FIELD_MISSING
    missing_message: str | None = None
    validators: tuple[FieldValidator, ...] = ()

    def apply(self, row: T, result: ValidationRowResult, record: RawRow) -> None:
        value = getattr(row, self.attr, None)
        raw = record.cell(self.column) if self.column is not None else None
        is_empty = value is None or (isinstance(value, str) and value.strip() == "")
        if self.required and is_empty:
            result.errors.append(
                ValidationErrorItem(
                    stage=DiagnosticStage.VALIDATE,
                    code=self.missing_code.value,
                    field=self.field,
                    message=self.missing_message or f"{self.field} is required",
                    value=raw or "",
                )
            )
            return
        for validator in self.validators:
            validator(value, row, result, raw)


class Validator(Generic[T]):
    """
    Назначение/ответственность:
        Валидирует нормализованный TransformResult по правилам ValidationSpec.

    Ограничения:
        - Все правила выполняются независимо: строка получает полный список проблем.
    """

    def __init__(self, spec: ValidationSpec[T]) -> None:
        self.spec = spec

    def validate(self, normalized: TransformResult[T]) -> TransformResult[ValidationRow[T]]:
        row = normalized.row
        if row is None and not normalized.errors:
            raise ValueError("Validation received empty row without errors")

        match_key = normalized.match_key
        if match_key is None and row is not None:
            match_key = self.spec.build_match_key(row)

        row_ref = normalized.row_ref or RowRef(
            line_no=normalized.record.line_no,
            row_id=normalized.record.record_id,
        )
        result = ValidationRowResult(
            line_no=normalized.record.line_no,
            match_key=match_key.value if match_key else "",
            row_ref=row_ref,
            errors=[*normalized.errors],
            warnings=[*normalized.warnings],
        )
        if row is not None:
            for rule in self.spec.rules:
                rule.apply(row, result, normalized.record)
        return TransformResult(
            record=normalized.record,
            row=ValidationRow(row=row, validation=result),
            row_ref=row_ref,
            match_key=match_key,
            meta=normalized.meta,
            errors=result.errors,
            warnings=result.warnings,
        )
