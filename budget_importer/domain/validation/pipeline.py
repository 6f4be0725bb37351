from __future__ import annotations

import logging
from typing import Protocol, TypeVar

from budget_importer.domain.models import ValidationErrorItem, ValidationRowResult
from budget_importer.domain.validation.deps import DatasetValidationState

T = TypeVar("T")


class DatasetRule(Protocol[T]):
    """
    Назначение:
        Контракт для глобальных правил валидации набора строк.
    """

    def apply(self, row: T, result: ValidationRowResult, state: DatasetValidationState) -> None: ...


class DatasetValidator:
    """
    Назначение/ответственность:
        Применяет глобальные правила к результатам строковой валидации, используя
        общее для одного импорта состояние.
    """

    def __init__(self, rules: tuple[DatasetRule, ...], state: DatasetValidationState | None = None) -> None:
        self.rules = rules
        self.state = state or DatasetValidationState()

    def validate(self, row: T, result: ValidationRowResult) -> None:
        """
        Контракт:
            - Модифицирует result.errors/result.warnings, обновляет state.
        """
        for rule in self.rules:
            rule.apply(row, result, self.state)


def logValidationFailure(
    logger,
    run_id: str,
    context: str,
    result: ValidationRowResult,
    errors: list[ValidationErrorItem] | None = None,
    warnings: list[ValidationErrorItem] | None = None,
) -> None:
    """
    Назначение:
        Логирует информацию о невалидной строке CSV.
    """
    eff_errors = errors if errors is not None else result.errors
    eff_warnings = warnings if warnings is not None else result.warnings

    codes: list[str] = []
    codes.extend(e.code for e in eff_errors)
    codes.extend(w.code for w in eff_warnings)
    code_str = ",".join(sorted(set(codes))) if codes else "none"
    logger.log(
        logging.WARNING,
        f"invalid row line={result.line_no} errors={code_str}",
        extra={"runId": run_id, "component": context},
    )
