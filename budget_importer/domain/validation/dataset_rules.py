from __future__ import annotations

from typing import Any

from budget_importer.domain.error_codes import ErrorCode
from budget_importer.domain.models import DiagnosticStage, ValidationErrorItem, ValidationRowResult
from budget_importer.domain.validation.deps import DatasetValidationState


class DuplicateRecordRule:
    """
    Назначение:
        Отмечает повторы составного ключа записи в пределах файла.

    Контракт:
        - Первое вхождение ключа запоминается, каждое следующее -> DUPLICATE_RECORD
          с номером исходной строки.
        - Строки без ключа пропускаются.
    """

    def __init__(self, describe=None) -> None:
        self.describe = describe

    def apply(self, row: Any, result: ValidationRowResult, state: DatasetValidationState) -> None:
        if not result.match_key:
            return
        prev_line = state.match_keys_seen.get(result.match_key)
        if prev_line is not None:
            result.errors.append(
                ValidationErrorItem(
                    stage=DiagnosticStage.DEDUPE,
                    code=ErrorCode.DUPLICATE_RECORD.value,
                    field="duplicate",
                    message=f"duplicate of row {prev_line}",
                    value=self.describe(row) if self.describe else result.match_key,
                )
            )
            return
        state.match_keys_seen[result.match_key] = result.line_no
