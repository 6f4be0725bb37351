from __future__ import annotations

from dataclasses import dataclass

from budget_importer.domain.error_codes import ErrorCode


class CsvImportError(Exception):
    """
    Назначение:
        Базовая ошибка уровня файла: прерывает импорт до обработки строк.
    """

    code: ErrorCode = ErrorCode.EMPTY_FILE


class EmptyFileError(CsvImportError):
    """В тексте нет ни одной непустой строки."""

    code = ErrorCode.EMPTY_FILE

    def __init__(self, message: str = "file is empty or could not be read") -> None:
        super().__init__(message)


class NoDataRowsError(CsvImportError):
    """Есть только строка заголовка."""

    code = ErrorCode.NO_DATA_ROWS

    def __init__(self, message: str = "file has no data rows after the header") -> None:
        super().__init__(message)


@dataclass
class InsufficientColumnsError(Exception):
    """
    Назначение:
        Ошибка уровня строки: колонок меньше минимально необходимого.
    Инварианты/гарантии:
        - Не прерывает импорт: парсер превращает её в диагностику строки.
    """

    line_no: int
    actual: int
    expected: int

    @property
    def code(self) -> ErrorCode:
        return ErrorCode.INSUFFICIENT_COLUMNS

    def __str__(self) -> str:
        return f"row has {self.actual}/{self.expected} columns"


class InvalidTransitionError(RuntimeError):
    """
    Назначение:
        Недопустимый переход машины состояний импорта (preview/confirm/cancel).
    """

    def __init__(self, state: str, action: str, reason: str | None = None) -> None:
        self.state = state
        self.action = action
        self.reason = reason
        message = f"cannot {action} while {state}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


__all__ = [
    "CsvImportError",
    "EmptyFileError",
    "NoDataRowsError",
    "InsufficientColumnsError",
    "InvalidTransitionError",
]
