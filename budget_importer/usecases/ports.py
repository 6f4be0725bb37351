from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable


@dataclass(frozen=True)
class PersistRowResult:
    """
    Назначение:
        Результат записи одной сметы в хранилище.

    Инварианты:
        - ok=True => budget_id задан, error_code=None.
        - row_no: номер исходной строки файла (для сообщений 'Row N').
    """

    ok: bool
    row_no: int
    error_code: str | None = None
    error_message: str | None = None
    budget_id: str | None = None


@runtime_checkable
class BudgetStoreProtocol(Protocol):
    """
    Назначение:
        Контракт внешнего хранилища смет.

    Контракт:
        - insert_many возвращает результат на каждый payload в том же порядке.
        - Ошибка одной строки не прерывает запись остальных; повторов нет.
    """

    def insert_many(self, payloads: list[dict[str, Any]]) -> list[PersistRowResult]: ...

    def list_budgets(self, owner_id: str | None = None) -> list[dict[str, Any]]: ...


__all__ = ["PersistRowResult", "BudgetStoreProtocol"]
