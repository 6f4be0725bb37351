from __future__ import annotations

import logging
from enum import Enum
from typing import Callable

from budget_importer.domain.exceptions import InvalidTransitionError
from budget_importer.domain.importing.summary import ImportSummary
from budget_importer.domain.models import BudgetRecord
from budget_importer.usecases.ports import PersistRowResult

Analyzer = Callable[[str | None, str | None], ImportSummary]
Persister = Callable[[list[BudgetRecord], str], list[PersistRowResult]]


class ImportState(str, Enum):
    IDLE = "IDLE"
    ANALYZING = "ANALYZING"
    PREVIEWING = "PREVIEWING"
    CONFIRMED = "CONFIRMED"
    CANCELLED = "CANCELLED"


_TERMINAL = (ImportState.IDLE, ImportState.CONFIRMED, ImportState.CANCELLED)


class ImportWorkflow:
    """
    Назначение/ответственность:
        Машина состояний предпросмотра импорта:
        IDLE -> ANALYZING -> PREVIEWING -> CONFIRMED | CANCELLED.

    Инварианты:
        - Хранилище вызывается только из confirm_import и только с валидными записями.
        - Одновременно обрабатывается не больше одного файла.
        - Отмена во время анализа отбрасывает его результат.
    """

    def __init__(
        self,
        analyze: Analyzer,
        persist: Persister,
        logger: logging.Logger | None = None,
        run_id: str = "-",
    ) -> None:
        self._analyze = analyze
        self._persist = persist
        self.logger = logger or logging.getLogger("budget_importer.workflow")
        self.run_id = run_id
        self.state = ImportState.IDLE
        self.summary: ImportSummary | None = None
        self.owner_id: str | None = None
        self.last_persist_results: list[PersistRowResult] = []
        self._cancel_requested = False

    def parse_and_validate(self, text: str | None, owner_id: str | None) -> ImportSummary | None:
        """
        Контракт:
            - Вызов во время ANALYZING игнорируется (None).
            - Любое исключение анализа (в том числе CsvImportError) возвращает
              машину в IDLE и пробрасывается.
            - Ноль валидных строк всё равно приводит в PREVIEWING.
        """
        if self.state == ImportState.ANALYZING:
            self._log(logging.WARNING, "analysis already in progress, new file ignored")
            return None

        self.summary = None
        self.owner_id = owner_id
        self.last_persist_results = []
        self._cancel_requested = False
        self._move(ImportState.ANALYZING)
        try:
            summary = self._analyze(text, owner_id)
        except Exception:
            self._cancel_requested = False
            self._move(ImportState.IDLE)
            raise

        if self._cancel_requested:
            self._log(logging.INFO, "analysis finished after cancel, result discarded")
            self._cancel_requested = False
            return None

        self.summary = summary
        self._move(ImportState.PREVIEWING)
        return summary

    def confirm_import(self, summary: ImportSummary | None = None) -> int:
        """
        Контракт:
            - Только из PREVIEWING и только при valid > 0, иначе InvalidTransitionError.
            - Возвращает число записей, принятых хранилищем; отказы по строкам
              остаются в last_persist_results.
        """
        if self.state != ImportState.PREVIEWING:
            raise InvalidTransitionError(self.state.value, "confirm")
        effective = summary or self.summary
        if effective is None or effective.valid <= 0:
            raise InvalidTransitionError(self.state.value, "confirm", "no valid rows to import")
        owner_id = effective.owner_id or self.owner_id
        if not owner_id:
            raise InvalidTransitionError(self.state.value, "confirm", "owner id is required")

        results = self._persist(list(effective.records), owner_id)
        self.last_persist_results = list(results)
        accepted = sum(1 for result in results if result.ok)
        failed = len(results) - accepted
        self._log(logging.INFO, f"persisted ok={accepted} failed={failed}")
        for result in results:
            if not result.ok:
                self._log(
                    logging.WARNING,
                    f"row={result.row_no} persist failed code={result.error_code} msg={result.error_message}",
                )
        self.summary = None
        self._move(ImportState.CONFIRMED)
        return accepted

    def cancel_import(self) -> None:
        """
        Контракт:
            - Из ANALYZING или PREVIEWING; сводка отбрасывается, хранилище не вызывается.
        """
        if self.state not in (ImportState.ANALYZING, ImportState.PREVIEWING):
            raise InvalidTransitionError(self.state.value, "cancel")
        if self.state == ImportState.ANALYZING:
            self._cancel_requested = True
        self.summary = None
        self._move(ImportState.CANCELLED)

    @property
    def is_idle(self) -> bool:
        return self.state in _TERMINAL

    def _move(self, state: ImportState) -> None:
        self._log(logging.DEBUG, f"state {self.state.value} -> {state.value}")
        self.state = state

    def _log(self, level: int, message: str) -> None:
        self.logger.log(level, message, extra={"runId": self.run_id, "component": "workflow"})
