from __future__ import annotations

import logging
from datetime import date, datetime, timezone

from budget_importer.datasets.budgets.exporter import ExportFilters, generate_export_csv, matches_filters
from budget_importer.usecases.ports import BudgetStoreProtocol


class ExportUseCase:
    """
    Назначение/ответственность:
        Выгрузка смет из хранилища в раскладку файла импорта.
    """

    def __init__(self, store: BudgetStoreProtocol, delimiter: str = ";") -> None:
        self.store = store
        self.delimiter = delimiter

    def run(
        self,
        owner_id: str | None,
        filters: ExportFilters | None,
        logger: logging.Logger,
        run_id: str,
        today: date | None = None,
    ) -> tuple[str, int, int]:
        """
        Выходные данные:
            (csv_text, rows_total, rows_exported)
        """
        current = today or datetime.now(timezone.utc).date()
        rows = self.store.list_budgets(owner_id)
        selected = rows if filters is None else [row for row in rows if matches_filters(row, filters, current)]
        text = generate_export_csv(selected, delimiter=self.delimiter, today=current)
        logger.log(
            logging.INFO,
            f"export rows_total={len(rows)} exported={len(selected)}",
            extra={"runId": run_id, "component": "export"},
        )
        return text, len(rows), len(selected)
