from __future__ import annotations

import sqlite3
import uuid
from typing import Any

from budget_importer.common.time import getNowIso
from budget_importer.domain.error_codes import ErrorCode
from budget_importer.infra.store.sqlite_engine import SqliteEngine
from budget_importer.usecases.ports import PersistRowResult

_COLUMNS: tuple[str, ...] = (
    "id",
    "owner_id",
    "device_type",
    "device_model",
    "part_quality",
    "notes",
    "total_price",
    "cash_price",
    "installment_price",
    "installments",
    "payment_condition",
    "warranty_months",
    "validity_days",
    "includes_delivery",
    "includes_screen_protector",
    "valid_until",
    "status",
    "created_at",
)

_BOOL_COLUMNS = ("includes_delivery", "includes_screen_protector")


class SqliteBudgetStore:
    """
    Назначение/ответственность:
        Локальное хранилище смет (таблица budgets, цены в centavos).

    Ограничения:
        - Каждая строка пишется в своей транзакции: ошибка одной не откатывает другие.
    """

    def __init__(self, engine: SqliteEngine) -> None:
        self.engine = engine

    def insert_many(self, payloads: list[dict[str, Any]]) -> list[PersistRowResult]:
        results: list[PersistRowResult] = []
        for payload in payloads:
            data = dict(payload)
            row_no = int(data.pop("source_row", 0) or 0)
            budget_id = str(uuid.uuid4())
            data["id"] = budget_id
            data.setdefault("created_at", getNowIso())
            for name in _BOOL_COLUMNS:
                data[name] = 1 if data.get(name) else 0
            values = tuple(data.get(name) for name in _COLUMNS)
            placeholders = ", ".join("?" for _ in _COLUMNS)
            try:
                with self.engine.transaction():
                    self.engine.execute(
                        f"INSERT INTO budgets ({', '.join(_COLUMNS)}) VALUES ({placeholders})",
                        values,
                    )
            except (sqlite3.Error, OverflowError) as exc:
                code = ErrorCode.STORE_ERROR
                if isinstance(exc, sqlite3.IntegrityError) and "UNIQUE" in str(exc):
                    code = ErrorCode.CONFLICT
                results.append(
                    PersistRowResult(
                        ok=False,
                        row_no=row_no,
                        error_code=code.value,
                        error_message=str(exc),
                    )
                )
                continue
            results.append(PersistRowResult(ok=True, row_no=row_no, budget_id=budget_id))
        return results

    def list_budgets(self, owner_id: str | None = None) -> list[dict[str, Any]]:
        sql = f"SELECT {', '.join(_COLUMNS)} FROM budgets"
        params: tuple = ()
        if owner_id is not None:
            sql += " WHERE owner_id = ?"
            params = (owner_id,)
        sql += " ORDER BY created_at, rowid"
        rows = self.engine.fetchall(sql, params)
        budgets: list[dict[str, Any]] = []
        for row in rows:
            item = {name: row[name] for name in _COLUMNS}
            for name in _BOOL_COLUMNS:
                item[name] = bool(item[name])
            budgets.append(item)
        return budgets

    def count(self) -> int:
        row = self.engine.execute("SELECT COUNT(*) AS n FROM budgets").fetchone()
        return int(row["n"]) if row else 0
