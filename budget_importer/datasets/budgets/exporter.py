from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Any, Iterable, Mapping

from budget_importer.datasets.budgets import columns
from budget_importer.domain.models import PAYMENT_CASH
from budget_importer.domain.money import MinorUnits, format_major, minor_to_major

BOM = "\ufeff"


@dataclass(frozen=True)
class ExportFilters:
    """
    Назначение:
        Фильтры выгрузки. None/пустой кортеж -> фильтр не применяется.
        Цены в reais, сравниваются с ценой наличными.
    """

    device_types: tuple[str, ...] = ()
    payment_methods: tuple[str, ...] = ()
    price_min: float | None = None
    price_max: float | None = None
    warranty_min: int | None = None
    warranty_max: int | None = None
    validity_min: int | None = None
    validity_max: int | None = None
    includes_delivery: bool | None = None
    includes_screen_protector: bool | None = None


def _price_major(value: Any) -> float | None:
    if value is None or value == "":
        return None
    return minor_to_major(MinorUnits(int(value)))


def _validity_days(row: Mapping[str, Any], today: date) -> int:
    stored = row.get("validity_days")
    if stored is not None:
        return int(stored)
    valid_until = row.get("valid_until")
    if valid_until:
        remaining = (date.fromisoformat(str(valid_until)[:10]) - today).days
        return max(1, math.ceil(remaining))
    return columns.DEFAULT_VALIDITY_DAYS


def _in_range(value: float | None, minimum: float | None, maximum: float | None) -> bool:
    if minimum is None and maximum is None:
        return True
    if value is None:
        return False
    if minimum is not None and value < minimum:
        return False
    if maximum is not None and value > maximum:
        return False
    return True


def matches_filters(row: Mapping[str, Any], filters: ExportFilters, today: date) -> bool:
    if filters.device_types and row.get("device_type") not in filters.device_types:
        return False
    if filters.payment_methods and row.get("payment_condition") not in filters.payment_methods:
        return False
    if not _in_range(_price_major(row.get("cash_price", row.get("total_price"))), filters.price_min, filters.price_max):
        return False
    if not _in_range(row.get("warranty_months"), filters.warranty_min, filters.warranty_max):
        return False
    if not _in_range(_validity_days(row, today), filters.validity_min, filters.validity_max):
        return False
    if filters.includes_delivery is not None and bool(row.get("includes_delivery")) != filters.includes_delivery:
        return False
    if (
        filters.includes_screen_protector is not None
        and bool(row.get("includes_screen_protector")) != filters.includes_screen_protector
    ):
        return False
    return True


def format_cell(value: Any, delimiter: str = ";") -> str:
    """Ячейка CSV: кавычки только при разделителе, кавычке или переводе строки."""
    if value is None:
        return ""
    text = str(value)
    if delimiter in text or "\n" in text or '"' in text:
        text = '"' + text.replace('"', '""') + '"'
    return text


def _bool_cell(value: Any) -> str:
    return "sim" if value else "nao"


def _export_cells(row: Mapping[str, Any], today: date) -> list[Any]:
    cash_price = _price_major(row.get("cash_price", row.get("total_price")))
    installment_price = _price_major(row.get("installment_price"))
    return [
        row.get("device_type") or "",
        row.get("device_model") or "",
        row.get("part_quality") or "",
        row.get("notes") or "",
        format_major(cash_price) if cash_price is not None else "",
        format_major(installment_price) if installment_price is not None else "",
        row.get("installments") or 1,
        row.get("payment_condition") or PAYMENT_CASH,
        row.get("warranty_months") if row.get("warranty_months") is not None else columns.DEFAULT_WARRANTY_MONTHS,
        _validity_days(row, today),
        _bool_cell(row.get("includes_delivery")),
        _bool_cell(row.get("includes_screen_protector")),
    ]


def generate_export_csv(
    rows: Iterable[Mapping[str, Any]],
    filters: ExportFilters | None = None,
    delimiter: str = ";",
    today: date | None = None,
) -> str:
    """
    Назначение:
        Выгрузка сохранённых смет в ту же 12-колоночную раскладку, что и импорт.

    Контракт:
        - BOM + заголовок + по строке на запись, строки через '\\n'.
        - Цены из centavos в reais с запятой ('750,00'); булевы как sim/nao.
    """
    current = today or datetime.now(timezone.utc).date()
    lines = [delimiter.join(columns.HEADERS)]
    for row in rows:
        if filters is not None and not matches_filters(row, filters, current):
            continue
        lines.append(delimiter.join(format_cell(cell, delimiter) for cell in _export_cells(row, current)))
    return BOM + "\n".join(lines)
