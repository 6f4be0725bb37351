from __future__ import annotations

from typing import Any

from budget_importer.datasets.budgets.normalized import BudgetCandidate
from budget_importer.domain.models import (
    PAYMENT_CASH,
    PAYMENT_CREDIT_CARD,
    PAYMENT_DEBIT_CARD,
    PAYMENT_METHODS,
    PAYMENT_PIX,
)
from budget_importer.domain.validation.row_rules import fold_label

_DEVICE_HINTS: tuple[tuple[tuple[str, ...], str], ...] = (
    (("cel", "phone"), "celular"),
    (("tab",), "tablet"),
    (("note", "laptop"), "notebook"),
    (("watch", "relogio"), "smartwatch"),
)

_PAYMENT_HINTS: tuple[tuple[tuple[str, ...], str], ...] = (
    (("vista", "dinheiro"), PAYMENT_CASH),
    (("credito",), PAYMENT_CREDIT_CARD),
    (("debito",), PAYMENT_DEBIT_CARD),
    (("pix",), PAYMENT_PIX),
)


def _match_hint(value: str, hints: tuple[tuple[tuple[str, ...], str], ...]) -> str | None:
    folded = fold_label(value)
    for needles, target in hints:
        if any(needle in folded for needle in needles):
            return target
    return None


def suggest_corrections(row: BudgetCandidate) -> dict[str, Any]:
    """
    Назначение:
        Подсказки исправлений для невалидной строки (в отчёт, не применяются).

    Контракт:
        - device_type/payment_method: синонимы -> каноническое значение, если оно отличается.
        - Отрицательные цены и гарантия -> модуль значения.
    """
    suggestions: dict[str, Any] = {}

    if row.device_type:
        device_type = _match_hint(row.device_type, _DEVICE_HINTS)
        if device_type is not None and device_type != row.device_type:
            suggestions["device_type"] = device_type

    if row.payment_method and row.payment_method not in PAYMENT_METHODS:
        payment_method = _match_hint(row.payment_method, _PAYMENT_HINTS)
        if payment_method is not None:
            suggestions["payment_method"] = payment_method

    for name in ("cash_price", "installment_price", "warranty_months"):
        value = getattr(row, name)
        if value is not None and value < 0:
            suggestions[name] = abs(value)

    return suggestions


def format_suggestions(suggestions: dict[str, Any]) -> list[str]:
    return [f"{name} -> {value}" for name, value in suggestions.items()]
