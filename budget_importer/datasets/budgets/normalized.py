from __future__ import annotations

from dataclasses import dataclass, field


class _Unset:
    def __repr__(self) -> str:
        return "UNSET"


# Маркер пустой необязательной ячейки: отличает "не задано" от "не разобрано" (None).
UNSET = _Unset()


@dataclass
class BudgetCandidate:
    """
    Назначение:
        Типизированный кандидат строки сметы после приведения типов.

    Инварианты:
        - None в числовом поле: ячейка пустая или не разобрана, решение за валидатором.
        - Цены в reais; ScaleCorrector может изменить их на месте.
        - defaulted_fields: поля, получившие значение по умолчанию (строка станет draft).
    """

    device_type: str | None
    description: str | None
    part_quality: str | None
    notes: str | None
    cash_price: float | None
    installment_price: float | None
    installments: int | None
    payment_method: str | None
    warranty_months: int | None
    validity_days: int | None
    includes_delivery: bool = False
    includes_screen_protector: bool = False
    defaulted_fields: list[str] = field(default_factory=list)

    @property
    def draft(self) -> bool:
        return bool(self.defaulted_fields)
