from __future__ import annotations

from datetime import date
from typing import Any

from budget_importer.common.time import addDaysIso
from budget_importer.datasets.budgets.normalized import BudgetCandidate
from budget_importer.domain.models import BudgetRecord
from budget_importer.domain.money import major_to_minor

STATUS_PENDING = "pending"
STATUS_DRAFT = "draft"


def to_insert_payload(record: BudgetRecord, owner_id: str, today: date | None = None) -> dict[str, Any]:
    """
    Назначение:
        BudgetRecord -> строка для вставки в хранилище.

    Контракт:
        - Единственное место перевода reais -> centavos (major_to_minor).
        - total_price совпадает с cash_price.
        - valid_until = today + validity_days; status draft, если запись черновая.
    """
    cash_price = major_to_minor(record.cash_price)
    return {
        "owner_id": owner_id,
        "device_type": record.device_type,
        "device_model": record.description,
        "part_quality": record.part_quality,
        "notes": record.notes,
        "total_price": int(cash_price),
        "cash_price": int(cash_price),
        "installment_price": int(major_to_minor(record.installment_price)),
        "installments": record.installments,
        "payment_condition": record.payment_method,
        "warranty_months": record.warranty_months,
        "validity_days": record.validity_days,
        "includes_delivery": record.includes_delivery,
        "includes_screen_protector": record.includes_screen_protector,
        "valid_until": addDaysIso(record.validity_days, today),
        "status": STATUS_DRAFT if record.draft else STATUS_PENDING,
        "source_row": record.row_no,
    }


def to_budget_record(row: BudgetCandidate, row_no: int) -> BudgetRecord:
    """
    Назначение:
        Валидный кандидат -> каноническая запись.

    Ограничения:
        - Вызывается только для строк без ошибок: обязательные поля заданы.
    """
    return BudgetRecord(
        device_type=row.device_type,
        description=row.description,
        cash_price=row.cash_price,
        installment_price=row.installment_price,
        installments=row.installments,
        payment_method=row.payment_method,
        warranty_months=row.warranty_months,
        validity_days=row.validity_days,
        includes_delivery=row.includes_delivery,
        includes_screen_protector=row.includes_screen_protector,
        part_quality=row.part_quality,
        notes=row.notes,
        row_no=row_no,
        draft=row.draft,
    )
