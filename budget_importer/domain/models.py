from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

PAYMENT_CASH = "À Vista"
PAYMENT_CREDIT_CARD = "Cartão de Crédito"
PAYMENT_DEBIT_CARD = "Cartão de Débito"
PAYMENT_PIX = "PIX"
PAYMENT_MONEY = "Dinheiro"

PAYMENT_METHODS: tuple[str, ...] = (
    PAYMENT_CASH,
    PAYMENT_CREDIT_CARD,
    PAYMENT_DEBIT_CARD,
    PAYMENT_PIX,
    PAYMENT_MONEY,
)

DEVICE_TYPES: tuple[str, ...] = ("celular", "tablet", "notebook", "smartwatch", "acessorio")


class DiagnosticStage(str, Enum):
    """
    Назначение:
        Источник диагностического события в пайплайне импорта.
    """

    PARSE = "PARSE"
    NORMALIZE = "NORMALIZE"
    SCALE = "SCALE"
    VALIDATE = "VALIDATE"
    DEDUPE = "DEDUPE"
    PERSIST = "PERSIST"


@dataclass
class ValidationErrorItem:
    """
    Назначение:
        Диагностическое сообщение пайплайна (ошибка/предупреждение).
        value: исходное (сырое) значение, вызвавшее проблему.
    """
    stage: DiagnosticStage
    code: str
    field: str | None
    message: str
    value: str | None = None


@dataclass(frozen=True)
class RowRef:
    """
    Назначение:
        Унифицированная ссылка на строку входного файла для отчётов.
    """
    line_no: int
    row_id: str


@dataclass
class ValidationRowResult:
    """
    Назначение:
        Результат валидации одной строки CSV.
    """
    line_no: int
    match_key: str
    row_ref: RowRef | None = None
    errors: list[ValidationErrorItem] = field(default_factory=list)
    warnings: list[ValidationErrorItem] = field(default_factory=list)

    @property
    def valid(self) -> bool:
        return len(self.errors) == 0


@dataclass(frozen=True)
class BudgetRecord:
    """
    Назначение:
        Каноническая запись сметы (orçamento) после валидации.

    Инварианты:
        - cash_price/installment_price > 0, в основных единицах (reais).
        - payment_method == "À Vista" => installments == 1.
        - draft=True, если хотя бы одно необязательное поле получило значение по умолчанию.
    """
    device_type: str
    description: str
    cash_price: float
    installment_price: float
    installments: int
    payment_method: str
    warranty_months: int
    validity_days: int
    includes_delivery: bool = False
    includes_screen_protector: bool = False
    part_quality: str | None = None
    notes: str | None = None
    row_no: int = 0
    draft: bool = False
