from __future__ import annotations

# Позиционная раскладка файла импорта/экспорта (индексы с 0).
COL_DEVICE_TYPE = 0
COL_DESCRIPTION = 1
COL_PART_QUALITY = 2
COL_NOTES = 3
COL_CASH_PRICE = 4
COL_INSTALLMENT_PRICE = 5
COL_INSTALLMENTS = 6
COL_PAYMENT_METHOD = 7
COL_WARRANTY_MONTHS = 8
COL_VALIDITY_DAYS = 9
COL_INCLUDES_DELIVERY = 10
COL_INCLUDES_SCREEN_PROTECTOR = 11

MIN_COLUMNS = 12

HEADERS: tuple[str, ...] = (
    "Tipo Aparelho",
    "Servico/Aparelho",
    "Qualidade",
    "Observacoes",
    "Preco a Vista",
    "Preco Parcelado",
    "Parcelas",
    "Metodo de Pagamento",
    "Garantia (meses)",
    "Validade (dias)",
    "Inclui Entrega",
    "Inclui Pelicula",
)

DEFAULT_WARRANTY_MONTHS = 3
DEFAULT_VALIDITY_DAYS = 15

MAX_INSTALLMENTS = 24
MAX_WARRANTY_MONTHS = 60
MAX_VALIDITY_DAYS = 365
MAX_PRICE = 1_000_000_000
