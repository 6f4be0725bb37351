from __future__ import annotations

from budget_importer.datasets.budgets import columns
from budget_importer.datasets.budgets.exporter import BOM

EXAMPLE_ROW: tuple[str, ...] = (
    "celular",
    "Tela iPhone 11",
    "Gold",
    "Com mensagem de peça não genuína",
    "750,00",
    "800,00",
    "10",
    "Cartão de Crédito",
    "6",
    "15",
    "sim",
    "sim",
)


def generate_template_csv(delimiter: str = ";") -> str:
    """Шаблон импорта: заголовок и строка-пример, которую можно сразу импортировать."""
    return BOM + "\n".join((delimiter.join(columns.HEADERS), delimiter.join(EXAMPLE_ROW)))
