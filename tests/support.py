from budget_importer.datasets.budgets.columns import HEADERS
from budget_importer.datasets.budgets.normalizer_spec import BudgetsNormalizerSpec
from budget_importer.datasets.budgets.validation_spec import BudgetsValidationSpec
from budget_importer.domain.transform.normalizer import Normalizer
from budget_importer.domain.transform.result import TransformResult
from budget_importer.domain.transform.source_record import RawRow
from budget_importer.domain.validation.validator import Validator


def make_cells(**overrides) -> list[str]:
    values = {
        "device": "celular",
        "description": "Tela iPhone 11",
        "quality": "Gold",
        "notes": "",
        "cash": "750",
        "installment": "800",
        "installments": "10",
        "payment": "Cartão de Crédito",
        "warranty": "6",
        "validity": "15",
        "delivery": "sim",
        "protector": "sim",
    }
    values.update(overrides)
    return list(values.values())


def make_csv(*rows: list[str], delimiter: str = ";") -> str:
    lines = [delimiter.join(HEADERS)]
    lines.extend(delimiter.join(cells) for cells in rows)
    return "\n".join(lines) + "\n"


def validate_cells(cells: list[str], line_no: int = 1):
    record = RawRow(line_no=line_no, record_id=f"row:{line_no}", cells=tuple(cells))
    normalized = Normalizer(BudgetsNormalizerSpec()).normalize(
        TransformResult(record=record, row=None, row_ref=None, match_key=None)
    )
    return Validator(BudgetsValidationSpec()).validate(normalized)


def codes(items) -> list[str]:
    return [item.code for item in items]
