from __future__ import annotations

import math
import unicodedata

TRUE_VALUES = frozenset({"sim", "s", "yes", "y", "true", "1"})
FALSE_VALUES = frozenset({"nao", "n", "no", "false", "0"})


def normalize_whitespace(value: str | None) -> str | None:
    """
    Назначение:
        Нормализует пробелы в строке.
    """
    if value is None:
        return None
    return " ".join(value.split())


def strip_accents(value: str) -> str:
    """'Cartão de Crédito' -> 'Cartao de Credito'."""
    decomposed = unicodedata.normalize("NFD", value)
    return "".join(ch for ch in decomposed if unicodedata.category(ch) != "Mn")


def fold_label(value: str) -> str:
    """Ключ сравнения для меток: без акцентов, регистра и лишних пробелов."""
    return " ".join(strip_accents(value).casefold().split())


def parse_int_strict(value: str) -> int:
    if value.strip() == "":
        raise ValueError("Empty int value")
    return int(value.strip())


def parse_boolean_ptbr(value: str) -> bool:
    """
    Назначение:
        sim/nao (и английские варианты) -> bool.

    Контракт:
        - ValueError для любого другого значения.
    """
    normalized = fold_label(value)
    if normalized == "" or normalized in FALSE_VALUES:
        return False
    if normalized in TRUE_VALUES:
        return True
    raise ValueError("Invalid boolean value")


def parse_price_text(value: str) -> float:
    """
    Назначение:
        Разбор суммы в бразильском или международном формате.

    Контракт:
        - '750' -> 750.0, '25,89' -> 25.89, '1.234,56' -> 1234.56,
          '1,234.56' -> 1234.56, '1.000' -> 1000.0, '25.89' -> 25.89
        - Префикс 'R$' и пробелы игнорируются.
        - ValueError для пустых и нечисловых значений.
    """
    text = value.strip().replace("R$", "").replace(" ", "").replace("\u00a0", "")
    if text == "":
        raise ValueError("Empty price value")

    dot_count = text.count(".")
    comma_count = text.count(",")

    if dot_count and comma_count:
        if text.rfind(",") > text.rfind("."):
            text = text.replace(".", "").replace(",", ".")
        else:
            text = text.replace(",", "")
    elif dot_count:
        parts = text.split(".")
        if len(parts[-1]) == 3 and all(len(part) == 3 for part in parts[1:]):
            # 1.000 / 12.500.000: точка как разделитель тысяч
            text = "".join(parts)
        elif dot_count > 1:
            text = "".join(parts[:-1]) + "." + parts[-1]
    elif comma_count:
        parts = text.split(",")
        if comma_count == 1:
            text = ".".join(parts)
        elif all(len(part) == 3 for part in parts[1:]):
            text = "".join(parts)
        else:
            text = "".join(parts[:-1]) + "." + parts[-1]

    parsed = float(text)
    if math.isnan(parsed) or math.isinf(parsed):
        raise ValueError("Non-finite price value")
    return parsed
