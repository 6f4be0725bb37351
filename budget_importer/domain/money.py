from __future__ import annotations

import math
from decimal import ROUND_HALF_UP, Decimal


class MinorUnits(int):
    """
    Назначение:
        Сумма в минимальных единицах валюты (centavos).

    Инварианты:
        - Создаётся только major_to_minor() или при чтении из хранилища.
        - Повторная конвертация major_to_minor(MinorUnits) запрещена.
    """


CENTS_PER_UNIT = 100
_FLOAT_INTEGER_LIMIT = 2**53


def round_half_up(value: float, places: int = 0) -> float:
    """
    Назначение:
        Арифметическое округление (0.5 -> вверх), без банковского округления round().

    Контракт:
        - nan, inf и значения от 2**53 по модулю возвращаются как есть:
          дробной части у таких float нет, а quantize для них переполняется.
    """
    if not math.isfinite(value) or abs(value) >= _FLOAT_INTEGER_LIMIT:
        return float(value)
    quantum = Decimal(1).scaleb(-places)
    return float(Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP))


def major_to_minor(major: float) -> MinorUnits:
    """
    Назначение:
        reais -> centavos. Вызывается только на границе записи в хранилище.

    Контракт:
        - minor = round(major * 100)
        - TypeError, если значение уже в centavos.
    """
    if isinstance(major, MinorUnits):
        raise TypeError(f"value {int(major)} is already in minor units")
    return MinorUnits(int(round_half_up(float(major) * CENTS_PER_UNIT)))


def minor_to_major(minor: int) -> float:
    """
    Назначение:
        centavos -> reais. На границе экспорта, а также при пересчёте входного
        файла, целиком записанного в centavos.

    Контракт:
        - major = round(minor / 100, 2); 2589 -> 25.89
    """
    return round_half_up(float(minor) / CENTS_PER_UNIT, 2)


def format_major(major: float, decimal_separator: str = ",") -> str:
    """Форматирует сумму в reais с двумя знаками: 750.0 -> '750,00'."""
    text = f"{major:.2f}"
    if decimal_separator != ".":
        text = text.replace(".", decimal_separator)
    return text
