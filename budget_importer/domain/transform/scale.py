from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable

from budget_importer.domain.error_codes import ErrorCode
from budget_importer.domain.models import DiagnosticStage, ValidationErrorItem
from budget_importer.domain.money import minor_to_major, round_half_up
from budget_importer.domain.transform.result import TransformResult

INTEGER_THRESHOLD = 0.95
INTEGER_TOLERANCE = 0.001
MINOR_SCALE_MIN_VALUE = 10000
MINOR_SCALE_RATIO = 0.8
LOW_CONFIDENCE = 0.6

SCALE_MAJOR = "reais"
SCALE_MINOR = "centavos"


@dataclass(frozen=True)
class NumberDetectionResult:
    """
    Назначение:
        Итог анализа цен набора: целочисленный ли режим и насколько уверенно.

    Инварианты:
        - confidence = |integer_ratio - 0.5| * 2, от 0 (неясно) до 1 (однозначно).
    """

    is_integer_mode: bool
    integer_count: int
    decimal_count: int
    total_numbers: int
    confidence: float
    recommendations: tuple[str, ...] = ()


@dataclass(frozen=True)
class ScaleReport:
    detection: NumberDetectionResult
    scale: str
    converted_rows: int
    rounded_rows: int


def is_integer_value(value: float) -> bool:
    return abs(value - round(value)) < INTEGER_TOLERANCE


def analyze_prices(values: Iterable[float]) -> NumberDetectionResult:
    """
    Назначение:
        Определить, преобладают ли в наборе целые значения (>= 95%).
    """
    numbers = list(values)
    if not numbers:
        return NumberDetectionResult(
            is_integer_mode=True,
            integer_count=0,
            decimal_count=0,
            total_numbers=0,
            confidence=1.0,
        )

    integer_count = sum(1 for value in numbers if is_integer_value(value))
    decimal_count = len(numbers) - integer_count
    integer_ratio = integer_count / len(numbers)
    is_integer_mode = integer_ratio >= INTEGER_THRESHOLD
    confidence = abs(integer_ratio - 0.5) * 2

    recommendations: list[str] = []
    if is_integer_mode and decimal_count > 0:
        recommendations.append(f"{decimal_count} values carry cents; they will be rounded to whole units")
    elif not is_integer_mode and integer_count > decimal_count:
        recommendations.append(f"most values are whole numbers ({integer_count}/{len(numbers)})")
    if confidence < LOW_CONFIDENCE:
        recommendations.append("mixed integer and decimal prices detected; check the price columns")

    return NumberDetectionResult(
        is_integer_mode=is_integer_mode,
        integer_count=integer_count,
        decimal_count=decimal_count,
        total_numbers=len(numbers),
        confidence=confidence,
        recommendations=tuple(recommendations),
    )


def detect_scale(values: Iterable[float]) -> str:
    """
    Назначение:
        Определить единицы набора цен: reais или centavos.

    Алгоритм:
        - centavos, если более 80% положительных значений больше 10000.
    """
    positives = [value for value in values if value > 0]
    if not positives:
        return SCALE_MAJOR
    large = sum(1 for value in positives if value > MINOR_SCALE_MIN_VALUE)
    if large > len(positives) * MINOR_SCALE_RATIO:
        return SCALE_MINOR
    return SCALE_MAJOR


class ScaleCorrector:
    """
    Назначение/ответственность:
        Проход по всему набору кандидатов после нормализации:
        - приводит набор, целиком записанный в centavos, к reais;
        - в целочисленном режиме округляет строки с копейками.

    Ограничения:
        - Изменяет row кандидатов на месте и добавляет предупреждения.
        - Повторный запуск на уже скорректированном наборе ничего не меняет.
    """

    def __init__(self, price_fields: tuple[str, ...] = ("cash_price", "installment_price")) -> None:
        self.price_fields = price_fields

    def apply(self, results: list[TransformResult[Any]]) -> ScaleReport:
        candidates = [result for result in results if result.row is not None]

        scale = detect_scale(self._collect(candidates))
        converted_rows = 0
        if scale == SCALE_MINOR:
            for result in candidates:
                if self._convert_row(result):
                    converted_rows += 1

        detection = analyze_prices(self._collect(candidates))
        rounded_rows = 0
        if detection.is_integer_mode and detection.decimal_count > 0:
            for result in candidates:
                if self._round_row(result):
                    rounded_rows += 1

        return ScaleReport(
            detection=detection,
            scale=scale,
            converted_rows=converted_rows,
            rounded_rows=rounded_rows,
        )

    def _collect(self, candidates: list[TransformResult[Any]]) -> list[float]:
        values: list[float] = []
        for result in candidates:
            for name in self.price_fields:
                value = getattr(result.row, name, None)
                if value is not None:
                    values.append(value)
        return values

    def _convert_row(self, result: TransformResult[Any]) -> bool:
        changed: list[str] = []
        for name in self.price_fields:
            value = getattr(result.row, name, None)
            if value is None:
                continue
            converted = minor_to_major(int(round_half_up(value)))
            setattr(result.row, name, converted)
            changed.append(f"{name} {value:g} -> {converted:g}")
        if not changed:
            return False
        result.warnings.append(
            ValidationErrorItem(
                stage=DiagnosticStage.SCALE,
                code=ErrorCode.SCALE_CONVERTED.value,
                field=None,
                message=f"prices read as centavos and converted to reais ({', '.join(changed)})",
            )
        )
        return True

    def _round_row(self, result: TransformResult[Any]) -> bool:
        changed: list[str] = []
        for name in self.price_fields:
            value = getattr(result.row, name, None)
            if value is None or is_integer_value(value):
                continue
            rounded = round_half_up(value)
            setattr(result.row, name, rounded)
            changed.append(f"{name} {value:g} -> {rounded:g}")
        if not changed:
            return False
        result.warnings.append(
            ValidationErrorItem(
                stage=DiagnosticStage.SCALE,
                code=ErrorCode.PRICE_ROUNDED.value,
                field=None,
                message=f"decimal prices rounded to whole units ({', '.join(changed)})",
            )
        )
        return True
