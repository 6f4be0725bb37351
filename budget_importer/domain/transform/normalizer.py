from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Generic, Protocol, TypeVar

from budget_importer.domain.models import ValidationErrorItem
from budget_importer.domain.transform.result import TransformResult

T = TypeVar("T")

NormalizerParser = Callable[[Any, list[ValidationErrorItem], list[ValidationErrorItem]], Any]


class CellSource(Protocol):
    """Минимальный контракт источника ячеек (RawRow)."""

    def cell(self, index: int) -> str | None: ...


@dataclass(frozen=True)
class NormalizerRule:
    """
    Назначение:
        Декларативное правило приведения одной ячейки (по позиции) к типу поля.

    Контракт:
        - Пустая ячейка -> default (parser не вызывается).
        - Парсер не бросает исключений: неразборчивое значение -> None,
          проблему фиксирует валидатор.
    """

    target: str
    index: int
    parser: NormalizerParser | None = None
    default: Any = None

    def apply(self, cells: CellSource, errors: list[ValidationErrorItem], warnings: list[ValidationErrorItem]) -> Any:
        raw = cells.cell(self.index)
        if raw is None:
            return self.default
        if self.parser is None:
            return raw
        return self.parser(raw, errors, warnings)


class NormalizerSpec(Generic[T]):
    """
    Назначение:
        Контракт набора правил нормализации для датасета.
    """

    rules: tuple[NormalizerRule, ...]

    def build_row(self, values: dict[str, Any], warnings: list[ValidationErrorItem]) -> T: ...


class Normalizer(Generic[T]):
    """
    Назначение:
        Ядро нормализатора: применяет правила к RawRow и строит типизированного кандидата.
    """

    def __init__(self, spec: NormalizerSpec[T]) -> None:
        self.spec = spec

    def normalize(self, source: TransformResult[Any]) -> TransformResult[T]:
        errors: list[ValidationErrorItem] = []
        warnings: list[ValidationErrorItem] = []
        normalized_values: dict[str, Any] = {}

        for rule in self.spec.rules:
            normalized_values[rule.target] = rule.apply(source.record, errors, warnings)

        row = None
        if not errors:
            row = self.spec.build_row(normalized_values, warnings)
        return TransformResult(
            record=source.record,
            row=row,
            row_ref=source.row_ref,
            match_key=source.match_key,
            meta=source.meta,
            errors=[*source.errors, *errors],
            warnings=[*source.warnings, *warnings],
        )
