from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, TypeVar

from budget_importer.domain.models import ValidationRowResult

T = TypeVar("T")


@dataclass
class ValidationRow(Generic[T]):
    """
    Назначение:
        Контейнер валидированной строки для передачи в сборщик сводки.
    """

    row: T | None
    validation: ValidationRowResult
