from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any
from typing import Generic, TypeVar

from budget_importer.domain.models import RowRef, ValidationErrorItem
from budget_importer.domain.transform.match_key import MatchKey
from budget_importer.domain.transform.source_record import RawRow

T = TypeVar("T")


@dataclass
class TransformResult(Generic[T]):
    """
    Назначение:
        Унифицированный результат пайплайна для этапов parse/normalize/validate.
    """

    record: RawRow
    row: T | None
    row_ref: RowRef | None
    match_key: MatchKey | None
    meta: dict[str, Any] = field(default_factory=dict)
    errors: list[ValidationErrorItem] = field(default_factory=list)
    warnings: list[ValidationErrorItem] = field(default_factory=list)
