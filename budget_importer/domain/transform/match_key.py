from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable


class MatchKeyError(ValueError):
    """
    Назначение:
        Ошибка построения ключа при строгом режиме.
    """


@dataclass(frozen=True)
class MatchKey:
    """
    Назначение:
        Value Object составного ключа записи (поиск дубликатов).
    """

    value: str


def _normalize_part(value: object | None, casefold: bool) -> str:
    if value is None:
        return ""
    normalized = " ".join(str(value).split())
    return normalized.casefold() if casefold else normalized


def build_delimited_match_key(
    parts: Iterable[object | None],
    delimiter: str = "|",
    strict: bool = False,
    casefold: bool = False,
) -> MatchKey:
    """
    Назначение:
        Построить ключ из списка частей с нормализацией пробелов.

    Контракт:
        - strict=True -> MatchKeyError при отсутствии части
        - casefold=True -> регистр не влияет на совпадение
    """
    normalized = [_normalize_part(part, casefold) for part in parts]
    if strict and any(part == "" for part in normalized):
        raise MatchKeyError("match_key parts are incomplete")
    return MatchKey(value=delimiter.join(normalized))
