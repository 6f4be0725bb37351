from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class DatasetValidationState:
    """
    Назначение:
        Держатель состояния для глобальных проверок набора (дубликаты).

    Инварианты:
        - Создаётся заново на каждый импорт, не разделяется между запусками.
        - match_keys_seen: ключ -> номер первой строки с этим ключом.
    """

    match_keys_seen: dict[str, int] = field(default_factory=dict)
