from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class RawRow:
    """
    Назначение:
        Одна строка данных CSV: упорядоченные ячейки без приведения типов.

    Инварианты:
        - line_no: номер строки данных с 1, заголовок не учитывается.
        - cells уже очищены от пробелов и обрамляющих кавычек.
    """

    line_no: int
    record_id: str
    cells: tuple[str, ...]

    def cell(self, index: int) -> str | None:
        """Значение по позиции; None, если ячейки нет или она пустая."""
        if index >= len(self.cells):
            return None
        value = self.cells[index]
        return value if value != "" else None
