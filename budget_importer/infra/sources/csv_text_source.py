from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from budget_importer.domain.exceptions import EmptyFileError, InsufficientColumnsError, NoDataRowsError
from budget_importer.domain.transform.source_record import RawRow

BOM = "\ufeff"


@dataclass
class ParseResult:
    """
    Назначение:
        Итог разбора текста: заголовок, строки данных и отклонённые строки.

    Инварианты:
        - rows и rejected упорядочены по line_no.
        - attempted = len(rows) + len(rejected).
    """

    header: tuple[str, ...]
    rows: list[RawRow] = field(default_factory=list)
    rejected: list[InsufficientColumnsError] = field(default_factory=list)

    @property
    def attempted(self) -> int:
        return len(self.rows) + len(self.rejected)


def _clean_cell(value: str) -> str:
    text = value.strip()
    if len(text) >= 2 and text.startswith('"') and text.endswith('"'):
        text = text[1:-1].strip()
    return text


def split_cells(line: str, delimiter: str = ";") -> tuple[str, ...]:
    """Разбиение строки по разделителю без поддержки экранирования внутри кавычек."""
    return tuple(_clean_cell(cell) for cell in line.split(delimiter))


def split_row(line: str, line_no: int, delimiter: str = ";", min_columns: int = 12) -> RawRow:
    """
    Контракт:
        - InsufficientColumnsError, если ячеек меньше min_columns.
    """
    cells = split_cells(line, delimiter)
    if len(cells) < min_columns:
        raise InsufficientColumnsError(line_no=line_no, actual=len(cells), expected=min_columns)
    return RawRow(line_no=line_no, record_id=f"row:{line_no}", cells=cells)


def parse_rows(text: str | None, delimiter: str = ";", min_columns: int = 12) -> ParseResult:
    """
    Назначение:
        Разбор текста CSV в строки данных.

    Алгоритм:
        - BOM отбрасывается, строки делятся по \\r\\n/\\n, пустые строки пропускаются.
        - Первая непустая строка - заголовок.
        - Строки данных нумеруются с 1 (заголовок не учитывается).

    Ошибки:
        - EmptyFileError: нет ни одной непустой строки.
        - NoDataRowsError: есть только заголовок.
        - Нехватка колонок не прерывает разбор: строка попадает в rejected.
    """
    if text is None:
        raise EmptyFileError()
    if text.startswith(BOM):
        text = text[len(BOM):]

    lines = [line for line in text.replace("\r\n", "\n").split("\n") if line.strip() != ""]
    if not lines:
        raise EmptyFileError()
    if len(lines) == 1:
        raise NoDataRowsError()

    result = ParseResult(header=split_cells(lines[0], delimiter))
    for line_no, line in enumerate(lines[1:], start=1):
        try:
            result.rows.append(split_row(line, line_no, delimiter, min_columns))
        except InsufficientColumnsError as exc:
            result.rejected.append(exc)
    return result


def read_text_file(path: str) -> str:
    """Чтение файла импорта целиком (UTF-8, BOM допускается)."""
    return Path(path).read_text(encoding="utf-8-sig")
