from __future__ import annotations

from datetime import date, datetime, timedelta, timezone


def getNowIso() -> str:
    """Текущее время UTC в ISO-формате (секундная точность)."""
    return datetime.now(timezone.utc).replace(microsecond=0).isoformat()


def getDurationMs(startMonotonic: float, endMonotonic: float) -> int:
    """
    Назначение:
        Длительность в миллисекундах между двумя отметками time.monotonic().
    """
    return int(max(0.0, endMonotonic - startMonotonic) * 1000)


def addDaysIso(days: int, today: date | None = None) -> str:
    """
    Назначение:
        Дата (YYYY-MM-DD), отстоящая от today на days дней.
    """
    base = today or datetime.now(timezone.utc).date()
    return (base + timedelta(days=days)).isoformat()
