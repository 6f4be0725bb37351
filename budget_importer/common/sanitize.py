def maskSecret(value: str | None) -> str | None:
    """
    Назначение:
        Маскирует секреты (API-ключ бэкенда) для безопасного вывода в stdout/logs.

    Выходные данные:
        str | None
            Если value задано, '***', иначе None.
    """
    if value is None:
        return None
    return "***"


def truncateText(value: str | None, limit: int = 500) -> str | None:
    """
    Назначение:
        Ограничивает длину текста, чтобы не раздувать логи/отчёты
        (например, телом ответа бэкенда).
    """
    if value is None:
        return None
    if len(value) <= limit:
        return value
    suffix = "..." if limit > 3 else ""
    head = limit - len(suffix)
    return value[:head] + suffix
