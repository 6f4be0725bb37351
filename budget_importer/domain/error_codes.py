from __future__ import annotations

from enum import Enum


class ErrorCode(str, Enum):
    """
    Назначение:
        Единая таксономия кодов диагностик импорта, экспорта и хранилища.
    """

    # файл целиком
    EMPTY_FILE = "EMPTY_FILE"
    NO_DATA_ROWS = "NO_DATA_ROWS"

    # структура строки
    INSUFFICIENT_COLUMNS = "INSUFFICIENT_COLUMNS"

    # поля
    REQUIRED_FIELD_MISSING = "REQUIRED_FIELD_MISSING"
    INVALID_PRICE = "INVALID_PRICE"
    INVALID_NUMBER = "INVALID_NUMBER"
    INVALID_PAYMENT_METHOD = "INVALID_PAYMENT_METHOD"
    OUT_OF_RANGE = "OUT_OF_RANGE"
    INCONSISTENT_PAYMENT = "INCONSISTENT_PAYMENT"
    DUPLICATE_RECORD = "DUPLICATE_RECORD"

    # предупреждения
    UNKNOWN_DEVICE_TYPE = "UNKNOWN_DEVICE_TYPE"
    INVALID_BOOLEAN = "INVALID_BOOLEAN"
    DEFAULT_APPLIED = "DEFAULT_APPLIED"
    PRICE_ROUNDED = "PRICE_ROUNDED"
    SCALE_CONVERTED = "SCALE_CONVERTED"
    INSTALLMENT_BELOW_CASH = "INSTALLMENT_BELOW_CASH"
    INSTALLMENT_NOT_ABOVE_CASH = "INSTALLMENT_NOT_ABOVE_CASH"

    # хранилище
    NETWORK_ERROR = "NETWORK_ERROR"
    INVALID_JSON = "INVALID_JSON"
    HTTP_4XX = "HTTP_4XX"
    HTTP_5XX = "HTTP_5XX"
    CONFLICT = "CONFLICT"
    STORE_ERROR = "STORE_ERROR"

    @classmethod
    def from_status(cls, status_code: int | None) -> "ErrorCode":
        """
        Назначение:
            Подбор общего кода по HTTP-статусу ответа бэкенда.
        """
        if status_code == 409:
            return cls.CONFLICT
        if status_code is not None and 400 <= status_code <= 499:
            return cls.HTTP_4XX
        if status_code is not None and 500 <= status_code <= 599:
            return cls.HTTP_5XX
        return cls.STORE_ERROR
