from __future__ import annotations

import time
from typing import Any

import httpx

from budget_importer.common.sanitize import truncateText
from budget_importer.domain.error_codes import ErrorCode
from budget_importer.errors import AppError


class ApiError(AppError):
    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        body_snippet: str | None = None,
        retryable: bool = False,
        details: dict | None = None,
        code: str | None = None,
    ):
        super().__init__(
            category="api",
            code=code or ErrorCode.from_status(status_code).value,
            message=message,
            retryable=retryable,
            details=details or {},
        )
        self.status_code = status_code
        self.body_snippet = body_snippet


class BudgetApiClient:
    """
    Назначение/ответственность:
        HTTP-клиент REST-бэкенда смет (PostgREST-совместимый) с повторами
        на 429/5xx и сетевых ошибках.
    """

    def __init__(
        self,
        baseUrl: str,
        apiKey: str | None = None,
        timeoutSeconds: float = 20.0,
        retries: int = 3,
        retryBackoffSeconds: float = 0.5,
        transport: httpx.BaseTransport | None = None,
    ):
        self.baseUrl = baseUrl.rstrip("/")
        self.apiKey = apiKey
        self.retries = retries
        self.retryBackoffSeconds = retryBackoffSeconds
        self.retry_attempts = 0

        self.client = httpx.Client(
            base_url=self.baseUrl,
            timeout=timeoutSeconds,
            transport=transport,
        )

    def close(self) -> None:
        self.client.close()

    def getRetryAttempts(self) -> int:
        return self.retry_attempts

    def _headers(self) -> dict[str, str]:
        headers = {
            "accept": "application/json",
            "content-type": "application/json",
            "Prefer": "return=representation",
        }
        if self.apiKey:
            headers["apikey"] = self.apiKey
            headers["Authorization"] = f"Bearer {self.apiKey}"
        return headers

    def _should_retry(self, resp: httpx.Response) -> bool:
        if resp.status_code == 429:
            return True
        if 500 <= resp.status_code <= 599:
            return True
        return False

    def _sleep_backoff(self, attempt: int) -> None:
        delay = self.retryBackoffSeconds * (2 ** attempt)
        time.sleep(delay)

    def requestJson(
        self,
        method: str,
        path: str,
        params: dict[str, Any] | None = None,
        jsonBody: Any | None = None,
    ) -> tuple[int, Any]:
        params = params or {}
        attempt = 0
        while True:
            try:
                resp = self.client.request(method, path, params=params, headers=self._headers(), json=jsonBody)
            except (httpx.TimeoutException, httpx.TransportError) as exc:
                if attempt >= self.retries:
                    raise ApiError(
                        "Network error",
                        status_code=None,
                        retryable=True,
                        code=ErrorCode.NETWORK_ERROR.value,
                    ) from exc
                self.retry_attempts += 1
                self._sleep_backoff(attempt)
                attempt += 1
                continue

            if resp.status_code in (200, 201, 204):
                if not resp.text:
                    return resp.status_code, None
                try:
                    return resp.status_code, resp.json()
                except ValueError as exc:
                    raise ApiError(
                        "Invalid JSON response",
                        status_code=resp.status_code,
                        body_snippet=truncateText(resp.text, 200),
                        code=ErrorCode.INVALID_JSON.value,
                    ) from exc

            if self._should_retry(resp) and attempt < self.retries:
                self.retry_attempts += 1
                self._sleep_backoff(attempt)
                attempt += 1
                continue

            body_snippet = truncateText(resp.text, 200) if resp.text else None
            raise ApiError(
                f"HTTP {resp.status_code}",
                status_code=resp.status_code,
                body_snippet=body_snippet,
                retryable=self._should_retry(resp),
                details={"body_snippet": body_snippet},
            )

    def getJson(self, path: str, params: dict[str, Any] | None = None) -> Any:
        _, data = self.requestJson("GET", path, params=params)
        return data
