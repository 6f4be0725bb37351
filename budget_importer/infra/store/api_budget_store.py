from __future__ import annotations

from typing import Any

from budget_importer.domain.error_codes import ErrorCode
from budget_importer.infra.http.budget_api_client import ApiError, BudgetApiClient
from budget_importer.usecases.ports import PersistRowResult

BUDGETS_PATH = "/rest/v1/budgets"


class ApiBudgetStore:
    """
    Назначение/ответственность:
        Хранилище смет на REST-бэкенде.

    Ограничения:
        - Запись построчно: ответ по каждой строке независим.
        - Повторы делает BudgetApiClient; после исчерпания попыток строка
          отмечается неуспешной, запись остальных продолжается.
    """

    def __init__(self, client: BudgetApiClient) -> None:
        self.client = client

    def insert_many(self, payloads: list[dict[str, Any]]) -> list[PersistRowResult]:
        results: list[PersistRowResult] = []
        for payload in payloads:
            body = dict(payload)
            row_no = int(body.pop("source_row", 0) or 0)
            try:
                _, data = self.client.requestJson("POST", BUDGETS_PATH, jsonBody=body)
            except ApiError as exc:
                message = exc.message
                if exc.body_snippet:
                    message = f"{message}: {exc.body_snippet}"
                results.append(PersistRowResult(ok=False, row_no=row_no, error_code=exc.code, error_message=message))
                continue
            results.append(PersistRowResult(ok=True, row_no=row_no, budget_id=self._extract_id(data)))
        return results

    def list_budgets(self, owner_id: str | None = None) -> list[dict[str, Any]]:
        params: dict[str, Any] = {"select": "*", "order": "created_at.asc"}
        if owner_id is not None:
            params["owner_id"] = f"eq.{owner_id}"
        data = self.client.getJson(BUDGETS_PATH, params=params)
        if data is None:
            return []
        if not isinstance(data, list):
            raise ApiError(
                "Unexpected response format: expected a list of budgets",
                code=ErrorCode.INVALID_JSON.value,
            )
        return [item for item in data if isinstance(item, dict)]

    @staticmethod
    def _extract_id(data: Any) -> str | None:
        if isinstance(data, list) and data:
            data = data[0]
        if isinstance(data, dict) and data.get("id") is not None:
            return str(data["id"])
        return None
