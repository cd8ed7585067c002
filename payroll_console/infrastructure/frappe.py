"""Client for the Frappe/ERPNext resource API."""
from __future__ import annotations

import json
import logging
from datetime import date
from decimal import Decimal
from typing import Any
from urllib.parse import quote, urlparse

import httpx

from payroll_console.core.schema import (
    BankAccount,
    CompensationAssignment,
    Employee,
    PayStatement,
    PayStatementRequest,
    StatementHandle,
)

from .erp import ERPError

logger = logging.getLogger(__name__)

AVATAR_COLORS = (
    "bg-yellow-500",
    "bg-orange-500",
    "bg-amber-600",
    "bg-green-600",
    "bg-blue-500",
    "bg-red-500",
    "bg-purple-500",
    "bg-pink-500",
    "bg-indigo-500",
)

EMPLOYEE_FIELDS = ["name", "employee_name", "designation", "department", "employment_type", "status"]
SLIP_LIST_FIELDS = ["name", "employee", "employee_name", "start_date", "end_date", "posting_date", "net_pay", "docstatus"]


def avatar_color(name: str) -> str:
    """Pick a stable avatar colour from the character sum of ``name``."""

    return AVATAR_COLORS[sum(ord(char) for char in name) % len(AVATAR_COLORS)]


class FrappeClient:
    """Async client for the handful of HR resources the payroll run needs."""

    def __init__(
        self,
        base_url: str,
        api_key: str,
        api_secret: str,
        *,
        timeout: float = 30.0,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        parsed = urlparse(base_url)
        if not parsed.scheme or not parsed.netloc:
            raise ValueError("base_url must include scheme and host")

        self._base_url = f"{parsed.scheme}://{parsed.netloc}{parsed.path.rstrip('/')}"
        self._headers = {
            "Authorization": f"token {api_key}:{api_secret}",
            "Content-Type": "application/json",
        }
        self._client = http_client or httpx.AsyncClient(timeout=timeout)
        self._owns_client = http_client is None

    # ------------------------------------------------------------------
    # helpers
    # ------------------------------------------------------------------
    def _resource_url(self, doctype: str, name: str | None = None) -> str:
        url = f"{self._base_url}/api/resource/{quote(doctype)}"
        if name is not None:
            url = f"{url}/{quote(name, safe='/')}"
        return url

    @staticmethod
    def _error_message(response: httpx.Response) -> str:
        try:
            body = response.json()
        except ValueError:
            return response.text or response.reason_phrase
        if not isinstance(body, dict):
            return response.reason_phrase
        for key in ("exception", "_server_messages", "message", "error"):
            value = body.get(key)
            if value:
                return str(value)
        return response.reason_phrase

    @staticmethod
    def _json_sanitise(value: Any) -> Any:
        if isinstance(value, Decimal):
            return int(value) if value == value.to_integral_value() else float(value)
        if isinstance(value, date):
            return value.isoformat()
        if isinstance(value, list):
            return [FrappeClient._json_sanitise(item) for item in value]
        if isinstance(value, dict):
            return {key: FrappeClient._json_sanitise(val) for key, val in value.items()}
        return value

    async def _request(self, method: str, url: str, **kwargs: Any) -> Any:
        try:
            response = await self._client.request(method, url, headers=self._headers, **kwargs)
        except httpx.HTTPError as exc:
            raise ERPError(f"ERP request failed: {exc}") from exc
        if response.is_error:
            raise ERPError(self._error_message(response), status_code=response.status_code)
        try:
            payload = response.json()
        except ValueError as exc:
            raise ERPError("ERP returned a non-JSON response", status_code=response.status_code) from exc
        return payload.get("data") if isinstance(payload, dict) else None

    @staticmethod
    def _document(data: Any, doctype: str) -> dict[str, Any]:
        if not isinstance(data, dict):
            raise ERPError(f"ERP response did not contain a {doctype} document")
        return data

    async def _list(
        self,
        doctype: str,
        *,
        filters: list[list[Any]] | None = None,
        fields: list[str] | None = None,
        order_by: str | None = None,
        limit: int | None = None,
    ) -> list[dict[str, Any]]:
        params: dict[str, str] = {"fields": json.dumps(fields or ["*"])}
        if filters:
            params["filters"] = json.dumps(self._json_sanitise(filters))
        if order_by:
            params["order_by"] = order_by
        if limit is not None:
            params["limit_page_length"] = str(limit)
        data = await self._request("GET", self._resource_url(doctype), params=params)
        return list(data or [])

    # ------------------------------------------------------------------
    # public API
    # ------------------------------------------------------------------
    async def list_employees(self) -> list[Employee]:
        rows = await self._list("Employee", fields=EMPLOYEE_FIELDS, limit=999)
        employees: list[Employee] = []
        for index, row in enumerate(rows):
            display_name = row.get("employee_name") or row.get("name") or "Unknown Employee"
            employees.append(
                Employee(
                    id=row.get("name") or f"emp-{index}",
                    name=display_name,
                    avatar_color=avatar_color(row.get("employee_name") or row.get("name") or ""),
                    designation=row.get("designation"),
                    employment_type=row.get("employment_type"),
                )
            )
        logger.info("Fetched %d employees from ERP", len(employees))
        return employees

    async def get_compensation_assignment(self, employee_id: str) -> CompensationAssignment | None:
        rows = await self._list(
            "Salary Structure Assignment",
            filters=[["employee", "=", employee_id], ["docstatus", "=", 1]],
            order_by="from_date desc",
            limit=1,
        )
        return CompensationAssignment(**rows[0]) if rows else None

    async def get_bank_account(self, employee_id: str) -> BankAccount | None:
        rows = await self._list(
            "Bank Account",
            filters=[["party_type", "=", "Employee"], ["party", "=", employee_id]],
        )
        return BankAccount(**rows[0]) if rows else None

    async def create_pay_statement(self, request: PayStatementRequest) -> StatementHandle:
        body = self._json_sanitise(request.model_dump())
        if not body.get("earnings"):
            body.pop("earnings", None)
        data = await self._request("POST", self._resource_url("Salary Slip"), json=body)
        return StatementHandle(**self._document(data, "Salary Slip"))

    async def list_pay_statements(
        self,
        employee_id: str,
        start: date | None = None,
        end: date | None = None,
    ) -> list[StatementHandle]:
        filters: list[list[Any]] = [["employee", "=", employee_id]]
        if start and end:
            filters.append(["start_date", ">=", start])
            filters.append(["end_date", "<=", end])
        rows = await self._list(
            "Salary Slip",
            filters=filters,
            fields=SLIP_LIST_FIELDS,
            order_by="posting_date desc",
        )
        return [StatementHandle(**row) for row in rows]

    async def get_pay_statement_detail(self, name: str) -> PayStatement:
        data = await self._request("GET", self._resource_url("Salary Slip", name))
        return PayStatement(**self._document(data, "Salary Slip"))

    def pay_statement_pdf_url(self, name: str) -> str:
        params = httpx.QueryParams(
            {
                "doctype": "Salary Slip",
                "name": name,
                "format": "Salary Slip Standard",
                "no_letterhead": "0",
            }
        )
        return f"{self._base_url}/api/method/frappe.utils.print_format.download_pdf?{params}"

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()


__all__ = ["FrappeClient", "avatar_color"]
