"""HTTP clients for the SINAD and QIWA government APIs."""

from __future__ import annotations

import logging
from typing import Any, Optional

import httpx

from hrms.common.exceptions import ExternalServiceError
from hrms.config import settings

logger = logging.getLogger(__name__)


class ApiResult:
    """Status and decoded body of one API call; non-2xx is not an exception."""

    def __init__(self, status_code: int, data: dict[str, Any]) -> None:
        self.status_code = status_code
        self.data = data

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300

    def error(self, default: str) -> str:
        return self.data.get("error") or default


class GovernmentApiClient:
    service = "api"

    def __init__(
        self,
        base_url: str,
        api_key: str,
        *,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout
        self.transport = transport

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    def ensure_configured(self) -> None:
        if not self.configured:
            raise ExternalServiceError(
                self.service, f"{self.service.upper()} API credentials not configured",
            )

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Accept": "application/json",
        }

    async def request(
        self,
        method: str,
        path: str,
        *,
        json: Optional[dict[str, Any]] = None,
    ) -> ApiResult:
        self.ensure_configured()
        try:
            async with httpx.AsyncClient(
                base_url=self.base_url,
                headers=self._headers(),
                timeout=self.timeout,
                transport=self.transport,
            ) as client:
                resp = await client.request(method, path, json=json)
        except httpx.HTTPError as exc:
            logger.warning("%s %s %s failed: %s", self.service, method, path, exc)
            raise ExternalServiceError(self.service, f"{self.service.upper()} API unreachable: {exc}")

        try:
            data = resp.json()
        except ValueError:
            data = {"error": resp.text or None}
        if not isinstance(data, dict):
            data = {"data": data}
        if resp.status_code >= 400:
            logger.warning("%s %s %s -> %s", self.service, method, path, resp.status_code)
        return ApiResult(resp.status_code, data)


class SinadClient(GovernmentApiClient):
    service = "sinad"

    def __init__(self, base_url: str, api_key: str, establishment_id: str, **kw: Any) -> None:
        super().__init__(base_url, api_key, **kw)
        self.establishment_id = establishment_id

    @property
    def configured(self) -> bool:
        return bool(self.api_key and self.establishment_id)

    def _headers(self) -> dict[str, str]:
        return {**super()._headers(), "X-Establishment-ID": self.establishment_id}

    async def submit_wage_file(self, payload: dict[str, Any]) -> ApiResult:
        return await self.request("POST", "/wage-files/submit", json=payload)

    async def submission_status(self, reference: str) -> ApiResult:
        return await self.request("GET", f"/wage-files/{reference}/status")


class QiwaClient(GovernmentApiClient):
    service = "qiwa"

    async def register_employee(self, payload: dict[str, Any]) -> ApiResult:
        return await self.request("POST", "/employees/register", json=payload)

    async def work_permit(self, permit_number: str) -> ApiResult:
        return await self.request("GET", f"/work-permits/{permit_number}")


def get_sinad_client() -> SinadClient:
    return SinadClient(
        settings.SINAD_API_URL,
        settings.SINAD_API_KEY,
        settings.SINAD_ESTABLISHMENT_ID,
        timeout=settings.HTTP_TIMEOUT_SECONDS,
    )


def get_qiwa_client() -> QiwaClient:
    return QiwaClient(
        settings.QIWA_API_URL,
        settings.QIWA_API_KEY,
        timeout=settings.HTTP_TIMEOUT_SECONDS,
    )
