"""JSON-constrained completions from an OpenAI-compatible chat endpoint."""

from __future__ import annotations

import json
import logging
from typing import Any, Optional

import httpx

from hrms.common.exceptions import ExternalServiceError
from hrms.config import settings

logger = logging.getLogger(__name__)


class LLMClient:
    def __init__(
        self,
        api_url: str,
        api_key: str,
        model: str,
        *,
        timeout: float = 60.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.api_url = api_url
        self.api_key = api_key
        self.model = model
        self.timeout = timeout
        self.transport = transport

    async def invoke(self, prompt: str, schema: dict[str, Any], *, name: str = "response") -> dict[str, Any]:
        """Send *prompt* and return the answer parsed against *schema*."""
        if not self.api_key:
            raise ExternalServiceError("llm", "LLM API credentials not configured")

        payload = {
            "model": self.model,
            "messages": [{"role": "user", "content": prompt}],
            "response_format": {
                "type": "json_schema",
                "json_schema": {"name": name, "schema": schema},
            },
        }
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                resp = await client.post(
                    self.api_url,
                    json=payload,
                    headers={"Authorization": f"Bearer {self.api_key}"},
                )
        except httpx.HTTPError as exc:
            logger.warning("LLM request failed: %s", exc)
            raise ExternalServiceError("llm", f"LLM request failed: {exc}")

        if resp.status_code != 200:
            logger.warning("LLM returned %s: %s", resp.status_code, resp.text[:200])
            raise ExternalServiceError("llm", f"LLM request failed with status {resp.status_code}")

        try:
            content = resp.json()["choices"][0]["message"]["content"]
            result = json.loads(content)
        except (KeyError, IndexError, TypeError, ValueError):
            raise ExternalServiceError("llm", "LLM returned an unparseable answer")
        if not isinstance(result, dict):
            raise ExternalServiceError("llm", "LLM returned an unparseable answer")
        return result


def get_llm_client() -> LLMClient:
    return LLMClient(
        settings.LLM_API_URL,
        settings.LLM_API_KEY,
        settings.LLM_MODEL,
        timeout=settings.HTTP_TIMEOUT_SECONDS,
    )
