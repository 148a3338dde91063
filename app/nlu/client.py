from __future__ import annotations

from typing import Any

import httpx

from app.nlu.models import NluContext


class ApiAiClient:
    """Minimal async client for the api.ai v1 query endpoint."""

    def __init__(
        self,
        access_token: str,
        language: str,
        request_source: str,
        base_url: str = "https://api.api.ai/v1",
        protocol_version: str = "20150910",
        timeout: float = 15.0,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self.access_token = access_token
        self.language = language
        self.request_source = request_source
        self.base_url = base_url.rstrip("/")
        self.protocol_version = protocol_version
        self._http = http_client or httpx.AsyncClient(timeout=timeout)

    async def text_request(
        self, query: str, session_id: str, contexts: list[NluContext] | None = None
    ) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "query": query,
            "lang": self.language,
            "sessionId": session_id,
        }
        if contexts:
            payload["contexts"] = [context.as_payload() for context in contexts]

        headers = {
            "Authorization": f"Bearer {self.access_token}",
            "Content-Type": "application/json; charset=utf-8",
            "api-request-source": self.request_source,
        }
        response = await self._http.post(
            f"{self.base_url}/query",
            params={"v": self.protocol_version},
            json=payload,
            headers=headers,
        )
        response.raise_for_status()
        return response.json()

    async def aclose(self) -> None:
        await self._http.aclose()
