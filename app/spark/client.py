from __future__ import annotations

from typing import Any

import requests

from app.config import Settings


class SparkClient:
    def __init__(self, settings: Settings, session: requests.Session | None = None) -> None:
        self.settings = settings
        self.session = session or requests.Session()

    def get_me(self) -> dict[str, Any]:
        return self._get(self._url("/people/me"))

    def list_webhooks(self, max_items: int = 100) -> list[dict[str, Any]]:
        body = self._get(self._url("/webhooks"), params={"max": max_items})
        items = (body.get("items") or []) if isinstance(body, dict) else None
        if not isinstance(items, list) or not all(isinstance(item, dict) for item in items):
            raise ValueError(f"Unexpected webhooks body: {body!r}")
        return items

    def create_webhook(
        self, target_url: str, name: str, resource: str = "messages", event: str = "created"
    ) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "event": event,
            "name": name,
            "resource": resource,
            "targetUrl": target_url,
        }
        return self._post(self._url("/webhooks"), payload)

    def get_message(self, message_id: str) -> dict[str, Any]:
        return self._get(self._url(f"/messages/{message_id}"))

    def create_message(
        self, room_id: str, text: str, files: list[str] | None = None
    ) -> dict[str, Any]:
        payload: dict[str, Any] = {"roomId": room_id, "text": text}
        if files:
            payload["files"] = files
        return self._post(self._url("/messages"), payload)

    def _url(self, path: str) -> str:
        return f"{self.settings.spark_api_base_url.rstrip('/')}{path}"

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self.settings.spark_token}",
            "Content-Type": "application/json",
        }

    def _get(self, url: str, params: dict[str, Any] | None = None) -> dict[str, Any]:
        response = self.session.get(
            url,
            params=params,
            headers=self._headers(),
            timeout=self.settings.http_timeout_seconds,
        )
        response.raise_for_status()
        return response.json() if response.content else {}

    def _post(self, url: str, payload: dict[str, Any]) -> dict[str, Any]:
        response = self.session.post(
            url,
            json=payload,
            headers=self._headers(),
            timeout=self.settings.http_timeout_seconds,
        )
        response.raise_for_status()
        return response.json() if response.content else {"ok": True}


def describe_http_error(exc: requests.RequestException) -> tuple[int | None, str]:
    response = getattr(exc, "response", None)
    if response is None:
        return None, str(exc)
    return response.status_code, response.text
