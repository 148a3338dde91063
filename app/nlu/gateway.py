from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

import httpx

from app.errors import NluTransportError
from app.nlu.client import ApiAiClient
from app.nlu.models import NluContext, NluResponse

logger = logging.getLogger("spark_bot")


@dataclass(frozen=True)
class NluReply:
    response: NluResponse
    files: list[str] | None = None

    @property
    def speech(self) -> str:
        return self.response.speech or ""


@dataclass(frozen=True)
class NluNoSpeech:
    response: NluResponse


@dataclass(frozen=True)
class NluNoResult:
    body: dict[str, Any]


@dataclass(frozen=True)
class NluFailure:
    error: NluTransportError


NluOutcome = NluReply | NluNoSpeech | NluNoResult | NluFailure


class NluGateway:
    def __init__(self, client: ApiAiClient, context_name: str = "spark") -> None:
        self.client = client
        self.context_name = context_name

    def build_contexts(self, conversation_id: str) -> list[NluContext]:
        return [NluContext(name=self.context_name, parameters={"roomId": conversation_id})]

    async def ask(self, clean_text: str, session_id: str, conversation_id: str) -> NluOutcome:
        try:
            body = await self.client.text_request(
                clean_text,
                session_id=session_id,
                contexts=self.build_contexts(conversation_id),
            )
        except httpx.HTTPStatusError as exc:
            return NluFailure(
                NluTransportError(
                    f"api.ai responded with HTTP {exc.response.status_code}",
                    status_code=exc.response.status_code,
                    body=exc.response.text,
                )
            )
        except httpx.HTTPError as exc:
            return NluFailure(NluTransportError(f"api.ai request failed: {exc!r}"))
        except ValueError as exc:
            return NluFailure(NluTransportError(f"api.ai returned an invalid body: {exc}"))

        return self.translate(body, session_id)

    @staticmethod
    def translate(body: Any, session_id: str = "") -> NluOutcome:
        if not isinstance(body, dict):
            return NluFailure(NluTransportError(f"api.ai returned an unexpected body: {body!r}"))

        status = body.get("status") or {}
        status_code = status.get("code") if isinstance(status, dict) else None
        if isinstance(status_code, int) and status_code >= 400:
            return NluFailure(
                NluTransportError(
                    f"api.ai error {status_code}: {status.get('errorDetails') or status.get('errorType')}",
                    status_code=status_code,
                    body=str(body),
                )
            )

        result = body.get("result")
        if not result or not isinstance(result, dict):
            return NluNoResult(body=body)

        response = NluResponse.from_result(result, session_id=str(body.get("sessionId") or session_id))
        if not response.speech:
            return NluNoSpeech(response)

        image_url = response.first_image_url()
        files = [image_url] if image_url else None
        if files:
            logger.info("Attaching image with URL = %s", image_url)
        return NluReply(response=response, files=files)
