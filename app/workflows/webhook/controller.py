from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any

import requests
from pydantic import ValidationError

from app.errors import FetchError
from app.models import AckBody, SparkMessage, WebhookEvent
from app.nlu.gateway import NluFailure, NluGateway, NluNoResult, NluNoSpeech
from app.processing.reply_dispatcher import ReplyDispatcher
from app.routing.access import AccessPolicy
from app.routing.normalizer import MessageNormalizer
from app.routing.sessions import SessionStore
from app.spark.client import SparkClient, describe_http_error
from app.spark.profile import BotIdentity
from app.workflows.webhook.graph import build_webhook_graph
from app.workflows.webhook.state import ACK_MESSAGES, Terminal, WebhookState

logger = logging.getLogger("spark_bot")

REFUSAL_TEMPLATE = "{sender}, unfortunately I cannot answer you since you are not authorized."


@dataclass(frozen=True)
class WebhookOutcome:
    terminal: Terminal
    message: str
    code: int = 200

    def ack(self) -> AckBody:
        return AckBody.build(self.code, self.message)


class WebhookController:
    def __init__(
        self,
        spark_client: SparkClient,
        access_policy: AccessPolicy,
        session_store: SessionStore,
        nlu_gateway: NluGateway,
        reply_dispatcher: ReplyDispatcher,
        normalizer: MessageNormalizer | None = None,
        identity: BotIdentity | None = None,
        verbose: bool = False,
    ) -> None:
        self.spark_client = spark_client
        self.access_policy = access_policy
        self.session_store = session_store
        self.nlu_gateway = nlu_gateway
        self.reply_dispatcher = reply_dispatcher
        self.normalizer = normalizer or MessageNormalizer()
        self.identity = identity or BotIdentity()
        self.verbose = verbose
        self.graph = build_webhook_graph(self)

    async def handle(self, payload: dict[str, Any]) -> WebhookOutcome:
        if self.verbose:
            logger.info("body %s", payload)

        state: WebhookState = {
            "payload": payload,
            "message_id": "",
            "room_id": "",
            "sender": "",
            "sender_authorized": False,
            "text": "",
            "session_id": "",
            "reply_text": "",
            "files": None,
            "terminal": Terminal.PENDING,
        }
        result = await self.graph.ainvoke(state)
        terminal = Terminal(result.get("terminal", Terminal.PENDING))
        if terminal == Terminal.PENDING:
            raise RuntimeError(f"Webhook graph ended without a terminal state: {result}")
        return WebhookOutcome(terminal=terminal, message=ACK_MESSAGES[terminal])

    async def validate_node(self, state: WebhookState) -> WebhookState:
        try:
            event = WebhookEvent.model_validate(state["payload"])
        except ValidationError:
            logger.warning("Malformed webhook event: %s", state["payload"])
            state["terminal"] = Terminal.INVALID_EVENT
            return state

        if event.resource != "messages" or event.data is None or not event.data.id:
            logger.info("Ignoring webhook event_id=%s resource=%s", event.id, event.resource)
            state["terminal"] = Terminal.INVALID_EVENT
            return state

        state["message_id"] = event.data.id
        state["room_id"] = event.data.room_id
        state["sender"] = event.data.person_email
        return state

    async def check_sender_node(self, state: WebhookState) -> WebhookState:
        sender = state["sender"]
        if self.access_policy.is_self(sender):
            logger.info("Message from bot. Skipping.")
            state["terminal"] = Terminal.IGNORED
            return state

        state["sender_authorized"] = self.access_policy.is_authorized(sender)
        if not state["sender_authorized"]:
            logger.info("Message is not from an authorized sender. Skipping. sender=%s", sender)
        return state

    async def refuse_node(self, state: WebhookState) -> WebhookState:
        sender = state["sender"]
        self.reply_dispatcher.dispatch(state["room_id"], REFUSAL_TEMPLATE.format(sender=sender))
        state["terminal"] = Terminal.REFUSED
        return state

    async def fetch_message_node(self, state: WebhookState) -> WebhookState:
        message_id = state["message_id"]
        try:
            message = await self._load_message(message_id)
        except FetchError as exc:
            logger.error(
                "Error while loading message: message_id=%s status=%s body=%s",
                exc.message_id,
                exc.status_code,
                exc.body,
            )
            state["terminal"] = Terminal.FETCH_FAILED
            return state

        if not message.text or not message.room_id:
            logger.info("Message %s has no text or room. Skipping.", message_id)
            state["terminal"] = Terminal.EMPTY_MESSAGE
            return state

        logger.info("%s %s", message.room_id, message.text)
        state["room_id"] = message.room_id
        state["text"] = message.text
        return state

    async def normalize_node(self, state: WebhookState) -> WebhookState:
        state["text"] = self.normalizer.normalize(
            state["text"], self.identity.full_name, self.identity.short_name
        )
        return state

    async def resolve_session_node(self, state: WebhookState) -> WebhookState:
        state["session_id"] = self.session_store.get_or_create(state["room_id"])
        return state

    async def ask_nlu_node(self, state: WebhookState) -> WebhookState:
        outcome = await self.nlu_gateway.ask(state["text"], state["session_id"], state["room_id"])

        if isinstance(outcome, NluFailure):
            logger.error(
                "Error while call to api.ai: room_id=%s message_id=%s error=%s",
                state["room_id"],
                state["message_id"],
                outcome.error,
            )
            state["terminal"] = Terminal.NLU_ERROR
        elif isinstance(outcome, NluNoResult):
            logger.info("Received empty result")
            state["terminal"] = Terminal.EMPTY_RESULT
        elif isinstance(outcome, NluNoSpeech):
            logger.info("Received empty speech")
            state["terminal"] = Terminal.EMPTY_SPEECH
        else:
            logger.info("Response as text message")
            state["reply_text"] = outcome.speech
            state["files"] = outcome.files
        return state

    async def dispatch_reply_node(self, state: WebhookState) -> WebhookState:
        self.reply_dispatcher.dispatch(state["room_id"], state["reply_text"], state["files"])
        state["terminal"] = Terminal.REPLIED
        return state

    async def _load_message(self, message_id: str) -> SparkMessage:
        try:
            body = await asyncio.to_thread(self.spark_client.get_message, message_id)
        except requests.RequestException as exc:
            status_code, text = describe_http_error(exc)
            raise FetchError(message_id, status_code=status_code, body=text) from exc

        if self.verbose:
            logger.info("message body %s", body)
        try:
            return SparkMessage.model_validate(body)
        except ValidationError as exc:
            raise FetchError(message_id, body=str(body)) from exc
