from typing import Any

import httpx
import pytest
import requests

from app.config import Settings
from app.nlu.gateway import NluGateway
from app.processing.reply_dispatcher import ReplyDispatcher
from app.routing.access import AccessPolicy
from app.routing.sessions import SessionStore
from app.spark.profile import BotIdentity
from app.workflows.webhook.controller import WebhookController


def http_error(status_code: int, body: str = "") -> requests.HTTPError:
    response = requests.Response()
    response.status_code = status_code
    response._content = body.encode("utf-8")
    response.encoding = "utf-8"
    return requests.HTTPError(f"{status_code} Error", response=response)


class FakeSpark:
    def __init__(self) -> None:
        self.messages: dict[str, dict[str, Any]] = {}
        self.sent: list[tuple[str, str, list[str] | None]] = []
        self.fetch_error: Exception | None = None
        self.send_error: Exception | None = None
        self.fetched: list[str] = []
        self.profile: dict[str, Any] = {"displayName": "Helper Bot (bot)"}
        self.webhooks: list[dict[str, Any]] = []
        self.created_webhooks: list[dict[str, Any]] = []

    def get_me(self) -> dict[str, Any]:
        return self.profile

    def list_webhooks(self, max_items: int = 100) -> list[dict[str, Any]]:
        return list(self.webhooks)

    def create_webhook(self, target_url: str, name: str, resource: str = "messages", event: str = "created"):
        webhook = {"id": "W1", "targetUrl": target_url, "name": name, "resource": resource, "event": event}
        self.created_webhooks.append(webhook)
        return webhook

    def get_message(self, message_id: str) -> dict[str, Any]:
        self.fetched.append(message_id)
        if self.fetch_error is not None:
            raise self.fetch_error
        return self.messages[message_id]

    def create_message(self, room_id: str, text: str, files: list[str] | None = None) -> dict[str, Any]:
        if self.send_error is not None:
            raise self.send_error
        self.sent.append((room_id, text, files))
        return {"id": f"M{len(self.sent)}", "roomId": room_id, "text": text}

    def add_message(self, message_id: str, room_id: str, text: str, sender: str = "a@x.com") -> None:
        self.messages[message_id] = {
            "id": message_id,
            "roomId": room_id,
            "text": text,
            "personEmail": sender,
        }


class FakeNluClient:
    def __init__(self) -> None:
        self.responses: list[Any] = []
        self.calls: list[dict[str, Any]] = []

    def reply_with(self, speech: str | None = None, messages: list[dict[str, Any]] | None = None) -> None:
        fulfillment: dict[str, Any] = {"speech": speech}
        if messages is not None:
            fulfillment["messages"] = messages
        self.responses.append({"result": {"fulfillment": fulfillment}, "status": {"code": 200}})

    async def text_request(self, query, session_id, contexts=None):
        self.calls.append({"query": query, "session_id": session_id, "contexts": contexts})
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response

    async def aclose(self) -> None:
        return None


def webhook_event(message_id: str = "MSG1", room_id: str = "R1", sender: str = "a@x.com") -> dict:
    return {
        "id": "EVT1",
        "resource": "messages",
        "event": "created",
        "data": {"id": message_id, "roomId": room_id, "personEmail": sender},
    }


def drain(dispatcher: ReplyDispatcher) -> list:
    items = []
    while not dispatcher.queue.empty():
        items.append(dispatcher.queue.get_nowait())
    return items


@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,
        spark_token="spark-token",
        spark_api_base_url="https://spark.test/v1",
        spark_webhook_url="https://bot.example.com/spark/webhook",
        allowed_emails=["a@x.com", "b@x.com"],
        apiai_access_token="apiai-token",
        apiai_lang="en",
        bootstrap_on_startup=False,
    )


@pytest.fixture
def spark() -> FakeSpark:
    return FakeSpark()


@pytest.fixture
def nlu_client() -> FakeNluClient:
    return FakeNluClient()


@pytest.fixture
def controller(settings, spark, nlu_client) -> WebhookController:
    return WebhookController(
        spark_client=spark,
        access_policy=AccessPolicy(settings.allowed_emails, settings.spark_bot_email_suffix),
        session_store=SessionStore(),
        nlu_gateway=NluGateway(nlu_client, context_name="spark"),
        reply_dispatcher=ReplyDispatcher(spark),
        identity=BotIdentity.from_display_name("Helper Bot (bot)"),
    )


def mock_transport_client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))
