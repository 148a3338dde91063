import asyncio

import httpx

from app.processing.reply_dispatcher import ReplyPayload
from app.spark.profile import BotIdentity
from app.workflows.webhook.state import Terminal
from conftest import drain, http_error, webhook_event


def _handle(controller, payload):
    return asyncio.run(controller.handle(payload))


def test_authorized_message_is_replied_and_session_reused(controller, spark, nlu_client):
    spark.add_message("MSG1", "R1", "hi")
    spark.add_message("MSG2", "R1", "hi again")
    nlu_client.reply_with("hello there", [{"type": 0, "speech": "hello there"}])
    nlu_client.reply_with("still here")

    first = _handle(controller, webhook_event("MSG1"))
    second = _handle(controller, webhook_event("MSG2"))

    assert first.terminal is Terminal.REPLIED
    assert first.ack().model_dump() == {"status": {"code": 200, "message": "Reply sent"}}
    assert second.terminal is Terminal.REPLIED

    session_ids = [call["session_id"] for call in nlu_client.calls]
    assert session_ids[0] == session_ids[1]
    assert controller.session_store.get("R1") == session_ids[0]

    replies = drain(controller.reply_dispatcher)
    assert replies == [
        ReplyPayload(room_id="R1", text="hello there", files=None),
        ReplyPayload(room_id="R1", text="still here", files=None),
    ]


def test_reply_carries_first_image(controller, spark, nlu_client):
    spark.add_message("MSG1", "R1", "show me")
    nlu_client.reply_with(
        "Here it is",
        [
            {"type": 3, "imageUrl": "http://x/img.png"},
            {"type": 3, "imageUrl": "http://x/second.png"},
        ],
    )

    outcome = _handle(controller, webhook_event("MSG1"))

    assert outcome.terminal is Terminal.REPLIED
    assert drain(controller.reply_dispatcher) == [
        ReplyPayload(room_id="R1", text="Here it is", files=["http://x/img.png"])
    ]


def test_bot_name_is_stripped_before_nlu(controller, spark, nlu_client):
    spark.add_message("MSG1", "R1", "Helper Bot, what's the weather")
    nlu_client.reply_with("Sunny")

    _handle(controller, webhook_event("MSG1"))

    assert nlu_client.calls[0]["query"] == ", what's the weather"


def test_unknown_identity_sends_text_unchanged(controller, spark, nlu_client):
    controller.identity = BotIdentity()
    spark.add_message("MSG1", "R1", "Helper Bot hi")
    nlu_client.reply_with("Hey")

    _handle(controller, webhook_event("MSG1"))

    assert nlu_client.calls[0]["query"] == "Helper Bot hi"


def test_unauthorized_sender_gets_one_refusal(controller, spark, nlu_client):
    outcome = _handle(controller, webhook_event("MSG1", room_id="R9", sender="mallory@evil.com"))

    assert outcome.terminal is Terminal.REFUSED
    assert outcome.message == "Reply sent"
    replies = drain(controller.reply_dispatcher)
    assert len(replies) == 1
    assert replies[0].room_id == "R9"
    assert "mallory@evil.com" in replies[0].text
    assert spark.fetched == []
    assert nlu_client.calls == []
    assert len(controller.session_store) == 0


def test_bot_message_is_ignored_without_side_effects(controller, spark, nlu_client):
    outcome = _handle(controller, webhook_event("MSG1", sender="helper@sparkbot.io"))

    assert outcome.terminal is Terminal.IGNORED
    assert drain(controller.reply_dispatcher) == []
    assert spark.fetched == []
    assert len(controller.session_store) == 0


def test_non_message_event_is_acknowledged(controller, spark):
    payload = webhook_event()
    payload["resource"] = "memberships"

    outcome = _handle(controller, payload)

    assert outcome.terminal is Terminal.INVALID_EVENT
    assert outcome.code == 200
    assert spark.fetched == []


def test_event_without_message_id_is_acknowledged(controller):
    assert _handle(controller, {"resource": "messages", "data": {}}).terminal is Terminal.INVALID_EVENT
    assert _handle(controller, {"resource": "messages"}).terminal is Terminal.INVALID_EVENT
    assert _handle(controller, {"resource": "messages", "data": "oops"}).terminal is Terminal.INVALID_EVENT


def test_fetch_failure_is_acknowledged(controller, spark, nlu_client):
    spark.fetch_error = http_error(404, '{"message": "not found"}')

    outcome = _handle(controller, webhook_event("MSG1"))

    assert outcome.terminal is Terminal.FETCH_FAILED
    assert outcome.message == "Error while loading message"
    assert nlu_client.calls == []
    assert drain(controller.reply_dispatcher) == []


def test_message_without_text_is_acknowledged(controller, spark, nlu_client):
    spark.messages["MSG1"] = {"id": "MSG1", "roomId": "R1", "personEmail": "a@x.com"}

    outcome = _handle(controller, webhook_event("MSG1"))

    assert outcome.terminal is Terminal.EMPTY_MESSAGE
    assert nlu_client.calls == []


def test_empty_speech_sends_nothing(controller, spark, nlu_client):
    spark.add_message("MSG1", "R1", "hi")
    nlu_client.reply_with("")

    outcome = _handle(controller, webhook_event("MSG1"))

    assert outcome.terminal is Terminal.EMPTY_SPEECH
    assert outcome.message == "Received empty speech"
    assert drain(controller.reply_dispatcher) == []


def test_empty_result_sends_nothing(controller, spark, nlu_client):
    spark.add_message("MSG1", "R1", "hi")
    nlu_client.responses.append({"status": {"code": 200}})

    outcome = _handle(controller, webhook_event("MSG1"))

    assert outcome.terminal is Terminal.EMPTY_RESULT
    assert outcome.message == "Received empty result"
    assert drain(controller.reply_dispatcher) == []


def test_nlu_error_is_acknowledged_and_room_not_told(controller, spark, nlu_client):
    spark.add_message("MSG1", "R1", "hi")
    nlu_client.responses.append(httpx.ReadTimeout("timed out"))

    outcome = _handle(controller, webhook_event("MSG1"))

    assert outcome.terminal is Terminal.NLU_ERROR
    assert outcome.ack().model_dump() == {
        "status": {"code": 200, "message": "Error while call to api.ai"}
    }
    assert drain(controller.reply_dispatcher) == []
    assert "R1" in controller.session_store


def test_null_sender_in_event_is_refused(controller, spark):
    payload = webhook_event("MSG1", room_id="R4")
    payload["data"]["personEmail"] = None

    outcome = _handle(controller, payload)

    assert outcome.terminal is Terminal.REFUSED
    replies = drain(controller.reply_dispatcher)
    assert len(replies) == 1
    assert replies[0].room_id == "R4"
    assert spark.fetched == []


def test_fetched_message_with_null_sender_is_replied(controller, spark, nlu_client):
    spark.messages["MSG1"] = {"id": "MSG1", "roomId": "R1", "text": "hi", "personEmail": None}
    nlu_client.reply_with("hello there")

    outcome = _handle(controller, webhook_event("MSG1"))

    assert outcome.terminal is Terminal.REPLIED
    assert drain(controller.reply_dispatcher) == [
        ReplyPayload(room_id="R1", text="hello there", files=None)
    ]
