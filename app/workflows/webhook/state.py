from enum import Enum
from typing import Any, TypedDict


class Terminal(str, Enum):
    PENDING = "pending"
    INVALID_EVENT = "invalid_event"
    IGNORED = "ignored"
    REFUSED = "refused"
    FETCH_FAILED = "fetch_failed"
    EMPTY_MESSAGE = "empty_message"
    EMPTY_SPEECH = "empty_speech"
    EMPTY_RESULT = "empty_result"
    NLU_ERROR = "nlu_error"
    REPLIED = "replied"


ACK_MESSAGES = {
    Terminal.INVALID_EVENT: "Ignored event",
    Terminal.IGNORED: "Message from bot",
    Terminal.REFUSED: "Reply sent",
    Terminal.FETCH_FAILED: "Error while loading message",
    Terminal.EMPTY_MESSAGE: "Received empty message",
    Terminal.EMPTY_SPEECH: "Received empty speech",
    Terminal.EMPTY_RESULT: "Received empty result",
    Terminal.NLU_ERROR: "Error while call to api.ai",
    Terminal.REPLIED: "Reply sent",
}


class WebhookState(TypedDict):
    payload: dict[str, Any]
    message_id: str
    room_id: str
    sender: str
    sender_authorized: bool
    text: str
    session_id: str
    reply_text: str
    files: list[str] | None
    terminal: Terminal
