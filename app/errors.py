from __future__ import annotations


class SparkBotError(Exception):
    pass


class FetchError(SparkBotError):
    def __init__(self, message_id: str, status_code: int | None = None, body: str = "") -> None:
        super().__init__(f"Could not load message {message_id}: status={status_code} body={body}")
        self.message_id = message_id
        self.status_code = status_code
        self.body = body


class NluTransportError(SparkBotError):
    def __init__(self, message: str, status_code: int | None = None, body: str = "") -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class DeliveryError(SparkBotError):
    def __init__(self, room_id: str, status_code: int | None = None, body: str = "") -> None:
        super().__init__(f"Error while reply to room {room_id}: status={status_code} body={body}")
        self.room_id = room_id
        self.status_code = status_code
        self.body = body


class WebhookRegistrationError(SparkBotError):
    pass
