from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class WebhookEventData(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str = ""
    room_id: str = Field(default="", alias="roomId")
    person_email: str = Field(default="", alias="personEmail")

    @field_validator("id", "room_id", "person_email", mode="before")
    @classmethod
    def null_as_empty(cls, value: Any) -> Any:
        return "" if value is None else value


class WebhookEvent(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str = ""
    resource: str = ""
    event: str = ""
    data: WebhookEventData | None = None

    @field_validator("id", "resource", "event", mode="before")
    @classmethod
    def null_as_empty(cls, value: Any) -> Any:
        return "" if value is None else value


class SparkMessage(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str = ""
    room_id: str = Field(default="", alias="roomId")
    person_email: str = Field(default="", alias="personEmail")
    text: str | None = None

    @field_validator("id", "room_id", "person_email", mode="before")
    @classmethod
    def null_as_empty(cls, value: Any) -> Any:
        return "" if value is None else value


class AckStatus(BaseModel):
    code: int
    message: str


class AckBody(BaseModel):
    status: AckStatus

    @classmethod
    def build(cls, code: int, message: str) -> "AckBody":
        return cls(status=AckStatus(code=code, message=message))

    def as_content(self) -> dict[str, Any]:
        return self.model_dump()
