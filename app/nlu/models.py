from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class PartKind(str, Enum):
    TEXT = "text"
    CARD = "card"
    QUICK_REPLIES = "quick_replies"
    IMAGE = "image"
    PAYLOAD = "payload"
    UNKNOWN = "unknown"


# api.ai v1 fulfillment message types.
_NUMERIC_KINDS = {
    0: PartKind.TEXT,
    1: PartKind.CARD,
    2: PartKind.QUICK_REPLIES,
    3: PartKind.IMAGE,
    4: PartKind.PAYLOAD,
}


@dataclass(frozen=True)
class TextPart:
    speech: str = ""
    kind: PartKind = PartKind.TEXT


@dataclass(frozen=True)
class CardPart:
    title: str = ""
    image_url: str = ""
    kind: PartKind = PartKind.CARD


@dataclass(frozen=True)
class QuickRepliesPart:
    replies: tuple[str, ...] = ()
    kind: PartKind = PartKind.QUICK_REPLIES


@dataclass(frozen=True)
class ImagePart:
    url: str = ""
    kind: PartKind = PartKind.IMAGE


@dataclass(frozen=True)
class PayloadPart:
    payload: dict[str, Any] = field(default_factory=dict)
    kind: PartKind = PartKind.PAYLOAD


@dataclass(frozen=True)
class UnknownPart:
    raw: dict[str, Any] = field(default_factory=dict)
    kind: PartKind = PartKind.UNKNOWN


MessagePart = TextPart | CardPart | QuickRepliesPart | ImagePart | PayloadPart | UnknownPart


def part_kind(tag: Any) -> PartKind:
    if isinstance(tag, bool):
        return PartKind.UNKNOWN
    if isinstance(tag, int):
        return _NUMERIC_KINDS.get(tag, PartKind.UNKNOWN)
    if isinstance(tag, str):
        value = tag.strip().lower()
        if value.isdigit():
            return _NUMERIC_KINDS.get(int(value), PartKind.UNKNOWN)
        try:
            return PartKind(value)
        except ValueError:
            return PartKind.UNKNOWN
    return PartKind.UNKNOWN


def decode_part(raw: dict[str, Any]) -> MessagePart:
    kind = part_kind(raw.get("type"))
    if kind is PartKind.TEXT:
        return TextPart(speech=str(raw.get("speech", "") or ""))
    if kind is PartKind.CARD:
        return CardPart(
            title=str(raw.get("title", "") or ""),
            image_url=str(raw.get("imageUrl", "") or ""),
        )
    if kind is PartKind.QUICK_REPLIES:
        return QuickRepliesPart(replies=tuple(str(r) for r in raw.get("replies") or []))
    if kind is PartKind.IMAGE:
        return ImagePart(url=str(raw.get("imageUrl", "") or ""))
    if kind is PartKind.PAYLOAD:
        payload = raw.get("payload")
        return PayloadPart(payload=payload if isinstance(payload, dict) else {})
    return UnknownPart(raw=dict(raw))


@dataclass(frozen=True)
class NluContext:
    name: str
    parameters: dict[str, Any] = field(default_factory=dict)

    def as_payload(self) -> dict[str, Any]:
        return {"name": self.name, "parameters": dict(self.parameters)}


@dataclass(frozen=True)
class NluResponse:
    speech: str | None
    parts: list[MessagePart] = field(default_factory=list)
    session_id: str = ""
    result: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_result(cls, result: dict[str, Any], session_id: str = "") -> "NluResponse":
        fulfillment = result.get("fulfillment") or {}
        speech = fulfillment.get("speech")
        raw_messages = fulfillment.get("messages") or []
        parts = [decode_part(m) for m in raw_messages if isinstance(m, dict)]
        return cls(
            speech=str(speech) if speech else None,
            parts=parts,
            session_id=session_id,
            result=result,
        )

    def first_image_url(self) -> str | None:
        for part in self.parts:
            if isinstance(part, ImagePart) and part.url:
                return part.url
        return None
