from __future__ import annotations

import logging
from dataclasses import dataclass

from app.spark.client import SparkClient

logger = logging.getLogger("spark_bot")

BOT_MARKER = "(bot)"


@dataclass(frozen=True)
class BotIdentity:
    full_name: str | None = None
    short_name: str | None = None

    @classmethod
    def from_display_name(cls, display_name: str | None) -> "BotIdentity":
        if not display_name:
            return cls()
        full_name = display_name.replace(BOT_MARKER, "").strip()
        if not full_name:
            return cls()
        short_name = full_name.split(" ", 1)[0] if " " in full_name else None
        return cls(full_name=full_name, short_name=short_name)


def load_identity(spark_client: SparkClient, verbose: bool = False) -> BotIdentity:
    profile = spark_client.get_me()
    if verbose:
        logger.info("profile %s", profile)

    identity = BotIdentity.from_display_name(profile.get("displayName"))
    logger.info("BotName: %s", identity.full_name)
    logger.info("ShortName: %s", identity.short_name)
    return identity
