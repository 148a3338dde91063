from __future__ import annotations


class MessageNormalizer:
    @staticmethod
    def normalize(
        raw_text: str,
        bot_full_name: str | None = None,
        bot_short_name: str | None = None,
    ) -> str:
        if not bot_full_name and not bot_short_name:
            return raw_text

        # Plain substring removal, full name first so it is not split by the short name.
        text = raw_text
        if bot_full_name and bot_full_name in text:
            text = text.replace(bot_full_name, "")
        if bot_short_name and bot_short_name in text:
            text = text.replace(bot_short_name, "")
        return text.strip()
