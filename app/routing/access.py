from __future__ import annotations

from collections.abc import Iterable


class AccessPolicy:
    def __init__(self, allowed_emails: Iterable[str], bot_email_suffix: str) -> None:
        self.allowed_emails = frozenset(allowed_emails)
        self.bot_email_suffix = bot_email_suffix

    def is_self(self, sender_email: str | None) -> bool:
        return bool(sender_email) and bool(self.bot_email_suffix) and sender_email.endswith(
            self.bot_email_suffix
        )

    def is_authorized(self, sender_email: str | None) -> bool:
        # Bot-originated messages are never authorized; callers ignore them instead of refusing.
        if self.is_self(sender_email):
            return False
        return bool(sender_email) and sender_email in self.allowed_emails
