from __future__ import annotations

import logging
import os

logger = logging.getLogger(__name__)


class Notifier:
    def send_password_reset(self, *, recipient: str, name: str, token: str) -> None:
        raise NotImplementedError

    def send_join_request_decision(
        self, *, recipient: str, name: str, approved: bool, reason: str | None = None
    ) -> None:
        raise NotImplementedError


class LogNotifier(Notifier):
    """Writes deliveries to the log instead of sending email."""

    def send_password_reset(self, *, recipient: str, name: str, token: str) -> None:
        logger.info(
            "Password reset requested",
            extra={"recipient": recipient, "reset_token_prefix": token[:8]},
        )

    def send_join_request_decision(
        self, *, recipient: str, name: str, approved: bool, reason: str | None = None
    ) -> None:
        logger.info(
            "Join request %s",
            "approved" if approved else "rejected",
            extra={"recipient": recipient, "reason": reason},
        )


class NoopNotifier(Notifier):
    def send_password_reset(self, *, recipient: str, name: str, token: str) -> None:
        return None

    def send_join_request_decision(
        self, *, recipient: str, name: str, approved: bool, reason: str | None = None
    ) -> None:
        return None


def get_notifier() -> Notifier:
    provider_name = (os.getenv("NOTIFICATIONS_PROVIDER") or "log").strip().lower()
    if provider_name == "log":
        return LogNotifier()
    if provider_name in {"none", "noop", "disabled"}:
        return NoopNotifier()
    raise ValueError(f"Unsupported notifications provider: {provider_name}")
