"""
Password recovery delivery.

The protocol lets deployments plug in real mail delivery; the console mailer
writes the reset link to the application log, which is enough for
development and demo environments.
"""

import logging
from typing import Protocol, runtime_checkable

logger = logging.getLogger(__name__)


@runtime_checkable
class PasswordRecoveryMailer(Protocol):
    """Delivers password reset links to users."""

    async def send_reset_link(self, email: str, username: str, reset_url: str) -> None:
        """
        Deliver the reset link.

        Args:
            email: Address of the user
            username: Account being recovered
            reset_url: Full URL including the recovery key
        """
        ...


class ConsolePasswordRecoveryMailer:
    """Logs reset links instead of sending emails."""

    async def send_reset_link(self, email: str, username: str, reset_url: str) -> None:
        logger.info(
            f"[PASSWORD RESET] user={username} email={email} link={reset_url}"
        )


def build_reset_url(base_url: str, key: str) -> str:
    """Append the recovery key to the frontend reset page URL."""
    return f"{base_url.rstrip('/')}/{key}"
