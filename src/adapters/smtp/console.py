"""
Console mailer adapter - Implements Mailer protocol.

This module provides a console-based implementation of the domain's
mailer port, logging confirmation and password-reset tokens for demo
purposes.
"""

import logging

logger = logging.getLogger(__name__)


class ConsoleMailer:
    """
    Implements Mailer protocol via console logging.

    Uses structural subtyping - no explicit inheritance from Protocol.
    For demo/development purposes - prints tokens to stdout.
    """

    def send_confirmation(self, email: str, token: str) -> None:
        """
        Log a signup confirmation token (simulates email delivery).

        Args:
            email: Recipient email address
            token: Confirmation token
        """
        logger.info("[CONFIRMATION] Email: %s Token: %s", email, token)

    def send_password_reset(self, email: str, token: str) -> None:
        """
        Log a password-reset token (simulates email delivery).

        Args:
            email: Recipient email address
            token: Recovery token
        """
        logger.info("[PASSWORD RESET] Email: %s Token: %s", email, token)
