"""
Outgoing email.

Only the contract is needed by the API: ``send`` delivers one plain
text message or raises ``UpstreamError``.  ``LoggingMailer`` writes the
message to the log, which is enough for development and tests.
"""

import abc
import logging

logger = logging.getLogger(__name__)


class Mailer(abc.ABC):
    @abc.abstractmethod
    def send(self, to: str, subject: str, message: str) -> None:
        """Deliver a message; raise ``UpstreamError`` on failure."""


class LoggingMailer(Mailer):
    def send(self, to: str, subject: str, message: str) -> None:
        logger.info("Mail to %s: %s\n%s", to, subject, message)
