import logging
import re

from civicbot.errors import TransientIOFailure

from .replies import Reply

logger = logging.getLogger(__name__)

DEVANAGARI_PATTERN = re.compile(r"[\u0900-\u097F]")


def contains_target_script(text: str | None) -> bool:
    return bool(text) and DEVANAGARI_PATTERN.search(text) is not None


def pick_reply(probe: str | None, reply: Reply) -> str:
    """Return the Marathi variant when the probe text contains Devanagari, else English."""
    return reply.localized if contains_target_script(probe) else reply.default


def reply_language(probe: str | None) -> str:
    return "Marathi" if contains_target_script(probe) else "English"


class ResponseComposer:
    def __init__(self, transport) -> None:
        self.transport = transport

    def send(self, recipient: str, probe: str | None, reply: Reply) -> bool:
        body = pick_reply(probe, reply)
        return self.send_raw(recipient, body)

    def send_raw(self, recipient: str, body: str) -> bool:
        try:
            self.transport.send_text(recipient, body)
        except TransientIOFailure as exc:
            logger.error("Reply to %s was not delivered: %s", recipient, exc)
            return False
        return True

    def send_image(self, recipient: str, url: str, caption: str) -> bool:
        try:
            self.transport.send_image(recipient, url, caption)
        except TransientIOFailure as exc:
            logger.error("Image reply to %s was not delivered: %s", recipient, exc)
            return False
        return True
