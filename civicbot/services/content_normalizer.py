import logging
import os
import tempfile
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator

from civicbot.errors import MalformedEvent
from civicbot.models import WhatsAppMessage

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AudioContent:
    transcript: str
    complaint: str | None


@dataclass(frozen=True)
class Coordinates:
    latitude: float
    longitude: float


@dataclass(frozen=True)
class StructuredReply:
    kind: str
    reply_id: str
    title: str
    raw: dict


def parse_extracted_complaint(raw: str | None) -> str | None:
    """Empty output or anything mentioning "irrelevant" means there is no complaint."""
    complaint = (raw or "").strip().strip('"').strip()
    if not complaint or "irrelevant" in complaint.lower():
        return None
    return complaint


@contextmanager
def temporary_media_file(payload: bytes, suffix: str) -> Iterator[Path]:
    descriptor, name = tempfile.mkstemp(prefix="civicbot-", suffix=suffix)
    path = Path(name)
    try:
        with os.fdopen(descriptor, "wb") as handle:
            handle.write(payload)
        yield path
    finally:
        path.unlink(missing_ok=True)


class ContentNormalizer:
    """Turns each inbound modality into text or a structured payload."""

    def __init__(self, transport, language, media_storage) -> None:
        self.transport = transport
        self.language = language
        self.media_storage = media_storage

    def normalize_text(self, message: WhatsAppMessage) -> str:
        if message.text is None:
            raise MalformedEvent(f"Text message {message.id} has no body")
        return message.text.body.strip()

    def _download(self, media_id: str) -> bytes:
        url = self.transport.resolve_media_url(media_id)
        return self.transport.fetch_media(url)

    def normalize_audio(self, message: WhatsAppMessage) -> AudioContent:
        if message.audio is None:
            raise MalformedEvent(f"Audio message {message.id} has no media reference")

        payload = self._download(message.audio.id)
        with temporary_media_file(payload, suffix=".ogg") as audio_path:
            transcript = self.language.transcribe(audio_path)
        logger.info("Audio transcript => %s", transcript)

        complaint = parse_extracted_complaint(self.language.extract_complaint_from_audio(transcript))
        logger.info("Audio complaint => %s", complaint)
        return AudioContent(transcript=transcript, complaint=complaint)

    def store_image(self, message: WhatsAppMessage) -> str:
        if message.image is None:
            raise MalformedEvent(f"Image message {message.id} has no media reference")

        payload = self._download(message.image.id)
        return self.media_storage.save_image(message.image.id, payload)

    def describe_image(self, image_url: str) -> str | None:
        complaint = parse_extracted_complaint(self.language.extract_complaint_from_image(image_url))
        logger.info("Image complaint => %s", complaint)
        return complaint

    def normalize_location(self, message: WhatsAppMessage) -> Coordinates:
        if message.location is None:
            raise MalformedEvent(f"Location message {message.id} has no coordinates")
        return Coordinates(latitude=message.location.latitude, longitude=message.location.longitude)

    def normalize_interactive(self, message: WhatsAppMessage) -> StructuredReply:
        payload = message.interactive or {}
        kind = payload.get("type", "")
        if not kind:
            raise MalformedEvent(f"Interactive message {message.id} has no type")

        reply = payload.get(kind) or {}
        return StructuredReply(
            kind=kind,
            reply_id=str(reply.get("id", "")),
            title=str(reply.get("title", "")),
            raw=payload,
        )
