import logging

from civicbot.errors import TransientIOFailure
from civicbot.models import WebhookAck, WebhookBody, WhatsAppMessage
from civicbot.records import Department, KnownSite, SmallTalk

from .citizen_locks import CitizenLocks
from .replies import (
    ADDED_TO_EXISTING,
    AUDIO_FAILED,
    AUDIO_NO_COMPLAINT,
    GREETING,
    IMAGE_ADDED_TO_EXISTING,
    IMAGE_ANALYZING,
    IMAGE_FAILED,
    IMAGE_NO_ISSUE,
    IMAGE_NOT_COMPLAINT,
    LOCATION_FAILED,
    NEED_CLARIFICATION,
    UNABLE_TO_HELP,
)
from .response_composer import reply_language

logger = logging.getLogger(__name__)


class IntakeService:
    """Routes each inbound WhatsApp message to an answer, a new complaint or a ticket update."""

    def __init__(
        self,
        store,
        transport,
        normalizer,
        classifier,
        tickets,
        lifecycle,
        composer,
        language,
        locks: CitizenLocks | None = None,
    ) -> None:
        self.store = store
        self.transport = transport
        self.normalizer = normalizer
        self.classifier = classifier
        self.tickets = tickets
        self.lifecycle = lifecycle
        self.composer = composer
        self.language = language
        self.locks = locks or CitizenLocks()
        self.handlers = {
            "text": self._handle_text,
            "audio": self._handle_audio,
            "image": self._handle_image,
            "location": self._handle_location,
            "interactive": self._handle_interactive,
        }

    def handle_webhook(self, body: WebhookBody) -> WebhookAck:
        messages = 0
        statuses = 0

        for entry in body.entry:
            for change in entry.changes:
                value = change.value
                names = {contact.wa_id: contact.profile.name for contact in value.contacts}
                fallback_name = value.contacts[0].profile.name if value.contacts else ""

                for message in value.messages:
                    self.handle_message(
                        message,
                        sender_name=names.get(message.sender, fallback_name),
                        recipient=value.metadata.display_phone_number,
                    )
                    messages += 1

                for status in value.statuses:
                    logger.info("Reply status => %s (%s)", status.status, status.id)
                    statuses += 1

        return WebhookAck(status="ok", messages=messages, statuses=statuses)

    def handle_message(self, message: WhatsAppMessage, sender_name: str, recipient: str) -> None:
        handler = self.handlers.get(message.type)
        if handler is None:
            logger.info("Unsupported message type => %s", message.type)
            return

        with self.locks.hold(message.sender):
            try:
                self.store.upsert_citizen(message.sender, sender_name)
            except TransientIOFailure as exc:
                logger.warning("Citizen upsert failed for %s: %s", message.sender, exc)
            handler(message, recipient)

    def _mark_read(self, message: WhatsAppMessage) -> None:
        try:
            self.transport.mark_as_read(message.id)
        except TransientIOFailure as exc:
            logger.warning("Could not mark %s as read: %s", message.id, exc)

    def _handle_text(self, message: WhatsAppMessage, recipient: str) -> None:
        text = self.normalizer.normalize_text(message)
        logger.info('TEXT from %s: "%s"', message.sender, text)
        self._mark_read(message)

        try:
            self._route_text(message.sender, recipient, message.id, text, probe=text)
        except TransientIOFailure as exc:
            logger.error("Text handling => %s", exc)
            self.composer.send(message.sender, text, UNABLE_TO_HELP)

    def _handle_audio(self, message: WhatsAppMessage, recipient: str) -> None:
        logger.info("AUDIO from %s, mediaId => %s", message.sender, message.audio.id if message.audio else None)
        self._mark_read(message)

        try:
            content = self.normalizer.normalize_audio(message)
            if content.complaint is None:
                self.composer.send(message.sender, content.transcript, AUDIO_NO_COMPLAINT)
                return
            self._route_text(message.sender, recipient, message.id, content.complaint, probe=content.transcript)
        except TransientIOFailure as exc:
            logger.error("Error audio => %s", exc)
            self.composer.send(message.sender, "", AUDIO_FAILED)

    def _handle_image(self, message: WhatsAppMessage, recipient: str) -> None:
        logger.info("IMAGE from %s, mediaId => %s", message.sender, message.image.id if message.image else None)
        sender = message.sender

        try:
            image_url = self.normalizer.store_image(message)
            ticket = self.tickets.append_to_latest(
                sender, recipient, "image", {"image": {"url": image_url}}, message.id
            )
            if ticket is not None:
                self.composer.send(sender, "", IMAGE_ADDED_TO_EXISTING)
                return

            self.composer.send(sender, "", IMAGE_ANALYZING)
            description = self.normalizer.describe_image(image_url)
            if description is None:
                self.composer.send(sender, "", IMAGE_NO_ISSUE)
                return

            label = self.classifier.classify_department(description)
            if not isinstance(label, Department):
                self.composer.send(sender, "", IMAGE_NOT_COMPLAINT)
                return

            self.lifecycle.open_from_image(sender, description, label.name, image_url)
        except TransientIOFailure as exc:
            logger.error("Image handling => %s", exc)
            self.composer.send(sender, "", IMAGE_FAILED)

    def _handle_location(self, message: WhatsAppMessage, recipient: str) -> None:
        coordinates = self.normalizer.normalize_location(message)
        logger.info(
            "LOCATION => %s, lat=%s, lng=%s", message.sender, coordinates.latitude, coordinates.longitude
        )

        try:
            self.lifecycle.attach_location(message.sender, coordinates.latitude, coordinates.longitude)
        except TransientIOFailure as exc:
            logger.error("Loc error => %s", exc)
            self.composer.send(message.sender, "", LOCATION_FAILED)

    def _handle_interactive(self, message: WhatsAppMessage, recipient: str) -> None:
        reply = self.normalizer.normalize_interactive(message)
        # Structured replies are reserved for payment and pass flows.
        logger.info("INTERACTIVE %s reply %r from %s", reply.kind, reply.reply_id, message.sender)

    def _route_text(self, sender: str, recipient: str, message_id: str, text: str, probe: str) -> None:
        intent = self.classifier.classify(text)

        if isinstance(intent, KnownSite):
            self.tickets.raise_against_known_site(sender, intent.record, probe)
            return

        if not isinstance(intent, Department):
            self._answer_conversationally(sender, text, probe, small_talk=isinstance(intent, SmallTalk))
            return

        ticket = self.tickets.append_to_latest(sender, recipient, "text", {"text": {"body": text}}, message_id)
        if ticket is not None:
            logger.info("Appended to ticket %s", ticket.ticket_code)
            self.composer.send(sender, probe, ADDED_TO_EXISTING)
            return

        self.lifecycle.open_from_text(sender, text, intent.name)

    def _answer_conversationally(self, sender: str, text: str, probe: str, small_talk: bool) -> None:
        try:
            answer = self.language.answer_from_knowledge_base(text, reply_language(probe))
        except TransientIOFailure as exc:
            logger.error("KB error => %s", exc)
            self.composer.send(sender, probe, UNABLE_TO_HELP)
            return

        if len(answer.strip()) < 2:
            self.composer.send(sender, probe, GREETING if small_talk else NEED_CLARIFICATION)
            return
        self.composer.send_raw(sender, answer)
