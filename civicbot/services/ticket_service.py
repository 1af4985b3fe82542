import logging
import secrets
import string

from civicbot.errors import DuplicateActiveTicket
from civicbot.records import InfrastructureRecord, ThreadMessage, Ticket

from .replies import ALREADY_PENDING, KNOWN_SITE_ACTIVE_RECORD, KNOWN_SITE_PHOTO_CAPTION, NEW_COMPLAINT_REGISTERED

logger = logging.getLogger(__name__)

CODE_ALPHABET = string.ascii_uppercase + string.digits
TICKET_CODE_LENGTH = 7
SITE_ID_LENGTH = 9


def generate_code(length: int = TICKET_CODE_LENGTH) -> str:
    return "".join(secrets.choice(CODE_ALPHABET) for _ in range(length))


class TicketService:
    """Decides whether inbound content joins an open ticket and issues new tickets."""

    def __init__(self, store, composer, code_factory=generate_code) -> None:
        self.store = store
        self.composer = composer
        self.code_factory = code_factory

    def latest_active_ticket(self, citizen: str, site_id: str | None = None) -> Ticket | None:
        tickets = self.store.find_active_tickets(citizen, site_id)
        return tickets[0] if tickets else None

    def issue_ticket(self, site_id: str, citizen: str) -> Ticket:
        ticket = self.store.create_ticket(site_id, citizen, self.code_factory(TICKET_CODE_LENGTH))
        logger.info("Issued ticket %s to %s for site %s", ticket.ticket_code, citizen, site_id)
        return ticket

    def raise_against_known_site(self, citizen: str, site: InfrastructureRecord, probe: str) -> Ticket | None:
        if site.photo_url:
            self.composer.send_image(citizen, site.photo_url, KNOWN_SITE_PHOTO_CAPTION.format(name=site.name))
        else:
            self.composer.send_raw(citizen, KNOWN_SITE_ACTIVE_RECORD.format(name=site.name))

        if self.latest_active_ticket(citizen, site.site_id) is not None:
            self.composer.send(citizen, probe, ALREADY_PENDING)
            return None

        try:
            ticket = self.issue_ticket(site.site_id, citizen)
        except DuplicateActiveTicket:
            logger.info("Concurrent ticket for %s on %s; treating as pending", citizen, site.site_id)
            self.composer.send(citizen, probe, ALREADY_PENDING)
            return None

        self.composer.send(citizen, probe, NEW_COMPLAINT_REGISTERED.format(code=ticket.ticket_code))
        return ticket

    def append_to_latest(
        self,
        citizen: str,
        recipient: str,
        modality: str,
        payload: dict,
        source_message_id: str = "",
    ) -> Ticket | None:
        ticket = self.latest_active_ticket(citizen)
        if ticket is None:
            return None

        self.store.append_thread_message(
            ThreadMessage(
                ticket_code=ticket.ticket_code,
                action="Received",
                sender=citizen,
                recipient=recipient,
                modality=modality,
                payload=payload,
                source_message_id=source_message_id,
            )
        )
        return ticket
