import logging

from civicbot.errors import TransientIOFailure
from civicbot.records import ComplaintState, InfrastructureRecord, LifecycleOutcome

from .replies import (
    ADDRESS_NOT_FOUND,
    COMPLAINT_NOT_CREATED,
    COMPLAINT_NOTED,
    GEOCODE_FAILED,
    IMAGE_SHARE_LOCATION,
    LOCATION_RECEIVED,
    NEW_COMPLAINT_REGISTERED,
    NO_DRAFT_FOUND,
    SHARE_LOCATION,
    Reply,
)
from .ticket_service import SITE_ID_LENGTH, generate_code

logger = logging.getLogger(__name__)

NO_LOCATION = "NO_LOCATION"


def parse_location_phrase(raw: str | None) -> str | None:
    phrase = (raw or "").strip().strip("\"'").strip()
    if not phrase or phrase.upper() == NO_LOCATION:
        return None
    return phrase


class ComplaintLifecycle:
    """Draft -> Located -> Finalized for newly reported complaint sites.

    A record is written as a draft unless its address resolves at creation
    time. Drafts are finalized once, either right away from a geocoded
    phrase or later from the citizen's location pin, and a ticket is issued
    on finalization.
    """

    def __init__(self, store, language, geocoder, tickets, composer, site_id_factory=generate_code) -> None:
        self.store = store
        self.language = language
        self.geocoder = geocoder
        self.tickets = tickets
        self.composer = composer
        self.site_id_factory = site_id_factory

    def _new_record(self, citizen: str, name: str, department: str, photo_url: str | None = None) -> InfrastructureRecord:
        return InfrastructureRecord(
            site_id=self.site_id_factory(SITE_ID_LENGTH),
            name=name,
            department=department,
            created_by=citizen,
            photo_url=photo_url,
        )

    def _write(self, citizen: str, probe: str, record: InfrastructureRecord) -> InfrastructureRecord | None:
        try:
            return self.store.create_site(record)
        except TransientIOFailure as exc:
            logger.error("Infra creation => %s", exc)
            self.composer.send(citizen, probe, COMPLAINT_NOT_CREATED)
            return None

    def _issue(self, citizen: str, probe: str, record: InfrastructureRecord, reply: Reply) -> LifecycleOutcome:
        # On failure the record stays located with no ticket. Location pins only
        # reach drafts, so the citizen has to report the issue again.
        try:
            ticket = self.tickets.issue_ticket(record.site_id, citizen)
        except TransientIOFailure as exc:
            logger.error("Ticket creation for %s => %s", record.site_id, exc)
            self.composer.send(citizen, probe, COMPLAINT_NOT_CREATED)
            return LifecycleOutcome(ComplaintState.LOCATED, record=record)

        self.composer.send(citizen, probe, reply.format(code=ticket.ticket_code))
        return LifecycleOutcome(ComplaintState.FINALIZED, record=record, ticket=ticket)

    def _resolve_phrase(self, text: str, record: InfrastructureRecord) -> tuple[InfrastructureRecord, Reply | None]:
        phrase = parse_location_phrase(self.language.extract_location_phrase(text))
        if phrase is None:
            return record, SHARE_LOCATION.format(department=record.department)

        try:
            match = self.geocoder.forward(phrase)
        except TransientIOFailure as exc:
            logger.error("Geo error => %s", exc)
            return record, GEOCODE_FAILED

        if match is None:
            logger.info("No geocode result for %r", phrase)
            return record, ADDRESS_NOT_FOUND
        return record.located(match.address, match.latitude, match.longitude), None

    def open_from_text(self, citizen: str, text: str, department: str) -> LifecycleOutcome:
        record, prompt = self._resolve_phrase(text, self._new_record(citizen, text, department))

        stored = self._write(citizen, text, record)
        if stored is None:
            return LifecycleOutcome(None)

        if not stored.draft:
            logger.info("Infra located at creation => %s", stored.site_id)
            return self._issue(citizen, text, stored, NEW_COMPLAINT_REGISTERED)

        logger.info("Draft infra => %s", stored.site_id)
        if prompt is not None:
            self.composer.send(citizen, text, prompt)
        self.composer.send(citizen, text, COMPLAINT_NOTED)
        return LifecycleOutcome(ComplaintState.DRAFT, record=stored)

    def open_from_image(self, citizen: str, description: str, department: str, photo_url: str) -> LifecycleOutcome:
        stored = self._write(citizen, "", self._new_record(citizen, description, department, photo_url))
        if stored is None:
            return LifecycleOutcome(None)

        logger.info("Draft infra from image => %s", stored.site_id)
        self.composer.send(citizen, "", IMAGE_SHARE_LOCATION.format(department=department))
        return LifecycleOutcome(ComplaintState.DRAFT, record=stored)

    def attach_location(self, citizen: str, latitude: float, longitude: float) -> LifecycleOutcome:
        drafts = self.store.find_draft_sites(citizen)
        if not drafts:
            self.composer.send(citizen, "", NO_DRAFT_FOUND)
            return LifecycleOutcome(None)

        draft = drafts[0]
        address = self.geocoder.reverse(latitude, longitude)
        finalized = self.store.finalize_site(draft.site_id, address, latitude, longitude)
        if finalized is None:
            logger.warning("Draft %s was finalized concurrently", draft.site_id)
            self.composer.send(citizen, "", NO_DRAFT_FOUND)
            return LifecycleOutcome(None)

        logger.info("Infra finalized => %s", finalized.site_id)
        return self._issue(citizen, "", finalized, LOCATION_RECEIVED)
