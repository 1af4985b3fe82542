import threading
from dataclasses import replace
from itertools import count

from civicbot.errors import DuplicateActiveTicket, TransientIOFailure
from civicbot.records import Citizen, InfrastructureRecord, ThreadMessage, Ticket


class InMemoryComplaintStore:
    """Process-local store with the same semantics as the PostgreSQL store."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._sequence = count(1)
        self.citizens: dict[str, Citizen] = {}
        self.sites: dict[str, InfrastructureRecord] = {}
        self.tickets: list[Ticket] = []
        self.threads: dict[str, list[ThreadMessage]] = {}

    def upsert_citizen(self, address: str, name: str) -> Citizen:
        with self._lock:
            existing = self.citizens.get(address)
            if existing is None:
                existing = Citizen(address=address, name=name or "")
                self.citizens[address] = existing
            elif name:
                existing.name = name
            return replace(existing)

    def find_site(self, site_id: str) -> InfrastructureRecord | None:
        with self._lock:
            record = self.sites.get(site_id)
            return replace(record) if record else None

    def create_site(self, record: InfrastructureRecord) -> InfrastructureRecord:
        with self._lock:
            if record.site_id in self.sites:
                raise TransientIOFailure(f"Site id collision: {record.site_id}")
            self.sites[record.site_id] = replace(record)
            return replace(record)

    def find_draft_sites(self, citizen: str) -> list[InfrastructureRecord]:
        with self._lock:
            drafts = [
                (record.created_at, position, replace(record))
                for position, record in enumerate(self.sites.values())
                if record.created_by == citizen and record.draft
            ]
        drafts.sort(key=lambda item: item[:2], reverse=True)
        return [record for _, _, record in drafts]

    def finalize_site(
        self, site_id: str, address: str, latitude: float, longitude: float
    ) -> InfrastructureRecord | None:
        with self._lock:
            record = self.sites.get(site_id)
            if record is None or not record.draft:
                return None
            finalized = record.located(address, latitude, longitude)
            self.sites[site_id] = finalized
            return replace(finalized)

    def find_active_tickets(self, citizen: str, site_id: str | None = None) -> list[Ticket]:
        with self._lock:
            matches = [
                replace(ticket)
                for ticket in self.tickets
                if ticket.citizen == citizen
                and ticket.active
                and (site_id is None or ticket.site_id == site_id)
            ]
        return sorted(matches, key=lambda ticket: (ticket.created_at, ticket.id), reverse=True)

    def find_ticket_by_code(self, ticket_code: str) -> Ticket | None:
        with self._lock:
            for ticket in self.tickets:
                if ticket.ticket_code == ticket_code:
                    return replace(ticket)
        return None

    def create_ticket(self, site_id: str, citizen: str, ticket_code: str) -> Ticket:
        with self._lock:
            for ticket in self.tickets:
                if ticket.active and ticket.citizen == citizen and ticket.site_id == site_id:
                    raise DuplicateActiveTicket(citizen, site_id)
                if ticket.ticket_code == ticket_code:
                    raise TransientIOFailure(f"Ticket code collision: {ticket_code}")
            ticket = Ticket(
                id=next(self._sequence),
                ticket_code=ticket_code,
                site_id=site_id,
                citizen=citizen,
            )
            self.tickets.append(ticket)
            self.threads[ticket_code] = []
            return replace(ticket)

    def append_thread_message(self, message: ThreadMessage) -> ThreadMessage:
        with self._lock:
            if message.ticket_code not in self.threads:
                raise TransientIOFailure(f"Unknown ticket: {message.ticket_code}")
            self.threads[message.ticket_code].append(message)
            return message

    def list_thread_messages(self, ticket_code: str) -> list[ThreadMessage]:
        with self._lock:
            return list(self.threads.get(ticket_code, []))
