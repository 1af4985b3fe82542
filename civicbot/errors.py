class CivicbotError(Exception):
    """Base class for errors raised by civicbot components."""


class TransientIOFailure(CivicbotError):
    """A collaborator (network service, store, media) failed; the citizen may resend."""


class MalformedEvent(CivicbotError):
    """An inbound webhook payload is missing the structure we need."""


class DuplicateActiveTicket(CivicbotError):
    def __init__(self, citizen: str, site_id: str) -> None:
        super().__init__(f"Active ticket already exists for {citizen} on {site_id}")
        self.citizen = citizen
        self.site_id = site_id
