from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ComplaintState(str, Enum):
    DRAFT = "draft"
    LOCATED = "located"
    FINALIZED = "finalized"


@dataclass
class Citizen:
    address: str
    name: str = ""
    created_at: datetime = field(default_factory=utcnow)


@dataclass
class InfrastructureRecord:
    """A known civic asset or a newly reported issue.

    ``draft`` records may lack ``address`` and coordinates; a non-draft record
    always carries both.
    """

    site_id: str
    name: str
    department: str
    created_by: str
    kind: str = "Query"
    address: str = ""
    latitude: float | None = None
    longitude: float | None = None
    draft: bool = True
    photo_url: str | None = None
    created_at: datetime = field(default_factory=utcnow)

    @property
    def state(self) -> ComplaintState:
        return ComplaintState.DRAFT if self.draft else ComplaintState.LOCATED

    def located(self, address: str, latitude: float, longitude: float) -> "InfrastructureRecord":
        return replace(self, address=address, latitude=latitude, longitude=longitude, draft=False)


@dataclass
class Ticket:
    ticket_code: str
    site_id: str
    citizen: str
    active: bool = True
    created_at: datetime = field(default_factory=utcnow)
    id: int | None = None


@dataclass(frozen=True)
class ThreadMessage:
    ticket_code: str
    action: str
    sender: str
    recipient: str
    modality: str
    payload: dict
    source_message_id: str = ""
    created_at: datetime = field(default_factory=utcnow)


@dataclass(frozen=True)
class GeocodeMatch:
    address: str
    latitude: float
    longitude: float


# Intent labels produced by the classifier.


@dataclass(frozen=True)
class SmallTalk:
    pass


@dataclass(frozen=True)
class Irrelevant:
    pass


@dataclass(frozen=True)
class Department:
    name: str


@dataclass(frozen=True)
class KnownSite:
    record: InfrastructureRecord


Intent = SmallTalk | Irrelevant | Department | KnownSite


@dataclass(frozen=True)
class LifecycleOutcome:
    state: ComplaintState | None
    record: InfrastructureRecord | None = None
    ticket: Ticket | None = None
