import logging

from civicbot.records import Department, InfrastructureRecord, Intent, Irrelevant, KnownSite, SmallTalk

from .language_service import DEPARTMENTS

logger = logging.getLogger(__name__)

MAX_LABEL_LENGTH = 60
_CANONICAL_DEPARTMENTS = {name.lower(): name for name in DEPARTMENTS}


def parse_department_label(raw: str | None) -> SmallTalk | Irrelevant | Department:
    label = (raw or "").strip().strip("\"'`.").strip()
    if not label:
        return Irrelevant()

    normalized = label.upper().replace(" ", "_")
    if normalized == "SMALL_TALK":
        return SmallTalk()
    if normalized == "IRRELEVANT":
        return Irrelevant()

    # A sentence instead of a label means the model did not classify.
    if len(label) > MAX_LABEL_LENGTH or "\n" in label:
        logger.warning("Ambiguous department label => %r", label)
        return Irrelevant()

    return Department(_CANONICAL_DEPARTMENTS.get(label.lower(), label))


def site_id_candidates(text: str) -> list[str]:
    stripped = (text or "").strip()
    if not stripped:
        return []

    candidates = [stripped]
    leading = stripped.split()[0]
    if leading != stripped:
        candidates.append(leading)
    return candidates


class IntentClassifier:
    def __init__(self, store, language) -> None:
        self.store = store
        self.language = language

    def match_site(self, text: str) -> InfrastructureRecord | None:
        for candidate in site_id_candidates(text):
            record = self.store.find_site(candidate)
            # Drafts are still waiting on a location and cannot take tickets.
            if record is not None and not record.draft:
                return record
        return None

    def classify_department(self, text: str) -> SmallTalk | Irrelevant | Department:
        label = parse_department_label(self.language.classify_department(text))
        logger.info("Department => %s", label)
        return label

    def classify(self, text: str) -> Intent:
        record = self.match_site(text)
        if record is not None:
            logger.info("Found infra => %s", record.site_id)
            return KnownSite(record)
        return self.classify_department(text)
