from __future__ import annotations

from civicbot.records import Department, Irrelevant, KnownSite, SmallTalk
from civicbot.services.intent_classifier import IntentClassifier, parse_department_label, site_id_candidates
from civicbot.services.memory_store import InMemoryComplaintStore

from fakes import FakeLanguage, known_site


def test_parse_department_label_variants() -> None:
    assert parse_department_label("SMALL_TALK") == SmallTalk()
    assert parse_department_label("small talk") == SmallTalk()
    assert parse_department_label("Irrelevant") == Irrelevant()
    assert parse_department_label('"Irrelevant".') == Irrelevant()
    assert parse_department_label("water supply") == Department("Water Supply")
    assert parse_department_label("Ward Office") == Department("Ward Office")


def test_empty_or_rambling_label_is_irrelevant() -> None:
    assert parse_department_label("") == Irrelevant()
    assert parse_department_label(None) == Irrelevant()
    rambling = "I think this could belong to several different departments, it is really hard to say."
    assert parse_department_label(rambling) == Irrelevant()


def test_site_id_candidates_include_leading_token() -> None:
    assert site_id_candidates("  PARK1234 broken streetlight ") == ["PARK1234 broken streetlight", "PARK1234"]
    assert site_id_candidates("PARK1234") == ["PARK1234"]
    assert site_id_candidates("   ") == []


def test_known_site_short_circuits_department_classification() -> None:
    store = InMemoryComplaintStore()
    store.create_site(known_site("Roads"))
    classifier = IntentClassifier(store, FakeLanguage(departments={"Roads": "Roads"}))

    intent = classifier.classify("Roads")

    assert isinstance(intent, KnownSite)
    assert intent.record.site_id == "Roads"


def test_draft_site_id_is_not_a_known_site() -> None:
    store = InMemoryComplaintStore()
    store.create_site(known_site("DRAFT0001", draft=True, address="", latitude=None, longitude=None))
    classifier = IntentClassifier(store, FakeLanguage())

    assert classifier.classify("DRAFT0001") == Irrelevant()
