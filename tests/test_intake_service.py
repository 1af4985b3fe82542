from __future__ import annotations

import pytest

from civicbot.errors import MalformedEvent
from civicbot.models import WebhookBody, WhatsAppMessage
from civicbot.records import GeocodeMatch

from fakes import (
    BUSINESS_NUMBER,
    CITIZEN,
    FakeGeocoder,
    FakeLanguage,
    FakeTransport,
    audio_message,
    build_intake,
    image_message,
    known_site,
    location_message,
    message_payload,
    text_message,
    webhook_body,
)

WATER_COMPLAINT = "No water supply in Shirur since two days"
WATER_COMPLAINT_NO_PLACE = "No water supply since two days"


def test_known_site_reference_creates_single_ticket() -> None:
    env = build_intake()
    env.store.create_site(known_site("PARK1234"))

    env.intake.handle_message(text_message("PARK1234 broken streetlight"), "Asha", BUSINESS_NUMBER)

    tickets = env.store.find_active_tickets(CITIZEN, "PARK1234")
    assert len(tickets) == 1
    assert env.transport.bodies[0] == "We have an active record for => Parking Lot PARK1234"
    assert env.transport.bodies[-1] == (
        f"A new complaint is registered: {tickets[0].ticket_code}. We'll address it soon."
    )
    assert len(env.store.sites) == 1


def test_known_site_with_active_ticket_replies_pending() -> None:
    env = build_intake()
    env.store.create_site(known_site("PARK1234"))
    env.store.create_ticket("PARK1234", CITIZEN, "EXIST01")

    env.intake.handle_message(text_message("PARK1234"), "Asha", BUSINESS_NUMBER)

    assert len(env.store.tickets) == 1
    assert env.transport.bodies[-1] == "You already have an active complaint. We're working on it!"


def test_known_site_with_photo_sends_image_first() -> None:
    env = build_intake()
    env.store.create_site(known_site("PARK1234", photo_url="https://cdn.example/park.png"))

    env.intake.handle_message(text_message("PARK1234"), "Asha", BUSINESS_NUMBER)

    assert env.transport.images == [
        (CITIZEN, "https://cdn.example/park.png", "Active record => Parking Lot PARK1234")
    ]


def test_complaint_with_geocoded_location_finalizes_immediately() -> None:
    language = FakeLanguage(departments={WATER_COMPLAINT: "Water Supply"}, locations={WATER_COMPLAINT: "Shirur"})
    geocoder = FakeGeocoder(matches={"Shirur": GeocodeMatch("Shirur, Maharashtra, India", 18.83, 74.37)})
    env = build_intake(language=language, geocoder=geocoder)

    env.intake.handle_message(text_message(WATER_COMPLAINT), "Asha", BUSINESS_NUMBER)

    records = list(env.store.sites.values())
    assert len(records) == 1
    assert records[0].draft is False
    assert records[0].address == "Shirur, Maharashtra, India"
    assert records[0].department == "Water Supply"
    tickets = env.store.find_active_tickets(CITIZEN)
    assert len(tickets) == 1
    assert tickets[0].site_id == records[0].site_id
    assert tickets[0].ticket_code in env.transport.bodies[-1]


def test_complaint_without_location_stays_draft_and_asks_for_location() -> None:
    language = FakeLanguage(departments={WATER_COMPLAINT_NO_PLACE: "Water Supply"})
    env = build_intake(language=language)

    env.intake.handle_message(text_message(WATER_COMPLAINT_NO_PLACE), "Asha", BUSINESS_NUMBER)

    records = list(env.store.sites.values())
    assert len(records) == 1
    assert records[0].draft is True
    assert env.store.tickets == []
    assert "Please share location so the Water Supply department can assist quickly." in env.transport.bodies


def test_location_phrase_without_geocode_result_asks_for_pin() -> None:
    language = FakeLanguage(departments={WATER_COMPLAINT: "Water Supply"}, locations={WATER_COMPLAINT: "Shirur"})
    env = build_intake(language=language, geocoder=FakeGeocoder())

    env.intake.handle_message(text_message(WATER_COMPLAINT), "Asha", BUSINESS_NUMBER)

    assert list(env.store.sites.values())[0].draft is True
    assert env.store.tickets == []
    assert "Unable to find the address. Please share pinned location." in env.transport.bodies


def test_geocoder_failure_keeps_draft_and_apologises() -> None:
    language = FakeLanguage(departments={WATER_COMPLAINT: "Water Supply"}, locations={WATER_COMPLAINT: "Shirur"})
    env = build_intake(language=language, geocoder=FakeGeocoder(fail=True))

    env.intake.handle_message(text_message(WATER_COMPLAINT), "Asha", BUSINESS_NUMBER)

    assert list(env.store.sites.values())[0].draft is True
    assert "Couldn't parse location. Please pin it." in env.transport.bodies


def test_location_pin_finalizes_latest_draft() -> None:
    language = FakeLanguage(departments={WATER_COMPLAINT_NO_PLACE: "Water Supply"})
    env = build_intake(language=language)
    env.intake.handle_message(text_message(WATER_COMPLAINT_NO_PLACE), "Asha", BUSINESS_NUMBER)

    env.intake.handle_message(location_message(18.83, 74.37), "Asha", BUSINESS_NUMBER)

    record = list(env.store.sites.values())[0]
    assert record.draft is False
    assert record.address == "Shirur, Maharashtra 412210, India"
    assert (record.latitude, record.longitude) == (18.83, 74.37)
    tickets = env.store.find_active_tickets(CITIZEN)
    assert len(tickets) == 1
    assert env.transport.bodies[-1] == f"Location received. Complaint (ID: {tickets[0].ticket_code}) is created."


def test_location_pin_without_draft_asks_to_describe_issue() -> None:
    env = build_intake()

    env.intake.handle_message(location_message(18.5, 73.8), "Asha", BUSINESS_NUMBER)

    assert env.store.tickets == []
    assert env.geocoder.reverse_calls == []
    assert env.transport.bodies == ["No draft request found. Please describe your issue."]


def test_reverse_geocode_failure_leaves_draft_untouched() -> None:
    language = FakeLanguage(departments={WATER_COMPLAINT_NO_PLACE: "Water Supply"})
    geocoder = FakeGeocoder()
    env = build_intake(language=language, geocoder=geocoder)
    env.intake.handle_message(text_message(WATER_COMPLAINT_NO_PLACE), "Asha", BUSINESS_NUMBER)
    geocoder.fail = True

    env.intake.handle_message(location_message(18.5, 73.8), "Asha", BUSINESS_NUMBER)

    assert list(env.store.sites.values())[0].draft is True
    assert env.store.tickets == []
    assert env.transport.bodies[-1] == "Error processing location. Please try again."


def test_follow_up_with_active_ticket_appends_thread_message() -> None:
    follow_up = "The pipe near the school is also leaking"
    language = FakeLanguage(departments={follow_up: "Water Supply"})
    env = build_intake(language=language)
    env.store.create_site(known_site("PARK1234"))
    ticket = env.store.create_ticket("PARK1234", CITIZEN, "EXIST01")

    env.intake.handle_message(text_message(follow_up, message_id="wamid.42"), "Asha", BUSINESS_NUMBER)

    assert len(env.store.sites) == 1
    assert len(env.store.tickets) == 1
    thread = env.store.list_thread_messages(ticket.ticket_code)
    assert len(thread) == 1
    assert thread[0].payload == {"text": {"body": follow_up}}
    assert thread[0].modality == "text"
    assert thread[0].source_message_id == "wamid.42"
    assert env.store.find_ticket_by_code("EXIST01").active is True
    assert env.transport.bodies[-1] == "Your message has been added to the existing complaint."


def test_follow_up_goes_to_most_recent_active_ticket() -> None:
    follow_up = "Still broken"
    env = build_intake(language=FakeLanguage(departments={follow_up: "Roads"}))
    env.store.create_site(known_site("SITE00001"))
    env.store.create_site(known_site("SITE00002"))
    env.store.create_ticket("SITE00001", CITIZEN, "OLDER01")
    env.store.create_ticket("SITE00002", CITIZEN, "NEWER01")

    env.intake.handle_message(text_message(follow_up), "Asha", BUSINESS_NUMBER)

    assert env.store.list_thread_messages("OLDER01") == []
    assert len(env.store.list_thread_messages("NEWER01")) == 1


def test_small_talk_sends_only_greeting() -> None:
    env = build_intake(language=FakeLanguage(departments={"hello": "SMALL_TALK"}))

    env.intake.handle_message(text_message("hello"), "Asha", BUSINESS_NUMBER)

    assert env.store.sites == {}
    assert env.store.tickets == []
    assert env.transport.bodies == ["Hello! How can I help you today?"]


def test_small_talk_is_not_appended_to_active_ticket() -> None:
    env = build_intake(language=FakeLanguage(departments={"thanks": "SMALL_TALK"}))
    env.store.create_site(known_site("PARK1234"))
    env.store.create_ticket("PARK1234", CITIZEN, "EXIST01")

    env.intake.handle_message(text_message("thanks"), "Asha", BUSINESS_NUMBER)

    assert env.store.list_thread_messages("EXIST01") == []


def test_irrelevant_question_is_answered_from_knowledge_base() -> None:
    question = "What are the ZP office timings?"
    env = build_intake(language=FakeLanguage(answers={question: "ZP offices are open 10 AM to 5 PM on weekdays."}))

    env.intake.handle_message(text_message(question), "Asha", BUSINESS_NUMBER)

    assert env.language.kb_languages == ["English"]
    assert env.transport.bodies == ["ZP offices are open 10 AM to 5 PM on weekdays."]


def test_marathi_text_gets_marathi_reply() -> None:
    greeting = "नमस्कार"
    env = build_intake(language=FakeLanguage(departments={greeting: "SMALL_TALK"}))

    env.intake.handle_message(text_message(greeting), "Asha", BUSINESS_NUMBER)

    assert env.language.kb_languages == ["Marathi"]
    assert env.transport.bodies == ["नमस्कार! तुम्हाला काय मदत हवी?"]


def test_unexpected_department_label_is_treated_as_department() -> None:
    complaint = "Stray dogs near the market"
    env = build_intake(language=FakeLanguage(departments={complaint: "Municipal Veterinary"}))

    env.intake.handle_message(text_message(complaint), "Asha", BUSINESS_NUMBER)

    record = list(env.store.sites.values())[0]
    assert record.department == "Municipal Veterinary"
    assert record.draft is True


def test_audio_complaint_is_routed_like_text() -> None:
    complaint = "Street light not working near the bus stand"
    language = FakeLanguage(
        departments={complaint: "Street Light"},
        transcript="the street light near the bus stand is off",
        audio_complaint=complaint,
    )
    env = build_intake(transport=FakeTransport(media={"AUD1": b"OggS..."}), language=language)

    env.intake.handle_message(audio_message("AUD1"), "Asha", BUSINESS_NUMBER)

    record = list(env.store.sites.values())[0]
    assert record.name == complaint
    assert record.department == "Street Light"
    assert env.transport.read == ["wamid.audio"]
    assert all(not path.exists() for path in language.transcribed_paths)


def test_audio_without_complaint_asks_to_type() -> None:
    language = FakeLanguage(transcript="just checking", audio_complaint="Irrelevant")
    env = build_intake(transport=FakeTransport(media={"AUD1": b"OggS..."}), language=language)

    env.intake.handle_message(audio_message("AUD1"), "Asha", BUSINESS_NUMBER)

    assert env.store.sites == {}
    assert env.transport.bodies == ["I couldn't find a complaint in your audio. Please type it."]


def test_audio_failure_apologises_and_cleans_up() -> None:
    language = FakeLanguage(fail_transcription=True)
    env = build_intake(transport=FakeTransport(media={"AUD1": b"OggS..."}), language=language)

    env.intake.handle_message(audio_message("AUD1"), "Asha", BUSINESS_NUMBER)

    assert len(language.transcribed_paths) == 1
    assert not language.transcribed_paths[0].exists()
    assert env.transport.bodies == ["Sorry, could not process audio. Please try again or type your issue."]


def test_image_with_active_ticket_is_attached_without_analysis() -> None:
    env = build_intake(transport=FakeTransport(media={"IMG1": b"\x89PNG"}))
    env.store.create_site(known_site("PARK1234"))
    env.store.create_ticket("PARK1234", CITIZEN, "EXIST01")

    env.intake.handle_message(image_message("IMG1"), "Asha", BUSINESS_NUMBER)

    thread = env.store.list_thread_messages("EXIST01")
    assert len(thread) == 1
    assert thread[0].modality == "image"
    assert thread[0].payload == {"image": {"url": "https://cdn.example/media/IMG1.png"}}
    assert env.transport.bodies == ["Your image is attached to the existing complaint."]


def test_image_complaint_creates_draft_with_photo() -> None:
    description = "Garbage is piled up next to the primary school"
    language = FakeLanguage(departments={description: "Waste Management"}, image_complaint=description)
    env = build_intake(transport=FakeTransport(media={"IMG1": b"\x89PNG"}), language=language)

    env.intake.handle_message(image_message("IMG1"), "Asha", BUSINESS_NUMBER)

    record = list(env.store.sites.values())[0]
    assert record.draft is True
    assert record.photo_url == "https://cdn.example/media/IMG1.png"
    assert env.store.tickets == []
    assert env.transport.bodies == [
        "Analyzing the image...",
        "This seems for the Waste Management department. Please share location.",
    ]


def test_image_without_issue_asks_for_clarification() -> None:
    env = build_intake(transport=FakeTransport(media={"IMG1": b"\x89PNG"}))

    env.intake.handle_message(image_message("IMG1"), "Asha", BUSINESS_NUMBER)

    assert env.store.sites == {}
    assert env.transport.bodies[-1] == "No municipal issue detected. Please clarify."


def test_image_fetch_failure_apologises() -> None:
    env = build_intake(transport=FakeTransport(media={}))

    env.intake.handle_message(image_message("MISSING"), "Asha", BUSINESS_NUMBER)

    assert env.transport.bodies == ["Error processing your image. Please try again."]


def test_send_failures_do_not_escape() -> None:
    env = build_intake(
        transport=FakeTransport(fail_sends=True), language=FakeLanguage(departments={"hi": "SMALL_TALK"})
    )

    env.intake.handle_message(text_message("hi"), "Asha", BUSINESS_NUMBER)

    assert env.transport.texts == []


def test_interactive_reply_is_logged_only() -> None:
    env = build_intake()
    message = WhatsAppMessage.model_validate(
        message_payload(
            "interactive",
            interactive={"type": "button_reply", "button_reply": {"id": "pass", "title": "Parking pass"}},
        )
    )

    env.intake.handle_message(message, "Asha", BUSINESS_NUMBER)

    assert env.transport.texts == []
    assert env.store.tickets == []


def test_text_without_body_is_malformed() -> None:
    env = build_intake()
    message = WhatsAppMessage.model_validate(message_payload("text"))

    with pytest.raises(MalformedEvent):
        env.intake.handle_message(message, "Asha", BUSINESS_NUMBER)


def test_handle_webhook_upserts_citizen_and_counts_statuses() -> None:
    env = build_intake(language=FakeLanguage(departments={"hi": "SMALL_TALK"}))
    body = WebhookBody.model_validate(
        webhook_body(
            message_payload("text", text={"body": "hi"}),
            statuses=[{"id": "wamid.0", "status": "delivered"}],
            name="Asha Patil",
        )
    )

    ack = env.intake.handle_webhook(body)

    assert (ack.messages, ack.statuses) == (1, 1)
    assert env.store.citizens[CITIZEN].name == "Asha Patil"


def test_unsupported_message_type_is_ignored() -> None:
    env = build_intake()
    message = WhatsAppMessage.model_validate(message_payload("sticker"))

    env.intake.handle_message(message, "Asha", BUSINESS_NUMBER)

    assert env.store.citizens == {}
    assert env.transport.texts == []


def test_citizen_lock_is_released_after_each_message() -> None:
    env = build_intake(language=FakeLanguage(departments={"hello": "SMALL_TALK"}))

    env.intake.handle_message(text_message("hello"), sender_name="Asha", recipient=BUSINESS_NUMBER)
    env.intake.handle_message(
        text_message("hello", sender="919800000002"), sender_name="Ravi", recipient=BUSINESS_NUMBER
    )

    assert len(env.intake.locks) == 0
