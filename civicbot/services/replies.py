from typing import NamedTuple


class Reply(NamedTuple):
    localized: str
    default: str

    def format(self, **values: str) -> "Reply":
        return Reply(self.localized.format(**values), self.default.format(**values))


GREETING = Reply(
    "नमस्कार! तुम्हाला काय मदत हवी?",
    "Hello! How can I help you today?",
)
NEED_CLARIFICATION = Reply(
    "मला याची माहिती नाही. कृपया स्पष्ट करा.",
    "I don't have info on that. Could you clarify?",
)
UNABLE_TO_HELP = Reply(
    "क्षमस्व, सध्या मी तुम्हाला मदत करू शकत नाही. कृपया पुन्हा प्रयत्न करा.",
    "Sorry, I'm unable to help at this moment. Please try again later.",
)

KNOWN_SITE_ACTIVE_RECORD = "We have an active record for => {name}"
KNOWN_SITE_PHOTO_CAPTION = "Active record => {name}"
NEW_COMPLAINT_REGISTERED = Reply(
    "नवीन तक्रार तयार केली आहे: {code}. लवकरच उपाययोजना केली जाईल.",
    "A new complaint is registered: {code}. We'll address it soon.",
)
ALREADY_PENDING = Reply(
    "तुमची तक्रार आधीच प्रलंबित आहे. आम्ही त्यावर कार्य करत आहोत.",
    "You already have an active complaint. We're working on it!",
)
ADDED_TO_EXISTING = Reply(
    "तुमची माहिती विद्यमान तक्रारीत जोडली आहे.",
    "Your message has been added to the existing complaint.",
)
IMAGE_ADDED_TO_EXISTING = Reply(
    "हे छायाचित्र विद्यमान तक्रारीत जोडले आहे.",
    "Your image is attached to the existing complaint.",
)

ADDRESS_NOT_FOUND = Reply(
    "पत्ता शोधता आला नाही. कृपया लोकेशन पिन करा.",
    "Unable to find the address. Please share pinned location.",
)
GEOCODE_FAILED = Reply(
    "लोकेशन मिळू शकत नाही. कृपया पिन करा.",
    "Couldn't parse location. Please pin it.",
)
SHARE_LOCATION = Reply(
    "कृपया लोकेशन शेअर करा जेणेकरून {department} विभाग त्वरित मदत करू शकेल.",
    "Please share location so the {department} department can assist quickly.",
)
COMPLAINT_NOTED = Reply(
    "तुमची तक्रार नोंद झाली. लोकेशन आल्यानंतर पुढील कार्यवाही करु.",
    "Complaint noted. We'll proceed once we have your location.",
)
COMPLAINT_NOT_CREATED = Reply(
    "माफ करा, तक्रार तयार करता आली नाही. पुन्हा प्रयत्न करा.",
    "Sorry, couldn't create your complaint. Please try again later.",
)

AUDIO_NO_COMPLAINT = Reply(
    "तुमच्या ऑडिओत तक्रार आढळली नाही. कृपया लिखित स्वरूपात सांगा.",
    "I couldn't find a complaint in your audio. Please type it.",
)
AUDIO_FAILED = Reply(
    "माफ करा, ऑडिओ प्रक्रिया शक्य नाही. पुन्हा प्रयत्न करा किंवा मजकूरात सांगा.",
    "Sorry, could not process audio. Please try again or type your issue.",
)

IMAGE_ANALYZING = Reply("छायाचित्र तपासत आहे...", "Analyzing the image...")
IMAGE_NO_ISSUE = Reply(
    "मला यामध्ये झेडपी तक्रार दिसली नाही. कृपया स्पष्ट करा.",
    "No municipal issue detected. Please clarify.",
)
IMAGE_NOT_COMPLAINT = Reply(
    "ही माहिती झेडपी तक्रारीशी संबंधित नाही असे वाटते. कृपया स्पष्ट करा.",
    "Doesn't seem like a ZP Pune complaint. Please clarify.",
)
IMAGE_SHARE_LOCATION = Reply(
    "हे प्रकरण {department} विभागाशी संबंधित आहे. कृपया लोकेशन शेअर करा.",
    "This seems for the {department} department. Please share location.",
)
IMAGE_FAILED = Reply(
    "छायाचित्रावर प्रक्रिया करताना त्रुटी. पुन्हा प्रयत्न करा.",
    "Error processing your image. Please try again.",
)

LOCATION_RECEIVED = Reply(
    "तुमचे लोकेशन मिळाले. तक्रार (ID: {code}) बनली आहे.",
    "Location received. Complaint (ID: {code}) is created.",
)
NO_DRAFT_FOUND = Reply(
    "तुमची तात्पुरती तक्रार आढळली नाही. कृपया समस्या सांगा.",
    "No draft request found. Please describe your issue.",
)
LOCATION_FAILED = Reply(
    "लोकेशन प्रक्रिया करताना त्रुटी. पुन्हा प्रयत्न करा.",
    "Error processing location. Please try again.",
)
