import json
import logging
from pathlib import Path

from openai import OpenAI, OpenAIError

from civicbot.config import Settings
from civicbot.errors import TransientIOFailure

from .knowledge_base import KNOWLEDGE_BASE

logger = logging.getLogger(__name__)

DEPARTMENTS = (
    "Education",
    "Primary School",
    "Hospital",
    "RTO",
    "Irrigation",
    "Water Conservation",
    "Administration",
    "Anti Corruption",
    "NHAI",
    "MSRDC",
    "MMRDA",
    "Metro",
    "CIDCO",
    "Housing",
    "MHADA",
    "Aadhaar",
    "PDS",
    "Food & Civil Supplies",
    "Environment",
    "Police",
    "Fire",
    "Water Supply",
    "Sewage",
    "Encroachment",
    "EGS",
    "MGNREGA",
    "Energy",
    "Electricity Board",
    "Public Works",
    "Roads",
    "Street Light",
    "Waste Management",
    "Drainage",
    "Agriculture",
    "Animal Husbandry",
    "Health",
    "Garden & Tree",
    "Property Tax",
    "Politician Bribe",
)


class LanguageService:
    """Thin wrapper over the OpenAI models used for intake.

    Every method returns the model's raw text; interpreting labels such as
    ``SMALL_TALK`` or ``NO_LOCATION`` is left to the caller.
    """

    def __init__(self, settings: Settings) -> None:
        self.api_key = settings.openai_api_key
        self.model = settings.llm_model
        self.vision_model = settings.vision_model
        self.transcribe_model = settings.transcribe_model
        self.organization = settings.organization_name

    def is_enabled(self) -> bool:
        return bool(self.api_key)

    def _client(self) -> OpenAI:
        if not self.is_enabled():
            raise TransientIOFailure("OPENAI_API_KEY is not configured")
        return OpenAI(api_key=self.api_key)

    def _respond(self, instructions: str, user_input, model: str | None = None, temperature: float = 0.2) -> str:
        client = self._client()
        try:
            response = client.responses.create(
                model=model or self.model,
                instructions=instructions,
                input=user_input,
                temperature=temperature,
                max_output_tokens=300,
            )
        except OpenAIError as exc:
            logger.error("OpenAI request failed: %s", exc)
            raise TransientIOFailure(f"Language model request failed: {exc}") from exc

        text = response.output_text if hasattr(response, "output_text") else ""
        return (text or "").strip()

    def classify_department(self, text: str) -> str:
        instructions = (
            f"You are a {self.organization} chatbot for government related infrastructure or services. "
            f"Possible departments: [{', '.join(DEPARTMENTS)}, etc.]. "
            'If the user text is small talk or a greeting, respond "SMALL_TALK". '
            "Otherwise, if it is about one of these departments, respond with exactly the department name, "
            'else respond "Irrelevant".'
        )
        return self._respond(instructions, text)

    def extract_location_phrase(self, text: str) -> str:
        instructions = (
            f"You are a bilingual location extraction system for {self.organization}. "
            "Return the recognized location if present, else 'NO_LOCATION'."
        )
        return self._respond(instructions, text, temperature=0.3)

    def answer_from_knowledge_base(self, text: str, language: str) -> str:
        instructions = (
            f"You are a {self.organization} chatbot with a knowledge base about {self.organization} "
            "and government schemes. Use the provided JSON knowledge to answer user queries in a short, "
            "friendly manner.\n"
            f"Knowledge Base (in JSON):\n{json.dumps(KNOWLEDGE_BASE, ensure_ascii=False)}\n\n"
            f"User language: {language}. Answer in {language} only. "
            "If the question is not covered, politely say you don't have the information yet. "
            "Keep the response short and natural."
        )
        return self._respond(instructions, text, temperature=0.4)

    def transcribe(self, audio_path: Path) -> str:
        client = self._client()
        try:
            with audio_path.open("rb") as audio_file:
                transcription = client.audio.transcriptions.create(model=self.transcribe_model, file=audio_file)
        except OpenAIError as exc:
            logger.error("OpenAI transcription failed: %s", exc)
            raise TransientIOFailure(f"Transcription failed: {exc}") from exc
        return (transcription.text or "").strip()

    def extract_complaint_from_audio(self, transcript: str) -> str:
        instructions = (
            f"You are a bilingual {self.organization} chatbot analyzing an audio transcript. "
            "If there is a complaint about government related infrastructure or services, respond with a "
            'single line complaint, else respond "Irrelevant".'
        )
        return self._respond(instructions, transcript, temperature=0.3)

    def extract_complaint_from_image(self, image_url: str) -> str:
        content = [
            {
                "role": "user",
                "content": [
                    {
                        "type": "input_text",
                        "text": (
                            "Write a single-sentence complaint about a government related infrastructure "
                            'or services issue in this image, or "Irrelevant".'
                        ),
                    },
                    {"type": "input_image", "image_url": image_url},
                ],
            }
        ]
        return self._respond(
            f"You review photos sent to the {self.organization} grievance desk.",
            content,
            model=self.vision_model,
        )
