import logging

import requests

from civicbot.config import Settings
from civicbot.errors import TransientIOFailure

logger = logging.getLogger(__name__)

GRAPH_BASE_URL = "https://graph.facebook.com"


class WhatsAppService:
    """WhatsApp Cloud API sender and media resolver."""

    def __init__(self, settings: Settings) -> None:
        self.token = settings.whatsapp_token
        self.phone_number_id = settings.whatsapp_phone_number_id
        self.api_version = settings.whatsapp_api_version
        self.timeout = settings.http_timeout_seconds

    @property
    def messages_url(self) -> str:
        return f"{GRAPH_BASE_URL}/{self.api_version}/{self.phone_number_id}/messages"

    def _headers(self) -> dict:
        return {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self.token}",
        }

    def _post(self, payload: dict) -> dict:
        try:
            response = requests.post(self.messages_url, json=payload, headers=self._headers(), timeout=self.timeout)
            response.raise_for_status()
        except requests.RequestException as exc:
            detail = exc.response.text if exc.response is not None else str(exc)
            raise TransientIOFailure(f"WhatsApp send failed: {detail}") from exc
        return response.json()

    def send_text(self, recipient: str, body: str) -> dict:
        result = self._post(
            {
                "messaging_product": "whatsapp",
                "recipient_type": "individual",
                "to": recipient,
                "type": "text",
                "text": {"body": body, "preview_url": False},
            }
        )
        logger.info("Sent text to %s: %s", recipient, body)
        return result

    def send_image(self, recipient: str, url: str, caption: str = "") -> dict:
        result = self._post(
            {
                "messaging_product": "whatsapp",
                "recipient_type": "individual",
                "to": recipient,
                "type": "image",
                "image": {"link": url, "caption": caption},
            }
        )
        logger.info("Sent image to %s", recipient)
        return result

    def send_structured(self, recipient: str, payload: dict) -> dict:
        # Reserved for button and list prompts; inbound interactive replies are only logged.
        result = self._post({"messaging_product": "whatsapp", "to": recipient, **payload})
        logger.info("Sent %s message to %s", payload.get("type", "structured"), recipient)
        return result

    def mark_as_read(self, message_id: str) -> dict:
        return self._post(
            {
                "messaging_product": "whatsapp",
                "status": "read",
                "message_id": message_id,
            }
        )

    def resolve_media_url(self, media_id: str) -> str:
        try:
            response = requests.get(
                f"{GRAPH_BASE_URL}/{self.api_version}/{media_id}",
                headers={"Authorization": f"Bearer {self.token}"},
                timeout=self.timeout,
            )
            response.raise_for_status()
            url = response.json().get("url", "")
        except (requests.RequestException, ValueError) as exc:
            raise TransientIOFailure(f"Media lookup failed for {media_id}: {exc}") from exc

        if not url:
            raise TransientIOFailure(f"Media {media_id} has no download url")
        return url

    def fetch_media(self, url: str) -> bytes:
        try:
            response = requests.get(url, headers={"Authorization": f"Bearer {self.token}"}, timeout=self.timeout)
            response.raise_for_status()
        except requests.RequestException as exc:
            raise TransientIOFailure(f"Media download failed: {exc}") from exc
        return response.content
