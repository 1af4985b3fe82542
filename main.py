import logging
from typing import Any

from dotenv import load_dotenv
from fastapi import Body, FastAPI, HTTPException, Query, Request
from fastapi.exception_handlers import request_validation_exception_handler
from fastapi.exceptions import RequestValidationError
from fastapi.responses import FileResponse, JSONResponse, PlainTextResponse
from pydantic import ValidationError

from civicbot.config import Settings
from civicbot.errors import MalformedEvent
from civicbot.models import (
    ThreadMessageResponse,
    TicketResponse,
    TicketThreadResponse,
    WebhookAck,
    WebhookBody,
)
from civicbot.records import ThreadMessage, Ticket
from civicbot.services.complaint_store import PostgresComplaintStore
from civicbot.services.content_normalizer import ContentNormalizer
from civicbot.services.geocoding_service import GeocodingService
from civicbot.services.intake_service import IntakeService
from civicbot.services.intent_classifier import IntentClassifier
from civicbot.services.language_service import LanguageService
from civicbot.services.lifecycle_service import ComplaintLifecycle
from civicbot.services.media_storage_service import MediaStorageService
from civicbot.services.memory_store import InMemoryComplaintStore
from civicbot.services.response_composer import ResponseComposer
from civicbot.services.ticket_service import TicketService
from civicbot.services.whatsapp_service import WhatsAppService

load_dotenv()
settings = Settings.from_env()
logging.basicConfig(level=settings.log_level, format="%(asctime)s %(levelname)s %(name)s %(message)s")
logger = logging.getLogger("civicbot")


def build_store(config: Settings):
    if config.store_backend == "memory":
        return InMemoryComplaintStore()
    return PostgresComplaintStore(config)


app = FastAPI(title="Civicbot")
store = build_store(settings)
whatsapp_service = WhatsAppService(settings)
language_service = LanguageService(settings)
geocoding_service = GeocodingService(settings)
media_storage_service = MediaStorageService(settings)
response_composer = ResponseComposer(whatsapp_service)
ticket_service = TicketService(store, response_composer)
intake_service = IntakeService(
    store=store,
    transport=whatsapp_service,
    normalizer=ContentNormalizer(whatsapp_service, language_service, media_storage_service),
    classifier=IntentClassifier(store, language_service),
    tickets=ticket_service,
    lifecycle=ComplaintLifecycle(store, language_service, geocoding_service, ticket_service, response_composer),
    composer=response_composer,
    language=language_service,
)


def ticket_response(ticket: Ticket) -> TicketResponse:
    return TicketResponse(
        ticket_code=ticket.ticket_code,
        site_id=ticket.site_id,
        citizen=ticket.citizen,
        active=ticket.active,
        created_at=ticket.created_at.isoformat(),
    )


def thread_message_response(message: ThreadMessage) -> ThreadMessageResponse:
    return ThreadMessageResponse(
        action=message.action,
        sender=message.sender,
        recipient=message.recipient,
        modality=message.modality,
        payload=message.payload,
        created_at=message.created_at.isoformat(),
    )


@app.on_event("startup")
def startup_init() -> None:
    if isinstance(store, PostgresComplaintStore):
        store.init_schema()
    logger.info("%s chatbot is running", settings.organization_name)


@app.exception_handler(RequestValidationError)
async def webhook_validation_handler(request: Request, exc: RequestValidationError):
    # A webhook body that is not a JSON object is a malformed event.
    if request.url.path == "/webhook":
        logger.info("Rejected webhook body that is not a JSON object")
        return JSONResponse(status_code=404, content={"detail": "Not Found"})
    return await request_validation_exception_handler(request, exc)


@app.get("/")
def root() -> dict:
    return {"status": "ok", "service": "civicbot"}


@app.get("/health")
def health() -> dict:
    return {"health": "healthy"}


@app.get("/webhook", response_class=PlainTextResponse)
def verify_webhook(
    mode: str | None = Query(default=None, alias="hub.mode"),
    token: str | None = Query(default=None, alias="hub.verify_token"),
    challenge: str = Query(default="", alias="hub.challenge"),
) -> str:
    if not mode or not token:
        raise HTTPException(status_code=404, detail="Not Found")

    if mode == "subscribe" and settings.verify_token and token == settings.verify_token:
        logger.info("WEBHOOK_VERIFIED")
        return challenge

    raise HTTPException(status_code=403, detail="Verification failed")


@app.post("/webhook", response_model=WebhookAck)
def receive_webhook(payload: dict[str, Any] = Body(...)) -> WebhookAck:
    try:
        body = WebhookBody.model_validate(payload)
    except ValidationError:
        logger.info("Rejected webhook payload without expected structure")
        raise HTTPException(status_code=404, detail="Not Found")

    try:
        return intake_service.handle_webhook(body)
    except MalformedEvent as exc:
        logger.info("Malformed event => %s", exc)
        raise HTTPException(status_code=404, detail="Not Found")
    except Exception:
        logger.exception("Error in webhook handling")
        raise HTTPException(status_code=500, detail="Internal Server Error")


@app.get("/media/{filename}")
def media(filename: str) -> FileResponse:
    path = media_storage_service.resolve(filename)
    if path is None:
        raise HTTPException(status_code=404, detail="Media not found")
    return FileResponse(path)


@app.get("/api/v1/citizens/{address}/tickets", response_model=list[TicketResponse])
def list_citizen_tickets(address: str) -> list[TicketResponse]:
    return [ticket_response(ticket) for ticket in store.find_active_tickets(address)]


@app.get("/api/v1/tickets/{ticket_code}/thread", response_model=TicketThreadResponse)
def ticket_thread(ticket_code: str) -> TicketThreadResponse:
    ticket = store.find_ticket_by_code(ticket_code)
    if not ticket:
        raise HTTPException(status_code=404, detail="Ticket not found")

    return TicketThreadResponse(
        ticket=ticket_response(ticket),
        messages=[thread_message_response(item) for item in store.list_thread_messages(ticket_code)],
    )
