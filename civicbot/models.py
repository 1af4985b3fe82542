from pydantic import BaseModel, ConfigDict, Field


class WhatsAppText(BaseModel):
    body: str


class WhatsAppMedia(BaseModel):
    id: str
    mime_type: str = ""
    caption: str = ""


class WhatsAppLocation(BaseModel):
    latitude: float
    longitude: float
    name: str = ""
    address: str = ""


class WhatsAppMessage(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    sender: str = Field(..., alias="from")
    timestamp: str = ""
    type: str
    text: WhatsAppText | None = None
    audio: WhatsAppMedia | None = None
    image: WhatsAppMedia | None = None
    location: WhatsAppLocation | None = None
    interactive: dict | None = None


class WhatsAppProfile(BaseModel):
    name: str = ""


class WhatsAppContact(BaseModel):
    wa_id: str = ""
    profile: WhatsAppProfile = Field(default_factory=WhatsAppProfile)


class WhatsAppMetadata(BaseModel):
    display_phone_number: str = ""
    phone_number_id: str = ""


class WhatsAppStatus(BaseModel):
    id: str = ""
    status: str
    recipient_id: str = ""


class WhatsAppChangeValue(BaseModel):
    messaging_product: str = "whatsapp"
    metadata: WhatsAppMetadata = Field(default_factory=WhatsAppMetadata)
    contacts: list[WhatsAppContact] = Field(default_factory=list)
    messages: list[WhatsAppMessage] = Field(default_factory=list)
    statuses: list[WhatsAppStatus] = Field(default_factory=list)


class WhatsAppChange(BaseModel):
    field: str = "messages"
    value: WhatsAppChangeValue


class WhatsAppEntry(BaseModel):
    id: str = ""
    changes: list[WhatsAppChange] = Field(default_factory=list)


class WebhookBody(BaseModel):
    object: str
    entry: list[WhatsAppEntry] = Field(default_factory=list)


class WebhookAck(BaseModel):
    status: str
    messages: int = 0
    statuses: int = 0


class TicketResponse(BaseModel):
    ticket_code: str
    site_id: str
    citizen: str
    active: bool
    created_at: str


class ThreadMessageResponse(BaseModel):
    action: str
    sender: str
    recipient: str
    modality: str
    payload: dict
    created_at: str


class TicketThreadResponse(BaseModel):
    ticket: TicketResponse
    messages: list[ThreadMessageResponse]
