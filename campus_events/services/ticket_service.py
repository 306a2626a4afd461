# File: campus_events/services/ticket_service.py
import io
import json
import uuid
import logging
from typing import Optional
import qrcode
from pydantic import BaseModel
from campus_events.core.config import settings
from campus_events.models.registration import Registration

logger = logging.getLogger(__name__)

QR_CONTENT_TYPE = "image/png"


class Ticket(BaseModel):
    ticket_id: str
    payload: str
    qr_png: bytes
    content_type: str = QR_CONTENT_TYPE


def build_payload(ticket_id: str, event_id: int, participant_id: int, item_id: Optional[int] = None) -> str:
    data = {
        "ticketId": ticket_id,
        "eventId": event_id,
        "participantId": participant_id,
    }
    if item_id is not None:
        data["itemId"] = item_id
    return json.dumps(data)


def decode_payload(payload: str) -> Optional[dict]:
    """Parse QR text back into a dict; None if it is not a ticket payload."""
    try:
        data = json.loads(payload)
    except (TypeError, ValueError):
        return None
    if not isinstance(data, dict) or not data.get("ticketId"):
        return None
    return data


def render_qr(payload: str) -> bytes:
    qr = qrcode.QRCode(
        version=1,
        box_size=settings.TICKET_QR_BOX_SIZE,
        border=settings.TICKET_QR_BORDER,
    )
    qr.add_data(payload)
    qr.make(fit=True)

    img = qr.make_image(fill_color="black", back_color="white")
    buffer = io.BytesIO()
    img.save(buffer, format="PNG")
    return buffer.getvalue()


def issue_ticket(event_id: int, participant_id: int, item_id: Optional[int] = None) -> Ticket:
    """New globally unique ticket id plus its QR image."""
    ticket_id = str(uuid.uuid4())
    payload = build_payload(ticket_id, event_id, participant_id, item_id)
    ticket = Ticket(ticket_id=ticket_id, payload=payload, qr_png=render_qr(payload))
    logger.info(f"Ticket issued: {ticket_id} event={event_id} participant={participant_id}")
    return ticket


def attach_ticket(registration: Registration, ticket: Ticket) -> None:
    # Overwrites any previous ticket; the old id stops resolving.
    registration.ticket_id = ticket.ticket_id
    registration.ticket_qr = ticket.qr_png
    registration.ticket_qr_content_type = ticket.content_type
