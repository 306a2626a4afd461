# File: campus_events/services/notification_service.py
"""Outbound notifications. Best-effort: failures are logged and never raised."""
import logging
from datetime import datetime
from typing import Callable, Optional
import requests
from fastapi import BackgroundTasks
from campus_events.core.clock import utcnow
from campus_events.core.config import settings
from campus_events.core.email_service import email_service
from campus_events.services.ticket_service import Ticket

logger = logging.getLogger(__name__)

ANNOUNCE_COLOR = 5814783


def dispatch(background_tasks: Optional[BackgroundTasks], fn: Callable, *args, **kwargs) -> None:
    """Run after the response when a request is in flight, inline otherwise."""
    if background_tasks is not None:
        background_tasks.add_task(fn, *args, **kwargs)
        return
    fn(*args, **kwargs)


def send_ticket_email(
    to_email: str,
    participant_name: str,
    event_name: str,
    ticket: Ticket,
    item_name: Optional[str] = None,
    quantity: Optional[int] = None,
    approved: bool = False,
) -> None:
    cid = f"ticket_qr_{ticket.ticket_id}"

    if approved:
        subject = f"Purchase approved - {event_name} - {ticket.ticket_id}"
        intro = f"Your payment for <strong>{event_name}</strong> was approved."
    elif item_name:
        subject = f"Purchase confirmation for {event_name} - {ticket.ticket_id}"
        intro = f"Thanks for your purchase at <strong>{event_name}</strong>."
    else:
        subject = f"Ticket for {event_name} - {ticket.ticket_id}"
        intro = f"You are registered for <strong>{event_name}</strong>."

    item_line = ""
    if item_name:
        item_line = f"<p>Item: {item_name} &times; {quantity or 1}</p>"

    html_content = f"""
    <html>
    <body style="font-family: Arial, sans-serif;">
        <p>Hi {participant_name},</p>
        <p>{intro}</p>
        {item_line}
        <p>Ticket ID: <strong>{ticket.ticket_id}</strong></p>
        <p><img src="cid:{cid}" alt="QR code" /></p>
        <p>Show this QR code at the venue.</p>
    </body>
    </html>
    """
    text_content = f"Hi {participant_name},\n\nTicket ID: {ticket.ticket_id}\nEvent: {event_name}\n"

    try:
        sent = email_service.send_email(
            to_emails=[to_email],
            subject=subject,
            html_content=html_content,
            text_content=text_content,
            inline_images={cid: ticket.qr_png},
        )
        if not sent:
            logger.error(f"Ticket email not delivered to {to_email} for ticket {ticket.ticket_id}")
    except Exception as e:
        logger.error(f"Error sending ticket email to {to_email}: {str(e)}")


def announce_event(
    webhook_url: Optional[str],
    event_id: int,
    event_name: str,
    description: Optional[str],
    event_type: str,
    start_date: datetime,
    registration_deadline: datetime,
) -> None:
    """Post a Discord-style embed to the organizer's webhook."""
    if not webhook_url:
        return

    embed = {
        "title": f"New Event Announced: {event_name}",
        "description": description or "No description provided.",
        "url": f"{settings.FRONTEND_URL}/events/{event_id}",
        "color": ANNOUNCE_COLOR,
        "fields": [
            {"name": "Date", "value": start_date.strftime("%Y-%m-%d"), "inline": True},
            {"name": "Type", "value": event_type, "inline": True},
            {"name": "Deadline", "value": registration_deadline.strftime("%Y-%m-%d"), "inline": True},
        ],
        "footer": {"text": "Register now!"},
        "timestamp": utcnow().isoformat(),
    }

    try:
        response = requests.post(
            webhook_url,
            json={"content": "A new event has been published!", "embeds": [embed]},
            timeout=settings.WEBHOOK_TIMEOUT,
        )
        response.raise_for_status()
        logger.info(f"Webhook announcement sent for event: {event_name}")
    except requests.exceptions.RequestException as e:
        logger.error(f"Failed to send webhook announcement for event {event_id}: {str(e)}")
