"""Mail and payment providers used by the relay endpoints.

Without a Resend API key the server uses LoggingMailProvider, which records
that a message would have been sent and reports success. That keeps the
forms usable in development without delivering anything.
"""
import html
import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Protocol

import httpx

from glimlach.config import Settings

logger = logging.getLogger(__name__)

SUBJECTS: Dict[str, str] = {
    "rsvp": "RSVP na wydarzenie",
    "sponsor": "Zapytanie o sponsoring",
    "donation_in_kind": "Darowizna rzeczowa",
    "volunteer": "Zgłoszenie wolontariusza",
}
DEFAULT_SUBJECT = "Wiadomość z formularza"
VOLUNTEER_SUBJECT = "Nowe zgłoszenie wolontariusza"


class MailDeliveryError(Exception):
    """The mail provider did not accept a message"""


@dataclass(frozen=True)
class MailMessage:
    sender: str
    to: List[str]
    subject: str
    text: Optional[str] = None
    html: Optional[str] = None
    reply_to: Optional[str] = None


class MailProvider(Protocol):
    async def send(self, message: MailMessage) -> None:
        """Deliver ``message`` or raise MailDeliveryError."""
        ...


class PaymentProvider(Protocol):
    async def create_checkout(self, amount: float, locale: str) -> str:
        """Open a checkout session and return the URL to redirect to."""
        ...


class LoggingMailProvider:
    """Logs each message instead of delivering it"""

    async def send(self, message: MailMessage) -> None:
        logger.info(
            f"Mail delivery disabled, not sending '{message.subject}' to {', '.join(message.to)}"
        )


@dataclass
class ResendMailProvider:
    """Delivers mail through the Resend HTTP API"""
    api_key: str
    api_url: str = "https://api.resend.com/emails"
    client: Optional[httpx.AsyncClient] = field(default=None, repr=False)

    def build_body(self, message: MailMessage) -> Dict[str, Any]:
        body: Dict[str, Any] = {
            "from": message.sender,
            "to": message.to,
            "subject": message.subject,
        }
        if message.html is not None:
            body["html"] = message.html
        if message.text is not None:
            body["text"] = message.text
        if message.reply_to:
            body["reply_to"] = message.reply_to
        return body

    async def _post(self, body: Dict[str, Any]) -> httpx.Response:
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }
        if self.client is not None:
            return await self.client.post(self.api_url, headers=headers, json=body)
        async with httpx.AsyncClient() as client:
            return await client.post(self.api_url, headers=headers, json=body)

    async def send(self, message: MailMessage) -> None:
        try:
            response = await self._post(self.build_body(message))
        except httpx.HTTPError as e:
            logger.error(f"Resend request failed: {e}")
            raise MailDeliveryError(str(e) or "Mail provider unreachable") from e

        if not 200 <= response.status_code < 300:
            error_msg = provider_error_message(response)
            logger.error(f"Failed to send email: {response.status_code} - {error_msg}")
            raise MailDeliveryError(error_msg)

        logger.info(f"Email '{message.subject}' accepted by Resend")


def provider_error_message(response: httpx.Response) -> str:
    """The ``message`` of a Resend error body, or the HTTP status line"""
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict) and isinstance(body.get("message"), str):
        return body["message"]
    return f"HTTP {response.status_code}"


def mail_provider_from_settings(settings: Settings) -> MailProvider:
    if settings.resend_api_key:
        return ResendMailProvider(api_key=settings.resend_api_key, api_url=settings.resend_api_url)
    logger.warning("RESEND_API_KEY not set, mail will only be logged")
    return LoggingMailProvider()


def subject_for(form_type: Optional[str]) -> str:
    return SUBJECTS.get(form_type or "", DEFAULT_SUBJECT)


def render_submission_text(payload: Mapping[str, Any]) -> str:
    return json.dumps(payload, indent=2, ensure_ascii=False)


def render_volunteer_html(application: Mapping[str, Any]) -> str:
    """HTML summary of a volunteer application; every value is escaped"""
    def value(key: str) -> str:
        raw = application.get(key)
        if raw is None or raw == "":
            return "-"
        return html.escape(str(raw))

    roles = [str(role) for role in application.get("roles") or []]
    other_role = application.get("otherRole")
    if other_role:
        roles.append(str(other_role))

    rows = [
        ("Imię i nazwisko", value("fullName")),
        ("Wiek", value("age")),
        ("Miasto", value("city")),
        ("Email", value("email")),
        ("Telefon/WhatsApp", value("phone")),
        ("Dostępność", value("availability")),
        ("Rola", html.escape(", ".join(roles)) or "-"),
        ("Doświadczenie", value("experience")),
        ("Zgoda na udział w wydarzeniach", "TAK" if application.get("consentEvents") else "NIE"),
        ("Zgoda RODO", "TAK" if application.get("consentRODO") else "NIE"),
        ("Newsletter", "TAK" if application.get("consentNewsletter") else "NIE"),
    ]
    lines = [f"<h2>{VOLUNTEER_SUBJECT}</h2>"]
    lines.extend(f"<p><b>{label}:</b> {text}</p>" for label, text in rows)
    return "\n".join(lines)
