"""HTTP clients for the mail and payment relays.

A relay receives a finished SubmissionPayload and forwards it to a server
endpoint, which in turn talks to an email or payment provider. The relay
boundary is untrusted: a response may be a structured JSON error, an HTML
error page from a proxy, or nothing at all. ``send`` therefore never raises;
every outcome is a RelayResult.

Endpoints (relative to the configured base URL):

- ``/api/send-mail``  body ``{"type": form_id, "payload": {...}}``, success ``{"ok": true}``
- ``/api/volunteer``  body is the flat field mapping, success ``{"ok": true}``
- ``/api/checkout``   body ``{"amount": number}``, success ``{"url": "..."}``

Failure bodies look like ``{"error": "..."}``; that message becomes the
failure reason. Anything unrecognisable falls back to GENERIC_FAILURE_REASON.
"""

import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional, Protocol

import httpx

from glimlach.config import Settings, get_settings
from glimlach.payload import SubmissionPayload

logger = logging.getLogger(__name__)

GENERIC_FAILURE_REASON = "Submission failed"
INVALID_AMOUNT_REASON = "Invalid amount"


@dataclass(frozen=True)
class RelayResult:
    """Outcome of one relay call.

    Attributes:
        ok: Whether the relay accepted the submission
        reason: Human-readable failure reason (None on success)
        data: Decoded JSON object from the response, when there was one
        status_code: HTTP status, or None if no response was received
    """
    ok: bool
    reason: Optional[str] = None
    data: Optional[Dict[str, Any]] = None
    status_code: Optional[int] = None

    @classmethod
    def failure(cls, reason: Optional[str] = None, **kwargs: Any) -> "RelayResult":
        return cls(ok=False, reason=reason or GENERIC_FAILURE_REASON, **kwargs)


class Relay(Protocol):
    """Anything that can deliver a SubmissionPayload."""

    async def send(self, payload: SubmissionPayload) -> RelayResult:
        ...


def decode_body(text: Optional[str]) -> Optional[Any]:
    """Parse a response body as JSON, returning None for anything else.

    Examples:
        >>> decode_body('{"ok": true}')
        {'ok': True}
        >>> decode_body("<html><body>502 Bad Gateway</body></html>") is None
        True
    """
    if not text:
        return None
    try:
        return json.loads(text)
    except ValueError:
        return None


def error_reason(body: Any) -> str:
    """Extract the ``error`` message from a structured body, else the generic reason."""
    if isinstance(body, dict):
        error = body.get("error")
        if isinstance(error, str) and error.strip():
            return error
    return GENERIC_FAILURE_REASON


def interpret_response(
    status_code: int,
    text: Optional[str],
    success_key: Optional[str] = None,
) -> RelayResult:
    """Turn a raw HTTP response into a RelayResult.

    Args:
        status_code: HTTP status of the response
        text: Raw response body
        success_key: Key that must hold a string in a successful body
            (``"url"`` for the payment relay)

    Examples:
        >>> interpret_response(200, '{"ok": true}').ok
        True
        >>> interpret_response(500, '{"error": "Brak wymaganych pól"}').reason
        'Brak wymaganych pól'
        >>> interpret_response(500, "<h1>Internal Server Error</h1>").reason
        'Submission failed'
    """
    body = decode_body(text)
    data = body if isinstance(body, dict) else None

    if not 200 <= status_code < 300:
        return RelayResult.failure(error_reason(body), data=data, status_code=status_code)

    if data is None:
        # 2xx with a body that is not a JSON object
        return RelayResult.failure(status_code=status_code)

    if data.get("ok") is False:
        return RelayResult.failure(error_reason(data), data=data, status_code=status_code)

    if success_key is not None and not isinstance(data.get(success_key), str):
        return RelayResult.failure(data=data, status_code=status_code)

    return RelayResult(ok=True, data=data, status_code=status_code)


class HttpRelay:
    """Base class for relays that POST JSON to one endpoint.

    Subclasses define ``path`` and ``build_body``. An ``httpx.AsyncClient``
    may be injected (tests pass one backed by ``httpx.MockTransport``);
    otherwise a short-lived client is created per call.
    """

    path: str = ""
    success_key: Optional[str] = None

    def __init__(
        self,
        base_url: str,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = 10.0,
    ):
        self.url = base_url.rstrip("/") + self.path
        self.timeout = timeout
        self._client = client

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None, **kwargs: Any):
        settings = settings or get_settings()
        return cls(settings.relay_base_url, timeout=settings.relay_timeout_sec, **kwargs)

    def build_body(self, payload: SubmissionPayload) -> Dict[str, Any]:
        raise NotImplementedError

    async def _post(self, body: Dict[str, Any]) -> httpx.Response:
        if self._client is not None:
            return await self._client.post(self.url, json=body)
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            return await client.post(self.url, json=body)

    async def send(self, payload: SubmissionPayload) -> RelayResult:
        try:
            body = self.build_body(payload)
        except (KeyError, TypeError, ValueError) as exc:
            logger.warning(f"Relay body for form '{payload.form_id}' rejected: {exc}")
            return RelayResult.failure(str(exc) or None)

        try:
            response = await self._post(body)
        except httpx.HTTPError as exc:
            logger.warning(
                f"Relay request to {self.url} failed for form '{payload.form_id}': "
                f"{type(exc).__name__}: {exc}"
            )
            return RelayResult.failure()

        result = interpret_response(response.status_code, response.text, self.success_key)
        if result.ok:
            logger.info(f"Relay accepted form '{payload.form_id}' ({response.status_code})")
        else:
            logger.warning(
                f"Relay rejected form '{payload.form_id}' ({response.status_code}): {result.reason}"
            )
        return result


class MailRelay(HttpRelay):
    """Relay for mail-style forms (RSVP, sponsor, donations, booking)."""

    path = "/api/send-mail"

    def build_body(self, payload: SubmissionPayload) -> Dict[str, Any]:
        return payload.to_dict()


class VolunteerRelay(HttpRelay):
    """Relay for the volunteer application, which posts the flat field mapping."""

    path = "/api/volunteer"

    def build_body(self, payload: SubmissionPayload) -> Dict[str, Any]:
        return payload.json_values()


class PaymentRelay(HttpRelay):
    """Relay that opens a checkout session; success carries a redirect ``url``.

    The payload must have an ``amount`` field holding a positive number as a
    string (as typed into a number input).
    """

    path = "/api/checkout"
    success_key = "url"

    def __init__(self, base_url: str, client: Optional[httpx.AsyncClient] = None,
                 timeout: float = 10.0, locale: Optional[str] = None):
        super().__init__(base_url, client=client, timeout=timeout)
        self.locale = locale

    def build_body(self, payload: SubmissionPayload) -> Dict[str, Any]:
        raw = payload.values.get("amount", "")
        try:
            amount = float(str(raw).replace(",", "."))
        except ValueError:
            raise ValueError(INVALID_AMOUNT_REASON) from None
        if not amount > 0:
            raise ValueError(INVALID_AMOUNT_REASON)
        body: Dict[str, Any] = {"amount": amount}
        if self.locale:
            body["locale"] = self.locale
        return body


__all__ = [
    "GENERIC_FAILURE_REASON",
    "INVALID_AMOUNT_REASON",
    "RelayResult",
    "Relay",
    "decode_body",
    "error_reason",
    "interpret_response",
    "HttpRelay",
    "MailRelay",
    "VolunteerRelay",
    "PaymentRelay",
]
