"""Relay server: receives finished form submissions and forwards them.

Endpoints:
    GET  /api/health     liveness check
    POST /api/send-mail  mail-style forms, body ``{"type": form_id, "payload": {...}}``
    POST /api/volunteer  volunteer application, body is the flat field mapping
    POST /api/checkout   payment session, body ``{"amount": number, "locale": "pl"}``

Run with ``glimlach-relay`` or ``uvicorn glimlach.server.app:app``.
"""
import logging
from datetime import datetime, timezone
from typing import Optional

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from glimlach.config import Settings, get_settings
from glimlach.relay import INVALID_AMOUNT_REASON
from glimlach.server.middleware import ErrorHandlerMiddleware, setup_cors
from glimlach.server.models import CheckoutRequest, MailRequest, VolunteerApplication
from glimlach.server.providers import (
    VOLUNTEER_SUBJECT,
    MailDeliveryError,
    MailMessage,
    MailProvider,
    PaymentProvider,
    mail_provider_from_settings,
    render_submission_text,
    render_volunteer_html,
    subject_for,
)

logger = logging.getLogger(__name__)

API_VERSION = "1.0"
MISSING_EMAIL_ERROR = "Brak adresu e-mail."
MAIL_SERVER_ERROR = "Błąd serwera podczas wysyłki e-mail."
MISSING_FIELDS_ERROR = "Brak wymaganych pól"
PAYMENTS_DISABLED_ERROR = "Payment integration not enabled."
INVALID_BODY_ERROR = "Invalid request body"

# 400 bodies for requests the request models reject
INVALID_BODY_RESPONSES = {
    "/api/send-mail": {"error": MISSING_EMAIL_ERROR},
    "/api/volunteer": {"ok": False, "error": MISSING_FIELDS_ERROR},
    "/api/checkout": {"error": INVALID_AMOUNT_REASON},
}


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_mail_provider(request: Request) -> MailProvider:
    return request.app.state.mail_provider


def get_payment_provider(request: Request) -> Optional[PaymentProvider]:
    return request.app.state.payment_provider


def create_app(
    settings: Optional[Settings] = None,
    mail_provider: Optional[MailProvider] = None,
    payment_provider: Optional[PaymentProvider] = None,
) -> FastAPI:
    """Build the relay application.

    Args:
        settings: Defaults to ``get_settings()``
        mail_provider: Defaults to Resend when an API key is configured,
            otherwise a provider that only logs
        payment_provider: Checkout backend; checkout answers 501 without one
            or while ``payments_enabled`` is off
    """
    settings = settings or get_settings()

    app = FastAPI(
        title="Glimlach Relay API",
        description="Form submission relay for the Schenk een Glimlach website",
        version=API_VERSION,
    )
    app.state.settings = settings
    app.state.mail_provider = mail_provider or mail_provider_from_settings(settings)
    app.state.payment_provider = payment_provider

    setup_cors(app, settings)
    app.add_middleware(ErrorHandlerMiddleware)

    @app.exception_handler(RequestValidationError)
    async def invalid_body_handler(request: Request, exc: RequestValidationError):
        """Answer malformed bodies with the endpoint's own 400 error"""
        path = request.url.path
        logger.warning(f"Rejected malformed body on {path}: {len(exc.errors())} error(s)")
        content = INVALID_BODY_RESPONSES.get(path, {"error": INVALID_BODY_ERROR})
        return JSONResponse(status_code=400, content=content)

    @app.get("/api/health")
    async def health_check():
        """Health check endpoint"""
        return {
            "status": "ok",
            "version": API_VERSION,
            "time": datetime.now(timezone.utc).isoformat(),
        }

    @app.post("/api/send-mail")
    async def send_mail(
        body: MailRequest,
        settings: Settings = Depends(get_app_settings),
        provider: MailProvider = Depends(get_mail_provider),
    ):
        """Forward a mail-style form to the foundation's inbox"""
        reply_to = body.submitter_email()
        if reply_to is None:
            return JSONResponse(status_code=400, content={"error": MISSING_EMAIL_ERROR})

        message = MailMessage(
            sender=settings.mail_from,
            to=[settings.mail_to],
            subject=subject_for(body.type),
            text=render_submission_text(body.payload or {}),
            reply_to=reply_to,
        )
        try:
            await provider.send(message)
        except MailDeliveryError as e:
            logger.error(f"Mail for form '{body.type}' not delivered: {e}")
            return JSONResponse(status_code=500, content={"error": MAIL_SERVER_ERROR})

        logger.info(f"Mail for form '{body.type}' sent")
        return {"ok": True}

    @app.post("/api/volunteer")
    async def volunteer(
        application: VolunteerApplication,
        settings: Settings = Depends(get_app_settings),
        provider: MailProvider = Depends(get_mail_provider),
    ):
        """Mail a volunteer application as an HTML summary"""
        if not application.is_complete():
            return JSONResponse(status_code=400, content={"ok": False, "error": MISSING_FIELDS_ERROR})

        message = MailMessage(
            sender=settings.mail_from,
            to=[settings.mail_to],
            subject=VOLUNTEER_SUBJECT,
            html=render_volunteer_html(application.model_dump()),
            reply_to=application.email or None,
        )
        try:
            await provider.send(message)
        except MailDeliveryError as e:
            logger.error(f"Volunteer application not delivered: {e}")
            return JSONResponse(status_code=500, content={"ok": False, "error": str(e)})

        logger.info("Volunteer application sent")
        return {"ok": True}

    @app.post("/api/checkout")
    async def checkout(
        body: CheckoutRequest,
        settings: Settings = Depends(get_app_settings),
        provider: Optional[PaymentProvider] = Depends(get_payment_provider),
    ):
        """Open a payment session for a donation"""
        amount = body.valid_amount()
        if amount is None:
            return JSONResponse(status_code=400, content={"error": INVALID_AMOUNT_REASON})

        if not settings.payments_enabled or provider is None:
            return JSONResponse(status_code=501, content={"error": PAYMENTS_DISABLED_ERROR})

        try:
            url = await provider.create_checkout(amount, body.locale or settings.default_locale)
        except Exception as e:
            logger.error(f"Checkout for {amount:.2f} failed: {e}")
            return JSONResponse(status_code=500, content={"error": str(e) or "Checkout failed"})

        logger.info(f"Checkout session created for {amount:.2f}")
        return {"url": url}

    return app


def main() -> None:
    """Run the relay server with uvicorn"""
    import uvicorn

    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
    uvicorn.run(create_app(), host="0.0.0.0", port=5000)


app = create_app()


if __name__ == "__main__":
    main()
