import logging
from datetime import UTC, datetime

from fastapi import Depends, FastAPI, Request
from fastapi.exception_handlers import http_exception_handler
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from payment_receiver.core.config import Settings, get_settings
from payment_receiver.core.errors import MethodNotAllowed, WebhookError
from payment_receiver.middleware.body_size import BodySizeLimitMiddleware
from payment_receiver.schemas.payment import HealthResponse, VerifyPaymentResponse
from payment_receiver.services.collaborators import Collaborators, logging_collaborators
from payment_receiver.services.webhook import WebhookHandler

logger = logging.getLogger(__name__)

app = FastAPI(
    title="Payment Webhook Receiver",
    description="Verifies payment provider webhooks and dispatches payment outcomes",
    version="1.0.0",
)

app.add_middleware(BodySizeLimitMiddleware)


@app.on_event("startup")
async def startup():
    """Build the configuration once so misconfiguration is reported at boot."""
    settings = get_settings()
    logger.info(
        "Payment webhook receiver starting (environment=%s, provider=%s)",
        settings.environment,
        settings.provider_base_url,
    )


@app.exception_handler(WebhookError)
async def webhook_error_handler(request: Request, exc: WebhookError):
    return JSONResponse(exc.to_dict(), status_code=exc.status_code, headers=exc.headers)


@app.exception_handler(StarletteHTTPException)
async def method_not_allowed_handler(request: Request, exc: StarletteHTTPException):
    if exc.status_code != 405:
        return await http_exception_handler(request, exc)
    allowed = (exc.headers or {}).get("Allow", "")
    error = MethodNotAllowed(f"Only {allowed} requests are accepted", headers=exc.headers)
    return await webhook_error_handler(request, error)


# ---------- dependencies ----------
def get_collaborators() -> Collaborators:
    return logging_collaborators()


def get_webhook_handler(
    settings: Settings = Depends(get_settings),
    collaborators: Collaborators = Depends(get_collaborators),
) -> WebhookHandler:
    return WebhookHandler(settings, collaborators)


# ---------- health ----------
@app.get("/health", response_model=HealthResponse)
async def health():
    return HealthResponse(timestamp=datetime.now(UTC))


# ---------- webhook ----------
@app.post(
    "/verify-payment",
    response_model=VerifyPaymentResponse,
    description="Receive a payment provider webhook, verify it and dispatch the outcome.",
)
async def verify_payment(
    request: Request,
    handler: WebhookHandler = Depends(get_webhook_handler),
):
    raw = await request.body()
    return await handler.handle(raw, request.headers)
