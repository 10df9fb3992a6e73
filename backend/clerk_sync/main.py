import logging

from clerk_sync.core.config import Settings, get_settings
from clerk_sync.db.session import SessionLocal
from clerk_sync.middleware.body_size import BodySizeLimitMiddleware
from clerk_sync.services import decoder, dispatcher
from clerk_sync.services.applier import UserProjectionApplier
from clerk_sync.services.errors import DecodeError, StoreError, VerificationError
from clerk_sync.services.svix_verify import SvixHeaders, SvixVerifier
from fastapi import Depends, FastAPI, HTTPException, Request, Response, status
from fastapi.responses import JSONResponse, PlainTextResponse
from sqlalchemy.orm import Session
import sqlalchemy.exc

settings = get_settings()
logging.basicConfig(level=settings.log_level.upper())
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Clerk User Sync",
    description="Receives Clerk user webhooks and projects them into the user store",
    version="1.0.0",
)

app.add_middleware(BodySizeLimitMiddleware, max_bytes=settings.max_body_bytes)


# ---------- dependencies ----------
def db_session():
    try:
        db: Session = SessionLocal()
        try:
            yield db
        finally:
            db.close()
    except sqlalchemy.exc.DBAPIError as e:
        logger.error(f"Database error: {e}")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Database connection failed",
        )


def get_verifier(settings: Settings = Depends(get_settings)) -> SvixVerifier:
    return SvixVerifier(
        settings.clerk_webhook_secret, tolerance=settings.webhook_tolerance_seconds
    )


@app.get("/health", include_in_schema=False)
async def health(settings: Settings = Depends(get_settings)):
    return {
        "status": "ok",
        "webhook_secret_configured": bool(settings.clerk_webhook_secret),
    }


# ---------- clerk webhooks ----------
@app.post("/clerk-users-webhook")
async def clerk_users_webhook(
    request: Request,
    db: Session = Depends(db_session),
    verifier: SvixVerifier = Depends(get_verifier),
) -> Response:
    logger.info("Received webhook request")
    raw = await request.body()

    try:
        headers = SvixHeaders.from_mapping(request.headers)
        verified = verifier.verify(raw, headers)
        event = decoder.decode(verified)
    except (VerificationError, DecodeError) as e:
        # The response stays generic; only the log says which check failed.
        logger.warning(f"Rejected webhook: {type(e).__name__}: {e}")
        return PlainTextResponse("Invalid webhook request", status_code=400)

    logger.info(
        f"Processing webhook event {event.type} for user ID: {event.external_id} "
        f"(message {verified.message_id})"
    )
    try:
        outcome = dispatcher.dispatch(event, UserProjectionApplier(db))
    except DecodeError as e:
        logger.warning(f"Rejected webhook: {type(e).__name__}: {e}")
        return PlainTextResponse("Invalid webhook request", status_code=400)
    except StoreError as e:
        logger.exception(f"Error processing webhook {verified.message_id}: {e}")
        return _error_response(str(e))
    except Exception as e:
        logger.exception(f"Unexpected error processing webhook {verified.message_id}")
        return _error_response(str(e) or type(e).__name__)

    logger.info(f"Webhook {verified.message_id} processed: {outcome.value}")
    return PlainTextResponse("Webhook processed successfully", status_code=200)


def _error_response(message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": "Error processing webhook", "message": message},
    )
