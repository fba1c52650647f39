from contextlib import asynccontextmanager
from fastapi import FastAPI

from app.infrastructure.db.pool import get_pool, close_pool
from app.infrastructure.email.http_smtp_adapter import HttpSmtpEmailAdapter
from app.infrastructure.http.client import (
    close_http_client,
    open_http_client,
    get_http_client,
)
from app.infrastructure.notifications.gateway import NotificationGateway
from app.infrastructure.redis_cache.pool import get_redis, close_redis
from app.infrastructure.sms.twilio_adapter import TwilioSmsAdapter
from app.logging import setup_logging
from app.presentation.api import api
from app.presentation.errors import register_exception_handlers
from app.settings import get_settings

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    # startup
    pool = get_pool()
    if not getattr(pool, "is_open", False):
        await pool.open()

    await open_http_client()

    get_redis()

    # Both channel adapters share the one HTTP client
    email_adapter = HttpSmtpEmailAdapter(
        base_url=settings.smtp_base_url,
        client=get_http_client(),
    )
    sms_adapter = TwilioSmsAdapter(
        account_sid=settings.twilio_account_sid,
        auth_token=settings.twilio_auth_token,
        from_number=settings.twilio_from_number,
        base_url=settings.twilio_base_url,
        client=get_http_client(),
    )
    app.state.notifier = NotificationGateway(email=email_adapter, sms=sms_adapter)

    try:
        yield
    finally:
        # shutdown
        await email_adapter.aclose()  # neither adapter closes the shared client
        await sms_adapter.aclose()
        await close_http_client()
        await close_redis()
        await close_pool()


def create_app() -> FastAPI:
    setup_logging(settings.log_level)
    app = FastAPI(title="Verification API", version="0.1.0", lifespan=lifespan)
    app.state.settings = settings
    register_exception_handlers(app)
    app.include_router(api)
    return app


app = create_app()
