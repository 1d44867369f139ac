"""FastAPI application entrypoint."""

import logging
import time
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from src.core.config import settings
from src.core.database import ping_database
from src.core.exceptions import register_exception_handlers
from src.core.logging import configure_logging
from src.modules.appointments.router import router as appointments_router
from src.modules.auth.router import router as auth_router
from src.modules.notifications.whatsapp import WhatsAppNotifier
from src.modules.payments.broker import PaymentOrderBroker, RazorpayClient
from src.modules.users.router import router as users_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    razorpay_http = httpx.AsyncClient(
        base_url=settings.razorpay_api_base,
        timeout=settings.razorpay_timeout_seconds,
    )
    twilio_http = httpx.AsyncClient(base_url=settings.twilio_api_base, timeout=10.0)
    app.state.payment_broker = PaymentOrderBroker.from_settings(RazorpayClient.from_settings(razorpay_http))
    app.state.notifier = WhatsAppNotifier.from_settings(twilio_http)
    if not (settings.razorpay_key_id and settings.razorpay_key_secret):
        logger.warning("Razorpay credentials missing; online payment will be rejected")
    if not app.state.notifier.enabled:
        logger.warning("Twilio credentials invalid or missing; WhatsApp messages are disabled")
    logger.info("Application starting up; CORS origin %s", settings.allowed_origin)
    try:
        yield
    finally:
        await razorpay_http.aclose()
        await twilio_http.aclose()
        logger.info("Application shutting down")


def create_app() -> FastAPI:
    configure_logging(settings.log_level)
    app = FastAPI(
        title=settings.app_name,
        debug=settings.debug,
        version="0.1.0",
        lifespan=lifespan,
    )
    register_exception_handlers(app)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.allowed_origin],
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE"],
        allow_headers=["Content-Type", "Authorization"],
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        started = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - started) * 1000
        logger.info("%s %s -> %s (%.1f ms)", request.method, request.url.path, response.status_code, elapsed_ms)
        return response

    @app.get("/health", tags=["system"])
    async def health_check() -> dict[str, str]:
        database = "connected" if await ping_database() else "disconnected"
        return {"status": "ok", "database": database}

    app.include_router(auth_router)
    app.include_router(users_router)
    app.include_router(appointments_router)

    return app


app = create_app()
