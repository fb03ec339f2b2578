"""
Assistant Relay - FastAPI Application

Relays Slack conversations to an OpenAI assistant:
- Slack Events API webhook with signature verification
- Per-conversation assistant sessions that survive restarts
- Web search escalation when the assistant lacks current knowledge
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

import httpx
import structlog
import uvicorn
from fastapi import FastAPI
from prometheus_client import make_asgi_app

from assistant_relay import __version__
from assistant_relay.api.middleware import RequestIDMiddleware
from assistant_relay.api.routes import health
from assistant_relay.clients import AssistantClient, SearchClient, SlackClient
from assistant_relay.config import Settings, get_settings
from assistant_relay.conversation.handler import build_conversation_handler
from assistant_relay.kernel.errors import UpstreamError
from assistant_relay.kernel.http.errors import register_exception_handlers
from assistant_relay.storage.kv import build_key_value_store
from assistant_relay.webhooks import webhook_router

# Map log level string to logging constant
_LOG_LEVEL_MAP = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
    "critical": logging.CRITICAL,
}


def configure_logging(settings: Settings) -> None:
    """Configure structured logging."""
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.JSONRenderer()
            if settings.log_format == "json"
            else structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            _LOG_LEVEL_MAP.get(settings.log_level.lower(), logging.INFO)
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


configure_logging(get_settings())

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan - startup and shutdown."""
    settings = get_settings()

    logger.info(
        "Starting Assistant Relay",
        version=__version__,
        environment=settings.environment,
        session_store_backend=settings.session_store_backend,
    )

    http_client = httpx.AsyncClient(timeout=settings.http_timeout_seconds)
    slack = SlackClient.from_settings(settings)
    assistant = AssistantClient.from_settings(settings)
    search = SearchClient.from_settings(settings, http_client)
    store = build_key_value_store(settings)

    try:
        app.state.assistant_id = await assistant.ensure_assistant(settings)
    except UpstreamError as e:
        # Stay up so the webhook keeps acknowledging; /ready reports degraded.
        logger.error("Failed to resolve assistant", error_code=e.code, error=e.meta)
        app.state.assistant_id = None

    handler = build_conversation_handler(
        settings,
        slack=slack,
        assistant=assistant,
        search=search,
        store=store,
    )
    await handler.sessions.load()
    app.state.conversation_handler = handler

    yield

    logger.info("Shutting down Assistant Relay")
    await http_client.aclose()
    await store.close()


def create_app() -> FastAPI:
    app = FastAPI(
        title="Assistant Relay",
        description="Relays Slack conversations to an OpenAI assistant with web search escalation",
        version=__version__,
        lifespan=lifespan,
    )

    app.add_middleware(RequestIDMiddleware)
    register_exception_handlers(app)

    # Prometheus metrics endpoint
    app.mount("/metrics", make_asgi_app())

    app.include_router(health.router, tags=["Health"])
    app.include_router(webhook_router, prefix="/api/v1")
    return app


app = create_app()


def run() -> None:
    """Console entry point."""
    settings = get_settings()
    uvicorn.run(
        "assistant_relay.api.main:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )
