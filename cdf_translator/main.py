"""CDF to Keptn translator - FastAPI application receiving CDF CloudEvents."""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

import uvicorn
from fastapi import FastAPI, HTTPException, Request, status
from fastapi.responses import JSONResponse

from cdf_translator.config import get_settings
from cdf_translator.errors import InvalidEventError
from cdf_translator.models.events import DispatchStatus, IncomingEvent
from cdf_translator.registry import EventHandlerRegistry, build_registry
from cdf_translator.senders.keptn import KeptnSender

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

# Global registry instance
registry: EventHandlerRegistry | None = None


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup/shutdown."""
    global registry

    settings = get_settings()

    # Configure logging level
    logging.getLogger().setLevel(settings.log_level.upper())

    logger.info(
        f"Configuration > Keptn endpoint: {settings.keptn_endpoint}, "
        f"Keptn API token: {settings.masked_api_token}"
    )

    sender = KeptnSender(
        endpoint=settings.keptn_endpoint,
        api_token=settings.keptn_api_token,
        timeout=settings.send_timeout,
    )

    try:
        registry = build_registry(settings, sender)
    except Exception as e:
        logger.exception(f"Failed to load routes config: {e}")
        registry = None

    logger.info(f"CDF to Keptn translator started on port {settings.port}")

    yield

    registry = None
    logger.info("CDF to Keptn translator stopped")


app = FastAPI(
    title="CDF to Keptn translator",
    description="Translates CDF delivery events into correlated Keptn events",
    version="0.1.0",
    lifespan=lifespan,
)


@app.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint."""
    return {"status": "healthy"}


@app.get("/routes")
async def list_routes() -> dict[str, dict[str, str]]:
    """List registered event types and their translators."""
    if not registry:
        return {"routes": {}}

    return {
        "routes": {
            event_type: registry.translator_for(event_type).name
            for event_type in registry.event_types
        }
    }


@app.post("/events")
async def receive_event(request: Request) -> JSONResponse:
    """Receive a CDF CloudEvent in binary or structured mode."""
    if not registry:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Registry not configured. Check the routes file.",
        )

    body = await request.body()
    try:
        event = IncomingEvent.from_http(request.headers, body)
    except InvalidEventError as e:
        logger.warning(f"Rejected request: {e}")
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid CloudEvent: {e}",
        )

    logger.info(f"Got an event: {event.type}")

    result = await registry.handle(event)
    content = result.model_dump(mode="json")

    if result.status == DispatchStatus.UNHANDLED:
        return JSONResponse(
            status_code=status.HTTP_200_OK,
            content={**content, "status": "discarded", "message": "No translator for event type"},
        )

    if result.status == DispatchStatus.BUILD_FAILED:
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={**content, "message": "Failed to build Keptn event"},
        )

    if result.status == DispatchStatus.SEND_FAILED:
        return JSONResponse(
            status_code=status.HTTP_502_BAD_GATEWAY,
            content={**content, "message": "Failed to send Keptn event"},
        )

    return JSONResponse(
        status_code=status.HTTP_200_OK,
        content={**content, "message": "Event translated successfully"},
    )


def run() -> None:
    """Run the application using uvicorn."""
    settings = get_settings()
    uvicorn.run(
        "cdf_translator.main:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
        reload=False,
    )


if __name__ == "__main__":
    run()
