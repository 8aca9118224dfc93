"""
Port Booth — FastAPI application entry point.

Builds the gateway handle from configuration on startup and serves the
REST API for port mapping.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from api.routes import init_routes, router
from config import API_HOST, API_PORT, GATEWAY_ADDRESS, GATEWAY_CONTROL_URL, LOG_LEVEL
from igd.gateway import Gateway
from igd.models import SocketAddress

# --- Logging ---
logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


def build_gateway() -> Gateway | None:
    """Create the gateway handle from configuration, if one is configured."""
    if not GATEWAY_ADDRESS:
        return None
    return Gateway(addr=SocketAddress.parse(GATEWAY_ADDRESS), control_url=GATEWAY_CONTROL_URL)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Resolve the gateway and inject it into the routes."""
    logger.info("Starting Port Booth...")

    try:
        gateway = build_gateway()
    except ValueError as e:
        logger.error(f"Invalid gateway configuration: {e}", exc_info=True)
        raise

    init_routes(gateway)
    if gateway is None:
        logger.warning("No gateway configured (set PORT_BOOTH_GATEWAY_ADDRESS). API will answer 503.")
    else:
        logger.info(f"Port Booth ready — API: {API_HOST}:{API_PORT}, gateway: {gateway}")

    yield

    logger.info("Shutting down Port Booth...")


# --- FastAPI app ---
app = FastAPI(
    title="Port Booth",
    version="1.0.0",
    lifespan=lifespan,
)
app.include_router(router)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        app,
        host=API_HOST,
        port=API_PORT,
        log_level=LOG_LEVEL.lower(),
    )
