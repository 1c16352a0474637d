#!/usr/bin/env python3
"""Fest Registry - registration, teams, payments and check-in API"""

import uvicorn
from fastapi import FastAPI
from uvicorn.middleware.proxy_headers import ProxyHeadersMiddleware

from fest_registry.config import config
from fest_registry.logging_config import get_logger, setup_logging
from fest_registry.routers.checkin import router as checkin_router
from fest_registry.routers.errors import register_error_handlers
from fest_registry.routers.events import router as events_router
from fest_registry.routers.health import health
from fest_registry.routers.payments import router as payments_router
from fest_registry.routers.registrations import router as registrations_router

# Configure logging (INFO -> stdout, WARNING/ERROR -> stderr)
setup_logging()
logger = get_logger(__name__)


# Create FastAPI app
app = FastAPI(
    title="Fest Registry",
    description="College fest event registration with teams, payments and check-in",
    version="1.0.0",
)

# Trust proxy headers from the load balancer terminating HTTPS
app.add_middleware(ProxyHeadersMiddleware, trusted_hosts="*")

# Domain errors -> HTTP status codes
register_error_handlers(app)

# Include routers
app.include_router(health)
app.include_router(events_router)
app.include_router(registrations_router)
app.include_router(payments_router)
app.include_router(checkin_router)


if __name__ == "__main__":
    port = config.get("port")
    logger.info(f"Starting Fest Registry on 0.0.0.0:{port}")
    logger.info(f"Health check available at /health")

    try:
        uvicorn.run(
            app, host="0.0.0.0", port=port, log_level=config["log_level"].lower()
        )
    except Exception as e:
        logger.error(f"Failed to start server: {e}")
        raise
