"""Main application entry point for the cafe ordering service.

This module provides the FastAPI application factory and configuration
for running the service locally or in production.
"""

import logging
import os

from fastapi import FastAPI

from cafe_ordering_service.auth.api_key_validator import DEVELOPMENT_API_KEY
from cafe_ordering_service.handlers.api_handler import create_app
from cafe_ordering_service.observability import configure_logging, setup_observability
from cafe_ordering_service.services.export_service import ExportService
from cafe_ordering_service.services.menu_service_client import MenuServiceClient
from cafe_ordering_service.services.order_service_client import OrderServiceClient
from cafe_ordering_service.services.ordering_service import OrderingService

logger = logging.getLogger(__name__)


def get_admin_api_keys() -> list[str]:
    """Read admin API keys from ADMIN_API_KEY (comma separated).

    Returns:
        List of keys; the development placeholder when none are configured
    """
    api_keys_str = os.getenv("ADMIN_API_KEY", "")
    api_keys = [key.strip() for key in api_keys_str.split(",") if key.strip()]

    if not api_keys:
        logger.warning("No ADMIN_API_KEY configured; admin endpoints only open in development")
        api_keys = [DEVELOPMENT_API_KEY]

    return api_keys


def create_ordering_service(order_client: OrderServiceClient) -> OrderingService:
    """Create the ordering service from environment settings.

    Args:
        order_client: Client for the order-persistence API

    Returns:
        Configured OrderingService
    """
    return OrderingService(
        order_client=order_client,
        max_table_number=int(os.getenv("MAX_TABLE_NUMBER", "30")),
        max_attempts=int(os.getenv("SUBMIT_MAX_ATTEMPTS", "3")),
        retry_delay_seconds=float(os.getenv("RETRY_DELAY_SECONDS", "1")),
    )


def create_application() -> FastAPI:
    """Create and configure the FastAPI application with all dependencies.

    This factory function:
    1. Configures logging
    2. Creates the backend API clients
    3. Creates services
    4. Creates the FastAPI app
    5. Sets up observability

    Returns:
        Configured FastAPI application instance

    Raises:
        ValueError: If BACKEND_API_URL is not set
    """
    configure_logging(os.getenv("LOG_LEVEL", "INFO"))

    logger.info("Initializing cafe ordering service...")

    backend_url = os.getenv("BACKEND_API_URL")
    if not backend_url:
        raise ValueError("BACKEND_API_URL must be set in environment")

    backend_api_key = os.getenv("BACKEND_API_KEY") or None
    timeout = float(os.getenv("BACKEND_TIMEOUT_SECONDS", "30"))

    menu_client = MenuServiceClient(base_url=backend_url, api_key=backend_api_key, timeout=timeout)
    order_client = OrderServiceClient(base_url=backend_url, api_key=backend_api_key, timeout=timeout)
    logger.info(f"Backend clients configured - URL: {backend_url}")

    ordering_service = create_ordering_service(order_client)
    export_service = ExportService(order_client=order_client)

    app = create_app(
        ordering_service=ordering_service,
        menu_client=menu_client,
        export_service=export_service,
        api_keys=get_admin_api_keys(),
    )

    setup_observability(app, enable_exporters=os.getenv("OTEL_EXPORTER_OTLP_ENDPOINT") is not None)

    logger.info("Cafe ordering service initialized successfully")
    return app


# Create the FastAPI application instance (only when not in test mode)
if os.getenv("ENVIRONMENT") != "test":  # noqa: SIM108
    app = create_application()
else:
    # Placeholder app for test imports
    app = FastAPI()


if __name__ == "__main__":
    import uvicorn

    port = int(os.getenv("PORT", "8000"))
    host = os.getenv("HOST", "0.0.0.0")

    logger.info(f"Starting development server on {host}:{port}")

    uvicorn.run(
        "main:app",
        host=host,
        port=port,
        reload=True,
        log_level=os.getenv("LOG_LEVEL", "info").lower(),
    )
