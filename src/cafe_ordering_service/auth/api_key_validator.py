"""Admin key checks for the cashier and owner endpoints.

Marking an order paid and exporting the order history are gated by a
shared admin key sent in the X-API-Key header. When no key is configured
the service starts with a well-known placeholder so the admin views can be
tried locally; that placeholder only opens the admin endpoints while
ENVIRONMENT is "development".
"""

import logging
import os

logger = logging.getLogger(__name__)

DEVELOPMENT_API_KEY = "dummy-key-for-development"
DEVELOPMENT_ENVIRONMENT = "development"


class APIKeyValidator:
    """Decides whether a presented key grants admin access."""

    def __init__(self, api_keys: list[str], environment: str | None = None) -> None:
        """Initialize the validator.

        Args:
            api_keys: Admin keys accepted by this deployment
            environment: Deployment environment; read from ENVIRONMENT when omitted

        Raises:
            ValueError: If api_keys list is empty
        """
        if not api_keys:
            raise ValueError("At least one API key must be provided")

        self.api_keys = frozenset(api_keys)
        self.environment = (environment or os.getenv("ENVIRONMENT", DEVELOPMENT_ENVIRONMENT)).lower()

        if DEVELOPMENT_API_KEY in self.api_keys and not self.allows_placeholder:
            logger.warning(
                "Development admin key configured outside development; it will be refused",
                extra={"environment": self.environment},
            )

    @property
    def allows_placeholder(self) -> bool:
        return self.environment == DEVELOPMENT_ENVIRONMENT

    def validate(self, api_key: str) -> bool:
        """Check an admin key.

        Matching is exact and case-sensitive. The development placeholder is
        refused outside development even when it is in the configured set.
        """
        if api_key == DEVELOPMENT_API_KEY and not self.allows_placeholder:
            return False
        return api_key in self.api_keys
