"""FastAPI dependency guarding the admin routes."""

import logging
from collections.abc import Callable
from typing import Annotated

from fastapi import Header, HTTPException, Request

from cafe_ordering_service.auth.api_key_validator import APIKeyValidator

logger = logging.getLogger(__name__)


def require_admin_key(validator: APIKeyValidator) -> Callable[..., str]:
    """Build a dependency that admits only requests carrying an admin key.

    Args:
        validator: Validator holding the configured admin keys

    Returns:
        A FastAPI dependency returning the accepted key

    The dependency raises a 401 HTTPException when the X-API-Key header is
    missing or the key is refused. Refusals are logged with the route they
    targeted, never with the key itself.
    """

    def admin_key(
        request: Request,
        x_api_key: Annotated[str | None, Header()] = None,
    ) -> str:
        if not x_api_key:
            logger.info("Admin request without API key", extra={"path": request.url.path})
            raise HTTPException(status_code=401, detail="Missing API key")

        if not validator.validate(x_api_key):
            logger.warning("Admin request with refused API key", extra={"path": request.url.path})
            raise HTTPException(status_code=401, detail="Invalid API key")

        return x_api_key

    return admin_key
