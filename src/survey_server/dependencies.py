"""FastAPI dependency injection — registry, renderer and caller identity."""

import hmac

from fastapi import Header, HTTPException, Request

from survey_engine.summary import SummaryRenderer
from survey_server.registry import SessionRegistry


# ------------------------------------------------------------------
# Shared objects, stashed on app.state during lifespan
# ------------------------------------------------------------------

def get_registry(request: Request) -> SessionRegistry:
    """Return the session registry singleton from ``app.state``."""
    return request.app.state.registry


def get_renderer(request: Request) -> SummaryRenderer:
    return request.app.state.renderer


# ------------------------------------------------------------------
# User identity, extracted from headers set by the gateway
# ------------------------------------------------------------------

async def get_user_id(
    request: Request,
    x_user_id: str | None = Header(None, alias="X-User-ID"),
    x_proxy_secret: str | None = Header(None, alias="X-Proxy-Secret"),
) -> str:
    """Extract user identity from the ``X-User-ID`` header.

    Returns 401 if the header is missing.  When ``TRUSTED_PROXY_SECRET``
    is configured, the request must also carry a matching
    ``X-Proxy-Secret`` header (403 otherwise).
    """
    if not x_user_id:
        raise HTTPException(status_code=401, detail="X-User-ID header is required")

    expected_secret: str | None = request.app.state.settings.trusted_proxy_secret
    if expected_secret:
        if not x_proxy_secret:
            raise HTTPException(
                status_code=403,
                detail="X-Proxy-Secret header is required",
            )
        # Constant-time comparison to prevent timing side-channels.
        if not hmac.compare_digest(x_proxy_secret, expected_secret):
            raise HTTPException(status_code=403, detail="Invalid proxy secret")

    return x_user_id


async def get_identity_claims(
    x_preferred_name: str | None = Header(None, alias="X-Preferred-Name"),
    x_user_email: str | None = Header(None, alias="X-User-Email"),
    x_user_name: str | None = Header(None, alias="X-User-Name"),
) -> dict[str, str] | None:
    """Identity claims forwarded by the gateway, or None if it sent none."""
    claims = {
        key: value
        for key, value in (
            ("preferredName", x_preferred_name),
            ("email", x_user_email),
            ("name", x_user_name),
        )
        if value
    }
    return claims or None
