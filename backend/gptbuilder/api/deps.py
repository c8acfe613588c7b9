"""Shared API dependencies — single import point for all routers.

Re-exports the database session dependency and adds request helpers so that
router modules can import everything they need from one place::

    from gptbuilder.api.deps import get_db, get_origin
"""

from fastapi import Request, Response, status

from gptbuilder.config import settings
from gptbuilder.database import get_db

# Permissive CORS for bare OPTIONS requests; real preflights are answered by
# CORSMiddleware before they reach the routers.
CORS_HEADERS = {
    "Access-Control-Allow-Credentials": "true",
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET,OPTIONS,POST",
    "Access-Control-Allow-Headers": (
        "X-CSRF-Token, X-Requested-With, Accept, Accept-Version, Content-Length, "
        "Content-MD5, Content-Type, Date, X-Api-Version, Authorization"
    ),
}


def get_origin(request: Request) -> str:
    """Origin used to build redirect URLs (falls back to the frontend URL)."""
    return (request.headers.get("origin") or settings.frontend_url).rstrip("/")


def options_response() -> Response:
    """Empty 200 with permissive CORS headers."""
    return Response(status_code=status.HTTP_200_OK, headers=CORS_HEADERS)


__all__ = [
    "CORS_HEADERS",
    "get_db",
    "get_origin",
    "options_response",
]
