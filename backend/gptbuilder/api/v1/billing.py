"""Billing API endpoint — dispatches Stripe subscription and Connect actions."""

import json
import logging
from typing import Any

from fastapi import APIRouter, Depends, Request, Response
from sqlalchemy.ext.asyncio import AsyncSession

from gptbuilder.api.deps import get_db, get_origin, options_response
from gptbuilder.billing.actions import dispatch_action
from gptbuilder.errors import InternalError, InvalidArgumentError, ServiceError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/billing", tags=["billing"])


@router.options("")
async def billing_options() -> Response:
    """CORS preflight."""
    return options_response()


@router.post("")
async def billing_action(
    request: Request,
    db: AsyncSession = Depends(get_db),
    origin: str = Depends(get_origin),
) -> dict[str, Any]:
    """Run one billing action selected by the body's ``action`` field."""
    try:
        body = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise InvalidArgumentError("Request body must be valid JSON") from e

    try:
        result = await dispatch_action(db, body, origin)
        await db.commit()
    except ServiceError:
        raise
    except Exception as e:
        logger.exception("Stripe API error while handling billing action")
        raise InternalError(str(e)) from e

    return result.model_dump(by_alias=True, exclude_none=True)
