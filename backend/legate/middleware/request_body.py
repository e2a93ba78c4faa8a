"""JSON body guard for write endpoints."""

import json
import logging
from typing import Any, Dict

from fastapi import HTTPException, Request, status

from legate.config import settings

logger = logging.getLogger(__name__)


async def read_json_body(request: Request) -> Dict[str, Any]:
    """
    Read the request body as a JSON object.

    Raises:
        HTTPException 415: Content-Type is not application/json
        HTTPException 413: body larger than MAX_JSON_BODY_BYTES
        HTTPException 400: body is not a JSON object
    """
    content_type = request.headers.get("content-type", "").lower()
    if "application/json" not in content_type:
        raise HTTPException(
            status_code=status.HTTP_415_UNSUPPORTED_MEDIA_TYPE,
            detail="Content-Type must be application/json.",
        )

    limit = settings.MAX_JSON_BODY_BYTES
    declared = request.headers.get("content-length")
    if declared and declared.isdigit() and int(declared) > limit:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail="Request body too large.",
        )

    raw = await request.body()
    if len(raw) > limit:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail="Request body too large.",
        )

    try:
        data = json.loads(raw) if raw else None
    except (ValueError, UnicodeDecodeError):
        logger.debug("Rejected malformed JSON body on %s", request.url.path)
        data = None

    if not isinstance(data, dict):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid JSON")
    return data
