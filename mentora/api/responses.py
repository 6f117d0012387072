"""
JSON envelopes with explicit status codes.
List endpoints answer 200 or 202 depending on the resource family, so handlers
build their responses here instead of relying on response_model.
"""
from typing import Any, Optional

from bson import ObjectId
from fastapi import Query
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from mentora.services.pagination import PageRequest


def respond(status_code: int, document: Optional[dict] = None, **content: Any) -> JSONResponse:
    """Serialize a payload containing ObjectIds and datetimes. A bare document may be passed as-is."""
    body = {**(document or {}), **content}
    return JSONResponse(
        status_code=status_code,
        content=jsonable_encoder(body, custom_encoder={ObjectId: str})
    )


def internal_error(**extra: Any) -> JSONResponse:
    return respond(500, message="Internal server error", **extra)


def page_params(default_limit: int):
    """Dependency factory for `page` / `limit` query parameters."""
    def dependency(
        page: int = Query(1, ge=1),
        limit: int = Query(default_limit, ge=1)
    ) -> PageRequest:
        return PageRequest(page=page, limit=limit)

    return dependency
