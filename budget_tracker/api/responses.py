"""
Response Envelope

Success: {"success": true, "data": ...}
Failure: {"error": "...", "kind": "...", "fields": {...}}

Pydantic models are encoded in JSON mode, so Decimal figures reach
clients as plain numbers.
"""

from typing import Any, Optional

from fastapi import status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse, Response

from budget_tracker.errors import FieldErrors


def ok(data: Any, status_code: int = status.HTTP_200_OK) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": True, "data": jsonable_encoder(data)},
    )


def created(data: Any) -> JSONResponse:
    return ok(data, status_code=status.HTTP_201_CREATED)


def no_content() -> Response:
    return Response(status_code=status.HTTP_204_NO_CONTENT)


def error(
    status_code: int,
    message: str,
    kind: str,
    fields: Optional[FieldErrors] = None,
) -> JSONResponse:
    body: dict[str, Any] = {"error": message, "kind": kind}
    if fields:
        body["fields"] = fields
    return JSONResponse(status_code=status_code, content=body)
