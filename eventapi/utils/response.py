from typing import Any, List, Optional

from fastapi import Response
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse


def _envelope(data: Any, message: Optional[str]) -> dict:
    body = {"success": True, "data": jsonable_encoder(data, by_alias=True)}
    if message is not None:
        body["message"] = message
    return body


def ok(data: Any, message: Optional[str] = None) -> JSONResponse:
    return JSONResponse(status_code=200, content=_envelope(data, message))


def created(data: Any, message: Optional[str] = None) -> JSONResponse:
    return JSONResponse(status_code=201, content=_envelope(data, message))


def no_content() -> Response:
    return Response(status_code=204)


def failure(status_code: int, message: str, errors: Optional[List[Any]] = None) -> JSONResponse:
    body = {"success": False, "message": message}
    if errors:
        body["errors"] = jsonable_encoder(errors)
    return JSONResponse(status_code=status_code, content=body)
