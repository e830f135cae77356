"""Exception handlers mapping InvalidQuery to HTTP 400 responses."""

from __future__ import annotations

from typing import TYPE_CHECKING

from starlette.responses import JSONResponse

from ...exceptions import InvalidQuery

if TYPE_CHECKING:
    from fastapi import FastAPI, Request


async def invalid_query_handler(request: Request, exc: Exception) -> JSONResponse:
    if not isinstance(exc, InvalidQuery):
        raise exc
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(InvalidQuery, invalid_query_handler)
