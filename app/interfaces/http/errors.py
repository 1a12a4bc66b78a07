"""Translate skin store errors into HTTP responses.

Only the error kind and a short message leave the process; tracebacks and
driver errors stay in the log.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from app.core.identity import UnauthenticatedError
from app.modules.skins import SkinError
from app.schemas import ErrorResponse

logger = logging.getLogger(__name__)

STATUS_BY_KIND: dict[str, int] = {
    "validation": 422,
    "quota_exceeded": status.HTTP_409_CONFLICT,
    "not_found": status.HTTP_404_NOT_FOUND,
    "forbidden": status.HTTP_403_FORBIDDEN,
    "storage": status.HTTP_500_INTERNAL_SERVER_ERROR,
    "unavailable": status.HTTP_503_SERVICE_UNAVAILABLE,
    "unauthenticated": status.HTTP_401_UNAUTHORIZED,
}

# messages for kinds whose detail may carry internal information
_GENERIC_DETAIL = {
    "storage": "存储服务异常",
    "unavailable": "服务暂不可用，请稍后重试",
}


def status_for(exc: SkinError | UnauthenticatedError) -> int:
    return STATUS_BY_KIND.get(exc.kind, status.HTTP_500_INTERNAL_SERVER_ERROR)


def error_response(exc: SkinError | UnauthenticatedError) -> JSONResponse:
    code = status_for(exc)
    detail = _GENERIC_DETAIL.get(exc.kind) or str(exc) or exc.kind
    headers = {"WWW-Authenticate": "Bearer"} if code == status.HTTP_401_UNAUTHORIZED else None
    body = ErrorResponse(error=exc.kind, detail=detail)
    return JSONResponse(status_code=code, content=body.model_dump(), headers=headers)


async def _handle_skin_error(request: Request, exc: SkinError) -> JSONResponse:
    if status_for(exc) >= 500:
        logger.error("skin request failed path=%s kind=%s", request.url.path, exc.kind, exc_info=exc)
    return error_response(exc)


async def _handle_unauthenticated(request: Request, exc: UnauthenticatedError) -> JSONResponse:
    return error_response(exc)


def install_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(SkinError, _handle_skin_error)
    app.add_exception_handler(UnauthenticatedError, _handle_unauthenticated)


__all__ = ["STATUS_BY_KIND", "error_response", "install_error_handlers", "status_for"]
