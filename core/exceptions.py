"""
Exception definitions and FastAPI handlers.

Usage:
- Raise subclasses of `BaseAPIException` from providers/routers.
- Register `unified_api_exception_handler` + `generic_exception_handler` in FastAPI.
"""
from __future__ import annotations

import traceback
from typing import Optional

from fastapi import Request
from fastapi.responses import JSONResponse


class BaseAPIException(Exception):
    status_code: int = 500
    code: str = "INTERNAL_ERROR"
    message: str = "Internal server error."
    detail: str = ""

    def __init__(self, message: Optional[str] = None, detail: Optional[str] = None) -> None:
        if message:
            self.message = message
        if detail:
            self.detail = detail
        super().__init__(self.message)


# Service-level errors
class ServiceError(BaseAPIException):
    pass


class BrainNotInitializedError(ServiceError):
    status_code = 503
    code = "BRAIN_NOT_INITIALIZED"
    message = "Brain persistence has not been initialized."


# FastAPI handlers
async def unified_api_exception_handler(request: Request, exc: BaseAPIException):
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "code": exc.code,
            "message": exc.message,
            "detail": getattr(exc, "detail", None),
        },
    )


async def generic_exception_handler(request: Request, exc: Exception):
    traceback.print_exc()
    return JSONResponse(
        status_code=500,
        content={
            "code": "INTERNAL_SERVER_ERROR",
            "message": "Server error.",
            "detail": str(exc),
        },
    )


__all__ = [
    "BaseAPIException",
    "ServiceError",
    "BrainNotInitializedError",
    "unified_api_exception_handler",
    "generic_exception_handler",
]
