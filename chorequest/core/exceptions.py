from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger("chorequest.api.errors")


class ChoreQuestError(Exception):
    code = "CHOREQUEST_ERROR"
    status_code = status.HTTP_400_BAD_REQUEST

    def details(self) -> dict[str, Any] | None:
        return None


class NotFoundError(ChoreQuestError):
    code = "NOT_FOUND"
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, entity: str, entity_id: int) -> None:
        super().__init__(f"{entity.capitalize()} not found")
        self.entity = entity
        self.entity_id = entity_id

    def details(self) -> dict[str, Any]:
        return {"entity": self.entity, "id": self.entity_id}


class InvalidTransitionError(ChoreQuestError):
    """A chore status change that the lifecycle does not allow."""

    code = "INVALID_TRANSITION"
    status_code = status.HTTP_409_CONFLICT

    def __init__(self, chore_id: int | None, current: str, attempted: str) -> None:
        super().__init__(f"Cannot move chore from {current} to {attempted}")
        self.chore_id = chore_id
        self.current = current
        self.attempted = attempted

    def details(self) -> dict[str, Any]:
        return {"chore_id": self.chore_id, "current": self.current, "attempted": self.attempted}


class InsufficientPointsError(ChoreQuestError):
    code = "INSUFFICIENT_POINTS"
    status_code = status.HTTP_409_CONFLICT

    def __init__(self, kid_id: int | None, balance: int, cost: int) -> None:
        super().__init__(f"Needs {cost - balance} more points")
        self.kid_id = kid_id
        self.balance = balance
        self.cost = cost

    @property
    def shortfall(self) -> int:
        return self.cost - self.balance

    def details(self) -> dict[str, Any]:
        return {"kid_id": self.kid_id, "balance": self.balance, "cost": self.cost, "shortfall": self.shortfall}


_STATUS_CODE_TO_ERROR_CODE: dict[int, str] = {
    status.HTTP_400_BAD_REQUEST: "BAD_REQUEST",
    status.HTTP_404_NOT_FOUND: "NOT_FOUND",
    status.HTTP_409_CONFLICT: "CONFLICT",
    status.HTTP_422_UNPROCESSABLE_ENTITY: "VALIDATION_ERROR",
}


def _build_error(
    *,
    code: str,
    message: str,
    details: Any | None = None,
) -> dict[str, Any]:
    payload: dict[str, Any] = {"code": code, "message": message}
    if details is not None:
        payload["details"] = details
    return payload


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    code = _STATUS_CODE_TO_ERROR_CODE.get(exc.status_code, "HTTP_ERROR")
    message = "Request failed"
    details: Any | None = None

    if isinstance(exc.detail, str):
        message = exc.detail
    elif isinstance(exc.detail, Mapping):
        raw_code = exc.detail.get("code")
        raw_message = exc.detail.get("message")
        raw_details = exc.detail.get("details")
        if isinstance(raw_code, str) and raw_code:
            code = raw_code
        if isinstance(raw_message, str) and raw_message:
            message = raw_message
        if raw_details is not None:
            details = raw_details
    elif exc.detail is not None:
        details = exc.detail

    return JSONResponse(
        status_code=exc.status_code,
        content=_build_error(code=code, message=message, details=details),
    )


async def domain_exception_handler(request: Request, exc: ChoreQuestError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=_build_error(code=exc.code, message=str(exc), details=exc.details()),
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=_build_error(
            code="VALIDATION_ERROR",
            message="Validation failed",
            details=exc.errors(),
        ),
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(
        "unhandled_exception",
        extra={"request_id": getattr(request.state, "request_id", None), "route": request.url.path},
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=_build_error(code="INTERNAL_ERROR", message="Internal server error"),
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(ChoreQuestError, domain_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
