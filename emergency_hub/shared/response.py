from datetime import date, datetime
import decimal
from enum import Enum
import logging
import uuid

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from starlette.exceptions import HTTPException as StarletteHTTPException

from .errors import EmergencyHubError

logger = logging.getLogger("shared.response")


def serialize_data(obj):
    if isinstance(obj, BaseModel):
        return obj.model_dump(mode="json")
    elif isinstance(obj, dict):
        return {k: serialize_data(v) for k, v in obj.items()}
    elif isinstance(obj, (list, tuple)):
        return [serialize_data(item) for item in obj]
    elif isinstance(obj, Enum):
        return obj.value
    elif isinstance(obj, uuid.UUID):
        return str(obj)
    elif isinstance(obj, decimal.Decimal):
        return float(obj)
    elif isinstance(obj, (datetime, date)):
        return obj.isoformat()
    else:
        return obj


def success_response(data=None, message="Success"):
    """Return standardized success response"""
    return JSONResponse(
        status_code=200,
        content={
            "status": "success",
            "message": message,
            "data": serialize_data(data)
        }
    )


def error_response(message, status_code=400, data=None):
    """Return standardized error response"""
    return JSONResponse(
        status_code=status_code,
        content={
            "status": "error",
            "message": message,
            "data": serialize_data(data)
        }
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Render domain errors and request validation failures with the error envelope."""

    @app.exception_handler(EmergencyHubError)
    async def handle_domain_error(request: Request, exc: EmergencyHubError):
        logger.warning(f"{request.method} {request.url.path} failed: {exc.message}")
        return error_response(exc.message, exc.status_code, exc.data)

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_error(request: Request, exc: StarletteHTTPException):
        response = error_response(str(exc.detail), exc.status_code)
        if exc.headers:
            response.headers.update(exc.headers)
        return response

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(request: Request, exc: RequestValidationError):
        errors = [
            {"field": ".".join(str(p) for p in err.get("loc", ())), "message": err.get("msg")}
            for err in exc.errors()
        ]
        return error_response("Invalid request", 400, {"errors": errors})

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        logger.exception(f"Unhandled error on {request.method} {request.url.path}")
        return error_response("Something went wrong. Please try again.", 500)
