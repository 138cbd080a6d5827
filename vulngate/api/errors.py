"""Unified error handling: ServiceError / ConfigurationError / validation → JSON."""

from __future__ import annotations

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from vulngate.core.exceptions import ConfigurationError
from vulngate.engines.gate.cache import PropertyStoreError
from vulngate.services import NotFoundError, ServiceError, ValidationError

_STATUS_MAP: dict[type[ServiceError], int] = {
    NotFoundError: 404,
    ValidationError: 422,
}

log = structlog.get_logger("vulngate.api")


async def _service_error_handler(_request: Request, exc: ServiceError) -> JSONResponse:
    status = 500
    for cls in type(exc).__mro__:
        if cls in _STATUS_MAP:
            status = _STATUS_MAP[cls]
            break
    return JSONResponse(status_code=status, content={"detail": str(exc)})


async def _configuration_error_handler(
    _request: Request, exc: ConfigurationError
) -> JSONResponse:
    return JSONResponse(status_code=500, content={"detail": str(exc)})


async def _store_error_handler(_request: Request, exc: PropertyStoreError) -> JSONResponse:
    log.error("api.property_store_failed", error=str(exc))
    return JSONResponse(status_code=500, content={"detail": "artifact properties are unavailable"})


async def _validation_error_handler(
    _request: Request, exc: RequestValidationError
) -> JSONResponse:
    errors = exc.errors()
    messages = []
    for err in errors:
        loc = " → ".join(str(part) for part in err["loc"])
        messages.append(f"{loc}: {err['msg']}")
    return JSONResponse(
        status_code=422,
        content={"detail": "; ".join(messages)},
    )


def register_error_handlers(app: FastAPI) -> None:
    """Register exception handlers on the app."""
    app.add_exception_handler(ServiceError, _service_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(ConfigurationError, _configuration_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(PropertyStoreError, _store_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, _validation_error_handler)  # type: ignore[arg-type]
