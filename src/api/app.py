"""FastAPI application for the coliving ledger API."""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from src.api.units import router as units_router
from src.services.errors import ColivingError, ValidationError, error_response

logger = logging.getLogger(__name__)

app = FastAPI(
    title="Coliving Ledger",
    description="Shared expenses, contribution shares and balances for coliving units",
    version="0.1.0",
)

# Web and mobile clients call the API from their own origins
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(units_router)


@app.exception_handler(ColivingError)
async def coliving_error_handler(request: Request, exc: ColivingError) -> JSONResponse:
    """Translate service errors into the standard error envelope."""
    if exc.http_status >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    else:
        logger.debug(
            "%s %s rejected: %s %s", request.method, request.url.path, exc.code, exc.message
        )
    return JSONResponse(status_code=exc.http_status, content=error_response(exc))


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed request bodies get the same envelope as service validation errors."""
    first = exc.errors()[0] if exc.errors() else {}
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = f"{location}: {first.get('msg', 'invalid value')}" if location else "Invalid request"
    error = ValidationError(message)
    return JSONResponse(status_code=error.http_status, content=error_response(error))


@app.get("/health")
async def health_check() -> dict:
    """Health check endpoint for monitoring."""
    return {"status": "ok"}


__all__ = ["app"]
