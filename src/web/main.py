"""
FastAPI application for the electronic delivery export.

Environment Variables:
    DELIVERY_LOG_LEVEL: Log level (DEBUG/INFO/WARNING/ERROR, default: INFO)
"""

import logging
import os

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from src.web.routes import router

logging.basicConfig(
    level=os.getenv("DELIVERY_LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Electronic Delivery Export API",
    description="Builds PHOTO.XML / INDEX_D.XML delivery packages from project photos",
    version="1.0.0",
)

app.include_router(router, prefix="/api")


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """
    Report malformed request bodies as 400 with the standard error shape.

    Args:
        request: HTTP request
        exc: Request validation error

    Returns:
        JSON response with the first validation problem
    """
    errors = exc.errors()
    logger.warning(f"Invalid request to {request.url.path}: {errors}")
    first = errors[0] if errors else {}
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = first.get("msg", "invalid request")
    return JSONResponse(
        status_code=400,
        content={
            "success": False,
            "error": f"リクエストが不正です: {location} {message}".strip(),
            "processingTimeMs": 0,
        },
    )
