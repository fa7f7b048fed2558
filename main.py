"""Chirp - accounts and social graph API."""

import logging
import time

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from app.config import get_settings
from app.errors import ValidationError

# Import all models so relationship() targets resolve
from app.models.micropost import Micropost  # noqa: F401
from app.models.relationship import Relationship  # noqa: F401
from app.models.user import User  # noqa: F401
from app.routers import auth_router, users_router

# Logging
logger = logging.getLogger("chirp")
logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

for warning in get_settings().validate():
    logger.warning(warning)

app = FastAPI(title="Chirp", version="0.1.0")


# --- Audit logging middleware ---
class AuditLogMiddleware(BaseHTTPMiddleware):
    AUDIT_PATHS = {"/api/v1/auth/", "/api/v1/users/me"}

    async def dispatch(self, request: Request, call_next) -> Response:
        start = time.time()
        response = await call_next(request)
        duration_ms = (time.time() - start) * 1000

        # Log account-changing operations
        path = request.url.path
        method = request.method
        if method in ("POST", "PATCH", "DELETE") and any(path.startswith(p) for p in self.AUDIT_PATHS):
            logger.info(
                "AUDIT %s %s -> %d (%.0fms) from %s",
                method,
                path,
                response.status_code,
                duration_ms,
                request.client.host if request.client else "unknown",
            )

        return response


app.add_middleware(AuditLogMiddleware)

# API routers
app.include_router(auth_router)
app.include_router(users_router)


@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
    """Return per-field validation messages."""
    logger.info("Validation failed on %s: %s", request.url.path, exc.message)
    return JSONResponse(status_code=422, content=exc.to_response())


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Return HTTP errors as JSON."""
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail}, headers=exc.headers)


# --- Health check ---
@app.get("/api/health")
def health_check() -> dict:
    """Health check endpoint."""
    return {"status": "ok", "app": "chirp", "version": "0.1.0"}
