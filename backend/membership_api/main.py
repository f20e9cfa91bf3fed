"""
Membership API - Main entry point.

Manages recurring memberships and their billing periods:
- POST   /memberships                 create a membership with its periods
- GET    /memberships                 list memberships with their periods
- POST   /memberships/{id}/terminate  terminate a membership
- DELETE /memberships/{id}            delete a membership
- GET    /api/health                  health check

Error bodies follow the format existing clients use: {"message": "..."}.
"""
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from membership_api.core.config import settings
from membership_api.core.exceptions import MembershipError, MembershipValidationError
from membership_api.db.base import init_db
from membership_api.api.v1 import memberships_router, health_router

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan - startup and shutdown."""
    if settings.CREATE_TABLES_ON_STARTUP:
        await init_db()
    yield


app = FastAPI(
    title=settings.APP_NAME,
    version="1.0.0",
    description="Membership management: memberships with auto-generated billing periods.",
    lifespan=lifespan,
    docs_url="/api/docs" if settings.DEBUG else None,
    redoc_url="/api/redoc" if settings.DEBUG else None,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ============================================================================
# ROUTES
# ============================================================================

# Health - /api/health
app.include_router(
    health_router,
    prefix="/api",
    tags=["health"]
)

# Memberships - /memberships
app.include_router(
    memberships_router,
    prefix="/memberships",
    tags=["memberships"]
)


# ============================================================================
# ERROR HANDLERS
# ============================================================================

@app.exception_handler(MembershipError)
async def membership_error_handler(request: Request, exc: MembershipError):
    """Render domain errors as {"message": ...}."""
    logger.warning(f"{request.method} {request.url.path} rejected: {exc.message}")
    content = {"message": exc.message}
    if isinstance(exc, MembershipValidationError) and settings.VALIDATION_REPORT_ALL_ERRORS:
        content["errors"] = exc.codes
    return JSONResponse(status_code=exc.status_code, content=content)


@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(request: Request, exc: RequestValidationError):
    """
    Requests FastAPI cannot parse (malformed JSON, non-integer ids).

    A body that is not JSON carries none of the mandatory fields.
    """
    logger.warning(f"{request.method} {request.url.path} invalid request: {exc.errors()}")
    if any(error.get("loc", ("",))[0] == "body" for error in exc.errors()):
        message = "missingMandatoryFields"
    else:
        message = "Invalid request parameters"
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"message": message}
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Global exception handler."""
    logger.exception(f"{request.method} {request.url.path} failed unexpectedly")
    if settings.DEBUG:
        return JSONResponse(
            status_code=500,
            content={"detail": str(exc)}
        )
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error"}
    )


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "membership_api.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG
    )
