from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, HTTPException
from fastapi.responses import JSONResponse

from fileshare.api.v1.router import router as v1_router
from fileshare.config import settings
from fileshare.dependencies.storage import build_storage_manager, close_storage_manager
from fileshare.logging_config import setup_logging
from fileshare.schemas.common import ErrorResponse

# Setup application logging
logger = setup_logging()


@asynccontextmanager
async def lifespan(app: FastAPI):
    # One storage manager for the process; backends hold their clients until shutdown
    app.state.storage_manager = build_storage_manager(settings)
    logger.info("Storage manager ready")
    try:
        yield
    finally:
        await close_storage_manager(app.state.storage_manager)


app = FastAPI(title="Fileshare API", lifespan=lifespan)

# All endpoints are served under /api/v1
app.include_router(v1_router, prefix="/api/v1")


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    """Unwrap the 'detail' field from HTTPException responses."""
    content = exc.detail

    if isinstance(content, dict):
        return JSONResponse(
            status_code=exc.status_code,
            content=content
        )

    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(
            error="Unauthorized" if exc.status_code == 401 else "Error",
            message=str(content),
        ).model_dump(),
    )


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception):
    # Log detailed error for debugging (includes stack trace)
    logger.error(
        f"Unhandled exception: {exc.__class__.__name__}: {str(exc)}",
        exc_info=True,
        extra={
            "path": request.url.path,
            "method": request.method,
        },
    )

    # Return safe, static message to client (no internal details exposed)
    return JSONResponse(
        status_code=500,
        content=ErrorResponse(
            error="Internal Server Error",
            message="An unexpected error occurred",
        ).model_dump(),
    )
