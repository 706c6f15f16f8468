"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text

from filementor import __version__
from filementor.api.v1.router import api_router
from filementor.config import get_settings
from filementor.database import engine
from filementor.errors import FileMentorError, UpstreamError
from filementor.services.llm.factory import get_llm_provider

settings = get_settings()

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler."""
    async with engine.begin() as conn:
        await conn.execute(text("SELECT 1"))

    app.state.llm = get_llm_provider(settings)
    logger.info("Using LLM provider %s", app.state.llm.name())

    yield

    await engine.dispose()


app = FastAPI(
    title="FileMentor",
    description="Chat with and analyse your documents",
    version=__version__,
    lifespan=lifespan,
    debug=settings.debug,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(FileMentorError)
async def filementor_exception_handler(request: Request, exc: FileMentorError) -> JSONResponse:
    """Map domain errors to their status code and payload."""
    content = exc.to_dict()
    if isinstance(exc, UpstreamError):
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        if settings.debug and exc.__cause__ is not None:
            content["detail"] = str(exc.__cause__)
    return JSONResponse(status_code=exc.status_code, content=content, headers=exc.headers)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Missing or malformed fields are a 400 with the first problem as message."""
    errors = exc.errors()
    first = errors[0] if errors else {}
    field = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = first.get("msg", "Invalid request")
    if field:
        message = f"{field}: {message}"
    return JSONResponse(
        status_code=400,
        content={"message": message, "errors": jsonable_encoder(errors)},
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Global exception handler."""
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    if settings.debug:
        return JSONResponse(
            status_code=500,
            content={"message": "Internal server error", "detail": str(exc), "type": type(exc).__name__},
        )
    return JSONResponse(
        status_code=500,
        content={"message": "Internal server error"},
    )


app.include_router(api_router, prefix="/api/v1")


@app.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint."""
    return {"status": "healthy"}
