"""Application bootstrap for the Memoir Echo API.

This module wires the FastAPI application, attaches middleware and error handlers, and exposes small lifecycle utilities.

Functions:
    lifespan(app: FastAPI): Configure logging, initialise database state, and build the provider client on startup.
    health_check(): Lightweight readiness check used by monitoring and local smoke tests.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from memoir.api import api_router
from memoir.core.config import get_settings
from memoir.core.errors import MemoirError, StorageError
from memoir.core.logging import setup_logging
from memoir.db.session import init_db
from memoir.services.openai_client import OpenAIService

settings = get_settings()
_LOGGER = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging(settings.log_level, json_output=settings.log_json)
    await init_db()
    app.state.openai_service = OpenAIService(settings=settings)
    if not app.state.openai_service.is_configured:
        _LOGGER.warning("OPENAI_API_KEY not set; chat will use lexical fallback and answers stay unindexed")
    yield


app = FastAPI(title=settings.app_name, version="0.1.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_router)


@app.exception_handler(StorageError)
@app.exception_handler(SQLAlchemyError)
async def storage_error_handler(request: Request, exc: Exception) -> JSONResponse:
    _LOGGER.error("Storage failure on %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content={"error": "db_error"})


@app.exception_handler(MemoirError)
async def domain_error_handler(request: Request, exc: MemoirError) -> JSONResponse:
    if exc.status_code >= 500:
        _LOGGER.warning("%s on %s %s: %s", type(exc).__name__, request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    problems = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ())[1:]) or "body"
        problems.append(f"{location}: {error.get('msg', 'invalid value')}")
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": "; ".join(problems) or "invalid request"},
    )


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"error": str(exc.detail)}, headers=exc.headers)


@app.get("/health")
async def health_check():
    return {"ok": True}
