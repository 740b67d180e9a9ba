"""SourceBrief — FastAPI application entry point."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Literal

from fastapi import Depends, FastAPI, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from sourcebrief.config import Settings, settings
from sourcebrief.db.factory import create_store
from sourcebrief.health import HealthReport, HealthReporter
from sourcebrief.models.brief import Brief
from sourcebrief.orchestrator.errors import BriefError, InvalidRequestError
from sourcebrief.orchestrator.generator import BriefGenerator, select_backend
from sourcebrief.orchestrator.validator import FieldViolation, format_path

logger = logging.getLogger(__name__)


# --- Request / Response models ---


class GenerateRequest(BaseModel):
    urls: list[str]


class GenerateResponse(BaseModel):
    id: str
    brief: Brief


class SaveRequest(BaseModel):
    id: str | None = None


class SaveResponse(BaseModel):
    success: bool
    brief: Brief


# --- Dependencies ---


def get_generator(request: Request) -> BriefGenerator:
    return request.app.state.generator


def get_reporter(request: Request) -> HealthReporter:
    return request.app.state.reporter


# --- Error handlers ---


async def brief_error_handler(request: Request, exc: BriefError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s (%s)", request.method, request.url.path, exc.kind, exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_payload())


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    violations = []
    for err in exc.errors():
        loc = list(err.get("loc", ()))
        if loc and loc[0] == "body":
            loc = loc[1:]
        violations.append(
            FieldViolation(path=format_path(loc), reason=err.get("msg", ""), code=err.get("type", ""))
        )
    error = InvalidRequestError("Request failed validation", violations)
    return JSONResponse(status_code=error.status_code, content=error.to_payload())


# --- Application ---


def create_app(config: Settings | None = None) -> FastAPI:
    """Build the API. The store is created and connected in the lifespan."""
    config = config or settings

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        store = create_store(config)
        await store.connect()
        backend = select_backend(config)
        logger.info(
            "Using %s store and %s backend",
            store.name,
            backend.name if backend else "no",
        )
        app.state.store = store
        app.state.generator = BriefGenerator(store, backend)
        app.state.reporter = HealthReporter(store, config)
        try:
            yield
        finally:
            await store.close()

    app = FastAPI(
        title="SourceBrief",
        description="Research briefs synthesized from a list of URLs",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(BriefError, brief_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)

    # --- Routes ---

    @app.post(
        "/api/generate",
        status_code=201,
        response_model=GenerateResponse,
        response_model_exclude_none=True,
    )
    async def generate_brief(
        req: GenerateRequest, generator: BriefGenerator = Depends(get_generator)
    ):
        """Generate a brief from a list of URLs and store it."""
        brief = await generator.generate(req.urls)
        return GenerateResponse(id=brief.id, brief=brief)

    @app.get("/api/briefs")
    async def get_briefs(
        id: str | None = None,
        saved: bool = False,
        limit: int = Query(default=config.recent_limit, ge=1, le=50),
        view: Literal["full", "metadata"] = "full",
        generator: BriefGenerator = Depends(get_generator),
    ):
        """A single brief by id, the saved briefs, or the most recent briefs."""
        if id:
            brief = await generator.get(id)
            return brief.to_json()

        briefs = await generator.list_saved() if saved else await generator.list_recent(limit)
        if view == "metadata":
            return [b.metadata().model_dump() for b in briefs]
        return [b.to_json() for b in briefs]

    @app.put("/api/briefs", response_model=SaveResponse, response_model_exclude_none=True)
    async def save_brief(req: SaveRequest, generator: BriefGenerator = Depends(get_generator)):
        """Mark a brief as saved. Saving twice keeps the first timestamp."""
        if not req.id:
            raise InvalidRequestError("Brief ID is required", title="Brief ID is required")
        brief = await generator.mark_saved(req.id)
        return SaveResponse(success=True, brief=brief)

    @app.get("/api/status", response_model=HealthReport)
    async def status(reporter: HealthReporter = Depends(get_reporter)):
        return await reporter.check()

    return app


app = create_app()
