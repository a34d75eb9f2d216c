"""Promptforge: FastAPI Application.

This module defines the FastAPI application factory, all REST API routes,
and the ``main()`` CLI function that launches the uvicorn server.

Architecture
------------
- **Configuration** is a :class:`PromptforgeConfig` built once by ``main()``
  (or by a test) and passed to :func:`create_app`.
- **Request processing** is delegated to a
  :class:`~promptforge.core.orchestrator.RequestOrchestrator` stored on
  ``app.state`` during the lifespan startup.
- **Error mapping** converts core exceptions into JSON error responses with a
  ``detail`` field.

Endpoints
---------
========  ================================  ====================================
Method    Path                              Purpose
========  ================================  ====================================
GET       ``/api/health``                   Liveness check
POST      ``/api/requests``                 Create a pending request
POST      ``/api/requests/process``         Run an idea through the pipeline
GET       ``/api/requests``                 List requests, newest first
GET       ``/api/requests/{id}``            Single request
PATCH     ``/api/requests/{id}/status``     Manual status override
POST      ``/api/prompt/expand``            Preview the expanded prompt
POST      ``/api/images/generate``          Generate an image from a prompt
========  ================================  ====================================

Error Mapping
-------------
==================  ======
Exception           Status
==================  ======
ValidationError     400
NotFoundError       404
ConflictError       409
StorageError        500
GenerationError     502
==================  ======

Usage
-----
CLI (installed entry point)::

    promptforge

Direct invocation::

    python -m promptforge.api.main
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import APIRouter, Depends, FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from promptforge import __version__
from promptforge.api.models import (
    GenerateImageRequest,
    GenerationRequestResponse,
    IdeaRequest,
    StatusUpdateRequest,
)
from promptforge.core.config import PromptforgeConfig
from promptforge.core.errors import (
    ConflictError,
    GenerationError,
    NotFoundError,
    StorageError,
    ValidationError,
)
from promptforge.core.models import utc_now
from promptforge.core.orchestrator import RequestOrchestrator, build_orchestrator

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")


def get_orchestrator(request: Request) -> RequestOrchestrator:
    """Return the orchestrator created by the application lifespan."""
    return request.app.state.orchestrator


# ---------------------------------------------------------------------------
# Routes.
#
# Handlers are plain ``def`` functions: the orchestrator does blocking
# SQLite and HTTP work, so FastAPI runs them in its threadpool.
# ---------------------------------------------------------------------------


@router.get("/health")
def healthcheck() -> dict:
    """Return a liveness payload with the current server time."""
    return {"status": "ok", "timestamp": utc_now().isoformat()}


@router.post("/requests", status_code=201, response_model=GenerationRequestResponse)
def create_request(
    req: IdeaRequest,
    orchestrator: RequestOrchestrator = Depends(get_orchestrator),
) -> GenerationRequestResponse:
    """Create a ``pending`` request without processing it.

    Raises:
        ValidationError: (400) if the idea is blank after trimming.
    """
    record = orchestrator.create(req.user_idea)
    return GenerationRequestResponse.from_record(record)


@router.post("/requests/process", response_model=GenerationRequestResponse)
def process_request(
    req: IdeaRequest,
    orchestrator: RequestOrchestrator = Depends(get_orchestrator),
) -> GenerationRequestResponse:
    """Run an idea through expansion and generation.

    The response is always the persisted record in its terminal state;
    a failed expansion or generation shows up as ``status="failed"``
    rather than as an error response.
    """
    record = orchestrator.process(req.user_idea)
    return GenerationRequestResponse.from_record(record)


@router.get("/requests", response_model=list[GenerationRequestResponse])
def list_requests(
    orchestrator: RequestOrchestrator = Depends(get_orchestrator),
) -> list[GenerationRequestResponse]:
    """Return every request, newest first."""
    return [GenerationRequestResponse.from_record(r) for r in orchestrator.list_all()]


@router.get("/requests/{request_id}", response_model=GenerationRequestResponse)
def get_request(
    request_id: int,
    orchestrator: RequestOrchestrator = Depends(get_orchestrator),
) -> GenerationRequestResponse:
    """Return a single request by id.

    Raises:
        HTTPException: 404 if the request does not exist.
    """
    record = orchestrator.get_by_id(request_id)
    if record is None:
        raise HTTPException(status_code=404, detail="Request not found")
    return GenerationRequestResponse.from_record(record)


@router.patch("/requests/{request_id}/status", response_model=GenerationRequestResponse)
def update_request_status(
    request_id: int,
    req: StatusUpdateRequest,
    orchestrator: RequestOrchestrator = Depends(get_orchestrator),
) -> GenerationRequestResponse:
    """Apply a manual status override to a request.

    Only the fields present in the body are written.

    Raises:
        NotFoundError: (404) if the request does not exist.
        ValidationError: (400) if the result would be inconsistent.
    """
    record = orchestrator.set_status(request_id, req.to_status_update())
    return GenerationRequestResponse.from_record(record)


@router.post("/prompt/expand")
def expand_prompt(
    req: IdeaRequest,
    orchestrator: RequestOrchestrator = Depends(get_orchestrator),
) -> dict:
    """Preview the expanded prompt for an idea without creating a request."""
    return {"expanded_prompt": orchestrator.expand(req.user_idea)}


@router.post("/images/generate")
def generate_image(
    req: GenerateImageRequest,
    orchestrator: RequestOrchestrator = Depends(get_orchestrator),
) -> dict:
    """Generate an image for a prompt without creating a request.

    Raises:
        GenerationError: (502) if the image backend fails.
    """
    return {"image_url": orchestrator.generate(req.expanded_prompt)}


# ---------------------------------------------------------------------------
# Error mapping.
# ---------------------------------------------------------------------------

_ERROR_STATUS: tuple[tuple[type[Exception], int], ...] = (
    (ValidationError, 400),
    (NotFoundError, 404),
    (ConflictError, 409),
    (GenerationError, 502),
    (StorageError, 500),
)


def _error_handler(status_code: int):
    async def handler(request: Request, exc: Exception) -> JSONResponse:
        if status_code >= 500:
            logger.error(f"{request.method} {request.url.path} failed: {exc}")
        return JSONResponse(status_code=status_code, content={"detail": str(exc)})

    return handler


# ---------------------------------------------------------------------------
# Application factory.
# ---------------------------------------------------------------------------


def create_app(
    config: PromptforgeConfig,
    orchestrator: RequestOrchestrator | None = None,
) -> FastAPI:
    """Build the FastAPI application.

    Args:
        config: Application configuration.
        orchestrator: Pre-built orchestrator; when omitted one is built from
            *config* at startup.

    Returns:
        The configured FastAPI application.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        app.state.orchestrator = orchestrator or build_orchestrator(config)
        logger.info(f"Orchestrator ready ({config.image_backend} image backend)")
        yield

    app = FastAPI(
        title="Promptforge",
        description="Expand short ideas into prompts and track image generation requests.",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.config = config

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    for exc_type, status_code in _ERROR_STATUS:
        app.add_exception_handler(exc_type, _error_handler(status_code))

    app.include_router(router)
    return app


# ---------------------------------------------------------------------------
# CLI entry point.
# ---------------------------------------------------------------------------


def main() -> None:
    """Launch the uvicorn ASGI server.

    Reads host, port and log level from :class:`PromptforgeConfig` (which
    loads ``PROMPTFORGE_SERVER_HOST``, ``PROMPTFORGE_SERVER_PORT`` and
    ``PROMPTFORGE_LOG_LEVEL``).  Defaults to ``0.0.0.0:7860``.

    This function is registered as the ``promptforge`` console script in
    ``pyproject.toml``.
    """
    import uvicorn

    config = PromptforgeConfig()
    logging.basicConfig(
        level=config.log_level.upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    uvicorn.run(
        create_app(config),
        host=config.server_host,
        port=config.server_port,
    )


if __name__ == "__main__":
    main()
