"""FastAPI app factory."""

from __future__ import annotations

import logging

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from palmsight import __version__
from palmsight.config import settings
from palmsight.engine.errors import InvalidImageError, RulesFormatError
from palmsight.engine.pipeline import load_transforms

load_dotenv()

logging.basicConfig(
    level=getattr(logging, settings.palmsight_log_level.upper(), logging.INFO),
    format="%(asctime)s %(name)s %(levelname)s %(message)s",
)


def create_app() -> FastAPI:
    app = FastAPI(
        title="PalmSight",
        description="Palm line detection and rule-based reading",
        version=__version__,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Import all transform modules to trigger registration
    load_transforms()

    from palmsight.api.router import api_router

    app.include_router(api_router)

    @app.exception_handler(InvalidImageError)
    async def _invalid_image(request: Request, exc: InvalidImageError) -> JSONResponse:
        return JSONResponse(status_code=422, content={"detail": str(exc)})

    @app.exception_handler(RulesFormatError)
    async def _bad_rules(request: Request, exc: RulesFormatError) -> JSONResponse:
        return JSONResponse(status_code=400, content={"detail": str(exc)})

    return app


app = create_app()


def run() -> None:
    """Console entry point: serve the app with uvicorn."""
    import uvicorn

    uvicorn.run("palmsight.main:app", host=settings.palmsight_host, port=settings.palmsight_port)
