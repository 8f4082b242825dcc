"""FastAPI app factory."""

from __future__ import annotations

import logging

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from boundsight.config import settings

load_dotenv()

logging.basicConfig(
    level=getattr(logging, settings.boundsight_log_level.upper(), logging.DEBUG),
    format="%(asctime)s %(name)s %(levelname)s %(message)s",
)


def create_app() -> FastAPI:
    app = FastAPI(
        title="BoundSight",
        description="Animated SVG bounds — viewBox fitting that covers every frame",
        version="0.1.0",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Import all analyzer modules to trigger registration
    _register_analyzers()

    from boundsight.api.router import api_router

    app.include_router(api_router)

    return app


def _register_analyzers() -> None:
    """Import all SMIL analyzer modules so @analyzer decorators fire."""
    from boundsight.engine.registry import get_registry, load_analyzers

    load_analyzers()
    logging.getLogger(__name__).info("%d animation analyzers registered", get_registry().count)


app = create_app()
