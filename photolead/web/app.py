"""FastAPI application factory."""

import os
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from photolead import __version__
from photolead.database import init_db
from photolead.web.routes import router

logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""

    # Initialize database
    init_db()

    app = FastAPI(
        title="PhotoLead Agent",
        description="Lead discovery, scoring and outreach for photographers",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
    )

    # CORS middleware for production
    origins = os.environ.get("ALLOWED_ORIGINS", "*")
    if origins != "*":
        origins = [o.strip() for o in origins.split(",")]
    else:
        origins = ["*"]

    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(router)

    @app.get("/health")
    def health():
        return {"status": "ok", "version": __version__}

    logger.info("PhotoLead Agent app created")
    return app


app = create_app()
