"""
Entry point for the workflow engine service.

This script creates the FastAPI application and includes all API routers.
Run with:

    uvicorn workflow_engine.main:app --reload

"""

from __future__ import annotations

import logging
import os

from fastapi import FastAPI

from .api import api_router
from .core.config import env_flag, get_app_env, settings, validate_runtime_settings
from .core.db import SessionLocal, engine
from .core.errors import log_exception
from .core.logging_config import setup_logging
from .models import Base
from .scripts.run_migrations import run_migrations_to_head
from .services.template_seed import seed_predefined_templates


def create_app() -> FastAPI:
    app = FastAPI(title="Workflow Rule Engine", version="0.1.0")
    app.include_router(api_router)

    @app.on_event("startup")
    def _init_db() -> None:
        setup_logging(os.getenv("LOG_LEVEL", settings.log_level), os.getenv("LOG_FILE") or None)
        logger = logging.getLogger("startup")
        env = get_app_env()
        validate_runtime_settings()
        if env_flag("AUTO_CREATE_DB", "true"):
            try:
                Base.metadata.create_all(bind=engine)
            except Exception as exc:
                log_exception(logger, "DB create_all failed", exc=exc)
                if env == "prod":
                    raise
        if env_flag("AUTO_RUN_MIGRATIONS"):
            try:
                run_migrations_to_head()
            except Exception as exc:
                log_exception(logger, "DB migrations failed", exc=exc)
                if env == "prod":
                    raise
        if env_flag("AUTO_SEED_TEMPLATES", "true"):
            try:
                with SessionLocal() as db:
                    seed_predefined_templates(db)
            except Exception as exc:
                log_exception(logger, "Seed workflow templates failed", exc=exc)
                if env == "prod":
                    raise
        logger.info("Workflow engine started env=%s", env)

    return app


app = create_app()
