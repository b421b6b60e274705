"""FastAPI application."""

import importlib
import logging
import os
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any

from fastapi import APIRouter, FastAPI

from crudforge.metadata.builder import build_controllers
from crudforge.metadata.loader import MetadataLoader
from crudforge.persistence import DatabaseConfig, PersistenceAdapter, create_adapter
from crudforge.rest import Controller

logger = logging.getLogger(__name__)


# Global instances (initialized on startup)
metadata_loader: MetadataLoader | None = None
db: PersistenceAdapter | None = None
controllers: list[Controller] = []


def resolve_base_path() -> Path:
    """Repository root, whether started from it or from ``backend/``."""
    cwd = Path.cwd()
    if cwd.name == "backend":
        return cwd.parent
    return cwd


def import_hook_modules(names: str) -> None:
    """Import the comma-separated modules that register lifecycle hooks."""
    for name in names.split(","):
        name = name.strip()
        if name:
            importlib.import_module(name)
            logger.info("Imported hook module %s", name)


def build_router(controllers: list[Controller], prefix: str = "") -> APIRouter:
    router = APIRouter(prefix=prefix)
    for controller in controllers:
        controller.register(router)
    return router


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialize on startup, cleanup on shutdown."""
    global metadata_loader, db, controllers

    base_path = resolve_base_path()

    # Hooks must be registered before controllers resolve them by name
    import_hook_modules(os.environ.get("CRUDFORGE_HOOK_MODULES", ""))

    # Initialize metadata loader
    metadata_path = Path(os.environ.get("CRUDFORGE_METADATA_PATH", base_path / "metadata"))
    metadata_loader = MetadataLoader(metadata_path)
    metadata_loader.load_all()

    db_config = DatabaseConfig.from_env(base_path)
    db_config.ensure_sqlite_directory()

    db = create_adapter(db_config)
    db.connect()

    # Create tables, referenced tables first
    for model in metadata_loader.ordered_models():
        db.initialize_table(model.configuration())

    static_routes = list(app.router.routes)
    controllers = build_controllers(metadata_loader, db)
    app.include_router(build_router(controllers, os.environ.get("CRUDFORGE_API_PREFIX", "")))
    logger.info("Registered %d controller(s)", len(controllers))

    yield

    # Cleanup
    app.router.routes[:] = static_routes
    if db:
        db.close()
    db = None
    controllers = []


app = FastAPI(title="CrudForge API", lifespan=lifespan)


@app.get("/health")
async def health() -> dict[str, Any]:
    """Liveness probe with the loaded model names."""
    return {
        "status": "ok",
        "models": metadata_loader.list_models() if metadata_loader else [],
    }


__all__ = ["app", "build_router", "lifespan"]
