import logging
import sys
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI

from src.adapters.sqlite.migrator import SQLiteMigrator
from src.api.deps import get_rules, get_settings
from src.api.errors import lifecycle_error_handler
from src.domain.errors import LifecycleError

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup/shutdown."""
    settings = get_settings()

    # Load rules on startup (fail-fast)
    try:
        rules = get_rules()
    except (FileNotFoundError, ValueError) as e:
        print(f"CRITICAL: Rules load failed: {e}", file=sys.stderr)
        sys.exit(1)

    logging.basicConfig(
        level=getattr(logging, rules.logging.level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logger.info("Rules loaded from %s", settings.rules_path)

    settings.data_dir.mkdir(parents=True, exist_ok=True)
    SQLiteMigrator(settings.db_path, settings.migrations_dir).run_migrations()

    yield


app = FastAPI(
    title="Tenant Content Lifecycle API",
    version="0.1.0",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_exception_handler(LifecycleError, lifecycle_error_handler)  # type: ignore[arg-type]

# --- Routers ---
from src.api.routes import entities, organizations  # noqa: E402

app.include_router(entities.router, prefix="/api/entities", tags=["Entities"])
app.include_router(organizations.router, prefix="/api/organizations", tags=["Organizations"])


@app.get("/health")
def health_check() -> dict[str, Any]:
    """Health check endpoint."""
    return {"status": "ok", "service": "api"}
