import logging
import os
import sys
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from src.adapters.sqlite.migrator import SQLiteMigrator
from src.api.deps import get_settings
from src.app_shell.config import validate_ops_rules
from src.components.compatibility import ComponentNotFoundError
from src.rules.loader import load_rules

logging.basicConfig(
    level=os.environ.get("ONLYPC_LOG_LEVEL", "INFO"),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup/shutdown."""
    settings = get_settings()

    # Load rules and validate on startup (fail-fast)
    try:
        rules = load_rules(settings.rules_path)
        validate_ops_rules(rules, settings.base_dir)
        print(f"INFO: Rules loaded from {settings.rules_path}")
    except Exception as e:
        print(f"CRITICAL: Rules load failed: {e}", file=sys.stderr)
        sys.exit(1)

    try:
        applied = SQLiteMigrator(settings.db_path, str(settings.migrations_dir)).run_migrations()
        print(f"INFO: Database ready at {settings.db_path} ({len(applied)} migrations applied)")
    except Exception as e:
        print(f"CRITICAL: Migrations failed: {e}", file=sys.stderr)
        sys.exit(1)

    yield


app = FastAPI(
    title="OnlyPC Store API",
    version="0.1.0",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

# --- Routers ---
from src.api.routes import (  # noqa: E402
    admin,
    auth,
    builds,
    cart,
    catalog,
    compatibility,
    favorites,
    manager,
    misc,
    orders,
    payments,
    profile,
)

app.include_router(auth.router, prefix="/api/auth", tags=["Auth"])
app.include_router(profile.router, prefix="/api/profile", tags=["Profile"])
app.include_router(catalog.router, prefix="/api", tags=["Catalog"])
app.include_router(cart.router, prefix="/api/cart", tags=["Cart"])
app.include_router(builds.router, prefix="/api/builds", tags=["Builds"])
app.include_router(favorites.router, prefix="/api/favorites", tags=["Favorites"])
app.include_router(compatibility.router, prefix="/api/compatibility", tags=["Compatibility"])
app.include_router(orders.router, prefix="/api/orders", tags=["Orders"])
app.include_router(payments.router, prefix="/api/payments", tags=["Payments"])
app.include_router(misc.captcha_router, prefix="/api/captcha", tags=["Captcha"])
app.include_router(misc.email_router, prefix="/api/email", tags=["Email"])
app.include_router(admin.router, prefix="/api/admin", tags=["Admin"])
app.include_router(manager.router, prefix="/api/manager", tags=["Manager"])
app.include_router(misc.health_router, tags=["Health"])


@app.exception_handler(ComponentNotFoundError)
async def component_not_found_handler(request: Request, exc: ComponentNotFoundError) -> JSONResponse:
    return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"detail": str(exc)})


# CORS (Allow Frontend)
app.add_middleware(
    CORSMiddleware,
    allow_origins=get_settings().cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
