from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.routing import Mount

from salon_desk.config import get_settings
from salon_desk.dependencies.services import get_database_cached

from salon_desk.tools.billing import router as billing_router
from salon_desk.tools.inventory import router as inventory_router
from salon_desk.tools.loyalty import router as loyalty_router
from salon_desk.tools.reports import router as reports_router
from salon_desk.tools.settings import router as settings_router
from salon_desk.mcp_server import mcp
from salon_desk.health import router as health_router


def configure_logging() -> None:
    """Ensure application logs use the INFO level by default."""
    root_logger = logging.getLogger()
    if not root_logger.handlers:
        logging.basicConfig(
            level=logging.INFO,
            format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
        )
    else:
        root_logger.setLevel(logging.INFO)

# Configure logging as soon as the module is loaded
configure_logging()

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manages application startup and shutdown events.
    """
    # --- Startup Logic ---
    settings = get_settings()

    settings_snapshot = settings.model_dump(by_alias=True)
    logger.info("Application settings on startup: %s", settings_snapshot)

    has_mcp = any(isinstance(r, Mount) and r.path == "/mcp" for r in app.routes)
    logger.debug("MCP mount present: %s", has_mcp)

    # Opens the engine and creates missing tables
    database = get_database_cached()
    logger.info("Application startup complete.")

    try:
        yield  # The application is now running
    finally:
        # --- Shutdown Logic ---
        logger.info("Disposing database engine.")
        database.close()
        logger.info("Application shutdown complete.")


# --- Application Setup ---

settings = get_settings()
app = FastAPI(
    title=settings.app_name,
    lifespan=lifespan,
    redirect_slashes=False,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# --- Include Routers and Mounts ---

app.include_router(billing_router, prefix="/tools/billing")
app.include_router(inventory_router, prefix="/tools/inventory")
app.include_router(loyalty_router, prefix="/tools/loyalty")
app.include_router(reports_router, prefix="/tools/reports")
app.include_router(settings_router, prefix="/settings")
app.include_router(health_router)

# Mount the MCP Streamable HTTP server at /mcp
app.mount("/mcp", mcp.streamable_http_app())
