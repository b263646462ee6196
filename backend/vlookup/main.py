import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager

from .core.config import settings
from .api.routes import router as api_router
from .api.websocket import router as ws_router
from .vendors.cache import VendorCache
from .vendors.remote import load_vendor_table

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Load the vendor table before serving requests."""
    logger.info(f"Starting {settings.APP_NAME} v{settings.APP_VERSION}")

    cache = VendorCache(settings.VENDOR_CACHE_DIR).load() if settings.VENDOR_CACHE_ENABLED else None
    app.state.vendors = await load_vendor_table(
        settings.VENDOR_SOURCES,
        local_file=settings.VENDOR_LOCAL_FILE,
        cache=cache,
        timeout=settings.VENDOR_FETCH_TIMEOUT,
    )
    logger.info(f"Vendor table ready with {len(app.state.vendors)} entries")

    yield

    logger.info("Shutting down...")


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Local network device discovery with vendor lookup",
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_router, prefix="/api", tags=["API"])
app.include_router(ws_router, tags=["WebSocket"])


@app.get("/")
async def root():
    return {
        "name": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "status": "running"
    }


@app.get("/health")
async def health():
    """Health check endpoint."""
    vendors = getattr(app.state, "vendors", None)
    return {
        "status": "healthy",
        "scan_enabled": settings.SCAN_ENABLED,
        "vendor_entries": len(vendors) if vendors is not None else 0
    }
