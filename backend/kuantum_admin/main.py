"""
Kuantum Ticaret - Admin Backend API
Order lifecycle, inventory and finance endpoints for the admin dashboard
"""
import logging
import time
from pathlib import Path

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

# Load environment variables
env_path = Path(__file__).parent.parent / '.env'
load_dotenv(env_path)

from kuantum_admin.core.config import settings
from kuantum_admin.core.database import get_table_store
from kuantum_admin.api import orders, finances

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s"
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title=settings.API_TITLE,
    version=settings.API_VERSION,
    description=settings.API_DESCRIPTION,
    debug=settings.API_DEBUG
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.get_allowed_origins(),
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS", "PATCH"],
    allow_headers=["*"],
)

# Include API routers
app.include_router(orders.router, prefix="/api/v1/orders", tags=["Orders"])
app.include_router(finances.router, prefix="/api/v1/finances", tags=["Finances"])


@app.get("/")
async def root():
    """Root endpoint - API status"""
    return {
        "message": "Kuantum Admin API",
        "status": "online",
        "version": settings.API_VERSION
    }


@app.get("/health")
def health():
    """Health check endpoint - tests table store connectivity"""
    start_time = time.time()

    store_status = "unknown"
    store_error = None

    try:
        get_table_store().select("orders", limit=1)
        store_status = "connected"
    except Exception as e:
        logger.warning(f"Health check failed: {e}")
        store_status = "disconnected"
        store_error = str(e)

    return {
        "status": "healthy" if store_status == "connected" else "degraded",
        "service": "kuantum-admin-api",
        "version": settings.API_VERSION,
        "store": {
            "backend": settings.TABLE_STORE_BACKEND,
            "status": store_status,
            "error": store_error
        },
        "total_latency_ms": round((time.time() - start_time) * 1000, 2)
    }
