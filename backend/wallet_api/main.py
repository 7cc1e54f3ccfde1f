"""
FastAPI application entry point.
"""
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from wallet_api.api import health, nft_collections, wallet, streams, defillama, status
from wallet_api.api.deps import get_defillama_client, get_metadata_cache, get_moralis_client
from wallet_api.core.config import get_settings
from wallet_api.core.database import init_db

app_settings = get_settings()

logging.basicConfig(
    level=getattr(logging, str(app_settings.log_level).upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Wallet Dashboard API",
    description="Wallet balances, NFTs and DeFi data proxied from Moralis and DefiLlama",
    version="0.1.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=app_settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(health.router, tags=["health"])
app.include_router(nft_collections.router, prefix="/api/moralis/nft-collections", tags=["nft"])
app.include_router(wallet.router, prefix="/api/moralis", tags=["wallet"])
app.include_router(streams.router, prefix="/api/moralis/streams", tags=["streams"])
app.include_router(defillama.router, prefix="/api/defillama", tags=["defillama"])
app.include_router(status.router, prefix="/api/status", tags=["status"])


@app.on_event("startup")
async def startup_event():
    """Create tables for SQLite deployments (MySQL is migrated with Alembic)."""
    if app_settings.database_dsn.startswith("sqlite"):
        init_db()
        logger.info("SQLite tables ensured")


@app.on_event("shutdown")
async def shutdown_event():
    """Flush pending cache writes and close HTTP clients."""
    await get_metadata_cache().flush()
    await get_moralis_client().close()
    await get_defillama_client().close()
