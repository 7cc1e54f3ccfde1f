"""
Configuration management.
Loads from config_local.py (gitignored) for secrets, with defaults.
"""
from typing import List, Optional

# Try to import local config (gitignored)
try:
    from wallet_api.config_local import (
        DATABASE_DSN,
        MORALIS_API_KEY,
        MORALIS_BASE_URL,
        MORALIS_STREAMS_SECRET,
        DEFILLAMA_BASE_URL,
        DEFILLAMA_COINS_URL,
        RPC_URLS,
        CORS_ORIGINS,
        LOG_LEVEL,
    )
    # Cache / batching tuning with fallbacks if not present
    try:
        from wallet_api.config_local import (
            HTTP_TIMEOUT_SECONDS,
            METADATA_MEMORY_TTL_SECONDS,
            METADATA_PERSISTENT_TTL_SECONDS,
            METADATA_CACHE_MAXSIZE,
            CACHE_DURABILITY_MODE,
            METADATA_BATCH_SIZE,
            METADATA_BATCH_DELAY_SECONDS,
            WEBHOOK_FRESHNESS_SECONDS,
        )
    except ImportError:
        HTTP_TIMEOUT_SECONDS = 30.0
        METADATA_MEMORY_TTL_SECONDS = 300  # 5 minutes
        METADATA_PERSISTENT_TTL_SECONDS = 1800  # 30 minutes (6x memory TTL)
        METADATA_CACHE_MAXSIZE = 1024
        CACHE_DURABILITY_MODE = "async"  # "sync" awaits the database write, "async" schedules it
        METADATA_BATCH_SIZE = 10
        METADATA_BATCH_DELAY_SECONDS = 0.5
        WEBHOOK_FRESHNESS_SECONDS = 300  # Serve webhook data pushed in the last 5 minutes
except ImportError:
    # Fallback defaults (Moralis routes fail at runtime if the key is not set)
    DATABASE_DSN: str = "sqlite:///./wallet_api.db"
    MORALIS_API_KEY: Optional[str] = None
    MORALIS_BASE_URL: str = "https://deep-index.moralis.io/api/v2.2"
    MORALIS_STREAMS_SECRET: Optional[str] = None  # None = every webhook is rejected
    DEFILLAMA_BASE_URL: str = "https://api.llama.fi"
    DEFILLAMA_COINS_URL: str = "https://coins.llama.fi"
    RPC_URLS: List[str] = [
        "https://eth.llamarpc.com",
        "https://rpc.ankr.com/eth",
        "https://cloudflare-eth.com",
    ]
    CORS_ORIGINS: List[str] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]
    LOG_LEVEL: str = "INFO"
    HTTP_TIMEOUT_SECONDS: float = 30.0
    METADATA_MEMORY_TTL_SECONDS: int = 300
    METADATA_PERSISTENT_TTL_SECONDS: int = 1800
    METADATA_CACHE_MAXSIZE: int = 1024
    CACHE_DURABILITY_MODE: str = "async"
    METADATA_BATCH_SIZE: int = 10
    METADATA_BATCH_DELAY_SECONDS: float = 0.5
    WEBHOOK_FRESHNESS_SECONDS: int = 300


def get_settings():
    """Return settings object (for FastAPI dependency injection if needed)."""
    return type("Settings", (), {
        "database_dsn": DATABASE_DSN,
        "moralis_api_key": MORALIS_API_KEY,
        "moralis_base_url": MORALIS_BASE_URL,
        "moralis_streams_secret": MORALIS_STREAMS_SECRET,
        "defillama_base_url": DEFILLAMA_BASE_URL,
        "defillama_coins_url": DEFILLAMA_COINS_URL,
        "rpc_urls": list(RPC_URLS),
        "cors_origins": list(CORS_ORIGINS),
        "log_level": LOG_LEVEL,
        "http_timeout_seconds": HTTP_TIMEOUT_SECONDS,
        "metadata_memory_ttl_seconds": METADATA_MEMORY_TTL_SECONDS,
        "metadata_persistent_ttl_seconds": METADATA_PERSISTENT_TTL_SECONDS,
        "metadata_cache_maxsize": METADATA_CACHE_MAXSIZE,
        "cache_durability_mode": CACHE_DURABILITY_MODE,
        "metadata_batch_size": METADATA_BATCH_SIZE,
        "metadata_batch_delay_seconds": METADATA_BATCH_DELAY_SECONDS,
        "webhook_freshness_seconds": WEBHOOK_FRESHNESS_SECONDS,
    })()
