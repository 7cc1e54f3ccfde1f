"""
Database connection and session management.
"""
from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker
from wallet_api.core.config import DATABASE_DSN

if not DATABASE_DSN:
    raise ValueError("DATABASE_DSN not configured. Create wallet_api/config_local.py from config_local.example.py")


def _engine_kwargs(dsn: str) -> dict:
    """Driver-specific engine options."""
    if dsn.startswith("sqlite"):
        # Persistent cache writes run in worker threads
        return {"connect_args": {"check_same_thread": False}}
    return {
        "pool_pre_ping": True,  # Verify connections before using
        "pool_recycle": 3600,  # Recycle connections after 1 hour
        "pool_size": 10,
        "max_overflow": 20,
        "pool_timeout": 60,
        "connect_args": {
            "connect_timeout": 30,
            "read_timeout": 60,
            "write_timeout": 60,
        } if "pymysql" in dsn else {},
    }


engine = create_engine(DATABASE_DSN, echo=False, **_engine_kwargs(DATABASE_DSN))

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def init_db(bind=None) -> None:
    """Create tables for local development and tests (production uses Alembic)."""
    import wallet_api.models  # noqa: F401  (registers models on Base.metadata)
    Base.metadata.create_all(bind=bind or engine)
