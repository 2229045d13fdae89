import logging
import os
from sqlmodel import Session, SQLModel, create_engine

logger = logging.getLogger(__name__)

# Get database URL from environment, default to SQLite for local dev
db_path = os.getenv("DATABASE_PATH", "./workload.db")
env = os.getenv("ENV", os.getenv("RENDER", "").lower() or "dev")

if os.getenv("DATABASE_URL"):
    DATABASE_URL = os.getenv("DATABASE_URL")
else:
    # Guard against SQLite fallback in production
    if env in ("prod", "production") or os.getenv("RENDER"):
        raise RuntimeError(
            "DATABASE_URL missing in production; refusing to start with SQLite. "
            "Please configure DATABASE_URL environment variable."
        )
    DATABASE_URL = f"sqlite:///{db_path}"

# Hosted PostgreSQL often hands out postgres://, SQLAlchemy needs postgresql://
if DATABASE_URL and DATABASE_URL.startswith("postgres://"):
    DATABASE_URL = DATABASE_URL.replace("postgres://", "postgresql://", 1)

db_driver = DATABASE_URL.split(":", 1)[0] if ":" in DATABASE_URL else "unknown"
logger.info(f"DB_URL_DRIVER={db_driver}")

# SQLite connections are shared with the batch worker threads
connect_args = {"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {}
engine = create_engine(DATABASE_URL, echo=False, connect_args=connect_args)


def create_db_and_tables(target_engine=None):
    """Create database and tables if they don't exist.
    This is safe to call multiple times - it won't wipe existing data.
    """
    import models  # noqa: F401  registers the tables on SQLModel.metadata

    SQLModel.metadata.create_all(target_engine or engine)


def get_session():
    """Get database session."""
    with Session(engine) as session:
        yield session
