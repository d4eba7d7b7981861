import logging
from typing import Generator

from fastapi import HTTPException
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from walletgate.core.config import settings
from walletgate.db.base import Base

logger = logging.getLogger(__name__)


def _connect_args(url: str) -> dict:
    if url.startswith("sqlite"):
        return {"check_same_thread": False}
    return {"connect_timeout": 30}


# Create the SQLAlchemy engine
engine = create_engine(settings.DATABASE_URL,
                       connect_args=_connect_args(settings.DATABASE_URL),
                       pool_pre_ping=True,
                       pool_recycle=3600,
)

# Create a configured "Session" class
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


# Dependency that can be used in routes to get the session
def get_db() -> Generator[Session, None, None]:
    db = SessionLocal()  # generate a new SessionLocal
    try:
        yield db
    except HTTPException:
        raise
    except Exception as e:
        logger.exception("database session error: %s", type(e).__name__)
        raise HTTPException(status_code=500, detail="Internal server error")
    finally:
        db.close()


def init_db(bind=None) -> None:
    """Create the walletgate tables if they do not exist."""
    # models must be imported so they register on Base.metadata
    import walletgate.models.auth  # noqa: F401
    import walletgate.models.identity  # noqa: F401

    Base.metadata.create_all(bind=bind or engine)
