import os
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, DeclarativeBase
from dotenv import load_dotenv
from contextlib import contextmanager

load_dotenv()

DATABASE_URL = os.getenv("DATABASE_URL")

class Base(DeclarativeBase):
    pass

SessionLocal = sessionmaker(autoflush=False, autocommit=False, future=True)

_engine = None

def get_engine():
    """Create the engine on first use so the engine modules import without a database."""
    global _engine
    if _engine is None:
        if not DATABASE_URL:
            raise RuntimeError("DATABASE_URL env var not set")
        _engine = create_engine(DATABASE_URL, future=True, pool_pre_ping=True)
        SessionLocal.configure(bind=_engine)
    return _engine

def init_db(engine=None):
    # Register every table on Base.metadata before creating them
    import models.models_user  # noqa: F401
    import placement.models  # noqa: F401
    Base.metadata.create_all(bind=engine or get_engine())

@contextmanager
def get_db():
    get_engine()
    db = SessionLocal()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()

def get_session():
    """FastAPI dependency: one session per request, committed by the handler."""
    get_engine()
    db = SessionLocal()
    try:
        yield db
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()
