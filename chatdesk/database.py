from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

from chatdesk.config import settings

connect_args = {"check_same_thread": False} if settings.database_url.startswith("sqlite") else {}

engine = create_engine(settings.database_url, connect_args=connect_args, pool_pre_ping=True)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db() -> None:
    """Create tables for all registered models."""
    import chatdesk.models  # noqa: F401

    Base.metadata.create_all(bind=engine)
