from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

from coopay.core.config import settings

engine_options = {"pool_pre_ping": True}
if settings.DATABASE_URL.startswith("sqlite"):
    engine_options["connect_args"] = {"check_same_thread": False}
if settings.DB_ISOLATION_LEVEL:
    engine_options["isolation_level"] = settings.DB_ISOLATION_LEVEL

engine = create_engine(settings.DATABASE_URL, **engine_options)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db():
    """Yield a request-scoped session."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
