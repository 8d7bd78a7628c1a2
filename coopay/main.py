from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from coopay.api import auth, cooperatives, users, fees, loans, production, payments
from coopay.core.config import settings
from coopay.services.scheduler import get_scheduler_status, start_scheduler, stop_scheduler
import logging

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    datefmt='%Y-%m-%d %H:%M:%S'
)

# Get logger for this module
logger = logging.getLogger(__name__)
logger.info("Starting Cooperative Payments API")


@asynccontextmanager
async def lifespan(app: FastAPI):
    if settings.ENABLE_SCHEDULER:
        start_scheduler()
    yield
    stop_scheduler()


app = FastAPI(
    title="Cooperative Payments API",
    description="Member payment reconciliation for agricultural cooperatives",
    version="1.0.0",
    lifespan=lifespan,
    debug=settings.DEBUG,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(auth.router)
app.include_router(cooperatives.router)
app.include_router(cooperatives.seasons_router)
app.include_router(cooperatives.cash_router)
app.include_router(users.router)
app.include_router(fees.router)
app.include_router(loans.router)
app.include_router(production.router)
app.include_router(payments.router)
app.include_router(payments.transactions_router)


@app.get("/")
def root():
    """Root endpoint."""
    return {"message": "Cooperative Payments API", "version": "1.0.0"}


@app.get("/api/health")
def health_check():
    """Health check: API and database connectivity."""
    from coopay.db.base import SessionLocal
    from sqlalchemy import text
    from sqlalchemy.exc import SQLAlchemyError
    from datetime import datetime, timezone

    db_status = "unreachable"
    db_error = None
    db = SessionLocal()
    try:
        db.execute(text("SELECT 1"))
        db_status = "connected"
    except SQLAlchemyError as e:
        db_error = str(e)
    finally:
        db.close()

    status = "healthy" if db_status == "connected" else "degraded"

    return {
        "status": status,
        "version": "1.0.0",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "services": {
            "api": "ok",
            "database": db_status,
            "scheduler": "running" if get_scheduler_status()["running"] else "stopped",
        },
        **({"database_error": db_error} if db_error else {})
    }
