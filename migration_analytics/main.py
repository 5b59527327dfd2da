"""
Migration Analytics API
=======================
Main application entry point. Opens the database pool, wires the record
store and mounts the analytics router.
"""
from contextlib import asynccontextmanager
from fastapi import FastAPI
from migration_analytics.api.routers import analytics
from migration_analytics.core.config import ENSURE_SCHEMA
from migration_analytics.core.db import init_db, close_db, get_db_connection
from migration_analytics.ingestion.store import PostgresRecordStore
import logging

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("app.main")


@asynccontextmanager
async def lifespan(app: FastAPI):
    await init_db()
    app.state.store = PostgresRecordStore()
    if ENSURE_SCHEMA:
        await app.state.store.ensure_schema()
    logger.info("Application startup complete.")
    yield
    await close_db()
    logger.info("Application shutdown complete.")


app = FastAPI(title="Migration Analytics API", version="1.0.0", lifespan=lifespan)

# ----- Mount Routers -----
# Grouping & threshold analytics, serves /analytics/*
app.include_router(analytics.router)


# ----- Health Check -----
@app.get("/health")
async def health_check():
    health_status = {"status": "ok", "database": "disconnected"}
    try:
        async with get_db_connection() as conn:
            await conn.execute("SELECT 1")
            health_status["database"] = "connected"
    except Exception as e:
        logger.error(f"Health check DB failed: {e}")
        health_status["status"] = "error"
        health_status["error"] = str(e)
    return health_status
