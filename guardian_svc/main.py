"""
FastAPI application entry point for Guardian Service API.

A personal log of blood pressure and glucose readings for one patient,
shared with clinicians as FHIR R4 document bundles.

This module configures and creates the FastAPI application with:
- Structured JSON Logging: Request/response logging with request ids
- Dependency Injection: Services and repositories injected via Depends()
- Exception Handling: Consistent error responses via setup_exception_handlers()
- CORS Middleware: Allows the browser front end and the clinician viewer
- Lifespan Management: Store initialization
- Metrics Collection: In-memory metrics for Prometheus scraping

Architecture Overview:
    ┌─────────────────────────────────────────────────────────────┐
    │                     FastAPI Application                      │
    ├─────────────────────────────────────────────────────────────┤
    │  Middleware Stack                                           │
    │    ├── LoggingMiddleware  - Request logging & metrics       │
    │    └── CORSMiddleware     - Cross-origin support            │
    ├─────────────────────────────────────────────────────────────┤
    │  Routers (api/routers/)                                     │
    │    ├── health.py       - /health, /ready, /metrics          │
    │    ├── patient.py      - Patient identity                   │
    │    ├── readings.py     - Blood pressure & glucose log       │
    │    ├── medications.py  - Dose log & drug catalog            │
    │    ├── analysis.py     - Trend findings                     │
    │    ├── trends.py       - Plotly trend charts                │
    │    ├── exports.py      - FHIR bundle, text, QR, mailto      │
    │    ├── ocr.py          - Device photo recognition           │
    │    └── sync.py         - Live sharing topic                 │
    ├─────────────────────────────────────────────────────────────┤
    │  Services (services/)     ← Injected via Depends()          │
    ├─────────────────────────────────────────────────────────────┤
    │  Repositories (repositories/)   ← Injected into Services    │
    ├─────────────────────────────────────────────────────────────┤
    │  Key-value store (SQLite)       ← Injected into Repositories│
    └─────────────────────────────────────────────────────────────┘
    Celery worker (tasks/sync_tasks.py) publishes sync payloads to Redis.
"""
import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.routers import (
    analysis_router,
    exports_router,
    health_router,
    medications_router,
    ocr_router,
    patient_router,
    readings_router,
    sync_router,
    trends_router,
)
from celery_app import celery_app  # noqa: F401  configures the app shared tasks bind to
from core.config import API_HOST, API_PORT, API_RELOAD
from core.dependencies import get_database
from core.exceptions import setup_exception_handlers
from core.logging_config import setup_logging
from core.middleware import LoggingMiddleware


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Startup: configure JSON logging, then open the store so the schema
    exists before the first request.
    """
    setup_logging(level="INFO", json_format=True)

    logger = logging.getLogger(__name__)
    logger.info("Starting Guardian Service API...")

    db = get_database()
    logger.info("Database initialized", extra={"db_path": db.db_path})

    yield

    logger.info("Guardian Service API shutting down...")


app = FastAPI(
    title="Guardian Service API",
    description="Personal blood pressure and glucose log. Classifies readings, finds trends "
                "and shares selected readings as FHIR R4 bundles, text reports and QR codes.",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    lifespan=lifespan
)

setup_exception_handlers(app)

# Middleware runs in reverse order of registration.
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(LoggingMiddleware)

app.include_router(health_router)
app.include_router(patient_router)
app.include_router(readings_router)
app.include_router(medications_router)
app.include_router(analysis_router)
app.include_router(trends_router)
app.include_router(exports_router)
app.include_router(ocr_router)
app.include_router(sync_router)


if __name__ == "__main__":
    uvicorn.run(
        "main:app",
        host=API_HOST,
        port=API_PORT,
        reload=API_RELOAD
    )
