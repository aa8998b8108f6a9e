"""
API routers module.

This module contains all API route definitions organized by domain.
"""
from api.routers.analysis import router as analysis_router
from api.routers.exports import router as exports_router
from api.routers.health import router as health_router
from api.routers.medications import router as medications_router
from api.routers.ocr import router as ocr_router
from api.routers.patient import router as patient_router
from api.routers.readings import router as readings_router
from api.routers.sync import router as sync_router
from api.routers.trends import router as trends_router

__all__ = [
    "analysis_router",
    "exports_router",
    "health_router",
    "medications_router",
    "ocr_router",
    "patient_router",
    "readings_router",
    "sync_router",
    "trends_router",
]
