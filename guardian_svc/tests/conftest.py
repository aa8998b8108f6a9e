"""
Shared pytest fixtures for API and service tests.

Key patterns:

1. Database Isolation: Each test gets a fresh temporary SQLite store
2. DI Override: Use app.dependency_overrides to inject test dependencies
3. Service Injection: Services are created with test repositories
4. No broker: the sync dispatcher is a MagicMock, nothing reaches Redis

Fixture Hierarchy:
    temp_db → repositories → services → test_app → client
"""
import os
import tempfile
from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from core import dependencies as deps
from core.exceptions import setup_exception_handlers
from models.patient import Gender, PatientIdentity
from models.reading import BloodPressureReading, GlucoseReading, GlucoseTiming, ReadingKind
from repositories import MedicationRepository, PatientRepository, ReadingRepository
from repositories.base import Database
from services import ExportService, MedicationService, PatientService, ReadingService
from services.graph import TrendChartService
from services.sync_service import SyncService

NOW = datetime(2025, 3, 10, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def temp_db():
    """
    Create a temporary database for testing.

    A fresh SQLite file per test keeps tests isolated.
    """
    fd, db_path = tempfile.mkstemp(suffix='.db')
    os.close(fd)

    db = Database(db_path=db_path)
    yield db

    for suffix in ("", "-wal", "-shm"):
        if os.path.exists(db_path + suffix):
            os.unlink(db_path + suffix)


@pytest.fixture
def complete_patient():
    return PatientIdentity(
        id="A123456789",
        display_name="Jane Doe",
        gender=Gender.FEMALE,
        birth_year=1958,
    )


@pytest.fixture
def patient_repo(temp_db):
    return PatientRepository(temp_db)


@pytest.fixture
def reading_repos(temp_db):
    """One ReadingRepository per kind over the test database."""
    return {kind: ReadingRepository(temp_db, kind) for kind in ReadingKind}


@pytest.fixture
def medication_repo(temp_db):
    return MedicationRepository(temp_db)


@pytest.fixture
def patient_service(patient_repo, reading_repos):
    return PatientService(patient_repository=patient_repo, reading_repositories=reading_repos)


@pytest.fixture
def reading_service(reading_repos):
    return ReadingService(reading_repositories=reading_repos)


@pytest.fixture
def medication_service(medication_repo):
    return MedicationService(medication_repository=medication_repo)


@pytest.fixture
def dispatcher():
    """Stand-in for the Celery push task; returns a fake task id."""
    return MagicMock(return_value="task-123")


@pytest.fixture
def sync_service(temp_db, patient_repo, reading_repos, dispatcher):
    return SyncService(
        store=temp_db,
        patient_repository=patient_repo,
        reading_repositories=reading_repos,
        dispatcher=dispatcher,
        snapshot_size=10,
        topic_prefix="cig_user_",
        viewer_base_url="https://example.org/guardian/index.html",
        enabled=False,
    )


@pytest.fixture
def export_service(patient_repo, reading_service, medication_service, sync_service):
    return ExportService(
        patient_repository=patient_repo,
        reading_service=reading_service,
        medication_service=medication_service,
        sync_service=sync_service,
        display_tz=timezone.utc,
    )


@pytest.fixture
def chart_service():
    return TrendChartService(display_tz=timezone.utc)


@pytest.fixture
def registered_patient(patient_repo, complete_patient):
    """Store a complete patient identity."""
    patient_repo.replace(complete_patient)
    return complete_patient


@pytest.fixture
def high_bp_readings():
    """Three high readings within the last week of NOW."""
    return [
        BloodPressureReading(timestamp=NOW - timedelta(days=3), systolic=150, diastolic=95, pulse=72),
        BloodPressureReading(timestamp=NOW - timedelta(days=2), systolic=145, diastolic=92, pulse=70),
        BloodPressureReading(timestamp=NOW - timedelta(days=1), systolic=148, diastolic=93, pulse=75),
    ]


@pytest.fixture
def glucose_readings():
    return [
        GlucoseReading(timestamp=NOW - timedelta(days=2), value=98, timing=GlucoseTiming.FASTING),
        GlucoseReading(timestamp=NOW - timedelta(days=1), value=156.5, timing=GlucoseTiming.POST_PRANDIAL,
                       medication_taken=True),
    ]


@pytest.fixture
def test_app(temp_db, patient_repo, reading_repos, medication_repo, patient_service, reading_service,
             medication_service, sync_service, export_service, chart_service):
    """
    Create a FastAPI test app with dependency overrides.

    Uses the real routers and injects the test database and services via
    dependency_overrides.
    """
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

    app = FastAPI(title="Guardian Service API Test")
    setup_exception_handlers(app)

    app.dependency_overrides[deps.get_database] = lambda: temp_db
    app.dependency_overrides[deps.get_patient_repository] = lambda: patient_repo
    app.dependency_overrides[deps.get_reading_repositories] = lambda: reading_repos
    app.dependency_overrides[deps.get_medication_repository] = lambda: medication_repo
    app.dependency_overrides[deps.get_display_timezone] = lambda: timezone.utc
    app.dependency_overrides[deps.get_patient_service] = lambda: patient_service
    app.dependency_overrides[deps.get_reading_service] = lambda: reading_service
    app.dependency_overrides[deps.get_medication_service] = lambda: medication_service
    app.dependency_overrides[deps.get_sync_service] = lambda: sync_service
    app.dependency_overrides[deps.get_export_service] = lambda: export_service
    app.dependency_overrides[deps.get_trend_chart_service] = lambda: chart_service

    for router in (health_router, patient_router, readings_router, medications_router, analysis_router,
                   trends_router, exports_router, ocr_router, sync_router):
        app.include_router(router)

    yield app

    app.dependency_overrides.clear()


@pytest.fixture
def client(test_app):
    """Create a test client for the API."""
    return TestClient(test_app)
