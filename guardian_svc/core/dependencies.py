"""
FastAPI Dependency Injection configuration for Guardian Service API.

Architecture Flow:
    API Layer (Routers)
         ↓ Depends()
    Service Layer (Business Logic)
         ↓ Injected
    Repository Layer (in-memory state, written through)
         ↓ Injected
    Database (SQLite key-value store)

Repositories hold the session state in memory, so the store and the
repositories are process-wide singletons. Services are cheap and created
per request.

Usage in Routers:
    from core.dependencies import get_reading_service

    @router.get("/readings/{kind}")
    async def list_readings(
        kind: ReadingKind,
        reading_service: ReadingService = Depends(get_reading_service)
    ):
        return reading_service.list_readings(kind)

Testing:
    # Override dependencies in tests
    app.dependency_overrides[get_reading_service] = lambda: test_service
"""
import logging
from datetime import tzinfo
from typing import Dict, Optional

from core.config import settings
from core.datetime_utils import get_timezone
from models.reading import ReadingKind

logger = logging.getLogger(__name__)


# =============================================================================
# DATABASE DEPENDENCY
# =============================================================================

# Lazy import to avoid circular dependencies
_database_instance: Optional["Database"] = None
_patient_repository: Optional["PatientRepository"] = None
_reading_repositories: Optional[Dict[ReadingKind, "ReadingRepository"]] = None
_medication_repository: Optional["MedicationRepository"] = None


def get_database() -> "Database":
    """
    Get the database instance (singleton).

    Returns:
        Database: The configured key-value store.
    """
    global _database_instance

    if _database_instance is None:
        from repositories.base import Database

        logger.info(f"Initializing database: {settings.database_path}")
        _database_instance = Database(
            db_path=settings.database_path,
            busy_timeout=settings.guardian_db_busy_timeout
        )

    return _database_instance


# =============================================================================
# REPOSITORY DEPENDENCIES
# =============================================================================

def get_patient_repository() -> "PatientRepository":
    global _patient_repository

    if _patient_repository is None:
        from repositories import PatientRepository
        _patient_repository = PatientRepository(get_database())
    return _patient_repository


def get_reading_repositories() -> Dict[ReadingKind, "ReadingRepository"]:
    """
    Get one ReadingRepository per reading kind.

    Returns:
        Dict mapping each ReadingKind to its repository.
    """
    global _reading_repositories

    if _reading_repositories is None:
        from repositories import ReadingRepository
        db = get_database()
        _reading_repositories = {kind: ReadingRepository(db, kind) for kind in ReadingKind}
    return _reading_repositories


def get_medication_repository() -> "MedicationRepository":
    global _medication_repository

    if _medication_repository is None:
        from repositories import MedicationRepository
        _medication_repository = MedicationRepository(get_database())
    return _medication_repository


# =============================================================================
# SERVICE DEPENDENCIES
# =============================================================================

def get_display_timezone() -> tzinfo:
    return get_timezone(settings.guardian_display_timezone)


def get_patient_service() -> "PatientService":
    """
    Get a PatientService with the patient and reading repositories injected.

    Returns:
        PatientService: Service for the patient identity.
    """
    from services import PatientService

    return PatientService(
        patient_repository=get_patient_repository(),
        reading_repositories=get_reading_repositories(),
    )


def get_reading_service() -> "ReadingService":
    from services import ReadingService

    return ReadingService(reading_repositories=get_reading_repositories())


def get_medication_service() -> "MedicationService":
    from services import MedicationService

    return MedicationService(medication_repository=get_medication_repository())


def get_sync_service() -> "SyncService":
    """
    Get a SyncService dispatching through the Celery push task.

    Returns:
        SyncService: Builds snapshots and hands them to the broker.
    """
    from services.sync_service import SyncService

    return SyncService(
        store=get_database(),
        patient_repository=get_patient_repository(),
        reading_repositories=get_reading_repositories(),
    )


def get_export_service() -> "ExportService":
    """
    Get an ExportService with every collaborator injected.

    Returns:
        ExportService: Service for bundle, text, QR and mailto exports.
    """
    from services import ExportService

    return ExportService(
        patient_repository=get_patient_repository(),
        reading_service=get_reading_service(),
        medication_service=get_medication_service(),
        sync_service=get_sync_service(),
        display_tz=get_display_timezone(),
    )


def get_recognition_service() -> "RecognitionService":
    from services.recognition_service import RecognitionService

    return RecognitionService(
        languages=settings.guardian_ocr_languages,
        fallback_language=settings.guardian_ocr_fallback_language,
        max_size=settings.guardian_upload_max_size,
    )


def get_trend_chart_service() -> "TrendChartService":
    """
    Get a TrendChartService.

    The chart service is stateless and doesn't require repository injection.
    """
    from services.graph import TrendChartService

    return TrendChartService(display_tz=get_display_timezone())


def get_sync_publisher() -> "RedisPublisher":
    from services.sync_service import RedisPublisher

    return RedisPublisher()
