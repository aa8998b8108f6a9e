"""
Medications router - dose log and drug catalog endpoints.

Architecture:
    HTTP Request → Router (this file) → MedicationService → MedicationRepository → Database
                                                          → drug catalog (core/registry.yaml)
"""
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response

from core.dependencies import get_medication_service
from schemas import DrugResponse, MedicationCreate, MedicationEventResponse
from services import MedicationService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/medications", tags=["Medications"])


@router.get(
    "/catalog",
    response_model=List[DrugResponse],
    summary="List catalog drugs",
    description="Known drugs with their side-effect note, optionally filtered by category."
)
async def list_catalog(
    category: Optional[str] = Query(None, description="Filter by category (e.g. 'diabetes')", examples=["diabetes"]),
    medication_service: MedicationService = Depends(get_medication_service)
):
    return [DrugResponse.from_domain(drug) for drug in medication_service.catalog(category)]


@router.get(
    "/catalog/categories",
    response_model=List[str],
    summary="List catalog categories",
    description="Drug categories used to group the catalog, in display order."
)
async def list_categories(medication_service: MedicationService = Depends(get_medication_service)):
    return medication_service.categories()


@router.get(
    "/catalog/{name}",
    response_model=Optional[DrugResponse],
    summary="Look up a drug",
    description="Catalog entry of a drug name with its interaction warning. Null for unknown drugs."
)
async def get_drug(
    name: str,
    medication_service: MedicationService = Depends(get_medication_service)
):
    """
    Look up a drug by name (case-insensitive).

    Unknown drugs are allowed in the dose log, so a miss is not an error.
    """
    info = medication_service.drug_info(name)
    if info is None:
        return None
    return DrugResponse.from_domain(info.drug, info.warning)


@router.post(
    "",
    response_model=MedicationEventResponse,
    status_code=201,
    summary="Record a dose",
    description="Log that a drug was taken. Catalog drugs get their category and side-effect note."
)
async def create_event(
    event: MedicationCreate,
    medication_service: MedicationService = Depends(get_medication_service)
):
    """
    Record a dose.

    - **drug_name**: Drug name, catalog or free text
    - **timestamp**: When the dose was taken (optional, defaults to now)

    Raises:
    - 400 Bad Request: If the drug name is blank (InvalidReadingError)
    """
    created = medication_service.add_event(event.drug_name, timestamp=event.timestamp)
    return MedicationEventResponse.from_domain(created)


@router.get(
    "",
    response_model=List[MedicationEventResponse],
    summary="List doses",
    description="Every recorded dose, oldest first."
)
async def list_events(medication_service: MedicationService = Depends(get_medication_service)):
    return [MedicationEventResponse.from_domain(e) for e in medication_service.list_events()]


@router.get(
    "/recent",
    response_model=List[MedicationEventResponse],
    summary="Recent doses",
    description="The most recent doses, newest first."
)
async def list_recent(
    limit: int = Query(5, ge=1, le=100, description="Number of doses to return"),
    medication_service: MedicationService = Depends(get_medication_service)
):
    return [MedicationEventResponse.from_domain(e) for e in medication_service.list_recent(limit)]


@router.delete(
    "/{event_id}",
    status_code=204,
    summary="Delete a dose",
    description="Remove a recorded dose by id."
)
async def delete_event(
    event_id: str,
    medication_service: MedicationService = Depends(get_medication_service)
):
    """
    Delete a recorded dose.

    Raises:
    - 404 Not Found: If no dose has this id (MedicationNotFoundError)
    """
    medication_service.delete_event(event_id)
    return Response(status_code=204)
