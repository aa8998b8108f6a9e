"""
Patient router - the single patient identity this log belongs to.

Architecture:
    HTTP Request → Router (this file) → PatientService → PatientRepository → Database
"""
import logging

from fastapi import APIRouter, Depends

from core.dependencies import get_patient_service
from schemas import PatientResponse, PatientUpdate
from services import PatientService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/patient", tags=["Patient"])


@router.get(
    "",
    response_model=PatientResponse,
    summary="Get the patient identity",
    description="Return the patient identity, its age and which fields still hold placeholders."
)
async def get_patient(patient_service: PatientService = Depends(get_patient_service)):
    """
    Get the patient identity.

    A fresh installation returns placeholder values with ``complete`` set to
    false. Exports are refused until every field is filled in.
    """
    return PatientResponse.from_domain(patient_service.get_patient())


@router.put(
    "",
    response_model=PatientResponse,
    summary="Replace the patient identity",
    description="Replace the patient identity. This clears every stored blood pressure and glucose reading."
)
async def update_patient(
    patient: PatientUpdate,
    patient_service: PatientService = Depends(get_patient_service)
):
    """
    Replace the patient identity.

    - **id**: Medical record number or national ID
    - **display_name**: Patient full name
    - **gender**: male, female, other or unknown
    - **birth_year**: Year of birth

    Readings belong to the previous identity and are removed. Medication
    events are kept.

    Raises:
    - 400 Bad Request: If a field is blank after trimming (IncompletePatientError)
    """
    updated = patient_service.update_patient(
        patient_id=patient.id,
        display_name=patient.display_name,
        gender=patient.gender,
        birth_year=patient.birth_year,
    )
    return PatientResponse.from_domain(updated)
