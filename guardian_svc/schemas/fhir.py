"""
Pydantic models for the exported clinical document.

The document is a FHIR R4 ``Bundle`` of type ``collection``:

    entry[0]      Patient
    entry[1..n]   Observation (chronological, oldest first)
    entry[n+1]    DiagnosticReport (result -> every Observation, conclusion)

Models are frozen; a bundle is never edited after assembly. Field names are
snake_case in Python and camelCase on the wire
(``bundle.model_dump(by_alias=True, exclude_none=True)``).
"""
from datetime import datetime
from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

LOINC_SYSTEM = "http://loinc.org"
UCUM_SYSTEM = "http://unitsofmeasure.org"
OBSERVATION_CATEGORY_SYSTEM = "http://terminology.hl7.org/CodeSystem/observation-category"
IDENTIFIER_TYPE_SYSTEM = "http://terminology.hl7.org/CodeSystem/v2-0203"
RXNORM_SYSTEM = "http://www.nlm.nih.gov/research/umls/rxnorm"


class FhirModel(BaseModel):
    """Base for every FHIR element: frozen, camelCase aliases."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )


# =============================================================================
# DATA TYPES
# =============================================================================

class Coding(FhirModel):
    system: str
    code: str
    display: Optional[str] = None


class CodeableConcept(FhirModel):
    coding: List[Coding] = Field(default_factory=list)
    text: Optional[str] = None


class Quantity(FhirModel):
    value: Union[int, float]
    unit: str
    system: str = UCUM_SYSTEM
    code: str


class Reference(FhirModel):
    reference: str


class Annotation(FhirModel):
    text: str


class Identifier(FhirModel):
    use: str = "usual"
    type: Optional[CodeableConcept] = None
    system: Optional[str] = None
    value: str


class HumanName(FhirModel):
    use: str = "usual"
    text: str


class Meta(FhirModel):
    last_updated: datetime


# =============================================================================
# RESOURCES
# =============================================================================

class PatientResource(FhirModel):
    resource_type: Literal["Patient"] = "Patient"
    id: str
    identifier: List[Identifier]
    name: List[HumanName]
    gender: str
    birth_date: str


class ObservationComponent(FhirModel):
    code: CodeableConcept
    value_quantity: Quantity


class ObservationResource(FhirModel):
    resource_type: Literal["Observation"] = "Observation"
    id: str
    status: str = "final"
    category: List[CodeableConcept]
    code: CodeableConcept
    subject: Reference
    effective_date_time: datetime
    value_quantity: Optional[Quantity] = None
    component: Optional[List[ObservationComponent]] = None
    note: List[Annotation] = Field(default_factory=list)

    def component_value(self, loinc: str) -> Optional[Union[int, float]]:
        """Value of the component coded with the given LOINC code."""
        for component in self.component or []:
            if any(coding.code == loinc for coding in component.code.coding):
                return component.value_quantity.value
        return None

    def has_code(self, loinc: str) -> bool:
        return any(coding.code == loinc for coding in self.code.coding)


class DiagnosticReportResource(FhirModel):
    resource_type: Literal["DiagnosticReport"] = "DiagnosticReport"
    id: str
    status: str = "final"
    code: CodeableConcept
    subject: Reference
    effective_date_time: datetime
    result: List[Reference]
    conclusion: str


class MedicationStatementResource(FhirModel):
    resource_type: Literal["MedicationStatement"] = "MedicationStatement"
    id: str
    status: str = "active"
    medication_codeable_concept: CodeableConcept
    subject: Reference
    effective_date_time: datetime
    date_asserted: datetime
    information_source: Reference
    note: List[Annotation] = Field(default_factory=list)


Resource = Annotated[
    Union[PatientResource, ObservationResource, DiagnosticReportResource, MedicationStatementResource],
    Field(discriminator="resource_type"),
]


class BundleEntry(FhirModel):
    full_url: str
    resource: Resource


class Bundle(FhirModel):
    """
    The exported clinical document.

    Accessors give typed views over ``entry`` so callers never index into
    the entry list by position.
    """

    resource_type: Literal["Bundle"] = "Bundle"
    id: str
    meta: Meta
    type: str = "collection"
    entry: List[BundleEntry]

    @property
    def created_at(self) -> datetime:
        return self.meta.last_updated

    @property
    def patient(self) -> Optional[PatientResource]:
        for entry in self.entry:
            if isinstance(entry.resource, PatientResource):
                return entry.resource
        return None

    @property
    def observations(self) -> List[ObservationResource]:
        return [e.resource for e in self.entry if isinstance(e.resource, ObservationResource)]

    @property
    def observation_entries(self) -> List[BundleEntry]:
        return [e for e in self.entry if isinstance(e.resource, ObservationResource)]

    @property
    def medication_statements(self) -> List[MedicationStatementResource]:
        return [e.resource for e in self.entry if isinstance(e.resource, MedicationStatementResource)]

    @property
    def report(self) -> Optional[DiagnosticReportResource]:
        for entry in self.entry:
            if isinstance(entry.resource, DiagnosticReportResource):
                return entry.resource
        return None

    @property
    def conclusion(self) -> Optional[str]:
        report = self.report
        return report.conclusion if report else None

    def to_fhir_json(self) -> dict:
        """Wire form shared by the QR payload, the sync topic and viewers."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
