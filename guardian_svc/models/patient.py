"""
Domain model for the patient identity owned by the session.
"""
from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Any, Dict, List, Optional

UNSET_PATIENT_ID = "UNSET-1"
UNSET_DISPLAY_NAME = "Unset name"
UNSET_BIRTH_YEAR = 1900


class Gender(str, Enum):
    MALE = "male"
    FEMALE = "female"
    OTHER = "other"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class PatientIdentity:
    """
    Model representing the single patient whose readings are logged.

    The record is replaced as a whole on every edit. A fresh install starts
    with the sentinel values from unset().
    """

    id: str
    display_name: str
    gender: Gender
    birth_year: int

    @classmethod
    def unset(cls) -> 'PatientIdentity':
        """Create the placeholder identity used before the patient fills in the form."""
        return cls(
            id=UNSET_PATIENT_ID,
            display_name=UNSET_DISPLAY_NAME,
            gender=Gender.UNKNOWN,
            birth_year=UNSET_BIRTH_YEAR,
        )

    def missing_fields(self) -> List[str]:
        """List the identity fields still holding sentinel or empty values."""
        missing = []
        if not self.id or self.id == UNSET_PATIENT_ID:
            missing.append("id")
        if not self.display_name or self.display_name == UNSET_DISPLAY_NAME:
            missing.append("display_name")
        if self.gender == Gender.UNKNOWN:
            missing.append("gender")
        if self.birth_year <= UNSET_BIRTH_YEAR:
            missing.append("birth_year")
        return missing

    def is_complete(self) -> bool:
        return not self.missing_fields()

    def age(self, today: Optional[date] = None) -> Optional[int]:
        """Age in whole years, or None while the birth year is unset."""
        today = today or date.today()
        years = today.year - self.birth_year
        if self.birth_year <= UNSET_BIRTH_YEAR or years <= 0:
            return None
        return years

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the persisted JSON shape."""
        return {
            "id": self.id,
            "display_name": self.display_name,
            "gender": self.gender.value,
            "birth_year": self.birth_year,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'PatientIdentity':
        """Create an identity from its persisted JSON shape."""
        try:
            gender = Gender(data.get("gender", Gender.UNKNOWN.value))
        except ValueError:
            gender = Gender.UNKNOWN
        return cls(
            id=str(data.get("id") or UNSET_PATIENT_ID),
            display_name=str(data.get("display_name") or UNSET_DISPLAY_NAME),
            gender=gender,
            birth_year=int(data.get("birth_year") or UNSET_BIRTH_YEAR),
        )
