"""
Domain models for medication events and the drug catalog.
"""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Tuple

from core.datetime_utils import format_iso, parse_datetime


@dataclass(frozen=True)
class Drug:
    """Catalog entry for a known drug."""

    id: str
    category: str
    name: str
    side_effect: str
    interactions: Tuple[str, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class MedicationEvent:
    """A dose the patient logged. Correlated with readings by time only."""

    id: str
    drug_name: str
    timestamp: datetime
    category: str
    note: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.drug_name,
            "date": format_iso(self.timestamp),
            "category": self.category,
            "note": self.note,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'MedicationEvent':
        return cls(
            id=str(data["id"]),
            drug_name=data["name"],
            timestamp=parse_datetime(data["date"]),
            category=data.get("category") or "other",
            note=data.get("note") or "",
        )
