"""
Derived values: severity tiers for single readings and advisory findings
for reading trends. None of these are ever persisted.
"""
from dataclasses import dataclass
from enum import Enum


class SeverityTier(str, Enum):
    LOW = "low"
    NORMAL = "normal"
    ELEVATED = "elevated"
    HIGH = "high"
    CRITICAL = "critical"


@dataclass(frozen=True)
class TierStatus:
    """A tier plus the hints a front end needs to display it."""

    tier: SeverityTier
    label: str
    icon: str
    css_class: str


class FindingSeverity(str, Enum):
    INFO = "info"
    WARNING = "warning"
    DANGER = "danger"


@dataclass(frozen=True)
class Finding:
    """An advisory statement derived from several readings."""

    severity: FindingSeverity
    title: str
    message: str
