"""
Service layer for recording and querying readings.

Architecture:
    API Layer (routers) → ReadingService → ReadingRepository → KeyValueStore

Readings are validated here before they reach a repository: values must be
positive and finite. Inverted blood pressure pairs are stored as entered;
the classifier swaps them when it evaluates the pair.
"""
import logging
import math
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Union

from core.datetime_utils import to_utc, utc_now
from core.exceptions import EmptySelectionError, InvalidReadingError
from models.analysis import Finding, TierStatus
from models.reading import (
    BloodPressureReading,
    GlucoseReading,
    GlucoseTiming,
    Reading,
    ReadingKind,
)
from repositories import ReadingRepository
from services.classifier import reading_status
from services.trend_analyzer import analyze_trend

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IndexedReading:
    """A reading with its storage index and display status."""

    index: int
    reading: Reading
    status: TierStatus


def _check_positive(name: str, value: Union[int, float]) -> None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InvalidReadingError(f"{name} must be a number", field=name)
    if not math.isfinite(value) or value <= 0:
        raise InvalidReadingError(f"{name} must be a positive number", field=name, value=str(value))


class ReadingService:
    """
    Records readings and answers questions about them.

    Indices handed out by list_readings() are storage indices and are the
    ones select() expects.
    """

    def __init__(self, reading_repositories: Dict[ReadingKind, ReadingRepository]):
        """
        Initialize the reading service.

        Args:
            reading_repositories: One repository per reading kind.
                                 Injected via core.dependencies.get_reading_service().
        """
        self._repos = reading_repositories

    def _repo(self, kind: ReadingKind) -> ReadingRepository:
        return self._repos[kind]

    def add_blood_pressure(
        self,
        systolic: int,
        diastolic: int,
        pulse: int,
        timestamp: Optional[datetime] = None,
        medication_taken: bool = False,
    ) -> IndexedReading:
        """
        Record a blood pressure reading.

        Raises:
            InvalidReadingError: If a value is not a positive number.
        """
        for name, value in (("systolic", systolic), ("diastolic", diastolic), ("pulse", pulse)):
            _check_positive(name, value)

        reading = BloodPressureReading(
            timestamp=to_utc(timestamp) if timestamp else utc_now(),
            systolic=int(systolic),
            diastolic=int(diastolic),
            pulse=int(pulse),
            medication_taken=medication_taken,
        )
        index = self._repo(ReadingKind.BLOOD_PRESSURE).append(reading)
        logger.info(f"Recorded blood pressure reading #{index}")
        return IndexedReading(index=index, reading=reading, status=reading_status(reading))

    def add_glucose(
        self,
        value: Union[int, float],
        timing: GlucoseTiming = GlucoseTiming.OTHER,
        timestamp: Optional[datetime] = None,
        medication_taken: bool = False,
    ) -> IndexedReading:
        """
        Record a glucose reading in mg/dL.

        Integral values are stored as int.

        Raises:
            InvalidReadingError: If the value is not a positive number.
        """
        _check_positive("value", value)
        if isinstance(value, float) and value.is_integer():
            value = int(value)

        reading = GlucoseReading(
            timestamp=to_utc(timestamp) if timestamp else utc_now(),
            value=value,
            timing=timing,
            medication_taken=medication_taken,
        )
        index = self._repo(ReadingKind.GLUCOSE).append(reading)
        logger.info(f"Recorded glucose reading #{index} ({timing.value})")
        return IndexedReading(index=index, reading=reading, status=reading_status(reading))

    def list_readings(self, kind: ReadingKind, limit: Optional[int] = None) -> List[IndexedReading]:
        """
        Readings of a kind, newest first, with storage indices.

        Args:
            kind: Reading kind.
            limit: Maximum number of readings returned.
        """
        indexed = [
            IndexedReading(index=i, reading=r, status=reading_status(r))
            for i, r in enumerate(self._repo(kind).list())
        ]
        indexed.sort(key=lambda item: to_utc(item.reading.timestamp), reverse=True)
        return indexed[:limit] if limit else indexed

    def latest(self, kind: ReadingKind) -> Optional[IndexedReading]:
        """Most recent reading of a kind, None when nothing is recorded."""
        readings = self.list_readings(kind, limit=1)
        return readings[0] if readings else None

    def select(self, kind: ReadingKind, indices: Iterable[int]) -> List[Reading]:
        """
        Pick readings by storage index, in storage order.

        Unknown indices are ignored; duplicates count once.

        Raises:
            EmptySelectionError: If nothing is selected.
        """
        wanted = set(indices)
        selected = [r for i, r in enumerate(self._repo(kind).list()) if i in wanted]
        if not selected:
            raise EmptySelectionError(kind=kind.value)
        return selected

    def all_readings(self, kind: ReadingKind) -> List[Reading]:
        return self._repo(kind).list()

    def recommendations(self, now: Optional[datetime] = None) -> List[Finding]:
        """
        Advisory findings over the whole history, glucose first.

        Returns:
            Findings of every kind; empty when everything is stable.
        """
        now = now or utc_now()
        findings: List[Finding] = []
        for kind in (ReadingKind.GLUCOSE, ReadingKind.BLOOD_PRESSURE):
            findings.extend(analyze_trend(self._repo(kind).list(), kind, now))
        return findings
