"""
Repository for readings of one kind.

Architecture:
    ReadingRepository keeps the list of readings in memory and writes it
    through to the key-value store on every change. The in-memory list is
    authoritative for the session: a failed write is logged and the session
    carries on.
"""
import logging
from typing import List, Sequence

from models.reading import Reading, ReadingKind, kind_of, reading_from_dict
from repositories.base import KeyValueStore

logger = logging.getLogger(__name__)

STORE_KEYS = {
    ReadingKind.BLOOD_PRESSURE: "bpRecords",
    ReadingKind.GLUCOSE: "bsRecords",
}


class ReadingRepository:
    """
    Storage-order list of readings of a single kind.

    Indices handed out by list() stay valid until the next replace_all().
    """

    def __init__(self, store: KeyValueStore, kind: ReadingKind):
        """
        Initialize the repository and load stored readings.

        Args:
            store: Key-value store. Injected via core.dependencies.
            kind: Which reading kind this repository holds.
        """
        self._store = store
        self.kind = kind
        self._key = STORE_KEYS[kind]
        self._readings: List[Reading] = self._load()

    def _load(self) -> List[Reading]:
        raw = self._store.load(self._key)
        if not raw:
            return []
        if not isinstance(raw, list):
            logger.error(f"Stored {self._key} is not a list, starting empty")
            return []

        readings = []
        for item in raw:
            try:
                readings.append(reading_from_dict(self.kind, item))
            except (KeyError, TypeError, ValueError) as e:
                logger.warning(f"Skipping unreadable {self.kind.value} record {item!r}: {e}")
        return readings

    def _persist(self) -> bool:
        saved = self._store.save(self._key, [reading.to_dict() for reading in self._readings])
        if not saved:
            logger.error(f"Failed to persist {self._key}, keeping in-memory state")
        return saved

    def list(self) -> List[Reading]:
        """All readings in storage order."""
        return list(self._readings)

    def append(self, reading: Reading) -> int:
        """
        Append a reading and persist.

        Returns:
            Storage index of the new reading.

        Raises:
            TypeError: If the reading is of the other kind.
        """
        if kind_of(reading) != self.kind:
            raise TypeError(f"Cannot store a {kind_of(reading).value} reading in the {self.kind.value} repository")
        self._readings.append(reading)
        self._persist()
        return len(self._readings) - 1

    def replace_all(self, readings: Sequence[Reading]) -> None:
        """Replace the whole list (an empty sequence clears it) and persist."""
        for reading in readings:
            if kind_of(reading) != self.kind:
                raise TypeError(f"Cannot store a {kind_of(reading).value} reading in the {self.kind.value} repository")
        self._readings = list(readings)
        self._persist()
