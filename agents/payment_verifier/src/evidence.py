"""
Evidence Set and Submission Log - shared in-memory state.

Both collections live for the lifetime of the owning PaymentGate and are
append-only. Each is guarded by its own lock so concurrent scans cannot
insert the same message twice and readers only ever see whole records.
"""

import threading
from typing import Iterator, List, Set

from .models import EvidenceRecord, SubmissionRecord


class EvidenceSet:
    """
    Ordered, deduplicated collection of EvidenceRecord.

    Insertion order is kept for display; lookups ignore it.
    """

    def __init__(self):
        self._records: List[EvidenceRecord] = []
        self._ids: Set[str] = set()
        self._lock = threading.Lock()

    def add(self, record: EvidenceRecord) -> bool:
        """
        Append a record unless its id is already present.

        Returns:
            True if the record was added, False if it was a duplicate
        """
        with self._lock:
            if record.id in self._ids:
                return False
            self._ids.add(record.id)
            self._records.append(record)
            return True

    def contains(self, message_id: str) -> bool:
        with self._lock:
            return message_id in self._ids

    def snapshot(self) -> List[EvidenceRecord]:
        """Copy of the records in insertion order."""
        with self._lock:
            return list(self._records)

    def __iter__(self) -> Iterator[EvidenceRecord]:
        return iter(self.snapshot())

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)


class SubmissionLog:
    """Append-only log of accepted submissions."""

    def __init__(self):
        self._records: List[SubmissionRecord] = []
        self._lock = threading.Lock()

    def append(self, record: SubmissionRecord) -> None:
        with self._lock:
            self._records.append(record)

    def snapshot(self) -> List[SubmissionRecord]:
        with self._lock:
            return list(self._records)

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)
