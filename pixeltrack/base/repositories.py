# ==============================================================================
# Repository Abstract Base Class
# ==============================================================================
"""
Repository ABC for the tracking event store.

This defines the "what" (upsert an open, query and aggregate records) not the
"how" (SQL upsert vs. Redis transaction). Concrete implementations in
infrastructure/ handle the specifics and wrap driver errors in StoreError.

The aggregate primitives all take an equality filter: a mapping of
RecordField to the exact value a record must carry.
"""

from abc import ABC, abstractmethod
from collections.abc import Mapping

from pixeltrack.core.models import OpenOutcome, OpensGroup, RecordField, TrackingRecord

Filters = Mapping[RecordField, str]


class TrackingRepository(ABC):
    """Repository for TrackingRecords keyed by (email_id, recipient_email, ip_address)."""

    @abstractmethod
    def connect(self) -> None:
        """Establish connection to the data store."""
        ...

    @abstractmethod
    def close(self) -> None:
        """Close connection and release resources."""
        ...

    @abstractmethod
    def ping(self) -> bool:
        """Return True if the store is reachable."""
        ...

    @abstractmethod
    def upsert_open(self, record: TrackingRecord) -> OpenOutcome:
        """
        Atomically create or increment the record for record.identity_key.

        If no record exists for the key, record is stored as given.
        Otherwise open_count is incremented by 1 and the timestamp is set to
        record.timestamp; every other stored field is left untouched.

        Args:
            record: Candidate record built from the current hit (open_count=1)

        Returns:
            OpenOutcome.CREATED or OpenOutcome.INCREMENTED
        """
        ...

    @abstractmethod
    def find(self, filters: Filters) -> list[TrackingRecord]:
        """
        Return records matching every filter, most recently opened first.

        An empty filter matches all records.
        """
        ...

    @abstractmethod
    def count(self, filters: Filters) -> int:
        """Number of records matching filters."""
        ...

    @abstractmethod
    def sum_opens(self, filters: Filters) -> int:
        """Sum of open_count over matching records (0 when none match)."""
        ...

    @abstractmethod
    def count_by(self, filters: Filters, field: RecordField) -> dict[str, int]:
        """
        Record counts grouped by field.

        Records whose field value is null are skipped.
        """
        ...

    @abstractmethod
    def count_distinct(self, filters: Filters, field: RecordField) -> int:
        """Number of distinct non-null values of field among matching records."""
        ...

    @abstractmethod
    def opens_by(self, filters: Filters, field: RecordField) -> list[OpensGroup]:
        """
        Sum of open_count and max timestamp grouped by field.

        Records whose field value is null are skipped. Groups are ordered by key.
        """
        ...
