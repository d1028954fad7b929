# ==============================================================================
# Valkey Tracking Repository
# ==============================================================================
"""
Valkey/Redis implementation of TrackingRepository.

Key layout (prefix defaults to "pixeltrack"):
- {prefix}:record:{sha256}           hash, one per identity key
- {prefix}:opened                    sorted set, record key -> last open (epoch ms)
- {prefix}:records                   set of all record keys
- {prefix}:idx:{field}:{value}       set of record keys per email/recipient/campaign

An open is one MULTI/EXEC transaction: HSETNX for every write-once field,
HINCRBY on open_count, ZADD GT for the last-open time and SADD into the index
sets. HSETNX leaves the first open's values in place, and HINCRBY returning 1
means the record was just created.

Index sets only narrow the candidate keys; every read re-checks the record's
own fields, so an index entry can never leak a record into the wrong result.
Aggregates are folded in Python over the matching records.
"""

import hashlib
import json
import logging
from collections import Counter
from datetime import UTC, datetime, timedelta

import redis
from redis.exceptions import RedisError

from pixeltrack.base.repositories import Filters, TrackingRepository
from pixeltrack.core.errors import StoreError
from pixeltrack.core.models import (
    Location,
    OpenOutcome,
    OpensGroup,
    RecordField,
    TrackingRecord,
)
from pixeltrack.utils.config import Settings, get_settings

logger = logging.getLogger(__name__)

# Fields with a secondary index, narrowest first
INDEXED_FIELDS = (RecordField.EMAIL_ID, RecordField.CAMPAIGN_ID, RecordField.RECIPIENT_EMAIL)

_EPOCH = datetime(1970, 1, 1, tzinfo=UTC)
_MILLISECOND = timedelta(milliseconds=1)


def to_epoch_ms(value: datetime) -> int:
    """Exact epoch milliseconds for an aware datetime."""
    return (value - _EPOCH) // _MILLISECOND


def from_epoch_ms(value: float) -> datetime:
    return _EPOCH + timedelta(milliseconds=int(value))


def identity_digest(identity_key: tuple[str, str, str]) -> str:
    """Stable digest of (email_id, recipient_email, ip_address)."""
    return hashlib.sha256(json.dumps(list(identity_key)).encode()).hexdigest()


class ValkeyTrackingRepository(TrackingRepository):
    """
    Valkey/Redis implementation of TrackingRepository.

    Timestamps are kept at millisecond precision.
    """

    def __init__(self, client: redis.Redis | None = None, settings: Settings | None = None):
        """
        Initialize the repository.

        Args:
            client: Redis client instance (decode_responses=True). If None,
                one is created from settings on connect().
            settings: Application settings. If None, uses get_settings().
        """
        self._settings = settings or get_settings()
        self._client = client
        self._prefix = self._settings.valkey.key_prefix

    @property
    def client(self) -> redis.Redis | None:
        """Get the underlying Redis client."""
        return self._client

    def connect(self) -> None:
        if self._client is not None:
            return
        valkey = self._settings.valkey
        self._client = redis.from_url(
            valkey.url,
            decode_responses=True,
            socket_timeout=valkey.socket_timeout,
            socket_connect_timeout=valkey.socket_timeout,
            health_check_interval=30,
        )
        logger.info("ValkeyTrackingRepository connected (prefix=%s)", self._prefix)

    def close(self) -> None:
        if self._client is not None:
            try:
                self._client.close()
                logger.info("ValkeyTrackingRepository connection closed")
            except RedisError as e:
                logger.warning("Error closing connection: %s", e)
            finally:
                self._client = None

    def ping(self) -> bool:
        try:
            return bool(self._require_client().ping())
        except (RedisError, StoreError):
            return False

    def _require_client(self) -> redis.Redis:
        if self._client is None:
            raise StoreError("Valkey connection not established. Call connect() first.")
        return self._client

    # --------------------------------------------------------------------------
    # Keys and (de)serialization
    # --------------------------------------------------------------------------

    @property
    def _opened_key(self) -> str:
        return f"{self._prefix}:opened"

    @property
    def _all_key(self) -> str:
        return f"{self._prefix}:records"

    def _record_key(self, identity_key: tuple[str, str, str]) -> str:
        return f"{self._prefix}:record:{identity_digest(identity_key)}"

    def _index_key(self, field: RecordField, value: str) -> str:
        return f"{self._prefix}:idx:{field.value}:{value}"

    @staticmethod
    def _serialize(record: TrackingRecord) -> dict[str, str]:
        """Write-once hash fields. None campaign/location are stored explicitly."""
        location = record.location.model_dump() if record.location else None
        return {
            "email_id": record.email_id,
            "recipient_email": record.recipient_email,
            "campaign_id": record.campaign_id or "",
            "ip_address": record.ip_address,
            "user_agent": record.user_agent,
            "device": record.device,
            "browser": record.browser,
            "os": record.os,
            "location": json.dumps(location),
        }

    @staticmethod
    def _parse(data: dict, last_opened_ms: float) -> TrackingRecord:
        location = json.loads(data.get("location") or "null")
        return TrackingRecord(
            email_id=data["email_id"],
            recipient_email=data.get("recipient_email", ""),
            campaign_id=data.get("campaign_id") or None,
            timestamp=from_epoch_ms(last_opened_ms),
            ip_address=data.get("ip_address", ""),
            user_agent=data.get("user_agent", ""),
            device=data.get("device", "unknown"),
            browser=data.get("browser", "unknown"),
            os=data.get("os", "unknown"),
            location=Location(**location) if location else None,
            open_count=int(data.get("open_count", 1)),
        )

    # --------------------------------------------------------------------------
    # Writes
    # --------------------------------------------------------------------------

    def upsert_open(self, record: TrackingRecord) -> OpenOutcome:
        client = self._require_client()
        key = self._record_key(record.identity_key)
        fields = self._serialize(record)

        try:
            pipe = client.pipeline(transaction=True)
            for name, value in fields.items():
                pipe.hsetnx(key, name, value)
            pipe.hincrby(key, "open_count", 1)
            pipe.zadd(self._opened_key, {key: to_epoch_ms(record.timestamp)}, gt=True)
            pipe.sadd(self._all_key, key)
            pipe.sadd(self._index_key(RecordField.EMAIL_ID, record.email_id), key)
            pipe.sadd(self._index_key(RecordField.RECIPIENT_EMAIL, record.recipient_email), key)
            if record.campaign_id:
                pipe.sadd(self._index_key(RecordField.CAMPAIGN_ID, record.campaign_id), key)
            results = pipe.execute()
        except RedisError as e:
            raise StoreError(f"Valkey error: {e}") from e

        open_count = int(results[len(fields)])
        return OpenOutcome.CREATED if open_count == 1 else OpenOutcome.INCREMENTED

    # --------------------------------------------------------------------------
    # Reads
    # --------------------------------------------------------------------------

    def _candidate_keys(self, filters: Filters) -> set[str]:
        client = self._require_client()
        for field in INDEXED_FIELDS:
            if field in filters:
                return client.smembers(self._index_key(field, filters[field]))
        return client.smembers(self._all_key)

    def _matching(self, filters: Filters) -> list[TrackingRecord]:
        """Load candidate records and keep those matching every filter."""
        try:
            keys = sorted(self._candidate_keys(filters))
            if not keys:
                return []
            pipe = self._require_client().pipeline(transaction=False)
            for key in keys:
                pipe.hgetall(key)
                pipe.zscore(self._opened_key, key)
            results = pipe.execute()
        except RedisError as e:
            raise StoreError(f"Valkey error: {e}") from e

        records = []
        for data, score in zip(results[::2], results[1::2]):
            if not data or score is None:
                continue
            record = self._parse(data, score)
            if all(record.value_of(field) == value for field, value in filters.items()):
                records.append(record)
        return records

    def find(self, filters: Filters) -> list[TrackingRecord]:
        records = self._matching(filters)
        records.sort(key=lambda r: r.timestamp, reverse=True)
        return records

    def count(self, filters: Filters) -> int:
        return len(self._matching(filters))

    def sum_opens(self, filters: Filters) -> int:
        return sum(record.open_count for record in self._matching(filters))

    def count_by(self, filters: Filters, field: RecordField) -> dict[str, int]:
        counts = Counter(
            value
            for value in (record.value_of(field) for record in self._matching(filters))
            if value is not None
        )
        return dict(sorted(counts.items()))

    def count_distinct(self, filters: Filters, field: RecordField) -> int:
        values = {record.value_of(field) for record in self._matching(filters)}
        values.discard(None)
        return len(values)

    def opens_by(self, filters: Filters, field: RecordField) -> list[OpensGroup]:
        groups: dict[str, OpensGroup] = {}
        for record in self._matching(filters):
            key = record.value_of(field)
            if key is None:
                continue
            group = groups.get(key)
            if group is None:
                groups[key] = OpensGroup(
                    key=key, open_count=record.open_count, last_opened=record.timestamp
                )
            else:
                group.open_count += record.open_count
                group.last_opened = max(group.last_opened, record.timestamp)
        return [groups[key] for key in sorted(groups)]


def check_valkey_connection(settings: Settings | None = None) -> bool:
    """
    Check if Valkey is reachable.

    Returns:
        True if Valkey responds to ping, False otherwise
    """
    settings = settings or get_settings()
    try:
        client = redis.from_url(
            settings.valkey.url,
            decode_responses=True,
            socket_timeout=5,
            socket_connect_timeout=5,
        )
        client.ping()
        client.close()
        return True
    except RedisError:
        return False
