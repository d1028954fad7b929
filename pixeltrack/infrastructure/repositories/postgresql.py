# ==============================================================================
# PostgreSQL Tracking Repository
# ==============================================================================
"""
PostgreSQL implementation of TrackingRepository.

Opens are recorded with a single INSERT ... ON CONFLICT DO UPDATE keyed by the
(email_id, recipient_email, ip_address) unique constraint, so concurrent hits
for a brand-new identity key cannot produce two rows. Aggregates are plain SQL
COUNT / SUM / COUNT(DISTINCT) / MAX with GROUP BY.

Connections come from a psycopg2 ThreadedConnectionPool (one per request
thread), each with a connect timeout and a server-side statement_timeout.
"""

import logging
from collections.abc import Iterator
from contextlib import contextmanager

import psycopg2
from psycopg2.extras import RealDictCursor
from psycopg2.pool import ThreadedConnectionPool

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

# Whitelisted column for each filterable/groupable field
COLUMNS: dict[RecordField, str] = {
    RecordField.EMAIL_ID: "email_id",
    RecordField.RECIPIENT_EMAIL: "recipient_email",
    RecordField.CAMPAIGN_ID: "campaign_id",
    RecordField.IP_ADDRESS: "ip_address",
    RecordField.DEVICE: "device",
    RecordField.BROWSER: "browser",
    RecordField.OS: "os",
    RecordField.COUNTRY: "location_country",
}

SELECT_COLUMNS = """
    email_id, recipient_email, campaign_id, ip_address, last_opened_at,
    user_agent, device, browser, os,
    location_country, location_region, location_city,
    location_latitude, location_longitude, has_location, open_count
"""


def _conditions(filters: Filters, *extra: str) -> tuple[str, list]:
    """Build a WHERE clause (with leading space) and its parameters."""
    clauses = [f"{COLUMNS[field]} = %s" for field in filters]
    clauses.extend(extra)
    if not clauses:
        return "", []
    return " WHERE " + " AND ".join(clauses), list(filters.values())


def record_to_row(record: TrackingRecord) -> dict:
    """Convert a TrackingRecord to upsert parameters."""
    location = record.location
    coordinates = location.coordinates if location and location.coordinates else None
    return {
        "email_id": record.email_id,
        "recipient_email": record.recipient_email,
        "campaign_id": record.campaign_id,
        "ip_address": record.ip_address,
        "last_opened_at": record.timestamp,
        "user_agent": record.user_agent,
        "device": record.device,
        "browser": record.browser,
        "os": record.os,
        "location_country": location.country if location else None,
        "location_region": location.region if location else None,
        "location_city": location.city if location else None,
        "location_latitude": coordinates[0] if coordinates else None,
        "location_longitude": coordinates[1] if coordinates else None,
        "has_location": location is not None,
    }


def row_to_record(row: dict) -> TrackingRecord:
    """Convert a tracking row (RealDictCursor) to a TrackingRecord."""
    location = None
    if row["has_location"]:
        coordinates = None
        if row["location_latitude"] is not None and row["location_longitude"] is not None:
            coordinates = [row["location_latitude"], row["location_longitude"]]
        location = Location(
            country=row["location_country"],
            region=row["location_region"],
            city=row["location_city"],
            coordinates=coordinates,
        )
    return TrackingRecord(
        email_id=row["email_id"],
        recipient_email=row["recipient_email"],
        campaign_id=row["campaign_id"],
        timestamp=row["last_opened_at"],
        ip_address=row["ip_address"],
        user_agent=row["user_agent"],
        device=row["device"],
        browser=row["browser"],
        os=row["os"],
        location=location,
        open_count=row["open_count"],
    )


class PostgreSQLTrackingRepository(TrackingRepository):
    """
    PostgreSQL implementation of TrackingRepository.

    The tracking table has a unique constraint on
    (email_id, recipient_email, ip_address) which is the conflict target of
    the open upsert. Write-once columns are never named in the DO UPDATE
    clause, so they keep the values of the first open.
    """

    def __init__(self, settings: Settings | None = None):
        """
        Initialize the tracking repository.

        Args:
            settings: Application settings. If None, uses get_settings().
        """
        self._settings = settings or get_settings()
        self._pool: ThreadedConnectionPool | None = None
        self._schema = self._settings.postgres.schema_name

    @property
    def schema(self) -> str:
        """Get the database schema name."""
        return self._schema

    def connect(self) -> None:
        """Open the connection pool."""
        pg = self._settings.postgres
        try:
            self._pool = ThreadedConnectionPool(
                pg.pool_min_size,
                pg.pool_max_size,
                pg.connection_string,
                connect_timeout=pg.connect_timeout,
                options=f"-c statement_timeout={pg.statement_timeout_ms}",
            )
        except psycopg2.Error as e:
            raise StoreError(f"PostgreSQL connection failed: {e}") from e
        logger.info(
            "PostgreSQLTrackingRepository connected (schema=%s, pool=%d..%d)",
            self._schema,
            pg.pool_min_size,
            pg.pool_max_size,
        )

    def close(self) -> None:
        """Close all pooled connections."""
        if self._pool:
            try:
                self._pool.closeall()
                logger.info("PostgreSQLTrackingRepository connection pool closed")
            except psycopg2.Error as e:
                logger.warning("Error closing connection pool: %s", e)
            finally:
                self._pool = None

    def ping(self) -> bool:
        try:
            with self._cursor() as cur:
                cur.execute("SELECT 1")
                return cur.fetchone() is not None
        except StoreError:
            return False

    @contextmanager
    def _cursor(self, cursor_factory=None) -> Iterator:
        """
        Borrow a pooled connection and yield a cursor inside one transaction.

        Commits on success, rolls back on error. psycopg2 errors (including
        statement timeouts and pool exhaustion) and parameters the driver
        refuses to quote are raised as StoreError.
        """
        if self._pool is None:
            raise StoreError("PostgreSQL connection not established. Call connect() first.")

        try:
            conn = self._pool.getconn()
        except psycopg2.Error as e:
            raise StoreError(f"No PostgreSQL connection available: {e}") from e

        try:
            with conn.cursor(cursor_factory=cursor_factory) as cur:
                yield cur
            conn.commit()
        except psycopg2.Error as e:
            self._rollback(conn)
            raise StoreError(f"PostgreSQL error: {e}") from e
        except ValueError as e:
            # Raised client-side while quoting parameters (e.g. NUL characters)
            self._rollback(conn)
            raise StoreError(f"PostgreSQL rejected a parameter: {e}") from e
        except Exception:
            self._rollback(conn)
            raise
        finally:
            self._pool.putconn(conn, close=bool(conn.closed))

    @staticmethod
    def _rollback(conn) -> None:
        try:
            conn.rollback()
        except psycopg2.Error:
            pass

    # --------------------------------------------------------------------------
    # Writes
    # --------------------------------------------------------------------------

    def upsert_open(self, record: TrackingRecord) -> OpenOutcome:
        """
        Insert the record, or increment open_count of the existing row.

        `xmax = 0` holds only for a row version created by this INSERT, which
        tells a fresh insert apart from the DO UPDATE path.
        """
        table = f"{self._schema}.tracking"
        with self._cursor() as cur:
            cur.execute(
                f"""
                INSERT INTO {table} (
                    email_id, recipient_email, campaign_id, ip_address, last_opened_at,
                    user_agent, device, browser, os,
                    location_country, location_region, location_city,
                    location_latitude, location_longitude, has_location, open_count
                ) VALUES (
                    %(email_id)s, %(recipient_email)s, %(campaign_id)s, %(ip_address)s,
                    %(last_opened_at)s, %(user_agent)s, %(device)s, %(browser)s, %(os)s,
                    %(location_country)s, %(location_region)s, %(location_city)s,
                    %(location_latitude)s, %(location_longitude)s, %(has_location)s, 1
                )
                ON CONFLICT ON CONSTRAINT tracking_identity_key DO UPDATE SET
                    open_count = {table}.open_count + 1,
                    last_opened_at = GREATEST({table}.last_opened_at, EXCLUDED.last_opened_at)
                RETURNING (xmax = 0) AS inserted
                """,
                record_to_row(record),
            )
            row = cur.fetchone()

        inserted = bool(row[0]) if row else False
        return OpenOutcome.CREATED if inserted else OpenOutcome.INCREMENTED

    # --------------------------------------------------------------------------
    # Reads
    # --------------------------------------------------------------------------

    def find(self, filters: Filters) -> list[TrackingRecord]:
        where, params = _conditions(filters)
        with self._cursor(cursor_factory=RealDictCursor) as cur:
            cur.execute(
                f"SELECT {SELECT_COLUMNS} FROM {self._schema}.tracking{where} "
                "ORDER BY last_opened_at DESC",
                params,
            )
            rows = cur.fetchall()
        return [row_to_record(row) for row in rows]

    def _scalar(self, select: str, filters: Filters) -> int:
        where, params = _conditions(filters)
        with self._cursor() as cur:
            cur.execute(f"SELECT {select} FROM {self._schema}.tracking{where}", params)
            row = cur.fetchone()
        return int(row[0]) if row and row[0] is not None else 0

    def count(self, filters: Filters) -> int:
        return self._scalar("COUNT(*)", filters)

    def sum_opens(self, filters: Filters) -> int:
        return self._scalar("COALESCE(SUM(open_count), 0)", filters)

    def count_distinct(self, filters: Filters, field: RecordField) -> int:
        return self._scalar(f"COUNT(DISTINCT {COLUMNS[field]})", filters)

    def count_by(self, filters: Filters, field: RecordField) -> dict[str, int]:
        column = COLUMNS[field]
        where, params = _conditions(filters, f"{column} IS NOT NULL")
        with self._cursor() as cur:
            cur.execute(
                f"SELECT {column}, COUNT(*) FROM {self._schema}.tracking{where} "
                f"GROUP BY {column} ORDER BY {column}",
                params,
            )
            rows = cur.fetchall()
        return {key: int(count) for key, count in rows}

    def opens_by(self, filters: Filters, field: RecordField) -> list[OpensGroup]:
        column = COLUMNS[field]
        where, params = _conditions(filters, f"{column} IS NOT NULL")
        with self._cursor() as cur:
            cur.execute(
                f"SELECT {column}, SUM(open_count), MAX(last_opened_at) "
                f"FROM {self._schema}.tracking{where} "
                f"GROUP BY {column} ORDER BY {column}",
                params,
            )
            rows = cur.fetchall()
        return [
            OpensGroup(key=key, open_count=int(total), last_opened=last_opened)
            for key, total, last_opened in rows
        ]


def check_postgresql_connection(settings: Settings | None = None) -> bool:
    """
    Check if PostgreSQL is reachable.

    Args:
        settings: Application settings. If None, uses get_settings().

    Returns:
        True if connection successful, False otherwise
    """
    settings = settings or get_settings()
    try:
        conn = psycopg2.connect(
            settings.postgres.connection_string,
            connect_timeout=settings.postgres.connect_timeout,
        )
        conn.close()
        return True
    except psycopg2.Error:
        return False
