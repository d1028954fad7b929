# ==============================================================================
# Tracking Domain Models
# ==============================================================================
"""
Pydantic models for open-tracking records and the analytics built on them.

These models are used for:
- Carrying a beacon hit from the HTTP layer into the ingestion engine
- Persisting and reading TrackingRecords from the event store
- Serializing stats to JSON (camelCase, via aliases)

This module is part of the core domain layer and has no external dependencies
beyond Pydantic.
"""

from datetime import UTC, datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model that accepts snake_case and dumps camelCase."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_json_dict(self) -> dict:
        """Serialize for JSON responses."""
        return self.model_dump(mode="json", by_alias=True)


class RecordField(str, Enum):
    """Fields of a TrackingRecord that can be filtered or grouped on."""

    EMAIL_ID = "email_id"
    RECIPIENT_EMAIL = "recipient_email"
    CAMPAIGN_ID = "campaign_id"
    IP_ADDRESS = "ip_address"
    DEVICE = "device"
    BROWSER = "browser"
    OS = "os"
    COUNTRY = "country"


class OpenOutcome(str, Enum):
    """What ingestion did with a beacon hit."""

    CREATED = "created"
    INCREMENTED = "incremented"
    FAILED = "failed"


class DeviceInfo(BaseModel):
    """Attributes derived from a user-agent string."""

    device: str
    browser: str
    os: str

    @classmethod
    def unknown(cls) -> "DeviceInfo":
        """Degraded value used when the user agent cannot be parsed."""
        return cls(device="unknown", browser="unknown", os="unknown")


class Location(CamelModel):
    """Geolocation of an IP address at the time of the first open."""

    country: str | None = None
    region: str | None = None
    city: str | None = None
    coordinates: list[float] | None = Field(None, description="[latitude, longitude]")


class OpenHit(BaseModel):
    """
    A single beacon request, as seen by the ingestion engine.

    Attributes:
        email_id: Tracked message identifier (from the pixel path)
        recipient_email: Addressee; absent is normalized to ""
        campaign_id: Optional campaign; empty is normalized to None
        ip_address: Source address of the request
        user_agent: Raw User-Agent header
    """

    email_id: str
    recipient_email: str = ""
    campaign_id: str | None = None
    ip_address: str = ""
    user_agent: str = ""

    @field_validator("recipient_email", "ip_address", "user_agent", mode="before")
    @classmethod
    def _none_to_empty(cls, value):
        return "" if value is None else value

    @field_validator("campaign_id", mode="before")
    @classmethod
    def _empty_campaign_to_none(cls, value):
        return value or None

    @property
    def identity_key(self) -> tuple[str, str, str]:
        """(email_id, recipient_email, ip_address)"""
        return (self.email_id, self.recipient_email, self.ip_address)


class TrackingRecord(CamelModel):
    """
    One row per distinct (email_id, recipient_email, ip_address).

    device, browser, os, location, user_agent and campaign_id are written on
    creation only. timestamp and open_count change on every matching hit.
    """

    email_id: str
    recipient_email: str = ""
    campaign_id: str | None = None
    timestamp: datetime
    ip_address: str = ""
    user_agent: str = ""
    device: str = "unknown"
    browser: str = "unknown"
    os: str = "unknown"
    location: Location | None = None
    open_count: int = Field(1, ge=1)

    @field_validator("timestamp")
    @classmethod
    def _assume_utc(cls, value: datetime) -> datetime:
        return value.replace(tzinfo=UTC) if value.tzinfo is None else value

    @property
    def identity_key(self) -> tuple[str, str, str]:
        """(email_id, recipient_email, ip_address)"""
        return (self.email_id, self.recipient_email, self.ip_address)

    @property
    def country(self) -> str | None:
        return self.location.country if self.location else None

    def value_of(self, field: RecordField) -> str | None:
        """Return the value of a filterable/groupable field."""
        if field is RecordField.COUNTRY:
            return self.country
        return getattr(self, field.value)


class RecordOpenResult(BaseModel):
    """Result of ingesting one beacon hit. The beacon endpoint discards it."""

    outcome: OpenOutcome
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.outcome is not OpenOutcome.FAILED


class OpensGroup(BaseModel):
    """Sum of open counts and latest open time for one group value."""

    key: str
    open_count: int
    last_opened: datetime


class EmailStats(CamelModel):
    """Rollup of all records for one email id."""

    email_id: str
    total_opens: int = 0
    unique_opens: int = 0
    device_stats: dict[str, int] = Field(default_factory=dict)
    browser_stats: dict[str, int] = Field(default_factory=dict)
    location_stats: dict[str, int] = Field(default_factory=dict)


class RecipientOpens(CamelModel):
    """Per-recipient open totals within a campaign."""

    recipient_email: str
    open_count: int
    last_opened: datetime


class CampaignStats(CamelModel):
    """Rollup of all records for one campaign id."""

    campaign_id: str
    total_emails: int = 0
    total_recipients: int = 0
    total_opens: int = 0
    opens_by_email: list[RecipientOpens] = Field(default_factory=list)


class TrackingLink(BaseModel):
    """Pixel URL and the HTML snippet that embeds it."""

    model_config = ConfigDict(populate_by_name=True)

    tracking_url: str = Field(..., alias="trackingUrl")
    tracking_html: str = Field(..., alias="trackingHtml")

    def to_json_dict(self) -> dict:
        return self.model_dump(by_alias=True)
