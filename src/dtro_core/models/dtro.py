"""DTRO document model and write-once update merge."""

from __future__ import annotations

import re
from dataclasses import dataclass, field, fields, replace
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from .geometry import BoundingBox


_VERSION_PATTERN = re.compile(r"^(\d+)\.(\d+)\.(\d+)$")


def utc_now() -> datetime:
    """Current time as a naive UTC datetime."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_naive_utc(value: datetime) -> datetime:
    """Normalise an aware datetime to naive UTC; naive values pass through."""
    if value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def parse_datetime(value: Any) -> Optional[datetime]:
    """
    Parse an ISO-8601 timestamp or date.

    Returns None for missing or unparseable values.
    """
    if isinstance(value, datetime):
        return to_naive_utc(value)
    if not isinstance(value, str) or not value:
        return None
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        return to_naive_utc(datetime.fromisoformat(text))
    except ValueError:
        return None


def _format_datetime(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None


@dataclass(frozen=True, order=True)
class SchemaVersion:
    """Dotted ``major.minor.patch`` schema version."""
    major: int
    minor: int
    patch: int

    @classmethod
    def parse(cls, value: str) -> "SchemaVersion":
        """
        Parse a version string such as ``"3.1.2"``.

        Raises:
            ValueError: If the string is not a dotted triple of integers.
        """
        match = _VERSION_PATTERN.match(value.strip()) if isinstance(value, str) else None
        if not match:
            raise ValueError(f"Invalid schema version: {value!r}")
        return cls(int(match.group(1)), int(match.group(2)), int(match.group(3)))

    def __str__(self) -> str:
        return f"{self.major}.{self.minor}.{self.patch}"


@dataclass
class Dtro:
    """
    A Digital Traffic Regulation Order record.

    ``data`` holds the submitted payload. The index fields below it are
    derived from ``data`` and recomputed before every save and update.
    """
    id: Optional[str] = None
    schema_version: Optional[SchemaVersion] = None
    data: Dict[str, Any] = field(default_factory=dict)
    created: Optional[datetime] = None
    last_updated: Optional[datetime] = None
    created_correlation_id: Optional[str] = None
    last_updated_correlation_id: Optional[str] = None
    deleted: bool = False
    deletion_time: Optional[datetime] = None

    # Index fields
    traffic_authority_id: int = 0
    tro_name: Optional[str] = None
    regulation_types: List[str] = field(default_factory=list)
    vehicle_types: List[str] = field(default_factory=list)
    order_reporting_points: List[str] = field(default_factory=list)
    regulation_start: Optional[datetime] = None
    regulation_end: Optional[datetime] = None
    location: Optional[BoundingBox] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a JSON-compatible dictionary."""
        return {
            "id": self.id,
            "schemaVersion": str(self.schema_version) if self.schema_version else None,
            "data": self.data,
            "created": _format_datetime(self.created),
            "lastUpdated": _format_datetime(self.last_updated),
            "createdCorrelationId": self.created_correlation_id,
            "lastUpdatedCorrelationId": self.last_updated_correlation_id,
            "deleted": self.deleted,
            "deletionTime": _format_datetime(self.deletion_time),
            "trafficAuthorityId": self.traffic_authority_id,
            "troName": self.tro_name,
            "regulationTypes": list(self.regulation_types),
            "vehicleTypes": list(self.vehicle_types),
            "orderReportingPoints": list(self.order_reporting_points),
            "regulationStart": _format_datetime(self.regulation_start),
            "regulationEnd": _format_datetime(self.regulation_end),
            "location": self.location.to_dict() if self.location else None,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Dtro":
        """Reconstruct a Dtro from ``to_dict`` output."""
        version = data.get("schemaVersion")
        location = data.get("location")
        return cls(
            id=data.get("id"),
            schema_version=SchemaVersion.parse(version) if version else None,
            data=data.get("data") or {},
            created=parse_datetime(data.get("created")),
            last_updated=parse_datetime(data.get("lastUpdated")),
            created_correlation_id=data.get("createdCorrelationId"),
            last_updated_correlation_id=data.get("lastUpdatedCorrelationId"),
            deleted=bool(data.get("deleted", False)),
            deletion_time=parse_datetime(data.get("deletionTime")),
            traffic_authority_id=int(data.get("trafficAuthorityId") or 0),
            tro_name=data.get("troName"),
            regulation_types=list(data.get("regulationTypes") or []),
            vehicle_types=list(data.get("vehicleTypes") or []),
            order_reporting_points=list(data.get("orderReportingPoints") or []),
            regulation_start=parse_datetime(data.get("regulationStart")),
            regulation_end=parse_datetime(data.get("regulationEnd")),
            location=BoundingBox.from_dict(location) if location else None,
        )

    @classmethod
    def from_submission(cls, payload: Dict[str, Any]) -> "Dtro":
        """
        Build a Dtro from a create/update request body.

        Args:
            payload: Body with ``schemaVersion`` and ``data`` keys.

        Raises:
            ValueError: If the schema version is missing or malformed.
        """
        version = payload.get("schemaVersion")
        if not version:
            raise ValueError("schemaVersion is required")
        data = payload.get("data")
        if not isinstance(data, dict):
            raise ValueError("data must be a JSON object")
        return cls(schema_version=SchemaVersion.parse(version), data=data)


# Fields set once on creation and never replaced by an update.
WRITE_ONCE_FIELDS = frozenset({"id", "created", "created_correlation_id"})

MUTABLE_FIELDS = frozenset(
    f.name for f in fields(Dtro) if f.name not in WRITE_ONCE_FIELDS
)


def merge_for_update(existing: Dtro, incoming: Dtro) -> Dtro:
    """
    Merge an update into an existing record.

    Write-once fields are kept from ``existing``; every other field is
    taken from ``incoming``.

    Args:
        existing: The stored record.
        incoming: The record carrying the update.

    Returns:
        A new Dtro; neither argument is modified.
    """
    return replace(
        incoming,
        **{name: getattr(existing, name) for name in WRITE_ONCE_FIELDS},
    )
