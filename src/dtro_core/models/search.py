"""Search, event and pagination models."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from ..exceptions import InvalidRequestError
from .enums import ComparisonOperator, DtroEventType
from .geometry import BoundingBox
from .dtro import Dtro, parse_datetime


MAX_PAGE_SIZE = 50


def _format(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None


def _optional_datetime(data: Dict[str, Any], key: str) -> Optional[datetime]:
    raw = data.get(key)
    if raw is None:
        return None
    parsed = parse_datetime(raw)
    if parsed is None:
        raise InvalidRequestError(f"'{key}' must be an ISO-8601 timestamp")
    return parsed


def _optional_str(data: Dict[str, Any], key: str, max_length: int) -> Optional[str]:
    raw = data.get(key)
    if raw is None:
        return None
    if not isinstance(raw, str):
        raise InvalidRequestError(f"'{key}' must be a string")
    if len(raw) > max_length:
        raise InvalidRequestError(f"'{key}' must be at most {max_length} characters")
    return raw


def _optional_int(data: Dict[str, Any], key: str) -> Optional[int]:
    raw = data.get(key)
    if raw is None:
        return None
    if isinstance(raw, bool) or not isinstance(raw, int):
        raise InvalidRequestError(f"'{key}' must be an integer")
    return raw


def _page_number(data: Dict[str, Any], key: str, default: int, maximum: Optional[int] = None) -> int:
    value = _optional_int(data, key)
    if value is None:
        return default
    if value < 1:
        raise InvalidRequestError(f"'{key}' must be at least 1")
    if maximum is not None and value > maximum:
        raise InvalidRequestError(f"'{key}' must be at most {maximum}")
    return value


@dataclass
class ValueCondition:
    """A comparison against a single value, e.g. ``regulationStart >= t``."""
    operator: ComparisonOperator
    value: Any

    def is_satisfied(self, candidate: Any) -> bool:
        """Check whether ``candidate <op> value`` holds."""
        if self.operator == ComparisonOperator.EQUAL:
            return candidate == self.value
        if self.operator == ComparisonOperator.LESS_THAN:
            return candidate < self.value
        if self.operator == ComparisonOperator.LESS_THAN_OR_EQUAL:
            return candidate <= self.value
        if self.operator == ComparisonOperator.GREATER_THAN:
            return candidate > self.value
        return candidate >= self.value

    @classmethod
    def from_dict(cls, data: Any, key: str) -> "ValueCondition":
        if not isinstance(data, dict):
            raise InvalidRequestError(f"'{key}' must be an object")
        operator = ComparisonOperator.parse(data.get("operator"))
        if operator is None:
            raise InvalidRequestError(f"'{key}.operator' is not a supported comparison operator")
        value = parse_datetime(data.get("value"))
        if value is None:
            raise InvalidRequestError(f"'{key}.value' must be an ISO-8601 timestamp")
        return cls(operator=operator, value=value)


@dataclass
class Location:
    """A bounding box search filter in a named CRS."""
    crs: str
    bbox: BoundingBox

    @classmethod
    def from_dict(cls, data: Any) -> "Location":
        if not isinstance(data, dict):
            raise InvalidRequestError("'location' must be an object")
        crs = data.get("crs")
        if not isinstance(crs, str) or not crs:
            raise InvalidRequestError("'location.crs' is required")
        try:
            bbox = BoundingBox.from_dict(data.get("bbox") or {})
        except (KeyError, TypeError, ValueError) as exc:
            raise InvalidRequestError("'location.bbox' must have west, south, east and north") from exc
        return cls(crs=crs, bbox=bbox)


@dataclass
class SearchQuery:
    """
    A single search query. All populated fields must match.

    Multiple queries in a search are combined with OR.
    """
    location: Optional[Location] = None
    publication_time: Optional[datetime] = None
    modification_time: Optional[datetime] = None
    deletion_time: Optional[datetime] = None
    ta: Optional[int] = None
    tro_name: Optional[str] = None
    regulation_type: Optional[str] = None
    vehicle_type: Optional[str] = None
    order_reporting_point: Optional[str] = None
    regulation_start: Optional[ValueCondition] = None
    regulation_end: Optional[ValueCondition] = None

    @classmethod
    def from_dict(cls, data: Any) -> "SearchQuery":
        if not isinstance(data, dict):
            raise InvalidRequestError("Each query must be an object")
        return cls(
            location=Location.from_dict(data["location"]) if data.get("location") is not None else None,
            publication_time=_optional_datetime(data, "publicationTime"),
            modification_time=_optional_datetime(data, "modificationTime"),
            deletion_time=_optional_datetime(data, "deletionTime"),
            ta=_optional_int(data, "ta"),
            tro_name=_optional_str(data, "troName", 500),
            regulation_type=_optional_str(data, "regulationType", 60),
            vehicle_type=_optional_str(data, "vehicleType", 40),
            order_reporting_point=_optional_str(data, "orderReportingPoint", 50),
            regulation_start=(
                ValueCondition.from_dict(data["regulationStart"], "regulationStart")
                if data.get("regulationStart") is not None else None
            ),
            regulation_end=(
                ValueCondition.from_dict(data["regulationEnd"], "regulationEnd")
                if data.get("regulationEnd") is not None else None
            ),
        )


@dataclass
class DtroSearch:
    """A paginated search made of OR-combined queries."""
    queries: List[SearchQuery] = field(default_factory=list)
    page: int = 1
    page_size: int = 10

    @classmethod
    def from_dict(cls, data: Any) -> "DtroSearch":
        if not isinstance(data, dict):
            raise InvalidRequestError("Search body must be an object")
        queries = data.get("queries")
        if not isinstance(queries, list) or not queries:
            raise InvalidRequestError("'queries' must contain at least one query")
        return cls(
            queries=[SearchQuery.from_dict(query) for query in queries],
            page=_page_number(data, "page", 1),
            page_size=_page_number(data, "pageSize", 10, MAX_PAGE_SIZE),
        )


@dataclass
class DtroEventSearch:
    """Criteria for listing create/update/delete events."""
    since: Optional[datetime] = None
    deletion_time: Optional[datetime] = None
    modification_time: Optional[datetime] = None
    ta: Optional[int] = None
    tro_name: Optional[str] = None
    regulation_type: Optional[str] = None
    vehicle_type: Optional[str] = None
    order_reporting_point: Optional[str] = None
    location: Optional[Location] = None
    regulation_start: Optional[ValueCondition] = None
    regulation_end: Optional[ValueCondition] = None
    page: int = 1
    page_size: int = MAX_PAGE_SIZE

    def to_query(self) -> SearchQuery:
        """Express the document filters of this search as a SearchQuery."""
        return SearchQuery(
            location=self.location,
            modification_time=self.modification_time,
            deletion_time=self.deletion_time,
            ta=self.ta,
            tro_name=self.tro_name,
            regulation_type=self.regulation_type,
            vehicle_type=self.vehicle_type,
            order_reporting_point=self.order_reporting_point,
            regulation_start=self.regulation_start,
            regulation_end=self.regulation_end,
        )

    @classmethod
    def from_dict(cls, data: Any) -> "DtroEventSearch":
        if not isinstance(data, dict):
            raise InvalidRequestError("Event search body must be an object")
        query = SearchQuery.from_dict(data)
        return cls(
            since=_optional_datetime(data, "since"),
            deletion_time=query.deletion_time,
            modification_time=query.modification_time,
            ta=query.ta,
            tro_name=query.tro_name,
            regulation_type=query.regulation_type,
            vehicle_type=query.vehicle_type,
            order_reporting_point=query.order_reporting_point,
            location=query.location,
            regulation_start=query.regulation_start,
            regulation_end=query.regulation_end,
            page=_page_number(data, "page", 1),
            page_size=_page_number(data, "pageSize", MAX_PAGE_SIZE, MAX_PAGE_SIZE),
        )


@dataclass
class DtroExtractedData:
    """Search-relevant lists pulled out of a document while filtering."""
    vehicle_types: List[str] = field(default_factory=list)
    regulation_types: List[str] = field(default_factory=list)
    order_reporting_points: List[str] = field(default_factory=list)
    regulation_starts: List[datetime] = field(default_factory=list)
    regulation_ends: List[datetime] = field(default_factory=list)


def _links(base_url: str, dtro_id: Optional[str]) -> Dict[str, str]:
    return {"self": f"{base_url}/v1/dtros/{dtro_id}"}


@dataclass
class DtroSearchResult:
    """A single search hit as returned to API consumers."""
    id: Optional[str]
    tro_name: Optional[str]
    traffic_authority_id: int
    publication_time: Optional[datetime]
    regulation_types: List[str]
    vehicle_types: List[str]
    order_reporting_points: List[str]
    regulation_starts: List[datetime]
    regulation_ends: List[datetime]
    self_link: str

    @classmethod
    def from_dtro(
        cls,
        dtro: Dtro,
        base_url: str,
        regulation_starts: List[datetime],
        regulation_ends: List[datetime],
    ) -> "DtroSearchResult":
        return cls(
            id=dtro.id,
            tro_name=dtro.tro_name,
            traffic_authority_id=dtro.traffic_authority_id,
            publication_time=dtro.created,
            regulation_types=list(dtro.regulation_types),
            vehicle_types=list(dtro.vehicle_types),
            order_reporting_points=list(dtro.order_reporting_points),
            regulation_starts=regulation_starts,
            regulation_ends=regulation_ends,
            self_link=_links(base_url, dtro.id)["self"],
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "troName": self.tro_name,
            "ta": self.traffic_authority_id,
            "publicationTime": _format(self.publication_time),
            "regulationType": self.regulation_types,
            "vehicleType": self.vehicle_types,
            "orderReportingPoint": self.order_reporting_points,
            "regulationStart": [_format(value) for value in self.regulation_starts],
            "regulationEnd": [_format(value) for value in self.regulation_ends],
            "_links": {"self": self.self_link},
        }


@dataclass
class DtroEvent:
    """A create, update or delete event for a DTRO."""
    event_type: DtroEventType
    event_time: datetime
    dtro_id: Optional[str]
    publication_time: Optional[datetime]
    traffic_authority_id: int
    tro_name: Optional[str]
    regulation_types: List[str]
    vehicle_types: List[str]
    order_reporting_points: List[str]
    regulation_starts: List[datetime]
    regulation_ends: List[datetime]
    self_link: str

    @classmethod
    def from_dtro(
        cls,
        dtro: Dtro,
        event_type: DtroEventType,
        event_time: datetime,
        base_url: str,
        regulation_starts: List[datetime],
        regulation_ends: List[datetime],
    ) -> "DtroEvent":
        return cls(
            event_type=event_type,
            event_time=event_time,
            dtro_id=dtro.id,
            publication_time=dtro.created,
            traffic_authority_id=dtro.traffic_authority_id,
            tro_name=dtro.tro_name,
            regulation_types=list(dtro.regulation_types),
            vehicle_types=list(dtro.vehicle_types),
            order_reporting_points=list(dtro.order_reporting_points),
            regulation_starts=regulation_starts,
            regulation_ends=regulation_ends,
            self_link=_links(base_url, dtro.id)["self"],
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "eventType": self.event_type.value,
            "eventTime": _format(self.event_time),
            "publicationTime": _format(self.publication_time),
            "ta": self.traffic_authority_id,
            "troName": self.tro_name,
            "regulationType": self.regulation_types,
            "vehicleType": self.vehicle_types,
            "orderReportingPoint": self.order_reporting_points,
            "regulationStart": [_format(value) for value in self.regulation_starts],
            "regulationEnd": [_format(value) for value in self.regulation_ends],
            "_links": {"self": self.self_link},
        }


@dataclass
class PaginatedResult:
    """A page of stored records plus the total number of matches."""
    results: List[Any]
    total_count: int


@dataclass
class PaginatedResponse:
    """A page of search results. ``page_size`` is the number returned."""
    results: List[Any]
    page: int
    total_count: int

    @property
    def page_size(self) -> int:
        return len(self.results)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "results": [result.to_dict() for result in self.results],
            "page": self.page,
            "pageSize": self.page_size,
            "totalCount": self.total_count,
        }


@dataclass
class DtroEventSearchResult:
    """A page of events."""
    events: List[DtroEvent]
    page: int
    total_count: int

    @property
    def page_size(self) -> int:
        return len(self.events)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "events": [event.to_dict() for event in self.events],
            "page": self.page,
            "pageSize": self.page_size,
            "totalCount": self.total_count,
        }
