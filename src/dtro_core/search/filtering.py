"""In-memory filtering of DTROs against search queries."""

import logging
import math
from datetime import datetime
from typing import Iterable, List, Optional, Sequence, Tuple

from ..indexing.index_fields import (
    order_reporting_points,
    period_ends,
    period_starts,
    placed_geometries,
    regulations,
    traffic_authority_id,
    vehicle_types,
)
from ..indexing.json_path import distinct, get_str
from ..interfaces.projection import ISpatialProjectionService
from ..models.dtro import Dtro
from ..models.enums import DtroEventType
from ..models.geometry import BoundingBox, Coordinates
from ..models.search import (
    DtroEvent,
    DtroEventSearch,
    DtroEventSearchResult,
    DtroExtractedData,
    DtroSearch,
    DtroSearchResult,
    Location,
    PaginatedResponse,
    SearchQuery,
)
from ..exceptions import PageOutOfRangeError


logger = logging.getLogger(__name__)

OSGB36_LOWER = "osgb36epsg27700"
OFF_LIST_REGULATION = "offListRegulation"

Match = Tuple[Dtro, DtroExtractedData]


def check_page_exists(page: int, page_size: int, total_count: int) -> None:
    """
    Raise if ``page`` lies beyond the last page of a non-empty result set.

    Raises:
        PageOutOfRangeError: If ``total_count > 0`` and the page is past the end.
    """
    if total_count == 0:
        return
    total_pages = math.ceil(total_count / page_size)
    if page > total_pages:
        raise PageOutOfRangeError(
            message="Requested page does not exist.",
            page=page,
            total_pages=total_pages,
        )


def extract_data(dtro: Dtro) -> DtroExtractedData:
    """Pull the search-relevant lists out of a DTRO payload."""
    data = dtro.data or {}
    all_regulations = regulations(data)

    # Regulations without "regulationType" are searchable by "type",
    # and free-text regulations by a fixed marker.
    regulation_types = distinct(get_str(regulation, "regulationType") for regulation in all_regulations)
    regulation_types += [
        value
        for value in distinct(get_str(regulation, "type") for regulation in all_regulations)
        if value not in regulation_types
    ]
    if any(get_str(regulation, "regulationFullText") is not None for regulation in all_regulations):
        regulation_types.append(OFF_LIST_REGULATION)

    return DtroExtractedData(
        vehicle_types=vehicle_types(data),
        regulation_types=regulation_types,
        order_reporting_points=order_reporting_points(data),
        regulation_starts=period_starts(data),
        regulation_ends=period_ends(data),
    )


class DtrosFilteringService:
    """
    Filters DTROs with OR-combined queries whose fields are AND-combined.

    Used for event listing and by storage backends that search in memory.
    """

    def __init__(self, projection_service: ISpatialProjectionService, search_service_url: str = ""):
        self._projection_service = projection_service
        self._search_service_url = search_service_url

    def match(
        self,
        dtros: Iterable[Dtro],
        queries: Sequence[SearchQuery],
        include_deleted: bool = False,
    ) -> List[Match]:
        """
        Find the DTROs matching at least one query.

        Args:
            dtros: Candidate documents.
            queries: Queries combined with OR.
            include_deleted: Keep deleted documents even when a query has
                no ``deletion_time`` bound.

        Returns:
            ``(dtro, extracted data)`` pairs in input order.
        """
        matches: List[Match] = []
        for dtro in dtros:
            extracted = extract_data(dtro)
            coordinates: Optional[List[Tuple[Coordinates, str]]] = None

            for query in queries:
                if not self._passes_deletion_gate(dtro, query, include_deleted):
                    continue
                if not self._matches_fields(dtro, extracted, query):
                    continue
                if query.location is not None:
                    if coordinates is None:
                        coordinates = self._coordinates(dtro)
                    if not self._matches_location(coordinates, query.location):
                        continue
                matches.append((dtro, extracted))
                break
        return matches

    def filter(self, dtros: Iterable[Dtro], criteria: DtroSearch) -> PaginatedResponse:
        """
        Search documents and return one page of results.

        Raises:
            PageOutOfRangeError: If the page lies beyond the last page.
        """
        matches = self.match(dtros, criteria.queries)
        total_count = len(matches)
        if total_count == 0:
            return PaginatedResponse(results=[], page=criteria.page, total_count=0)

        check_page_exists(criteria.page, criteria.page_size, total_count)
        start = (criteria.page - 1) * criteria.page_size
        page = matches[start:start + criteria.page_size]
        return PaginatedResponse(
            results=[self._search_result(dtro, extracted) for dtro, extracted in page],
            page=criteria.page,
            total_count=total_count,
        )

    def filter_events(self, dtros: Iterable[Dtro], search: DtroEventSearch) -> DtroEventSearchResult:
        """
        List create, update and delete events after ``search.since``.

        Events are ordered oldest first and then paginated.
        """
        since = search.since
        events: List[DtroEvent] = []
        for dtro, extracted in self.match(dtros, [search.to_query()], include_deleted=True):
            if _after(dtro.created, since):
                events.append(self._event(dtro, extracted, DtroEventType.CREATE, dtro.created))
            if _after(dtro.last_updated, since) and dtro.last_updated != dtro.created:
                events.append(self._event(dtro, extracted, DtroEventType.UPDATE, dtro.last_updated))
            if _after(dtro.deletion_time, since):
                events.append(self._event(dtro, extracted, DtroEventType.DELETE, dtro.deletion_time))

        events.sort(key=lambda event: event.event_time)
        start = (search.page - 1) * search.page_size
        return DtroEventSearchResult(
            events=events[start:start + search.page_size],
            page=search.page,
            total_count=len(events),
        )

    @staticmethod
    def _passes_deletion_gate(dtro: Dtro, query: SearchQuery, include_deleted: bool) -> bool:
        if query.deletion_time is not None:
            return (
                dtro.deleted
                and dtro.deletion_time is not None
                and dtro.deletion_time >= query.deletion_time
            )
        return include_deleted or not dtro.deleted

    @staticmethod
    def _matches_fields(dtro: Dtro, extracted: DtroExtractedData, query: SearchQuery) -> bool:
        data = dtro.data or {}

        if query.publication_time is not None and not _at_or_after(dtro.created, query.publication_time):
            return False
        if query.modification_time is not None and not _at_or_after(dtro.last_updated, query.modification_time):
            return False
        if query.tro_name is not None:
            name = get_str(data, "source.troName")
            if name is None or query.tro_name.lower() not in name.lower():
                return False
        if query.order_reporting_point is not None and query.order_reporting_point not in extracted.order_reporting_points:
            return False
        if query.regulation_type is not None and query.regulation_type not in extracted.regulation_types:
            return False
        if query.vehicle_type is not None and query.vehicle_type not in extracted.vehicle_types:
            return False
        if query.ta is not None and traffic_authority_id(data) != query.ta:
            return False
        if query.regulation_start is not None and not any(
            query.regulation_start.is_satisfied(start) for start in extracted.regulation_starts
        ):
            return False
        if query.regulation_end is not None and not any(
            query.regulation_end.is_satisfied(end) for end in extracted.regulation_ends
        ):
            return False
        return True

    @staticmethod
    def _coordinates(dtro: Dtro) -> List[Tuple[Coordinates, str]]:
        return [
            (point, (placed.crs or "").lower())
            for placed in placed_geometries(dtro.data or {})
            for point in placed.coordinates
        ]

    def _matches_location(self, coordinates: List[Tuple[Coordinates, str]], location: Location) -> bool:
        location_crs = location.crs.lower()
        projected_bbox: Optional[BoundingBox] = None

        for point, crs in coordinates:
            if location_crs == crs:
                if location.bbox.contains(point):
                    return True
            elif location_crs == OSGB36_LOWER:
                if location.bbox.contains(self._projection_service.wgs84_to_osgb36(point)):
                    return True
            else:
                if projected_bbox is None:
                    projected_bbox = self._projection_service.wgs84_to_osgb36_bbox(location.bbox)
                if projected_bbox.contains(point):
                    return True
        return False

    def _search_result(self, dtro: Dtro, extracted: DtroExtractedData) -> DtroSearchResult:
        data = dtro.data or {}
        return DtroSearchResult(
            id=dtro.id,
            tro_name=get_str(data, "source.troName"),
            traffic_authority_id=traffic_authority_id(data),
            publication_time=dtro.created,
            regulation_types=list(extracted.regulation_types),
            vehicle_types=list(extracted.vehicle_types),
            order_reporting_points=list(extracted.order_reporting_points),
            regulation_starts=list(extracted.regulation_starts),
            regulation_ends=list(extracted.regulation_ends),
            self_link=f"{self._search_service_url}/v1/dtros/{dtro.id}",
        )

    def _event(
        self,
        dtro: Dtro,
        extracted: DtroExtractedData,
        event_type: DtroEventType,
        event_time: datetime,
    ) -> DtroEvent:
        data = dtro.data or {}
        return DtroEvent(
            event_type=event_type,
            event_time=event_time,
            dtro_id=dtro.id,
            publication_time=dtro.created,
            traffic_authority_id=traffic_authority_id(data),
            tro_name=get_str(data, "source.troName"),
            regulation_types=list(extracted.regulation_types),
            vehicle_types=list(extracted.vehicle_types),
            order_reporting_points=list(extracted.order_reporting_points),
            regulation_starts=list(extracted.regulation_starts),
            regulation_ends=list(extracted.regulation_ends),
            self_link=f"{self._search_service_url}/v1/dtros/{dtro.id}",
        )


def _after(value: Optional[datetime], since: Optional[datetime]) -> bool:
    """True when ``value`` is set and later than ``since`` (or ``since`` is unset)."""
    if value is None:
        return False
    return since is None or value > since


def _at_or_after(value: Optional[datetime], bound: datetime) -> bool:
    return value is not None and value >= bound
