"""Mapping of stored DTROs to search results and events."""

from typing import Iterable, List

from ..indexing.index_fields import infer_index_fields, period_ends, period_starts
from ..interfaces.projection import ISpatialProjectionService
from ..models.dtro import Dtro
from ..models.enums import DtroEventType
from ..models.search import DtroEvent, DtroSearchResult


class DtroMappingService:
    """Builds API-facing views of DTROs and refreshes their index fields."""

    def __init__(self, projection_service: ISpatialProjectionService, search_service_url: str = ""):
        self._projection_service = projection_service
        self._search_service_url = search_service_url

    def infer_index_fields(self, dtro: Dtro) -> Dtro:
        """Return a copy of ``dtro`` with its index fields recomputed."""
        return infer_index_fields(dtro, self._projection_service)

    def map_to_search_result(self, dtros: Iterable[Dtro]) -> List[DtroSearchResult]:
        return [
            DtroSearchResult.from_dtro(
                dtro,
                self._search_service_url,
                period_starts(dtro.data or {}),
                period_ends(dtro.data or {}),
            )
            for dtro in dtros
        ]

    def map_to_events(self, dtros: Iterable[Dtro]) -> List[DtroEvent]:
        """
        List the lifecycle events of each DTRO, newest first.

        Every DTRO has a creation event, an update event when it was
        modified after creation, and a deletion event when deleted.
        """
        events: List[DtroEvent] = []
        for dtro in dtros:
            starts = period_starts(dtro.data or {})
            ends = period_ends(dtro.data or {})

            def event(event_type, event_time):
                return DtroEvent.from_dtro(dtro, event_type, event_time, self._search_service_url, starts, ends)

            if dtro.created is not None:
                events.append(event(DtroEventType.CREATE, dtro.created))
            if dtro.last_updated is not None and dtro.created != dtro.last_updated:
                events.append(event(DtroEventType.UPDATE, dtro.last_updated))
            if dtro.deleted and dtro.deletion_time is not None:
                events.append(event(DtroEventType.DELETE, dtro.deletion_time))

        events.sort(key=lambda item: item.event_time, reverse=True)
        return events
