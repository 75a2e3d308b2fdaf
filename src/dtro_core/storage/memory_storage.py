"""In-memory storage backend, searched with the filtering service."""

import copy
import logging
import threading
from datetime import datetime
from typing import Dict, List, Optional

from ..exceptions import DtroNotFoundError
from ..interfaces.storage import IStorageService
from ..models.dtro import Dtro, merge_for_update, utc_now
from ..models.search import DtroEventSearch, DtroSearch, PaginatedResult
from ..search.filtering import DtrosFilteringService
from ..search.mapping import DtroMappingService


logger = logging.getLogger(__name__)


class InMemoryStorageService(IStorageService):
    """Keeps DTROs in a dict. Used for tests and local development."""

    def __init__(self, mapping_service: DtroMappingService, filtering_service: DtrosFilteringService):
        self._mapping_service = mapping_service
        self._filtering_service = filtering_service
        self._dtros: Dict[str, Dtro] = {}
        self._lock = threading.Lock()

    @property
    def can_search(self) -> bool:
        return True

    def _snapshot(self) -> List[Dtro]:
        with self._lock:
            return [copy.deepcopy(dtro) for dtro in self._dtros.values()]

    def dtro_exists(self, dtro_id: str) -> bool:
        dtro = self._dtros.get(str(dtro_id))
        return dtro is not None and not dtro.deleted

    def save_dtro(self, dtro_id: str, dtro: Dtro) -> None:
        dtro.id = str(dtro_id)
        indexed = self._mapping_service.infer_index_fields(copy.deepcopy(dtro))
        with self._lock:
            self._dtros[indexed.id] = indexed

    def get_dtro_by_id(self, dtro_id: str) -> Dtro:
        dtro = self._dtros.get(str(dtro_id))
        if dtro is None:
            raise DtroNotFoundError(message=f"There is no DTRO with Id {dtro_id}", dtro_id=str(dtro_id))
        return copy.deepcopy(dtro)

    def update_dtro(self, dtro_id: str, dtro: Dtro) -> None:
        with self._lock:
            existing = self._dtros.get(str(dtro_id))
            if existing is None or existing.deleted:
                raise DtroNotFoundError(message=f"There is no DTRO with Id {dtro_id}", dtro_id=str(dtro_id))
            merged = merge_for_update(existing, copy.deepcopy(dtro))
            self._dtros[str(dtro_id)] = self._mapping_service.infer_index_fields(merged)

    def try_update_dtro(self, dtro_id: str, dtro: Dtro) -> bool:
        try:
            self.update_dtro(dtro_id, dtro)
            return True
        except DtroNotFoundError:
            return False

    def delete_dtro(self, dtro_id: str, deletion_time: Optional[datetime] = None) -> bool:
        with self._lock:
            existing = self._dtros.get(str(dtro_id))
            if existing is None or existing.deleted:
                return False
            existing.deleted = True
            existing.deletion_time = deletion_time or utc_now()
        return True

    def search(self, search: DtroSearch) -> PaginatedResult:
        dtros = sorted(self._snapshot(), key=lambda dtro: (dtro.created or datetime.min, dtro.id))
        matches = [dtro for dtro, _ in self._filtering_service.match(dtros, search.queries)]
        start = (search.page - 1) * search.page_size
        return PaginatedResult(
            results=matches[start:start + search.page_size],
            total_count=len(matches),
        )

    def search_for_events(self, search: DtroEventSearch) -> List[Dtro]:
        query = search.to_query()
        matches = self._filtering_service.match(self._snapshot(), [query], include_deleted=True)
        since = search.since
        return sorted(
            (
                dtro
                for dtro, _ in matches
                if since is None or (dtro.created is not None and dtro.created >= since)
            ),
            key=lambda dtro: dtro.id,
        )
