"""Storage backend that fans out over several other backends."""

import logging
from datetime import datetime
from typing import Callable, List, Optional, Sequence, TypeVar

from ..exceptions import DtroError, DtroNotFoundError, StorageCapabilityError, StorageError
from ..interfaces.storage import IStorageService
from ..models.dtro import Dtro, utc_now
from ..models.search import DtroEventSearch, DtroSearch, PaginatedResult


logger = logging.getLogger(__name__)

T = TypeVar("T")

NO_SEARCH_MESSAGE = "None of the storage services used is capable of search."


class MultiStorageService(IStorageService):
    """
    Combines several storage backends.

    Writes go to every backend, or only the first when
    ``write_to_first_only`` is set. Reads return the first backend that
    answers. Searches go to the first backend able to search.
    """

    def __init__(self, services: Sequence[IStorageService], write_to_first_only: bool = False):
        if not services:
            raise ValueError("At least one storage service is required")
        self._services = list(services)
        self._write_to_first_only = write_to_first_only

    @property
    def services(self) -> List[IStorageService]:
        return list(self._services)

    @property
    def can_search(self) -> bool:
        return any(service.can_search for service in self._services)

    def _writers(self) -> List[IStorageService]:
        return self._services[:1] if self._write_to_first_only else self._services

    def _searcher(self) -> IStorageService:
        for service in self._services:
            if service.can_search:
                return service
        raise StorageCapabilityError(message=NO_SEARCH_MESSAGE)

    def _first_success(self, operation: str, call: Callable[[IStorageService], T]) -> T:
        """
        Run ``call`` against each backend until one succeeds.

        Raises:
            DtroNotFoundError: If every backend reported the DTRO missing.
            StorageError: If every backend failed for any other reason.
        """
        failures: List[Exception] = []
        for service in self._services:
            try:
                return call(service)
            except (DtroError, OSError, ValueError) as e:
                logger.warning(f"[{operation}] {type(service).__name__} failed: {e}")
                failures.append(e)

        if failures and all(isinstance(failure, DtroNotFoundError) for failure in failures):
            raise failures[0]
        raise StorageError(
            message=f"All storage services failed to {operation}",
            failures=failures,
        )

    def dtro_exists(self, dtro_id: str) -> bool:
        return self._first_success("check existence", lambda service: service.dtro_exists(dtro_id))

    def get_dtro_by_id(self, dtro_id: str) -> Dtro:
        return self._first_success("read DTRO", lambda service: service.get_dtro_by_id(dtro_id))

    def save_dtro(self, dtro_id: str, dtro: Dtro) -> None:
        for service in self._writers():
            service.save_dtro(dtro_id, dtro)

    def update_dtro(self, dtro_id: str, dtro: Dtro) -> None:
        for service in self._writers():
            service.update_dtro(dtro_id, dtro)

    def try_update_dtro(self, dtro_id: str, dtro: Dtro) -> bool:
        """Update every writer, stopping at the first that cannot."""
        for service in self._writers():
            if not service.try_update_dtro(dtro_id, dtro):
                return False
        return True

    def delete_dtro(self, dtro_id: str, deletion_time: Optional[datetime] = None) -> bool:
        """Delete from every writer with one shared deletion time, stopping at the first failure."""
        deletion_time = deletion_time or utc_now()
        for service in self._writers():
            if not service.delete_dtro(dtro_id, deletion_time):
                return False
        return True

    def search(self, search: DtroSearch) -> PaginatedResult:
        return self._searcher().search(search)

    def search_for_events(self, search: DtroEventSearch) -> List[Dtro]:
        return self._searcher().search_for_events(search)
