"""Storage interface for the DTRO core."""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional

from ..models.dtro import Dtro
from ..models.search import DtroEventSearch, DtroSearch, PaginatedResult


class IStorageService(ABC):
    """
    Interface for DTRO persistence.

    Implementations recompute index fields before every save and update,
    and never overwrite write-once fields on update.
    """

    @property
    @abstractmethod
    def can_search(self) -> bool:
        """Whether ``search`` and ``search_for_events`` are supported."""
        pass

    @abstractmethod
    def dtro_exists(self, dtro_id: str) -> bool:
        """Check whether a DTRO with the given ID is stored."""
        pass

    @abstractmethod
    def save_dtro(self, dtro_id: str, dtro: Dtro) -> None:
        """Store a new DTRO under the given ID."""
        pass

    @abstractmethod
    def get_dtro_by_id(self, dtro_id: str) -> Dtro:
        """
        Get a DTRO by ID.

        Raises:
            DtroNotFoundError: If no DTRO exists with the ID.
        """
        pass

    @abstractmethod
    def update_dtro(self, dtro_id: str, dtro: Dtro) -> None:
        """
        Replace the mutable fields of a stored DTRO.

        Raises:
            DtroNotFoundError: If the DTRO does not exist or was deleted.
        """
        pass

    @abstractmethod
    def try_update_dtro(self, dtro_id: str, dtro: Dtro) -> bool:
        """Update a DTRO, returning False instead of raising if it is missing."""
        pass

    @abstractmethod
    def delete_dtro(self, dtro_id: str, deletion_time: Optional[datetime] = None) -> bool:
        """
        Soft-delete a DTRO.

        Returns:
            False if the DTRO does not exist or is already deleted.
        """
        pass

    @abstractmethod
    def search(self, search: DtroSearch) -> PaginatedResult:
        """Find one page of DTROs matching any of the search queries."""
        pass

    @abstractmethod
    def search_for_events(self, search: DtroEventSearch) -> List[Dtro]:
        """Find DTROs that may carry events for an event search."""
        pass
