"""DTRO cache interface."""

from abc import ABC, abstractmethod
from typing import Optional

from ..models.dtro import Dtro


class IDtroCache(ABC):
    """Interface for caching DTROs and existence checks by ID."""

    @abstractmethod
    def get_dtro(self, dtro_id: str) -> Optional[Dtro]:
        pass

    @abstractmethod
    def cache_dtro(self, dtro: Dtro) -> None:
        pass

    @abstractmethod
    def get_dtro_exists(self, dtro_id: str) -> Optional[bool]:
        pass

    @abstractmethod
    def cache_dtro_exists(self, dtro_id: str, exists: bool) -> None:
        pass

    @abstractmethod
    def invalidate_dtro(self, dtro_id: str) -> None:
        pass
