"""File-system storage backend: one JSON document per DTRO."""

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import List, Optional, Union

from ..exceptions import DtroNotFoundError, StorageCapabilityError
from ..interfaces.storage import IStorageService
from ..models.dtro import Dtro, merge_for_update, utc_now
from ..models.search import DtroEventSearch, DtroSearch, PaginatedResult
from ..search.mapping import DtroMappingService


logger = logging.getLogger(__name__)


class FileStorageService(IStorageService):
    """
    Stores each DTRO as ``<directory>/<id>.json``.

    This backend cannot search; it is meant to sit behind a searchable
    backend in a MultiStorageService.
    """

    def __init__(self, directory: Union[str, Path], mapping_service: DtroMappingService):
        self._directory = Path(directory)
        self._directory.mkdir(parents=True, exist_ok=True)
        self._mapping_service = mapping_service

    @property
    def can_search(self) -> bool:
        return False

    def _path(self, dtro_id: str) -> Path:
        name = Path(str(dtro_id)).name
        return self._directory / f"{name}.json"

    def _read(self, dtro_id: str) -> Optional[Dtro]:
        path = self._path(dtro_id)
        if not path.exists():
            return None
        try:
            return Dtro.from_dict(json.loads(path.read_text(encoding="utf-8")))
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON in {path}: {str(e)}") from e

    def _write(self, dtro: Dtro) -> None:
        self._path(dtro.id).write_text(
            json.dumps(dtro.to_dict(), ensure_ascii=False, indent=2),
            encoding="utf-8",
        )

    def dtro_exists(self, dtro_id: str) -> bool:
        dtro = self._read(dtro_id)
        return dtro is not None and not dtro.deleted

    def save_dtro(self, dtro_id: str, dtro: Dtro) -> None:
        dtro.id = str(dtro_id)
        self._write(self._mapping_service.infer_index_fields(dtro))
        logger.debug(f"Saved DTRO {dtro_id} to {self._directory}")

    def get_dtro_by_id(self, dtro_id: str) -> Dtro:
        dtro = self._read(dtro_id)
        if dtro is None:
            raise DtroNotFoundError(message=f"There is no DTRO with Id {dtro_id}", dtro_id=str(dtro_id))
        return dtro

    def update_dtro(self, dtro_id: str, dtro: Dtro) -> None:
        existing = self._read(dtro_id)
        if existing is None or existing.deleted:
            raise DtroNotFoundError(message=f"There is no DTRO with Id {dtro_id}", dtro_id=str(dtro_id))
        merged = merge_for_update(existing, dtro)
        self._write(self._mapping_service.infer_index_fields(merged))

    def try_update_dtro(self, dtro_id: str, dtro: Dtro) -> bool:
        try:
            self.update_dtro(dtro_id, dtro)
            return True
        except DtroNotFoundError:
            return False

    def delete_dtro(self, dtro_id: str, deletion_time: Optional[datetime] = None) -> bool:
        existing = self._read(dtro_id)
        if existing is None or existing.deleted:
            return False
        existing.deleted = True
        existing.deletion_time = deletion_time or utc_now()
        self._write(existing)
        return True

    def search(self, search: DtroSearch) -> PaginatedResult:
        raise StorageCapabilityError(message="File storage does not support search.")

    def search_for_events(self, search: DtroEventSearch) -> List[Dtro]:
        raise StorageCapabilityError(message="File storage does not support search.")
