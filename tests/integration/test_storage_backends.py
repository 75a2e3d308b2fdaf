"""Integration tests for the memory, file and multi storage backends."""

import json
from datetime import datetime
from unittest.mock import MagicMock

import pytest

from conftest import make_dtro, make_payload
from dtro_core.config.settings import ServiceSettings
from dtro_core.exceptions import DtroNotFoundError, StorageCapabilityError, StorageError
from dtro_core.interfaces.storage import IStorageService
from dtro_core.models.enums import StorageBackend
from dtro_core.models.search import DtroEventSearch, DtroSearch, PaginatedResult, SearchQuery
from dtro_core.storage.database import DatabaseManager
from dtro_core.storage.factory import create_storage_service
from dtro_core.storage.file_storage import FileStorageService
from dtro_core.storage.memory_storage import InMemoryStorageService
from dtro_core.storage.multi_storage import NO_SEARCH_MESSAGE, MultiStorageService
from dtro_core.storage.sql_storage import SqlStorageService


@pytest.fixture
def memory_storage(mapping_service, filtering_service):
    return InMemoryStorageService(mapping_service, filtering_service)


@pytest.fixture
def file_storage(tmp_path, mapping_service):
    return FileStorageService(tmp_path / "dtros", mapping_service)


def mock_backend(can_search=True):
    backend = MagicMock(spec=IStorageService)
    backend.can_search = can_search
    return backend


class TestInMemoryStorageService:
    """Tests for the dict-backed backend."""

    def test_records_are_isolated(self, memory_storage):
        """Neither the saved nor the returned object aliases the stored one."""
        dtro = make_dtro("a")
        memory_storage.save_dtro("a", dtro)
        dtro.data["source"]["ta"] = 1

        fetched = memory_storage.get_dtro_by_id("a")
        assert fetched.traffic_authority_id == 42
        fetched.deleted = True
        assert memory_storage.dtro_exists("a")

    def test_update_and_delete(self, memory_storage):
        """Updates merge into the record; deletes are soft."""
        memory_storage.save_dtro("a", make_dtro("a", created=datetime(2023, 7, 1)))
        memory_storage.update_dtro("a", make_dtro(None, data=make_payload(ta=5), created=datetime(2024, 1, 1)))

        stored = memory_storage.get_dtro_by_id("a")
        assert stored.created == datetime(2023, 7, 1)
        assert stored.traffic_authority_id == 5

        assert memory_storage.delete_dtro("a", datetime(2023, 9, 1))
        assert not memory_storage.delete_dtro("a")
        assert not memory_storage.try_update_dtro("a", make_dtro(None))
        assert memory_storage.get_dtro_by_id("a").deletion_time == datetime(2023, 9, 1)

    def test_search_orders_by_creation(self, memory_storage):
        """Matches are paged in creation order."""
        for name, day in (("a", 5), ("b", 1), ("c", 3)):
            memory_storage.save_dtro(name, make_dtro(name, created=datetime(2023, 7, day)))

        result = memory_storage.search(DtroSearch([SearchQuery()], page=1, page_size=2))
        assert [dtro.id for dtro in result.results] == ["b", "c"]
        assert result.total_count == 3

    def test_search_for_events(self, memory_storage):
        """Event candidates include deleted records created since the bound."""
        memory_storage.save_dtro("a", make_dtro("a", created=datetime(2023, 7, 1)))
        memory_storage.save_dtro("b", make_dtro("b", created=datetime(2023, 8, 1)))
        memory_storage.delete_dtro("b")

        dtros = memory_storage.search_for_events(DtroEventSearch(since=datetime(2023, 7, 15)))
        assert [dtro.id for dtro in dtros] == ["b"]


class TestFileStorageService:
    """Tests for the one-file-per-record backend."""

    def test_save_writes_json_document(self, file_storage, tmp_path):
        """Each record is a JSON file named after its id."""
        file_storage.save_dtro("a", make_dtro("a"))
        document = json.loads((tmp_path / "dtros" / "a.json").read_text(encoding="utf-8"))
        assert document["id"] == "a"
        assert document["trafficAuthorityId"] == 42
        assert document["location"] == {"west": 530000, "south": 180000, "east": 530100, "north": 180050}

    def test_crud(self, file_storage):
        """Records read back with their index fields and merge on update."""
        file_storage.save_dtro("a", make_dtro("a", created=datetime(2023, 7, 1)))
        assert file_storage.dtro_exists("a")
        assert file_storage.get_dtro_by_id("a").vehicle_types == ["bus", "taxi"]

        assert file_storage.try_update_dtro("a", make_dtro(None, data=make_payload(ta=3)))
        assert file_storage.get_dtro_by_id("a").traffic_authority_id == 3
        assert file_storage.get_dtro_by_id("a").created == datetime(2023, 7, 1)

        assert file_storage.delete_dtro("a")
        assert not file_storage.dtro_exists("a")
        assert file_storage.get_dtro_by_id("a").deleted

    def test_missing(self, file_storage):
        """Unknown ids are reported as not found."""
        with pytest.raises(DtroNotFoundError):
            file_storage.get_dtro_by_id("missing")
        assert not file_storage.delete_dtro("missing")
        assert not file_storage.try_update_dtro("missing", make_dtro(None))

    def test_cannot_search(self, file_storage):
        """Search is not supported."""
        assert not file_storage.can_search
        with pytest.raises(StorageCapabilityError):
            file_storage.search(DtroSearch([SearchQuery()]))
        with pytest.raises(StorageCapabilityError):
            file_storage.search_for_events(DtroEventSearch())


class TestMultiStorageService:
    """Tests for fanning out over several backends."""

    def test_requires_a_backend(self):
        """An empty backend list is rejected."""
        with pytest.raises(ValueError):
            MultiStorageService([])

    def test_writes_go_to_every_backend(self):
        """Save, update and delete reach every backend."""
        first, second = mock_backend(), mock_backend()
        first.delete_dtro.return_value = True
        second.delete_dtro.return_value = True
        first.try_update_dtro.return_value = True
        second.try_update_dtro.return_value = True
        storage = MultiStorageService([first, second])
        dtro = make_dtro("a")

        storage.save_dtro("a", dtro)
        first.save_dtro.assert_called_once_with("a", dtro)
        second.save_dtro.assert_called_once_with("a", dtro)
        assert storage.delete_dtro("a", datetime(2023, 9, 1)) is True
        second.delete_dtro.assert_called_once_with("a", datetime(2023, 9, 1))
        assert storage.try_update_dtro("a", dtro) is True
        second.try_update_dtro.assert_called_once_with("a", dtro)

    def test_partial_writes_fail_at_first_refusal(self):
        """Delete and update report failure at the first backend that refuses."""
        first, second = mock_backend(), mock_backend()
        first.delete_dtro.return_value = False
        first.try_update_dtro.return_value = False
        storage = MultiStorageService([first, second])

        assert storage.delete_dtro("a") is False
        assert storage.try_update_dtro("a", make_dtro("a")) is False
        second.delete_dtro.assert_not_called()
        second.try_update_dtro.assert_not_called()

    def test_delete_shares_one_deletion_time(self, mapping_service, filtering_service, monkeypatch):
        """Every backend records the same deletion time when none is given."""
        ticks = iter(datetime(2023, 9, 1, 12, 0, second) for second in range(10))
        monkeypatch.setattr("dtro_core.storage.multi_storage.utc_now", lambda: next(ticks))
        monkeypatch.setattr("dtro_core.storage.memory_storage.utc_now", lambda: next(ticks))
        first = InMemoryStorageService(mapping_service, filtering_service)
        second = InMemoryStorageService(mapping_service, filtering_service)
        storage = MultiStorageService([first, second])
        storage.save_dtro("a", make_dtro("a"))

        assert storage.delete_dtro("a")
        assert first.get_dtro_by_id("a").deletion_time == datetime(2023, 9, 1, 12, 0, 0)
        assert second.get_dtro_by_id("a").deletion_time == datetime(2023, 9, 1, 12, 0, 0)

    def test_write_to_first_only(self):
        """With write_to_first_only the other backends are not written."""
        first, second = mock_backend(), mock_backend()
        storage = MultiStorageService([first, second], write_to_first_only=True)
        storage.save_dtro("a", make_dtro("a"))
        storage.update_dtro("a", make_dtro("a"))
        second.save_dtro.assert_not_called()
        second.update_dtro.assert_not_called()

    def test_read_falls_through_to_next_backend(self):
        """A read returns the first backend that succeeds."""
        first, second = mock_backend(), mock_backend()
        first.get_dtro_by_id.side_effect = DtroNotFoundError(message="missing", dtro_id="a")
        second.get_dtro_by_id.return_value = make_dtro("a")

        assert MultiStorageService([first, second]).get_dtro_by_id("a").id == "a"

    def test_all_not_found(self):
        """When every backend misses, the first not-found error is raised."""
        first, second = mock_backend(), mock_backend()
        first.get_dtro_by_id.side_effect = DtroNotFoundError(message="first", dtro_id="a")
        second.get_dtro_by_id.side_effect = DtroNotFoundError(message="second", dtro_id="a")

        with pytest.raises(DtroNotFoundError, match="first"):
            MultiStorageService([first, second]).get_dtro_by_id("a")

    def test_mixed_failures(self):
        """Other failures are collected into a StorageError."""
        first, second = mock_backend(), mock_backend()
        first.dtro_exists.side_effect = OSError("disk gone")
        second.dtro_exists.side_effect = DtroNotFoundError(message="missing")

        with pytest.raises(StorageError) as exc_info:
            MultiStorageService([first, second]).dtro_exists("a")
        assert len(exc_info.value.failures) == 2
        assert exc_info.value.message == "All storage services failed to check existence"

    def test_search_uses_first_searchable_backend(self):
        """Searches skip backends that cannot search."""
        files, sql = mock_backend(can_search=False), mock_backend()
        sql.search.return_value = PaginatedResult(results=[], total_count=0)
        storage = MultiStorageService([files, sql])

        assert storage.can_search
        assert storage.search(DtroSearch([SearchQuery()])).total_count == 0
        files.search.assert_not_called()

    def test_no_searchable_backend(self):
        """Without a searchable backend search raises a capability error."""
        storage = MultiStorageService([mock_backend(can_search=False)])
        with pytest.raises(StorageCapabilityError, match=NO_SEARCH_MESSAGE):
            storage.search_for_events(DtroEventSearch())


class TestCreateStorageService:
    """Tests for building storage from settings."""

    def test_single_backend_is_not_wrapped(self, fake_projection, mapping_service, filtering_service):
        """One configured backend is returned directly."""
        settings = ServiceSettings(storage_backends=[StorageBackend.MEMORY])
        storage = create_storage_service(settings, fake_projection, mapping_service, filtering_service)
        assert isinstance(storage, InMemoryStorageService)

    def test_several_backends(self, tmp_path, fake_projection, mapping_service, filtering_service):
        """Several backends are combined in the configured order."""
        manager = DatabaseManager(database_url="sqlite://")
        settings = ServiceSettings(
            storage_backends=[StorageBackend.SQL, StorageBackend.FILE],
            file_storage_dir=str(tmp_path / "files"),
            write_to_first_only=True,
        )
        storage = create_storage_service(
            settings, fake_projection, mapping_service, filtering_service, db_manager=manager
        )

        assert isinstance(storage, MultiStorageService)
        assert [type(service) for service in storage.services] == [SqlStorageService, FileStorageService]
        storage.save_dtro("00000000-0000-0000-0000-000000000001", make_dtro())
        assert storage.dtro_exists("00000000-0000-0000-0000-000000000001")
        manager.close()
