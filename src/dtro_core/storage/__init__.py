"""Storage backends for DTROs."""

from .database import DatabaseManager, resolve_database_url
from .factory import create_storage_service
from .file_storage import FileStorageService
from .memory_storage import InMemoryStorageService
from .models import Base, DtroModel, JSONType
from .multi_storage import MultiStorageService
from .sql_storage import SqlStorageService

__all__ = [
    "DatabaseManager",
    "resolve_database_url",
    "create_storage_service",
    "FileStorageService",
    "InMemoryStorageService",
    "Base",
    "DtroModel",
    "JSONType",
    "MultiStorageService",
    "SqlStorageService",
]
