"""Search, filtering and result mapping."""

from .filtering import DtrosFilteringService, check_page_exists, extract_data
from .mapping import DtroMappingService

__all__ = [
    "DtrosFilteringService",
    "check_page_exists",
    "extract_data",
    "DtroMappingService",
]
