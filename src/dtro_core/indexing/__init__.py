"""Index-field inference and JSON path helpers."""

from .index_fields import (
    PlacedGeometry,
    infer_index_fields,
    infer_location,
    placed_geometries,
    traffic_authority_id,
)
from .json_path import get_list, get_object, get_path

__all__ = [
    "PlacedGeometry",
    "infer_index_fields",
    "infer_location",
    "placed_geometries",
    "traffic_authority_id",
    "get_list",
    "get_object",
    "get_path",
]
