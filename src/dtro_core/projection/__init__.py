"""Coordinate reference system projection."""

from .spatial_projection import SpatialProjectionService

__all__ = ["SpatialProjectionService"]
