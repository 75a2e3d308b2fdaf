"""Spatial projection interface for the DTRO core."""

from abc import ABC, abstractmethod

from ..models.geometry import BoundingBox, Coordinates


class ISpatialProjectionService(ABC):
    """
    Interface for converting between WGS84 and OSGB36.

    WGS84 coordinates are (longitude, latitude) in degrees. OSGB36
    coordinates are (easting, northing) in metres on the British National
    Grid.
    """

    @abstractmethod
    def wgs84_to_osgb36(self, coordinates: Coordinates) -> Coordinates:
        """Project a WGS84 point to OSGB36."""
        pass

    @abstractmethod
    def wgs84_to_osgb36_bbox(self, bbox: BoundingBox) -> BoundingBox:
        """Project a WGS84 bounding box to the OSGB36 box wrapping its corners."""
        pass

    @abstractmethod
    def osgb36_to_wgs84(self, coordinates: Coordinates) -> Coordinates:
        """Project an OSGB36 point to WGS84."""
        pass
