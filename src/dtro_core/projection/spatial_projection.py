"""WGS84 / OSGB36 projection backed by pyproj."""

import logging

from pyproj import Transformer

from ..interfaces.projection import ISpatialProjectionService
from ..models.geometry import BoundingBox, Coordinates


logger = logging.getLogger(__name__)

WGS84_EPSG = "EPSG:4326"
OSGB36_EPSG = "EPSG:27700"


class SpatialProjectionService(ISpatialProjectionService):
    """
    Projects between WGS84 and the British National Grid.

    Transformers are created once per instance and reused; ``always_xy``
    keeps longitude/easting first regardless of the CRS axis order.
    """

    def __init__(self):
        self._to_osgb36 = Transformer.from_crs(WGS84_EPSG, OSGB36_EPSG, always_xy=True)
        self._to_wgs84 = Transformer.from_crs(OSGB36_EPSG, WGS84_EPSG, always_xy=True)

    def wgs84_to_osgb36(self, coordinates: Coordinates) -> Coordinates:
        easting, northing = self._to_osgb36.transform(coordinates.longitude, coordinates.latitude)
        return Coordinates(longitude=easting, latitude=northing)

    def wgs84_to_osgb36_bbox(self, bbox: BoundingBox) -> BoundingBox:
        projected = [self.wgs84_to_osgb36(corner) for corner in bbox.corners()]
        return BoundingBox.wrapping(projected)

    def osgb36_to_wgs84(self, coordinates: Coordinates) -> Coordinates:
        longitude, latitude = self._to_wgs84.transform(coordinates.longitude, coordinates.latitude)
        return Coordinates(longitude=longitude, latitude=latitude)
