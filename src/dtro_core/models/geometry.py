"""Coordinates, coordinate reference systems and bounding boxes."""

from dataclasses import dataclass
from enum import Enum
from typing import ClassVar, Iterable, List, Optional, Tuple


class Crs(Enum):
    """Coordinate reference systems accepted in DTRO geometries."""
    OSGB36_EPSG27700 = "osgb36Epsg27700"
    WGS84_EPSG4326 = "wgs84Epsg4326"


@dataclass(frozen=True)
class Coordinates:
    """A point expressed as (longitude, latitude) or (easting, northing)."""
    longitude: float
    latitude: float

    @classmethod
    def from_list(cls, values: List[float]) -> "Coordinates":
        """Create coordinates from a GeoJSON-style ``[x, y]`` pair."""
        return cls(longitude=float(values[0]), latitude=float(values[1]))


@dataclass(frozen=True)
class BoundingBox:
    """
    Axis-aligned rectangle in a single coordinate reference system.

    South is assumed to be no greater than north and west no greater than
    east; this is not enforced.
    """
    west: float
    south: float
    east: float
    north: float

    FOR_OSGB36_EPSG27700: ClassVar["BoundingBox"]
    FOR_WGS84_EPSG4326: ClassVar["BoundingBox"]

    @classmethod
    def for_crs(cls, crs: str) -> Optional["BoundingBox"]:
        """Return the valid coordinate range for a CRS name, if known."""
        if crs == Crs.OSGB36_EPSG27700.value:
            return cls.FOR_OSGB36_EPSG27700
        if crs == Crs.WGS84_EPSG4326.value:
            return cls.FOR_WGS84_EPSG4326
        return None

    def contains(self, coordinates: Coordinates) -> bool:
        """Check whether a point lies inside the box, edges included."""
        return (
            self.south <= coordinates.latitude <= self.north
            and self.west <= coordinates.longitude <= self.east
        )

    def contains_with_errors(
        self, coordinates: Coordinates
    ) -> Tuple[bool, Optional[List[str]]]:
        """
        Check containment and describe every axis that is out of range.

        Args:
            coordinates: The point to test.

        Returns:
            ``(True, None)`` when the point is inside the box, otherwise
            ``(False, errors)`` with one message per failing bound.
        """
        errors: List[str] = []
        lon, lat = coordinates.longitude, coordinates.latitude

        if lon < self.west:
            errors.append(f"{lon} is below the minimum longitude of {self.west}.")
        elif lon > self.east:
            errors.append(f"{lon} is above the maximum longitude of {self.east}.")

        if lat < self.south:
            errors.append(f"{lat} is below the minimum latitude of {self.south}.")
        elif lat > self.north:
            errors.append(f"{lat} is above the maximum latitude of {self.north}.")

        if errors:
            return False, errors
        return True, None

    def overlaps(self, other: "BoundingBox") -> bool:
        """Check whether two boxes share at least one point."""
        return (
            self.south <= other.north
            and other.south <= self.north
            and self.west <= other.east
            and other.west <= self.east
        )

    @classmethod
    def wrapping(cls, coordinates: Iterable[Coordinates]) -> "BoundingBox":
        """
        Compute the smallest box containing every given point.

        Raises:
            ValueError: If no coordinates are given.
        """
        iterator = iter(coordinates)
        first = next(iterator, None)
        if first is None:
            raise ValueError("Cannot wrap an empty set of coordinates")

        west = east = first.longitude
        south = north = first.latitude
        for point in iterator:
            if point.longitude < west:
                west = point.longitude
            elif point.longitude > east:
                east = point.longitude
            if point.latitude < south:
                south = point.latitude
            elif point.latitude > north:
                north = point.latitude

        return cls(west=west, south=south, east=east, north=north)

    def corners(self) -> List[Coordinates]:
        """Return the four corners of the box."""
        return [
            Coordinates(self.west, self.south),
            Coordinates(self.west, self.north),
            Coordinates(self.east, self.south),
            Coordinates(self.east, self.north),
        ]

    def to_dict(self) -> dict:
        return {
            "west": self.west,
            "south": self.south,
            "east": self.east,
            "north": self.north,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "BoundingBox":
        return cls(
            west=float(data["west"]),
            south=float(data["south"]),
            east=float(data["east"]),
            north=float(data["north"]),
        )


BoundingBox.FOR_OSGB36_EPSG27700 = BoundingBox(-103976.3, -16703.87, 652897.98, 1199851.44)
BoundingBox.FOR_WGS84_EPSG4326 = BoundingBox(-7.56, 49.96, 1.78, 60.84)
