"""Index-field inference for DTRO payloads.

Derives the flat, queryable search fields of a DTRO from its nested
``data`` payload. Inference runs before every save and update.
"""

from dataclasses import dataclass, replace
from datetime import datetime
from typing import Any, Dict, List, Optional

from ..exceptions import UnsupportedGeometryError
from ..interfaces.projection import ISpatialProjectionService
from ..models.dtro import Dtro
from ..models.geometry import BoundingBox, Coordinates, Crs
from .json_path import (
    distinct,
    get_datetime,
    get_int,
    get_list,
    get_object,
    get_objects,
    get_str,
    has_path,
)


SUPPORTED_GEOMETRY_TYPES = ("Point", "LineString", "Polygon")


@dataclass
class PlacedGeometry:
    """Coordinates of one regulated place with the CRS it is expressed in."""
    coordinates: List[Coordinates]
    crs: Optional[str]
    path: str


def provisions(data: Dict[str, Any]) -> List[Dict[str, Any]]:
    return get_objects(data, "source.provision")


def regulations(data: Dict[str, Any]) -> List[Dict[str, Any]]:
    """All regulation objects across all provisions."""
    return [
        regulation
        for provision in provisions(data)
        for regulation in get_objects(provision, "regulations")
    ]


def traffic_authority_id(data: Dict[str, Any]) -> int:
    """Read ``source.ta``, falling back to ``source.ha`` when ``ta`` is absent."""
    if has_path(data, "source.ta"):
        return get_int(data, "source.ta")
    return get_int(data, "source.ha")


def regulation_types(data: Dict[str, Any]) -> List[str]:
    return distinct(get_str(regulation, "regulationType") for regulation in regulations(data))


def vehicle_types(data: Dict[str, Any]) -> List[str]:
    return distinct(
        vehicle_type
        for regulation in regulations(data)
        for condition in get_objects(regulation, "conditions")
        for vehicle_type in get_list(condition, "vehicleCharacteristics.vehicleType")
        if isinstance(vehicle_type, str)
    )


def order_reporting_points(data: Dict[str, Any]) -> List[str]:
    return distinct(get_str(provision, "orderReportingPoint") for provision in provisions(data))


def period_starts(data: Dict[str, Any]) -> List[datetime]:
    """Parsed ``overallPeriod.start`` of every regulation that has one."""
    return [
        start
        for start in (get_datetime(regulation, "overallPeriod.start") for regulation in regulations(data))
        if start is not None
    ]


def period_ends(data: Dict[str, Any]) -> List[datetime]:
    """Parsed ``overallPeriod.end`` of every regulation that has one."""
    return [
        end
        for end in (get_datetime(regulation, "overallPeriod.end") for regulation in regulations(data))
        if end is not None
    ]


def _read_coordinates(geometry: Dict[str, Any], path: str) -> List[Coordinates]:
    # The shape sits under "coordinates" or directly on the geometry.
    nested = get_object(geometry, "coordinates")
    shape = nested if nested is not None else geometry
    geometry_type = shape.get("type")
    raw = shape.get("coordinates")

    if geometry_type not in SUPPORTED_GEOMETRY_TYPES:
        raise UnsupportedGeometryError(
            message=f"Unsupported geometry type: {geometry_type}",
            details={"path": path},
            geometry_type=str(geometry_type),
        )

    try:
        if geometry_type == "Point":
            return [Coordinates.from_list(raw)]
        if geometry_type == "LineString":
            return [Coordinates.from_list(point) for point in raw]
        return [Coordinates.from_list(point) for ring in raw for point in ring]
    except (TypeError, IndexError, ValueError) as exc:
        raise UnsupportedGeometryError(
            message=f"Malformed {geometry_type} coordinates",
            details={"path": path},
            geometry_type=geometry_type,
        ) from exc


def placed_geometries(data: Dict[str, Any]) -> List[PlacedGeometry]:
    """
    Read the geometry of every regulated place.

    Places without a geometry are skipped.

    Raises:
        UnsupportedGeometryError: For geometry types other than Point,
            LineString and Polygon.
    """
    result: List[PlacedGeometry] = []
    for p_index, provision in enumerate(get_list(data, "source.provision")):
        if not isinstance(provision, dict):
            continue
        for r_index, place in enumerate(get_list(provision, "regulatedPlaces")):
            geometry = get_object(place, "geometry")
            if geometry is None:
                continue
            path = f"source.provision[{p_index}].regulatedPlaces[{r_index}].geometry"
            result.append(
                PlacedGeometry(
                    coordinates=_read_coordinates(geometry, path),
                    crs=get_str(geometry, "crs"),
                    path=path,
                )
            )
    return result


def infer_location(
    data: Dict[str, Any], projection_service: ISpatialProjectionService
) -> Optional[BoundingBox]:
    """
    Compute the OSGB36 box wrapping every regulated place.

    Returns:
        The wrapping box, or None when the payload has no coordinates.
    """
    points: List[Coordinates] = []
    for placed in placed_geometries(data):
        if placed.crs != Crs.OSGB36_EPSG27700.value:
            points.extend(projection_service.wgs84_to_osgb36(point) for point in placed.coordinates)
        else:
            points.extend(placed.coordinates)

    if not points:
        return None
    return BoundingBox.wrapping(points)


def infer_index_fields(dtro: Dtro, projection_service: ISpatialProjectionService) -> Dtro:
    """
    Derive the index fields of a DTRO from its payload.

    Args:
        dtro: The document; it is not modified.
        projection_service: Used to bring WGS84 geometries into OSGB36.

    Returns:
        A copy of ``dtro`` with every index field recomputed.
    """
    data = dtro.data or {}
    starts = period_starts(data)
    ends = period_ends(data)
    return replace(
        dtro,
        traffic_authority_id=traffic_authority_id(data),
        tro_name=get_str(data, "source.troName"),
        regulation_types=regulation_types(data),
        vehicle_types=vehicle_types(data),
        order_reporting_points=order_reporting_points(data),
        regulation_start=min(starts) if starts else None,
        regulation_end=max(ends) if ends else None,
        location=infer_location(data, projection_service),
    )
