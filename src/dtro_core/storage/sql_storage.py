"""SQL storage backend for DTROs."""

import json
import logging
import uuid
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from sqlalchemy import String, and_, cast, func, or_, select, type_coerce
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.sql.elements import ColumnElement

from ..exceptions import DtroNotFoundError
from ..interfaces.projection import ISpatialProjectionService
from ..interfaces.storage import IStorageService
from ..models.dtro import Dtro, SchemaVersion, merge_for_update, utc_now
from ..models.enums import ComparisonOperator
from ..models.geometry import BoundingBox, Crs
from ..models.search import (
    DtroEventSearch,
    DtroSearch,
    Location,
    PaginatedResult,
    ValueCondition,
)
from ..search.mapping import DtroMappingService
from .database import DatabaseManager
from .models import DtroModel


logger = logging.getLogger(__name__)

_COMPARISONS: Dict[ComparisonOperator, Callable[[Any, Any], ColumnElement]] = {
    ComparisonOperator.EQUAL: lambda column, value: column == value,
    ComparisonOperator.LESS_THAN: lambda column, value: column < value,
    ComparisonOperator.LESS_THAN_OR_EQUAL: lambda column, value: column <= value,
    ComparisonOperator.GREATER_THAN: lambda column, value: column > value,
    ComparisonOperator.GREATER_THAN_OR_EQUAL: lambda column, value: column >= value,
}


def _to_uuid(dtro_id: str) -> Optional[uuid.UUID]:
    try:
        return uuid.UUID(str(dtro_id))
    except ValueError:
        return None


def contains_item(column, value: str, dialect_name: str) -> ColumnElement:
    """Membership test on a JSON list column."""
    if dialect_name == "postgresql":
        return type_coerce(column, JSONB).contains([value])
    # Other backends store the list as ASCII-escaped JSON text.
    return cast(column, String).contains(json.dumps(value), autoescape=True)


def _compare(column, condition: ValueCondition) -> ColumnElement:
    return _COMPARISONS[condition.operator](column, condition.value)


def _overlaps(bbox: BoundingBox) -> ColumnElement:
    return and_(
        DtroModel.location_south <= bbox.north,
        DtroModel.location_north >= bbox.south,
        DtroModel.location_west <= bbox.east,
        DtroModel.location_east >= bbox.west,
    )


def model_to_dtro(model: DtroModel) -> Dtro:
    """Convert a database row to a Dtro."""
    location = None
    if model.location_west is not None:
        location = BoundingBox(
            west=model.location_west,
            south=model.location_south,
            east=model.location_east,
            north=model.location_north,
        )
    return Dtro(
        id=str(model.id),
        schema_version=SchemaVersion.parse(model.schema_version),
        data=model.data or {},
        created=model.created,
        last_updated=model.last_updated,
        created_correlation_id=model.created_correlation_id,
        last_updated_correlation_id=model.last_updated_correlation_id,
        deleted=bool(model.deleted),
        deletion_time=model.deletion_time,
        traffic_authority_id=model.traffic_authority_id or 0,
        tro_name=model.tro_name,
        regulation_types=list(model.regulation_types or []),
        vehicle_types=list(model.vehicle_types or []),
        order_reporting_points=list(model.order_reporting_points or []),
        regulation_start=model.regulation_start,
        regulation_end=model.regulation_end,
        location=location,
    )


def apply_dtro_to_model(dtro: Dtro, model: DtroModel) -> None:
    """Copy every field except the primary key from a Dtro onto a row."""
    model.schema_version = str(dtro.schema_version)
    model.data = dtro.data
    model.created = dtro.created
    model.last_updated = dtro.last_updated
    model.created_correlation_id = dtro.created_correlation_id
    model.last_updated_correlation_id = dtro.last_updated_correlation_id
    model.deleted = dtro.deleted
    model.deletion_time = dtro.deletion_time
    model.traffic_authority_id = dtro.traffic_authority_id
    model.tro_name = dtro.tro_name
    model.regulation_types = list(dtro.regulation_types)
    model.vehicle_types = list(dtro.vehicle_types)
    model.order_reporting_points = list(dtro.order_reporting_points)
    model.regulation_start = dtro.regulation_start
    model.regulation_end = dtro.regulation_end
    box = dtro.location
    model.location_west = box.west if box else None
    model.location_south = box.south if box else None
    model.location_east = box.east if box else None
    model.location_north = box.north if box else None


class SqlStorageService(IStorageService):
    """
    Stores DTROs in a relational database.

    Searches run as SQL queries over the inferred index columns.
    """

    def __init__(
        self,
        db_manager: DatabaseManager,
        projection_service: ISpatialProjectionService,
        mapping_service: DtroMappingService,
    ):
        self._db_manager = db_manager
        self._projection_service = projection_service
        self._mapping_service = mapping_service

    @property
    def can_search(self) -> bool:
        return True

    def dtro_exists(self, dtro_id: str) -> bool:
        key = _to_uuid(dtro_id)
        if key is None:
            return False
        with self._db_manager.get_session() as session:
            query = select(func.count()).select_from(DtroModel).where(
                and_(DtroModel.id == key, DtroModel.deleted.is_(False))
            )
            return session.execute(query).scalar() > 0

    def save_dtro(self, dtro_id: str, dtro: Dtro) -> None:
        dtro.id = str(dtro_id)
        indexed = self._mapping_service.infer_index_fields(dtro)

        with self._db_manager.get_session() as session:
            model = DtroModel(id=uuid.UUID(str(dtro_id)))
            apply_dtro_to_model(indexed, model)
            session.add(model)

        logger.debug(f"Saved DTRO {dtro_id} to SQL storage")

    def get_dtro_by_id(self, dtro_id: str) -> Dtro:
        key = _to_uuid(dtro_id)
        with self._db_manager.get_session() as session:
            model = session.get(DtroModel, key) if key is not None else None
            if model is None:
                raise DtroNotFoundError(message=f"There is no DTRO with Id {dtro_id}", dtro_id=str(dtro_id))
            return model_to_dtro(model)

    def update_dtro(self, dtro_id: str, dtro: Dtro) -> None:
        key = _to_uuid(dtro_id)
        with self._db_manager.get_session() as session:
            model = session.get(DtroModel, key) if key is not None else None
            if model is None or model.deleted:
                raise DtroNotFoundError(message=f"There is no DTRO with Id {dtro_id}", dtro_id=str(dtro_id))

            merged = merge_for_update(model_to_dtro(model), dtro)
            apply_dtro_to_model(self._mapping_service.infer_index_fields(merged), model)

        logger.debug(f"Updated DTRO {dtro_id} in SQL storage")

    def try_update_dtro(self, dtro_id: str, dtro: Dtro) -> bool:
        try:
            self.update_dtro(dtro_id, dtro)
            return True
        except DtroNotFoundError:
            return False

    def delete_dtro(self, dtro_id: str, deletion_time: Optional[datetime] = None) -> bool:
        key = _to_uuid(dtro_id)
        with self._db_manager.get_session() as session:
            model = session.get(DtroModel, key) if key is not None else None
            if model is None or model.deleted:
                return False
            model.deleted = True
            model.deletion_time = deletion_time or utc_now()
        return True

    def _location_condition(self, location: Location) -> ColumnElement:
        bbox = (
            self._projection_service.wgs84_to_osgb36_bbox(location.bbox)
            if location.crs != Crs.OSGB36_EPSG27700.value
            else location.bbox
        )
        return _overlaps(bbox)

    def _common_conditions(self, query) -> List[ColumnElement]:
        dialect_name = self._db_manager.engine.dialect.name
        conditions: List[ColumnElement] = []
        if query.ta is not None:
            conditions.append(DtroModel.traffic_authority_id == query.ta)
        if query.modification_time is not None:
            conditions.append(DtroModel.last_updated >= query.modification_time)
        if query.tro_name is not None:
            conditions.append(
                func.lower(DtroModel.tro_name, type_=String).contains(query.tro_name.lower(), autoescape=True)
            )
        if query.vehicle_type is not None:
            conditions.append(contains_item(DtroModel.vehicle_types, query.vehicle_type, dialect_name))
        if query.regulation_type is not None:
            conditions.append(contains_item(DtroModel.regulation_types, query.regulation_type, dialect_name))
        if query.order_reporting_point is not None:
            conditions.append(
                contains_item(DtroModel.order_reporting_points, query.order_reporting_point, dialect_name)
            )
        if query.location is not None:
            conditions.append(self._location_condition(query.location))
        if query.regulation_start is not None:
            conditions.append(_compare(DtroModel.regulation_start, query.regulation_start))
        if query.regulation_end is not None:
            conditions.append(_compare(DtroModel.regulation_end, query.regulation_end))
        return conditions

    def search(self, search: DtroSearch) -> PaginatedResult:
        disjuncts: List[ColumnElement] = []
        for query in search.queries:
            if query.deletion_time is not None:
                conditions = [DtroModel.deletion_time >= query.deletion_time]
            else:
                conditions = [DtroModel.deleted.is_(False)]
            if query.publication_time is not None:
                conditions.append(DtroModel.created >= query.publication_time)
            conditions.extend(self._common_conditions(query))
            disjuncts.append(and_(*conditions))

        where = or_(*disjuncts) if disjuncts else DtroModel.deleted.is_(False)

        with self._db_manager.get_session() as session:
            total = session.execute(
                select(func.count()).select_from(DtroModel).where(where)
            ).scalar()
            page_query = (
                select(DtroModel)
                .where(where)
                .order_by(DtroModel.created, DtroModel.id)
                .offset((search.page - 1) * search.page_size)
                .limit(search.page_size)
            )
            models = session.execute(page_query).scalars().all()
            return PaginatedResult(
                results=[model_to_dtro(model) for model in models],
                total_count=total or 0,
            )

    def search_for_events(self, search: DtroEventSearch) -> List[Dtro]:
        conditions: List[ColumnElement] = []
        if search.deletion_time is not None:
            conditions.append(DtroModel.deletion_time >= search.deletion_time)
        if search.since is not None:
            conditions.append(DtroModel.created >= search.since)
        conditions.extend(self._common_conditions(search))

        query = select(DtroModel)
        if conditions:
            query = query.where(and_(*conditions))
        query = query.order_by(DtroModel.id)

        with self._db_manager.get_session() as session:
            models = session.execute(query).scalars().all()
            return [model_to_dtro(model) for model in models]
