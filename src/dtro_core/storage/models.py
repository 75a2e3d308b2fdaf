"""SQLAlchemy models for DTRO storage."""

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Float,
    Index,
    Integer,
    JSON,
    String,
    Uuid,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.types import TypeDecorator


class JSONType(TypeDecorator):
    """Platform-independent JSON type.

    Uses JSONB for PostgreSQL and JSON for other databases (like SQLite).
    """
    impl = JSON
    cache_ok = True

    def load_dialect_impl(self, dialect):
        if dialect.name == 'postgresql':
            return dialect.type_descriptor(JSONB())
        else:
            return dialect.type_descriptor(JSON())


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""
    pass


class DtroModel(Base):
    """DTRO table model.

    The payload is kept as JSON next to the inferred index columns. The
    location box is split into four columns so overlap tests are plain
    comparisons.
    """
    __tablename__ = "dtros"

    id = Column(Uuid(as_uuid=True), primary_key=True)
    schema_version = Column(String(20), nullable=False)
    data = Column(JSONType, nullable=False)
    created = Column(DateTime)
    last_updated = Column(DateTime)
    created_correlation_id = Column(String(100))
    last_updated_correlation_id = Column(String(100))
    deleted = Column(Boolean, nullable=False, default=False)
    deletion_time = Column(DateTime)

    traffic_authority_id = Column(Integer, nullable=False, default=0)
    tro_name = Column(String(500))
    regulation_types = Column(JSONType)
    vehicle_types = Column(JSONType)
    order_reporting_points = Column(JSONType)
    regulation_start = Column(DateTime)
    regulation_end = Column(DateTime)
    location_west = Column(Float)
    location_south = Column(Float)
    location_east = Column(Float)
    location_north = Column(Float)

    __table_args__ = (
        Index("idx_dtros_traffic_authority_id", "traffic_authority_id"),
        Index("idx_dtros_created", "created"),
        Index("idx_dtros_last_updated", "last_updated"),
        Index("idx_dtros_deletion_time", "deletion_time"),
        Index("idx_dtros_regulation_start", "regulation_start"),
        Index("idx_dtros_regulation_end", "regulation_end"),
        Index(
            "idx_dtros_location",
            "location_west",
            "location_south",
            "location_east",
            "location_north",
        ),
    )
