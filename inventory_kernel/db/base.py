"""
Module: inventory_kernel.db.base
Responsibility: Declarative base and column types for all SQLAlchemy ORM models.
    Provides the UUID and UTC datetime type decorators, the type annotation map
    for consistent column types, and the UUIDPrimaryKey mixin.
Architecture position: Kernel > DB.  This is the lowest-level import target
    within the kernel.  ALL model files import from here.  This module MUST NOT
    import from models/, services/, storage/, domain/, or outer layers.

Invariants enforced:
    - Decimal precision: type_annotation_map maps Python Decimal to
      Numeric(18, 4), matching the four-decimal unit cost range.
      NEVER use float for costs.
    - UTC timestamps: UTCDateTime always returns timezone-aware UTC values,
      even on backends (SQLite) that drop the offset on storage.

Failure modes:
    - IntegrityError on duplicate primary keys (surfaced by storage as
      Duplicate*Error or VersionMismatchError).

Audit relevance:
    Journal entry timestamps round-trip through UTCDateTime, so ordering and
    date-range queries behave the same on PostgreSQL and SQLite.
"""

from datetime import datetime, timezone
from decimal import Decimal
from typing import ClassVar
from uuid import UUID as PyUUID, uuid4

from sqlalchemy import BigInteger, DateTime, Numeric, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.types import TypeDecorator


class UUIDString(TypeDecorator):
    """
    UUID type stored as String(36) for cross-database portability.

    Guarantees:
        - process_bind_param: UUID -> str on INSERT/UPDATE.
        - process_result_value: str -> UUID on SELECT.
    """

    impl = String(36)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is not None:
            return str(value)
        return None

    def process_result_value(self, value, dialect):
        if value is not None:
            return PyUUID(value)
        return None


class UTCDateTime(TypeDecorator):
    """
    Timezone-aware datetime that always loads as UTC.

    Contract:
        Values must be timezone-aware on bind.  SQLite stores them without
        an offset, so naive values read back are re-tagged as UTC.
    """

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        if value.tzinfo is None:
            raise ValueError("naive datetime cannot be stored; attach a timezone")
        value = value.astimezone(timezone.utc)
        if dialect.name == "sqlite":
            return value.replace(tzinfo=None)
        return value

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)


class Base(DeclarativeBase):
    """
    Declarative base for all SQLAlchemy models.

    Guarantees:
        - Decimal maps to Numeric(18, 4).
        - datetime maps to UTCDateTime (always timezone-aware UTC).
        - UUID maps to UUIDString.
        - int maps to BigInteger.
    """

    type_annotation_map: ClassVar[dict] = {
        Decimal: Numeric(18, 4),
        datetime: UTCDateTime(),
        PyUUID: UUIDString(),
        int: BigInteger,
    }


class UUIDPrimaryKey:
    """Mixin giving a model a uuid4-generated primary key named ``id``."""

    id: Mapped[PyUUID] = mapped_column(
        UUIDString(),
        primary_key=True,
        default=uuid4,
    )


# Re-export UUID for convenience
UUID = PyUUID
