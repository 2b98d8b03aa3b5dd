"""
SQLAlchemy models for the spare parts catalog.

This module defines the database schema using SQLAlchemy ORM,
matching the schema defined in Alembic migrations.
"""

from sqlalchemy import (
    JSON, Column, Integer, String, Text, Numeric, TIMESTAMP,
    CheckConstraint, Index, func, text
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import declarative_base

Base = declarative_base()

# JSONB on PostgreSQL, plain JSON elsewhere (SQLite in tests)
JSONType = JSON().with_variant(JSONB(), 'postgresql')


class SparePartStatus:
    ACTIVE = 'ACTIVE'
    INACTIVE = 'INACTIVE'


class SparePart(Base):
    """A catalog spare part, keyed externally by its part number."""

    __tablename__ = 'spare_parts'
    __table_args__ = (
        CheckConstraint(
            "status IN ('ACTIVE', 'INACTIVE')",
            name='spare_parts_status_check'
        ),
        Index('idx_spare_parts_status', 'status'),
        Index('idx_spare_parts_name', 'name'),
        {'comment': 'Spare parts catalog'}
    )

    id = Column(
        Integer,
        primary_key=True,
        autoincrement=True,
        nullable=False
    )
    name = Column(
        String(255),
        nullable=False,
        comment='Product name'
    )
    part_number = Column(
        String(100),
        nullable=False,
        unique=True,
        comment='Part ID, the natural key used by imports'
    )
    description = Column(
        Text,
        nullable=True,
        comment='HSN code, application, model and manufacturing unit'
    )
    category = Column(
        String(100),
        nullable=True
    )
    base_price = Column(
        Numeric(precision=12, scale=2),
        server_default='0',
        nullable=False,
        comment='Base price'
    )
    image_url = Column(
        String(512),
        nullable=True,
        comment='Public URL of the stored picture'
    )
    specifications = Column(
        JSONType,
        nullable=True,
        comment='Technical sheet and other structured specs'
    )
    status = Column(
        String(20),
        server_default=SparePartStatus.ACTIVE,
        nullable=False
    )
    created_by = Column(
        String(255),
        nullable=True,
        comment='User or API key that created the part'
    )
    updated_by = Column(
        String(255),
        nullable=True,
        comment='User or API key that last updated the part'
    )
    created_at = Column(
        TIMESTAMP,
        server_default=text('CURRENT_TIMESTAMP'),
        nullable=False
    )
    updated_at = Column(
        TIMESTAMP,
        server_default=text('CURRENT_TIMESTAMP'),
        onupdate=func.now(),
        nullable=False,
        comment='Last modification timestamp'
    )

    def __repr__(self):
        return f"<SparePart(id={self.id}, part_number='{self.part_number}', name='{self.name}')>"
