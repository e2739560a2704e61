"""Database schema definition and ORM models.

Tables:
- properties: imported listings, with source metadata and duplicate audit fields
- property_images: image URLs per property (first image is primary)
- scraping_jobs: one row per import batch

Timestamps are stored as ISO 8601 UTC strings.
"""

import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import JSON, Boolean, Column, Float, ForeignKey, Index, Integer, String, Text, inspect
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base

from property_import.domain.models import ImportJob, PropertyRecord
from property_import.duplicates.models import ExistingProperty
from property_import.utils.timestamps import format_timestamp, parse_iso_datetime

logger = logging.getLogger(__name__)

Base = declarative_base()


class PropertyModel(Base):
    """ORM model for the properties table."""

    __tablename__ = "properties"

    id = Column(String(32), primary_key=True, nullable=False)

    title = Column(Text, nullable=False)
    description = Column(Text, nullable=True)
    location = Column(String(255), nullable=False)
    price = Column(Integer, nullable=False)
    bedrooms = Column(Integer, nullable=True)
    bathrooms = Column(Integer, nullable=True)
    area = Column(Float, nullable=True)
    land_size = Column(Float, nullable=True)
    property_type = Column(String(32), nullable=False)
    listing_type = Column(String(32), nullable=False)
    features = Column(JSON, nullable=False, default=list)
    amenities = Column(JSON, nullable=False, default=dict)
    rental_duration = Column(String(100), nullable=True)
    rental_terms = Column(Text, nullable=True)
    roi_potential = Column(Float, nullable=True)
    status = Column(String(32), nullable=False, default="available")

    # Source metadata
    source_platform = Column(String(50), nullable=True)
    source_url = Column(Text, nullable=True)
    source_instagram_handle = Column(String(255), nullable=True)
    source_contact_name = Column(String(255), nullable=True)
    source_contact_phone = Column(String(20), nullable=True)
    source_contact_email = Column(String(255), nullable=True)
    raw_source_data = Column(JSON, nullable=True)

    # Import audit
    import_job_id = Column(String(32), ForeignKey("scraping_jobs.id"), nullable=True)
    duplicate_of = Column(String(32), nullable=True)
    duplicate_confidence = Column(Float, nullable=True)

    created_at = Column(String(50), nullable=False)
    updated_at = Column(String(50), nullable=False)

    __table_args__ = (
        Index("idx_properties_source_url", "source_url"),
        Index("idx_properties_contact_phone", "source_contact_phone"),
        Index("idx_properties_contact_email", "source_contact_email"),
        Index("idx_properties_price", "price"),
        Index("idx_properties_import_job", "import_job_id"),
    )

    def to_domain(self) -> PropertyRecord:
        return PropertyRecord(
            id=self.id,
            title=self.title,
            description=self.description,
            location=self.location,
            price=self.price,
            bedrooms=self.bedrooms,
            bathrooms=self.bathrooms,
            area=self.area,
            land_size=self.land_size,
            property_type=self.property_type,
            listing_type=self.listing_type,
            features=list(self.features or []),
            amenities=dict(self.amenities or {}),
            source_platform=self.source_platform,
            source_url=self.source_url,
            source_instagram_handle=self.source_instagram_handle,
            source_contact_name=self.source_contact_name,
            source_contact_phone=self.source_contact_phone,
            source_contact_email=self.source_contact_email,
            rental_duration=self.rental_duration,
            rental_terms=self.rental_terms,
            roi_potential=self.roi_potential,
            status=self.status,
            import_job_id=self.import_job_id,
            duplicate_of=self.duplicate_of,
            duplicate_confidence=self.duplicate_confidence,
            created_at=parse_iso_datetime(self.created_at),
            updated_at=parse_iso_datetime(self.updated_at),
        )

    def to_existing(self) -> ExistingProperty:
        """The fields the duplicate checker compares against."""
        return ExistingProperty(
            id=self.id,
            title=self.title,
            location=self.location,
            price=self.price,
            area=self.area,
            source_contact_phone=self.source_contact_phone,
            created_at=parse_iso_datetime(self.created_at),
        )


class PropertyImageModel(Base):
    """ORM model for the property_images table."""

    __tablename__ = "property_images"

    id = Column(Integer, primary_key=True, autoincrement=True)
    property_id = Column(
        String(32), ForeignKey("properties.id", ondelete="CASCADE"), nullable=False
    )
    url = Column(Text, nullable=False)
    is_primary = Column(Boolean, nullable=False, default=False)
    position = Column(Integer, nullable=False, default=0)

    __table_args__ = (Index("idx_property_images_property", "property_id"),)


class ImportJobModel(Base):
    """ORM model for the scraping_jobs table (one row per import batch)."""

    __tablename__ = "scraping_jobs"

    id = Column(String(32), primary_key=True, nullable=False)
    platform = Column(String(50), nullable=False)
    status = Column(String(32), nullable=False)
    triggered_by = Column(String(255), nullable=True)

    properties_found = Column(Integer, nullable=False, default=0)
    properties_added = Column(Integer, nullable=False, default=0)
    properties_updated = Column(Integer, nullable=False, default=0)
    properties_skipped = Column(Integer, nullable=False, default=0)
    properties_failed = Column(Integer, nullable=False, default=0)

    error_message = Column(Text, nullable=True)
    import_data = Column(JSON, nullable=True)

    started_at = Column(String(50), nullable=True)
    completed_at = Column(String(50), nullable=True)

    __table_args__ = (Index("idx_scraping_jobs_status", "status"),)

    def to_domain(self) -> ImportJob:
        return ImportJob(
            id=self.id,
            platform=self.platform,
            status=self.status,
            triggered_by=self.triggered_by,
            properties_found=self.properties_found,
            properties_added=self.properties_added,
            properties_updated=self.properties_updated,
            properties_skipped=self.properties_skipped,
            properties_failed=self.properties_failed,
            started_at=parse_iso_datetime(self.started_at),
            completed_at=parse_iso_datetime(self.completed_at),
            error_messages=self.error_message.split("\n") if self.error_message else [],
        )

    @classmethod
    def from_domain(
        cls, job: ImportJob, import_data: Optional[List[Dict[str, Any]]] = None
    ) -> "ImportJobModel":
        model = cls(id=job.id, import_data=import_data)
        model.apply(job)
        return model

    def apply(self, job: ImportJob) -> None:
        """Copy mutable job state onto this row."""
        self.platform = job.platform
        self.status = getattr(job.status, "value", job.status)
        self.triggered_by = job.triggered_by
        self.properties_found = job.properties_found
        self.properties_added = job.properties_added
        self.properties_updated = job.properties_updated
        self.properties_skipped = job.properties_skipped
        self.properties_failed = job.properties_failed
        self.error_message = "\n".join(job.error_messages) or None
        self.started_at = format_timestamp(job.started_at)
        self.completed_at = format_timestamp(job.completed_at)


def create_schema(engine: Engine) -> None:
    """Create all tables and indexes if they don't exist (idempotent)."""
    logger.info("Creating database schema if not exists")

    try:
        Base.metadata.create_all(engine, checkfirst=True)
        tables = inspect(engine).get_table_names()
        logger.info(f"Database schema ready. Tables: {', '.join(tables)}")
    except Exception as e:
        logger.error(f"Failed to create database schema: {e}", exc_info=True)
        raise
