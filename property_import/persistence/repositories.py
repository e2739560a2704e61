"""Data access layer (repositories) for persistence operations.

Repositories encapsulate SQLAlchemy queries and return domain models rather
than ORM models. SQLAlchemy errors are wrapped in PersistenceError
subclasses.
"""

import logging
import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from property_import.domain.models import ExtractedProperty, ImportJob, PropertyRecord
from property_import.duplicates.models import ExistingProperty
from property_import.utils.timestamps import format_timestamp, utc_now

from .exceptions import DataIntegrityError, PersistenceError, RecordNotFoundError
from .schema import ImportJobModel, PropertyImageModel, PropertyModel

logger = logging.getLogger(__name__)


def new_id() -> str:
    return uuid.uuid4().hex


def _property_columns(candidate: ExtractedProperty) -> Dict[str, Any]:
    """Column values taken from a normalized candidate."""
    return {
        "title": candidate.title,
        "description": candidate.description,
        "location": candidate.location,
        "price": candidate.price,
        "bedrooms": candidate.bedrooms,
        "bathrooms": candidate.bathrooms,
        "area": candidate.area,
        "land_size": candidate.land_size,
        "property_type": candidate.property_type,
        "listing_type": candidate.listing_type,
        "features": list(candidate.features),
        "amenities": dict(candidate.amenities),
        "rental_duration": candidate.rental_duration,
        "rental_terms": candidate.rental_terms,
        "roi_potential": candidate.roi_potential,
        "source_url": candidate.source_url,
        "source_instagram_handle": candidate.source_handle,
        "source_contact_name": candidate.contact_name,
        "source_contact_phone": candidate.contact_phone,
        "source_contact_email": candidate.contact_email,
    }


class PropertyRepository:
    """Repository for the properties table.

    Also serves as the duplicate checker's PropertyLookup.
    """

    def __init__(self, session: Session):
        self.session = session

    def _existing(self, stmt, description: str) -> List[ExistingProperty]:
        try:
            return [model.to_existing() for model in self.session.execute(stmt).scalars().all()]
        except SQLAlchemyError as e:
            logger.error(f"Error looking up properties by {description}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to look up properties by {description}: {e}") from e

    def find_by_source_url(self, source_url: str) -> List[ExistingProperty]:
        """All properties imported from this URL, oldest first."""
        stmt = (
            select(PropertyModel)
            .where(PropertyModel.source_url == source_url)
            .order_by(PropertyModel.created_at.asc(), PropertyModel.id.asc())
        )
        return self._existing(stmt, "source URL")

    def find_by_phone(self, phone: str, limit: int = 5) -> List[ExistingProperty]:
        stmt = (
            select(PropertyModel)
            .where(PropertyModel.source_contact_phone == phone)
            .order_by(PropertyModel.created_at.asc())
            .limit(limit)
        )
        return self._existing(stmt, "phone")

    def find_by_email(self, email: str, limit: int = 5) -> List[ExistingProperty]:
        stmt = (
            select(PropertyModel)
            .where(func.lower(PropertyModel.source_contact_email) == email.lower())
            .order_by(PropertyModel.created_at.asc())
            .limit(limit)
        )
        return self._existing(stmt, "email")

    def find_in_price_range(
        self, min_price: float, max_price: float, limit: int = 50
    ) -> List[ExistingProperty]:
        """Properties priced within [min_price, max_price], most recent first."""
        stmt = (
            select(PropertyModel)
            .where(PropertyModel.price >= min_price, PropertyModel.price <= max_price)
            .order_by(PropertyModel.created_at.desc())
            .limit(limit)
        )
        return self._existing(stmt, "price range")

    def get(self, property_id: str) -> Optional[PropertyRecord]:
        """Retrieve a property by id, or None if it does not exist.

        Raises:
            PersistenceError: If database error occurs
        """
        try:
            model = self.session.get(PropertyModel, property_id)
            return model.to_domain() if model else None
        except SQLAlchemyError as e:
            logger.error(f"Error retrieving property {property_id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to retrieve property: {e}") from e

    def count(self) -> int:
        try:
            return self.session.execute(select(func.count()).select_from(PropertyModel)).scalar_one()
        except SQLAlchemyError as e:
            raise PersistenceError(f"Failed to count properties: {e}") from e

    def insert(
        self,
        candidate: ExtractedProperty,
        platform: str,
        import_job_id: Optional[str] = None,
        raw_source_data: Optional[Dict[str, Any]] = None,
        duplicate_of: Optional[str] = None,
        duplicate_confidence: Optional[float] = None,
        now: Optional[datetime] = None,
    ) -> PropertyRecord:
        """Insert a new property row from a normalized candidate.

        Raises:
            DataIntegrityError: On constraint violation
            PersistenceError: If database error occurs
        """
        timestamp = format_timestamp(now or utc_now())
        model = PropertyModel(
            id=new_id(),
            status="available",
            source_platform=platform,
            import_job_id=import_job_id,
            raw_source_data=raw_source_data,
            duplicate_of=duplicate_of,
            duplicate_confidence=duplicate_confidence,
            created_at=timestamp,
            updated_at=timestamp,
            **_property_columns(candidate),
        )

        try:
            self.session.add(model)
            self.session.flush()
        except IntegrityError as e:
            logger.error(f"Integrity error inserting property: {e}", exc_info=True)
            raise DataIntegrityError(f"Failed to insert property: {e}") from e
        except SQLAlchemyError as e:
            logger.error(f"Error inserting property: {e}", exc_info=True)
            raise PersistenceError(f"Failed to insert property: {e}") from e

        return model.to_domain()

    def update_from_import(
        self,
        property_id: str,
        candidate: ExtractedProperty,
        import_job_id: Optional[str] = None,
        raw_source_data: Optional[Dict[str, Any]] = None,
        now: Optional[datetime] = None,
    ) -> PropertyRecord:
        """Overwrite a stored property with a re-imported version of the same post.

        Fields the new extraction did not find keep their stored values.

        Raises:
            RecordNotFoundError: If the property does not exist
            PersistenceError: If database error occurs
        """
        try:
            model = self.session.get(PropertyModel, property_id)
            if model is None:
                raise RecordNotFoundError(f"Property not found: {property_id}")

            for column, value in _property_columns(candidate).items():
                if value is None or value == [] or value == {}:
                    continue
                setattr(model, column, value)

            model.import_job_id = import_job_id
            if raw_source_data is not None:
                model.raw_source_data = raw_source_data
            model.updated_at = format_timestamp(now or utc_now())

            self.session.flush()
            return model.to_domain()

        except RecordNotFoundError:
            raise
        except IntegrityError as e:
            logger.error(f"Integrity error updating property {property_id}: {e}", exc_info=True)
            raise DataIntegrityError(f"Failed to update property: {e}") from e
        except SQLAlchemyError as e:
            logger.error(f"Error updating property {property_id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to update property: {e}") from e


class PropertyImageRepository:
    """Repository for the property_images table."""

    def __init__(self, session: Session):
        self.session = session

    def add_images(self, property_id: str, urls: List[str]) -> int:
        """Attach image URLs in order; the first one is the primary image.

        Returns:
            Number of images stored

        Raises:
            PersistenceError: If database error occurs
        """
        if not urls:
            return 0

        try:
            for position, url in enumerate(urls):
                self.session.add(
                    PropertyImageModel(
                        property_id=property_id,
                        url=url,
                        is_primary=position == 0,
                        position=position,
                    )
                )
            self.session.flush()
            return len(urls)
        except IntegrityError as e:
            raise DataIntegrityError(f"Failed to store images for {property_id}: {e}") from e
        except SQLAlchemyError as e:
            logger.error(f"Error storing images for {property_id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to store images: {e}") from e

    def replace_images(self, property_id: str, urls: List[str]) -> int:
        """Replace all images of a property. An empty list leaves them untouched."""
        if not urls:
            return 0

        try:
            self.session.execute(
                delete(PropertyImageModel).where(PropertyImageModel.property_id == property_id)
            )
        except SQLAlchemyError as e:
            logger.error(f"Error clearing images for {property_id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to replace images: {e}") from e
        return self.add_images(property_id, urls)

    def list_urls(self, property_id: str) -> List[str]:
        """Image URLs of a property, primary first."""
        try:
            stmt = (
                select(PropertyImageModel.url)
                .where(PropertyImageModel.property_id == property_id)
                .order_by(PropertyImageModel.position.asc())
            )
            return list(self.session.execute(stmt).scalars().all())
        except SQLAlchemyError as e:
            raise PersistenceError(f"Failed to list images: {e}") from e


class ImportJobRepository:
    """Repository for the scraping_jobs table."""

    def __init__(self, session: Session):
        self.session = session

    def create(self, job: ImportJob, import_data: Optional[List[Dict[str, Any]]] = None) -> ImportJob:
        """Insert a new job row.

        Raises:
            DataIntegrityError: If a job with this id already exists
            PersistenceError: If database error occurs
        """
        try:
            model = ImportJobModel.from_domain(job, import_data=import_data)
            self.session.add(model)
            self.session.flush()
            return model.to_domain()
        except IntegrityError as e:
            logger.error(f"Integrity error creating import job {job.id}: {e}", exc_info=True)
            raise DataIntegrityError(f"Failed to create import job: {e}") from e
        except SQLAlchemyError as e:
            logger.error(f"Error creating import job {job.id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to create import job: {e}") from e

    def update(self, job: ImportJob) -> ImportJob:
        """Write status, counters and timestamps of an existing job.

        Raises:
            RecordNotFoundError: If the job does not exist
            PersistenceError: If database error occurs
        """
        try:
            model = self.session.get(ImportJobModel, job.id)
            if model is None:
                raise RecordNotFoundError(f"Import job not found: {job.id}")
            model.apply(job)
            self.session.flush()
            return model.to_domain()
        except RecordNotFoundError:
            raise
        except SQLAlchemyError as e:
            logger.error(f"Error updating import job {job.id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to update import job: {e}") from e

    def get(self, job_id: str) -> Optional[ImportJob]:
        try:
            model = self.session.get(ImportJobModel, job_id)
            return model.to_domain() if model else None
        except SQLAlchemyError as e:
            logger.error(f"Error retrieving import job {job_id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to retrieve import job: {e}") from e

    def get_import_data(self, job_id: str) -> Optional[List[Dict[str, Any]]]:
        """Raw posts stored with the job, or None if the job does not exist."""
        try:
            model = self.session.get(ImportJobModel, job_id)
            return model.import_data if model else None
        except SQLAlchemyError as e:
            raise PersistenceError(f"Failed to retrieve import data: {e}") from e
