# backend/app/repositories/base_repository.py
"""
Base Repository for the Jawla Platform

Shared data access for the trip, slot, guide schedule and booking
repositories: primary-key reads, inserts, deletes and existence checks over
one mapped model, plus the query helpers subclasses build on.

Repositories flush but never commit. The owning service ends the unit of
work with ``BaseService.transaction()``.
"""

import logging
from typing import Generic, List, Optional, Type, TypeVar

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Query, Session

from ..core.exceptions import RepositoryException

T = TypeVar("T")

logger = logging.getLogger(__name__)


class BaseRepository(Generic[T]):
    """
    Generic repository bound to one model class.

    Attributes:
        db: SQLAlchemy session shared with the calling service
        model: Mapped model class (Trip, TripScheduleSlot, Booking)
    """

    def __init__(self, db: Session, model: Type[T]):
        self.db = db
        self.model = model
        self.logger = logging.getLogger(f"{__name__}.{model.__name__}")

    def get_by_id(self, id: str, load_relationships: bool = True) -> Optional[T]:
        """
        Fetch one row by ULID.

        Args:
            id: Primary key
            load_relationships: Apply the subclass's eager loading

        Returns:
            The row, or None when it does not exist
        """
        try:
            query = self._build_query().filter(self.model.id == id)
            if load_relationships:
                query = self._apply_eager_loading(query)
            return query.first()
        except SQLAlchemyError as e:
            self.logger.error(f"Error loading {self.model.__name__} {id}: {str(e)}")
            raise RepositoryException(f"Failed to retrieve {self.model.__name__}: {str(e)}")

    def create(self, **kwargs) -> T:
        """
        Insert a row and flush so its id and defaults are populated.

        Raises:
            RepositoryException: Wrapping the IntegrityError of a violated unique
                constraint (callers inspect ``__cause__``) or any other failure
        """
        try:
            entity = self.model(**kwargs)
            self.db.add(entity)
            self.db.flush()
            return entity
        except IntegrityError as exc:
            self.logger.warning("Integrity error creating %s: %s", self.model.__name__, exc)
            self.db.rollback()
            raise RepositoryException(f"Integrity constraint violated: {exc}") from exc
        except SQLAlchemyError as e:
            self.logger.error(f"Error creating {self.model.__name__}: {str(e)}")
            self.db.rollback()
            raise RepositoryException(f"Failed to create {self.model.__name__}: {str(e)}")

    def flush(self) -> None:
        self.db.flush()

    def delete(self, id: str) -> bool:
        """
        Hard-delete a row by id.

        Returns:
            False when no such row exists
        """
        try:
            entity = self.get_by_id(id, load_relationships=False)
            if entity is None:
                return False
            self.db.delete(entity)
            self.db.flush()
            return True
        except IntegrityError as e:
            self.logger.error(f"{self.model.__name__} {id} is still referenced: {str(e)}")
            self.db.rollback()
            raise RepositoryException(f"Cannot delete due to existing references: {str(e)}")
        except SQLAlchemyError as e:
            self.logger.error(f"Error deleting {self.model.__name__} {id}: {str(e)}")
            self.db.rollback()
            raise RepositoryException(f"Failed to delete {self.model.__name__}: {str(e)}")

    def exists(self, **kwargs) -> bool:
        """Whether any row matches the given column values."""
        try:
            return self._build_query().filter_by(**kwargs).first() is not None
        except SQLAlchemyError as e:
            self.logger.error(f"Error checking {self.model.__name__} existence: {str(e)}")
            raise RepositoryException(f"Failed to check existence: {str(e)}")

    # Helpers for subclasses

    def _apply_eager_loading(self, query: Query) -> Query:
        """Hook for subclasses that load relationships up front."""
        return query

    def _build_query(self) -> Query:
        return self.db.query(self.model)

    def _execute_query(self, query: Query) -> List[T]:
        try:
            return query.all()
        except SQLAlchemyError as e:
            self.logger.error(f"{self.model.__name__} query failed: {str(e)}")
            raise RepositoryException(f"Query failed: {str(e)}")
