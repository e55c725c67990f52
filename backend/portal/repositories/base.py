"""Base repository shared by every aggregate.

Subclasses declare which model they serve and which error a missing row
raises; lookups by primary key, listing, inserts and deletes are then
inherited. Writes only flush: committing is the calling service's job.
"""

from typing import Generic, List, Optional, Type, TypeVar

from sqlalchemy.orm import Query, Session

from ..database import Base
from ..exceptions import PortalException

ModelT = TypeVar("ModelT", bound=Base)


class BaseRepository(Generic[ModelT]):
    """Shared repository logic for SQLAlchemy models.

    Class variables to set in subclasses:
        model_class:     The SQLAlchemy model (e.g., Article)
        id_column:       Lookup column for get_by_id (default "id")
        not_found_error: Exception class raised by get_by_id
        default_order:   Column name get_all sorts by, if any
    """

    model_class: Type[ModelT]
    id_column: str = "id"
    not_found_error: Type[PortalException]
    default_order: Optional[str] = None

    def __init__(self, db: Session):
        self.db = db

    def _query(self) -> Query:
        return self.db.query(self.model_class)

    def get_by_id_optional(self, entity_id: str) -> Optional[ModelT]:
        column = getattr(self.model_class, self.id_column)
        return self._query().filter(column == entity_id).first()

    def get_by_id(self, entity_id: str) -> ModelT:
        """Row for ``entity_id``. Raises not_found_error if missing."""
        entity = self.get_by_id_optional(entity_id)
        if entity is None:
            raise self.not_found_error(entity_id)
        return entity

    def get_all(self) -> List[ModelT]:
        query = self._query()
        if self.default_order:
            query = query.order_by(getattr(self.model_class, self.default_order))
        return query.all()

    def create(self, **fields) -> ModelT:
        """Insert a row and return it with server defaults loaded."""
        entity = self.model_class(**fields)
        self.db.add(entity)
        self.db.flush()
        self.db.refresh(entity)
        return entity

    def delete(self, entity_id: str) -> None:
        """Delete by primary key. Raises not_found_error if missing."""
        self.db.delete(self.get_by_id(entity_id))
        self.db.flush()
