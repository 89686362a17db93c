"""Base repository class with common CRUD operations."""

from typing import Any, Generic, TypeVar

from sqlalchemy import func, inspect
from sqlalchemy.orm import Session

from repoverse.db import Base

T = TypeVar("T", bound=Base)


class BaseRepository(Generic[T]):
    """
    Base repository providing common CRUD operations.

    Usage:
        class ClusterRepository(BaseRepository[Cluster]):
            model = Cluster

        clusters = ClusterRepository(session)
        frontend = clusters.get_by_id("frontend")
    """

    model: type[T]

    def __init__(self, session: Session):
        self.session = session

    @property
    def _pk(self):
        return inspect(self.model).primary_key[0]

    def _filtered(self, query, filters: dict[str, Any]):
        for key, value in filters.items():
            if not hasattr(self.model, key):
                raise ValueError(f"Unknown filter key: {key}")
            query = query.filter(getattr(self.model, key) == value)
        return query

    def get_by_id(self, id: Any) -> T | None:
        """Get a single record by primary key."""
        return self.session.get(self.model, id)

    def get_all(self, limit: int = 100, offset: int = 0) -> list[T]:
        """Get all records with pagination."""
        return (
            self.session.query(self.model)
            .order_by(self._pk)
            .offset(offset)
            .limit(limit)
            .all()
        )

    def create(self, **kwargs) -> T:
        """Create a new record."""
        instance = self.model(**kwargs)
        self.session.add(instance)
        self.session.flush()
        return instance

    def update(self, id: Any, **kwargs) -> T | None:
        """Update an existing record."""
        instance = self.get_by_id(id)
        if instance:
            for key, value in kwargs.items():
                if hasattr(instance, key):
                    setattr(instance, key, value)
            self.session.flush()
        return instance

    def delete(self, id: Any) -> bool:
        """Delete a record by primary key."""
        instance = self.get_by_id(id)
        if instance:
            self.session.delete(instance)
            self.session.flush()
            return True
        return False

    def count(self, **filters) -> int:
        """Get count of records, optionally filtered by column equality."""
        query = self._filtered(self.session.query(func.count(self._pk)), filters)
        return query.scalar() or 0

    def exists(self, id: Any) -> bool:
        """Check if a record exists."""
        result = self.session.query(
            self.session.query(self.model).filter(self._pk == id).exists()
        ).scalar()
        return bool(result) if result is not None else False
