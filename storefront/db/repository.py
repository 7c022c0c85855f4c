"""Per-entity persistence collaborator.

Only the predicates the core needs: lookup by id, equality lookup, existence
and count. Writes are flushed, never committed; the caller owns the
transaction (see `atomic`).
"""
from typing import Any, Generic, Optional, Type, TypeVar

from sqlalchemy.orm import Session

ModelT = TypeVar("ModelT")


class Repository(Generic[ModelT]):
    def __init__(self, db: Session, model: Type[ModelT]):
        self.db = db
        self.model = model

    def find_by_id(self, entity_id: int, for_update: bool = False) -> Optional[ModelT]:
        """Load one row by primary key.

        With for_update=True the row is locked until the transaction ends
        (SELECT ... FOR UPDATE; a no-op on SQLite, where BEGIN IMMEDIATE
        already serializes writers) and re-read from the database even if
        the session holds a stale copy.
        """
        q = self.db.query(self.model).filter(self.model.id == entity_id)
        if for_update:
            q = q.with_for_update().populate_existing()
        return q.first()

    def find_by_field(self, field: str, value: Any) -> Optional[ModelT]:
        return (
            self.db.query(self.model)
            .filter(getattr(self.model, field) == value)
            .order_by(self.model.id)
            .first()
        )

    def exists(self, field: str, value: Any) -> bool:
        q = self.db.query(self.model).filter(getattr(self.model, field) == value)
        return self.db.query(q.exists()).scalar()

    def count(self, field: str, value: Any) -> int:
        return self.db.query(self.model).filter(getattr(self.model, field) == value).count()

    def insert(self, entity: ModelT) -> ModelT:
        self.db.add(entity)
        self.db.flush()
        return entity

    def update(self, entity: ModelT, **values: Any) -> ModelT:
        for key, value in values.items():
            setattr(entity, key, value)
        self.db.flush()
        return entity

    def delete(self, entity: ModelT) -> None:
        self.db.delete(entity)
        self.db.flush()
