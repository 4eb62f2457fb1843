"""DataService over the local SQLAlchemy models (development and tests)."""

import enum
import logging
import uuid
from contextlib import contextmanager
from typing import Any, Dict, List, Mapping, Optional, Sequence

from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from hrm_console.core.errors import DataConflict, DataServiceError
from hrm_console.database.base import UUIDType
from hrm_console.models.product import Product
from hrm_console.models.profile import Profile
from hrm_console.models.user_permission import UserPermission
from hrm_console.services.data_service import (
    PRODUCTS,
    PROFILES,
    USER_PERMISSIONS,
    DataService,
    Row,
)

logger = logging.getLogger(__name__)

TABLE_MODEL_MAP = {
    PROFILES: Profile,
    PRODUCTS: Product,
    USER_PERMISSIONS: UserPermission,
}

_DIALECT_INSERTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


class SqlDataService(DataService):
    def __init__(self, db: Session):
        self.db = db

    def select(
        self,
        table: str,
        filters: Optional[Mapping[str, Any]] = None,
        order_by: Optional[str] = None,
        descending: bool = False,
    ) -> List[Row]:
        model_cls = self._model(table)
        with self._translate_errors(table):
            query = self.db.query(model_cls)
            for column, value in (filters or {}).items():
                col = self._column(model_cls, column)
                # A malformed id cannot match any row
                if isinstance(col.type, UUIDType) and value is not None and not _is_uuid(value):
                    return []
                query = query.filter(col == _plain(value))
            if order_by:
                col = self._column(model_cls, order_by)
                query = query.order_by(col.desc() if descending else col.asc())
            return [self._row_to_dict(row) for row in query.all()]

    def insert(self, table: str, record: Mapping[str, Any]) -> Row:
        model_cls = self._model(table)
        with self._translate_errors(table):
            obj = model_cls(**self._values(model_cls, record))
            self.db.add(obj)
            self.db.commit()
            self.db.refresh(obj)
            return self._row_to_dict(obj)

    def update(self, table: str, values: Mapping[str, Any], match_id: str) -> Optional[Row]:
        model_cls = self._model(table)
        if not _is_uuid(match_id):
            return None
        with self._translate_errors(table):
            obj = self.db.query(model_cls).filter(model_cls.id == match_id).first()
            if obj is None:
                return None
            for key, value in self._values(model_cls, values).items():
                if key != "id":
                    setattr(obj, key, value)
            self.db.commit()
            self.db.refresh(obj)
            return self._row_to_dict(obj)

    def delete(self, table: str, match_id: str) -> None:
        model_cls = self._model(table)
        if not _is_uuid(match_id):
            return
        with self._translate_errors(table):
            obj = self.db.query(model_cls).filter(model_cls.id == match_id).first()
            if obj is not None:
                self.db.delete(obj)
                self.db.commit()

    def upsert(self, table: str, record: Mapping[str, Any], on_conflict: Sequence[str]) -> Row:
        model_cls = self._model(table)
        values = self._values(model_cls, record)
        missing = [c for c in on_conflict if c not in values]
        if missing:
            raise DataServiceError(f"Upsert on {table} needs values for {', '.join(missing)}")

        key = {c: values[c] for c in on_conflict}
        insert_fn = _DIALECT_INSERTS.get(self.db.get_bind().dialect.name)

        with self._translate_errors(table):
            if insert_fn is None:
                self._upsert_by_lookup(model_cls, values, key)
            else:
                values.setdefault("id", uuid.uuid4())
                stmt = insert_fn(model_cls).values(**values)
                changed = {
                    k: stmt.excluded[k]
                    for k in values
                    if k not in on_conflict and k not in ("id", "created_at")
                }
                if changed:
                    stmt = stmt.on_conflict_do_update(index_elements=list(on_conflict), set_=changed)
                else:
                    stmt = stmt.on_conflict_do_nothing(index_elements=list(on_conflict))
                self.db.execute(stmt)
                self.db.commit()

        rows = self.select(table, key)
        return rows[0]

    # -----------------------------------------------------------------------
    # Internal helpers
    # -----------------------------------------------------------------------

    def _upsert_by_lookup(self, model_cls, values: Dict[str, Any], key: Dict[str, Any]) -> None:
        query = self.db.query(model_cls)
        for column, value in key.items():
            query = query.filter(getattr(model_cls, column) == value)
        existing = query.first()
        if existing is None:
            self.db.add(model_cls(**values))
        else:
            for column, value in values.items():
                if column not in key and column != "id":
                    setattr(existing, column, value)
        self.db.commit()

    @contextmanager
    def _translate_errors(self, table: str):
        try:
            yield
        except IntegrityError as e:
            self.db.rollback()
            logger.warning("Constraint violation on %s: %s", table, e.orig)
            raise DataConflict(str(e.orig)) from e
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error("Database error on %s", table, exc_info=e)
            raise DataServiceError(_backend_message(e)) from e

    def _model(self, table: str):
        model_cls = TABLE_MODEL_MAP.get(table)
        if model_cls is None:
            raise DataServiceError(f"Unknown table: {table}")
        return model_cls

    def _column(self, model_cls, name: str):
        if name not in model_cls.__table__.columns:
            raise DataServiceError(f"Unknown column {name} on {model_cls.__tablename__}")
        return getattr(model_cls, name)

    def _values(self, model_cls, record: Mapping[str, Any]) -> Dict[str, Any]:
        values = {}
        for key, value in record.items():
            self._column(model_cls, key)
            values[key] = _plain(value)
        return values

    def _row_to_dict(self, row: Any) -> Row:
        d = {}
        for col in row.__table__.columns:
            val = getattr(row, col.name)
            if isinstance(val, uuid.UUID):
                val = str(val)
            d[col.name] = val
        return d


def _is_uuid(value: Any) -> bool:
    if isinstance(value, uuid.UUID):
        return True
    try:
        uuid.UUID(str(value))
    except ValueError:
        return False
    return True


def _backend_message(error: SQLAlchemyError) -> str:
    """Driver message without the SQL statement and parameters."""
    orig = getattr(error, "orig", None)
    if orig is not None:
        return str(orig)
    return error.__class__.__name__


def _plain(value: Any) -> Any:
    if isinstance(value, enum.Enum):
        return value.value
    return value
