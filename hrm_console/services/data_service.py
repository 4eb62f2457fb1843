"""Backend-neutral data access contract.

The managers only ever talk to a ``DataService``: equality-filtered selects
with optional ordering, single-record insert/update/delete by id, and an
upsert keyed on a unique column set. Every failure surfaces as
``DataServiceError`` carrying the backend's message.
"""

import abc
from typing import Any, Dict, List, Mapping, Optional, Sequence

PROFILES = "profiles"
PRODUCTS = "products"
USER_PERMISSIONS = "user_permissions"

TABLES = (PROFILES, PRODUCTS, USER_PERMISSIONS)

Row = Dict[str, Any]


class DataService(abc.ABC):
    @abc.abstractmethod
    def select(
        self,
        table: str,
        filters: Optional[Mapping[str, Any]] = None,
        order_by: Optional[str] = None,
        descending: bool = False,
    ) -> List[Row]:
        ...

    @abc.abstractmethod
    def insert(self, table: str, record: Mapping[str, Any]) -> Row:
        ...

    @abc.abstractmethod
    def update(self, table: str, values: Mapping[str, Any], match_id: str) -> Optional[Row]:
        """Return the updated row, or None when nothing matched ``match_id``."""

    @abc.abstractmethod
    def delete(self, table: str, match_id: str) -> None:
        ...

    @abc.abstractmethod
    def upsert(self, table: str, record: Mapping[str, Any], on_conflict: Sequence[str]) -> Row:
        """Insert ``record``, or update the row sharing its ``on_conflict`` values."""

    def authenticate(self, access_token: str) -> None:
        """Act as the holder of ``access_token`` from now on. No-op where the
        backend has no per-user access control."""

    def get(self, table: str, record_id: str) -> Optional[Row]:
        rows = self.select(table, {"id": record_id})
        return rows[0] if rows else None
