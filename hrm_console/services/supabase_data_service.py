"""DataService over the hosted Supabase project (PostgREST).

When built with the caller's access token every request runs under that
identity, so the project's row-level security policies apply.
"""

import logging
from typing import Any, List, Mapping, Optional, Sequence

import httpx
from fastapi.encoders import jsonable_encoder
from postgrest.exceptions import APIError
from supabase import Client

from hrm_console.core.errors import DataConflict, DataServiceError
from hrm_console.services.data_service import DataService, Row

logger = logging.getLogger(__name__)

# PostgreSQL unique_violation, foreign_key_violation
INTEGRITY_CODES = ("23505", "23503")


class SupabaseDataService(DataService):
    def __init__(self, client: Client, access_token: str | None = None):
        self.client = client
        if access_token:
            self.authenticate(access_token)

    def authenticate(self, access_token: str) -> None:
        self.client.postgrest.auth(access_token)

    def select(
        self,
        table: str,
        filters: Optional[Mapping[str, Any]] = None,
        order_by: Optional[str] = None,
        descending: bool = False,
    ) -> List[Row]:
        query = self.client.table(table).select("*")
        for column, value in jsonable_encoder(dict(filters or {})).items():
            query = query.eq(column, value)
        if order_by:
            query = query.order(order_by, desc=descending)
        return list(self._execute(table, query).data or [])

    def insert(self, table: str, record: Mapping[str, Any]) -> Row:
        payload = jsonable_encoder(dict(record))
        data = self._execute(table, self.client.table(table).insert(payload)).data
        return data[0] if data else payload

    def update(self, table: str, values: Mapping[str, Any], match_id: str) -> Optional[Row]:
        payload = jsonable_encoder(dict(values))
        data = self._execute(
            table, self.client.table(table).update(payload).eq("id", match_id)
        ).data
        return data[0] if data else None

    def delete(self, table: str, match_id: str) -> None:
        self._execute(table, self.client.table(table).delete().eq("id", match_id))

    def upsert(self, table: str, record: Mapping[str, Any], on_conflict: Sequence[str]) -> Row:
        payload = jsonable_encoder(dict(record))
        data = self._execute(
            table,
            self.client.table(table).upsert(payload, on_conflict=",".join(on_conflict)),
        ).data
        if data:
            return data[0]
        rows = self.select(table, {c: payload[c] for c in on_conflict})
        if not rows:
            raise DataServiceError(f"Upsert on {table} returned no row")
        return rows[0]

    def _execute(self, table: str, request):
        try:
            return request.execute()
        except APIError as e:
            logger.warning("Supabase rejected request on %s: %s", table, e.message)
            if e.code in INTEGRITY_CODES:
                raise DataConflict(e.message or str(e)) from e
            raise DataServiceError(e.message or str(e)) from e
        except httpx.HTTPError as e:
            logger.error("Supabase unreachable for %s", table, exc_info=e)
            raise DataServiceError(f"Data service unreachable: {e}") from e
