"""Database helpers for the places table."""

import logging
from contextlib import contextmanager
from typing import Any, Dict, List, Optional

import psycopg2
from psycopg2 import extras, pool, sql

from place_sync.core.models import PlaceRecord
from place_sync.core.reconcile import (
    DERIVED_FIELDS,
    FIELD_PREDICATES,
    TRACKED_FIELDS,
    is_present_number,
    is_present_tags,
)

logger = logging.getLogger(__name__)


class StoreError(RuntimeError):
    """Raised when the places table cannot be read or updated."""


_SELECT_COLUMNS = """
    id,
    name,
    location,
    COALESCE(mood, '{}') AS mood,
    COALESCE(service, '{}') AS service,
    COALESCE(party_size, '{}') AS party_size,
    match_url,
    category,
    rating_score::float8 AS rating_score,
    map_url,
    external_id,
    image_url,
    attribution_text,
    price_cap::float8 AS price_cap,
    summary_text
"""


def _empty_clause(column: str) -> str:
    predicate = FIELD_PREDICATES[column]
    if predicate is is_present_tags:
        return f"COALESCE(cardinality({column}), 0) = 0"
    if predicate is is_present_number:
        return f"{column} IS NULL"
    return f"COALESCE(btrim({column}), '') = ''"


def build_pending_query(only_flagged: bool = False, include_complete: bool = False) -> str:
    conditions = ["COALESCE(btrim(name), '') <> ''"]
    if not include_complete:
        conditions.append("(" + " OR ".join(_empty_clause(column) for column in TRACKED_FIELDS) + ")")
    if only_flagged:
        conditions.append("sync_enabled IS TRUE")
    return (
        f"SELECT {_SELECT_COLUMNS.strip()} FROM places WHERE "
        + " AND ".join(conditions)
        + " ORDER BY id LIMIT %(limit)s"
    )


def _to_record(row: Dict[str, Any]) -> PlaceRecord:
    return PlaceRecord(
        id=row["id"],
        name=row.get("name") or "",
        location=row.get("location"),
        mood=list(row.get("mood") or []),
        service=list(row.get("service") or []),
        party_size=list(row.get("party_size") or []),
        match_url=row.get("match_url"),
        category=row.get("category"),
        rating_score=row.get("rating_score"),
        map_url=row.get("map_url"),
        external_id=row.get("external_id"),
        image_url=row.get("image_url"),
        attribution_text=row.get("attribution_text"),
        price_cap=row.get("price_cap"),
        summary_text=row.get("summary_text"),
    )


class PlaceStore:
    """Query-by-filter and partial-update access to the places table."""

    def __init__(self, database_url: str, minconn: int = 1, maxconn: int = 2) -> None:
        if not database_url:
            raise RuntimeError("DATABASE_URL is required for database connections")
        self.database_url = database_url
        self.minconn = minconn
        self.maxconn = maxconn
        self._pool: Optional[pool.SimpleConnectionPool] = None

    def init_pool(self) -> pool.SimpleConnectionPool:
        """Initialise and return the connection pool."""
        if self._pool is None:
            self._pool = pool.SimpleConnectionPool(
                self.minconn,
                self.maxconn,
                dsn=self.database_url,
                connect_timeout=10,
            )
            logger.info("Database connection pool initialised")
        return self._pool

    @contextmanager
    def get_connection(self):
        """Context manager yielding a pooled connection."""
        pg_pool = self.init_pool()
        conn = pg_pool.getconn()
        try:
            yield conn
        finally:
            pg_pool.putconn(conn)

    def query_pending(
        self,
        limit: int = 50,
        only_flagged: bool = False,
        include_complete: bool = False,
    ) -> List[PlaceRecord]:
        """Named places with at least one tracked field empty, oldest id first."""
        query = build_pending_query(only_flagged=only_flagged, include_complete=include_complete)
        try:
            with self.get_connection() as conn:
                with conn.cursor(cursor_factory=extras.RealDictCursor) as cur:
                    cur.execute(query, {"limit": limit})
                    rows = cur.fetchall()
        except psycopg2.Error as exc:
            raise StoreError(f"Failed to query pending places: {exc}") from exc
        logger.debug("Fetched %d pending places", len(rows))
        return [_to_record(row) for row in rows]

    def update_partial(self, record_id: Any, fields: Dict[str, Any]) -> None:
        """Write only the given derived fields of one place."""
        if not fields:
            return
        unknown = set(fields) - set(DERIVED_FIELDS)
        if unknown:
            raise StoreError(f"Refusing to update unknown columns: {', '.join(sorted(unknown))}")

        assignments = sql.SQL(", ").join(
            sql.SQL("{} = {}").format(sql.Identifier(name), sql.Placeholder(name)) for name in fields
        )
        statement = sql.SQL("UPDATE places SET {}, updated_at = NOW() WHERE id = {}").format(
            assignments, sql.Placeholder("row_id")
        )
        params = dict(fields)
        params["row_id"] = record_id
        try:
            with self.get_connection() as conn:
                with conn.cursor() as cur:
                    cur.execute(statement, params)
                conn.commit()
        except psycopg2.Error as exc:
            raise StoreError(f"Failed to update place {record_id}: {exc}") from exc
        logger.debug("Updated place %s fields=%s", record_id, sorted(fields))

    def close(self) -> None:
        if self._pool is not None:
            self._pool.closeall()
            self._pool = None
