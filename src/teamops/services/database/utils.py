"""Generic database utility functions for Supabase interactions."""

import logging
from collections.abc import Sequence
from datetime import datetime
from typing import Any

from supabase import Client

from src.teamops.services.database.connection import get_supabase_admin_client

logger = logging.getLogger(__name__)


def serialize_value(value: Any) -> Any:
    """Convert Python values into the representation PostgREST expects."""
    if isinstance(value, datetime):
        return value.isoformat()
    return value


def quote_filter_value(value: Any) -> str:
    """
    Quote a value for use inside a PostgREST ``or``/``and`` filter expression.

    Subject identifiers contain ``|`` and timestamps contain ``:`` and ``.``,
    all of which are reserved inside logical filter groups.
    """
    text = str(serialize_value(value)).replace("\\", "\\\\").replace('"', '\\"')
    return f'"{text}"'


def _as_columns(order_by: str | Sequence[str] | None) -> list[str]:
    if order_by is None:
        return []
    if isinstance(order_by, str):
        return [order_by]
    return list(order_by)


class SupabaseQueryBuilder:
    """Helper class for building and executing Supabase queries."""

    def __init__(self, client: Client | None = None) -> None:
        """
        Initialize query builder.

        Args:
            client: Supabase client instance (uses the service-role client if None)
        """
        self.client = client or get_supabase_admin_client()

    def get_by_field(
        self, table: str, field: str, value: Any, columns: str = "*"
    ) -> dict[str, Any] | None:
        """
        Fetch a single record by field value.

        Example:
            >>> builder = SupabaseQueryBuilder()
            >>> user = builder.get_by_field("users", "user_sub", "auth0|123")
        """
        response = (
            self.client.table(table).select(columns).eq(field, serialize_value(value)).execute()
        )
        return response.data[0] if response.data else None

    def find_one(
        self, table: str, filters: dict[str, Any], columns: str = "*"
    ) -> dict[str, Any] | None:
        """
        Fetch the first record matching every filter.

        Used for ownership checks, e.g. ``{"id": checklist_id, "user_sub": sub}``.
        """
        query = self.client.table(table).select(columns)
        for field, value in filters.items():
            query = query.eq(field, serialize_value(value))

        response = query.limit(1).execute()
        return response.data[0] if response.data else None

    def list_records(
        self,
        table: str,
        columns: str = "*",
        filters: dict[str, Any] | None = None,
        order_by: str | Sequence[str] | None = None,
        order_desc: bool = True,
        limit: int | None = None,
        offset: int = 0,
    ) -> list[dict[str, Any]]:
        """
        List records with optional filtering, ordering, and pagination.

        Args:
            table: Table name
            columns: Columns to select (default: "*")
            filters: Dictionary of field:value pairs for filtering
            order_by: Column (or columns, applied in order) to sort by
            order_desc: Order descending (default: True)
            limit: Maximum records to return
            offset: Number of records to skip

        Returns:
            List of record dictionaries

        Example:
            >>> builder = SupabaseQueryBuilder()
            >>> checklists = builder.list_records(
            ...     "checklists", filters={"user_sub": sub}, order_by="created_at"
            ... )
        """
        query = self.client.table(table).select(columns)

        if filters:
            for field, value in filters.items():
                query = query.eq(field, serialize_value(value))

        for column in _as_columns(order_by):
            query = query.order(column, desc=order_desc)

        if limit is not None:
            query = query.range(offset, offset + limit - 1)

        response = query.execute()
        return response.data

    def list_in(
        self,
        table: str,
        field: str,
        values: Sequence[Any],
        columns: str = "*",
        order_by: str | Sequence[str] | None = None,
        order_desc: bool = True,
    ) -> list[dict[str, Any]]:
        """
        List records whose ``field`` is one of ``values``.

        Returns an empty list without a round trip when ``values`` is empty.
        """
        if not values:
            return []

        query = (
            self.client.table(table)
            .select(columns)
            .in_(field, [serialize_value(v) for v in values])
        )
        for column in _as_columns(order_by):
            query = query.order(column, desc=order_desc)

        response = query.execute()
        return response.data

    def list_since(
        self,
        table: str,
        field: str,
        since: datetime,
        columns: str = "*",
        limit: int | None = None,
    ) -> list[dict[str, Any]]:
        """
        List records with ``field >= since``, newest first.

        Example:
            >>> builder.list_since("presence", "last_seen", cutoff, limit=50)
        """
        query = (
            self.client.table(table)
            .select(columns)
            .gte(field, serialize_value(since))
            .order(field, desc=True)
        )
        if limit is not None:
            query = query.limit(limit)

        response = query.execute()
        return response.data

    def list_before(
        self,
        table: str,
        sort_field: str,
        tiebreak_field: str,
        before: tuple[Any, Any] | None,
        limit: int,
        columns: str = "*",
    ) -> list[dict[str, Any]]:
        """
        Keyset page ordered by ``(sort_field desc, tiebreak_field desc)``.

        When ``before`` is given only rows strictly before that pair are
        returned: ``sort < s OR (sort = s AND tiebreak < t)``.

        Args:
            table: Table name
            sort_field: Primary ordering column (typically a timestamp)
            tiebreak_field: Unique column that breaks ties (typically the id)
            before: Optional ``(sort_value, tiebreak_value)`` cursor
            limit: Maximum rows to return
            columns: Columns to select

        Returns:
            List of record dictionaries, newest first
        """
        query = self.client.table(table).select(columns)

        if before is not None:
            sort_value, tiebreak_value = before
            s = quote_filter_value(sort_value)
            t = quote_filter_value(tiebreak_value)
            query = query.or_(
                f"{sort_field}.lt.{s},and({sort_field}.eq.{s},{tiebreak_field}.lt.{t})"
            )

        response = (
            query.order(sort_field, desc=True)
            .order(tiebreak_field, desc=True)
            .limit(limit)
            .execute()
        )
        return response.data

    def list_matching_any(
        self,
        table: str,
        alternatives: Sequence[dict[str, Any]],
        columns: str = "*",
        order_by: str | Sequence[str] | None = None,
        order_desc: bool = True,
        limit: int | None = None,
    ) -> list[dict[str, Any]]:
        """
        List records matching at least one group of equality filters.

        Example:
            >>> builder.list_matching_any(
            ...     "messages",
            ...     [
            ...         {"sender_sub": a, "receiver_sub": b},
            ...         {"sender_sub": b, "receiver_sub": a},
            ...     ],
            ...     order_by="created_at",
            ...     order_desc=False,
            ... )
        """
        groups = []
        for alternative in alternatives:
            conditions = ",".join(
                f"{field}.eq.{quote_filter_value(value)}" for field, value in alternative.items()
            )
            groups.append(f"and({conditions})")

        query = self.client.table(table).select(columns).or_(",".join(groups))

        for column in _as_columns(order_by):
            query = query.order(column, desc=order_desc)
        if limit is not None:
            query = query.limit(limit)

        response = query.execute()
        return response.data

    def insert_record(self, table: str, data: dict[str, Any]) -> dict[str, Any] | None:
        """
        Insert a single record.

        Returns:
            Inserted record dictionary or None if failed

        Raises:
            Exception: If insert operation fails
        """
        payload = {key: serialize_value(value) for key, value in data.items()}
        response = self.client.table(table).insert(payload).execute()
        return response.data[0] if response.data else None

    def insert_records(self, table: str, records: list[dict[str, Any]]) -> list[dict[str, Any]]:
        """Insert several records in one request."""
        if not records:
            return []
        payload = [{k: serialize_value(v) for k, v in record.items()} for record in records]
        response = self.client.table(table).insert(payload).execute()
        return response.data

    def upsert_record(
        self, table: str, record: dict[str, Any], conflict_columns: list[str]
    ) -> dict[str, Any]:
        """
        Insert or update a record atomically using PostgreSQL UPSERT.

        The incoming record replaces the stored one on conflict. Upserts with
        field-level precedence rules go through :meth:`call_function` instead.

        Args:
            table: Name of the table
            record: Record data to insert/update
            conflict_columns: Column(s) to check for conflicts (e.g., ["user_sub"])

        Returns:
            The inserted or updated record

        Raises:
            Exception: If the operation fails
        """
        payload = {key: serialize_value(value) for key, value in record.items()}
        try:
            result = (
                self.client.table(table)
                .upsert(payload, on_conflict=",".join(conflict_columns))
                .execute()
            )
            return result.data[0]
        except Exception as e:
            logger.error(
                f"Failed to upsert record in {table}: {e}",
                extra={"error_type": "db_upsert_failed", "table": table},
            )
            raise

    def update_by_filter(
        self, table: str, filters: dict[str, Any], data: dict[str, Any]
    ) -> list[dict[str, Any]]:
        """
        Update records matching filters.

        Returns:
            List of updated record dictionaries
        """
        payload = {key: serialize_value(value) for key, value in data.items()}
        query = self.client.table(table).update(payload)

        for field, value in filters.items():
            query = query.eq(field, serialize_value(value))

        response = query.execute()
        return response.data

    def delete_by_filter(self, table: str, filters: dict[str, Any]) -> int:
        """
        Delete records matching filters.

        Returns:
            Number of deleted records
        """
        query = self.client.table(table).delete()

        for field, value in filters.items():
            query = query.eq(field, serialize_value(value))

        response = query.execute()
        return len(response.data)

    def exists(self, table: str, filters: dict[str, Any]) -> bool:
        """
        Check if record(s) exist matching filters.

        Example:
            >>> builder.exists("checklists", {"user_sub": sub})
        """
        query = self.client.table(table).select("id")

        for field, value in filters.items():
            query = query.eq(field, serialize_value(value))

        response = query.limit(1).execute()
        return len(response.data) > 0

    def call_function(self, name: str, params: dict[str, Any]) -> list[dict[str, Any]]:
        """
        Call a PostgreSQL function through PostgREST RPC.

        Used where a single statement must apply conditional logic atomically
        (profile upsert precedence, step toggling).

        Args:
            name: Function name in the public schema
            params: Named function arguments

        Returns:
            Rows returned by the function

        Raises:
            Exception: If the call fails
        """
        payload = {key: serialize_value(value) for key, value in params.items()}
        try:
            result = self.client.rpc(name, payload).execute()
        except Exception as e:
            logger.error(
                f"RPC {name} failed: {e}",
                extra={"error_type": "db_rpc_failed", "function": name},
            )
            raise

        data = result.data
        if data is None:
            return []
        if isinstance(data, dict):
            return [data]
        return data


def get_query_builder(client: Client | None = None) -> SupabaseQueryBuilder:
    """
    Get instance of SupabaseQueryBuilder.

    Args:
        client: Optional Supabase client (uses the service-role client if None)

    Returns:
        SupabaseQueryBuilder instance
    """
    return SupabaseQueryBuilder(client or get_supabase_admin_client())


def get_db() -> SupabaseQueryBuilder:
    """FastAPI dependency returning the admin query builder."""
    return get_query_builder()
