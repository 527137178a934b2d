"""
Table Store - generic tabular access to the remote backend

The order lifecycle engine only needs four primitives over remote tables:
select, update, insert and delete, each atomic at the single-statement
level. Two implementations are provided:

- SupabaseTableStore: PostgREST calls through the supabase-py client.
  Every call is its own request, so multi-step sequences are best-effort.
- PostgresTableStore: direct psycopg2 access. Outside a transaction each
  call commits on its own; inside transaction() all calls share one
  connection and commit or roll back together.

Author: Kuantum Ticaret
Date: 2025-11-02
"""
import logging
import threading
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Any, Callable, Dict, Iterator, List, Optional

import httpx
import psycopg2
from psycopg2 import sql
from postgrest.exceptions import APIError
from supabase import Client

logger = logging.getLogger(__name__)

Row = Dict[str, Any]
Filters = Dict[str, Any]


class StoreError(Exception):
    """A remote table operation was rejected or could not be completed"""

    def __init__(self, table: str, operation: str, message: str):
        self.table = table
        self.operation = operation
        self.message = message
        super().__init__(f"{operation} on '{table}' failed: {message}")


class StoreConfigurationError(Exception):
    """The selected table store is missing required settings"""


class TableStore(ABC):
    """
    Tabular remote-data contract

    Filters are column -> value equality maps; a None value matches NULL
    and a list or tuple value matches any of its members.
    """

    supports_transactions = False

    @abstractmethod
    def select(
        self,
        table: str,
        filters: Optional[Filters] = None,
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
        offset: int = 0,
        for_update: bool = False
    ) -> List[Row]:
        """Read rows matching filters"""

    @abstractmethod
    def update(self, table: str, filters: Filters, patch: Row) -> List[Row]:
        """Apply patch to matching rows and return them as updated"""

    @abstractmethod
    def insert(self, table: str, row: Row) -> Row:
        """Insert one row and return it as stored"""

    @abstractmethod
    def delete(self, table: str, filters: Filters) -> List[Row]:
        """Delete matching rows and return them"""

    @contextmanager
    def transaction(self) -> Iterator["TableStore"]:
        """Group calls into one unit of work (no-op unless supported)"""
        yield self


# ============================================================================
# Supabase (PostgREST) store
# ============================================================================

def to_json_row(row: Row) -> Row:
    """Make a row JSON-serializable for PostgREST"""
    converted = {}
    for column, value in row.items():
        if isinstance(value, Decimal):
            value = str(value)
        elif isinstance(value, (datetime, date)):
            value = value.isoformat()
        elif isinstance(value, Enum):
            value = value.value
        converted[column] = value
    return converted


class SupabaseTableStore(TableStore):
    """TableStore backed by the supabase-py client"""

    def __init__(self, client: Client):
        self.client = client

    def _execute(self, table: str, operation: str, build: Callable[[], Any]) -> List[Row]:
        try:
            response = build().execute()
        except APIError as e:
            raise StoreError(table, operation, e.message or str(e)) from e
        except httpx.HTTPError as e:
            raise StoreError(table, operation, str(e)) from e
        return response.data or []

    @staticmethod
    def _apply_filters(query, filters: Optional[Filters]):
        for column, value in (filters or {}).items():
            if value is None:
                query = query.is_(column, "null")
            elif isinstance(value, (list, tuple)):
                query = query.in_(column, list(value))
            else:
                query = query.eq(column, value)
        return query

    def select(self, table, filters=None, order_by=None, descending=False,
               limit=None, offset=0, for_update=False):
        def build():
            query = self._apply_filters(self.client.table(table).select("*"), filters)
            if order_by:
                query = query.order(order_by, desc=descending)
            if limit is not None:
                query = query.range(offset, offset + limit - 1)
            return query

        return self._execute(table, "select", build)

    def update(self, table, filters, patch):
        return self._execute(
            table, "update",
            lambda: self._apply_filters(self.client.table(table).update(to_json_row(patch)), filters)
        )

    def insert(self, table, row):
        rows = self._execute(table, "insert", lambda: self.client.table(table).insert(to_json_row(row)))
        if not rows:
            raise StoreError(table, "insert", "no row returned")
        return rows[0]

    def delete(self, table, filters):
        return self._execute(
            table, "delete",
            lambda: self._apply_filters(self.client.table(table).delete(), filters)
        )


# ============================================================================
# Direct Postgres store (transactional)
# ============================================================================

class PostgresTableStore(TableStore):
    """
    TableStore backed by psycopg2 with RealDictCursor

    The active transaction connection is thread-local, so one store
    instance can serve concurrent requests.
    """

    supports_transactions = True

    def __init__(self, connect: Callable[[], Any]):
        self._connect = connect
        self._local = threading.local()

    @staticmethod
    def _where(filters: Optional[Filters]):
        if not filters:
            return sql.SQL("TRUE"), []

        clauses = []
        params = []
        for column, value in filters.items():
            if value is None:
                clauses.append(sql.SQL("{} IS NULL").format(sql.Identifier(column)))
            elif isinstance(value, (list, tuple)):
                clauses.append(sql.SQL("{} = ANY(%s)").format(sql.Identifier(column)))
                params.append(list(value))
            else:
                clauses.append(sql.SQL("{} = %s").format(sql.Identifier(column)))
                params.append(value)
        return sql.SQL(" AND ").join(clauses), params

    def _open(self, table: str, operation: str):
        """Open a connection; connection failures surface as StoreError"""
        try:
            return self._connect()
        except (psycopg2.Error, StoreConfigurationError) as e:
            raise StoreError(table, operation, f"connection failed: {str(e).strip()}") from e

    def _run(self, table: str, operation: str, query, params) -> List[Row]:
        conn = getattr(self._local, "conn", None)
        in_transaction = conn is not None
        if not in_transaction:
            conn = self._open(table, operation)

        try:
            cursor = conn.cursor()
            try:
                cursor.execute(query, params)
                rows = [dict(row) for row in cursor.fetchall()] if cursor.description else []
            finally:
                cursor.close()
            if not in_transaction:
                conn.commit()
            return rows
        except psycopg2.Error as e:
            if not in_transaction:
                conn.rollback()
            raise StoreError(table, operation, str(e).strip()) from e
        finally:
            if not in_transaction:
                conn.close()

    def select(self, table, filters=None, order_by=None, descending=False,
               limit=None, offset=0, for_update=False):
        where, params = self._where(filters)
        query = sql.SQL("SELECT * FROM {} WHERE {}").format(sql.Identifier(table), where)
        if order_by:
            direction = sql.SQL("DESC" if descending else "ASC")
            query += sql.SQL(" ORDER BY {} {}").format(sql.Identifier(order_by), direction)
        if limit is not None:
            query += sql.SQL(" LIMIT %s OFFSET %s")
            params = params + [limit, offset]
        if for_update:
            query += sql.SQL(" FOR UPDATE")
        return self._run(table, "select", query, params)

    def update(self, table, filters, patch):
        if not patch:
            return self.select(table, filters)
        assignments = sql.SQL(", ").join(
            sql.SQL("{} = %s").format(sql.Identifier(column)) for column in patch
        )
        where, params = self._where(filters)
        query = sql.SQL("UPDATE {} SET {} WHERE {} RETURNING *").format(
            sql.Identifier(table), assignments, where
        )
        return self._run(table, "update", query, list(patch.values()) + params)

    def insert(self, table, row):
        columns = sql.SQL(", ").join(sql.Identifier(column) for column in row)
        placeholders = sql.SQL(", ").join(sql.Placeholder() for _ in row)
        query = sql.SQL("INSERT INTO {} ({}) VALUES ({}) RETURNING *").format(
            sql.Identifier(table), columns, placeholders
        )
        rows = self._run(table, "insert", query, list(row.values()))
        if not rows:
            raise StoreError(table, "insert", "no row returned")
        return rows[0]

    def delete(self, table, filters):
        where, params = self._where(filters)
        query = sql.SQL("DELETE FROM {} WHERE {} RETURNING *").format(sql.Identifier(table), where)
        return self._run(table, "delete", query, params)

    @contextmanager
    def transaction(self):
        if getattr(self._local, "conn", None) is not None:
            # Nested: join the outer unit of work
            yield self
            return

        conn = self._open("*", "begin")
        self._local.conn = conn
        try:
            yield self
            conn.commit()
            logger.debug("Transaction committed")
        except Exception:
            conn.rollback()
            logger.warning("Transaction rolled back")
            raise
        finally:
            self._local.conn = None
            conn.close()
