"""
Record Stores

The analytics engine reads token records through a RecordStore. A store
translates QueryFilters into its own query form and returns materialized
TokenRecords; it never sees grouping or threshold logic.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Iterable, List, Tuple

from psycopg import sql

from migration_analytics.core.config import TOKEN_TABLE
from migration_analytics.core.db import execute, fetch_dicts
from migration_analytics.engines.grouping.filters import QueryFilters, filter_records
from migration_analytics.ingestion.models import TokenRecord

logger = logging.getLogger("ingestion.store")

COLUMNS = (
    "mint", "mint_time", "mint_slot", "max_sol", "max_price",
    "mint_slot_sol", "first_slot_sol", "mint_buy_amt",
    "post_mint_bundle_size", "post_mint_bundle_buy_sol",
    "mint_pattern", "unit_price", "unit_limit",
    "migrated", "migrate_time", "extended", "lookup_table",
    "jito", "blox_route", "photon", "axiom",
)

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS {table} (
    mint TEXT PRIMARY KEY,
    mint_time BIGINT NOT NULL,
    mint_slot BIGINT NOT NULL DEFAULT 0,
    max_sol DOUBLE PRECISION NOT NULL DEFAULT 0,
    max_price DOUBLE PRECISION NOT NULL DEFAULT 0,
    mint_slot_sol DOUBLE PRECISION NOT NULL DEFAULT 0,
    first_slot_sol DOUBLE PRECISION NOT NULL DEFAULT 0,
    mint_buy_amt DOUBLE PRECISION NOT NULL DEFAULT 0,
    post_mint_bundle_size INTEGER NOT NULL DEFAULT 0,
    post_mint_bundle_buy_sol DOUBLE PRECISION NOT NULL DEFAULT 0,
    mint_pattern TEXT NOT NULL DEFAULT '',
    unit_price DOUBLE PRECISION NOT NULL DEFAULT 0,
    unit_limit DOUBLE PRECISION NOT NULL DEFAULT 0,
    migrated BOOLEAN NOT NULL DEFAULT FALSE,
    migrate_time BIGINT NOT NULL DEFAULT 0,
    extended BOOLEAN NOT NULL DEFAULT FALSE,
    lookup_table BOOLEAN NOT NULL DEFAULT FALSE,
    jito DOUBLE PRECISION NOT NULL DEFAULT 0,
    blox_route DOUBLE PRECISION NOT NULL DEFAULT 0,
    photon DOUBLE PRECISION NOT NULL DEFAULT 0,
    axiom DOUBLE PRECISION NOT NULL DEFAULT 0,
    created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
);
CREATE INDEX IF NOT EXISTS {idx_time} ON {table} (mint_time DESC);
CREATE INDEX IF NOT EXISTS {idx_max_sol} ON {table} (max_sol DESC);
CREATE INDEX IF NOT EXISTS {idx_pattern} ON {table} (mint_pattern);
"""


class RecordStore(ABC):
    """
    Abstract source of token records.
    """

    @abstractmethod
    async def fetch_records(self, filters: QueryFilters) -> List[TokenRecord]:
        """Return every record satisfying all supplied filter predicates."""
        pass


class InMemoryRecordStore(RecordStore):
    """Holds records in a list. Used for offline analysis and tests."""

    def __init__(self, records: Iterable[TokenRecord] = ()):
        self._records = list(records)

    def add(self, record: TokenRecord):
        self._records.append(record)

    async def fetch_records(self, filters: QueryFilters) -> List[TokenRecord]:
        return filter_records(self._records, filters)


def build_where(filters: QueryFilters) -> Tuple[sql.Composable, List[Any]]:
    """Translate filters into a parameterised WHERE clause (equality, inclusive bounds)."""
    where_clauses = []
    params: List[Any] = []

    bounds = (
        ("max_sol", ">=", filters.min_max_sol),
        ("mint_time", ">=", filters.start_time),
        ("mint_time", "<=", filters.end_time),
        ("mint_pattern", "=", filters.mint_pattern),
        ("unit_price", "=", filters.unit_price),
        ("unit_limit", "=", filters.unit_limit),
        ("mint_buy_amt", "=", filters.mint_buy_amt),
    )
    for column, op, value in bounds:
        if value is None:
            continue
        where_clauses.append(
            sql.SQL("{} " + op + " %s").format(sql.Identifier(column))
        )
        params.append(value)

    if not where_clauses:
        return sql.SQL(""), params
    return sql.SQL("WHERE ") + sql.SQL(" AND ").join(where_clauses), params


class PostgresRecordStore(RecordStore):
    """Reads the token table through the shared async pool."""

    def __init__(self, table: str = TOKEN_TABLE):
        self.table = table

    def schema_statement(self) -> sql.Composed:
        return sql.SQL(SCHEMA_SQL).format(
            table=sql.Identifier(self.table),
            idx_time=sql.Identifier(f"idx_{self.table}_mint_time"),
            idx_max_sol=sql.Identifier(f"idx_{self.table}_max_sol"),
            idx_pattern=sql.Identifier(f"idx_{self.table}_mint_pattern"),
        )

    async def ensure_schema(self):
        await execute(self.schema_statement())
        logger.info(f"Schema ensured for table {self.table}")

    async def fetch_records(self, filters: QueryFilters) -> List[TokenRecord]:
        where_sql, params = build_where(filters)
        query = sql.SQL("SELECT {cols} FROM {table} {where} ORDER BY mint_time ASC, mint ASC").format(
            cols=sql.SQL(", ").join(sql.Identifier(c) for c in COLUMNS),
            table=sql.Identifier(self.table),
            where=where_sql,
        )

        rows = await fetch_dicts(query, params)
        logger.info(f"Fetched {len(rows)} records from {self.table}")
        return [TokenRecord.from_row(row) for row in rows]
