# ============================================================================
# DDL UTILITIES
# ============================================================================
# EPOCH: 1 - SENSOR CONTEXT
# STATUS: Core - DRY utilities for SQL DDL generation
# PURPOSE: Index, trigger and schema builders using psycopg.sql
# LAST_REVIEWED: 19 OCT 2026
# EXPORTS: IndexBuilder, TriggerBuilder, SchemaUtils
# DEPENDENCIES: psycopg
# ============================================================================
"""
DDL Utilities - Shared SQL Generation Patterns.

All methods return psycopg.sql.Composed objects for safe execution.
No string concatenation of identifiers.

Usage:
    from core.schema.ddl_utils import IndexBuilder

    # One live context per sensor
    idx = IndexBuilder.unique('sensorctx', 'contexts', ['sensor'],
                              partial_where='end_date IS NULL')
    cursor.execute(idx)
"""

from typing import List, Optional, Sequence, Union

from psycopg import sql


# ============================================================================
# INDEX BUILDER
# ============================================================================

class IndexBuilder:
    """
    Builder for PostgreSQL index DDL statements.

    All methods are static and return sql.Composed objects.
    """

    @staticmethod
    def _normalize_columns(columns: Union[str, Sequence[str]]) -> List[str]:
        if isinstance(columns, str):
            return [columns]
        return list(columns)

    @staticmethod
    def _generate_index_name(table: str, columns: List[str], prefix: str = "idx", suffix: str = "") -> str:
        name = f"{prefix}_{table}_{'_'.join(columns)}"
        return f"{name}_{suffix}" if suffix else name

    @staticmethod
    def _with_partial(stmt: sql.Composed, partial_where: Optional[str]) -> sql.Composed:
        if partial_where:
            return sql.SQL("{} WHERE {}").format(stmt, sql.SQL(partial_where))
        return stmt

    @staticmethod
    def btree(
        schema: str,
        table: str,
        columns: Union[str, Sequence[str]],
        name: Optional[str] = None,
        descending: bool = False,
        partial_where: Optional[str] = None,
    ) -> sql.Composed:
        """
        Create B-tree index.

        With descending=True every column is indexed DESC.
        """
        cols = IndexBuilder._normalize_columns(columns)
        idx_name = name or IndexBuilder._generate_index_name(
            table, cols, suffix="desc" if descending else ""
        )

        if descending:
            col_parts = [sql.SQL("{} DESC").format(sql.Identifier(c)) for c in cols]
        else:
            col_parts = [sql.Identifier(c) for c in cols]

        stmt = sql.SQL("CREATE INDEX IF NOT EXISTS {name} ON {schema}.{table} ({columns})").format(
            name=sql.Identifier(idx_name),
            schema=sql.Identifier(schema),
            table=sql.Identifier(table),
            columns=sql.SQL(", ").join(col_parts),
        )
        return IndexBuilder._with_partial(stmt, partial_where)

    @staticmethod
    def gin(
        schema: str,
        table: str,
        column: str,
        name: Optional[str] = None,
        partial_where: Optional[str] = None,
    ) -> sql.Composed:
        """
        Create GIN index over a JSONB column.

        Serves containment queries such as hosted_by_path @> '["platform-1"]'.
        """
        idx_name = name or IndexBuilder._generate_index_name(table, [column], suffix="gin")

        stmt = sql.SQL(
            "CREATE INDEX IF NOT EXISTS {name} ON {schema}.{table} USING GIN ({column})"
        ).format(
            name=sql.Identifier(idx_name),
            schema=sql.Identifier(schema),
            table=sql.Identifier(table),
            column=sql.Identifier(column),
        )
        return IndexBuilder._with_partial(stmt, partial_where)

    @staticmethod
    def unique(
        schema: str,
        table: str,
        columns: Union[str, Sequence[str]],
        name: Optional[str] = None,
        partial_where: Optional[str] = None,
    ) -> sql.Composed:
        """
        Create unique index, optionally partial.

        A partial unique index enforces uniqueness only over matching rows,
        e.g. one row per sensor WHERE end_date IS NULL.
        """
        cols = IndexBuilder._normalize_columns(columns)
        idx_name = name or IndexBuilder._generate_index_name(table, cols, prefix="idx_unique")

        stmt = sql.SQL(
            "CREATE UNIQUE INDEX IF NOT EXISTS {name} ON {schema}.{table} ({columns})"
        ).format(
            name=sql.Identifier(idx_name),
            schema=sql.Identifier(schema),
            table=sql.Identifier(table),
            columns=sql.SQL(", ").join(sql.Identifier(c) for c in cols),
        )
        return IndexBuilder._with_partial(stmt, partial_where)


# ============================================================================
# TRIGGER BUILDER
# ============================================================================

class TriggerBuilder:
    """
    Builder for the updated_at maintenance trigger.
    """

    @staticmethod
    def updated_at_function(schema: str) -> sql.Composed:
        """Create the update_updated_at_column() trigger function."""
        return sql.SQL("""
            CREATE OR REPLACE FUNCTION {schema}.update_updated_at_column()
            RETURNS TRIGGER
            LANGUAGE plpgsql
            AS $$
            BEGIN
                NEW.updated_at = NOW();
                RETURN NEW;
            END;
            $$
        """).format(schema=sql.Identifier(schema))

    @staticmethod
    def updated_at_trigger(schema: str, table: str, trigger_name: Optional[str] = None) -> List[sql.Composed]:
        """
        Create trigger that calls update_updated_at_column() on UPDATE.

        Returns DROP + CREATE for idempotency.
        """
        trig_name = trigger_name or f"trg_{table}_updated_at"

        drop_stmt = sql.SQL("DROP TRIGGER IF EXISTS {name} ON {schema}.{table}").format(
            name=sql.Identifier(trig_name),
            schema=sql.Identifier(schema),
            table=sql.Identifier(table),
        )

        create_stmt = sql.SQL("""
            CREATE TRIGGER {name}
            BEFORE UPDATE ON {schema}.{table}
            FOR EACH ROW
            EXECUTE FUNCTION {schema}.update_updated_at_column()
        """).format(
            name=sql.Identifier(trig_name),
            schema=sql.Identifier(schema),
            table=sql.Identifier(table),
        )

        return [drop_stmt, create_stmt]


# ============================================================================
# SCHEMA UTILITIES
# ============================================================================

class SchemaUtils:
    """
    Schema-level DDL.
    """

    @staticmethod
    def create_schema(schema: str, comment: Optional[str] = None) -> List[sql.Composed]:
        stmts = [sql.SQL("CREATE SCHEMA IF NOT EXISTS {}").format(sql.Identifier(schema))]
        if comment:
            stmts.append(sql.SQL("COMMENT ON SCHEMA {} IS {}").format(
                sql.Identifier(schema), sql.Literal(comment)
            ))
        return stmts

    @staticmethod
    def set_search_path(schema: str, include_public: bool = True) -> sql.Composed:
        if include_public:
            return sql.SQL("SET search_path TO {}, public").format(sql.Identifier(schema))
        return sql.SQL("SET search_path TO {}").format(sql.Identifier(schema))


__all__ = [
    "IndexBuilder",
    "TriggerBuilder",
    "SchemaUtils",
]
