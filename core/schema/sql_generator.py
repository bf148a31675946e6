# ============================================================================
# PYDANTIC TO SQL GENERATOR
# ============================================================================
# EPOCH: 1 - SENSOR CONTEXT
# STATUS: Core - DDL generation from Pydantic models
# PURPOSE: Generate PostgreSQL CREATE statements from Pydantic models
# LAST_REVIEWED: 19 OCT 2026
# EXPORTS: PydanticToSQL
# DEPENDENCIES: pydantic, psycopg
# ============================================================================
"""
Pydantic to PostgreSQL Schema Generator.

Pydantic models are the SINGLE SOURCE OF TRUTH for schema.

Model Metadata Convention:
    - __sql_table__: Table name
    - __sql_schema__: Schema name (overridden by the generator's schema_name)
    - __sql_primary_key__: Primary key column(s) - string or list
    - __sql_foreign_keys__: Dict of {column: "schema.table(column)"}
    - __sql_indexes__: List of index definitions, either
          (name, columns) / (name, columns, partial_where)
      or
          {"name", "columns", "type": "btree"|"gin"|"unique",
           "partial_where", "descending"}

Nested models, lists and dicts become JSONB columns, so each row is the
entity's document keyed by its id.

Usage:
    generator = PydanticToSQL(schema_name="sensorctx")
    for stmt in generator.generate_all():
        cursor.execute(stmt)
"""

import logging
import re
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Type, Union, get_args, get_origin

from annotated_types import MaxLen
from psycopg import sql
from pydantic import BaseModel
from pydantic.fields import FieldInfo

from core.schema.ddl_utils import IndexBuilder, TriggerBuilder, SchemaUtils

logger = logging.getLogger(__name__)


def _enum_type_name(enum_class: Type[Enum]) -> str:
    return re.sub(r"(?<!^)(?=[A-Z])", "_", enum_class.__name__).lower()


class PydanticToSQL:
    """
    Convert Pydantic models to PostgreSQL DDL statements.
    """

    TYPE_MAP = {
        str: "VARCHAR",
        int: "INTEGER",
        float: "DOUBLE PRECISION",
        bool: "BOOLEAN",
        datetime: "TIMESTAMPTZ",
    }

    def __init__(self, schema_name: str = "sensorctx", destructive: bool = False):
        """
        Args:
            schema_name: PostgreSQL schema every table is created in
            destructive: If True, DROP+CREATE enum types (data loss risk)
        """
        self.schema_name = schema_name
        self.destructive = destructive
        self.enums: Dict[str, Type[Enum]] = {}

    # =========================================================================
    # METADATA EXTRACTION
    # =========================================================================

    @staticmethod
    def get_model_metadata(model: Type[BaseModel]) -> Dict[str, Any]:
        """
        Extract SQL DDL metadata from a Pydantic model.

        Python mangles __sql_* to _ClassName__sql_*, so both are tried.
        """
        def get_attr(name: str, default=None):
            mangled = f"_{model.__name__}__{name}"
            return getattr(model, mangled, getattr(model, f"__{name}", default))

        metadata = {
            "table": get_attr("sql_table__"),
            "schema": get_attr("sql_schema__", "sensorctx"),
            "primary_key": get_attr("sql_primary_key__", []),
            "foreign_keys": get_attr("sql_foreign_keys__", {}),
            "indexes": get_attr("sql_indexes__", []),
        }

        if isinstance(metadata["primary_key"], str):
            metadata["primary_key"] = [metadata["primary_key"]]

        return metadata

    # =========================================================================
    # TYPE CONVERSION
    # =========================================================================

    def python_type_to_sql(self, field_type: Any, field_info: FieldInfo) -> str:
        """Convert a field annotation to a PostgreSQL type name."""
        actual_type = field_type
        origin = get_origin(field_type)

        # Unwrap Optional[X]
        if origin is Union:
            args = [arg for arg in get_args(field_type) if arg is not type(None)]
            actual_type = args[0] if len(args) == 1 else Any
            origin = get_origin(actual_type)

        if origin in (dict, list, Dict, List):
            return "JSONB"

        if actual_type is str:
            for constraint in field_info.metadata or []:
                if isinstance(constraint, MaxLen):
                    return f"VARCHAR({constraint.max_length})"
            return "VARCHAR"

        if isinstance(actual_type, type) and issubclass(actual_type, Enum):
            enum_name = _enum_type_name(actual_type)
            self.enums[enum_name] = actual_type
            return enum_name

        # Nested models and anything unmapped are stored as documents
        return self.TYPE_MAP.get(actual_type, "JSONB")

    @staticmethod
    def _is_optional(field_type: Any) -> bool:
        return get_origin(field_type) is Union and type(None) in get_args(field_type)

    # =========================================================================
    # ENUM GENERATION
    # =========================================================================

    def generate_enum(self, enum_class: Type[Enum]) -> List[sql.Composable]:
        """
        Generate PostgreSQL ENUM type DDL.

        destructive=True drops and recreates (destroys dependent columns);
        otherwise a DO block creates the type only when missing.
        """
        enum_name = _enum_type_name(enum_class)
        values = [member.value for member in enum_class]

        if self.destructive:
            return [
                sql.SQL("DROP TYPE IF EXISTS {}.{} CASCADE").format(
                    sql.Identifier(self.schema_name), sql.Identifier(enum_name)
                ),
                sql.SQL("CREATE TYPE {}.{} AS ENUM ({})").format(
                    sql.Identifier(self.schema_name),
                    sql.Identifier(enum_name),
                    sql.SQL(", ").join(sql.Literal(v) for v in values),
                ),
            ]

        values_str = ", ".join(f"'{v}'" for v in values)
        do_block = f"""
DO $$
BEGIN
    IF NOT EXISTS (SELECT 1 FROM pg_type WHERE typname = '{enum_name}' AND typnamespace = (SELECT oid FROM pg_namespace WHERE nspname = '{self.schema_name}')) THEN
        CREATE TYPE "{self.schema_name}"."{enum_name}" AS ENUM ({values_str});
    END IF;
END$$
"""
        return [sql.SQL(do_block)]

    # =========================================================================
    # TABLE GENERATION
    # =========================================================================

    def _column_default(self, field_name: str, field_info: FieldInfo, sql_type: str) -> sql.Composable:
        default = field_info.default
        if isinstance(default, Enum):
            return sql.SQL(" DEFAULT {}::{}.{}").format(
                sql.Literal(default.value),
                sql.Identifier(self.schema_name),
                sql.Identifier(sql_type),
            )
        if isinstance(default, bool):
            return sql.SQL(" DEFAULT true" if default else " DEFAULT false")
        if isinstance(default, (str, int, float)):
            return sql.SQL(" DEFAULT {}").format(sql.Literal(default))

        if field_info.default_factory is not None:
            if field_name in ("created_at", "updated_at"):
                return sql.SQL(" DEFAULT NOW()")
            if sql_type == "JSONB":
                produced = field_info.default_factory()
                return sql.SQL(" DEFAULT '[]'" if isinstance(produced, list) else " DEFAULT '{}'")
        return sql.SQL("")

    def generate_table(self, model: Type[BaseModel]) -> sql.Composed:
        """Generate CREATE TABLE DDL from a Pydantic model."""
        meta = self.get_model_metadata(model)
        table_name = meta["table"]
        primary_key = meta["primary_key"]

        if not table_name:
            raise ValueError(f"Model {model.__name__} missing __sql_table__ attribute")

        logger.debug(f"Generating table {self.schema_name}.{table_name} from {model.__name__}")

        columns = []
        for field_name, field_info in model.model_fields.items():
            sql_type = self.python_type_to_sql(field_info.annotation, field_info)

            if sql_type in self.enums:
                type_sql = sql.SQL("{}.{}").format(
                    sql.Identifier(self.schema_name), sql.Identifier(sql_type)
                )
            else:
                type_sql = sql.SQL(sql_type)

            not_null = sql.SQL("")
            if not self._is_optional(field_info.annotation) and field_name not in primary_key:
                not_null = sql.SQL(" NOT NULL")

            columns.append(sql.SQL("{} {}{}{}").format(
                sql.Identifier(field_name),
                type_sql,
                not_null,
                self._column_default(field_name, field_info, sql_type),
            ))

        constraints = []
        if primary_key:
            constraints.append(sql.SQL("PRIMARY KEY ({})").format(
                sql.SQL(", ").join(sql.Identifier(col) for col in primary_key)
            ))

        for fk_column, fk_reference in meta["foreign_keys"].items():
            match = re.match(r"(\w+)\.(\w+)\((\w+)\)", fk_reference)
            if match:
                _, ref_table, ref_column = match.groups()
                constraints.append(
                    sql.SQL("FOREIGN KEY ({}) REFERENCES {}.{} ({})").format(
                        sql.Identifier(fk_column),
                        sql.Identifier(self.schema_name),
                        sql.Identifier(ref_table),
                        sql.Identifier(ref_column),
                    )
                )

        return sql.SQL("CREATE TABLE IF NOT EXISTS {}.{} ({})").format(
            sql.Identifier(self.schema_name),
            sql.Identifier(table_name),
            sql.SQL(", ").join(columns + constraints),
        )

    # =========================================================================
    # INDEX GENERATION
    # =========================================================================

    def generate_indexes(self, model: Type[BaseModel]) -> List[sql.Composed]:
        """Generate CREATE INDEX statements from a model's __sql_indexes__."""
        meta = self.get_model_metadata(model)
        table_name = meta["table"]

        result = []
        for idx_def in meta["indexes"]:
            if isinstance(idx_def, tuple):
                name = idx_def[0]
                columns = idx_def[1] if len(idx_def) > 1 else []
                partial_where = idx_def[2] if len(idx_def) > 2 else None
                index_type = "btree"
                descending = False
            elif isinstance(idx_def, dict):
                name = idx_def.get("name")
                columns = idx_def.get("columns", [])
                partial_where = idx_def.get("partial_where")
                index_type = idx_def.get("type", "btree")
                descending = idx_def.get("descending", False)
            else:
                continue

            if not columns or not name:
                continue
            if isinstance(columns, str):
                columns = [columns]

            if index_type == "gin":
                result.append(IndexBuilder.gin(
                    self.schema_name, table_name, columns[0], name=name, partial_where=partial_where
                ))
            elif index_type == "unique":
                result.append(IndexBuilder.unique(
                    self.schema_name, table_name, columns, name=name, partial_where=partial_where
                ))
            else:
                result.append(IndexBuilder.btree(
                    self.schema_name, table_name, columns,
                    name=name, partial_where=partial_where, descending=descending,
                ))

        return result

    # =========================================================================
    # COMPLETE SCHEMA GENERATION
    # =========================================================================

    def generate_drop_schema(self) -> sql.Composed:
        """
        Generate DROP SCHEMA CASCADE statement.

        WARNING: This destroys ALL data in the schema!
        """
        return sql.SQL("DROP SCHEMA IF EXISTS {} CASCADE").format(
            sql.Identifier(self.schema_name)
        )

    def generate_all(self) -> List[sql.Composable]:
        """
        Generate complete DDL for every table model.

        Order: schema, enum types, tables, indexes, updated_at triggers.
        """
        from core.contracts import EntityStatus, VocabularyKind
        from core.models import TABLE_MODELS

        statements: List[sql.Composable] = []
        statements.extend(SchemaUtils.create_schema(self.schema_name))
        statements.append(SchemaUtils.set_search_path(self.schema_name))

        for enum_class in (EntityStatus, VocabularyKind):
            statements.extend(self.generate_enum(enum_class))

        for model in TABLE_MODELS:
            statements.append(self.generate_table(model))

        for model in TABLE_MODELS:
            statements.extend(self.generate_indexes(model))

        statements.append(TriggerBuilder.updated_at_function(self.schema_name))
        for model in TABLE_MODELS:
            if "updated_at" in model.model_fields:
                table = self.get_model_metadata(model)["table"]
                statements.extend(TriggerBuilder.updated_at_trigger(self.schema_name, table))

        logger.info(f"Generated {len(statements)} DDL statements for schema {self.schema_name}")
        return statements

    def execute(self, conn, dry_run: bool = False) -> int:
        """
        Execute all DDL statements on a synchronous psycopg connection.

        Returns:
            Number of statements executed (or that would be, on dry run)
        """
        statements = self.generate_all()

        if dry_run:
            for stmt in statements:
                logger.info(f"[DRY RUN] {stmt.as_string(conn)[:100]}...")
            return len(statements)

        with conn.cursor() as cur:
            for stmt in statements:
                cur.execute(stmt)

        logger.info(f"Executed {len(statements)} DDL statements")
        return len(statements)


__all__ = ["PydanticToSQL"]
