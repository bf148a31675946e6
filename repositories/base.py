# ============================================================================
# BASE REPOSITORY - ERROR HANDLING AND SQL HELPERS
# ============================================================================
# EPOCH: 1 - SENSOR CONTEXT
# STATUS: Core - Base repository patterns
# PURPOSE: Common error wrapping, row/document conversion and generic
#          INSERT/UPDATE composition for every table repository
# CREATED: 19 OCT 2026
# ============================================================================
"""
Base Repository Patterns

Every repository method runs inside `_error_context`, which

- re-raises OperationalError untouched (already typed),
- turns a UniqueViolation into the Conflict subclass the caller names,
- logs anything else with full detail and raises StoreFailure, whose
  public message never carries the driver's error text.

Rows are documents: list, dict and nested-model fields are JSONB columns.
"""

import logging
from abc import ABC
from contextlib import contextmanager
from datetime import datetime, timezone
from enum import Enum
from typing import Any, ClassVar, Dict, Iterable, List, Mapping, Optional, Tuple, Type

from psycopg import errors as pg_errors
from psycopg import sql
from psycopg.rows import dict_row
from psycopg.types.json import Json
from psycopg_pool import AsyncConnectionPool
from pydantic import BaseModel

from core.errors import Conflict, OperationalError, StoreFailure

logger = logging.getLogger(__name__)

ACTIVE = "active"
DELETED = "deleted"


def to_document(value: Any) -> Any:
    """Convert models (and containers of models) to JSON-ready values."""
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json", by_alias=True, exclude_none=True)
    if isinstance(value, (list, tuple)):
        return [to_document(item) for item in value]
    if isinstance(value, dict):
        return {key: to_document(item) for key, item in value.items()}
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, datetime):
        return value.isoformat()
    return value


class BaseRepository(ABC):
    """
    Abstract base repository.

    Subclasses set TABLE, MODEL and JSON_COLUMNS.
    """

    TABLE: ClassVar[sql.Identifier]
    MODEL: ClassVar[Type[BaseModel]]
    JSON_COLUMNS: ClassVar[Tuple[str, ...]] = ()

    def __init__(self, pool: AsyncConnectionPool):
        self.pool = pool
        self.logger = logging.getLogger(self.__class__.__name__)

    # ----------------------------------------------------------------
    # Error handling
    # ----------------------------------------------------------------

    def _store_failure(self, operation: str, entity_id: Optional[str], exc: Exception) -> StoreFailure:
        detail = f"{operation} failed"
        if entity_id:
            detail += f" for {entity_id}"
        detail += f": {type(exc).__name__}: {exc}"
        self.logger.error(detail)
        return StoreFailure(f"Failed to {operation}.", detail=detail)

    @contextmanager
    def _error_context(
        self,
        operation: str,
        entity_id: Optional[str] = None,
        conflict: Optional[Type[Conflict]] = None,
        conflict_message: Optional[str] = None,
    ):
        """
        Context manager for consistent error handling.

        Args:
            operation: Human-readable description, e.g. "create context"
            entity_id: Optional entity ID for context
            conflict: Conflict subclass raised on a unique violation

        Example:
            with self._error_context("create sensor", sensor.id, conflict=SensorAlreadyExists):
                await conn.execute(...)
        """
        try:
            yield
        except OperationalError:
            raise
        except pg_errors.UniqueViolation as e:
            if conflict is None:
                raise self._store_failure(operation, entity_id, e) from e
            self.logger.debug(f"{operation} rejected by unique constraint for {entity_id}")
            raise conflict(conflict_message) from e
        except Exception as e:
            raise self._store_failure(operation, entity_id, e) from e

    # ----------------------------------------------------------------
    # Conversion
    # ----------------------------------------------------------------

    def _adapt(self, column: str, value: Any) -> Any:
        """Adapt a Python value for a query parameter."""
        if value is None:
            return None
        if column in self.JSON_COLUMNS:
            return Json(to_document(value))
        if isinstance(value, Enum):
            return value.value
        return value

    def _row_to_model(self, row: Mapping[str, Any]) -> BaseModel:
        """Convert a database row to the repository's model."""
        return self.MODEL.model_validate(dict(row))

    def _model_params(self, model: BaseModel) -> Dict[str, Any]:
        return {
            name: self._adapt(name, getattr(model, name))
            for name in type(model).model_fields
        }

    # ----------------------------------------------------------------
    # Query helpers
    # ----------------------------------------------------------------

    async def _fetch_one(self, query: sql.Composable, params: Any = None) -> Optional[BaseModel]:
        async with self.pool.connection() as conn:
            conn.row_factory = dict_row
            result = await conn.execute(query, params)
            row = await result.fetchone()
            return self._row_to_model(row) if row else None

    async def _fetch_all(self, query: sql.Composable, params: Any = None) -> List[BaseModel]:
        async with self.pool.connection() as conn:
            conn.row_factory = dict_row
            result = await conn.execute(query, params)
            rows = await result.fetchall()
            return [self._row_to_model(row) for row in rows]

    async def _insert(self, model: BaseModel) -> BaseModel:
        """INSERT every model field; returns the stored row."""
        params = self._model_params(model)
        query = sql.SQL("INSERT INTO {} ({}) VALUES ({}) RETURNING *").format(
            self.TABLE,
            sql.SQL(", ").join(sql.Identifier(name) for name in params),
            sql.SQL(", ").join(sql.Placeholder(name) for name in params),
        )
        stored = await self._fetch_one(query, params)
        return stored

    def _set_clause(self, updates: Mapping[str, Any]) -> Tuple[sql.Composable, Dict[str, Any]]:
        """Build "col = %(set_col)s, ..." plus the matching parameters."""
        params = {f"set_{name}": self._adapt(name, value) for name, value in updates.items()}
        clause = sql.SQL(", ").join(
            sql.SQL("{} = {}").format(sql.Identifier(name), sql.Placeholder(f"set_{name}"))
            for name in updates
        )
        return clause, params

    async def _update_by_id(self, entity_id: str, updates: Mapping[str, Any]) -> Optional[BaseModel]:
        """UPDATE an active row by id; None when no active row matched."""
        if not updates:
            return await self._fetch_one(
                sql.SQL("SELECT * FROM {} WHERE id = %(id)s AND status = 'active'").format(self.TABLE),
                {"id": entity_id},
            )
        updates = dict(updates)
        if "updated_at" in self.MODEL.model_fields:
            updates["updated_at"] = datetime.now(timezone.utc)
        clause, params = self._set_clause(updates)
        params["id"] = entity_id
        query = sql.SQL(
            "UPDATE {} SET {} WHERE id = %(id)s AND status = 'active' RETURNING *"
        ).format(self.TABLE, clause)
        return await self._fetch_one(query, params)

    async def _soft_delete_by_id(self, entity_id: str) -> bool:
        async with self.pool.connection() as conn:
            result = await conn.execute(
                sql.SQL(
                    "UPDATE {} SET status = 'deleted', updated_at = NOW() "
                    "WHERE id = %s AND status = 'active'"
                ).format(self.TABLE),
                (entity_id,),
            )
            return result.rowcount > 0


def id_list(values: Iterable[str]) -> List[str]:
    """De-duplicated list preserving order, for ANY(%s) parameters."""
    return list(dict.fromkeys(values))


__all__ = ["BaseRepository", "to_document", "id_list", "ACTIVE", "DELETED"]
