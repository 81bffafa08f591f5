"""Generic CRUD over one configured table.

Every operation runs exactly one parameterized statement. Table and column
identifiers only ever come from the resource manifest; request bodies are
whitelisted against the descriptor's fields before any SQL is built.
"""

from __future__ import annotations

import logging

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from admin_console.errors import BackendFailure, ClientInputError, NotFoundError
from admin_console.resources.registry import ResourceDescriptor, ResourceRegistry

logger = logging.getLogger(__name__)


def _reason(exc: SQLAlchemyError) -> str:
    """The driver's own message when there is one."""
    orig = getattr(exc, "orig", None)
    return str(orig) if orig is not None else str(exc)


def _is_missing(value) -> bool:
    return value is None or value == ""


class ResourceHandler:
    def __init__(self, resource: ResourceDescriptor, registry: ResourceRegistry):
        self.resource = resource
        self.registry = registry

    @property
    def table(self) -> str:
        return self.resource.table

    @property
    def primary_key(self) -> str:
        return self.resource.primary_key

    # ─── Reads ─────────────────────────────────────────────────

    async def list(self, session: AsyncSession) -> list[dict]:
        sql = self.resource.list_query or f"SELECT * FROM {self.table}"
        try:
            result = await session.execute(text(sql))
        except SQLAlchemyError as exc:
            raise BackendFailure(f"Failed to retrieve data: {_reason(exc)}") from exc
        return [dict(row) for row in result.mappings().all()]

    async def get(self, session: AsyncSession, record_id) -> dict:
        if _is_missing(record_id):
            raise ClientInputError("Missing id")
        key = self.resource.key_field.coerce(record_id)
        try:
            result = await session.execute(
                text(f"SELECT * FROM {self.table} WHERE {self.primary_key} = :key"),
                {"key": key},
            )
            row = result.mappings().first()
        except SQLAlchemyError as exc:
            raise BackendFailure(f"Failed to retrieve record: {_reason(exc)}") from exc
        if row is None:
            raise NotFoundError("Record not found")
        return dict(row)

    async def foreign_key_options(
        self, session: AsyncSession, table: str | None, value_field: str | None, text_field: str | None
    ) -> list[dict]:
        if _is_missing(table) or _is_missing(value_field) or _is_missing(text_field):
            raise ClientInputError("Missing foreign key lookup parameters")
        if not (self.registry.has_column(table, value_field) and self.registry.has_column(table, text_field)):
            raise ClientInputError("Unknown foreign key target")
        try:
            result = await session.execute(text(
                f"SELECT {value_field} AS value, {text_field} AS text FROM {table} ORDER BY {text_field}"
            ))
        except SQLAlchemyError as exc:
            raise BackendFailure(f"Failed to retrieve foreign key options: {_reason(exc)}") from exc
        return [{"value": row["value"], "text": row["text"]} for row in result.mappings().all()]

    def metadata(self) -> dict:
        """Table metadata the console loads before its first list request."""
        return {
            "name": self.resource.name,
            "table": self.table,
            "primary_key": self.primary_key,
            "columns": self.resource.grid_columns(),
            "hidden_columns": list(self.resource.hidden_columns),
            "form_fields": self.resource.form_fields(),
            "labels": {name: f.label for name, f in self.resource.fields.items()},
            "field_types": {name: f.type for name, f in self.resource.fields.items()},
            "foreign_keys": {
                name: {"table": fk.table, "value_field": fk.value_field, "text_field": fk.text_field}
                for name, fk in self.resource.foreign_keys.items()
            },
        }

    # ─── Writes ────────────────────────────────────────────────

    async def create(self, session: AsyncSession, body) -> dict:
        if not isinstance(body, dict) or not body:
            raise ClientInputError("Invalid JSON data")
        values = self.resource.coerce_body(body)

        columns = list(values)
        params = {f"v_{c}": values[c] for c in columns}
        sql = (
            f"INSERT INTO {self.table} ({', '.join(columns)}) "
            f"VALUES ({', '.join(':v_' + c for c in columns)})"
        )
        try:
            result = await session.execute(text(sql), params)
            await session.commit()
        except SQLAlchemyError as exc:
            raise BackendFailure(f"Failed to create record: {_reason(exc)}") from exc

        new_id = values.get(self.primary_key)
        if new_id is None:
            new_id = result.lastrowid
        logger.info("Created %s %s", self.resource.name, new_id)
        return {"id": new_id, "message": "Record created successfully"}

    async def update(self, session: AsyncSession, body) -> dict:
        key = self._require_key(body)
        fields = {k: v for k, v in body.items() if k != self.primary_key}
        values = self.resource.coerce_body(fields)
        if not values:
            raise ClientInputError("No fields to update")

        set_clause = ", ".join(f"{c} = :v_{c}" for c in values)
        params = {f"v_{c}": v for c, v in values.items()}
        params["key"] = key
        try:
            await session.execute(
                text(f"UPDATE {self.table} SET {set_clause} WHERE {self.primary_key} = :key"),
                params,
            )
            await session.commit()
        except SQLAlchemyError as exc:
            raise BackendFailure(f"Failed to update record: {_reason(exc)}") from exc

        logger.info("Updated %s %s", self.resource.name, key)
        return {"message": "Record updated successfully"}

    async def delete(self, session: AsyncSession, body) -> dict:
        key = self._require_key(body)
        try:
            await session.execute(
                text(f"DELETE FROM {self.table} WHERE {self.primary_key} = :key"),
                {"key": key},
            )
            await session.commit()
        except SQLAlchemyError as exc:
            raise BackendFailure(f"Failed to delete record: {_reason(exc)}") from exc

        logger.info("Deleted %s %s", self.resource.name, key)
        return {"message": "Record deleted successfully"}

    def _require_key(self, body):
        if not isinstance(body, dict) or not body or _is_missing(body.get(self.primary_key)):
            raise ClientInputError("Invalid data or missing primary key")
        return self.resource.key_field.coerce(body[self.primary_key])
