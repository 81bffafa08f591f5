"""Pydantic schemas for the JSON envelope and its payloads."""

from typing import Any

from pydantic import BaseModel


class SuccessEnvelope(BaseModel):
    success: bool = True
    data: Any = None


class ErrorEnvelope(BaseModel):
    success: bool = False
    error: str


class CreatedData(BaseModel):
    id: int | str | None
    message: str = "Record created successfully"


class MessageData(BaseModel):
    message: str


class ForeignKeyOption(BaseModel):
    value: Any
    text: Any


class ForeignKeyRef(BaseModel):
    table: str
    value_field: str
    text_field: str


class GridColumn(BaseModel):
    data: str
    title: str


class ResourceMeta(BaseModel):
    name: str
    table: str
    primary_key: str
    columns: list[GridColumn]
    hidden_columns: list[str]
    form_fields: list[str]
    labels: dict[str, str]
    field_types: dict[str, str]
    foreign_keys: dict[str, ForeignKeyRef]
