"""JSON endpoints: one URL per resource, verbs mapped onto the generic handler."""

import json

from fastapi import APIRouter, Depends, Query, Request
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse, Response
from sqlalchemy.ext.asyncio import AsyncSession

from admin_console.database import get_session
from admin_console.errors import ClientInputError, NotFoundError
from admin_console.resources.handler import ResourceHandler
from admin_console.resources.registry import get_registry
from admin_console.schemas import CreatedData, ForeignKeyOption, MessageData, ResourceMeta, SuccessEnvelope

router = APIRouter(prefix="/api", tags=["resources"])


def get_handler(resource: str) -> ResourceHandler:
    """Dependency: resolve the URL segment to a handler for that resource."""
    registry = get_registry()
    descriptor = registry.get(resource)
    if descriptor is None:
        raise NotFoundError("Unknown resource")
    return ResourceHandler(descriptor, registry)


def _success(data) -> JSONResponse:
    return JSONResponse(jsonable_encoder(SuccessEnvelope(data=data)))


async def _read_json(request: Request):
    """Parsed request body, or None when it is absent or not JSON."""
    raw = await request.body()
    if not raw.strip():
        return None
    try:
        return json.loads(raw)
    except ValueError:
        return None


@router.get("/{resource}")
async def read_resource(
    action: str = Query(default="list"),
    id: str | None = Query(default=None),
    table: str | None = Query(default=None),
    value_field: str | None = Query(default=None),
    text_field: str | None = Query(default=None),
    handler: ResourceHandler = Depends(get_handler),
    session: AsyncSession = Depends(get_session),
):
    if action == "list":
        return _success(await handler.list(session))
    if action == "get":
        return _success(await handler.get(session, id))
    if action == "foreign_key_options":
        options = await handler.foreign_key_options(session, table, value_field, text_field)
        return _success([ForeignKeyOption(**o) for o in options])
    if action == "meta":
        return _success(ResourceMeta(**handler.metadata()))
    raise ClientInputError("Invalid action")


@router.post("/{resource}")
async def create_record(
    request: Request,
    handler: ResourceHandler = Depends(get_handler),
    session: AsyncSession = Depends(get_session),
):
    return _success(CreatedData(**await handler.create(session, await _read_json(request))))


@router.put("/{resource}")
async def update_record(
    request: Request,
    handler: ResourceHandler = Depends(get_handler),
    session: AsyncSession = Depends(get_session),
):
    return _success(MessageData(**await handler.update(session, await _read_json(request))))


@router.delete("/{resource}")
async def delete_record(
    request: Request,
    handler: ResourceHandler = Depends(get_handler),
    session: AsyncSession = Depends(get_session),
):
    return _success(MessageData(**await handler.delete(session, await _read_json(request))))


@router.options("/{resource}")
async def preflight(resource: str):
    return Response(status_code=200, media_type="application/json")
