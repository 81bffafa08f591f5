"""HTML console: grid pages driven by the table controller."""

from contextlib import asynccontextmanager
from urllib.parse import urlencode

import httpx
from fastapi import APIRouter, Query, Request
from fastapi.responses import HTMLResponse, RedirectResponse
from fastapi.templating import Jinja2Templates

from admin_console.console.client import ResourceClient
from admin_console.console.controller import Mode, TableController, entity_label
from admin_console.console.grid import ACTIONS_CLASS, DEFAULT_PAGE_LENGTH, PAGE_LENGTHS, cell_text
from admin_console.errors import NotFoundError
from admin_console.resources.registry import get_registry

router = APIRouter(tags=["console"])
templates = None  # initialized in main.py via init_templates()


def init_templates(t: Jinja2Templates) -> None:
    global templates
    templates = t


@asynccontextmanager
async def _api_client(request: Request):
    """In-process client for the JSON API of this same application."""
    transport = httpx.ASGITransport(app=request.app)
    async with httpx.AsyncClient(transport=transport, base_url="http://console") as http:
        yield http


def _view_state(page: int, length: int, search: str, order: int | None, direction: str, editing: bool) -> dict:
    state = {"page": max(1, page), "length": length, "search": search, "dir": direction, "editing": int(editing)}
    if order is not None:
        state["order"] = order
    return state


def _as_int(value, default):
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _state_from_form(form) -> dict:
    order = form.get("_order")
    return _view_state(
        page=_as_int(form.get("_page"), 1),
        length=_as_int(form.get("_length"), DEFAULT_PAGE_LENGTH),
        search=form.get("_search", ""),
        order=int(order) if order and order.isdigit() else None,
        direction=form.get("_dir", "asc"),
        editing=True,
    )


def _grid_url(resource: str, state: dict, **overrides) -> str:
    params = {**state, **overrides}
    params = {k: v for k, v in params.items() if v is not None and v != ""}
    return f"/console/{resource}?{urlencode(params)}"


async def _build_controller(http: httpx.AsyncClient, resource: str, state: dict) -> TableController:
    if get_registry().get(resource) is None:
        raise NotFoundError("Unknown resource")

    controller = await TableController.load(ResourceClient(http, f"/api/{resource}"))
    controller.set_editing(bool(state["editing"]))
    grid = controller.grid
    if state["length"] in PAGE_LENGTHS:
        grid.set_page_length(state["length"])
    grid.set_search(state["search"])
    if state.get("order") is not None:
        try:
            grid.set_order(state["order"], state["dir"])
        except ValueError:
            pass
    grid.set_page(state["page"] - 1)
    return controller


def _render(request: Request, resource: str, controller: TableController, state: dict) -> HTMLResponse:
    def link(**overrides) -> str:
        return _grid_url(resource, state, **overrides)

    ctx = {
        "resource": resource,
        "controller": controller,
        "grid": controller.grid,
        "info": controller.grid.page_info(),
        "notices": controller.active_notices(),
        "state": state,
        "link": link,
        "cell_text": cell_text,
        "actions_class": ACTIONS_CLASS,
        "page_lengths": PAGE_LENGTHS,
        "Mode": Mode,
        "resources": _resource_links(),
    }
    return templates.TemplateResponse(request, "console/table.html", ctx)


def _resource_links() -> list[dict]:
    return [{"name": r.name, "label": entity_label(r.name) + "s"} for r in get_registry()]


# ═══════════════════════════════════════════════════════════════
# PAGES
# ═══════════════════════════════════════════════════════════════

@router.get("/", response_class=HTMLResponse)
async def index(request: Request):
    return templates.TemplateResponse(request, "index.html", {"resources": _resource_links()})


@router.get("/console/{resource}", response_class=HTMLResponse)
async def grid_page(
    request: Request,
    resource: str,
    page: str | None = Query(default=None),
    length: str | None = Query(default=None),
    search: str = Query(default=""),
    order: str | None = Query(default=None),
    dir: str = Query(default="asc"),
    editing: bool = Query(default=False),
    modal: str | None = Query(default=None),
    id: str | None = Query(default=None),
    notice: str | None = Query(default=None),
    level: str = Query(default="success"),
):
    # Hand-edited URLs fall back to defaults instead of failing validation
    state = _view_state(
        _as_int(page, 1), _as_int(length, DEFAULT_PAGE_LENGTH), search, _as_int(order, None), dir, editing
    )

    async with _api_client(request) as http:
        controller = await _build_controller(http, resource, state)
        if notice:
            controller.notify(notice, level if level in ("success", "danger") else "success")
        if editing and modal == Mode.ADD.value:
            await controller.open_add()
        elif editing and modal == Mode.EDIT.value and id:
            await controller.open_edit(id)
        elif editing and modal == Mode.DELETE.value and id:
            controller.open_delete(id)

    return _render(request, resource, controller, state)


# ═══════════════════════════════════════════════════════════════
# MUTATIONS
# ═══════════════════════════════════════════════════════════════

@router.post("/console/{resource}/submit", response_class=HTMLResponse)
async def submit_form(request: Request, resource: str):
    form = await request.form()
    state = _state_from_form(form)
    mode = form.get("_mode", Mode.ADD.value)
    values = {k: v for k, v in form.items() if not k.startswith("_")}

    async with _api_client(request) as http:
        controller = await _build_controller(http, resource, state)
        if mode == Mode.EDIT.value:
            opened = await controller.open_edit(form.get("_id"))
        else:
            await controller.open_add()
            opened = True

        if opened and await controller.submit(values):
            notice = controller.notices[0]
            return RedirectResponse(_grid_url(resource, state, notice=notice.message, level=notice.level), status_code=303)

    return _render(request, resource, controller, state)


@router.post("/console/{resource}/delete", response_class=HTMLResponse)
async def delete_record(request: Request, resource: str):
    form = await request.form()
    state = _state_from_form(form)

    async with _api_client(request) as http:
        controller = await _build_controller(http, resource, state)
        controller.open_delete(form.get("id"))
        if await controller.confirm_delete():
            notice = controller.notices[0]
            return RedirectResponse(_grid_url(resource, state, notice=notice.message, level=notice.level), status_code=303)

    return _render(request, resource, controller, state)
