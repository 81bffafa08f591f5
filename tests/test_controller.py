"""
Tests for admin_console/console/controller.py and client.py - the table controller state machine.
"""
import json
import typing

import httpx
import pytest

from admin_console.console.client import ClientRequestError, ResourceClient
from admin_console.console.controller import (
    NOTICE_TTL,
    ControllerStateError,
    Mode,
    TableController,
    entity_label,
    strip_empty,
)
from admin_console.console.grid import ACTIONS_CLASS


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


async def _controller(client, resource="departments", clock=None):
    kwargs = {"clock": clock} if clock else {}
    return await TableController.load(ResourceClient(client, f"/api/{resource}"), **kwargs)


async def _seed_departments(client, n):
    for i in range(n):
        resp = await client.post("/api/departments", json={"name": f"Dept {i:03d}"})
        assert resp.status_code == 200


class TestHelpers:
    def test_strip_empty(self):
        assert strip_empty({"name": "Ops", "description": "", "id": 3}) == {"name": "Ops", "id": 3}

    def test_strip_empty_idempotent(self):
        values = {"a": "", "b": "x", "c": ""}
        assert strip_empty(strip_empty(values)) == strip_empty(values)

    def test_entity_label(self):
        assert entity_label("departments") == "Department"
        assert entity_label("security_cards") == "Security Card"


class TestLoading:
    @pytest.mark.asyncio
    async def test_initial_state(self, client):
        await _seed_departments(client, 3)

        controller = await _controller(client)

        assert controller.mode is Mode.VIEWING
        assert controller.editing_enabled is False
        assert controller.add_visible is False
        assert controller.grid.has_actions is False
        assert len(controller.grid.rows) == 3

    @pytest.mark.asyncio
    async def test_reload_failure_keeps_rows(self, client):
        await _seed_departments(client, 2)
        controller = await _controller(client)

        def broken(request):
            return httpx.Response(500, json={"success": False, "error": "Failed to retrieve data: disk I/O error"})

        async with httpx.AsyncClient(transport=httpx.MockTransport(broken), base_url="http://test") as http:
            controller.client = ResourceClient(http, "/api/departments")
            assert await controller.reload() is False

        assert len(controller.grid.rows) == 2
        notice = controller.notices[0]
        assert notice.level == "danger"
        assert notice.message == "Error loading data: Failed to retrieve data: disk I/O error"
        assert notice.scroll_to_top is True


class TestEditingMode:
    @pytest.mark.asyncio
    async def test_enable_adds_actions_and_add_control(self, client):
        controller = await _controller(client)

        controller.set_editing(True)

        assert controller.add_visible is True
        assert controller.grid.column(ACTIONS_CLASS).visible is True

    @pytest.mark.asyncio
    async def test_toggle_twice_restores_columns_and_page(self, client):
        await _seed_departments(client, 60)
        controller = await _controller(client)
        controller.grid.set_page_length(10)
        controller.grid.set_page(3)
        before = [(c.data, c.visible) for c in controller.grid.columns]

        controller.set_editing(True)
        assert controller.grid.page == 3
        controller.set_editing(False)

        assert [(c.data, c.visible) for c in controller.grid.columns] == before
        assert controller.grid.page == 3
        assert controller.grid.page_length == 10

    @pytest.mark.asyncio
    async def test_same_state_only_flips_visibility(self, client):
        controller = await _controller(client)
        controller.set_editing(True)
        actions = controller.grid.column(ACTIONS_CLASS)

        controller.set_editing(True)

        assert controller.grid.column(ACTIONS_CLASS) is actions

    @pytest.mark.asyncio
    async def test_dialogs_need_editing_mode(self, client):
        controller = await _controller(client)

        with pytest.raises(ControllerStateError):
            await controller.open_add()


class TestAddFlow:
    @pytest.mark.asyncio
    async def test_add_opens_reset_form(self, client):
        controller = await _controller(client)
        controller.set_editing(True)

        await controller.open_add()

        assert controller.mode is Mode.ADD
        assert controller.form.title == "Add Department"
        assert controller.form.submit_label == "Add Department"
        assert controller.form.values == {"name": "", "description": ""}

    @pytest.mark.asyncio
    async def test_only_one_dialog_at_a_time(self, client):
        controller = await _controller(client)
        controller.set_editing(True)
        await controller.open_add()

        with pytest.raises(ControllerStateError):
            controller.open_delete(1)

    @pytest.mark.asyncio
    async def test_submit_creates_and_reloads_in_place(self, client):
        await _seed_departments(client, 30)
        controller = await _controller(client)
        controller.set_editing(True)
        controller.grid.set_page(1)
        await controller.open_add()

        ok = await controller.submit({"name": "Engineering", "description": ""})

        assert ok is True
        assert controller.mode is Mode.VIEWING
        assert controller.form is None
        assert controller.grid.page == 1
        assert len(controller.grid.rows) == 31
        assert controller.notices[0].message == "Record added successfully!"
        assert controller.notices[0].level == "success"

    @pytest.mark.asyncio
    async def test_blank_fields_equal_omitted_fields(self, client):
        controller = await _controller(client)
        controller.set_editing(True)
        await controller.open_add()
        await controller.submit({"name": "Blank", "description": ""})

        await client.post("/api/departments", json={"name": "Omitted"})
        await controller.reload()

        rows = {r["name"]: r for r in controller.grid.rows}
        assert rows["Blank"]["description"] is None
        assert rows["Omitted"]["description"] is None

    @pytest.mark.asyncio
    async def test_failed_submit_keeps_dialog_open(self, client):
        controller = await _controller(client, "employees")
        controller.set_editing(True)
        await controller.open_add()

        ok = await controller.submit({"first_name": "A", "last_name": "B", "salary": "lots"})

        assert ok is False
        assert controller.mode is Mode.ADD
        assert controller.form.values["salary"] == "lots"
        assert controller.notices[0].message == "Error adding record: Invalid value for field 'salary'"
        assert controller.grid.rows == []

    @pytest.mark.asyncio
    async def test_foreign_key_options_fetched_on_every_open(self, client):
        await client.post("/api/departments", json={"name": "Ops"})
        controller = await _controller(client, "employees")
        controller.set_editing(True)

        await controller.open_add()
        assert [o["text"] for o in controller.form.options["department_id"]] == ["Ops"]
        controller.close_modal()

        await client.post("/api/departments", json={"name": "Engineering"})
        await controller.open_add()
        assert [o["text"] for o in controller.form.options["department_id"]] == ["Engineering", "Ops"]
        assert controller.form.options["security_card_id"] == []


class TestEditFlow:
    @pytest.mark.asyncio
    async def test_edit_populates_and_updates(self, client):
        resp = await client.post("/api/departments", json={"name": "Engineering", "description": "R&D"})
        dept_id = resp.json()["data"]["id"]
        controller = await _controller(client)
        controller.set_editing(True)

        assert await controller.open_edit(str(dept_id)) is True
        assert controller.mode is Mode.EDIT
        assert controller.form.title == "Edit Department"
        assert controller.form.submit_label == "Update Department"
        assert controller.form.values == {"name": "Engineering", "description": "R&D"}

        ok = await controller.submit({"name": "Eng & R&D", "description": "R&D"})

        assert ok is True
        assert controller.notices[0].message == "Record updated successfully!"
        assert controller.grid.rows == [{"id": dept_id, "name": "Eng & R&D", "description": "R&D"}]

    @pytest.mark.asyncio
    async def test_edit_of_missing_record_stays_viewing(self, client):
        controller = await _controller(client)
        controller.set_editing(True)

        assert await controller.open_edit(404) is False

        assert controller.mode is Mode.VIEWING
        assert controller.notices[0].message == "Error loading record: Record not found"


class TestDeleteFlow:
    @pytest.mark.asyncio
    async def test_confirm_delete(self, client):
        resp = await client.post("/api/departments", json={"name": "Temp"})
        dept_id = resp.json()["data"]["id"]
        controller = await _controller(client)
        controller.set_editing(True)

        controller.open_delete(dept_id)
        assert controller.mode is Mode.DELETE
        assert controller.current_id == dept_id

        assert await controller.confirm_delete() is True
        assert controller.grid.rows == []
        assert controller.notices[0].message == "Record deleted successfully!"

    @pytest.mark.asyncio
    async def test_confirm_without_dialog(self, client):
        controller = await _controller(client)

        with pytest.raises(ControllerStateError):
            await controller.confirm_delete()


class TestNotices:
    @pytest.mark.asyncio
    async def test_notices_expire(self, client):
        clock = FakeClock()
        controller = await _controller(client, clock=clock)
        controller.notify("Saved", "success")

        clock.now += NOTICE_TTL - 0.1
        assert [n.message for n in controller.active_notices()] == ["Saved"]

        clock.now += 0.2
        assert controller.active_notices() == []

    @pytest.mark.asyncio
    async def test_success_does_not_scroll(self, client):
        controller = await _controller(client)

        assert controller.notify("Saved", "success").scroll_to_top is False


class TestResourceClient:
    @pytest.mark.asyncio
    async def test_transport_error(self):
        def refuse(request):
            raise httpx.ConnectError("connection refused", request=request)

        async with httpx.AsyncClient(transport=httpx.MockTransport(refuse), base_url="http://test") as http:
            with pytest.raises(ClientRequestError, match="connection refused"):
                await ResourceClient(http, "/api/departments").list()

    @pytest.mark.asyncio
    async def test_non_json_response(self):
        def html(request):
            return httpx.Response(502, text="<html>bad gateway</html>")

        async with httpx.AsyncClient(transport=httpx.MockTransport(html), base_url="http://test") as http:
            with pytest.raises(ClientRequestError, match="Unexpected response"):
                await ResourceClient(http, "/api/departments").get(1)

    @pytest.mark.asyncio
    async def test_delete_sends_primary_key_body(self):
        seen = {}

        def capture(request):
            seen["method"] = request.method
            seen["body"] = request.content
            return httpx.Response(200, json={"success": True, "data": {"message": "Record deleted successfully"}})

        async with httpx.AsyncClient(transport=httpx.MockTransport(capture), base_url="http://test") as http:
            await ResourceClient(http, "/api/departments").delete("id", 7)

        assert seen["method"] == "DELETE"
        assert json.loads(seen["body"]) == {"id": 7}

    def test_hints_resolve_despite_list_method(self):
        hints = typing.get_type_hints(ResourceClient.foreign_key_options)

        assert hints["return"] == list[dict]
