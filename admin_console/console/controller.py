"""Table controller: dialog state machine over a grid bound to one resource.

States are ``viewing``, ``add``, ``edit`` and ``delete``; only one dialog is
open at a time. Editing mode is an explicit attribute of the controller and
gates the mutation controls. After every successful mutation the grid is
re-fetched wholesale and kept on its current page.
"""

import enum
import logging
import time
from dataclasses import dataclass

from admin_console.console.client import ClientRequestError, ResourceClient
from admin_console.console.grid import ACTIONS_CLASS, Grid, row_key

logger = logging.getLogger(__name__)

NOTICE_TTL = 5.0  # seconds


class Mode(str, enum.Enum):
    VIEWING = "viewing"
    ADD = "add"
    EDIT = "edit"
    DELETE = "delete"


class ControllerStateError(Exception):
    pass


@dataclass
class Notice:
    message: str
    level: str  # "success" or "danger"
    created_at: float

    @property
    def scroll_to_top(self) -> bool:
        return self.level == "danger"

    def expired(self, now: float) -> bool:
        return now - self.created_at >= NOTICE_TTL


@dataclass
class FormState:
    mode: Mode
    title: str
    submit_label: str
    values: dict[str, str]
    options: dict[str, list[dict]]


def strip_empty(values: dict) -> dict:
    """Drop empty-string fields so they are omitted rather than sent blank."""
    return {k: v for k, v in values.items() if v != ""}


def entity_label(resource_name: str) -> str:
    """'security_cards' -> 'Security Card'."""
    singular = resource_name[:-1] if resource_name.endswith("s") else resource_name
    return singular.replace("_", " ").title()


class TableController:
    def __init__(self, client: ResourceClient, meta: dict, clock=time.monotonic):
        self.client = client
        self.meta = meta
        self.primary_key = meta["primary_key"]
        self.form_fields: list[str] = list(meta.get("form_fields", []))
        self.foreign_keys: dict[str, dict] = dict(meta.get("foreign_keys", {}))
        self.grid = Grid(meta["columns"], meta.get("hidden_columns", ()))

        self.editing_enabled = False
        self.mode = Mode.VIEWING
        self.form: FormState | None = None
        self.current_id = None
        self.notices: list[Notice] = []
        self._clock = clock

    @classmethod
    async def load(cls, client: ResourceClient, clock=time.monotonic) -> "TableController":
        """Fetch the table metadata, then the first full row set."""
        meta = await client.meta()
        controller = cls(client, meta, clock=clock)
        await controller.reload()
        return controller

    @property
    def entity(self) -> str:
        return entity_label(self.meta["name"])

    @property
    def add_visible(self) -> bool:
        return self.editing_enabled

    def row_id(self, row: dict):
        return row_key(row, self.primary_key)

    # ─── Editing mode ──────────────────────────────────────────

    def set_editing(self, enabled: bool) -> None:
        self.editing_enabled = enabled
        if enabled != self.grid.has_actions:
            page, length = self.grid.page, self.grid.page_length
            self.grid.rebuild(with_actions=enabled)
            self.grid.page_length = length
            self.grid.set_page(page)
        else:
            actions = self.grid.column(ACTIONS_CLASS)
            if actions is not None:
                actions.visible = enabled

    # ─── Data ──────────────────────────────────────────────────

    async def reload(self) -> bool:
        """Re-fetch all rows. On failure the grid keeps its previous rows."""
        try:
            rows = await self.client.list()
        except ClientRequestError as exc:
            self.notify(f"Error loading data: {exc}", "danger")
            return False
        self.grid.reload(rows)
        return True

    async def _load_options(self) -> dict[str, list[dict]]:
        options = {}
        for field_name, fk in self.foreign_keys.items():
            try:
                options[field_name] = await self.client.foreign_key_options(
                    fk["table"], fk["value_field"], fk["text_field"]
                )
            except ClientRequestError as exc:
                logger.error("Error loading foreign key options for %s: %s", field_name, exc)
                options[field_name] = []
        return options

    # ─── Dialogs ───────────────────────────────────────────────

    def _require_idle(self) -> None:
        if not self.editing_enabled:
            raise ControllerStateError("Editing mode is disabled")
        if self.mode is not Mode.VIEWING:
            raise ControllerStateError(f"The {self.mode.value} dialog is already open")

    async def open_add(self) -> None:
        self._require_idle()
        options = await self._load_options()
        self.current_id = None
        self.form = FormState(
            mode=Mode.ADD,
            title=f"Add {self.entity}",
            submit_label=f"Add {self.entity}",
            values={name: "" for name in self.form_fields},
            options=options,
        )
        self.mode = Mode.ADD

    async def open_edit(self, record_id) -> bool:
        self._require_idle()
        try:
            record = await self.client.get(record_id)
        except ClientRequestError as exc:
            self.notify(f"Error loading record: {exc}", "danger")
            return False

        options = await self._load_options()
        values = {name: "" for name in self.form_fields}
        for key, value in record.items():
            if key in values:
                values[key] = "" if value is None else str(value)

        self.current_id = record.get(self.primary_key, record_id)
        self.form = FormState(
            mode=Mode.EDIT,
            title=f"Edit {self.entity}",
            submit_label=f"Update {self.entity}",
            values=values,
            options=options,
        )
        self.mode = Mode.EDIT
        return True

    def open_delete(self, record_id) -> None:
        self._require_idle()
        self.current_id = record_id
        self.form = None
        self.mode = Mode.DELETE

    def close_modal(self) -> None:
        self.mode = Mode.VIEWING
        self.form = None
        self.current_id = None

    async def submit(self, values: dict) -> bool:
        """Send the open add/edit form. The dialog stays open on failure."""
        if self.mode not in (Mode.ADD, Mode.EDIT):
            raise ControllerStateError("No form dialog is open")

        adding = self.mode is Mode.ADD
        payload = {k: v for k, v in values.items() if k in self.form_fields}
        self.form.values.update(payload)
        if not adding:
            payload[self.primary_key] = self.current_id
        payload = strip_empty(payload)

        try:
            if adding:
                await self.client.create(payload)
            else:
                await self.client.update(payload)
        except ClientRequestError as exc:
            self.notify(f"Error {'adding' if adding else 'updating'} record: {exc}", "danger")
            return False

        self.notify(f"Record {'added' if adding else 'updated'} successfully!", "success")
        self.close_modal()
        await self.reload()
        return True

    async def confirm_delete(self) -> bool:
        if self.mode is not Mode.DELETE:
            raise ControllerStateError("No delete dialog is open")
        try:
            await self.client.delete(self.primary_key, self.current_id)
        except ClientRequestError as exc:
            self.notify(f"Error deleting record: {exc}", "danger")
            return False

        self.notify("Record deleted successfully!", "success")
        self.close_modal()
        await self.reload()
        return True

    # ─── Notices ───────────────────────────────────────────────

    def notify(self, message: str, level: str) -> Notice:
        notice = Notice(message=message, level=level, created_at=self._clock())
        self.notices.insert(0, notice)
        return notice

    def active_notices(self) -> list[Notice]:
        """Notices younger than NOTICE_TTL, newest first."""
        now = self._clock()
        self.notices = [n for n in self.notices if not n.expired(now)]
        return list(self.notices)
