"""In-memory grid: the full row set is fetched wholesale, then searched,
sorted and paginated locally."""

import math
from dataclasses import dataclass, replace

PAGE_LENGTHS = (10, 25, 50, 100)
DEFAULT_PAGE_LENGTH = 25
ACTIONS_CLASS = "actions-column"


@dataclass
class Column:
    data: str | None
    title: str
    visible: bool = True
    orderable: bool = True
    class_name: str = ""


def actions_column() -> Column:
    return Column(data=None, title="Actions", orderable=False, class_name=ACTIONS_CLASS)


def _blank(value) -> bool:
    return value is None or value == ""


def row_key(row: dict, primary_key: str):
    """Primary key of a row, falling back to its first column value."""
    value = row.get(primary_key)
    if _blank(value) and row:
        value = next(iter(row.values()))
    return None if _blank(value) else value


def cell_text(row: dict, key: str | None) -> str:
    value = row.get(key) if key is not None else None
    return "" if value is None else str(value)


def _sort_key(value):
    if _blank(value):
        return (2, 0, "")
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return (0, value, "")
    return (1, 0, str(value).lower())


class Grid:
    def __init__(self, columns: list[dict], hidden_columns=(), page_length: int = DEFAULT_PAGE_LENGTH):
        self.base_columns = [
            Column(data=c["data"], title=c["title"], visible=c["data"] not in hidden_columns)
            for c in columns
        ]
        self.columns = [replace(c) for c in self.base_columns]
        self.rows: list[dict] = []
        self.page = 0
        self.page_length = page_length
        self.search = ""
        self.order: tuple[int, str] | None = None

    # ─── Columns ───────────────────────────────────────────────

    def rebuild(self, with_actions: bool) -> None:
        """Recreate the column set from the base columns. Paging starts over."""
        columns = [replace(c) for c in self.base_columns]
        if with_actions:
            columns.append(actions_column())
        self.columns = columns
        self.page = 0
        if self.order is not None and self.order[0] >= len(columns):
            self.order = None

    def column(self, class_name: str) -> Column | None:
        for col in self.columns:
            if col.class_name == class_name:
                return col
        return None

    @property
    def has_actions(self) -> bool:
        return self.column(ACTIONS_CLASS) is not None

    @property
    def visible_columns(self) -> list[Column]:
        return [c for c in self.columns if c.visible]

    # ─── Data ──────────────────────────────────────────────────

    def reload(self, rows: list[dict]) -> None:
        """Replace the row set, keeping the current page when it still exists."""
        self.rows = list(rows)
        self.page = min(self.page, self.pages - 1)

    def set_search(self, text: str) -> None:
        self.search = (text or "").strip()
        self.page = 0

    def set_page_length(self, length: int) -> None:
        if length not in PAGE_LENGTHS:
            raise ValueError(f"Unsupported page length: {length}")
        self.page_length = length
        self.page = min(self.page, self.pages - 1)

    def set_order(self, index: int, direction: str = "asc") -> None:
        if direction not in ("asc", "desc"):
            raise ValueError(f"Unsupported sort direction: {direction}")
        if not 0 <= index < len(self.columns) or not self.columns[index].orderable:
            raise ValueError(f"Column {index} is not orderable")
        self.order = (index, direction)

    def set_page(self, page: int) -> None:
        self.page = max(0, min(page, self.pages - 1))

    def filtered_rows(self) -> list[dict]:
        keys = [c.data for c in self.columns if c.data is not None]
        rows = self.rows
        if self.search:
            needle = self.search.lower()
            rows = [r for r in rows if any(needle in cell_text(r, k).lower() for k in keys)]
        if self.order is not None:
            index, direction = self.order
            key = self.columns[index].data
            # sorted() is stable in both directions: ties keep load order
            rows = sorted(rows, key=lambda r: _sort_key(r.get(key)), reverse=direction == "desc")
        return list(rows)

    @property
    def pages(self) -> int:
        return max(1, math.ceil(len(self.filtered_rows()) / self.page_length))

    def page_rows(self) -> list[dict]:
        start = self.page * self.page_length
        return self.filtered_rows()[start:start + self.page_length]

    def page_info(self) -> dict:
        filtered = len(self.filtered_rows())
        start = self.page * self.page_length
        end = min(start + self.page_length, filtered)
        return {
            "page": self.page,
            "pages": self.pages,
            "length": self.page_length,
            "start": start + 1 if filtered else 0,
            "end": end,
            "filtered": filtered,
            "total": len(self.rows),
        }
