"""Resource descriptors built from the YAML manifest."""

import math
import re
from dataclasses import dataclass
from datetime import date

from admin_console.config import load_resource_manifest
from admin_console.errors import ClientInputError, ManifestError

FIELD_TYPES = ("integer", "number", "text", "date")

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

# Signed 64-bit: the widest integer either driver binds
INT_MIN = -(2 ** 63)
INT_MAX = 2 ** 63 - 1


@dataclass(frozen=True)
class ForeignKey:
    table: str
    value_field: str
    text_field: str


@dataclass(frozen=True)
class FieldSpec:
    name: str
    type: str
    label: str
    display: str | None = None
    references: ForeignKey | None = None

    def coerce(self, value):
        """Convert a JSON scalar to the value bound for this column."""
        if value is None:
            return None
        if isinstance(value, (dict, list)):
            raise ClientInputError(f"Field '{self.name}' must be a scalar value")

        if self.type == "text":
            if isinstance(value, bool):
                return str(value).lower()
            return value if isinstance(value, str) else str(value)

        if isinstance(value, bool):
            raise ClientInputError(f"Invalid value for field '{self.name}'")

        try:
            if self.type == "integer":
                if isinstance(value, float) and not value.is_integer():
                    raise ValueError(value)
                return self._bounded(int(value))
            if self.type == "number":
                number = value if isinstance(value, (int, float)) else float(value.strip())
                if isinstance(number, float):
                    if not math.isfinite(number):
                        raise ValueError(value)
                    if isinstance(value, str) and number.is_integer() and INT_MIN <= number <= INT_MAX:
                        number = int(number)
                    return number
                return self._bounded(number)
            # date: bound as ISO text so both drivers accept it
            return date.fromisoformat(str(value).strip()).isoformat()
        except ValueError:
            raise ClientInputError(f"Invalid value for field '{self.name}'") from None

    def _bounded(self, number: int) -> int:
        if not INT_MIN <= number <= INT_MAX:
            raise ClientInputError(f"Value out of range for field '{self.name}'")
        return number


@dataclass(frozen=True)
class ResourceDescriptor:
    name: str
    table: str
    primary_key: str
    fields: dict[str, FieldSpec]
    hidden_columns: tuple[str, ...] = ()
    list_query: str | None = None

    @property
    def key_field(self) -> FieldSpec:
        return self.fields[self.primary_key]

    @property
    def foreign_keys(self) -> dict[str, ForeignKey]:
        return {name: f.references for name, f in self.fields.items() if f.references}

    def grid_columns(self) -> list[dict]:
        """Ordered ``{data, title}`` pairs; foreign keys show their display column."""
        return [{"data": f.display or f.name, "title": f.label} for f in self.fields.values()]

    def form_fields(self) -> list[str]:
        return [name for name in self.fields if name != self.primary_key]

    def coerce_body(self, body: dict) -> dict:
        """Whitelist and coerce a request body. Unknown keys are rejected."""
        values = {}
        for key, value in body.items():
            spec = self.fields.get(key)
            if spec is None:
                raise ClientInputError(f"Unknown field: {key}")
            values[key] = spec.coerce(value)
        return values


class ResourceRegistry:
    def __init__(self, resources: list[ResourceDescriptor]):
        self._by_name = {r.name: r for r in resources}
        self._by_table = {r.table: r for r in resources}

    def __iter__(self):
        return iter(self._by_name.values())

    def __len__(self) -> int:
        return len(self._by_name)

    def get(self, name: str) -> ResourceDescriptor | None:
        return self._by_name.get(name)

    def has_column(self, table: str, column: str) -> bool:
        resource = self._by_table.get(table)
        return resource is not None and column in resource.fields


def _check_identifier(value: str, where: str) -> str:
    if not isinstance(value, str) or not _IDENTIFIER.match(value):
        raise ManifestError(f"Invalid identifier {value!r} in {where}")
    return value


def _parse_field(resource: str, name: str, raw: dict) -> FieldSpec:
    where = f"{resource}.{name}"
    _check_identifier(name, where)
    raw = raw or {}
    field_type = raw.get("type", "text")
    if field_type not in FIELD_TYPES:
        raise ManifestError(f"Unknown field type {field_type!r} in {where}")

    references = None
    if raw.get("references"):
        ref = raw["references"]
        references = ForeignKey(
            table=_check_identifier(ref.get("table"), where),
            value_field=_check_identifier(ref.get("value_field", "id"), where),
            text_field=_check_identifier(ref.get("text_field"), where),
        )

    display = raw.get("display")
    if display is not None:
        _check_identifier(display, where)

    return FieldSpec(
        name=name,
        type=field_type,
        label=str(raw.get("label") or name.replace("_", " ").title()),
        display=display,
        references=references,
    )


def parse_manifest(manifest: dict) -> ResourceRegistry:
    resources = []
    seen = set()
    for raw in manifest.get("resources", []):
        name = _check_identifier(raw.get("name"), "resources")
        if name in seen:
            raise ManifestError(f"Duplicate resource {name!r}")
        seen.add(name)

        table = _check_identifier(raw.get("table", name), name)
        primary_key = _check_identifier(raw.get("primary_key", "id"), name)
        fields = {
            field_name: _parse_field(name, field_name, spec)
            for field_name, spec in (raw.get("fields") or {}).items()
        }
        if primary_key not in fields:
            raise ManifestError(f"Primary key {primary_key!r} is not a field of {name!r}")

        hidden = tuple(raw.get("hidden_columns") or ())
        resources.append(ResourceDescriptor(
            name=name,
            table=table,
            primary_key=primary_key,
            fields=fields,
            hidden_columns=hidden,
            list_query=raw.get("list_query"),
        ))
    return ResourceRegistry(resources)


_registry: ResourceRegistry | None = None
_registry_source: dict | None = None


def get_registry() -> ResourceRegistry:
    """Registry for the current manifest, rebuilt when the file changes."""
    global _registry, _registry_source
    manifest = load_resource_manifest()
    if _registry is None or manifest is not _registry_source:
        _registry = parse_manifest(manifest)
        _registry_source = manifest
    return _registry
