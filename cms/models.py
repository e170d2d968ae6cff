from dataclasses import dataclass, fields
from typing import Any, Dict, List, Mapping, Tuple


class _Unchanged:
    _instance: "_Unchanged | None" = None

    def __new__(cls) -> "_Unchanged":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNCHANGED"


@dataclass(frozen=True)
class SetTo:
    value: Any


@dataclass(frozen=True)
class Clear:
    pass


UNCHANGED = _Unchanged()
CLEAR = Clear()

FieldUpdate = _Unchanged | SetTo | Clear


@dataclass(frozen=True)
class FieldSpec:
    """How one mutable field appears on the wire and what clearing it means."""

    wire_key: str
    aliases: Tuple[str, ...] = ()
    clear_value: Any = None
    required: bool = False
    kind: str = "any"  # any | text | bool | list


def parse_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.strip().lower() in {"1", "true", "yes", "on"}
    return bool(value)


def as_url_list(value: Any) -> List[str]:
    if value is None or value == "":
        return []
    if isinstance(value, (list, tuple)):
        return [str(v) for v in value if v is not None and str(v).strip()]
    return [str(value)]


def is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, tuple)):
        return len(value) == 0
    return False


def coerce(spec: FieldSpec, value: Any) -> Any:
    if spec.kind == "bool":
        return parse_bool(value)
    if spec.kind == "list":
        return as_url_list(value)
    if spec.kind == "text" and not isinstance(value, str):
        return str(value)
    return value


def lookup(payload: Mapping[str, Any], spec: FieldSpec) -> Tuple[bool, Any]:
    for key in (spec.wire_key,) + spec.aliases:
        if key in payload:
            return True, payload[key]
    return False, None


EVENT_FIELDS: Dict[str, FieldSpec] = {
    "heading": FieldSpec("Heading", aliases=("heading",), required=True, kind="text"),
    "description": FieldSpec("Description", aliases=("description",), required=True),
    "images": FieldSpec("images", clear_value=[], kind="list"),
    "date": FieldSpec("date", kind="text"),
    "form_link": FieldSpec("formLink", kind="text"),
    "qr_link": FieldSpec("qrLink", kind="text"),
    "reverse": FieldSpec("reverse", clear_value=False, kind="bool"),
}

BLOG_FIELDS: Dict[str, FieldSpec] = {
    "title": FieldSpec("title", required=True, kind="text"),
    "excerpt": FieldSpec("excerpt", required=True, kind="text"),
    "tag": FieldSpec("tag", kind="text"),
    "date": FieldSpec("date", kind="text"),
    "read_time": FieldSpec("readTime", kind="text"),
    "image": FieldSpec("image", kind="text"),
    "content": FieldSpec("content"),
}


def update_from_value(present: bool, value: Any) -> FieldUpdate:
    if not present:
        return UNCHANGED
    if is_blank(value):
        return CLEAR
    return SetTo(value)


class PartialUpdate:
    """Base for explicit per-entity partial updates.

    Subclasses are dataclasses whose attribute names match a FIELDS mapping;
    every attribute holds UNCHANGED, SetTo(value) or CLEAR.
    """

    FIELDS: Dict[str, FieldSpec] = {}

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any] | None):
        payload = payload or {}
        values = {}
        for attr, spec in cls.FIELDS.items():
            present, value = lookup(payload, spec)
            values[attr] = update_from_value(present, value)
        return cls(**values)

    def changes(self) -> Dict[str, FieldUpdate]:
        current = {f.name: getattr(self, f.name) for f in fields(self)}  # type: ignore[arg-type]
        return {name: value for name, value in current.items() if value is not UNCHANGED}

    def cleared_required(self) -> List[str]:
        return [
            self.FIELDS[attr].wire_key
            for attr, change in self.changes().items()
            if isinstance(change, Clear) and self.FIELDS[attr].required
        ]

    def apply(self, record: Mapping[str, Any]) -> Dict[str, Any]:
        merged = dict(record)
        for attr, change in self.changes().items():
            spec = self.FIELDS[attr]
            if isinstance(change, Clear):
                merged[spec.wire_key] = list(spec.clear_value) if isinstance(spec.clear_value, list) else spec.clear_value
            elif isinstance(change, SetTo):
                merged[spec.wire_key] = coerce(spec, change.value)
        return merged

    def is_empty(self) -> bool:
        return not self.changes()


@dataclass(frozen=True)
class EventUpdate(PartialUpdate):
    heading: FieldUpdate = UNCHANGED
    description: FieldUpdate = UNCHANGED
    images: FieldUpdate = UNCHANGED
    date: FieldUpdate = UNCHANGED
    form_link: FieldUpdate = UNCHANGED
    qr_link: FieldUpdate = UNCHANGED
    reverse: FieldUpdate = UNCHANGED

    FIELDS = EVENT_FIELDS


@dataclass(frozen=True)
class BlogUpdate(PartialUpdate):
    title: FieldUpdate = UNCHANGED
    excerpt: FieldUpdate = UNCHANGED
    tag: FieldUpdate = UNCHANGED
    date: FieldUpdate = UNCHANGED
    read_time: FieldUpdate = UNCHANGED
    image: FieldUpdate = UNCHANGED
    content: FieldUpdate = UNCHANGED

    FIELDS = BLOG_FIELDS


def normalize_fields(specs: Mapping[str, FieldSpec], payload: Mapping[str, Any] | None) -> Dict[str, Any]:
    """Resolve aliases and coerce types for a create payload; unknown keys are dropped."""
    payload = payload or {}
    out: Dict[str, Any] = {}
    for spec in specs.values():
        present, value = lookup(payload, spec)
        if not present or value is None:
            continue
        out[spec.wire_key] = coerce(spec, value)
    return out


def public_record(doc: Mapping[str, Any]) -> Dict[str, Any]:
    """Shape a stored document for API output: `id` first, no storage keys."""
    out: Dict[str, Any] = {"id": doc.get("_id")}
    for key, value in doc.items():
        if key.startswith("_"):
            continue
        out[key] = value
    return out


def api_error(message: str, detail: str | None = None) -> Dict[str, Any]:
    body: Dict[str, Any] = {"error": message}
    if detail:
        body["detail"] = detail
    return body
