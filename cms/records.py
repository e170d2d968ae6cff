from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Mapping, Tuple, Type

from cms.config import dlog
from cms.docstore import DocumentStore
from cms.errors import NotFoundError, ValidationError
from cms.models import (
    BLOG_FIELDS,
    EVENT_FIELDS,
    BlogUpdate,
    EventUpdate,
    FieldSpec,
    PartialUpdate,
    is_blank,
    normalize_fields,
    public_record,
)
from cms.numbering import NumberingAssigner


def now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="microseconds").replace("+00:00", "Z")


def _event_sort_key(pair: Tuple[int, Dict[str, Any]]):
    seq, doc = pair
    number = doc.get("eventNumber")
    # Records without a number sort first, as the hosted store does with nulls.
    return (number is not None, number or 0, doc.get("createdAt") or "", seq)


def _blog_sort_key(pair: Tuple[int, Dict[str, Any]]):
    seq, doc = pair
    return (doc.get("createdAt") or "", seq)


@dataclass(frozen=True)
class RecordKind:
    """Everything that differs between the event and blog collections."""

    collection: str
    fields: Mapping[str, FieldSpec]
    update_type: Type[PartialUpdate]
    required_message: str
    sort_key: Callable[[Tuple[int, Dict[str, Any]]], Any]
    sort_descending: bool = False
    defaults: Mapping[str, Any] = field(default_factory=dict)
    numbering_field: str | None = None


EVENT_KIND = RecordKind(
    collection="events",
    fields=EVENT_FIELDS,
    update_type=EventUpdate,
    required_message="Heading and Description are required",
    sort_key=_event_sort_key,
    defaults={"images": [], "reverse": False},
    numbering_field="eventNumber",
)

BLOG_KIND = RecordKind(
    collection="blogs",
    fields=BLOG_FIELDS,
    update_type=BlogUpdate,
    required_message="Title and excerpt are required",
    sort_key=_blog_sort_key,
    sort_descending=True,
    defaults={"tag": "Blog", "image": ""},
)


class RecordStore:
    def __init__(self, db: DocumentStore, kind: RecordKind) -> None:
        self.db = db
        self.kind = kind
        self.numbering: NumberingAssigner | None = None
        if kind.numbering_field:
            self.numbering = NumberingAssigner(db, kind.collection, kind.numbering_field)

    def _required_keys(self) -> List[str]:
        return [spec.wire_key for spec in self.kind.fields.values() if spec.required]

    def check_required(self, fields: Mapping[str, Any]) -> Dict[str, Any]:
        """Normalize a create payload and reject it when a required field is blank."""
        values = normalize_fields(self.kind.fields, fields)
        missing = [key for key in self._required_keys() if is_blank(values.get(key))]
        if missing:
            raise ValidationError(self.kind.required_message)
        return values

    def create(self, fields: Mapping[str, Any]) -> Dict[str, Any]:
        values = self.check_required(fields)

        doc: Dict[str, Any] = {}
        for key, default in self.kind.defaults.items():
            doc[key] = list(default) if isinstance(default, list) else default
        doc.update(values)
        stamp = now_iso()
        doc["createdAt"] = stamp
        doc["updatedAt"] = stamp

        with self.db.locked():
            if self.numbering is not None:
                doc[self.numbering.field] = self.numbering.next_number()
            stored = self.db.insert(self.kind.collection, doc)
        dlog(
            "record_created",
            {"collection": self.kind.collection, "id": stored["_id"], "number": stored.get(self.kind.numbering_field or "")},
        )
        return public_record(stored)

    def list_all(self) -> List[Dict[str, Any]]:
        docs = list(enumerate(self.db.find_all(self.kind.collection)))
        docs.sort(key=self.kind.sort_key, reverse=self.kind.sort_descending)
        return [public_record(doc) for _, doc in docs]

    def get_by_id(self, record_id: str) -> Dict[str, Any]:
        doc = self.db.find_one(self.kind.collection, record_id)
        if doc is None:
            raise NotFoundError()
        return public_record(doc)

    def update(self, record_id: str, partial: PartialUpdate | Mapping[str, Any] | None) -> Dict[str, Any]:
        if not isinstance(partial, PartialUpdate):
            partial = self.kind.update_type.from_payload(partial)
        cleared = partial.cleared_required()
        if cleared:
            raise ValidationError(f"Cannot clear required field(s): {', '.join(cleared)}")

        with self.db.locked():
            existing = self.db.find_one(self.kind.collection, record_id)
            if existing is None:
                raise NotFoundError()
            merged = partial.apply(existing)
            merged["updatedAt"] = now_iso()
            self.db.replace(self.kind.collection, record_id, merged)
        dlog("record_updated", {"collection": self.kind.collection, "id": record_id, "fields": sorted(partial.changes())})
        return public_record(merged)

    def delete(self, record_id: str) -> bool:
        if not self.db.delete(self.kind.collection, record_id):
            raise NotFoundError()
        dlog("record_deleted", {"collection": self.kind.collection, "id": record_id})
        return True


def event_store(db: DocumentStore) -> RecordStore:
    return RecordStore(db, EVENT_KIND)


def blog_store(db: DocumentStore) -> RecordStore:
    return RecordStore(db, BLOG_KIND)
