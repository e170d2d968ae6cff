from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Sequence

from cms.config import dlog
from cms.image_host import ImageFile
from cms.webui.api_client import ApiError, CmsApiClient


class FormMode(enum.Enum):
    CREATE = "create"
    EDIT = "edit"


@dataclass(frozen=True)
class FormState:
    mode: FormMode = FormMode.CREATE
    target_id: str | None = None

    @classmethod
    def editing(cls, target_id: str) -> "FormState":
        return cls(mode=FormMode.EDIT, target_id=target_id)


@dataclass
class StatusIndicator:
    kind: str = "info"  # info | loading | success | error
    message: str = ""

    def set(self, kind: str, message: str) -> None:
        self.kind = kind
        self.message = message


def _blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


class _FormController:
    label = "record"

    def __init__(self, api: CmsApiClient) -> None:
        self.api = api
        self.state = FormState()
        self.status = StatusIndicator()
        self.records: List[Dict[str, Any]] = []

    def _list(self) -> List[Dict[str, Any]]:
        raise NotImplementedError

    def _delete(self, record_id: str) -> None:
        raise NotImplementedError

    def refresh(self) -> List[Dict[str, Any]]:
        try:
            self.records = list(self._list() or [])
        except ApiError as e:
            self.status.set("error", f"Failed to load {self.label}s: {e.message}")
            return self.records
        self.status.set("success", f"{self.label.capitalize()}s loaded")
        return self.records

    def delete(self, record_id: str) -> bool:
        try:
            self._delete(record_id)
        except ApiError as e:
            self.status.set("error", f"Delete failed: {e.message}")
            return False
        if self.state.target_id == record_id:
            self.reset()
        self.status.set("success", f"{self.label.capitalize()} deleted")
        self._reload_quietly()
        return True

    def reset(self) -> None:
        self.state = FormState()

    def _reload_quietly(self) -> None:
        try:
            self.records = list(self._list() or [])
        except ApiError as e:
            dlog("admin_reload_failed", e.message)


class EventFormController(_FormController):
    """Create/edit flow for events: upload new images, then save the record."""

    label = "event"

    def __init__(self, api: CmsApiClient) -> None:
        super().__init__(api)
        self.existing_images: List[str] = []
        self.removed_images: List[str] = []

    def _list(self) -> List[Dict[str, Any]]:
        return self.api.list_events()

    def _delete(self, record_id: str) -> None:
        self.api.delete_event(record_id)

    def begin_edit(self, event: Mapping[str, Any]) -> Dict[str, Any]:
        """Enter edit mode and return the values to pre-fill the form with."""
        self.state = FormState.editing(event["id"])
        self.existing_images = list(event.get("images") or [])
        self.removed_images = []
        return {
            "Heading": event.get("Heading") or "",
            "Description": event.get("Description") or "",
            "date": event.get("date") or "",
            "formLink": event.get("formLink") or "",
            "qrLink": event.get("qrLink") or "",
            "reverse": bool(event.get("reverse")),
        }

    def mark_image_for_removal(self, url: str) -> None:
        if url in self.existing_images and url not in self.removed_images:
            self.removed_images.append(url)

    def unmark_image(self, url: str) -> None:
        if url in self.removed_images:
            self.removed_images.remove(url)

    def final_images(self, uploaded: Sequence[str]) -> List[str]:
        kept = [u for u in self.existing_images if u not in self.removed_images]
        return kept + list(uploaded)

    def reset(self) -> None:
        super().reset()
        self.existing_images = []
        self.removed_images = []

    def submit(self, fields: Mapping[str, Any], new_files: Sequence[ImageFile] = ()) -> Dict[str, Any] | None:
        payload = {k: v for k, v in fields.items() if k not in ("images", "imageUrls")}
        if _blank(payload.get("Heading")) or _blank(payload.get("Description")):
            self.status.set("error", "Heading and Description are required")
            return None

        editing = self.state.mode is FormMode.EDIT
        try:
            self.status.set("loading", "Uploading images...")
            uploaded = self.api.upload_images(list(new_files))
            self.status.set("loading", "Saving...")
            if editing:
                payload["images"] = self.final_images(uploaded)
                record = self.api.update_event(self.state.target_id, payload)
            else:
                payload["imageUrls"] = uploaded
                record = self.api.create_event(payload)
        except ApiError as e:
            self.status.set("error", f"Error: {e.message}")
            return None

        self.status.set("success", "Event updated" if editing else "Event created")
        self.reset()
        self._reload_quietly()
        return record


class BlogFormController(_FormController):
    """Create/edit flow for blog posts with a single optional image."""

    label = "blog"

    def __init__(self, api: CmsApiClient) -> None:
        super().__init__(api)
        self.existing_image: str | None = None
        self.image_removed = False

    def _list(self) -> List[Dict[str, Any]]:
        return self.api.list_blogs()

    def _delete(self, record_id: str) -> None:
        self.api.delete_blog(record_id)

    def begin_edit(self, blog: Mapping[str, Any]) -> Dict[str, Any]:
        self.state = FormState.editing(blog["id"])
        self.existing_image = blog.get("image") or None
        self.image_removed = False
        return {
            "title": blog.get("title") or "",
            "tag": blog.get("tag") or "Blog",
            "date": blog.get("date") or "",
            "readTime": blog.get("readTime") or "",
            "excerpt": blog.get("excerpt") or "",
            "content": blog.get("content") or "",
        }

    def mark_image_for_removal(self) -> None:
        if self.existing_image:
            self.image_removed = True

    def reset(self) -> None:
        super().reset()
        self.existing_image = None
        self.image_removed = False

    def build_payload(self, fields: Mapping[str, Any], uploaded_url: str | None) -> Dict[str, Any]:
        """Decide the `image` key.

        Edit mode: new upload sets it, removal sends None, otherwise the key
        is omitted so the stored image stays. Create mode: new upload or a
        pre-hosted URL already in `fields`.
        """
        payload = {k: (v.strip() if isinstance(v, str) else v) for k, v in fields.items() if k != "image"}
        if uploaded_url:
            payload["image"] = uploaded_url
        elif self.state.mode is FormMode.EDIT:
            if self.image_removed:
                payload["image"] = None
        elif isinstance(fields.get("image"), str) and fields["image"].strip():
            payload["image"] = fields["image"].strip()
        return payload

    def submit(self, fields: Mapping[str, Any], new_file: ImageFile | None = None) -> Dict[str, Any] | None:
        if _blank(fields.get("title")) or _blank(fields.get("excerpt")):
            self.status.set("error", "Title and excerpt are required")
            return None

        editing = self.state.mode is FormMode.EDIT
        try:
            uploaded_url = None
            if new_file is not None:
                self.status.set("loading", "Uploading image...")
                urls = self.api.upload_images([new_file])
                uploaded_url = urls[0] if urls else None
            payload = self.build_payload(fields, uploaded_url)
            self.status.set("loading", "Saving blog post...")
            if editing:
                record = self.api.update_blog(self.state.target_id, payload)
            else:
                record = self.api.create_blog(payload)
        except ApiError as e:
            self.status.set("error", f"Failed to save blog: {e.message}")
            return None

        self.status.set("success", "Blog post updated" if editing else "Blog post saved")
        self.reset()
        self._reload_quietly()
        return record
