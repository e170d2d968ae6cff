import re
from typing import Any, Dict, List, Tuple

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool

from cms.auth_tokens import AuthGate, require_admin
from cms.config import dlog
from cms.errors import NotFoundError, StoreError, UploadError, ValidationError
from cms.image_host import ImageFile, ImageHostClient
from cms.models import EventUpdate, api_error, as_url_list
from cms.records import RecordStore
from cms.routes_uploads import is_multipart, read_image_files


HOSTED_URL = re.compile(r"^https?://", re.IGNORECASE)


def hosted_urls(raw: Any) -> List[str]:
    """Keep only absolute http(s) URL strings, in order."""
    return [u for u in as_url_list(raw) if isinstance(u, str) and HOSTED_URL.match(u)]


async def read_event_body(request: Request) -> Tuple[Dict[str, Any], List[ImageFile]]:
    """Return (fields, files) from either a JSON or a multipart request."""
    if is_multipart(request):
        form = await request.form()
        fields: Dict[str, Any] = {}
        for key in form.keys():
            if key in ("images", "imageUrls"):
                continue
            value = form.get(key)
            if isinstance(value, str):
                fields[key] = value
        fields["imageUrls"] = [v for v in form.getlist("imageUrls") if isinstance(v, str)]
        files = await read_image_files(form)
        return fields, files

    body = await request.json()
    if not isinstance(body, dict):
        raise ValueError("request body must be a JSON object")
    return body, []


def create_events_router(events: RecordStore, image_host: ImageHostClient, gate: AuthGate) -> APIRouter:
    router = APIRouter()
    admin_only = [Depends(require_admin(gate))]

    def create_with_images(fields: Dict[str, Any], files: List[ImageFile]) -> Dict[str, Any]:
        events.check_required(fields)
        title = str(fields.get("Heading") or fields.get("heading") or "event")
        # Uploaded files first, then pre-hosted URLs from the body.
        images = image_host.upload_many(files, title=title) + hosted_urls(fields.get("imageUrls"))
        payload = {k: v for k, v in fields.items() if k not in ("imageUrls", "images")}
        payload["images"] = images
        return events.create(payload)

    @router.get("/events")
    def list_events():
        try:
            return JSONResponse(events.list_all())
        except StoreError as e:
            dlog("events_list_failed", str(e))
            return JSONResponse(api_error("Failed to fetch events", str(e)), status_code=500)

    @router.post("/events", dependencies=admin_only)
    async def create_event(request: Request):
        try:
            fields, files = await read_event_body(request)
        except ValidationError as e:
            return JSONResponse(api_error(str(e)), status_code=400)
        except Exception as e:
            return JSONResponse(api_error(f"Invalid request body: {e}"), status_code=400)

        dlog(
            "incoming_request_create_event",
            {"heading": fields.get("Heading") or fields.get("heading"), "files": len(files), "imageUrls": fields.get("imageUrls")},
        )
        try:
            created = await run_in_threadpool(create_with_images, fields, files)
        except ValidationError as e:
            return JSONResponse(api_error(str(e)), status_code=400)
        except (UploadError, StoreError) as e:
            dlog("event_create_failed", str(e))
            return JSONResponse(api_error("Failed to create event", str(e)), status_code=500)
        return JSONResponse(created, status_code=201)

    @router.put("/events/{event_id}", dependencies=admin_only)
    async def update_event(event_id: str, request: Request):
        try:
            body = await request.json()
        except Exception as e:
            return JSONResponse(api_error(f"Invalid JSON: {e}"), status_code=400)
        if not isinstance(body, dict):
            return JSONResponse(api_error("Request body must be a JSON object"), status_code=400)

        partial = EventUpdate.from_payload(body)
        dlog("incoming_request_update_event", {"id": event_id, "fields": sorted(partial.changes())})
        try:
            updated = await run_in_threadpool(events.update, event_id, partial)
        except NotFoundError as e:
            return JSONResponse(api_error(str(e)), status_code=404)
        except ValidationError as e:
            return JSONResponse(api_error(str(e)), status_code=400)
        except StoreError as e:
            dlog("event_update_failed", str(e))
            return JSONResponse(api_error("Failed to update event", str(e)), status_code=500)
        return JSONResponse(updated)

    @router.delete("/events/{event_id}", dependencies=admin_only)
    def delete_event(event_id: str):
        try:
            events.delete(event_id)
        except NotFoundError as e:
            return JSONResponse(api_error(str(e)), status_code=404)
        except StoreError as e:
            dlog("event_delete_failed", str(e))
            return JSONResponse(api_error("Failed to delete event", str(e)), status_code=500)
        return JSONResponse({"ok": True})

    return router
