from typing import List, Sequence

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool
from starlette.datastructures import FormData, UploadFile

from cms.auth_tokens import AuthGate, require_admin
from cms.config import dlog
from cms.errors import UploadError, ValidationError
from cms.image_host import ImageFile, ImageHostClient
from cms.models import api_error


MAX_FILES_PER_REQUEST = 10
TOO_MANY_FILES = f"Too many files; at most {MAX_FILES_PER_REQUEST} per request"


def is_multipart(request: Request) -> bool:
    return request.headers.get("content-type", "").lower().startswith("multipart/form-data")


def file_parts(form: FormData, field_names: Sequence[str] = ("images",)) -> List[UploadFile]:
    """File parts under `field_names`, skipping the empty part browsers send for a blank input."""
    parts: List[UploadFile] = []
    for name in field_names:
        for item in form.getlist(name):
            if not isinstance(item, UploadFile):
                continue
            if not item.filename and not item.size:
                continue
            parts.append(item)
    return parts


async def read_image_files(form: FormData, field_names: Sequence[str] = ("images",)) -> List[ImageFile]:
    """Read the image parts of a form. Raises ValidationError past the per-request cap, before reading."""
    parts = file_parts(form, field_names)
    if len(parts) > MAX_FILES_PER_REQUEST:
        raise ValidationError(TOO_MANY_FILES)
    files: List[ImageFile] = []
    for item in parts:
        content = await item.read()
        files.append(
            ImageFile(
                content=content,
                media_type=item.content_type or "application/octet-stream",
                name=item.filename or None,
            )
        )
    return files


def create_uploads_router(image_host: ImageHostClient, gate: AuthGate) -> APIRouter:
    router = APIRouter()

    @router.post("/uploads", dependencies=[Depends(require_admin(gate))])
    async def upload_images(request: Request):
        if not is_multipart(request):
            return JSONResponse(api_error("Expected multipart/form-data with 'images' files"), status_code=400)
        try:
            form = await request.form()
            files = await read_image_files(form, ("images", "image"))
        except ValidationError as e:
            return JSONResponse(api_error(str(e)), status_code=400)
        except Exception as e:
            return JSONResponse(api_error(f"Invalid form data: {e}"), status_code=400)

        if not files:
            return JSONResponse(api_error("No files provided"), status_code=400)

        dlog("incoming_request_uploads", {"count": len(files), "names": [f.name for f in files]})
        try:
            # upload_many blocks on requests.post.
            urls = await run_in_threadpool(image_host.upload_many, files, title=str(form.get("title") or "upload"))
        except UploadError as e:
            dlog("uploads_failed", str(e))
            return JSONResponse(api_error("Failed to upload images", str(e)), status_code=500)
        return JSONResponse({"urls": urls})

    return router
