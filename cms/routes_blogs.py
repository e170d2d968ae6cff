from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool

from cms.auth_tokens import AuthGate, require_admin
from cms.config import dlog
from cms.errors import NotFoundError, StoreError, ValidationError
from cms.models import BlogUpdate, api_error
from cms.records import RecordStore


async def _json_object(request: Request):
    body = await request.json()
    if not isinstance(body, dict):
        raise ValueError("request body must be a JSON object")
    return body


def create_blogs_router(blogs: RecordStore, gate: AuthGate) -> APIRouter:
    router = APIRouter()
    admin_only = [Depends(require_admin(gate))]

    @router.get("/blogs")
    def list_blogs():
        try:
            return JSONResponse(blogs.list_all())
        except StoreError as e:
            dlog("blogs_list_failed", str(e))
            return JSONResponse(api_error("Failed to fetch blogs", str(e)), status_code=500)

    @router.get("/blogs/{blog_id}")
    def get_blog(blog_id: str):
        try:
            return JSONResponse(blogs.get_by_id(blog_id))
        except NotFoundError as e:
            return JSONResponse(api_error(str(e)), status_code=404)
        except StoreError as e:
            dlog("blog_fetch_failed", str(e))
            return JSONResponse(api_error("Failed to fetch blog", str(e)), status_code=500)

    @router.post("/blogs", dependencies=admin_only)
    async def create_blog(request: Request):
        try:
            body = await _json_object(request)
        except Exception as e:
            return JSONResponse(api_error(f"Invalid JSON: {e}"), status_code=400)

        dlog("incoming_request_create_blog", {"title": body.get("title"), "has_image": bool(body.get("image"))})
        try:
            created = await run_in_threadpool(blogs.create, body)
        except ValidationError as e:
            return JSONResponse(api_error(str(e)), status_code=400)
        except StoreError as e:
            dlog("blog_create_failed", str(e))
            return JSONResponse(api_error("Failed to create blog", str(e)), status_code=500)
        return JSONResponse(created, status_code=201)

    @router.put("/blogs/{blog_id}", dependencies=admin_only)
    async def update_blog(blog_id: str, request: Request):
        try:
            body = await _json_object(request)
        except Exception as e:
            return JSONResponse(api_error(f"Invalid JSON: {e}"), status_code=400)

        partial = BlogUpdate.from_payload(body)
        dlog("incoming_request_update_blog", {"id": blog_id, "fields": sorted(partial.changes())})
        try:
            updated = await run_in_threadpool(blogs.update, blog_id, partial)
        except NotFoundError as e:
            return JSONResponse(api_error(str(e)), status_code=404)
        except ValidationError as e:
            return JSONResponse(api_error(str(e)), status_code=400)
        except StoreError as e:
            dlog("blog_update_failed", str(e))
            return JSONResponse(api_error("Failed to update blog", str(e)), status_code=500)
        return JSONResponse(updated)

    @router.delete("/blogs/{blog_id}", dependencies=admin_only)
    def delete_blog(blog_id: str):
        try:
            blogs.delete(blog_id)
        except NotFoundError as e:
            return JSONResponse(api_error(str(e)), status_code=404)
        except StoreError as e:
            dlog("blog_delete_failed", str(e))
            return JSONResponse(api_error("Failed to delete blog", str(e)), status_code=500)
        return JSONResponse({"ok": True})

    return router
