from fastapi import APIRouter
from fastapi.responses import HTMLResponse

from cms.webui.templates import BLOGS_ADMIN_HTML, EVENTS_ADMIN_HTML


def create_webui_router() -> APIRouter:
    """Static admin pages. They call the public API with a bearer token from /auth/login."""
    router = APIRouter(prefix="/admin")

    @router.get("", response_class=HTMLResponse, include_in_schema=False)
    async def admin_index() -> HTMLResponse:
        return HTMLResponse(content=EVENTS_ADMIN_HTML)

    @router.get("/events", response_class=HTMLResponse, include_in_schema=False)
    async def admin_events() -> HTMLResponse:
        return HTMLResponse(content=EVENTS_ADMIN_HTML)

    @router.get("/blogs", response_class=HTMLResponse, include_in_schema=False)
    async def admin_blogs() -> HTMLResponse:
        return HTMLResponse(content=BLOGS_ADMIN_HTML)

    return router
