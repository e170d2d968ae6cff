from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from cms.auth_tokens import AuthGate
from cms.config import Settings, dlog
from cms.docstore import DocumentStore, open_document_store
from cms.errors import AuthError
from cms.image_host import ImageHostClient, build_image_host
from cms.records import blog_store, event_store
from cms.routes_auth import create_auth_router
from cms.routes_blogs import create_blogs_router
from cms.routes_events import create_events_router
from cms.routes_uploads import create_uploads_router
from cms.webui.routes import create_webui_router


def create_app(
    settings: Settings,
    *,
    store: DocumentStore | None = None,
    image_host: ImageHostClient | None = None,
) -> FastAPI:
    """Build the API. `store` and `image_host` default to the configured backends."""
    db = store or open_document_store(settings.database_url, settings.database_name)
    host = image_host or build_image_host(settings)
    gate = AuthGate.from_settings(settings)
    events = event_store(db)
    blogs = blog_store(db)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        db.close()

    app = FastAPI(title="cms-backend", lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_origins),
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(AuthError)
    async def auth_error_handler(request: Request, exc: AuthError):
        dlog("auth_rejected", {"path": request.url.path, "reason": str(exc)})
        return JSONResponse({"message": str(exc)}, status_code=exc.status_code)

    @app.get("/health")
    async def health():
        return {"ok": True}

    app.include_router(create_events_router(events, host, gate))
    app.include_router(create_blogs_router(blogs, gate))
    app.include_router(create_auth_router(gate))
    app.include_router(create_uploads_router(host, gate))
    app.include_router(create_webui_router())

    app.state.settings = settings
    app.state.store = db
    app.state.image_host = host
    app.state.auth_gate = gate
    app.state.events = events
    app.state.blogs = blogs

    dlog(
        "app_created",
        {"database": settings.database_name, "image_host": host.provider, "cors_origins": list(settings.cors_origins)},
    )
    return app
