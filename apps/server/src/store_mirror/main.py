from __future__ import annotations

from fastapi import FastAPI, HTTPException
from fastapi.responses import JSONResponse, Response

from . import __version__
from .paths import APP_DISPLAY_NAME
from .serving.state import ServerState

INDEX_NAME = "index.html"


def resolve_object_path(full_path: str) -> str:
    """
    Map a request path to a manifest key: the site root and any path ending
    in '/' resolve to index.html.
    """
    path = full_path.lstrip("/")
    if not path or path.endswith("/"):
        path += INDEX_NAME
    return path


def create_app(state: ServerState) -> FastAPI:
    app = FastAPI(
        title=APP_DISPLAY_NAME,
        version=__version__,
        docs_url="/api/docs",
        redoc_url=None,
        openapi_url="/api/openapi.json",
    )
    app.state.server_state = state

    @app.get("/api/health")
    def health() -> JSONResponse:
        snapshot = state.snapshot
        return JSONResponse(
            {"status": "ok", "version": __version__, "objects": len(snapshot)}
        )

    @app.get("/{full_path:path}")
    def serve_object(full_path: str) -> Response:
        # One snapshot per request: a reload mid-request does not affect it.
        snapshot = state.snapshot
        if full_path.startswith("api/"):
            raise HTTPException(status_code=404, detail="Not Found")

        obj = snapshot.lookup(resolve_object_path(full_path))
        if obj is None:
            raise HTTPException(status_code=404, detail="Not Found")
        return Response(
            content=obj.body,
            media_type=obj.content_type,
            headers={"ETag": f'"{obj.hash[:32]}"'},
        )

    return app
