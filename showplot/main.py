import logging
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, JSONResponse
from fastapi.staticfiles import StaticFiles

from .background import cancel_all, spawn
from .database import connect_once, connect_with_retry, engine, is_ready
from .routers.admin import router as admin_router
from .routers.assets import router as assets_router
from .routers.auth import router as auth_router
from .routers.feedback import router as feedback_router
from .routers.plots import router as plots_router
from .settings.config import settings

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

app = FastAPI(title="ShowPlot API")

DB_UNAVAILABLE = (
    "Database not connected. If the database is hosted remotely, "
    "ensure this server's IP is allowed to reach it."
)

# ----------------------
# Middleware (last added runs first)
# ----------------------
@app.middleware("http")
async def _require_database(request: Request, call_next):
    if request.url.path.startswith("/api") and not is_ready():
        return JSONResponse({"detail": DB_UNAVAILABLE}, status_code=503)
    return await call_next(request)


@app.middleware("http")
async def _reject_foreign_origins(request: Request, call_next):
    # origins outside the allow-list get a JSON 403
    allowed = settings.cors_allowed_origins
    origin = request.headers.get("origin")
    if allowed is not None and origin and origin not in allowed:
        return JSONResponse({"detail": "Not allowed by CORS"}, status_code=403)
    return await call_next(request)


app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_allowed_origins or ["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ----------------------
# Route Includes
# ----------------------
app.include_router(auth_router)
app.include_router(assets_router)
app.include_router(admin_router)
app.include_router(plots_router)
app.include_router(feedback_router)

# ----------------------
# Built front-end (optional)
# ----------------------
SPA_PATHS = ["/admin", "/app", "/privacy", "/terms", "/settings", "/profile", "/feedback"]


def _mount_frontend(dist_dir: Path) -> None:
    index = dist_dir / "index.html"

    async def spa_index():
        return FileResponse(index, headers={"Cache-Control": "no-store"})

    for path in SPA_PATHS:
        app.add_api_route(path, spa_index, methods=["GET"], include_in_schema=False)
        app.add_api_route(f"{path}/{{rest:path}}", spa_index, methods=["GET"], include_in_schema=False)
    app.mount("/", StaticFiles(directory=dist_dir, html=True), name="frontend")


if settings.DIST_DIR and Path(settings.DIST_DIR).is_dir():
    _mount_frontend(Path(settings.DIST_DIR))
    logger.info("Serving front-end from %s", settings.DIST_DIR)


# ----------------------
# Lifecycle
# ----------------------
@app.on_event("startup")
async def on_startup():
    from . import models  # noqa: F401  registers tables on Base
    if not await connect_once():
        spawn(connect_with_retry(), name="db-reconnect")


@app.on_event("shutdown")
async def on_shutdown():
    cancel_all()
    await engine.dispose()
