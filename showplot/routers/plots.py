from __future__ import annotations

import logging
from typing import Literal

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import JSONResponse, Response
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from showplot.background import run_sync
from showplot.blobstore import BLOBS, BlobNotFound
from showplot.database import get_db
from showplot.editor import export
from showplot.editor.inputs import build_input_rows
from showplot.editor.nodes import EditError
from showplot.media import PNG_TYPES
from showplot.models import Asset
from showplot.schemas import EditBatch, EditResult, OkResponse, PlotRead, PlotSave, PlotSummary
from showplot.services import editing
from showplot.services import plots as plot_service
from showplot.settings.config import settings
from showplot.users import require_authenticated_user

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/plots", tags=["plots"])

EXPORT_TYPES = {
    "csv": "text/csv; charset=utf-8",
    "xlsx": "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    "pdf": "application/pdf",
}


def _summary(plot) -> PlotSummary:
    return PlotSummary(
        id=plot.id,
        name=plot_service.display_name(plot),
        created_at=plot.created_at,
        updated_at=plot.updated_at,
    )


def _path_plot_id(plot_id: str) -> int:
    try:
        return plot_service.parse_plot_id(plot_id)
    except plot_service.InvalidPlotId:
        raise HTTPException(status_code=400, detail="Invalid plot id")


async def _owned(db: AsyncSession, user, plot_id: int):
    try:
        return await plot_service.get_for_user(db, user.id, plot_id)
    except plot_service.PlotNotFound:
        raise HTTPException(status_code=404, detail="Plot not found")


@router.get("", response_model=list[PlotSummary])
async def list_plots(user=Depends(require_authenticated_user), db: AsyncSession = Depends(get_db)):
    return [_summary(p) for p in await plot_service.list_for_user(db, user.id)]


@router.post("")
async def save_plot(payload: PlotSave, user=Depends(require_authenticated_user), db: AsyncSession = Depends(get_db)):
    state = [node.model_dump() for node in payload.state or []]
    name = (payload.name or "").strip()
    raw_id = "" if payload.plot_id is None else str(payload.plot_id).strip()

    plot_id = None
    if raw_id:
        try:
            plot_id = plot_service.parse_plot_id(raw_id)
        except plot_service.InvalidPlotId:
            raise HTTPException(status_code=400, detail="Invalid plot id")

    try:
        plot, created = await plot_service.save(db, user.id, state=state, name=name, plot_id=plot_id)
    except plot_service.PlotNotFound:
        raise HTTPException(status_code=404, detail="Plot not found")
    return JSONResponse({"id": plot.id}, status_code=201 if created else 200)


@router.get("/{plot_id}", response_model=PlotRead)
async def get_plot(plot_id: int = Depends(_path_plot_id), user=Depends(require_authenticated_user), db: AsyncSession = Depends(get_db)):
    plot = await _owned(db, user, plot_id)
    return PlotRead(
        **_summary(plot).model_dump(),
        state=plot.state or [],
        inputs=plot.inputs or [],
    )


@router.delete("/{plot_id}", response_model=OkResponse)
async def delete_plot(plot_id: int = Depends(_path_plot_id), user=Depends(require_authenticated_user), db: AsyncSession = Depends(get_db)):
    try:
        await plot_service.delete_for_user(db, user.id, plot_id)
    except plot_service.PlotNotFound:
        raise HTTPException(status_code=404, detail="Plot not found")
    editing.SESSIONS.drop(user.id, plot_id)
    return OkResponse()


# ----------------------
# Editing with undo/redo
# ----------------------
@router.post("/{plot_id}/edits", response_model=EditResult)
async def edit_plot(
    payload: EditBatch,
    plot_id: int = Depends(_path_plot_id),
    user=Depends(require_authenticated_user),
    db: AsyncSession = Depends(get_db),
):
    try:
        return await editing.apply_edits(db, user.id, plot_id, payload.ops)
    except plot_service.PlotNotFound:
        raise HTTPException(status_code=404, detail="Plot not found")
    except EditError as exc:
        raise HTTPException(status_code=400, detail=str(exc) or exc.__class__.__name__)


@router.post("/{plot_id}/{direction}", response_model=EditResult)
async def step_plot(
    direction: Literal["undo", "redo"],
    plot_id: int = Depends(_path_plot_id),
    user=Depends(require_authenticated_user),
    db: AsyncSession = Depends(get_db),
):
    try:
        return await editing.step(db, user.id, plot_id, direction)
    except plot_service.PlotNotFound:
        raise HTTPException(status_code=404, detail="Plot not found")


# ----------------------
# Exports
# ----------------------
async def _png_images(db: AsyncSession, assets: list[Asset], wanted: set[str]) -> dict[str, bytes]:
    images: dict[str, bytes] = {}
    for asset in assets:
        key = str(asset.id)
        if key not in wanted or (asset.meta or {}).get("content_type") not in PNG_TYPES:
            continue
        try:
            images[key] = await BLOBS.read(db, asset.file_id)
        except BlobNotFound:
            logger.warning("Asset %s has no blob; drawing placeholder", asset.id)
    return images


@router.get("/{plot_id}/export/{fmt}")
async def export_plot(
    fmt: Literal["csv", "xlsx", "pdf"],
    plot_id: int = Depends(_path_plot_id),
    user=Depends(require_authenticated_user),
    db: AsyncSession = Depends(get_db),
):
    plot = await _owned(db, user, plot_id)
    nodes = list(plot.state or [])
    wanted = {str(n.get("asset_id")) for n in nodes if n.get("asset_id") is not None}
    assets = list((await db.execute(select(Asset))).scalars().all()) if wanted else []
    assets_by_id = {str(a.id): a for a in assets}
    rows = build_input_rows(nodes, assets_by_id)
    name = plot_service.display_name(plot)
    title = settings.EXPORT_TITLE or f"{name.upper()} CHANNEL LIST"

    if fmt == "csv":
        body = export.to_csv(rows, title).encode("utf-8")
        filename = "showplot-inputs.csv"
    elif fmt == "xlsx":
        body = await run_sync(export.to_xlsx, rows, title)
        filename = "showplot-inputs.xlsx"
    else:
        images = await _png_images(db, assets, wanted)
        names = {key: a.name for key, a in assets_by_id.items()}
        body = await run_sync(export.to_pdf, title, nodes, rows, images, names)
        filename = f"{export.safe_filename(name) or 'showplot'}-inputs.pdf"

    logger.info("Exported plot %s as %s (%d inputs)", plot.id, fmt, len(rows))
    return Response(
        content=body,
        media_type=EXPORT_TYPES[fmt],
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


__all__ = ["router"]
