from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from showplot.background import run_sync
from showplot.database import get_db
from showplot.media import AssetPipeline, UploadRejected
from showplot.models import Asset, Feedback, User
from showplot.schemas import (
    AssetPatch,
    AssetRead,
    CategoryCreate,
    FeedbackRead,
    OkResponse,
    SectionCreate,
    StatsRead,
    TaxonomyRead,
)
from showplot.services import assets as asset_service
from showplot.services import plots as plot_service
from showplot.services import taxonomy
from showplot.settings.config import settings
from showplot.users import require_admin_user

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/admin", tags=["admin"], dependencies=[Depends(require_admin_user)])

PIPELINE = AssetPipeline(max_bytes=settings.UPLOAD_MAX_BYTES)


# ----------------------
# Assets
# ----------------------
@router.get("/assets", response_model=list[AssetRead])
async def admin_list_assets(db: AsyncSession = Depends(get_db)):
    return await asset_service.list_assets(db)


@router.post("/assets", response_model=AssetRead, status_code=201)
async def admin_upload_asset(
    file: Optional[UploadFile] = File(None),
    name: str = Form(""),
    category: str = Form(""),
    section: str = Form(""),
    db: AsyncSession = Depends(get_db),
):
    if file is None:
        raise HTTPException(status_code=400, detail="Missing upload file")
    # read at most one byte past the limit
    data = await file.read(settings.UPLOAD_MAX_BYTES + 1)
    try:
        artifact = await run_sync(
            PIPELINE.process_upload,
            data=data,
            filename=file.filename or "upload",
            content_type=file.content_type,
        )
    except UploadRejected as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.detail)

    return await asset_service.create_asset(db, artifact, name=name, category=category, section=section)


@router.patch("/assets/{asset_id}", response_model=AssetRead)
async def admin_update_asset(asset_id: int, payload: AssetPatch, db: AsyncSession = Depends(get_db)):
    asset = await asset_service.update_asset(db, asset_id, payload.string_fields())
    if not asset:
        raise HTTPException(status_code=404, detail="Asset not found")
    return asset


@router.delete("/assets/{asset_id}", response_model=OkResponse)
async def admin_delete_asset(asset_id: int, db: AsyncSession = Depends(get_db)):
    if not await asset_service.delete_asset(db, asset_id):
        raise HTTPException(status_code=404, detail="Asset not found")
    logger.info("Asset %s deleted", asset_id)
    return OkResponse()


# ----------------------
# Taxonomy
# ----------------------
@router.get("/taxonomy", response_model=TaxonomyRead)
async def admin_taxonomy(db: AsyncSession = Depends(get_db)):
    return await taxonomy.get_or_create(db)


@router.post("/taxonomy/categories", response_model=TaxonomyRead, status_code=201)
async def admin_add_category(payload: CategoryCreate, db: AsyncSession = Depends(get_db)):
    name = taxonomy.normalize_name(payload.name)
    if not name:
        raise HTTPException(status_code=400, detail="Missing category name")
    return await taxonomy.add_category(db, name)


@router.post("/taxonomy/sections", response_model=TaxonomyRead, status_code=201)
async def admin_add_section(payload: SectionCreate, db: AsyncSession = Depends(get_db)):
    category = taxonomy.normalize_name(payload.category)
    name = taxonomy.normalize_name(payload.name)
    if not category:
        raise HTTPException(status_code=400, detail="Missing category")
    if not name:
        raise HTTPException(status_code=400, detail="Missing section name")
    return await taxonomy.add_section(db, category, name)


# ----------------------
# Stats / feedback
# ----------------------
@router.get("/stats", response_model=StatsRead)
async def admin_stats(db: AsyncSession = Depends(get_db)):
    total_assets = (await db.execute(select(func.count(Asset.id)))).scalar_one()
    total_users = (await db.execute(select(func.count(User.id)))).scalar_one()
    return StatsRead(
        total_plots=await plot_service.count_all(db),
        total_assets=int(total_assets),
        total_users=int(total_users),
    )


@router.get("/feedback", response_model=list[FeedbackRead])
async def admin_feedback(db: AsyncSession = Depends(get_db)):
    rows = await db.execute(select(Feedback).order_by(Feedback.created_at.desc(), Feedback.id.desc()))
    return rows.scalars().all()


__all__ = ["router"]
