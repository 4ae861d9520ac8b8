from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import StreamingResponse
from sqlalchemy.ext.asyncio import AsyncSession

from showplot.blobstore import BLOBS
from showplot.database import async_session_maker, get_db
from showplot.models import Asset
from showplot.schemas import AssetPublic, LibraryCategory
from showplot.services import assets as asset_service

router = APIRouter(prefix="/api/assets", tags=["assets"])

IMMUTABLE_CACHE = "public, max-age=31536000, immutable"


@router.get("", response_model=list[AssetPublic])
async def list_public_assets(db: AsyncSession = Depends(get_db)):
    return await asset_service.list_assets(db)


@router.get("/library", response_model=list[LibraryCategory])
async def asset_library(db: AsyncSession = Depends(get_db)):
    return asset_service.group_library(await asset_service.list_assets(db))


async def _stream_blob(file_id: int):
    # own session: the request-scoped one may close before the body is sent
    async with async_session_maker() as session:
        async for chunk in BLOBS.iter_chunks(session, file_id):
            yield chunk


@router.get("/{asset_id}")
async def asset_file(asset_id: int, db: AsyncSession = Depends(get_db)):
    asset = await db.get(Asset, asset_id)
    if not asset:
        raise HTTPException(status_code=404, detail="Not found")
    blob = await BLOBS.get_file(db, asset.file_id)
    if not blob:
        raise HTTPException(status_code=404, detail="File not found")

    content_type = blob.content_type or (asset.meta or {}).get("content_type") or "application/octet-stream"
    return StreamingResponse(
        _stream_blob(blob.id),
        media_type=content_type,
        headers={"Cache-Control": IMMUTABLE_CACHE, "Content-Length": str(blob.length)},
    )


__all__ = ["router"]
