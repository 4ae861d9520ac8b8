# services/assets.py
import logging
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from showplot.blobstore import BLOBS, BlobNotFound
from showplot.media import AssetArtifact
from showplot.models import Asset
from showplot.services import taxonomy

logger = logging.getLogger(__name__)

UNCATEGORIZED = "Uncategorized"
GENERAL_SECTION = "General"


async def list_assets(db: AsyncSession) -> list[Asset]:
    rows = await db.execute(select(Asset).order_by(Asset.created_at.desc(), Asset.id.desc()))
    return list(rows.scalars().all())


async def create_asset(
    db: AsyncSession,
    artifact: AssetArtifact,
    *,
    name: str = "",
    category: str = "",
    section: str = "",
) -> Asset:
    blob = await BLOBS.upload(
        db,
        filename=artifact.filename,
        data=artifact.data,
        content_type=artifact.content_type,
        metadata={"original_name": artifact.filename},
    )
    asset = Asset(
        name=name or artifact.filename,
        category=category or "",
        section=section or "",
        file_id=blob.id,
        meta=artifact.metadata(),
    )
    db.add(asset)
    await db.commit()
    await db.refresh(asset)
    logger.info("Asset %s uploaded (%s, %s bytes)", asset.id, artifact.content_type, artifact.size_bytes)

    await taxonomy.upsert_category_section(db, category, section)
    return asset


async def update_asset(db: AsyncSession, asset_id: int, patch: dict) -> Optional[Asset]:
    asset = await db.get(Asset, asset_id)
    if not asset:
        return None
    for key in ("name", "category", "section"):
        if isinstance(patch.get(key), str):
            setattr(asset, key, patch[key])
    await db.commit()
    await db.refresh(asset)

    await taxonomy.upsert_category_section(db, asset.category, asset.section)
    return asset


async def delete_asset(db: AsyncSession, asset_id: int) -> bool:
    """Drop the asset record, then its blob. A failed blob delete is only logged."""
    asset = await db.get(Asset, asset_id)
    if not asset:
        return False
    file_id = asset.file_id
    await db.delete(asset)
    await db.commit()

    if file_id:
        try:
            await BLOBS.delete(db, file_id)
            await db.commit()
        except BlobNotFound:
            logger.warning("Blob %s for asset %s was already gone", file_id, asset_id)
        except Exception:  # noqa: BLE001
            await db.rollback()
            logger.exception("Failed to delete blob %s for asset %s", file_id, asset_id)
    return True


def _label(value, fallback: str) -> str:
    v = value.strip() if isinstance(value, str) else ""
    return v or fallback


def group_library(assets: list[Asset]) -> list[dict]:
    """Group assets by category then section; everything sorted by name."""
    by_category: dict[str, dict[str, list[Asset]]] = {}
    for asset in assets:
        category = _label(asset.category, UNCATEGORIZED)
        section = _label(asset.section, GENERAL_SECTION)
        by_category.setdefault(category, {}).setdefault(section, []).append(asset)

    return [
        {
            "category": category,
            "sections": [
                {
                    "section": section,
                    "items": sorted(items, key=lambda a: str(a.name or "").lower()),
                }
                for section, items in sorted(sections.items(), key=lambda kv: kv[0].lower())
            ],
        }
        for category, sections in sorted(by_category.items(), key=lambda kv: kv[0].lower())
    ]
