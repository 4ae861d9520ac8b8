"""Chunked binary storage inside the relational database.

Files are split into fixed-size chunks (``blob_chunk`` rows numbered from 0)
under a ``blob_file`` header row holding the name, content type, total length
and free-form metadata. Readers stream chunks back in order so large files are
never loaded whole unless asked for.
"""
from __future__ import annotations

import logging
from typing import AsyncIterator, Optional

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from .models import BlobChunk, BlobFile
from .settings.config import settings

logger = logging.getLogger(__name__)


class BlobNotFound(Exception):
    pass


class BlobStore:
    def __init__(self, chunk_size: int):
        if chunk_size <= 0:
            raise ValueError("chunk_size must be positive")
        self.chunk_size = chunk_size

    async def upload(
        self,
        db: AsyncSession,
        *,
        filename: str,
        data: bytes,
        content_type: Optional[str] = None,
        metadata: Optional[dict] = None,
    ) -> BlobFile:
        """Write ``data`` as a new file. Flushes but does not commit."""
        blob = BlobFile(
            filename=filename,
            content_type=content_type,
            length=len(data),
            chunk_size=self.chunk_size,
            meta=dict(metadata or {}),
        )
        db.add(blob)
        await db.flush()
        for n, start in enumerate(range(0, len(data), self.chunk_size)):
            db.add(BlobChunk(file_id=blob.id, n=n, data=data[start:start + self.chunk_size]))
        await db.flush()
        logger.debug("Stored blob %s (%s bytes)", blob.id, len(data))
        return blob

    async def get_file(self, db: AsyncSession, file_id: int) -> Optional[BlobFile]:
        return (await db.execute(select(BlobFile).where(BlobFile.id == file_id))).scalars().first()

    async def iter_chunks(self, db: AsyncSession, file_id: int) -> AsyncIterator[bytes]:
        """Yield chunks in order, one query per chunk; stops at the first gap."""
        n = 0
        while True:
            chunk = (
                await db.execute(
                    select(BlobChunk.data).where(BlobChunk.file_id == file_id, BlobChunk.n == n)
                )
            ).scalar_one_or_none()
            if chunk is None:
                return
            yield chunk
            n += 1

    async def read(self, db: AsyncSession, file_id: int) -> bytes:
        if not await self.get_file(db, file_id):
            raise BlobNotFound(file_id)
        parts = [chunk async for chunk in self.iter_chunks(db, file_id)]
        return b"".join(parts)

    async def delete(self, db: AsyncSession, file_id: int) -> None:
        """Remove the file and its chunks. Flushes but does not commit."""
        blob = await self.get_file(db, file_id)
        if not blob:
            raise BlobNotFound(file_id)
        await db.execute(delete(BlobChunk).where(BlobChunk.file_id == file_id))
        await db.delete(blob)
        await db.flush()


BLOBS = BlobStore(chunk_size=settings.BLOB_CHUNK_SIZE)

__all__ = ["BlobStore", "BlobNotFound", "BLOBS"]
