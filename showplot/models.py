from sqlalchemy import (
    Column, Integer, String, Boolean, ForeignKey, Text, DateTime, func,
    UniqueConstraint, Index, LargeBinary,
)
from sqlalchemy.orm import relationship
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import JSONB
from .database import Base

# Plain JSON everywhere, JSONB on postgres
JSON = sa.JSON().with_variant(JSONB(), "postgresql")


# ---------------------------
# USER MODEL
# ---------------------------
class User(Base):
    __tablename__ = "user"

    id = Column(Integer, primary_key=True, index=True)
    google_sub = Column(String, unique=True, index=True, nullable=False)
    email = Column(String, index=True, nullable=False, default="")
    name = Column(String, nullable=False, default="")
    picture = Column(String, nullable=False, default="")
    # Google-only sign-in; kept for the fastapi-users user protocol and never verifiable
    hashed_password = Column(String, nullable=False, default="!")
    is_active = Column(Boolean, default=True, nullable=False)
    is_superuser = Column(Boolean, default=False, nullable=False)
    is_verified = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    plots = relationship("StagePlot", back_populates="user", cascade="all, delete-orphan", passive_deletes=True)


# ---------------------------
# BLOB STORE (chunked files)
# ---------------------------
class BlobFile(Base):
    __tablename__ = "blob_file"

    id = Column(Integer, primary_key=True, index=True)
    filename = Column(String, nullable=False, default="")
    content_type = Column(String, nullable=True)
    length = Column(Integer, nullable=False, default=0)
    chunk_size = Column(Integer, nullable=False)
    upload_date = Column(DateTime(timezone=True), server_default=func.now())
    meta = Column("metadata", JSON, nullable=True)

    chunks = relationship(
        "BlobChunk",
        back_populates="file",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="BlobChunk.n",
    )


class BlobChunk(Base):
    __tablename__ = "blob_chunk"
    __table_args__ = (UniqueConstraint("file_id", "n", name="uq_blob_chunk_file_n"),)

    id = Column(Integer, primary_key=True)
    file_id = Column(Integer, ForeignKey("blob_file.id", ondelete="CASCADE"), index=True, nullable=False)
    n = Column(Integer, nullable=False)
    data = Column(LargeBinary, nullable=False)

    file = relationship("BlobFile", back_populates="chunks")


# ---------------------------
# ASSET LIBRARY
# ---------------------------
class Asset(Base):
    __tablename__ = "asset"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    category = Column(String, nullable=False, default="")
    section = Column(String, nullable=False, default="")
    # no FK: deleting the asset row and the blob are separate steps
    file_id = Column(Integer, nullable=False)
    meta = Column("metadata", JSON, nullable=False, default=dict)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    def __repr__(self):
        return f"<Asset {self.name}>"


class Taxonomy(Base):
    """Singleton row: categories = [{"name": str, "sections": [str, ...]}]."""

    __tablename__ = "taxonomy"

    id = Column(Integer, primary_key=True)
    categories = Column(JSON, nullable=False, default=list)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())


# ---------------------------
# STAGE PLOTS
# ---------------------------
class StagePlot(Base):
    __tablename__ = "stage_plot"
    __table_args__ = (Index("ix_stage_plot_user_updated", "user_id", "updated_at"),)

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("user.id", ondelete="CASCADE"), index=True, nullable=False)
    name = Column(String, nullable=False, default="")
    state = Column(JSON, nullable=False, default=list)
    # legacy input list; written empty, returned as stored
    inputs = Column(JSON, nullable=False, default=list)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    user = relationship("User", back_populates="plots")


# ---------------------------
# FEEDBACK
# ---------------------------
class Feedback(Base):
    __tablename__ = "feedback"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("user.id", ondelete="SET NULL"), index=True, nullable=True)
    email = Column(String, nullable=False, default="")
    name = Column(String, nullable=False, default="")
    message = Column(Text, nullable=False)
    page = Column(String, nullable=False, default="")
    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)
