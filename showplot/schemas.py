from pydantic import BaseModel, ConfigDict, Field
from typing import Any, Optional, List, Union
from datetime import datetime

# =========================
# USER SCHEMAS
# =========================
class UserRead(BaseModel):
    id: int
    email: str = ""
    name: str = ""
    picture: str = ""
    is_superuser: bool = False

    model_config = ConfigDict(from_attributes=True)


class MeRead(BaseModel):
    user: Optional[UserRead] = None


class GoogleCredential(BaseModel):
    credential: Optional[str] = None


# =========================
# ASSET SCHEMAS
# =========================
class AssetMeta(BaseModel):
    content_type: Optional[str] = None
    has_alpha: Optional[bool] = None
    width: Optional[int] = None
    height: Optional[int] = None


class AssetRead(BaseModel):
    id: int
    name: str
    category: str = ""
    section: str = ""
    file_id: int
    metadata: AssetMeta = Field(default_factory=AssetMeta, validation_alias="meta")
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True, populate_by_name=True)


class AssetPublic(BaseModel):
    id: int
    name: str
    category: str = ""
    section: str = ""

    model_config = ConfigDict(from_attributes=True)


class AssetPatch(BaseModel):
    # non-string values are ignored rather than rejected
    name: Optional[Any] = None
    category: Optional[Any] = None
    section: Optional[Any] = None

    def string_fields(self) -> dict:
        return {k: v for k, v in self.model_dump().items() if isinstance(v, str)}


class LibrarySection(BaseModel):
    section: str
    items: List[AssetPublic] = []


class LibraryCategory(BaseModel):
    category: str
    sections: List[LibrarySection] = []


# =========================
# TAXONOMY SCHEMAS
# =========================
class TaxonomyCategory(BaseModel):
    name: str
    sections: List[str] = []


class TaxonomyRead(BaseModel):
    id: int
    categories: List[TaxonomyCategory] = []
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class CategoryCreate(BaseModel):
    name: Optional[str] = None


class SectionCreate(BaseModel):
    category: Optional[str] = None
    name: Optional[str] = None


# =========================
# PLOT SCHEMAS
# =========================
class NodeProfile(BaseModel):
    instrument: str = ""
    mic: str = ""
    stand: str = ""
    notes: str = ""
    cables: str = ""


class PlotNode(BaseModel):
    id: str
    type: str = "asset"
    x: float = 0
    y: float = 0
    rotation: float = 0
    scale: float = 1
    label: str = ""
    flip_x: bool = False
    locked: bool = False
    asset_id: Optional[str] = None
    profile: Optional[NodeProfile] = None


class PlotInput(BaseModel):
    id: Optional[str] = None
    channel: Optional[str] = None
    instrument: Optional[str] = None
    mic: Optional[str] = None


class PlotSave(BaseModel):
    plot_id: Optional[Union[int, str]] = None
    name: Optional[str] = None
    state: Optional[List[PlotNode]] = None


class PlotSummary(BaseModel):
    id: int
    name: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class PlotRead(PlotSummary):
    state: List[PlotNode] = []
    inputs: List[PlotInput] = []


class EditBatch(BaseModel):
    ops: List[dict] = []


class EditResult(BaseModel):
    id: int
    state: List[PlotNode] = []
    can_undo: bool = False
    can_redo: bool = False


# =========================
# FEEDBACK / STATS
# =========================
class FeedbackCreate(BaseModel):
    message: Optional[str] = None
    page: Optional[str] = None


class FeedbackRead(BaseModel):
    id: int
    user_id: Optional[int] = None
    email: str = ""
    name: str = ""
    message: str
    page: str = ""
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class StatsRead(BaseModel):
    total_plots: int
    total_assets: int
    total_users: int


class OkResponse(BaseModel):
    ok: bool = True
