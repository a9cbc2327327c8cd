# --- Pydantic Schemas ---


from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field, computed_field
from pydantic.alias_generators import to_camel


TIMESTAMP_FIELDS = {"created_at", "updated_at"}


def make_identity_key(name: str) -> str:
    """Stable identity used to match records across catalog versions."""
    return " ".join(name.split()).lower()


class CamelModel(BaseModel):
    # snapshots and HTTP payloads use camelCase, python code uses snake_case
    class Config:
        alias_generator = to_camel
        populate_by_name = True
        from_attributes = True


# Product Schemas
class VideoPlatform(str, Enum):
    YOUTUBE = "youtube"
    VIMEO = "vimeo"
    OTHER = "other"


class ProductImage(CamelModel):
    url: str = Field(min_length=1)
    alt_text: Optional[str] = None


class ProductVideo(CamelModel):
    url: str = Field(min_length=1)
    platform: VideoPlatform = VideoPlatform.OTHER
    title: Optional[str] = None


class Product(CamelModel):
    name: str = Field(min_length=1, max_length=100)
    description: str = Field(min_length=1)
    price: float = Field(ge=0)
    inventory: int = Field(ge=0)
    category: str = Field(min_length=1)
    featured: bool = False

    # legacy single-path field, kept in step with images[0] by the resolver
    image_path: Optional[str] = None
    images: List[ProductImage] = Field(default_factory=list)
    video: Optional[ProductVideo] = None

    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def identity_key(self) -> str:
        return make_identity_key(self.name)

    def content(self) -> dict:
        """Every attribute except timestamps, for structural comparison."""
        return self.model_dump(exclude=TIMESTAMP_FIELDS)

    def same_content(self, other: "Product") -> bool:
        return self.content() == other.content()


# Category Schemas
class Category(CamelModel):
    name: str = Field(min_length=1)
    description: Optional[str] = None
    created_at: Optional[datetime] = None


# Sync Schemas
class SyncMode(str, Enum):
    FULL_REPLACE = "full-replace"
    MERGE = "merge"


class OperationKind(str, Enum):
    INSERT = "insert"
    UPDATE = "update"
    DELETE = "delete"
    NOOP = "noop"


class SyncOperation(CamelModel):
    kind: OperationKind
    key: str
    payload: Optional[Product] = None
    previous: Optional[Product] = None

    class Config:
        frozen = True


class RecordFailure(CamelModel):
    key: Optional[str] = None
    kind: Optional[OperationKind] = None
    error: str
    field: Optional[str] = None
    detail: str

    class Config:
        frozen = True


class SyncReport(CamelModel):
    mode: SyncMode
    inserted: int = 0
    updated: int = 0
    deleted: int = 0
    unchanged: int = 0
    failures: List[RecordFailure] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)
    cancelled: bool = False
    deletes_skipped: bool = False

    class Config:
        frozen = True

    @computed_field
    @property
    def failed(self) -> int:
        return len(self.failures)

    @computed_field
    @property
    def status(self) -> str:
        # "noop" = nothing happened, "partial" = some records failed or the run stopped early
        if self.failures or self.cancelled:
            return "partial"
        if self.inserted or self.updated or self.deleted:
            return "ok"
        return "noop"


# Snapshot Schemas
class Snapshot(CamelModel):
    format_version: int
    exported_at: datetime
    records: List[Product] = Field(default_factory=list)


# Request Schemas
class RecordsPayload(BaseModel):
    products: List[dict] = Field(default_factory=list)
