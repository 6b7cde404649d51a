import uuid
from datetime import datetime
from pydantic import BaseModel

class AssetPermissions(BaseModel):
    """Visibility descriptor stored in ``assets.permissions``.

    ``public`` is the only field the service interprets; unknown keys are kept
    so clients can attach their own policy hints without losing them.
    """
    public: bool = False

    class Config:
        extra = "allow"

class AssetOut(BaseModel):
    id: uuid.UUID
    filename: str
    original_filename: str
    storage_url: str
    owner_id: uuid.UUID | None
    size: int
    mimetype: str
    tags: list[str] | None
    permissions: dict
    created_at: datetime | None = None

    class Config:
        from_attributes = True

class UploadOut(BaseModel):
    message: str
    asset: AssetOut

class AssetDetailOut(BaseModel):
    message: str
    file: AssetOut
    locator: str
    download_url: str | None

class AssetDeletedOut(BaseModel):
    message: str
    asset: AssetOut

class AssetStatsOut(BaseModel):
    total_files: int
    total_storage_bytes: int
