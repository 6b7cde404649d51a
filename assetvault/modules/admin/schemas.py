import uuid
from pydantic import BaseModel

class UserCountOut(BaseModel):
    total_users: int

class AssetCountOut(BaseModel):
    total_assets: int

class StorageByUserOut(BaseModel):
    id: uuid.UUID
    name: str | None
    email: str
    total_storage_bytes: int

class VisibilityOut(BaseModel):
    public_files: int
    private_files: int
