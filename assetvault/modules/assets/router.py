from fastapi import APIRouter, UploadFile, File, Form, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession
from assetvault.core.db import get_session
from assetvault.core.security import get_principal, Principal
from assetvault.modules.assets.schemas import AssetOut, UploadOut, AssetDetailOut, AssetDeletedOut, AssetStatsOut
from assetvault.modules.assets.service import AssetService

router = APIRouter()

def svc(request: Request, session: AsyncSession = Depends(get_session)) -> AssetService:
    state = request.app.state
    return AssetService(session, state.providers.object_storage(), state.settings)

@router.post("/upload", response_model=UploadOut)
async def upload_asset(
    file: UploadFile = File(...),
    tags: str | None = Form(None),
    permissions: str | None = Form(None),
    principal: Principal = Depends(get_principal),
    service: AssetService = Depends(svc),
):
    asset = await service.upload(principal.user_id, file, tags=tags, permissions=permissions)
    return {"message": "File uploaded successfully", "asset": asset}

@router.get("", response_model=list[AssetOut])
async def list_assets(principal: Principal = Depends(get_principal), service: AssetService = Depends(svc)):
    return await service.list_for_owner(principal.user_id)

# must be registered before "/{filename}"
@router.get("/stats", response_model=AssetStatsOut)
async def asset_stats(principal: Principal = Depends(get_principal), service: AssetService = Depends(svc)):
    return await service.stats_for_owner(principal.user_id)

@router.get("/{filename}", response_model=AssetDetailOut)
async def get_asset(filename: str, principal: Principal = Depends(get_principal), service: AssetService = Depends(svc)):
    asset = await service.get_for_owner(filename, principal.user_id)
    return {
        "message": "File found",
        "file": asset,
        "locator": asset.storage_url,
        "download_url": service.download_url(asset),
    }

@router.delete("/{filename}", response_model=AssetDeletedOut)
async def delete_asset(filename: str, principal: Principal = Depends(get_principal), service: AssetService = Depends(svc)):
    asset = await service.delete(filename, principal.user_id)
    return {"message": "File deleted successfully", "asset": asset}
