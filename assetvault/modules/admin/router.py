from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from assetvault.core.db import get_session
from assetvault.core.security import require_roles, Principal, ROLE_ADMIN
from assetvault.modules.admin.service import AdminService
from assetvault.modules.admin.schemas import UserCountOut, AssetCountOut, StorageByUserOut, VisibilityOut
from assetvault.modules.assets.schemas import AssetOut, AssetDeletedOut
from assetvault.modules.assets.router import svc as asset_svc
from assetvault.modules.assets.service import AssetService
from assetvault.modules.users.schemas import UserOut

router = APIRouter(dependencies=[Depends(require_roles(ROLE_ADMIN))])

def svc(s: AsyncSession = Depends(get_session)) -> AdminService: return AdminService(s)

@router.get("/users", response_model=list[UserOut])
async def list_users(service: AdminService = Depends(svc)):
    return await service.list_users()

@router.get("/assets", response_model=list[AssetOut])
async def list_assets(service: AssetService = Depends(asset_svc)):
    return await service.list_all()

@router.delete("/assets/{filename}", response_model=AssetDeletedOut)
async def delete_asset(filename: str, principal: Principal = Depends(require_roles(ROLE_ADMIN)), service: AssetService = Depends(asset_svc)):
    asset = await service.delete(filename, principal.user_id, is_admin=True)
    return {"message": "Asset deleted by admin", "asset": asset}

@router.get("/stats/users", response_model=UserCountOut)
async def user_stats(service: AdminService = Depends(svc)):
    return await service.user_count()

@router.get("/stats/assets", response_model=AssetCountOut)
async def asset_stats(service: AdminService = Depends(svc)):
    return await service.asset_count()

@router.get("/stats/storage", response_model=list[StorageByUserOut])
async def storage_stats(service: AdminService = Depends(svc)):
    return await service.storage_by_user()

@router.get("/stats/visibility", response_model=VisibilityOut)
async def visibility_stats(service: AdminService = Depends(svc)):
    return await service.visibility()
