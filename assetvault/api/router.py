from fastapi import APIRouter
from assetvault.modules.users.router import router as users_router
from assetvault.modules.assets.router import router as assets_router
from assetvault.modules.admin.router import router as admin_router

api_router = APIRouter()
api_router.include_router(users_router)
api_router.include_router(assets_router, prefix="/assets", tags=["assets"])
api_router.include_router(admin_router, prefix="/admin", tags=["admin"])

@api_router.get("/", tags=["health"])
async def root():
    return {"message": "Server is live and running"}

@api_router.get("/health", tags=["health"])
async def health():
    return {"status": "ok"}
