from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession
from assetvault.core.db import get_session
from assetvault.core.security import get_principal, Principal
from assetvault.modules.users.service import UserService
from assetvault.modules.users.schemas import RegisterIn, RegisterOut, LoginIn, TokenOut, ProfileOut

router = APIRouter()

def svc(request: Request, s: AsyncSession = Depends(get_session)) -> UserService:
    return UserService(s, request.app.state.settings)

@router.post("/auth/register", response_model=RegisterOut, status_code=201, tags=["auth"])
async def register(payload: RegisterIn, service: UserService = Depends(svc)):
    user = await service.register(payload)
    return {"message": "User registered successfully", "user": user}

@router.post("/auth/login", response_model=TokenOut, tags=["auth"])
async def login(payload: LoginIn, service: UserService = Depends(svc)):
    token = await service.login(payload)
    return {"message": "Login successful", "token": token}

@router.get("/profile", response_model=ProfileOut, tags=["profile"])
async def profile(principal: Principal = Depends(get_principal), service: UserService = Depends(svc)):
    user = await service.profile(principal.user_id)
    return {"message": "Protected route accessed successfully", "user": user}
