import uuid
from typing import Sequence
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from assetvault.modules.users.models import User

class UserRepository:
    def __init__(self, session: AsyncSession):
        self.s = session

    async def create(self, *, name: str | None, email: str, password_hash: str, role: str = "user") -> User:
        obj = User(name=name, email=email, password_hash=password_hash, role=role); self.s.add(obj); await self.s.flush(); return obj

    async def get(self, user_id: uuid.UUID) -> User | None:
        r = await self.s.execute(select(User).where(User.id == user_id)); return r.scalar_one_or_none()

    async def get_by_email(self, email: str) -> User | None:
        r = await self.s.execute(select(User).where(User.email == email)); return r.scalar_one_or_none()

    async def list_all(self) -> Sequence[User]:
        r = await self.s.execute(select(User).order_by(User.created_at, User.email)); return r.scalars().all()
