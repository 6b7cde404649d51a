from sqlalchemy.ext.asyncio import AsyncSession
from assetvault.core.db import ledger_guard
from assetvault.modules.admin.repository import AnalyticsRepository
from assetvault.modules.users.repository import UserRepository

class AdminService:
    def __init__(self, s: AsyncSession):
        self.s = s; self.repo = AnalyticsRepository(s); self.users = UserRepository(s)

    async def list_users(self):
        async with ledger_guard(self.s, "list users"):
            return await self.users.list_all()

    async def user_count(self) -> dict:
        async with ledger_guard(self.s, "count users"):
            return {"total_users": await self.repo.total_users()}

    async def asset_count(self) -> dict:
        async with ledger_guard(self.s, "count assets"):
            return {"total_assets": await self.repo.total_assets()}

    async def storage_by_user(self) -> list[dict]:
        async with ledger_guard(self.s, "sum storage per user"):
            rows = await self.repo.storage_by_user()
        return [
            {"id": r.id, "name": r.name, "email": r.email, "total_storage_bytes": int(r.total_storage_bytes)}
            for r in rows
        ]

    async def visibility(self) -> dict:
        async with ledger_guard(self.s, "count asset visibility"):
            public, private = await self.repo.visibility_counts()
        return {"public_files": public, "private_files": private}
