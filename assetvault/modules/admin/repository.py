from typing import Sequence
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, case, true
from assetvault.modules.assets.models import Asset
from assetvault.modules.users.models import User

class AnalyticsRepository:
    """Read-only aggregates over the users and assets tables."""

    def __init__(self, session: AsyncSession): self.session = session

    async def total_users(self) -> int:
        res = await self.session.execute(select(func.count(User.id))); return int(res.scalar_one())

    async def total_assets(self) -> int:
        res = await self.session.execute(select(func.count(Asset.id))); return int(res.scalar_one())

    async def storage_by_user(self) -> Sequence[tuple]:
        total = func.coalesce(func.sum(Asset.size), 0).label("total_storage_bytes")
        q = (
            select(User.id, User.name, User.email, total)
            .outerjoin(Asset, Asset.owner_id == User.id)
            .group_by(User.id, User.name, User.email)
            .order_by(total.desc(), User.email)
        )
        res = await self.session.execute(q)
        return res.all()

    async def visibility_counts(self) -> tuple[int, int]:
        is_public = Asset.permissions["public"].as_boolean()
        public_files = func.coalesce(func.sum(case((is_public == true(), 1), else_=0)), 0)
        res = await self.session.execute(select(public_files, func.count(Asset.id)))
        public, total = res.one()
        public, total = int(public), int(total)
        return public, total - public
