import uuid
from typing import Sequence
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, delete, func
from assetvault.modules.assets.models import Asset

class AssetRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, owner_id: uuid.UUID, *, filename: str, original_filename: str, storage_url: str,
                     mimetype: str, size: int, tags: list[str] | None, permissions: dict | None) -> Asset:
        obj = Asset(
            owner_id=owner_id, filename=filename, original_filename=original_filename,
            storage_url=storage_url, mimetype=mimetype, size=size, tags=tags,
            permissions=permissions if permissions is not None else {"public": False},
        )
        self.session.add(obj)
        await self.session.flush()
        return obj

    async def list_by_owner(self, owner_id: uuid.UUID) -> Sequence[Asset]:
        q = select(Asset).where(Asset.owner_id == owner_id).order_by(Asset.created_at.desc(), Asset.filename.desc())
        res = await self.session.execute(q)
        return res.scalars().all()

    async def list_all(self) -> Sequence[Asset]:
        q = select(Asset).order_by(Asset.created_at.desc(), Asset.filename.desc())
        res = await self.session.execute(q)
        return res.scalars().all()

    async def find_by_filename_and_owner(self, filename: str, owner_id: uuid.UUID) -> Asset | None:
        q = select(Asset).where(Asset.filename == filename, Asset.owner_id == owner_id)
        res = await self.session.execute(q)
        return res.scalar_one_or_none()

    # Deletes are single conditional statements: concurrent callers race on the
    # row itself, exactly one gets it back.
    async def delete_by_filename_and_owner(self, filename: str, owner_id: uuid.UUID) -> Asset | None:
        q = delete(Asset).where(Asset.filename == filename, Asset.owner_id == owner_id).returning(Asset)
        res = await self.session.execute(q)
        return res.scalar_one_or_none()

    async def delete_by_filename(self, filename: str) -> Asset | None:
        q = delete(Asset).where(Asset.filename == filename).returning(Asset)
        res = await self.session.execute(q)
        return res.scalar_one_or_none()

    async def stats_for_owner(self, owner_id: uuid.UUID) -> tuple[int, int]:
        q = select(func.count(Asset.id), func.coalesce(func.sum(Asset.size), 0)).where(Asset.owner_id == owner_id)
        res = await self.session.execute(q)
        total_files, total_bytes = res.one()
        return int(total_files), int(total_bytes)
