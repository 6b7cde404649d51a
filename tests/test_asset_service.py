"""Tests for the upload/delete orchestration in AssetService."""

import asyncio
import logging
import uuid
from unittest.mock import AsyncMock

import pytest
from sqlalchemy import delete, select
from sqlalchemy.exc import OperationalError

from assetvault.core.errors import (
    InvalidUploadError,
    NotFoundError,
    ObjectStoreError,
    OrphanResourceError,
)
from assetvault.modules.assets import service as service_module
from assetvault.modules.assets.service import AssetService
from assetvault.modules.audit.models import ActivityLog
from assetvault.modules.users.models import User

TEN_BYTES = b"\xff\xd8\xff\xe0JFIF\x00\x01"
SIX_MIB = b"\x00" * (6 * 1024 * 1024)


@pytest.fixture
def service(session, storage, settings):
    return AssetService(session, storage, settings)


@pytest.fixture
async def owner_id(make_user):
    return (await make_user()).id


class TestUploadValidation:
    """Rejections that must happen before anything is stored."""

    @pytest.mark.asyncio
    async def test_rejects_disallowed_mimetype(self, service, storage, owner_id, make_upload, staged_files):
        with pytest.raises(InvalidUploadError):
            await service.upload(owner_id, make_upload(b"hello", "text/plain", "notes.txt"))
        assert storage.calls == []
        assert await service.list_for_owner(owner_id) == []
        assert staged_files() == []

    @pytest.mark.asyncio
    async def test_rejects_declared_oversize(self, service, storage, owner_id, make_upload):
        with pytest.raises(InvalidUploadError):
            await service.upload(owner_id, make_upload(SIX_MIB))
        assert storage.calls == []

    @pytest.mark.asyncio
    async def test_rejects_oversize_stream_without_declared_size(self, service, storage, owner_id, make_upload, staged_files):
        with pytest.raises(InvalidUploadError):
            await service.upload(owner_id, make_upload(SIX_MIB, known_size=False))
        assert storage.calls == []
        assert staged_files() == []

    @pytest.mark.asyncio
    async def test_rejects_malformed_permissions(self, service, storage, owner_id, make_upload):
        with pytest.raises(InvalidUploadError):
            await service.upload(owner_id, make_upload(TEN_BYTES), permissions='{"public": "perhaps"}')
        assert storage.calls == []


class TestUpload:
    @pytest.mark.asyncio
    async def test_successful_upload_is_listed(self, service, storage, owner_id, make_upload, staged_files):
        asset = await service.upload(owner_id, make_upload(TEN_BYTES), tags="a,b,c")

        listed = await service.list_for_owner(owner_id)
        assert [a.id for a in listed] == [asset.id]
        assert listed[0].tags == ["a", "b", "c"]
        assert listed[0].permissions == {"public": False}
        assert listed[0].size == 10
        assert listed[0].mimetype == "image/jpeg"
        assert listed[0].original_filename == "photo.jpg"
        assert listed[0].filename.endswith("-photo.jpg")

        key = storage.key_from_locator(asset.storage_url)
        assert key == f"uploads/{owner_id}/{asset.filename}"
        assert storage.objects[key]["data"] == TEN_BYTES
        assert storage.objects[key]["public"] is False
        assert staged_files() == []

    @pytest.mark.asyncio
    async def test_public_upload_marks_object_public(self, service, storage, owner_id, make_upload):
        asset = await service.upload(owner_id, make_upload(b"%PDF-1.4", "application/pdf", "doc.pdf"), permissions="public")
        assert asset.permissions == {"public": True}
        assert storage.objects[storage.key_from_locator(asset.storage_url)]["public"] is True

    @pytest.mark.asyncio
    async def test_uploads_never_collide(self, service, owner_id, make_upload):
        first = await service.upload(owner_id, make_upload(TEN_BYTES))
        second = await service.upload(owner_id, make_upload(TEN_BYTES))
        assert first.id != second.id
        assert first.filename != second.filename
        listed = await service.list_for_owner(owner_id)
        assert [a.id for a in listed] == [second.id, first.id]

    @pytest.mark.asyncio
    async def test_transfer_failure_leaves_nothing(self, service, storage, owner_id, make_upload, staged_files):
        storage.fail_put = True
        with pytest.raises(ObjectStoreError):
            await service.upload(owner_id, make_upload(TEN_BYTES))
        assert await service.list_for_owner(owner_id) == []
        assert storage.objects == {}
        assert staged_files() == []

    @pytest.mark.asyncio
    async def test_staging_writes_run_in_threadpool(self, service, owner_id, make_upload, monkeypatch):
        offloaded = []
        real = service_module.run_in_threadpool

        async def _recording(func, *args, **kwargs):
            offloaded.append(func.__name__)
            return await real(func, *args, **kwargs)

        monkeypatch.setattr(service_module, "run_in_threadpool", _recording)
        await service.upload(owner_id, make_upload(TEN_BYTES))
        assert offloaded == ["write", "put_file"]

    @pytest.mark.asyncio
    async def test_ledger_failure_after_transfer_is_an_orphan(self, service, session, storage, owner_id, make_upload, caplog, monkeypatch):
        monkeypatch.setattr(
            session, "commit", AsyncMock(side_effect=OperationalError("INSERT", {}, Exception("ledger down")))
        )
        with caplog.at_level(logging.ERROR, logger="assets.orphans"):
            with pytest.raises(OrphanResourceError) as exc_info:
                await service.upload(owner_id, make_upload(TEN_BYTES))

        assert exc_info.value.key in storage.objects
        assert any("orphaned object" in r.getMessage() for r in caplog.records if r.name == "assets.orphans")


class TestDelete:
    @pytest.mark.asyncio
    async def test_delete_twice(self, service, storage, owner_id, make_upload):
        asset = await service.upload(owner_id, make_upload(TEN_BYTES))
        key = storage.key_from_locator(asset.storage_url)

        deleted = await service.delete(asset.filename, owner_id)
        assert deleted.id == asset.id
        assert key not in storage.objects
        assert await service.list_for_owner(owner_id) == []

        with pytest.raises(NotFoundError):
            await service.delete(asset.filename, owner_id)

    @pytest.mark.asyncio
    async def test_non_owner_gets_not_found(self, service, storage, owner_id, make_upload):
        asset = await service.upload(owner_id, make_upload(TEN_BYTES))
        with pytest.raises(NotFoundError):
            await service.delete(asset.filename, uuid.uuid4())
        assert storage.key_from_locator(asset.storage_url) in storage.objects
        assert len(await service.list_for_owner(owner_id)) == 1

    @pytest.mark.asyncio
    async def test_admin_delete_ignores_ownership(self, service, storage, owner_id, make_upload, make_user):
        admin = await make_user(role="admin")
        asset = await service.upload(owner_id, make_upload(TEN_BYTES))
        deleted = await service.delete(asset.filename, admin.id, is_admin=True)
        assert deleted.id == asset.id
        assert storage.objects == {}

    @pytest.mark.asyncio
    async def test_object_delete_failure_is_an_orphan(self, service, storage, owner_id, make_upload, caplog):
        asset = await service.upload(owner_id, make_upload(TEN_BYTES))
        storage.fail_delete = True

        with caplog.at_level(logging.ERROR, logger="assets.orphans"):
            with pytest.raises(OrphanResourceError) as exc_info:
                await service.delete(asset.filename, owner_id)

        assert exc_info.value.asset_id == str(asset.id)
        # the ledger row is authoritative and already gone
        assert await service.list_for_owner(owner_id) == []
        assert any(r.name == "assets.orphans" for r in caplog.records)

    @pytest.mark.asyncio
    async def test_concurrent_deletes_have_one_winner(self, db, service, storage, settings, owner_id, make_upload):
        asset = await service.upload(owner_id, make_upload(TEN_BYTES))
        key = storage.key_from_locator(asset.storage_url)

        async def _delete():
            async with db.session() as s:
                return await AssetService(s, storage, settings).delete(asset.filename, owner_id)

        results = await asyncio.gather(_delete(), _delete(), return_exceptions=True)
        winners = [r for r in results if not isinstance(r, BaseException)]
        losers = [r for r in results if isinstance(r, BaseException)]

        assert [w.id for w in winners] == [asset.id]
        assert len(losers) == 1
        assert isinstance(losers[0], NotFoundError)
        assert storage.calls.count(("delete", key)) == 1


class TestOwnerRemoval:
    @pytest.mark.asyncio
    async def test_assets_outlive_their_owner(self, service, session, storage, owner_id, make_upload, make_user):
        admin = await make_user(role="admin")
        asset = await service.upload(owner_id, make_upload(TEN_BYTES))

        await session.execute(delete(User).where(User.id == owner_id))
        await session.commit()
        session.expire_all()

        remaining = await service.list_all()
        assert [a.id for a in remaining] == [asset.id]
        assert remaining[0].owner_id is None
        logs = (await session.execute(select(ActivityLog).where(ActivityLog.asset_id == asset.id))).scalars().all()
        assert [entry.user_id for entry in logs] == [None]

        deleted = await service.delete(asset.filename, admin.id, is_admin=True)
        assert deleted.id == asset.id
        assert storage.objects == {}
        assert await service.list_all() == []


class TestReads:
    @pytest.mark.asyncio
    async def test_get_for_owner(self, service, owner_id, make_upload):
        asset = await service.upload(owner_id, make_upload(TEN_BYTES))
        found = await service.get_for_owner(asset.filename, owner_id)
        assert found.id == asset.id
        assert service.download_url(found).startswith(asset.storage_url)
        with pytest.raises(NotFoundError):
            await service.get_for_owner(asset.filename, uuid.uuid4())

    @pytest.mark.asyncio
    async def test_stats_for_owner_with_no_assets(self, service, owner_id):
        assert await service.stats_for_owner(owner_id) == {"total_files": 0, "total_storage_bytes": 0}

    @pytest.mark.asyncio
    async def test_stats_for_owner(self, service, owner_id, make_upload, make_user):
        await service.upload(owner_id, make_upload(TEN_BYTES))
        await service.upload(owner_id, make_upload(b"\x89PNG\r\n", "image/png", "a.png"))
        await service.upload((await make_user()).id, make_upload(TEN_BYTES))
        assert await service.stats_for_owner(owner_id) == {"total_files": 2, "total_storage_bytes": 16}
