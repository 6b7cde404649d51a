import os
import time
import uuid
import logging
import tempfile
from typing import Sequence
from fastapi import UploadFile
from fastapi.concurrency import run_in_threadpool
from sqlalchemy.ext.asyncio import AsyncSession
from assetvault.core.config import Settings
from assetvault.core.db import ledger_guard
from assetvault.core.errors import (
    InvalidUploadError, NotFoundError, ObjectStoreError, OrphanResourceError, StorageUnavailableError,
)
from assetvault.platform.ports.object_storage import ObjectStoragePort
from assetvault.modules.assets.repository import AssetRepository
from assetvault.modules.assets.models import Asset
from assetvault.modules.assets.parsing import parse_tags, parse_permissions, safe_filename
from assetvault.modules.audit.service import ActivityLogService

log = logging.getLogger(__name__)
orphans = logging.getLogger("assets.orphans")

CHUNK_SIZE = 64 * 1024

class AssetService:
    """Keeps the object store and the asset ledger in step.

    Upload writes the object first and the ledger row second, so a row never
    points at a missing object. Delete removes the row first and the object
    second, so a missing row is always the authoritative "gone" signal. When
    the second step fails the first is not undone; the leftover object is
    reported as an ``OrphanResourceError`` and logged on ``assets.orphans``.
    """

    def __init__(self, session: AsyncSession, storage: ObjectStoragePort, settings: Settings):
        self.session = session
        self.storage = storage
        self.settings = settings
        self.repo = AssetRepository(session)
        self.activity = ActivityLogService(session)

    async def upload(self, owner_id: uuid.UUID, file: UploadFile, *,
                     tags: str | None = None, permissions: str | None = None) -> Asset:
        content_type = (file.content_type or "").split(";")[0].strip().lower()
        if content_type not in self.settings.ALLOWED_MIME_TYPES:
            raise InvalidUploadError("Only JPEG, PNG, and PDF files are allowed")
        if file.size is not None and file.size > self.settings.MAX_UPLOAD_BYTES:
            raise InvalidUploadError(self._too_large_message())
        parsed_tags = parse_tags(tags)
        parsed_permissions = parse_permissions(permissions)

        original = safe_filename(file.filename)
        filename = f"{time.time_ns()}-{original}"
        key = f"{self.settings.STORAGE_KEY_PREFIX}{owner_id}/{filename}"

        staged_path, size = await self._stage(file)
        try:
            result = await run_in_threadpool(
                self.storage.put_file, key, staged_path, content_type, parsed_permissions.public
            )
        finally:
            self._discard(staged_path)
        if not result.ok:
            raise ObjectStoreError(f"Upload to object store failed: {result.error}")

        try:
            async with ledger_guard(self.session, "record uploaded asset"):
                asset = await self.repo.create(
                    owner_id,
                    filename=filename,
                    original_filename=original,
                    storage_url=result.locator,
                    mimetype=content_type,
                    size=size,
                    tags=parsed_tags,
                    permissions=parsed_permissions.model_dump(),
                )
                self.activity.record("asset_uploaded", owner_id, asset.id, f"Uploaded {filename} ({size} bytes)")
                await self.session.commit()
        except StorageUnavailableError as e:
            orphans.error(f"orphaned object after failed ledger insert key={key} locator={result.locator} owner={owner_id}")
            raise OrphanResourceError(
                "File was stored but could not be recorded; an operator must reconcile it",
                key=key, locator=result.locator,
            ) from e
        log.info(f"asset {asset.id} uploaded by {owner_id} key={key}")
        return asset

    async def delete(self, filename: str, requester_id: uuid.UUID, is_admin: bool = False) -> Asset:
        async with ledger_guard(self.session, "delete asset"):
            if is_admin:
                asset = await self.repo.delete_by_filename(filename)
            else:
                asset = await self.repo.delete_by_filename_and_owner(filename, requester_id)
            if asset is not None:
                event = "asset_deleted_by_admin" if is_admin else "asset_deleted"
                self.activity.record(event, requester_id, asset.id, f"Deleted {filename}")
                await self.session.commit()
        if asset is None:
            raise NotFoundError("File not found or not owned by user")

        key = self.storage.key_from_locator(asset.storage_url)
        if key is None:
            self._raise_orphan(asset, None, "locator does not belong to the configured object store")
        result = await run_in_threadpool(self.storage.delete, key)
        if not result.ok:
            self._raise_orphan(asset, key, result.error)
        log.info(f"asset {asset.id} deleted by {requester_id} admin={is_admin}")
        return asset

    async def list_for_owner(self, owner_id: uuid.UUID) -> Sequence[Asset]:
        async with ledger_guard(self.session, "list assets"):
            return await self.repo.list_by_owner(owner_id)

    async def list_all(self) -> Sequence[Asset]:
        async with ledger_guard(self.session, "list all assets"):
            return await self.repo.list_all()

    async def get_for_owner(self, filename: str, owner_id: uuid.UUID) -> Asset:
        async with ledger_guard(self.session, "fetch asset"):
            asset = await self.repo.find_by_filename_and_owner(filename, owner_id)
        if asset is None:
            raise NotFoundError("File not found or not owned by user")
        return asset

    def download_url(self, asset: Asset) -> str | None:
        key = self.storage.key_from_locator(asset.storage_url)
        if key is None:
            return None
        return self.storage.presign_download(key, expires_seconds=self.settings.DOWNLOAD_URL_TTL_SECONDS)

    async def stats_for_owner(self, owner_id: uuid.UUID) -> dict:
        async with ledger_guard(self.session, "compute asset stats"):
            total_files, total_bytes = await self.repo.stats_for_owner(owner_id)
        return {"total_files": total_files, "total_storage_bytes": total_bytes}

    async def _stage(self, file: UploadFile) -> tuple[str, int]:
        """Copy the incoming stream to a private temp file, enforcing the size limit."""
        limit = self.settings.MAX_UPLOAD_BYTES
        try:
            os.makedirs(self.settings.UPLOAD_STAGING_DIR, exist_ok=True)
            fd, path = tempfile.mkstemp(prefix="upload-", dir=self.settings.UPLOAD_STAGING_DIR)
        except OSError as e:
            raise ObjectStoreError(f"Could not stage upload: {e}")
        size = 0
        staged = False
        try:
            with os.fdopen(fd, "wb") as out:
                while True:
                    chunk = await file.read(CHUNK_SIZE)
                    if not chunk:
                        break
                    size += len(chunk)
                    if size > limit:
                        raise InvalidUploadError(self._too_large_message())
                    await run_in_threadpool(out.write, chunk)
            staged = True
        except OSError as e:
            raise ObjectStoreError(f"Could not stage upload: {e}")
        finally:
            if not staged:
                self._discard(path)
        return path, size

    def _discard(self, path: str) -> None:
        try:
            os.remove(path)
        except FileNotFoundError:
            pass
        except OSError:
            log.warning(f"could not remove staged upload {path}", exc_info=True)

    def _too_large_message(self) -> str:
        return f"File exceeds the {self.settings.MAX_UPLOAD_BYTES // (1024 * 1024)} MB limit"

    def _raise_orphan(self, asset: Asset, key: str | None, reason: str | None):
        orphans.error(
            f"orphaned object after ledger delete asset={asset.id} key={key} "
            f"locator={asset.storage_url} reason={reason}"
        )
        raise OrphanResourceError(
            "Asset record was removed but its stored file could not be deleted",
            key=key, locator=asset.storage_url, asset_id=str(asset.id),
        )
