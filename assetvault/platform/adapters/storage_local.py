import os
import logging
import shutil
from urllib.parse import quote, unquote
from assetvault.platform.ports.object_storage import ObjectStoragePort, StoreResult

log = logging.getLogger("storage.local")

class LocalFilesystemStorage(ObjectStoragePort):
    def __init__(self, root: str):
        self.root = os.path.abspath(root)
        os.makedirs(self.root, exist_ok=True)

    def _path(self, key: str) -> str:
        safe = key.strip("/").replace("..", "")
        return os.path.join(self.root, safe)

    def _locator(self, key: str) -> str:
        return f"file://{quote(self._path(key))}"

    def put_file(self, key: str, path: str, content_type: str, public: bool = False) -> StoreResult:
        # no ACLs on a local disk; visibility only lives in the ledger
        dest = self._path(key)
        try:
            os.makedirs(os.path.dirname(dest), exist_ok=True)
            shutil.copyfile(path, dest)
        except OSError as e:
            log.warning(f"local put failed key={key}: {e}")
            return StoreResult.failure(str(e))
        return StoreResult.success(self._locator(key))

    def delete(self, key: str) -> StoreResult:
        path = self._path(key)
        try:
            if os.path.exists(path):
                os.remove(path)
        except OSError as e:
            log.warning(f"local delete failed key={key}: {e}")
            return StoreResult.failure(str(e))
        return StoreResult.success()

    def key_from_locator(self, locator: str) -> str | None:
        if not locator.startswith("file://"):
            return None
        path = os.path.abspath(unquote(locator[len("file://"):]))
        if os.path.commonpath([path, self.root]) != self.root:
            return None
        return os.path.relpath(path, self.root).replace(os.sep, "/")

    def presign_download(self, key: str, expires_seconds: int = 900) -> str:
        # For local dev, expose a static-like path; in real setups, serve via nginx or an API proxy.
        return self._locator(key)
