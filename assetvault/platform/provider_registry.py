from assetvault.core.config import Settings
from assetvault.platform.ports.object_storage import ObjectStoragePort
from assetvault.platform.adapters.storage_local import LocalFilesystemStorage
from assetvault.platform.adapters.storage_s3 import S3Storage

class ProviderRegistry:
    def __init__(self, settings: Settings):
        self.settings = settings
        self._object_storage: ObjectStoragePort | None = None

    def object_storage(self) -> ObjectStoragePort:
        if self._object_storage is None:
            if self.settings.OBJECT_STORAGE_PROVIDER == "s3":
                self._object_storage = S3Storage(self.settings)
            else:
                self._object_storage = LocalFilesystemStorage(self.settings.LOCAL_STORAGE_ROOT)
        return self._object_storage

    def override_object_storage(self, storage: ObjectStoragePort) -> None:
        self._object_storage = storage
