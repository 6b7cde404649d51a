from dataclasses import dataclass
from typing import Protocol, runtime_checkable

@dataclass(frozen=True)
class StoreResult:
    """Outcome of a transfer or removal; adapters report failures here instead of raising."""
    ok: bool
    locator: str | None = None
    error: str | None = None

    @classmethod
    def success(cls, locator: str | None = None) -> "StoreResult":
        return cls(ok=True, locator=locator)

    @classmethod
    def failure(cls, error: str) -> "StoreResult":
        return cls(ok=False, error=error)

@runtime_checkable
class ObjectStoragePort(Protocol):
    def put_file(self, key: str, path: str, content_type: str, public: bool = False) -> StoreResult: ...

    def delete(self, key: str) -> StoreResult: ...

    def key_from_locator(self, locator: str) -> str | None: ...

    def presign_download(self, key: str, expires_seconds: int = 900) -> str: ...
