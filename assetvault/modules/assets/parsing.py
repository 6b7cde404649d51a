"""Parsing of the optional multipart fields that accompany an upload."""
import json
import re
import os
from pydantic import ValidationError
from assetvault.core.errors import InvalidUploadError
from assetvault.modules.assets.schemas import AssetPermissions

_UNSAFE = re.compile(r"[^A-Za-z0-9._-]+")


def parse_tags(raw: str | None) -> list[str] | None:
    """JSON array of strings, else a comma separated list. Empty input means no tags."""
    if raw is None or not raw.strip():
        return None
    try:
        parsed = json.loads(raw)
    except ValueError:
        parsed = None
    if isinstance(parsed, list):
        if not all(isinstance(t, str) for t in parsed):
            raise InvalidUploadError("tags must be a JSON array of strings")
        tags = [t.strip() for t in parsed if t.strip()]
    else:
        tags = [t.strip() for t in raw.split(",") if t.strip()]
    return tags or None


def parse_permissions(raw: str | None) -> AssetPermissions:
    """JSON object, else the bare word ``public``; anything else is private."""
    if raw is None or not raw.strip():
        return AssetPermissions()
    try:
        parsed = json.loads(raw)
    except ValueError:
        parsed = None
    if isinstance(parsed, dict):
        try:
            return AssetPermissions.model_validate(parsed)
        except ValidationError as e:
            raise InvalidUploadError(f"permissions are malformed: {e.errors()[0]['msg']}")
    if raw.strip() == "public":
        return AssetPermissions(public=True)
    return AssetPermissions()


def safe_filename(name: str | None) -> str:
    base = os.path.basename((name or "").replace("\\", "/")).strip()
    base = _UNSAFE.sub("_", base).strip("._")
    return base[:200] or "file"
