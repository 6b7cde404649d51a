import logging
from urllib.parse import urlsplit
import boto3
from botocore.client import Config
from boto3.exceptions import S3UploadFailedError
from botocore.exceptions import BotoCoreError, ClientError
from assetvault.platform.ports.object_storage import ObjectStoragePort, StoreResult
from assetvault.core.config import Settings

log = logging.getLogger("storage.s3")

class S3Storage(ObjectStoragePort):
    def __init__(self, settings: Settings, client=None):
        if client is None:
            session = boto3.session.Session(
                aws_access_key_id=settings.S3_ACCESS_KEY,
                aws_secret_access_key=settings.S3_SECRET_KEY,
                region_name=settings.S3_REGION,
            )
            client = session.client(
                "s3",
                endpoint_url=settings.S3_ENDPOINT_URL,
                config=Config(signature_version="s3v4"),
            )
        self.s3 = client
        self.bucket = settings.S3_BUCKET
        self.region = settings.S3_REGION
        self.endpoint_url = settings.S3_ENDPOINT_URL.rstrip("/") if settings.S3_ENDPOINT_URL else None
        self.use_acl = settings.S3_USE_ACL

    def _base_url(self) -> str:
        if self.endpoint_url:
            return f"{self.endpoint_url}/{self.bucket}/"
        return f"https://{self.bucket}.s3.{self.region}.amazonaws.com/"

    def put_file(self, key: str, path: str, content_type: str, public: bool = False) -> StoreResult:
        extra = {"ContentType": content_type}
        if self.use_acl:
            extra["ACL"] = "public-read" if public else "private"
        try:
            # upload_file switches to multipart transfers for large bodies
            self.s3.upload_file(Filename=path, Bucket=self.bucket, Key=key, ExtraArgs=extra)
        except (BotoCoreError, ClientError, S3UploadFailedError) as e:
            log.warning(f"s3 put failed bucket={self.bucket} key={key}: {e}")
            return StoreResult.failure(str(e))
        return StoreResult.success(self._base_url() + key)

    def delete(self, key: str) -> StoreResult:
        try:
            self.s3.delete_object(Bucket=self.bucket, Key=key)
        except (BotoCoreError, ClientError) as e:
            log.warning(f"s3 delete failed bucket={self.bucket} key={key}: {e}")
            return StoreResult.failure(str(e))
        return StoreResult.success()

    def key_from_locator(self, locator: str) -> str | None:
        base = self._base_url()
        if locator.startswith(base):
            return locator[len(base):] or None
        # virtual-hosted locators for this bucket written under another region
        parts = urlsplit(locator)
        host = parts.hostname or ""
        if host.startswith((f"{self.bucket}.s3.", f"{self.bucket}.s3-")) and host.endswith(".amazonaws.com"):
            return parts.path.lstrip("/") or None
        return None

    def presign_download(self, key: str, expires_seconds: int = 900) -> str:
        return self.s3.generate_presigned_url(
            "get_object",
            Params={"Bucket": self.bucket, "Key": key},
            ExpiresIn=expires_seconds,
        )
