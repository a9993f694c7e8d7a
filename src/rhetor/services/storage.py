from __future__ import annotations

import hashlib
import hmac
import logging
import time
from pathlib import Path, PurePosixPath
from urllib.parse import quote, urlencode

from rhetor.errors import DuplicateUpload, ForbiddenError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)

CONTENT_TYPES = {
    "m4a": "audio/mp4",
    "aac": "audio/aac",
    "mp3": "audio/mpeg",
    "wav": "audio/wav",
    "caf": "audio/x-caf",
    "ogg": "audio/ogg",
}
DEFAULT_CONTENT_TYPE = "application/octet-stream"


def content_type_for(path_or_ext: str) -> str:
    ext = path_or_ext.rsplit(".", 1)[-1].lower()
    return CONTENT_TYPES.get(ext, DEFAULT_CONTENT_TYPE)


def _clean_object_path(path: str) -> PurePosixPath:
    candidate = PurePosixPath(path.strip("/"))
    if not candidate.parts or any(part in {"", ".", ".."} for part in candidate.parts):
        raise ValidationError("Invalid object path")
    return candidate


class ObjectStorage:
    """Bucketed object store on the local filesystem.

    Objects are written once; a second write to the same key is refused so a
    reused upload target surfaces as an error instead of replacing audio.
    """

    def __init__(self, root: Path, buckets: tuple[str, ...], signing_secret: str, public_base_url: str) -> None:
        self.root = root
        self.buckets = buckets
        self._secret = signing_secret.encode("utf-8")
        self.public_base_url = public_base_url.rstrip("/")

    def _resolve(self, bucket: str, path: str) -> Path:
        if bucket not in self.buckets:
            raise NotFoundError("Bucket not found")
        return self.root / bucket / _clean_object_path(path)

    def exists(self, bucket: str, path: str) -> bool:
        return self._resolve(bucket, path).is_file()

    def upload(self, bucket: str, path: str, data: bytes) -> str:
        if not data:
            raise ValidationError("Empty file")
        destination = self._resolve(bucket, path)
        destination.parent.mkdir(parents=True, exist_ok=True)
        try:
            with destination.open("xb") as handle:
                handle.write(data)
        except FileExistsError as exc:
            raise DuplicateUpload("The resource already exists") from exc
        logger.info("Stored object %s/%s (%d bytes)", bucket, path, len(data))
        return f"{bucket}/{path}"

    def open_path(self, bucket: str, path: str) -> Path:
        destination = self._resolve(bucket, path)
        if not destination.is_file():
            raise NotFoundError("Object not found")
        return destination

    def _signature(self, bucket: str, path: str, expires_at: int) -> str:
        message = f"{bucket}/{path}:{expires_at}".encode("utf-8")
        return hmac.new(self._secret, message, hashlib.sha256).hexdigest()

    def create_signed_url(self, bucket: str, path: str, expires_in: int, now: float | None = None) -> str:
        self._resolve(bucket, path)
        issued = int(now if now is not None else time.time())
        expires_at = issued + expires_in
        query = urlencode({"expires": expires_at, "token": self._signature(bucket, path, expires_at)})
        return f"{self.public_base_url}/storage/sign/{bucket}/{quote(path)}?{query}"

    def verify_signature(self, bucket: str, path: str, expires_at: int, token: str, now: float | None = None) -> None:
        current = now if now is not None else time.time()
        if expires_at < current:
            raise ForbiddenError("Signed URL expired")
        expected = self._signature(bucket, path, expires_at)
        if not hmac.compare_digest(expected, token):
            raise ForbiddenError("Invalid signature")


def build_storage(settings) -> ObjectStorage:
    return ObjectStorage(
        root=settings.STORAGE_ROOT,
        buckets=(settings.AUDIO_BUCKET,),
        signing_secret=settings.URL_SIGNING_SECRET,
        public_base_url=settings.PUBLIC_BASE_URL,
    )
