from __future__ import annotations

import logging
from pathlib import Path, PurePosixPath
from typing import Optional, Protocol
from urllib.parse import quote

import httpx

from termify.documents.errors import ServiceUnavailable, StorageError
from termify.settings.config import StorageBackend, StorageSettings

logger = logging.getLogger(__name__)


class ObjectStore(Protocol):
    async def upload(self, path: str, data: bytes) -> None:
        ...

    async def download(self, path: str) -> bytes:
        ...

    async def remove(self, path: str) -> None:
        ...


def _clean_key(path: str) -> str:
    """Normalize an object key and reject anything that climbs out of the bucket."""
    key = PurePosixPath(path.strip().lstrip("/"))
    if not key.parts or ".." in key.parts:
        raise StorageError(f"Invalid storage path: {path!r}")
    return key.as_posix()


# ---------------------------------------------------------------------------
# Local directory
# ---------------------------------------------------------------------------


class LocalObjectStore:
    """Objects stored as files under a root directory."""

    def __init__(self, root: Path) -> None:
        self.root = Path(root)

    def _resolve(self, path: str) -> Path:
        return self.root / _clean_key(path)

    async def upload(self, path: str, data: bytes) -> None:
        target = self._resolve(path)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(data)
        except OSError as exc:
            raise StorageError("Failed to upload document") from exc

    async def download(self, path: str) -> bytes:
        target = self._resolve(path)
        try:
            return target.read_bytes()
        except OSError as exc:
            raise StorageError("Failed to download file") from exc

    async def remove(self, path: str) -> None:
        target = self._resolve(path)
        try:
            target.unlink(missing_ok=True)
        except OSError as exc:
            raise StorageError("Failed to remove file") from exc


# ---------------------------------------------------------------------------
# Supabase Storage REST API
# ---------------------------------------------------------------------------


class SupabaseObjectStore:
    """Objects in a Supabase Storage bucket, authenticated with the service-role key."""

    def __init__(
        self,
        url: str,
        service_key: str,
        bucket: str = "documents",
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._base = f"{url.rstrip('/')}/storage/v1/object"
        self._bucket = bucket
        self._headers = {
            "Authorization": f"Bearer {service_key}",
            "apikey": service_key,
        }
        self._timeout = timeout
        self._transport = transport

    def _object_url(self, path: str) -> str:
        return f"{self._base}/{self._bucket}/{quote(_clean_key(path))}"

    async def _request(self, method: str, url: str, action: str, **kwargs) -> httpx.Response:
        try:
            async with httpx.AsyncClient(
                timeout=self._timeout, transport=self._transport
            ) as client:
                resp = await client.request(method, url, headers=self._headers, **kwargs)
        except httpx.HTTPError as exc:
            logger.error("Storage %s failed: %s", action, exc)
            raise StorageError(f"Failed to {action} file") from exc
        if resp.is_error:
            logger.error("Storage %s returned %d: %.200s", action, resp.status_code, resp.text)
            raise StorageError(f"Failed to {action} file")
        return resp

    async def upload(self, path: str, data: bytes) -> None:
        await self._request("POST", self._object_url(path), "upload", content=data)

    async def download(self, path: str) -> bytes:
        resp = await self._request("GET", self._object_url(path), "download")
        return resp.content

    async def remove(self, path: str) -> None:
        await self._request(
            "DELETE",
            f"{self._base}/{self._bucket}",
            "remove",
            json={"prefixes": [_clean_key(path)]},
        )


def build_object_store(settings: StorageSettings) -> ObjectStore:
    if settings.backend == StorageBackend.SUPABASE:
        if not settings.supabase_url or not settings.supabase_service_key:
            logger.error("SUPABASE_URL / SUPABASE_SERVICE_ROLE_KEY not configured")
            raise ServiceUnavailable("Server configuration error")
        return SupabaseObjectStore(
            settings.supabase_url, settings.supabase_service_key, settings.bucket
        )
    return LocalObjectStore(settings.local_dir)
