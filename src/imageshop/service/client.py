"""
HTTP client for the image processing service.

The service exposes three POST endpoints:
  /upload    multipart field ``image``         -> {"filePath": <reference>}
  /process   JSON transform parameters         -> {"filePath": <reference>}
  /download  JSON {"filePath", "format"}       -> raw image bytes

References are opaque strings; they are only resolved against the base URL
when fetching a preview.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Optional
from urllib.parse import urljoin

import aiohttp

from imageshop.app.config import DEFAULT_BASE_URL
from imageshop.core.errors import RemoteCallError, UnexpectedResponseError
from imageshop.core.models import ExportRequest, Reference, SourceImage, TransformRequest

logger = logging.getLogger(__name__)

UPLOAD_FIELD = "image"
REFERENCE_KEY = "filePath"


class ImageServiceClient:
    """Async client for the processing service."""

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        timeout: Optional[float] = None,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._session = session
        self._owns_session = session is None

    async def __aenter__(self) -> "ImageServiceClient":
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def connect(self) -> None:
        if self._session is None:
            # total=None disables aiohttp's default five minute ceiling
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.timeout)
            )
            self._owns_session = True

    async def close(self) -> None:
        if self._session is not None and self._owns_session:
            await self._session.close()
        self._session = None

    def url_for(self, path: str) -> str:
        return f"{self.base_url}/{path.lstrip('/')}"

    def resolve_reference(self, reference: Reference) -> str:
        return urljoin(self.base_url + "/", reference)

    # ---------- remote calls ----------

    async def upload(self, source: SourceImage) -> Reference:
        data = aiohttp.FormData()
        data.add_field(UPLOAD_FIELD, source.data, filename=source.filename, content_type=source.mime)
        body = await self._post_json("upload", self.url_for("upload"), data=data)
        return self._reference_from(body, "upload")

    async def transform(self, request: TransformRequest) -> Reference:
        body = await self._post_json("process", self.url_for("process"), json=request.to_payload())
        return self._reference_from(body, "process")

    async def export(self, request: ExportRequest) -> bytes:
        session = await self._ensure_session()
        url = self.url_for("download")
        logger.debug("POST %s format=%s", url, request.output_format.value)
        try:
            async with session.post(url, json=request.to_payload()) as resp:
                if resp.status != 200:
                    raise RemoteCallError("download", f"HTTP {resp.status}", status=resp.status)
                payload = await resp.read()
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise RemoteCallError("download", _describe(e)) from e

        if not payload:
            raise UnexpectedResponseError("download", "empty response body", status=200)
        return payload

    async def fetch_image(self, reference: Reference) -> bytes:
        """GET the bytes behind a reference (used for previews)."""
        session = await self._ensure_session()
        url = self.resolve_reference(reference)
        try:
            async with session.get(url) as resp:
                if resp.status >= 300:
                    raise RemoteCallError("preview", f"HTTP {resp.status}", status=resp.status)
                payload = await resp.read()
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise RemoteCallError("preview", _describe(e)) from e
        if not payload:
            raise UnexpectedResponseError("preview", "empty response body")
        return payload

    # ---------- helpers ----------

    async def _ensure_session(self) -> aiohttp.ClientSession:
        if self._session is None:
            await self.connect()
        assert self._session is not None
        return self._session

    async def _post_json(self, operation: str, url: str, **kwargs: Any) -> Any:
        session = await self._ensure_session()
        logger.debug("POST %s", url)
        try:
            async with session.post(url, **kwargs) as resp:
                if not 200 <= resp.status < 300:
                    raise RemoteCallError(operation, f"HTTP {resp.status}", status=resp.status)
                try:
                    return await resp.json(content_type=None)
                except ValueError as e:
                    raise UnexpectedResponseError(operation, "response is not JSON", status=resp.status) from e
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise RemoteCallError(operation, _describe(e)) from e

    @staticmethod
    def _reference_from(body: Any, operation: str) -> Reference:
        ref = body.get(REFERENCE_KEY) if isinstance(body, dict) else None
        if not isinstance(ref, str) or not ref:
            raise UnexpectedResponseError(operation, f"response has no {REFERENCE_KEY!r}")
        return ref


def _describe(e: BaseException) -> str:
    if isinstance(e, asyncio.TimeoutError):
        return "timed out"
    return str(e) or type(e).__name__
