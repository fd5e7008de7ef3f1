"""WebHDFS client for uploading session dependencies."""

from __future__ import annotations

import getpass
import logging
import os
import re
from collections.abc import AsyncIterator
from urllib.parse import urljoin

import aiofiles  # type: ignore[import-untyped]

from livyctl.livy.interfaces import OutputSink
from livyctl.livy.transport import HttpTransport
from livyctl.shared.cancellation import CancelToken
from livyctl.shared.exceptions import UploadError, UploadProtocolError

logger = logging.getLogger(__name__)

# WebHDFS REST API docs:
# https://hadoop.apache.org/docs/stable/hadoop-project-dist/hadoop-hdfs/WebHDFS.html

HDFS_SCHEME = "hdfs://"
_SCHEME_PREFIXES = (HDFS_SCHEME, "webhdfs://")
_WEBHDFS_SUFFIX = re.compile(r"/webhdfs(/v1)?$")

DEFAULT_CHUNK_SIZE = 64 * 1024


def normalize_base_url(raw: str) -> str:
    """Strip trailing slashes and any ``/webhdfs`` or ``/webhdfs/v1`` suffix.

    Accepts a bare NameNode URL or a gateway URL that already ends in the
    REST prefix; ``/webhdfs/v1`` is appended per request.
    """
    return _WEBHDFS_SUFFIX.sub("", raw.rstrip("/"))


def strip_scheme(locator: str) -> str:
    for prefix in _SCHEME_PREFIXES:
        if locator.startswith(prefix):
            return locator[len(prefix) :]
    return locator


async def iter_file_chunks(path: str, chunk_size: int = DEFAULT_CHUNK_SIZE) -> AsyncIterator[bytes]:
    """Yield the file's bytes in ``chunk_size`` pieces."""
    async with aiofiles.open(path, "rb") as f:
        while True:
            chunk = await f.read(chunk_size)
            if not chunk:
                break
            yield chunk


class WebHdfsClient:
    """Two-step WebHDFS upload and delete.

    Upload flow:
    1. ``PUT ?op=MKDIRS`` on the upload directory (idempotent)
    2. ``PUT ?op=CREATE&overwrite=true`` on the NameNode, expecting ``307``
    3. ``PUT`` the file bytes to the ``Location`` (DataNode), expecting ``201``

    Every hop resolves its own auth header through the shared transport.
    """

    def __init__(
        self,
        base_url: str,
        transport: HttpTransport,
        *,
        upload_path: str = "/user/{username}/livy-deps",
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        output: OutputSink | None = None,
    ) -> None:
        self._base_url = normalize_base_url(base_url)
        self._transport = transport
        self._upload_path = upload_path
        self._chunk_size = chunk_size
        self._output = output
        logger.info("WebHDFS base URL %r normalised to %r", base_url, self._base_url)

    @property
    def base_url(self) -> str:
        return self._base_url

    def resolve_upload_dir(self, username: str = "") -> str:
        """Substitute ``{username}``, falling back to the OS user when blank."""
        effective = username or getpass.getuser()
        return self._upload_path.replace("{username}", effective)

    def _url(self, path: str) -> str:
        return f"{self._base_url}/webhdfs/v1{path}"

    async def upload(
        self,
        local_path: str,
        remote_name: str,
        username: str = "",
        *,
        token: CancelToken | None = None,
    ) -> str:
        """Upload ``local_path`` as ``remote_name`` in the upload directory.

        Returns:
            The ``hdfs://`` locator of the uploaded file.

        Raises:
            UploadError: If the file is unreadable or any hop fails.
            UploadProtocolError: If the CREATE redirect has no ``Location``.
        """
        try:
            size = os.stat(local_path).st_size
        except OSError as exc:
            raise UploadError(f"cannot read {local_path}: {exc}") from exc

        upload_dir = self.resolve_upload_dir(username)
        remote_path = f"{upload_dir}/{remote_name}"
        self._log(f"Uploading {local_path} to {remote_path} ({size} bytes)")

        await self._ensure_directory(upload_dir, token)
        redirect_url = await self._initiate_create(remote_path, token)
        logger.debug("DataNode redirect: %s", redirect_url)
        await self._stream_file(local_path, size, redirect_url, token)

        locator = f"{HDFS_SCHEME}{remote_path}"
        logger.info("uploaded %s -> %s", local_path, locator)
        self._log(f"Uploaded {locator}")
        return locator

    async def delete(self, locator: str, *, token: CancelToken | None = None) -> None:
        """Delete a file; accepts a bare path or an ``hdfs://``/``webhdfs://`` locator."""
        path = strip_scheme(locator)
        resp = await self._transport.send("DELETE", self._url(path), params={"op": "DELETE"}, token=token)
        if not resp.is_success:
            raise UploadError(f"WebHDFS DELETE failed: HTTP {resp.status_code} - {resp.text}")
        logger.info("deleted %s", path)
        self._log(f"Deleted {locator}")

    async def _ensure_directory(self, dir_path: str, token: CancelToken | None) -> None:
        resp = await self._transport.send(
            "PUT", self._url(dir_path), params={"op": "MKDIRS"}, content=b"", token=token
        )
        logger.debug("MKDIRS %s -> %d %s", dir_path, resp.status_code, resp.text.strip())
        if not resp.is_success:
            raise UploadError(f"WebHDFS MKDIRS failed: HTTP {resp.status_code} - {resp.text}")

    async def _initiate_create(self, remote_path: str, token: CancelToken | None) -> str:
        create_url = self._url(remote_path)
        resp = await self._transport.send(
            "PUT",
            create_url,
            params={"op": "CREATE", "overwrite": "true"},
            content=b"",
            token=token,
        )
        if resp.status_code != 307:
            raise UploadError(f"WebHDFS CREATE initiation failed: HTTP {resp.status_code} - {resp.text}")

        location = resp.headers.get("location")
        if not location:
            raise UploadProtocolError("WebHDFS CREATE returned 307 but no Location header")
        return urljoin(str(resp.request.url), location)

    async def _stream_file(self, local_path: str, size: int, url: str, token: CancelToken | None) -> None:
        # 307 preserves the method, so the body goes out as PUT.
        resp = await self._transport.send(
            "PUT",
            url,
            content=iter_file_chunks(local_path, self._chunk_size),
            headers={"Content-Type": "application/octet-stream", "Content-Length": str(size)},
            token=token,
        )
        if resp.status_code != 201:
            raise UploadError(f"WebHDFS file upload failed: HTTP {resp.status_code} - {resp.text}")

    def _log(self, message: str) -> None:
        if self._output is not None:
            self._output.append_line(f"[WebHDFS] {message}")
