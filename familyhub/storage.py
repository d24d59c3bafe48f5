"""
Remote object store client for a Yandex Disk-style REST API, plus an
in-memory double for tests and local runs.

All API calls carry ``Authorization: OAuth <token>``. Content never flows
through the API itself: the store hands out short-lived signed URLs and the
bytes are moved with a second, unauthenticated request.
"""

from __future__ import annotations

import logging
import threading
import time
import uuid
from dataclasses import dataclass, field
from typing import Optional, Protocol
from urllib.parse import parse_qs, urlencode, urlparse

import requests

from familyhub.errors import Conflict, NotFound, Unauthenticated, UpstreamFailure
from familyhub.paths import base_name

logger = logging.getLogger(__name__)

CONFLICT_ERROR_CODES = {
    "DiskPathPointsToExistentDirectoryError",
    "DiskResourceAlreadyExistsError",
}


@dataclass
class FetchedContent:
    body: bytes
    content_type: str = "application/octet-stream"

    def text(self) -> str:
        return self.body.decode("utf-8", errors="replace")


class DiskClient(Protocol):
    """Defines the operations the services need from the remote store."""

    def disk_info(self, token: str) -> dict:
        ...

    def stat(self, token: str, path: str) -> dict:
        ...

    def list_dir(self, token: str, path: str, limit: int = 100) -> list[dict]:
        ...

    def get_download_url(self, token: str, path: str) -> str:
        ...

    def get_upload_url(self, token: str, path: str, overwrite: bool = False) -> str:
        ...

    def put_bytes(self, url: str, body: bytes, content_type: str) -> None:
        ...

    def fetch_bytes(self, url: str) -> FetchedContent:
        ...

    def mkdir(self, token: str, path: str) -> None:
        ...

    def delete_path(self, token: str, path: str, permanently: bool = False) -> None:
        ...


def format_entry(item: dict) -> dict:
    """Reduces an upstream resource description to the fields callers use."""
    return {
        "name": item.get("name"),
        "path": _strip_disk_prefix(item.get("path", "")),
        "type": item.get("type"),
        "size": item.get("size"),
        "modified": item.get("modified"),
        "mime_type": item.get("mime_type"),
    }


def _strip_disk_prefix(path: str) -> str:
    # The API reports paths as "disk:/family/..."
    if path.startswith("disk:"):
        return path[len("disk:"):] or "/"
    return path


@dataclass
class YandexDiskClient:
    """
    ``requests``-backed client for the Yandex Disk REST API.
    """

    base_url: str = "https://cloud-api.yandex.net/v1/disk"
    timeout: float = 30.0

    def __post_init__(self):
        self.base_url = self.base_url.rstrip("/")
        self._session = requests.Session()

    def _request(
        self,
        method: str,
        token: str,
        endpoint: str = "/resources",
        params: Optional[dict] = None,
    ) -> requests.Response:
        if not token:
            raise Unauthenticated("No storage token provided")
        url = f"{self.base_url}{endpoint}"
        logger.debug("%s %s %s", method, endpoint, params)
        try:
            response = self._session.request(
                method,
                url,
                params=params,
                headers={
                    "Authorization": f"OAuth {token}",
                    "Content-Type": "application/json",
                },
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise UpstreamFailure(f"{method} {endpoint} failed: {e}") from e

        if response.ok:
            return response
        self._raise_for_status(method, endpoint, params, response)

    @staticmethod
    def _raise_for_status(
        method: str, endpoint: str, params: Optional[dict], response: requests.Response
    ) -> None:
        try:
            payload = response.json()
        except ValueError:
            payload = {}
        error_code = payload.get("error") if isinstance(payload, dict) else None
        description = f"{method} {endpoint} {params or {}} -> {response.status_code} {error_code or ''}"

        if response.status_code == 401:
            raise Unauthenticated("Invalid storage token")
        if response.status_code == 404:
            raise NotFound(f"Resource not found: {(params or {}).get('path', endpoint)}")
        if response.status_code == 409 or error_code in CONFLICT_ERROR_CODES:
            raise Conflict(f"Resource already exists: {(params or {}).get('path', endpoint)}")
        raise UpstreamFailure(description.strip())

    def disk_info(self, token: str) -> dict:
        return self._request("GET", token, endpoint="").json()

    def stat(self, token: str, path: str) -> dict:
        return self._request("GET", token, params={"path": path}).json()

    def list_dir(self, token: str, path: str, limit: int = 100) -> list[dict]:
        data = self._request("GET", token, params={"path": path, "limit": limit}).json()
        items = (data.get("_embedded") or {}).get("items") or []
        return [format_entry(item) for item in items]

    def get_download_url(self, token: str, path: str) -> str:
        data = self._request("GET", token, "/resources/download", {"path": path}).json()
        return data["href"]

    def get_upload_url(self, token: str, path: str, overwrite: bool = False) -> str:
        params = {"path": path, "overwrite": "true" if overwrite else "false"}
        data = self._request("GET", token, "/resources/upload", params).json()
        return data["href"]

    def put_bytes(self, url: str, body: bytes, content_type: str) -> None:
        try:
            response = self._session.put(
                url,
                data=body,
                headers={"Content-Type": content_type},
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise UpstreamFailure(f"Upload to signed URL failed: {e}") from e
        if not response.ok:
            raise UpstreamFailure(f"Upload to signed URL returned {response.status_code}")

    def fetch_bytes(self, url: str) -> FetchedContent:
        try:
            response = self._session.get(url, timeout=self.timeout)
        except requests.RequestException as e:
            raise UpstreamFailure(f"Download from signed URL failed: {e}") from e
        if not response.ok:
            raise UpstreamFailure(f"Download from signed URL returned {response.status_code}")
        return FetchedContent(
            body=response.content,
            content_type=response.headers.get("Content-Type", "application/octet-stream"),
        )

    def mkdir(self, token: str, path: str) -> None:
        self._request("PUT", token, params={"path": path})

    def delete_path(self, token: str, path: str, permanently: bool = False) -> None:
        params = {"path": path}
        if permanently:
            params["permanently"] = "true"
        self._request("DELETE", token, params=params)


@dataclass
class InMemoryDiskClient:
    """
    Test double for the remote store.

    Mirrors the upstream rules the services depend on: parents must exist
    before children are created, ``overwrite=False`` refuses existing
    targets, and content moves through one-shot signed URLs.
    """

    base_url: str = "https://disk.memory.test"
    valid_tokens: Optional[set[str]] = None
    files: dict = None
    content_types: dict = None
    dirs: set = None
    # Failure injection and pacing for tests
    fail_fetch: bool = False
    fail_upload: bool = False
    fetch_delay: float = 0.0
    calls: list = field(default_factory=list)

    def __post_init__(self):
        if self.files is None:
            self.files = {}
        if self.content_types is None:
            self.content_types = {}
        if self.dirs is None:
            self.dirs = set()
        self.dirs.add("/")
        self._pending_uploads: dict[str, str] = {}
        self._lock = threading.Lock()

    def reset(self) -> None:
        """Clear all stored data (useful in tests)."""
        with self._lock:
            self.files.clear()
            self.content_types.clear()
            self.dirs.clear()
            self.dirs.add("/")
            self._pending_uploads.clear()
            self.calls.clear()
            self.fail_fetch = False
            self.fail_upload = False
            self.fetch_delay = 0.0

    def _check_token(self, op: str, token: str, path: Optional[str] = None) -> None:
        self.calls.append((op, path))
        if not token:
            raise Unauthenticated("No storage token provided")
        if self.valid_tokens is not None and token not in self.valid_tokens:
            raise Unauthenticated("Invalid storage token")

    @staticmethod
    def _parent(path: str) -> str:
        parent = path.rstrip("/").rsplit("/", 1)[0]
        return parent or "/"

    def _entry(self, path: str) -> dict:
        if path in self.dirs:
            return {
                "name": base_name(path),
                "path": path,
                "type": "dir",
                "size": None,
                "modified": None,
                "mime_type": None,
            }
        return {
            "name": base_name(path),
            "path": path,
            "type": "file",
            "size": len(self.files[path]),
            "modified": None,
            "mime_type": self.content_types.get(path),
        }

    def disk_info(self, token: str) -> dict:
        self._check_token("disk_info", token)
        used = sum(len(body) for body in self.files.values())
        return {"total_space": 10 * 1024**3, "used_space": used, "system_folders": {}}

    def stat(self, token: str, path: str) -> dict:
        self._check_token("stat", token, path)
        if path not in self.dirs and path not in self.files:
            raise NotFound(f"Resource not found: {path}")
        return self._entry(path)

    def list_dir(self, token: str, path: str, limit: int = 100) -> list[dict]:
        self._check_token("list", token, path)
        if path in self.files:
            return []
        if path not in self.dirs:
            raise NotFound(f"Resource not found: {path}")
        children = sorted(
            p
            for p in list(self.dirs) + list(self.files)
            if p != "/" and self._parent(p) == path
        )
        return [self._entry(p) for p in children[:limit]]

    def get_download_url(self, token: str, path: str) -> str:
        self._check_token("download_url", token, path)
        if path not in self.files:
            raise NotFound(f"Resource not found: {path}")
        return f"{self.base_url}/download?{urlencode({'path': path})}"

    def get_upload_url(self, token: str, path: str, overwrite: bool = False) -> str:
        self._check_token("upload_url", token, path)
        with self._lock:
            if path in self.dirs:
                raise Conflict(f"Resource already exists: {path}")
            if path in self.files and not overwrite:
                raise Conflict(f"Resource already exists: {path}")
            if self._parent(path) not in self.dirs:
                raise Conflict(f"Parent directory missing: {path}")
            url = f"{self.base_url}/upload/{uuid.uuid4().hex}"
            self._pending_uploads[url] = path
        return url

    def put_bytes(self, url: str, body: bytes, content_type: str) -> None:
        self.calls.append(("put", url))
        if self.fail_upload:
            raise UpstreamFailure("Upload to signed URL returned 500")
        with self._lock:
            path = self._pending_uploads.pop(url, None)
            if path is None:
                raise UpstreamFailure("Upload to signed URL returned 404")
            self.files[path] = bytes(body)
            self.content_types[path] = content_type.split(";")[0].strip()

    def fetch_bytes(self, url: str) -> FetchedContent:
        self.calls.append(("fetch", url))
        if self.fetch_delay:
            time.sleep(self.fetch_delay)
        if self.fail_fetch:
            raise UpstreamFailure("Download from signed URL returned 500")
        path = parse_qs(urlparse(url).query).get("path", [""])[0]
        if path not in self.files:
            raise UpstreamFailure("Download from signed URL returned 404")
        return FetchedContent(
            body=self.files[path],
            content_type=self.content_types.get(path, "application/octet-stream"),
        )

    def mkdir(self, token: str, path: str) -> None:
        self._check_token("mkdir", token, path)
        with self._lock:
            if path in self.dirs or path in self.files:
                raise Conflict(f"Resource already exists: {path}")
            if self._parent(path) not in self.dirs:
                raise Conflict(f"Parent directory missing: {path}")
            self.dirs.add(path)

    def delete_path(self, token: str, path: str, permanently: bool = False) -> None:
        self._check_token("delete", token, path)
        with self._lock:
            if path in self.files:
                del self.files[path]
                self.content_types.pop(path, None)
                return
            if path not in self.dirs or path == "/":
                raise NotFound(f"Resource not found: {path}")
            prefix = path.rstrip("/") + "/"
            self.dirs = {d for d in self.dirs if d != path and not d.startswith(prefix)}
            for file_path in [f for f in self.files if f.startswith(prefix)]:
                del self.files[file_path]
                self.content_types.pop(file_path, None)

    def upstream_calls(self) -> list:
        """Calls that reached the (fake) API, excluding signed URL transfers."""
        return [call for call in self.calls if call[0] not in ("put", "fetch")]
