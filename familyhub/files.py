"""
Direct file operations: the family file manager, the root content editor
and the profile photo.

Family operations only accept a ``FamilyScopedPath``; turning a raw string
into one is the authorization check and happens before any upstream call.
"""

from __future__ import annotations

import logging
from typing import Optional

from familyhub.errors import BadRequest, Conflict, HubError, NotFound
from familyhub.paths import PROFILE_DIR, PROFILE_PHOTO, FamilyScopedPath
from familyhub.storage import DiskClient

logger = logging.getLogger(__name__)

CONTENT_TYPE_PREFIXES = (
    "text/",
    "application/json",
    "application/javascript",
    "image/",
)

EXTENSION_CONTENT_TYPES = {
    "html": "text/html",
    "css": "text/css",
    "js": "application/javascript",
    "json": "application/json",
}


def content_type_for(name: str) -> str:
    extension = name.rsplit(".", 1)[-1].lower() if "." in name else ""
    return EXTENSION_CONTENT_TYPES.get(extension, "text/plain")


class FileService:
    def __init__(self, disk: DiskClient, list_limit: int = 100, family_list_limit: int = 1000):
        self.disk = disk
        self.list_limit = list_limit
        self.family_list_limit = family_list_limit

    # Family file manager

    def list_family(self, token: str, path: FamilyScopedPath) -> list[dict]:
        try:
            entries = self.disk.list_dir(token, path.value, limit=self.family_list_limit)
        except NotFound:
            return []
        return [
            {
                "name": e["name"],
                "path": e["path"],
                "type": e["type"],
                "size": e["size"],
                "modified": e["modified"],
                "mimeType": e["mime_type"],
            }
            for e in entries
        ]

    def create_family_folder(self, token: str, path: FamilyScopedPath) -> str:
        if path.value == "/family":
            raise Conflict("Folder already exists")
        try:
            self.disk.mkdir(token, path.value)
        except Conflict as e:
            raise Conflict("Folder already exists") from e
        return path.value

    def upload_family_file(
        self, token: str, path: FamilyScopedPath, body: bytes, content_type: Optional[str]
    ) -> dict:
        self.put(token, path.value, body, content_type, overwrite=True)
        return {"fileName": path.name, "path": path.value, "size": len(body)}

    def family_download_url(self, token: str, path: FamilyScopedPath) -> dict:
        url = self.disk.get_download_url(token, path.value)
        return {"downloadUrl": url, "fileName": path.name}

    def delete_family_path(self, token: str, path: FamilyScopedPath) -> None:
        if path.value == "/family":
            raise BadRequest("Refusing to delete the family root")
        self.disk.delete_path(token, path.value)

    # Root content (cookie flow)

    def list_root(self, token: str, path: str = "/") -> list[dict]:
        return self.disk.list_dir(token, path or "/", limit=self.list_limit)

    def list_content(self, token: str) -> list[dict]:
        entries = self.disk.list_dir(token, "/", limit=self.list_limit)
        return [
            {
                "name": e["name"],
                "path": e["path"],
                "type": e["mime_type"],
                "size": e["size"],
                "modified": e["modified"],
            }
            for e in entries
            if e["type"] == "file"
            and any((e["mime_type"] or "").startswith(p) for p in CONTENT_TYPE_PREFIXES)
        ]

    def read_content(self, token: str, path: str) -> dict:
        """Images come back as a signed URL; only text bodies are downloaded."""
        mime_type = self.disk.stat(token, path).get("mime_type") or ""
        url = self.disk.get_download_url(token, path)
        if mime_type.startswith("image/"):
            return {"url": url, "type": "image"}
        return {"content": self.disk.fetch_bytes(url).text(), "type": "text"}

    def save_content(self, token: str, path: str, text: str) -> None:
        if not path:
            raise BadRequest("Path and content are required")
        self.put(token, path, text.encode("utf-8"), "text/plain; charset=utf-8", overwrite=True)

    def create_content(self, token: str, name: str, text: str) -> str:
        if not name or "/" in name.strip("/") or ".." in name:
            raise BadRequest("Invalid file name")
        path = "/" + name.strip("/")
        content_type = f"{content_type_for(name)}; charset=utf-8"
        try:
            self.put(token, path, text.encode("utf-8"), content_type, overwrite=False)
        except Conflict as e:
            raise Conflict("File already exists") from e
        return path

    def put(
        self,
        token: str,
        path: str,
        body: bytes,
        content_type: Optional[str],
        *,
        overwrite: bool,
    ) -> None:
        url = self.disk.get_upload_url(token, path, overwrite=overwrite)
        self.disk.put_bytes(url, body, content_type or "application/octet-stream")

    # Profile photo

    def get_photo_url(self, token: str) -> Optional[str]:
        try:
            return self.disk.get_download_url(token, PROFILE_PHOTO)
        except NotFound:
            return None

    def upload_photo(self, token: str, body: bytes, content_type: Optional[str]) -> Optional[str]:
        if not body:
            raise BadRequest("No file provided")
        try:
            self.disk.mkdir(token, PROFILE_DIR)
        except Conflict:
            pass
        self.put(token, PROFILE_PHOTO, body, content_type or "image/jpeg", overwrite=True)
        try:
            return self.disk.get_download_url(token, PROFILE_PHOTO)
        except HubError as e:
            logger.warning("Uploaded profile photo but could not sign a URL: %s", e)
            return None

    def delete_photo(self, token: str) -> None:
        self.disk.delete_path(token, PROFILE_PHOTO)
