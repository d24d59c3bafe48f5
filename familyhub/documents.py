"""
Whole-document JSON persistence on top of the remote object store.

A document is one JSON value stored as one object at a fixed path. There are
no partial updates: every change reads the whole document, mutates it in
memory and writes the whole document back. ``mutate_document`` serializes
that sequence per path within this process; separate processes still race
and the last writer wins.
"""

from __future__ import annotations

import copy
import json
import logging
import threading
from typing import Any, Callable, TypeVar

from familyhub.errors import Conflict, HubError, NotFound, UpstreamFailure
from familyhub.paths import parent_dirs
from familyhub.storage import DiskClient

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")

JSON_CONTENT_TYPE = "application/json"


class PathLocks:
    """Lazily created, process-wide ``threading.Lock`` per document path."""

    def __init__(self):
        self._guard = threading.Lock()
        self._locks: dict[str, threading.Lock] = {}

    def for_path(self, path: str) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(path)
            if lock is None:
                lock = self._locks[path] = threading.Lock()
            return lock


class DocumentRepository:
    def __init__(self, disk: DiskClient, locks: PathLocks | None = None):
        self.disk = disk
        self.locks = locks or PathLocks()

    def read_document(self, token: str, path: str, default: T, *, strict: bool = False) -> T:
        """
        Loads the JSON document at ``path``.

        A document that does not exist yet reads as a copy of ``default``.
        When the store is reachable but the content fetch or decode fails, a
        lenient read also falls back to ``default`` (callers cannot tell that
        apart from "empty"); a strict read raises ``UpstreamFailure`` instead.
        Authentication failures always propagate.
        """
        try:
            url = self.disk.get_download_url(token, path)
        except NotFound:
            return copy.deepcopy(default)

        try:
            content = self.disk.fetch_bytes(url)
            return json.loads(content.body)
        except (UpstreamFailure, ValueError) as e:
            if strict:
                raise UpstreamFailure(f"Could not load document {path}: {e}") from e
            logger.warning("Falling back to default for %s: %s", path, e)
            return copy.deepcopy(default)

    def write_document(self, token: str, path: str, value: Any) -> None:
        """
        Replaces the document at ``path`` with ``value``.

        Missing parent directories are created first. Failures to obtain the
        upload URL or to PUT the body propagate to the caller.
        """
        self.ensure_dirs(token, path)
        url = self.disk.get_upload_url(token, path, overwrite=True)
        body = json.dumps(value, indent=2, ensure_ascii=False).encode("utf-8")
        self.disk.put_bytes(url, body, JSON_CONTENT_TYPE)

    def mutate_document(
        self,
        token: str,
        path: str,
        default: T,
        mutate: Callable[[T], R],
    ) -> R:
        """
        Read-modify-write under the per-path lock.

        ``mutate`` receives the loaded document, changes it in place and
        returns the caller's result. If it raises, nothing is written.
        """
        with self.locks.for_path(path):
            document = self.read_document(token, path, default, strict=True)
            result = mutate(document)
            self.write_document(token, path, document)
            return result

    def ensure_dirs(self, token: str, path: str) -> None:
        for directory in parent_dirs(path):
            try:
                self.disk.mkdir(token, directory)
            except Conflict:
                pass
            except HubError as e:
                # The upload URL request reports anything that really matters.
                logger.debug("mkdir %s failed: %s", directory, e)
