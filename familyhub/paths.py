"""
Well-known document locations and the family path capability.
"""

from __future__ import annotations

import posixpath
from dataclasses import dataclass

from familyhub.errors import BadRequest, Forbidden

FAMILY_ROOT = "/family"
FAMILY_DOCUMENT = "/family/family.json"
PORTFOLIO_DOCUMENT = "/portfolio/portfolio.json"
PROJECTS_DOCUMENT = "/projects/projects.json"
PROFILE_DIR = "/profile"
PROFILE_PHOTO = "/profile/profile-photo.jpg"

TODO_LISTS_TEMPLATE = "{folder}/todos/lists.json"
BUDGETS_TEMPLATE = "{folder}/finances/budgets.json"
TRANSACTIONS_TEMPLATE = "{folder}/finances/transactions.json"
CALENDAR_TEMPLATE = "{folder}/calendar/events.json"


def parent_dirs(path: str) -> list[str]:
    """
    Returns every ancestor directory of ``path``, outermost first.

    ``/family/bob/todos/lists.json`` -> ``["/family", "/family/bob",
    "/family/bob/todos"]``.
    """
    parts = [p for p in path.split("/") if p][:-1]
    return ["/" + "/".join(parts[: i + 1]) for i in range(len(parts))]


def base_name(path: str) -> str:
    return path.rstrip("/").rsplit("/", 1)[-1]


@dataclass(frozen=True)
class FamilyScopedPath:
    """
    A path proven to live under ``/family``.

    Only ``parse`` should construct one; everything that touches family files
    takes this type instead of a raw string.
    """

    value: str

    @classmethod
    def parse(cls, raw: str | None, *, default: str | None = None) -> "FamilyScopedPath":
        if not raw:
            if default is None:
                raise BadRequest("Path is required")
            raw = default

        if "\\" in raw or "\x00" in raw:
            raise Forbidden("Access denied: Path outside family directory")
        if not raw.startswith("/"):
            raise Forbidden("Access denied: Path outside family directory")
        if any(segment == ".." for segment in raw.split("/")):
            raise Forbidden("Access denied: Path outside family directory")

        normalized = posixpath.normpath(raw)
        # normpath keeps a leading "//" as-is
        if normalized.startswith("//"):
            normalized = "/" + normalized.lstrip("/")
        if normalized != FAMILY_ROOT and not normalized.startswith(FAMILY_ROOT + "/"):
            raise Forbidden("Access denied: Path outside family directory")
        return cls(normalized)

    @property
    def name(self) -> str:
        return base_name(self.value)

    def __str__(self) -> str:
        return self.value
