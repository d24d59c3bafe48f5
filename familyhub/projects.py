"""
Project tracker stored as ``{"projects": [...], "lastUpdated": ...}`` at
``/projects/projects.json``.
"""

from __future__ import annotations

from typing import Any

from familyhub.collection import CollectionService
from familyhub.paths import PROJECTS_DOCUMENT
from familyhub.records import Project


class ProjectService(CollectionService):
    path_template = PROJECTS_DOCUMENT
    wrapper_key = "projects"
    record_type = Project
    record_name = "Project"

    def default_document(self) -> Any:
        return {self.wrapper_key: [], "lastUpdated": None}

    def touch(self, document: Any) -> None:
        document["lastUpdated"] = self.clock()
