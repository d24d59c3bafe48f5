"""
Ordered collections of records kept in a single JSON document.

A collection lives either at a fixed path (portfolio, projects) or at a path
derived from a family member's folder (to-do lists, finances, calendar).
Records are addressed by ``id``; every change rewrites the whole document.
"""

from __future__ import annotations

import logging
import uuid
from typing import Any, Callable, Optional, Type

from familyhub.documents import DocumentRepository
from familyhub.errors import BadRequest, NotFound
from familyhub.json_utils import camel_to_snake
from familyhub.records import normalize_document, utc_now_iso

logger = logging.getLogger(__name__)

# Never taken from caller input.
SERVER_FIELDS = ("id", "createdAt", "updatedAt")


def new_id() -> str:
    return uuid.uuid4().hex


def caller_fields(data: dict, protected: tuple = SERVER_FIELDS) -> dict:
    """Drops ``protected`` keys from caller input in either camelCase or snake_case."""
    blocked = {camel_to_snake(key) for key in protected}
    return {k: v for k, v in data.items() if camel_to_snake(k) not in blocked}


class ReadOnlyCollection:
    """
    Subclasses set ``path_template`` (``{folder}`` is replaced by the scope)
    and optionally ``wrapper_key`` when the array sits inside an object.
    """

    path_template: str = ""
    wrapper_key: Optional[str] = None
    record_name: str = "Record"

    def __init__(
        self,
        documents: DocumentRepository,
        clock: Callable[[], str] = utc_now_iso,
        id_factory: Callable[[], str] = new_id,
    ):
        self.documents = documents
        self.clock = clock
        self.id_factory = id_factory

    def path_for(self, scope: Optional[str] = None) -> str:
        if "{folder}" in self.path_template:
            if not scope:
                raise BadRequest(f"{self.record_name} scope is required")
            return self.path_template.format(folder=scope.rstrip("/"))
        return self.path_template

    def default_document(self) -> Any:
        if self.wrapper_key:
            return {self.wrapper_key: []}
        return []

    def records_of(self, document: Any) -> list:
        """The mutable record array inside a loaded document."""
        if self.wrapper_key:
            if not isinstance(document, dict):
                raise BadRequest(f"Malformed {self.record_name} document")
            records = document.get(self.wrapper_key)
            if not isinstance(records, list):
                records = document[self.wrapper_key] = []
            return records
        if not isinstance(document, list):
            raise BadRequest(f"Malformed {self.record_name} document")
        return document

    def load(self, token: str, scope: Optional[str] = None) -> Any:
        """The whole document as stored, or the empty default."""
        return self.documents.read_document(token, self.path_for(scope), self.default_document())

    def list(self, token: str, scope: Optional[str] = None) -> list[dict]:
        document = self.load(token, scope)
        try:
            return list(self.records_of(document))
        except BadRequest:
            logger.warning("Ignoring malformed document at %s", self.path_for(scope))
            return []

    def get(self, token: str, scope: Optional[str], record_id: str) -> dict:
        for record in self.list(token, scope):
            if record.get("id") == record_id:
                return record
        raise NotFound(f"{self.record_name} not found")


class CollectionService(ReadOnlyCollection):
    """Adds create/update/delete-by-id on top of ``ReadOnlyCollection``.

    ``record_type``, when set, is the dataclass every stored record must fit;
    records are rebuilt through it so defaults are filled and bad values are
    rejected with ``BadRequest``. Fields it does not model are kept as stored.
    """

    record_type: Optional[Type] = None

    def normalize(self, record: dict) -> dict:
        if self.record_type is None:
            return record
        return normalize_document(self.record_type, record)

    def touch(self, document: Any) -> None:
        """Hook for document-level bookkeeping before a write."""

    def mutate(self, token: str, scope: Optional[str], change: Callable[[list], Any]) -> Any:
        def apply(document: Any) -> Any:
            result = change(self.records_of(document))
            self.touch(document)
            return result

        return self.documents.mutate_document(
            token, self.path_for(scope), self.default_document(), apply
        )

    def prepare_new(self, data: dict) -> dict:
        """Builds the record to store from caller-supplied fields."""
        now = self.clock()
        record = caller_fields(data)
        record.update({"id": self.id_factory(), "createdAt": now, "updatedAt": now})
        return self.normalize(record)

    def create(self, token: str, scope: Optional[str], data: dict) -> dict:
        record = self.prepare_new(data)
        self.mutate(token, scope, lambda records: records.append(record))
        logger.info("Created %s %s at %s", self.record_name, record["id"], self.path_for(scope))
        return record

    def update(self, token: str, scope: Optional[str], record_id: str, patch: dict) -> dict:
        changes = caller_fields(patch)

        def apply(records: list) -> dict:
            for index, record in enumerate(records):
                if record.get("id") == record_id:
                    updated = self.normalize(
                        {**record, **changes, "updatedAt": self.clock()}
                    )
                    records[index] = updated
                    return updated
            raise NotFound(f"{self.record_name} not found")

        return self.mutate(token, scope, apply)

    def delete(self, token: str, scope: Optional[str], record_id: str) -> None:
        def apply(records: list) -> None:
            remaining = [r for r in records if r.get("id") != record_id]
            if len(remaining) == len(records):
                raise NotFound(f"{self.record_name} not found")
            records[:] = remaining

        self.mutate(token, scope, apply)
        logger.info("Deleted %s %s at %s", self.record_name, record_id, self.path_for(scope))
