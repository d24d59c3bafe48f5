"""
Family directory: the roster of members stored in ``/family/family.json``.

Login walks ``credentials supplied -> roster loaded -> member found ->
password verified`` and ends either authenticated (``lastLogin`` and a fresh
session token are written back) or rejected with ``Unauthenticated``.
"""

from __future__ import annotations

import logging
import re
import uuid
from dataclasses import asdict
from typing import Optional

from familyhub.documents import DocumentRepository
from familyhub.errors import BadRequest, Conflict, HubError, NotFound, Unauthenticated
from familyhub.json_utils import convert_keys
from familyhub.paths import FAMILY_DOCUMENT, FAMILY_ROOT
from familyhub.records import (
    FamilyData,
    FamilyMember,
    SessionData,
    record_from_document,
    record_to_document,
    utc_now_iso,
)
from familyhub.security import hash_password, new_session_token, verify_password

logger = logging.getLogger(__name__)

# Fields that never leave the service.
PRIVATE_MEMBER_FIELDS = ("passwordHash", "sessionToken")

VALID_ROLES = ("admin", "member")


def empty_family_document() -> dict:
    return record_to_document(FamilyData())


def sanitize_username(username: str) -> str:
    return re.sub(r"[^a-z0-9]", "", username.lower())


def public_member(member: dict) -> dict:
    return {k: v for k, v in member.items() if k not in PRIVATE_MEMBER_FIELDS}


class FamilyDirectory:
    def __init__(self, documents: DocumentRepository):
        self.documents = documents

    def _load(self, token: str) -> FamilyData:
        raw = self.documents.read_document(token, FAMILY_DOCUMENT, empty_family_document())
        return record_from_document(FamilyData, raw)

    def _mutate(self, token: str, mutate):
        """Runs ``mutate(FamilyData)`` as a locked read-modify-write of the roster."""

        def apply(document: dict):
            family = record_from_document(FamilyData, document)
            result = mutate(family)
            document.clear()
            document.update(record_to_document(family))
            return result

        return self.documents.mutate_document(
            token, FAMILY_DOCUMENT, empty_family_document(), apply
        )

    def list_members(self, token: str) -> dict:
        family = self._load(token)
        document = record_to_document(family)
        return {
            "members": [public_member(m) for m in document["members"]],
            "settings": document["settings"],
        }

    def authenticate(self, token: str, username: str, password: str) -> SessionData:
        if not username or not password:
            raise BadRequest("Username and password are required")

        def login(family: FamilyData) -> SessionData:
            for member in family.members:
                if member.username != username or not member.is_active:
                    continue
                valid, new_hash = verify_password(password, member.password_hash)
                if not valid:
                    continue
                if new_hash:
                    logger.info("Upgrading password hash for %s", member.username)
                    member.password_hash = new_hash
                member.last_login = utc_now_iso()
                member.session_token = new_session_token()
                return SessionData(
                    member_id=member.id,
                    member_name=member.name,
                    username=member.username,
                    role=member.role,
                    folder_path=member.folder_path,
                    family_token=member.session_token,
                )
            raise Unauthenticated("Invalid credentials")

        session = self._mutate(token, login)
        logger.info("Family member %s logged in", session.username)
        return session

    def add_member(
        self,
        token: str,
        name: str,
        username: str,
        password: str,
        role: Optional[str] = None,
    ) -> dict:
        if not name or not username or not password:
            raise BadRequest("Name, username, and password are required")
        clean_username = sanitize_username(username)
        if not clean_username:
            raise BadRequest("Username must contain letters or digits")

        def add(family: FamilyData) -> FamilyMember:
            member_role = role or family.settings.default_role
            if member_role not in VALID_ROLES:
                raise BadRequest(f"Unknown role: {member_role}")
            if any(m.username == clean_username for m in family.members):
                raise Conflict("Username already exists")
            member = FamilyMember(
                id=uuid.uuid4().hex,
                name=name,
                username=clean_username,
                password_hash=hash_password(password),
                role=member_role,
                folder_path=f"{FAMILY_ROOT}/{clean_username}",
                created_at=utc_now_iso(),
            )
            family.members.append(member)
            return member

        member = self._mutate(token, add)
        logger.info("Added family member %s", member.username)

        try:
            self.documents.disk.mkdir(token, member.folder_path)
        except Conflict:
            pass
        except HubError as e:
            logger.warning("Failed to create member folder %s: %s", member.folder_path, e)

        return public_member(record_to_document(member))

    def remove_member(self, token: str, member_id: str) -> None:
        def remove(family: FamilyData) -> FamilyMember:
            for member in family.members:
                if member.id == member_id:
                    family.members = [m for m in family.members if m.id != member_id]
                    return member
            raise NotFound("Family member not found")

        member = self._mutate(token, remove)
        logger.info("Removed family member %s", member.username)

        try:
            self.documents.disk.delete_path(token, member.folder_path, permanently=True)
        except HubError as e:
            logger.warning("Could not delete member folder %s: %s", member.folder_path, e)

    def resolve_member(self, token: str, family_token: Optional[str]) -> FamilyMember:
        """Finds the active member holding ``family_token`` from their last login."""
        if not family_token:
            raise Unauthenticated("Family session required")
        for member in self._load(token).members:
            if member.is_active and member.session_token == family_token:
                return member
        raise Unauthenticated("Invalid family token")


def session_to_dict(session: SessionData) -> dict:
    return convert_keys(asdict(session), "snake_to_camel")
