"""
Record types persisted as JSON documents in the remote store.

Field names are snake_case here; the stored documents use camelCase keys
(see ``familyhub.json_utils``).
"""

from dataclasses import asdict, dataclass, field, fields
from datetime import datetime, timezone
from typing import Any, List, Literal, Optional, Type, TypeVar

from dacite import Config, DaciteError, from_dict

from familyhub.errors import BadRequest
from familyhub.json_utils import camel_to_snake, convert_keys, drop_none

Role = Literal["admin", "member"]
Priority = Literal["low", "medium", "high"]
PortfolioStatus = Literal["completed", "in-progress", "planned"]
ProjectStatus = Literal["planning", "active", "completed", "on-hold"]

T = TypeVar("T")


def utc_now_iso() -> str:
    """Current UTC time as an ISO-8601 string with millisecond precision."""
    now = datetime.now(timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")


@dataclass
class FamilyMember:
    id: str
    name: str
    username: str
    password_hash: str
    folder_path: str
    created_at: str
    role: Role = "member"
    last_login: Optional[str] = None
    is_active: bool = True
    session_token: Optional[str] = None


@dataclass
class FamilySettings:
    allow_self_registration: bool = False
    default_role: Role = "member"


@dataclass
class FamilyData:
    """The single document backing the family directory."""

    members: List[FamilyMember] = field(default_factory=list)
    settings: FamilySettings = field(default_factory=FamilySettings)


@dataclass
class SessionData:
    """What a successful family login hands back to the caller."""

    member_id: str
    member_name: str
    username: str
    role: Role
    folder_path: str
    family_token: str


@dataclass
class TodoItem:
    id: str
    title: str
    created_by: str
    created_at: str
    updated_at: str
    description: Optional[str] = None
    completed: bool = False
    priority: Priority = "medium"
    category: str = "general"
    due_date: Optional[str] = None
    tags: List[str] = field(default_factory=list)
    completed_at: Optional[str] = None


@dataclass
class TodoList:
    id: str
    name: str
    created_at: str
    updated_at: str
    description: Optional[str] = None
    color: str = "blue"
    items: List[TodoItem] = field(default_factory=list)


@dataclass
class PortfolioItem:
    id: str
    title: str
    created_at: str
    updated_at: str
    description: str = ""
    long_description: Optional[str] = None
    category: str = ""
    tags: List[str] = field(default_factory=list)
    images: List[str] = field(default_factory=list)
    demo_url: Optional[str] = None
    github_url: Optional[str] = None
    technologies: List[str] = field(default_factory=list)
    status: PortfolioStatus = "planned"
    featured: bool = False


@dataclass
class Project:
    id: str
    name: str
    created_at: str
    updated_at: str
    description: str = ""
    status: ProjectStatus = "planning"
    priority: Priority = "medium"
    tags: List[str] = field(default_factory=list)
    files: List[str] = field(default_factory=list)
    notes: str = ""


def record_from_document(record_type: Type[T], document: dict) -> T:
    """
    Builds a record from its stored camelCase form.

    Raises:
        BadRequest: If required fields are missing or have the wrong type.
    """
    try:
        return from_dict(
            data_class=record_type,
            data=convert_keys(document, "camel_to_snake"),
            config=Config(check_types=True),
        )
    except DaciteError as e:
        raise BadRequest(f"Invalid {record_type.__name__}: {e}") from e


def record_to_document(record: Any) -> dict:
    """Serializes a record to its stored camelCase form, omitting unset optionals."""
    document = convert_keys(asdict(record), "snake_to_camel")
    return _drop_none_deep(document)


def _drop_none_deep(value: Any) -> Any:
    if isinstance(value, dict):
        return {k: _drop_none_deep(v) for k, v in drop_none(value).items()}
    if isinstance(value, list):
        return [_drop_none_deep(v) for v in value]
    return value


def normalize_document(record_type: Type[T], document: Any) -> dict:
    """
    Validates ``document`` against ``record_type`` and returns its stored form.

    Modelled fields are rebuilt with their defaults; keys the record type does
    not model are carried over unchanged.
    """
    if not isinstance(document, dict):
        raise BadRequest(f"Invalid {record_type.__name__}: expected an object")
    modelled = {f.name for f in fields(record_type)}
    normalized = record_to_document(record_from_document(record_type, document))
    for key, value in document.items():
        if camel_to_snake(key) not in modelled:
            normalized[key] = value
    return normalized
