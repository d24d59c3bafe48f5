"""
Dependency wiring for the FastAPI app.
"""

from __future__ import annotations

from typing import Optional

from fastapi import Depends, Header, Request

from familyhub.calendar_events import CalendarEventService
from familyhub.config import get_settings
from familyhub.documents import DocumentRepository, PathLocks
from familyhub.errors import Unauthenticated
from familyhub.family import FamilyDirectory
from familyhub.files import FileService
from familyhub.finances import BudgetService, TransactionService
from familyhub.portfolio import PortfolioService
from familyhub.projects import ProjectService
from familyhub.records import FamilyMember
from familyhub.storage import DiskClient, InMemoryDiskClient, YandexDiskClient
from familyhub.todos import TodoListService

_disk_client: DiskClient | None = None
# Shared by every repository so read-modify-write is serialized per path
# across requests.
_path_locks = PathLocks()


def get_disk_client() -> DiskClient:
    """
    Return a singleton store client so the HTTP session (or in-memory state)
    is reused across requests.
    """
    global _disk_client
    if _disk_client:
        return _disk_client

    settings = get_settings()
    if settings.use_in_memory_backends:
        _disk_client = InMemoryDiskClient()
    else:
        _disk_client = YandexDiskClient(
            base_url=settings.disk_api_base,
            timeout=settings.request_timeout,
        )
    return _disk_client


def get_document_repository(
    disk: DiskClient = Depends(get_disk_client),
) -> DocumentRepository:
    return DocumentRepository(disk, locks=_path_locks)


def get_family_directory(
    documents: DocumentRepository = Depends(get_document_repository),
) -> FamilyDirectory:
    return FamilyDirectory(documents)


def get_file_service(disk: DiskClient = Depends(get_disk_client)) -> FileService:
    settings = get_settings()
    return FileService(
        disk,
        list_limit=settings.list_limit,
        family_list_limit=settings.family_list_limit,
    )


def get_todo_service(
    documents: DocumentRepository = Depends(get_document_repository),
) -> TodoListService:
    return TodoListService(documents)


def get_budget_service(
    documents: DocumentRepository = Depends(get_document_repository),
) -> BudgetService:
    return BudgetService(documents)


def get_transaction_service(
    documents: DocumentRepository = Depends(get_document_repository),
) -> TransactionService:
    return TransactionService(documents)


def get_calendar_service(
    documents: DocumentRepository = Depends(get_document_repository),
) -> CalendarEventService:
    return CalendarEventService(documents)


def get_portfolio_service(
    documents: DocumentRepository = Depends(get_document_repository),
) -> PortfolioService:
    return PortfolioService(documents)


def get_project_service(
    documents: DocumentRepository = Depends(get_document_repository),
) -> ProjectService:
    return ProjectService(documents)


def _bearer(authorization: Optional[str]) -> Optional[str]:
    if authorization and authorization.startswith("Bearer "):
        return authorization[len("Bearer "):].strip() or None
    return None


def get_bearer_token(authorization: Optional[str] = Header(None)) -> str:
    """Storage token for the API flow (``Authorization: Bearer <token>``)."""
    token = _bearer(authorization)
    if not token:
        raise Unauthenticated("No Yandex token provided")
    return token


def get_cookie_token(request: Request) -> str:
    """Storage token for the browser flow, set by ``POST /connect``."""
    token = request.cookies.get(get_settings().cookie_name)
    if not token:
        raise Unauthenticated("Not authenticated")
    return token


def get_any_token(request: Request, authorization: Optional[str] = Header(None)) -> str:
    token = _bearer(authorization) or request.cookies.get(get_settings().cookie_name)
    if not token:
        raise Unauthenticated("No Yandex token provided")
    return token


def get_current_member(
    token: str = Depends(get_bearer_token),
    x_family_token: Optional[str] = Header(None),
    family: FamilyDirectory = Depends(get_family_directory),
) -> FamilyMember:
    """The logged-in family member for member-scoped collections."""
    return family.resolve_member(token, x_family_token)
