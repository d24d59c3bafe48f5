"""
HTTP routes for the family hub API.

Handlers only translate HTTP to service calls. Services raise
``familyhub.errors`` exceptions, which the app turns into JSON error
responses.
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Body, Depends, File, Form, Query, Response, UploadFile

from familyhub.calendar_events import CalendarEventService
from familyhub.config import get_settings
from familyhub.dependencies import (
    get_any_token,
    get_bearer_token,
    get_budget_service,
    get_calendar_service,
    get_cookie_token,
    get_current_member,
    get_disk_client,
    get_family_directory,
    get_file_service,
    get_portfolio_service,
    get_project_service,
    get_todo_service,
    get_transaction_service,
)
from familyhub.errors import BadRequest, Unauthenticated
from familyhub.family import FamilyDirectory, session_to_dict
from familyhub.files import FileService
from familyhub.finances import BudgetService, TransactionService
from familyhub.paths import FAMILY_ROOT, FamilyScopedPath
from familyhub.portfolio import PortfolioService
from familyhub.projects import ProjectService
from familyhub.records import FamilyMember
from familyhub.schemas import (
    AddMemberRequest,
    ConnectRequest,
    ConnectResponse,
    CreateContentRequest,
    CreateContentResponse,
    DiskInfo,
    DownloadResponse,
    FamilyFilesResponse,
    FilesResponse,
    FolderResponse,
    LoginRequest,
    MembersResponse,
    PathRequest,
    PhotoResponse,
    PhotoUploadResponse,
    SaveContentRequest,
    SessionResponse,
    SuccessResponse,
    UploadResponse,
)
from familyhub.storage import DiskClient
from familyhub.todos import TodoListService

router = APIRouter()


# Browser (cookie) flow


@router.post("/connect", response_model=ConnectResponse)
def connect(
    payload: ConnectRequest,
    response: Response,
    disk: DiskClient = Depends(get_disk_client),
):
    """
    Validates a storage token against the disk info endpoint and keeps it
    in an httpOnly cookie for the browser flow.
    """
    if not payload.token:
        raise BadRequest("Token is required")
    try:
        info = disk.disk_info(payload.token)
    except Unauthenticated as e:
        raise Unauthenticated("Invalid token") from e

    settings = get_settings()
    response.set_cookie(
        settings.cookie_name,
        payload.token,
        httponly=True,
        secure=settings.cookie_secure,
        samesite="strict",
        max_age=settings.cookie_max_age,
    )
    return ConnectResponse(
        diskInfo=DiskInfo(
            total_space=info.get("total_space"),
            used_space=info.get("used_space"),
            system_folders=info.get("system_folders"),
        )
    )


@router.get("/files", response_model=FilesResponse)
def list_files(
    path: str = Query("/"),
    token: str = Depends(get_cookie_token),
    files: FileService = Depends(get_file_service),
):
    return FilesResponse(files=files.list_root(token, path))


@router.get("/content")
def list_content(
    token: str = Depends(get_cookie_token),
    files: FileService = Depends(get_file_service),
):
    return {"items": files.list_content(token)}


@router.post("/content/save", response_model=SuccessResponse)
def save_content(
    payload: SaveContentRequest,
    token: str = Depends(get_cookie_token),
    files: FileService = Depends(get_file_service),
):
    if not payload.path or payload.content is None:
        raise BadRequest("Path and content are required")
    files.save_content(token, payload.path, payload.content)
    return SuccessResponse()


@router.post("/content/create", response_model=CreateContentResponse)
def create_content(
    payload: CreateContentRequest,
    token: str = Depends(get_cookie_token),
    files: FileService = Depends(get_file_service),
):
    if not payload.name or payload.content is None:
        raise BadRequest("Name and content are required")
    path = files.create_content(token, payload.name, payload.content)
    return CreateContentResponse(path=path)


@router.get("/content/{path:path}")
def read_content(
    path: str,
    token: str = Depends(get_cookie_token),
    files: FileService = Depends(get_file_service),
):
    return files.read_content(token, "/" + path.lstrip("/"))


@router.post("/upload", response_model=UploadResponse)
def upload_file(
    file: UploadFile = File(...),
    path: Optional[str] = Form(None),
    token: str = Depends(get_cookie_token),
    files: FileService = Depends(get_file_service),
):
    target = path or f"/{file.filename}"
    body = file.file.read()
    files.put(token, target, body, file.content_type, overwrite=True)
    return UploadResponse(fileName=file.filename or target, path=target, size=len(body))


# Family directory


@router.get("/family", response_model=MembersResponse)
@router.get("/family/members", response_model=MembersResponse)
def list_family_members(
    token: str = Depends(get_bearer_token),
    family: FamilyDirectory = Depends(get_family_directory),
):
    return family.list_members(token)


@router.post("/family/login", response_model=SessionResponse)
def family_login(
    payload: LoginRequest,
    token: str = Depends(get_bearer_token),
    family: FamilyDirectory = Depends(get_family_directory),
):
    session = family.authenticate(token, payload.username or "", payload.password or "")
    return session_to_dict(session)


@router.post("/family/members")
def add_family_member(
    payload: AddMemberRequest,
    token: str = Depends(get_bearer_token),
    family: FamilyDirectory = Depends(get_family_directory),
):
    return family.add_member(
        token,
        name=payload.name or "",
        username=payload.username or "",
        password=payload.password or "",
        role=payload.role,
    )


@router.delete("/family/members/{member_id}", response_model=SuccessResponse)
def remove_family_member(
    member_id: str,
    token: str = Depends(get_bearer_token),
    family: FamilyDirectory = Depends(get_family_directory),
):
    family.remove_member(token, member_id)
    return SuccessResponse()


# Family files


@router.get("/family/files", response_model=FamilyFilesResponse)
def list_family_files(
    path: Optional[str] = Query(None),
    token: str = Depends(get_bearer_token),
    files: FileService = Depends(get_file_service),
):
    scoped = FamilyScopedPath.parse(path, default=FAMILY_ROOT)
    return FamilyFilesResponse(items=files.list_family(token, scoped))


@router.delete("/family/files", response_model=SuccessResponse)
def delete_family_file(
    payload: PathRequest,
    token: str = Depends(get_bearer_token),
    files: FileService = Depends(get_file_service),
):
    files.delete_family_path(token, FamilyScopedPath.parse(payload.path))
    return SuccessResponse()


@router.post("/family/folders", response_model=FolderResponse)
def create_family_folder(
    payload: PathRequest,
    token: str = Depends(get_bearer_token),
    files: FileService = Depends(get_file_service),
):
    path = files.create_family_folder(token, FamilyScopedPath.parse(payload.path))
    return FolderResponse(path=path)


@router.post("/family/upload", response_model=UploadResponse)
def upload_family_file(
    file: UploadFile = File(...),
    path: Optional[str] = Form(None),
    token: str = Depends(get_bearer_token),
    files: FileService = Depends(get_file_service),
):
    scoped = FamilyScopedPath.parse(path)
    result = files.upload_family_file(token, scoped, file.file.read(), file.content_type)
    return UploadResponse(
        fileName=file.filename or result["fileName"],
        path=result["path"],
        size=result["size"],
    )


@router.get("/family/download", response_model=DownloadResponse)
def download_family_file(
    path: Optional[str] = Query(None),
    token: str = Depends(get_bearer_token),
    files: FileService = Depends(get_file_service),
):
    return files.family_download_url(token, FamilyScopedPath.parse(path))


# Member-scoped collections


@router.get("/family/todos")
def list_todo_lists(
    token: str = Depends(get_bearer_token),
    member: FamilyMember = Depends(get_current_member),
    todos: TodoListService = Depends(get_todo_service),
):
    return {"lists": todos.list(token, member.folder_path)}


@router.post("/family/todos/lists")
def create_todo_list(
    payload: dict = Body(...),
    token: str = Depends(get_bearer_token),
    member: FamilyMember = Depends(get_current_member),
    todos: TodoListService = Depends(get_todo_service),
):
    return {"list": todos.create(token, member.folder_path, payload)}


@router.put("/family/todos/lists/{list_id}")
def update_todo_list(
    list_id: str,
    payload: dict = Body(...),
    token: str = Depends(get_bearer_token),
    member: FamilyMember = Depends(get_current_member),
    todos: TodoListService = Depends(get_todo_service),
):
    return {"list": todos.update(token, member.folder_path, list_id, payload)}


@router.delete("/family/todos/lists/{list_id}", response_model=SuccessResponse)
def delete_todo_list(
    list_id: str,
    token: str = Depends(get_bearer_token),
    member: FamilyMember = Depends(get_current_member),
    todos: TodoListService = Depends(get_todo_service),
):
    todos.delete(token, member.folder_path, list_id)
    return SuccessResponse()


@router.post("/family/todos/lists/{list_id}/items")
def add_todo_item(
    list_id: str,
    payload: dict = Body(...),
    token: str = Depends(get_bearer_token),
    member: FamilyMember = Depends(get_current_member),
    todos: TodoListService = Depends(get_todo_service),
):
    item = todos.add_item(token, member.folder_path, list_id, payload, member.username)
    return {"item": item}


@router.put("/family/todos/lists/{list_id}/items/{item_id}")
def update_todo_item(
    list_id: str,
    item_id: str,
    payload: dict = Body(...),
    token: str = Depends(get_bearer_token),
    member: FamilyMember = Depends(get_current_member),
    todos: TodoListService = Depends(get_todo_service),
):
    return {"item": todos.update_item(token, member.folder_path, list_id, item_id, payload)}


@router.post("/family/todos/lists/{list_id}/items/{item_id}/toggle")
def toggle_todo_item(
    list_id: str,
    item_id: str,
    token: str = Depends(get_bearer_token),
    member: FamilyMember = Depends(get_current_member),
    todos: TodoListService = Depends(get_todo_service),
):
    return {"item": todos.toggle_item(token, member.folder_path, list_id, item_id)}


@router.delete(
    "/family/todos/lists/{list_id}/items/{item_id}", response_model=SuccessResponse
)
def delete_todo_item(
    list_id: str,
    item_id: str,
    token: str = Depends(get_bearer_token),
    member: FamilyMember = Depends(get_current_member),
    todos: TodoListService = Depends(get_todo_service),
):
    todos.delete_item(token, member.folder_path, list_id, item_id)
    return SuccessResponse()


@router.get("/family/finances/budgets")
def list_budgets(
    token: str = Depends(get_bearer_token),
    member: FamilyMember = Depends(get_current_member),
    budgets: BudgetService = Depends(get_budget_service),
):
    return {"budgets": budgets.list(token, member.folder_path)}


@router.get("/family/finances/transactions")
def list_transactions(
    token: str = Depends(get_bearer_token),
    member: FamilyMember = Depends(get_current_member),
    transactions: TransactionService = Depends(get_transaction_service),
):
    return {"transactions": transactions.list(token, member.folder_path)}


@router.post("/family/finances/transactions")
def create_transaction(
    payload: dict = Body(...),
    token: str = Depends(get_bearer_token),
    member: FamilyMember = Depends(get_current_member),
    transactions: TransactionService = Depends(get_transaction_service),
):
    return {"transaction": transactions.create(token, member.folder_path, payload)}


@router.get("/family/calendar")
def list_events(
    token: str = Depends(get_bearer_token),
    member: FamilyMember = Depends(get_current_member),
    events: CalendarEventService = Depends(get_calendar_service),
):
    return {"events": events.list(token, member.folder_path)}


@router.post("/family/calendar")
def create_event(
    payload: dict = Body(...),
    token: str = Depends(get_bearer_token),
    member: FamilyMember = Depends(get_current_member),
    events: CalendarEventService = Depends(get_calendar_service),
):
    return {"event": events.create(token, member.folder_path, payload)}


@router.put("/family/calendar/{event_id}")
def update_event(
    event_id: str,
    payload: dict = Body(...),
    token: str = Depends(get_bearer_token),
    member: FamilyMember = Depends(get_current_member),
    events: CalendarEventService = Depends(get_calendar_service),
):
    return {"event": events.update(token, member.folder_path, event_id, payload)}


@router.delete("/family/calendar/{event_id}", response_model=SuccessResponse)
def delete_event(
    event_id: str,
    token: str = Depends(get_bearer_token),
    member: FamilyMember = Depends(get_current_member),
    events: CalendarEventService = Depends(get_calendar_service),
):
    events.delete(token, member.folder_path, event_id)
    return SuccessResponse()


# Portfolio and projects


@router.get("/portfolio")
def list_portfolio(
    token: str = Depends(get_bearer_token),
    portfolio: PortfolioService = Depends(get_portfolio_service),
):
    return portfolio.catalog(token)


@router.post("/portfolio")
def create_portfolio_item(
    payload: dict = Body(...),
    token: str = Depends(get_bearer_token),
    portfolio: PortfolioService = Depends(get_portfolio_service),
):
    return portfolio.create(token, None, payload)


@router.put("/portfolio/{item_id}")
def update_portfolio_item(
    item_id: str,
    payload: dict = Body(...),
    token: str = Depends(get_bearer_token),
    portfolio: PortfolioService = Depends(get_portfolio_service),
):
    return portfolio.update(token, None, item_id, payload)


@router.delete("/portfolio/{item_id}", response_model=SuccessResponse)
def delete_portfolio_item(
    item_id: str,
    token: str = Depends(get_bearer_token),
    portfolio: PortfolioService = Depends(get_portfolio_service),
):
    portfolio.delete(token, None, item_id)
    return SuccessResponse()


@router.get("/projects")
def list_projects(
    token: str = Depends(get_any_token),
    projects: ProjectService = Depends(get_project_service),
):
    return {"projects": projects.list(token)}


@router.post("/projects")
def create_project(
    payload: dict = Body(...),
    token: str = Depends(get_any_token),
    projects: ProjectService = Depends(get_project_service),
):
    return {"project": projects.create(token, None, payload)}


@router.put("/projects/{project_id}")
def update_project(
    project_id: str,
    payload: dict = Body(...),
    token: str = Depends(get_any_token),
    projects: ProjectService = Depends(get_project_service),
):
    return {"project": projects.update(token, None, project_id, payload)}


@router.delete("/projects/{project_id}", response_model=SuccessResponse)
def delete_project(
    project_id: str,
    token: str = Depends(get_any_token),
    projects: ProjectService = Depends(get_project_service),
):
    projects.delete(token, None, project_id)
    return SuccessResponse()


# Profile photo


@router.get("/profile/photo", response_model=PhotoResponse)
def get_profile_photo(
    token: str = Depends(get_bearer_token),
    files: FileService = Depends(get_file_service),
):
    return PhotoResponse(photoUrl=files.get_photo_url(token))


@router.post("/profile/upload", response_model=PhotoUploadResponse)
def upload_profile_photo(
    file: UploadFile = File(...),
    token: str = Depends(get_bearer_token),
    files: FileService = Depends(get_file_service),
):
    photo_url = files.upload_photo(token, file.file.read(), file.content_type)
    return PhotoUploadResponse(photoUrl=photo_url)


@router.delete("/profile/photo", response_model=SuccessResponse)
def delete_profile_photo(
    token: str = Depends(get_bearer_token),
    files: FileService = Depends(get_file_service),
):
    files.delete_photo(token)
    return SuccessResponse()
