"""
Pydantic schemas for the family hub API.

Collection records (lists, items, events, portfolio entries) are passed
through as plain dicts; their shape is enforced by ``familyhub.records``.
"""

from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class SuccessResponse(BaseModel):
    success: Literal[True] = True


class ErrorResponse(BaseModel):
    error: str


class ConnectRequest(BaseModel):
    token: Optional[str] = None


class DiskInfo(BaseModel):
    total_space: Optional[int] = None
    used_space: Optional[int] = None
    system_folders: Optional[dict] = None


class ConnectResponse(BaseModel):
    success: Literal[True] = True
    diskInfo: DiskInfo


class LoginRequest(BaseModel):
    username: Optional[str] = None
    password: Optional[str] = None


class SessionResponse(BaseModel):
    memberId: str
    memberName: str
    username: str
    role: Literal["admin", "member"]
    folderPath: str
    familyToken: str


class AddMemberRequest(BaseModel):
    name: Optional[str] = None
    username: Optional[str] = None
    password: Optional[str] = None
    role: Optional[str] = None


class PublicMember(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    name: str
    username: str
    role: Literal["admin", "member"]
    folderPath: str
    createdAt: str
    lastLogin: Optional[str] = None
    isActive: bool


class FamilySettingsModel(BaseModel):
    allowSelfRegistration: bool = False
    defaultRole: Literal["admin", "member"] = "member"


class MembersResponse(BaseModel):
    members: list[PublicMember]
    settings: FamilySettingsModel


class PathRequest(BaseModel):
    path: Optional[str] = None


class FamilyFileEntry(BaseModel):
    name: Optional[str] = None
    path: Optional[str] = None
    type: Optional[str] = None
    size: Optional[int] = None
    modified: Optional[str] = None
    mimeType: Optional[str] = None


class FamilyFilesResponse(BaseModel):
    items: list[FamilyFileEntry]


class FolderResponse(BaseModel):
    success: Literal[True] = True
    path: str


class UploadResponse(BaseModel):
    success: Literal[True] = True
    fileName: str
    path: str
    size: int


class DownloadResponse(BaseModel):
    downloadUrl: str
    fileName: str


class FileEntry(BaseModel):
    name: Optional[str] = None
    path: Optional[str] = None
    type: Optional[str] = None
    size: Optional[int] = None
    modified: Optional[str] = None
    mime_type: Optional[str] = None


class FilesResponse(BaseModel):
    files: list[FileEntry]


class SaveContentRequest(BaseModel):
    path: Optional[str] = None
    content: Optional[str] = None


class CreateContentRequest(BaseModel):
    name: Optional[str] = None
    content: Optional[str] = None


class CreateContentResponse(BaseModel):
    success: Literal[True] = True
    path: str


class PhotoResponse(BaseModel):
    photoUrl: Optional[str] = None


class PhotoUploadResponse(BaseModel):
    success: Literal[True] = True
    message: str = Field(default="Profile photo uploaded successfully")
    photoUrl: Optional[str] = None
