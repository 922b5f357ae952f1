from dataclasses import dataclass, field
from typing import Any, Optional

from pydantic import BaseModel, Field


@dataclass(frozen=True)
class Reference:
    id: str
    name: Optional[str] = None


@dataclass
class UserSession:
    id: str
    realm: Any
    user: Any
    last_session_refresh: int = 0
    data: Optional[str] = None
    client_sessions: list = field(default_factory=list)


@dataclass
class ClientSession:
    id: str
    client: Any
    user_session: Any
    timestamp: int = 0
    data: Optional[str] = None


class UserSessionCreate(BaseModel):
    user_session_id: str = Field(min_length=1, max_length=36)
    realm_id: str = Field(min_length=1, max_length=36)
    user_id: str = Field(min_length=1, max_length=255)
    last_session_refresh: int = Field(default=0, ge=0)
    data: Optional[str] = None
    offline: bool = False


class UserSessionUpdate(BaseModel):
    last_session_refresh: int = Field(ge=0)
    data: Optional[str] = None
    offline: bool = False


class ClientSessionCreate(BaseModel):
    client_session_id: str = Field(min_length=1, max_length=36)
    client_id: str = Field(min_length=1, max_length=36)
    user_session_id: str = Field(min_length=1, max_length=36)
    timestamp: int = Field(default=0, ge=0)
    data: Optional[str] = None
    offline: bool = False


class ClientSessionResponse(BaseModel):
    client_session_id: str
    client_id: str
    user_session_id: str
    timestamp: int
    data: Optional[str] = None
    client_resolved: bool = False


class UserSessionResponse(BaseModel):
    user_session_id: str
    realm_id: str
    user_id: str
    last_session_refresh: int
    data: Optional[str] = None
    offline: bool
    realm_resolved: bool = False
    user_resolved: bool = False
    client_sessions: list[ClientSessionResponse] = Field(default_factory=list)


class SessionCountResponse(BaseModel):
    offline: bool
    count: int


class TimestampsUpdateRequest(BaseModel):
    time: Optional[int] = Field(default=None, ge=0)


class MaintenanceResponse(BaseModel):
    message: str
