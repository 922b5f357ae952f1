import time as _time
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from persister.config import settings
from persister.database import get_db_session
from persister.schemas.sessions import (
    ClientSession,
    ClientSessionCreate,
    ClientSessionResponse,
    MaintenanceResponse,
    Reference,
    SessionCountResponse,
    TimestampsUpdateRequest,
    UserSession,
    UserSessionCreate,
    UserSessionResponse,
    UserSessionUpdate,
)
from persister.services.adapters import PersistentUserSessionAdapter
from persister.services.directory import Directory, NullDirectory
from persister.services.sessions import UserSessionPersister

router = APIRouter(prefix="/sessions", tags=["sessions"])

directory: Directory = NullDirectory()


def get_directory() -> Directory:
    return directory


def get_persister(
    db: Session = Depends(get_db_session),
    lookup: Directory = Depends(get_directory),
) -> UserSessionPersister:
    return UserSessionPersister(db, lookup)


def _to_response(adapter: PersistentUserSessionAdapter, offline: bool) -> UserSessionResponse:
    return UserSessionResponse(
        user_session_id=adapter.id,
        realm_id=adapter.realm_id,
        user_id=adapter.user_id,
        last_session_refresh=adapter.last_session_refresh,
        data=adapter.data,
        offline=offline,
        realm_resolved=adapter.realm is not None,
        user_resolved=adapter.user is not None,
        client_sessions=[
            ClientSessionResponse(
                client_session_id=client_session.id,
                client_id=client_session.client_id,
                user_session_id=client_session.user_session_id,
                timestamp=client_session.timestamp,
                data=client_session.data,
                client_resolved=client_session.client is not None,
            )
            for client_session in adapter.client_sessions
        ],
    )


@router.get("", response_model=list[UserSessionResponse])
def list_user_sessions(
    offline: bool = False,
    first_result: int = Query(default=0, ge=0),
    max_results: Optional[int] = Query(default=None, ge=1),
    persister: UserSessionPersister = Depends(get_persister),
) -> list[UserSessionResponse]:
    limit = max_results if max_results is not None else settings.sessions_page_size
    sessions = persister.load_user_sessions(first_result, limit, offline)
    return [_to_response(adapter, offline) for adapter in sessions]


@router.get("/count", response_model=SessionCountResponse)
def count_user_sessions(
    offline: bool = False,
    persister: UserSessionPersister = Depends(get_persister),
) -> SessionCountResponse:
    return SessionCountResponse(
        offline=offline, count=persister.get_user_sessions_count(offline)
    )


@router.get("/{user_session_id}", response_model=UserSessionResponse)
def get_user_session(
    user_session_id: str,
    offline: bool = False,
    persister: UserSessionPersister = Depends(get_persister),
) -> UserSessionResponse:
    adapter = persister.get_user_session(user_session_id, offline)
    if adapter is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User session not found",
        )
    return _to_response(adapter, offline)


@router.post("", response_model=MaintenanceResponse, status_code=status.HTTP_201_CREATED)
def create_user_session(
    payload: UserSessionCreate,
    persister: UserSessionPersister = Depends(get_persister),
) -> MaintenanceResponse:
    persister.create_user_session(
        UserSession(
            id=payload.user_session_id,
            realm=Reference(payload.realm_id),
            user=Reference(payload.user_id),
            last_session_refresh=payload.last_session_refresh,
            data=payload.data,
        ),
        payload.offline,
    )
    return MaintenanceResponse(message="User session created")


@router.put("/{user_session_id}", response_model=MaintenanceResponse)
def update_user_session(
    user_session_id: str,
    payload: UserSessionUpdate,
    persister: UserSessionPersister = Depends(get_persister),
) -> MaintenanceResponse:
    existing = persister.get_user_session(user_session_id, payload.offline)
    if existing is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User session not found",
        )
    existing.last_session_refresh = payload.last_session_refresh
    existing.data = payload.data
    persister.update_user_session(existing, payload.offline)
    return MaintenanceResponse(message="User session updated")


@router.delete("/{user_session_id}", response_model=MaintenanceResponse)
def remove_user_session(
    user_session_id: str,
    offline: bool = False,
    persister: UserSessionPersister = Depends(get_persister),
) -> MaintenanceResponse:
    persister.remove_user_session(user_session_id, offline)
    return MaintenanceResponse(message="User session removed")


@router.post(
    "/client-sessions",
    response_model=MaintenanceResponse,
    status_code=status.HTTP_201_CREATED,
)
def create_client_session(
    payload: ClientSessionCreate,
    persister: UserSessionPersister = Depends(get_persister),
) -> MaintenanceResponse:
    persister.create_client_session(
        ClientSession(
            id=payload.client_session_id,
            client=Reference(payload.client_id),
            user_session=Reference(payload.user_session_id),
            timestamp=payload.timestamp,
            data=payload.data,
        ),
        payload.offline,
    )
    return MaintenanceResponse(message="Client session created")


@router.delete("/client-sessions/{client_session_id}", response_model=MaintenanceResponse)
def remove_client_session(
    client_session_id: str,
    offline: bool = False,
    persister: UserSessionPersister = Depends(get_persister),
) -> MaintenanceResponse:
    persister.remove_client_session(client_session_id, offline)
    return MaintenanceResponse(message="Client session removed")


@router.delete("/realms/{realm_id}", response_model=MaintenanceResponse)
def remove_realm_sessions(
    realm_id: str,
    persister: UserSessionPersister = Depends(get_persister),
) -> MaintenanceResponse:
    persister.on_realm_removed(realm_id)
    return MaintenanceResponse(message="Realm sessions removed")


@router.delete("/realms/{realm_id}/clients/{client_id}", response_model=MaintenanceResponse)
def remove_client_sessions(
    realm_id: str,
    client_id: str,
    persister: UserSessionPersister = Depends(get_persister),
) -> MaintenanceResponse:
    persister.on_client_removed(realm_id, client_id)
    return MaintenanceResponse(message="Client sessions removed")


@router.delete("/realms/{realm_id}/users/{user_id}", response_model=MaintenanceResponse)
def remove_user_sessions(
    realm_id: str,
    user_id: str,
    persister: UserSessionPersister = Depends(get_persister),
) -> MaintenanceResponse:
    persister.on_user_removed(realm_id, user_id)
    return MaintenanceResponse(message="User sessions removed")


@router.post("/maintenance/clear-detached", response_model=MaintenanceResponse)
def clear_detached_sessions(
    persister: UserSessionPersister = Depends(get_persister),
) -> MaintenanceResponse:
    persister.clear_detached_user_sessions()
    return MaintenanceResponse(message="Detached sessions cleared")


@router.post("/maintenance/timestamps", response_model=MaintenanceResponse)
def update_all_timestamps(
    payload: TimestampsUpdateRequest,
    persister: UserSessionPersister = Depends(get_persister),
) -> MaintenanceResponse:
    timestamp = payload.time if payload.time is not None else int(_time.time())
    persister.update_all_timestamps(timestamp)
    return MaintenanceResponse(message=f"Timestamps set to {timestamp}")
