"""Translation between caller-facing session objects and stored rows.

Callers hand the persister objects that reference live realm, user and client
objects. Only their ids and the opaque ``data`` payload are stored; on read the
references are looked up again through a :class:`Directory`.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from typing import Any, Optional

from persister.models.schema.client_session import ClientSessionEntry
from persister.models.schema.user_session import UserSessionEntry
from persister.services.directory import Directory


@dataclass
class PersistentUserSessionModel:
    user_session_id: str
    realm_id: str
    user_id: str
    last_session_refresh: int = 0
    data: Optional[str] = None


@dataclass
class PersistentClientSessionModel:
    client_session_id: str
    client_id: str
    user_session_id: str
    user_id: Optional[str] = None
    timestamp: int = 0
    data: Optional[str] = None


def _ref_id(reference: Any, label: str) -> str:
    if reference is None:
        raise ValueError(f"Session is missing its {label}")
    if isinstance(reference, str):
        return reference
    ref_id = getattr(reference, "id", None)
    if not ref_id:
        raise ValueError(f"Session {label} has no id")
    return ref_id


class PersistentUserSessionAdapter:
    def __init__(
        self,
        model: PersistentUserSessionModel,
        realm: Any = None,
        user: Any = None,
        client_sessions: Optional[list] = None,
    ) -> None:
        self._model = model
        self.realm = realm
        self.user = user
        self.client_sessions = client_sessions if client_sessions is not None else []

    @classmethod
    def from_user_session(cls, user_session: Any) -> PersistentUserSessionAdapter:
        if isinstance(user_session, cls):
            return user_session
        model = PersistentUserSessionModel(
            user_session_id=user_session.id,
            realm_id=_ref_id(user_session.realm, "realm"),
            user_id=_ref_id(user_session.user, "user"),
            last_session_refresh=user_session.last_session_refresh,
            data=user_session.data,
        )
        return cls(model, realm=user_session.realm, user=user_session.user)

    @property
    def id(self) -> str:
        return self._model.user_session_id

    @property
    def realm_id(self) -> str:
        return self._model.realm_id

    @property
    def user_id(self) -> str:
        return self._model.user_id

    @property
    def last_session_refresh(self) -> int:
        return self._model.last_session_refresh

    @last_session_refresh.setter
    def last_session_refresh(self, value: int) -> None:
        self._model.last_session_refresh = value

    @property
    def data(self) -> Optional[str]:
        return self._model.data

    @data.setter
    def data(self, value: Optional[str]) -> None:
        self._model.data = value

    def get_updated_model(self) -> PersistentUserSessionModel:
        return dataclasses.replace(self._model)

    def __repr__(self) -> str:
        return f"<PersistentUserSessionAdapter {self.id} clients={len(self.client_sessions)}>"


class PersistentClientSessionAdapter:
    def __init__(
        self,
        model: PersistentClientSessionModel,
        realm: Any = None,
        client: Any = None,
        user_session: Any = None,
    ) -> None:
        self._model = model
        self.realm = realm
        self.client = client
        self.user_session = user_session

    @classmethod
    def from_client_session(cls, client_session: Any) -> PersistentClientSessionAdapter:
        if isinstance(client_session, cls):
            return client_session
        parent = client_session.user_session
        model = PersistentClientSessionModel(
            client_session_id=client_session.id,
            client_id=_ref_id(client_session.client, "client"),
            user_session_id=_ref_id(parent, "user session"),
            user_id=getattr(parent, "user_id", None)
            or getattr(getattr(parent, "user", None), "id", None),
            timestamp=client_session.timestamp,
            data=client_session.data,
        )
        return cls(
            model,
            realm=getattr(parent, "realm", None),
            client=client_session.client,
            user_session=parent,
        )

    @property
    def id(self) -> str:
        return self._model.client_session_id

    @property
    def client_id(self) -> str:
        return self._model.client_id

    @property
    def user_session_id(self) -> str:
        return self._model.user_session_id

    @property
    def timestamp(self) -> int:
        return self._model.timestamp

    @timestamp.setter
    def timestamp(self, value: int) -> None:
        self._model.timestamp = value

    @property
    def data(self) -> Optional[str]:
        return self._model.data

    @data.setter
    def data(self, value: Optional[str]) -> None:
        self._model.data = value

    def get_updated_model(self) -> PersistentClientSessionModel:
        return dataclasses.replace(self._model)

    def __repr__(self) -> str:
        return f"<PersistentClientSessionAdapter {self.id} user_session={self.user_session_id}>"


def to_user_session_entry(model: PersistentUserSessionModel, offline: bool) -> UserSessionEntry:
    return UserSessionEntry(
        user_session_id=model.user_session_id,
        offline=offline,
        realm_id=model.realm_id,
        user_id=model.user_id,
        last_session_refresh=model.last_session_refresh,
        data=model.data,
    )


def to_client_session_entry(model: PersistentClientSessionModel, offline: bool) -> ClientSessionEntry:
    return ClientSessionEntry(
        client_session_id=model.client_session_id,
        offline=offline,
        client_id=model.client_id,
        user_session_id=model.user_session_id,
        timestamp=model.timestamp,
        data=model.data,
    )


def to_user_session_adapter(
    entry: UserSessionEntry, directory: Directory
) -> PersistentUserSessionAdapter:
    realm = directory.get_realm(entry.realm_id)
    user = directory.get_user_by_id(entry.user_id, entry.realm_id)
    model = PersistentUserSessionModel(
        user_session_id=entry.user_session_id,
        realm_id=entry.realm_id,
        user_id=entry.user_id,
        last_session_refresh=entry.last_session_refresh,
        data=entry.data,
    )
    return PersistentUserSessionAdapter(model, realm=realm, user=user, client_sessions=[])


def to_client_session_adapter(
    entry: ClientSessionEntry,
    user_session: PersistentUserSessionAdapter,
    directory: Directory,
) -> PersistentClientSessionAdapter:
    client = directory.get_client_by_id(entry.client_id, user_session.realm_id)
    model = PersistentClientSessionModel(
        client_session_id=entry.client_session_id,
        client_id=entry.client_id,
        user_session_id=user_session.id,
        user_id=user_session.user_id,
        timestamp=entry.timestamp,
        data=entry.data,
    )
    return PersistentClientSessionAdapter(
        model, realm=user_session.realm, client=client, user_session=user_session
    )
