"""Lookup port used to turn stored ids back into realm, user and client objects.

The persister never writes through this port; it is consulted only while
reassembling sessions on read.
"""

from __future__ import annotations

from typing import Any, Optional, Protocol, runtime_checkable


@runtime_checkable
class Directory(Protocol):
    def get_realm(self, realm_id: str) -> Optional[Any]: ...

    def get_user_by_id(self, user_id: str, realm_id: str) -> Optional[Any]: ...

    def get_client_by_id(self, client_id: str, realm_id: str) -> Optional[Any]: ...


class NullDirectory:
    """Resolves nothing. Aggregates keep only their stored ids."""

    def get_realm(self, realm_id: str) -> Optional[Any]:
        return None

    def get_user_by_id(self, user_id: str, realm_id: str) -> Optional[Any]:
        return None

    def get_client_by_id(self, client_id: str, realm_id: str) -> Optional[Any]:
        return None


class StaticDirectory:
    """In-memory directory keyed by id, scoped per realm for users and clients."""

    def __init__(self) -> None:
        self._realms: dict[str, Any] = {}
        self._users: dict[tuple[str, str], Any] = {}
        self._clients: dict[tuple[str, str], Any] = {}

    def add_realm(self, realm: Any) -> Any:
        self._realms[realm.id] = realm
        return realm

    def add_user(self, realm_id: str, user: Any) -> Any:
        self._users[(realm_id, user.id)] = user
        return user

    def add_client(self, realm_id: str, client: Any) -> Any:
        self._clients[(realm_id, client.id)] = client
        return client

    def get_realm(self, realm_id: str) -> Optional[Any]:
        return self._realms.get(realm_id)

    def get_user_by_id(self, user_id: str, realm_id: str) -> Optional[Any]:
        return self._users.get((realm_id, user_id))

    def get_client_by_id(self, client_id: str, realm_id: str) -> Optional[Any]:
        return self._clients.get((realm_id, client_id))
