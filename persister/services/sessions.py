import logging
from contextlib import contextmanager
from typing import Any, Optional

from sqlalchemy.exc import DBAPIError, IntegrityError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import FlushError

from persister.models.queries import named_query
from persister.models.schema.client_session import ClientSessionEntry
from persister.models.schema.db_config import SessionKey
from persister.models.schema.user_session import UserSessionEntry
from persister.schemas.errors import (
    BackendUnavailableError,
    ConflictError,
    NotFoundError,
)
from persister.services.adapters import (
    PersistentClientSessionAdapter,
    PersistentUserSessionAdapter,
    to_client_session_adapter,
    to_client_session_entry,
    to_user_session_adapter,
    to_user_session_entry,
)
from persister.services.directory import Directory, NullDirectory
from persister.services.reassembly import merge_client_sessions

LOGGER = logging.getLogger(__name__)

_SYNC_FETCH = {"synchronize_session": "fetch"}


@contextmanager
def _backend_errors(operation: str):
    try:
        yield
    except (IntegrityError, FlushError) as exc:
        raise ConflictError(f"{operation}: duplicate session identity") from exc
    except DBAPIError as exc:
        LOGGER.error("%s failed against the session backend: %s", operation, exc)
        raise BackendUnavailableError(f"{operation}: session backend unavailable") from exc


def _page_bound(value: Optional[int]) -> Optional[int]:
    if value is None or value == -1:
        return None
    if value < 0:
        raise ValueError("Page bounds must be non-negative, or -1 / None for unbounded")
    return value


class UserSessionPersister:
    """Stores user sessions and their client sessions for one unit of work.

    The caller owns the SQLAlchemy session and its transaction. Every
    mutating call flushes before returning so later reads in the same unit
    observe it.
    """

    def __init__(self, session: Session, directory: Optional[Directory] = None) -> None:
        self._session = session
        self._directory = directory if directory is not None else NullDirectory()

    def create_user_session(self, user_session: Any, offline: bool) -> None:
        adapter = PersistentUserSessionAdapter.from_user_session(user_session)
        model = adapter.get_updated_model()
        key = SessionKey(model.user_session_id, offline)
        with _backend_errors("create_user_session"):
            if self._session.get(UserSessionEntry, key) is not None:
                raise ConflictError(
                    f"UserSession with ID {key.id}, offline: {offline} already exists"
                )
            self._session.add(to_user_session_entry(model, offline))
            self._session.flush()

    def create_client_session(self, client_session: Any, offline: bool) -> None:
        adapter = PersistentClientSessionAdapter.from_client_session(client_session)
        model = adapter.get_updated_model()
        key = SessionKey(model.client_session_id, offline)
        with _backend_errors("create_client_session"):
            if self._session.get(ClientSessionEntry, key) is not None:
                raise ConflictError(
                    f"ClientSession with ID {key.id}, offline: {offline} already exists"
                )
            self._session.add(to_client_session_entry(model, offline))
            self._session.flush()

    def update_user_session(self, user_session: Any, offline: bool) -> None:
        adapter = PersistentUserSessionAdapter.from_user_session(user_session)
        model = adapter.get_updated_model()
        with _backend_errors("update_user_session"):
            entry = self._session.get(
                UserSessionEntry, SessionKey(model.user_session_id, offline)
            )
            if entry is None:
                raise NotFoundError(
                    f"UserSession with ID {model.user_session_id}, offline: {offline} not found"
                )
            entry.last_session_refresh = model.last_session_refresh
            entry.data = model.data
            self._session.flush()

    def remove_user_session(self, user_session_id: str, offline: bool) -> None:
        with _backend_errors("remove_user_session"):
            self._execute(
                "delete_client_sessions_by_user_session",
                user_session_id=user_session_id,
                offline=offline,
            )
            entry = self._session.get(UserSessionEntry, SessionKey(user_session_id, offline))
            if entry is not None:
                self._session.delete(entry)
            self._session.flush()

    def remove_client_session(self, client_session_id: str, offline: bool) -> None:
        with _backend_errors("remove_client_session"):
            entry = self._session.get(
                ClientSessionEntry, SessionKey(client_session_id, offline)
            )
            if entry is None:
                return
            user_session_id = entry.user_session_id
            self._session.delete(entry)
            self._session.flush()

            remaining = self._scalar(
                "count_client_sessions_by_user_session",
                user_session_id=user_session_id,
                offline=offline,
            )
            if remaining == 0:
                parent = self._session.get(
                    UserSessionEntry, SessionKey(user_session_id, offline)
                )
                if parent is not None:
                    LOGGER.debug(
                        "Removing user session %s (offline=%s) after its last client session",
                        user_session_id,
                        offline,
                    )
                    self._session.delete(parent)
                    self._session.flush()

    def on_realm_removed(self, realm_id: str) -> None:
        with _backend_errors("on_realm_removed"):
            clients = self._execute("delete_client_sessions_by_realm", realm_id=realm_id)
            users = self._execute("delete_user_sessions_by_realm", realm_id=realm_id)
        LOGGER.info(
            "Realm %s removed: %s client sessions, %s user sessions deleted",
            realm_id,
            clients,
            users,
        )

    def on_client_removed(self, realm_id: str, client_id: str) -> None:
        with _backend_errors("on_client_removed"):
            clients = self._execute(
                "delete_client_sessions_by_client", realm_id=realm_id, client_id=client_id
            )
            users = self._execute("delete_detached_user_sessions")
        LOGGER.info(
            "Client %s of realm %s removed: %s client sessions, %s detached user sessions deleted",
            client_id,
            realm_id,
            clients,
            users,
        )

    def on_user_removed(self, realm_id: str, user_id: str) -> None:
        with _backend_errors("on_user_removed"):
            clients = self._execute(
                "delete_client_sessions_by_user", realm_id=realm_id, user_id=user_id
            )
            users = self._execute(
                "delete_user_sessions_by_user", realm_id=realm_id, user_id=user_id
            )
        LOGGER.info(
            "User %s of realm %s removed: %s client sessions, %s user sessions deleted",
            user_id,
            realm_id,
            clients,
            users,
        )

    def clear_detached_user_sessions(self) -> None:
        with _backend_errors("clear_detached_user_sessions"):
            # Children first: a parent orphaned only by dangling children is swept in this pass.
            clients = self._execute("delete_detached_client_sessions")
            users = self._execute("delete_detached_user_sessions")
        LOGGER.info(
            "Detached sessions cleared: %s client sessions, %s user sessions",
            clients,
            users,
        )

    def update_all_timestamps(self, time: int) -> None:
        with _backend_errors("update_all_timestamps"):
            clients = self._execute("update_client_sessions_timestamps", timestamp=time)
            users = self._execute(
                "update_user_sessions_timestamps", last_session_refresh=time
            )
        LOGGER.info(
            "Timestamps set to %s on %s client sessions and %s user sessions",
            time,
            clients,
            users,
        )

    def load_user_sessions(
        self,
        first_result: Optional[int],
        max_results: Optional[int],
        offline: bool,
    ) -> list[PersistentUserSessionAdapter]:
        offset = _page_bound(first_result)
        limit = _page_bound(max_results)

        stmt = named_query("find_user_sessions", offline=offline)
        if offset is not None:
            stmt = stmt.offset(offset)
        if limit is not None:
            stmt = stmt.limit(limit)

        with _backend_errors("load_user_sessions"):
            entries = self._session.execute(stmt).scalars().all()
            result = [to_user_session_adapter(entry, self._directory) for entry in entries]
            user_session_ids = [adapter.id for adapter in result]
            if not user_session_ids:
                return []

            client_entries = self._session.execute(
                named_query(
                    "find_client_sessions_by_user_sessions",
                    user_session_ids=user_session_ids,
                    offline=offline,
                )
            ).scalars().all()

        merge_client_sessions(result, client_entries, self._attach_client_session)
        return result

    def get_user_session(
        self, user_session_id: str, offline: bool
    ) -> Optional[PersistentUserSessionAdapter]:
        with _backend_errors("get_user_session"):
            entry = self._session.get(UserSessionEntry, SessionKey(user_session_id, offline))
            if entry is None:
                return None
            adapter = to_user_session_adapter(entry, self._directory)
            client_entries = self._session.execute(
                named_query(
                    "find_client_sessions_by_user_session",
                    user_session_id=user_session_id,
                    offline=offline,
                )
            ).scalars().all()
        for client_entry in client_entries:
            self._attach_client_session(adapter, client_entry)
        return adapter

    def get_user_sessions_count(self, offline: bool) -> int:
        with _backend_errors("get_user_sessions_count"):
            return int(self._scalar("find_user_sessions_count", offline=offline))

    def _attach_client_session(
        self, user_session: PersistentUserSessionAdapter, entry: ClientSessionEntry
    ) -> None:
        user_session.client_sessions.append(
            to_client_session_adapter(entry, user_session, self._directory)
        )

    def _execute(self, name: str, **params) -> int:
        result = self._session.execute(
            named_query(name, **params), execution_options=_SYNC_FETCH
        )
        self._session.flush()
        LOGGER.debug("%s affected %s rows", name, result.rowcount)
        return result.rowcount

    def _scalar(self, name: str, **params):
        return self._session.execute(named_query(name, **params)).scalar_one()
