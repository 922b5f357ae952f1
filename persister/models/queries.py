"""Named statements against the session tables.

Every bulk operation of the persister goes through :func:`named_query` so the
filters used for counting and deleting a set of rows are defined once.
"""

from sqlalchemy import delete, exists, func, or_, select, update

from persister.models.schema.db_config import Databases

UserSession = Databases.user_session
ClientSession = Databases.client_session

# Both halves of the load-and-merge read are ordered by the parent id. The
# merge in persister.services.reassembly is only correct while they agree.
SESSION_ORDER = (UserSession.user_session_id,)
CLIENT_SESSION_ORDER = (ClientSession.user_session_id, ClientSession.client_session_id)


def client_sessions_of(user_session_id: str, offline: bool):
    return (
        ClientSession.user_session_id == user_session_id,
        ClientSession.offline == offline,
    )


def _parent_of_client_session():
    return (
        UserSession.user_session_id == ClientSession.user_session_id,
        UserSession.offline == ClientSession.offline,
    )


def _child_of_user_session():
    return (
        ClientSession.user_session_id == UserSession.user_session_id,
        ClientSession.offline == UserSession.offline,
    )


def find_user_sessions(offline: bool):
    return (
        select(UserSession)
        .where(UserSession.offline == offline)
        .order_by(*SESSION_ORDER)
    )


def find_user_sessions_count(offline: bool):
    return (
        select(func.count())
        .select_from(UserSession)
        .where(UserSession.offline == offline)
    )


def find_client_sessions_by_user_sessions(user_session_ids: list[str], offline: bool):
    return (
        select(ClientSession)
        .where(
            ClientSession.user_session_id.in_(user_session_ids),
            ClientSession.offline == offline,
        )
        .order_by(*CLIENT_SESSION_ORDER)
    )


def find_client_sessions_by_user_session(user_session_id: str, offline: bool):
    return (
        select(ClientSession)
        .where(*client_sessions_of(user_session_id, offline))
        .order_by(*CLIENT_SESSION_ORDER)
    )


def count_client_sessions_by_user_session(user_session_id: str, offline: bool):
    return (
        select(func.count())
        .select_from(ClientSession)
        .where(*client_sessions_of(user_session_id, offline))
    )


def delete_client_sessions_by_user_session(user_session_id: str, offline: bool):
    return delete(ClientSession).where(*client_sessions_of(user_session_id, offline))


def delete_client_sessions_by_realm(realm_id: str):
    return delete(ClientSession).where(
        exists().where(*_parent_of_client_session(), UserSession.realm_id == realm_id)
    )


def delete_user_sessions_by_realm(realm_id: str):
    return delete(UserSession).where(UserSession.realm_id == realm_id)


def delete_client_sessions_by_client(realm_id: str, client_id: str):
    # Client ids are only unique within a realm; rows without a parent are taken along.
    return delete(ClientSession).where(
        ClientSession.client_id == client_id,
        or_(
            exists().where(*_parent_of_client_session(), UserSession.realm_id == realm_id),
            ~exists().where(*_parent_of_client_session()),
        ),
    )


def delete_client_sessions_by_user(realm_id: str, user_id: str):
    return delete(ClientSession).where(
        exists().where(
            *_parent_of_client_session(),
            UserSession.realm_id == realm_id,
            UserSession.user_id == user_id,
        )
    )


def delete_user_sessions_by_user(realm_id: str, user_id: str):
    return delete(UserSession).where(
        UserSession.realm_id == realm_id,
        UserSession.user_id == user_id,
    )


def delete_detached_client_sessions():
    return delete(ClientSession).where(~exists().where(*_parent_of_client_session()))


def delete_detached_user_sessions():
    return delete(UserSession).where(~exists().where(*_child_of_user_session()))


def update_client_sessions_timestamps(timestamp: int):
    return update(ClientSession).values(timestamp=timestamp)


def update_user_sessions_timestamps(last_session_refresh: int):
    return update(UserSession).values(last_session_refresh=last_session_refresh)


NAMED_QUERIES = {
    "find_user_sessions": find_user_sessions,
    "find_user_sessions_count": find_user_sessions_count,
    "find_client_sessions_by_user_sessions": find_client_sessions_by_user_sessions,
    "find_client_sessions_by_user_session": find_client_sessions_by_user_session,
    "count_client_sessions_by_user_session": count_client_sessions_by_user_session,
    "delete_client_sessions_by_user_session": delete_client_sessions_by_user_session,
    "delete_client_sessions_by_realm": delete_client_sessions_by_realm,
    "delete_user_sessions_by_realm": delete_user_sessions_by_realm,
    "delete_client_sessions_by_client": delete_client_sessions_by_client,
    "delete_client_sessions_by_user": delete_client_sessions_by_user,
    "delete_user_sessions_by_user": delete_user_sessions_by_user,
    "delete_detached_client_sessions": delete_detached_client_sessions,
    "delete_detached_user_sessions": delete_detached_user_sessions,
    "update_client_sessions_timestamps": update_client_sessions_timestamps,
    "update_user_sessions_timestamps": update_user_sessions_timestamps,
}


def named_query(name: str, **params):
    builder = NAMED_QUERIES.get(name)
    if builder is None:
        raise ValueError(f"Unknown named query '{name}'")
    return builder(**params)
