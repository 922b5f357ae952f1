from typing import NamedTuple

from persister.models.schema.client_session import ClientSessionEntry
from persister.models.schema.user_session import UserSessionEntry


class SessionKey(NamedTuple):
    """Composite identity shared by both tables: the same id may exist once online and once offline."""

    id: str
    offline: bool


class Databases:
    user_session = UserSessionEntry
    client_session = ClientSessionEntry
