"""Ordered merge of a page of user sessions with their client sessions.

Both inputs come from separate queries ordered by the parent session id
(see ``SESSION_ORDER`` and ``CLIENT_SESSION_ORDER`` in
``persister.models.queries``). The merge walks them once. Parent positions
come from the first result, so the backend's own collation decides the order
and no ids are compared in Python.
"""

import logging
from typing import Callable, Sequence

LOGGER = logging.getLogger(__name__)


def merge_client_sessions(
    user_sessions: Sequence,
    client_entries: Sequence,
    attach: Callable,
) -> int:
    """Attach each client entry to its parent in ``user_sessions``.

    A child whose parent is not in the page, or that shows up after its parent
    was already passed, is dropped instead of being attached elsewhere.
    Returns the number of dropped entries.
    """
    positions: dict[str, int] = {}
    for position, user_session in enumerate(user_sessions):
        positions.setdefault(user_session.id, position)

    dropped = 0
    j = 0
    for position, user_session in enumerate(user_sessions):
        while j < len(client_entries):
            entry = client_entries[j]
            parent_position = positions.get(entry.user_session_id)
            if parent_position is None or parent_position < position:
                LOGGER.warning(
                    "Dropping client session %s: parent %s is not at or after the merge cursor",
                    entry.client_session_id,
                    entry.user_session_id,
                )
                dropped += 1
                j += 1
                continue
            if parent_position > position:
                break
            attach(user_session, entry)
            j += 1

    for entry in client_entries[j:]:
        LOGGER.warning(
            "Dropping client session %s: parent %s was not loaded",
            entry.client_session_id,
            entry.user_session_id,
        )
        dropped += 1
    return dropped
