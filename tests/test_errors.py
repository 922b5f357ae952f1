"""
Tests for translating backend failures into session store errors.
"""
from unittest.mock import MagicMock

import pytest
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm import Session

from persister.schemas.errors import BackendUnavailableError, ConflictError, SessionStoreError
from persister.schemas.sessions import Reference, UserSession
from persister.services.sessions import UserSessionPersister


def _user_session():
    return UserSession(id="s1", realm=Reference("realm-a"), user=Reference("user-1"))


@pytest.fixture
def broken_session():
    session = MagicMock(spec=Session)
    session.get.return_value = None
    return session


class TestBackendErrors:
    def test_operational_error_is_backend_unavailable(self, broken_session):
        broken_session.execute.side_effect = OperationalError(
            "SELECT count(*)", {}, Exception("connection refused")
        )
        persister = UserSessionPersister(broken_session)

        with pytest.raises(BackendUnavailableError) as excinfo:
            persister.get_user_sessions_count(False)

        assert isinstance(excinfo.value.__cause__, OperationalError)

    def test_bulk_operation_failure_is_not_retried(self, broken_session):
        broken_session.execute.side_effect = OperationalError(
            "DELETE", {}, Exception("server closed the connection")
        )
        persister = UserSessionPersister(broken_session)

        with pytest.raises(BackendUnavailableError):
            persister.on_realm_removed("realm-a")

        assert broken_session.execute.call_count == 1

    def test_integrity_error_on_flush_is_conflict(self, broken_session):
        broken_session.flush.side_effect = IntegrityError(
            "INSERT INTO user_sessions", {}, Exception("UNIQUE constraint failed")
        )
        persister = UserSessionPersister(broken_session)

        with pytest.raises(ConflictError):
            persister.create_user_session(_user_session(), False)

    def test_errors_share_a_base(self):
        for error in (BackendUnavailableError, ConflictError):
            assert issubclass(error, SessionStoreError)
