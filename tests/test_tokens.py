from datetime import datetime, timezone
from unittest.mock import MagicMock

from sqlalchemy.exc import OperationalError

from backoffice.connectors.meta.tokens import NOT_CONNECTED, resolve_token
from backoffice.core.auth import is_admin
from backoffice.core.result import Err, Ok
from backoffice.models.account_models import MetaBusinessAccount, User

from tests.conftest import ACCESS_TOKEN, ADMIN_ID, TARGET_USER_ID


def test_connected_user_resolves_token(seeded):
    assert resolve_token(seeded, TARGET_USER_ID) == Ok(ACCESS_TOKEN)


def test_user_without_account(seeded):
    assert resolve_token(seeded, ADMIN_ID) == Err(NOT_CONNECTED)


def test_unknown_user(session):
    result = resolve_token(session, "missing")
    assert isinstance(result, Err)
    assert result.error.status_code == 404


def test_soft_deleted_account_is_ignored(session):
    session.add(User(id="u-1", email="gone@example.com"))
    session.add(
        MetaBusinessAccount(
            user_id="u-1",
            facebook_user_id="fb-9",
            access_token="old-token",
            deleted_at=datetime(2026, 1, 1, tzinfo=timezone.utc),
        )
    )
    session.commit()

    assert resolve_token(session, "u-1") == Err(NOT_CONNECTED)


def test_database_failure_is_500():
    session = MagicMock()
    session.exec.side_effect = OperationalError("SELECT", {}, Exception("db down"))

    result = resolve_token(session, TARGET_USER_ID)

    assert isinstance(result, Err)
    assert result.error.status_code == 500
    assert result.error.error == "Internal server error"
    assert "db down" not in result.error.message


def test_is_admin():
    allowlist = frozenset({"admin@example.com"})
    assert is_admin("admin@example.com", allowlist)
    assert is_admin(" Admin@Example.com ", allowlist)
    assert not is_admin("someone@example.com", allowlist)
    assert not is_admin(None, allowlist)
    assert not is_admin("admin@example.com", frozenset())
