from datetime import date

import pytest
from sqlalchemy import select

from qr_access.models.tables import identities
from qr_access.services import credential_service
from qr_access.services.credential_service import CredentialService, generate_credential
from qr_access.utils.exceptions import CredentialConflictError


def _fake_generator(monkeypatch, values):
    tokens = iter(values)
    monkeypatch.setattr(credential_service, "generate_credential", lambda identity_id: next(tokens))


def test_generated_credentials_are_opaque_and_distinct():
    first = generate_credential("user-1")
    second = generate_credential("user-1")
    assert len(first) == 64
    assert int(first, 16) >= 0
    assert first != second
    assert "user-1" not in first


def test_issue_creates_identity_with_credential(conn):
    service = CredentialService()
    token = service.issue(conn, "user-1", "Ada", date(2026, 4, 1))

    row = conn.execute(select(identities).where(identities.c.id == "user-1")).mappings().first()
    assert row["credential"] == token
    assert row["display_name"] == "Ada"
    assert row["valid_until"] == date(2026, 4, 1)


def test_issue_twice_preserves_credential_and_updates_name(conn):
    service = CredentialService()
    first = service.issue(conn, "user-1", "Ada")
    second = service.issue(conn, "user-1", "Ada Lovelace", date(2026, 5, 1))

    assert first == second
    row = conn.execute(select(identities).where(identities.c.id == "user-1")).mappings().first()
    assert row["display_name"] == "Ada Lovelace"
    assert row["valid_until"] == date(2026, 5, 1)


def test_issue_without_validity_clears_existing_window(conn):
    service = CredentialService()
    first = service.issue(conn, "user-1", "Ada", date(2026, 5, 1))
    second = service.issue(conn, "user-1", "Ada B.")

    assert first == second
    row = conn.execute(select(identities).where(identities.c.id == "user-1")).mappings().first()
    assert row["valid_until"] is None
    assert row["display_name"] == "Ada B."


def test_issue_fills_missing_credential(conn):
    service = CredentialService()
    service.issue(conn, "user-1", "Ada")
    conn.execute(identities.update().where(identities.c.id == "user-1").values(credential=None))

    token = service.issue(conn, "user-1", "Ada")
    assert token is not None
    assert service.resolve(conn, token) == "user-1"


def test_issue_retries_on_collision(conn, monkeypatch):
    _fake_generator(monkeypatch, ["tok-a", "tok-a", "tok-b"])
    service = CredentialService()

    assert service.issue(conn, "user-a", "A") == "tok-a"
    assert service.issue(conn, "user-b", "B") == "tok-b"
    assert service.resolve(conn, "tok-a") == "user-a"
    assert service.resolve(conn, "tok-b") == "user-b"


def test_issue_gives_up_after_max_attempts(conn, monkeypatch):
    _fake_generator(monkeypatch, ["tok-a"] * 10)
    service = CredentialService(max_attempts=3)
    service.issue(conn, "user-a", "A")

    with pytest.raises(CredentialConflictError):
        service.issue(conn, "user-b", "B")


def test_rotate_invalidates_previous_credential(conn):
    service = CredentialService()
    old = service.issue(conn, "user-1", "Ada")

    new = service.rotate(conn, "user-1")

    assert new != old
    assert service.resolve(conn, old) is None
    assert service.resolve(conn, new) == "user-1"


def test_rotate_unknown_identity_returns_none(conn):
    assert CredentialService().rotate(conn, "ghost") is None


def test_rotate_retries_on_collision(conn, monkeypatch):
    _fake_generator(monkeypatch, ["tok-a", "tok-b", "tok-a", "tok-c"])
    service = CredentialService()
    service.issue(conn, "user-a", "A")
    service.issue(conn, "user-b", "B")

    assert service.rotate(conn, "user-b") == "tok-c"
    assert service.resolve(conn, "tok-a") == "user-a"
    assert service.resolve(conn, "tok-b") is None


def test_resolve_misses_are_not_errors(conn):
    service = CredentialService()
    assert service.resolve(conn, "not-a-token") is None
    assert service.resolve(conn, "") is None


def test_no_two_identities_share_a_credential(conn):
    service = CredentialService()
    for n in range(20):
        service.issue(conn, f"user-{n}", f"User {n}")
    service.rotate(conn, "user-3")
    service.rotate(conn, "user-7")

    tokens = [row[0] for row in conn.execute(select(identities.c.credential))]
    assert len(tokens) == 20
    assert len(set(tokens)) == 20
