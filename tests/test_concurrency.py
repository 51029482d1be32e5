"""
Transactions racing on separate connections: a rotation against a scan
that is still open, and two issuers for the same identity.
"""
import threading
from datetime import timedelta
from types import SimpleNamespace

from sqlalchemy import func, select
from sqlalchemy.sql.dml import Update

from qr_access.models.enums import ScanError
from qr_access.models.tables import identities, scan_events
from qr_access.services.access_control import ScanValidator
from qr_access.services.credential_service import CredentialService

from conftest import FIXED_NOW

TODAY = FIXED_NOW.date()
WAIT = 0.5


def _in_thread(target):
    outcome = {}

    def run():
        try:
            outcome["value"] = target()
        except Exception as e:
            outcome["error"] = e

    worker = threading.Thread(target=run, daemon=True)
    worker.start()
    return worker, outcome


def _event_count(conn):
    return conn.execute(select(func.count()).select_from(scan_events)).scalar_one()


def _issue(db, identity_id="A", name="Ada"):
    with db.get_connection() as conn:
        return CredentialService().issue(conn, identity_id, name, TODAY + timedelta(days=30))


def _rotate(db, identity_id="A"):
    with db.get_connection() as conn:
        return CredentialService().rotate(conn, identity_id)


def _scan(db, token):
    with db.get_connection() as conn:
        return ScanValidator().validate(conn, token, "entry", "panel", "main", now=FIXED_NOW)


# ---------- rotate vs scan ----------

def test_rotation_waits_for_an_open_scan_of_the_old_credential(db):
    old = _issue(db)

    with db.get_connection() as conn:
        result = ScanValidator().validate(conn, old, "entry", "panel", "main", now=FIXED_NOW)
        worker, outcome = _in_thread(lambda: _rotate(db))
        worker.join(timeout=WAIT)
        assert worker.is_alive()

    worker.join(timeout=10)
    assert not worker.is_alive()
    assert "error" not in outcome

    # the scan saw the old token before the rotation committed
    assert result.success is True
    with db.get_connection() as conn:
        assert _event_count(conn) == 1
        assert CredentialService().resolve(conn, old) is None
        assert CredentialService().resolve(conn, outcome["value"]) == "A"


def test_scan_behind_a_committed_rotation_sees_no_holder(db):
    old = _issue(db)

    with db.get_connection() as conn:
        new = CredentialService().rotate(conn, "A")
        worker, outcome = _in_thread(lambda: _scan(db, old))
        worker.join(timeout=WAIT)
        assert worker.is_alive()

    worker.join(timeout=10)
    assert not worker.is_alive()
    assert "error" not in outcome

    result = outcome["value"]
    assert result.success is False
    assert result.error == ScanError.INVALID_CREDENTIAL
    with db.get_connection() as conn:
        assert _event_count(conn) == 0
        assert CredentialService().resolve(conn, new) == "A"


# ---------- concurrent issuance ----------

def test_two_issuers_for_one_identity_share_a_single_credential(db):
    barrier = threading.Barrier(2)

    def issue(name):
        barrier.wait(timeout=5)
        return _issue(db, "A", name)

    workers = [_in_thread(lambda n=name: issue(n)) for name in ("Ada", "Ada L.")]
    for worker, _ in workers:
        worker.join(timeout=10)

    outcomes = [outcome for _, outcome in workers]
    assert all("error" not in outcome for outcome in outcomes)
    first, second = (outcome["value"] for outcome in outcomes)
    assert first == second

    with db.get_connection() as conn:
        stored = conn.execute(select(identities.c.credential).where(identities.c.id == "A")).all()
    assert [row[0] for row in stored] == [first]


class _RowLandsAfterUpdate:
    """
    Connection wrapper whose first UPDATE matches nothing, as if a competing
    issuer committed the identity row between our UPDATE and our INSERT.
    """

    def __init__(self, conn):
        self._conn = conn
        self.missed_update = False

    def execute(self, statement, *args, **kwargs):
        if not self.missed_update and isinstance(statement, Update):
            self.missed_update = True
            return SimpleNamespace(rowcount=0)
        return self._conn.execute(statement, *args, **kwargs)

    def begin_nested(self):
        return self._conn.begin_nested()


def test_issuer_losing_the_insert_race_returns_the_winning_credential(db):
    winner = _issue(db, "A", "Ada")

    with db.get_connection() as conn:
        racing = _RowLandsAfterUpdate(conn)
        loser = CredentialService().issue(racing, "A", "Ada L.", TODAY)
        rows = conn.execute(select(identities).where(identities.c.id == "A")).mappings().all()

    assert racing.missed_update is True
    assert loser == winner
    assert len(rows) == 1
    assert rows[0]["credential"] == winner
    assert rows[0]["display_name"] == "Ada L."
