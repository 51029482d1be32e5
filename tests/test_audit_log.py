from datetime import datetime

from qr_access.models.enums import ScanKind
from qr_access.services.audit_log import AuditLogStore
from qr_access.services.credential_service import CredentialService


def test_append_returns_generated_ids(conn):
    CredentialService().issue(conn, "user-1", "Ada")
    store = AuditLogStore()

    first = store.append(conn, "user-1", ScanKind.ENTRY, "panel", "main", datetime(2026, 3, 1, 9))
    second = store.append(conn, "user-1", ScanKind.EXIT, "panel", "main", datetime(2026, 3, 1, 17))

    assert first != second
    assert store.count_for(conn, "user-1") == 2


def test_history_is_scoped_and_ordered(conn):
    credentials = CredentialService()
    credentials.issue(conn, "user-1", "Ada")
    credentials.issue(conn, "user-2", "Bob")
    store = AuditLogStore()
    store.append(conn, "user-1", ScanKind.ENTRY, "panel", "main", datetime(2026, 3, 1, 9), note="early")
    store.append(conn, "user-2", ScanKind.ENTRY, "panel", "main", datetime(2026, 3, 1, 10))
    store.append(conn, "user-1", ScanKind.EXIT, "panel", "side", datetime(2026, 3, 1, 18))

    history = store.history_for(conn, "user-1", limit=10, offset=0)

    assert [event["scan_kind"] for event in history] == ["exit", "entry"]
    assert history[0]["location"] == "side"
    assert history[1]["note"] == "early"
    assert store.history_for(conn, "user-1", limit=1, offset=1)[0]["scan_kind"] == "entry"
    assert store.history_for(conn, "nobody") == []


def test_store_exposes_no_mutation_beyond_append():
    public = {name for name in dir(AuditLogStore) if not name.startswith("_")}
    assert public == {"append", "history_for", "count_for"}
