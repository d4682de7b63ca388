import pytest

from tcp_graph_mcp.core.errors import ProcessIdentityConflict
from tcp_graph_mcp.core.models import ProcessIdentity
from tcp_graph_mcp.core.store import ProcessStore


def test_store_upsert_creates_and_accumulates():
    store = ProcessStore()
    ident = ProcessIdentity(pid=1, name="a", ip="10.0.0.1")

    node = store.upsert(ident, 80)
    assert node.ports == {80}

    node = store.upsert(ident, 8080)
    node = store.upsert(ident, 80)
    assert node.ports == {80, 8080}
    assert len(store) == 1
    assert store.get(1) is node


def test_store_same_identity_twice_is_fine():
    store = ProcessStore()
    store.upsert(ProcessIdentity(pid=1, name="a", ip="10.0.0.1"), 80)
    store.upsert(ProcessIdentity(pid=1, name="a", ip="10.0.0.1"), 80)
    assert store.get(1).ports == {80}


def test_store_label_change_raises():
    store = ProcessStore()
    store.upsert(ProcessIdentity(pid=1, name="a", ip="10.0.0.1"), 80)

    with pytest.raises(ProcessIdentityConflict) as exc:
        store.upsert(ProcessIdentity(pid=1, name="b", ip="10.0.0.1"), 81)

    assert (exc.value.field, exc.value.old, exc.value.new) == ("name", "a", "b")
    assert store.get(1).ports == {80}


def test_store_ip_change_raises():
    store = ProcessStore()
    store.upsert(ProcessIdentity(pid=1, name="a", ip="10.0.0.1"), 80)

    with pytest.raises(ProcessIdentityConflict):
        store.upsert(ProcessIdentity(pid=1, name="a", ip="10.0.0.2"), 80)
