from unittest import mock

import pytest
import redis

from mgetbench import store as store_module
from mgetbench.benchmarks.config import ConnectionSettings
from mgetbench.store import RedisStore, StoreError, connect_store


def make_store(**client_attrs):
    client = mock.Mock(spec=redis.Redis)
    for name, value in client_attrs.items():
        setattr(client, name, value)
    return RedisStore(client), client


def test_batch_read_uses_mget():
    store, client = make_store()
    client.mget.return_value = [b"a", None]

    assert store.batch_read(["k1", "k2"]) == [b"a", None]
    client.mget.assert_called_once_with(["k1", "k2"])


def test_batch_read_error_becomes_store_error():
    store, client = make_store()
    client.mget.side_effect = redis.ConnectionError("gone")

    with pytest.raises(StoreError) as excinfo:
        store.batch_read(["k"])
    assert isinstance(excinfo.value.__cause__, redis.ConnectionError)


def test_scan_prefix_decodes_keys():
    store, client = make_store()
    client.scan_iter.return_value = iter([b"test_00001", b"test_00002"])

    assert list(store.scan_prefix("test_")) == ["test_00001", "test_00002"]
    client.scan_iter.assert_called_once_with(match="test_*", count=store_module.SCAN_COUNT)


def test_set_and_delete():
    store, client = make_store()
    client.delete.return_value = 2

    store.set("k", b"v")
    assert store.delete("a", "b") == 2
    assert store.delete() == 0

    client.set.assert_called_once_with("k", b"v")
    client.delete.assert_called_once_with("a", "b")


def test_delete_error_becomes_store_error():
    store, client = make_store()
    client.delete.side_effect = redis.ResponseError("READONLY")
    with pytest.raises(StoreError):
        store.delete("a")


def test_connect_store_gives_up_after_timeout(monkeypatch):
    client = mock.Mock(spec=redis.Redis)
    client.ping.side_effect = redis.ConnectionError("refused")
    monkeypatch.setattr(store_module, "create_client", lambda settings: client)

    with pytest.raises(StoreError, match="within"):
        connect_store(ConnectionSettings(connect_timeout=0))
    client.close.assert_called_once()


def test_connect_store_fails_fast_on_bad_password(monkeypatch):
    client = mock.Mock(spec=redis.Redis)
    client.ping.side_effect = redis.AuthenticationError("invalid password")
    monkeypatch.setattr(store_module, "create_client", lambda settings: client)
    monkeypatch.setattr(store_module.time, "sleep", lambda _: pytest.fail("should not retry"))

    with pytest.raises(StoreError, match="authentication"):
        connect_store(ConnectionSettings(connect_timeout=30))


def test_connect_store_retries_until_ping_succeeds(monkeypatch):
    client = mock.Mock(spec=redis.Redis)
    client.ping.side_effect = [redis.ConnectionError("loading"), True]
    monkeypatch.setattr(store_module, "create_client", lambda settings: client)
    monkeypatch.setattr(store_module.time, "sleep", lambda _: None)

    result = connect_store(ConnectionSettings(connect_timeout=30))

    assert isinstance(result, RedisStore)
    assert client.ping.call_count == 2
