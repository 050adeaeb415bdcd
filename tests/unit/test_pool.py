"""Tests for the idle connection pool."""

import gc
import logging
from collections.abc import Generator

import pytest

from ocidb.connection import Connection
from ocidb.pool import Pool
from tests.unit.fake_oci import FakeOCI

KEY = "scott/tiger@orcl"


@pytest.fixture
def pool(fake_oci: FakeOCI) -> Generator[Pool, None, None]:
    pool = Pool()
    yield pool
    pool.close()


def _get(pool: Pool) -> Connection:
    return pool.get("scott", "tiger", "orcl")


def test_put_connection_is_reused(pool: Pool, fake_oci: FakeOCI) -> None:
    connection = _get(pool)
    assert connection.is_connected()
    pool.put(connection)
    assert pool.size(KEY) == 1
    assert _get(pool) is connection
    assert pool.size(KEY) == 0
    assert fake_oci.calls.count("session_begin") == 1
    pool.put(connection)


def test_connections_are_keyed_by_credentials(pool: Pool) -> None:
    scott = _get(pool)
    hr = pool.get("hr", "hr", "orcl")
    pool.put(scott)
    pool.put(hr)
    assert pool.size(KEY) == 1
    assert pool.size("hr/hr@orcl") == 1
    assert pool.get("hr", "hr", "orcl") is hr
    pool.put(hr)


def test_put_rolls_back(pool: Pool, fake_oci: FakeOCI) -> None:
    connection = _get(pool)
    pool.put(connection)
    assert fake_oci.rollbacks == 1


def test_max_idle_closes_surplus_connections(fake_oci: FakeOCI) -> None:
    pool = Pool(max_idle=1)
    first, second = _get(pool), _get(pool)
    pool.put(first)
    pool.put(second)
    assert pool.size(KEY) == 1
    assert first.is_connected()
    assert not second.is_connected()
    pool.close()


def test_closed_connections_are_discarded(pool: Pool) -> None:
    connection = _get(pool)
    connection.close()
    pool.put(connection)
    assert pool.size(KEY) == 0


def test_put_none_is_ignored(pool: Pool) -> None:
    pool.put(None)
    assert pool.size(KEY) == 0


def test_session_init_runs_for_new_connections_only(fake_oci: FakeOCI) -> None:
    initialized: list[Connection] = []
    pool = Pool(session_init=initialized.append)
    connection = _get(pool)
    pool.put(connection)
    pool.put(_get(pool))
    assert initialized == [connection]
    pool.close()


def test_failed_session_init_closes_the_connection(fake_oci: FakeOCI) -> None:
    def session_init(connection: Connection) -> None:
        msg = "boom"
        raise RuntimeError(msg)

    pool = Pool(session_init=session_init)
    with pytest.raises(RuntimeError, match="boom"):
        _get(pool)
    assert "session_end" in fake_oci.calls
    assert "server_detach" in fake_oci.calls
    assert pool.size(KEY) == 0


def test_leaked_connection_is_closed_by_finalizer(
    pool: Pool, fake_oci: FakeOCI, caplog: pytest.LogCaptureFixture
) -> None:
    connection = _get(pool)
    with caplog.at_level(logging.WARNING, logger="ocidb.pool"):
        del connection
        gc.collect()
    assert any("leaked" in record.getMessage() for record in caplog.records)
    assert "session_end" in fake_oci.calls
    assert "server_detach" in fake_oci.calls


def test_explicitly_closed_connection_is_not_reported(
    pool: Pool, fake_oci: FakeOCI, caplog: pytest.LogCaptureFixture
) -> None:
    connection = _get(pool)
    connection.close()
    with caplog.at_level(logging.WARNING, logger="ocidb.pool"):
        del connection
        gc.collect()
    assert not [record for record in caplog.records if "leaked" in record.getMessage()]
    assert fake_oci.calls.count("session_end") == 1


def test_close_closes_idle_connections(pool: Pool) -> None:
    connection = _get(pool)
    pool.put(connection)
    pool.close()
    assert not connection.is_connected()
    assert pool.size(KEY) == 0


def test_put_after_close_closes_the_connection(pool: Pool) -> None:
    connection = _get(pool)
    pool.close()
    pool.put(connection)
    assert not connection.is_connected()
    assert pool.size(KEY) == 0
