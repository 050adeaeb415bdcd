from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

import pytest

from ocidb import environment as environment_module
from ocidb.connection import Connection
from ocidb.environment import Environment
from ocidb.oci import library as library_module
from tests.unit.fake_oci import FakeOCI

if TYPE_CHECKING:
    from collections.abc import Generator

    from ocidb.cursor import Cursor

here = Path(__file__).parent
root_path = here.parent


@pytest.fixture
def fake_oci(monkeypatch: pytest.MonkeyPatch) -> FakeOCI:
    """A scripted client library, installed as the process-wide one."""
    fake = FakeOCI()
    monkeypatch.setattr(library_module, "_library", fake)
    monkeypatch.setattr(environment_module, "_charset_id", None)
    return fake


@pytest.fixture
def environment(fake_oci: FakeOCI) -> Generator[Environment, None, None]:
    env = Environment.create(fake_oci)
    yield env
    env.free()


@pytest.fixture
def connection(environment: Environment) -> Generator[Connection, None, None]:
    conn = Connection("scott", "tiger", "orcl", environment=environment)
    conn.connect()
    yield conn
    conn.close()


@pytest.fixture
def cursor(connection: Connection) -> Generator[Cursor, None, None]:
    cur = connection.cursor()
    yield cur
    cur.close()
