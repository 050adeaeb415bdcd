"""ocidb: Oracle database access over the Oracle Call Interface."""

from typing import TYPE_CHECKING, Any, Optional

from ocidb import exceptions, oci, statement, utils, variables
from ocidb.__metadata__ import __version__
from ocidb.config import ConnectionParams, OracleConfig, PoolParams
from ocidb.connection import Connection, NLSSettings, client_version, new_session_init
from ocidb.cursor import ColumnDescription, Cursor
from ocidb.dsn import make_dsn, split_dsn
from ocidb.environment import Environment
from ocidb.exceptions import (
    DatabaseError,
    DataError,
    IntegrityError,
    InterfaceError,
    InternalError,
    NotSupportedError,
    OCIDBError,
    OperationalError,
    ProgrammingError,
    Warning,  # noqa: A004
)
from ocidb.lob import ExternalLobVar
from ocidb.oci import constants as oci_constants
from ocidb.pool import Pool
from ocidb.queue import DequeueOptions, EnqueueOptions, Message, Queue
from ocidb.variables import (
    BFILE,
    BINARY,
    BLOB,
    BOOLEAN,
    CLOB,
    CURSOR,
    DATETIME,
    FIXED_CHAR,
    FLOAT,
    INT32,
    INT64,
    INTERVAL,
    LONG_BINARY,
    LONG_INTEGER,
    LONG_STRING,
    NATIVE_FLOAT,
    NCLOB,
    NUMBER_AS_STRING,
    ROWID,
    STRING,
    Ref,
    Variable,
    VariableType,
)

if TYPE_CHECKING:
    from collections.abc import Mapping

apilevel = "2.0"
threadsafety = 1
paramstyle = "named"

Error = OCIDBError

__all__ = (
    "BFILE",
    "BINARY",
    "BLOB",
    "BOOLEAN",
    "CLOB",
    "CURSOR",
    "DATETIME",
    "FIXED_CHAR",
    "FLOAT",
    "INT32",
    "INT64",
    "INTERVAL",
    "LONG_BINARY",
    "LONG_INTEGER",
    "LONG_STRING",
    "NATIVE_FLOAT",
    "NCLOB",
    "NUMBER_AS_STRING",
    "ROWID",
    "STRING",
    "ColumnDescription",
    "Connection",
    "ConnectionParams",
    "Cursor",
    "DataError",
    "DatabaseError",
    "DequeueOptions",
    "EnqueueOptions",
    "Environment",
    "Error",
    "ExternalLobVar",
    "IntegrityError",
    "InterfaceError",
    "InternalError",
    "Message",
    "NLSSettings",
    "NotSupportedError",
    "OCIDBError",
    "OperationalError",
    "OracleConfig",
    "Pool",
    "PoolParams",
    "ProgrammingError",
    "Queue",
    "Ref",
    "Variable",
    "VariableType",
    "Warning",
    "__version__",
    "apilevel",
    "client_version",
    "connect",
    "exceptions",
    "make_dsn",
    "new_session_init",
    "oci",
    "oci_constants",
    "paramstyle",
    "split_dsn",
    "statement",
    "threadsafety",
    "utils",
    "variables",
)


def connect(
    dsn: Optional[str] = None,
    *,
    user: Optional[str] = None,
    password: Optional[str] = None,
    autocommit: bool = False,
    twophase: bool = False,
    mode: int = oci_constants.OCI_DEFAULT,
    session_init: "Optional[Mapping[str, str]]" = None,
    **kwargs: Any,
) -> Connection:
    """Open a connection.

    Args:
        dsn: Connect string; ``user/password@sid`` supplies the credentials too.
        user: User name, overriding the one in ``dsn``.
        password: Password, overriding the one in ``dsn``.
        autocommit: Commit after every successful statement.
        twophase: Prepare the session for two-phase commit.
        mode: Session mode, e.g. ``OCI_SYSDBA``.
        session_init: NLS attributes applied with ``ALTER SESSION`` after connecting.
        **kwargs: Passed to :class:`Connection`.

    Returns:
        A connected :class:`Connection`.
    """
    username, secret, sid = "", "", dsn or ""
    if dsn and ("@" in dsn or "/" in dsn):
        username, secret, sid = split_dsn(dsn)
    connection = Connection(user or username, password or secret, sid, autocommit=autocommit, **kwargs)
    connection.connect(mode=mode, twophase=twophase)
    if session_init:
        try:
            new_session_init(session_init)(connection)
        except Exception:
            connection.close()
            raise
    return connection
