"""Typed connection and pool configuration."""

import contextlib
from typing import TYPE_CHECKING, Any, Optional, TypedDict, Union

from typing_extensions import NotRequired

from ocidb.connection import Connection, new_session_init
from ocidb.dsn import make_dsn, split_dsn
from ocidb.exceptions import ImproperConfigurationError
from ocidb.oci import constants as oci
from ocidb.pool import Pool
from ocidb.utils.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import Generator

    from ocidb.connection import SessionInit

__all__ = ("ConnectionParams", "OracleConfig", "PoolParams")

logger = get_logger("config")

DEFAULT_PORT = 1521


class ConnectionParams(TypedDict, total=False):
    """Connection parameters."""

    dsn: NotRequired[str]
    user: NotRequired[str]
    password: NotRequired[str]
    host: NotRequired[str]
    port: NotRequired[int]
    sid: NotRequired[str]
    service_name: NotRequired[str]
    autocommit: NotRequired[bool]
    mode: NotRequired[int]
    twophase: NotRequired[bool]
    session_init: NotRequired["dict[str, str]"]


class PoolParams(ConnectionParams, total=False):
    """Pool parameters."""

    max_idle: NotRequired[int]


class OracleConfig:
    """Configuration for ocidb connections and the connection pool.

    The connect string is the explicit ``dsn`` when given, otherwise a
    descriptor built from ``host``, ``port`` and ``sid`` or ``service_name``.
    A ``user/password@sid`` dsn supplies missing credentials.
    """

    __slots__ = ("connection_config", "pool_instance")

    def __init__(
        self,
        *,
        connection_config: "Optional[Union[PoolParams, dict[str, Any]]]" = None,
        pool_instance: "Optional[Pool]" = None,
    ) -> None:
        """Initialize the configuration.

        Args:
            connection_config: Connection and pool parameters
            pool_instance: Existing pool instance to use
        """
        self.connection_config: dict[str, Any] = dict(connection_config) if connection_config else {}
        self.pool_instance = pool_instance

    def __repr__(self) -> str:
        return f"<OracleConfig dsn={self.dsn!r} user={self.credentials[0]!r}>"

    @property
    def dsn(self) -> str:
        """The connect string, without credentials."""
        config = self.connection_config
        dsn = config.get("dsn")
        if dsn:
            if "@" in dsn or "/" in dsn:
                return split_dsn(dsn)[2]
            return dsn
        host = config.get("host")
        if not host:
            if config.get("sid") or config.get("service_name"):
                msg = "host is required when sid or service_name is configured"
                raise ImproperConfigurationError(msg)
            return ""
        if not config.get("sid") and not config.get("service_name"):
            msg = "sid or service_name is required when host is configured"
            raise ImproperConfigurationError(msg)
        return make_dsn(host, config.get("port", DEFAULT_PORT), config.get("sid", ""), config.get("service_name", ""))

    @property
    def credentials(self) -> "tuple[str, str]":
        """``(user, password)``; explicit parameters win over the dsn."""
        config = self.connection_config
        user, password = "", ""
        dsn = config.get("dsn")
        if dsn and ("@" in dsn or "/" in dsn):
            user, password, _ = split_dsn(dsn)
        return config.get("user") or user, config.get("password") or password

    def _session_init(self) -> "Optional[SessionInit]":
        attributes = self.connection_config.get("session_init")
        if not attributes:
            return None
        return new_session_init(attributes)

    def create_connection(self) -> Connection:
        """Open a single connection (not from the pool).

        Returns:
            A connected :class:`Connection`.
        """
        config = self.connection_config
        user, password = self.credentials
        connection = Connection(user, password, self.dsn, autocommit=config.get("autocommit", False))
        connection.connect(mode=config.get("mode", oci.OCI_DEFAULT), twophase=config.get("twophase", False))
        session_init = self._session_init()
        if session_init is not None:
            try:
                session_init(connection)
            except Exception:
                connection.close()
                raise
        return connection

    def create_pool(self) -> Pool:
        """Create the pool, or return the existing one."""
        if self.pool_instance is None:
            self.pool_instance = Pool(
                max_idle=self.connection_config.get("max_idle"), session_init=self._session_init()
            )
            logger.debug("Created pool for %s", self.dsn)
        return self.pool_instance

    def close_pool(self) -> None:
        if self.pool_instance is not None:
            self.pool_instance.close()
            self.pool_instance = None

    @contextlib.contextmanager
    def provide_connection(self) -> "Generator[Connection, None, None]":
        """Provide a pooled connection context manager.

        Yields:
            A connection; it is rolled back and returned to the pool on exit.
        """
        pool = self.create_pool()
        user, password = self.credentials
        connection = pool.get(user, password, self.dsn)
        connection.autocommit = self.connection_config.get("autocommit", False)
        try:
            yield connection
        finally:
            pool.put(connection)
