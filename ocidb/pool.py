"""Opportunistic reuse of idle connections."""

import threading
import weakref
from typing import TYPE_CHECKING, Any, Optional

from ocidb.connection import Connection, SessionInit
from ocidb.oci import constants as oci
from ocidb.utils.logging import POOL_LOGGER_NAME, get_logger

if TYPE_CHECKING:
    from ocidb.environment import Environment

__all__ = ("Pool",)

logger = get_logger(POOL_LOGGER_NAME)


def _pool_key(username: str, password: str, dsn: str) -> str:
    return f"{username}/{password}@{dsn}"


def _close_leaked(
    key_dsn: str,
    environment: "Environment",
    lock: Any,
    handle: Any,
    server_handle: Any,
    session_handle: Any,
) -> None:
    """Close the handles of a checked-out connection that was dropped without :meth:`Pool.put`."""
    logger.warning("Finalizer closes leaked connection to %s", key_dsn)
    library = environment.library
    with lock:
        library.trans_rollback(handle, environment.error_handle, oci.OCI_DEFAULT)
        status = library.session_end(handle, environment.error_handle, session_handle, oci.OCI_DEFAULT)
        if status != oci.OCI_SUCCESS:
            logger.debug("Session end of leaked connection returned status %d", status)
        status = library.server_detach(server_handle, environment.error_handle, oci.OCI_DEFAULT)
        if status != oci.OCI_SUCCESS:
            logger.debug("Server detach of leaked connection returned status %d", status)
    environment.handle_free(session_handle, oci.OCI_HTYPE_SESSION)
    environment.handle_free(handle, oci.OCI_HTYPE_SVCCTX)
    environment.handle_free(server_handle, oci.OCI_HTYPE_SERVER)
    environment.free()


class Pool:
    """LIFO free lists of connections, keyed by ``user/password@sid``.

    Connections are rolled back when returned. A connection that is dropped
    while checked out is closed when it is garbage collected.

    Args:
        max_idle: Idle connections kept per key; unlimited when None.
        session_init: Called with every newly opened connection.
    """

    def __init__(self, max_idle: "Optional[int]" = None, session_init: "Optional[SessionInit]" = None) -> None:
        self.max_idle = max_idle
        self.session_init = session_init
        self._idle: dict[str, list[Connection]] = {}
        self._lock = threading.Lock()
        self._closed = False

    def __repr__(self) -> str:
        return f"<Pool keys={len(self._idle)} max_idle={self.max_idle}>"

    def get(self, username: str, password: str, dsn: str) -> Connection:
        """Return an idle connection for the credentials, or open a new one."""
        key = _pool_key(username, password, dsn)
        connection: Optional[Connection] = None
        with self._lock:
            stack = self._idle.get(key)
            if stack:
                connection = stack.pop()
        if connection is None:
            connection = Connection(username, password, dsn)
            connection.connect()
            if self.session_init is not None:
                try:
                    self.session_init(connection)
                except Exception:
                    connection.close()
                    raise
            logger.debug("Opened new pooled connection to %s", dsn)
        else:
            logger.debug("Reusing pooled connection to %s", dsn)
        connection.finalizer = weakref.finalize(
            connection,
            _close_leaked,
            dsn,
            connection.environment,
            connection.lock,
            connection.handle,
            connection.server_handle,
            connection.session_handle,
        )
        return connection

    def put(self, connection: "Optional[Connection]") -> None:
        """Roll back ``connection`` and keep it for reuse; closed connections are dropped."""
        if connection is None:
            return
        if connection.finalizer is not None:
            connection.finalizer.detach()
            connection.finalizer = None
        if not connection.is_connected():
            logger.debug("Discarding closed connection to %s", connection.dsn)
            return
        connection.rollback()
        key = _pool_key(connection.username, connection.password, connection.dsn)
        with self._lock:
            stack = self._idle.setdefault(key, [])
            keep = not self._closed and (self.max_idle is None or len(stack) < self.max_idle)
            if keep:
                stack.append(connection)
        if keep:
            logger.debug("Returned connection to %s", connection.dsn)
        else:
            logger.debug("Discarding surplus connection to %s", connection.dsn)
            connection.close()

    def size(self, dsn: str) -> int:
        """Number of idle connections for the ``user/password@sid`` key ``dsn``."""
        with self._lock:
            return len(self._idle.get(dsn, ()))

    def close(self) -> None:
        """Close every idle connection. Checked-out connections are closed by their owners."""
        with self._lock:
            self._closed = True
            idle = [connection for stack in self._idle.values() for connection in stack]
            self._idle.clear()
        for connection in idle:
            connection.close()
        logger.debug("Pool closed, %d idle connections closed", len(idle))
