"""Server attach, session lifetime and transaction control."""

import logging
import threading
import weakref
from ctypes import c_void_p
from typing import TYPE_CHECKING, Any, Callable, NamedTuple, Optional

from mypy_extensions import mypyc_attr

from ocidb.cursor import Cursor
from ocidb.environment import Environment
from ocidb.exceptions import DatabaseError, NotConnectedError, ValueTooLargeError
from ocidb.oci import constants as oci
from ocidb.oci.library import get_library
from ocidb.oci.types import XID
from ocidb.utils.logging import get_logger, log_with_context

if TYPE_CHECKING:
    from collections.abc import Mapping

__all__ = ("TWO_PHASE_NAME", "Connection", "NLSSettings", "SessionInit", "client_version", "new_session_init")

logger = get_logger("connection")

TWO_PHASE_NAME = b"ocidb"

SessionInit = Callable[["Connection"], None]


class NLSSettings(NamedTuple):
    """National language settings seen by a connection."""

    client_charset: str
    session_language: str
    language: str
    territory: str
    charset: str

    @property
    def database(self) -> str:
        """The database settings in ``NLS_LANG`` form: ``LANGUAGE_TERRITORY.CHARSET``."""
        return f"{self.language}_{self.territory}.{self.charset}"


def client_version() -> "tuple[int, int, int, int, int]":
    """Return the Oracle client version as ``(major, minor, update, patch, port update)``."""
    return get_library().client_version()


@mypyc_attr(allow_interpreted_subclasses=False)
class Connection:
    """A session on an Oracle server.

    Every OCI call that reaches the server runs under :attr:`lock`; the
    one exception is :meth:`cancel`, which must be callable while another
    thread is blocked in a call.

    Args:
        username: User name; empty for external authentication.
        password: Password; empty for external authentication.
        dsn: Connect string or TNS descriptor.
        autocommit: Commit after every successful statement.
        environment: Environment to use; a new one owned by the connection when omitted.
    """

    def __init__(
        self,
        username: str = "",
        password: str = "",
        dsn: str = "",
        autocommit: bool = False,
        environment: "Optional[Environment]" = None,
    ) -> None:
        self.username = username
        self.password = password
        self.dsn = dsn
        self.autocommit = autocommit
        self._owns_environment = environment is None
        self.environment = environment or Environment.create()
        self.handle: Any = None
        self.server_handle: Any = None
        self.session_handle: Any = None
        self.transaction_handle: Any = None
        self.lock = threading.RLock()
        self.commit_mode = oci.OCI_DEFAULT
        self.release = False
        self.attached = False
        self.bypass_multiple_args = False
        self.statement_cache = True
        self.finalizer: Optional[weakref.finalize] = None
        self._server_attached = False
        self._session_begun = False

    def __repr__(self) -> str:
        return f"<Connection {self.username}@{self.dsn}>"

    def __enter__(self) -> "Connection":
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    def is_connected(self) -> bool:
        return self.handle is not None

    def _check_connected(self) -> None:
        if not self.is_connected():
            raise NotConnectedError

    def connect(self, mode: int = oci.OCI_DEFAULT, twophase: bool = False) -> None:
        """Attach to the server and begin the session.

        Any failure frees whatever handles were allocated so far.

        Args:
            mode: ``OCISessionBegin`` mode, e.g. ``OCI_SYSDBA``.
            twophase: Set the internal and external names needed for two-phase commit.

        Raises:
            DatabaseError: The server refused the attach or the session.
        """
        self.free()
        try:
            self._connect(mode, twophase)
        except Exception:
            self.free()
            raise
        log_with_context(logger, logging.INFO, "Connected", dsn=self.dsn, username=self.username)

    def _connect(self, mode: int, twophase: bool) -> None:
        environment = self.environment
        library = environment.library
        self.server_handle = environment.handle_alloc(oci.OCI_HTYPE_SERVER, "connect: allocate server handle")
        with self.lock:
            status = library.server_attach(
                self.server_handle, environment.error_handle, environment.encode(self.dsn), oci.OCI_DEFAULT
            )
            environment.check_status(status, "connect: server attach")
        self._server_attached = True

        self.handle = environment.handle_alloc(oci.OCI_HTYPE_SVCCTX, "connect: allocate service context handle")
        environment.attr_set(
            self.handle, oci.OCI_HTYPE_SVCCTX, oci.OCI_ATTR_SERVER, self.server_handle, "connect: set server handle"
        )
        if twophase:
            environment.attr_set(
                self.server_handle,
                oci.OCI_HTYPE_SERVER,
                oci.OCI_ATTR_INTERNAL_NAME,
                TWO_PHASE_NAME,
                "connect: set internal name",
            )
            environment.attr_set(
                self.server_handle,
                oci.OCI_HTYPE_SERVER,
                oci.OCI_ATTR_EXTERNAL_NAME,
                TWO_PHASE_NAME,
                "connect: set external name",
            )

        self.session_handle = environment.handle_alloc(oci.OCI_HTYPE_SESSION, "connect: allocate session handle")
        credentials = oci.OCI_CRED_EXT
        if self.username:
            credentials = oci.OCI_CRED_RDBMS
            environment.attr_set(
                self.session_handle,
                oci.OCI_HTYPE_SESSION,
                oci.OCI_ATTR_USERNAME,
                environment.encode(self.username),
                "connect: set user name",
            )
        if self.password:
            credentials = oci.OCI_CRED_RDBMS
            environment.attr_set(
                self.session_handle,
                oci.OCI_HTYPE_SESSION,
                oci.OCI_ATTR_PASSWORD,
                environment.encode(self.password),
                "connect: set password",
            )
        environment.attr_set(
            self.handle, oci.OCI_HTYPE_SVCCTX, oci.OCI_ATTR_SESSION, self.session_handle, "connect: set session handle"
        )
        with self.lock:
            status = library.session_begin(self.handle, environment.error_handle, self.session_handle, credentials, mode)
            environment.check_status(status, "connect: begin session")
        self._session_begun = True

    def commit(self) -> None:
        self._check_connected()
        with self.lock:
            status = self.environment.library.trans_commit(self.handle, self.environment.error_handle, self.commit_mode)
            self.environment.check_status(status, "commit")
        self.commit_mode = oci.OCI_DEFAULT

    def rollback(self) -> None:
        self._check_connected()
        with self.lock:
            status = self.environment.library.trans_rollback(
                self.handle, self.environment.error_handle, oci.OCI_DEFAULT
            )
            self.environment.check_status(status, "rollback")

    def begin(self, format_id: int = -1, transaction_id: str = "", branch_id: str = "") -> None:
        """Start a new transaction, global when ``format_id`` is not -1.

        Raises:
            ValueTooLargeError: The transaction or branch id does not fit an XID.
        """
        transaction = transaction_id.encode("utf-8")
        branch = branch_id.encode("utf-8")
        if len(transaction) > oci.MAXGTRIDSIZE:
            msg = "transaction id too large"
            raise ValueTooLargeError(msg)
        if len(branch) > oci.MAXBQUALSIZE:
            msg = "branch id too large"
            raise ValueTooLargeError(msg)
        self._check_connected()
        environment = self.environment
        existing = environment.attr_get(
            self.handle, oci.OCI_HTYPE_SVCCTX, oci.OCI_ATTR_TRANS, c_void_p, "begin: find transaction handle"
        )
        if existing:
            transaction_handle = c_void_p(existing)
        else:
            transaction_handle = environment.handle_alloc(oci.OCI_HTYPE_TRANS, "begin: allocate transaction handle")
            self.transaction_handle = transaction_handle

        if format_id != -1:
            xid = XID()
            xid.format_id = format_id
            xid.gtrid_length = len(transaction)
            xid.bqual_length = len(branch)
            xid.data = transaction + branch
            status = environment.library.attr_set_xid(transaction_handle, xid, environment.error_handle)
            environment.check_status(status, "begin: set XID")

        environment.attr_set(
            self.handle, oci.OCI_HTYPE_SVCCTX, oci.OCI_ATTR_TRANS, transaction_handle, "begin: associate transaction"
        )
        with self.lock:
            status = environment.library.trans_start(self.handle, environment.error_handle, 0, oci.OCI_TRANS_NEW)
            environment.check_status(status, "begin: start transaction")

    def prepare(self) -> bool:
        """Prepare the global transaction for two-phase commit.

        Returns:
            False when the transaction made no changes and needs no commit.
        """
        self._check_connected()
        with self.lock:
            status = self.environment.library.trans_prepare(self.handle, self.environment.error_handle, oci.OCI_DEFAULT)
            if status == oci.OCI_SUCCESS_WITH_INFO:
                return False
            self.environment.check_status(status, "prepare")
        self.commit_mode = oci.OCI_TRANS_TWOPHASE
        return True

    def ping(self) -> None:
        self._check_connected()
        with self.lock:
            status = self.environment.library.ping(self.handle, self.environment.error_handle, oci.OCI_DEFAULT)
            self.environment.check_status(status, "ping")

    def cancel(self) -> None:
        """Interrupt the call currently running on this connection from another thread."""
        self._check_connected()
        status = self.environment.library.break_execution(self.handle, self.environment.error_handle)
        self.environment.check_status(status, "cancel")

    def cursor(self) -> Cursor:
        self._check_connected()
        return Cursor(self)

    def close(self) -> None:
        """Roll back, end the session, detach from the server and free every handle.

        Closing a closed connection does nothing. The first error raised while
        ending the session or detaching is re-raised after the handles are freed.
        """
        if not self.is_connected():
            return
        environment = self.environment
        library = environment.library
        first_error: Optional[DatabaseError] = None
        with self.lock:
            library.trans_rollback(self.handle, environment.error_handle, oci.OCI_DEFAULT)
            if self._session_begun:
                self._session_begun = False
                status = library.session_end(self.handle, environment.error_handle, self.session_handle, oci.OCI_DEFAULT)
                try:
                    environment.check_status(status, "close: end session")
                except DatabaseError as exc:
                    first_error = exc
            if self._server_attached:
                self._server_attached = False
                status = library.server_detach(self.server_handle, environment.error_handle, oci.OCI_DEFAULT)
                try:
                    environment.check_status(status, "close: server detach")
                except DatabaseError as exc:
                    logger.debug("Server detach failed after an earlier error: %s", exc)
                    first_error = first_error or exc
        log_with_context(logger, logging.INFO, "Closed connection", dsn=self.dsn, username=self.username)
        self.free(self._owns_environment)
        if first_error is not None:
            raise first_error

    def free(self, free_environment: bool = False) -> None:
        """Release the session and free the handles without raising.

        Args:
            free_environment: Free the environment as well.
        """
        if self.finalizer is not None:
            self.finalizer.detach()
            self.finalizer = None
        environment = self.environment
        if environment is None:
            return
        library = environment.library
        with self.lock:
            if self.release and self.handle is not None:
                library.trans_rollback(self.handle, environment.error_handle, oci.OCI_DEFAULT)
                status = library.session_release(self.handle, environment.error_handle, oci.OCI_DEFAULT)
                if status != oci.OCI_SUCCESS:
                    logger.debug("Session release returned status %d", status)
            elif not self.attached:
                if self._session_begun:
                    library.trans_rollback(self.handle, environment.error_handle, oci.OCI_DEFAULT)
                    status = library.session_end(
                        self.handle, environment.error_handle, self.session_handle, oci.OCI_DEFAULT
                    )
                    if status != oci.OCI_SUCCESS:
                        logger.debug("Session end returned status %d", status)
                if self._server_attached:
                    status = library.server_detach(self.server_handle, environment.error_handle, oci.OCI_DEFAULT)
                    if status != oci.OCI_SUCCESS:
                        logger.debug("Server detach returned status %d", status)
            self._session_begun = False
            self._server_attached = False

        environment.handle_free(self.transaction_handle, oci.OCI_HTYPE_TRANS)
        self.transaction_handle = None
        environment.handle_free(self.session_handle, oci.OCI_HTYPE_SESSION)
        self.session_handle = None
        environment.handle_free(self.handle, oci.OCI_HTYPE_SVCCTX)
        self.handle = None
        environment.handle_free(self.server_handle, oci.OCI_HTYPE_SERVER)
        self.server_handle = None
        if free_environment:
            environment.free()

    def nls_settings(self, cursor: "Optional[Cursor]" = None) -> NLSSettings:
        """Query the session language and the database NLS parameters.

        Args:
            cursor: Cursor to run the queries on; a temporary one when omitted.
        """
        if cursor is None:
            with self.cursor() as temporary:
                return self.nls_settings(temporary)
        cursor.execute("SELECT USERENV('language') FROM DUAL")
        row = cursor.fetchone()
        session_language = row[0] if row else ""
        cursor.execute(
            "SELECT parameter, value FROM nls_database_parameters"
            " WHERE parameter IN ('NLS_TERRITORY', 'NLS_LANGUAGE', 'NLS_CHARACTERSET')"
        )
        parameters = dict(cursor.fetchall())
        return NLSSettings(
            client_charset=self.environment.encoding,
            session_language=session_language,
            language=parameters.get("NLS_LANGUAGE", ""),
            territory=parameters.get("NLS_TERRITORY", ""),
            charset=parameters.get("NLS_CHARACTERSET", ""),
        )


def new_session_init(attributes: "Mapping[str, str]") -> SessionInit:
    """Build a callback running ``ALTER SESSION SET k = 'v'`` for every attribute on a new connection."""

    def session_init(connection: Connection) -> None:
        with connection.cursor() as cursor:
            for key, value in attributes.items():
                escaped = value.replace("'", "''")
                cursor.execute(f"ALTER SESSION SET {key} = '{escaped}'")

    return session_init
