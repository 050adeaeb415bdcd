from typing import Any, Optional

from ocidb.oci import constants as oci

__all__ = (
    "BAD_CONNECTION_CODES",
    "ArrayPositionError",
    "ArrayTooLargeError",
    "ContinueError",
    "CursorClosedError",
    "DataError",
    "DatabaseError",
    "FetchSizeError",
    "ImproperConfigurationError",
    "IntegrityError",
    "InterfaceError",
    "InternalError",
    "InvalidHandleError",
    "ListIsEmptyError",
    "LobStaleError",
    "MissingDependencyError",
    "NeedDataError",
    "NoDataFoundError",
    "NotConnectedError",
    "NotSupportedError",
    "OCIDBError",
    "OperationalError",
    "ProgrammingError",
    "QueriesNotSupportedError",
    "StatementRequiredError",
    "StatusError",
    "StillExecutingError",
    "TypeMismatchError",
    "ValueTooLargeError",
    "Warning",
    "WarningStatus",
    "database_error",
    "error_for_status",
)


class OCIDBError(Exception):
    """Base exception class from which all ocidb exceptions inherit."""

    detail: str

    def __init__(self, *args: Any, detail: str = "") -> None:
        """Initialize ``OCIDBError``.

        Args:
            *args: args are converted to :class:`str` before passing to :class:`Exception`
            detail: detail of the exception.
        """
        str_args = [str(arg) for arg in args if arg]
        if not detail:
            if str_args:
                detail, *str_args = str_args
            elif hasattr(self, "detail"):
                detail = self.detail
        self.detail = detail
        super().__init__(*str_args)

    def __repr__(self) -> str:
        if self.detail:
            return f"{self.__class__.__name__} - {self.detail}"
        return self.__class__.__name__

    def __str__(self) -> str:
        return " ".join((*self.args, self.detail)).strip()


class Warning(OCIDBError):  # noqa: A001
    """PEP 249 warning base."""


class MissingDependencyError(OCIDBError, ImportError):
    """The Oracle client library could not be loaded."""

    def __init__(self, package: str, install_package: Optional[str] = None) -> None:
        super().__init__(
            f"Package {package!r} is not installed but required. Install {install_package or package} and point "
            f"OCIDB_LIB_DIR (or ORACLE_HOME) at the directory holding the client library"
        )


class ImproperConfigurationError(OCIDBError):
    """Improper configuration error.

    This exception is raised when a connection configuration is incomplete or inconsistent.
    """


# -- OCI status sentinels --
class StatusError(OCIDBError):
    """A non-success OCI status that is not a server error."""

    status: int = oci.OCI_ERROR

    def __init__(self, message: Optional[str] = None, status: Optional[int] = None) -> None:
        if status is not None:
            self.status = status
        if message is None:
            message = f"OCI status {self.status}"
        super().__init__(message)


class WarningStatus(StatusError):
    status = oci.OCI_SUCCESS_WITH_INFO
    detail = "warning"


class NeedDataError(StatusError):
    status = oci.OCI_NEED_DATA
    detail = "need data"


class NoDataFoundError(StatusError):
    """End of data; cursor paths treat it as the end of the rows."""

    status = oci.OCI_NO_DATA
    detail = "no data found"


class StillExecutingError(StatusError):
    status = oci.OCI_STILL_EXECUTING
    detail = "still executing"


class ContinueError(StatusError):
    status = oci.OCI_CONTINUE
    detail = "continue"


class InvalidHandleError(StatusError):
    status = oci.OCI_INVALID_HANDLE
    detail = "invalid handle"


_STATUS_ERRORS: "dict[int, type[StatusError]]" = {
    cls.status: cls
    for cls in (WarningStatus, NeedDataError, NoDataFoundError, StillExecutingError, ContinueError, InvalidHandleError)
}


def error_for_status(status: int) -> StatusError:
    """Return the sentinel exception for an OCI status, or a plain ``StatusError`` for unknown ones."""
    cls = _STATUS_ERRORS.get(status)
    if cls is None:
        return StatusError(status=status)
    return cls(cls.detail)


# -- server errors --
BAD_CONNECTION_CODES: "frozenset[int]" = frozenset({
    115, 451, 452, 609, 1090, 1092, 1073, 3113, 3114, 3135, 3136, 12153, 12161, 12170, 12224, 12230, 12233,
    12510, 12511, 12514, 12518, 12526, 12527, 12528, 12539,
})


class DatabaseError(OCIDBError):
    """Error reported by the server or the client library.

    Attributes:
        code: The ORA error code (the first non-zero code drained from the error handle).
        message: All message records, concatenated.
        site: Call site that observed the failure.
        offset: Parse error offset or row offset, 0 when unknown.
    """

    def __init__(self, code: int = 0, message: str = "", site: str = "", offset: int = 0) -> None:
        self.code = code
        self.message = message
        self.site = site
        self.offset = offset
        super().__init__(self._render())

    def _render(self) -> str:
        text = f"@{self.site} {self.code}: {self.message}" if self.site else f"{self.code}: {self.message}"
        if self.offset:
            text = f"row {self.offset} {text}"
        return text

    def with_offset(self, offset: int) -> "DatabaseError":
        self.offset = offset
        self.detail = self._render()
        return self

    def append_message(self, extra: str) -> "DatabaseError":
        self.message = f"{self.message}\n{extra}"
        self.detail = self._render()
        return self

    @property
    def is_bad_connection(self) -> bool:
        """True when the code indicates the session is unusable and should be discarded."""
        return self.code in BAD_CONNECTION_CODES


class InterfaceError(OCIDBError):
    """Misuse of the driver interface."""


class DataError(DatabaseError):
    pass


class OperationalError(DatabaseError):
    pass


class IntegrityError(DatabaseError):
    pass


class InternalError(DatabaseError):
    pass


class ProgrammingError(DatabaseError):
    pass


class NotSupportedError(DatabaseError):
    pass


ORA_PARSING_RANGE_START = 900
ORA_PARSING_RANGE_END = 1000

_ERROR_CODE_MAPPING: "dict[int, type[DatabaseError]]" = {
    1: IntegrityError,
    1400: IntegrityError,
    1407: IntegrityError,
    2290: IntegrityError,
    2291: IntegrityError,
    2292: IntegrityError,
    1012: OperationalError,
    1033: OperationalError,
    1034: OperationalError,
    1089: OperationalError,
    1438: DataError,
    1722: DataError,
    1840: DataError,
    1858: DataError,
    12899: DataError,
}


def database_error(code: int, message: str, site: str = "", offset: int = 0) -> DatabaseError:
    """Build the ``DatabaseError`` subclass matching an ORA code."""
    cls = _ERROR_CODE_MAPPING.get(code)
    if cls is None:
        if code in BAD_CONNECTION_CODES:
            cls = OperationalError
        elif ORA_PARSING_RANGE_START <= code < ORA_PARSING_RANGE_END:
            cls = ProgrammingError
        else:
            cls = DatabaseError
    return cls(code, message, site, offset)


# -- library errors --
class CursorClosedError(InterfaceError):
    detail = "cursor is closed"


class NotConnectedError(InterfaceError):
    detail = "not connected"


class QueriesNotSupportedError(InterfaceError):
    detail = "queries not supported: results undefined"


class ListIsEmptyError(InterfaceError):
    detail = "list is empty"


class FetchSizeError(InterfaceError):
    detail = "rows to fetch exceeds array size"


class ArrayTooLargeError(InterfaceError):
    detail = "array too large"


class LobStaleError(InterfaceError):
    detail = "LOB variable no longer valid after subsequent fetch"


class StatementRequiredError(InterfaceError):
    detail = "statement must be prepared or given"


# -- domain errors --
class TypeMismatchError(InterfaceError, TypeError):
    """A value does not match the variable type it is assigned to."""


class ValueTooLargeError(InterfaceError, ValueError):
    """A value exceeds the maximum size of its variable type."""


class ArrayPositionError(InterfaceError, IndexError):
    """An array position lies outside the allocated elements."""
