"""OCI environment: handle bootstrap, character set discovery and status translation."""

import threading
from typing import TYPE_CHECKING, Any, Optional

from mypy_extensions import mypyc_attr

from ocidb.exceptions import InterfaceError, database_error, error_for_status
from ocidb.oci import constants as oci
from ocidb.oci.library import get_library
from ocidb.oci.types import ub2
from ocidb.utils.logging import get_logger

if TYPE_CHECKING:
    from ocidb.oci.library import OCILibrary

__all__ = ("MAX_BINARY_BYTES", "MAX_STRING_CHARS", "Environment", "al32utf8_charset_id")

logger = get_logger("environment")

MAX_STRING_CHARS = 4000
MAX_BINARY_BYTES = 4000

_charset_id: "Optional[int]" = None
_charset_lock = threading.Lock()


def al32utf8_charset_id(library: "OCILibrary") -> int:
    """Return the OCI id of ``AL32UTF8``, discovered once per process.

    A throwaway environment is created to translate the name, then freed.
    """
    global _charset_id  # noqa: PLW0603
    with _charset_lock:
        if _charset_id is not None:
            return _charset_id
        status, handle = library.env_nls_create(oci.OCI_DEFAULT | oci.OCI_THREADED)
        if status != oci.OCI_SUCCESS or not handle:
            msg = "Unable to acquire Oracle environment handle"
            raise InterfaceError(msg)
        try:
            _charset_id = library.nls_charset_name_to_id(handle, b"AL32UTF8")
        finally:
            library.handle_free(handle, oci.OCI_HTYPE_ENV)
        logger.debug("AL32UTF8 charset id is %d", _charset_id)
        return _charset_id


@mypyc_attr(allow_interpreted_subclasses=False)
class Environment:
    """A thread-enabled OCI environment configured for ``AL32UTF8``.

    Owns the environment handle and the error handle shared by every
    connection, cursor and variable created from it.
    """

    __slots__ = (
        "charset_id",
        "encoding",
        "error_handle",
        "fixed_width",
        "handle",
        "library",
        "max_bytes_per_character",
        "max_string_bytes",
        "nencoding",
        "nls_numeric_characters",
        "number_from_string_format",
        "number_to_string_format",
    )

    def __init__(self, library: "OCILibrary", handle: Any, charset_id: int = 0) -> None:
        self.library = library
        self.handle = handle
        self.charset_id = charset_id
        self.error_handle: Any = None
        self.max_bytes_per_character = 4
        self.fixed_width = False
        self.encoding = "UTF-8"
        self.nencoding = "UTF-8"
        self.max_string_bytes = MAX_STRING_CHARS * self.max_bytes_per_character
        self.number_to_string_format = b"TM9"
        self.number_from_string_format = b"9" * 63
        self.nls_numeric_characters = b"NLS_NUMERIC_CHARACTERS='.,'"

    @classmethod
    def create(cls, library: "Optional[OCILibrary]" = None) -> "Environment":
        """Create and initialize a new environment.

        Args:
            library: Client library facade; the process-wide one when omitted.

        Raises:
            InterfaceError: The environment handle could not be created.
            DatabaseError: Character set discovery failed.

        Returns:
            The initialized environment.
        """
        library = library or get_library()
        charset_id = al32utf8_charset_id(library)
        status, handle = library.env_nls_create(oci.OCI_DEFAULT | oci.OCI_THREADED, charset_id, charset_id)
        if status != oci.OCI_SUCCESS or not handle:
            msg = "Unable to acquire Oracle environment handle"
            raise InterfaceError(msg)
        env = cls(library, handle, charset_id)
        try:
            env._initialize()
        except Exception:
            env.free()
            raise
        logger.debug(
            "Environment created: encoding=%s nencoding=%s max_bytes_per_character=%d",
            env.encoding,
            env.nencoding,
            env.max_bytes_per_character,
        )
        return env

    def _initialize(self) -> None:
        status, self.error_handle = self.library.handle_alloc(self.handle, oci.OCI_HTYPE_ERROR)
        if status != oci.OCI_SUCCESS:
            self.error_handle = None
            msg = "Unable to allocate OCI error handle"
            raise InterfaceError(msg)

        status, self.max_bytes_per_character = self.library.nls_numeric_info_get(
            self.handle, self.error_handle, oci.OCI_NLS_CHARSET_MAXBYTESZ
        )
        self.check_status(status, "environment: max bytes per character")
        self.max_string_bytes = MAX_STRING_CHARS * self.max_bytes_per_character

        status, fixed_width = self.library.nls_numeric_info_get(
            self.handle, self.error_handle, oci.OCI_NLS_CHARSET_FIXEDWIDTH
        )
        self.check_status(status, "environment: fixed width charset")
        self.fixed_width = bool(fixed_width)

        self.encoding = self._charset_name(oci.OCI_ATTR_ENV_CHARSET_ID, "environment: encoding")
        self.nencoding = self._charset_name(oci.OCI_ATTR_ENV_NCHARSET_ID, "environment: nencoding")

    def _charset_name(self, attribute: int, site: str) -> str:
        charset_id = self.attr_get(self.handle, oci.OCI_HTYPE_ENV, attribute, ub2, site)
        status, oracle_name = self.library.nls_charset_id_to_name(self.handle, charset_id)
        self.check_status(status, f"{site}: charset name")
        status, iana_name = self.library.nls_name_map(self.handle, oracle_name, oci.OCI_NLS_CS_ORA_TO_IANA)
        self.check_status(status, f"{site}: IANA name")
        return iana_name.decode("ascii")

    def check_status(self, status: int, site: str) -> None:
        """Raise for any OCI status other than success or success-with-info.

        Protocol statuses raise their sentinel (``NoDataFoundError`` and friends);
        ``OCI_ERROR`` drains every record of the error handle into a ``DatabaseError``.

        Args:
            status: The ``sword`` returned by the OCI call.
            site: Call-site tag reported in the error.
        """
        if status in (oci.OCI_SUCCESS, oci.OCI_SUCCESS_WITH_INFO):
            return
        if status != oci.OCI_ERROR:
            raise error_for_status(status)
        code = 0
        messages: list[str] = []
        record = 0
        while True:
            record += 1
            error_status, record_code, text = self.library.error_get(self.error_handle, record, oci.OCI_HTYPE_ERROR)
            if error_status == oci.OCI_NO_DATA:
                break
            if record_code and not code:
                code = record_code
            messages.append(self.decode(text).rstrip("\n"))
            if error_status != oci.OCI_SUCCESS:
                break
        error = database_error(code, "\n".join(messages), site)
        logger.debug("check_status(%d) at %s: %s", status, site, error)
        raise error

    def attr_get(self, handle: Any, handle_type: int, attribute: int, ctype: Any, site: str) -> Any:
        """Read a scalar attribute of ``handle``."""
        status, value, _ = self.library.attr_get(handle, handle_type, attribute, ctype, self.error_handle)
        self.check_status(status, site)
        return value

    def attr_get_text(self, handle: Any, handle_type: int, attribute: int, site: str) -> bytes:
        status, value = self.library.attr_get_text(handle, handle_type, attribute, self.error_handle)
        self.check_status(status, site)
        return value

    def attr_set(self, handle: Any, handle_type: int, attribute: int, value: Any, site: str, length: int = 0) -> None:
        """Set an attribute of ``handle``; byte strings default to their own length."""
        if isinstance(value, bytes) and not length:
            length = len(value)
        status = self.library.attr_set(handle, handle_type, attribute, value, length, self.error_handle)
        self.check_status(status, site)

    def handle_alloc(self, handle_type: int, site: str) -> Any:
        status, handle = self.library.handle_alloc(self.handle, handle_type)
        self.check_status(status, site)
        return handle

    def handle_free(self, handle: Any, handle_type: int) -> None:
        if handle:
            self.library.handle_free(handle, handle_type)

    def descriptor_alloc(self, descriptor_type: int, site: str) -> Any:
        status, handle = self.library.descriptor_alloc_handle(self.handle, descriptor_type)
        self.check_status(status, site)
        return handle

    def descriptor_free(self, descriptor: Any, descriptor_type: int) -> None:
        if descriptor:
            self.library.descriptor_free(descriptor, descriptor_type)

    def decode(self, data: bytes, national: bool = False) -> str:
        return data.decode(self.nencoding if national else self.encoding)

    def encode(self, text: str, national: bool = False) -> bytes:
        return text.encode(self.nencoding if national else self.encoding)

    def free(self) -> None:
        """Free the error and environment handles. Safe to call twice."""
        if self.error_handle:
            self.library.handle_free(self.error_handle, oci.OCI_HTYPE_ERROR)
            self.error_handle = None
        if self.handle:
            self.library.handle_free(self.handle, oci.OCI_HTYPE_ENV)
            self.handle = None
