"""CLOB, NCLOB, BLOB and BFILE handlers; one locator descriptor per slot."""

from typing import TYPE_CHECKING, Any

from ocidb.exceptions import NotSupportedError, TypeMismatchError
from ocidb.oci import constants as oci
from ocidb.variables.base import VariableHandler

if TYPE_CHECKING:
    from ocidb.cursor import Cursor
    from ocidb.variables.variable import Variable

__all__ = ("LobHandler", "lob_var_write")


class LobHandler(VariableHandler):
    """Locator slots; fetched values are returned as :class:`ocidb.lob.ExternalLobVar` views."""

    def __init__(self, descriptor_type: int = oci.OCI_DTYPE_LOB, temporary_type: int = 0) -> None:
        self.descriptor_type = descriptor_type
        self.temporary_type = temporary_type

    def initialize(self, var: "Variable", cursor: "Cursor") -> None:
        environment = var.environment
        for i in range(var.allocated_elements):
            status = environment.library.descriptor_alloc(environment.handle, var.data, i, self.descriptor_type)
            environment.check_status(status, "lob: allocate descriptor")

    def finalize(self, var: "Variable") -> None:
        if var.connection.is_connected():
            self._free_temporaries(var)
        pointers = var.pointers()
        for i in range(var.allocated_elements):
            var.environment.descriptor_free(pointers[i], self.descriptor_type)
            pointers[i] = None

    def pre_fetch(self, var: "Variable") -> None:
        self._free_temporaries(var)

    def _free_temporaries(self, var: "Variable") -> None:
        if self.descriptor_type == oci.OCI_DTYPE_FILE:
            return
        environment = var.environment
        library = environment.library
        pointers = var.pointers()
        for i in range(var.allocated_elements):
            locator = pointers[i]
            if not locator:
                continue
            status, is_temporary = library.lob_is_temporary(environment.handle, environment.error_handle, locator)
            environment.check_status(status, "lob: is temporary")
            if is_temporary:
                with var.connection.lock:
                    status = library.lob_free_temporary(var.connection.handle, environment.error_handle, locator)
                    environment.check_status(status, "lob: free temporary")

    def set_value(self, var: "Variable", pos: int, value: Any) -> None:
        if self.descriptor_type == oci.OCI_DTYPE_FILE:
            msg = "BFILEs are read only"
            raise NotSupportedError(0, msg, "lob: set value")
        environment = var.environment
        library = environment.library
        locator = var.pointers()[pos]
        status, is_temporary = library.lob_is_temporary(environment.handle, environment.error_handle, locator)
        environment.check_status(status, "lob: is temporary")
        if not is_temporary:
            with var.connection.lock:
                status = library.lob_create_temporary(
                    var.connection.handle, environment.error_handle, locator, var.type.charset_form, self.temporary_type
                )
                environment.check_status(status, "lob: create temporary")
        with var.connection.lock:
            status = library.lob_trim(var.connection.handle, environment.error_handle, locator, 0)
            environment.check_status(status, "lob: trim")
        lob_var_write(var, pos, value, 0)

    def get_value(self, var: "Variable", pos: int) -> Any:
        from ocidb.lob import ExternalLobVar

        return ExternalLobVar(var, pos)


def lob_var_write(var: "Variable", pos: int, data: Any, offset: int) -> int:
    """Write ``data`` into slot ``pos`` at the 0-based ``offset`` in one piece.

    Offsets are characters for character LOBs and bytes otherwise.

    Returns:
        The amount written, in the same unit as ``offset``.
    """
    if var.type.oracle_type == oci.SQLT_BFILE:
        msg = "BFILEs are read only"
        raise NotSupportedError(0, msg, "lob: write")
    environment = var.environment
    national = var.type.charset_form == oci.SQLCS_NCHAR
    if var.type.is_char_data:
        if not isinstance(data, str):
            msg = f"expecting string data, got {type(data).__name__}"
            raise TypeMismatchError(msg)
        payload = environment.encode(data, national=national)
    else:
        if not isinstance(data, (bytes, bytearray, memoryview)):
            msg = f"expecting binary data, got {type(data).__name__}"
            raise TypeMismatchError(msg)
        payload = bytes(data)
    if not payload:
        return 0
    charset_id = environment.charset_id if national else 0
    with var.connection.lock:
        status, written_bytes, written_chars = environment.library.lob_write(
            var.connection.handle,
            environment.error_handle,
            var.pointers()[pos],
            offset + 1,
            payload,
            charset_id,
            var.type.charset_form,
        )
        environment.check_status(status, "lob: write")
    if var.type.is_char_data:
        return written_chars or len(data)
    return written_bytes
