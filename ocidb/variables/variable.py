"""Typed OCI buffers used for binds and defines."""

import ctypes
from typing import TYPE_CHECKING, Any, Optional

from ocidb.exceptions import (
    ArrayPositionError,
    ArrayTooLargeError,
    InterfaceError,
    NotSupportedError,
    TypeMismatchError,
    database_error,
)
from ocidb.oci import constants as oci
from ocidb.oci.types import sb1, sb2, ub1, ub2, ub4
from ocidb.utils.logging import get_logger
from ocidb.variables.base import STORAGE_FLOAT, STORAGE_INT, Ref

if TYPE_CHECKING:
    from ocidb.connection import Connection
    from ocidb.cursor import Cursor
    from ocidb.environment import Environment
    from ocidb.variables.base import VariableType

__all__ = ("Variable", "define_variable", "param_var_type", "read_scale_precision")

logger = get_logger("variable")

_MAX_BUFFER_BYTES = 2**31 - 1


class Variable:
    """A typed array of OCI buffers.

    Holds the data buffer, the indicator vector and, for variable length
    types, the actual length and return code vectors. ``allocated_elements``
    is the number of slots; ``is_array`` marks PL/SQL index-by arrays.
    """

    __slots__ = (
        "__weakref__",
        "actual_elements",
        "actual_length",
        "allocated_elements",
        "bind_handle",
        "bound_cursor_handle",
        "bound_name",
        "bound_pos",
        "buffer_size",
        "connection",
        "cursors",
        "data",
        "define_handle",
        "destination",
        "environment",
        "indicator",
        "internal_fetch_num",
        "is_array",
        "return_code",
        "size",
        "type",
    )

    def __init__(self, cursor: "Cursor", num_elements: int, var_type: "VariableType", size: int = 0) -> None:
        self.environment: Environment = cursor.environment
        self.connection: Connection = cursor.connection
        self.type = var_type
        self.allocated_elements = max(num_elements, 1)
        self.actual_elements = ub4(0)
        self.is_array = False
        self.bind_handle: Any = None
        self.define_handle: Any = None
        self.bound_cursor_handle: Any = None
        self.bound_name = ""
        self.bound_pos = 0
        self.internal_fetch_num = 0
        self.destination: Optional[Ref[Any]] = None
        self.cursors: list[Any] = []

        self.size = size or var_type.size
        if var_type.is_variable_length and self.size < ctypes.sizeof(ub2):
            self.size = ctypes.sizeof(ub2)

        self.indicator = (sb2 * self.allocated_elements)()
        for i in range(self.allocated_elements):
            self.indicator[i] = oci.OCI_IND_NULL
        self.actual_length: Any = None
        self.return_code: Any = None
        if var_type.is_variable_length:
            self.actual_length = (ub2 * self.allocated_elements)()
            self.return_code = (ub2 * self.allocated_elements)()

        self.buffer_size = 0
        self.data: Any = None
        self._allocate_data()
        var_type.handler.initialize(self, cursor)

    def __repr__(self) -> str:
        return f"<Variable {self.type.name} elements={self.allocated_elements} size={self.size}>"

    def _allocate_data(self) -> None:
        buffer_size = self.type.handler.get_buffer_size(self) or self.size
        if buffer_size % 2:
            buffer_size += 1
        data_length = self.allocated_elements * buffer_size
        if data_length > _MAX_BUFFER_BYTES:
            raise ArrayTooLargeError
        self.buffer_size = buffer_size
        if self.type.storage == STORAGE_INT:
            self.data = (ctypes.c_int64 * self.allocated_elements)()
        elif self.type.storage == STORAGE_FLOAT:
            self.data = (ctypes.c_double * self.allocated_elements)()
        else:
            self.data = (ctypes.c_ubyte * data_length)()

    def offset(self, pos: int) -> int:
        """Byte offset of slot ``pos`` inside the data buffer."""
        return pos * self.buffer_size

    def address(self, pos: int) -> int:
        return ctypes.addressof(self.data) + self.offset(pos)

    def pointers(self) -> Any:
        """View of the data buffer as ``c_void_p`` slots (locators, descriptors, statement handles)."""
        return (ctypes.c_void_p * self.allocated_elements).from_buffer(self.data)

    def make_array(self) -> None:
        if not self.type.can_be_in_array:
            msg = f"{self.type.name} variables do not support arrays"
            raise NotSupportedError(0, msg, "make_array")
        self.is_array = True

    def resize(self, size: int) -> None:
        """Grow every element to ``size``, keeping the contents and rebinding if bound."""
        original_data = self.data
        original_buffer_size = self.buffer_size
        self.size = size
        self._allocate_data()
        for i in range(self.allocated_elements):
            ctypes.memmove(
                ctypes.addressof(self.data) + i * self.buffer_size,
                ctypes.addressof(original_data) + i * original_buffer_size,
                min(original_buffer_size, self.buffer_size),
            )
        if self.bound_name or self.bound_pos:
            self._internal_bind()

    # -- binding ------------------------------------------------------------------------------------

    def bind(self, cursor: "Cursor", name: str = "", pos: int = 0) -> None:
        """Bind to ``cursor`` by name or 1-based position; a no-op when nothing changed."""
        cursor_handle = _handle_value(cursor.handle)
        if (
            self.bind_handle is not None
            and self.bound_cursor_handle == cursor_handle
            and self.bound_name == name
            and self.bound_pos == pos
        ):
            return
        self.bound_cursor_handle = cursor_handle
        self.bound_name = name
        self.bound_pos = pos
        self._internal_bind()

    def unbind(self) -> None:
        """Forget the current binding so the next :meth:`bind` binds afresh."""
        self.bind_handle = None
        self.bound_cursor_handle = None
        self.bound_name = ""
        self.bound_pos = 0

    def _internal_bind(self) -> None:
        library = self.environment.library
        max_elements = self.allocated_elements if self.is_array else 0
        current_elements = self.actual_elements if self.is_array else None
        if self.bound_name:
            status, self.bind_handle = library.bind_by_name(
                self.bound_cursor_handle,
                self.bind_handle,
                self.environment.error_handle,
                self.environment.encode(self.bound_name),
                self.data,
                self.buffer_size,
                self.type.oracle_type,
                self.indicator,
                self.actual_length,
                self.return_code,
                max_elements,
                current_elements,
            )
        else:
            status, self.bind_handle = library.bind_by_pos(
                self.bound_cursor_handle,
                self.bind_handle,
                self.environment.error_handle,
                self.bound_pos,
                self.data,
                self.buffer_size,
                self.type.oracle_type,
                self.indicator,
                self.actual_length,
                self.return_code,
                max_elements,
                current_elements,
            )
        self.environment.check_status(status, "bind")

        if self.type.charset_form != oci.SQLCS_IMPLICIT:
            self.environment.attr_set(
                self.bind_handle,
                oci.OCI_HTYPE_BIND,
                oci.OCI_ATTR_CHARSET_FORM,
                ub1(self.type.charset_form),
                "bind: set charset form",
                ctypes.sizeof(ub1),
            )
        if self.type.is_char_data and self.type.is_variable_length and self.size > self.type.size:
            self.environment.attr_set(
                self.bind_handle,
                oci.OCI_HTYPE_BIND,
                oci.OCI_ATTR_MAXDATA_SIZE,
                ub4(self.buffer_size),
                "bind: set max data size",
                ctypes.sizeof(ub4),
            )

    # -- reading values -----------------------------------------------------------------------------

    def verify_fetch(self, pos: int) -> None:
        """Raise when the column at ``pos`` was fetched with a non-zero return code."""
        if self.type.is_variable_length and self.return_code[pos] != 0:
            code = int(self.return_code[pos])
            msg = f"column at array pos {pos} fetched with error: {code}"
            raise database_error(code, msg, "verify_fetch")

    def get_single_value(self, pos: int) -> Any:
        if pos >= self.allocated_elements:
            msg = f"array position {pos} exceeds {self.allocated_elements} allocated elements"
            raise ArrayPositionError(msg)
        if self.type.handler.is_null(self, pos):
            return None
        self.verify_fetch(pos)
        return self.type.handler.get_value(self, pos)

    def get_array_value(self, num_elements: int) -> "list[Any]":
        return [self.get_single_value(i) for i in range(num_elements)]

    def get_value(self, pos: int = 0) -> Any:
        """Return the value at ``pos``, or the whole array for PL/SQL array variables."""
        if self.is_array:
            return self.get_array_value(self.actual_elements.value)
        return self.get_single_value(pos)

    def get_value_into(self, destination: "Ref[Any]", pos: int = 0) -> None:
        """Store the value at ``pos`` into ``destination``, honouring ``zero_on_null``."""
        value = self.get_value(pos)
        if value is None and destination.zero_on_null:
            value = self.type.handler.zero_value
        destination.value = value

    # -- writing values -----------------------------------------------------------------------------

    def set_single_value(self, pos: int, value: Any) -> None:
        if pos >= self.allocated_elements:
            msg = "array size exceeded"
            raise ArrayPositionError(msg)
        if value is None:
            self.indicator[pos] = oci.OCI_IND_NULL
            return
        self.indicator[pos] = oci.OCI_IND_NOTNULL
        if self.type.is_variable_length:
            self.return_code[pos] = 0
        self.type.handler.set_value(self, pos, value)

    def set_array_value(self, values: "list[Any] | tuple[Any, ...]") -> None:
        if len(values) > self.allocated_elements:
            msg = "array size exceeded"
            raise ArrayPositionError(msg)
        self.actual_elements.value = len(values)
        for i, value in enumerate(values):
            self.set_single_value(i, value)

    def set_value(self, pos: int, value: Any) -> None:
        """Set the value at ``pos``.

        A :class:`Ref` is unwrapped and remembered as the writeback destination.
        """
        if isinstance(value, Ref):
            self.destination = value
            value = value.value
        elif pos == 0:
            self.destination = None
        if self.is_array:
            if pos > 0:
                msg = "arrays of arrays are not supported by the OCI"
                raise NotSupportedError(0, msg, "set_value")
            if not isinstance(value, (list, tuple)):
                msg = f"expecting array data, got {type(value).__name__}"
                raise TypeMismatchError(msg)
            self.set_array_value(value)
            return
        self.set_single_value(pos, value)

    def copy_from(self, source: "Variable", source_pos: int, target_pos: int) -> None:
        """Copy one element of ``source`` into this variable."""
        if not source.type.can_be_copied:
            msg = "variable does not support copying"
            raise InterfaceError(msg)
        if source.type is not self.type:
            msg = f"cannot copy {source.type.name} into {self.type.name}"
            raise TypeMismatchError(msg)
        if source_pos >= source.allocated_elements or target_pos >= self.allocated_elements:
            msg = "array size exceeded"
            raise ArrayPositionError(msg)
        if source.buffer_size > self.buffer_size:
            self.resize(source.size)
        self.indicator[target_pos] = source.indicator[source_pos]
        if self.type.is_variable_length:
            self.actual_length[target_pos] = source.actual_length[source_pos]
            self.return_code[target_pos] = source.return_code[source_pos]
        if self.type.storage in (STORAGE_INT, STORAGE_FLOAT):
            self.data[target_pos] = source.data[source_pos]
        else:
            ctypes.memmove(self.address(target_pos), source.address(source_pos), source.buffer_size)

    def free(self) -> None:
        """Release type resources (descriptors, child cursors). Outstanding LOB views go stale."""
        if self.data is None:
            return
        self.internal_fetch_num += 1
        self.type.handler.finalize(self)
        self.data = None
        self.bind_handle = None
        self.define_handle = None


def _handle_value(handle: Any) -> Any:
    if isinstance(handle, ctypes.c_void_p):
        return handle.value
    return handle


def define_variable(cursor: "Cursor", position: int, num_elements: int) -> Variable:
    """Allocate and define the fetch variable for select-list item ``position`` (1-based)."""
    environment = cursor.environment
    library = environment.library
    status, param = library.param_get(cursor.handle, oci.OCI_HTYPE_STMT, environment.error_handle, position)
    environment.check_status(status, "define: parameter")
    try:
        return _define_helper(cursor, param, position, num_elements)
    finally:
        library.descriptor_free(param, oci.OCI_DTYPE_PARAM)


def param_var_type(param: Any, environment: "Environment") -> "VariableType":
    """Variable type matching the data type and charset form of a select-list parameter."""
    from ocidb.variables.registry import var_type_by_oracle

    data_type = environment.attr_get(param, oci.OCI_DTYPE_PARAM, oci.OCI_ATTR_DATA_TYPE, ub2, "define: data type")
    charset_form = oci.SQLCS_IMPLICIT
    if data_type in (oci.SQLT_CHR, oci.SQLT_AFC, oci.SQLT_CLOB):
        charset_form = environment.attr_get(
            param, oci.OCI_DTYPE_PARAM, oci.OCI_ATTR_CHARSET_FORM, ub1, "define: charset form"
        )
    return var_type_by_oracle(data_type, charset_form)


def _define_helper(cursor: "Cursor", param: Any, position: int, num_elements: int) -> Variable:
    environment = cursor.environment
    var_type = param_var_type(param, environment)

    size = var_type.size
    if var_type.is_variable_length:
        size_from_oracle = environment.attr_get(
            param, oci.OCI_DTYPE_PARAM, oci.OCI_ATTR_DATA_SIZE, ub2, "define: data size"
        )
        if size_from_oracle:
            size = size_from_oracle
        elif cursor.output_size >= 0 and cursor.output_size_column in (-1, position):
            size = cursor.output_size

    var_type = var_type.handler.pre_define(var_type, param, environment)
    var = Variable(cursor, num_elements, var_type, size)

    status, var.define_handle = environment.library.define_by_pos(
        cursor.handle,
        None,
        environment.error_handle,
        position,
        var.data,
        var.buffer_size,
        var.type.oracle_type,
        var.indicator,
        var.actual_length,
        var.return_code,
    )
    environment.check_status(status, "define")
    var.type.handler.post_define(var, param)
    logger.debug("Defined column %d as %s (size %d)", position, var.type.name, var.size)
    return var


def read_scale_precision(param: Any, environment: "Environment") -> "tuple[int, int]":
    scale = environment.attr_get(param, oci.OCI_DTYPE_PARAM, oci.OCI_ATTR_SCALE, sb1, "pre_define: scale")
    precision = environment.attr_get(param, oci.OCI_DTYPE_PARAM, oci.OCI_ATTR_PRECISION, sb2, "pre_define: precision")
    return scale, precision
