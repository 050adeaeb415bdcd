"""String, fixed char, rowid and raw binary handlers."""

import ctypes
from typing import TYPE_CHECKING, Any, Optional

from ocidb.environment import MAX_BINARY_BYTES, MAX_STRING_CHARS
from ocidb.exceptions import TypeMismatchError, ValueTooLargeError
from ocidb.oci import constants as oci
from ocidb.variables.base import VariableHandler

if TYPE_CHECKING:
    from ocidb.cursor import Cursor
    from ocidb.variables.variable import Variable

__all__ = ("BinaryHandler", "StringHandler")


class StringHandler(VariableHandler):
    """Character data stored in the client encoding, ``actual_length`` bytes per element."""

    zero_value = ""

    def initialize(self, var: "Variable", cursor: "Cursor") -> None:
        for i in range(var.allocated_elements):
            var.actual_length[i] = 0

    def get_buffer_size(self, var: "Variable") -> "Optional[int]":
        return var.size * var.environment.max_bytes_per_character

    def set_value(self, var: "Variable", pos: int, value: Any) -> None:
        if not isinstance(value, str):
            msg = f"expecting string data, got {type(value).__name__}"
            raise TypeMismatchError(msg)
        if len(value) > MAX_STRING_CHARS:
            msg = "string data too large"
            raise ValueTooLargeError(msg)
        data = var.environment.encode(value, national=var.type.charset_form == oci.SQLCS_NCHAR)
        _store(var, pos, data)

    def get_value(self, var: "Variable", pos: int) -> Any:
        data = ctypes.string_at(var.address(pos), var.actual_length[pos])
        return var.environment.decode(data, national=var.type.charset_form == oci.SQLCS_NCHAR)


class BinaryHandler(VariableHandler):
    """Raw bytes, ``actual_length`` bytes per element."""

    zero_value = b""

    def initialize(self, var: "Variable", cursor: "Cursor") -> None:
        for i in range(var.allocated_elements):
            var.actual_length[i] = 0

    def set_value(self, var: "Variable", pos: int, value: Any) -> None:
        if not isinstance(value, (bytes, bytearray, memoryview)):
            msg = f"expecting binary data, got {type(value).__name__}"
            raise TypeMismatchError(msg)
        data = bytes(value)
        if len(data) > MAX_BINARY_BYTES:
            msg = "binary data too large"
            raise ValueTooLargeError(msg)
        _store(var, pos, data)

    def get_value(self, var: "Variable", pos: int) -> Any:
        return ctypes.string_at(var.address(pos), var.actual_length[pos])


def _store(var: "Variable", pos: int, data: bytes) -> None:
    if len(data) > var.buffer_size:
        var.resize(len(data))
    if data:
        ctypes.memmove(var.address(pos), data, len(data))
    var.actual_length[pos] = len(data)
