"""LONG and LONG RAW handlers: a 4-byte length prefix followed by the payload."""

import ctypes
import struct
from typing import TYPE_CHECKING, Any, Optional

from ocidb.exceptions import TypeMismatchError
from ocidb.variables.base import VariableHandler

if TYPE_CHECKING:
    from ocidb.variables.variable import Variable

__all__ = ("LongHandler",)

_LENGTH = struct.Struct("<I")


class LongHandler(VariableHandler):
    def __init__(self, is_char_data: bool) -> None:
        self.is_char_data = is_char_data
        self.zero_value = "" if is_char_data else b""

    def get_buffer_size(self, var: "Variable") -> "Optional[int]":
        multiplier = var.environment.max_bytes_per_character if self.is_char_data else 1
        return _LENGTH.size + var.size * multiplier

    def set_value(self, var: "Variable", pos: int, value: Any) -> None:
        if self.is_char_data:
            if not isinstance(value, str):
                msg = f"expecting string data, got {type(value).__name__}"
                raise TypeMismatchError(msg)
            data = var.environment.encode(value)
        else:
            if not isinstance(value, (bytes, bytearray, memoryview)):
                msg = f"expecting binary data, got {type(value).__name__}"
                raise TypeMismatchError(msg)
            data = bytes(value)
        if _LENGTH.size + len(data) > var.buffer_size:
            var.resize(len(data))
        address = var.address(pos)
        ctypes.memmove(address, _LENGTH.pack(len(data)), _LENGTH.size)
        if data:
            ctypes.memmove(address + _LENGTH.size, data, len(data))
        var.actual_length[pos] = min(_LENGTH.size + len(data), 0xFFFF)

    def get_value(self, var: "Variable", pos: int) -> Any:
        address = var.address(pos)
        (length,) = _LENGTH.unpack(ctypes.string_at(address, _LENGTH.size))
        data = ctypes.string_at(address + _LENGTH.size, length)
        if self.is_char_data:
            return var.environment.decode(data)
        return data
