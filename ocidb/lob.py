"""Streaming access to LOB locators held by fetch or bind variables."""

import ctypes
import weakref
from typing import TYPE_CHECKING, Any, Union

from ocidb.exceptions import LobStaleError
from ocidb.oci import constants as oci
from ocidb.variables import registry
from ocidb.variables.lob import lob_var_write

if TYPE_CHECKING:
    from ocidb.variables.variable import Variable

__all__ = ("ExternalLobVar",)

NCLOB_BYTES_PER_CHARACTER = 2


class ExternalLobVar:
    """View over one locator slot of a CLOB, NCLOB, BLOB or BFILE variable.

    The view is only valid until the owning variable fetches again; after
    that every operation raises :class:`~ocidb.exceptions.LobStaleError`.
    Offsets and amounts count characters for CLOB/NCLOB and bytes otherwise,
    starting at 0.
    """

    __slots__ = ("_fetch_num", "_position", "_var_ref", "is_file", "pos")

    def __init__(self, var: "Variable", pos: int) -> None:
        self._var_ref = weakref.ref(var)
        self._fetch_num = var.internal_fetch_num
        self._position = 0
        self.pos = pos
        self.is_file = var.type is registry.BFILE

    def __repr__(self) -> str:
        var = self._var_ref()
        return f"<ExternalLobVar of {var!r} pos={self.pos}>"

    @property
    def var(self) -> "Variable":
        """The source variable; raises when it was freed or fetched again."""
        var = self._var_ref()
        if var is None or var.data is None or var.internal_fetch_num != self._fetch_num:
            raise LobStaleError
        return var

    @property
    def is_char_data(self) -> bool:
        return self.var.type.is_char_data

    def _locator(self, var: "Variable") -> Any:
        return var.pointers()[self.pos]

    def _call(self, var: "Variable", site: str, function: Any, *args: Any) -> Any:
        """Run a server round trip on the locator under the connection lock."""
        environment = var.environment
        with var.connection.lock:
            result = function(var.connection.handle, environment.error_handle, self._locator(var), *args)
            status = result[0] if isinstance(result, tuple) else result
            environment.check_status(status, site)
        return result

    def _length(self, var: "Variable") -> int:
        _, length = self._call(var, "lob: get length", var.environment.library.lob_get_length)
        return length

    def size(self, in_chars: bool = False) -> int:
        """Length of the LOB.

        Character LOBs report their maximum size in bytes unless ``in_chars`` is set.
        """
        var = self.var
        length = self._length(var)
        if in_chars:
            return length
        if var.type is registry.CLOB:
            return length * var.environment.max_bytes_per_character
        if var.type is registry.NCLOB:
            return length * NCLOB_BYTES_PER_CHARACTER
        return length

    def read_at(self, offset: int = 0, amount: int = -1) -> "Union[str, bytes]":
        """Read ``amount`` units starting at ``offset``; the rest of the LOB when ``amount`` is negative.

        BFILEs are opened read-only for the duration of the call.
        """
        var = self.var
        offset = max(offset, 0)
        length = self._length(var)
        if offset >= length:
            return "" if var.type.is_char_data else b""
        if amount < 0 or amount > length - offset:
            amount = length - offset
        if self.is_file:
            self._call(var, "lob: file open", var.environment.library.lob_file_open, oci.OCI_FILE_READONLY)
            try:
                data = self._read(var, offset, amount)
            finally:
                self._call(var, "lob: file close", var.environment.library.lob_file_close)
        else:
            data = self._read(var, offset, amount)
        if var.type.is_char_data:
            return var.environment.decode(data, national=var.type.charset_form == oci.SQLCS_NCHAR)
        return data

    def _read(self, var: "Variable", offset: int, amount: int) -> bytes:
        environment = var.environment
        library = environment.library
        char_data = var.type.is_char_data
        national = var.type.charset_form == oci.SQLCS_NCHAR
        charset_id = environment.charset_id if national else 0
        chunks: list[bytes] = []
        remaining = amount
        while remaining > 0:
            buffer = ctypes.create_string_buffer(
                remaining * environment.max_bytes_per_character if char_data else remaining
            )
            with var.connection.lock:
                status, bytes_read, chars_read = library.lob_read(
                    var.connection.handle,
                    environment.error_handle,
                    self._locator(var),
                    0 if char_data else remaining,
                    remaining if char_data else 0,
                    offset + 1,
                    buffer,
                    charset_id,
                    var.type.charset_form,
                )
                if status != oci.OCI_NEED_DATA:
                    environment.check_status(status, "lob: read")
            chunks.append(buffer.raw[:bytes_read])
            consumed = chars_read if char_data else bytes_read
            if status != oci.OCI_NEED_DATA or not consumed:
                break
            offset += consumed
            remaining -= consumed
        return b"".join(chunks)

    def read(self, amount: int = -1) -> "Union[str, bytes]":
        """Read from the stream position and advance it."""
        data = self.read_at(self._position, amount)
        self._position += len(data)
        return data

    def read_all(self) -> "Union[str, bytes]":
        return self.read_at(0, -1)

    def write_at(self, data: "Union[str, bytes]", offset: int = 0) -> int:
        """Write ``data`` at ``offset``; returns the amount written."""
        return lob_var_write(self.var, self.pos, data, offset)

    def write(self, data: "Union[str, bytes]") -> int:
        written = self.write_at(data, self._position)
        self._position += written
        return written

    def seek(self, offset: int, whence: int = 0) -> int:
        """Move the stream position the way :meth:`io.IOBase.seek` does."""
        if whence == 0:
            self._position = offset
        elif whence == 1:
            self._position += offset
        elif whence == 2:  # noqa: PLR2004
            self._position = self._length(self.var) + offset
        else:
            msg = f"bad whence {whence}"
            raise ValueError(msg)
        return self._position

    def tell(self) -> int:
        return self._position

    def trim(self, new_size: int = 0) -> None:
        var = self.var
        self._call(var, "lob: trim", var.environment.library.lob_trim, new_size)

    def chunk_size(self) -> int:
        var = self.var
        _, size = self._call(var, "lob: get chunk size", var.environment.library.lob_get_chunk_size)
        return size

    def open(self) -> None:
        var = self.var
        mode = oci.OCI_LOB_READONLY if self.is_file else oci.OCI_LOB_READWRITE
        self._call(var, "lob: open", var.environment.library.lob_open, mode)

    def close(self) -> None:
        var = self.var
        self._call(var, "lob: close", var.environment.library.lob_close)

    def is_open(self) -> bool:
        var = self.var
        _, flag = self._call(var, "lob: is open", var.environment.library.lob_is_open)
        return flag

    def file_exists(self) -> bool:
        var = self.var
        _, flag = self._call(var, "lob: file exists", var.environment.library.lob_file_exists)
        return flag

    def get_file_name(self) -> "tuple[str, str]":
        """Return the ``(directory alias, file name)`` of a BFILE."""
        var = self.var
        environment = var.environment
        status, directory, name = environment.library.lob_file_get_name(
            environment.handle, environment.error_handle, self._locator(var)
        )
        environment.check_status(status, "lob: get file name")
        return environment.decode(directory), environment.decode(name)

    def set_file_name(self, directory: str, name: str) -> None:
        var = self.var
        environment = var.environment
        status = environment.library.lob_file_set_name(
            environment.handle,
            environment.error_handle,
            var.data,
            self.pos,
            environment.encode(directory),
            environment.encode(name),
        )
        environment.check_status(status, "lob: set file name")
