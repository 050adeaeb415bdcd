"""ctypes bindings to the Oracle client library.

``OCILibrary`` owns the loaded ``libclntsh`` and exposes every OCI call the
driver makes as a method. Methods take plain Python values, handles and
ctypes buffers, and return the raw ``sword`` status (plus any output values)
so that status translation stays in :class:`ocidb.environment.Environment`.
Buffers are always addressed as ``(buffer, offset)`` pairs.
"""

import ctypes
import os
import sys
import threading
from ctypes import POINTER, byref, c_char_p, c_size_t, c_void_p
from ctypes.util import find_library
from pathlib import Path
from typing import TYPE_CHECKING, Any, Optional

from ocidb.exceptions import MissingDependencyError
from ocidb.oci import constants as oci
from ocidb.oci.types import boolean, oraub8, sb4, sword, ub1, ub2, ub4, uword
from ocidb.utils.logging import get_logger

if TYPE_CHECKING:
    from ocidb.oci.types import XID

__all__ = ("LIBRARY_DIR_ENV", "OCILibrary", "get_library", "has_library", "load_library")

logger = get_logger("oci")

LIBRARY_DIR_ENV = "OCIDB_LIB_DIR"

_void_pp = POINTER(c_void_p)

_PROTOTYPES: "dict[str, tuple[Any, list[Any]]]" = {
    "OCIEnvNlsCreate": (
        sword,
        [_void_pp, ub4, c_void_p, c_void_p, c_void_p, c_void_p, c_size_t, c_void_p, ub2, ub2],
    ),
    "OCIHandleAlloc": (sword, [c_void_p, _void_pp, ub4, c_size_t, c_void_p]),
    "OCIHandleFree": (sword, [c_void_p, ub4]),
    "OCIDescriptorAlloc": (sword, [c_void_p, c_void_p, ub4, c_size_t, c_void_p]),
    "OCIDescriptorFree": (sword, [c_void_p, ub4]),
    "OCIAttrGet": (sword, [c_void_p, ub4, c_void_p, POINTER(ub4), ub4, c_void_p]),
    "OCIAttrSet": (sword, [c_void_p, ub4, c_void_p, ub4, ub4, c_void_p]),
    "OCIErrorGet": (sword, [c_void_p, ub4, c_char_p, POINTER(sb4), c_void_p, ub4, ub4]),
    "OCINlsCharSetNameToId": (ub2, [c_void_p, c_char_p]),
    "OCINlsCharSetIdToName": (sword, [c_void_p, c_void_p, c_size_t, ub2]),
    "OCINlsNameMap": (sword, [c_void_p, c_void_p, c_size_t, c_char_p, ub4]),
    "OCINlsNumericInfoGet": (sword, [c_void_p, c_void_p, POINTER(sb4), ub2]),
    "OCIClientVersion": (None, [POINTER(sword)] * 5),
    "OCIServerAttach": (sword, [c_void_p, c_void_p, c_char_p, sb4, ub4]),
    "OCIServerDetach": (sword, [c_void_p, c_void_p, ub4]),
    "OCISessionBegin": (sword, [c_void_p, c_void_p, c_void_p, ub4, ub4]),
    "OCISessionEnd": (sword, [c_void_p, c_void_p, c_void_p, ub4]),
    "OCISessionRelease": (sword, [c_void_p, c_void_p, c_char_p, ub4, ub4]),
    "OCITransStart": (sword, [c_void_p, c_void_p, uword, ub4]),
    "OCITransPrepare": (sword, [c_void_p, c_void_p, ub4]),
    "OCITransCommit": (sword, [c_void_p, c_void_p, ub4]),
    "OCITransRollback": (sword, [c_void_p, c_void_p, ub4]),
    "OCIPing": (sword, [c_void_p, c_void_p, ub4]),
    "OCIBreak": (sword, [c_void_p, c_void_p]),
    "OCIStmtPrepare": (sword, [c_void_p, c_void_p, c_char_p, ub4, ub4, ub4]),
    "OCIStmtPrepare2": (sword, [c_void_p, _void_pp, c_void_p, c_char_p, ub4, c_char_p, ub4, ub4, ub4]),
    "OCIStmtRelease": (sword, [c_void_p, c_void_p, c_char_p, ub4, ub4]),
    "OCIStmtExecute": (sword, [c_void_p, c_void_p, c_void_p, ub4, ub4, c_void_p, c_void_p, ub4]),
    "OCIStmtFetch": (sword, [c_void_p, c_void_p, ub4, ub2, ub4]),
    "OCIStmtGetBindInfo": (
        sword,
        [c_void_p, c_void_p, ub4, ub4, POINTER(sb4), c_void_p, c_void_p, c_void_p, c_void_p, c_void_p, c_void_p],
    ),
    "OCIParamGet": (sword, [c_void_p, ub4, c_void_p, _void_pp, ub4]),
    "OCIDefineByPos": (
        sword,
        [c_void_p, _void_pp, c_void_p, ub4, c_void_p, sb4, ub2, c_void_p, c_void_p, c_void_p, ub4],
    ),
    "OCIBindByName": (
        sword,
        [c_void_p, _void_pp, c_void_p, c_char_p, sb4, c_void_p, sb4, ub2, c_void_p, c_void_p, c_void_p, ub4,
         c_void_p, ub4],
    ),
    "OCIBindByPos": (
        sword,
        [c_void_p, _void_pp, c_void_p, ub4, c_void_p, sb4, ub2, c_void_p, c_void_p, c_void_p, ub4, c_void_p, ub4],
    ),
    "OCINumberFromInt": (sword, [c_void_p, c_void_p, uword, uword, c_void_p]),
    "OCINumberToInt": (sword, [c_void_p, c_void_p, uword, uword, c_void_p]),
    "OCINumberFromReal": (sword, [c_void_p, c_void_p, uword, c_void_p]),
    "OCINumberToReal": (sword, [c_void_p, c_void_p, uword, c_void_p]),
    "OCINumberFromText": (sword, [c_void_p, c_char_p, ub4, c_char_p, ub4, c_char_p, ub4, c_void_p]),
    "OCINumberToText": (sword, [c_void_p, c_void_p, c_char_p, ub4, c_char_p, ub4, POINTER(ub4), c_void_p]),
    "OCIIntervalGetDaySecond": (
        sword,
        [c_void_p, c_void_p, POINTER(sb4), POINTER(sb4), POINTER(sb4), POINTER(sb4), POINTER(sb4), c_void_p],
    ),
    "OCIIntervalSetDaySecond": (sword, [c_void_p, c_void_p, sb4, sb4, sb4, sb4, sb4, c_void_p]),
    "OCILobIsTemporary": (sword, [c_void_p, c_void_p, c_void_p, POINTER(boolean)]),
    "OCILobFreeTemporary": (sword, [c_void_p, c_void_p, c_void_p]),
    "OCILobCreateTemporary": (sword, [c_void_p, c_void_p, c_void_p, ub2, ub1, ub1, boolean, ub2]),
    "OCILobTrim2": (sword, [c_void_p, c_void_p, c_void_p, oraub8]),
    "OCILobRead2": (
        sword,
        [c_void_p, c_void_p, c_void_p, POINTER(oraub8), POINTER(oraub8), oraub8, c_void_p, oraub8, ub1, c_void_p,
         c_void_p, ub2, ub1],
    ),
    "OCILobWrite2": (
        sword,
        [c_void_p, c_void_p, c_void_p, POINTER(oraub8), POINTER(oraub8), oraub8, c_void_p, oraub8, ub1, c_void_p,
         c_void_p, ub2, ub1],
    ),
    "OCILobGetLength2": (sword, [c_void_p, c_void_p, c_void_p, POINTER(oraub8)]),
    "OCILobGetChunkSize": (sword, [c_void_p, c_void_p, c_void_p, POINTER(ub4)]),
    "OCILobOpen": (sword, [c_void_p, c_void_p, c_void_p, ub1]),
    "OCILobClose": (sword, [c_void_p, c_void_p, c_void_p]),
    "OCILobIsOpen": (sword, [c_void_p, c_void_p, c_void_p, POINTER(boolean)]),
    "OCILobFileOpen": (sword, [c_void_p, c_void_p, c_void_p, ub1]),
    "OCILobFileClose": (sword, [c_void_p, c_void_p, c_void_p]),
    "OCILobFileExists": (sword, [c_void_p, c_void_p, c_void_p, POINTER(boolean)]),
    "OCILobFileGetName": (sword, [c_void_p, c_void_p, c_void_p, c_void_p, POINTER(ub2), c_void_p, POINTER(ub2)]),
    "OCILobFileSetName": (sword, [c_void_p, c_void_p, _void_pp, c_char_p, ub2, c_char_p, ub2]),
}


def _at(buffer: Any, offset: int = 0) -> Any:
    if buffer is None:
        return None
    return byref(buffer, offset)


def _candidates(path: "Optional[str | Path]") -> "list[str]":
    names: list[str] = []
    if path is not None:
        names.append(str(path))
    lib_dir = os.environ.get(LIBRARY_DIR_ENV)
    oracle_home = os.environ.get("ORACLE_HOME")
    if sys.platform == "win32":
        base = "oci.dll"
    elif sys.platform == "darwin":
        base = "libclntsh.dylib"
    else:
        base = "libclntsh.so"
    if lib_dir:
        names.append(str(Path(lib_dir) / base))
    if oracle_home:
        names.append(str(Path(oracle_home) / "lib" / base))
    found = find_library("clntsh") or find_library("oci")
    if found:
        names.append(found)
    names.append(base)
    return names


class OCILibrary:
    """Loaded Oracle client library with typed call wrappers.

    Args:
        cdll: The loaded ``ctypes.CDLL`` for ``libclntsh``.
    """

    def __init__(self, cdll: "ctypes.CDLL") -> None:
        self.cdll = cdll
        self.name = getattr(cdll, "_name", "")
        for function_name, (restype, argtypes) in _PROTOTYPES.items():
            function = getattr(cdll, function_name)
            function.restype = restype
            function.argtypes = argtypes

    # -- environment and handles --------------------------------------------------------------------

    def env_nls_create(self, mode: int, charset_id: int = 0, ncharset_id: int = 0) -> "tuple[int, c_void_p]":
        handle = c_void_p()
        status = self.cdll.OCIEnvNlsCreate(byref(handle), mode, None, None, None, None, 0, None, charset_id, ncharset_id)
        return status, handle

    def handle_alloc(self, parent: Any, handle_type: int) -> "tuple[int, c_void_p]":
        handle = c_void_p()
        status = self.cdll.OCIHandleAlloc(parent, byref(handle), handle_type, 0, None)
        return status, handle

    def handle_free(self, handle: Any, handle_type: int) -> int:
        return self.cdll.OCIHandleFree(handle, handle_type)

    def descriptor_alloc(self, env: Any, slots: Any, index: int, descriptor_type: int) -> int:
        """Allocate a descriptor directly into ``slots[index]`` of a ``c_void_p`` array."""
        return self.cdll.OCIDescriptorAlloc(env, _at(slots, index * ctypes.sizeof(c_void_p)), descriptor_type, 0, None)

    def descriptor_alloc_handle(self, env: Any, descriptor_type: int) -> "tuple[int, c_void_p]":
        handle = c_void_p()
        status = self.cdll.OCIDescriptorAlloc(env, byref(handle), descriptor_type, 0, None)
        return status, handle

    def descriptor_free(self, descriptor: Any, descriptor_type: int) -> int:
        return self.cdll.OCIDescriptorFree(descriptor, descriptor_type)

    def attr_get(self, handle: Any, handle_type: int, attribute: int, ctype: Any, err: Any) -> "tuple[int, Any, int]":
        value = ctype()
        size = ub4()
        status = self.cdll.OCIAttrGet(handle, handle_type, byref(value), byref(size), attribute, err)
        return status, value.value, size.value

    def attr_get_text(self, handle: Any, handle_type: int, attribute: int, err: Any) -> "tuple[int, bytes]":
        pointer = ctypes.c_char_p()
        size = ub4()
        status = self.cdll.OCIAttrGet(handle, handle_type, byref(pointer), byref(size), attribute, err)
        if status != oci.OCI_SUCCESS or not pointer:
            return status, b""
        return status, ctypes.string_at(pointer, size.value)

    def attr_set(self, handle: Any, handle_type: int, attribute: int, value: Any, length: int, err: Any) -> int:
        if isinstance(value, bytes):
            pointer: Any = ctypes.create_string_buffer(value, len(value) + 1)
        elif isinstance(value, int):
            pointer = byref(ub4(value))
        elif isinstance(value, c_void_p):
            pointer = value
        else:
            pointer = byref(value)
        return self.cdll.OCIAttrSet(handle, handle_type, pointer, length, attribute, err)

    def attr_set_xid(self, handle: Any, xid: "XID", err: Any) -> int:
        return self.cdll.OCIAttrSet(handle, oci.OCI_HTYPE_TRANS, byref(xid), ctypes.sizeof(xid), oci.OCI_ATTR_XID, err)

    def error_get(self, handle: Any, record: int, handle_type: int) -> "tuple[int, int, bytes]":
        code = sb4()
        buffer = ctypes.create_string_buffer(oci.OCI_ERROR_MAXMSG_SIZE)
        status = self.cdll.OCIErrorGet(handle, record, None, byref(code), buffer, len(buffer), handle_type)
        return status, code.value, buffer.value

    # -- NLS -----------------------------------------------------------------------------------------

    def nls_charset_name_to_id(self, env: Any, name: bytes) -> int:
        return self.cdll.OCINlsCharSetNameToId(env, name)

    def nls_charset_id_to_name(self, env: Any, charset_id: int) -> "tuple[int, bytes]":
        buffer = ctypes.create_string_buffer(oci.OCI_NLS_MAXBUFSZ)
        status = self.cdll.OCINlsCharSetIdToName(env, buffer, len(buffer), charset_id)
        return status, buffer.value

    def nls_name_map(self, env: Any, name: bytes, flag: int) -> "tuple[int, bytes]":
        buffer = ctypes.create_string_buffer(oci.OCI_NLS_MAXBUFSZ)
        status = self.cdll.OCINlsNameMap(env, buffer, len(buffer), name, flag)
        return status, buffer.value

    def nls_numeric_info_get(self, env: Any, err: Any, item: int) -> "tuple[int, int]":
        value = sb4()
        status = self.cdll.OCINlsNumericInfoGet(env, err, byref(value), item)
        return status, value.value

    def client_version(self) -> "tuple[int, int, int, int, int]":
        parts = [sword() for _ in range(5)]
        self.cdll.OCIClientVersion(*(byref(part) for part in parts))
        major, minor, update, patch, port_update = (part.value for part in parts)
        return major, minor, update, patch, port_update

    # -- server, session and transactions ------------------------------------------------------------

    def server_attach(self, server: Any, err: Any, dsn: bytes, mode: int) -> int:
        return self.cdll.OCIServerAttach(server, err, dsn, len(dsn), mode)

    def server_detach(self, server: Any, err: Any, mode: int) -> int:
        return self.cdll.OCIServerDetach(server, err, mode)

    def session_begin(self, svc: Any, err: Any, session: Any, credentials: int, mode: int) -> int:
        return self.cdll.OCISessionBegin(svc, err, session, credentials, mode)

    def session_end(self, svc: Any, err: Any, session: Any, mode: int) -> int:
        return self.cdll.OCISessionEnd(svc, err, session, mode)

    def session_release(self, svc: Any, err: Any, mode: int) -> int:
        return self.cdll.OCISessionRelease(svc, err, None, 0, mode)

    def trans_start(self, svc: Any, err: Any, timeout: int, flags: int) -> int:
        return self.cdll.OCITransStart(svc, err, timeout, flags)

    def trans_prepare(self, svc: Any, err: Any, flags: int) -> int:
        return self.cdll.OCITransPrepare(svc, err, flags)

    def trans_commit(self, svc: Any, err: Any, flags: int) -> int:
        return self.cdll.OCITransCommit(svc, err, flags)

    def trans_rollback(self, svc: Any, err: Any, flags: int) -> int:
        return self.cdll.OCITransRollback(svc, err, flags)

    def ping(self, svc: Any, err: Any, mode: int) -> int:
        return self.cdll.OCIPing(svc, err, mode)

    def break_execution(self, svc: Any, err: Any) -> int:
        return self.cdll.OCIBreak(svc, err)

    # -- statements ----------------------------------------------------------------------------------

    def stmt_prepare(self, stmt: Any, err: Any, sql: bytes, syntax: int, mode: int) -> int:
        return self.cdll.OCIStmtPrepare(stmt, err, sql, len(sql), syntax, mode)

    def stmt_prepare2(self, svc: Any, err: Any, sql: bytes, tag: bytes, syntax: int, mode: int) -> "tuple[int, c_void_p]":
        handle = c_void_p()
        status = self.cdll.OCIStmtPrepare2(svc, byref(handle), err, sql, len(sql), tag or None, len(tag), syntax, mode)
        return status, handle

    def stmt_release(self, stmt: Any, err: Any, tag: bytes, mode: int) -> int:
        return self.cdll.OCIStmtRelease(stmt, err, tag or None, len(tag), mode)

    def stmt_execute(self, svc: Any, stmt: Any, err: Any, iters: int, row_offset: int, mode: int) -> int:
        return self.cdll.OCIStmtExecute(svc, stmt, err, iters, row_offset, None, None, mode)

    def stmt_fetch(self, stmt: Any, err: Any, num_rows: int, orientation: int, mode: int) -> int:
        return self.cdll.OCIStmtFetch(stmt, err, num_rows, orientation, mode)

    def stmt_get_bind_info(self, stmt: Any, err: Any, size: int, start: int) -> "tuple[int, int, list[bytes], list[bool]]":
        """Return ``(status, found, names, duplicates)``; ``found`` is negative when ``size`` was too small."""
        found = sb4()
        names = (c_void_p * size)()
        name_lengths = (ub1 * size)()
        indicator_names = (c_void_p * size)()
        indicator_lengths = (ub1 * size)()
        duplicates = (ub1 * size)()
        bind_handles = (c_void_p * size)()
        status = self.cdll.OCIStmtGetBindInfo(
            stmt, err, size, start, byref(found), names, name_lengths, indicator_names, indicator_lengths,
            duplicates, bind_handles,
        )
        count = min(abs(found.value), size)
        return (
            status,
            found.value,
            [ctypes.string_at(names[i], name_lengths[i]) if names[i] else b"" for i in range(count)],
            [bool(duplicates[i]) for i in range(count)],
        )

    def param_get(self, stmt: Any, handle_type: int, err: Any, position: int) -> "tuple[int, c_void_p]":
        param = c_void_p()
        status = self.cdll.OCIParamGet(stmt, handle_type, err, byref(param), position)
        return status, param

    def define_by_pos(
        self,
        stmt: Any,
        define: Any,
        err: Any,
        position: int,
        data: Any,
        buffer_size: int,
        data_type: int,
        indicator: Any,
        actual_length: Any,
        return_code: Any,
    ) -> "tuple[int, c_void_p]":
        handle = c_void_p(define.value if isinstance(define, c_void_p) else define)
        status = self.cdll.OCIDefineByPos(
            stmt, byref(handle), err, position, data, buffer_size, data_type, indicator, actual_length, return_code,
            oci.OCI_DEFAULT,
        )
        return status, handle

    def bind_by_name(
        self,
        stmt: Any,
        bind: Any,
        err: Any,
        name: bytes,
        data: Any,
        buffer_size: int,
        data_type: int,
        indicator: Any,
        actual_length: Any,
        return_code: Any,
        max_elements: int,
        current_elements: Any,
    ) -> "tuple[int, c_void_p]":
        handle = c_void_p(bind.value if isinstance(bind, c_void_p) else bind)
        status = self.cdll.OCIBindByName(
            stmt, byref(handle), err, name, len(name), data, buffer_size, data_type, indicator, actual_length,
            return_code, max_elements, _at(current_elements), oci.OCI_DEFAULT,
        )
        return status, handle

    def bind_by_pos(
        self,
        stmt: Any,
        bind: Any,
        err: Any,
        position: int,
        data: Any,
        buffer_size: int,
        data_type: int,
        indicator: Any,
        actual_length: Any,
        return_code: Any,
        max_elements: int,
        current_elements: Any,
    ) -> "tuple[int, c_void_p]":
        handle = c_void_p(bind.value if isinstance(bind, c_void_p) else bind)
        status = self.cdll.OCIBindByPos(
            stmt, byref(handle), err, position, data, buffer_size, data_type, indicator, actual_length, return_code,
            max_elements, _at(current_elements), oci.OCI_DEFAULT,
        )
        return status, handle

    # -- numbers -------------------------------------------------------------------------------------

    def number_from_int(self, err: Any, value: int, buffer: Any, offset: int) -> int:
        number = ctypes.c_int64(value)
        return self.cdll.OCINumberFromInt(
            err, byref(number), ctypes.sizeof(number), oci.OCI_NUMBER_SIGNED, _at(buffer, offset)
        )

    def number_to_int(self, err: Any, buffer: Any, offset: int) -> "tuple[int, int]":
        result = ctypes.c_int64()
        status = self.cdll.OCINumberToInt(
            err, _at(buffer, offset), ctypes.sizeof(result), oci.OCI_NUMBER_SIGNED, byref(result)
        )
        return status, result.value

    def number_from_real(self, err: Any, value: float, buffer: Any, offset: int) -> int:
        number = ctypes.c_double(value)
        return self.cdll.OCINumberFromReal(err, byref(number), ctypes.sizeof(number), _at(buffer, offset))

    def number_to_real(self, err: Any, buffer: Any, offset: int) -> "tuple[int, float]":
        result = ctypes.c_double()
        status = self.cdll.OCINumberToReal(err, _at(buffer, offset), ctypes.sizeof(result), byref(result))
        return status, result.value

    def number_from_text(
        self, err: Any, text: bytes, format_mask: bytes, nls_params: bytes, buffer: Any, offset: int
    ) -> int:
        return self.cdll.OCINumberFromText(
            err, text, len(text), format_mask, len(format_mask), nls_params, len(nls_params), _at(buffer, offset)
        )

    def number_to_text(
        self, err: Any, buffer: Any, offset: int, format_mask: bytes, nls_params: bytes, size: int
    ) -> "tuple[int, bytes]":
        result = ctypes.create_string_buffer(size)
        length = ub4(size)
        status = self.cdll.OCINumberToText(
            err, _at(buffer, offset), format_mask, len(format_mask), nls_params, len(nls_params), byref(length),
            result,
        )
        return status, result.raw[: length.value]

    # -- intervals -----------------------------------------------------------------------------------

    def interval_get_day_second(self, env: Any, err: Any, interval: Any) -> "tuple[int, tuple[int, int, int, int, int]]":
        parts = [sb4() for _ in range(5)]
        status = self.cdll.OCIIntervalGetDaySecond(env, err, *(byref(part) for part in parts), interval)
        days, hours, minutes, seconds, nanoseconds = (part.value for part in parts)
        return status, (days, hours, minutes, seconds, nanoseconds)

    def interval_set_day_second(
        self, env: Any, err: Any, days: int, hours: int, minutes: int, seconds: int, nanoseconds: int, interval: Any
    ) -> int:
        return self.cdll.OCIIntervalSetDaySecond(env, err, days, hours, minutes, seconds, nanoseconds, interval)

    # -- LOBs ----------------------------------------------------------------------------------------

    def lob_is_temporary(self, env: Any, err: Any, locator: Any) -> "tuple[int, bool]":
        flag = boolean()
        status = self.cdll.OCILobIsTemporary(env, err, locator, byref(flag))
        return status, bool(flag.value)

    def lob_free_temporary(self, svc: Any, err: Any, locator: Any) -> int:
        return self.cdll.OCILobFreeTemporary(svc, err, locator)

    def lob_create_temporary(self, svc: Any, err: Any, locator: Any, charset_form: int, lob_type: int) -> int:
        return self.cdll.OCILobCreateTemporary(
            svc, err, locator, oci.OCI_DEFAULT, charset_form, lob_type, 0, oci.OCI_DURATION_SESSION
        )

    def lob_trim(self, svc: Any, err: Any, locator: Any, new_length: int) -> int:
        return self.cdll.OCILobTrim2(svc, err, locator, new_length)

    def lob_read(
        self,
        svc: Any,
        err: Any,
        locator: Any,
        byte_amount: int,
        char_amount: int,
        offset: int,
        buffer: Any,
        charset_id: int,
        charset_form: int,
    ) -> "tuple[int, int, int]":
        """Read one piece; returns ``(status, bytes_read, chars_read)``. ``offset`` is 1-based."""
        byte_amt = oraub8(byte_amount)
        char_amt = oraub8(char_amount)
        status = self.cdll.OCILobRead2(
            svc, err, locator, byref(byte_amt), byref(char_amt), offset, buffer, len(buffer), oci.OCI_ONE_PIECE,
            None, None, charset_id, charset_form,
        )
        return status, byte_amt.value, char_amt.value

    def lob_write(
        self, svc: Any, err: Any, locator: Any, offset: int, data: bytes, charset_id: int, charset_form: int
    ) -> "tuple[int, int, int]":
        """Write ``data`` in one piece; returns ``(status, bytes_written, chars_written)``. ``offset`` is 1-based."""
        buffer = ctypes.create_string_buffer(data, len(data))
        byte_amt = oraub8(len(data))
        char_amt = oraub8(0)
        status = self.cdll.OCILobWrite2(
            svc, err, locator, byref(byte_amt), byref(char_amt), offset, buffer, len(data), oci.OCI_ONE_PIECE,
            None, None, charset_id, charset_form,
        )
        return status, byte_amt.value, char_amt.value

    def lob_get_length(self, svc: Any, err: Any, locator: Any) -> "tuple[int, int]":
        length = oraub8()
        status = self.cdll.OCILobGetLength2(svc, err, locator, byref(length))
        return status, length.value

    def lob_get_chunk_size(self, svc: Any, err: Any, locator: Any) -> "tuple[int, int]":
        size = ub4()
        status = self.cdll.OCILobGetChunkSize(svc, err, locator, byref(size))
        return status, size.value

    def lob_open(self, svc: Any, err: Any, locator: Any, mode: int) -> int:
        return self.cdll.OCILobOpen(svc, err, locator, mode)

    def lob_close(self, svc: Any, err: Any, locator: Any) -> int:
        return self.cdll.OCILobClose(svc, err, locator)

    def lob_is_open(self, svc: Any, err: Any, locator: Any) -> "tuple[int, bool]":
        flag = boolean()
        status = self.cdll.OCILobIsOpen(svc, err, locator, byref(flag))
        return status, bool(flag.value)

    def lob_file_open(self, svc: Any, err: Any, locator: Any, mode: int) -> int:
        return self.cdll.OCILobFileOpen(svc, err, locator, mode)

    def lob_file_close(self, svc: Any, err: Any, locator: Any) -> int:
        return self.cdll.OCILobFileClose(svc, err, locator)

    def lob_file_exists(self, svc: Any, err: Any, locator: Any) -> "tuple[int, bool]":
        flag = boolean()
        status = self.cdll.OCILobFileExists(svc, err, locator, byref(flag))
        return status, bool(flag.value)

    def lob_file_get_name(self, env: Any, err: Any, locator: Any) -> "tuple[int, bytes, bytes]":
        directory = ctypes.create_string_buffer(120)
        name = ctypes.create_string_buffer(1020)
        directory_length = ub2(len(directory))
        name_length = ub2(len(name))
        status = self.cdll.OCILobFileGetName(
            env, err, locator, directory, byref(directory_length), name, byref(name_length)
        )
        return status, directory.raw[: directory_length.value], name.raw[: name_length.value]

    def lob_file_set_name(self, env: Any, err: Any, slots: Any, index: int, directory: bytes, name: bytes) -> int:
        return self.cdll.OCILobFileSetName(
            env, err, ctypes.cast(ctypes.addressof(slots) + index * ctypes.sizeof(c_void_p), _void_pp), directory, len(directory),
            name, len(name),
        )


_library: "Optional[OCILibrary]" = None
_library_lock = threading.Lock()


def has_library() -> bool:
    """Return True if the Oracle client library is already loaded."""
    return _library is not None


def load_library(path: "Optional[str | Path]" = None) -> OCILibrary:
    """Load ``libclntsh`` unless it is already loaded.

    The library is looked up in ``path``, ``$OCIDB_LIB_DIR``, ``$ORACLE_HOME/lib`` and finally
    through the platform loader.

    Raises:
        MissingDependencyError: No candidate could be loaded.
    """
    global _library  # noqa: PLW0603
    with _library_lock:
        if _library is not None:
            return _library
        errors: list[str] = []
        for candidate in _candidates(path):
            try:
                cdll = ctypes.CDLL(candidate)
            except OSError as exc:
                errors.append(f"{candidate}: {exc}")
                continue
            _library = OCILibrary(cdll)
            logger.debug("Loaded Oracle client library %s", candidate)
            return _library
        logger.debug("Oracle client library not found: %s", "; ".join(errors))
        raise MissingDependencyError("libclntsh", install_package="Oracle Instant Client")


def get_library() -> OCILibrary:
    """Return the loaded client library, loading it on first use."""
    if _library is None:
        return load_library()
    return _library
