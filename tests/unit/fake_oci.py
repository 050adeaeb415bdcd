"""In-process stand-in for :class:`ocidb.oci.library.OCILibrary`.

``FakeOCI`` implements the facade methods against a scripted server: queries
registered with :meth:`FakeOCI.register_query` return fixed rows, statements
matching :meth:`FakeOCI.on_execute` fragments run a Python callback that can
read IN binds and write OUT binds, and :meth:`FakeOCI.fail` injects ORA errors.
Values are written into, and read from, the real ctypes buffers the driver
binds and defines.
"""

import ctypes
import datetime
import decimal
import re
import threading
from dataclasses import dataclass, field
from typing import Any, Callable, Optional, Union

from ocidb.oci import constants as oci
from ocidb.oci.types import OCIDate

__all__ = ("FakeColumn", "FakeLob", "FakeOCI", "FakeResult", "FakeStatement", "ServerError")

CHARSET_ID = 873
MAX_BYTES_PER_CHARACTER = 4
CHUNK_SIZE = 8132
_POINTER_SIZE = ctypes.sizeof(ctypes.c_void_p)
_PLACEHOLDER = re.compile(r"(?<![:\w]):([\w#]+)")
_LONG_PREFIX = 4

_STATEMENT_TYPES = {
    "SELECT": oci.OCI_STMT_SELECT,
    "WITH": oci.OCI_STMT_SELECT,
    "UPDATE": oci.OCI_STMT_UPDATE,
    "DELETE": oci.OCI_STMT_DELETE,
    "INSERT": oci.OCI_STMT_INSERT,
    "CREATE": oci.OCI_STMT_CREATE,
    "DROP": oci.OCI_STMT_DROP,
    "ALTER": oci.OCI_STMT_ALTER,
    "BEGIN": oci.OCI_STMT_BEGIN,
    "DECLARE": oci.OCI_STMT_DECLARE,
    "CALL": oci.OCI_STMT_CALL,
    "MERGE": oci.OCI_STMT_MERGE,
}


class ServerError(Exception):
    """Raised by execute callbacks to make the statement fail with ``ORA-code``."""

    def __init__(self, code: int, message: str = "", offset: int = 0) -> None:
        self.code = code
        self.message = message or f"ORA-{code:05d}: simulated error"
        self.offset = offset
        super().__init__(self.message)


@dataclass
class FakeColumn:
    name: str
    data_type: int
    size: int = 0
    precision: int = 0
    scale: int = 0
    nullable: bool = True
    charset_form: int = oci.SQLCS_IMPLICIT
    char_size: Optional[int] = None


@dataclass
class FakeResult:
    columns: "list[FakeColumn]"
    rows: "list[tuple[Any, ...]]" = field(default_factory=list)


@dataclass
class FakeLob:
    data: Union[str, bytes] = b""
    temporary: bool = False
    is_open: bool = False
    directory: str = ""
    file_name: str = ""
    exists: bool = True
    file_open: bool = False

    @property
    def is_char(self) -> bool:
        return isinstance(self.data, str)


@dataclass
class _Buffers:
    data: Any
    buffer_size: int
    data_type: int
    indicator: Any
    actual_length: Any
    return_code: Any

    def address(self, row: int) -> int:
        return ctypes.addressof(self.data) + row * self.buffer_size


@dataclass
class FakeBind:
    fake: "FakeOCI"
    buffers: _Buffers
    max_elements: int
    current_elements: Any
    attributes: "dict[int, Any]" = field(default_factory=dict)

    @property
    def data_type(self) -> int:
        return self.buffers.data_type

    def value(self, row: int = 0) -> Any:
        if self.max_elements:
            return [self.fake.read_slot(self.buffers, i) for i in range(self.current_elements.value)]
        return self.fake.read_slot(self.buffers, row)

    def set(self, value: Any, row: int = 0) -> None:
        if self.max_elements:
            for i, element in enumerate(value):
                self.fake.write_slot(self.buffers, i, element)
            self.current_elements.value = len(value)
            return
        self.fake.write_slot(self.buffers, row, value)


@dataclass
class FakeStatement:
    handle: int
    sql: str = ""
    statement_type: int = oci.OCI_STMT_UNKNOWN
    tag: bytes = b""
    result: Optional[FakeResult] = None
    binds: "dict[Union[str, int], FakeBind]" = field(default_factory=dict)
    defines: "dict[int, _Buffers]" = field(default_factory=dict)
    row_count: int = 0
    position: int = 0
    error_offset: int = 0
    executions: int = 0

    def bind(self, name: Union[str, int]) -> FakeBind:
        key = name.lstrip(":").upper() if isinstance(name, str) else name
        return self.binds[key]

    def value(self, name: Union[str, int], row: int = 0) -> Any:
        return self.bind(name).value(row)

    def set(self, name: Union[str, int], value: Any, row: int = 0) -> None:
        self.bind(name).set(value, row)


@dataclass
class ExecutedStatement:
    sql: str
    iterations: int
    rows: "list[dict[Union[str, int], Any]]"
    mode: int


ExecuteCallback = Callable[["FakeOCI", FakeStatement], Optional[int]]


def _key(handle: Any) -> Any:
    if isinstance(handle, ctypes.c_void_p):
        return handle.value
    return handle


def _normalize(sql: str) -> str:
    return " ".join(sql.split())


def _statement_type(sql: str) -> int:
    words = sql.split(None, 1)
    if not words:
        return oci.OCI_STMT_UNKNOWN
    return _STATEMENT_TYPES.get(words[0].upper(), oci.OCI_STMT_UNKNOWN)


def _placeholders(sql: str) -> "list[str]":
    names: list[str] = []
    for match in _PLACEHOLDER.finditer(sql):
        name = match.group(1).upper()
        if name not in names:
            names.append(name)
    return names


def _oracle_text(number: decimal.Decimal) -> str:
    text = format(number.normalize(), "f")
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    if text.startswith("0."):
        text = text[1:]
    elif text.startswith("-0."):
        text = "-" + text[2:]
    return text or "0"


class FakeOCI:
    """Scripted OCI facade."""

    def __init__(self) -> None:
        self.calls: list[str] = []
        self.queries: dict[str, FakeResult] = {}
        self.callbacks: list[tuple[str, ExecuteCallback]] = []
        self.executed: list[ExecutedStatement] = []
        self.statements: dict[int, FakeStatement] = {}
        self.lobs: dict[int, FakeLob] = {}
        self.intervals: dict[int, tuple[int, int, int, int, int]] = {}
        self.params: dict[int, FakeColumn] = {}
        self.attributes: dict[tuple[Any, int], Any] = {}
        self.live_handles: dict[int, int] = {}
        self.freed_handles: list[tuple[int, int]] = []
        self.freed_descriptors: list[int] = []
        self.released_statements: list[bytes] = []
        self.lob_piece_size = 0
        self.prepare_status = oci.OCI_SUCCESS
        self.commits = 0
        self.rollbacks = 0
        self._failures: dict[str, list[Union[ServerError, int]]] = {}
        self._errors: list[tuple[int, str]] = []
        self._last_offset = 0
        self._next_id = 0x1000
        self._id_lock = threading.Lock()

    # -- scripting ----------------------------------------------------------------------------------

    def register_query(self, sql: str, columns: "list[FakeColumn]", rows: "Optional[list[tuple[Any, ...]]]" = None) -> None:
        self.queries[_normalize(sql)] = FakeResult(columns, list(rows or []))

    def on_execute(self, fragment: str, callback: ExecuteCallback) -> None:
        self.callbacks.append((fragment, callback))

    def fail(self, method: str, code: int, message: str = "", offset: int = 0) -> None:
        """Make the next call of ``method`` return ``OCI_ERROR`` with ``ORA-code``."""
        self._failures.setdefault(method, []).append(ServerError(code, message, offset))

    def fail_status(self, method: str, status: int) -> None:
        """Make the next call of ``method`` return ``status`` without an error record."""
        self._failures.setdefault(method, []).append(status)

    def push_errors(self, records: "list[tuple[int, str]]") -> None:
        """Load the error handle with ``(code, message)`` records for the next ``error_get`` calls."""
        self._errors = list(records)

    def open_cursor(self, parent: FakeStatement, name: Union[str, int], result: FakeResult) -> None:
        """Open the REF CURSOR bound to ``name`` of ``parent`` as an executed query over ``result``."""
        buffers = parent.bind(name).buffers
        handle = self.read_slot(buffers, 0)
        buffers.indicator[0] = oci.OCI_IND_NOTNULL
        statement = self.statements[handle]
        statement.result = result
        statement.statement_type = oci.OCI_STMT_SELECT
        statement.position = 0
        statement.row_count = 0

    def statement(self, handle: Any) -> FakeStatement:
        return self.statements[_key(handle)]

    def last_statement(self) -> FakeStatement:
        return self.statements[max(self.statements)]

    # -- internals ----------------------------------------------------------------------------------

    def _new_id(self) -> int:
        with self._id_lock:
            self._next_id += 0x10
            return self._next_id

    def _failure(self, method: str) -> "Optional[int]":
        self.calls.append(method)
        pending = self._failures.get(method)
        if not pending:
            return None
        failure = pending.pop(0)
        if isinstance(failure, ServerError):
            self._last_offset = failure.offset
            return self._raise_error(failure)
        return failure

    def _raise_error(self, error: ServerError) -> int:
        self._errors = [(error.code, error.message)]
        return oci.OCI_ERROR

    def read_slot(self, buffers: _Buffers, row: int) -> Any:
        address = buffers.address(row)
        data_type = buffers.data_type
        if data_type == oci.SQLT_RSET:
            return ctypes.c_void_p.from_address(address).value
        if buffers.indicator is not None and buffers.indicator[row] == oci.OCI_IND_NULL:
            return None
        if data_type in (oci.SQLT_CHR, oci.SQLT_AFC):
            return ctypes.string_at(address, buffers.actual_length[row]).decode("utf-8")
        if data_type == oci.SQLT_BIN:
            return ctypes.string_at(address, buffers.actual_length[row])
        if data_type in (oci.SQLT_VNU, oci.SQLT_NUM):
            return decimal.Decimal(_get_number(address))
        if data_type == oci.SQLT_INT:
            return ctypes.c_int64.from_address(address).value
        if data_type == oci.SQLT_BDOUBLE:
            return ctypes.c_double.from_address(address).value
        if data_type == oci.SQLT_ODT:
            date = OCIDate.from_address(address)
            return datetime.datetime(date.year, date.month, date.day, date.time.hour, date.time.minute, date.time.second)
        if data_type in (oci.SQLT_LVC, oci.SQLT_LVB):
            length = ctypes.c_uint32.from_address(address).value
            payload = ctypes.string_at(address + _LONG_PREFIX, length)
            return payload.decode("utf-8") if data_type == oci.SQLT_LVC else payload
        if data_type in (oci.SQLT_CLOB, oci.SQLT_BLOB, oci.SQLT_BFILE):
            return self.lobs[ctypes.c_void_p.from_address(address).value].data
        if data_type == oci.SQLT_INTERVAL_DS:
            days, hours, minutes, seconds, nanoseconds = self.intervals[ctypes.c_void_p.from_address(address).value]
            return datetime.timedelta(
                days=days, hours=hours, minutes=minutes, seconds=seconds, microseconds=nanoseconds // 1000
            )
        msg = f"fake cannot read SQLT {data_type}"
        raise NotImplementedError(msg)

    def write_slot(self, buffers: _Buffers, row: int, value: Any) -> None:
        if value is None:
            buffers.indicator[row] = oci.OCI_IND_NULL
            return
        buffers.indicator[row] = oci.OCI_IND_NOTNULL
        address = buffers.address(row)
        data_type = buffers.data_type
        if data_type in (oci.SQLT_CHR, oci.SQLT_AFC, oci.SQLT_BIN):
            payload = value.encode("utf-8") if isinstance(value, str) else bytes(value)
            size = min(len(payload), buffers.buffer_size)
            ctypes.memmove(address, payload, size)
            buffers.actual_length[row] = size
            if buffers.return_code is not None:
                buffers.return_code[row] = 1406 if size < len(payload) else 0
        elif data_type in (oci.SQLT_VNU, oci.SQLT_NUM):
            _put_number(address, str(value) if not isinstance(value, float) else repr(value))
        elif data_type == oci.SQLT_INT:
            ctypes.c_int64.from_address(address).value = int(value)
        elif data_type == oci.SQLT_BDOUBLE:
            ctypes.c_double.from_address(address).value = float(value)
        elif data_type == oci.SQLT_ODT:
            date = OCIDate.from_address(address)
            date.year, date.month, date.day = value.year, value.month, value.day
            if isinstance(value, datetime.datetime):
                date.time.hour, date.time.minute, date.time.second = value.hour, value.minute, value.second
            else:
                date.time.hour = date.time.minute = date.time.second = 0
        elif data_type in (oci.SQLT_LVC, oci.SQLT_LVB):
            payload = value.encode("utf-8") if isinstance(value, str) else bytes(value)
            ctypes.c_uint32.from_address(address).value = len(payload)
            ctypes.memmove(address + _LONG_PREFIX, payload, len(payload))
            buffers.actual_length[row] = min(_LONG_PREFIX + len(payload), 0xFFFF)
        elif data_type in (oci.SQLT_CLOB, oci.SQLT_BLOB, oci.SQLT_BFILE):
            locator = ctypes.c_void_p.from_address(address).value
            self.lobs[locator] = value if isinstance(value, FakeLob) else FakeLob(value)
        elif data_type == oci.SQLT_INTERVAL_DS:
            descriptor = ctypes.c_void_p.from_address(address).value
            self.intervals[descriptor] = _interval_parts(value)
        else:
            msg = f"fake cannot write SQLT {data_type}"
            raise NotImplementedError(msg)

    # -- environment and handles --------------------------------------------------------------------

    def env_nls_create(self, mode: int, charset_id: int = 0, ncharset_id: int = 0) -> "tuple[int, ctypes.c_void_p]":
        status = self._failure("env_nls_create")
        if status is not None:
            return status, ctypes.c_void_p()
        handle = self._new_id()
        self.live_handles[handle] = oci.OCI_HTYPE_ENV
        return oci.OCI_SUCCESS, ctypes.c_void_p(handle)

    def handle_alloc(self, parent: Any, handle_type: int) -> "tuple[int, ctypes.c_void_p]":
        status = self._failure("handle_alloc")
        if status is not None:
            return status, ctypes.c_void_p()
        handle = self._new_id()
        self.live_handles[handle] = handle_type
        if handle_type == oci.OCI_HTYPE_STMT:
            self.statements[handle] = FakeStatement(handle)
        return oci.OCI_SUCCESS, ctypes.c_void_p(handle)

    def handle_free(self, handle: Any, handle_type: int) -> int:
        self.calls.append("handle_free")
        key = _key(handle)
        self.live_handles.pop(key, None)
        self.freed_handles.append((key, handle_type))
        return oci.OCI_SUCCESS

    def descriptor_alloc(self, env: Any, slots: Any, index: int, descriptor_type: int) -> int:
        status = self._failure("descriptor_alloc")
        if status is not None:
            return status
        descriptor = self._new_id()
        if descriptor_type == oci.OCI_DTYPE_INTERVAL_DS:
            self.intervals[descriptor] = (0, 0, 0, 0, 0)
        else:
            self.lobs[descriptor] = FakeLob()
        ctypes.c_void_p.from_buffer(slots, index * _POINTER_SIZE).value = descriptor
        return oci.OCI_SUCCESS

    def descriptor_alloc_handle(self, env: Any, descriptor_type: int) -> "tuple[int, ctypes.c_void_p]":
        self.calls.append("descriptor_alloc_handle")
        return oci.OCI_SUCCESS, ctypes.c_void_p(self._new_id())

    def descriptor_free(self, descriptor: Any, descriptor_type: int) -> int:
        key = _key(descriptor)
        if key is not None:
            self.freed_descriptors.append(key)
        return oci.OCI_SUCCESS

    def attr_get(self, handle: Any, handle_type: int, attribute: int, ctype: Any, err: Any) -> "tuple[int, Any, int]":
        status = self._failure("attr_get")
        if status is not None:
            return status, 0, 0
        key = _key(handle)
        value: Any = self.attributes.get((key, attribute), 0)
        if handle_type == oci.OCI_HTYPE_ENV and attribute in (oci.OCI_ATTR_ENV_CHARSET_ID, oci.OCI_ATTR_ENV_NCHARSET_ID):
            value = CHARSET_ID
        elif handle_type == oci.OCI_HTYPE_STMT:
            statement = self.statements[key]
            value = {
                oci.OCI_ATTR_STMT_TYPE: statement.statement_type,
                oci.OCI_ATTR_ROW_COUNT: statement.row_count,
                oci.OCI_ATTR_PARAM_COUNT: len(statement.result.columns) if statement.result else 0,
                oci.OCI_ATTR_PARSE_ERROR_OFFSET: statement.error_offset,
            }.get(attribute, value)
        elif handle_type == oci.OCI_DTYPE_PARAM:
            column = self.params[key]
            value = {
                oci.OCI_ATTR_DATA_TYPE: column.data_type,
                oci.OCI_ATTR_CHARSET_FORM: column.charset_form,
                oci.OCI_ATTR_DATA_SIZE: column.size,
                oci.OCI_ATTR_CHAR_SIZE: column.size if column.char_size is None else column.char_size,
                oci.OCI_ATTR_SCALE: column.scale,
                oci.OCI_ATTR_PRECISION: column.precision,
                oci.OCI_ATTR_IS_NULL: int(column.nullable),
            }[attribute]
        elif handle_type == oci.OCI_HTYPE_SVCCTX and attribute == oci.OCI_ATTR_TRANS:
            value = self.attributes.get((key, attribute))
        return oci.OCI_SUCCESS, value, ctypes.sizeof(ctype)

    def attr_get_text(self, handle: Any, handle_type: int, attribute: int, err: Any) -> "tuple[int, bytes]":
        self.calls.append("attr_get_text")
        if handle_type == oci.OCI_DTYPE_PARAM and attribute == oci.OCI_ATTR_NAME:
            return oci.OCI_SUCCESS, self.params[_key(handle)].name.encode("utf-8")
        return oci.OCI_SUCCESS, bytes(self.attributes.get((_key(handle), attribute), b""))

    def attr_set(self, handle: Any, handle_type: int, attribute: int, value: Any, length: int, err: Any) -> int:
        status = self._failure("attr_set")
        if status is not None:
            return status
        if isinstance(value, ctypes.c_void_p):
            value = value.value
        elif hasattr(value, "value") and not isinstance(value, bytes):
            value = value.value
        self.attributes[(_key(handle), attribute)] = value
        return oci.OCI_SUCCESS

    def attr_set_xid(self, handle: Any, xid: Any, err: Any) -> int:
        self.calls.append("attr_set_xid")
        self.attributes[(_key(handle), oci.OCI_ATTR_XID)] = (
            xid.format_id,
            bytes(xid.data[: xid.gtrid_length]),
            bytes(xid.data[xid.gtrid_length : xid.gtrid_length + xid.bqual_length]),
        )
        return oci.OCI_SUCCESS

    def error_get(self, handle: Any, record: int, handle_type: int) -> "tuple[int, int, bytes]":
        if record > len(self._errors):
            return oci.OCI_NO_DATA, 0, b""
        code, message = self._errors[record - 1]
        return oci.OCI_SUCCESS, code, message.encode("utf-8")

    # -- NLS -----------------------------------------------------------------------------------------

    def nls_charset_name_to_id(self, env: Any, name: bytes) -> int:
        return CHARSET_ID

    def nls_charset_id_to_name(self, env: Any, charset_id: int) -> "tuple[int, bytes]":
        return oci.OCI_SUCCESS, b"AL32UTF8"

    def nls_name_map(self, env: Any, name: bytes, flag: int) -> "tuple[int, bytes]":
        return oci.OCI_SUCCESS, b"UTF-8"

    def nls_numeric_info_get(self, env: Any, err: Any, item: int) -> "tuple[int, int]":
        status = self._failure("nls_numeric_info_get")
        if status is not None:
            return status, 0
        if item == oci.OCI_NLS_CHARSET_MAXBYTESZ:
            return oci.OCI_SUCCESS, MAX_BYTES_PER_CHARACTER
        return oci.OCI_SUCCESS, 0

    def client_version(self) -> "tuple[int, int, int, int, int]":
        return 19, 3, 0, 0, 0

    # -- server, session and transactions ------------------------------------------------------------

    def server_attach(self, server: Any, err: Any, dsn: bytes, mode: int) -> int:
        status = self._failure("server_attach")
        if status is not None:
            return status
        self.attributes[(_key(server), -1)] = dsn
        return oci.OCI_SUCCESS

    def server_detach(self, server: Any, err: Any, mode: int) -> int:
        status = self._failure("server_detach")
        return oci.OCI_SUCCESS if status is None else status

    def session_begin(self, svc: Any, err: Any, session: Any, credentials: int, mode: int) -> int:
        status = self._failure("session_begin")
        if status is not None:
            return status
        self.attributes[(_key(session), -1)] = (credentials, mode)
        return oci.OCI_SUCCESS

    def session_end(self, svc: Any, err: Any, session: Any, mode: int) -> int:
        status = self._failure("session_end")
        return oci.OCI_SUCCESS if status is None else status

    def session_release(self, svc: Any, err: Any, mode: int) -> int:
        status = self._failure("session_release")
        return oci.OCI_SUCCESS if status is None else status

    def trans_start(self, svc: Any, err: Any, timeout: int, flags: int) -> int:
        status = self._failure("trans_start")
        return oci.OCI_SUCCESS if status is None else status

    def trans_prepare(self, svc: Any, err: Any, flags: int) -> int:
        status = self._failure("trans_prepare")
        return self.prepare_status if status is None else status

    def trans_commit(self, svc: Any, err: Any, flags: int) -> int:
        status = self._failure("trans_commit")
        if status is not None:
            return status
        self.commits += 1
        self.attributes[(_key(svc), -2)] = flags
        return oci.OCI_SUCCESS

    def trans_rollback(self, svc: Any, err: Any, flags: int) -> int:
        status = self._failure("trans_rollback")
        if status is not None:
            return status
        self.rollbacks += 1
        return oci.OCI_SUCCESS

    def ping(self, svc: Any, err: Any, mode: int) -> int:
        status = self._failure("ping")
        return oci.OCI_SUCCESS if status is None else status

    def break_execution(self, svc: Any, err: Any) -> int:
        status = self._failure("break_execution")
        return oci.OCI_SUCCESS if status is None else status

    # -- statements ----------------------------------------------------------------------------------

    def _prepared(self, statement: FakeStatement, sql: bytes) -> None:
        statement.sql = sql.decode("utf-8")
        statement.statement_type = _statement_type(statement.sql)
        statement.result = self.queries.get(_normalize(statement.sql))
        statement.binds = {}
        statement.defines = {}
        statement.position = 0
        statement.row_count = 0

    def stmt_prepare(self, stmt: Any, err: Any, sql: bytes, syntax: int, mode: int) -> int:
        status = self._failure("stmt_prepare")
        if status is not None:
            return status
        self._prepared(self.statements[_key(stmt)], sql)
        return oci.OCI_SUCCESS

    def stmt_prepare2(
        self, svc: Any, err: Any, sql: bytes, tag: bytes, syntax: int, mode: int
    ) -> "tuple[int, ctypes.c_void_p]":
        status = self._failure("stmt_prepare2")
        if status is not None:
            return status, ctypes.c_void_p()
        handle = self._new_id()
        statement = FakeStatement(handle, tag=tag)
        self.statements[handle] = statement
        self._prepared(statement, sql)
        return oci.OCI_SUCCESS, ctypes.c_void_p(handle)

    def stmt_release(self, stmt: Any, err: Any, tag: bytes, mode: int) -> int:
        self.calls.append("stmt_release")
        self.released_statements.append(tag)
        return oci.OCI_SUCCESS

    def stmt_execute(self, svc: Any, stmt: Any, err: Any, iters: int, row_offset: int, mode: int) -> int:
        statement = self.statements[_key(stmt)]
        status = self._failure("stmt_execute")
        if status is not None:
            statement.error_offset = self._last_offset
            return status
        if mode & (oci.OCI_DESCRIBE_ONLY | oci.OCI_PARSE_ONLY):
            return oci.OCI_SUCCESS
        statement.executions += 1
        if statement.statement_type == oci.OCI_STMT_SELECT:
            if statement.result is None:
                return self._raise_error(ServerError(942, "ORA-00942: table or view does not exist"))
            statement.position = 0
            statement.row_count = 0
            return oci.OCI_SUCCESS

        missing = self._missing_binds(statement)
        if missing:
            return self._raise_error(ServerError(1008, "ORA-01008: not all variables bound"))
        iterations = max(iters, 1)
        rows = [{name: bind.value(i) for name, bind in statement.binds.items()} for i in range(iterations)]
        self.executed.append(ExecutedStatement(statement.sql, iterations, rows, mode))
        statement.row_count = iterations if statement.statement_type in (
            oci.OCI_STMT_INSERT, oci.OCI_STMT_UPDATE, oci.OCI_STMT_DELETE, oci.OCI_STMT_MERGE
        ) else 0
        for fragment, callback in self.callbacks:
            if fragment in statement.sql:
                try:
                    row_count = callback(self, statement)
                except ServerError as exc:
                    statement.error_offset = exc.offset
                    return self._raise_error(exc)
                if row_count is not None:
                    statement.row_count = row_count
                break
        if mode & oci.OCI_COMMIT_ON_SUCCESS:
            self.commits += 1
        return oci.OCI_SUCCESS

    def _missing_binds(self, statement: FakeStatement) -> bool:
        names = _placeholders(statement.sql)
        if not names:
            return False
        if any(isinstance(key, int) for key in statement.binds):
            return len(statement.binds) < len(names)
        return any(name not in statement.binds for name in names)

    def stmt_fetch(self, stmt: Any, err: Any, num_rows: int, orientation: int, mode: int) -> int:
        status = self._failure("stmt_fetch")
        if status is not None:
            return status
        statement = self.statements[_key(stmt)]
        assert statement.result is not None
        rows = statement.result.rows[statement.position : statement.position + num_rows]
        for i, row in enumerate(rows):
            for position, buffers in statement.defines.items():
                self.write_slot(buffers, i, row[position - 1])
        statement.position += len(rows)
        statement.row_count = statement.position
        if len(rows) < num_rows:
            return oci.OCI_NO_DATA
        return oci.OCI_SUCCESS

    def stmt_get_bind_info(self, stmt: Any, err: Any, size: int, start: int) -> "tuple[int, int, list[bytes], list[bool]]":
        self.calls.append("stmt_get_bind_info")
        names = _placeholders(self.statements[_key(stmt)].sql)
        if not names:
            return oci.OCI_NO_DATA, 0, [], []
        if size < len(names):
            return oci.OCI_SUCCESS, -len(names), [], []
        return oci.OCI_SUCCESS, len(names), [name.encode("utf-8") for name in names], [False] * len(names)

    def param_get(self, stmt: Any, handle_type: int, err: Any, position: int) -> "tuple[int, ctypes.c_void_p]":
        status = self._failure("param_get")
        if status is not None:
            return status, ctypes.c_void_p()
        statement = self.statements[_key(stmt)]
        if statement.result is None or position > len(statement.result.columns):
            return self._raise_error(ServerError(24334, "ORA-24334: no descriptor for this position")), ctypes.c_void_p()
        param = self._new_id()
        self.params[param] = statement.result.columns[position - 1]
        return oci.OCI_SUCCESS, ctypes.c_void_p(param)

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
    ) -> "tuple[int, ctypes.c_void_p]":
        status = self._failure("define_by_pos")
        if status is not None:
            return status, ctypes.c_void_p()
        statement = self.statements[_key(stmt)]
        statement.defines[position] = _Buffers(data, buffer_size, data_type, indicator, actual_length, return_code)
        return oci.OCI_SUCCESS, ctypes.c_void_p(self._new_id())

    def _bind(
        self,
        stmt: Any,
        bind: Any,
        key: Union[str, int],
        data: Any,
        buffer_size: int,
        data_type: int,
        indicator: Any,
        actual_length: Any,
        return_code: Any,
        max_elements: int,
        current_elements: Any,
    ) -> "tuple[int, ctypes.c_void_p]":
        statement = self.statements[_key(stmt)]
        statement.binds[key] = FakeBind(
            self,
            _Buffers(data, buffer_size, data_type, indicator, actual_length, return_code),
            max_elements,
            current_elements,
        )
        handle = _key(bind) or self._new_id()
        return oci.OCI_SUCCESS, ctypes.c_void_p(handle)

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
    ) -> "tuple[int, ctypes.c_void_p]":
        status = self._failure("bind_by_name")
        if status is not None:
            return status, ctypes.c_void_p()
        key = name.decode("utf-8").lstrip(":").upper()
        return self._bind(
            stmt, bind, key, data, buffer_size, data_type, indicator, actual_length, return_code, max_elements,
            current_elements,
        )

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
    ) -> "tuple[int, ctypes.c_void_p]":
        status = self._failure("bind_by_pos")
        if status is not None:
            return status, ctypes.c_void_p()
        return self._bind(
            stmt, bind, position, data, buffer_size, data_type, indicator, actual_length, return_code, max_elements,
            current_elements,
        )

    # -- numbers -------------------------------------------------------------------------------------

    def number_from_int(self, err: Any, value: int, buffer: Any, offset: int) -> int:
        _put_number(ctypes.addressof(buffer) + offset, str(value))
        return oci.OCI_SUCCESS

    def number_to_int(self, err: Any, buffer: Any, offset: int) -> "tuple[int, int]":
        number = decimal.Decimal(_get_number(ctypes.addressof(buffer) + offset))
        return oci.OCI_SUCCESS, int(number.to_integral_value(rounding=decimal.ROUND_HALF_UP))

    def number_from_real(self, err: Any, value: float, buffer: Any, offset: int) -> int:
        _put_number(ctypes.addressof(buffer) + offset, repr(value))
        return oci.OCI_SUCCESS

    def number_to_real(self, err: Any, buffer: Any, offset: int) -> "tuple[int, float]":
        return oci.OCI_SUCCESS, float(_get_number(ctypes.addressof(buffer) + offset))

    def number_from_text(
        self, err: Any, text: bytes, format_mask: bytes, nls_params: bytes, buffer: Any, offset: int
    ) -> int:
        try:
            number = decimal.Decimal(text.decode("ascii"))
        except decimal.InvalidOperation:
            return self._raise_error(ServerError(1722, "ORA-01722: invalid number"))
        _put_number(ctypes.addressof(buffer) + offset, _oracle_text(number))
        return oci.OCI_SUCCESS

    def number_to_text(
        self, err: Any, buffer: Any, offset: int, format_mask: bytes, nls_params: bytes, size: int
    ) -> "tuple[int, bytes]":
        number = decimal.Decimal(_get_number(ctypes.addressof(buffer) + offset))
        return oci.OCI_SUCCESS, _oracle_text(number).encode("ascii")

    # -- intervals -----------------------------------------------------------------------------------

    def interval_get_day_second(
        self, env: Any, err: Any, interval: Any
    ) -> "tuple[int, tuple[int, int, int, int, int]]":
        return oci.OCI_SUCCESS, self.intervals[_key(interval)]

    def interval_set_day_second(
        self, env: Any, err: Any, days: int, hours: int, minutes: int, seconds: int, nanoseconds: int, interval: Any
    ) -> int:
        self.intervals[_key(interval)] = (days, hours, minutes, seconds, nanoseconds)
        return oci.OCI_SUCCESS

    # -- LOBs ----------------------------------------------------------------------------------------

    def _lob(self, locator: Any) -> FakeLob:
        return self.lobs[_key(locator)]

    def lob_is_temporary(self, env: Any, err: Any, locator: Any) -> "tuple[int, bool]":
        return oci.OCI_SUCCESS, self._lob(locator).temporary

    def lob_free_temporary(self, svc: Any, err: Any, locator: Any) -> int:
        self.calls.append("lob_free_temporary")
        self._lob(locator).temporary = False
        return oci.OCI_SUCCESS

    def lob_create_temporary(self, svc: Any, err: Any, locator: Any, charset_form: int, lob_type: int) -> int:
        self.calls.append("lob_create_temporary")
        self.lobs[_key(locator)] = FakeLob("" if lob_type == oci.OCI_TEMP_CLOB else b"", temporary=True)
        return oci.OCI_SUCCESS

    def lob_trim(self, svc: Any, err: Any, locator: Any, new_length: int) -> int:
        status = self._failure("lob_trim")
        if status is not None:
            return status
        lob = self._lob(locator)
        lob.data = lob.data[:new_length]
        return oci.OCI_SUCCESS

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
        self.calls.append("lob_read")
        lob = self._lob(locator)
        requested = char_amount if lob.is_char else byte_amount
        amount = min(requested, self.lob_piece_size) if self.lob_piece_size else requested
        piece = lob.data[offset - 1 : offset - 1 + amount]
        payload = piece.encode("utf-8") if isinstance(piece, str) else piece
        ctypes.memmove(buffer, payload, len(payload))
        more = len(piece) < requested and offset - 1 + len(piece) < len(lob.data)
        status = oci.OCI_NEED_DATA if more else oci.OCI_SUCCESS
        return status, len(payload), len(piece) if lob.is_char else 0

    def lob_write(
        self, svc: Any, err: Any, locator: Any, offset: int, data: bytes, charset_id: int, charset_form: int
    ) -> "tuple[int, int, int]":
        status = self._failure("lob_write")
        if status is not None:
            return status, 0, 0
        lob = self._lob(locator)
        if lob.is_char:
            text = data.decode("utf-8")
            current = str(lob.data).ljust(offset - 1)
            lob.data = current[: offset - 1] + text + current[offset - 1 + len(text) :]
            return oci.OCI_SUCCESS, len(data), len(text)
        current_bytes = bytes(lob.data).ljust(offset - 1, b"\x00")
        lob.data = current_bytes[: offset - 1] + data + current_bytes[offset - 1 + len(data) :]
        return oci.OCI_SUCCESS, len(data), 0

    def lob_get_length(self, svc: Any, err: Any, locator: Any) -> "tuple[int, int]":
        status = self._failure("lob_get_length")
        if status is not None:
            return status, 0
        return oci.OCI_SUCCESS, len(self._lob(locator).data)

    def lob_get_chunk_size(self, svc: Any, err: Any, locator: Any) -> "tuple[int, int]":
        return oci.OCI_SUCCESS, CHUNK_SIZE

    def lob_open(self, svc: Any, err: Any, locator: Any, mode: int) -> int:
        self._lob(locator).is_open = True
        return oci.OCI_SUCCESS

    def lob_close(self, svc: Any, err: Any, locator: Any) -> int:
        self._lob(locator).is_open = False
        return oci.OCI_SUCCESS

    def lob_is_open(self, svc: Any, err: Any, locator: Any) -> "tuple[int, bool]":
        return oci.OCI_SUCCESS, self._lob(locator).is_open

    def lob_file_open(self, svc: Any, err: Any, locator: Any, mode: int) -> int:
        self.calls.append("lob_file_open")
        self._lob(locator).file_open = True
        return oci.OCI_SUCCESS

    def lob_file_close(self, svc: Any, err: Any, locator: Any) -> int:
        self.calls.append("lob_file_close")
        self._lob(locator).file_open = False
        return oci.OCI_SUCCESS

    def lob_file_exists(self, svc: Any, err: Any, locator: Any) -> "tuple[int, bool]":
        return oci.OCI_SUCCESS, self._lob(locator).exists

    def lob_file_get_name(self, env: Any, err: Any, locator: Any) -> "tuple[int, bytes, bytes]":
        lob = self._lob(locator)
        return oci.OCI_SUCCESS, lob.directory.encode("utf-8"), lob.file_name.encode("utf-8")

    def lob_file_set_name(self, env: Any, err: Any, slots: Any, index: int, directory: bytes, name: bytes) -> int:
        slot = ctypes.c_void_p.from_buffer(slots, index * _POINTER_SIZE)
        if not slot.value:
            slot.value = self._new_id()
        lob = self.lobs.setdefault(slot.value, FakeLob())
        lob.directory = directory.decode("utf-8")
        lob.file_name = name.decode("utf-8")
        return oci.OCI_SUCCESS


def _put_number(address: int, text: str) -> None:
    payload = text.encode("ascii")
    if len(payload) >= oci.OCI_NUMBER_SIZE:
        payload = format(float(text), ".12g").encode("ascii")
    ctypes.memmove(address, bytes([len(payload)]) + payload, len(payload) + 1)


def _get_number(address: int) -> str:
    length = ctypes.c_ubyte.from_address(address).value
    return ctypes.string_at(address + 1, length).decode("ascii")


def _interval_parts(value: datetime.timedelta) -> "tuple[int, int, int, int, int]":
    sign = -1 if value < datetime.timedelta(0) else 1
    magnitude = abs(value)
    hours, remainder = divmod(magnitude.seconds, 3600)
    minutes, seconds = divmod(remainder, 60)
    return (
        sign * magnitude.days,
        sign * hours,
        sign * minutes,
        sign * seconds,
        sign * magnitude.microseconds * 1000,
    )
