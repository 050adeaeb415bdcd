"""Statement lifecycle: prepare, bind, execute, define and fetch."""

from typing import TYPE_CHECKING, Any, NamedTuple, Optional, Union

from ocidb.exceptions import (
    ArrayPositionError,
    CursorClosedError,
    DatabaseError,
    FetchSizeError,
    InterfaceError,
    NoDataFoundError,
    NotConnectedError,
    QueriesNotSupportedError,
    StatementRequiredError,
)
from ocidb.oci import constants as oci
from ocidb.oci.types import sb1, sb2, ub1, ub2, ub4
from ocidb.statement import (
    UNIQUE_SEPARATOR,
    build_call_statement,
    diagnose_missing_binds,
    find_statement_vars,
    is_ddl,
    statement_tag,
    uniquify_statement_vars,
)
from ocidb.utils.logging import get_logger
from ocidb.variables import registry
from ocidb.variables.base import Ref, VariableType
from ocidb.variables.variable import Variable, define_variable, param_var_type

if TYPE_CHECKING:
    from collections.abc import Iterator, Mapping, Sequence

    from ocidb.connection import Connection

__all__ = ("DEFAULT_ARRAY_SIZE", "ColumnDescription", "Cursor")

logger = get_logger("cursor")

DEFAULT_ARRAY_SIZE = 50
MISSING_BINDS_CODE = 1008
DATE_DISPLAY_SIZE = 23
UNLIMITED_NUMBER_DISPLAY_SIZE = 127
_BIND_INFO_INITIAL_SIZE = 8

_DML_TYPES = frozenset({oci.OCI_STMT_INSERT, oci.OCI_STMT_UPDATE, oci.OCI_STMT_DELETE, oci.OCI_STMT_MERGE})
_STRING_TYPES = (registry.STRING, registry.FIXED_CHAR, registry.ROWID, registry.LONG_STRING)
_BINARY_TYPES = (registry.BINARY, registry.LONG_BINARY)
_NUMBER_TYPES = (
    registry.FLOAT,
    registry.INT32,
    registry.INT64,
    registry.LONG_INTEGER,
    registry.NUMBER_AS_STRING,
    registry.NATIVE_FLOAT,
)

BindParameters = Union["Sequence[Any]", "Mapping[str, Any]"]


class ColumnDescription(NamedTuple):
    """One select-list item, in PEP 249 ``description`` order."""

    name: str
    type: VariableType
    display_size: int
    internal_size: int
    precision: int
    scale: int
    null_ok: bool


class Cursor:
    """A statement handle with its bind and fetch variables.

    Obtain cursors with :meth:`ocidb.connection.Connection.cursor`. A cursor is
    single-owner: it must not be used from two threads at once.
    """

    def __init__(self, connection: "Connection") -> None:
        self.connection = connection
        self.environment = connection.environment
        self.handle: Any = None
        self.is_owned = False
        self.bind_vars_by_pos: Optional[list[Optional[Variable]]] = None
        self.bind_vars_by_name: Optional[dict[str, Optional[Variable]]] = None
        self.fetch_vars: Optional[list[Variable]] = None
        self.arraysize = DEFAULT_ARRAY_SIZE
        self.bindarraysize = 1
        self.fetch_array_size = DEFAULT_ARRAY_SIZE
        self.set_input_sizes = False
        self.output_size = -1
        self.output_size_column = -1
        self.rowcount = -1
        self.actual_rows = -1
        self.row_num = 0
        self.statement: Optional[str] = None
        self.statement_tag = b""
        self.statement_type = -1
        self.bypass_multiple_args = connection.bypass_multiple_args
        self._open = True

    def __repr__(self) -> str:
        return f"<Cursor on {self.connection!r}>"

    def __enter__(self) -> "Cursor":
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    def __iter__(self) -> "Iterator[tuple[Any, ...]]":
        self._verify_fetch()
        return self

    def __next__(self) -> "tuple[Any, ...]":
        self._verify_fetch()
        if self._more_rows():
            return self._create_row()
        raise StopIteration

    @property
    def is_open(self) -> bool:
        return self._open and self.connection.is_connected()

    @property
    def bind_vars(self) -> "Optional[Union[list[Optional[Variable]], dict[str, Optional[Variable]]]]":
        if self.bind_vars_by_name is not None:
            return self.bind_vars_by_name
        return self.bind_vars_by_pos

    def _check_open(self) -> None:
        if not self._open:
            raise CursorClosedError
        if not self.connection.is_connected():
            raise NotConnectedError

    # -- handles ------------------------------------------------------------------------------------

    def allocate_handle(self) -> None:
        """Allocate a statement handle owned by this cursor."""
        self.is_owned = True
        self.handle = self.environment.handle_alloc(oci.OCI_HTYPE_STMT, "cursor: allocate statement handle")

    def free_handle(self) -> None:
        """Free an owned handle or release a cached one back to the statement cache."""
        handle = self.handle
        self.handle = None
        if not handle:
            return
        if self.is_owned:
            self.environment.handle_free(handle, oci.OCI_HTYPE_STMT)
        elif self.connection.handle and self.statement_tag:
            status = self.environment.library.stmt_release(
                handle, self.environment.error_handle, self.statement_tag, oci.OCI_DEFAULT
            )
            self.environment.check_status(status, "cursor: statement release")

    def close(self) -> None:
        """Close the cursor. Closing a closed cursor does nothing."""
        if not self._open:
            return
        self._open = False
        self._free_fetch_vars()
        self.bind_vars_by_pos = None
        self.bind_vars_by_name = None
        if self.connection.is_connected():
            self.free_handle()
        else:
            self.handle = None

    def _free_fetch_vars(self) -> None:
        if self.fetch_vars is not None:
            for var in self.fetch_vars:
                var.free()
            self.fetch_vars = None

    # -- prepare ------------------------------------------------------------------------------------

    def _internal_prepare(self, statement: "Optional[str]", tag: "Optional[Union[str, bytes]]" = None) -> None:
        if statement is None:
            statement = self.statement
        if statement is None:
            raise StatementRequiredError
        if tag:
            new_tag = _tag_bytes(tag)
        elif statement == self.statement and self.statement_tag:
            new_tag = self.statement_tag
        else:
            new_tag = statement_tag(statement)
        if statement == self.statement and new_tag == self.statement_tag and not is_ddl(self.statement_type):
            return

        self.free_handle()
        self.statement = statement
        self.statement_tag = new_tag
        sql = self.environment.encode(statement)
        environment = self.environment
        with self.connection.lock:
            if self.connection.statement_cache:
                self.is_owned = False
                status, handle = environment.library.stmt_prepare2(
                    self.connection.handle, environment.error_handle, sql, new_tag, oci.OCI_NTV_SYNTAX, oci.OCI_DEFAULT
                )
                try:
                    environment.check_status(status, "cursor: prepare")
                except DatabaseError:
                    self.handle = None
                    raise
                self.handle = handle
            else:
                self.allocate_handle()
                status = environment.library.stmt_prepare(
                    self.handle, environment.error_handle, sql, oci.OCI_NTV_SYNTAX, oci.OCI_DEFAULT
                )
                environment.check_status(status, "cursor: prepare")

        for var in self._bind_variables():
            var.unbind()
        self._get_statement_type()
        logger.debug("Prepared statement type=%d tag=%s", self.statement_type, new_tag.decode("ascii", "replace"))

    def _get_statement_type(self) -> None:
        self.statement_type = self.environment.attr_get(
            self.handle, oci.OCI_HTYPE_STMT, oci.OCI_ATTR_STMT_TYPE, ub2, "cursor: statement type"
        )
        self._free_fetch_vars()

    def prepare(self, statement: str, tag: "Optional[Union[str, bytes]]" = None) -> None:
        """Prepare ``statement`` for later execution with ``execute(None, ...)``.

        Args:
            statement: SQL or PL/SQL text.
            tag: Statement cache tag; the hash of the text when omitted.
        """
        self._check_open()
        self._internal_prepare(statement, tag)

    def parse(self, statement: str) -> None:
        """Parse ``statement`` without executing it; queries are described as well."""
        self._check_open()
        self._internal_prepare(statement)
        mode = oci.OCI_DESCRIBE_ONLY if self.statement_type == oci.OCI_STMT_SELECT else oci.OCI_PARSE_ONLY
        with self.connection.lock:
            status = self.environment.library.stmt_execute(
                self.connection.handle, self.handle, self.environment.error_handle, 0, 0, mode
            )
            self.environment.check_status(status, "cursor: parse")

    # -- binds --------------------------------------------------------------------------------------

    def _bind_variables(self) -> "list[Variable]":
        if self.bind_vars_by_name is not None:
            return [var for var in self.bind_vars_by_name.values() if var is not None]
        if self.bind_vars_by_pos is not None:
            return [var for var in self.bind_vars_by_pos if var is not None]
        return []

    def new_variable_by_value(self, value: Any, num_elements: int = 1) -> Variable:
        var_type, size, array_elements = registry.var_type_by_value(value)
        if array_elements:
            var = Variable(self, array_elements, var_type, size)
            var.make_array()
            return var
        return Variable(self, num_elements, var_type, size)

    def _set_bind_variable(
        self, num_elements: int, array_pos: int, defer_type: bool, value: Any, original: "Optional[Variable]"
    ) -> "Optional[Variable]":
        if isinstance(value, Variable):
            if value is not original:
                value.unbind()
            return value

        if original is not None:
            new_type, _, _ = registry.var_type_by_value(value)
            if value is None or new_type is original.type or array_pos > 0 or self.set_input_sizes:
                if num_elements > original.allocated_elements:
                    var = Variable(self, num_elements, original.type, original.size)
                    var.set_value(array_pos, value)
                    return var
                try:
                    original.set_value(array_pos, value)
                except (TypeError, IndexError):
                    if array_pos > 0:
                        raise
                else:
                    return original

        if value is None and defer_type:
            return None
        var = self.new_variable_by_value(value, num_elements)
        var.set_value(array_pos, value)
        return var

    def _set_bind_variables_by_pos(
        self, parameters: "Sequence[Any]", num_elements: int, array_pos: int, defer_type: bool
    ) -> None:
        existing = self.bind_vars_by_pos or []
        self.bind_vars_by_name = None
        variables: list[Optional[Variable]] = []
        for i, value in enumerate(parameters):
            original = existing[i] if i < len(existing) else None
            variables.append(self._set_bind_variable(num_elements, array_pos, defer_type, value, original))
        self.bind_vars_by_pos = variables

    def _set_bind_variables_by_name(
        self, parameters: "Mapping[str, Any]", num_elements: int, array_pos: int, defer_type: bool
    ) -> None:
        existing = self.bind_vars_by_name or {}
        self.bind_vars_by_pos = None
        variables: dict[str, Optional[Variable]] = {}
        for name, value in parameters.items():
            original = existing.get(name)
            variables[name] = self._set_bind_variable(num_elements, array_pos, defer_type, value, original)
        self.bind_vars_by_name = variables

    def _set_bind_variables(
        self, parameters: "BindParameters", num_elements: int, array_pos: int, defer_type: bool
    ) -> None:
        if isinstance(parameters, dict):
            self._set_bind_variables_by_name(parameters, num_elements, array_pos, defer_type)
        else:
            self._set_bind_variables_by_pos(list(parameters), num_elements, array_pos, defer_type)

    def _perform_bind(self) -> None:
        self.set_input_sizes = False
        if self.bind_vars_by_name is not None:
            for name, var in self.bind_vars_by_name.items():
                if var is not None:
                    var.bind(self, name=name)
        elif self.bind_vars_by_pos is not None:
            for i, var in enumerate(self.bind_vars_by_pos):
                if var is not None:
                    var.bind(self, pos=i + 1)

    def _bound_names(self) -> "list[str]":
        if self.bind_vars_by_name is not None:
            return list(self.bind_vars_by_name)
        if self.bind_vars_by_pos is not None:
            return [str(i + 1) for i in range(len(self.bind_vars_by_pos))]
        return []

    def _write_back(self) -> None:
        for var in self._bind_variables():
            if var.destination is not None:
                var.get_value_into(var.destination, 0)

    # -- execute ------------------------------------------------------------------------------------

    def _error_offset(self) -> int:
        status, offset, _ = self.environment.library.attr_get(
            self.handle, oci.OCI_HTYPE_STMT, oci.OCI_ATTR_PARSE_ERROR_OFFSET, ub2, self.environment.error_handle
        )
        return int(offset) if status == oci.OCI_SUCCESS else 0

    def _internal_execute(self, num_iters: int) -> None:
        mode = oci.OCI_COMMIT_ON_SUCCESS if self.connection.autocommit else oci.OCI_DEFAULT
        logger.debug("Executing statement type=%d iters=%d mode=%d", self.statement_type, num_iters, mode)
        environment = self.environment
        with self.connection.lock:
            status = environment.library.stmt_execute(
                self.connection.handle, self.handle, environment.error_handle, num_iters, 0, mode
            )
            try:
                environment.check_status(status, "cursor: execute")
            except DatabaseError as exc:
                exc.with_offset(self._error_offset())
                if exc.code == MISSING_BINDS_CODE and self.statement:
                    exc.append_message(diagnose_missing_binds(self.statement, self._bound_names()).text)
                raise
        self._set_row_count()

    def _set_row_count(self) -> None:
        if self.statement_type == oci.OCI_STMT_SELECT:
            self.rowcount = 0
            self.actual_rows = -1
            self.row_num = 0
        elif self.statement_type in _DML_TYPES:
            self.rowcount = self.environment.attr_get(
                self.handle, oci.OCI_HTYPE_STMT, oci.OCI_ATTR_ROW_COUNT, ub4, "cursor: row count"
            )
        else:
            self.rowcount = -1

    def _perform_define(self) -> None:
        num_params = self.environment.attr_get(
            self.handle, oci.OCI_HTYPE_STMT, oci.OCI_ATTR_PARAM_COUNT, ub4, "cursor: select-list count"
        )
        self.fetch_array_size = self.arraysize
        self.fetch_vars = [define_variable(self, pos, self.fetch_array_size) for pos in range(1, num_params + 1)]

    def _unique_name_parameters(
        self, statement: str, parameters: "Mapping[str, Any]"
    ) -> "tuple[str, dict[str, Any]]":
        rewritten = uniquify_statement_vars(statement)
        by_upper = {name.lstrip(":").upper(): value for name, value in parameters.items()}
        expanded: dict[str, Any] = {}
        for name in find_statement_vars(rewritten):
            base = name.split(UNIQUE_SEPARATOR, 1)[0].upper()
            if base in by_upper:
                expanded[name] = by_upper[base]
        return rewritten, expanded

    def execute(
        self, statement: "Optional[str]", parameters: "Optional[BindParameters]" = None, **keyword_parameters: Any
    ) -> "Cursor":
        """Execute ``statement``, or the prepared statement when ``statement`` is None.

        Parameters bind by position (a sequence) or by name (a mapping or keywords).
        After DML and PL/SQL, :class:`Ref` parameters receive their OUT values.

        Args:
            statement: SQL or PL/SQL text.
            parameters: Positional sequence or name mapping.
            **keyword_parameters: Named parameters.

        Raises:
            CursorClosedError: The cursor is closed.
            DatabaseError: The server rejected the statement.

        Returns:
            The cursor, ready for fetching when the statement is a query.
        """
        self._check_open()
        if keyword_parameters:
            named = dict(parameters) if isinstance(parameters, dict) else {}
            named.update(keyword_parameters)
            parameters = named
        if self.bypass_multiple_args and statement is not None and isinstance(parameters, dict) and parameters:
            statement, parameters = self._unique_name_parameters(statement, parameters)

        self._internal_prepare(statement)
        if parameters:
            self._set_bind_variables(parameters, 1, 0, False)
        self._perform_bind()

        is_query = self.statement_type == oci.OCI_STMT_SELECT
        self._internal_execute(0 if is_query else 1)
        if is_query:
            if self.fetch_vars is None:
                self._perform_define()
        else:
            self._write_back()
        self.output_size = -1
        self.output_size_column = -1
        return self

    def executemany(self, statement: "Optional[str]", seq_of_parameters: "Sequence[BindParameters]") -> None:
        """Execute ``statement`` once per parameter set, in a single round trip.

        Raises:
            QueriesNotSupportedError: ``statement`` is a query.
        """
        self._check_open()
        self._internal_prepare(statement)
        if self.statement_type == oci.OCI_STMT_SELECT:
            raise QueriesNotSupportedError
        rows = list(seq_of_parameters)
        num_rows = len(rows)
        for i, arguments in enumerate(rows):
            self._set_bind_variables(arguments, num_rows, i, i < num_rows - 1)
        self._perform_bind()
        if num_rows:
            self._internal_execute(num_rows)

    def executemany_prepared(self, num_iters: int) -> None:
        """Execute the prepared statement ``num_iters`` times with the values already set in its variables."""
        if num_iters > self.bindarraysize:
            msg = "iterations exceed bind array size"
            raise ArrayPositionError(msg)
        self._check_open()
        if self.statement_type == oci.OCI_STMT_SELECT:
            raise QueriesNotSupportedError
        self._perform_bind()
        self._internal_execute(num_iters)

    def callproc(
        self,
        name: str,
        parameters: "Optional[Sequence[Any]]" = None,
        keyword_parameters: "Optional[dict[str, Any]]" = None,
    ) -> "list[Any]":
        """Call stored procedure ``name``; returns the positional arguments after the call."""
        statement, bind_values = build_call_statement(name, None, parameters, keyword_parameters)
        self.execute(statement, bind_values)
        count = len(parameters or ())
        return [var.get_value() if var is not None else None for var in (self.bind_vars_by_pos or [])[:count]]

    def callfunc(
        self,
        name: str,
        return_type: Any,
        parameters: "Optional[Sequence[Any]]" = None,
        keyword_parameters: "Optional[dict[str, Any]]" = None,
    ) -> Any:
        """Call stored function ``name`` and return its result converted as ``return_type``."""
        self._check_open()
        return_var = Variable(self, 1, _resolve_type(return_type))
        statement, bind_values = build_call_statement(name, return_var, parameters, keyword_parameters)
        self.execute(statement, bind_values)
        return return_var.get_value()

    def setinputsizes(self, *types: Any, **named_types: Any) -> None:
        """Predefine bind variable types by position or by name; None leaves a slot to inference."""
        self._check_open()
        if named_types:
            self.bind_vars_by_pos = None
            self.bind_vars_by_name = {
                name: None if var_type is None else Variable(self, self.bindarraysize, _resolve_type(var_type))
                for name, var_type in named_types.items()
            }
        else:
            self.bind_vars_by_name = None
            self.bind_vars_by_pos = [
                None if var_type is None else Variable(self, self.bindarraysize, _resolve_type(var_type))
                for var_type in types
            ]
        self.set_input_sizes = True

    def setoutputsize(self, size: int, column: int = -1) -> None:
        """Size LONG columns (all of them, or only the 1-based ``column``) defined by the next execute."""
        self.output_size = size
        self.output_size_column = column

    def var(self, value_or_type: Any, size: int = 0, array_size: "Optional[int]" = None) -> Variable:
        """Create a bind variable.

        Args:
            value_or_type: A :class:`VariableType`, a Python type, or a value (set into the variable).
            size: Element size; the type default when 0.
            array_size: Number of elements; ``bindarraysize`` when omitted.

        Returns:
            The new variable.
        """
        self._check_open()
        value: Any = None
        if isinstance(value_or_type, (VariableType, type)):
            var_type = _resolve_type(value_or_type)
            value_size = 0
            array_elements = 0
        else:
            value = value_or_type
            var_type, value_size, array_elements = registry.var_type_by_value(value)
        if not size:
            size = value_size if var_type.is_variable_length and value_size else var_type.size
        var = Variable(self, array_size or array_elements or self.bindarraysize, var_type, size)
        if array_elements:
            var.make_array()
        if value is not None:
            var.set_value(0, value)
        return var

    def arrayvar(self, var_type: Any, values: "Union[Sequence[Any], int]", size: int = 0) -> Variable:
        """Create a PL/SQL index-by array variable holding ``values`` (or sized for ``values`` elements)."""
        self._check_open()
        resolved = _resolve_type(var_type)
        if not size:
            size = resolved.size
        num_elements = values if isinstance(values, int) else len(values)
        var = Variable(self, num_elements, resolved, size)
        var.make_array()
        if not isinstance(values, int):
            var.set_array_value(list(values))
        return var

    def bindnames(self) -> "list[str]":
        """Names of the placeholders of the prepared statement, without duplicates."""
        self._check_open()
        if self.handle is None:
            raise StatementRequiredError
        names, found = self._bind_info(_BIND_INFO_INITIAL_SIZE)
        if found < 0:
            names, _ = self._bind_info(-found)
        return names

    def _bind_info(self, size: int) -> "tuple[list[str], int]":
        environment = self.environment
        status, found, names, duplicates = environment.library.stmt_get_bind_info(
            self.handle, environment.error_handle, size, 1
        )
        if status != oci.OCI_NO_DATA:
            environment.check_status(status, "cursor: bind info")
        if found < 0:
            return [], found
        return [environment.decode(name) for name, duplicate in zip(names, duplicates) if not duplicate], found

    # -- fetch --------------------------------------------------------------------------------------

    def _fixup_bound_cursor(self) -> None:
        if self.handle and self.statement_type < 0:
            self._get_statement_type()
            if self.statement_type == oci.OCI_STMT_SELECT:
                self._perform_define()
            self._set_row_count()

    def _verify_fetch(self) -> None:
        self._check_open()
        self._fixup_bound_cursor()
        if self.statement_type != oci.OCI_STMT_SELECT:
            msg = "not a query"
            raise InterfaceError(msg)

    def _defined_vars(self) -> "list[Variable]":
        if self.fetch_vars is None:
            msg = "query not executed"
            raise InterfaceError(msg)
        return self.fetch_vars

    def _internal_fetch(self, num_rows: int) -> None:
        for var in self._defined_vars():
            var.internal_fetch_num += 1
            var.type.handler.pre_fetch(var)
        environment = self.environment
        with self.connection.lock:
            status = environment.library.stmt_fetch(
                self.handle, environment.error_handle, num_rows, oci.OCI_FETCH_NEXT, oci.OCI_DEFAULT
            )
            try:
                environment.check_status(status, "cursor: fetch")
            except NoDataFoundError:
                pass
            row_count = environment.attr_get(
                self.handle, oci.OCI_HTYPE_STMT, oci.OCI_ATTR_ROW_COUNT, ub4, "cursor: fetched row count"
            )
        self.actual_rows = row_count - self.rowcount
        self.row_num = 0

    def _more_rows(self) -> bool:
        if self.row_num >= self.actual_rows:
            if self.actual_rows < 0 or self.actual_rows == self.fetch_array_size:
                self._internal_fetch(self.fetch_array_size)
            if self.row_num >= self.actual_rows:
                return False
        return True

    def _create_row(self) -> "tuple[Any, ...]":
        row = tuple(var.get_value(self.row_num) for var in self._defined_vars())
        self.row_num += 1
        self.rowcount += 1
        return row

    def _multi_fetch(self, limit: "Optional[int]") -> "list[tuple[Any, ...]]":
        rows: list[tuple[Any, ...]] = []
        while limit is None or len(rows) < limit:
            if not self._more_rows():
                break
            rows.append(self._create_row())
        return rows

    def fetchone(self) -> "Optional[tuple[Any, ...]]":
        self._verify_fetch()
        if not self._more_rows():
            return None
        return self._create_row()

    def fetchmany(self, size: int = -1) -> "list[tuple[Any, ...]]":
        """Fetch up to ``size`` rows; ``arraysize`` rows when ``size`` is negative."""
        if size < 0:
            size = self.arraysize
        self._verify_fetch()
        return self._multi_fetch(size)

    def fetchall(self) -> "list[tuple[Any, ...]]":
        self._verify_fetch()
        return self._multi_fetch(None)

    def fetchone_into(self, *refs: "Ref[Any]") -> bool:
        """Fetch the next row into ``refs``, one per column.

        Returns:
            False when there are no more rows.
        """
        self._verify_fetch()
        if not self._more_rows():
            return False
        fetch_vars = self._defined_vars()
        if len(refs) != len(fetch_vars):
            msg = f"column count mismatch: got {len(refs)}, have {len(fetch_vars)}"
            raise InterfaceError(msg)
        for ref, var in zip(refs, fetch_vars):
            var.get_value_into(ref, self.row_num)
        self.row_num += 1
        self.rowcount += 1
        return True

    def fetch_raw(self, num_rows: "Optional[int]" = None) -> int:
        """Fetch the next batch into the fetch variables without converting it.

        Returns:
            The number of rows fetched; read them from ``fetch_vars``.
        """
        self._verify_fetch()
        if num_rows is None:
            num_rows = self.fetch_array_size
        if num_rows > self.fetch_array_size:
            raise FetchSizeError
        if 0 < self.actual_rows < self.fetch_array_size:
            return 0
        self._internal_fetch(num_rows)
        self.rowcount += self.actual_rows
        fetched = self.actual_rows
        if self.actual_rows == num_rows:
            self.actual_rows = -1
        return fetched

    # -- description --------------------------------------------------------------------------------

    @property
    def description(self) -> "Optional[list[ColumnDescription]]":
        """Select-list description of the current query, None for other statements."""
        self._check_open()
        self._fixup_bound_cursor()
        if self.statement_type != oci.OCI_STMT_SELECT:
            return None
        num_items = self.environment.attr_get(
            self.handle, oci.OCI_HTYPE_STMT, oci.OCI_ATTR_PARAM_COUNT, ub4, "cursor: description"
        )
        return [self._item_description(pos) for pos in range(1, num_items + 1)]

    def _item_description(self, position: int) -> ColumnDescription:
        environment = self.environment
        status, param = environment.library.param_get(self.handle, oci.OCI_HTYPE_STMT, environment.error_handle, position)
        environment.check_status(status, "cursor: description parameter")
        try:
            return self._item_description_helper(param)
        finally:
            environment.library.descriptor_free(param, oci.OCI_DTYPE_PARAM)

    def _item_description_helper(self, param: Any) -> ColumnDescription:
        environment = self.environment
        var_type = param_var_type(param, environment)
        internal_size = environment.attr_get(
            param, oci.OCI_DTYPE_PARAM, oci.OCI_ATTR_DATA_SIZE, ub2, "description: internal size"
        )
        char_size = environment.attr_get(
            param, oci.OCI_DTYPE_PARAM, oci.OCI_ATTR_CHAR_SIZE, ub2, "description: character size"
        )
        name = environment.decode(
            environment.attr_get_text(param, oci.OCI_DTYPE_PARAM, oci.OCI_ATTR_NAME, "description: name")
        )
        precision = scale = 0
        if var_type in _NUMBER_TYPES:
            scale = environment.attr_get(param, oci.OCI_DTYPE_PARAM, oci.OCI_ATTR_SCALE, sb1, "description: scale")
            precision = environment.attr_get(
                param, oci.OCI_DTYPE_PARAM, oci.OCI_ATTR_PRECISION, sb2, "description: precision"
            )
        null_ok = environment.attr_get(param, oci.OCI_DTYPE_PARAM, oci.OCI_ATTR_IS_NULL, ub1, "description: nullable")

        if var_type in _STRING_TYPES:
            display_size = char_size
        elif var_type in _BINARY_TYPES:
            display_size = internal_size
        elif var_type in _NUMBER_TYPES:
            if precision > 0:
                display_size = precision + 1
                if scale > 0:
                    display_size += scale + 1
            else:
                display_size = UNLIMITED_NUMBER_DISPLAY_SIZE
        elif var_type is registry.DATETIME:
            display_size = DATE_DISPLAY_SIZE
        else:
            display_size = -1
        return ColumnDescription(name, var_type, display_size, internal_size, precision, scale, bool(null_ok))


def _tag_bytes(tag: "Union[str, bytes]") -> bytes:
    return tag.encode("utf-8") if isinstance(tag, str) else tag


def _resolve_type(var_type: Any) -> VariableType:
    if isinstance(var_type, VariableType):
        return var_type
    if isinstance(var_type, type):
        return registry.var_type_by_python_type(var_type)
    if isinstance(var_type, str):
        return registry.by_name(var_type)
    msg = f"expecting a variable type, got {var_type!r}"
    raise InterfaceError(msg)
