"""Catalog of variable types and the rules choosing one for a value or a column."""

import datetime
import decimal
from typing import Any

from ocidb.environment import MAX_BINARY_BYTES, MAX_STRING_CHARS
from ocidb.exceptions import ListIsEmptyError, NotSupportedError, TypeMismatchError
from ocidb.oci import constants as oci
from ocidb.oci.types import OCIDATE_SIZE, POINTER_SIZE
from ocidb.variables.base import STORAGE_FLOAT, STORAGE_INT, OracleTyped, Ref, VariableType
from ocidb.variables.cursor import CursorHandler
from ocidb.variables.dates import DateTimeHandler, IntervalHandler
from ocidb.variables.lob import LobHandler
from ocidb.variables.long import LongHandler
from ocidb.variables.number import (
    BooleanHandler,
    FloatHandler,
    IntegerHandler,
    LongIntegerHandler,
    NativeFloatHandler,
    NumberAsStringHandler,
)
from ocidb.variables.string import BinaryHandler, StringHandler

__all__ = (
    "BFILE",
    "BINARY",
    "BLOB",
    "BOOLEAN",
    "CLOB",
    "CURSOR",
    "DATETIME",
    "FIXED_CHAR",
    "FLOAT",
    "INT32",
    "INT64",
    "INTERVAL",
    "LONG_BINARY",
    "LONG_INTEGER",
    "LONG_STRING",
    "NATIVE_FLOAT",
    "NCLOB",
    "NUMBER_AS_STRING",
    "ROWID",
    "STRING",
    "all_types",
    "by_name",
    "var_type_by_oracle",
    "var_type_by_python_type",
    "var_type_by_value",
)

LONG_VALUE_SIZE = 128 * 1024

_INT32_MIN = -(2**31)
_INT32_MAX = 2**31 - 1
_INT64_MIN = -(2**63)
_INT64_MAX = 2**63 - 1

_string_handler = StringHandler()
_number_size = oci.OCI_NUMBER_SIZE

STRING = VariableType(
    "STRING", oci.SQLT_CHR, MAX_STRING_CHARS, _string_handler, is_char_data=True, is_variable_length=True
)
FIXED_CHAR = VariableType(
    "FIXED_CHAR", oci.SQLT_AFC, 2000, _string_handler, is_char_data=True, is_variable_length=True
)
ROWID = VariableType("ROWID", oci.SQLT_CHR, 18, _string_handler, is_char_data=True, is_variable_length=True)
BINARY = VariableType("BINARY", oci.SQLT_BIN, MAX_BINARY_BYTES, BinaryHandler(), is_variable_length=True)
LONG_STRING = VariableType(
    "LONG_STRING",
    oci.SQLT_LVC,
    LONG_VALUE_SIZE,
    LongHandler(is_char_data=True),
    is_char_data=True,
    is_variable_length=True,
    can_be_in_array=False,
)
LONG_BINARY = VariableType(
    "LONG_BINARY",
    oci.SQLT_LVB,
    LONG_VALUE_SIZE,
    LongHandler(is_char_data=False),
    is_variable_length=True,
    can_be_in_array=False,
)
FLOAT = VariableType("FLOAT", oci.SQLT_VNU, _number_size, FloatHandler())
NATIVE_FLOAT = VariableType("NATIVE_FLOAT", oci.SQLT_BDOUBLE, 8, NativeFloatHandler(), storage=STORAGE_FLOAT)
INT32 = VariableType("INT32", oci.SQLT_VNU, _number_size, IntegerHandler())
INT64 = VariableType("INT64", oci.SQLT_VNU, _number_size, IntegerHandler())
LONG_INTEGER = VariableType("LONG_INTEGER", oci.SQLT_VNU, _number_size, LongIntegerHandler())
NUMBER_AS_STRING = VariableType("NUMBER_AS_STRING", oci.SQLT_VNU, _number_size, NumberAsStringHandler())
BOOLEAN = VariableType("BOOLEAN", oci.SQLT_INT, 8, BooleanHandler(), storage=STORAGE_INT)
DATETIME = VariableType("DATETIME", oci.SQLT_ODT, OCIDATE_SIZE, DateTimeHandler())
INTERVAL = VariableType(
    "INTERVAL", oci.SQLT_INTERVAL_DS, POINTER_SIZE, IntervalHandler(), can_be_copied=False
)
CLOB = VariableType(
    "CLOB",
    oci.SQLT_CLOB,
    POINTER_SIZE,
    LobHandler(temporary_type=oci.OCI_TEMP_CLOB),
    is_char_data=True,
    can_be_copied=False,
    can_be_in_array=False,
)
NCLOB = VariableType(
    "NCLOB",
    oci.SQLT_CLOB,
    POINTER_SIZE,
    LobHandler(temporary_type=oci.OCI_TEMP_CLOB),
    charset_form=oci.SQLCS_NCHAR,
    is_char_data=True,
    can_be_copied=False,
    can_be_in_array=False,
)
BLOB = VariableType(
    "BLOB",
    oci.SQLT_BLOB,
    POINTER_SIZE,
    LobHandler(temporary_type=oci.OCI_TEMP_BLOB),
    can_be_copied=False,
    can_be_in_array=False,
)
BFILE = VariableType(
    "BFILE",
    oci.SQLT_BFILE,
    POINTER_SIZE,
    LobHandler(descriptor_type=oci.OCI_DTYPE_FILE),
    can_be_copied=False,
    can_be_in_array=False,
)
CURSOR = VariableType(
    "CURSOR", oci.SQLT_RSET, POINTER_SIZE, CursorHandler(), can_be_copied=False, can_be_in_array=False
)

_TYPES: "dict[str, VariableType]" = {
    var_type.name: var_type
    for var_type in (
        STRING,
        FIXED_CHAR,
        ROWID,
        BINARY,
        LONG_STRING,
        LONG_BINARY,
        FLOAT,
        NATIVE_FLOAT,
        INT32,
        INT64,
        LONG_INTEGER,
        NUMBER_AS_STRING,
        BOOLEAN,
        DATETIME,
        INTERVAL,
        CLOB,
        NCLOB,
        BLOB,
        BFILE,
        CURSOR,
    )
}


def by_name(name: str) -> VariableType:
    """Look up a registered type by name (``"STRING"``, ``"CLOB"``, ...)."""
    try:
        return _TYPES[name.upper()]
    except KeyError:
        msg = f"unknown variable type {name!r}"
        raise TypeMismatchError(msg) from None


def all_types() -> "tuple[VariableType, ...]":
    return tuple(_TYPES.values())


def var_type_by_oracle(data_type: int, charset_form: int = oci.SQLCS_IMPLICIT) -> VariableType:
    """Return the type used to define a column of OCI ``data_type``.

    Raises:
        NotSupportedError: The column type has no variable type.
    """
    if data_type == oci.SQLT_CLOB:
        return NCLOB if charset_form == oci.SQLCS_NCHAR else CLOB
    var_type = _ORACLE_TYPES.get(data_type)
    if var_type is None:
        msg = f"Oracle type {data_type} not supported"
        raise NotSupportedError(0, msg, "var_type_by_oracle")
    return var_type


_ORACLE_TYPES: "dict[int, VariableType]" = {
    oci.SQLT_LNG: LONG_STRING,
    oci.SQLT_AFC: FIXED_CHAR,
    oci.SQLT_CHR: STRING,
    oci.SQLT_RDD: ROWID,
    oci.SQLT_BIN: BINARY,
    oci.SQLT_LBI: LONG_BINARY,
    oci.SQLT_NUM: FLOAT,
    oci.SQLT_VNU: FLOAT,
    oci.SQLT_IBFLOAT: NATIVE_FLOAT,
    oci.SQLT_IBDOUBLE: NATIVE_FLOAT,
    oci.SQLT_BFLOAT: NATIVE_FLOAT,
    oci.SQLT_BDOUBLE: NATIVE_FLOAT,
    oci.SQLT_DAT: DATETIME,
    oci.SQLT_ODT: DATETIME,
    oci.SQLT_DATE: DATETIME,
    oci.SQLT_TIMESTAMP: DATETIME,
    oci.SQLT_TIMESTAMP_TZ: DATETIME,
    oci.SQLT_TIMESTAMP_LTZ: DATETIME,
    oci.SQLT_INTERVAL_DS: INTERVAL,
    oci.SQLT_BLOB: BLOB,
    oci.SQLT_BFILE: BFILE,
    oci.SQLT_RSET: CURSOR,
}


def _element_size(var_type: VariableType, value: Any) -> int:
    if var_type in (STRING, LONG_STRING):
        return len(value)
    if var_type in (BINARY, LONG_BINARY):
        return len(bytes(value))
    return var_type.size


def var_type_by_value(value: Any) -> "tuple[VariableType, int, int]":
    """Choose the variable type for ``value``.

    Args:
        value: A bind value, a :class:`Ref`, a ``Variable`` or ``VariableType``, or a list for arrays.

    Raises:
        ListIsEmptyError: ``value`` is an empty list.
        TypeMismatchError: No variable type fits ``value``.

    Returns:
        ``(variable type, element size, number of elements)``; the element count is 0 for scalars.
    """
    from ocidb.cursor import Cursor
    from ocidb.variables.variable import Variable

    if value is None:
        return STRING, 1, 0
    if isinstance(value, Ref):
        if value.var_type is not None:
            return value.var_type, value.var_type.size, 0
        if value.value is None:
            return STRING, STRING.size, 0
        return var_type_by_value(value.value)
    if isinstance(value, Variable):
        return value.type, value.size, value.allocated_elements if value.is_array else 0
    if isinstance(value, VariableType):
        return value, value.size, 0
    if isinstance(value, str):
        if len(value) > MAX_STRING_CHARS:
            return LONG_STRING, len(value), 0
        return STRING, len(value), 0
    if isinstance(value, bool):
        return BOOLEAN, BOOLEAN.size, 0
    if isinstance(value, int):
        if _INT32_MIN <= value <= _INT32_MAX:
            return INT32, INT32.size, 0
        if _INT64_MIN <= value <= _INT64_MAX:
            return INT64, INT64.size, 0
        return LONG_INTEGER, LONG_INTEGER.size, 0
    if isinstance(value, float):
        return FLOAT, FLOAT.size, 0
    if isinstance(value, decimal.Decimal):
        return NUMBER_AS_STRING, NUMBER_AS_STRING.size, 0
    if isinstance(value, (datetime.datetime, datetime.date)):
        return DATETIME, DATETIME.size, 0
    if isinstance(value, datetime.timedelta):
        return INTERVAL, INTERVAL.size, 0
    if isinstance(value, (bytes, bytearray, memoryview)):
        size = len(bytes(value))
        if size > MAX_BINARY_BYTES:
            return LONG_BINARY, size, 0
        return BINARY, size, 0
    if isinstance(value, (list, tuple)):
        return _array_type(value)
    if isinstance(value, Cursor):
        return CURSOR, CURSOR.size, 0
    if isinstance(value, OracleTyped):
        var_type = value.oracle_var_type()
        return var_type, var_type.size, 0
    msg = f"unhandled type {type(value).__name__}"
    raise TypeMismatchError(msg)


def _array_type(values: "list[Any] | tuple[Any, ...]") -> "tuple[VariableType, int, int]":
    if not values:
        raise ListIsEmptyError
    var_type: "VariableType | None" = None
    size = 0
    for element in values:
        if element is None:
            continue
        element_type, _, _ = var_type_by_value(element)
        if var_type is None or _wider(element_type, var_type):
            var_type = element_type
        size = max(size, _element_size(element_type, element))
    if var_type is None:
        return STRING, 1, len(values)
    if var_type in (STRING, BINARY):
        size += 1
    else:
        size = var_type.size
    return var_type, size, len(values)


_NUMBER_WIDTH = {INT32: 0, INT64: 1, LONG_INTEGER: 2, FLOAT: 3}


def _wider(candidate: VariableType, current: VariableType) -> bool:
    if candidate in _NUMBER_WIDTH and current in _NUMBER_WIDTH:
        return _NUMBER_WIDTH[candidate] > _NUMBER_WIDTH[current]
    return False


_PYTHON_TYPES: "tuple[tuple[type, VariableType], ...]" = (
    (bool, BOOLEAN),
    (int, INT64),
    (float, FLOAT),
    (str, STRING),
    (bytes, BINARY),
    (decimal.Decimal, NUMBER_AS_STRING),
    (datetime.datetime, DATETIME),
    (datetime.date, DATETIME),
    (datetime.timedelta, INTERVAL),
)


def var_type_by_python_type(python_type: type) -> VariableType:
    """Return the variable type used for values of ``python_type``.

    Raises:
        TypeMismatchError: No variable type handles ``python_type``.
    """
    for candidate, var_type in _PYTHON_TYPES:
        if issubclass(python_type, candidate):
            return var_type
    msg = f"unhandled type {python_type.__name__}"
    raise TypeMismatchError(msg)
