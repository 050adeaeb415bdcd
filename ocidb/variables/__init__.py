from ocidb.variables import registry
from ocidb.variables.base import OracleTyped, Ref, VariableHandler, VariableType
from ocidb.variables.registry import (
    BFILE,
    BINARY,
    BLOB,
    BOOLEAN,
    CLOB,
    CURSOR,
    DATETIME,
    FIXED_CHAR,
    FLOAT,
    INT32,
    INT64,
    INTERVAL,
    LONG_BINARY,
    LONG_INTEGER,
    LONG_STRING,
    NATIVE_FLOAT,
    NCLOB,
    NUMBER_AS_STRING,
    ROWID,
    STRING,
    var_type_by_oracle,
    var_type_by_value,
)
from ocidb.variables.variable import Variable, define_variable

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
    "OracleTyped",
    "Ref",
    "Variable",
    "VariableHandler",
    "VariableType",
    "define_variable",
    "registry",
    "var_type_by_oracle",
    "var_type_by_value",
)
