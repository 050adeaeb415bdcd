"""Number handlers.

``FLOAT``, the integer types, ``LONG_INTEGER`` and ``NUMBER_AS_STRING`` keep the
packed ``OCINumber`` in the byte buffer and convert through the OCI number
functions. ``NATIVE_FLOAT`` and ``BOOLEAN`` use the float64 and int64 vectors.
"""

import decimal
from typing import TYPE_CHECKING, Any

from ocidb.exceptions import TypeMismatchError
from ocidb.variables.base import VariableHandler

if TYPE_CHECKING:
    from ocidb.environment import Environment
    from ocidb.variables.base import VariableType
    from ocidb.variables.variable import Variable

__all__ = (
    "BooleanHandler",
    "FloatHandler",
    "IntegerHandler",
    "LongIntegerHandler",
    "NativeFloatHandler",
    "NumberAsStringHandler",
    "number_format_mask",
)

INT32_PRECISION = 10
INT64_PRECISION = 19
UNSPECIFIED_SCALE = -127
_INT64_MIN = -(2**63)
_INT64_MAX = 2**63 - 1
_TEXT_BUFFER_SIZE = 128


def number_format_mask(text: str) -> bytes:
    """Build the ``OCINumberFromText`` format mask for a plain decimal string.

    One ``9`` per digit and ``.`` at the decimal point; the sign takes no position.

    Args:
        text: Decimal text such as ``"-123.45"``.

    Returns:
        The mask, e.g. ``b"999.99"``.
    """
    mask = "".join("." if char == "." else "9" for char in text if char.isdigit() or char == ".")
    return mask.encode("ascii") or b"9"


def _as_text(value: Any) -> str:
    try:
        number = decimal.Decimal(value)
    except decimal.InvalidOperation as exc:
        msg = f"expecting numeric data, got {value!r}"
        raise TypeMismatchError(msg) from exc
    if not number.is_finite():
        msg = f"cannot bind non-finite number {value!r}"
        raise TypeMismatchError(msg)
    return format(number, "f")


def set_number(var: "Variable", pos: int, value: Any) -> None:
    """Pack ``value`` into the ``OCINumber`` at slot ``pos``."""
    environment = var.environment
    library = environment.library
    offset = var.offset(pos)
    if isinstance(value, bool):
        status = library.number_from_int(environment.error_handle, int(value), var.data, offset)
    elif isinstance(value, int) and _INT64_MIN <= value <= _INT64_MAX:
        status = library.number_from_int(environment.error_handle, value, var.data, offset)
    elif isinstance(value, float):
        status = library.number_from_real(environment.error_handle, value, var.data, offset)
    elif isinstance(value, (int, decimal.Decimal, str)):
        text = _as_text(value)
        status = library.number_from_text(
            environment.error_handle,
            text.encode("ascii"),
            number_format_mask(text),
            environment.nls_numeric_characters,
            var.data,
            offset,
        )
    else:
        msg = f"expecting numeric data, got {type(value).__name__}"
        raise TypeMismatchError(msg)
    environment.check_status(status, "number: set value")


def number_text(var: "Variable", pos: int) -> str:
    """Render the ``OCINumber`` at slot ``pos`` with the ``TM9`` format."""
    environment = var.environment
    status, text = environment.library.number_to_text(
        environment.error_handle,
        var.data,
        var.offset(pos),
        environment.number_to_string_format,
        environment.nls_numeric_characters,
        _TEXT_BUFFER_SIZE,
    )
    environment.check_status(status, "number: to text")
    return text.decode("ascii").strip()


class FloatHandler(VariableHandler):
    zero_value = 0.0

    def pre_define(self, var_type: "VariableType", param: Any, environment: "Environment") -> "VariableType":
        """Downgrade integral columns to an integer type chosen by precision."""
        from ocidb.variables import registry
        from ocidb.variables.variable import read_scale_precision

        scale, precision = read_scale_precision(param, environment)
        if precision <= 0 or scale not in (0, UNSPECIFIED_SCALE):
            return var_type
        if precision < INT32_PRECISION:
            return registry.INT32
        if precision < INT64_PRECISION:
            return registry.INT64
        return registry.LONG_INTEGER

    def set_value(self, var: "Variable", pos: int, value: Any) -> None:
        set_number(var, pos, value)

    def get_value(self, var: "Variable", pos: int) -> Any:
        environment = var.environment
        status, value = environment.library.number_to_real(environment.error_handle, var.data, var.offset(pos))
        environment.check_status(status, "number: to real")
        return value


class IntegerHandler(VariableHandler):
    zero_value = 0

    def set_value(self, var: "Variable", pos: int, value: Any) -> None:
        if not isinstance(value, (int, decimal.Decimal, str)):
            msg = f"expecting integer data, got {type(value).__name__}"
            raise TypeMismatchError(msg)
        set_number(var, pos, value)

    def get_value(self, var: "Variable", pos: int) -> Any:
        environment = var.environment
        status, value = environment.library.number_to_int(environment.error_handle, var.data, var.offset(pos))
        environment.check_status(status, "number: to int")
        return value


class LongIntegerHandler(IntegerHandler):
    """Integers beyond 64 bits, converted through their ``TM9`` text."""

    def get_value(self, var: "Variable", pos: int) -> Any:
        return int(decimal.Decimal(number_text(var, pos)))


class NumberAsStringHandler(VariableHandler):
    zero_value = ""

    def set_value(self, var: "Variable", pos: int, value: Any) -> None:
        set_number(var, pos, value)

    def get_value(self, var: "Variable", pos: int) -> Any:
        return number_text(var, pos)


class NativeFloatHandler(VariableHandler):
    zero_value = 0.0

    def set_value(self, var: "Variable", pos: int, value: Any) -> None:
        if isinstance(value, bool) or not isinstance(value, (int, float, decimal.Decimal)):
            msg = f"expecting float data, got {type(value).__name__}"
            raise TypeMismatchError(msg)
        var.data[pos] = float(value)

    def get_value(self, var: "Variable", pos: int) -> Any:
        return var.data[pos]


class BooleanHandler(VariableHandler):
    zero_value = False

    def set_value(self, var: "Variable", pos: int, value: Any) -> None:
        if not isinstance(value, (bool, int)):
            msg = f"expecting boolean data, got {type(value).__name__}"
            raise TypeMismatchError(msg)
        var.data[pos] = 1 if value else 0

    def get_value(self, var: "Variable", pos: int) -> Any:
        return var.data[pos] != 0
