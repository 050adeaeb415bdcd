"""Variable type descriptors, the per-type handler interface and the writeback cell."""

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Generic, Optional, Protocol, TypeVar, runtime_checkable

from ocidb.oci import constants as oci

if TYPE_CHECKING:
    from ocidb.cursor import Cursor
    from ocidb.environment import Environment
    from ocidb.variables.variable import Variable

__all__ = ("STORAGE_BYTES", "STORAGE_FLOAT", "STORAGE_INT", "OracleTyped", "Ref", "VariableHandler", "VariableType")

STORAGE_BYTES = "bytes"
STORAGE_INT = "int"
STORAGE_FLOAT = "float"

T = TypeVar("T")


class VariableHandler:
    """Operations a variable type performs on its buffers.

    Every hook has a no-op default except ``get_value`` and ``set_value``.
    """

    zero_value: Any = None

    def initialize(self, var: "Variable", cursor: "Cursor") -> None:
        return None

    def finalize(self, var: "Variable") -> None:
        return None

    def pre_define(self, var_type: "VariableType", param: Any, environment: "Environment") -> "VariableType":
        return var_type

    def post_define(self, var: "Variable", param: Any) -> None:
        return None

    def pre_fetch(self, var: "Variable") -> None:
        return None

    def is_null(self, var: "Variable", pos: int) -> bool:
        return bool(var.indicator[pos] == oci.OCI_IND_NULL)

    def get_value(self, var: "Variable", pos: int) -> Any:
        raise NotImplementedError

    def set_value(self, var: "Variable", pos: int, value: Any) -> None:
        raise NotImplementedError

    def get_buffer_size(self, var: "Variable") -> "Optional[int]":
        """Bytes per element, or None to use the variable size."""
        return None


@dataclass(frozen=True, eq=False)
class VariableType:
    """Immutable description of one variable type."""

    name: str
    oracle_type: int
    size: int
    handler: VariableHandler
    charset_form: int = oci.SQLCS_IMPLICIT
    is_char_data: bool = False
    is_variable_length: bool = False
    can_be_copied: bool = True
    can_be_in_array: bool = True
    storage: str = STORAGE_BYTES

    def __repr__(self) -> str:
        return f"<VariableType {self.name}>"


class Ref(Generic[T]):
    """Mutable cell receiving an OUT bind or fetched value.

    Args:
        value: Initial value, also used to infer the variable type.
        var_type: Explicit variable type when ``value`` is None.
        zero_on_null: Store the type's zero value instead of None for nulls.
    """

    __slots__ = ("value", "var_type", "zero_on_null")

    def __init__(
        self, value: "Optional[T]" = None, var_type: "Optional[VariableType]" = None, zero_on_null: bool = False
    ) -> None:
        self.value = value
        self.var_type = var_type
        self.zero_on_null = zero_on_null

    def __repr__(self) -> str:
        return f"Ref({self.value!r})"


@runtime_checkable
class OracleTyped(Protocol):
    """Values that declare the variable type they bind as."""

    def oracle_var_type(self) -> VariableType: ...
