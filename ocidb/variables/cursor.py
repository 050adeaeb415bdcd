"""REF CURSOR handler: each slot holds the statement handle of a child cursor."""

from typing import TYPE_CHECKING, Any

from ocidb.exceptions import TypeMismatchError
from ocidb.variables.base import VariableHandler

if TYPE_CHECKING:
    from ocidb.cursor import Cursor
    from ocidb.variables.variable import Variable

__all__ = ("CursorHandler",)


class CursorHandler(VariableHandler):
    def initialize(self, var: "Variable", cursor: "Cursor") -> None:
        pointers = var.pointers()
        for i in range(var.allocated_elements):
            child = cursor.connection.cursor()
            child.allocate_handle()
            var.cursors.append(child)
            pointers[i] = child.handle.value

    def finalize(self, var: "Variable") -> None:
        for child in var.cursors:
            child.free_handle()
        var.cursors = []

    def set_value(self, var: "Variable", pos: int, value: Any) -> None:
        from ocidb.cursor import Cursor

        if not isinstance(value, Cursor):
            msg = f"expecting cursor, got {type(value).__name__}"
            raise TypeMismatchError(msg)
        if not value.is_owned or value.handle is None:
            value.free_handle()
            value.allocate_handle()
        previous = var.cursors[pos]
        if previous is not value:
            previous.close()
        var.pointers()[pos] = value.handle.value
        var.cursors[pos] = value
        value.statement_type = -1

    def get_value(self, var: "Variable", pos: int) -> Any:
        child = var.cursors[pos]
        child.statement_type = -1
        return child
