"""Statement text helpers: bind-name scanning, call building and statement tags."""

from typing import Any, NamedTuple, Optional

from ocidb.oci import constants as oci

__all__ = (
    "BindDiagnostic",
    "build_call_statement",
    "count_statement_vars",
    "diagnose_missing_binds",
    "find_statement_vars",
    "is_ddl",
    "statement_tag",
    "uniquify_statement_vars",
)

_FNV64_OFFSET = 0xCBF29CE484222325
_FNV64_PRIME = 0x100000001B3
_FNV64_MASK = 0xFFFFFFFFFFFFFFFF

_DDL_TYPES = frozenset({oci.OCI_STMT_CREATE, oci.OCI_STMT_DROP, oci.OCI_STMT_ALTER})

UNIQUE_SEPARATOR = "##"


def _is_name_char(char: str) -> bool:
    return char.isascii() and (char.isalnum() or char in "_#")


def _scan(sql: str) -> "list[tuple[str, int]]":
    """Return ``(name, offset of the colon)`` for every ``:name`` token in order."""
    tokens: list[tuple[str, int]] = []
    start = -1
    for i, char in enumerate(sql):
        if start < 0:
            if char == ":":
                start = i
            continue
        if _is_name_char(char):
            continue
        if i > start + 1:
            tokens.append((sql[start + 1 : i], start))
        start = i if char == ":" else -1
    if 0 <= start < len(sql) - 1:
        tokens.append((sql[start + 1 :], start))
    return tokens


def find_statement_vars(sql: str) -> "dict[str, list[int]]":
    """Map every bind name in ``sql`` to the offsets of its occurrences.

    Offsets point at the colon and increase strictly per name.

    Args:
        sql: Statement text.

    Returns:
        Bind names in order of first appearance.
    """
    found: dict[str, list[int]] = {}
    for name, offset in _scan(sql):
        found.setdefault(name, []).append(offset)
    return found


def count_statement_vars(sql: str) -> int:
    return len(find_statement_vars(sql))


def uniquify_statement_vars(sql: str) -> str:
    """Rename repeated bind names: each use of ``:x`` becomes ``:x##1``, ``:x##2``, ...

    Names used once are left unchanged.
    """
    found = find_statement_vars(sql)
    renames: dict[int, str] = {}
    for name, offsets in found.items():
        if len(offsets) < 2:  # noqa: PLR2004
            continue
        for number, offset in enumerate(offsets, start=1):
            renames[offset] = f"{name}{UNIQUE_SEPARATOR}{number}"
    if not renames:
        return sql
    chunks: list[str] = []
    position = 0
    for name, offset in _scan(sql):
        if offset not in renames:
            continue
        chunks.append(sql[position : offset + 1])
        chunks.append(renames[offset])
        position = offset + 1 + len(name)
    chunks.append(sql[position:])
    return "".join(chunks)


class BindDiagnostic(NamedTuple):
    missing: "list[str]"
    unnecessary: "list[str]"
    duplicated: "list[str]"

    @property
    def text(self) -> str:
        return (
            f"missing: {', '.join(self.missing) or '-'}; "
            f"unnecessary: {', '.join(self.unnecessary) or '-'}; "
            f"declared more than once: {', '.join(self.duplicated) or '-'}"
        )


def diagnose_missing_binds(sql: str, bound_names: "list[str]") -> BindDiagnostic:
    """Compare the placeholders of ``sql`` with the names actually bound.

    Names compare case-insensitively, the way the server resolves them.
    """
    found = find_statement_vars(sql)
    declared = {name.upper(): name for name in found}
    bound = {name.lstrip(":").upper(): name for name in bound_names}
    return BindDiagnostic(
        missing=[declared[key] for key in declared if key not in bound],
        unnecessary=[bound[key] for key in bound if key not in declared],
        duplicated=[name for name, offsets in found.items() if len(offsets) > 1],
    )


def build_call_statement(
    name: str,
    return_value: Any = None,
    parameters: "Optional[list[Any] | tuple[Any, ...]]" = None,
    keyword_parameters: "Optional[dict[str, Any]]" = None,
) -> "tuple[str, list[Any]]":
    """Build the anonymous block calling procedure or function ``name``.

    Boolean arguments are compared with ``= 1`` since they bind as numbers.

    Args:
        name: Procedure or function name.
        return_value: Variable receiving the function result, None for procedures.
        parameters: Positional arguments.
        keyword_parameters: Keyword arguments, passed as ``key=>:n``.

    Returns:
        The statement and the parameters in placeholder order.
    """
    bind_values: list[Any] = []
    prefix = ""
    if return_value is not None:
        bind_values.append(return_value)
        prefix = ":1 := "
    arguments: list[str] = []
    for value in parameters or ():
        bind_values.append(value)
        arguments.append(f":{len(bind_values)}{' = 1' if isinstance(value, bool) else ''}")
    for key, value in (keyword_parameters or {}).items():
        bind_values.append(value)
        arguments.append(f"{key}=>:{len(bind_values)}{' = 1' if isinstance(value, bool) else ''}")
    return f"begin {prefix}{name}({', '.join(arguments)}); end;", bind_values


def statement_tag(sql: "str | bytes") -> bytes:
    """Derive the statement cache tag: the FNV-1a 64-bit hash of the text, as hex."""
    data = sql.encode("utf-8") if isinstance(sql, str) else sql
    value = _FNV64_OFFSET
    for byte in data:
        value ^= byte
        value = (value * _FNV64_PRIME) & _FNV64_MASK
    return f"{value:016x}".encode("ascii")


def is_ddl(statement_type: int) -> bool:
    return statement_type in _DDL_TYPES
