"""Connect string helpers."""

__all__ = ("make_dsn", "split_dsn")

_SID_DESCRIPTOR = (
    "(DESCRIPTION=(ADDRESS_LIST=(ADDRESS=(PROTOCOL=TCP)(HOST={host})(PORT={port})))(CONNECT_DATA=(SID={name})))"
)
_SERVICE_DESCRIPTOR = (
    "(DESCRIPTION=(ADDRESS_LIST=(ADDRESS=(PROTOCOL=TCP)(HOST={host})(PORT={port})))"
    "(CONNECT_DATA=(SERVICE_NAME={name})))"
)


def make_dsn(host: str, port: int, sid: str = "", service_name: str = "") -> str:
    """Build a TNS descriptor for ``host:port``.

    The SID form is used when ``sid`` is given, the SERVICE_NAME form otherwise.
    """
    if sid:
        return _SID_DESCRIPTOR.format(host=host, port=port, name=sid)
    return _SERVICE_DESCRIPTOR.format(host=host, port=port, name=service_name)


def split_dsn(dsn: str) -> "tuple[str, str, str]":
    """Split ``user/password@sid`` into its parts.

    The split is on the last ``@`` and then on the first ``/`` of the user
    part, so passwords may contain ``/``. Missing parts are empty strings.

    Args:
        dsn: Connect string.

    Returns:
        ``(username, password, sid)``.
    """
    if "@" in dsn:
        username, _, sid = dsn.rpartition("@")
    else:
        username, sid = dsn, ""
    username, _, password = username.partition("/")
    return username, password, sid
