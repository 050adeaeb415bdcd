"""DATE and INTERVAL DAY TO SECOND handlers."""

import datetime
from typing import TYPE_CHECKING, Any

from ocidb.exceptions import TypeMismatchError
from ocidb.oci import constants as oci
from ocidb.oci.types import OCIDate
from ocidb.variables.base import VariableHandler

if TYPE_CHECKING:
    from ocidb.cursor import Cursor
    from ocidb.variables.variable import Variable

__all__ = ("DateTimeHandler", "IntervalHandler")

_SECONDS_PER_HOUR = 3600
_SECONDS_PER_MINUTE = 60


class DateTimeHandler(VariableHandler):
    """``OCIDate`` values.

    DATE columns carry no time zone: aware datetimes are converted to local
    wall-clock time before they are stored, and fetched values are always
    naive. Microseconds are dropped.
    """

    zero_value = datetime.datetime.min

    def set_value(self, var: "Variable", pos: int, value: Any) -> None:
        if isinstance(value, datetime.datetime):
            if value.tzinfo is not None:
                value = value.astimezone().replace(tzinfo=None)
        elif isinstance(value, datetime.date):
            value = datetime.datetime(value.year, value.month, value.day)
        else:
            msg = f"requires datetime.datetime, got {type(value).__name__}"
            raise TypeMismatchError(msg)
        date = OCIDate.from_buffer(var.data, var.offset(pos))
        date.year = value.year
        date.month = value.month
        date.day = value.day
        date.time.hour = value.hour
        date.time.minute = value.minute
        date.time.second = value.second

    def get_value(self, var: "Variable", pos: int) -> Any:
        date = OCIDate.from_buffer(var.data, var.offset(pos))
        return datetime.datetime(
            date.year, date.month, date.day, date.time.hour, date.time.minute, date.time.second
        )


class IntervalHandler(VariableHandler):
    """``OCIInterval`` descriptors, one per slot."""

    zero_value = datetime.timedelta(0)

    def initialize(self, var: "Variable", cursor: "Cursor") -> None:
        environment = var.environment
        for i in range(var.allocated_elements):
            status = environment.library.descriptor_alloc(environment.handle, var.data, i, oci.OCI_DTYPE_INTERVAL_DS)
            environment.check_status(status, "interval: allocate descriptor")

    def finalize(self, var: "Variable") -> None:
        pointers = var.pointers()
        for i in range(var.allocated_elements):
            var.environment.descriptor_free(pointers[i], oci.OCI_DTYPE_INTERVAL_DS)
            pointers[i] = None

    def set_value(self, var: "Variable", pos: int, value: Any) -> None:
        if not isinstance(value, datetime.timedelta):
            msg = f"requires datetime.timedelta, got {type(value).__name__}"
            raise TypeMismatchError(msg)
        sign = -1 if value < datetime.timedelta(0) else 1
        magnitude = abs(value)
        hours, remainder = divmod(magnitude.seconds, _SECONDS_PER_HOUR)
        minutes, seconds = divmod(remainder, _SECONDS_PER_MINUTE)
        environment = var.environment
        status = environment.library.interval_set_day_second(
            environment.handle,
            environment.error_handle,
            sign * magnitude.days,
            sign * hours,
            sign * minutes,
            sign * seconds,
            sign * magnitude.microseconds * 1000,
            var.pointers()[pos],
        )
        environment.check_status(status, "interval: set value")

    def get_value(self, var: "Variable", pos: int) -> Any:
        environment = var.environment
        status, (days, hours, minutes, seconds, nanoseconds) = environment.library.interval_get_day_second(
            environment.handle, environment.error_handle, var.pointers()[pos]
        )
        environment.check_status(status, "interval: get value")
        microseconds = nanoseconds // 1000 if nanoseconds >= 0 else -(-nanoseconds // 1000)
        return datetime.timedelta(
            days=days, hours=hours, minutes=minutes, seconds=seconds, microseconds=microseconds
        )
