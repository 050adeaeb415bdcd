"""Enqueue and dequeue of RAW messages through ``DBMS_AQ``."""

from typing import TYPE_CHECKING, Optional

import msgspec

from ocidb.exceptions import DatabaseError, NotSupportedError
from ocidb.utils.logging import get_logger
from ocidb.variables import registry

if TYPE_CHECKING:
    from collections.abc import Iterable, MutableSequence

    from ocidb.connection import Connection
    from ocidb.cursor import Cursor

__all__ = (
    "DEQUEUE_TIMEOUT_CODE",
    "MAX_RAW_PAYLOAD",
    "DequeueOptions",
    "EnqueueOptions",
    "Message",
    "Queue",
)

logger = get_logger("queue")

DEQUEUE_TIMEOUT_CODE = 25228
MAX_RAW_PAYLOAD = 32767
MESSAGE_ID_SIZE = 16
CORRELATION_SIZE = 128

# DBMS_AQ constants
VISIBILITY_IMMEDIATE = 1
VISIBILITY_ON_COMMIT = 2
DEQUEUE_BROWSE = 1
DEQUEUE_LOCKED = 2
DEQUEUE_REMOVE = 3
DEQUEUE_REMOVE_NODATA = 4
NAVIGATION_FIRST_MESSAGE = 1
NAVIGATION_NEXT_TRANSACTION = 2
NAVIGATION_NEXT_MESSAGE = 3
WAIT_FOREVER = -1
WAIT_NONE = 0
EXPIRATION_NEVER = -1

_ENQUEUE_BLOCK = """
DECLARE
    enqueue_options DBMS_AQ.ENQUEUE_OPTIONS_T;
    message_properties DBMS_AQ.MESSAGE_PROPERTIES_T;
    message_id RAW(16);
BEGIN
    enqueue_options.visibility := :visibility;
    message_properties.correlation := :correlation;
    message_properties.delay := :delay;
    message_properties.expiration := :expiration;
    message_properties.priority := :priority;
    DBMS_AQ.ENQUEUE(
        queue_name => :queue_name,
        enqueue_options => enqueue_options,
        message_properties => message_properties,
        payload => :payload,
        msgid => message_id
    );
    :msg_id := message_id;
END;"""

_DEQUEUE_BLOCK = """
DECLARE
    dequeue_options DBMS_AQ.DEQUEUE_OPTIONS_T;
    message_properties DBMS_AQ.MESSAGE_PROPERTIES_T;
    message_id RAW(16);
    payload RAW(32767);
BEGIN
    dequeue_options.consumer_name := :consumer_name;
    dequeue_options.dequeue_mode := :mode;
    dequeue_options.navigation := :navigation;
    dequeue_options.visibility := :visibility;
    dequeue_options.wait := :wait;
    dequeue_options.correlation := :correlation;
    DBMS_AQ.DEQUEUE(
        queue_name => :queue_name,
        dequeue_options => dequeue_options,
        message_properties => message_properties,
        payload => payload,
        msgid => message_id
    );
    :payload := payload;
    :msg_id := message_id;
    :out_correlation := message_properties.correlation;
    :out_delay := message_properties.delay;
    :out_expiration := message_properties.expiration;
    :out_priority := message_properties.priority;
    :out_attempts := message_properties.attempts;
END;"""


class EnqueueOptions(msgspec.Struct):
    visibility: int = VISIBILITY_ON_COMMIT


class DequeueOptions(msgspec.Struct):
    """Options applied to every :meth:`Queue.dequeue` call."""

    consumer_name: str = ""
    mode: int = DEQUEUE_REMOVE
    navigation: int = NAVIGATION_NEXT_MESSAGE
    visibility: int = VISIBILITY_ON_COMMIT
    wait: int = WAIT_NONE
    correlation: str = ""


class Message(msgspec.Struct):
    """A RAW message with its properties.

    ``msg_id`` and ``attempts`` are filled in by the server.
    """

    raw: bytes = b""
    correlation: str = ""
    delay: int = 0
    expiration: int = EXPIRATION_NEVER
    priority: int = 0
    msg_id: bytes = b""
    attempts: int = 0


class Queue:
    """A RAW advanced queue.

    Args:
        connection: Connection the queue operations run on.
        name: Queue name, optionally schema-qualified.
        payload_type: Object type of the payload; only RAW (empty) is supported.

    Raises:
        NotSupportedError: ``payload_type`` names an object type.
    """

    def __init__(self, connection: "Connection", name: str, payload_type: str = "") -> None:
        if payload_type:
            msg = f"queue payload type {payload_type!r} not supported, only RAW"
            raise NotSupportedError(0, msg, "queue")
        self.connection = connection
        self._name = name
        self._cursor: Optional[Cursor] = connection.cursor()
        self._enqueue_options = EnqueueOptions()
        self._dequeue_options = DequeueOptions()

    def __repr__(self) -> str:
        return f"<Queue {self._name}>"

    def __enter__(self) -> "Queue":
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    @property
    def name(self) -> str:
        return self._name

    @property
    def enqueue_options(self) -> EnqueueOptions:
        return self._enqueue_options

    @property
    def dequeue_options(self) -> DequeueOptions:
        return self._dequeue_options

    def _get_cursor(self) -> "Cursor":
        if self._cursor is None:
            self._cursor = self.connection.cursor()
        return self._cursor

    def enqueue(self, messages: "Iterable[Message]") -> None:
        """Enqueue ``messages`` in order, recording the message id assigned to each."""
        cursor = self._get_cursor()
        msg_id = cursor.var(registry.BINARY, size=MESSAGE_ID_SIZE)
        count = 0
        for message in messages:
            cursor.execute(
                _ENQUEUE_BLOCK,
                {
                    "visibility": self._enqueue_options.visibility,
                    "correlation": message.correlation or None,
                    "delay": message.delay,
                    "expiration": message.expiration,
                    "priority": message.priority,
                    "queue_name": self._name,
                    "payload": message.raw,
                    "msg_id": msg_id,
                },
            )
            message.msg_id = msg_id.get_value() or b""
            count += 1
        logger.debug("Enqueued %d messages on %s", count, self._name)

    def dequeue(self, buffer: "MutableSequence[Message]") -> int:
        """Fill the slots of ``buffer`` with dequeued messages.

        Stops early when the queue has no message within the configured wait.

        Returns:
            The number of slots filled.
        """
        cursor = self._get_cursor()
        options = self._dequeue_options
        payload = cursor.var(registry.BINARY, size=MAX_RAW_PAYLOAD)
        msg_id = cursor.var(registry.BINARY, size=MESSAGE_ID_SIZE)
        correlation = cursor.var(registry.STRING, size=CORRELATION_SIZE)
        delay = cursor.var(registry.INT64)
        expiration = cursor.var(registry.INT64)
        priority = cursor.var(registry.INT64)
        attempts = cursor.var(registry.INT64)
        count = 0
        for slot in range(len(buffer)):
            try:
                cursor.execute(
                    _DEQUEUE_BLOCK,
                    {
                        "consumer_name": options.consumer_name or None,
                        "mode": options.mode,
                        "navigation": options.navigation,
                        "visibility": options.visibility,
                        "wait": options.wait,
                        "correlation": options.correlation or None,
                        "queue_name": self._name,
                        "payload": payload,
                        "msg_id": msg_id,
                        "out_correlation": correlation,
                        "out_delay": delay,
                        "out_expiration": expiration,
                        "out_priority": priority,
                        "out_attempts": attempts,
                    },
                )
            except DatabaseError as error:
                if error.code == DEQUEUE_TIMEOUT_CODE:
                    break
                raise
            buffer[slot] = Message(
                raw=payload.get_value() or b"",
                correlation=correlation.get_value() or "",
                delay=delay.get_value() or 0,
                expiration=EXPIRATION_NEVER if expiration.get_value() is None else expiration.get_value(),
                priority=priority.get_value() or 0,
                msg_id=msg_id.get_value() or b"",
                attempts=attempts.get_value() or 0,
            )
            count += 1
        logger.debug("Dequeued %d messages from %s", count, self._name)
        return count

    def close(self) -> None:
        if self._cursor is not None:
            self._cursor.close()
            self._cursor = None
