"""ctypes declarations for the OCI scalar aliases and the structures passed by value."""

import ctypes

__all__ = (
    "OCIDATE_SIZE",
    "POINTER_SIZE",
    "XID",
    "OCIDate",
    "OCITime",
    "boolean",
    "oraub8",
    "sb1",
    "sb2",
    "sb4",
    "sword",
    "ub1",
    "ub2",
    "ub4",
    "uword",
)

ub1 = ctypes.c_ubyte
sb1 = ctypes.c_byte
ub2 = ctypes.c_uint16
sb2 = ctypes.c_int16
ub4 = ctypes.c_uint32
sb4 = ctypes.c_int32
sword = ctypes.c_int
uword = ctypes.c_uint
oraub8 = ctypes.c_uint64
boolean = ctypes.c_int


class OCITime(ctypes.Structure):
    _fields_ = [("hour", ub1), ("minute", ub1), ("second", ub1)]


class OCIDate(ctypes.Structure):
    """In-memory layout used with ``SQLT_ODT``."""

    _fields_ = [("year", sb2), ("month", ub1), ("day", ub1), ("time", OCITime)]


class XID(ctypes.Structure):
    """X/Open transaction identifier set as ``OCI_ATTR_XID``."""

    _fields_ = [
        ("format_id", ctypes.c_long),
        ("gtrid_length", ctypes.c_long),
        ("bqual_length", ctypes.c_long),
        ("data", ctypes.c_char * 128),
    ]


OCIDATE_SIZE = ctypes.sizeof(OCIDate)
POINTER_SIZE = ctypes.sizeof(ctypes.c_void_p)
