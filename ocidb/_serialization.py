"""JSON encoding shared by the structured log formatter."""

import datetime
import decimal
from typing import Any

import msgspec

__all__ = ("decode_json", "encode_json")


def _enc_hook(value: Any) -> Any:
    if isinstance(value, (decimal.Decimal, datetime.timedelta)):
        return str(value)
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value).hex()
    msg = f"Unsupported type: {type(value)!r}"
    raise NotImplementedError(msg)


_encoder = msgspec.json.Encoder(enc_hook=_enc_hook)
_decoder = msgspec.json.Decoder()


def encode_json(data: Any) -> str:
    return _encoder.encode(data).decode("utf-8")


def decode_json(data: "str | bytes") -> Any:
    return _decoder.decode(data)
