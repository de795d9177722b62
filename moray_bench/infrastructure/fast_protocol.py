"""
Encoder/decoder for the Fast RPC framing used by Moray.

Each message is a 15-byte big-endian header followed by a JSON body:

    version  u8   protocol version (2)
    type     u8   payload encoding, 1 = JSON
    status   u8   1 = DATA, 2 = END, 3 = ERROR
    msgid    u32  request id, echoed by the server on every reply frame
    crc      u32  CRC-16/ARC of the body bytes
    datalen  u32  body length in bytes

The body is `{"m": {"name": <rpc method>, "uts": <usec since epoch>}, "d": ...}`
where `d` is the argument list on requests, a list of values on DATA/END
replies, and an error object on ERROR replies.
"""

from __future__ import annotations

import json
import struct
import time
from dataclasses import dataclass
from typing import Any, BinaryIO, Optional

from moray_bench.errors import StoreError

FP_VERSION = 2
FP_TYPE_JSON = 1

FP_STATUS_DATA = 1
FP_STATUS_END = 2
FP_STATUS_ERROR = 3

FP_MSGID_MAX = 2**31 - 1

_HEADER = struct.Struct(">BBBIII")
HEADER_SIZE = _HEADER.size


def crc16(data: bytes) -> int:
    """CRC-16/ARC (reflected polynomial 0xA001, initial value 0)."""
    crc = 0
    for byte in data:
        crc ^= byte
        for _ in range(8):
            if crc & 1:
                crc = (crc >> 1) ^ 0xA001
            else:
                crc >>= 1
    return crc


@dataclass(frozen=True)
class FastMessage:
    msgid: int
    status: int
    method: str
    data: Any
    uts: Optional[int] = None


def encode_message(message: FastMessage) -> bytes:
    body = json.dumps(
        {
            "m": {
                "name": message.method,
                "uts": message.uts if message.uts is not None else int(time.time() * 1_000_000),
            },
            "d": message.data,
        },
        separators=(",", ":"),
    ).encode("utf-8")
    header = _HEADER.pack(
        FP_VERSION,
        FP_TYPE_JSON,
        message.status,
        message.msgid,
        crc16(body),
        len(body),
    )
    return header + body


def _read_exact(stream: BinaryIO, size: int) -> bytes:
    chunk = stream.read(size)
    if chunk is None or len(chunk) < size:
        raise StoreError("connection closed mid-frame")
    return chunk


def read_message(stream: BinaryIO) -> Optional[FastMessage]:
    """
    Read one frame from a buffered binary stream.

    Returns None on a clean end of stream (no bytes before the header).
    """
    head = stream.read(HEADER_SIZE)
    if not head:
        return None
    if len(head) < HEADER_SIZE:
        raise StoreError("connection closed mid-frame")

    version, ptype, status, msgid, crc, datalen = _HEADER.unpack(head)
    if version != FP_VERSION:
        raise StoreError(f"unsupported fast protocol version {version}")
    if ptype != FP_TYPE_JSON:
        raise StoreError(f"unsupported fast payload type {ptype}")
    if status not in (FP_STATUS_DATA, FP_STATUS_END, FP_STATUS_ERROR):
        raise StoreError(f"invalid fast status {status}")

    body = _read_exact(stream, datalen)
    if crc16(body) != crc:
        raise StoreError(f"fast message {msgid}: CRC mismatch")

    try:
        payload = json.loads(body.decode("utf-8"))
        meta = payload["m"]
        data = payload["d"]
        if not isinstance(meta, dict):
            raise ValueError("message metadata is not an object")
    except (UnicodeDecodeError, ValueError, KeyError, TypeError) as exc:
        raise StoreError(f"fast message {msgid}: malformed body: {exc}") from exc

    return FastMessage(
        msgid=msgid,
        status=status,
        method=meta.get("name", ""),
        data=data,
        uts=meta.get("uts"),
    )


__all__ = [
    "FP_MSGID_MAX",
    "FP_STATUS_DATA",
    "FP_STATUS_END",
    "FP_STATUS_ERROR",
    "FP_TYPE_JSON",
    "FP_VERSION",
    "FastMessage",
    "crc16",
    "encode_message",
    "read_message",
]
