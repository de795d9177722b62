"""
Minimal synchronous Moray client over the Fast protocol.

Only the calls the benchmark needs are implemented: getBucket, createBucket,
putObject and batch. Requests are issued one at a time on a single plaintext
TCP connection; each call blocks until the server's END or ERROR frame.
"""

from __future__ import annotations

import socket
import uuid
from typing import Any, Dict, List, Optional, Protocol, runtime_checkable

from tenacity import Retrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from moray_bench.errors import StoreError
from moray_bench.infrastructure.discovery import Endpoint
from moray_bench.infrastructure.fast_protocol import (
    FP_MSGID_MAX,
    FP_STATUS_DATA,
    FP_STATUS_END,
    FP_STATUS_ERROR,
    FastMessage,
    encode_message,
    read_message,
)
from moray_bench.utils.logging import get_logger

log = get_logger(__name__)


@runtime_checkable
class StoreClient(Protocol):
    """
    Operations the benchmark needs from a Moray connection.

    Every method raises StoreError on failure.
    """

    def get_bucket(self, name: str, options: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        ...

    def create_bucket(
        self, name: str, config: Dict[str, Any], options: Optional[Dict[str, Any]] = None
    ) -> None:
        ...

    def put_object(
        self,
        bucket: str,
        key: str,
        value: Dict[str, Any],
        options: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        ...

    def batch(
        self, requests: List[Dict[str, Any]], options: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        ...

    def close(self) -> None:
        ...


def _with_req_id(options: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    opts = dict(options or {})
    opts.setdefault("req_id", str(uuid.uuid4()))
    return opts


class MorayClient:
    """
    One Fast connection to a Moray instance.

    Use `MorayClient.connect(endpoint)` rather than the constructor; the
    constructor takes an already-connected socket.
    """

    def __init__(self, sock: socket.socket, endpoint: Endpoint) -> None:
        self.endpoint = endpoint
        self._sock = sock
        self._reader = sock.makefile("rb")
        self._next_msgid = 1
        self._closed = False

    @classmethod
    def connect(
        cls,
        endpoint: Endpoint,
        timeout: float = 10.0,
        attempts: int = 1,
    ) -> "MorayClient":
        """
        Open a plaintext TCP connection to `endpoint`.

        `timeout` bounds connection setup only; calls on the open connection
        block until the server answers. With `attempts > 1`, refused or
        timed-out connects are retried with exponential backoff.
        """
        retrying = Retrying(
            stop=stop_after_attempt(max(attempts, 1)),
            wait=wait_exponential(multiplier=0.5, min=0.5, max=5),
            retry=retry_if_exception_type(OSError),
            reraise=True,
        )
        try:
            sock = retrying(socket.create_connection, (endpoint.host, endpoint.port), timeout)
        except OSError as exc:
            raise StoreError(f"unable to connect to {endpoint}: {exc}", operation="connect") from exc

        sock.settimeout(None)
        sock.setsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY, 1)
        log.info(f"Connected to moray at {endpoint}", extra={"host": endpoint.host, "port": endpoint.port})
        return cls(sock, endpoint)

    def _allocate_msgid(self) -> int:
        msgid = self._next_msgid
        self._next_msgid = 1 if msgid >= FP_MSGID_MAX else msgid + 1
        return msgid

    def _rpc(self, method: str, args: List[Any]) -> List[Any]:
        """Send one request and collect the values of its reply frames."""
        if self._closed:
            raise StoreError("client is closed", operation=method)

        msgid = self._allocate_msgid()
        frame = encode_message(
            FastMessage(msgid=msgid, status=FP_STATUS_DATA, method=method, data=args)
        )
        try:
            self._sock.sendall(frame)
        except OSError as exc:
            raise StoreError(f"send failed: {exc}", operation=method) from exc

        values: List[Any] = []
        while True:
            try:
                reply = read_message(self._reader)
            except OSError as exc:
                raise StoreError(f"receive failed: {exc}", operation=method) from exc
            if reply is None:
                raise StoreError("connection closed by server", operation=method)
            if reply.msgid != msgid:
                log.debug(
                    "Dropping reply for unknown message",
                    extra={"msgid": reply.msgid, "expected": msgid},
                )
                continue

            if reply.status == FP_STATUS_ERROR:
                error = reply.data if isinstance(reply.data, dict) else {}
                raise StoreError(
                    str(error.get("message", reply.data)),
                    operation=method,
                    error_name=error.get("name", "Error"),
                )
            if isinstance(reply.data, list):
                values.extend(reply.data)
            if reply.status == FP_STATUS_END:
                return values

    def get_bucket(self, name: str, options: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        values = self._rpc("getBucket", [_with_req_id(options), name])
        if not values:
            raise StoreError(f"no bucket returned for {name}", operation="getBucket")
        return values[0]

    def create_bucket(
        self, name: str, config: Dict[str, Any], options: Optional[Dict[str, Any]] = None
    ) -> None:
        self._rpc("createBucket", [name, config, _with_req_id(options)])

    def put_object(
        self,
        bucket: str,
        key: str,
        value: Dict[str, Any],
        options: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        values = self._rpc("putObject", [bucket, key, value, _with_req_id(options)])
        return values[0] if values else {}

    def batch(
        self, requests: List[Dict[str, Any]], options: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        values = self._rpc("batch", [requests, _with_req_id(options)])
        return values[0] if values else {}

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        try:
            self._reader.close()
        finally:
            self._sock.close()

    def __enter__(self) -> "MorayClient":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


__all__ = ["MorayClient", "StoreClient"]
