"""Logger that ships JSON records to a Graylog server as GELF over UDP."""

from __future__ import annotations

import gzip
import json
import os
import socket
import sys
import time
from datetime import datetime
from typing import Any, Optional, Union

from wotop.logger import Context, Logger

CHUNK_SIZE = 1420
CHUNK_MAGIC = b"\x1e\x0f"
_CHUNK_HEADER_LEN = 12
_CHUNK_DATA_LEN = CHUNK_SIZE - _CHUNK_HEADER_LEN
MAX_CHUNKS = 128
GELF_VERSION = "1.1"
LEVEL_INFO = 6


def _parse_address(address: str) -> tuple[str, int]:
    host, sep, port = address.rpartition(":")
    if not sep or not host or not port.isdigit():
        raise ValueError(f"invalid graylog address {address!r}, expected host:port")
    return host.strip("[]"), int(port)


def _default_facility() -> str:
    program = sys.argv[0] if sys.argv and sys.argv[0] else ""
    return os.path.basename(program) or "python"


class GelfWriter:
    """Writes each record as one GELF message to a UDP endpoint."""

    def __init__(
        self,
        address: str,
        *,
        facility: Optional[str] = None,
        host: Optional[str] = None,
        compress: bool = True,
    ) -> None:
        self.address = address
        self.facility = facility if facility is not None else _default_facility()
        self.hostname = host if host is not None else socket.gethostname()
        self.compress = compress
        target_host, target_port = _parse_address(address)
        family, sock_type, proto, _, sockaddr = socket.getaddrinfo(
            target_host, target_port, type=socket.SOCK_DGRAM
        )[0]
        self._sock = socket.socket(family, sock_type, proto)
        try:
            self._sock.connect(sockaddr)
        except OSError:
            self._sock.close()
            raise

    def write(self, record: Union[bytes, str]) -> int:
        """Send record as a GELF message and return the number of bytes taken."""
        raw = record.encode("utf-8") if isinstance(record, str) else bytes(record)
        text = raw.strip().decode("utf-8", "replace")
        short, newline, _ = text.partition("\n")
        message: dict[str, Any] = {
            "version": GELF_VERSION,
            "host": self.hostname,
            "short_message": short,
            "timestamp": time.time(),
            "level": LEVEL_INFO,
            "facility": self.facility,
        }
        if newline:
            message["full_message"] = text
        payload = json.dumps(message, separators=(",", ":")).encode("utf-8")
        if self.compress:
            payload = gzip.compress(payload)
        self._send(payload)
        return len(raw)

    def _send(self, payload: bytes) -> None:
        if len(payload) <= CHUNK_SIZE:
            self._sock.send(payload)
            return
        pieces = [
            payload[start:start + _CHUNK_DATA_LEN]
            for start in range(0, len(payload), _CHUNK_DATA_LEN)
        ]
        if len(pieces) > MAX_CHUNKS:
            raise ValueError(
                f"message needs {len(pieces)} chunks, more than the {MAX_CHUNKS} allowed"
            )
        message_id = os.urandom(8)
        for seq, piece in enumerate(pieces):
            header = CHUNK_MAGIC + message_id + bytes((seq, len(pieces)))
            self._sock.send(header + piece)

    def close(self) -> None:
        """Close the underlying socket."""
        self._sock.close()

    def __enter__(self) -> "GelfWriter":
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()


def _iso8601_now() -> str:
    now = datetime.now().astimezone()
    stamp = now.strftime("%Y-%m-%dT%H:%M:%S.") + f"{now.microsecond // 1000:03d}"
    offset = now.strftime("%z")
    return stamp + ("Z" if offset in ("+0000", "") else offset)


class GraylogLogger(Logger):
    """Logs JSON records (level, time, caller, message) to Graylog."""

    def __init__(
        self,
        graylog_address: str,
        stage: str,
        writer: Optional[GelfWriter] = None,
    ) -> None:
        self.graylog_address = graylog_address
        self.stage = stage
        self._writer = writer if writer is not None else GelfWriter(graylog_address)
        self._closed = False

    def _log(self, level: str, message: str, args: tuple[Any, ...]) -> None:
        text = message % args if args else message
        frame = sys._getframe(2)
        record = {
            "level": level,
            "time": _iso8601_now(),
            "caller": f"{frame.f_code.co_filename}:{frame.f_lineno}",
            "message": text,
        }
        self._writer.write(json.dumps(record, ensure_ascii=False) + "\n")

    def info(self, ctx: Context, message: str, *args: Any) -> None:
        self._log("info", message, args)

    def warning(self, ctx: Context, message: str, *args: Any) -> None:
        self._log("warn", message, args)

    def error(self, ctx: Context, message: str, *args: Any) -> None:
        self._log("error", message, args)

    def sync(self) -> None:
        """Flush pending records; records are sent as written, so only a closed logger fails."""
        if self._closed:
            raise ValueError("cannot sync a closed graylog logger")

    def close(self) -> None:
        """Close the writer; later syncs raise."""
        if not self._closed:
            self._writer.close()
            self._closed = True

    def __enter__(self) -> "GraylogLogger":
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()