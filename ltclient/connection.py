from __future__ import annotations

"""
The single TCP connection to the editor.

One thread reads (the dispatcher); any number of threads write. Writes go
through a lock so each frame reaches the socket as one unbroken line.
"""

import logging
import socket
import threading
from typing import Optional

from ltclient.errors import ChannelClosedError, ConnectError, ReadError, WriteError

logger = logging.getLogger(__name__)

RECV_SIZE = 4096


class Channel:
    def __init__(self, sock: socket.socket, peer: str = "peer"):
        self.sock = sock
        self.peer = peer
        self._write_lock = threading.Lock()
        self._buf = b""
        self._closed = False

    @classmethod
    def open(cls, host: str, port: str | int, timeout: Optional[float] = None) -> Channel:
        """Connect to the editor. There is no retry: failure is final."""
        address = f"{host}:{port}"
        try:
            sock = socket.create_connection((host, port), timeout=timeout)
        except OSError as ex:
            raise ConnectError(f"cannot connect to {address}: {ex}") from ex
        # The connect timeout must not turn into a read timeout
        sock.settimeout(None)
        logger.info("Connected to %s", address)
        return cls(sock, address)

    @property
    def closed(self) -> bool:
        return self._closed

    def write_frame(self, text: str) -> None:
        """Write one line. Safe to call from several threads at once."""
        try:
            data = (text + "\n").encode("utf-8")
        except UnicodeEncodeError as ex:
            raise WriteError(f"frame for {self.peer} is not valid UTF-8: {ex}") from ex
        with self._write_lock:
            if self._closed:
                raise ChannelClosedError(f"connection to {self.peer} is closed")
            try:
                self.sock.sendall(data)
            except OSError as ex:
                raise WriteError(f"write to {self.peer} failed: {ex}") from ex

    def read_line(self) -> Optional[str]:
        """Read one line without its terminator. Returns None at end of stream.

        Only the dispatcher calls this; it is not guarded for several readers.
        """
        while b"\n" not in self._buf:
            try:
                data = self.sock.recv(RECV_SIZE)
            except OSError as ex:
                raise ReadError(f"read from {self.peer} failed: {ex}") from ex
            if not data:
                if self._buf:
                    # Last line without a terminator
                    data, self._buf = self._buf, b""
                    return self._decode(data)
                return None
            self._buf += data
        line, self._buf = self._buf.split(b"\n", 1)
        return self._decode(line)

    def _decode(self, raw: bytes) -> str:
        if raw.endswith(b"\r"):
            raw = raw[:-1]
        try:
            return raw.decode("utf-8")
        except UnicodeDecodeError as ex:
            raise ReadError(f"line from {self.peer} is not UTF-8: {ex}") from ex

    def close(self) -> None:
        with self._write_lock:
            if self._closed:
                return
            self._closed = True
        try:
            # Wake a reader blocked in recv()
            self.sock.shutdown(socket.SHUT_RDWR)
        except OSError as ex:
            logger.debug("shutdown of %s: %s", self.peer, ex)
        self.sock.close()
        logger.info("Connection to %s closed", self.peer)
