from __future__ import annotations

import logging
import threading
from typing import Optional

from ltclient import JsonObject
from ltclient.connection import Channel
from ltclient.protocol.codec import encode, encode_object
from ltclient.protocol.message import Message
from ltclient.tasks import TaskGroup

logger = logging.getLogger(__name__)


class ShutdownToken:
    """Set-once shutdown flag. The first reason given is the one kept."""

    def __init__(self):
        self._event = threading.Event()
        self._lock = threading.Lock()
        self.reason: Optional[str] = None

    def cancel(self, reason: str) -> bool:
        """Set the flag. Returns True only for the call that set it."""
        with self._lock:
            if self._event.is_set():
                return False
            self.reason = reason
            self._event.set()
        return True

    def is_set(self) -> bool:
        return self._event.is_set()

    def wait(self, timeout: Optional[float] = None) -> bool:
        return self._event.wait(timeout)


class Session:
    """
    Shared state of one client run: the connection, the shutdown flag and the
    group of running evaluations. Passed to the dispatcher, the lifecycle
    controller and every evaluation task.
    """

    def __init__(self, channel: Channel, tasks: Optional[TaskGroup] = None):
        self.channel = channel
        self.tasks = tasks or TaskGroup("eval")
        self.shutdown = ShutdownToken()

    @property
    def stopping(self) -> bool:
        return self.shutdown.is_set()

    def request_shutdown(self, reason: str) -> bool:
        first = self.shutdown.cancel(reason)
        if first:
            logger.info("Shutdown requested (%s)", reason)
        return first

    def send(self, message: Message) -> None:
        line = encode(message)
        logger.debug("Send %s", line)
        self.channel.write_frame(line)

    def send_object(self, obj: JsonObject) -> None:
        line = encode_object(obj)
        logger.debug("Send %s", line)
        self.channel.write_frame(line)
