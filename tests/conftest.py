import json
import logging
import queue
import socket
import threading

import pytest

from ltclient.config import Settings
from ltclient.connection import Channel
from ltclient.errors import ChannelClosedError
from ltclient.session import Session

# Tests run against an in-memory channel unless they need a real socket.
# FakeChannel hands out queued lines (or raises queued exceptions) and
# records every written frame. An empty queue reads as end of stream.


class FakeChannel:
    def __init__(self, lines=()):
        self.incoming = queue.Queue()
        for line in lines:
            self.incoming.put(line)
        self.written = []
        self.closed = False
        self._lock = threading.Lock()

    def feed(self, *lines):
        for line in lines:
            self.incoming.put(line)

    def read_line(self):
        if self.closed:
            return None
        try:
            item = self.incoming.get(timeout=0.05)
        except queue.Empty:
            return None
        if isinstance(item, Exception):
            raise item
        return item

    def write_frame(self, text):
        with self._lock:
            if self.closed:
                raise ChannelClosedError("closed")
            self.written.append(text)

    def close(self):
        self.closed = True

    def frames(self):
        with self._lock:
            return [json.loads(text) for text in self.written]


@pytest.fixture
def fake_channel():
    return FakeChannel()


@pytest.fixture
def session(fake_channel):
    return Session(fake_channel)


@pytest.fixture
def settings():
    return Settings(log_enabled=False, read_retry_delay=0.01)


@pytest.fixture
def socket_pair():
    """A connected Channel and the raw socket on the editor's side."""
    ours, theirs = socket.socketpair()
    channel = Channel(ours, "test-peer")
    yield channel, theirs
    channel.close()
    theirs.close()


@pytest.fixture(autouse=True)
def _reset_ltclient_logger():
    # setup_logging detaches the package logger from the root; undo it so
    # caplog keeps seeing records in later tests
    yield
    logger = logging.getLogger("ltclient")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)
