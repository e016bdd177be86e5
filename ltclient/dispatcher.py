from __future__ import annotations

"""
Read loop for frames coming from the editor.

Frames are read one at a time, in order. Eval requests are handed to the
session's task group and the loop moves on without waiting. Malformed frames
are logged and dropped. The loop ends on a shutdown command, or when the
session's shutdown flag is set by someone else (a signal, for instance).
"""

import logging
import threading
import time
from enum import Enum
from typing import Optional

from ltclient.config import ReadPolicy
from ltclient.errors import DecodeError, ReadError
from ltclient.evaluation.backend import Evaluator
from ltclient.evaluation.task import run_evaluation
from ltclient.protocol.codec import decode
from ltclient.protocol.message import Message
from ltclient.session import Session

logger = logging.getLogger(__name__)

SHUTDOWN_COMMANDS = frozenset({"client.close", "client.cancel-all"})


class DispatcherState(str, Enum):
    RUNNING = "running"
    DRAINING = "draining"
    STOPPED = "stopped"


class Dispatcher:
    def __init__(
        self,
        session: Session,
        evaluator: Evaluator,
        eval_command: str,
        *,
        read_policy: ReadPolicy = ReadPolicy.LENIENT,
        retry_delay: float = 0.1,
    ):
        self.session = session
        self.evaluator = evaluator
        self.eval_command = eval_command
        self.read_policy = read_policy
        self.retry_delay = retry_delay
        self.state = DispatcherState.RUNNING
        self._thread: Optional[threading.Thread] = None
        self._read_failures = 0

    def start(self) -> threading.Thread:
        self._thread = threading.Thread(target=self.run, name="dispatcher", daemon=True)
        self._thread.start()
        return self._thread

    def join(self, timeout: Optional[float] = None) -> None:
        if self._thread is not None:
            self._thread.join(timeout)

    def run(self) -> None:
        logger.info("Dispatcher running, accepting %s", self.eval_command)
        try:
            while not self.session.stopping:
                line = self._read()
                if line is None:
                    continue
                try:
                    message = decode(line)
                except DecodeError as ex:
                    logger.warning("Discarding frame: %s", ex)
                    continue
                self.dispatch(message)
        finally:
            self.state = DispatcherState.STOPPED
            logger.info("Dispatcher stopped")

    def dispatch(self, message: Message) -> None:
        command = message.command
        if command in SHUTDOWN_COMMANDS:
            self.state = DispatcherState.DRAINING
            self.session.request_shutdown(command)
        elif command == self.eval_command:
            if self.session.stopping:
                logger.warning("Dropping request %d, shutting down", message.id)
                return
            logger.info("Got %s request %d", command, message.id)
            try:
                thread = self.session.tasks.spawn(
                    run_evaluation, self.session, self.evaluator, message)
            except RuntimeError as ex:
                logger.error("Cannot start evaluation for request %d: %s", message.id, ex)
                return
            if thread is None:
                # stop() closed the group between the check above and here
                logger.warning("Dropping request %d, shutting down", message.id)
        else:
            logger.debug("Ignoring command %r (id %d)", command, message.id)

    def _read(self) -> Optional[str]:
        """Read one line, applying the read policy to EOF and read errors.

        Returns None when there is nothing to decode this round.
        """
        try:
            line = self.session.channel.read_line()
        except ReadError as ex:
            return self._read_failed(f"read error: {ex}")
        if line is None:
            return self._read_failed("end of stream")
        self._read_failures = 0
        if not line.strip():
            return None
        return line

    def _read_failed(self, what: str) -> None:
        if self.session.stopping:
            return None
        if self.read_policy is ReadPolicy.STRICT:
            logger.error("Stopping after %s", what)
            self.session.request_shutdown(what)
            return None
        self._read_failures += 1
        if self._read_failures == 1:
            logger.warning("Ignoring %s, continuing to read", what)
        else:
            logger.debug("Ignoring %s (%d in a row)", what, self._read_failures)
        time.sleep(self.retry_delay)
        return None
