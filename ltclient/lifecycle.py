from __future__ import annotations

"""
Start-up and shutdown of a client run.

Start-up sends the identity record the editor expects as the first line:

    {"name": "LightTable-Python", "client-id": 123, "dir": "/path/to/cwd",
     "commands": "editor.eval.python", "type": "python"}

Shutdown is requested through the session's shutdown token, either by the
dispatcher (client.close / client.cancel-all) or by the signal waiter
(SIGINT / SIGTERM). The main thread then drains running evaluations, closes
the connection and hands back the exit code.
"""

import logging
import os
import signal
import threading
from typing import Iterable, Optional

from ltclient import JsonObject
from ltclient.config import Settings
from ltclient.dispatcher import Dispatcher
from ltclient.errors import HandshakeError
from ltclient.evaluation.backend import Evaluator
from ltclient.session import Session

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_DRAIN_TIMEOUT = 1

WAIT_INTERVAL = 0.5

SHUTDOWN_SIGNALS = (signal.SIGINT, signal.SIGTERM)


def parse_client_id(text: str) -> int:
    try:
        return int(text.strip(), 10)
    except (AttributeError, ValueError):
        raise HandshakeError(f"client id must be a decimal integer, got {text!r}") from None


class Lifecycle:
    def __init__(self, session: Session, settings: Settings, client_id: int, evaluator: Evaluator):
        self.session = session
        self.settings = settings
        self.client_id = client_id
        self.dispatcher = Dispatcher(
            session,
            evaluator,
            settings.eval_command,
            read_policy=settings.read_policy,
            retry_delay=settings.read_retry_delay,
        )
        self._signal_thread: Optional[threading.Thread] = None

    # --- start-up ---
    def identity(self) -> JsonObject:
        try:
            cwd = os.path.abspath(os.getcwd())
        except OSError as ex:
            raise HandshakeError(f"cannot determine working directory: {ex}") from ex
        return {
            "name": self.settings.client_name,
            "client-id": self.client_id,
            "dir": cwd,
            "commands": self.settings.eval_command,
            "type": self.settings.lang,
        }

    def handshake(self) -> None:
        record = self.identity()
        logger.info("Sending handshake to editor: %s", record)
        self.session.send_object(record)

    # --- shutdown ---
    def request_stop(self, reason: str) -> bool:
        return self.session.request_shutdown(reason)

    def stop(self) -> int:
        """Set the shutdown flag, wait for running evaluations, close the connection.

        Returns the exit code: EXIT_OK when every evaluation finished,
        EXIT_DRAIN_TIMEOUT when `drain_timeout` ran out first.
        """
        self.request_stop("stop")
        self.session.tasks.close()
        pending = self.session.tasks.outstanding
        if pending:
            logger.info("Waiting for %d running evaluation(s)", pending)
        drained = self.session.tasks.wait(self.settings.drain_timeout)
        if not drained:
            logger.warning(
                "Gave up after %.1fs with %d evaluation(s) still running",
                self.settings.drain_timeout, self.session.tasks.outstanding)
        self.session.channel.close()
        logger.info("Stop! (%s)", self.session.shutdown.reason)
        return EXIT_OK if drained else EXIT_DRAIN_TIMEOUT

    # --- signals ---
    def subscribe_signals(self, signals: Iterable[signal.Signals] = SHUTDOWN_SIGNALS) -> None:
        """Route shutdown signals to `request_stop`.

        Must be called from the main thread before any other thread starts,
        so every thread inherits the blocked signal mask and only the waiter
        receives them.
        """
        signals = set(signals)
        if hasattr(signal, "pthread_sigmask"):
            signal.pthread_sigmask(signal.SIG_BLOCK, signals)
            self._signal_thread = threading.Thread(
                target=self._wait_for_signal, args=(signals,), name="signals", daemon=True)
            self._signal_thread.start()
        else:
            for signum in signals:
                signal.signal(signum, self._on_signal)

    def _wait_for_signal(self, signals: set) -> None:
        signum = signal.sigwait(signals)
        name = signal.Signals(signum).name
        logger.info("Received %s", name)
        self.request_stop(name)

    def _on_signal(self, signum, frame) -> None:
        self.request_stop(signal.Signals(signum).name)

    # --- main sequence ---
    def run(self) -> int:
        self.handshake()
        self.dispatcher.start()
        # Short waits keep the main thread responsive to signal handlers
        while not self.session.shutdown.wait(WAIT_INTERVAL):
            continue
        return self.stop()
