import os
import signal
import threading
import time

import pytest

from ltclient.config import Settings
from ltclient.errors import HandshakeError
from ltclient.lifecycle import EXIT_DRAIN_TIMEOUT, EXIT_OK, Lifecycle, parse_client_id
from ltclient.evaluation import EchoEvaluator
from ltclient.protocol import Message, Payload
from ltclient.session import Session
from ltclient.tasks import TaskGroup

EVAL = "editor.eval.python"


class Gated:
    """Evaluator that holds each request until its gate opens."""

    def __init__(self):
        self.started = threading.Semaphore(0)
        self.gates = {}
        self._lock = threading.Lock()

    def gate(self, code):
        with self._lock:
            return self.gates.setdefault(code, threading.Event())

    def evaluate(self, code, position):
        self.started.release()
        self.gate(code).wait(10)
        return f"done {code}", position


@pytest.mark.parametrize("text,expected", [("123", 123), (" 7 ", 7), ("-1", -1), ("0042", 42)])
def test_parse_client_id(text, expected):
    assert parse_client_id(text) == expected


@pytest.mark.parametrize("text", ["", "abc", "1.5", "0x10", "12a"])
def test_parse_client_id_rejects(text):
    with pytest.raises(HandshakeError):
        parse_client_id(text)


def test_handshake_sends_identity_record(session, fake_channel, settings):
    Lifecycle(session, settings, 321, EchoEvaluator()).handshake()
    assert fake_channel.frames() == [{
        "name": "LightTable-Python",
        "client-id": 321,
        "dir": os.path.abspath(os.getcwd()),
        "commands": "editor.eval.python",
        "type": "python",
    }]


def test_handshake_uses_configured_language(session, fake_channel):
    settings = Settings(log_enabled=False, lang="zeta", client_name="LightTable-Zeta")
    Lifecycle(session, settings, 1, EchoEvaluator()).handshake()
    record = fake_channel.frames()[0]
    assert record["commands"] == "editor.eval.zeta"
    assert record["type"] == "zeta"
    assert record["name"] == "LightTable-Zeta"


def test_handshake_fails_without_working_directory(session, settings, monkeypatch):
    def gone():
        raise FileNotFoundError("deleted")

    monkeypatch.setattr(os, "getcwd", gone)
    with pytest.raises(HandshakeError):
        Lifecycle(session, settings, 1, EchoEvaluator()).handshake()


def test_stop_waits_for_every_inflight_evaluation(session, fake_channel, settings):
    evaluator = Gated()
    lc = Lifecycle(session, settings, 1, evaluator)
    for n in range(3):
        lc.dispatcher.dispatch(Message(n, EVAL, Payload(code=f"c{n}")))
    for _ in range(3):
        assert evaluator.started.acquire(timeout=5)

    result = {}
    stopper = threading.Thread(target=lambda: result.setdefault("code", lc.stop()))
    stopper.start()
    stopper.join(0.2)
    assert stopper.is_alive()
    assert session.stopping
    assert fake_channel.written == []
    assert not fake_channel.closed

    for n in range(3):
        evaluator.gate(f"c{n}").set()
    stopper.join(5)
    assert not stopper.is_alive()
    assert result["code"] == EXIT_OK
    assert sorted(frame[0] for frame in fake_channel.frames()) == [0, 1, 2]
    assert fake_channel.closed


def test_responses_correlate_by_id_when_completed_out_of_order(session, fake_channel, settings):
    evaluator = Gated()
    lc = Lifecycle(session, settings, 1, evaluator)
    ids = [10, 20, 30, 40]
    for i in ids:
        lc.dispatcher.dispatch(Message(i, EVAL, Payload(code=f"c{i}")))
    for _ in ids:
        assert evaluator.started.acquire(timeout=5)

    for i in reversed(ids):
        evaluator.gate(f"c{i}").set()
        # Wait for this response before releasing the next one
        for _ in range(500):
            if any(f[0] == i for f in fake_channel.frames()):
                break
            time.sleep(0.01)

    assert lc.stop() == EXIT_OK
    frames = fake_channel.frames()
    assert [f[0] for f in frames] == list(reversed(ids))
    for msg_id, command, payload in frames:
        assert command == "editor.eval.python.result"
        assert payload["result"] == f"done c{msg_id}"


def test_stop_gives_up_after_drain_timeout(session, fake_channel):
    settings = Settings(log_enabled=False, drain_timeout=0.1)
    evaluator = Gated()
    lc = Lifecycle(session, settings, 1, evaluator)
    lc.dispatcher.dispatch(Message(1, EVAL, Payload(code="hang")))
    assert evaluator.started.acquire(timeout=5)
    assert lc.stop() == EXIT_DRAIN_TIMEOUT
    assert fake_channel.closed
    evaluator.gate("hang").set()


def test_stop_with_nothing_running(session, fake_channel, settings):
    lc = Lifecycle(session, settings, 1, EchoEvaluator())
    assert lc.stop() == EXIT_OK
    assert session.shutdown.reason == "stop"
    assert fake_channel.closed


def test_first_stop_reason_wins(session, settings):
    lc = Lifecycle(session, settings, 1, EchoEvaluator())
    assert lc.request_stop("client.close") is True
    assert lc.request_stop("SIGINT") is False
    assert session.shutdown.reason == "client.close"


def test_signal_handler_requests_stop(session, settings):
    lc = Lifecycle(session, settings, 1, EchoEvaluator())
    lc._on_signal(signal.SIGTERM, None)
    assert session.shutdown.reason == "SIGTERM"


def test_run_handshakes_dispatches_and_drains(session, fake_channel, settings):
    fake_channel.feed(
        '[1,"editor.eval.python",{"code":"print(1)","pos":{"line":2,"ch":8}}]',
        '[2,"client.cancel-all",{}]',
    )
    lc = Lifecycle(session, settings, 99, EchoEvaluator())
    assert lc.run() == EXIT_OK
    frames = fake_channel.frames()
    assert frames[0]["client-id"] == 99
    assert frames[1:] == [
        [1, "editor.eval.python.result", {"result": "print(1)", "pos": {"line": 2, "ch": 8}}]
    ]
    assert session.shutdown.reason == "client.cancel-all"
    assert fake_channel.closed


class HeldSpawn(TaskGroup):
    """TaskGroup that parks each spawn call until `release` is set."""

    def __init__(self):
        super().__init__("eval")
        self.entered = threading.Event()
        self.release = threading.Event()

    def spawn(self, fn, *args):
        self.entered.set()
        self.release.wait(10)
        return super().spawn(fn, *args)


def test_request_racing_stop_is_dropped(fake_channel, settings, caplog):
    tasks = HeldSpawn()
    session = Session(fake_channel, tasks)
    calls = []

    class Recording:
        def evaluate(self, code, position):
            calls.append(code)
            return code, position

    lc = Lifecycle(session, settings, 1, Recording())
    dispatching = threading.Thread(
        target=lc.dispatcher.dispatch, args=(Message(1, EVAL, Payload(code="late")),))
    dispatching.start()
    # Past the stopping check, not yet admitted
    assert tasks.entered.wait(5)

    assert lc.stop() == EXIT_OK
    assert fake_channel.closed
    tasks.release.set()
    dispatching.join(5)
    assert not dispatching.is_alive()

    assert tasks.outstanding == 0
    assert calls == []
    assert fake_channel.written == []
    assert "Dropping request 1" in caplog.text
    assert "Could not send result" not in caplog.text
