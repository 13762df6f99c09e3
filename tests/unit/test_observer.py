import logging

from triage.utils.observer import Signal


def test_connect_emit_and_unsubscribe():
    signal = Signal("test")
    seen = []
    handle = signal.connect(seen.append)

    signal.emit(1)
    handle.unsubscribe()
    handle.unsubscribe()
    signal.emit(2)

    assert seen == [1]
    assert len(signal) == 0


def test_failing_observer_is_logged_and_others_still_run(caplog):
    signal = Signal("test")
    seen = []

    def broken(_value):
        raise RuntimeError("boom")

    signal.connect(broken)
    signal.connect(seen.append)

    with caplog.at_level(logging.ERROR, logger="triage.utils.observer"):
        signal.emit("x")

    assert seen == ["x"]
    assert "Error in observer callback" in caplog.text


def test_observer_may_disconnect_itself_during_emit():
    signal = Signal("test")
    seen = []

    def once(value):
        seen.append(value)
        signal.disconnect(once)

    signal.connect(once)
    signal.emit("a")
    signal.emit("b")

    assert seen == ["a"]
