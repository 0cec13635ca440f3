"""Tests for EventEmitter and FrameRateCounter."""

from facemimic.processors.events import EventEmitter
from facemimic.processors.frame_rate import FrameRateCounter


def test_on_emit_and_unsubscribe():
    events = EventEmitter()
    received = []
    unsubscribe = events.on("face_tracked", received.append)

    events.emit("face_tracked", {"n": 1})
    unsubscribe()
    events.emit("face_tracked", {"n": 2})

    assert received == [{"n": 1}]
    assert events.listener_count("face_tracked") == 0


def test_once_delivers_a_single_time():
    events = EventEmitter()
    received = []
    events.once("fps_update", received.append)
    events.emit("fps_update", 1)
    events.emit("fps_update", 2)
    assert received == [1]


def test_failing_listener_is_isolated(caplog):
    events = EventEmitter()
    received = []

    def broken(payload):
        raise RuntimeError("boom")

    events.on("face_detected", broken)
    events.on("face_detected", received.append)
    events.emit("face_detected", {"detected": True})

    assert received == [{"detected": True}]
    assert "Error in face_detected listener" in caplog.text
    assert "boom" in caplog.text


def test_off_and_clear():
    events = EventEmitter()
    listener = lambda payload: None
    events.on("a", listener)
    events.on("b", listener)
    events.off("a", listener)
    events.off("missing", listener)
    assert events.listener_count("a") == 0
    assert events.listener_count("b") == 1

    events.on("a", listener)
    events.clear("a")
    assert events.listener_count("a") == 0
    assert events.listener_count("b") == 1
    events.clear()
    assert events.listener_count("b") == 0


def test_frame_rate_updates_once_per_interval():
    now = [0.0]
    counter = FrameRateCounter(clock=lambda: now[0])

    assert counter.tick() is None
    for _ in range(29):
        now[0] += 1 / 30
        result = counter.tick()
    assert result is None

    now[0] = 1.0
    assert counter.tick() == 30
    assert counter.fps == 30

    counter.reset()
    assert counter.fps == 0
