"""Tests for event dispatch."""

import logging

from gesture_trainer.events import EventEmitter, EventKind, GestureMatched


class TestEmitter:
    def test_on_and_emit(self):
        emitter = EventEmitter()
        got = []
        emitter.on(EventKind.CONNECT, got.append)
        emitter.emit(EventKind.CONNECT, "payload")
        assert got == ["payload"]

    def test_gesture_name_keys(self):
        emitter = EventEmitter()
        got = []
        emitter.on("SWIPE", got.append)
        emitter.emit("SWIPE", GestureMatched("SWIPE", 0.9))
        emitter.emit("OTHER", GestureMatched("OTHER", 0.9))
        assert [e.name for e in got] == ["SWIPE"]

    def test_listeners_called_in_order(self):
        emitter = EventEmitter()
        order = []
        emitter.on(EventKind.CONNECT, lambda e: order.append(1))
        emitter.on(EventKind.CONNECT, lambda e: order.append(2))
        emitter.emit(EventKind.CONNECT)
        assert order == [1, 2]

    def test_off_by_identity(self):
        emitter = EventEmitter()
        got = []
        listener = got.append
        emitter.on(EventKind.CONNECT, listener)
        emitter.off(EventKind.CONNECT, listener)
        emitter.emit(EventKind.CONNECT, 1)
        assert got == []

    def test_off_unknown_is_noop(self):
        emitter = EventEmitter()
        emitter.off(EventKind.CONNECT, print)
        emitter.off(None, print)
        assert emitter.listeners(EventKind.CONNECT) == []

    def test_failing_listener_is_logged(self, caplog):
        emitter = EventEmitter()
        got = []

        def bad(event):
            raise ValueError("boom")

        emitter.on(EventKind.CONNECT, bad)
        emitter.on(EventKind.CONNECT, got.append)
        with caplog.at_level(logging.ERROR, logger="gesture_trainer.events"):
            emitter.emit(EventKind.CONNECT, 1)
        assert got == [1]
        assert "boom" in caplog.text

    def test_unsubscribe_during_emit(self):
        emitter = EventEmitter()
        got = []

        def once(event):
            got.append(event)
            emitter.off(EventKind.CONNECT, once)

        emitter.on(EventKind.CONNECT, once)
        emitter.emit(EventKind.CONNECT, 1)
        emitter.emit(EventKind.CONNECT, 2)
        assert got == [1]

    def test_clear(self):
        emitter = EventEmitter()
        emitter.on(EventKind.CONNECT, print)
        emitter.clear()
        assert emitter.listeners(EventKind.CONNECT) == []

    def test_wire_names(self):
        assert EventKind.GESTURE_RECOGNIZED.value == "gesture-recognized"
        assert EventKind.TRAINING_COUNTDOWN.value == "training-countdown"
