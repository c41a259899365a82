"""Tests for the event bus and permission errors."""
import logging

from ilearn.errors import PermissionDeniedError, deny
from ilearn.events import EventEmitter, error_emitter


class TestEventEmitter:
    def test_emit_calls_listeners_in_order(self):
        emitter = EventEmitter()
        calls = []
        emitter.on("saved", lambda payload: calls.append(("first", payload)))
        emitter.on("saved", lambda payload: calls.append(("second", payload)))

        emitter.emit("saved", 42)

        assert calls == [("first", 42), ("second", 42)]

    def test_off_removes_listener(self):
        emitter = EventEmitter()
        calls = []
        emitter.on("saved", calls.append)
        emitter.off("saved", calls.append)
        emitter.off("saved", calls.append)

        emitter.emit("saved", 1)

        assert calls == []
        assert emitter.listener_count("saved") == 0

    def test_emit_without_listeners(self):
        EventEmitter().emit("nothing")

    def test_failing_listener_is_logged(self, caplog):
        emitter = EventEmitter()
        calls = []

        def broken(payload):
            raise RuntimeError("listener broke")

        emitter.on("saved", broken)
        emitter.on("saved", calls.append)

        with caplog.at_level(logging.ERROR, logger="ilearn.events"):
            emitter.emit("saved", "x")

        assert calls == ["x"]
        assert "listener broke" in caplog.text

    def test_listener_may_unsubscribe_itself(self):
        emitter = EventEmitter()
        calls = []

        def once(payload):
            calls.append(payload)
            emitter.off("saved", once)

        emitter.on("saved", once)
        emitter.emit("saved", 1)
        emitter.emit("saved", 2)

        assert calls == [1]


class TestPermissionErrors:
    def test_default_listener_is_registered(self):
        assert error_emitter.listener_count("permission-error") >= 1

    def test_deny_emits_and_returns_error(self, caplog):
        received = []
        error_emitter.on("permission-error", received.append)
        try:
            with caplog.at_level(logging.WARNING, logger="ilearn.events"):
                error = deny("list", "users/t/courses")
        finally:
            error_emitter.off("permission-error", received.append)

        assert isinstance(error, PermissionDeniedError)
        assert received == [error]
        assert "users/t/courses" in caplog.text

    def test_error_payload(self):
        error = PermissionDeniedError("update", "users/t/courses/c1")
        assert error.to_dict() == {
            "detail": "Missing or insufficient permissions to update 'users/t/courses/c1'",
            "operation": "update",
            "path": "users/t/courses/c1",
        }
