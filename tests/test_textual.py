"""Tests for ripplex.textual — Textual integration layer."""

import logging
import threading

import pytest
from textual.css.query import NoMatches

from ripplex import reactive
from ripplex import textual as rtx


class _MockApp:
    """Minimal mock matching the Textual App interface rtx needs.

    call_from_thread queues instead of running, like the real app loop;
    drain() runs the queue on the calling (app) thread.
    """

    def __init__(self, *, is_running=True):
        self.is_running = is_running
        self._call_from_thread_log = []

    def call_from_thread(self, fn, *args):
        self._call_from_thread_log.append((fn, args))

    def drain(self):
        queued, self._call_from_thread_log = self._call_from_thread_log, []
        for fn, args in queued:
            fn(*args)
        return len(queued)


class TestEffect:
    def test_runs_immediately(self):
        app = _MockApp()
        state = reactive({"a": 1})
        log = []
        rtx.effect(app, lambda: log.append(state["a"]))
        assert log == [1]

    def test_fires_when_safe(self):
        app = _MockApp()
        state = reactive({"a": 1})
        log = []
        rtx.effect(app, lambda: log.append(state["a"]))
        state["a"] = 2
        assert log == [1, 2]

    def test_skips_when_not_running(self):
        app = _MockApp(is_running=False)
        state = reactive({"a": 1})
        log = []
        rtx.effect(app, lambda: log.append(state["a"]))
        state["a"] = 2
        assert log == []

    def test_skips_during_pause(self):
        app = _MockApp()
        state = reactive({"a": 1})
        log = []
        rtx.effect(app, lambda: log.append(state["a"]))
        with rtx.pause(app):
            state["a"] = 2
        assert log == [1]
        # Dependencies survive the skipped run.
        state["a"] = 3
        assert log == [1, 3]

    def test_catches_nomatch(self, caplog):
        """NoMatches from widget queries are dropped and logged."""
        app = _MockApp()
        state = reactive({"a": 1})
        calls = [0]

        def _fn():
            calls[0] += 1
            state["a"]
            if calls[0] > 1:
                raise NoMatches("StatusFooter")

        rtx.effect(app, _fn)
        with caplog.at_level(logging.DEBUG, logger="ripplex.textual"):
            state["a"] = 2
        assert calls[0] == 2
        assert any("NoMatches" in r.getMessage() for r in caplog.records)

    def test_propagates_real_errors(self):
        """Non-NoMatches exceptions propagate normally."""
        app = _MockApp()
        state = reactive({"a": 1})

        def _fn():
            if state["a"] > 1:
                raise ValueError("boom")

        rtx.effect(app, _fn)
        with pytest.raises(ValueError, match="boom"):
            state["a"] = 2

    def test_thread_marshal(self):
        """Re-runs triggered from a background thread go through call_from_thread."""
        app = _MockApp()
        state = reactive({"a": 1})
        log = []
        rtx.effect(app, lambda: log.append(state["a"]))

        def _bg():
            state["a"] = 2

        t = threading.Thread(target=_bg)
        t.start()
        t.join()

        assert log == [1]
        assert app.drain() == 1
        assert log == [1, 2]


class TestPause:
    def test_pause_restores_on_exception(self):
        app = _MockApp()
        assert rtx.is_safe(app)

        with pytest.raises(RuntimeError):
            with rtx.pause(app):
                assert not rtx.is_safe(app)
                raise RuntimeError("oops")

        assert rtx.is_safe(app)

    def test_pause_does_not_mutate_app(self):
        app = _MockApp()
        attrs_before = set(vars(app))
        with rtx.pause(app):
            attrs_during = set(vars(app))
        assert attrs_before == attrs_during
        assert attrs_before == set(vars(app))

    def test_multiple_apps_independent(self):
        app_a = _MockApp()
        app_b = _MockApp()
        with rtx.pause(app_a):
            assert not rtx.is_safe(app_a)
            assert rtx.is_safe(app_b)
