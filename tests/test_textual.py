"""Tests for objectpool.textual — Textual bindings for pool cells."""

import logging
import threading

import pytest
from textual.css.query import NoMatches

from objectpool import ObjectPool
from objectpool import textual as stx


class _MockApp:
    """Minimal mock matching the Textual App interface stx needs."""

    def __init__(self, *, is_running=True):
        self.is_running = is_running
        self._call_from_thread_log = []

    def call_from_thread(self, fn, *args):
        self._call_from_thread_log.append((fn, args))
        fn(*args)


def _user(**fields):
    return {"id": 1, "type": "user", **fields}


@pytest.fixture
def pool():
    return ObjectPool()


class TestBind:
    def test_skips_when_not_running(self, pool):
        app = _MockApp(is_running=False)
        effects = []
        stx.bind(app, pool.observe("user:1"), effects.append)
        pool.write(_user(name="Alice"))
        assert effects == []

    def test_skips_during_pause(self, pool):
        app = _MockApp()
        effects = []
        stx.bind(app, pool.observe("user:1"), effects.append)
        with stx.pause(app):
            pool.write(_user(name="Alice"))
        assert effects == []

    def test_fires_when_safe(self, pool):
        app = _MockApp()
        effects = []
        stx.bind(app, pool.observe("user:1"), effects.append)
        pool.write(_user(name="Alice"))
        assert effects == [_user(name="Alice")]

    def test_fire_immediately(self, pool):
        pool.write(_user(name="Alice"))
        app = _MockApp()
        effects = []
        stx.bind(app, pool.observe("user:1"), effects.append, fire_immediately=True)
        assert effects == [_user(name="Alice")]

    def test_catches_nomatch(self, pool, caplog):
        app = _MockApp()

        def _raise_nomatch(value):
            raise NoMatches("UserPanel")

        r = stx.bind(app, pool.observe("user:1"), _raise_nomatch)
        with caplog.at_level(logging.DEBUG, logger="objectpool.textual"):
            pool.write(_user(name="Alice"))
        assert "Widget query missed" in caplog.text
        r.dispose()

    def test_propagates_real_errors(self, pool):
        app = _MockApp()

        def _raise_value_error(value):
            raise ValueError("boom")

        stx.bind(app, pool.observe("user:1"), _raise_value_error)
        with pytest.raises(ValueError, match="boom"):
            pool.write(_user(name="Alice"))

    def test_dispose_stops_listening(self, pool):
        app = _MockApp()
        effects = []
        r = stx.bind(app, pool.observe("user:1"), effects.append)
        assert pool.listener_count("user:1") == 1
        r.dispose()
        assert pool.listener_count("user:1") == 0
        pool.write(_user(name="Alice"))
        assert effects == []

    def test_thread_marshal(self, pool):
        """Writes from a worker thread reach the widget via call_from_thread."""
        app = _MockApp()
        effects = []
        stx.bind(app, pool.observe("user:1"), effects.append)

        t = threading.Thread(target=lambda: pool.write(_user(name="Alice")))
        t.start()
        t.join()

        assert effects == [_user(name="Alice")]
        assert len(app._call_from_thread_log) >= 1


class TestAutorun:
    def test_fires_when_safe(self, pool):
        app = _MockApp()
        cell = pool.observe("user:1")
        log = []
        stx.autorun(app, lambda: log.append(cell.get()))
        pool.write(_user(name="Alice"))
        assert log == [None, _user(name="Alice")]

    def test_skips_during_pause(self, pool):
        app = _MockApp()
        cell = pool.observe("user:1")
        log = []
        stx.autorun(app, lambda: log.append(cell.get()))
        assert log == [None]
        with stx.pause(app):
            pool.write(_user(name="Alice"))
        assert log == [None]


class TestPause:
    def test_pause_restores_on_exception(self):
        app = _MockApp()
        assert stx.is_safe(app)

        with pytest.raises(RuntimeError):
            with stx.pause(app):
                assert not stx.is_safe(app)
                raise RuntimeError("oops")

        assert stx.is_safe(app)

    def test_pause_does_not_mutate_app(self):
        app = _MockApp()
        attrs_before = set(vars(app))
        with stx.pause(app):
            attrs_during = set(vars(app))
        assert attrs_before == attrs_during
        assert attrs_before == set(vars(app))

    def test_multiple_apps_independent(self):
        app_a = _MockApp()
        app_b = _MockApp()
        with stx.pause(app_a):
            assert not stx.is_safe(app_a)
            assert stx.is_safe(app_b)
