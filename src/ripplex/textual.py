"""Textual integration for ripplex. Opt-in — requires textual.

Effects that touch widgets need three guards: skip while the app is not
running or its widget tree is being swapped out, drop NoMatches from queries
against widgets that are gone, and re-run on the app thread when a write
from a worker thread triggers them. All three live here so callers keep
writing plain effects.
"""

import logging
import threading
from contextlib import contextmanager

from textual.css.query import NoMatches
from ripplex.effect import effect as _effect

logger = logging.getLogger("ripplex.textual")

# Module-owned pause state — keyed by id(app) so multiple apps work in tests.
_paused_apps: set[int] = set()


@contextmanager
def pause(app):
    """Suspend guarded effects during widget replacement."""
    key = id(app)
    _paused_apps.add(key)
    try:
        yield
    finally:
        _paused_apps.discard(key)


def is_safe(app) -> bool:
    """Is the widget tree in a queryable state?"""
    return app.is_running and id(app) not in _paused_apps


def effect(app, fn):
    """effect() that safely bridges to Textual widgets.

    The first run happens immediately on the calling thread, which must be
    the app thread. A re-run triggered from another thread is handed back to
    the app with call_from_thread, so fn reads (and is tracked) there.
    """
    _main = threading.get_ident()
    handle = None

    def _guarded():
        if not is_safe(app):
            logger.debug("Skipped %s: app paused or not running", fn)
            return
        if threading.get_ident() != _main:
            app.call_from_thread(handle)
            return
        try:
            fn()
        except NoMatches:
            logger.debug("Dropped NoMatches in %s", fn)

    handle = _effect(_guarded)
    return handle
