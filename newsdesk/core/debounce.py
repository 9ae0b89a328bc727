"""
Debounce utility.

Collapses a burst of calls (e.g. keystrokes in a search box) into one call
made ``delay`` seconds after the last one.
"""

import threading

from .config import get_config_value


class Debouncer:
    """Delay ``func`` until calls stop arriving for ``delay`` seconds."""

    def __init__(self, func, delay=0.3):
        self.func = func
        self.delay = delay
        self._timer = None
        self._pending = None
        self._lock = threading.Lock()

    @classmethod
    def from_milliseconds(cls, func, delay_ms):
        return cls(func, delay=delay_ms / 1000.0)

    @classmethod
    def from_config(cls, func, setting='SEARCH_DEBOUNCE_MS'):
        """Delay in milliseconds read from the named setting."""
        return cls.from_milliseconds(func, int(get_config_value(setting, 300)))

    def __call__(self, *args, **kwargs):
        if self.delay <= 0:
            self.func(*args, **kwargs)
            return
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
            self._pending = (args, kwargs)
            self._timer = threading.Timer(self.delay, self._fire)
            self._timer.daemon = True
            self._timer.start()

    @property
    def pending(self):
        return self._pending is not None

    def _take(self):
        with self._lock:
            call, self._pending = self._pending, None
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None
            return call

    def _fire(self):
        call = self._take()
        if call is not None:
            args, kwargs = call
            self.func(*args, **kwargs)

    def flush(self):
        """Run the pending call immediately, if any."""
        self._fire()

    def cancel(self):
        """Drop the pending call (component teardown)."""
        self._take()
