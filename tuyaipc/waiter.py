"""A one-shot completion latch that carries an error."""

from __future__ import annotations

import threading
from concurrent.futures import Future


class Waiter:
    """Latch that starts on the first wait and finishes on the last done.

    Once finished, new waiters return at once with the stored error and
    further ``done`` calls are ignored.
    """

    def __init__(self) -> None:
        self._cond = threading.Condition()
        self._state = 0  # negative once finished
        self._err: BaseException | None = None

    def add(self, delta: int) -> None:
        """Add ``delta`` pending tasks, unless the waiter has finished."""
        with self._cond:
            if self._state < 0:
                return
            if self._state + delta < 0:
                raise ValueError("negative waiter counter")
            self._state += delta
            self._cond.notify_all()

    def wait(self) -> None:
        """Block until finished; raise the stored error if there is one."""
        with self._cond:
            if self._state == 0:
                self._state = 1
            self._cond.wait_for(lambda: self._state <= 0)
            err = self._err
        if err is not None:
            raise err

    def done(self, err: BaseException | None = None) -> None:
        """Mark one task done; the last one finishes the waiter with ``err``."""
        with self._cond:
            if self._state > 0:
                self._state -= 1
            if self._state == 0:
                self._state = -1
                self._err = err
                self._cond.notify_all()

    def wait_future(self) -> Future | None:
        """Return a future resolved when finished, or None if already finished."""
        with self._cond:
            if self._state < 0:
                return None
        future: Future = Future()

        def run() -> None:
            try:
                self.wait()
            except BaseException as exc:
                future.set_exception(exc)
            else:
                future.set_result(None)

        threading.Thread(target=run, daemon=True).start()
        return future