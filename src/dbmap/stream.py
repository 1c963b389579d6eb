"""
Push-style row streams over pull-based cursors.

A `RowStream` wraps a source generator that yields scanned records and
raises on the first error. In threaded mode the source runs in a dedicated
producer thread which hands elements over one at a time: it waits for the
consumer to ask for the next element before emitting, so at most one
element is ever in flight. Cancellation is explicit. `close()`, leaving a
`with` block, or garbage collection of the stream sets a cancellation event
which the producer checks before each emission, after which the source is
closed (and with it the cursor).
"""
import inspect
import logging
import queue
import threading
from collections.abc import Callable, Generator
from typing import Any

logger = logging.getLogger(__name__)

__all__ = ['RowStream']

_END = object()
_ROW = 'row'
_ERROR = 'error'


def _pump(factory: Callable[[], Generator], demand: threading.Semaphore,
          handoff: queue.Queue, cancel: threading.Event,
          on_abandon: Callable[[], None] | None) -> None:
    """Producer loop. Holds no reference to the RowStream so it can be collected.

    A source cancelled before it ever ran is released through `on_abandon`.
    """
    source = factory()
    try:
        while not cancel.is_set():
            try:
                item = (_ROW, next(source))
            except StopIteration:
                item = _END
            except Exception as e:
                item = (_ERROR, e)
            demand.acquire()
            if cancel.is_set():
                logger.debug('Row stream cancelled by consumer')
                return
            handoff.put(item)
            if item is _END or item[0] == _ERROR:
                return
    finally:
        _close_source(source, on_abandon)


def _close_source(source: Generator, on_abandon: Callable[[], None] | None) -> None:
    started = inspect.getgeneratorstate(source) != inspect.GEN_CREATED
    source.close()
    if not started and on_abandon is not None:
        on_abandon()


class RowStream:
    """Lazy, single-pass iterator over scanned records.

    Iteration raises the first scan or cursor error as its final element.
    The stream is not restartable.
    """

    def __init__(self, factory: Callable[[], Generator], threaded: bool = True,
                 on_abandon: Callable[[], None] | None = None) -> None:
        self._done = False
        self._threaded = threaded
        self._thread = None
        self._on_abandon = on_abandon
        if not threaded:
            self._source = factory()
            return
        self._demand = threading.Semaphore(0)
        self._handoff: queue.Queue = queue.Queue(maxsize=1)
        self._cancel = threading.Event()
        self._thread = threading.Thread(
            target=_pump,
            args=(factory, self._demand, self._handoff, self._cancel, on_abandon),
            name='dbmap-row-stream',
            daemon=True,
        )
        self._thread.start()

    def __iter__(self) -> 'RowStream':
        return self

    def __next__(self) -> Any:
        if self._done:
            raise StopIteration
        if not self._threaded:
            try:
                return next(self._source)
            except BaseException:
                self._done = True
                raise

        self._demand.release()
        item = self._handoff.get()
        if item is _END:
            self._finish()
            raise StopIteration
        kind, payload = item
        if kind == _ERROR:
            self._finish()
            raise payload
        return payload

    def _finish(self) -> None:
        self._done = True
        if self._thread is not None:
            self._thread.join()

    def close(self) -> None:
        """Stop the producer and release the cursor. Safe to call repeatedly.
        """
        if self._done:
            return
        self._done = True
        if not self._threaded:
            _close_source(self._source, self._on_abandon)
            return
        self._cancel.set()
        self._demand.release()
        self._thread.join()

    def __enter__(self) -> 'RowStream':
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self.close()

    def __del__(self) -> None:
        if getattr(self, '_done', True):
            return
        self.close()
