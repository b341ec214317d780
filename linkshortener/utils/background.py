"""Fire-and-forget background tasks

Side effects that must not delay or alter an already computed response (click
counting, QR artifact write-back) are submitted here. Each task runs on a
worker thread; its failure is logged and never joined with the caller.

Classes:
    BackgroundTasks:
        Thin wrapper around ThreadPoolExecutor with failure logging.

Example:
    >>> tasks = BackgroundTasks(max_workers=2)
    >>> tasks.submit(link_dao.increment_clicks, 'abc1234', task_name='increment_clicks')
    <Future ...>
    >>> tasks.drain()  # wait for pending work (tests, shutdown)
"""

import logging
from concurrent.futures import Future, ThreadPoolExecutor
from collections.abc import Callable
from typing import Any

from linkshortener.constants import Defaults


logger = logging.getLogger(__name__)

BACKGROUND_TASK_FAILED = 'BACKGROUND_TASK_FAILED'


class BackgroundTasks:
    def __init__(self, max_workers: int = Defaults.BACKGROUND_WORKERS, executor: ThreadPoolExecutor | None = None):
        self._executor = executor or ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix='linkshortener-bg')

    def submit(self, func: Callable[..., Any], *args: Any, task_name: str | None = None, **kwargs: Any) -> Future:
        """Launch `func(*args, **kwargs)` without waiting for it

        Args:
            func (Callable):
                Work to run on a background thread.
            task_name (str | None):
                Name used in failure logs. Defaults to the function's name.

        Returns:
            Future: handle for callers (tests) that do want to wait.
        """
        name = task_name or getattr(func, '__name__', repr(func))
        future = self._executor.submit(func, *args, **kwargs)
        future.add_done_callback(lambda f: self._log_failure(f, name))
        return future

    def close(self) -> None:
        """Stop accepting new tasks. Already submitted tasks still run."""
        self._executor.shutdown(wait=False)

    def drain(self) -> None:
        """Stop accepting new tasks and wait for every submitted task to finish."""
        self._executor.shutdown(wait=True)

    @staticmethod
    def _log_failure(future: Future, name: str) -> None:
        if future.cancelled():
            logger.warning('Background task %s was cancelled.', name, extra={'event': BACKGROUND_TASK_FAILED, 'task': name})
            return

        error = future.exception()
        if error is not None:
            logger.error(
                'Background task %s failed.',
                name,
                exc_info=(type(error), error, error.__traceback__),
                extra={'event': BACKGROUND_TASK_FAILED, 'task': name, 'error': error.__class__.__name__},
            )
