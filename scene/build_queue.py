"""Deferred build tasks.

Heavy geometry builds are not run inside the callback that requests them.
The callback schedules a task; the owner of the loop drains the queue once
the callback has returned. Tasks run in FIFO order, one at a time, to
completion. There is no cancellation: a task whose result is no longer
wanted still runs, and its owner discards the result.
"""

from __future__ import annotations

import logging
import time
from collections import deque
from dataclasses import dataclass, field
from typing import Any, Callable

logger = logging.getLogger(__name__)


@dataclass
class BuildTask:
    """One scheduled build.

    Attributes
    ----------
    name : str
        Label used in logs.
    func : callable
        Work to run.
    args, kwargs
        Arguments for ``func``.
    status : str
        "pending", "done", or "failed".
    result : Any
        Return value of ``func`` once done.
    elapsed_s : float
        Wall time of the run [s].
    """

    name: str
    func: Callable[..., Any]
    args: tuple = ()
    kwargs: dict = field(default_factory=dict)
    status: str = "pending"
    result: Any = None
    elapsed_s: float = 0.0

    @property
    def done(self) -> bool:
        return self.status == "done"


class BuildQueue:
    """FIFO of deferred build tasks."""

    def __init__(self) -> None:
        self._pending: deque[BuildTask] = deque()

    def __len__(self) -> int:
        return len(self._pending)

    def schedule(self, name: str, func: Callable[..., Any], *args: Any, **kwargs: Any) -> BuildTask:
        """Queue ``func(*args, **kwargs)`` to run on the next drain."""
        task = BuildTask(name=name, func=func, args=args, kwargs=kwargs)
        self._pending.append(task)
        logger.debug("Scheduled build task '%s' (%d pending)", name, len(self._pending))
        return task

    def run_pending(self) -> list[BuildTask]:
        """Run queued tasks until the queue is empty.

        Tasks scheduled by a running task are picked up in the same drain.
        If a task raises, it is marked failed, the exception propagates, and
        the remaining tasks stay queued.

        Returns
        -------
        list[BuildTask]
            Tasks that ran, in order.
        """
        ran: list[BuildTask] = []
        while self._pending:
            task = self._pending.popleft()
            t0 = time.perf_counter()
            try:
                task.result = task.func(*task.args, **task.kwargs)
            except Exception:
                task.status = "failed"
                task.elapsed_s = time.perf_counter() - t0
                logger.error("Build task '%s' failed after %.3f s", task.name, task.elapsed_s)
                raise
            task.status = "done"
            task.elapsed_s = time.perf_counter() - t0
            logger.debug("Build task '%s' done in %.3f s", task.name, task.elapsed_s)
            ran.append(task)
        return ran
