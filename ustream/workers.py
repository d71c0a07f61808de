"""A pool of worker threads that run jobs handed to them one at a time."""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable
from typing import Any

__all__ = ["Worker", "WorkersPool"]

_log = logging.getLogger(__name__)


class Worker:
    """A thread of a pool together with the job object it works on."""

    def __init__(self, pool: WorkersPool, number: int, name: str, job: Any) -> None:
        self.pool = pool
        self.number = number
        self.name = name
        self.job = job

        self.last_job_time = 0.0
        self.job_start_ts = 0.0
        self.job_timely = False
        self.job_failed = False

        self.has_job = False
        self._has_job_cond = threading.Condition()

        self.thread = threading.Thread(target=self._loop, name=name, daemon=True)

    def __repr__(self) -> str:
        return f"Worker(name={self.name!r}, has_job={self.has_job})"

    def _give(self) -> None:
        with self._has_job_cond:
            self.has_job = True
            self._has_job_cond.notify()

    def _run_once(self) -> None:
        job_start_ts = time.monotonic()
        try:
            ok = bool(self.pool._run_job(self))
        except Exception:
            _log.exception("Worker %s: job raised an error", self.name)
            ok = False
        self.job_failed = not ok
        if ok:
            self.job_start_ts = job_start_ts
            self.last_job_time = time.monotonic() - job_start_ts
        self.has_job = False

    def _loop(self) -> None:
        pool = self.pool
        _log.debug("Hello! I am a worker %s ^_^", self.name)
        while not pool._stop.is_set():
            _log.debug("Worker %s waiting for a new job ...", self.name)
            with self._has_job_cond:
                self._has_job_cond.wait_for(lambda: self.has_job)

            if not pool._stop.is_set():
                self._run_once()

            with pool._free_cond:
                pool.free_workers += 1
                pool._free_cond.notify()
        _log.debug("Bye-bye (worker %s)", self.name)


class WorkersPool:
    """Threads that each process one job at a time, handed out by :meth:`wait`.

    ``job_factory`` makes the job object kept by each worker, ``run_job``
    is called with the worker and returns True on success, and
    ``job_destroy`` (if given) receives each job object on close.
    """

    def __init__(
        self,
        name: str,
        prefix: str,
        n_workers: int,
        desired_interval: float,
        job_factory: Callable[[], Any],
        run_job: Callable[[Worker], bool],
        job_destroy: Callable[[Any], None] | None = None,
    ) -> None:
        if n_workers < 1:
            raise ValueError("A pool needs at least one worker")
        _log.info("Creating pool %s with %u workers ...", name, n_workers)

        self.name = name
        self.desired_interval = desired_interval
        self.n_workers = n_workers
        self.job_timely_ts = 0.0
        self.approx_job_time = 0.0
        self.free_workers = 0

        self._run_job = run_job
        self._job_destroy = job_destroy
        self._stop = threading.Event()
        self._free_cond = threading.Condition()
        self._closed = False

        self._workers: list[Worker] = []
        for number in range(n_workers):
            worker = Worker(self, number, f"{prefix}-{number}", job_factory())
            worker.thread.start()
            with self._free_cond:
                self.free_workers += 1
            self._workers.append(worker)

    @property
    def workers(self) -> tuple[Worker, ...]:
        """The workers in their current order: the last handed out is last."""
        return tuple(self._workers)

    def wait(self) -> Worker:
        """Block until a worker is free and return it.

        Of the free workers the one whose last job started most recently is
        chosen. Its ``job_timely`` tells whether that job is newer than any
        result handed out before.
        """
        with self._free_cond:
            self._free_cond.wait_for(lambda: self.free_workers > 0)

        found: Worker | None = None
        for worker in self._workers:
            if not worker.has_job and (found is None or found.job_start_ts <= worker.job_start_ts):
                found = worker
        if found is None:
            raise RuntimeError(f"Pool {self.name}: no free worker found")

        self._workers.remove(found)
        self._workers.append(found)

        found.job_timely = found.job_start_ts > self.job_timely_ts
        if found.job_timely:
            self.job_timely_ts = found.job_start_ts
        return found

    def assign(self, worker: Worker) -> None:
        """Start the worker on its job."""
        worker._give()
        with self._free_cond:
            self.free_workers -= 1

    def get_fluency_delay(self, worker: Worker) -> float:
        """Return how long to wait before grabbing the next frame.

        The average job time is smoothed with the worker's last job time
        and spread over all workers; a larger desired interval wins.
        """
        approx_job_time = self.approx_job_time * 0.9 + worker.last_job_time * 0.1
        _log.debug(
            "Correcting pool's %s approx_job_time: %.3f -> %.3f (last_job_time=%.3f)",
            self.name,
            self.approx_job_time,
            approx_job_time,
            worker.last_job_time,
        )
        self.approx_job_time = approx_job_time

        min_delay = self.approx_job_time / self.n_workers
        if self.desired_interval > 0 and min_delay > 0 and self.desired_interval > min_delay:
            return self.desired_interval
        return min_delay

    def close(self) -> None:
        """Stop all workers, wait for them and destroy their jobs."""
        if self._closed:
            return
        self._closed = True
        _log.info("Destroying workers pool %s ...", self.name)
        self._stop.set()
        for worker in self._workers:
            worker._give()  # Final job: die
            worker.thread.join()
            if self._job_destroy is not None:
                self._job_destroy(worker.job)

    def __enter__(self) -> WorkersPool:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()