# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Coarse memory accounting for one program run.

Two strategies, both psutil-backed and both approximate:

  process_delta  resident size of the grader itself, sampled before launch
                 and after termination; the (non-negative) difference is
                 reported. Cheap, and what the limit check was calibrated on.
  child_peak     a background thread polls the child's resident size every
                 few milliseconds and reports the highest value seen. A
                 program that exits between two polls reports what the last
                 poll saw, possibly zero.

Neither is kernel-level per-process accounting, and neither aborts a run:
the memory limit is enforced on the aggregate after all test cases pass.
"""

import threading

import psutil

from gradeline.logging.logger import get_logger

logger = get_logger(__name__)

_POLL_INTERVAL_SECONDS = 0.01


def _own_rss() -> int:
    return psutil.Process().memory_info().rss


class MemorySampler:
    """
    One-shot sampler: `before()` ahead of launch, `attach(pid)` right after,
    `after()` once the process has terminated.
    """

    def __init__(self, mode: str = "process_delta") -> None:
        if mode not in ("process_delta", "child_peak"):
            raise ValueError(f"Unknown memory accounting mode: {mode}")
        self._mode = mode
        self._baseline = 0
        self._peak = 0
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None

    def before(self) -> None:
        if self._mode == "process_delta":
            self._baseline = _own_rss()

    def attach(self, pid: int) -> None:
        if self._mode != "child_peak":
            return
        try:
            process = psutil.Process(pid)
        except psutil.NoSuchProcess:
            # Already gone; nothing to watch.
            return
        self._thread = threading.Thread(
            target=self._watch, args=(process,), name=f"memwatch-{pid}", daemon=True
        )
        self._thread.start()

    def after(self) -> int:
        if self._mode == "process_delta":
            return max(0, _own_rss() - self._baseline)

        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout=1.0)
        return self._peak

    def _watch(self, process: psutil.Process) -> None:
        while not self._stop.is_set():
            try:
                rss = process.memory_info().rss
            except (psutil.NoSuchProcess, psutil.ZombieProcess):
                return
            except psutil.Error as exc:
                logger.debug("Memory poll failed", extra={"pid": process.pid, "error": str(exc)})
                return
            if rss > self._peak:
                self._peak = rss
            self._stop.wait(_POLL_INTERVAL_SECONDS)
