# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""Per-submission wall-clock budget."""

import time
from dataclasses import dataclass


@dataclass(frozen=True)
class Deadline:
    """
    A point on the monotonic clock after which a submission's work stops.

    Compile and run steps cap their own timeouts with `cap()`, so one
    deadline cancels exactly the processes belonging to its submission.
    """

    expires_at: float
    budget_seconds: float

    @classmethod
    def after(cls, seconds: float) -> "Deadline":
        return cls(expires_at=time.monotonic() + seconds, budget_seconds=seconds)

    def remaining(self) -> float:
        return max(0.0, self.expires_at - time.monotonic())

    def expired(self) -> bool:
        return time.monotonic() >= self.expires_at

    def cap(self, seconds: float) -> float:
        """The smaller of `seconds` and the time left."""
        return min(seconds, self.remaining())
