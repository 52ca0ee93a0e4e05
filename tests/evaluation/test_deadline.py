# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""Tests for the per-submission deadline."""

import time

from gradeline.evaluation.runner.deadline import Deadline


class TestDeadline:
    def test_fresh_deadline_is_not_expired(self) -> None:
        deadline = Deadline.after(60.0)
        assert not deadline.expired()
        assert 0.0 < deadline.remaining() <= 60.0
        assert deadline.budget_seconds == 60.0

    def test_past_deadline_is_expired(self) -> None:
        deadline = Deadline(expires_at=time.monotonic() - 1.0, budget_seconds=5.0)
        assert deadline.expired()
        assert deadline.remaining() == 0.0

    def test_cap_takes_the_smaller_value(self) -> None:
        deadline = Deadline.after(60.0)
        assert deadline.cap(2.0) == 2.0
        assert deadline.cap(600.0) <= 60.0

    def test_cap_of_expired_deadline_is_zero(self) -> None:
        deadline = Deadline(expires_at=time.monotonic() - 1.0, budget_seconds=5.0)
        assert deadline.cap(10.0) == 0.0
