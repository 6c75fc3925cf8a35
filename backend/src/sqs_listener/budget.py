from typing import Optional


class LeaseBudgetTracker:
    """
    Decides whether enough of a batch's visibility window is left to start
    another message.

    The whole batch shares one lease that started when it was fetched. The
    estimate for the next message is the longest gap seen between two checks
    in this batch, so one slow message raises the bar for the rest of it.
    Not safe for concurrent use; timings assume messages run one at a time.
    """

    def __init__(self, visibility_timeout: float):
        self.visibility_timeout = visibility_timeout
        self.batch_started_at: Optional[float] = None
        self.last_finished_at: Optional[float] = None
        self.longest_elapsed: Optional[float] = None

    def check_budget(self, now: float) -> bool:
        """
        Records a check at `now` and reports whether another message fits.

        Args:
            now (float): Current time in seconds, from a monotonic clock.

        Returns:
            bool: True if the time remaining exceeds the longest gap observed so far.
        """
        if self.batch_started_at is None:
            self.batch_started_at = now
        if self.last_finished_at is None:
            self.last_finished_at = now
        if self.longest_elapsed is None:
            self.longest_elapsed = 0.0

        elapsed = now - self.last_finished_at
        self.longest_elapsed = max(self.longest_elapsed, elapsed)

        # Baseline for the next check
        self.last_finished_at = now

        return self.time_remaining(now) > self.longest_elapsed

    def time_remaining(self, now: float) -> float:
        if self.batch_started_at is None:
            return float(self.visibility_timeout)
        return self.visibility_timeout - (now - self.batch_started_at)

    def reset(self):
        """Clears all timestamps before the next batch."""
        self.batch_started_at = None
        self.last_finished_at = None
        self.longest_elapsed = None
