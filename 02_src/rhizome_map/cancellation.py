"""Cooperative cancellation for pipeline runs."""

from .exceptions import PipelineCancelled


class CancellationToken:
    """Flag checked by the pipeline driver between stages.

    Cancelling never interrupts a request already in flight; its result is
    discarded at the next check instead.
    """

    def __init__(self) -> None:
        self._cancelled = False
        self.reason = ""

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self, reason: str = "cancelled by caller") -> None:
        self._cancelled = True
        self.reason = reason

    def raise_if_cancelled(self, stage: str) -> None:
        if self._cancelled:
            raise PipelineCancelled(
                f"Pipeline cancelled at {stage}",
                details={"stage": stage, "reason": self.reason},
            )
