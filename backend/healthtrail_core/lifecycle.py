from __future__ import annotations

from .models import TERMINAL_STATES


class LifecycleError(Exception):
    pass


class SubmissionLifecycle:
    _TRANSITIONS = {
        "idle": {"submitting"},
        "submitting": {"succeeded", "failed"},
        "succeeded": {"idle"},
        "failed": {"idle"},
    }

    def __init__(self) -> None:
        self._status = "idle"
        self._history: list[str] = ["idle"]

    @property
    def status(self) -> str:
        return self._status

    @property
    def history(self) -> list[str]:
        """States visited by the current (or most recent) submission round."""
        return list(self._history)

    def transition(self, next_state: str) -> list[str]:
        allowed_next = self._TRANSITIONS.get(self._status, set())
        if next_state not in allowed_next:
            raise LifecycleError(f"Invalid transition: {self._status} -> {next_state}")
        if next_state == "submitting":
            self._history = ["idle"]
        self._status = next_state
        self._history.append(next_state)
        return self.history

    def settle(self) -> list[str]:
        """Return to idle from wherever the round stopped."""
        if self._status == "submitting":
            # Interrupted before an outcome was recorded, e.g. task cancellation.
            self.transition("failed")
        if self._status in TERMINAL_STATES:
            return self.transition("idle")
        return self.history
