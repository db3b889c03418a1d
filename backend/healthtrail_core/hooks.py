from __future__ import annotations

import logging
from typing import Callable

from .models import Event, SessionState

logger = logging.getLogger(__name__)


AfterAppendHook = Callable[[str, Event, SessionState], None]


class HookRunner:
    def __init__(self) -> None:
        self._after_append: list[AfterAppendHook] = []

    def add_after_append(self, hook: AfterAppendHook) -> None:
        self._after_append.append(hook)

    def run_after_append(self, session_key: str, event: Event, state: SessionState) -> None:
        # The event is already in the log; an observer failure must not undo or fail the action.
        for hook in self._after_append:
            try:
                hook(session_key, event, state)
            except Exception:
                logger.exception("after-append hook failed (%s): kind=%s", session_key, event.kind.value)
