from .event_log import EventLog
from .hooks import HookRunner
from .lifecycle import LifecycleError, SubmissionLifecycle
from .models import (
    ADVICE_FALLBACK,
    SUBMISSION_STATES,
    TERMINAL_STATES,
    AdviceOutcome,
    Event,
    EventKind,
    Language,
    Role,
    SessionState,
    Tab,
)
from .orchestrator import AdviceSource, Orchestrator

__all__ = [
    "ADVICE_FALLBACK",
    "SUBMISSION_STATES",
    "TERMINAL_STATES",
    "AdviceOutcome",
    "AdviceSource",
    "Event",
    "EventKind",
    "EventLog",
    "HookRunner",
    "Language",
    "LifecycleError",
    "Orchestrator",
    "Role",
    "SessionState",
    "SubmissionLifecycle",
    "Tab",
]
