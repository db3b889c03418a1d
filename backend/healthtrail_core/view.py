from __future__ import annotations

from typing import Any, Sequence

from .models import Event, SessionState
from .templates import phrases_for


def render_timeline(state: SessionState, events: Sequence[Event]) -> dict[str, Any]:
    phrases = phrases_for(state.language)
    return {
        "items": [event.as_dict() for event in events],
        "empty_message": None if events else phrases.empty_timeline,
    }


def render_session(state: SessionState, events: Sequence[Event]) -> dict[str, Any]:
    phrases = phrases_for(state.language)
    timeline = render_timeline(state, events)
    return {
        "role": state.role.value,
        "language": state.language.value,
        "active_tab": state.active_tab.value,
        "symptom_input": state.symptom_input,
        "busy": state.busy,
        "submit_label": phrases.submit_busy if state.busy else phrases.submit_idle,
        "last_advice": state.last_advice,
        "last_report": state.last_report,
        "last_opinion": state.last_opinion,
        "timeline": timeline["items"],
        "timeline_empty_message": timeline["empty_message"],
    }
