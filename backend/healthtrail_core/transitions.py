from __future__ import annotations

from dataclasses import replace

from .models import (
    ADVICE_FALLBACK,
    AppendEvent,
    Event,
    EventKind,
    Language,
    Role,
    SessionState,
    Tab,
    Transition,
    coerce_language,
    coerce_role,
    coerce_tab,
)
from .templates import doctor_opinion_message, report_message


def can_submit(state: SessionState) -> bool:
    return bool(state.symptom_input.strip()) and not state.busy


def begin_submission(state: SessionState) -> Transition:
    if not can_submit(state):
        return Transition(state)
    return Transition(replace(state, busy=True))


def complete_submission(state: SessionState, symptom_text: str, advice: str) -> Transition:
    event = Event(kind=EventKind.SYMPTOM, value=symptom_text, advice=advice)
    return Transition(replace(state, last_advice=advice), (AppendEvent(event),))


def fail_submission(state: SessionState) -> Transition:
    return Transition(replace(state, last_advice=ADVICE_FALLBACK))


def finish_submission(state: SessionState) -> Transition:
    return Transition(replace(state, busy=False, symptom_input=""))


def record_report(state: SessionState, file_name: str | None) -> Transition:
    message = report_message(state.language, file_name)
    event = Event(kind=EventKind.REPORT, value=message)
    return Transition(replace(state, last_report=message), (AppendEvent(event),))


def record_doctor_opinion(state: SessionState) -> Transition:
    message = doctor_opinion_message(state.language)
    event = Event(kind=EventKind.DOCTOR_OPINION, value=message)
    return Transition(replace(state, last_opinion=message), (AppendEvent(event),))


def set_symptom_input(state: SessionState, text: str) -> Transition:
    return Transition(replace(state, symptom_input=text or ""))


def select_role(state: SessionState, role: Role | str) -> Transition:
    return Transition(replace(state, role=coerce_role(role)))


def select_language(state: SessionState, language: Language | str) -> Transition:
    return Transition(replace(state, language=coerce_language(language)))


def select_tab(state: SessionState, tab: Tab | str) -> Transition:
    return Transition(replace(state, active_tab=coerce_tab(tab)))
