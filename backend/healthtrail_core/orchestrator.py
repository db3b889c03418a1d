from __future__ import annotations

import logging
from typing import Any, Protocol

from . import transitions
from .event_log import EventLog
from .hooks import HookRunner
from .lifecycle import SubmissionLifecycle
from .models import ADVICE_FALLBACK, AdviceOutcome, Event, Language, Role, SessionState, Tab, Transition
from .view import render_session

logger = logging.getLogger(__name__)


class AdviceSource(Protocol):
    async def get_advice(self, symptom_text: str) -> str: ...


class Orchestrator:
    """Owns one session's state and event log and drives every user action through them.

    State changes only happen through ``_apply`` with a ``Transition`` produced by
    ``transitions``; event appends are the effects those transitions carry.
    """

    def __init__(
        self,
        *,
        provider: AdviceSource,
        session_key: str = "local",
        hooks: HookRunner | None = None,
        state: SessionState | None = None,
    ) -> None:
        self.session_key = session_key
        self.provider = provider
        self.hooks = hooks or HookRunner()
        self.events = EventLog()
        self.lifecycle = SubmissionLifecycle()
        self._state = state or SessionState()

    @property
    def state(self) -> SessionState:
        return self._state

    def _apply(self, transition: Transition) -> SessionState:
        self._state = transition.state
        for effect in transition.effects:
            self.events.append(effect.event)
            self.hooks.run_after_append(self.session_key, effect.event, self._state)
        return self._state

    async def submit_symptom(self, text: str | None = None) -> AdviceOutcome | None:
        candidate = self._state
        if text is not None:
            candidate = transitions.set_symptom_input(candidate, text).state
        if not transitions.can_submit(candidate):
            # Empty input or a consultation already in flight; the buffer is left as typed.
            return None

        self._apply(transitions.set_symptom_input(self._state, candidate.symptom_input))
        symptom_text = self._state.symptom_input
        self._apply(transitions.begin_submission(self._state))
        self.lifecycle.transition("submitting")

        try:
            try:
                advice = await self.provider.get_advice(symptom_text)
            except Exception as exc:
                logger.warning("advice request failed (%s): %s", self.session_key, exc)
                self._apply(transitions.fail_submission(self._state))
                self.lifecycle.transition("failed")
                outcome = AdviceOutcome(succeeded=False, advice=ADVICE_FALLBACK, error=str(exc))
            else:
                self._apply(transitions.complete_submission(self._state, symptom_text, advice))
                self.lifecycle.transition("succeeded")
                outcome = AdviceOutcome(succeeded=True, advice=advice)
        finally:
            self._apply(transitions.finish_submission(self._state))
            history = self.lifecycle.settle()

        outcome.lifecycle = history
        return outcome

    def upload_report(self, file_name: str | None) -> Event:
        self._apply(transitions.record_report(self._state, file_name))
        return self.events.all()[-1]

    def request_doctor_opinion(self) -> Event:
        self._apply(transitions.record_doctor_opinion(self._state))
        return self.events.all()[-1]

    def set_symptom_input(self, text: str) -> SessionState:
        return self._apply(transitions.set_symptom_input(self._state, text))

    def select_role(self, role: Role | str) -> SessionState:
        return self._apply(transitions.select_role(self._state, role))

    def select_language(self, language: Language | str) -> SessionState:
        return self._apply(transitions.select_language(self._state, language))

    def select_tab(self, tab: Tab | str) -> SessionState:
        return self._apply(transitions.select_tab(self._state, tab))

    def timeline(self) -> tuple[Event, ...]:
        return self.events.all()

    def render(self) -> dict[str, Any]:
        return render_session(self._state, self.events.all())
