from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class EventKind(str, Enum):
    SYMPTOM = "Symptom"
    REPORT = "Report"
    DOCTOR_OPINION = "Doctor Opinion"


class Role(str, Enum):
    PATIENT = "Patient"
    FAMILY = "Family"
    DOCTOR = "Doctor"


class Language(str, Enum):
    ENGLISH = "English"
    HINDI = "Hindi"


class Tab(str, Enum):
    SYMPTOMS = "symptoms"
    REPORTS = "reports"
    OPINION = "opinion"
    TIMELINE = "timeline"


SUBMISSION_STATES = {"idle", "submitting", "succeeded", "failed"}
TERMINAL_STATES = {"succeeded", "failed"}

ADVICE_FALLBACK = "⚠️ Error: AI could not respond. Please try again later."

_ROLE_ALIASES = {
    "patient": Role.PATIENT,
    "family": Role.FAMILY,
    "family member": Role.FAMILY,
    "doctor": Role.DOCTOR,
}
_LANGUAGE_ALIASES = {
    "english": Language.ENGLISH,
    "en": Language.ENGLISH,
    "hindi": Language.HINDI,
    "hi": Language.HINDI,
}


def coerce_role(value: Role | str) -> Role:
    if isinstance(value, Role):
        return value
    role = _ROLE_ALIASES.get(str(value or "").strip().lower())
    if role is None:
        raise ValueError(f"Unsupported role: {value}")
    return role


def coerce_language(value: Language | str) -> Language:
    if isinstance(value, Language):
        return value
    language = _LANGUAGE_ALIASES.get(str(value or "").strip().lower())
    if language is None:
        raise ValueError(f"Unsupported language: {value}")
    return language


def coerce_tab(value: Tab | str) -> Tab:
    if isinstance(value, Tab):
        return value
    try:
        return Tab(str(value or "").strip().lower())
    except ValueError:
        raise ValueError(f"Unsupported tab: {value}") from None


@dataclass(frozen=True)
class Event:
    kind: EventKind
    value: str
    advice: str | None = None

    def as_dict(self) -> dict[str, Any]:
        item: dict[str, Any] = {"type": self.kind.value, "value": self.value}
        if self.advice:
            item["advice"] = self.advice
        return item


@dataclass(frozen=True)
class SessionState:
    symptom_input: str = ""
    busy: bool = False
    role: Role = Role.PATIENT
    language: Language = Language.ENGLISH
    active_tab: Tab = Tab.SYMPTOMS
    last_advice: str = ""
    last_report: str = ""
    last_opinion: str = ""


@dataclass(frozen=True)
class AppendEvent:
    event: Event


@dataclass(frozen=True)
class Transition:
    state: SessionState
    effects: tuple[AppendEvent, ...] = ()


@dataclass
class AdviceOutcome:
    """Typed result of one provider call: advice text on success, error text on failure."""

    succeeded: bool
    advice: str = ""
    error: str | None = None
    lifecycle: list[str] = field(default_factory=list)
