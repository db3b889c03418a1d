from __future__ import annotations

from dataclasses import dataclass
from typing import Callable

from .models import Language


LAB_VALUE_MG_DL = 2.1
UNSELECTED_FILE_NAME = "undefined"


@dataclass(frozen=True)
class PhraseSet:
    report: Callable[[str], str]
    doctor_opinion: Callable[[], str]
    submit_idle: str
    submit_busy: str
    empty_timeline: str


_PHRASES: dict[Language, PhraseSet] = {
    Language.ENGLISH: PhraseSet(
        report=lambda file_name: f"Report {file_name} uploaded. Creatinine: {LAB_VALUE_MG_DL} mg/dL (high).",
        doctor_opinion=lambda: "Doctor's opinion: Monitor blood pressure and send updates.",
        submit_idle="Get Guidance",
        submit_busy="Consulting AI...",
        empty_timeline="No health records yet.",
    ),
    Language.HINDI: PhraseSet(
        report=lambda file_name: (
            f"रिपोर्ट {file_name} अपलोड हो गई है। Creatinine स्तर: {LAB_VALUE_MG_DL} mg/dL (उच्च)।"
        ),
        doctor_opinion=lambda: "डॉक्टर की सलाह: रक्तचाप की निगरानी करें और रिपोर्ट भेजें।",
        submit_idle="मार्गदर्शन प्राप्त करें",
        submit_busy="AI से परामर्श हो रहा है...",
        empty_timeline="अभी तक कोई स्वास्थ्य रिकॉर्ड नहीं है।",
    ),
}


def phrases_for(language: Language) -> PhraseSet:
    return _PHRASES[language]


def report_message(language: Language, file_name: str | None) -> str:
    return phrases_for(language).report(file_name if file_name is not None else UNSELECTED_FILE_NAME)


def doctor_opinion_message(language: Language) -> str:
    return phrases_for(language).doctor_opinion()
