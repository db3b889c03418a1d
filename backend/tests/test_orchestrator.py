from __future__ import annotations

import asyncio

from provider_fakes import FakeAdviceProvider

from healthtrail_core import ADVICE_FALLBACK, Event, EventKind, HookRunner, Orchestrator
from healthtrail_tools import ProviderError


def test_successful_submission_appends_one_symptom_event(fake_provider):
    orchestrator = Orchestrator(provider=fake_provider)
    orchestrator.set_symptom_input("headache")

    outcome = asyncio.run(orchestrator.submit_symptom())

    assert outcome is not None and outcome.succeeded
    assert outcome.lifecycle == ["idle", "submitting", "succeeded", "idle"]
    assert orchestrator.timeline() == (Event(kind=EventKind.SYMPTOM, value="headache", advice="Rest and fluids."),)
    assert orchestrator.state.last_advice == "Rest and fluids."
    assert orchestrator.state.busy is False
    assert orchestrator.state.symptom_input == ""


def test_empty_input_is_a_silent_noop(fake_provider):
    orchestrator = Orchestrator(provider=fake_provider)
    before = orchestrator.state

    assert asyncio.run(orchestrator.submit_symptom()) is None
    assert asyncio.run(orchestrator.submit_symptom("   ")) is None
    assert fake_provider.calls == []
    assert len(orchestrator.events) == 0
    assert orchestrator.state.last_advice == before.last_advice


def test_provider_failure_leaves_no_event_and_sets_fallback():
    provider = FakeAdviceProvider(error=ProviderError("HTTP 502"))
    orchestrator = Orchestrator(provider=provider)

    outcome = asyncio.run(orchestrator.submit_symptom("dizziness"))

    assert outcome is not None and not outcome.succeeded
    assert outcome.error == "HTTP 502"
    assert outcome.lifecycle == ["idle", "submitting", "failed", "idle"]
    assert len(orchestrator.events) == 0
    assert orchestrator.state.last_advice == ADVICE_FALLBACK
    assert orchestrator.state.busy is False
    assert orchestrator.state.symptom_input == ""


def test_unexpected_provider_exception_is_recovered():
    orchestrator = Orchestrator(provider=FakeAdviceProvider(error=RuntimeError("boom")))

    outcome = asyncio.run(orchestrator.submit_symptom("nausea"))

    assert outcome is not None and not outcome.succeeded
    assert orchestrator.state.last_advice == ADVICE_FALLBACK
    assert orchestrator.state.busy is False


def test_submission_while_busy_is_rejected_and_reports_interleave(fake_provider):
    orchestrator = Orchestrator(provider=fake_provider)

    async def scenario():
        fake_provider.gate = asyncio.Event()
        first = asyncio.create_task(orchestrator.submit_symptom("chest tightness"))
        await asyncio.sleep(0)

        assert orchestrator.state.busy is True
        assert orchestrator.render()["submit_label"] == "Consulting AI..."
        assert await orchestrator.submit_symptom() is None
        assert await orchestrator.submit_symptom() is None
        orchestrator.upload_report("ecg.pdf")

        fake_provider.gate.set()
        return await first

    outcome = asyncio.run(scenario())

    assert outcome is not None and outcome.succeeded
    assert fake_provider.calls == ["chest tightness"]
    kinds = [event.kind for event in orchestrator.timeline()]
    assert kinds == [EventKind.REPORT, EventKind.SYMPTOM]
    assert orchestrator.state.last_report.startswith("Report ecg.pdf uploaded.")
    assert orchestrator.state.busy is False


def test_cancelled_submission_still_returns_to_idle(fake_provider):
    orchestrator = Orchestrator(provider=fake_provider)

    async def scenario():
        fake_provider.gate = asyncio.Event()
        task = asyncio.create_task(orchestrator.submit_symptom("back pain"))
        await asyncio.sleep(0)
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    asyncio.run(scenario())

    assert orchestrator.state.busy is False
    assert orchestrator.state.symptom_input == ""
    assert orchestrator.lifecycle.status == "idle"
    assert len(orchestrator.events) == 0


def test_hindi_report_contains_file_name_and_hindi_phrase(fake_provider):
    orchestrator = Orchestrator(provider=fake_provider)
    orchestrator.select_language("Hindi")

    event = orchestrator.upload_report("bloodtest.pdf")

    assert event.kind == EventKind.REPORT
    assert "bloodtest.pdf" in event.value
    assert "Creatinine स्तर" in event.value
    assert orchestrator.state.last_report == event.value

    orchestrator.select_language("English")
    english = orchestrator.upload_report("bloodtest.pdf")
    assert "Creatinine: 2.1 mg/dL (high)" in english.value


def test_doctor_opinion_appends_one_event_per_request(fake_provider):
    orchestrator = Orchestrator(provider=fake_provider)
    for _ in range(3):
        orchestrator.request_doctor_opinion()
    orchestrator.select_language("Hindi")
    orchestrator.request_doctor_opinion()

    opinions = [event for event in orchestrator.timeline() if event.kind == EventKind.DOCTOR_OPINION]
    assert len(opinions) == 4
    assert [event.value for event in opinions[:3]] == ["Doctor's opinion: Monitor blood pressure and send updates."] * 3
    assert opinions[3].value.startswith("डॉक्टर")
    assert orchestrator.state.last_opinion == opinions[3].value


def test_timeline_reads_are_idempotent(fake_provider):
    orchestrator = Orchestrator(provider=fake_provider)
    orchestrator.request_doctor_opinion()
    orchestrator.upload_report(None)

    assert orchestrator.timeline() == orchestrator.timeline()
    assert orchestrator.render() == orchestrator.render()


def test_role_and_tab_selection_do_not_touch_timeline(fake_provider):
    orchestrator = Orchestrator(provider=fake_provider)
    orchestrator.select_role("Doctor")
    orchestrator.select_tab("timeline")

    view = orchestrator.render()
    assert view["role"] == "Doctor"
    assert view["active_tab"] == "timeline"
    assert view["timeline"] == []
    assert view["timeline_empty_message"] == "No health records yet."


def test_after_append_hooks_see_every_event(fake_provider):
    seen: list[tuple[str, EventKind]] = []
    hooks = HookRunner()
    hooks.add_after_append(lambda session_key, event, state: seen.append((session_key, event.kind)))
    orchestrator = Orchestrator(provider=fake_provider, session_key="session-a", hooks=hooks)

    asyncio.run(orchestrator.submit_symptom("sore throat"))
    orchestrator.request_doctor_opinion()

    assert seen == [("session-a", EventKind.SYMPTOM), ("session-a", EventKind.DOCTOR_OPINION)]


def test_symptom_then_report_end_to_end():
    provider = FakeAdviceProvider(reply="Likely viral infection, rest and fluids.")
    orchestrator = Orchestrator(provider=provider)

    asyncio.run(orchestrator.submit_symptom("fever and cough"))
    first = orchestrator.timeline()
    assert first == (
        Event(kind=EventKind.SYMPTOM, value="fever and cough", advice="Likely viral infection, rest and fluids."),
    )

    orchestrator.select_language("English")
    orchestrator.upload_report("xray.png")

    assert orchestrator.timeline() == (
        first[0],
        Event(kind=EventKind.REPORT, value="Report xray.png uploaded. Creatinine: 2.1 mg/dL (high)."),
    )


def test_rejected_submission_leaves_typed_input_untouched(fake_provider):
    orchestrator = Orchestrator(provider=fake_provider)
    orchestrator.set_symptom_input("cough")

    assert asyncio.run(orchestrator.submit_symptom("")) is None
    assert asyncio.run(orchestrator.submit_symptom("   ")) is None
    assert orchestrator.state.symptom_input == "cough"
    assert fake_provider.calls == []


def test_submission_while_busy_keeps_in_flight_input(fake_provider):
    orchestrator = Orchestrator(provider=fake_provider)

    async def scenario():
        fake_provider.gate = asyncio.Event()
        first = asyncio.create_task(orchestrator.submit_symptom("chest tightness"))
        await asyncio.sleep(0)

        assert await orchestrator.submit_symptom("something else") is None
        assert orchestrator.state.symptom_input == "chest tightness"

        fake_provider.gate.set()
        return await first

    outcome = asyncio.run(scenario())

    assert outcome is not None and outcome.succeeded
    assert fake_provider.calls == ["chest tightness"]
    assert [event.value for event in orchestrator.timeline()] == ["chest tightness"]


def test_failing_hook_does_not_fail_the_submission(fake_provider):
    seen: list[EventKind] = []

    def broken_hook(session_key, event, state):
        raise RuntimeError("observer down")

    hooks = HookRunner()
    hooks.add_after_append(broken_hook)
    hooks.add_after_append(lambda session_key, event, state: seen.append(event.kind))
    orchestrator = Orchestrator(provider=fake_provider, hooks=hooks)

    outcome = asyncio.run(orchestrator.submit_symptom("sore throat"))

    assert outcome is not None and outcome.succeeded
    assert outcome.lifecycle == ["idle", "submitting", "succeeded", "idle"]
    assert orchestrator.state.last_advice == "Rest and fluids."
    assert orchestrator.state.busy is False
    assert [event.kind for event in orchestrator.timeline()] == [EventKind.SYMPTOM]
    assert seen == [EventKind.SYMPTOM]
