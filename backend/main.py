from __future__ import annotations

import logging
import os
import re
import uuid
from dataclasses import replace
from pathlib import Path

from fastapi import FastAPI, File, Form, HTTPException, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from healthtrail_core import Event, HookRunner, Orchestrator, SessionState
from healthtrail_core.models import coerce_language, coerce_role
from healthtrail_core.view import render_timeline
from healthtrail_tools import AdviceProvider, provider_config_from_env

_ENV_KEY_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def _load_local_env_file(path: Path) -> None:
    try:
        lines = path.read_text(encoding="utf-8").splitlines()
    except OSError:
        return
    for raw in lines:
        line = raw.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, value = line.split("=", 1)
        key = key.strip()
        if not _ENV_KEY_RE.fullmatch(key):
            continue
        value = value.strip()
        if len(value) >= 2 and value[0] == value[-1] and value[0] in {"'", '"'}:
            value = value[1:-1]
        os.environ.setdefault(key, value)


def _bootstrap_local_env() -> None:
    repo_root = Path(__file__).resolve().parents[1]
    for candidate in [repo_root / ".env", repo_root / "backend/.env"]:
        if candidate.exists():
            _load_local_env_file(candidate)


_bootstrap_local_env()

logging.basicConfig(
    level=os.getenv("HEALTHTRAIL_LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger("healthtrail")


class SessionCreate(BaseModel):
    role: str | None = None
    language: str | None = None


class SymptomInput(BaseModel):
    text: str = ""


class SymptomSubmit(BaseModel):
    text: str | None = None


class RoleSelection(BaseModel):
    role: str


class LanguageSelection(BaseModel):
    language: str


class TabSelection(BaseModel):
    tab: str


class HealthTrailApp:
    def __init__(self) -> None:
        self.provider_config = provider_config_from_env()
        self.provider = AdviceProvider(self.provider_config)
        self.hooks = HookRunner()
        self.hooks.add_after_append(self._after_event_append)
        self.max_sessions = max(1, int(os.getenv("HEALTHTRAIL_MAX_SESSIONS", "500")))
        # Insertion-ordered; oldest sessions are evicted first once the cap is reached.
        self.sessions: dict[str, Orchestrator] = {}

    def _after_event_append(self, session_key: str, event: Event, state: SessionState) -> None:
        logger.info(
            "timeline event appended (%s): kind=%s language=%s",
            session_key,
            event.kind.value,
            state.language.value,
        )

    def _evict_for_capacity(self) -> None:
        while len(self.sessions) >= self.max_sessions:
            idle_keys = [key for key, orchestrator in self.sessions.items() if not orchestrator.state.busy]
            if not idle_keys:
                return
            self.sessions.pop(idle_keys[0])
            logger.info("session evicted (%s): capacity %d reached", idle_keys[0], self.max_sessions)

    def create_session(self, state: SessionState | None = None) -> Orchestrator:
        self._evict_for_capacity()
        session_key = f"session_{uuid.uuid4().hex}"
        orchestrator = Orchestrator(
            provider=self.provider,
            session_key=session_key,
            hooks=self.hooks,
            state=state,
        )
        self.sessions[session_key] = orchestrator
        return orchestrator

    def get_session(self, session_key: str) -> Orchestrator:
        orchestrator = self.sessions.get(session_key)
        if orchestrator is None:
            raise HTTPException(status_code=404, detail="Unknown session")
        return orchestrator

    def end_session(self, session_key: str) -> None:
        if self.sessions.pop(session_key, None) is None:
            raise HTTPException(status_code=404, detail="Unknown session")


container = HealthTrailApp()
app = FastAPI(title="HealthTrail Backend")

allowed_origins = os.getenv("ALLOWED_ORIGINS", "http://localhost:3000").split(",")
app.add_middleware(
    CORSMiddleware,
    allow_origins=[origin.strip() for origin in allowed_origins],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _invalid_selection(exc: ValueError) -> HTTPException:
    return HTTPException(status_code=422, detail=str(exc))


@app.get("/health")
def health():
    return {"ok": True, "provider_configured": container.provider_config.configured}


# Session routes are coroutines so every state change runs on the event-loop thread,
# never on the threadpool FastAPI uses for plain `def` handlers.
@app.post("/sessions", status_code=201)
async def create_session(payload: SessionCreate | None = None):
    state = SessionState()
    try:
        if payload and payload.role:
            state = replace(state, role=coerce_role(payload.role))
        if payload and payload.language:
            state = replace(state, language=coerce_language(payload.language))
    except ValueError as exc:
        raise _invalid_selection(exc) from exc
    orchestrator = container.create_session(state)
    return {"session_key": orchestrator.session_key, "view": orchestrator.render()}


@app.get("/sessions/{session_key}")
async def get_session(session_key: str):
    return container.get_session(session_key).render()


@app.delete("/sessions/{session_key}")
async def delete_session(session_key: str):
    container.end_session(session_key)
    return {"ok": True}


@app.put("/sessions/{session_key}/symptom-input")
async def put_symptom_input(session_key: str, payload: SymptomInput):
    orchestrator = container.get_session(session_key)
    orchestrator.set_symptom_input(payload.text)
    return orchestrator.render()


@app.post("/sessions/{session_key}/symptoms")
async def post_symptoms(session_key: str, payload: SymptomSubmit | None = None):
    orchestrator = container.get_session(session_key)
    await orchestrator.submit_symptom(payload.text if payload else None)
    return orchestrator.render()


@app.post("/sessions/{session_key}/reports")
async def post_report(
    session_key: str,
    report: UploadFile | None = File(default=None),
    file_name: str | None = Form(default=None),
):
    orchestrator = container.get_session(session_key)
    # Only the name is used; the upload body is never read.
    name = report.filename if report is not None and report.filename else file_name
    orchestrator.upload_report(name)
    return orchestrator.render()


@app.post("/sessions/{session_key}/doctor-opinion")
async def post_doctor_opinion(session_key: str):
    orchestrator = container.get_session(session_key)
    orchestrator.request_doctor_opinion()
    return orchestrator.render()


@app.put("/sessions/{session_key}/role")
async def put_role(session_key: str, payload: RoleSelection):
    orchestrator = container.get_session(session_key)
    try:
        orchestrator.select_role(payload.role)
    except ValueError as exc:
        raise _invalid_selection(exc) from exc
    return orchestrator.render()


@app.put("/sessions/{session_key}/language")
async def put_language(session_key: str, payload: LanguageSelection):
    orchestrator = container.get_session(session_key)
    try:
        orchestrator.select_language(payload.language)
    except ValueError as exc:
        raise _invalid_selection(exc) from exc
    return orchestrator.render()


@app.put("/sessions/{session_key}/tab")
async def put_tab(session_key: str, payload: TabSelection):
    orchestrator = container.get_session(session_key)
    try:
        orchestrator.select_tab(payload.tab)
    except ValueError as exc:
        raise _invalid_selection(exc) from exc
    return orchestrator.render()


@app.get("/sessions/{session_key}/timeline")
async def get_timeline(session_key: str):
    orchestrator = container.get_session(session_key)
    return render_timeline(orchestrator.state, orchestrator.timeline())
