from __future__ import annotations

import pytest
import requests

from project_risk_monitor.audit import AuditAction, InMemoryAuditSink
from project_risk_monitor.config import get_settings
from project_risk_monitor.errors import CollaboratorError
from project_risk_monitor.models import ProjectInfo
from project_risk_monitor.narrative import OpenAINarrativeClient, build_insight_prompt
from project_risk_monitor.narrative import client as client_module
from project_risk_monitor.pipeline import RiskAnalyzer


class _FakeResponse:
    def __init__(self, status_code: int, payload=None, headers=None, text: str = "") -> None:
        self.status_code = status_code
        self._payload = payload
        self.headers = headers or {}
        self.text = text

    def json(self):
        if self._payload is None:
            raise ValueError("no json")
        return self._payload


def _completion(text: str) -> dict:
    return {"choices": [{"message": {"role": "assistant", "content": text}}]}


@pytest.fixture(autouse=True)
def _no_sleep(monkeypatch):
    monkeypatch.setattr(client_module.time, "sleep", lambda _seconds: None)


def test_generate_retries_transient_failures(monkeypatch) -> None:
    responses = [
        _FakeResponse(429, headers={"Retry-After": "1"}),
        _FakeResponse(503),
        _FakeResponse(200, _completion("  Focus on A1.  ")),
    ]
    calls = []

    def fake_post(url, json=None, headers=None, timeout=None):
        calls.append(json)
        return responses.pop(0)

    monkeypatch.setattr(client_module.requests, "post", fake_post)
    client = OpenAINarrativeClient("sk-test", model="gpt-test")

    assert client.generate("system", "user") == "Focus on A1."
    assert len(calls) == 3
    assert calls[0]["model"] == "gpt-test"
    assert calls[0]["messages"][1] == {"role": "user", "content": "user"}


def test_generate_raises_collaborator_error_on_client_error(monkeypatch) -> None:
    monkeypatch.setattr(client_module.requests, "post", lambda *a, **k: _FakeResponse(401, text="bad key"))
    with pytest.raises(CollaboratorError):
        OpenAINarrativeClient("sk-test").generate("system", "user")


def test_generate_raises_after_transport_errors(monkeypatch) -> None:
    def boom(*args, **kwargs):
        raise requests.ConnectionError("offline")

    monkeypatch.setattr(client_module.requests, "post", boom)
    with pytest.raises(CollaboratorError):
        OpenAINarrativeClient("sk-test", max_attempts=2).generate("system", "user")


def test_from_settings_requires_api_key(monkeypatch) -> None:
    monkeypatch.setenv("OPENAI_API_KEY", "")
    get_settings.cache_clear()
    try:
        assert OpenAINarrativeClient.from_settings(get_settings()) is None
        monkeypatch.setenv("OPENAI_API_KEY", "sk-live")
        get_settings.cache_clear()
        client = OpenAINarrativeClient.from_settings(get_settings())
        assert client is not None
        assert client.api_key == "sk-live"
    finally:
        get_settings.cache_clear()


def test_insight_prompt_lists_top_risks(sample_records) -> None:
    result = RiskAnalyzer().analyze(sample_records, ProjectInfo(name="Harbour Bridge"))
    prompt = build_insight_prompt(result.project, result.summary, result.ranked)
    assert "Project: Harbour Bridge" in prompt
    assert "- A1 Foundation pour" in prompt
    assert "under 350 words" in prompt


class _StaticClient:
    def __init__(self, text: str) -> None:
        self.text = text

    def generate(self, system_prompt: str, user_prompt: str) -> str:
        return self.text


class _FailingClient:
    def generate(self, system_prompt: str, user_prompt: str) -> str:
        raise CollaboratorError("rate limited")


def test_pipeline_includes_insight_section(sample_records) -> None:
    sink = InMemoryAuditSink()
    result = RiskAnalyzer(audit_sink=sink, narrative_client=_StaticClient("Recover A1 first.")).analyze(sample_records)

    assert result.insight == "Recover A1 first."
    assert "insight" in result.report.kinds
    assert sink.by_action(AuditAction.AI_INSIGHT_GENERATED)


def test_narrative_failure_means_no_insight_section(sample_records) -> None:
    sink = InMemoryAuditSink()
    result = RiskAnalyzer(audit_sink=sink, narrative_client=_FailingClient()).analyze(sample_records)

    assert result.insight is None
    assert "insight" not in result.report.kinds
    assert sink.by_action(AuditAction.AI_INSIGHT_REQUESTED)
    assert not sink.by_action(AuditAction.AI_INSIGHT_GENERATED)
    assert sink.by_action(AuditAction.RISK_ANALYSIS_RUN)
