import json

import pytest
from fastapi.testclient import TestClient

from adapters.local.noop_rate_limiter import NoOpRateLimiter
from adapters.local.log_progress import LogProgressAdapter
from api import create_app
from config import Config, create_use_cases
from conftest import FakeGenerator, FakeSpeech


@pytest.fixture
def cfg(monkeypatch):
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    monkeypatch.setenv("MAX_SEGMENT_MB", str(25 * 1024 / (1024 * 1024)))
    monkeypatch.setenv("REPORT_CHUNK_THRESHOLD", "6000")
    monkeypatch.setenv("REPORT_CHUNK_SIZE", "6000")
    yield Config.reload()
    Config._instance = None


def make_client(cfg, speech=None, generator=None):
    infra = {
        "segment_limiter": NoOpRateLimiter(),
        "chunk_limiter": NoOpRateLimiter(),
        "stage_pacer": NoOpRateLimiter(),
        "progress": LogProgressAdapter(),
    }
    use_cases = create_use_cases(
        cfg,
        speech=speech or FakeSpeech(),
        generator=generator or FakeGenerator(),
        infra=infra,
    )
    return TestClient(create_app(cfg, use_cases=use_cases))


def audio_file(size: int = 1024, content_type: str = "audio/webm"):
    return {"audio": ("rec.webm", b"\x01" * size, content_type)}


def test_health_reports_missing_key(cfg):
    client = TestClient(create_app(cfg))
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "misconfigured"
    assert response.json()["config"]["has_openai_key"] is False


def test_missing_key_fails_requests(cfg):
    client = TestClient(create_app(cfg))
    response = client.post("/api/transcribe", files=audio_file())
    assert response.status_code == 500
    assert "OPENAI_API_KEY" in response.json()["details"]


def test_transcribe(cfg):
    response = make_client(cfg).post("/api/transcribe", files=audio_file())
    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["data"]["text"] == "text 1"
    assert body["data"]["segment_count"] == 1


def test_transcribe_large_file_reports_failed_segments(cfg):
    client = make_client(cfg, speech=FakeSpeech(fail_on={1}))
    response = client.post("/api/transcribe", files=audio_file(60 * 1024))
    data = response.json()["data"]
    assert data["segment_count"] == 3
    assert data["failed_segments"] == [1]
    assert "[segment 2 transcription failed]" in data["text"]


def test_transcribe_without_audio(cfg):
    response = make_client(cfg).post("/api/transcribe")
    assert response.status_code == 400


def test_transcribe_unsupported_type(cfg):
    response = make_client(cfg).post("/api/transcribe", files=audio_file(content_type="video/mp4"))
    assert response.status_code == 400
    assert "video/mp4" in response.json()["details"]


def test_transcribe_service_error(cfg):
    response = make_client(cfg, speech=FakeSpeech(fail_on={0})).post("/api/transcribe", files=audio_file())
    assert response.status_code == 502
    assert response.json()["details"] == "Bad Request"


def test_generate_report(cfg):
    response = make_client(cfg).post(
        "/api/generate-report",
        json={"prompt": "Summarize.", "transcription": "Patient reports headaches."},
    )
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["content"] == "part 1"
    assert data["prompt"] == "Summarize."
    assert data["tokens"] == 100


def test_generate_report_requires_prompt(cfg):
    response = make_client(cfg).post("/api/generate-report", json={"transcription": "text"})
    assert response.status_code == 400


def test_process_streams_progress_then_result(cfg):
    client = make_client(cfg)
    response = client.post("/api/process", files=audio_file(60 * 1024), data={"prompt": "Summarize."})

    assert response.status_code == 200
    lines = [json.loads(line) for line in response.text.splitlines() if line]
    progress = [line for line in lines if line["type"] == "progress"]
    assert progress[0]["stage"] == "transcribing"
    assert progress[0]["step"] == "analyzing"
    assert progress[-1]["stage"] == "generating"
    assert lines[-1]["type"] == "result"
    assert lines[-1]["data"]["transcript"]["text"] == "text 1 text 2 text 3"
    assert lines[-1]["data"]["report"]["prompt"] == "Summarize."


def test_process_streams_error_line(cfg):
    client = make_client(cfg, generator=FakeGenerator(fail_on={0}))
    response = client.post("/api/process", files=audio_file(), data={"prompt": "Summarize."})

    lines = [json.loads(line) for line in response.text.splitlines() if line]
    assert lines[-1] == {"type": "error", "error": "Upstream service error", "details": "Rate limit reached"}


def test_process_requires_prompt(cfg):
    response = make_client(cfg).post("/api/process", files=audio_file())
    assert response.status_code == 400


class CrashingGenerator(FakeGenerator):
    async def generate(self, system_instruction: str, user_text: str):
        raise RuntimeError("connection reset")


def test_process_streams_error_line_on_unexpected_failure(cfg):
    client = make_client(cfg, generator=CrashingGenerator())
    response = client.post("/api/process", files=audio_file(), data={"prompt": "Summarize."})

    lines = [json.loads(line) for line in response.text.splitlines() if line]
    assert lines[0]["type"] == "progress"
    assert lines[-1] == {"type": "error", "error": "Internal server error", "details": None}
