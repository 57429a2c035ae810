"""
Shared pytest fixtures for the pdfquiz test suite.
No external services are needed: HTTP is faked with FakeSession and the
LLM gateway with StubGateway.
"""

import json
import os
import sys

import fitz  # PyMuPDF
import pytest

# ── Make src/ importable without installing ─────────────────────────────────
SRC_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), "..", "src"))
if SRC_DIR not in sys.path:
    sys.path.insert(0, SRC_DIR)

from pdfquiz.config import Settings, get_settings


# ── Isolate settings from the developer environment ──────────────────────────

@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch, tmp_path):
    for key in list(os.environ):
        if key.startswith("PDFQUIZ_"):
            monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("PDFQUIZ_CONFIG_FILE", str(tmp_path / "no-such-config.json"))
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def settings(tmp_path):
    return Settings(quiz_dir=str(tmp_path / "quizzes"))


# ── Quiz payloads ────────────────────────────────────────────────────────────

def _question(number, text, answer="A"):
    return {
        "number": number,
        "question": text,
        "options": {"A": f"{text} a", "B": f"{text} b", "C": f"{text} c", "D": f"{text} d"},
        "correctAnswer": answer,
    }


@pytest.fixture
def quiz_payload():
    """Factory building a valid quiz document with n questions"""
    def build(title="Sample", n=2, prefix="Question"):
        return {
            "title": title,
            "questions": [_question(i, f"{prefix} {i}?") for i in range(1, n + 1)],
        }
    return build


@pytest.fixture
def geo_payload():
    return {
        "title": "Geo",
        "questions": [{
            "number": 1,
            "question": "What is the capital of France?",
            "options": {"A": "Paris", "B": "Lyon", "C": "Nice", "D": "Lille"},
            "correctAnswer": "A",
        }],
    }


# ── PDF files ────────────────────────────────────────────────────────────────

@pytest.fixture
def make_pdf(tmp_path):
    """Factory writing a PDF with one short line of text per page"""
    def build(pages, name="doc.pdf"):
        path = tmp_path / name
        doc = fitz.open()
        for text in pages:
            page = doc.new_page()
            if text:
                page.insert_text((72, 72), text)
        doc.save(str(path))
        doc.close()
        return path
    return build


# ── Fake HTTP ────────────────────────────────────────────────────────────────

class FakeResponse:
    def __init__(self, status_code=200, payload=None, text=None):
        self.status_code = status_code
        self._payload = payload
        self.text = text if text is not None else json.dumps(payload)

    def json(self):
        if self._payload is None:
            raise ValueError("no json body")
        return self._payload


class FakeSession:
    """requests.Session stand-in routing on the URL suffix.

    A route value may be a FakeResponse, an exception to raise, or a list
    of those consumed in order.
    """

    def __init__(self, routes=None):
        self.routes = routes or {}
        self.calls = []
        self.closed = False

    def request(self, method, url, **kwargs):
        self.calls.append((method, url, kwargs))
        for suffix, outcome in self.routes.items():
            if url.endswith(suffix):
                if isinstance(outcome, list):
                    outcome = outcome.pop(0)
                if isinstance(outcome, Exception):
                    raise outcome
                return outcome
        return FakeResponse(404, text="not found")

    def get(self, url, **kwargs):
        return self.request("GET", url, **kwargs)

    def post(self, url, **kwargs):
        return self.request("POST", url, **kwargs)

    def close(self):
        self.closed = True


@pytest.fixture
def fake_session():
    return FakeSession


@pytest.fixture
def fake_response():
    return FakeResponse


# ── Stub gateway ─────────────────────────────────────────────────────────────

class StubGateway:
    """LLMGateway stand-in returning scripted raw outputs in order"""

    def __init__(self, outputs, context=None, reachable=True):
        self.outputs = list(outputs)
        self.context = context
        self.reachable = reachable
        self.prompts = []

    def invoke(self, prompt, config):
        self.prompts.append(prompt)
        outcome = self.outputs.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    def context_length(self, config):
        return self.context

    def ping(self, config):
        return self.reachable


@pytest.fixture
def stub_gateway():
    return StubGateway
