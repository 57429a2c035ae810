"""
API tests for pdfquiz/api.py
Tests: PDF upload and generation, listing, fetching and deleting stored
quizzes, error status codes and the health endpoint.
Uses TestClient with the QuizService dependency overridden, no live LLM.
"""

import json

import pytest
from fastapi.testclient import TestClient

from pdfquiz.api import app, get_service
from pdfquiz.models import Quiz
from pdfquiz.processing_service import QuizService


@pytest.fixture
def make_client(settings, stub_gateway):
    def build(outputs=(), reachable=True):
        service = QuizService(settings=settings, gateway=stub_gateway(list(outputs), reachable=reachable))
        app.dependency_overrides[get_service] = lambda: service
        return TestClient(app), service
    yield build
    app.dependency_overrides.clear()


class TestImport:

    def test_upload_generates_quiz(self, make_client, make_pdf, geo_payload):
        client, service = make_client([json.dumps(geo_payload)])
        pdf = make_pdf(["Paris is the capital of France."])

        with open(pdf, "rb") as fh:
            r = client.post(
                "/api/quizzes",
                files={"file": ("paris.pdf", fh, "application/pdf")},
                data={"num_questions": "1", "difficulty": "easy"},
            )

        assert r.status_code == 200
        body = r.json()
        assert body["success"] is True
        assert service.list_quizzes() == [body["quiz_file"]]

    def test_rejects_non_pdf_name(self, make_client):
        client, _ = make_client()
        r = client.post("/api/quizzes", files={"file": ("notes.txt", b"hello", "text/plain")})
        assert r.status_code == 400

    def test_generation_failure_is_structured(self, make_client):
        client, _ = make_client()
        r = client.post("/api/quizzes", files={"file": ("fake.pdf", b"not a pdf", "application/pdf")})
        assert r.status_code == 200
        body = r.json()
        assert body["success"] is False
        assert body["error"]


class TestStoredQuizzes:

    def test_list_empty(self, make_client):
        client, _ = make_client()
        r = client.get("/api/quizzes")
        assert r.status_code == 200
        assert r.json() == []

    def test_get_quiz(self, make_client, geo_payload):
        client, service = make_client()
        service.store.save(Quiz.model_validate(geo_payload), "geo.json")
        r = client.get("/api/quizzes/geo.json")
        assert r.status_code == 200
        assert r.json() == geo_payload

    def test_get_missing_quiz(self, make_client):
        client, _ = make_client()
        assert client.get("/api/quizzes/missing.json").status_code == 404

    def test_get_corrupt_quiz(self, make_client):
        client, service = make_client()
        service.store.directory.mkdir(parents=True)
        (service.store.directory / "bad.json").write_text("{", encoding="utf-8")
        assert client.get("/api/quizzes/bad.json").status_code == 422

    def test_delete_quiz(self, make_client, geo_payload):
        client, service = make_client()
        service.store.save(Quiz.model_validate(geo_payload), "geo.json")
        assert client.delete("/api/quizzes/geo.json").status_code == 200
        assert client.delete("/api/quizzes/geo.json").status_code == 404


class TestHealth:

    @pytest.mark.parametrize("reachable", [True, False])
    def test_health(self, make_client, reachable):
        client, _ = make_client(reachable=reachable)
        r = client.get("/api/health")
        assert r.status_code == 200
        assert r.json()["reachable"] is reachable
