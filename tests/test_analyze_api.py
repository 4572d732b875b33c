"""Integration tests for POST /analyze-document."""

import json
from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

from termify.analysis.pipeline import AnalysisPipeline
from termify.api.deps import get_pipeline
from termify.api.main import app
from termify.llm.client import MockChatClient, UpstreamError
from termify.settings.config import TermifySettings
from termify.storage.store import LocalObjectStore

client = TestClient(app)

DOCUMENT = (
    "Privacy. We may share your personal data with advertising partners without "
    "asking for further consent.\n\n"
    "Renewal. Your plan renews automatically every month; we will email you seven "
    "days before each renewal.\n\n"
    "Termination. You may close your account at any time from the settings page."
)


class StubClient:
    model = "stub"

    def __init__(self, segment_reply=None, analysis_reply=None, segment_error=None):
        self.segment_reply = segment_reply
        self.analysis_reply = analysis_reply
        self.segment_error = segment_error

    async def complete(self, system, user, temperature):
        if user.startswith("Segment"):
            if self.segment_error:
                raise self.segment_error
            return self.segment_reply
        return self.analysis_reply


@pytest.fixture(autouse=True)
def _reset_overrides():
    yield
    app.dependency_overrides.clear()


def use_pipeline(chat_client, store_root) -> None:
    pipeline = AnalysisPipeline(TermifySettings(), chat_client, LocalObjectStore(store_root))
    app.dependency_overrides[get_pipeline] = lambda: pipeline


# ---------------------------------------------------------------------------
# Happy path (mock provider)
# ---------------------------------------------------------------------------


class TestAnalyzeText:
    def test_returns_200(self, tmp_path):
        use_pipeline(MockChatClient(), tmp_path)
        resp = client.post("/analyze-document", json={"text": DOCUMENT})
        assert resp.status_code == 200

    def test_response_shape(self, tmp_path):
        use_pipeline(MockChatClient(), tmp_path)
        body = client.post("/analyze-document", json={"text": DOCUMENT}).json()
        assert set(body) == {"clauses", "statistics"}
        assert set(body["statistics"]) == {"totalClauses", "highRisk", "mediumRisk", "lowRisk"}
        clause = body["clauses"][0]
        for field in ("id", "title", "category", "originalText", "risk", "summaryEn", "summaryHi", "rationale"):
            assert field in clause

    def test_statistics_consistent(self, tmp_path):
        use_pipeline(MockChatClient(), tmp_path)
        body = client.post("/analyze-document", json={"text": DOCUMENT}).json()
        stats = body["statistics"]
        assert stats["totalClauses"] == len(body["clauses"]) == 3
        assert stats["highRisk"] + stats["mediumRisk"] + stats["lowRisk"] == stats["totalClauses"]
        assert [c["id"] for c in body["clauses"]] == [1, 2, 3]

    def test_default_dependency_uses_mock_provider(self):
        with patch.dict("os.environ", {"TERMIFY_LLM_PROVIDER": "mock"}):
            resp = client.post("/analyze-document", json={"text": DOCUMENT})
        assert resp.status_code == 200
        assert resp.json()["statistics"]["mediumRisk"] == 3

    def test_single_clause_example(self, tmp_path):
        segments = json.dumps(
            [{"title": "Auto-Renewal", "originalText": "Renews monthly.", "category": "Billing & Payments"}]
        )
        analysis = json.dumps(
            {"risk": "medium", "summaryEn": "Renews monthly.", "summaryHi": "मासिक नवीनीकरण।", "rationale": "Notice given."},
            ensure_ascii=False,
        )
        use_pipeline(StubClient(segments, analysis), tmp_path)
        text = "Your subscription renews automatically every month and we send a reminder seven days before. " * 2
        body = client.post("/analyze-document", json={"text": text[:150]}).json()
        assert body["statistics"] == {"totalClauses": 1, "highRisk": 0, "mediumRisk": 1, "lowRisk": 0}
        assert body["clauses"][0]["summaryHi"] == "मासिक नवीनीकरण।"


# ---------------------------------------------------------------------------
# Staged file path
# ---------------------------------------------------------------------------


class TestAnalyzeFilePath:
    def test_txt_file(self, tmp_path):
        (tmp_path / "temp").mkdir()
        (tmp_path / "temp" / "1-eula.txt").write_text(DOCUMENT, encoding="utf-8")
        use_pipeline(MockChatClient(), tmp_path)
        resp = client.post("/analyze-document", json={"filePath": "temp/1-eula.txt"})
        assert resp.status_code == 200
        assert resp.json()["statistics"]["totalClauses"] == 3
        assert not (tmp_path / "temp" / "1-eula.txt").exists()

    def test_docx_returns_400(self, tmp_path):
        (tmp_path / "temp").mkdir()
        (tmp_path / "temp" / "1-eula.docx").write_bytes(b"PK\x03\x04")
        use_pipeline(MockChatClient(), tmp_path)
        resp = client.post("/analyze-document", json={"filePath": "temp/1-eula.docx"})
        assert resp.status_code == 400
        assert "DOCX support coming soon" in resp.json()["error"]
        assert not (tmp_path / "temp" / "1-eula.docx").exists()

    def test_missing_file_returns_500(self, tmp_path):
        use_pipeline(MockChatClient(), tmp_path)
        resp = client.post("/analyze-document", json={"filePath": "temp/nope.pdf"})
        assert resp.status_code == 500
        assert resp.json() == {"error": "Failed to download file"}


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------


class TestAnalyzeErrors:
    def test_short_text_returns_400(self, tmp_path):
        use_pipeline(MockChatClient(), tmp_path)
        resp = client.post("/analyze-document", json={"text": "x" * 99})
        assert resp.status_code == 400
        assert resp.json() == {"error": "Document text must be at least 100 characters"}

    def test_neither_field_returns_400(self):
        resp = client.post("/analyze-document", json={})
        assert resp.status_code == 400
        assert "exactly one of text or filePath" in resp.json()["error"]

    def test_both_fields_returns_400(self):
        resp = client.post("/analyze-document", json={"text": DOCUMENT, "filePath": "temp/a.txt"})
        assert resp.status_code == 400

    def test_upstream_failure_returns_500(self, tmp_path):
        use_pipeline(StubClient(segment_error=UpstreamError("down", status=503, body="busy")), tmp_path)
        resp = client.post("/analyze-document", json={"text": DOCUMENT})
        assert resp.status_code == 500
        assert resp.json() == {"error": "Failed to segment document"}

    def test_unparsable_segmentation_returns_500(self, tmp_path):
        use_pipeline(StubClient(segment_reply="no clauses here"), tmp_path)
        resp = client.post("/analyze-document", json={"text": DOCUMENT})
        assert resp.status_code == 500
        assert resp.json() == {"error": "Failed to process document structure"}

    def test_bad_analysis_still_returns_200(self, tmp_path):
        segments = json.dumps([{"title": "A", "originalText": "a", "category": "Legal"}])
        use_pipeline(StubClient(segments, "not json"), tmp_path)
        body = client.post("/analyze-document", json={"text": DOCUMENT}).json()
        assert body["clauses"][0]["summaryEn"] == "Analysis unavailable"
        assert body["clauses"][0]["risk"] == "medium"

    @patch.dict("os.environ", {"TERMIFY_LLM_PROVIDER": "gateway"}, clear=True)
    def test_missing_credentials_returns_500(self):
        resp = client.post("/analyze-document", json={"text": DOCUMENT})
        assert resp.status_code == 500
        assert resp.json() == {"error": "AI service not configured"}

    def test_missing_credentials_still_removes_staged_file(self, tmp_path):
        staged = tmp_path / "temp" / "1-tos.txt"
        staged.parent.mkdir()
        staged.write_text(DOCUMENT, encoding="utf-8")
        env = {"TERMIFY_LLM_PROVIDER": "gateway", "TERMIFY_STORAGE_DIR": str(tmp_path)}
        with patch.dict("os.environ", env, clear=True):
            resp = client.post("/analyze-document", json={"filePath": "temp/1-tos.txt"})
        assert resp.status_code == 500
        assert resp.json() == {"error": "AI service not configured"}
        assert not staged.exists()

    @patch.dict("os.environ", {"TERMIFY_LLM_PROVIDER": "gateway"}, clear=True)
    def test_short_text_checked_before_credentials(self):
        resp = client.post("/analyze-document", json={"text": "x" * 99})
        assert resp.status_code == 400
        assert resp.json() == {"error": "Document text must be at least 100 characters"}

    @patch.dict("os.environ", {"TERMIFY_LLM_PROVIDER": "carrier-pigeon"}, clear=True)
    def test_unknown_provider_returns_500(self):
        resp = client.post("/analyze-document", json={"text": DOCUMENT})
        assert resp.status_code == 500
        assert resp.json() == {"error": "Server configuration error"}

    @patch.dict("os.environ", {"TERMIFY_LLM_TIMEOUT": "a minute"}, clear=True)
    def test_non_numeric_timeout_returns_500(self):
        resp = client.post("/analyze-document", json={"text": DOCUMENT})
        assert resp.status_code == 500
        assert resp.json() == {"error": "Server configuration error"}


# ---------------------------------------------------------------------------
# CORS
# ---------------------------------------------------------------------------


class TestCors:
    def test_preflight_has_empty_body(self):
        resp = client.options(
            "/analyze-document",
            headers={
                "Origin": "http://localhost:8080",
                "Access-Control-Request-Method": "POST",
                "Access-Control-Request-Headers": "content-type, apikey",
            },
        )
        assert resp.status_code == 200
        assert resp.content == b""
        assert resp.headers["access-control-allow-origin"] == "*"

    def test_simple_request_allows_any_origin(self, tmp_path):
        use_pipeline(MockChatClient(), tmp_path)
        resp = client.post(
            "/analyze-document",
            json={"text": DOCUMENT},
            headers={"Origin": "https://termify.example"},
        )
        assert resp.headers["access-control-allow-origin"] == "*"

    def test_health(self):
        assert client.get("/health").json() == {"status": "ok"}
