"""
Tests for API endpoints.
"""

import pytest
from fastapi.testclient import TestClient

from sonoreport.api.routes import get_drafter, get_summary_builder
from sonoreport.config import settings
from sonoreport.core.llm_engine import LLMEngine
from sonoreport.main import app
from sonoreport.services.guardian_summary import GuardianSummaryBuilder
from sonoreport.services.id_vault import NationalIdVault
from sonoreport.services.report_drafter import ReportDrafter
from sonoreport.utils.errors import DraftingError


IMAGES = [{"filename": "liver.jpg", "url": "https://storage.example/liver.jpg"}]


@pytest.fixture
def client():
    """Create test client."""
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def use_engine(stub_engine):
    """Route drafting and guardian summaries through a stub engine."""
    def install(**kwargs):
        engine = stub_engine(**kwargs)
        app.dependency_overrides[get_drafter] = lambda: ReportDrafter(engine=engine)
        app.dependency_overrides[get_summary_builder] = lambda: GuardianSummaryBuilder(engine=engine)
        return engine
    return install


class TestHealthEndpoint:
    """Test health check endpoint."""

    def test_health_returns_200(self, client):
        """Health endpoint should return 200."""
        response = client.get("/health")
        assert response.status_code == 200

    def test_health_response_structure(self, client):
        """Health response should have correct structure."""
        data = client.get("/health").json()

        assert data["status"] == "healthy"
        assert data["version"] == settings.app_version
        assert "llm_configured" in data
        assert "timestamp" in data


class TestExamTypes:
    """Test exam type catalog endpoint."""

    def test_catalog_listed(self, client):
        data = client.get("/exam-types").json()

        keys = [item["key"] for item in data]
        assert len(keys) == 11
        assert keys[0] == "abdominal"
        assert "thyroid" in keys
        assert all(item["normal_findings"] and item["default_impression"] for item in data)


class TestAnalyzeEndpoint:
    """Test general drafting endpoint."""

    def test_analyze_success(self, client, use_engine):
        use_engine(response={
            "findings": "Liver normal. Spleen normal.",
            "impression": "Impression: Fatty liver.",
            "recommendations": "Follow-up US.",
        })
        response = client.post("/ai/analyze", json={"exam_type": "abdominal", "images": IMAGES})

        assert response.status_code == 200
        assert response.json() == {
            "findings": "Liver normal.\nSpleen normal.",
            "impression": "Fatty liver",
            "recommendations": "Follow-up US.",
        }

    def test_missing_images_field_rejected(self, client, use_engine):
        use_engine()
        response = client.post("/ai/analyze", json={"exam_type": "abdominal"})
        assert response.status_code == 422

    def test_empty_images_bad_request(self, client, use_engine):
        engine = use_engine()
        response = client.post("/ai/analyze", json={"exam_type": "abdominal", "images": []})

        assert response.status_code == 400
        assert response.json()["detail"] == "images is required"
        assert engine.calls == []

    def test_model_failure_bad_gateway(self, client, use_engine):
        use_engine(error=DraftingError('{"error": "overloaded"}'))
        response = client.post("/ai/analyze", json={"exam_type": "liver", "images": IMAGES})

        assert response.status_code == 502
        assert response.json()["detail"] == '{"error": "overloaded"}'

    def test_model_not_configured(self, client):
        app.dependency_overrides[get_drafter] = lambda: ReportDrafter(engine=LLMEngine(api_key=""))
        response = client.post("/ai/analyze", json={"exam_type": "liver", "images": IMAGES})

        assert response.status_code == 500
        assert response.json()["detail"] == "Missing OPENAI_API_KEY"


class TestThyroidEndpoint:
    """Test thyroid drafting endpoint."""

    def test_thyroid_nodules_staged(self, client, use_engine):
        use_engine(response={
            "findings": "Left lobe nodule.",
            "impression": "Left thyroid nodule",
            "nodules": [{"side": "left", "sizeMm": 22, "kTirads": 3}],
        })
        response = client.post("/ai/thyroid", json={"images": IMAGES})

        assert response.status_code == 200
        nodule = response.json()["nodules"][0]
        assert nodule["side"] == "left"
        assert nodule["k_tirads"] == 3
        assert nodule["recommendation"].endswith("≥20 mm: FNA recommended.")


class TestPolishEndpoint:
    """Test findings polishing endpoint."""

    def test_polish(self, client, use_engine):
        use_engine(response={"findings": "Liver is normal.", "impression": "Normal liver."})
        response = client.post("/ai/polish", json={"findings": "liver ok"})

        assert response.status_code == 200
        assert response.json() == {"findings": "Liver is normal.", "impression": "Normal liver."}

    def test_blank_findings_bad_request(self, client, use_engine):
        use_engine()
        response = client.post("/ai/polish", json={"findings": "  "})
        assert response.status_code == 400


class TestGuardianSummaryEndpoint:
    """Test guardian summary endpoint."""

    def test_empty_report_uses_fallback(self, client, use_engine):
        engine = use_engine(response={"summary": "unused"})
        response = client.post("/guardian-summary", json={"findings": "", "impression": ""})

        assert response.status_code == 200
        data = response.json()
        assert data["source"] == "fallback"
        assert set(data["summary"]) == {"summary", "keyPoints", "nextSteps", "reassurance"}
        assert engine.calls == []

    def test_model_failure_still_succeeds(self, client, use_engine):
        use_engine(error=DraftingError("timeout"))
        response = client.post("/guardian-summary", json={"findings": "Small cyst.", "impression": None})

        assert response.status_code == 200
        assert response.json()["source"] == "fallback"

    def test_ai_summary(self, client, use_engine):
        use_engine(response={"summary": "A small fluid pocket was seen."})
        data = client.post("/guardian-summary", json={"findings": "Small cyst."}).json()

        assert data["source"] == "ai"
        assert data["summary"]["summary"] == "A small fluid pocket was seen."


class TestIdentityEndpoints:
    """Test identity and national ID endpoints."""

    def test_derive(self, client):
        response = client.post(
            "/identity/derive",
            json={"national_id": "990101-1234567", "exam_date": "2024-01-01"}
        )
        assert response.json() == {"sex": "M", "age_text": "25y"}

    def test_derive_invalid(self, client):
        response = client.post("/identity/derive", json={"national_id": "991301-1234567"})
        assert response.json() == {"sex": "", "age_text": ""}

    def test_secure_national_id(self, client, monkeypatch):
        monkeypatch.setattr(settings, "rrn_encryption_secret", "test-secret")
        response = client.post("/secure/national-id", json={"national_id": "990101-1234567"})

        assert response.status_code == 200
        data = response.json()
        assert data["masked"] == "990101-1******"
        assert NationalIdVault(secret="test-secret").decrypt(data["encrypted"]) == "990101-1234567"

    def test_secure_blank(self, client):
        response = client.post("/secure/national-id", json={"national_id": " "})
        assert response.json() == {"masked": "", "encrypted": ""}

    def test_secure_without_secret(self, client, monkeypatch):
        monkeypatch.setattr(settings, "rrn_encryption_secret", "")
        response = client.post("/secure/national-id", json={"national_id": "990101-1234567"})

        assert response.status_code == 500
        assert response.json()["detail"] == "Missing RRN_ENCRYPTION_SECRET"


class TestKtiradsEndpoint:
    """Test K-TIRADS recommendation endpoint."""

    def test_recommend(self, client):
        data = client.post("/ktirads/recommend", json={"category": "5", "size_mm": 12}).json()

        assert data["category"] == 5
        assert data["size_mm"] == 12.0
        assert data["recommendation"] == "K-TIRADS 5 (high suspicion). ≥10 mm: FNA recommended."

    def test_unusable_category(self, client):
        data = client.post("/ktirads/recommend", json={"category": "x"}).json()

        assert data["category"] is None
        assert data["recommendation"].startswith("Clinical correlation needed")


class TestPlainTextReport:
    """Test plain-text report endpoint."""

    def test_plain_text(self, client):
        response = client.post("/reports/plain-text", json={
            "patient_name": "Hong Gildong",
            "national_id": "990101-1234567",
            "exam_date": "2024-01-01",
            "findings": "Liver normal.",
        })

        assert response.status_code == 200
        text = response.json()["text"]
        assert "RRN: 990101-1******" in text
        assert "Age/Sex: 25y / M" in text
        assert text.endswith("\n")
