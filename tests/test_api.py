"""Tests for the FastAPI endpoints."""

import base64
from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient

from api.index import app, get_studio
from seo_content_studio.models import ArticleConfig


@pytest.fixture
def client(studio):
    """API client with the studio dependency pointed at mocked model clients."""
    app.dependency_overrides[get_studio] = lambda: studio
    yield TestClient(app)
    app.dependency_overrides.clear()


class TestHealthAndInfo:
    def test_health(self, client):
        response = client.get("/api/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_info_lists_endpoints(self, client):
        endpoints = client.get("/api/info").json()["endpoints"]

        assert "POST /api/analyze" in endpoints
        assert "DELETE /api/templates/{id}" in endpoints


class TestAnalyzeEndpoint:
    """Tests for keyword density scoring over HTTP."""

    def test_scores_text(self, client):
        response = client.post("/api/analyze", json={
            "text": "the vintage bag charm is rare, this vintage bag charm sells",
            "keyword": "vintage bag charm",
        })

        assert response.status_code == 200
        body = response.json()
        assert body["metrics"] == {
            "total_words": 11,
            "occurrence_count": 2,
            "density_percent": 18.18,
        }
        assert body["status"] == "caution"

    def test_blank_keyword_returns_null_metrics(self, client):
        response = client.post("/api/analyze", json={"text": "anything", "keyword": "  "})

        assert response.status_code == 200
        assert response.json() == {"metrics": None, "status": None}

    def test_missing_keyword_is_422(self, client):
        assert client.post("/api/analyze", json={"text": "x"}).status_code == 422


class TestArticlesEndpoint:
    """Tests for article generation over HTTP."""

    def test_generates_with_metrics_and_docx(
        self, client, anthropic_mock, tool_use_response, sample_article_payload
    ):
        anthropic_mock.messages.create.return_value = tool_use_response(sample_article_payload)

        response = client.post("/api/articles", json={
            "main_keyword": "leather care",
            "search_intent": "Commercial",
            "include_docx": True,
        })

        assert response.status_code == 200
        body = response.json()
        assert body["metrics"]["density_percent"] == 18.75
        assert body["density_status"] == "caution"
        assert body["markdown"].startswith("# Leather Care That Actually Works")
        assert base64.b64decode(body["document_base64"])[:2] == b"PK"

    def test_contract_violation_is_502(self, client, anthropic_mock, text_response):
        anthropic_mock.messages.create.return_value = text_response("not structured")

        response = client.post("/api/articles", json={"main_keyword": "x"})

        assert response.status_code == 502
        assert response.json()["detail"]["error_kind"] == "contract_violation"

    def test_blank_keyword_is_400(self, client):
        response = client.post("/api/articles", json={"main_keyword": "   "})

        assert response.status_code == 400
        assert response.json()["detail"]["error_kind"] == "invalid_input"

    def test_unknown_intent_is_422(self, client):
        response = client.post("/api/articles", json={"main_keyword": "x", "search_intent": "Curious"})

        assert response.status_code == 422

    def test_missing_key_is_500(self, tmp_path):
        from seo_content_studio.config import StudioConfig
        from seo_content_studio.studio import ContentStudio

        bare = ContentStudio(config=StudioConfig(store_path=tmp_path / "s.json"))
        app.dependency_overrides[get_studio] = lambda: bare
        try:
            response = TestClient(app).post("/api/articles", json={"main_keyword": "x"})
        finally:
            app.dependency_overrides.clear()

        assert response.status_code == 500
        assert response.json()["detail"]["error_kind"] == "configuration"


class TestToolEndpoints:
    def test_ideas(self, client, anthropic_mock, text_response):
        anthropic_mock.messages.create.return_value = text_response("- idea")

        assert client.post("/api/ideas", json={"topic": "wallets"}).json() == {"ideas": "- idea"}

    def test_research(self, client, anthropic_mock, text_response):
        anthropic_mock.messages.create.return_value = text_response(
            "Findings.", citations=[SimpleNamespace(url="https://a.example", title="A")]
        )

        body = client.post("/api/research", json={"query": "trends"}).json()

        assert body == {
            "text": "Findings.",
            "sources": [{"uri": "https://a.example", "title": "A", "kind": "web"}],
        }

    def test_local_rejects_bad_latitude(self, client):
        response = client.post("/api/local", json={"query": "coffee", "latitude": 200, "longitude": 0})

        assert response.status_code == 422

    def test_upstream_failure_is_502(self, client, genai_mock):
        genai_mock.models.generate_content.side_effect = RuntimeError("quota")

        response = client.post("/api/local", json={"query": "coffee"})

        assert response.status_code == 502
        assert response.json()["detail"]["error_kind"] == "upstream"

    def test_chat_with_history(self, client, anthropic_mock, text_response):
        anthropic_mock.messages.create.return_value = text_response("Use FAQ schema.")

        response = client.post("/api/chat", json={
            "message": "And for products?",
            "history": [
                {"role": "user", "text": "How do I get rich results?"},
                {"role": "model", "text": "Add structured data."},
            ],
        })

        assert response.status_code == 200
        body = response.json()
        assert body["reply"] == "Use FAQ schema."
        assert [turn["role"] for turn in body["history"]] == ["user", "model", "user", "model"]

    def test_chat_bad_role_is_400(self, client):
        response = client.post("/api/chat", json={
            "message": "hi",
            "history": [{"role": "assistant", "text": "hello"}],
        })

        assert response.status_code == 400

    def test_image(self, client, genai_mock):
        inline = SimpleNamespace(data=b"img", mime_type="image/png")
        genai_mock.models.generate_content.return_value = SimpleNamespace(candidates=[
            SimpleNamespace(content=SimpleNamespace(parts=[SimpleNamespace(inline_data=inline)])),
        ])

        body = client.post("/api/images", json={"prompt": "a wallet"}).json()

        assert body["data_url"] == "data:image/png;base64," + base64.b64encode(b"img").decode()

    def test_image_bad_size_is_400(self, client):
        response = client.post("/api/images", json={"prompt": "a wallet", "size": "8K"})

        assert response.status_code == 400

    def test_image_edit_bad_base64_is_400(self, client):
        response = client.post("/api/images/edit", json={"image": "@@@", "prompt": "brighter"})

        assert response.status_code == 400


class TestTemplatesEndpoints:
    """Tests for template CRUD over HTTP."""

    def test_save_list_delete(self, client, studio):
        created = client.post("/api/templates", json={
            "name": "Shop",
            "config": {"brand_name": "Hide & Co", "search_intent": "Commercial", "word_count": 900},
        })
        assert created.status_code == 201
        template_id = created.json()["id"]
        assert created.json()["config"]["brand_name"] == "Hide & Co"
        assert created.json()["config"]["search_intent"] == "Commercial"
        assert created.json()["config"]["word_count"] == 900
        assert "main_keyword" not in created.json()["config"]

        listed = client.get("/api/templates").json()
        assert [t["name"] for t in listed] == ["Shop"]

        assert client.delete(f"/api/templates/{template_id}").status_code == 204
        assert studio.templates.all_templates() == []

    def test_blank_name_is_400(self, client):
        response = client.post("/api/templates", json={"name": " ", "config": {}})

        assert response.status_code == 400

    def test_config_defaults_when_omitted(self, client):
        response = client.post("/api/templates", json={"name": "Plain"})

        assert response.status_code == 201
        assert response.json()["config"]["include_images"] is True

    @pytest.mark.parametrize("field", ["main_keyword", "template_id", "include_docx", "article_title"])
    def test_per_article_fields_rejected(self, client, field):
        response = client.post("/api/templates", json={"name": "Shop", "config": {field: "x"}})

        assert response.status_code == 422

    def test_bad_word_count_is_422(self, client):
        response = client.post("/api/templates", json={"name": "Shop", "config": {"word_count": 0}})

        assert response.status_code == 422

    def test_delete_unknown_is_404(self, client):
        assert client.delete("/api/templates/missing").status_code == 404

    def test_article_uses_template(
        self, client, studio, anthropic_mock, tool_use_response, sample_article_payload
    ):
        anthropic_mock.messages.create.return_value = tool_use_response(sample_article_payload)
        template = studio.templates.save("Brand", ArticleConfig(main_keyword="x", brand_name="Hide & Co"))

        response = client.post("/api/articles", json={
            "main_keyword": "leather care",
            "template_id": template.id,
        })

        assert response.status_code == 200
        assert "Brand: Hide & Co" in anthropic_mock.messages.create.call_args.kwargs["system"]
