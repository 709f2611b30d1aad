"""Tests for data models."""

import base64

import pytest

from seo_content_studio.models import (
    ArticleConfig,
    ChatMessage,
    GeneratedImage,
    GroundedAnswer,
    GroundingSource,
    Keyword,
    SavedTemplate,
    SearchIntent,
)


class TestSearchIntent:
    """Tests for search intent parsing."""

    def test_parse_case_insensitive(self):
        assert SearchIntent.parse("commercial") == SearchIntent.COMMERCIAL
        assert SearchIntent.parse(" Transactional ") == SearchIntent.TRANSACTIONAL

    def test_parse_passes_enum_through(self):
        assert SearchIntent.parse(SearchIntent.NAVIGATIONAL) == SearchIntent.NAVIGATIONAL

    def test_parse_unknown_raises(self):
        with pytest.raises(ValueError, match="Unknown search intent"):
            SearchIntent.parse("curious")

    def test_every_intent_has_instruction(self):
        for intent in SearchIntent:
            assert intent.instruction


class TestArticleConfig:
    """Tests for ArticleConfig normalization and templates."""

    def test_defaults(self):
        config = ArticleConfig(main_keyword="leather care")

        assert config.search_intent == SearchIntent.INFORMATIONAL
        assert config.tone_of_voice == "Opinionated Expert (20+ Years Exp)"
        assert config.include_images is True
        assert config.word_count == 1500
        assert config.readability_level == "8th or 9th grade"

    def test_keyword_trimmed_and_intent_parsed(self):
        config = ArticleConfig(main_keyword="  leather care ", search_intent="commercial")

        assert config.main_keyword == "leather care"
        assert config.search_intent == SearchIntent.COMMERCIAL

    def test_invalid_word_count(self):
        with pytest.raises(ValueError, match="word_count"):
            ArticleConfig(main_keyword="x", word_count=0)

    def test_template_fields_exclude_keyword_and_title(self):
        config = ArticleConfig(
            main_keyword="leather care",
            article_title="A Title",
            brand_name="Hide & Co",
            search_intent=SearchIntent.TRANSACTIONAL,
        )
        fields = config.template_fields()

        assert "main_keyword" not in fields
        assert "article_title" not in fields
        assert fields["brand_name"] == "Hide & Co"
        assert fields["search_intent"] == "Transactional"

    def test_with_template_keeps_keyword(self):
        config = ArticleConfig(main_keyword="saddle soap", article_title="Soap")
        applied = config.with_template({
            "brand_name": "Hide & Co",
            "search_intent": "Commercial",
            "word_count": 900,
            "unknown_field": "ignored",
        })

        assert applied.main_keyword == "saddle soap"
        assert applied.article_title == "Soap"
        assert applied.brand_name == "Hide & Co"
        assert applied.search_intent == SearchIntent.COMMERCIAL
        assert applied.word_count == 900
        assert config.brand_name == ""


class TestSavedTemplate:
    """Tests for template serialization."""

    def test_from_dict_filters_unknown_fields(self):
        template = SavedTemplate.from_dict({
            "id": 123,
            "name": "Shop pages",
            "config": {"brand_name": "Hide & Co", "main_keyword": "nope"},
        })

        assert template.id == "123"
        assert template.config == {"brand_name": "Hide & Co"}

    def test_from_dict_missing_name_raises(self):
        with pytest.raises(KeyError):
            SavedTemplate.from_dict({"id": "1"})


class TestGeneratedArticle:
    """Tests for article rendering."""

    def test_to_markdown_layout(self, sample_article):
        markdown = sample_article.to_markdown()

        assert markdown.startswith("# Leather Care That Actually Works")
        assert "**Meta Title**: Leather Care: A Veteran's Guide" in markdown
        assert "## Key Takeaways\n- Clean first" in markdown
        assert "## Why leather care matters" in markdown
        assert markdown.endswith("### How often should I condition leather?\nEvery few months.")

    def test_to_dict_is_nested(self, sample_article):
        data = sample_article.to_dict()

        assert data["seo_metadata"]["url_slug_suggestion"] == "leather-care-guide"
        assert data["article_content"]["faq_section"][0]["answer"] == "Every few months."


class TestChatMessage:
    """Tests for chat turns."""

    def test_rejects_unknown_role(self):
        with pytest.raises(ValueError, match="role"):
            ChatMessage(role="assistant", text="hi")

    def test_timestamp_is_set(self):
        assert ChatMessage(role="user", text="hi").timestamp > 0


class TestGroundedAnswer:
    def test_to_dict(self):
        answer = GroundedAnswer(
            text="Answer",
            sources=[GroundingSource(uri="https://a.example", title="A", kind="maps")],
        )

        assert answer.to_dict() == {
            "text": "Answer",
            "sources": [{"uri": "https://a.example", "title": "A", "kind": "maps"}],
        }


class TestGeneratedImage:
    """Tests for image data URL handling."""

    def test_data_url(self):
        image = GeneratedImage(data=b"\x89PNG", mime_type="image/png")

        assert image.data_url == "data:image/png;base64," + base64.b64encode(b"\x89PNG").decode()

    def test_from_data_url_strips_header(self):
        encoded = base64.b64encode(b"jpegbytes").decode()
        image = GeneratedImage.from_data_url(f"data:image/jpg;base64,{encoded}")

        assert image.data == b"jpegbytes"
        assert image.mime_type == "image/jpeg"

    def test_from_bare_base64_defaults_to_png(self):
        image = GeneratedImage.from_data_url(base64.b64encode(b"raw").decode())

        assert image.data == b"raw"
        assert image.mime_type == "image/png"

    def test_from_invalid_base64_raises(self):
        with pytest.raises(ValueError, match="Invalid base64"):
            GeneratedImage.from_data_url("data:image/png;base64,@@not-base64@@")


class TestKeyword:
    def test_phrase_trimmed(self):
        assert Keyword(phrase="  leather care ").phrase == "leather care"
