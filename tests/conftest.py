"""
Pytest fixtures and configuration for SEO Content Studio tests.
"""

from pathlib import Path
from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest

from seo_content_studio.config import ConfigStore, StudioConfig
from seo_content_studio.gemini_client import GeminiClient
from seo_content_studio.llm_client import ARTICLE_TOOL_NAME, LLMClient, parse_generated_article
from seo_content_studio.models import GeneratedArticle
from seo_content_studio.studio import ContentStudio


# "leather care" appears 3 times in 16 words
SAMPLE_BODY = (
    "## Why leather care matters\n\n"
    "Leather care is not optional. Skip **leather care** and the hide cracks."
)


@pytest.fixture(autouse=True)
def isolated_home(tmp_path: Path, monkeypatch) -> Path:
    """Keep settings and API keys out of the real environment."""
    home = tmp_path / "studio_home"
    monkeypatch.setenv("SEO_STUDIO_HOME", str(home))
    monkeypatch.delenv("ANTHROPIC_API_KEY", raising=False)
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)
    return home


@pytest.fixture
def sample_article_payload() -> dict:
    """Raw article payload as returned in the forced tool call."""
    return {
        "seo_metadata": {
            "meta_title": "Leather Care: A Veteran's Guide",
            "meta_description": "Stop ruining good hides. Real leather care advice.",
            "url_slug_suggestion": "leather-care-guide",
            "primary_keyword_focus": "leather care",
        },
        "article_content": {
            "h1_title": "Leather Care That Actually Works",
            "snippet_bait": "- Clean first\n- Condition second",
            "body_markdown": SAMPLE_BODY,
            "faq_section": [
                {"question": "How often should I condition leather?", "answer": "Every few months."},
            ],
        },
        "media_suggestions": [
            {
                "placement": "After intro",
                "image_prompt": "Close-up of conditioned saddle leather",
                "alt_text": "Conditioned leather",
            },
        ],
        "internal_linking_suggestions": [
            {
                "anchor_text": "leather conditioner",
                "target_page_context": "Collection Page",
                "reason": "Commercial follow-up",
            },
        ],
    }


@pytest.fixture
def sample_article(sample_article_payload: dict) -> GeneratedArticle:
    return parse_generated_article(sample_article_payload)


@pytest.fixture
def tool_use_response():
    """Factory for an Anthropic response carrying one tool_use block."""
    def _make(payload, name: str = ARTICLE_TOOL_NAME):
        return SimpleNamespace(
            content=[SimpleNamespace(type="tool_use", name=name, input=payload)],
            stop_reason="tool_use",
        )
    return _make


@pytest.fixture
def text_response():
    """Factory for an Anthropic response made of text blocks."""
    def _make(*texts: str, citations: list = None):
        blocks = [SimpleNamespace(type="text", text=t, citations=None) for t in texts]
        if citations and blocks:
            blocks[-1].citations = citations
        return SimpleNamespace(content=blocks, stop_reason="end_turn")
    return _make


@pytest.fixture
def anthropic_mock() -> MagicMock:
    return MagicMock()


@pytest.fixture
def genai_mock() -> MagicMock:
    return MagicMock()


@pytest.fixture
def llm_client(anthropic_mock: MagicMock) -> LLMClient:
    return LLMClient(client=anthropic_mock)


@pytest.fixture
def gemini_client(genai_mock: MagicMock) -> GeminiClient:
    return GeminiClient(client=genai_mock)


@pytest.fixture
def store(tmp_path: Path) -> ConfigStore:
    return ConfigStore(tmp_path / "settings.json")


@pytest.fixture
def studio_config(tmp_path: Path) -> StudioConfig:
    return StudioConfig(store_path=tmp_path / "settings.json")


@pytest.fixture
def studio(
    studio_config: StudioConfig,
    store: ConfigStore,
    llm_client: LLMClient,
    gemini_client: GeminiClient,
) -> ContentStudio:
    """Studio wired to mocked model clients."""
    return ContentStudio(
        config=studio_config,
        store=store,
        llm_client=llm_client,
        gemini_client=gemini_client,
    )


@pytest.fixture
def sample_keywords_csv(tmp_path: Path) -> Path:
    """Create a sample keywords CSV file."""
    csv_path = tmp_path / "keywords.csv"
    csv_path.write_text(
        "Keyword,Search Volume,KD,Intent\n"
        "leather care,1200,45,info\n"
        "hide,300,20,t\n"
        "leather conditioner,\"2,400\",0.3,commercial\n"
        "Leather Care,50,10,nav\n"
        ",100,10,info\n"
    )
    return csv_path


@pytest.fixture
def sample_keywords_excel(tmp_path: Path) -> Path:
    """Create a sample keywords Excel file."""
    import pandas as pd

    xlsx_path = tmp_path / "keywords.xlsx"
    pd.DataFrame({
        "keyword": ["leather care", "saddle soap"],
        "search_volume": [1000, 500],
        "difficulty": [40, 35],
    }).to_excel(xlsx_path, index=False)
    return xlsx_path
