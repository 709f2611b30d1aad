"""
LLM client abstraction for content generation.

This module provides an interface for calling LLMs (Claude/Anthropic)
to produce structured SEO articles, assistant chat replies, quick
brainstorm lists and web-search-grounded research summaries.
"""

import logging
import os
from typing import Any, Optional, Sequence

try:
    import anthropic
except ImportError:
    anthropic = None  # type: ignore

from .models import (
    ArticleConfig,
    ArticleContent,
    ChatMessage,
    FAQItem,
    GeneratedArticle,
    GroundedAnswer,
    GroundingSource,
    InternalLinkSuggestion,
    MediaSuggestion,
    SeoMetadata,
)

logger = logging.getLogger(__name__)


DEFAULT_MODEL = "claude-sonnet-4-20250514"


class LLMClientError(Exception):
    """Raised when LLM operations fail."""
    pass


class LLMConfigurationError(LLMClientError):
    """Raised when the client cannot be configured (missing key or package)."""
    pass


class UpstreamContractError(LLMClientError):
    """Raised when the model output does not match the declared response schema."""
    pass


# Tool used to force structured article output
ARTICLE_TOOL_NAME = "publish_seo_article"


def _string(description: Optional[str] = None) -> dict:
    schema: dict[str, Any] = {"type": "string"}
    if description:
        schema["description"] = description
    return schema


def _object(properties: dict[str, dict]) -> dict:
    return {
        "type": "object",
        "properties": properties,
        "required": list(properties),
    }


# Declared response shape for article generation (JSON Schema)
ARTICLE_SCHEMA = _object({
    "seo_metadata": _object({
        "meta_title": _string(),
        "meta_description": _string(),
        "url_slug_suggestion": _string(),
        "primary_keyword_focus": _string(),
    }),
    "article_content": _object({
        "h1_title": _string(),
        "snippet_bait": _string("Markdown bullet points of key takeaways (Snippet Bait)"),
        "body_markdown": _string(
            "Full article body in Markdown with H2, H3, and bolded keywords. High burstiness."
        ),
        "faq_section": {
            "type": "array",
            "items": _object({
                "question": _string(),
                "answer": _string(),
            }),
        },
    }),
    "media_suggestions": {
        "type": "array",
        "items": _object({
            "placement": _string(),
            "image_prompt": _string(),
            "alt_text": _string(),
        }),
    },
    "internal_linking_suggestions": {
        "type": "array",
        "items": _object({
            "anchor_text": _string(),
            "target_page_context": _string(
                "e.g., 'Collection Page' or 'Blog Post about Leather'"
            ),
            "reason": _string(),
        }),
    },
})


CHAT_SYSTEM_PROMPT = "You are a helpful SEO assistant. Keep answers concise and actionable."

IDEAS_SYSTEM_PROMPT = (
    "You are a content strategist. Return a concise markdown list with no preamble."
)

RESEARCH_SYSTEM_PROMPT = (
    "You are an SEO research analyst. Search the web, then answer with a concise, "
    "well-structured markdown summary. Prefer recent, authoritative sources."
)


def build_article_system_prompt(config: ArticleConfig) -> str:
    """
    Build the system prompt for article generation.

    Args:
        config: Article settings.

    Returns:
        The full system prompt text.
    """
    keyword = config.main_keyword
    return f"""Role: You are a 20-year veteran SEO/SEM Expert and Content Strategist.
Goal: Create rich, high-ranking content for '{keyword}' that reads like a human expert wrote it and resonates deeply with readers.

--- CORE WRITING DIRECTIVES (MANDATORY) ---

1. TEXT FRAGMENTATION & COGNITIVE BREAKS:
   - Abandon standard AI writing patterns. Do NOT use explicit logical connectors like "Furthermore", "In conclusion", "However", "Moreover", "In summary".
   - Mimic the stream of consciousness of a human expert. Use oral, fragmented syntax.
   - Let sentence lengths vary wildly: short, punchy sentences (2-5 words) followed by long, winding sentences that explain nuances.
   - Inject subjective, emotionally colored vocabulary. Use rhetorical questions.

2. BURSTINESS & UNPREDICTABILITY:
   - Avoid repetitive sentence structures at all costs.
   - If a paragraph uses passive voice, the next sentence MUST switch to a strong active voice.
   - Connect paragraphs with concept jumps rather than smooth linear transitions.
   - Introduce rare or unconventional analogies to explain concepts.

3. CONTEXT & PERSONA:
   - Persona: {config.tone_of_voice}.
   - Speak like a 20-year veteran. Use insider jargon naturally without over-explaining.
   - Be OPINIONATED. Express strong preferences or skepticism where an expert naturally would.
   - Treat this as a deep conversation in a coffee shop, not a textbook entry.

4. SEO & STRUCTURE:
   - Intent Strategy: {config.search_intent.instruction}
   - Formatting: strictly follow H1 -> H2 -> H3 hierarchy.
   - Keywords: Naturally **bold** the primary keyword ('{keyword}') 2-3 times. **Bold** semantic terms.
   - Content must be meaty. Avoid fluff. Provide concrete examples, scenarios, or data points.

--- CONFIGURATION ---
Main Keyword: {keyword}
Specific Article Title (H1): {config.article_title or "Create an optimized H1"}
Brand: {config.brand_name}
Target URLs (Context): {config.target_url}
Target Word Count: Approximately {config.word_count} words (ensure content is sufficient in length)
Readability Level: {config.readability_level} (Strictly adhere to this complexity level)
Media: {"Include image suggestions for key sections." if config.include_images else "Return an empty media_suggestions list."}

--- OUTPUT STEPS ---
1. Analyze intent and competitors.
2. Create click-worthy metadata.
3. Draft body content applying the directives above.
4. Generate FAQ (real user questions, not generic ones).
5. Suggest visuals and internal links.

Return the result ONLY by calling the {ARTICLE_TOOL_NAME} tool."""


class LLMClient:
    """
    Client for LLM-based content generation.

    Uses Anthropic's Claude API for article generation, chat, ideas and
    web-search-grounded research.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: str = DEFAULT_MODEL,
        client: Any = None,
    ):
        """
        Initialize the LLM client.

        Args:
            api_key: API key for the LLM provider. If None, reads from ANTHROPIC_API_KEY env var.
            model: Default model identifier to use.
            client: Pre-built Anthropic client (skips key and package checks).
        """
        self.model = model

        if client is not None:
            self.api_key = api_key
            self.client = client
            return

        self.api_key = api_key or os.environ.get("ANTHROPIC_API_KEY")

        if not self.api_key:
            raise LLMConfigurationError(
                "No API key provided. Set ANTHROPIC_API_KEY environment variable "
                "or pass api_key parameter."
            )

        if anthropic is None:
            raise LLMConfigurationError(
                "anthropic package not installed. Run: pip install anthropic"
            )

        import httpx
        http_client = httpx.Client(
            timeout=httpx.Timeout(300.0, connect=30.0),
            follow_redirects=True,
        )
        self.client = anthropic.Anthropic(
            api_key=self.api_key,
            http_client=http_client,
        )

    def generate_article(
        self,
        config: ArticleConfig,
        max_tokens: int = 16000,
        model: Optional[str] = None,
    ) -> GeneratedArticle:
        """
        Generate a structured SEO article.

        The response shape is declared as a forced tool call, so the model
        must return JSON matching ARTICLE_SCHEMA.

        Args:
            config: Article settings.
            max_tokens: Maximum tokens in response.
            model: Optional model override.

        Returns:
            The parsed GeneratedArticle.

        Raises:
            ValueError: If the main keyword is blank.
            UpstreamContractError: If the output does not match the schema.
            LLMClientError: If the API call fails.
        """
        if not config.main_keyword:
            raise ValueError("main_keyword is required to generate an article")

        model = model or self.model
        prompt = (
            f"Generate a high-performance SEO article for: '{config.main_keyword}'. "
            f"Intent: {config.search_intent.value}."
        )

        try:
            response = self.client.messages.create(
                model=model,
                max_tokens=max_tokens,
                system=build_article_system_prompt(config),
                tools=[{
                    "name": ARTICLE_TOOL_NAME,
                    "description": "Publish the finished SEO article package.",
                    "input_schema": ARTICLE_SCHEMA,
                }],
                tool_choice={"type": "tool", "name": ARTICLE_TOOL_NAME},
                messages=[{"role": "user", "content": prompt}],
            )
        except Exception as e:
            logger.error(f"Article generation failed: {e}")
            raise LLMClientError(f"Article generation failed: {e}") from e

        payload = _extract_tool_input(response, ARTICLE_TOOL_NAME)
        article = parse_generated_article(payload)
        logger.info(
            f"Generated article '{article.article_content.h1_title}' "
            f"for keyword '{config.main_keyword}'"
        )
        return article

    def send_chat_message(
        self,
        history: Sequence[ChatMessage],
        message: str,
        max_tokens: int = 2000,
        model: Optional[str] = None,
    ) -> str:
        """
        Send a chat message with prior conversation history.

        Args:
            history: Previous turns, oldest first.
            message: The new user message.
            max_tokens: Maximum tokens in response.
            model: Optional model override.

        Returns:
            The assistant reply text.
        """
        if not message or not message.strip():
            raise ValueError("message must not be blank")

        try:
            response = self.client.messages.create(
                model=model or self.model,
                max_tokens=max_tokens,
                system=CHAT_SYSTEM_PROMPT,
                messages=build_chat_messages(history, message),
            )
        except Exception as e:
            logger.error(f"Chat request failed: {e}")
            raise LLMClientError(f"Chat request failed: {e}") from e

        return _require_text(response, "chat reply")

    def generate_quick_ideas(
        self,
        topic: str,
        max_tokens: int = 2000,
        model: Optional[str] = None,
    ) -> str:
        """
        Brainstorm content ideas and keywords for a topic.

        Args:
            topic: Topic to brainstorm around.
            max_tokens: Maximum tokens in response.
            model: Optional model override.

        Returns:
            Markdown list text.
        """
        if not topic or not topic.strip():
            raise ValueError("topic must not be blank")

        prompt = (
            f"Generate 10 viral content ideas and 5 high-intent keywords for the topic: "
            f"{topic.strip()}. Format as a concise list."
        )
        try:
            response = self.client.messages.create(
                model=model or self.model,
                max_tokens=max_tokens,
                system=IDEAS_SYSTEM_PROMPT,
                messages=[{"role": "user", "content": prompt}],
            )
        except Exception as e:
            logger.error(f"Quick ideas request failed: {e}")
            raise LLMClientError(f"Quick ideas request failed: {e}") from e

        return _require_text(response, "ideas list")

    def research(
        self,
        query: str,
        max_searches: int = 5,
        max_tokens: int = 4096,
        model: Optional[str] = None,
    ) -> GroundedAnswer:
        """
        Answer a research query grounded on live web search results.

        Args:
            query: Research question.
            max_searches: Maximum searches the model may run.
            max_tokens: Maximum tokens in response.
            model: Optional model override.

        Returns:
            GroundedAnswer with the summary text and cited web sources.
        """
        if not query or not query.strip():
            raise ValueError("query must not be blank")

        try:
            response = self.client.messages.create(
                model=model or self.model,
                max_tokens=max_tokens,
                system=RESEARCH_SYSTEM_PROMPT,
                tools=[{
                    "type": "web_search_20250305",
                    "name": "web_search",
                    "max_uses": max_searches,
                }],
                messages=[{"role": "user", "content": query.strip()}],
            )
        except Exception as e:
            logger.error(f"Research request failed: {e}")
            raise LLMClientError(f"Research request failed: {e}") from e

        text = _collect_text(response)
        sources = _collect_citations(response)
        logger.info(f"Research answered with {len(sources)} sources")
        return GroundedAnswer(text=text, sources=sources)


def build_chat_messages(history: Sequence[ChatMessage], message: str) -> list[dict]:
    """
    Convert chat history into Anthropic message format.

    "model" turns become "assistant" turns. Leading assistant turns (such as a
    greeting) are dropped and consecutive turns of the same role are merged,
    since the API requires alternating roles starting with the user.
    """
    turns: list[dict] = []
    for item in list(history) + [ChatMessage(role="user", text=message)]:
        role = "assistant" if item.role == "model" else "user"
        if not turns and role == "assistant":
            continue
        if turns and turns[-1]["role"] == role:
            turns[-1]["content"] += "\n\n" + item.text
        else:
            turns.append({"role": role, "content": item.text})
    return turns


def parse_generated_article(payload: Any) -> GeneratedArticle:
    """
    Validate and convert a raw article payload into a GeneratedArticle.

    Args:
        payload: Decoded JSON object returned by the model.

    Returns:
        The typed article.

    Raises:
        UpstreamContractError: If a required field is missing or mistyped.
    """
    root = _require_mapping(payload, "article")
    meta = _require_mapping(root.get("seo_metadata"), "seo_metadata")
    content = _require_mapping(root.get("article_content"), "article_content")

    seo_metadata = SeoMetadata(
        meta_title=_require_str(meta, "meta_title", "seo_metadata"),
        meta_description=_require_str(meta, "meta_description", "seo_metadata"),
        url_slug_suggestion=_require_str(meta, "url_slug_suggestion", "seo_metadata"),
        primary_keyword_focus=_require_str(meta, "primary_keyword_focus", "seo_metadata"),
    )

    faq_section = [
        FAQItem(
            question=_require_str(item, "question", f"faq_section[{i}]"),
            answer=_require_str(item, "answer", f"faq_section[{i}]"),
        )
        for i, item in enumerate(_require_list(content, "faq_section", "article_content"))
    ]
    article_content = ArticleContent(
        h1_title=_require_str(content, "h1_title", "article_content"),
        snippet_bait=_require_str(content, "snippet_bait", "article_content"),
        body_markdown=_require_str(content, "body_markdown", "article_content"),
        faq_section=faq_section,
    )

    media = [
        MediaSuggestion(
            placement=_require_str(item, "placement", f"media_suggestions[{i}]"),
            image_prompt=_require_str(item, "image_prompt", f"media_suggestions[{i}]"),
            alt_text=_require_str(item, "alt_text", f"media_suggestions[{i}]"),
        )
        for i, item in enumerate(_require_list(root, "media_suggestions", "article"))
    ]
    links = [
        InternalLinkSuggestion(
            anchor_text=_require_str(item, "anchor_text", f"internal_linking_suggestions[{i}]"),
            target_page_context=_require_str(
                item, "target_page_context", f"internal_linking_suggestions[{i}]"
            ),
            reason=_require_str(item, "reason", f"internal_linking_suggestions[{i}]"),
        )
        for i, item in enumerate(_require_list(root, "internal_linking_suggestions", "article"))
    ]

    return GeneratedArticle(
        seo_metadata=seo_metadata,
        article_content=article_content,
        media_suggestions=media,
        internal_linking_suggestions=links,
    )


def _require_mapping(value: Any, where: str) -> dict:
    if not isinstance(value, dict):
        raise UpstreamContractError(
            f"Expected an object for '{where}', got {type(value).__name__}"
        )
    return value


def _require_str(container: Any, key: str, where: str) -> str:
    mapping = _require_mapping(container, where)
    if key not in mapping:
        raise UpstreamContractError(f"Missing required field '{where}.{key}'")
    value = mapping[key]
    if not isinstance(value, str):
        raise UpstreamContractError(
            f"Field '{where}.{key}' must be a string, got {type(value).__name__}"
        )
    return value


def _require_list(container: dict, key: str, where: str) -> list:
    if key not in container:
        raise UpstreamContractError(f"Missing required field '{where}.{key}'")
    value = container[key]
    if not isinstance(value, list):
        raise UpstreamContractError(
            f"Field '{where}.{key}' must be an array, got {type(value).__name__}"
        )
    return value


def _extract_tool_input(response: Any, tool_name: str) -> Any:
    """Return the input of the named tool_use block in a response."""
    for block in getattr(response, "content", None) or []:
        if getattr(block, "type", None) == "tool_use" and getattr(block, "name", None) == tool_name:
            return block.input
    stop_reason = getattr(response, "stop_reason", None)
    raise UpstreamContractError(
        f"Model did not return structured output (stop_reason={stop_reason})"
    )


def _collect_text(response: Any) -> str:
    parts = [
        block.text
        for block in getattr(response, "content", None) or []
        if getattr(block, "type", None) == "text" and getattr(block, "text", None)
    ]
    return "".join(parts).strip()


def _require_text(response: Any, what: str) -> str:
    text = _collect_text(response)
    if not text:
        raise UpstreamContractError(f"Model returned an empty {what}")
    return text


def _collect_citations(response: Any) -> list[GroundingSource]:
    """Collect unique web citations from text blocks, in order of appearance."""
    sources: list[GroundingSource] = []
    seen: set[str] = set()
    for block in getattr(response, "content", None) or []:
        if getattr(block, "type", None) != "text":
            continue
        for citation in getattr(block, "citations", None) or []:
            url = getattr(citation, "url", None)
            if not url or url in seen:
                continue
            seen.add(url)
            sources.append(GroundingSource(
                uri=url,
                title=getattr(citation, "title", None) or url,
                kind="web",
            ))
    return sources


def create_llm_client(
    api_key: Optional[str] = None,
    model: str = DEFAULT_MODEL,
) -> LLMClient:
    """
    Factory function to create an LLM client.

    Args:
        api_key: Optional API key. If None, uses environment variable.
        model: Model to use.

    Returns:
        Configured LLMClient instance.
    """
    return LLMClient(api_key=api_key, model=model)
