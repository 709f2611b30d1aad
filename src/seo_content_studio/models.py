"""
Data models for SEO Content Studio.

This module defines the core data structures shared by the generators,
the export writers, the CLI and the HTTP API.
"""

import base64
import re
import time
from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Literal, Optional


class SearchIntent(Enum):
    """Search intent the generated article is written for."""
    INFORMATIONAL = "Informational"
    COMMERCIAL = "Commercial"
    TRANSACTIONAL = "Transactional"
    NAVIGATIONAL = "Navigational"

    @classmethod
    def parse(cls, value: "str | SearchIntent") -> "SearchIntent":
        """Parse an intent name case-insensitively."""
        if isinstance(value, cls):
            return value
        normalized = str(value).strip().lower()
        for intent in cls:
            if intent.value.lower() == normalized:
                return intent
        raise ValueError(
            f"Unknown search intent '{value}'. "
            f"Expected one of: {', '.join(i.value for i in cls)}"
        )

    @property
    def instruction(self) -> str:
        """Structural guidance for this intent."""
        return _INTENT_INSTRUCTIONS[self]


_INTENT_INSTRUCTIONS = {
    SearchIntent.INFORMATIONAL: (
        "Focus on depth, definitions, 'how-to' steps, and comprehensive education."
    ),
    SearchIntent.COMMERCIAL: (
        "Focus on comparisons, pros/cons, and features. "
        "Help the user decide 'which one is best'."
    ),
    SearchIntent.TRANSACTIONAL: (
        "Focus on conversion, pricing arguments, trust signals, "
        "and clear calls to action (CTAs)."
    ),
    SearchIntent.NAVIGATIONAL: (
        "Focus on brand identity, official resources, "
        "and directing the user to specific pages."
    ),
}


# Fields a template carries (everything except the per-article keyword/title)
TEMPLATE_FIELDS = (
    "target_url",
    "brand_name",
    "search_intent",
    "tone_of_voice",
    "include_images",
    "word_count",
    "readability_level",
)


@dataclass
class ArticleConfig:
    """Settings for one article generation request."""
    main_keyword: str
    article_title: Optional[str] = None
    target_url: str = ""
    brand_name: str = ""
    search_intent: SearchIntent = SearchIntent.INFORMATIONAL
    tone_of_voice: str = "Opinionated Expert (20+ Years Exp)"
    include_images: bool = True
    word_count: int = 1500
    readability_level: str = "8th or 9th grade"

    def __post_init__(self) -> None:
        """Normalize fields."""
        self.main_keyword = (self.main_keyword or "").strip()
        self.search_intent = SearchIntent.parse(self.search_intent)
        if self.word_count < 1:
            raise ValueError(f"word_count must be >= 1, got {self.word_count}")

    def template_fields(self) -> dict[str, Any]:
        """Return the reusable subset of this config (JSON-safe)."""
        fields = {name: getattr(self, name) for name in TEMPLATE_FIELDS}
        fields["search_intent"] = self.search_intent.value
        return fields

    def with_template(self, template_fields: dict[str, Any]) -> "ArticleConfig":
        """Return a copy with template fields applied over this config."""
        values = asdict(self)
        values["search_intent"] = self.search_intent
        for name in TEMPLATE_FIELDS:
            if name in template_fields:
                values[name] = template_fields[name]
        return ArticleConfig(**values)


@dataclass
class SavedTemplate:
    """A named, reusable set of article settings."""
    id: str
    name: str
    config: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "name": self.name, "config": dict(self.config)}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SavedTemplate":
        config = data.get("config") or {}
        return cls(
            id=str(data["id"]),
            name=str(data["name"]),
            config={k: v for k, v in config.items() if k in TEMPLATE_FIELDS},
        )


@dataclass
class SeoMetadata:
    """Search snippet metadata for a generated article."""
    meta_title: str
    meta_description: str
    url_slug_suggestion: str
    primary_keyword_focus: str


@dataclass
class FAQItem:
    """A single FAQ question and answer."""
    question: str
    answer: str


@dataclass
class ArticleContent:
    """The article itself."""
    h1_title: str
    snippet_bait: str  # Markdown bullets of key takeaways
    body_markdown: str
    faq_section: list[FAQItem] = field(default_factory=list)


@dataclass
class MediaSuggestion:
    """An image the article should carry."""
    placement: str
    image_prompt: str
    alt_text: str


@dataclass
class InternalLinkSuggestion:
    """A suggested internal link."""
    anchor_text: str
    target_page_context: str
    reason: str


@dataclass
class GeneratedArticle:
    """Structured article returned by the generator."""
    seo_metadata: SeoMetadata
    article_content: ArticleContent
    media_suggestions: list[MediaSuggestion] = field(default_factory=list)
    internal_linking_suggestions: list[InternalLinkSuggestion] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    def to_markdown(self) -> str:
        """
        Render the full article as a single markdown document.

        Includes H1, meta title/description, key takeaways, body and FAQ.
        """
        content = self.article_content
        meta = self.seo_metadata
        faq = "\n\n".join(
            f"### {item.question}\n{item.answer}" for item in content.faq_section
        )
        return f"""# {content.h1_title}

**Meta Title**: {meta.meta_title}
**Meta Description**: {meta.meta_description}

## Key Takeaways
{content.snippet_bait}

---

{content.body_markdown}

---

## Frequently Asked Questions

{faq}""".strip()


@dataclass
class ChatMessage:
    """One turn of an assistant conversation."""
    role: Literal["user", "model"]
    text: str
    timestamp: float = field(default_factory=time.time)

    def __post_init__(self) -> None:
        if self.role not in ("user", "model"):
            raise ValueError(f"role must be 'user' or 'model', got '{self.role}'")


@dataclass
class GroundingSource:
    """A citation backing a grounded answer."""
    uri: str
    title: str
    kind: Literal["web", "maps"] = "web"


@dataclass
class GroundedAnswer:
    """Model text plus the sources it was grounded on."""
    text: str
    sources: list[GroundingSource] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


_DATA_URL_RE = re.compile(r"^data:(image/[a-zA-Z0-9.+-]+);base64,", re.IGNORECASE)


@dataclass
class GeneratedImage:
    """Raw image bytes returned by an image model."""
    data: bytes
    mime_type: str = "image/png"

    @property
    def data_url(self) -> str:
        """Browser-ready data URL."""
        encoded = base64.b64encode(self.data).decode("ascii")
        return f"data:{self.mime_type};base64,{encoded}"

    @classmethod
    def from_data_url(cls, value: str) -> "GeneratedImage":
        """
        Build an image from a data URL or bare base64 string.

        A missing header is treated as PNG.
        """
        value = value.strip()
        mime_type = "image/png"
        match = _DATA_URL_RE.match(value)
        if match:
            mime_type = match.group(1).lower()
            if mime_type == "image/jpg":
                mime_type = "image/jpeg"
            value = value[match.end():]
        try:
            data = base64.b64decode(value, validate=True)
        except ValueError as e:
            raise ValueError(f"Invalid base64 image data: {e}") from e
        return cls(data=data, mime_type=mime_type)


@dataclass
class Keyword:
    """A keyword loaded from a keyword research export."""
    phrase: str
    search_volume: Optional[int] = None
    difficulty: Optional[float] = None
    intent: Optional[str] = None

    def __post_init__(self) -> None:
        """Normalize the keyword phrase."""
        self.phrase = self.phrase.strip()
