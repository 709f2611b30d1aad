"""
Content studio orchestration.

ContentStudio wires the settings store, templates, model clients and one
request tracker per tool, and pairs generated articles with their keyword
density figures.
"""

import logging
from dataclasses import dataclass, field
from typing import Optional, Union

from .config import (
    ANTHROPIC_API_KEY,
    GEMINI_API_KEY,
    ConfigStore,
    StudioConfig,
)
from .gemini_client import GeminiClient
from .keyword_metrics import (
    DEFAULT_CAUTION_THRESHOLD,
    DensityStatus,
    KeywordMetrics,
    analyze,
    density_status,
)
from .llm_client import LLMClient
from .models import ArticleConfig, ChatMessage, GeneratedArticle, GeneratedImage
from .request_state import ErrorKind, RequestState, RequestStatus, RequestTracker
from .templates import TemplateStore

logger = logging.getLogger(__name__)


CHAT_GREETING = (
    "Hello! I'm your SEO assistant. Ask me anything about content strategy, "
    "keyword research, or technical SEO."
)

TOOLS = ("article", "image", "research", "local", "chat", "ideas")


@dataclass
class ArticleReport:
    """A generated article with its keyword density figures."""
    article: GeneratedArticle
    keyword: str
    metrics: Optional[KeywordMetrics]
    density_status: Optional[DensityStatus] = None

    def to_dict(self) -> dict:
        return {
            "article": self.article.to_dict(),
            "keyword": self.keyword,
            "metrics": self.metrics.to_dict() if self.metrics else None,
            "density_status": self.density_status.value if self.density_status else None,
        }


def build_article_report(
    article: GeneratedArticle,
    keyword: str,
    caution_threshold: float = DEFAULT_CAUTION_THRESHOLD,
) -> ArticleReport:
    """Score an article body against its main keyword."""
    metrics = analyze(article.article_content.body_markdown, keyword)
    status = density_status(metrics.density_percent, caution_threshold) if metrics else None
    return ArticleReport(
        article=article,
        keyword=keyword,
        metrics=metrics,
        density_status=status,
    )


@dataclass
class ChatSession:
    """Conversation history for the assistant chat."""
    messages: list[ChatMessage] = field(
        default_factory=lambda: [ChatMessage(role="model", text=CHAT_GREETING)]
    )

    def add(self, role: str, text: str) -> ChatMessage:
        message = ChatMessage(role=role, text=text)
        self.messages.append(message)
        return message


class ContentStudio:
    """
    Orchestrates the content tools.

    Model clients are created on first use so that tools needing only one
    provider work without the other provider's key.
    """

    def __init__(
        self,
        config: Optional[StudioConfig] = None,
        store: Optional[ConfigStore] = None,
        llm_client: Optional[LLMClient] = None,
        gemini_client: Optional[GeminiClient] = None,
    ):
        """
        Initialize the studio.

        Args:
            config: Studio configuration. Defaults to StudioConfig.from_env().
            store: Settings store. Defaults to the store at config.store_path.
            llm_client: Pre-configured LLM client. If None, created lazily.
            gemini_client: Pre-configured Gemini client. If None, created lazily.
        """
        self.config = config or StudioConfig.from_env()
        self.store = store or ConfigStore(self.config.store_path)
        self.templates = TemplateStore(self.store)
        self._llm = llm_client
        self._gemini = gemini_client
        self.trackers = {name: RequestTracker(name) for name in TOOLS}
        self.chat_session = ChatSession()

    @property
    def llm(self) -> LLMClient:
        if self._llm is None:
            self._llm = LLMClient(
                api_key=self.store.resolve_api_key(ANTHROPIC_API_KEY),
                model=self.config.article_model,
            )
        return self._llm

    @property
    def gemini(self) -> GeminiClient:
        if self._gemini is None:
            self._gemini = GeminiClient(
                api_key=self.store.resolve_api_key(GEMINI_API_KEY),
                image_model=self.config.image_model,
                image_edit_model=self.config.image_edit_model,
                local_search_model=self.config.local_search_model,
                aspect_ratio=self.config.image_aspect_ratio,
            )
        return self._gemini

    def reload_settings(self) -> None:
        """Re-read the settings store and drop clients built from old keys."""
        self.store.reload()
        self._llm = None
        self._gemini = None
        logger.info("Settings reloaded")

    def state(self, tool: str) -> RequestState:
        return self.trackers[tool].state

    def generate_article(
        self,
        article_config: ArticleConfig,
        template_id: Optional[str] = None,
    ) -> RequestState:
        """
        Generate an article and score its body against the main keyword.

        Args:
            article_config: Article settings.
            template_id: Optional saved template applied before generating.

        Returns:
            Settled state; on success the result is an ArticleReport.
        """
        def _generate() -> ArticleReport:
            config = article_config
            if template_id:
                config = self.templates.apply(template_id, config)
            article = self.llm.generate_article(
                config,
                max_tokens=self.config.article_max_tokens,
                model=self.config.article_model,
            )
            return build_article_report(
                article,
                config.main_keyword,
                self.config.density_caution_threshold,
            )

        return self.trackers["article"].run(_generate)

    def generate_image(self, prompt: str, size: Optional[str] = None) -> RequestState:
        """Generate an image; on success the result is a GeneratedImage."""
        return self.trackers["image"].run(
            lambda: self.gemini.generate_image(prompt, size or self.config.image_size)
        )

    def edit_image(self, image: Union[GeneratedImage, str], prompt: str) -> RequestState:
        """Edit an image; on success the result is a GeneratedImage."""
        return self.trackers["image"].run(lambda: self.gemini.edit_image(image, prompt))

    def research(self, query: str) -> RequestState:
        """Web-grounded research; on success the result is a GroundedAnswer."""
        return self.trackers["research"].run(
            lambda: self.llm.research(
                query,
                max_searches=self.config.research_max_searches,
                model=self.config.research_model,
            )
        )

    def local_search(
        self,
        query: str,
        latitude: Optional[float] = None,
        longitude: Optional[float] = None,
    ) -> RequestState:
        """Maps-grounded local search; on success the result is a GroundedAnswer."""
        return self.trackers["local"].run(
            lambda: self.gemini.local_search(query, latitude, longitude)
        )

    def quick_ideas(self, topic: str) -> RequestState:
        """Brainstorm list; on success the result is markdown text."""
        return self.trackers["ideas"].run(
            lambda: self.llm.generate_quick_ideas(
                topic,
                max_tokens=self.config.chat_max_tokens,
                model=self.config.ideas_model,
            )
        )

    def chat(self, message: str) -> RequestState:
        """
        Send a chat message, recording both turns in the session.

        A blank message leaves the history untouched. Any other failure keeps
        the user turn and appends an apology from the assistant.
        """
        history = list(self.chat_session.messages)
        state = self.trackers["chat"].run(
            lambda: self.llm.send_chat_message(
                history,
                message,
                max_tokens=self.config.chat_max_tokens,
                model=self.config.chat_model,
            )
        )
        if state.error_kind == ErrorKind.INVALID_INPUT:
            return state

        self.chat_session.add("user", message)
        if state.status == RequestStatus.SUCCESS:
            self.chat_session.add("model", state.result)
        else:
            self.chat_session.add("model", "Sorry, I encountered an error.")
        return state
