"""
SEO Content Studio

An SEO content toolkit that:
- Generates structured, expert-voice articles with metadata, FAQ and media ideas
- Scores keyword density of generated or existing content
- Runs web-grounded research, Maps-grounded local search and image generation
"""

__version__ = "1.0.0"
__author__ = "SEO Content Studio Team"

from .config import ConfigStore, ConfigStoreError, StudioConfig

from .keyword_metrics import (
    DensityStatus,
    KeywordMetrics,
    analyze,
    analyze_keywords,
    density_status,
)

from .models import (
    ArticleConfig,
    GeneratedArticle,
    GeneratedImage,
    GroundedAnswer,
    Keyword,
    SavedTemplate,
    SearchIntent,
)

from .request_state import ErrorKind, RequestState, RequestStatus, RequestTracker

from .studio import ArticleReport, ContentStudio

__all__ = [
    "ArticleConfig",
    "ArticleReport",
    "ConfigStore",
    "ConfigStoreError",
    "ContentStudio",
    "DensityStatus",
    "ErrorKind",
    "GeneratedArticle",
    "GeneratedImage",
    "GroundedAnswer",
    "Keyword",
    "KeywordMetrics",
    "RequestState",
    "RequestStatus",
    "RequestTracker",
    "SavedTemplate",
    "SearchIntent",
    "StudioConfig",
    "analyze",
    "analyze_keywords",
    "density_status",
]
