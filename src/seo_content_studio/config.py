# -*- coding: utf-8 -*-
"""
Centralized configuration for SEO Content Studio.

This module provides:
- StudioConfig: a dataclass with model choices, limits and display rules
- ConfigStore: a small persisted key-value store for API keys and templates
  with an explicit load / save-on-change / reload lifecycle
"""

import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Literal, Optional

from .keyword_metrics import DEFAULT_CAUTION_THRESHOLD

logger = logging.getLogger(__name__)


# Image sizes accepted by the image model
ImageSize = Literal["1K", "2K", "4K"]
IMAGE_SIZES = ("1K", "2K", "4K")

# Well-known store keys
ANTHROPIC_API_KEY = "anthropic_api_key"
GEMINI_API_KEY = "gemini_api_key"
TEMPLATES_KEY = "seo_templates"

# Environment variables
HOME_ENV_VAR = "SEO_STUDIO_HOME"
API_KEY_ENV_VARS = {
    ANTHROPIC_API_KEY: "ANTHROPIC_API_KEY",
    GEMINI_API_KEY: "GEMINI_API_KEY",
}

DEFAULT_HOME = Path.home() / ".seo_content_studio"
SETTINGS_FILENAME = "settings.json"


def default_store_path() -> Path:
    """Settings file location (SEO_STUDIO_HOME overrides the home directory)."""
    home = os.environ.get(HOME_ENV_VAR)
    base = Path(home) if home else DEFAULT_HOME
    return base / SETTINGS_FILENAME


@dataclass
class StudioConfig:
    """
    Central configuration for content generation.

    Attributes:
        article_model: Anthropic model used for article generation.
        chat_model: Anthropic model used for the assistant chat.
        ideas_model: Anthropic model used for quick brainstorm lists.
        research_model: Anthropic model used for web-search-grounded research.
        image_model: Gemini model used for image generation.
        image_edit_model: Gemini model used for image editing.
        local_search_model: Gemini model used for Maps-grounded local search.

        article_max_tokens: Max output tokens for article generation.
        chat_max_tokens: Max output tokens for chat and ideas.
        research_max_searches: Maximum web searches per research request.

        image_size: Default image resolution ("1K", "2K" or "4K").
        image_aspect_ratio: Aspect ratio for generated images.

        density_caution_threshold: Keyword density (percent) above which the
            density figure is flagged as a caution. Display only.

        store_path: Location of the persisted settings file.
    """

    # Models
    article_model: str = "claude-sonnet-4-20250514"
    chat_model: str = "claude-sonnet-4-20250514"
    ideas_model: str = "claude-3-5-haiku-latest"
    research_model: str = "claude-sonnet-4-20250514"
    image_model: str = "gemini-3-pro-image-preview"
    image_edit_model: str = "gemini-2.5-flash-image"
    local_search_model: str = "gemini-2.5-flash"

    # Limits
    article_max_tokens: int = 16000
    chat_max_tokens: int = 2000
    research_max_searches: int = 5

    # Images
    image_size: ImageSize = "1K"
    image_aspect_ratio: str = "16:9"

    # Display rules
    density_caution_threshold: float = DEFAULT_CAUTION_THRESHOLD

    store_path: Path = field(default_factory=default_store_path)

    def __post_init__(self):
        """Validate configuration values."""
        self.store_path = Path(self.store_path)
        if self.image_size not in IMAGE_SIZES:
            raise ValueError(
                f"image_size must be one of {', '.join(IMAGE_SIZES)}, "
                f"got '{self.image_size}'"
            )
        if self.article_max_tokens < 1024:
            raise ValueError(
                f"article_max_tokens must be >= 1024, got {self.article_max_tokens}"
            )
        if self.chat_max_tokens < 1:
            raise ValueError(f"chat_max_tokens must be >= 1, got {self.chat_max_tokens}")
        if self.research_max_searches < 1:
            raise ValueError(
                f"research_max_searches must be >= 1, got {self.research_max_searches}"
            )
        if self.density_caution_threshold < 0:
            raise ValueError(
                f"density_caution_threshold must be >= 0, "
                f"got {self.density_caution_threshold}"
            )

    @classmethod
    def from_env(cls, **overrides) -> "StudioConfig":
        """Create config using SEO_STUDIO_HOME for the store location.

        Args:
            **overrides: Override any config values.

        Returns:
            StudioConfig with environment-derived defaults.
        """
        defaults: dict[str, Any] = {"store_path": default_store_path()}
        defaults.update(overrides)
        return cls(**defaults)


class ConfigStoreError(Exception):
    """Raised when the settings store cannot be written."""
    pass


class ConfigStore:
    """
    JSON-file backed key-value store for process-wide settings.

    The file is read once at construction. Every set/clear writes the whole
    file back. reload() re-reads it after another process changed it.
    """

    def __init__(self, path: Optional[Path] = None):
        self.path = Path(path) if path else default_store_path()
        self._data: dict[str, Any] = {}
        self.load()

    def load(self) -> None:
        """Load the settings file. A missing or corrupted file yields an empty store."""
        if not self.path.exists():
            self._data = {}
            return
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Ignoring unreadable settings file {self.path}: {e}")
            self._data = {}
            return
        if not isinstance(data, dict):
            logger.warning(f"Ignoring settings file {self.path}: expected a JSON object")
            self._data = {}
            return
        self._data = data

    def reload(self) -> None:
        """Re-read the settings file, dropping in-memory state."""
        self.load()

    def get(self, key: str, default: Any = None) -> Any:
        return self._data.get(key, default)

    def set(self, key: str, value: Any) -> None:
        """Set a value and persist the store. Memory is unchanged if the write fails."""
        data = dict(self._data)
        data[key] = value
        self._save(data)
        self._data = data

    def clear(self, key: Optional[str] = None) -> None:
        """Remove one key, or every key when key is None, and persist."""
        data: dict[str, Any] = {}
        if key is not None:
            data = dict(self._data)
            data.pop(key, None)
        self._save(data)
        self._data = data

    def keys(self) -> list[str]:
        return sorted(self._data)

    def _save(self, data: dict[str, Any]) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path = self.path.with_suffix(".tmp")
            tmp_path.write_text(json.dumps(data, indent=2), encoding="utf-8")
            tmp_path.replace(self.path)
        except OSError as e:
            raise ConfigStoreError(f"Failed to write settings file {self.path}: {e}") from e

    def resolve_api_key(self, key: str, explicit: Optional[str] = None) -> Optional[str]:
        """
        Resolve an API key: explicit argument, then store, then environment.

        Args:
            key: Store key (ANTHROPIC_API_KEY or GEMINI_API_KEY constant).
            explicit: Key passed by the caller, if any.

        Returns:
            The first non-blank key found, or None.
        """
        candidates = [explicit, self.get(key)]
        env_var = API_KEY_ENV_VARS.get(key)
        if env_var:
            candidates.append(os.environ.get(env_var))
        for candidate in candidates:
            if candidate and str(candidate).strip():
                return str(candidate).strip()
        return None


def mask_secret(value: Optional[str]) -> str:
    """Mask a secret for display, keeping the last 4 characters."""
    if not value:
        return "(not set)"
    if len(value) <= 8:
        return "*" * len(value)
    return "*" * (len(value) - 4) + value[-4:]
