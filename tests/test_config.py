"""Tests for configuration and the settings store."""

import json
from pathlib import Path

import pytest

from seo_content_studio.config import (
    ANTHROPIC_API_KEY,
    GEMINI_API_KEY,
    ConfigStore,
    ConfigStoreError,
    StudioConfig,
    default_store_path,
    mask_secret,
)
from seo_content_studio.keyword_metrics import DEFAULT_CAUTION_THRESHOLD


class TestStudioConfig:
    """Tests for StudioConfig validation."""

    def test_defaults(self, tmp_path: Path):
        config = StudioConfig(store_path=tmp_path / "s.json")

        assert config.image_size == "1K"
        assert config.image_aspect_ratio == "16:9"
        assert config.density_caution_threshold == DEFAULT_CAUTION_THRESHOLD == 2.5

    def test_invalid_image_size(self):
        with pytest.raises(ValueError, match="image_size"):
            StudioConfig(image_size="8K")

    def test_article_tokens_minimum(self):
        with pytest.raises(ValueError, match="article_max_tokens"):
            StudioConfig(article_max_tokens=100)

    def test_negative_threshold(self):
        with pytest.raises(ValueError, match="density_caution_threshold"):
            StudioConfig(density_caution_threshold=-1)

    def test_from_env_uses_home(self, isolated_home: Path):
        config = StudioConfig.from_env(image_size="2K")

        assert config.store_path == isolated_home / "settings.json"
        assert config.image_size == "2K"

    def test_default_store_path_follows_env(self, isolated_home: Path):
        assert default_store_path() == isolated_home / "settings.json"


class TestConfigStore:
    """Tests for the JSON settings store lifecycle."""

    def test_missing_file_is_empty(self, store: ConfigStore):
        assert store.keys() == []
        assert store.get("anything", "default") == "default"

    def test_set_persists(self, store: ConfigStore):
        store.set(ANTHROPIC_API_KEY, "sk-123")

        assert json.loads(store.path.read_text())[ANTHROPIC_API_KEY] == "sk-123"
        assert ConfigStore(store.path).get(ANTHROPIC_API_KEY) == "sk-123"

    def test_clear_one_key(self, store: ConfigStore):
        store.set(ANTHROPIC_API_KEY, "a")
        store.set(GEMINI_API_KEY, "b")

        store.clear(ANTHROPIC_API_KEY)

        assert store.keys() == [GEMINI_API_KEY]
        assert ConfigStore(store.path).keys() == [GEMINI_API_KEY]

    def test_clear_all(self, store: ConfigStore):
        store.set(ANTHROPIC_API_KEY, "a")
        store.clear()

        assert store.keys() == []

    def test_reload_picks_up_external_changes(self, store: ConfigStore):
        store.set(GEMINI_API_KEY, "old")
        ConfigStore(store.path).set(GEMINI_API_KEY, "new")

        assert store.get(GEMINI_API_KEY) == "old"
        store.reload()
        assert store.get(GEMINI_API_KEY) == "new"

    def test_corrupted_file_yields_empty_store(self, tmp_path: Path):
        path = tmp_path / "settings.json"
        path.write_text("{not json")

        assert ConfigStore(path).keys() == []

    def test_non_object_file_yields_empty_store(self, tmp_path: Path):
        path = tmp_path / "settings.json"
        path.write_text("[1, 2]")

        assert ConfigStore(path).keys() == []

    def test_unwritable_location_raises(self, tmp_path: Path):
        blocker = tmp_path / "blocker"
        blocker.write_text("a file, not a directory")
        store = ConfigStore(blocker / "settings.json")

        with pytest.raises(ConfigStoreError, match="Failed to write"):
            store.set(ANTHROPIC_API_KEY, "x")

    def test_failed_set_leaves_memory_unchanged(self, tmp_path: Path):
        blocker = tmp_path / "blocker"
        blocker.write_text("a file, not a directory")
        store = ConfigStore(blocker / "settings.json")

        with pytest.raises(ConfigStoreError):
            store.set(ANTHROPIC_API_KEY, "x")

        assert store.get(ANTHROPIC_API_KEY) is None
        assert store.keys() == []

    def test_failed_clear_leaves_memory_unchanged(self, store: ConfigStore, tmp_path: Path):
        store.set(ANTHROPIC_API_KEY, "a")
        store.set(GEMINI_API_KEY, "b")
        blocker = tmp_path / "blocker"
        blocker.write_text("a file, not a directory")
        store.path = blocker / "settings.json"

        with pytest.raises(ConfigStoreError):
            store.clear(ANTHROPIC_API_KEY)
        with pytest.raises(ConfigStoreError):
            store.clear()

        assert store.get(ANTHROPIC_API_KEY) == "a"
        assert store.keys() == [ANTHROPIC_API_KEY, GEMINI_API_KEY]


class TestResolveApiKey:
    """Tests for API key resolution order."""

    def test_explicit_wins(self, store: ConfigStore, monkeypatch):
        store.set(ANTHROPIC_API_KEY, "stored")
        monkeypatch.setenv("ANTHROPIC_API_KEY", "env")

        assert store.resolve_api_key(ANTHROPIC_API_KEY, "explicit") == "explicit"

    def test_store_before_env(self, store: ConfigStore, monkeypatch):
        store.set(ANTHROPIC_API_KEY, "stored")
        monkeypatch.setenv("ANTHROPIC_API_KEY", "env")

        assert store.resolve_api_key(ANTHROPIC_API_KEY) == "stored"

    def test_env_fallback(self, store: ConfigStore, monkeypatch):
        monkeypatch.setenv("GEMINI_API_KEY", " env-key ")

        assert store.resolve_api_key(GEMINI_API_KEY) == "env-key"

    def test_blank_values_skipped(self, store: ConfigStore):
        store.set(GEMINI_API_KEY, "   ")

        assert store.resolve_api_key(GEMINI_API_KEY, "") is None


class TestMaskSecret:
    def test_masks_all_but_last_four(self):
        assert mask_secret("sk-abcdef123456") == "***********3456"

    def test_short_and_missing(self):
        assert mask_secret("abc") == "***"
        assert mask_secret(None) == "(not set)"
