from pathlib import Path

import pytest

from ftw_ai import config as config_module
from ftw_ai.config import (
    MatchWeights,
    ProviderSettings,
    SpamWeights,
    get_config,
    load_config,
    load_weights,
    reload_config,
)


def test_defaults_when_nothing_is_set(offline_config):
    assert offline_config.routing.provider == "groq"
    assert offline_config.routing.model == "llama-3.1-8b-instant"
    assert offline_config.embeddings.model == "text-embedding-3-small"
    assert offline_config.background.provider == "together"
    assert offline_config.fallback.model == "gpt-4o"
    assert offline_config.scoping.model == "claude-3-5-sonnet-20241022"
    assert offline_config.scoping.quick_model == "claude-3-haiku-20240307"
    assert offline_config.scoping.max_tokens == 2000
    assert offline_config.vector.index_contractors == "ftw-contractors"
    assert not offline_config.vector.configured
    assert offline_config.http.timeout == 30.0
    assert offline_config.http.max_attempts == 1
    assert offline_config.monthly_budget == 120.0


def test_switches_only_disabled_by_literal_false(config_factory):
    config = config_factory(
        FTW_ENABLE_ROUTING="FALSE",
        FTW_ENABLE_RAG="0",
        FTW_ENABLE_MATCHING="no",
        FTW_ENABLE_BACKGROUND="false",
    )
    assert config.switches.routing is False
    assert config.switches.background is False
    assert config.switches.rag is True
    assert config.switches.matching is True
    assert config.switches.embeddings is True


def test_overrides_are_read(config_factory):
    config = config_factory(
        FTW_ROUTING_PROVIDER="fireworks",
        FTW_ROUTING_MODEL="accounts/fireworks/models/llama-v3p1-8b-instruct",
        FTW_HTTP_TIMEOUT="12.5",
        FTW_HTTP_MAX_ATTEMPTS="3",
        FTW_SCOPING_MAX_TOKENS="1500",
        FTW_MONTHLY_BUDGET="50",
    )
    assert config.routing.provider == "fireworks"
    assert config.routing.resolved_url() == "https://api.fireworks.ai/inference/v1"
    assert config.http.timeout == 12.5
    assert config.http.max_attempts == 3
    assert config.scoping.max_tokens == 1500
    assert config.monthly_budget == 50.0


def test_bad_numbers_keep_defaults(config_factory):
    config = config_factory(FTW_HTTP_TIMEOUT="soon", FTW_HTTP_MAX_ATTEMPTS="many")
    assert config.http.timeout == 30.0
    assert config.http.max_attempts == 1


def test_key_fallbacks(config_factory):
    config = config_factory(
        FTW_FALLBACK_KEY=None,
        OPENAI_API_KEY="sk-openai",
        CLAUDE_API_KEY=None,
        VITE_CLAUDE_API_KEY="claude-vite",
    )
    assert config.fallback.api_key == "sk-openai"
    assert config.scoping.api_key == "claude-vite"


def test_explicit_url_wins_over_vendor_default():
    settings = ProviderSettings(provider="groq", model="m", base_url="https://proxy.local/v1")
    assert settings.resolved_url() == "https://proxy.local/v1"
    assert ProviderSettings(provider="unknown", model="m").resolved_url() == "https://api.openai.com/v1"


def test_get_config_is_cached_until_reload(monkeypatch):
    monkeypatch.setenv("FTW_MONTHLY_BUDGET", "77")
    first = reload_config()
    assert get_config() is first
    assert first.monthly_budget == 77.0

    monkeypatch.setenv("FTW_MONTHLY_BUDGET", "88")
    assert get_config().monthly_budget == 77.0
    assert reload_config().monthly_budget == 88.0

    monkeypatch.delenv("FTW_MONTHLY_BUDGET")
    reload_config()


def test_load_config_uses_environment(monkeypatch):
    monkeypatch.setenv("FTW_ROUTING_KEY", " gsk-test ")
    assert load_config().routing.api_key == "gsk-test"


# ── Weights ──────────────────────────────────────────────────────────────


def test_missing_weights_file_gives_defaults(tmp_path):
    weights = load_weights(tmp_path / "absent.yaml")
    assert weights.spam == SpamWeights()
    assert weights.matching == MatchWeights()


def test_partial_weights_overlay_defaults(tmp_path):
    path = tmp_path / "weights.yaml"
    path.write_text("spam:\n  pattern: 0.25\nmatching:\n  similarity: 0.5\n  bogus: 1\n")
    weights = load_weights(path)
    assert weights.spam.pattern == 0.25
    assert weights.spam.caps == 0.2
    assert weights.matching.similarity == 0.5
    assert weights.lead.baseline == 60


def test_default_weights_file_lives_inside_package():
    package_dir = Path(config_module.__file__).resolve().parent
    assert config_module.WEIGHTS_PATH.parent == package_dir
    assert config_module.WEIGHTS_PATH.is_file()


def test_bundled_weights_match_defaults():
    weights = load_weights(config_module.WEIGHTS_PATH)
    assert weights.spam == SpamWeights()
    assert weights.matching == MatchWeights()


@pytest.mark.parametrize("content", ["", "just a string\n"])
def test_empty_or_odd_weights_file(tmp_path, content):
    path = tmp_path / "weights.yaml"
    path.write_text(content)
    assert load_weights(path).lead.hot_threshold == 75
