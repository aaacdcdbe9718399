"""Load provider, feature-switch and scoring-weight configuration."""
from __future__ import annotations

import functools
import os
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any, Callable

import yaml
from dotenv import load_dotenv

from ftw_ai.log import get_logger

log = get_logger(__name__)

load_dotenv()

# Shipped as package data (see [tool.setuptools.package-data])
WEIGHTS_PATH: Path = Path(__file__).resolve().parent / "weights.yaml"

EnvGetter = Callable[..., str]

# Default chat endpoints per OpenAI-compatible vendor.
PROVIDER_URLS: dict[str, str] = {
    "groq": "https://api.groq.com/openai/v1",
    "together": "https://api.together.xyz/v1",
    "fireworks": "https://api.fireworks.ai/inference/v1",
    "openai": "https://api.openai.com/v1",
}


def get_env(key: str, default: str = "") -> str:
    return os.environ.get(key, default).strip()


@dataclass(frozen=True)
class ProviderSettings:
    provider: str
    model: str
    base_url: str = ""
    api_key: str = ""

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    def resolved_url(self) -> str:
        """Explicit URL if set, else the vendor default."""
        return self.base_url or PROVIDER_URLS.get(self.provider, PROVIDER_URLS["openai"])


@dataclass(frozen=True)
class ScopingSettings:
    model: str = "claude-3-5-sonnet-20241022"
    quick_model: str = "claude-3-haiku-20240307"
    api_key: str = ""
    max_tokens: int = 2000


@dataclass(frozen=True)
class VectorSettings:
    provider: str = ""
    api_key: str = ""
    base_url: str = ""
    index_scopes: str = "ftw-job-scopes"
    index_materials: str = "ftw-materials"
    index_contractors: str = "ftw-contractors"

    @property
    def configured(self) -> bool:
        return bool(self.api_key and self.base_url)


@dataclass(frozen=True)
class FeatureSwitches:
    routing: bool = True
    embeddings: bool = True
    rag: bool = True
    background: bool = True
    matching: bool = True


@dataclass(frozen=True)
class HttpSettings:
    timeout: float = 30.0
    max_attempts: int = 1


@dataclass(frozen=True)
class ProviderConfig:
    routing: ProviderSettings
    embeddings: ProviderSettings
    background: ProviderSettings
    fallback: ProviderSettings
    scoping: ScopingSettings = field(default_factory=ScopingSettings)
    vector: VectorSettings = field(default_factory=VectorSettings)
    switches: FeatureSwitches = field(default_factory=FeatureSwitches)
    http: HttpSettings = field(default_factory=HttpSettings)
    monthly_budget: float = 120.0


def _switch(env_getter: EnvGetter, key: str) -> bool:
    # Enabled unless explicitly turned off
    return env_getter(key).lower() != "false"


def _int(env_getter: EnvGetter, key: str, default: int) -> int:
    raw = env_getter(key)
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        log.warning("Ignoring non-integer %s=%r", key, raw)
        return default


def _float(env_getter: EnvGetter, key: str, default: float) -> float:
    raw = env_getter(key)
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        log.warning("Ignoring non-numeric %s=%r", key, raw)
        return default


def _provider(env_getter: EnvGetter, prefix: str, provider: str, model: str) -> ProviderSettings:
    return ProviderSettings(
        provider=env_getter(f"{prefix}_PROVIDER") or provider,
        model=env_getter(f"{prefix}_MODEL") or model,
        base_url=env_getter(f"{prefix}_URL"),
        api_key=env_getter(f"{prefix}_KEY"),
    )


def load_config(env_getter: EnvGetter = get_env) -> ProviderConfig:
    """Build a ProviderConfig from environment variables."""
    fallback = _provider(env_getter, "FTW_FALLBACK", "openai", "gpt-4o")
    if not fallback.api_key:
        fallback = replace(fallback, api_key=env_getter("OPENAI_API_KEY"))

    defaults = ScopingSettings()
    scoping = ScopingSettings(
        model=env_getter("FTW_SCOPING_MODEL") or defaults.model,
        quick_model=env_getter("FTW_SCOPING_QUICK_MODEL") or defaults.quick_model,
        api_key=env_getter("CLAUDE_API_KEY") or env_getter("VITE_CLAUDE_API_KEY"),
        max_tokens=_int(env_getter, "FTW_SCOPING_MAX_TOKENS", defaults.max_tokens),
    )

    vector_defaults = VectorSettings()
    vector = VectorSettings(
        provider=env_getter("FTW_VECTOR_PROVIDER"),
        api_key=env_getter("FTW_VECTOR_KEY"),
        base_url=env_getter("FTW_VECTOR_URL"),
        index_scopes=env_getter("FTW_VECTOR_INDEX_SCOPES") or vector_defaults.index_scopes,
        index_materials=env_getter("FTW_VECTOR_INDEX_MATERIALS") or vector_defaults.index_materials,
        index_contractors=env_getter("FTW_VECTOR_INDEX_CONTRACTORS") or vector_defaults.index_contractors,
    )

    switches = FeatureSwitches(
        routing=_switch(env_getter, "FTW_ENABLE_ROUTING"),
        embeddings=_switch(env_getter, "FTW_ENABLE_EMBEDDINGS"),
        rag=_switch(env_getter, "FTW_ENABLE_RAG"),
        background=_switch(env_getter, "FTW_ENABLE_BACKGROUND"),
        matching=_switch(env_getter, "FTW_ENABLE_MATCHING"),
    )

    return ProviderConfig(
        routing=_provider(env_getter, "FTW_ROUTING", "groq", "llama-3.1-8b-instant"),
        embeddings=_provider(env_getter, "FTW_EMBED", "openai", "text-embedding-3-small"),
        background=_provider(
            env_getter, "FTW_BG", "together", "meta-llama/Llama-3.3-70B-Instruct-Turbo"
        ),
        fallback=fallback,
        scoping=scoping,
        vector=vector,
        switches=switches,
        http=HttpSettings(
            timeout=_float(env_getter, "FTW_HTTP_TIMEOUT", 30.0),
            max_attempts=max(1, _int(env_getter, "FTW_HTTP_MAX_ATTEMPTS", 1)),
        ),
        monthly_budget=_float(env_getter, "FTW_MONTHLY_BUDGET", 120.0),
    )


@functools.lru_cache(maxsize=1)
def get_config() -> ProviderConfig:
    """Environment-built config, read once per process until reload_config()."""
    return load_config()


def reload_config() -> ProviderConfig:
    get_config.cache_clear()
    get_weights.cache_clear()
    return get_config()


# ── Scoring weights ──────────────────────────────────────────────────────


@dataclass(frozen=True)
class SpamWeights:
    pattern: float = 0.2
    caps: float = 0.2
    caps_ratio: float = 0.5
    caps_min_length: int = 20


@dataclass(frozen=True)
class LeadWeights:
    baseline: float = 60
    fast_response_bonus: float = 10
    fast_response_ms: float = 2000
    hot_threshold: float = 75
    warm_threshold: float = 55


@dataclass(frozen=True)
class MatchWeights:
    similarity: float = 0.4
    review: float = 0.2
    completion: float = 0.15
    response: float = 0.1
    specialty: float = 0.1
    availability: float = 0.05
    review_max: float = 5.0
    response_decay_ms: float = 3_600_000


@dataclass(frozen=True)
class Weights:
    spam: SpamWeights = field(default_factory=SpamWeights)
    lead: LeadWeights = field(default_factory=LeadWeights)
    matching: MatchWeights = field(default_factory=MatchWeights)


def _overlay(base: Any, section: str, values: Any) -> Any:
    if not isinstance(values, dict):
        return base
    known = {f.name for f in fields(base)}
    updates: dict[str, Any] = {}
    for key, value in values.items():
        if key not in known:
            log.warning("Unknown weight %s.%s ignored", section, key)
            continue
        updates[key] = value
    return replace(base, **updates)


def load_weights(path: Path | None = None) -> Weights:
    """Default weights overlaid with the YAML file at *path*, when it exists."""
    if path is None:
        override = get_env("FTW_WEIGHTS_PATH")
        path = Path(override) if override else WEIGHTS_PATH
    defaults = Weights()
    if not path.exists():
        return defaults

    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        log.warning("Weights file %s is not a mapping; using defaults", path)
        return defaults

    weights = Weights(
        spam=_overlay(defaults.spam, "spam", data.get("spam")),
        lead=_overlay(defaults.lead, "lead", data.get("lead")),
        matching=_overlay(defaults.matching, "matching", data.get("matching")),
    )
    log.debug("Loaded scoring weights from %s", path)
    return weights


@functools.lru_cache(maxsize=1)
def get_weights() -> Weights:
    return load_weights()
