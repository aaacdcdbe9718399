import pytest

from ftw_ai import estimator
from ftw_ai.cache import classification_cache, embedding_cache
from ftw_ai.config import load_config

FULL_ENV = {
    "FTW_ROUTING_KEY": "routing-key",
    "FTW_EMBED_KEY": "embed-key",
    "FTW_BG_KEY": "bg-key",
    "CLAUDE_API_KEY": "claude-key",
    "FTW_FALLBACK_KEY": "fallback-key",
    "FTW_VECTOR_KEY": "vector-key",
    "FTW_VECTOR_URL": "https://vectors.example.com/query",
}


def make_config(**env):
    """Build a ProviderConfig from FULL_ENV plus overrides (None removes a key)."""
    values = dict(FULL_ENV)
    for key, value in env.items():
        if value is None:
            values.pop(key, None)
        else:
            values[key] = value

    def _getter(key, default=""):
        return values.get(key, default).strip()

    return load_config(_getter)


@pytest.fixture
def config_factory():
    return make_config


@pytest.fixture
def config():
    return make_config()


@pytest.fixture
def offline_config():
    """Nothing configured: every provider falls back."""
    return load_config(lambda key, default="": default)


class FakeClock:
    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture(autouse=True)
def _reset_caches():
    classification_cache.clear()
    embedding_cache.clear()
    estimator.reset_usage_stats()
    yield
    classification_cache.clear()
    embedding_cache.clear()
