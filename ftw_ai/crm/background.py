"""Shared access to the background chat provider used by the CRM helpers."""
from __future__ import annotations

from ftw_ai.config import ProviderConfig
from ftw_ai.providers import chat_completion


def background_available(config: ProviderConfig) -> bool:
    return config.switches.background and config.background.configured


def call_background_llm(
    prompt: str,
    *,
    max_tokens: int,
    temperature: float,
    config: ProviderConfig,
) -> str:
    return chat_completion(
        config.background,
        prompt,
        max_tokens=max_tokens,
        temperature=temperature,
        http=config.http,
    )
