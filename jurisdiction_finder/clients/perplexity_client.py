"""
Singleton Perplexity client with rate limiting using aiolimiter.

Perplexity exposes an OpenAI-compatible chat completions endpoint, so the
official openai SDK is used with a different base URL.
"""
import os
from aiolimiter import AsyncLimiter
from openai import AsyncOpenAI, OpenAIError
from loguru import logger

from jurisdiction_finder.config import (
    PERPLEXITY_API_KEY,
    PERPLEXITY_BASE_URL,
    AI_REQUEST_TIMEOUT,
    CONCURRENCY,
)
from jurisdiction_finder.errors import ConfigurationMissing, UpstreamUnavailable


class PerplexityClient:
    """
    Singleton client for the AI search service.
    One call is one request: no SDK retries, bounded by AI_REQUEST_TIMEOUT.
    """
    _instance = None
    _initialized = False

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self):
        if not PerplexityClient._initialized:
            api_key = PERPLEXITY_API_KEY or os.getenv("PERPLEXITY_API_KEY")
            if not api_key:
                raise ConfigurationMissing("PERPLEXITY_API_KEYが設定されていません")

            self.client = AsyncOpenAI(
                api_key=api_key,
                base_url=PERPLEXITY_BASE_URL,
                timeout=AI_REQUEST_TIMEOUT,
                max_retries=0,
            )
            self.rate_limiter = AsyncLimiter(max_rate=CONCURRENCY, time_period=1.0)
            PerplexityClient._initialized = True

    async def chat_completions_create(self, **kwargs):
        """
        Create a chat completion with rate limiting.
        Accepts all arguments that AsyncOpenAI.chat.completions.create accepts.

        Returns:
            The response from the chat completions API.

        Raises:
            UpstreamUnavailable: On any transport or non-2xx failure.
        """
        async with self.rate_limiter:
            try:
                return await self.client.chat.completions.create(**kwargs)
            except OpenAIError as e:
                logger.debug(f"⚠️ Perplexity API request failed: {e}")
                raise UpstreamUnavailable("AI検索サービスへの接続に失敗しました") from e

    async def close(self):
        await self.client.close()
