"""
Embedding service for query retrieval

Handles:
- OpenAI text-embedding-3-small generation (async client)
- In-process cache to avoid redundant API calls for repeated queries
- Rate limit retries
"""

import asyncio
import hashlib
from typing import List, Dict, Optional

from openai import AsyncOpenAI
from loguru import logger

from lumo.config.settings import settings


class EmbeddingService:
    """
    Service for generating query embeddings

    Features:
    - Automatic caching keyed by text hash
    - Batch processing support
    """

    def __init__(
        self,
        model: Optional[str] = None,
        client: Optional[AsyncOpenAI] = None,
        enable_cache: bool = True,
        max_cache_entries: int = 2048
    ):
        """
        Initialize embedding service

        Args:
            model: Embedding model name (defaults to settings.openai_embedding_model)
            client: Async OpenAI client (created from settings when omitted)
            enable_cache: Whether to use caching
            max_cache_entries: Cache size before the oldest entries are evicted
        """
        if client is None:
            if not settings.openai_api_key:
                raise ValueError("OPENAI_API_KEY is required for embeddings")
            client = AsyncOpenAI(api_key=settings.openai_api_key)

        self.client = client
        self.model = model or settings.openai_embedding_model
        self.enable_cache = enable_cache
        self.max_cache_entries = max_cache_entries
        self.cache: Dict[str, List[float]] = {}

        logger.info(f"Initialized EmbeddingService (model={self.model}, cache={enable_cache})")

    def _hash_text(self, text: str) -> str:
        """Create hash of text for cache lookup"""
        return hashlib.sha256(f"{self.model}:{text}".encode()).hexdigest()

    def _remember(self, text: str, embedding: List[float]) -> None:
        if not self.enable_cache:
            return
        if len(self.cache) >= self.max_cache_entries:
            # dicts keep insertion order, so the first key is the oldest
            self.cache.pop(next(iter(self.cache)))
        self.cache[self._hash_text(text)] = embedding

    async def aembed_texts(
        self,
        texts: List[str],
        max_retries: int = 3,
        retry_delay: float = 1.0
    ) -> List[List[float]]:
        """
        Generate embeddings for multiple texts, preserving input order

        Args:
            texts: Texts to embed
            max_retries: Attempts per API call on rate limits
            retry_delay: Base delay for exponential backoff

        Returns:
            One vector per input text
        """
        if not texts:
            return []

        results: List[Optional[List[float]]] = [None] * len(texts)
        to_fetch: List[int] = []
        for i, text in enumerate(texts):
            cached = self.cache.get(self._hash_text(text)) if self.enable_cache else None
            if cached is not None:
                results[i] = cached
            else:
                to_fetch.append(i)

        if to_fetch:
            batch = [texts[i] for i in to_fetch]
            for attempt in range(max_retries):
                try:
                    logger.debug(f"Calling OpenAI embeddings for {len(batch)} texts")
                    response = await self.client.embeddings.create(model=self.model, input=batch)
                    break
                except Exception as e:
                    if "rate_limit" in str(e).lower() and attempt < max_retries - 1:
                        wait_time = retry_delay * (2 ** attempt)
                        logger.warning(f"Rate limit hit, retrying in {wait_time}s...")
                        await asyncio.sleep(wait_time)
                    else:
                        logger.error(f"Failed to generate embeddings: {e}")
                        raise

            for j, orig_idx in enumerate(to_fetch):
                embedding = list(response.data[j].embedding)
                results[orig_idx] = embedding
                self._remember(texts[orig_idx], embedding)

        return [r for r in results if r is not None]
