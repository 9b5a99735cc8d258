"""Embedding generation service (OpenAI)."""

from typing import List, Optional

from openai import AsyncOpenAI
from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from knowledge_assistant.config import get_settings
from knowledge_assistant.exceptions import EmbeddingError
from knowledge_assistant.utils.logging import get_logger

logger = get_logger("embedding_service")
settings = get_settings()

Vector = List[float]


class EmbeddingService:
    """
    Generate embeddings for chunk and query texts.

    A failed batch never raises: every position in it resolves to ``None``
    and the caller decides what a missing vector means.
    """

    def __init__(self, client: Optional[AsyncOpenAI] = None) -> None:
        self._model_name = settings.embedding.embedding_model
        self._batch_size = max(1, settings.embedding.embedding_batch_size)
        self._client = client  # lazy

    def _get_client(self) -> AsyncOpenAI:
        if self._client is not None:
            return self._client
        if not settings.embedding.is_configured:
            raise EmbeddingError("OPENAI_API_KEY is required for embeddings", model=self._model_name)
        self._client = AsyncOpenAI(
            api_key=settings.embedding.openai_api_key,
            base_url=settings.embedding.openai_base_url,
            timeout=settings.embedding.embedding_timeout,
            max_retries=0,
        )
        return self._client

    async def _request(self, inputs: List[str]) -> List[Vector]:
        client = self._get_client()
        try:
            resp = await client.embeddings.create(model=self._model_name, input=inputs)
        except Exception as e:
            raise EmbeddingError(f"Embedding request failed: {e}", model=self._model_name) from e
        vectors = [d.embedding for d in resp.data]
        if len(vectors) != len(inputs):
            raise EmbeddingError(
                "Embedding response size mismatch",
                model=self._model_name,
                details={"expected": len(inputs), "got": len(vectors)},
            )
        return vectors

    async def _request_with_retry(self, inputs: List[str]) -> List[Vector]:
        async for attempt in AsyncRetrying(
            reraise=True,
            stop=stop_after_attempt(settings.embedding.embedding_max_attempts),
            wait=wait_exponential(multiplier=1, min=1, max=10),
            retry=retry_if_exception_type(EmbeddingError),
        ):
            with attempt:
                return await self._request(inputs)
        raise EmbeddingError("Embedding retries exhausted", model=self._model_name)

    async def embed_batch(self, texts: List[str]) -> List[Optional[Vector]]:
        """
        Embed up to one batch of texts with a single request.

        Returns:
            One vector per input, or ``[None] * len(texts)`` if the request failed
        """
        if not texts:
            return []
        try:
            return list(await self._request_with_retry(texts))
        except EmbeddingError as e:
            logger.warning(f"Embedding batch of {len(texts)} failed: {e.message}")
            return [None] * len(texts)

    async def embed_texts(self, texts: List[str]) -> List[Optional[Vector]]:
        """Embed any number of texts in sequential sub-batches, preserving order."""
        out: List[Optional[Vector]] = []
        for start in range(0, len(texts), self._batch_size):
            out.extend(await self.embed_batch(texts[start : start + self._batch_size]))

        embedded = sum(1 for v in out if v is not None)
        logger.info(f"Embedded {embedded}/{len(texts)} texts with {self._model_name}")
        return out

    async def embed_query(self, text: str) -> Optional[Vector]:
        """Embed a single query; None if embedding failed."""
        result = await self.embed_batch([text])
        return result[0] if result else None
