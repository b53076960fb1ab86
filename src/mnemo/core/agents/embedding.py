from __future__ import annotations

import hashlib
import logging
from typing import Any, Sequence

import httpx
import numpy as np

from mnemo.core.cache.lru import LRUCache
from mnemo.core.config import EmbeddingSettings
from mnemo.core.http import MnemoHTTPError, MnemoHTTPStatusError, request_json

from .schemas import AgentConfig, AgentRequest, AgentResponse

logger = logging.getLogger(__name__)

Vector = list[float]

_SIMILARITY_LABELS: tuple[tuple[float, str], ...] = (
    (0.9, "Nearly identical"),
    (0.8, "Highly similar"),
    (0.7, "Similar"),
    (0.6, "Moderately similar"),
    (0.5, "Somewhat similar"),
    (0.3, "Slightly similar"),
)


def cosine_similarity(vec_a: Sequence[float], vec_b: Sequence[float]) -> float:
    """Cosine of the angle between two vectors; 0.0 when either has zero norm."""
    a = np.asarray(vec_a, dtype=np.float64)
    b = np.asarray(vec_b, dtype=np.float64)
    if a.shape != b.shape:
        raise ValueError("Vectors must have the same length")
    # one sqrt over the product keeps cosine(v, v) exactly 1.0
    denominator = float(np.dot(a, a) * np.dot(b, b))
    if denominator == 0.0:
        return 0.0
    return float(np.dot(a, b) / np.sqrt(denominator))


def interpret_similarity(score: float) -> str:
    for threshold, label in _SIMILARITY_LABELS:
        if score >= threshold:
            return label
    return "Not similar"


class EmbeddingServiceError(RuntimeError):
    pass


class EmbeddingAgent:
    """Turns text into vectors and compares them, caching one vector per distinct text."""

    def __init__(self, settings: EmbeddingSettings | None = None, client: httpx.AsyncClient | None = None) -> None:
        self.settings = settings or EmbeddingSettings()
        self.client = client
        self.model = self.settings.model
        self.config = AgentConfig(
            name="EmbeddingAgent",
            description="Converts text to embeddings and performs semantic similarity operations",
            capabilities=("embedding", "similarity", "semantic", "vector", "search"),
            priority=8,
            timeout_s=self.settings.timeout_s,
        )
        self.cache: LRUCache[str, Vector] = LRUCache(maxsize=self.settings.cache_size)
        if not self.settings.api_key:
            logger.warning("embedding API key not configured; embedding operations will fail")

    def cache_key(self, text: str) -> str:
        digest = hashlib.blake2b(text.encode("utf-8"), digest_size=16).hexdigest()
        return f"{self.model}:{digest}"

    async def process(self, request: AgentRequest) -> AgentResponse:
        parameters = request.parameters
        operation = parameters.get("operation")
        text = request.input

        try:
            if operation == "generate_embedding" or "embed" in text:
                return await self.generate(parameters.get("text") or text)
            if operation == "calculate_similarity" or "similar" in text:
                return await self.similarity(
                    text1=parameters.get("text1"),
                    text2=parameters.get("text2"),
                    vec1=parameters.get("embedding1"),
                    vec2=parameters.get("embedding2"),
                )
            if operation == "batch_embed":
                return await self.batch_generate(parameters.get("texts"))
            if operation == "find_similar":
                return await self.find_similar(parameters.get("query"), parameters.get("embeddings"))
            return await self.generate(text)
        except ValueError as exc:
            return AgentResponse(success=False, error=f"Embedding operation failed: {exc}")

    async def _embed(self, inputs: str | list[str]) -> list[Vector]:
        headers = {"Content-Type": "application/json"}
        if self.settings.api_key:
            headers["Authorization"] = f"Bearer {self.settings.api_key}"
        try:
            payload = await request_json(
                "POST",
                self.settings.api_url,
                headers=headers,
                json={"model": self.model, "input": inputs},
                timeout_override=self.settings.timeout_s,
                client=self.client,
            )
        except MnemoHTTPStatusError as exc:
            raise EmbeddingServiceError(f"Embedding API error: {exc.status_code}") from exc
        except MnemoHTTPError as exc:
            raise EmbeddingServiceError(str(exc)) from exc

        try:
            return [list(item["embedding"]) for item in payload["data"]]
        except (KeyError, TypeError) as exc:
            raise EmbeddingServiceError("Embedding API returned an unexpected body") from exc

    async def generate(self, text: str | None) -> AgentResponse:
        if not text or not text.strip():
            return AgentResponse(success=False, error="Text is required for embedding generation")

        key = self.cache_key(text)
        cached = self.cache.get(key)
        if cached is not None:
            return AgentResponse(
                success=True,
                data={"embedding": cached, "text": text, "cached": True, "dimensions": len(cached), "model": self.model},
            )

        try:
            vectors = await self._embed(text)
        except EmbeddingServiceError as exc:
            return AgentResponse(success=False, error=f"Failed to generate embedding: {exc}")
        if not vectors:
            return AgentResponse(success=False, error="Failed to generate embedding: empty response")

        embedding = vectors[0]
        self.cache.set(key, embedding)
        return AgentResponse(
            success=True,
            data={"embedding": embedding, "text": text, "cached": False, "dimensions": len(embedding), "model": self.model},
        )

    async def similarity(
        self,
        *,
        text1: str | None = None,
        text2: str | None = None,
        vec1: Vector | None = None,
        vec2: Vector | None = None,
    ) -> AgentResponse:
        if vec1 is None and text1:
            result = await self.generate(text1)
            if not result.success:
                return result
            vec1 = result.data["embedding"]
        if vec2 is None and text2:
            result = await self.generate(text2)
            if not result.success:
                return result
            vec2 = result.data["embedding"]

        if vec1 is None or vec2 is None:
            return AgentResponse(success=False, error="Two embeddings or texts are required for similarity calculation")

        try:
            score = cosine_similarity(vec1, vec2)
        except ValueError as exc:
            return AgentResponse(success=False, error=f"Similarity calculation failed: {exc}")
        return AgentResponse(
            success=True,
            data={"similarity": score, "text1": text1, "text2": text2, "interpretation": interpret_similarity(score)},
        )

    async def batch_generate(self, texts: list[str] | None) -> AgentResponse:
        if not isinstance(texts, list) or not texts:
            return AgentResponse(success=False, error="Array of texts is required for batch embedding")

        results: list[dict[str, Any] | None] = [None] * len(texts)
        uncached: list[tuple[int, str]] = []
        for index, text in enumerate(texts):
            cached = self.cache.get(self.cache_key(text))
            if cached is not None:
                results[index] = {"text": text, "embedding": cached, "cached": True}
            else:
                uncached.append((index, text))

        if uncached:
            try:
                vectors = await self._embed([text for _, text in uncached])
            except EmbeddingServiceError as exc:
                return AgentResponse(success=False, error=f"Batch embedding failed: {exc}")
            if len(vectors) != len(uncached):
                return AgentResponse(
                    success=False,
                    error=f"Batch embedding failed: expected {len(uncached)} vectors, got {len(vectors)}",
                )
            for (index, text), embedding in zip(uncached, vectors):
                self.cache.set(self.cache_key(text), embedding)
                results[index] = {"text": text, "embedding": embedding, "cached": False}

        embeddings = [item for item in results if item is not None]
        return AgentResponse(
            success=True,
            data={
                "embeddings": embeddings,
                "total_count": len(embeddings),
                "cached_count": sum(1 for item in embeddings if item["cached"]),
                "model": self.model,
            },
        )

    async def find_similar(self, query: str | None, candidates: list[dict[str, Any]] | None) -> AgentResponse:
        if not query or not isinstance(candidates, list):
            return AgentResponse(success=False, error="Query text and embeddings array are required")

        query_result = await self.generate(query)
        if not query_result.success:
            return query_result
        query_vector = query_result.data["embedding"]

        try:
            ranked = [
                {
                    "id": item.get("id"),
                    "similarity": cosine_similarity(query_vector, item["embedding"]),
                    "metadata": item.get("metadata"),
                }
                for item in candidates
            ]
        except (KeyError, TypeError, ValueError) as exc:
            return AgentResponse(success=False, error=f"Similar search failed: {exc}")

        ranked.sort(key=lambda item: item["similarity"], reverse=True)
        return AgentResponse(
            success=True,
            data={"query": query, "results": ranked, "count": len(ranked), "best_match": ranked[0] if ranked else None},
        )

    def cache_stats(self) -> dict[str, Any]:
        return {
            "size": len(self.cache),
            "max_size": self.cache.maxsize,
            "evictions": self.cache.evictions,
            "model": self.model,
        }

    def clear_cache(self) -> None:
        self.cache.clear()
