from __future__ import annotations

import asyncio
import json

import httpx
import pytest

from mnemo.core.agents.embedding import EmbeddingAgent, cosine_similarity, interpret_similarity
from mnemo.core.agents.schemas import AgentRequest
from mnemo.core.config import EmbeddingSettings

VECTORS = {
    "alpha": [1.0, 0.0, 0.0],
    "beta": [0.0, 1.0, 0.0],
    "alpha-ish": [0.9, 0.1, 0.0],
}


def _agent(cache_size: int = 16) -> tuple[EmbeddingAgent, list[dict]]:
    bodies: list[dict] = []

    def handler(request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        bodies.append(body)
        inputs = body["input"] if isinstance(body["input"], list) else [body["input"]]
        return httpx.Response(200, json={"data": [{"embedding": VECTORS[text]} for text in inputs]})

    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    settings = EmbeddingSettings(api_key="sk-test", cache_size=cache_size)
    return EmbeddingAgent(settings, client=client), bodies


def test_generate_calls_once_then_serves_from_cache() -> None:
    agent, bodies = _agent()

    first = asyncio.run(agent.generate("alpha"))
    second = asyncio.run(agent.generate("alpha"))

    assert first.data["cached"] is False
    assert second.data["cached"] is True
    assert second.data["embedding"] == [1.0, 0.0, 0.0]
    assert second.data["dimensions"] == 3
    assert len(bodies) == 1
    assert bodies[0] == {"model": "text-embedding-3-small", "input": "alpha"}


def test_blank_text_is_rejected() -> None:
    agent, bodies = _agent()

    response = asyncio.run(agent.generate("   "))

    assert response.success is False
    assert response.error == "Text is required for embedding generation"
    assert bodies == []


def test_similarity_from_texts_and_vectors() -> None:
    agent, _ = _agent()

    by_text = asyncio.run(agent.similarity(text1="alpha", text2="beta"))
    by_vector = asyncio.run(agent.similarity(vec1=[1.0, 1.0], vec2=[1.0, 1.0]))

    assert by_text.data["similarity"] == pytest.approx(0.0)
    assert by_text.data["interpretation"] == "Not similar"
    assert by_vector.data["similarity"] == 1.0
    assert by_vector.data["interpretation"] == "Nearly identical"


def test_similarity_needs_two_inputs() -> None:
    agent, _ = _agent()

    response = asyncio.run(agent.similarity(text1="alpha"))

    assert response.success is False
    assert response.error == "Two embeddings or texts are required for similarity calculation"


def test_batch_issues_one_call_for_uncached_texts_in_order() -> None:
    agent, bodies = _agent()
    asyncio.run(agent.generate("beta"))

    response = asyncio.run(agent.batch_generate(["alpha", "beta", "alpha-ish"]))

    assert response.success is True
    assert [item["text"] for item in response.data["embeddings"]] == ["alpha", "beta", "alpha-ish"]
    assert [item["cached"] for item in response.data["embeddings"]] == [False, True, False]
    assert response.data["total_count"] == 3
    assert response.data["cached_count"] == 1
    assert len(bodies) == 2
    assert bodies[1]["input"] == ["alpha", "alpha-ish"]


def test_find_similar_ranks_descending() -> None:
    agent, _ = _agent()
    candidates = [
        {"id": "b", "embedding": VECTORS["beta"]},
        {"id": "a", "embedding": VECTORS["alpha-ish"], "metadata": {"title": "close"}},
    ]

    response = asyncio.run(agent.find_similar("alpha", candidates))

    assert [item["id"] for item in response.data["results"]] == ["a", "b"]
    assert response.data["count"] == 2
    assert response.data["best_match"]["metadata"] == {"title": "close"}


def test_process_routes_by_operation() -> None:
    agent, _ = _agent()

    response = asyncio.run(
        agent.process(AgentRequest(input="rank", parameters={"operation": "batch_embed", "texts": ["alpha"]}))
    )

    assert response.success is True
    assert response.data["total_count"] == 1


def test_cache_is_bounded() -> None:
    agent, bodies = _agent(cache_size=1)

    asyncio.run(agent.generate("alpha"))
    asyncio.run(agent.generate("beta"))
    again = asyncio.run(agent.generate("alpha"))

    assert again.data["cached"] is False
    assert len(bodies) == 3
    assert agent.cache_stats()["size"] == 1
    assert agent.cache_stats()["evictions"] == 2

    agent.clear_cache()
    assert agent.cache_stats()["size"] == 0


def test_upstream_error_is_reported() -> None:
    client = httpx.AsyncClient(transport=httpx.MockTransport(lambda request: httpx.Response(401)))
    agent = EmbeddingAgent(EmbeddingSettings(api_key="sk-bad"), client=client)

    response = asyncio.run(agent.generate("alpha"))

    assert response.success is False
    assert response.error == "Failed to generate embedding: Embedding API error: 401"


def test_cosine_similarity_edges() -> None:
    assert cosine_similarity([0.0, 0.0], [1.0, 2.0]) == 0.0
    assert cosine_similarity([1.0, 0.0], [-1.0, 0.0]) == pytest.approx(-1.0)
    with pytest.raises(ValueError):
        cosine_similarity([1.0], [1.0, 2.0])


@pytest.mark.parametrize(
    "vector",
    [[3.0, 7.0], [1.0, 2.0, 3.0], [0.1, 0.2, 0.3], [5.0], [-2.5, 0.0, 1e-3, 42.0]],
)
def test_cosine_similarity_of_vector_with_itself_is_exactly_one(vector: list[float]) -> None:
    assert cosine_similarity(vector, list(vector)) == 1.0


@pytest.mark.parametrize(
    ("score", "label"),
    [
        (0.95, "Nearly identical"),
        (0.85, "Highly similar"),
        (0.7, "Similar"),
        (0.65, "Moderately similar"),
        (0.5, "Somewhat similar"),
        (0.3, "Slightly similar"),
        (0.1, "Not similar"),
    ],
)
def test_interpret_similarity_labels(score: float, label: str) -> None:
    assert interpret_similarity(score) == label
