"""Tests for retrieval & reranking of historical correct guesses."""
import pytest

from mindmeld.config import Settings
from mindmeld.services.retrieval import RetrievalEngine
from tests.fakes import FakeEmbedder, FakeStore, hit


@pytest.mark.asyncio
async def test_first_round_has_no_context(retrieval, store, embedder):
    assert await retrieval.retrieve_context(None, None) == []
    assert await retrieval.retrieve_context("ocean", None) == []
    assert await retrieval.retrieve_context("  ", "water") == []
    assert store.searches == []
    assert embedder.calls == []


@pytest.mark.asyncio
async def test_issues_pair_and_word_queries_with_limits(retrieval, store):
    await retrieval.retrieve_context("ocean", "water")
    assert sorted(store.searches) == sorted(
        [("ocean + water", 5), ("ocean", 3), ("water", 3)]
    )


@pytest.mark.asyncio
async def test_merged_score_is_max_not_sum(retrieval, store):
    store.results = {
        "ocean + water": [hit("wave", 0.9)],
        "ocean": [hit("wave", 0.95)],
    }
    candidates = await retrieval.retrieve_context("ocean", "water")

    assert [c.word for c in candidates] == ["wave"]
    assert candidates[0].score == pytest.approx(0.9)
    assert candidates[0].source == "pair"


@pytest.mark.asyncio
async def test_word_hit_can_outrank_weaker_pair_hit(retrieval, store):
    store.results = {
        "ocean + water": [hit("blue", 0.3)],
        "water": [hit("wave", 0.9)],
    }
    candidates = await retrieval.retrieve_context("ocean", "water")
    assert [(c.word, round(c.score, 3)) for c in candidates] == [("wave", 0.45), ("blue", 0.3)]


@pytest.mark.asyncio
async def test_inputs_and_their_variants_are_filtered(retrieval, store):
    store.results = {
        "ocean + water": [
            hit("Oceans", 0.99),
            hit("watered", 0.98),
            hit("", 0.97),
            hit("  Beach ", 0.8),
        ],
    }
    candidates = await retrieval.retrieve_context("ocean", "water")
    assert [c.word for c in candidates] == ["beach"]


@pytest.mark.asyncio
async def test_ranked_descending_and_truncated_to_five(retrieval, store):
    store.results = {
        "ocean + water": [hit(w, s) for w, s in [
            ("a1", 0.1), ("a2", 0.2), ("a3", 0.3), ("a4", 0.4), ("a5", 0.5),
        ]],
        "ocean": [hit("b1", 0.96), hit("b2", 0.1)],
        "water": [hit("c1", 0.7)],
    }
    candidates = await retrieval.retrieve_context("ocean", "water")

    scores = [c.score for c in candidates]
    assert len(candidates) == 5
    assert scores == sorted(scores, reverse=True)
    assert candidates[0].word == "a5"
    assert "b1" in [c.word for c in candidates]  # 0.96 * 0.5 = 0.48


@pytest.mark.asyncio
async def test_failing_strategy_degrades_gracefully(retrieval, store):
    store.results = {"ocean": [hit("wave", 0.8)]}
    store.failing_queries = {"ocean + water", "water"}

    candidates = await retrieval.retrieve_context("ocean", "water")
    assert [(c.word, c.score) for c in candidates] == [("wave", pytest.approx(0.4))]


@pytest.mark.asyncio
async def test_everything_failing_returns_empty(config):
    store = FakeStore({"ocean + water": [hit("wave", 0.8)]})
    embedder = FakeEmbedder(fail_on=["ocean + water", "ocean"], raise_on=["water"])
    engine = RetrievalEngine(store, embedder, config)

    assert await engine.retrieve_context("ocean", "water") == []
    assert store.searches == []


@pytest.mark.asyncio
async def test_word_queries_can_be_disabled(store, embedder):
    config = Settings(INCLUDE_WORD_QUERIES=False)
    engine = RetrievalEngine(store, embedder, config)
    await engine.retrieve_context("ocean", "water")
    assert store.searches == [("ocean + water", 5)]


@pytest.mark.asyncio
async def test_legacy_query_with_plus_is_split(retrieval, store):
    store.results = {"ocean + water": [hit("wave", 0.9)]}
    candidates = await retrieval.retrieve_for_query("ocean + water")
    assert [c.word for c in candidates] == ["wave"]
    assert ("ocean", 3) in store.searches


@pytest.mark.asyncio
async def test_legacy_single_word_query(retrieval, store):
    store.results = {"ocean": [hit("oceans", 0.99), hit("blue", 0.6)]}
    candidates = await retrieval.retrieve_for_query(" ocean ")
    assert store.searches == [("ocean", 5)]
    assert [(c.word, c.score) for c in candidates] == [("blue", pytest.approx(0.6))]
