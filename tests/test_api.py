"""
End-to-end tests for the round and guess endpoints, using the in-memory
fakes wired in by ``conftest.client``.
"""
import asyncio

import pytest
from httpx import AsyncClient

from tests.fakes import hit, unreachable_llm

GAME = [
    {"round": 1, "userGuess": "apple", "aiGuess": "banana"},
    {"round": 2, "userGuess": "fruit", "aiGuess": "yellow"},
]


# ---------------------------------------------------------------------------
# GET /api/get-rounds
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_get_rounds_returns_parallel_arrays(client: AsyncClient, store):
    store.results = {
        "ocean + water": [hit("wave", 0.9), hit("beach", 0.7)],
        "ocean": [hit("salt", 0.8)],
    }

    resp = await client.get("/api/get-rounds", params={"userWord": "ocean", "aiWord": "water"})

    assert resp.status_code == 200
    data = resp.json()
    assert data["topGuesses"] == ["wave", "beach", "salt"]
    assert data["similarity"] == pytest.approx([0.9, 0.7, 0.4])


@pytest.mark.asyncio
async def test_get_rounds_legacy_word_param(client: AsyncClient, store):
    store.results = {"ocean + water": [hit("wave", 0.9)]}

    resp = await client.get("/api/get-rounds", params={"word": "ocean + water"})

    assert resp.status_code == 200
    assert resp.json()["topGuesses"] == ["wave"]


@pytest.mark.asyncio
async def test_get_rounds_requires_words(client: AsyncClient):
    resp = await client.get("/api/get-rounds", params={"userWord": "ocean"})
    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_get_rounds_store_outage_returns_empty(client: AsyncClient, store):
    store.failing_queries = {"ocean + water", "ocean", "water"}

    resp = await client.get("/api/get-rounds", params={"userWord": "ocean", "aiWord": "water"})

    assert resp.status_code == 200
    assert resp.json() == {"topGuesses": [], "similarity": []}


# ---------------------------------------------------------------------------
# GET /api/get-all-words, POST /api/new-words
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_get_all_words(client: AsyncClient, store):
    store.rows = [
        {"userWord": "Apple", "aiWord": "banana", "correctGuess": "apple"},
        {"userWord": "cherry", "aiWord": "Banana", "correctGuess": "fruit"},
    ]

    resp = await client.get("/api/get-all-words")

    assert resp.status_code == 200
    assert resp.json()["uniqueWords"] == ["apple", "banana", "cherry", "fruit"]


@pytest.mark.asyncio
async def test_get_all_words_store_outage(client: AsyncClient, store):
    store.scan_error = ConnectionError("down")
    resp = await client.get("/api/get-all-words")
    assert resp.status_code == 503


@pytest.mark.asyncio
async def test_new_words(client: AsyncClient, store):
    store.rows = [{"userWord": "apple", "aiWord": "fruit", "correctGuess": "yellow"}]

    resp = await client.post(
        "/api/new-words", json={"roundResults": GAME, "finalWord": "Cherry"}
    )

    assert resp.status_code == 200
    assert resp.json()["newWords"] == ["banana", "Cherry"]


# ---------------------------------------------------------------------------
# POST /api/record-round
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_record_round(client: AsyncClient, store):
    store.max_id = 9

    resp = await client.post(
        "/api/record-round",
        json={"roundResults": GAME, "finalCorrectGuess": "cherry"},
    )

    assert resp.status_code == 200
    data = resp.json()
    assert data["recorded"] == 2
    assert data["skipped"] == 0
    assert data["message"].startswith("Learning 2 correct guesses:")
    assert "apple | banana => fruit" in data["message"]
    assert [r.id for r in store.inserted[0]] == [10, 11]


@pytest.mark.asyncio
async def test_record_round_rejects_empty_results(client: AsyncClient):
    resp = await client.post("/api/record-round", json={"roundResults": []})
    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_record_round_requires_results_field(client: AsyncClient):
    resp = await client.post("/api/record-round", json={"finalCorrectGuess": "x"})
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_record_round_insert_failure(client: AsyncClient, store):
    store.fail_batch = 1

    resp = await client.post(
        "/api/record-round",
        json={"roundResults": GAME, "finalCorrectGuess": "cherry"},
    )

    assert resp.status_code == 500
    assert "0 rows stored" in resp.json()["detail"]


# ---------------------------------------------------------------------------
# POST /api/generate-guess
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_generate_guess(client: AsyncClient, llm, store):
    store.results = {"fruit + yellow": [hit("cherry", 0.8)]}
    llm.script = ["Banana", "Cherry!"]

    resp = await client.post(
        "/api/generate-guess",
        json={"prevUserWord": "fruit", "prevAiWord": "yellow", "roundResults": GAME},
    )

    assert resp.status_code == 200
    data = resp.json()
    assert data["guess"] == "cherry"
    assert data["attempts"] == 2
    assert data["rejected"] == ["banana"]
    assert data["candidates"] == [{"word": "cherry", "score": pytest.approx(0.8)}]


@pytest.mark.asyncio
async def test_generate_guess_first_round(client: AsyncClient, llm):
    llm.script = ["quiet"]
    resp = await client.post("/api/generate-guess", json={})
    assert resp.status_code == 200
    assert resp.json()["guess"] == "quiet"


@pytest.mark.asyncio
async def test_generate_guess_exhausted(client: AsyncClient, llm, config):
    llm.script = ["apple"]

    resp = await client.post(
        "/api/generate-guess",
        json={"prevUserWord": "fruit", "prevAiWord": "yellow", "roundResults": GAME},
    )

    assert resp.status_code == 422
    assert len(llm.calls) == config.MAX_GENERATION_ATTEMPTS


@pytest.mark.asyncio
async def test_generate_guess_llm_down(client: AsyncClient, services):
    services.generator.llm = unreachable_llm()

    resp = await client.post(
        "/api/generate-guess",
        json={"prevUserWord": "fruit", "prevAiWord": "yellow", "roundResults": GAME},
    )

    assert resp.status_code == 503


# ---------------------------------------------------------------------------
# POST /api/check-match
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_check_match_lexical(client: AsyncClient, judge_llm):
    resp = await client.post("/api/check-match", json={"userGuess": "Votes", "aiGuess": "vote"})
    assert resp.status_code == 200
    assert resp.json() == {"match": True}
    assert judge_llm.calls == []


@pytest.mark.asyncio
async def test_check_match_uses_judge(client: AsyncClient, judge_llm):
    judge_llm.script = ["true"]
    resp = await client.post("/api/check-match", json={"userGuess": "sea", "aiGuess": "ocean"})
    assert resp.json() == {"match": True}

    judge_llm.script = ["false"]
    judge_llm.calls.clear()
    resp = await client.post("/api/check-match", json={"userGuess": "cat", "aiGuess": "dog"})
    assert resp.json() == {"match": False}


@pytest.mark.asyncio
async def test_check_match_validation_and_outage(client: AsyncClient, services):
    resp = await client.post("/api/check-match", json={"userGuess": "", "aiGuess": "dog"})
    assert resp.status_code == 422

    services.judge.llm = unreachable_llm()
    resp = await client.post("/api/check-match", json={"userGuess": "cat", "aiGuess": "dog"})
    assert resp.status_code == 503


# ---------------------------------------------------------------------------
# Background AI guess per game
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_background_guess_can_be_awaited(client: AsyncClient, llm):
    llm.script = ["ocean"]
    body = {"prevUserWord": "fruit", "prevAiWord": "yellow", "roundResults": GAME}

    resp = await client.post("/api/games/g1/ai-guess", json=body)
    assert resp.status_code == 202
    assert resp.json()["phase"] == "generating"
    assert resp.json()["is_generating"] is True

    resp = await client.get("/api/games/g1/ai-guess", params={"wait": "true"})
    assert resp.status_code == 200
    data = resp.json()
    assert data["phase"] == "completed"
    assert data["is_generating"] is False
    assert data["result"]["guess"] == "ocean"


@pytest.mark.asyncio
async def test_background_guess_conflict(client: AsyncClient, llm):
    llm.gate = asyncio.Event()
    body = {"prevUserWord": "fruit", "prevAiWord": "yellow", "roundResults": GAME}

    assert (await client.post("/api/games/g1/ai-guess", json=body)).status_code == 202
    assert (await client.post("/api/games/g1/ai-guess", json=body)).status_code == 409

    resp = await client.get("/api/games/g1/ai-guess")
    assert resp.json()["is_generating"] is True

    llm.gate.set()
    resp = await client.get("/api/games/g1/ai-guess", params={"wait": "true"})
    assert resp.json()["phase"] == "completed"


@pytest.mark.asyncio
async def test_background_guess_failure_is_reported(client: AsyncClient, llm):
    llm.script = ["apple"]
    body = {"prevUserWord": "fruit", "prevAiWord": "yellow", "roundResults": GAME}

    await client.post("/api/games/g2/ai-guess", json=body)
    resp = await client.get("/api/games/g2/ai-guess", params={"wait": "true"})

    data = resp.json()
    assert data["phase"] == "failed"
    assert data["result"] is None
    assert "No valid guess" in data["error"]


@pytest.mark.asyncio
async def test_unknown_game_is_404(client: AsyncClient):
    resp = await client.get("/api/games/missing/ai-guess")
    assert resp.status_code == 404


@pytest.mark.parametrize(
    "body",
    [
        {"prevUserWord": "fruit", "roundResults": GAME},
        {"prevAiWord": "yellow"},
        {"prevUserWord": "fruit", "prevAiWord": " "},
    ],
)
@pytest.mark.asyncio
async def test_half_previous_pair_is_rejected(client: AsyncClient, llm, body):
    resp = await client.post("/api/generate-guess", json=body)
    assert resp.status_code == 422
    assert "given together" in resp.text

    resp = await client.post("/api/games/g9/ai-guess", json=body)
    assert resp.status_code == 422
    assert llm.calls == []
