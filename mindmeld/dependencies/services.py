"""
Service wiring for FastAPI routes.

All services are constructed once at startup by :func:`build_services` from
an explicit :class:`Settings` object and stored on ``app.state.services``.
Route handlers receive them through the ``get_*`` dependencies below, which
tests replace via ``app.dependency_overrides``.
"""
from __future__ import annotations

import dataclasses
import logging
from typing import Optional

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from mindmeld.config import Settings
from mindmeld.services.dictionary import WordDictionary
from mindmeld.services.embedding import OllamaEmbeddingService
from mindmeld.services.generation_tracker import GenerationTracker
from mindmeld.services.guess_generator import GuessGenerator
from mindmeld.services.llm import OllamaLLMService
from mindmeld.services.match_judge import MatchJudge
from mindmeld.services.retrieval import RetrievalEngine
from mindmeld.services.round_recorder import RoundRecorder
from mindmeld.services.round_store import RoundHistoryStore

logger = logging.getLogger(__name__)


@dataclasses.dataclass
class Services:
    """Everything the routers need, built from one Settings object."""

    config: Settings
    store: RoundHistoryStore
    embedder: OllamaEmbeddingService
    retrieval: RetrievalEngine
    generator: GuessGenerator
    judge: MatchJudge
    recorder: RoundRecorder
    dictionary: WordDictionary
    tracker: GenerationTracker


def build_services(
    config: Settings,
    session_factory: async_sessionmaker[AsyncSession],
    dictionary: Optional[WordDictionary] = None,
) -> Services:
    """Construct the service graph for one process."""
    store = RoundHistoryStore(session_factory)
    embedder = OllamaEmbeddingService(config)
    retrieval = RetrievalEngine(store, embedder, config)
    generator = GuessGenerator(OllamaLLMService(config), retrieval, config)
    judge = MatchJudge(OllamaLLMService(config, model=config.OLLAMA_JUDGE_MODEL))
    recorder = RoundRecorder(store, embedder, config)
    if dictionary is None:
        dictionary = WordDictionary.load(config.DICTIONARY_PATH)
    return Services(
        config=config,
        store=store,
        embedder=embedder,
        retrieval=retrieval,
        generator=generator,
        judge=judge,
        recorder=recorder,
        dictionary=dictionary,
        tracker=GenerationTracker(),
    )


def get_services(request: Request) -> Services:
    return request.app.state.services


def get_store(services: Services = Depends(get_services)) -> RoundHistoryStore:
    return services.store


def get_embedder(services: Services = Depends(get_services)) -> OllamaEmbeddingService:
    return services.embedder


def get_retrieval(services: Services = Depends(get_services)) -> RetrievalEngine:
    return services.retrieval


def get_generator(services: Services = Depends(get_services)) -> GuessGenerator:
    return services.generator


def get_judge(services: Services = Depends(get_services)) -> MatchJudge:
    return services.judge


def get_recorder(services: Services = Depends(get_services)) -> RoundRecorder:
    return services.recorder


def get_dictionary(services: Services = Depends(get_services)) -> WordDictionary:
    return services.dictionary


def get_tracker(services: Services = Depends(get_services)) -> GenerationTracker:
    return services.tracker


def get_config(services: Services = Depends(get_services)) -> Settings:
    return services.config
