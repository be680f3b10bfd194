"""
Content Matcher — resolves a task phrase to ranked todo records.

Two tiers:
  Word-level (primary): substring matching on the phrase and its
    significant terms, ranked by how literally the content matches.
  Semantic (fallback): trigram similarity, used only when the word tier
    finds nothing.

Read-only: never mutates the store.
"""

import logging
from typing import List, Optional

from todo_kernel.models.matching import MatchCandidate, MatchResult
from todo_kernel.models.pipeline import PipelineConfig
from todo_kernel.store.todo_store import TodoStore

logger = logging.getLogger(__name__)

NO_MATCH_RANK = 100


def normalize_phrase(phrase: Optional[str]) -> str:
    """Lowercase, trim and collapse inner whitespace."""
    return " ".join((phrase or "").lower().split())


def rank_to_score(rank: int) -> float:
    """Rank 0 is best. Ranks above 10 score zero."""
    if rank <= 10:
        return (10 - rank) / 10
    return 0.0


class ContentMatcher:
    """Ranks a scope's todos against a natural-language task phrase."""

    def __init__(self, store: TodoStore, config: Optional[PipelineConfig] = None):
        self.store = store
        self.config = config or PipelineConfig()
        self._stopwords = set(self.config.stopwords)

    def extract_terms(self, normalized: str) -> List[str]:
        """Significant tokens in order; the whole phrase if none survive."""
        terms = [
            token for token in normalized.split()
            if token not in self._stopwords and len(token) > 1
        ]
        return terms or [normalized]

    def rank_content(self, content: str, phrase: str, terms: List[str]) -> int:
        """Lower is better: exact 0, prefix or containment 1, i-th term 2+i."""
        text = normalize_phrase(content)
        if text == phrase:
            return 0
        if text.startswith(phrase) or phrase in text:
            return 1
        for i, term in enumerate(terms):
            if term in text:
                return 2 + i
        return NO_MATCH_RANK

    async def match_words(self, phrase: str, scope: str) -> MatchResult:
        """Word-level tier."""
        normalized = normalize_phrase(phrase)
        if not normalized:
            return MatchResult(phrase=phrase, method="word")

        terms = self.extract_terms(normalized)
        query_terms = [normalized] + [
            t for t in terms
            if len(t) >= self.config.min_term_length and t != normalized
        ]
        rows = await self.store.search_lexical(scope, query_terms)

        candidates = []
        for todo in rows:
            rank = self.rank_content(todo.content, normalized, terms)
            score = 1.0 if rank == 0 else rank_to_score(rank)
            candidates.append(MatchCandidate(todo=todo, score=score, method="word"))

        # Newest first on equal score; sort is stable so store order breaks exact ties.
        candidates.sort(key=lambda c: c.todo.created_at, reverse=True)
        candidates.sort(key=lambda c: c.score, reverse=True)
        candidates = candidates[: self.config.max_candidates]

        logger.info(
            "Word match for %r (terms=%s): %d candidate(s)",
            normalized, terms, len(candidates),
        )
        return MatchResult(
            phrase=phrase,
            method="word",
            candidates=candidates,
            matched_terms=terms,
        )

    async def match_semantic(self, phrase: str, scope: str) -> MatchResult:
        """
        Similarity tier. Rows under similarity_floor never come back from the
        store; of the rest, those clearing semantic_threshold win, and all of
        them are kept when none do.
        """
        normalized = normalize_phrase(phrase)
        if not normalized:
            return MatchResult(phrase=phrase, method="semantic", matched_terms=[phrase])

        rows = await self.store.search_similarity(
            scope,
            normalized,
            limit=self.config.max_candidates,
            min_similarity=self.config.similarity_floor,
        )
        qualified = [r for r in rows if r.similarity >= self.config.semantic_threshold]
        kept = sorted(qualified or rows, key=lambda r: (-r.similarity, r.distance))

        candidates = [
            MatchCandidate(
                todo=r.todo,
                score=min(max(r.similarity, 0.0), 1.0),
                method="semantic",
            )
            for r in kept[: self.config.max_candidates]
        ]
        logger.info(
            "Semantic match for %r: %d candidate(s), %d above threshold",
            normalized, len(candidates), len(qualified),
        )
        return MatchResult(
            phrase=phrase,
            method="semantic",
            candidates=candidates,
            matched_terms=[phrase],
        )

    async def resolve(self, phrase: str, scope: str) -> MatchResult:
        """Word tier first; semantic only when the word tier is empty."""
        result = await self.match_words(phrase, scope)
        if result.candidates:
            return result
        return await self.match_semantic(phrase, scope)
