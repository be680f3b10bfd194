"""Match candidates produced by the content matcher. Never persisted."""

from typing import List, Literal, Optional

from pydantic import BaseModel, Field

from todo_kernel.models.todo import Todo

MatchMethod = Literal["word", "semantic"]


class MatchCandidate(BaseModel):
    """A scored record that may be the referent of a task phrase."""

    todo: Todo
    score: float = Field(ge=0.0, le=1.0)
    method: MatchMethod


class MatchResult(BaseModel):
    """Ranked candidates for one phrase, best first."""

    phrase: str
    method: MatchMethod
    candidates: List[MatchCandidate] = []
    matched_terms: List[str] = []

    @property
    def best(self) -> Optional[MatchCandidate]:
        return self.candidates[0] if self.candidates else None

    @property
    def best_score(self) -> Optional[float]:
        return self.candidates[0].score if self.candidates else None


class SimilarityRow(BaseModel):
    """One row of the store's similarity search."""

    todo: Todo
    similarity: float
    distance: float
