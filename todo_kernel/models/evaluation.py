"""Response evaluation — the evaluator's verdict and the outcome of a rewrite loop."""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class ResponseEvaluation(BaseModel):
    """Arguments of the forced `evaluateResponse` call."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    quality_score: float = Field(ge=1, le=10)
    requires_action: bool
    is_conversational: bool
    context_retention: float = Field(ge=1, le=10)
    specific_issues: List[str] = []
    improvement_suggestions: List[str] = []
    suggested_response: Optional[str] = None

    @property
    def acceptable(self) -> bool:
        return (
            self.quality_score >= 8
            and self.context_retention >= 7
            and not self.specific_issues
        )


class EvaluationOutcome(BaseModel):
    """Final text after evaluation. On failure `final_response` is the original text."""

    success: bool
    final_response: str
    evaluation: Optional[ResponseEvaluation] = None
    iterations: int = 0
    error: Optional[str] = None
