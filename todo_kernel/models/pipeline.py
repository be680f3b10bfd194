"""Pipeline configuration and the structured response of the entry point."""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from todo_kernel.models.action import ToolAction
from todo_kernel.models.plan import OperationPlan
from todo_kernel.models.results import ValidationResult, VerificationResult

DEFAULT_STOPWORDS = ["a", "an", "the", "to", "and", "or", "in", "on", "at", "by", "for"]


class PipelineConfig(BaseModel):
    """Tunables for the resolution pipeline."""

    max_candidates: int = Field(ge=1, default=5)
    semantic_threshold: float = Field(ge=0.0, le=1.0, default=0.3)
    similarity_floor: float = Field(ge=0.0, le=1.0, default=0.2)
    stopwords: List[str] = DEFAULT_STOPWORDS
    min_term_length: int = 3
    recent_context_window: int = 5
    intent_temperature: float = 0.7
    task_reference_temperature: float = 0.1
    planner_temperature: float = 0.7
    worker_temperature: float = 0.7
    evaluate_responses: bool = False
    max_evaluation_iterations: int = Field(ge=1, default=2)


class ResolutionResponse(BaseModel):
    """What `resolve_and_execute` returns. Every stage failure is mapped here."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    content: str
    tool_calls: List[ToolAction] = []
    todo_ids: List[str] = []
    error: Optional[str] = None
    failure: Optional[str] = None           # "intent" | "planning" | "worker" | "validation" | ...
    plan: Optional[OperationPlan] = None
    validation: Optional[ValidationResult] = None
    verification: Optional[VerificationResult] = None
    explanation: Optional[str] = None       # Worker's own text, before notes were appended
