"""Todo kernel data models."""

from todo_kernel.models.action import (
    ARGUMENT_MODELS,
    CompleteTodoAction,
    CompleteTodoArgs,
    CreateTodoAction,
    CreateTodoArgs,
    DeleteTodoAction,
    DeleteTodoArgs,
    ListTodosAction,
    ListTodosArgs,
    TodoAction,
    ToolAction,
    UpdateTodoAction,
    UpdateTodoArgs,
    to_tool_action,
    todo_action_adapter,
)
from todo_kernel.models.evaluation import EvaluationOutcome, ResponseEvaluation
from todo_kernel.models.events import ToolEvent
from todo_kernel.models.interaction import InteractionRecord
from todo_kernel.models.matching import MatchCandidate, MatchResult, SimilarityRow
from todo_kernel.models.message import Message, MessageMetadata
from todo_kernel.models.pipeline import PipelineConfig, ResolutionResponse
from todo_kernel.models.plan import (
    ID_OPERATIONS,
    OPERATION_TOOLS,
    Complexity,
    Operation,
    OperationPlan,
    PlanContext,
    ToolName,
)
from todo_kernel.models.results import (
    ExecutionResult,
    ValidationResult,
    VerificationResult,
)
from todo_kernel.models.todo import Todo

__all__ = [
    "ARGUMENT_MODELS",
    "CompleteTodoAction",
    "CompleteTodoArgs",
    "Complexity",
    "CreateTodoAction",
    "CreateTodoArgs",
    "DeleteTodoAction",
    "DeleteTodoArgs",
    "EvaluationOutcome",
    "ExecutionResult",
    "ID_OPERATIONS",
    "InteractionRecord",
    "ListTodosAction",
    "ListTodosArgs",
    "MatchCandidate",
    "MatchResult",
    "Message",
    "MessageMetadata",
    "OPERATION_TOOLS",
    "Operation",
    "OperationPlan",
    "PipelineConfig",
    "PlanContext",
    "ResolutionResponse",
    "ResponseEvaluation",
    "SimilarityRow",
    "Todo",
    "TodoAction",
    "ToolAction",
    "ToolEvent",
    "ToolName",
    "UpdateTodoAction",
    "UpdateTodoArgs",
    "ValidationResult",
    "VerificationResult",
    "to_tool_action",
    "todo_action_adapter",
]
