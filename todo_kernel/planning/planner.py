"""
Operation Planner — turns intent into a structured OperationPlan.

Behavioral Contract:
- The plan is produced through a forced function call, so it always has
  the plan's shape or the request fails.
- operation, complexity and requiredTools are mandatory.
- For id-addressed operations the planner may pre-resolve the target
  record through the ContentMatcher; it never mutates the store.
"""

import logging
from typing import List, Optional

from pydantic import ValidationError

from todo_kernel.completion.service import (
    CompletionService,
    FunctionSchema,
    decode_arguments,
)
from todo_kernel.errors import PlanningFailure
from todo_kernel.matching.matcher import ContentMatcher
from todo_kernel.models.message import Message
from todo_kernel.models.pipeline import PipelineConfig
from todo_kernel.models.plan import ID_OPERATIONS, Operation, OperationPlan

logger = logging.getLogger(__name__)

PLANNER_PROMPT = """You are a senior todo management orchestrator.
Your role is to analyze user requests and plan the execution of todo operations.

For each request, you MUST:
1. Determine the type of operation needed (create/update/complete/delete/list)
2. Assess the complexity (low/medium/high)
3. Identify required tools from: createTodo, updateTodo, completeTodo, deleteTodo, listTodos
4. Extract relevant context (todoId, content, priority, labels, completed status)

ALWAYS use the planTodoOperation function to respond with your analysis.

Example operations:
- "create a new todo" -> create operation, createTodo tool
- "mark todo as done" -> complete operation, completeTodo tool
- "update priority" -> update operation, updateTodo tool
- "delete todo" -> delete operation, deleteTodo tool
- "show all todos" -> list operation, listTodos tool"""

PLAN_FUNCTION = FunctionSchema(
    name="planTodoOperation",
    description="Plan the execution of a todo operation",
    parameters={
        "type": "object",
        "properties": {
            "operation": {
                "type": "string",
                "enum": [op.value for op in Operation],
                "description": "The type of operation to perform",
            },
            "complexity": {
                "type": "string",
                "enum": ["low", "medium", "high"],
                "description": "Estimated complexity of the operation",
            },
            "requiredTools": {
                "type": "array",
                "items": {
                    "type": "string",
                    "enum": [
                        "createTodo",
                        "updateTodo",
                        "completeTodo",
                        "deleteTodo",
                        "listTodos",
                    ],
                },
                "description": "Tools required for this operation",
            },
            "context": {
                "type": "object",
                "properties": {
                    "todoId": {"type": "string"},
                    "content": {"type": "string"},
                    "priority": {"type": "integer"},
                    "labels": {"type": "array", "items": {"type": "string"}},
                    "completed": {"type": "boolean"},
                },
            },
        },
        "required": ["operation", "complexity", "requiredTools"],
    },
)

_REQUIRED_PLAN_FIELDS = ("operation", "complexity", "requiredTools")


def most_recent_todo_id(history: List[Message], window: int = 5) -> Optional[str]:
    """
    The todo id most recently referenced in the last `window` messages.

    Newest carrying message wins (by timestamp when every carrier has one,
    otherwise by position); within it, the lowest id wins.
    """
    recent = history[-window:] if window > 0 else []
    carriers = [
        (position, msg) for position, msg in enumerate(recent)
        if msg.metadata and msg.metadata.todo_ids
    ]
    if not carriers:
        return None

    if all(msg.timestamp is not None for _, msg in carriers):
        _, newest = max(carriers, key=lambda pm: (pm[1].timestamp, pm[0]))
    else:
        _, newest = carriers[-1]
    return min(newest.metadata.todo_ids)


class OperationPlanner:
    """Produces the OperationPlan and pre-resolves its target record when it can."""

    def __init__(
        self,
        completion: CompletionService,
        matcher: ContentMatcher,
        config: Optional[PipelineConfig] = None,
    ):
        self.completion = completion
        self.matcher = matcher
        self.config = config or PipelineConfig()

    async def plan(
        self,
        intent: str,
        task_phrase: Optional[str],
        message: str,
        history: List[Message],
        scope: str,
    ) -> OperationPlan:
        """Generate, check and enrich a plan. Raises PlanningFailure."""
        system_prompt = f"{PLANNER_PROMPT}\n\nExtracted intent: {intent}"
        if task_phrase:
            system_prompt += f"\nReferenced task: {task_phrase}"

        try:
            call = await self.completion.generate_structured(
                system_prompt,
                history,
                message,
                PLAN_FUNCTION,
                PLAN_FUNCTION.name,
                temperature=self.config.planner_temperature,
            )
        except Exception as e:
            raise PlanningFailure(f"Planning failed: {e}") from e

        if call is None:
            raise PlanningFailure("Planner did not generate an operation plan")

        try:
            arguments = decode_arguments(call.arguments)
        except ValueError as e:
            raise PlanningFailure("Failed to parse operation plan") from e

        missing = [
            f for f in _REQUIRED_PLAN_FIELDS
            if f not in arguments or arguments[f] in (None, "")
        ]
        if missing:
            logger.error("Invalid plan structure, missing %s: %s", missing, arguments)
            raise PlanningFailure(
                f"Invalid plan structure: missing {', '.join(missing)}"
            )

        try:
            plan = OperationPlan.model_validate({**arguments, "intent": intent})
        except ValidationError as e:
            raise PlanningFailure(f"Invalid plan structure: {e.error_count()} error(s)") from e

        plan = await self._pre_resolve(plan, task_phrase, scope)
        plan = self._apply_recent_context(plan, history)
        logger.info(
            "Planned %s (%s) todoId=%s",
            plan.operation.value, plan.complexity.value, plan.context.todo_id,
        )
        return plan

    async def _pre_resolve(
        self, plan: OperationPlan, task_phrase: Optional[str], scope: str
    ) -> OperationPlan:
        """Fill context.todoId from the matcher when the plan names content but no id."""
        context = plan.context
        if (
            plan.operation not in ID_OPERATIONS
            or not context.content
            or context.todo_id
            or not task_phrase
        ):
            return plan

        try:
            result = await self.matcher.resolve(task_phrase, scope)
        except Exception as e:
            logger.warning("Pre-resolution of %r failed: %s", task_phrase, e)
            return plan
        best = result.best
        if best is None:
            logger.info("No record matched task phrase %r", task_phrase)
            return plan

        logger.info(
            "Pre-resolved %r to %s via %s match (score %.2f)",
            task_phrase, best.todo.id, best.method, best.score,
        )
        context = context.model_copy(update={
            "todo_id": best.todo.id,
            "matched_todo": best.todo,
            "matched_task": task_phrase,
            "matched_content": best.todo.content,
        })
        return plan.model_copy(update={"context": context, "matched_task": task_phrase})

    def _apply_recent_context(
        self, plan: OperationPlan, history: List[Message]
    ) -> OperationPlan:
        """Delete only: assume the most recently mentioned todo is the referent."""
        if (
            plan.operation != Operation.DELETE
            or plan.context.todo_id
            or len(history) <= 1
        ):
            return plan

        recent_id = most_recent_todo_id(history, self.config.recent_context_window)
        if recent_id is None:
            return plan

        logger.info("Using most recently mentioned todo %s as delete target", recent_id)
        context = plan.context.model_copy(update={"todo_id": recent_id})
        return plan.model_copy(update={"context": context})
