"""
Validator — checks a worker action against the plan before anything runs.

Behavioral Contract:
- Accepts the plan's operation, the worker's action name and raw arguments,
  the plan context and the scope.
- Enforces the operation -> tool map, required arguments, the priority
  range and the "something to update" rule.
- Resolves the target record for id-addressed tools: the id as given,
  otherwise the first content hint the matcher can place. A resolved
  mismatch yields a corrected action that differs only in `id`.
- Normalizes the arguments into the typed action union.
- Never mutates the store.
"""

import logging
from typing import Any, Dict, List, Optional, Union

from pydantic import ValidationError

from todo_kernel.matching.matcher import ContentMatcher
from todo_kernel.models.action import ToolAction, UpdateTodoArgs, todo_action_adapter
from todo_kernel.models.plan import OPERATION_TOOLS, Operation, PlanContext
from todo_kernel.models.results import ValidationResult
from todo_kernel.store.todo_store import TodoStore

logger = logging.getLogger(__name__)

REQUIRED_ARGUMENTS: Dict[str, List[str]] = {
    "createTodo": ["content"],
    "updateTodo": ["id"],
    "completeTodo": ["id", "completed"],
    "deleteTodo": ["id"],
    "listTodos": [],
}

ID_ACTIONS = ("updateTodo", "completeTodo", "deleteTodo")

PRIORITY_RANGE = (0, 5)


def _invalid(error: str, **details: Any) -> ValidationResult:
    return ValidationResult(is_valid=False, error=error, details=details)


def _check_action_matches_operation(
    operation: Union[Operation, str], action_name: str
) -> Optional[ValidationResult]:
    """The operation permits exactly one tool."""
    try:
        expected = OPERATION_TOOLS[Operation(operation)].value
    except ValueError:
        return _invalid(
            f"Unknown operation: {operation}",
            expected_actions=[],
            actual_action=action_name,
        )
    if action_name != expected:
        return _invalid(
            f"Invalid action type for operation: Expected {expected}, got {action_name}",
            expected_actions=[expected],
            actual_action=action_name,
        )
    return None


def _check_required_arguments(
    action_name: str, arguments: dict
) -> Optional[ValidationResult]:
    required = REQUIRED_ARGUMENTS.get(action_name, [])
    missing = [arg for arg in required if arguments.get(arg) is None]
    if missing:
        return _invalid(
            f"Missing required arguments: {', '.join(missing)}",
            required=required,
            missing=missing,
        )
    return None


def _check_priority(arguments: dict) -> Optional[ValidationResult]:
    priority = arguments.get("priority")
    if priority is None:
        return None
    low, high = PRIORITY_RANGE
    in_range = (
        isinstance(priority, (int, float))
        and not isinstance(priority, bool)
        and low <= priority <= high
    )
    if not in_range:
        return _invalid(
            f"Invalid priority value: {priority}. Must be between {low} and {high}",
            field="priority",
            value=priority,
            allowed_range=f"{low}-{high}",
        )
    return None


def _check_update_has_fields(
    action_name: str, arguments: dict
) -> Optional[ValidationResult]:
    """updateTodo must change something besides naming its target."""
    if action_name != "updateTodo":
        return None
    changes = [
        k for k, v in arguments.items()
        if k != "id" and k in UpdateTodoArgs.model_fields and v is not None
    ]
    if not changes:
        return _invalid(
            "No fields to update. At least one of content, completed, "
            "priority, labels or complexity must be provided",
            provided_fields=list(arguments.keys()),
        )
    return None


def _content_hints(context: Optional[PlanContext], arguments: dict) -> List[str]:
    """Non-empty content hints in priority order, without repeats."""
    candidates = []
    if context is not None:
        candidates += [context.content, context.matched_task, context.matched_content]
    candidates.append(arguments.get("content"))

    hints: List[str] = []
    for hint in candidates:
        if isinstance(hint, str) and hint.strip() and hint not in hints:
            hints.append(hint)
    return hints


class Validator:
    """Rules on a worker action. Purely advisory input to the executor."""

    def __init__(self, store: TodoStore, matcher: ContentMatcher):
        self.store = store
        self.matcher = matcher

    async def validate(
        self,
        operation: Union[Operation, str],
        action_name: str,
        arguments: dict,
        context: Optional[PlanContext],
        scope: str,
    ) -> ValidationResult:
        """Return a ValidationResult; never raises for a bad action."""
        logger.info("Validating %s for operation %s: %s", action_name, operation, arguments)

        for check in (
            _check_action_matches_operation(operation, action_name),
            _check_required_arguments(action_name, arguments),
            _check_priority(arguments),
            _check_update_has_fields(action_name, arguments),
        ):
            if check is not None:
                logger.info("Validation rejected %s: %s", action_name, check.error)
                return check

        details: dict = {
            "action": action_name,
            "operation": Operation(operation).value,
            "validation_passed": True,
        }
        corrected: Optional[ToolAction] = None

        if action_name in ID_ACTIONS:
            resolution = await self._resolve_entity(action_name, arguments, context, scope)
            if not resolution.is_valid:
                return resolution
            details.update(resolution.details)
            if resolution.corrected_action is not None:
                corrected = resolution.corrected_action
                arguments = corrected.arguments

        try:
            action = todo_action_adapter.validate_python(
                {"name": action_name, "arguments": arguments}
            )
        except ValidationError as e:
            problems = "; ".join(
                f"{'.'.join(str(p) for p in err['loc'][1:]) or 'arguments'}: {err['msg']}"
                for err in e.errors()
            )
            return _invalid(
                f"Invalid arguments for {action_name}: {problems}",
                action=action_name,
                errors=e.errors(include_url=False, include_context=False),
            )

        return ValidationResult(
            is_valid=True,
            action=action,
            corrected_action=corrected,
            details=details,
        )

    async def _resolve_entity(
        self,
        action_name: str,
        arguments: dict,
        context: Optional[PlanContext],
        scope: str,
    ) -> ValidationResult:
        """Direct id first, then content hints through the enhanced matcher."""
        todo_id = arguments.get("id")
        if isinstance(todo_id, str) and todo_id:
            try:
                todo = await self.store.get_by_id(todo_id)
            except Exception as e:
                logger.warning("Lookup of %s failed, trying content matching: %s", todo_id, e)
                todo = None
            if todo is not None:
                return ValidationResult(
                    is_valid=True,
                    details={"todo_found": True, "method": "direct_id"},
                )

        hints = _content_hints(context, arguments)
        for hint in hints:
            try:
                result = await self.matcher.resolve(hint, scope)
            except Exception as e:
                logger.warning("Content matching failed for %r: %s", hint, e)
                continue

            best = result.best
            if best is None:
                continue

            logger.info(
                "Resolved %r to %s (%r) by %s match, score %.2f",
                hint, best.todo.id, best.todo.content, result.method, best.score,
            )
            return ValidationResult(
                is_valid=True,
                corrected_action=ToolAction(
                    name=action_name,
                    arguments={**arguments, "id": best.todo.id},
                ),
                details={
                    "todo_found": True,
                    "method": f"{result.method}_match",
                    "original_id": todo_id,
                    "matched_id": best.todo.id,
                    "matched_content": best.todo.content,
                    "matched_terms": result.matched_terms,
                    "match_score": best.score,
                },
            )

        return _invalid(
            f"Todo not found by id or content: no record with id {todo_id!r} "
            f"and no content hint matched. Cannot perform {action_name}",
            todo_found=False,
            tried_direct_id=True,
            tried_content_match=bool(hints),
        )
