"""
Verifier — read-only post-condition checks after execution.

Behavioral Contract:
- Never writes to the store and never rolls back.
- createTodo: the returned id must be retrievable with the requested content.
- updateTodo / completeTodo: the id must be retrievable; completeTodo must
  also carry the requested completion state.
- A lookup that raises during create, update or complete checks fails
  verification with the fault in details; the mutation itself stands.
- deleteTodo: the record must be gone. A lookup that raises is reported as
  verified but inconclusive, distinct from a clean NotFound.
- listTodos: the execution payload must be a list.
"""

import logging
from typing import Any, Callable, Dict

from todo_kernel.models.action import (
    CompleteTodoAction,
    CreateTodoAction,
    DeleteTodoAction,
    ListTodosAction,
    UpdateTodoAction,
)
from todo_kernel.models.results import ExecutionResult, VerificationResult
from todo_kernel.store.todo_store import TodoStore

logger = logging.getLogger(__name__)


class Verifier:

    def __init__(self, store: TodoStore):
        self.store = store
        self._checks: Dict[str, Callable] = {
            "createTodo": self._verify_create,
            "updateTodo": self._verify_update,
            "completeTodo": self._verify_complete,
            "deleteTodo": self._verify_delete,
            "listTodos": self._verify_list,
        }

    async def verify(self, action: Any, result: ExecutionResult) -> VerificationResult:
        """Check the store state against what the action intended."""
        check = self._checks.get(getattr(action, "name", None))
        if check is None:
            return VerificationResult(
                verified=False,
                error=f"No verification defined for action: {getattr(action, 'name', None)}",
            )

        verification = await check(action, result)
        if verification.verified:
            logger.info("Verified %s", action.name)
        else:
            logger.warning("Verification of %s failed: %s", action.name, verification.error)
        return verification

    async def _lookup(self, todo_id: str, label: str):
        """Fetch a record for a post-check; a store fault becomes a failed verification."""
        try:
            return await self.store.get_by_id(todo_id), None
        except Exception as e:
            logger.warning("Lookup of %s during verification failed: %s", todo_id, e)
            return None, VerificationResult(
                verified=False,
                error=f"{label} todo could not be verified: lookup failed",
                details={"todo_id": todo_id, "lookup_error": str(e)},
            )

    async def _verify_create(
        self, action: CreateTodoAction, result: ExecutionResult
    ) -> VerificationResult:
        if not result.todo_ids:
            return VerificationResult(verified=False, error="No todo was created")

        todo, failed = await self._lookup(result.todo_ids[0], "Created")
        if failed:
            return failed
        if todo is None:
            return VerificationResult(
                verified=False,
                error="Created todo could not be retrieved",
                details={"todo_id": result.todo_ids[0]},
            )
        if todo.content != action.arguments.content:
            return VerificationResult(
                verified=False,
                error="Created todo content doesn't match requested content",
                details={"expected": action.arguments.content, "actual": todo.content},
            )
        return VerificationResult(verified=True, details={"todo_id": todo.id})

    async def _verify_update(
        self, action: UpdateTodoAction, result: ExecutionResult
    ) -> VerificationResult:
        todo_id = result.todo_ids[0] if result.todo_ids else action.arguments.id
        todo, failed = await self._lookup(todo_id, "Updated")
        if failed:
            return failed
        if todo is None:
            return VerificationResult(
                verified=False,
                error="Updated todo could not be retrieved",
                details={"todo_id": todo_id},
            )
        return VerificationResult(verified=True, details={"todo_id": todo.id})

    async def _verify_complete(
        self, action: CompleteTodoAction, result: ExecutionResult
    ) -> VerificationResult:
        todo_id = result.todo_ids[0] if result.todo_ids else action.arguments.id
        todo, failed = await self._lookup(todo_id, "Completed")
        if failed:
            return failed
        if todo is None:
            return VerificationResult(
                verified=False,
                error="Updated todo could not be retrieved",
                details={"todo_id": todo_id},
            )
        if todo.completed != action.arguments.completed:
            return VerificationResult(
                verified=False,
                error="Todo completion status doesn't match requested status",
                details={"expected": action.arguments.completed, "actual": todo.completed},
            )
        return VerificationResult(
            verified=True, details={"todo_id": todo.id, "completed": todo.completed}
        )

    async def _verify_delete(
        self, action: DeleteTodoAction, result: ExecutionResult
    ) -> VerificationResult:
        todo_id = action.arguments.id
        try:
            todo = await self.store.get_by_id(todo_id)
        except Exception as e:
            logger.warning("Delete verification of %s inconclusive: %s", todo_id, e)
            return VerificationResult(
                verified=True,
                details={"todo_id": todo_id, "result": "inconclusive", "lookup_error": str(e)},
            )

        if todo is not None:
            return VerificationResult(
                verified=False, error="Todo was not deleted", details={"todo_id": todo_id}
            )
        return VerificationResult(verified=True, details={"todo_id": todo_id, "result": "absent"})

    async def _verify_list(
        self, action: ListTodosAction, result: ExecutionResult
    ) -> VerificationResult:
        if not isinstance(result.data, list):
            return VerificationResult(verified=False, error="No todos were retrieved")
        return VerificationResult(verified=True, details={"count": len(result.data)})
