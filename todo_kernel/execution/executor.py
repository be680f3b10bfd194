"""
Executor — applies one validated action to the todo store.

Behavioral Contract:
- Accepts only normalized actions (the typed union produced by validation)
- Dispatches by action name to exactly one store operation
- Converts store refusals and store faults into a failed ExecutionResult;
  never raises
- Publishes pending, then success or error, for every action it runs
"""

import logging
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional
from uuid import uuid4

from todo_kernel.events.bus import EventBus
from todo_kernel.models.action import (
    CompleteTodoAction,
    CreateTodoAction,
    DeleteTodoAction,
    ListTodosAction,
    UpdateTodoAction,
)
from todo_kernel.models.events import ToolEvent
from todo_kernel.models.results import ExecutionResult
from todo_kernel.store.todo_store import TodoStore

logger = logging.getLogger(__name__)


class ExecutionError(Exception):
    """Raised by an executor when the store refuses the action."""
    pass


FAILURE_MESSAGES: Dict[str, str] = {
    "createTodo": "Failed to create todo",
    "updateTodo": "Failed to update todo",
    "completeTodo": "Failed to update todo completion status",
    "deleteTodo": "Failed to delete todo",
    "listTodos": "Failed to list todos",
}


class Executor:
    """
    Runs normalized actions against the store. Custom executors can be
    registered per action name, the same way the built-in ones are.
    """

    def __init__(self, store: TodoStore, event_bus: Optional[EventBus] = None):
        self.store = store
        self.event_bus = event_bus
        self._executors: Dict[str, Callable] = {}
        self._register_default_executors()

    def _register_default_executors(self) -> None:
        self._executors["createTodo"] = self._create
        self._executors["updateTodo"] = self._update
        self._executors["completeTodo"] = self._complete
        self._executors["deleteTodo"] = self._delete
        self._executors["listTodos"] = self._list

    def register_executor(self, action_name: str, executor: Callable) -> None:
        """Register a custom executor (an async callable of action, scope)."""
        self._executors[action_name] = executor

    async def execute(self, action: Any, scope: str) -> ExecutionResult:
        name = getattr(action, "name", None)
        arguments = getattr(action, "arguments", None)
        event_input = (
            arguments.model_dump(exclude_none=True)
            if hasattr(arguments, "model_dump") else (arguments or {})
        )
        event_id = str(uuid4())
        self._publish(event_id, str(name), event_input, "pending")

        executor = self._executors.get(name)
        if executor is None:
            result = ExecutionResult(success=False, error=f"Unknown action: {name}")
        else:
            try:
                result = await executor(action, scope)
            except ExecutionError as e:
                result = ExecutionResult(success=False, error=str(e))
            except Exception as e:
                logger.warning("Store fault while executing %s: %s", name, e)
                prefix = FAILURE_MESSAGES.get(name, f"Failed to execute {name}")
                result = ExecutionResult(success=False, error=f"{prefix}: {e}")

        if result.success:
            logger.info("Executed %s, affected %s", name, result.todo_ids)
            self._publish(event_id, str(name), event_input, "success", result.data)
        else:
            logger.info("Execution of %s failed: %s", name, result.error)
            self._publish(event_id, str(name), event_input, "error", {"error": result.error})
        return result

    def _publish(
        self, event_id: str, tool: str, event_input: dict, status: str, output: Any = None
    ) -> None:
        if self.event_bus is None:
            return
        self.event_bus.publish(ToolEvent(
            id=event_id,
            tool=tool,
            input=event_input,
            output=output,
            status=status,
            timestamp=datetime.now(timezone.utc),
        ))

    # --- Default executors ---

    async def _create(self, action: CreateTodoAction, scope: str) -> ExecutionResult:
        args = action.arguments
        todo = await self.store.create(
            content=args.content,
            scope=scope,
            created_by="agent",
            priority=args.priority,
            labels=args.labels,
            complexity=args.complexity,
        )
        if todo is None:
            raise ExecutionError(FAILURE_MESSAGES["createTodo"])
        return ExecutionResult(
            success=True,
            todo_ids=[todo.id],
            data=todo.model_dump(mode="json", by_alias=True),
        )

    async def _update(self, action: UpdateTodoAction, scope: str) -> ExecutionResult:
        fields = action.arguments.model_dump(exclude={"id"}, exclude_none=True)
        todo = await self.store.update_fields(action.arguments.id, fields)
        if todo is None:
            raise ExecutionError(FAILURE_MESSAGES["updateTodo"])
        return ExecutionResult(
            success=True,
            todo_ids=[todo.id],
            data=todo.model_dump(mode="json", by_alias=True),
        )

    async def _complete(self, action: CompleteTodoAction, scope: str) -> ExecutionResult:
        todo = await self.store.update_fields(
            action.arguments.id, {"completed": action.arguments.completed}
        )
        if todo is None:
            raise ExecutionError(FAILURE_MESSAGES["completeTodo"])
        return ExecutionResult(
            success=True,
            todo_ids=[todo.id],
            data=todo.model_dump(mode="json", by_alias=True),
        )

    async def _delete(self, action: DeleteTodoAction, scope: str) -> ExecutionResult:
        todo_id = action.arguments.id
        if not await self.store.delete(todo_id):
            raise ExecutionError(FAILURE_MESSAGES["deleteTodo"])
        return ExecutionResult(success=True, todo_ids=[todo_id], data={"id": todo_id})

    async def _list(self, action: ListTodosAction, scope: str) -> ExecutionResult:
        args = action.arguments
        todos = await self.store.list_filtered(
            scope,
            completed=args.completed,
            priority=args.priority,
            labels=args.labels,
        )
        return ExecutionResult(
            success=True,
            todo_ids=[t.id for t in todos],
            data=[t.model_dump(mode="json", by_alias=True) for t in todos],
        )
