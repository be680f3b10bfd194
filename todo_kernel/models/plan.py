"""Operation Plan — what the planner hands to the specialist workers."""

from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from todo_kernel.models.todo import Todo


class Operation(str, Enum):
    CREATE = "create"
    UPDATE = "update"
    COMPLETE = "complete"
    DELETE = "delete"
    LIST = "list"


class Complexity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class ToolName(str, Enum):
    CREATE_TODO = "createTodo"
    UPDATE_TODO = "updateTodo"
    COMPLETE_TODO = "completeTodo"
    DELETE_TODO = "deleteTodo"
    LIST_TODOS = "listTodos"


# Each operation permits exactly one tool.
OPERATION_TOOLS: Dict[Operation, ToolName] = {
    Operation.CREATE: ToolName.CREATE_TODO,
    Operation.UPDATE: ToolName.UPDATE_TODO,
    Operation.COMPLETE: ToolName.COMPLETE_TODO,
    Operation.DELETE: ToolName.DELETE_TODO,
    Operation.LIST: ToolName.LIST_TODOS,
}

# Operations that address an existing record and therefore need an id.
ID_OPERATIONS = (Operation.UPDATE, Operation.COMPLETE, Operation.DELETE)


class PlanContext(BaseModel):
    """Parameters the planner extracted, plus anything resolved on the way."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    todo_id: Optional[str] = None
    content: Optional[str] = None
    priority: Optional[int] = None
    labels: Optional[List[str]] = None
    completed: Optional[bool] = None
    matched_todo: Optional[Todo] = None
    matched_task: Optional[str] = None      # Phrase the match was made on
    matched_content: Optional[str] = None   # Content of the matched record


class OperationPlan(BaseModel):
    """The structured intermediate between intent and a concrete action."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    operation: Operation
    complexity: Complexity
    required_tools: List[ToolName]
    context: PlanContext = PlanContext()
    intent: str = ""
    matched_task: Optional[str] = None

    @property
    def expected_tool(self) -> ToolName:
        return OPERATION_TOOLS[self.operation]
