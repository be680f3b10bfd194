"""Tool actions — untyped worker output and the typed union it is normalized into."""

from typing import Annotated, Dict, List, Literal, Optional, Type, Union

from pydantic import BaseModel, Field, TypeAdapter


class ToolAction(BaseModel):
    """A concrete tool call as emitted by a worker, before validation."""

    name: str
    arguments: dict = {}


# --- Argument models: each carries only the fields legal for its tool ---

class CreateTodoArgs(BaseModel):
    """Create a new todo item."""

    content: str = Field(description="The content of the todo")
    priority: Optional[int] = Field(
        default=None, ge=0, le=5,
        description="Priority level (0-5, where 5 is highest)",
    )
    labels: Optional[List[str]] = Field(default=None, description="Labels/tags for the todo")
    complexity: Optional[float] = Field(
        default=None, ge=0.0, le=1.0, description="Estimated complexity (0-1)",
    )


class UpdateTodoArgs(BaseModel):
    """Update an existing todo."""

    id: str = Field(description="The ID of the todo to update")
    content: Optional[str] = Field(default=None, description="New content for the todo")
    completed: Optional[bool] = Field(default=None, description="Whether the todo is completed")
    priority: Optional[int] = Field(default=None, ge=0, le=5, description="New priority level (0-5)")
    labels: Optional[List[str]] = Field(default=None, description="New labels for the todo")
    complexity: Optional[float] = Field(default=None, ge=0.0, le=1.0)


class CompleteTodoArgs(BaseModel):
    """Mark a todo as complete or incomplete."""

    id: str = Field(description="The ID of the todo to update")
    completed: bool = Field(
        description="Whether to mark the todo as completed (true) or incomplete (false)",
    )


class DeleteTodoArgs(BaseModel):
    """Delete a todo."""

    id: str = Field(description="The ID of the todo to delete")


class ListTodosArgs(BaseModel):
    """List todos with optional filters."""

    completed: Optional[bool] = Field(default=None, description="Filter by completion status")
    priority: Optional[int] = Field(default=None, description="Filter by priority level")
    labels: Optional[List[str]] = Field(default=None, description="Filter by labels")


# --- Tagged union keyed by tool name ---

class CreateTodoAction(BaseModel):
    name: Literal["createTodo"] = "createTodo"
    arguments: CreateTodoArgs


class UpdateTodoAction(BaseModel):
    name: Literal["updateTodo"] = "updateTodo"
    arguments: UpdateTodoArgs


class CompleteTodoAction(BaseModel):
    name: Literal["completeTodo"] = "completeTodo"
    arguments: CompleteTodoArgs


class DeleteTodoAction(BaseModel):
    name: Literal["deleteTodo"] = "deleteTodo"
    arguments: DeleteTodoArgs


class ListTodosAction(BaseModel):
    name: Literal["listTodos"] = "listTodos"
    arguments: ListTodosArgs = ListTodosArgs()


TodoAction = Annotated[
    Union[
        CreateTodoAction,
        UpdateTodoAction,
        CompleteTodoAction,
        DeleteTodoAction,
        ListTodosAction,
    ],
    Field(discriminator="name"),
]

todo_action_adapter: TypeAdapter = TypeAdapter(TodoAction)

ARGUMENT_MODELS: Dict[str, Type[BaseModel]] = {
    "createTodo": CreateTodoArgs,
    "updateTodo": UpdateTodoArgs,
    "completeTodo": CompleteTodoArgs,
    "deleteTodo": DeleteTodoArgs,
    "listTodos": ListTodosArgs,
}


def to_tool_action(action: BaseModel) -> ToolAction:
    """Flatten a typed action back into the wire shape, dropping unset fields."""
    return ToolAction(
        name=action.name,
        arguments=action.arguments.model_dump(exclude_none=True),
    )
