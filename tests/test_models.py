"""Tests for core data models."""

from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from todo_kernel.models import (
    CompleteTodoAction,
    CreateTodoAction,
    ListTodosAction,
    Message,
    Operation,
    OperationPlan,
    PipelineConfig,
    ResolutionResponse,
    ResponseEvaluation,
    Todo,
    ToolAction,
    ToolName,
    ValidationResult,
    to_tool_action,
    todo_action_adapter,
)


def _make_todo(**overrides) -> Todo:
    now = datetime.now(timezone.utc)
    fields = dict(
        id="todo_1",
        content="walk the dogs",
        scope="default",
        created_at=now,
        updated_at=now,
    )
    fields.update(overrides)
    return Todo(**fields)


class TestTodo:
    def test_defaults(self):
        todo = _make_todo()
        assert todo.completed is False
        assert todo.priority == 0
        assert todo.labels == []
        assert todo.created_by == "user"

    def test_priority_out_of_range_rejected(self):
        with pytest.raises(ValidationError):
            _make_todo(priority=6)

    def test_wire_names_are_camel_case(self):
        data = _make_todo().model_dump(mode="json", by_alias=True)
        assert "createdAt" in data
        assert "createdBy" in data


class TestOperationPlan:
    def test_parse_from_wire_shape(self):
        plan = OperationPlan.model_validate({
            "operation": "complete",
            "complexity": "low",
            "requiredTools": ["completeTodo"],
            "context": {"todoId": "todo_1", "completed": True},
        })
        assert plan.operation == Operation.COMPLETE
        assert plan.context.todo_id == "todo_1"
        assert plan.expected_tool == ToolName.COMPLETE_TODO

    def test_unknown_operation_rejected(self):
        with pytest.raises(ValidationError):
            OperationPlan.model_validate({
                "operation": "archive",
                "complexity": "low",
                "requiredTools": [],
            })


class TestTodoActionUnion:
    def test_discriminates_on_name(self):
        action = todo_action_adapter.validate_python({
            "name": "completeTodo",
            "arguments": {"id": "todo_1", "completed": True},
        })
        assert isinstance(action, CompleteTodoAction)

    def test_unknown_argument_keys_dropped(self):
        action = todo_action_adapter.validate_python({
            "name": "createTodo",
            "arguments": {"content": "buy milk", "dueDate": "tomorrow"},
        })
        assert isinstance(action, CreateTodoAction)
        assert "dueDate" not in action.arguments.model_dump()

    def test_list_without_arguments(self):
        action = todo_action_adapter.validate_python({"name": "listTodos", "arguments": {}})
        assert isinstance(action, ListTodosAction)

    def test_unknown_name_rejected(self):
        with pytest.raises(ValidationError):
            todo_action_adapter.validate_python({"name": "archiveTodo", "arguments": {}})

    def test_to_tool_action_drops_unset_fields(self):
        action = todo_action_adapter.validate_python({
            "name": "createTodo",
            "arguments": {"content": "buy milk"},
        })
        tool = to_tool_action(action)
        assert tool == ToolAction(name="createTodo", arguments={"content": "buy milk"})


class TestValidationResult:
    def test_is_frozen(self):
        result = ValidationResult(is_valid=True)
        with pytest.raises(ValidationError):
            result.is_valid = False


class TestMessage:
    def test_metadata_from_wire(self):
        msg = Message.model_validate({
            "role": "assistant",
            "content": "Done",
            "metadata": {"todoIds": ["a", "b"], "toolCalls": []},
        })
        assert msg.metadata.todo_ids == ["a", "b"]


class TestPipelineConfig:
    def test_defaults(self):
        config = PipelineConfig()
        assert config.max_candidates == 5
        assert config.semantic_threshold == 0.3
        assert config.similarity_floor == 0.2
        assert "the" in config.stopwords
        assert config.evaluate_responses is False

    def test_threshold_bounds(self):
        with pytest.raises(ValidationError):
            PipelineConfig(semantic_threshold=1.5)
        with pytest.raises(ValidationError):
            PipelineConfig(similarity_floor=-0.1)


class TestResolutionResponse:
    def test_serializes_with_camel_case(self):
        response = ResolutionResponse(content="ok", todo_ids=["a"])
        data = response.model_dump(by_alias=True)
        assert data["todoIds"] == ["a"]
        assert data["toolCalls"] == []


class TestResponseEvaluation:
    def test_acceptable_thresholds(self):
        good = ResponseEvaluation(
            quality_score=8, requires_action=False, is_conversational=True,
            context_retention=7,
        )
        assert good.acceptable

        with_issue = good.model_copy(update={"specific_issues": ["too terse"]})
        assert not with_issue.acceptable

        low_context = good.model_copy(update={"context_retention": 6})
        assert not low_context.acceptable
