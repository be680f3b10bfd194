"""Tests for the Validator."""

import pytest

from todo_kernel.matching.matcher import ContentMatcher
from todo_kernel.models.action import CreateTodoAction, UpdateTodoAction
from todo_kernel.models.plan import Operation, PlanContext
from todo_kernel.store.todo_store import SqliteTodoStore
from todo_kernel.validation.validator import Validator


class TestValidator:
    def setup_method(self):
        self.store = SqliteTodoStore(db_path=":memory:")
        self.validator = Validator(self.store, ContentMatcher(self.store))

    def teardown_method(self):
        self.store.close()

    async def _validate(self, operation, name, arguments, context=None):
        return await self.validator.validate(
            operation, name, arguments, context or PlanContext(), "default"
        )

    @pytest.mark.asyncio
    async def test_valid_create(self):
        result = await self._validate(
            Operation.CREATE, "createTodo", {"content": "Test todo", "priority": 5}
        )
        assert result.is_valid
        assert isinstance(result.action, CreateTodoAction)
        assert result.action.arguments.priority == 5
        assert result.corrected_action is None

    @pytest.mark.asyncio
    @pytest.mark.parametrize("operation,name", [
        (Operation.CREATE, "deleteTodo"),
        (Operation.COMPLETE, "updateTodo"),
        (Operation.LIST, "createTodo"),
    ])
    async def test_action_must_match_operation(self, operation, name):
        result = await self._validate(operation, name, {"content": "x", "id": "y"})
        assert not result.is_valid
        assert "Expected" in result.error
        assert result.details["actual_action"] == name
        assert result.details["expected_actions"] == [
            {"create": "createTodo", "complete": "completeTodo", "list": "listTodos"}[operation.value]
        ]

    @pytest.mark.asyncio
    async def test_missing_required_arguments(self):
        result = await self._validate(Operation.COMPLETE, "completeTodo", {"id": "todo_1"})
        assert not result.is_valid
        assert result.error == "Missing required arguments: completed"

    @pytest.mark.asyncio
    async def test_null_counts_as_missing(self):
        result = await self._validate(Operation.CREATE, "createTodo", {"content": None})
        assert not result.is_valid
        assert "content" in result.error

    @pytest.mark.asyncio
    @pytest.mark.parametrize("priority", [-1, 6, "high"])
    async def test_priority_out_of_range(self, priority):
        result = await self._validate(
            Operation.CREATE, "createTodo", {"content": "x", "priority": priority}
        )
        assert not result.is_valid
        assert result.error.startswith("Invalid priority value")

    @pytest.mark.asyncio
    async def test_update_with_only_id_rejected(self):
        todo = await self.store.create(content="walk the dogs", scope="default")
        result = await self._validate(Operation.UPDATE, "updateTodo", {"id": todo.id})
        assert not result.is_valid
        assert "No fields to update" in result.error

    @pytest.mark.asyncio
    async def test_update_with_only_unknown_fields_rejected(self):
        todo = await self.store.create(content="walk the dogs", scope="default")
        result = await self._validate(
            Operation.UPDATE, "updateTodo", {"id": todo.id, "dueDate": "friday"}
        )
        assert not result.is_valid
        assert "No fields to update" in result.error

    @pytest.mark.asyncio
    async def test_direct_id_resolution(self):
        todo = await self.store.create(content="walk the dogs", scope="default")
        result = await self._validate(
            Operation.UPDATE, "updateTodo", {"id": todo.id, "priority": 4}
        )
        assert result.is_valid
        assert result.details["method"] == "direct_id"
        assert isinstance(result.action, UpdateTodoAction)
        assert result.corrected_action is None

    @pytest.mark.asyncio
    async def test_content_match_corrects_id(self):
        todo = await self.store.create(content="walk the dogs", scope="default")
        result = await self._validate(
            Operation.COMPLETE,
            "completeTodo",
            {"id": "hallucinated", "completed": True},
            PlanContext(content="walked the dogs"),
        )

        assert result.is_valid
        assert result.corrected_action.name == "completeTodo"
        assert result.corrected_action.arguments == {"id": todo.id, "completed": True}
        assert result.action.arguments.id == todo.id
        assert result.details["method"] == "word_match"
        assert result.details["original_id"] == "hallucinated"
        assert result.details["matched_id"] == todo.id
        assert result.details["matched_content"] == "walk the dogs"

    @pytest.mark.asyncio
    async def test_hints_tried_in_order(self):
        await self.store.create(content="buy milk", scope="default")
        dogs = await self.store.create(content="walk the dogs", scope="default")
        result = await self._validate(
            Operation.DELETE,
            "deleteTodo",
            {"id": "missing"},
            PlanContext(content="grocery shopping", matched_task="walk the dogs"),
        )
        assert result.is_valid
        assert result.details["matched_id"] == dogs.id

    @pytest.mark.asyncio
    async def test_argument_content_used_as_last_hint(self):
        todo = await self.store.create(content="walk the dogs", scope="default")
        result = await self._validate(
            Operation.UPDATE,
            "updateTodo",
            {"id": "missing", "content": "walk the dogs", "priority": 2},
        )
        assert result.is_valid
        assert result.action.arguments.id == todo.id

    @pytest.mark.asyncio
    async def test_not_found_by_id_or_content(self):
        await self.store.create(content="walk the dogs", scope="default")
        result = await self._validate(
            Operation.DELETE,
            "deleteTodo",
            {"id": "missing"},
            PlanContext(content="grocery shopping"),
        )
        assert not result.is_valid
        assert "not found by id or content" in result.error
        assert result.details["todo_found"] is False

    @pytest.mark.asyncio
    async def test_type_errors_make_action_invalid(self):
        result = await self._validate(
            Operation.CREATE, "createTodo", {"content": "x", "labels": "not-a-list"}
        )
        assert not result.is_valid
        assert result.error.startswith("Invalid arguments for createTodo")

    @pytest.mark.asyncio
    async def test_validation_never_mutates_store(self):
        todo = await self.store.create(content="walk the dogs", scope="default")
        await self._validate(
            Operation.DELETE, "deleteTodo", {"id": "missing"}, PlanContext(content="walk the dogs")
        )
        assert await self.store.get_by_id(todo.id) is not None
        assert self.store.count() == 1
