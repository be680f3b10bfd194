"""Tests for intent extraction, task-reference extraction and operation planning."""

from datetime import datetime, timedelta, timezone

import pytest

from todo_kernel.completion.service import FunctionCall
from todo_kernel.errors import IntentFailure, PlanningFailure
from todo_kernel.matching.matcher import ContentMatcher
from todo_kernel.models.message import Message, MessageMetadata
from todo_kernel.models.plan import Operation
from todo_kernel.planning.extractors import IntentExtractor, TaskReferenceExtractor
from todo_kernel.planning.planner import OperationPlanner, most_recent_todo_id
from todo_kernel.store.todo_store import SqliteTodoStore
from tests.fakes import ScriptedCompletionService


def _make_message(role="assistant", todo_ids=None, timestamp=None, content="ok") -> Message:
    metadata = MessageMetadata(todo_ids=todo_ids) if todo_ids is not None else None
    return Message(role=role, content=content, timestamp=timestamp, metadata=metadata)


class TestIntentExtractor:
    @pytest.mark.asyncio
    async def test_returns_stripped_intent(self):
        completion = ScriptedCompletionService(text=["  User wants to add a todo  "])
        intent = await IntentExtractor(completion).extract("add milk", [])
        assert intent == "User wants to add a todo"
        assert completion.text_calls[0]["temperature"] == 0.7

    @pytest.mark.asyncio
    async def test_empty_output_is_fatal(self):
        completion = ScriptedCompletionService(text=["   "])
        with pytest.raises(IntentFailure, match="Failed to understand user intent"):
            await IntentExtractor(completion).extract("hello", [])

    @pytest.mark.asyncio
    async def test_service_error_is_fatal(self):
        completion = ScriptedCompletionService(text=[TimeoutError("slow")])
        with pytest.raises(IntentFailure):
            await IntentExtractor(completion).extract("hello", [])


class TestTaskReferenceExtractor:
    @pytest.mark.asyncio
    async def test_extracts_phrase(self):
        completion = ScriptedCompletionService(text=['"walk the dogs"'])
        phrase = await TaskReferenceExtractor(completion).extract("I've walked the dogs")
        assert phrase == "walk the dogs"
        call = completion.text_calls[0]
        assert call["history"] == []
        assert call["temperature"] == 0.1

    @pytest.mark.asyncio
    async def test_sentinel_means_no_task(self):
        completion = ScriptedCompletionService(text=["none"])
        assert await TaskReferenceExtractor(completion).extract("show me everything") is None

    @pytest.mark.asyncio
    async def test_failure_is_not_fatal(self):
        completion = ScriptedCompletionService(text=[ConnectionError("down")])
        assert await TaskReferenceExtractor(completion).extract("done with it") is None


class TestMostRecentTodoId:
    def test_no_carriers(self):
        assert most_recent_todo_id([_make_message(), _make_message()]) is None

    def test_newest_by_position(self):
        history = [_make_message(todo_ids=["a"]), _make_message(todo_ids=["c", "b"])]
        assert most_recent_todo_id(history) == "b"

    def test_newest_by_timestamp(self):
        now = datetime.now(timezone.utc)
        history = [
            _make_message(todo_ids=["late"], timestamp=now),
            _make_message(todo_ids=["early"], timestamp=now - timedelta(minutes=5)),
        ]
        assert most_recent_todo_id(history) == "late"

    def test_outside_window_ignored(self):
        history = [_make_message(todo_ids=["old"])] + [_make_message() for _ in range(5)]
        assert most_recent_todo_id(history, window=5) is None


class TestOperationPlanner:
    def setup_method(self):
        self.store = SqliteTodoStore(db_path=":memory:")
        self.matcher = ContentMatcher(self.store)
        self.completion = ScriptedCompletionService()
        self.planner = OperationPlanner(self.completion, self.matcher)

    def teardown_method(self):
        self.store.close()

    async def _plan(self, task_phrase=None, history=None, message="do it"):
        return await self.planner.plan(
            "intent summary", task_phrase, message, history or [], "default"
        )

    @pytest.mark.asyncio
    async def test_plan_parsed_and_prompt_carries_intent(self):
        self.completion.queue_structured({
            "operation": "create",
            "complexity": "low",
            "requiredTools": ["createTodo"],
            "context": {"content": "buy milk"},
        })
        plan = await self._plan()

        assert plan.operation == Operation.CREATE
        assert plan.context.content == "buy milk"
        assert plan.intent == "intent summary"
        call = self.completion.structured_calls[0]
        assert "Extracted intent: intent summary" in call["system_prompt"]
        assert call["forced_function"] == "planTodoOperation"

    @pytest.mark.asyncio
    async def test_arguments_as_json_text(self):
        self.completion.queue_structured(FunctionCall(
            name="planTodoOperation",
            arguments='{"operation": "list", "complexity": "low", "requiredTools": ["listTodos"]}',
        ))
        plan = await self._plan()
        assert plan.operation == Operation.LIST

    @pytest.mark.asyncio
    async def test_missing_field_is_fatal(self):
        self.completion.queue_structured({"operation": "create", "requiredTools": ["createTodo"]})
        with pytest.raises(PlanningFailure, match="missing complexity"):
            await self._plan()

    @pytest.mark.asyncio
    async def test_unparseable_arguments_are_fatal(self):
        self.completion.queue_structured(FunctionCall(name="planTodoOperation", arguments="{oops"))
        with pytest.raises(PlanningFailure, match="Failed to parse operation plan"):
            await self._plan()

    @pytest.mark.asyncio
    async def test_no_call_is_fatal(self):
        with pytest.raises(PlanningFailure):
            await self._plan()

    @pytest.mark.asyncio
    async def test_service_error_is_fatal(self):
        self.completion.queue_structured(RuntimeError("rate limited"))
        with pytest.raises(PlanningFailure, match="Planning failed: rate limited"):
            await self._plan()

    @pytest.mark.asyncio
    async def test_pre_resolves_target_from_task_phrase(self):
        todo = await self.store.create(content="walk the dogs", scope="default")
        self.completion.queue_structured({
            "operation": "complete",
            "complexity": "low",
            "requiredTools": ["completeTodo"],
            "context": {"content": "walk the dogs", "completed": True},
        })
        plan = await self._plan(task_phrase="walk the dogs")

        assert plan.context.todo_id == todo.id
        assert plan.context.matched_content == "walk the dogs"
        assert plan.matched_task == "walk the dogs"
        assert "Referenced task: walk the dogs" in self.completion.structured_calls[0]["system_prompt"]

    @pytest.mark.asyncio
    async def test_no_pre_resolution_when_id_given(self):
        await self.store.create(content="walk the dogs", scope="default")
        self.completion.queue_structured({
            "operation": "complete",
            "complexity": "low",
            "requiredTools": ["completeTodo"],
            "context": {"todoId": "given", "content": "walk the dogs"},
        })
        plan = await self._plan(task_phrase="walk the dogs")
        assert plan.context.todo_id == "given"

    @pytest.mark.asyncio
    async def test_delete_falls_back_to_recent_context(self):
        self.completion.queue_structured({
            "operation": "delete",
            "complexity": "low",
            "requiredTools": ["deleteTodo"],
        })
        history = [
            _make_message(role="user", content="add milk"),
            _make_message(todo_ids=["todo_recent"]),
        ]
        plan = await self._plan(history=history, message="delete that")
        assert plan.context.todo_id == "todo_recent"

    @pytest.mark.asyncio
    async def test_recent_context_only_for_delete(self):
        self.completion.queue_structured({
            "operation": "complete",
            "complexity": "low",
            "requiredTools": ["completeTodo"],
        })
        history = [
            _make_message(role="user", content="add milk"),
            _make_message(todo_ids=["todo_recent"]),
        ]
        plan = await self._plan(history=history)
        assert plan.context.todo_id is None
