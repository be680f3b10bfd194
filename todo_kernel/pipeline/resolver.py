"""
Resolution Pipeline — the single entry point from a chat message to a
verified todo mutation.

Stages run strictly in sequence, one request at a time per call:

  intent -> task reference -> plan -> worker -> validate -> execute -> verify

Fatal stages (intent, planning, worker) raise PipelineError subclasses and
abort before any store mutation. Validation, execution and verification
report through their result models. Nothing escapes `resolve_and_execute`:
every failure is mapped into the ResolutionResponse.
"""

import logging
import time
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
from uuid import uuid4

from todo_kernel.completion.service import CompletionService
from todo_kernel.errors import PipelineError, WorkerFailure
from todo_kernel.evaluation.evaluator import ResponseEvaluator
from todo_kernel.events.bus import EventBus
from todo_kernel.execution.executor import Executor
from todo_kernel.interactions.store import InteractionLog
from todo_kernel.matching.matcher import ContentMatcher
from todo_kernel.models.action import to_tool_action
from todo_kernel.models.interaction import InteractionRecord
from todo_kernel.models.message import Message
from todo_kernel.models.pipeline import PipelineConfig, ResolutionResponse
from todo_kernel.models.plan import Operation, OperationPlan
from todo_kernel.models.results import ExecutionResult
from todo_kernel.planning.extractors import IntentExtractor, TaskReferenceExtractor
from todo_kernel.planning.planner import OperationPlanner
from todo_kernel.store.todo_store import TodoStore
from todo_kernel.validation.validator import Validator
from todo_kernel.verification.verifier import Verifier
from todo_kernel.workers.specialists import Worker, build_default_workers

logger = logging.getLogger(__name__)

FATAL_RESPONSE = "I'm sorry, I couldn't process that request."
INTERNAL_RESPONSE = "Something went wrong while handling that request."


def describe_outcome(action: Any, result: ExecutionResult) -> str:
    """Plain description of what happened, used when the worker gave no text."""
    name = action.name
    args = action.arguments
    if name == "createTodo":
        return f'Created todo "{args.content}".'
    if name == "updateTodo":
        return "Updated the todo."
    if name == "completeTodo":
        return "Marked the todo as complete." if args.completed else "Marked the todo as not complete."
    if name == "deleteTodo":
        return "Deleted the todo."
    if name == "listTodos":
        count = len(result.data) if isinstance(result.data, list) else 0
        return f"Found {count} todo{'' if count == 1 else 's'}."
    return "Done."


def with_note(text: str, label: str, note: str) -> str:
    """Append a labelled note unless the text already carries it."""
    if note in text:
        return text
    return f"{text}\n\n{label}: {note}" if text else f"{label}: {note}"


class ResolutionPipeline:
    """
    Owns one instance of every stage. Holds no per-request state; all
    persistent state lives in the injected store and interaction log.
    """

    def __init__(
        self,
        completion: CompletionService,
        store: TodoStore,
        config: Optional[PipelineConfig] = None,
        event_bus: Optional[EventBus] = None,
        interaction_log: Optional[InteractionLog] = None,
        workers: Optional[Dict[Operation, Worker]] = None,
        evaluator: Optional[ResponseEvaluator] = None,
    ):
        self.config = config or PipelineConfig()
        self.store = store
        self.event_bus = event_bus
        self.interaction_log = interaction_log

        self.matcher = ContentMatcher(store, self.config)
        self.intent_extractor = IntentExtractor(completion, self.config)
        self.task_extractor = TaskReferenceExtractor(completion, self.config)
        self.planner = OperationPlanner(completion, self.matcher, self.config)
        self.workers = workers or build_default_workers(completion, self.config)
        self.validator = Validator(store, self.matcher)
        self.executor = Executor(store, event_bus)
        self.verifier = Verifier(store)

        if evaluator is None and self.config.evaluate_responses:
            evaluator = ResponseEvaluator(
                completion, max_iterations=self.config.max_evaluation_iterations
            )
        self.evaluator = evaluator

    async def resolve_and_execute(
        self,
        message: str,
        history: Optional[List[Message]] = None,
        scope: str = "default",
    ) -> ResolutionResponse:
        """Run every stage for one message. Never raises."""
        history = history or []
        start = time.monotonic()
        plan: Optional[OperationPlan] = None

        try:
            intent = await self.intent_extractor.extract(message, history)
            task_phrase = await self.task_extractor.extract(message)
            plan = await self.planner.plan(intent, task_phrase, message, history, scope)
            response = await self._act(plan, message, history, scope)
        except PipelineError as e:
            logger.error("Pipeline stopped at %s: %s", e.stage, e.message)
            response = ResolutionResponse(
                content=FATAL_RESPONSE,
                error=e.message,
                failure=e.stage,
                plan=plan,
            )
        except Exception as e:
            logger.exception("Unexpected fault while resolving message")
            response = ResolutionResponse(
                content=INTERNAL_RESPONSE,
                error=f"Internal error: {e}",
                failure="internal",
                plan=plan,
            )

        if self.evaluator is not None and response.error is None and response.failure is None:
            outcome = await self.evaluator.evaluate(message, response.content, history)
            response = response.model_copy(update={"content": outcome.final_response})

        self._record(message, scope, response, time.monotonic() - start)
        return response

    async def _act(
        self,
        plan: OperationPlan,
        message: str,
        history: List[Message],
        scope: str,
    ) -> ResolutionResponse:
        """Worker through verification for an accepted plan."""
        worker = self.workers.get(plan.operation)
        if worker is None:
            raise WorkerFailure(f"No worker found for operation: {plan.operation.value}")

        output = await worker.generate(plan.context, message, history)
        explanation = output.explanation or ""

        validation = await self.validator.validate(
            plan.operation,
            output.action.name,
            output.action.arguments,
            plan.context,
            scope,
        )
        if not validation.is_valid:
            return ResolutionResponse(
                content=with_note(explanation, "Note", validation.error),
                error=validation.error,
                failure="validation",
                plan=plan,
                validation=validation,
                explanation=output.explanation,
            )

        action = validation.action
        tool_call = to_tool_action(action)
        result = await self.executor.execute(action, scope)
        if not result.success:
            return ResolutionResponse(
                content=with_note(explanation, "Note", result.error),
                tool_calls=[tool_call],
                error=result.error,
                failure="execution",
                plan=plan,
                validation=validation,
                explanation=output.explanation,
            )

        verification = await self.verifier.verify(action, result)
        content = explanation or describe_outcome(action, result)
        failure = None
        if not verification.verified:
            content = with_note(content, "Warning", verification.error)
            failure = "verification"

        return ResolutionResponse(
            content=content,
            tool_calls=[tool_call],
            todo_ids=result.todo_ids,
            failure=failure,
            plan=plan,
            validation=validation,
            verification=verification,
            explanation=output.explanation,
        )

    def _record(
        self, message: str, scope: str, response: ResolutionResponse, elapsed: float
    ) -> None:
        if self.interaction_log is None:
            return
        record = InteractionRecord(
            id=str(uuid4()),
            scope=scope,
            user_input=message,
            agent_output=response.content,
            duration_seconds=round(elapsed, 3),
            success=response.error is None,
            todo_ids=response.todo_ids,
            tools_used=[tc.model_dump() for tc in response.tool_calls],
            planning_steps=(
                response.plan.model_dump(mode="json", by_alias=True) if response.plan else {}
            ),
            failure=response.failure,
            error=response.error,
            created_at=datetime.now(timezone.utc),
        )
        try:
            self.interaction_log.append(record)
        except Exception as e:
            logger.warning("Failed to record interaction %s: %s", record.id, e)
