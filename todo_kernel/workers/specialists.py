"""
Specialist Workers — one per operation kind.

Each worker has a narrow persona and exactly one function it may call.
The function's JSON schema comes from the same argument model the
validator later normalizes into, so what the model is offered and what
is accepted cannot drift apart.
"""

import json
import logging
from typing import Dict, List, Optional

from pydantic import BaseModel

from todo_kernel.completion.service import (
    CompletionService,
    FunctionSchema,
    decode_arguments,
)
from todo_kernel.errors import WorkerFailure
from todo_kernel.models.action import ARGUMENT_MODELS, ToolAction
from todo_kernel.models.message import Message
from todo_kernel.models.pipeline import PipelineConfig
from todo_kernel.models.plan import OPERATION_TOOLS, Operation, PlanContext, ToolName

logger = logging.getLogger(__name__)

PERSONAS: Dict[Operation, str] = {
    Operation.CREATE: """You are a todo creation specialist.
Focus on creating well-structured todos with appropriate metadata.
Ensure all required fields are provided and validate input data.
Consider priority levels and labels for better organization.""",
    Operation.UPDATE: """You are a todo update specialist.
Focus on modifying existing todos while maintaining data integrity.
Handle partial updates and validate changed fields.
Always use the todoId from the context when one is given.""",
    Operation.COMPLETE: """You are a todo completion specialist.
Focus on managing todo completion status accurately.
Always use the todoId from the context when one is given.""",
    Operation.DELETE: """You are a todo deletion specialist.
Focus on safely removing exactly the todo the user referred to.
Always use the todoId from the context when one is given.""",
    Operation.LIST: """You are a todo listing specialist.
Focus on retrieving and filtering todos effectively.
Only set filters the user actually asked for.""",
}


def function_schema_for(tool: ToolName) -> FunctionSchema:
    """Build the forced function for a tool from its argument model."""
    model = ARGUMENT_MODELS[tool.value]
    parameters = model.model_json_schema()
    parameters.pop("title", None)
    return FunctionSchema(
        name=tool.value,
        description=(model.__doc__ or tool.value).strip(),
        parameters=parameters,
    )


class WorkerOutput(BaseModel):
    """A worker's single action plus whatever it said about it."""

    action: ToolAction
    explanation: Optional[str] = None


class Worker:
    """Generates exactly one tool action for its operation."""

    def __init__(
        self,
        operation: Operation,
        completion: CompletionService,
        persona: Optional[str] = None,
        temperature: float = 0.7,
    ):
        self.operation = operation
        self.completion = completion
        self.persona = persona or PERSONAS[operation]
        self.function = function_schema_for(OPERATION_TOOLS[operation])
        self.temperature = temperature

    async def generate(
        self,
        context: PlanContext,
        message: str,
        history: List[Message],
    ) -> WorkerOutput:
        """Force the worker's function. Raises WorkerFailure."""
        context_json = json.dumps(
            context.model_dump(mode="json", by_alias=True, exclude_none=True),
            indent=2,
        )
        user_message = f"{message}\n\nContext: {context_json}"

        try:
            call = await self.completion.generate_structured(
                self.persona,
                history,
                user_message,
                self.function,
                self.function.name,
                temperature=self.temperature,
            )
        except Exception as e:
            raise WorkerFailure(f"Worker execution failed: {e}") from e

        if call is None:
            raise WorkerFailure("Worker did not generate an action")

        try:
            arguments = decode_arguments(call.arguments)
        except ValueError as e:
            raise WorkerFailure(f"Worker did not generate an action: {e}") from e

        logger.info("%s worker generated %s %s", self.operation.value, call.name, arguments)
        return WorkerOutput(
            action=ToolAction(name=call.name, arguments=arguments),
            explanation=call.content,
        )


def build_default_workers(
    completion: CompletionService,
    config: Optional[PipelineConfig] = None,
) -> Dict[Operation, Worker]:
    """One worker per operation kind."""
    config = config or PipelineConfig()
    return {
        operation: Worker(
            operation=operation,
            completion=completion,
            temperature=config.worker_temperature,
        )
        for operation in Operation
    }
