"""
Completion Service boundary.

The pipeline never talks to a model vendor directly. It consumes an object
satisfying `CompletionService`: free text for summarization stages, and a
forced function call for every stage whose output must have a fixed shape.
"""

import json
from typing import Any, List, Optional, Protocol

from pydantic import BaseModel

from todo_kernel.models.message import Message


class FunctionSchema(BaseModel):
    """A callable function offered to the model; `parameters` is a JSON schema."""

    name: str
    description: str
    parameters: dict


class FunctionCall(BaseModel):
    """A function call emitted by the model. `arguments` may arrive as raw JSON text."""

    name: str
    arguments: Any = None
    content: Optional[str] = None           # Free text the model emitted alongside the call


class CompletionService(Protocol):
    """Protocol for the language-model collaborator — pluggable backend."""

    async def generate_text(
        self,
        system_prompt: str,
        history: List[Message],
        user_message: str,
        temperature: Optional[float] = None,
    ) -> Optional[str]: ...

    async def generate_structured(
        self,
        system_prompt: str,
        history: List[Message],
        user_message: str,
        schema: FunctionSchema,
        forced_function: str,
        temperature: Optional[float] = None,
    ) -> Optional[FunctionCall]: ...


def decode_arguments(raw: Any) -> dict:
    """
    Normalize function-call arguments into a dict.

    Raises ValueError when the payload is not a JSON object.
    """
    if isinstance(raw, dict):
        return raw
    if raw is None:
        return {}
    if isinstance(raw, (str, bytes)):
        try:
            parsed = json.loads(raw)
        except json.JSONDecodeError as e:
            raise ValueError(f"Arguments are not valid JSON: {e}") from e
        if isinstance(parsed, dict):
            return parsed
    raise ValueError(f"Arguments must be a JSON object, got {type(raw).__name__}")
