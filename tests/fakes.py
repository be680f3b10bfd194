"""Test doubles for the pipeline's collaborators."""

from typing import Any, List, Optional

from todo_kernel.completion.service import FunctionCall, FunctionSchema
from todo_kernel.models.message import Message


class ScriptedCompletionService:
    """
    Replays queued responses in order and records every call.

    Structured responses may be a FunctionCall, a dict of arguments (wrapped
    in a call to the forced function), None, or an exception to raise.
    Text responses may be a string, None, or an exception to raise.
    An exhausted queue answers None.
    """

    def __init__(self, text: Optional[list] = None, structured: Optional[list] = None):
        self.text_responses: List[Any] = list(text or [])
        self.structured_responses: List[Any] = list(structured or [])
        self.text_calls: List[dict] = []
        self.structured_calls: List[dict] = []

    def queue_text(self, *responses: Any) -> None:
        self.text_responses.extend(responses)

    def queue_structured(self, *responses: Any) -> None:
        self.structured_responses.extend(responses)

    async def generate_text(
        self,
        system_prompt: str,
        history: List[Message],
        user_message: str,
        temperature: Optional[float] = None,
    ) -> Optional[str]:
        self.text_calls.append({
            "system_prompt": system_prompt,
            "history": history,
            "user_message": user_message,
            "temperature": temperature,
        })
        if not self.text_responses:
            return None
        response = self.text_responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response

    async def generate_structured(
        self,
        system_prompt: str,
        history: List[Message],
        user_message: str,
        schema: FunctionSchema,
        forced_function: str,
        temperature: Optional[float] = None,
    ) -> Optional[FunctionCall]:
        self.structured_calls.append({
            "system_prompt": system_prompt,
            "history": history,
            "user_message": user_message,
            "schema": schema,
            "forced_function": forced_function,
            "temperature": temperature,
        })
        if not self.structured_responses:
            return None
        response = self.structured_responses.pop(0)
        if isinstance(response, Exception):
            raise response
        if isinstance(response, dict):
            return FunctionCall(name=forced_function, arguments=response)
        return response


class BrokenLookupStore:
    """Wraps a store; get_by_id raises to simulate a store fault."""

    def __init__(self, inner):
        self.inner = inner

    def __getattr__(self, name):
        return getattr(self.inner, name)

    async def get_by_id(self, todo_id: str):
        raise ConnectionError("store unavailable")
