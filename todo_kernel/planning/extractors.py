"""
Intent and task-reference extraction — the first two pipeline stages.

IntentExtractor failing is fatal. TaskReferenceExtractor failing is not:
the planner simply works without a task phrase.
"""

import logging
from typing import List, Optional

from todo_kernel.completion.service import CompletionService
from todo_kernel.errors import IntentFailure
from todo_kernel.models.message import Message
from todo_kernel.models.pipeline import PipelineConfig

logger = logging.getLogger(__name__)

NO_TASK_SENTINEL = "NONE"

INTENT_PROMPT = (
    "Extract the user's intent and any relevant context from their message "
    "and chat history. Focus on todo-related actions and details."
)

TASK_REFERENCE_PROMPT = f"""You extract the task a user is talking about from a single message.
Reply with a short, simplified task phrase in imperative form and nothing else.
If the message does not refer to a specific task, reply with exactly {NO_TASK_SENTINEL}.

Examples:
- "I finished walking the dogs" -> walk the dogs
- "I've walked the dogs" -> walk the dogs
- "mark the grocery shopping as done" -> grocery shopping
- "Delete the task about calling mom" -> call mom
- "bump the priority of the report one" -> report
- "show me everything" -> {NO_TASK_SENTINEL}
- "what's on my list?" -> {NO_TASK_SENTINEL}"""


class IntentExtractor:
    """Summarizes what the user wants from the message and history."""

    def __init__(
        self,
        completion: CompletionService,
        config: Optional[PipelineConfig] = None,
    ):
        self.completion = completion
        self.config = config or PipelineConfig()

    async def extract(self, message: str, history: List[Message]) -> str:
        """Return the intent summary. Raises IntentFailure when no text comes back."""
        try:
            intent = await self.completion.generate_text(
                INTENT_PROMPT,
                history,
                message,
                temperature=self.config.intent_temperature,
            )
        except Exception as e:
            raise IntentFailure(f"Failed to understand user intent: {e}") from e
        if not intent or not intent.strip():
            logger.error("No intent extracted from message")
            raise IntentFailure("Failed to understand user intent")
        intent = intent.strip()
        logger.info("Extracted user intent: %s", intent)
        return intent


class TaskReferenceExtractor:
    """Pulls a simplified task phrase out of the message, if there is one."""

    def __init__(
        self,
        completion: CompletionService,
        config: Optional[PipelineConfig] = None,
    ):
        self.completion = completion
        self.config = config or PipelineConfig()

    async def extract(self, message: str) -> Optional[str]:
        """Return the task phrase, or None for the sentinel, empty output, or any failure."""
        try:
            raw = await self.completion.generate_text(
                TASK_REFERENCE_PROMPT,
                [],
                message,
                temperature=self.config.task_reference_temperature,
            )
        except Exception as e:
            logger.warning("Task reference extraction failed: %s", e)
            return None

        phrase = (raw or "").strip().strip("\"'").strip()
        if not phrase or phrase.upper() == NO_TASK_SENTINEL:
            logger.info("No task reference in message")
            return None
        logger.info("Extracted task reference: %r", phrase)
        return phrase
