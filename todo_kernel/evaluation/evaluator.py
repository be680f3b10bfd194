"""
Response Evaluator — optional quality pass over the assistant's reply.

Behavioral Contract:
- Forces the `evaluateResponse` function on the CompletionService.
- Accepts a reply scoring quality >= 8, context retention >= 7 and no issues.
- Otherwise adopts the suggested rewrite and evaluates again, within budget.
- Never fatal: any failure returns the original text untouched.
"""

import logging
from typing import List, Optional

from pydantic import ValidationError

from todo_kernel.completion.service import (
    CompletionService,
    FunctionSchema,
    decode_arguments,
)
from todo_kernel.models.evaluation import EvaluationOutcome, ResponseEvaluation
from todo_kernel.models.message import Message

logger = logging.getLogger(__name__)

EVALUATOR_PROMPT = """You are a senior conversation and response evaluator.
Your role is to assess the quality of responses in a todo management system, considering both task-oriented and conversational aspects.

For each response, evaluate:
1. Overall quality and clarity
2. Whether it requires a tool action (todo operation)
3. Conversational appropriateness
4. Context retention from previous messages
5. Specific issues or areas for improvement
6. Suggestions for optimization

Provide actionable feedback that can be used to improve the response quality."""

EVALUATE_FUNCTION = FunctionSchema(
    name="evaluateResponse",
    description="Evaluate the quality of a response and suggest improvements",
    parameters={
        "type": "object",
        "properties": {
            "qualityScore": {
                "type": "number", "minimum": 1, "maximum": 10,
                "description": "Overall quality score of the response",
            },
            "requiresAction": {
                "type": "boolean",
                "description": "Whether the response requires a tool action",
            },
            "isConversational": {
                "type": "boolean",
                "description": "Whether this is a conversational exchange",
            },
            "contextRetention": {
                "type": "number", "minimum": 1, "maximum": 10,
                "description": "How well the response maintains conversation context",
            },
            "specificIssues": {
                "type": "array", "items": {"type": "string"},
                "description": "List of specific issues identified",
            },
            "improvementSuggestions": {
                "type": "array", "items": {"type": "string"},
                "description": "List of suggested improvements",
            },
            "suggestedResponse": {
                "type": "string",
                "description": "An improved version of the response if needed",
            },
        },
        "required": [
            "qualityScore",
            "requiresAction",
            "isConversational",
            "contextRetention",
            "specificIssues",
            "improvementSuggestions",
        ],
    },
)


class ResponseEvaluator:

    def __init__(
        self,
        completion: CompletionService,
        max_iterations: int = 2,
        temperature: float = 0.7,
    ):
        self.completion = completion
        self.max_iterations = max_iterations
        self.temperature = temperature

    async def evaluate(
        self,
        original_message: str,
        response: str,
        history: Optional[List[Message]] = None,
    ) -> EvaluationOutcome:
        current = response
        iterations = 0
        evaluation: Optional[ResponseEvaluation] = None

        try:
            while iterations < self.max_iterations:
                evaluation = await self._evaluate_once(original_message, current, history or [])
                logger.info(
                    "Evaluation %d/%d: quality=%s context=%s issues=%d",
                    iterations + 1, self.max_iterations,
                    evaluation.quality_score, evaluation.context_retention,
                    len(evaluation.specific_issues),
                )
                if evaluation.acceptable:
                    break
                if evaluation.suggested_response and iterations < self.max_iterations - 1:
                    current = evaluation.suggested_response
                    iterations += 1
                else:
                    break
        except Exception as e:
            logger.warning("Response evaluation failed, keeping original text: %s", e)
            return EvaluationOutcome(success=False, final_response=response, error=str(e))

        return EvaluationOutcome(
            success=True,
            final_response=current,
            evaluation=evaluation,
            iterations=iterations,
        )

    async def _evaluate_once(
        self, original_message: str, response: str, history: List[Message]
    ) -> ResponseEvaluation:
        user_message = (
            f"User message:\n{original_message}\n\n"
            f"Assistant response to evaluate:\n{response}"
        )
        call = await self.completion.generate_structured(
            EVALUATOR_PROMPT,
            history,
            user_message,
            EVALUATE_FUNCTION,
            EVALUATE_FUNCTION.name,
            temperature=self.temperature,
        )
        if call is None:
            raise ValueError("No evaluation generated")
        try:
            return ResponseEvaluation.model_validate(decode_arguments(call.arguments))
        except ValidationError as e:
            raise ValueError(f"Malformed evaluation: {e}") from e
