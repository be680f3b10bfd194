"""Stage results — validation, execution and verification outcomes."""

from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict

from todo_kernel.models.action import TodoAction, ToolAction


class ValidationResult(BaseModel):
    """The validator's ruling on one worker action. Immutable once produced."""

    model_config = ConfigDict(frozen=True)

    is_valid: bool
    action: Optional[TodoAction] = None          # Normalized action to execute
    corrected_action: Optional[ToolAction] = None  # Set when the id was rewritten
    error: Optional[str] = None
    details: dict = {}


class ExecutionResult(BaseModel):
    """Outcome of applying one action to the store."""

    success: bool
    todo_ids: List[str] = []
    error: Optional[str] = None
    data: Any = None


class VerificationResult(BaseModel):
    """Post-condition check read back from the store."""

    verified: bool
    error: Optional[str] = None
    details: dict = {}
