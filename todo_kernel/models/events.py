"""Tool execution events published by the executor."""

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel


class ToolEvent(BaseModel):
    """One lifecycle step of a tool call. Steps of the same call share `id`."""

    id: str
    tool: str
    input: dict
    output: Any = None
    status: Literal["pending", "success", "error"]
    timestamp: datetime
