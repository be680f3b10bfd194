"""Interaction Record — the audit entry written for each pipeline run."""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel


class InteractionRecord(BaseModel):
    """
    One row per resolve-and-execute call.
    Answers: what was asked, what was planned, which tools ran, what changed.
    """

    id: str
    scope: str
    user_input: str
    agent_output: str
    duration_seconds: float
    success: bool
    todo_ids: List[str] = []
    tools_used: List[dict] = []
    planning_steps: dict = {}               # Serialized plan, empty if planning never finished
    failure: Optional[str] = None           # Stage that failed, if any
    error: Optional[str] = None
    created_at: datetime
