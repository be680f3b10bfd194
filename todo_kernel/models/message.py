"""Conversation messages passed to the pipeline as history."""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class MessageMetadata(BaseModel):
    """What an assistant turn did, as recorded alongside its text."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    tool_calls: List[dict] = []
    todo_ids: List[str] = []
    error: Optional[str] = None


class Message(BaseModel):
    """One conversation turn. History is ordered oldest to newest."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: Optional[str] = None
    role: str                               # "user" | "assistant" | "system"
    content: str
    timestamp: Optional[datetime] = None
    metadata: Optional[MessageMetadata] = None
