"""Todo — the record every pipeline stage ultimately reads or mutates."""

from datetime import datetime
from typing import List

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class Todo(BaseModel):
    """A single task record. Identity is `id`; `content` is free text and not unique."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str
    content: str
    completed: bool = False
    priority: int = Field(ge=0, le=5, default=0)    # 0 = none, 5 = highest
    labels: List[str] = []
    complexity: float = Field(ge=0.0, le=1.0, default=0.0)
    scope: str                                      # Owning agent / context partition
    created_by: str = "user"                        # "user" | "agent"
    created_at: datetime
    updated_at: datetime
