"""
Todo Kernel API — FastAPI endpoints.

A thin adapter over the resolution pipeline for:
- Chat (natural language -> verified todo mutation)
- Direct todo listing and creation
- Interaction log queries
- Pipeline configuration
"""

from typing import List, Optional

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel, Field

from todo_kernel.completion.service import CompletionService
from todo_kernel.events.bus import EventBus
from todo_kernel.interactions.store import InteractionLog
from todo_kernel.models.message import Message
from todo_kernel.models.pipeline import PipelineConfig
from todo_kernel.pipeline.resolver import ResolutionPipeline
from todo_kernel.store.todo_store import SqliteTodoStore, TodoStore


# --- Request Models ---

class ChatRequest(BaseModel):
    message: str
    history: List[Message] = []
    scope: str = "default"


class TodoCreateRequest(BaseModel):
    content: str
    scope: str = "default"
    created_by: str = "user"
    priority: Optional[int] = Field(default=None, ge=0, le=5)
    labels: Optional[List[str]] = None


# --- Application Factory ---

def create_app(
    completion_service: CompletionService,
    todo_store: Optional[TodoStore] = None,
    interaction_log: Optional[InteractionLog] = None,
    event_bus: Optional[EventBus] = None,
    config: Optional[PipelineConfig] = None,
) -> FastAPI:
    """Create and configure the FastAPI application."""

    app = FastAPI(
        title="Todo Kernel API",
        description="Natural-language todo resolution pipeline",
        version="0.1.0",
    )

    store = todo_store or SqliteTodoStore()
    log = interaction_log or InteractionLog()
    bus = event_bus or EventBus()

    def build_pipeline(pipeline_config: PipelineConfig) -> ResolutionPipeline:
        return ResolutionPipeline(
            completion=completion_service,
            store=store,
            config=pipeline_config,
            event_bus=bus,
            interaction_log=log,
        )

    app.state.todo_store = store
    app.state.interaction_log = log
    app.state.event_bus = bus
    app.state.pipeline = build_pipeline(config or PipelineConfig())

    # === CHAT ===

    @app.post("/chat")
    async def chat(req: ChatRequest):
        """Resolve and execute one chat message."""
        response = await app.state.pipeline.resolve_and_execute(
            req.message, req.history, req.scope
        )
        return response.model_dump(mode="json", by_alias=True)

    # === TODOS ===

    @app.get("/todos")
    async def list_todos(scope: str = "default", completed: Optional[bool] = None):
        todos = await store.list_filtered(scope, completed=completed)
        return [t.model_dump(mode="json", by_alias=True) for t in todos]

    @app.post("/todos")
    async def create_todo(req: TodoCreateRequest):
        """Create a todo directly, bypassing the pipeline."""
        todo = await store.create(
            content=req.content,
            scope=req.scope,
            created_by=req.created_by,
            priority=req.priority,
            labels=req.labels,
        )
        return todo.model_dump(mode="json", by_alias=True)

    # === INTERACTIONS ===

    @app.get("/interactions")
    def list_interactions(scope: Optional[str] = None, limit: int = 50):
        if scope:
            records = log.query_by_scope(scope)[-limit:]
        else:
            records = log.query_recent(limit)
        return [r.model_dump(mode="json") for r in records]

    @app.get("/interactions/{interaction_id}")
    def get_interaction(interaction_id: str):
        record = log.get_by_id(interaction_id)
        if record is None:
            raise HTTPException(404, "Interaction not found")
        return record.model_dump(mode="json")

    # === CONFIGURATION ===

    @app.get("/config")
    def get_config():
        """Current pipeline configuration."""
        return app.state.pipeline.config.model_dump()

    @app.put("/config")
    def update_config(new_config: PipelineConfig):
        """Replace the pipeline configuration. Applies to subsequent requests."""
        app.state.pipeline = build_pipeline(new_config)
        return new_config.model_dump()

    return app
