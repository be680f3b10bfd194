"""
Pipeline error taxonomy.

Fatal stages (intent, planning, worker) raise; the pipeline boundary
catches and maps them into the structured response. Validation,
execution and verification report through their result models instead.
"""


class PipelineError(Exception):
    """Base class for stage failures that abort a request."""

    stage = "internal"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class IntentFailure(PipelineError):
    """The intent summary could not be produced."""

    stage = "intent"


class PlanningFailure(PipelineError):
    """No well-formed operation plan could be produced."""

    stage = "planning"


class WorkerFailure(PipelineError):
    """The specialist worker did not emit a usable action."""

    stage = "worker"
